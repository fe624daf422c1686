# Overview: Authentication and role decorators for procedures.

from functools import wraps

from flask import g, request

from .extensions import db
from .models import User
from .services import token_service
from .services.auth_service import AuthenticationError


class PermissionDeniedError(Exception):
    """Authenticated, but the role doesn't allow the operation (403)."""


def _bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1].strip()


def load_current_user() -> User:
    """
    Resolve the caller from the Authorization header.

    The token only proves identity; the user row is reloaded on every
    request so deactivation and role changes apply immediately.

    Raises AuthenticationError if:
    - No Authorization header
    - Invalid or expired token
    - User no longer exists or is deactivated
    """
    token = _bearer_token()
    if not token:
        raise AuthenticationError("Authentication required")

    claims = token_service.verify_token(token)
    if claims is None:
        raise AuthenticationError("Invalid or expired token")

    user = db.session.get(User, claims.user_id)
    if user is None or not user.is_active:
        raise AuthenticationError("Invalid or expired token")

    return user


def require_auth(f):
    """
    Require a valid bearer token and establish the request context.

    Sets g.current_user to the authenticated User; procedures take the
    acting user id from there rather than from their input.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        g.current_user = load_current_user()
        return f(*args, **kwargs)

    return decorated_function


def require_role(*roles):
    """
    Require the authenticated user to hold one of the given roles.
    Must be applied beneath @require_auth.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            user = getattr(g, "current_user", None)
            if user is None:
                raise AuthenticationError("Authentication required")
            if user.role not in roles:
                raise PermissionDeniedError(f"Requires role: {' or '.join(roles)}")
            return f(*args, **kwargs)

        return decorated_function
    return decorator
