# Overview: Service-layer operations for auth; encapsulates business logic and database work.

"""
Authentication Service

Every sale and stock adjustment is attributed to a user, so accounts are
individual and never shared. Passwords are hashed with bcrypt; login hands
back a signed, expiring token (see token_service.py).

Username and email uniqueness is enforced by database constraints. On a
constraint violation we roll back and look up which field collided so the
caller gets a specific message.
"""

from __future__ import annotations

import bcrypt
from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import User
from ..validation import ConflictError, NotFoundError, ValidationError
from .token_service import issue_token


class PasswordValidationError(ValidationError):
    """Raised when password doesn't meet strength requirements."""
    pass


# bcrypt only looks at the first 72 bytes; bcrypt 5 raises past that
MAX_PASSWORD_BYTES = 72


class AuthenticationError(Exception):
    """Bad credentials or inactive account (401)."""
    pass


def validate_password_strength(password: str) -> None:
    min_length = current_app.config.get("MIN_PASSWORD_LENGTH", 6)
    if len(password) < min_length:
        raise PasswordValidationError(f"Password must be at least {min_length} characters long")
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise PasswordValidationError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes long")


def hash_password(password: str) -> str:
    """
    Hash password using bcrypt.

    Cost factor comes from BCRYPT_LOG_ROUNDS (12 in production, 4 in tests).
    Password is validated for strength before hashing.
    """
    validate_password_strength(password)
    rounds = current_app.config.get("BCRYPT_LOG_ROUNDS", 12)
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')  # Store as string in database


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    Returns False for anything that is not a valid bcrypt hash instead of
    raising, so a corrupt row reads as a failed login.
    """
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def _duplicate_user_message(username: str, email: str) -> str:
    # Username is reported first when both collide
    if db.session.query(User.id).filter(User.username == username).first() is not None:
        return "Username already exists"
    if db.session.query(User.id).filter(User.email == email).first() is not None:
        return "Email already exists"
    return "Username or email already exists"


def create_user(username: str, email: str, password: str, role: str) -> User:
    """
    Create a new, active user with a bcrypt password hash.

    Raises:
        PasswordValidationError: password too short
        ConflictError: username or email already taken
    """
    password_hash = hash_password(password)

    user = User(
        username=username,
        email=email,
        password_hash=password_hash,
        role=role,
        is_active=True,
    )

    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError(_duplicate_user_message(username, email))

    current_app.logger.info("Created %s user %s (id=%s)", role, username, user.id)
    return user


def authenticate(username: str, password: str) -> User:
    """
    Look up by username and verify the password.

    The same error is raised for unknown users and wrong passwords so the
    response doesn't reveal which usernames exist.

    Raises:
        AuthenticationError: unknown user, inactive account, or bad password
    """
    user = db.session.query(User).filter(User.username == username).first()

    if user is None:
        raise AuthenticationError("Invalid username or password")

    if not user.is_active:
        raise AuthenticationError("User account is inactive")

    if not verify_password(password, user.password_hash):
        raise AuthenticationError("Invalid username or password")

    return user


def login_user(username: str, password: str) -> dict:
    try:
        user = authenticate(username, password)
    except AuthenticationError:
        current_app.logger.warning("Failed login for username=%s", username)
        raise

    return {
        "token": issue_token(user),
        "user": user.to_session_dict(),
    }


def list_users() -> list[dict]:
    users = db.session.query(User).order_by(User.username.asc(), User.id.asc()).all()
    return [u.to_dict() for u in users]


def set_user_active(*, user_id: int, is_active: bool, actor_user_id: int) -> dict:
    """
    Activate or deactivate an account.

    Deactivation takes effect on the user's next request: require_auth
    reloads the user behind every token and rejects inactive accounts.
    """
    if user_id == actor_user_id and not is_active:
        raise ValidationError("You cannot deactivate your own account")

    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError(f"User with id {user_id} not found")

    user.is_active = is_active
    db.session.commit()

    current_app.logger.info(
        "User %s %s by user %s",
        user.username,
        "activated" if is_active else "deactivated",
        actor_user_id,
    )
    return user.to_dict()
