# Overview: Service-layer operations for bearer tokens; issues and verifies signed, expiring tokens.

"""
Signed Token Service

Tokens are itsdangerous URL-safe timed signatures over a small claims
dict. Nothing is stored server-side: the signature proves the claims were
issued with this deployment's SECRET_KEY and the embedded timestamp bounds
their lifetime (AUTH_TOKEN_MAX_AGE seconds).

Claims:
- uid: user id
- username: username at issue time
- role: role at issue time (informational; authorization reloads the user)
"""

from __future__ import annotations

from dataclasses import dataclass

from flask import current_app
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from ..models import User

TOKEN_SALT = "retail-pos-auth-token"


@dataclass(frozen=True)
class TokenClaims:
    user_id: int
    username: str
    role: str


def _serializer() -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(current_app.config["SECRET_KEY"], salt=TOKEN_SALT)


def issue_token(user: User) -> str:
    return _serializer().dumps({
        "uid": user.id,
        "username": user.username,
        "role": user.role,
    })


def verify_token(token: str, max_age: int | None = None) -> TokenClaims | None:
    """
    Return the token's claims, or None if the signature is invalid, the
    token has expired, or the payload is malformed.
    """
    if not token:
        return None
    if max_age is None:
        max_age = current_app.config["AUTH_TOKEN_MAX_AGE"]

    try:
        data = _serializer().loads(token, max_age=max_age)
    except SignatureExpired:
        current_app.logger.info("Rejected expired token")
        return None
    except BadSignature:
        return None

    if not isinstance(data, dict):
        return None
    user_id = data.get("uid")
    if not isinstance(user_id, int) or isinstance(user_id, bool):
        return None

    return TokenClaims(
        user_id=user_id,
        username=str(data.get("username", "")),
        role=str(data.get("role", "")),
    )
