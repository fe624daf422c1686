# Overview: Procedures for user accounts and login.

# backend/retail_pos/routes/auth.py
"""
Authentication procedures.

loginUser is public and returns a signed token; everything else requires
Authorization: Bearer <token>. Account creation and administration are
manager-only; the first manager comes from `flask users create`.
"""
from flask import g

from ..decorators import require_auth, require_role
from ..models import USER_ROLES
from ..rpc import registry, takes_input
from ..services import auth_service
from ..services.auth_service import MAX_PASSWORD_BYTES
from ..validation import Field

CREATE_USER_INPUT = {
    "username": Field("string", min_length=3, max_length=50, strip=True),
    "email": Field("email", max_length=255),
    "password": Field("string", min_length=6, max_length=MAX_PASSWORD_BYTES),
    "role": Field("enum", choices=USER_ROLES),
}

LOGIN_INPUT = {
    "username": Field("string", min_length=1, strip=True),
    "password": Field("string", min_length=1),
}

SET_USER_ACTIVE_INPUT = {
    "user_id": Field("int", min_value=1),
    "is_active": Field("bool"),
}


@registry.mutation("createUser")
@require_auth
@require_role("manager")
@takes_input(CREATE_USER_INPUT)
def create_user(data):
    """Create an active cashier or manager account."""
    user = auth_service.create_user(
        username=data["username"],
        email=data["email"],
        password=data["password"],
        role=data["role"],
    )
    return user.to_dict()


@registry.mutation("loginUser")
@takes_input(LOGIN_INPUT)
def login_user(data):
    """Exchange username/password for {token, user}."""
    return auth_service.login_user(data["username"], data["password"])


@registry.query("getCurrentUser")
@require_auth
def get_current_user(data):
    return g.current_user.to_dict()


@registry.query("getUsers")
@require_auth
@require_role("manager")
def get_users(data):
    return auth_service.list_users()


@registry.mutation("setUserActive")
@require_auth
@require_role("manager")
@takes_input(SET_USER_ACTIVE_INPUT)
def set_user_active(data):
    return auth_service.set_user_active(
        user_id=data["user_id"],
        is_active=data["is_active"],
        actor_user_id=g.current_user.id,
    )
