"""Authentication (sessions, passwords) and authorization helpers"""

from app.services.auth.security import (
    SessionData,
    create_access_token,
    decode_access_token,
    get_session,
    get_password_hash,
    verify_password,
)
from app.services.auth.authorization import (
    AccessCheck,
    AuthUser,
    can_act_on_user,
    can_demote_last_owner,
    get_current_user,
    get_current_user_with_ban_check,
    require_auth,
    require_role,
)
from app.services.auth.auth_service import login, register

__all__ = [
    "SessionData",
    "create_access_token",
    "decode_access_token",
    "get_session",
    "get_password_hash",
    "verify_password",
    "AccessCheck",
    "AuthUser",
    "can_act_on_user",
    "can_demote_last_owner",
    "get_current_user",
    "get_current_user_with_ban_check",
    "require_auth",
    "require_role",
    "login",
    "register",
]
