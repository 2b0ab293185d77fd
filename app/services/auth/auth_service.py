"""Account registration and credential login"""

import logging
import re

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import Role, User
from app.services.auth.security import (
    create_access_token,
    get_password_hash_async,
    verify_password_async,
)
from app.services.cache import ADMIN_USERS_TAG, cache_service
from app.utils.constants import (
    MAX_USERNAME_LENGTH,
    MIN_PASSWORD_LENGTH,
    MIN_USERNAME_LENGTH,
    USERNAME_PATTERN,
)
from app.utils.errors import BusinessRuleError, UnauthorizedError, ValidationError, server_action
from app.utils.response_utils import success

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid username or password."


def normalize_username(username: str) -> str:
    return (username or "").strip().lower()


def validate_registration(username: str, password: str) -> str:
    """Validate registration input and return the normalized username."""
    username = (username or "").strip()

    if len(username) < MIN_USERNAME_LENGTH:
        raise ValidationError(f"Username must be at least {MIN_USERNAME_LENGTH} characters")
    if len(username) > MAX_USERNAME_LENGTH:
        raise ValidationError(f"Username must be at most {MAX_USERNAME_LENGTH} characters")
    if not re.match(USERNAME_PATTERN, username):
        raise ValidationError("Only letters, numbers, and underscores")
    if len(password or "") < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")

    return username.lower()


@server_action
async def register(db: AsyncSession, username: str, password: str) -> dict:
    """Create a USER account with a lowercase-normalized username."""
    normalized = validate_registration(username, password)

    existing = await db.execute(select(User.id).where(User.username == normalized))
    if existing.scalar_one_or_none() is not None:
        raise BusinessRuleError("Username already taken.")

    user = User(
        username=normalized,
        password_hash=await get_password_hash_async(password),
        role=Role.USER.value,
    )
    db.add(user)
    try:
        await db.commit()
    except IntegrityError:
        # Lost a race with a concurrent registration of the same name
        await db.rollback()
        raise BusinessRuleError("Username already taken.")

    await db.refresh(user)
    cache_service.revalidate_tag(ADMIN_USERS_TAG)
    logger.info(f"Registered user {user.id} ({normalized})")

    return success(user_id=user.id, username=user.username)


@server_action
async def login(db: AsyncSession, username: str, password: str) -> dict:
    """Check credentials and issue a session token."""
    normalized = normalize_username(username)
    if not normalized or not password:
        raise UnauthorizedError(INVALID_CREDENTIALS)

    result = await db.execute(select(User).where(User.username == normalized))
    user = result.scalar_one_or_none()

    if user is None:
        raise UnauthorizedError(INVALID_CREDENTIALS)

    if user.is_banned:
        raise UnauthorizedError("This account has been banned.")

    if not await verify_password_async(password, user.password_hash):
        raise UnauthorizedError(INVALID_CREDENTIALS)

    token = create_access_token(
        user_id=user.id,
        username=user.username,
        role=user.role,
        is_banned=user.is_banned,
    )

    return success(
        access_token=token,
        token_type="bearer",
        user={"id": user.id, "username": user.username, "image": user.image},
    )
