"""Caller identity, ban checks and the role hierarchy.

Role hierarchy: OWNER > ADMIN > USER, compared by ``Role.level``.

Acting on another account follows two rules on top of the hierarchy:
an ADMIN may only act on USERs, and an OWNER may act on anyone except
another OWNER. The last remaining OWNER can never be demoted or deleted.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db import get_db
from app.models.user import Role, User
from app.services.auth.security import SessionData, get_session
from app.utils.errors import ForbiddenError, UnauthorizedError
from app.utils.sentry_utils import set_user_context

logger = logging.getLogger(__name__)


@dataclass
class AuthUser:
    """Authenticated, non-banned caller"""

    id: int
    username: str
    role: str
    is_banned: bool = False

    @property
    def role_level(self) -> int:
        return Role.parse(self.role).level

    @property
    def is_moderator(self) -> bool:
        return self.role_level >= Role.ADMIN.level


@dataclass
class AccessCheck:
    allowed: bool
    reason: Optional[str] = None


async def get_current_user_with_ban_check(
    session: Optional[SessionData],
    db: AsyncSession,
) -> Optional[AuthUser]:
    """
    Resolve the caller from their session, failing closed on bans.

    The ban flag embedded in the session is checked first so banned
    callers never cost a query; the database row is then re-read so a ban
    issued after the session was created still takes effect.
    """
    if session is None:
        return None

    if session.is_banned:
        return None

    result = await db.execute(
        select(User.id, User.username, User.role, User.is_banned).where(User.id == session.user_id)
    )
    row = result.one_or_none()

    if row is None or row.is_banned:
        return None

    return AuthUser(id=row.id, username=row.username, role=row.role, is_banned=row.is_banned)


async def get_current_user(
    session: Optional[SessionData] = Depends(get_session),
    db: AsyncSession = Depends(get_db),
) -> Optional[AuthUser]:
    """FastAPI dependency: the current caller, or None for visitors."""
    user = await get_current_user_with_ban_check(session, db)
    if user is not None:
        set_user_context(user.id, user.role)
    return user


def require_auth(user: Optional[AuthUser]) -> AuthUser:
    """Return the caller or raise ``UnauthorizedError``."""
    if user is None:
        raise UnauthorizedError("Unauthorized")
    return user


def require_role(user: Optional[AuthUser], min_role: Role | str) -> AuthUser:
    """Return the caller if their role is at least ``min_role``."""
    user = require_auth(user)

    if user.role_level < Role.parse(min_role).level:
        raise ForbiddenError("Forbidden: Insufficient permissions")

    return user


async def can_act_on_user(
    actor: Optional[AuthUser],
    target_user_id: int,
    db: AsyncSession,
) -> AccessCheck:
    """Check whether ``actor`` may moderate or modify ``target_user_id``."""
    if actor is None:
        return AccessCheck(False, "Unauthorized")

    if actor.id == target_user_id:
        return AccessCheck(True)

    if not actor.is_moderator:
        return AccessCheck(False, "Forbidden")

    result = await db.execute(select(User.role).where(User.id == target_user_id))
    target_role = result.scalar_one_or_none()

    if target_role is None:
        return AccessCheck(False, "User not found")

    target_level = Role.parse(target_role).level

    if actor.role == Role.ADMIN.value and target_level >= Role.ADMIN.level:
        return AccessCheck(False, "You cannot modify your superiors or peers")

    if actor.role == Role.OWNER.value and target_level >= Role.OWNER.level:
        return AccessCheck(False, "You cannot modify another owner")

    return AccessCheck(True)


async def can_demote_last_owner(target_user_id: int, db: AsyncSession) -> AccessCheck:
    """Refuse to demote or delete the only remaining OWNER."""
    result = await db.execute(select(User.role).where(User.id == target_user_id))
    target_role = result.scalar_one_or_none()

    if target_role is None:
        return AccessCheck(False, "User not found")

    if target_role != Role.OWNER.value:
        return AccessCheck(True)

    owner_count = await db.scalar(
        select(func.count()).select_from(User).where(User.role == Role.OWNER.value)
    )

    if owner_count <= 1:
        return AccessCheck(False, "Cannot demote the last owner")

    return AccessCheck(True)
