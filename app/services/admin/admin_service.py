"""Account moderation: listing, bans, role changes and hard deletion.

Every operation goes through the role hierarchy in
``app.services.auth.authorization``: ADMINs moderate USERs, OWNERs
moderate USERs and ADMINs, and the last OWNER is never demoted or removed.
"""

import logging
from typing import Optional

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import Confession, Report, Role, User
from app.schemas.user import AdminUserItem
from app.services.auth.authorization import (
    AccessCheck,
    AuthUser,
    can_act_on_user,
    can_demote_last_owner,
    require_role,
)
from app.services.cache import (
    ADMIN_USERS_TAG,
    SEARCH_TAG,
    USER_PROFILES_TAG,
    cache_service,
    user_profile_tag,
)
from app.services.s3 import s3_service
from app.utils.constants import ADMIN_USERS_CACHE_TTL, DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from app.utils.errors import (
    BusinessRuleError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
    server_action,
)
from app.utils.response_utils import success

logger = logging.getLogger(__name__)

USER_NOT_FOUND = "User not found"


def _enforce(check: AccessCheck) -> None:
    if check.allowed:
        return
    if check.reason == USER_NOT_FOUND:
        raise NotFoundError(f"{USER_NOT_FOUND}.")
    raise ForbiddenError(check.reason or "Forbidden")


async def _enforce_last_owner(target_user_id: int, db: AsyncSession) -> None:
    check = await can_demote_last_owner(target_user_id, db)
    if check.allowed:
        return
    if check.reason == USER_NOT_FOUND:
        raise NotFoundError(f"{USER_NOT_FOUND}.")
    raise BusinessRuleError(check.reason)


class AdminService:
    """Service for moderator account management"""

    @server_action
    async def list_users(
        self,
        db: AsyncSession,
        caller: Optional[AuthUser],
        query: Optional[str] = None,
        limit: int = DEFAULT_PAGE_SIZE,
        offset: int = 0,
    ) -> dict:
        """Newest accounts first, optionally filtered by username substring."""
        require_role(caller, Role.ADMIN)
        term = (query or "").strip().lower()
        limit = max(1, min(limit, MAX_PAGE_SIZE))
        offset = max(offset, 0)

        async def load() -> dict:
            conditions = []
            if term:
                conditions.append(User.username.contains(term, autoescape=True))

            total = await db.scalar(select(func.count()).select_from(User).where(*conditions))
            result = await db.execute(
                select(User)
                .where(*conditions)
                .order_by(User.created_at.desc(), User.id.desc())
                .offset(offset)
                .limit(limit)
            )
            users = [
                AdminUserItem.model_validate(u).model_dump(mode="json")
                for u in result.scalars().all()
            ]
            return {"users": users, "total": total}

        page = await cache_service.get_or_set(
            f"admin-users:{term}:{limit}:{offset}",
            load,
            ttl=ADMIN_USERS_CACHE_TTL,
            tags=(ADMIN_USERS_TAG,),
        )
        return success(**page)

    @server_action
    async def toggle_ban(
        self,
        db: AsyncSession,
        target_user_id: int,
        caller: Optional[AuthUser],
    ) -> dict:
        moderator = require_role(caller, Role.ADMIN)
        if moderator.id == target_user_id:
            raise BusinessRuleError("You cannot ban yourself.")
        _enforce(await can_act_on_user(moderator, target_user_id, db))

        user = await db.get(User, target_user_id)
        if user is None:
            raise NotFoundError(f"{USER_NOT_FOUND}.")

        user.is_banned = not user.is_banned
        await db.commit()

        cache_service.revalidate_tag(ADMIN_USERS_TAG)
        cache_service.revalidate_tag(SEARCH_TAG)
        cache_service.revalidate_tag(user_profile_tag(user.username))
        logger.info(
            f"User {target_user_id} {'banned' if user.is_banned else 'unbanned'} by {moderator.id}"
        )
        return success(is_banned=user.is_banned)

    @server_action
    async def update_user_role(
        self,
        db: AsyncSession,
        target_user_id: int,
        new_role: str,
        caller: Optional[AuthUser],
    ) -> dict:
        """Promote or demote an account. OWNER only."""
        owner = require_role(caller, Role.OWNER)
        try:
            role = Role.parse(new_role)
        except ValueError:
            raise ValidationError("Invalid role")

        _enforce(await can_act_on_user(owner, target_user_id, db))

        user = await db.get(User, target_user_id)
        if user is None:
            raise NotFoundError(f"{USER_NOT_FOUND}.")

        if user.role == Role.OWNER.value and role != Role.OWNER:
            await _enforce_last_owner(target_user_id, db)

        user.role = role.value
        await db.commit()

        cache_service.revalidate_tag(ADMIN_USERS_TAG)
        cache_service.revalidate_tag(SEARCH_TAG)
        logger.info(f"User {target_user_id} role set to {role.value} by {owner.id}")
        return success(role=role.value)

    @server_action
    async def delete_user_completely(
        self,
        db: AsyncSession,
        target_user_id: int,
        caller: Optional[AuthUser],
    ) -> dict:
        """
        Remove an account and everything attached to it in one transaction:
        reports filed by the user, reports on their confessions, every
        confession they sent or received, then the user row.
        """
        owner = require_role(caller, Role.OWNER)
        _enforce(await can_act_on_user(owner, target_user_id, db))
        await _enforce_last_owner(target_user_id, db)

        user = await db.get(User, target_user_id)
        if user is None:
            raise NotFoundError(f"{USER_NOT_FOUND}.")
        username, image = user.username, user.image

        confession_ids = select(Confession.id).where(
            or_(Confession.sender_id == target_user_id, Confession.receiver_id == target_user_id)
        )
        await db.execute(delete(Report).where(Report.reporter_id == target_user_id))
        await db.execute(delete(Report).where(Report.confession_id.in_(confession_ids)))
        await db.execute(
            update(Report).where(Report.reviewed_by == target_user_id).values(reviewed_by=None)
        )
        await db.execute(
            delete(Confession).where(
                or_(Confession.sender_id == target_user_id, Confession.receiver_id == target_user_id)
            )
        )
        await db.delete(user)
        await db.commit()

        if image and not await s3_service.delete_by_url(image):
            logger.warning(f"Could not delete stored image of removed user {target_user_id}")

        cache_service.revalidate_tag(ADMIN_USERS_TAG)
        cache_service.revalidate_tag(SEARCH_TAG)
        cache_service.revalidate_tag(USER_PROFILES_TAG)
        cache_service.revalidate_tag(user_profile_tag(username))
        logger.info(f"User {target_user_id} ({username}) deleted by {owner.id}")
        return success()


# Global instance
admin_service = AdminService()
