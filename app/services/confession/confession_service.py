"""Confession lifecycle: send, feed paging, delete, reply, pin and edit.

Ownership rules:
- the receiver (or any ADMIN/OWNER) may delete and pin;
- only the receiver may reply;
- only the original, non-anonymous sender may edit, within five minutes.
"""

import logging
from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models import Confession, User
from app.schemas.confession import ConfessionResponse
from app.services.auth.authorization import AuthUser, require_auth
from app.services.cache import (
    DASHBOARD_PATH,
    cache_service,
    profile_path,
    user_confessions_tag,
)
from app.services.events import EventBus
from app.services.rate_limit import RateLimiter, is_rate_limit_exempt
from app.utils.constants import (
    CONFESSION_PAGE_SIZE,
    EDIT_WINDOW_SECONDS,
    MAX_CONTENT_LENGTH,
    MAX_PINNED_PER_RECEIVER,
    MAX_REPLY_LENGTH,
    PINNED_LIST_LIMIT,
    SENT_LIST_LIMIT,
)
from app.utils.errors import (
    BusinessRuleError,
    ForbiddenError,
    NotFoundError,
    RateLimitedError,
    ValidationError,
    server_action,
)
from app.utils.response_utils import success

logger = logging.getLogger(__name__)


def validate_content(content: Optional[str]) -> str:
    if content is None or not content.strip():
        raise ValidationError("Message cannot be empty")
    if len(content) > MAX_CONTENT_LENGTH:
        raise ValidationError("Message is too long")
    return content


def serialize_confession(confession: Confession) -> dict:
    """JSON-ready confession; ``sender``/``receiver`` must be eager-loaded."""
    return ConfessionResponse.model_validate(confession).model_dump(mode="json")


def _with_people(query):
    # populate_existing: rows already in the session still get sender/receiver loaded
    return query.options(
        selectinload(Confession.sender), selectinload(Confession.receiver)
    ).execution_options(populate_existing=True)


class ConfessionService:
    """Service for confession writes and reads"""

    async def _get(self, db: AsyncSession, confession_id: UUID) -> Confession:
        confession = await db.get(Confession, confession_id)
        if confession is None:
            raise NotFoundError("Message not found.")
        return confession

    async def _revalidate_receiver_views(self, db: AsyncSession, receiver_id: int) -> None:
        """Invalidate the receiver's public profile and dashboard reads."""
        username = await db.scalar(select(User.username).where(User.id == receiver_id))
        if username:
            cache_service.revalidate_path(profile_path(username))
        cache_service.revalidate_path(DASHBOARD_PATH)
        cache_service.revalidate_tag(user_confessions_tag(receiver_id))

    @server_action
    async def send(
        self,
        db: AsyncSession,
        content: str,
        receiver_id: int,
        is_anonymous: bool,
        caller: Optional[AuthUser],
        client_ip: str,
        rate_limiter: RateLimiter,
        event_bus: Optional[EventBus] = None,
    ) -> dict:
        """
        Store a confession for ``receiver_id`` and notify live streams.

        The sender is recorded only for signed-in callers who opted out of
        anonymity. Calls are rate limited per source IP before anything is
        written.
        """
        content = validate_content(content)

        if not is_rate_limit_exempt(client_ip):
            limit = rate_limiter.check(client_ip)
            if not limit.success:
                raise RateLimitedError(
                    f"You are doing that too much. Wait {limit.seconds_left()}s."
                )

        receiver = await db.get(User, receiver_id)
        if receiver is None:
            raise NotFoundError("User not found.")

        sender_id = caller.id if caller is not None and not is_anonymous else None

        confession = Confession(
            content=content,
            receiver_id=receiver.id,
            sender_id=sender_id,
            is_anonymous=sender_id is None,
        )
        db.add(confession)
        await db.commit()

        result = await db.execute(
            _with_people(select(Confession).where(Confession.id == confession.id))
        )
        payload = serialize_confession(result.scalar_one())

        cache_service.revalidate_path(profile_path(receiver.username))
        cache_service.revalidate_path(DASHBOARD_PATH)
        cache_service.revalidate_tag(user_confessions_tag(receiver.id))

        if event_bus is not None:
            event_bus.publish(receiver.id, payload)

        logger.info(f"Confession {confession.id} sent to user {receiver.id}")
        return success(confession=payload)

    async def fetch_page(
        self,
        db: AsyncSession,
        user_id: int,
        offset: int = 0,
        page_size: int = CONFESSION_PAGE_SIZE,
    ) -> list[dict]:
        """
        One page of a receiver's feed: pinned first, then newest first.

        Returns an empty list when the database cannot be reached so that
        infinite-scroll clients stop instead of retrying forever.
        """
        try:
            result = await db.execute(
                _with_people(
                    select(Confession)
                    .where(Confession.receiver_id == user_id)
                    .order_by(Confession.is_pinned.desc(), Confession.created_at.desc())
                    .offset(max(offset, 0))
                    .limit(page_size)
                )
            )
            return [serialize_confession(c) for c in result.scalars().all()]
        except SQLAlchemyError as e:
            logger.error(f"Error fetching confessions for user {user_id}: {e}", exc_info=True)
            return []

    @server_action
    async def delete(
        self,
        db: AsyncSession,
        confession_id: UUID,
        caller: Optional[AuthUser],
    ) -> dict:
        caller = require_auth(caller)
        confession = await self._get(db, confession_id)

        if confession.receiver_id != caller.id and not caller.is_moderator:
            raise ForbiddenError("Unauthorized: You can't delete messages sent to others.")

        receiver_id = confession.receiver_id
        await db.delete(confession)
        await db.commit()

        await self._revalidate_receiver_views(db, receiver_id)
        logger.info(f"Confession {confession_id} deleted by user {caller.id}")
        return success()

    @server_action
    async def reply(
        self,
        db: AsyncSession,
        confession_id: UUID,
        text: str,
        caller: Optional[AuthUser],
    ) -> dict:
        """Set the receiver's reply, replacing any earlier one."""
        caller = require_auth(caller)

        if text is None or not text.strip():
            raise ValidationError("Reply cannot be empty")
        if len(text) > MAX_REPLY_LENGTH:
            raise ValidationError("Reply is too long")

        confession = await self._get(db, confession_id)
        if confession.receiver_id != caller.id:
            raise ForbiddenError("You can only reply to your own messages.")

        confession.reply = text
        confession.reply_at = datetime.utcnow()
        await db.commit()

        await self._revalidate_receiver_views(db, confession.receiver_id)
        return success()

    @server_action
    async def toggle_pin(
        self,
        db: AsyncSession,
        confession_id: UUID,
        caller: Optional[AuthUser],
    ) -> dict:
        """
        Flip a confession's pin inside one transaction.

        Pinning locks the receiver's row before recounting, so concurrent
        pin requests for the same receiver are serialized and can never
        take them past the cap together.
        """
        caller = require_auth(caller)
        confession = await self._get(db, confession_id)

        if confession.receiver_id != caller.id and not caller.is_moderator:
            raise ForbiddenError("Unauthorized")

        receiver_id = confession.receiver_id
        await db.execute(select(User.id).where(User.id == receiver_id).with_for_update())
        # Re-read under the lock: another request may have flipped it meanwhile
        await db.refresh(confession, with_for_update=True)

        pinning = not confession.is_pinned
        # Moderators are not held to the cap
        if pinning and not caller.is_moderator:
            pinned_count = await db.scalar(
                select(func.count())
                .select_from(Confession)
                .where(Confession.receiver_id == receiver_id, Confession.is_pinned.is_(True))
            )
            if pinned_count >= MAX_PINNED_PER_RECEIVER:
                await db.rollback()
                raise BusinessRuleError(
                    f"You can only pin up to {MAX_PINNED_PER_RECEIVER} messages."
                )

        confession.is_pinned = pinning
        await db.commit()

        await self._revalidate_receiver_views(db, receiver_id)
        return success(is_pinned=pinning)

    @server_action
    async def edit(
        self,
        db: AsyncSession,
        confession_id: UUID,
        new_content: str,
        caller: Optional[AuthUser],
        now: Optional[datetime] = None,
    ) -> dict:
        """Let the original sender correct a confession shortly after sending."""
        caller = require_auth(caller)
        new_content = validate_content(new_content)
        confession = await self._get(db, confession_id)

        if confession.is_anonymous or confession.sender_id != caller.id:
            raise ForbiddenError("You can only edit messages you sent.")

        now = now or datetime.utcnow()
        elapsed = (now - confession.created_at).total_seconds()
        if elapsed > EDIT_WINDOW_SECONDS:
            raise BusinessRuleError(
                f"Edit window expired. Messages can only be edited within "
                f"{EDIT_WINDOW_SECONDS // 60} minutes of sending."
            )

        confession.content = new_content
        confession.edited_at = now
        await db.commit()

        await self._revalidate_receiver_views(db, confession.receiver_id)
        return success()

    @server_action
    async def list_sent(
        self,
        db: AsyncSession,
        caller: Optional[AuthUser],
        limit: int = SENT_LIST_LIMIT,
    ) -> dict:
        """Confessions the caller sent under their own name, newest first."""
        caller = require_auth(caller)
        result = await db.execute(
            _with_people(
                select(Confession)
                .where(Confession.sender_id == caller.id)
                .order_by(Confession.created_at.desc())
                .limit(limit)
            )
        )
        return success(confessions=[serialize_confession(c) for c in result.scalars().all()])

    @server_action
    async def list_pinned(
        self,
        db: AsyncSession,
        caller: Optional[AuthUser],
        limit: int = PINNED_LIST_LIMIT,
    ) -> dict:
        """The caller's pinned received confessions, newest first."""
        caller = require_auth(caller)
        result = await db.execute(
            _with_people(
                select(Confession)
                .where(Confession.receiver_id == caller.id, Confession.is_pinned.is_(True))
                .order_by(Confession.created_at.desc())
                .limit(limit)
            )
        )
        return success(confessions=[serialize_confession(c) for c in result.scalars().all()])


# Global instance
confession_service = ConfessionService()
