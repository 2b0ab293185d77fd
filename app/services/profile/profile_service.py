"""Profiles: editing, public profile pages, user search and dashboard stats"""

import logging
from typing import Any, Optional
from urllib.parse import urlparse

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import Confession, User
from app.schemas.user import PublicProfile, UserBrief
from app.services.auth.authorization import AuthUser, require_auth
from app.services.cache import (
    DASHBOARD_PATH,
    SEARCH_TAG,
    USER_PROFILES_TAG,
    cache_service,
    path_tag,
    profile_path,
    user_profile_tag,
)
from app.services.rate_limit import RateLimiter, is_rate_limit_exempt
from app.services.s3 import s3_service
from app.utils.constants import (
    ALLOWED_IMAGE_URL_SCHEMES,
    MAX_BIO_LENGTH,
    MAX_IMAGE_URL_LENGTH,
    MIN_SEARCH_QUERY_LENGTH,
    PROFILE_CACHE_TTL,
    SEARCH_CACHE_TTL,
    SEARCH_RESULT_LIMIT,
)
from app.utils.errors import (
    BusinessRuleError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
    server_action,
)
from app.utils.response_utils import success

logger = logging.getLogger(__name__)


def validate_bio(bio: Optional[str]) -> Optional[str]:
    if not bio:
        return None
    if len(bio) > MAX_BIO_LENGTH:
        raise ValidationError(f"Bio must be at most {MAX_BIO_LENGTH} characters")
    return bio


def validate_image_url(url: Optional[str]) -> Optional[str]:
    """Accept only absolute http(s) URLs; blocks javascript: and data: URLs."""
    if not url:
        return None
    if len(url) > MAX_IMAGE_URL_LENGTH:
        raise ValidationError("Image URL is too long")
    parsed = urlparse(url.strip())
    if parsed.scheme.lower() not in ALLOWED_IMAGE_URL_SCHEMES or not parsed.netloc:
        raise ValidationError("Image must be a valid http or https URL")
    return url.strip()


class ProfileService:
    """Service for profile reads and writes"""

    def _revalidate_profile(self, username: str) -> None:
        cache_service.revalidate_tag(user_profile_tag(username))
        cache_service.revalidate_path(profile_path(username))
        cache_service.revalidate_path(DASHBOARD_PATH)
        cache_service.revalidate_tag(SEARCH_TAG)

    @server_action
    async def update_profile(
        self,
        db: AsyncSession,
        user_id: int,
        changes: dict[str, Any],
        caller: Optional[AuthUser],
    ) -> dict:
        """
        Update bio and/or image of the caller's own profile.

        Args:
            changes: Only the keys present are applied (``bio``, ``image_url``).
                A present key with a null or empty value clears the field.
        """
        caller = require_auth(caller)
        if caller.id != user_id:
            raise ForbiddenError("Unauthorized: You can only edit your own profile.")

        updates = {}
        if "bio" in changes:
            updates["bio"] = validate_bio(changes["bio"])
        if "image_url" in changes:
            updates["image"] = validate_image_url(changes["image_url"])

        user = await db.get(User, user_id)
        if user is None:
            raise NotFoundError("User not found.")

        for field, value in updates.items():
            setattr(user, field, value)
        await db.commit()

        self._revalidate_profile(user.username)
        logger.info(f"User {user_id} updated profile fields: {sorted(updates)}")
        return success()

    @server_action
    async def delete_profile_image(self, db: AsyncSession, caller: Optional[AuthUser]) -> dict:
        """Remove the caller's profile image; the stored blob is deleted best-effort."""
        caller = require_auth(caller)
        user = await db.get(User, caller.id)
        if user is None:
            raise NotFoundError("User not found.")
        if not user.image:
            raise BusinessRuleError("No profile image to delete.")

        if not await s3_service.delete_by_url(user.image):
            logger.warning(f"Could not delete stored image for user {user.id}: {user.image}")

        user.image = None
        await db.commit()

        self._revalidate_profile(user.username)
        return success()

    async def get_public_profile(self, db: AsyncSession, username: str) -> Optional[dict]:
        """Profile page header for ``username``, or None if there is no such user."""
        username = username.strip().lower()
        key = f"profile:{username}"
        hit, profile = cache_service.get(key)
        if hit:
            return profile

        user = await db.scalar(select(User).where(User.username == username))
        if user is None:
            return None

        profile = PublicProfile.model_validate(user).model_dump()
        cache_service.set(
            key,
            profile,
            ttl=PROFILE_CACHE_TTL,
            tags=(USER_PROFILES_TAG, user_profile_tag(username), path_tag(profile_path(username))),
        )
        return profile

    @server_action
    async def search_users(
        self,
        db: AsyncSession,
        query: Optional[str],
        caller: Optional[AuthUser],
        client_ip: str,
        rate_limiter: RateLimiter,
    ) -> dict:
        """
        Find up to five non-banned users whose username contains ``query``.

        Signed-in callers are throttled per account, everyone else per IP.
        A throttled call yields no users and ``rate_limited=True``.
        """
        term = (query or "").strip().lower()
        if len(term) < MIN_SEARCH_QUERY_LENGTH:
            return success(users=[], rate_limited=False)

        if caller is not None:
            limit_key = f"user:{caller.id}"
        elif not is_rate_limit_exempt(client_ip):
            limit_key = f"ip:{client_ip}"
        else:
            limit_key = None

        if limit_key is not None and not rate_limiter.check(limit_key).success:
            return success(users=[], rate_limited=True)

        async def load() -> list[dict]:
            result = await db.execute(
                select(User)
                .where(User.username.contains(term, autoescape=True), User.is_banned.is_(False))
                .order_by(User.username)
                .limit(SEARCH_RESULT_LIMIT)
            )
            return [UserBrief.model_validate(u).model_dump() for u in result.scalars().all()]

        users = await cache_service.get_or_set(
            f"search:{term}", load, ttl=SEARCH_CACHE_TTL, tags=(SEARCH_TAG,)
        )
        return success(users=users, rate_limited=False)

    @server_action
    async def get_dashboard(self, db: AsyncSession, caller: Optional[AuthUser]) -> dict:
        caller = require_auth(caller)
        received = await db.scalar(
            select(func.count()).select_from(Confession).where(Confession.receiver_id == caller.id)
        )
        sent = await db.scalar(
            select(func.count()).select_from(Confession).where(Confession.sender_id == caller.id)
        )
        return success(username=caller.username, received_count=received, sent_count=sent)


# Global instance
profile_service = ProfileService()
