"""In-process read cache with tag and path invalidation.

Entries expire after their TTL (passive revalidation) and are dropped
immediately when any of their tags is revalidated. Expired entries are
swept out on writes at most once per sweep interval, and by the scheduler. The cache only ever
holds copies of database reads; it is never the source of truth.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Iterable, TypeVar

from app.config import settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Tag names shared by readers and the actions that invalidate them
USER_PROFILES_TAG = "user-profiles"
ADMIN_USERS_TAG = "admin-users"
SEARCH_TAG = "user-search"
DASHBOARD_PATH = "/dashboard"
REPORTS_PATH = "/admin/reports"


def user_profile_tag(username: str) -> str:
    return f"user-{username}"


def user_confessions_tag(user_id: int) -> str:
    return f"confessions-{user_id}"


def profile_path(username: str) -> str:
    return f"/u/{username}"


def path_tag(path: str) -> str:
    return f"path:{path}"


@dataclass
class _Entry:
    value: Any
    expires_at: float
    tags: frozenset = field(default_factory=frozenset)


class TaggedCache:
    """Dictionary-backed TTL cache keyed by string, grouped by tags."""

    def __init__(
        self,
        default_ttl: float | None = None,
        clock: Callable[[], float] = time.monotonic,
        sweep_interval: float | None = None,
    ):
        self.default_ttl = default_ttl if default_ttl is not None else settings.cache_revalidate_seconds
        self.sweep_interval = sweep_interval if sweep_interval is not None else self.default_ttl
        self._clock = clock
        self._entries: dict[str, _Entry] = {}
        self._next_sweep_at = clock() + self.sweep_interval

    def get(self, key: str) -> tuple[bool, Any]:
        entry = self._entries.get(key)
        if entry is None:
            return False, None
        if self._clock() >= entry.expires_at:
            del self._entries[key]
            return False, None
        return True, entry.value

    def set(self, key: str, value: Any, ttl: float | None = None, tags: Iterable[str] = ()) -> None:
        ttl = self.default_ttl if ttl is None else ttl
        now = self._clock()
        if now >= self._next_sweep_at:
            self.sweep()
        self._entries[key] = _Entry(value, now + ttl, frozenset(tags))

    async def get_or_set(
        self,
        key: str,
        loader: Callable[[], Awaitable[T]],
        ttl: float | None = None,
        tags: Iterable[str] = (),
    ) -> T:
        """Return the cached value for ``key`` or load, store and return it."""
        hit, value = self.get(key)
        if hit:
            return value

        value = await loader()
        self.set(key, value, ttl=ttl, tags=tags)
        return value

    def revalidate_tag(self, tag: str) -> int:
        """Drop every entry carrying ``tag``; returns how many were dropped."""
        stale = [key for key, entry in self._entries.items() if tag in entry.tags]
        for key in stale:
            del self._entries[key]
        if stale:
            logger.debug(f"Revalidated tag {tag}: {len(stale)} entries dropped")
        return len(stale)

    def revalidate_path(self, path: str) -> int:
        return self.revalidate_tag(path_tag(path))

    def sweep(self) -> int:
        """Drop every expired entry; returns how many were dropped."""
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if now >= entry.expires_at]
        for key in expired:
            del self._entries[key]
        self._next_sweep_at = now + self.sweep_interval
        return len(expired)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


# Global instance
cache_service = TaggedCache()
