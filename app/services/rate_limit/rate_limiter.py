"""Fixed-window request counters keyed by client IP or account.

Counting is done by the ``limits`` package over its in-memory storage,
so limits are per instance: running more than one replica multiplies the
effective budget. Point the storage at Redis to share them.
"""

import logging
import math
import time
from dataclasses import dataclass
from typing import Optional

from fastapi import Request
from limits import RateLimitItemPerSecond
from limits.storage import MemoryStorage
from limits.strategies import FixedWindowRateLimiter

from app.config import settings
from app.utils.constants import LOOPBACK_ADDRESSES

logger = logging.getLogger(__name__)


@dataclass
class RateLimitResult:
    success: bool
    reset_at: Optional[float] = None  # epoch seconds

    def seconds_left(self, now: Optional[float] = None) -> int:
        """Whole seconds until the window resets (0 when not limited)."""
        if self.reset_at is None:
            return 0
        now = time.time() if now is None else now
        return max(0, math.ceil(self.reset_at - now))


class RateLimiter:
    """Allow at most ``max_requests`` accepted calls per key per window."""

    def __init__(
        self,
        max_requests: int,
        window_ms: int = 60 * 1000,
        name: str = "default",
    ):
        self.max_requests = max_requests
        self.window_seconds = window_ms / 1000
        self.name = name
        self._item = RateLimitItemPerSecond(
            max_requests, max(1, round(self.window_seconds)), namespace="sarhni"
        )
        self._storage = MemoryStorage()
        self._strategy = FixedWindowRateLimiter(self._storage)

    def check(self, key: str) -> RateLimitResult:
        """Count one call for ``key`` and report whether it is allowed."""
        if self._strategy.hit(self._item, self.name, key):
            return RateLimitResult(success=True)

        stats = self._strategy.get_window_stats(self._item, self.name, key)
        logger.info(f"Rate limit '{self.name}' hit for {key}")
        return RateLimitResult(success=False, reset_at=stats.reset_time)

    def status(self, key: str) -> tuple[int, float]:
        """Remaining calls and reset time for ``key`` without counting a call."""
        stats = self._strategy.get_window_stats(self._item, self.name, key)
        return stats.remaining, stats.reset_time

    def sweep(self) -> int:
        """Evict windows that have already expired; returns how many were removed."""
        now = time.time()
        expired = [key for key, expires_at in list(self._storage.expirations.items()) if expires_at <= now]
        for key in expired:
            # A read of an expired key makes the storage drop it
            self._storage.get(key)
        return len(expired)

    def __len__(self) -> int:
        return len(self._storage.expirations)


def create_confession_limiter() -> RateLimiter:
    return RateLimiter(
        settings.confession_rate_limit,
        settings.rate_limit_window_ms,
        name="confessions",
    )


def create_search_limiter() -> RateLimiter:
    return RateLimiter(
        settings.search_rate_limit,
        settings.rate_limit_window_ms,
        name="search",
    )


def get_client_ip(request: Request) -> str:
    """
    Identify the caller's address.

    The header set by our own reverse proxy is trusted first; the
    client-controlled X-Forwarded-For chain is only a fallback.
    """
    trusted = request.headers.get(settings.trusted_proxy_header)
    if trusted:
        return trusted.strip()

    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first

    if request.client and request.client.host:
        return request.client.host

    return "unknown"


def is_rate_limit_exempt(ip: str) -> bool:
    """Loopback and unidentifiable callers are never limited."""
    return not ip or ip == "unknown" or ip in LOOPBACK_ADDRESSES
