"""Fixed-window rate limiting backed by the limits package"""

from app.services.rate_limit.rate_limiter import (
    RateLimiter,
    RateLimitResult,
    create_confession_limiter,
    create_search_limiter,
    get_client_ip,
    is_rate_limit_exempt,
)

__all__ = [
    "RateLimiter",
    "RateLimitResult",
    "create_confession_limiter",
    "create_search_limiter",
    "get_client_ip",
    "is_rate_limit_exempt",
]
