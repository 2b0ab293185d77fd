"""FastAPI dependencies for process-wide services held on ``app.state``."""

from fastapi import Request

from app.services.events import EventBus
from app.services.rate_limit import RateLimiter


def get_event_bus(request: Request) -> EventBus:
    return request.app.state.event_bus


def get_confession_limiter(request: Request) -> RateLimiter:
    return request.app.state.confession_limiter


def get_search_limiter(request: Request) -> RateLimiter:
    return request.app.state.search_limiter
