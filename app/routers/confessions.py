"""Confessions router: sending, feeds, owner actions and the live stream"""

import asyncio
import json
import logging
from typing import AsyncIterator, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import JSONResponse, StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.db import get_db
from app.schemas.common import ACTION_ERRORS, ActionSuccess
from app.schemas.confession import (
    ConfessionCreate,
    ConfessionEdit,
    ConfessionResponse,
    PinResponse,
    ReplyRequest,
)
from app.services.auth import AuthUser, get_current_user
from app.services.confession import confession_service
from app.services.events import EventBus
from app.services.rate_limit import RateLimiter, get_client_ip
from app.utils.constants import CONFESSION_PAGE_SIZE, STREAM_QUEUE_SIZE
from app.utils.deps import get_confession_limiter, get_event_bus
from app.utils.response_utils import action_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/confessions", tags=["Confessions"], responses=ACTION_ERRORS)

STREAM_HEADERS = {
    "Cache-Control": "no-cache, no-transform",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}
KEEP_ALIVE = ": keep-alive\n\n"


def format_event(payload: dict) -> str:
    return f"data: {json.dumps(payload)}\n\n"


async def confession_events(
    request: Request,
    event_bus: EventBus,
    user_id: int,
    keepalive_seconds: float,
    max_queued: int = STREAM_QUEUE_SIZE,
) -> AsyncIterator[str]:
    """
    Yield SSE frames for confessions sent to ``user_id``.

    A keep-alive comment goes out every ``keepalive_seconds`` whether or
    not events arrived in between. At most ``max_queued`` events wait for
    a slow client; later ones are dropped. The subscription is released
    when the client goes away or the response is cancelled.
    """
    queue: asyncio.Queue = asyncio.Queue(maxsize=max_queued)

    def enqueue(payload: dict) -> None:
        try:
            queue.put_nowait(payload)
        except asyncio.QueueFull:
            logger.warning(f"Stream for user {user_id} is behind, dropping an event")

    loop = asyncio.get_running_loop()
    subscription = event_bus.subscribe(user_id, enqueue)
    next_keepalive = loop.time() + keepalive_seconds
    logger.debug(f"Stream opened for user {user_id}")
    try:
        while not await request.is_disconnected():
            timeout = next_keepalive - loop.time()
            if timeout <= 0:
                next_keepalive = loop.time() + keepalive_seconds
                yield KEEP_ALIVE
                continue
            try:
                payload = await asyncio.wait_for(queue.get(), timeout=timeout)
            except asyncio.TimeoutError:
                continue
            yield format_event(payload)
    finally:
        subscription.unsubscribe()
        logger.debug(f"Stream closed for user {user_id}")


@router.post("", status_code=status.HTTP_201_CREATED)
async def send_confession(
    payload: ConfessionCreate,
    request: Request,
    user: Optional[AuthUser] = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    rate_limiter: RateLimiter = Depends(get_confession_limiter),
    event_bus: EventBus = Depends(get_event_bus),
):
    """Send a confession. Visitors may send too; they are always anonymous."""
    result = await confession_service.send(
        db,
        payload.content,
        payload.receiver_id,
        payload.is_anonymous,
        user,
        get_client_ip(request),
        rate_limiter,
        event_bus,
    )
    return action_response(result, status.HTTP_201_CREATED)


@router.get("", response_model=list[ConfessionResponse])
async def list_confessions(
    user_id: int,
    offset: int = Query(0, ge=0),
    limit: int = Query(CONFESSION_PAGE_SIZE, ge=1, le=50),
    db: AsyncSession = Depends(get_db),
):
    """One page of a receiver's feed, pinned confessions first."""
    return await confession_service.fetch_page(db, user_id, offset, limit)


@router.get("/stream")
async def stream_confessions(
    request: Request,
    user_id: Optional[str] = Query(None, alias="userId"),
    event_bus: EventBus = Depends(get_event_bus),
):
    """Server-Sent Events feed of new confessions for one receiver."""
    if not user_id or not user_id.isdigit():
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": "Missing userId"})

    return StreamingResponse(
        confession_events(request, event_bus, int(user_id), settings.sse_keepalive_seconds),
        media_type="text/event-stream",
        headers=STREAM_HEADERS,
    )


@router.get("/sent")
async def list_sent(
    user: Optional[AuthUser] = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return action_response(await confession_service.list_sent(db, user))


@router.get("/pinned")
async def list_pinned(
    user: Optional[AuthUser] = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return action_response(await confession_service.list_pinned(db, user))


@router.patch("/{confession_id}", response_model=ActionSuccess)
async def edit_confession(
    confession_id: UUID,
    payload: ConfessionEdit,
    user: Optional[AuthUser] = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Edit a confession you sent, within five minutes of sending it."""
    result = await confession_service.edit(db, confession_id, payload.content, user)
    return action_response(result)


@router.delete("/{confession_id}", response_model=ActionSuccess)
async def delete_confession(
    confession_id: UUID,
    user: Optional[AuthUser] = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await confession_service.delete(db, confession_id, user)
    return action_response(result)


@router.post("/{confession_id}/reply", response_model=ActionSuccess)
async def reply_to_confession(
    confession_id: UUID,
    payload: ReplyRequest,
    user: Optional[AuthUser] = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await confession_service.reply(db, confession_id, payload.reply, user)
    return action_response(result)


@router.post("/{confession_id}/pin", response_model=PinResponse)
async def toggle_pin(
    confession_id: UUID,
    user: Optional[AuthUser] = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Pin or unpin a received confession (at most three pinned)."""
    result = await confession_service.toggle_pin(db, confession_id, user)
    return action_response(result)
