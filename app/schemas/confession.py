"""Confession schemas"""

from datetime import datetime
from uuid import UUID
from pydantic import BaseModel


class ConfessionCreate(BaseModel):
    content: str
    receiver_id: int
    is_anonymous: bool = True


class ConfessionEdit(BaseModel):
    content: str


class ReplyRequest(BaseModel):
    reply: str


class ConfessionUser(BaseModel):
    username: str
    image: str | None = None

    class Config:
        from_attributes = True


class ConfessionResponse(BaseModel):
    """Confession as shown in feeds and pushed over the stream"""
    id: UUID
    content: str
    sender_id: int | None
    receiver_id: int
    is_anonymous: bool
    is_pinned: bool
    reply: str | None
    reply_at: datetime | None
    created_at: datetime
    edited_at: datetime | None
    sender: ConfessionUser | None = None
    receiver: ConfessionUser | None = None

    class Config:
        from_attributes = True


class PinResponse(BaseModel):
    success: bool = True
    is_pinned: bool
