"""User schemas for profiles, search and administration"""

from datetime import datetime
from pydantic import BaseModel


class UserBrief(BaseModel):
    """Public identity attached to confessions and search results"""
    id: int
    username: str
    image: str | None = None

    class Config:
        from_attributes = True


class PublicProfile(BaseModel):
    """Profile page header"""
    id: int
    username: str
    bio: str | None
    image: str | None

    class Config:
        from_attributes = True


class ProfileUpdate(BaseModel):
    """Profile update payload.

    Fields left out of the request are not touched; fields sent as null
    (or an empty string) are cleared.
    """
    bio: str | None = None
    image_url: str | None = None


class DashboardStats(BaseModel):
    success: bool = True
    username: str
    received_count: int
    sent_count: int


class SearchResponse(BaseModel):
    success: bool = True
    users: list[UserBrief]
    rate_limited: bool = False


class AdminUserItem(BaseModel):
    """Row in the moderation user list"""
    id: int
    username: str
    role: str
    is_banned: bool
    created_at: datetime

    class Config:
        from_attributes = True


class AdminUserList(BaseModel):
    success: bool = True
    users: list[AdminUserItem]
    total: int


class RoleUpdate(BaseModel):
    role: str
