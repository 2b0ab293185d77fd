"""Pydantic schemas for request/response validation"""

from app.schemas.common import ACTION_ERRORS, ActionFailure, ActionSuccess
from app.schemas.user import (
    UserBrief,
    PublicProfile,
    ProfileUpdate,
    DashboardStats,
    SearchResponse,
    AdminUserItem,
    AdminUserList,
    RoleUpdate,
)
from app.schemas.auth import RegisterRequest, LoginRequest, LoginResponse
from app.schemas.confession import (
    ConfessionCreate,
    ConfessionEdit,
    ConfessionResponse,
    ConfessionUser,
    PinResponse,
    ReplyRequest,
)
from app.schemas.report import ReportCreate, ReportResponse, ReportStatusUpdate

__all__ = [
    # Common
    "ACTION_ERRORS",
    "ActionFailure",
    "ActionSuccess",
    # User
    "UserBrief",
    "PublicProfile",
    "ProfileUpdate",
    "DashboardStats",
    "SearchResponse",
    "AdminUserItem",
    "AdminUserList",
    "RoleUpdate",
    # Auth
    "RegisterRequest",
    "LoginRequest",
    "LoginResponse",
    # Confession
    "ConfessionCreate",
    "ConfessionEdit",
    "ConfessionResponse",
    "ConfessionUser",
    "PinResponse",
    "ReplyRequest",
    # Report
    "ReportCreate",
    "ReportResponse",
    "ReportStatusUpdate",
]
