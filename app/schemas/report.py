"""Report schemas"""

from datetime import datetime
from uuid import UUID
from pydantic import BaseModel

from app.schemas.confession import ConfessionResponse, ConfessionUser


class ReportCreate(BaseModel):
    confession_id: UUID
    reason: str
    description: str | None = None


class ReportStatusUpdate(BaseModel):
    status: str


class ReportResponse(BaseModel):
    """Report with its confession and the people involved"""
    id: UUID
    confession_id: UUID
    reporter_id: int
    reason: str
    description: str | None
    status: str
    reviewed_by: int | None
    reviewed_at: datetime | None
    created_at: datetime
    confession: ConfessionResponse | None = None
    reporter: ConfessionUser | None = None
    reviewer: ConfessionUser | None = None

    class Config:
        from_attributes = True
