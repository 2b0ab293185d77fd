"""Reports router for flagging confessions and moderator review"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.db import get_db
from app.schemas.common import ACTION_ERRORS, ActionSuccess
from app.schemas.report import ReportCreate, ReportStatusUpdate
from app.services.auth import AuthUser, get_current_user
from app.services.report import report_service
from app.utils.response_utils import action_response

router = APIRouter(prefix="/reports", tags=["Reports"], responses=ACTION_ERRORS)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_report(
    payload: ReportCreate,
    user: Optional[AuthUser] = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await report_service.create(
        db, payload.confession_id, payload.reason, payload.description, user
    )
    return action_response(result, status.HTTP_201_CREATED)


@router.get("")
async def list_reports(
    user: Optional[AuthUser] = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Newest 50 reports. ADMIN or OWNER only."""
    return action_response(await report_service.list_reports(db, user))


@router.patch("/{report_id}", response_model=ActionSuccess)
async def update_report_status(
    report_id: UUID,
    payload: ReportStatusUpdate,
    user: Optional[AuthUser] = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await report_service.update_status(db, report_id, payload.status, user)
    return action_response(result)
