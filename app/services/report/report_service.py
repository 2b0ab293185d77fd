"""Reports raised by viewers against confessions, and their moderation"""

import logging
from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models import Confession, Report, ReportReason, ReportStatus, Role
from app.schemas.report import ReportResponse
from app.services.auth.authorization import AuthUser, require_auth, require_role
from app.services.cache import REPORTS_PATH, cache_service
from app.utils.constants import MAX_REPORT_DESCRIPTION_LENGTH, REPORT_LIST_LIMIT
from app.utils.errors import BusinessRuleError, NotFoundError, ValidationError, server_action
from app.utils.response_utils import success

logger = logging.getLogger(__name__)


def _parse_reason(reason: str) -> ReportReason:
    try:
        return ReportReason(str(reason).upper())
    except ValueError:
        raise ValidationError("Invalid report reason")


def _parse_status(status: str) -> ReportStatus:
    try:
        return ReportStatus(str(status).upper())
    except ValueError:
        raise ValidationError("Invalid report status")


class ReportService:
    """Service for creating and reviewing reports"""

    @server_action
    async def create(
        self,
        db: AsyncSession,
        confession_id: UUID,
        reason: str,
        description: Optional[str],
        caller: Optional[AuthUser],
    ) -> dict:
        """
        File a PENDING report.

        A caller may hold only one PENDING report per confession; once it has
        been reviewed or dismissed they may report the confession again.
        """
        caller = require_auth(caller)
        reason = _parse_reason(reason)
        if description is not None:
            description = description.strip() or None
        if description and len(description) > MAX_REPORT_DESCRIPTION_LENGTH:
            raise ValidationError("Description is too long")

        confession = await db.get(Confession, confession_id)
        if confession is None:
            raise NotFoundError("Message not found.")

        existing = await db.scalar(
            select(Report.id).where(
                Report.confession_id == confession_id,
                Report.reporter_id == caller.id,
                Report.status == ReportStatus.PENDING.value,
            )
        )
        if existing is not None:
            raise BusinessRuleError("You have already reported this message.")

        report = Report(
            confession_id=confession_id,
            reporter_id=caller.id,
            reason=reason.value,
            description=description,
            status=ReportStatus.PENDING.value,
        )
        db.add(report)
        await db.commit()

        cache_service.revalidate_path(REPORTS_PATH)
        logger.info(f"Report {report.id} filed by user {caller.id} on confession {confession_id}")
        return success(report_id=str(report.id))

    @server_action
    async def list_reports(
        self,
        db: AsyncSession,
        caller: Optional[AuthUser],
        limit: int = REPORT_LIST_LIMIT,
    ) -> dict:
        """Newest reports first, with the confession and everyone involved."""
        require_role(caller, Role.ADMIN)

        result = await db.execute(
            select(Report)
            .options(
                selectinload(Report.confession).selectinload(Confession.sender),
                selectinload(Report.confession).selectinload(Confession.receiver),
                selectinload(Report.reporter),
                selectinload(Report.reviewer),
            )
            .order_by(Report.created_at.desc())
            .limit(min(limit, REPORT_LIST_LIMIT))
            .execution_options(populate_existing=True)
        )
        reports = [
            ReportResponse.model_validate(r).model_dump(mode="json")
            for r in result.scalars().all()
        ]
        return success(reports=reports)

    @server_action
    async def update_status(
        self,
        db: AsyncSession,
        report_id: UUID,
        new_status: str,
        caller: Optional[AuthUser],
    ) -> dict:
        """Record a moderator's decision. Any status may be set at any time."""
        moderator = require_role(caller, Role.ADMIN)
        status = _parse_status(new_status)

        report = await db.get(Report, report_id)
        if report is None:
            raise NotFoundError("Report not found.")

        report.status = status.value
        report.reviewed_by = moderator.id
        report.reviewed_at = datetime.utcnow()
        await db.commit()

        cache_service.revalidate_path(REPORTS_PATH)
        logger.info(f"Report {report_id} marked {status.value} by user {moderator.id}")
        return success()


# Global instance
report_service = ReportService()
