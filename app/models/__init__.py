from app.db.database import Base
from app.models.user import User, Role, ROLE_LEVELS
from app.models.confession import Confession
from app.models.report import Report, ReportReason, ReportStatus

__all__ = [
    "Base",
    "User",
    "Role",
    "ROLE_LEVELS",
    "Confession",
    "Report",
    "ReportReason",
    "ReportStatus",
]
