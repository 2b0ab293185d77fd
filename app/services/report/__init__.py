"""Report store"""

from app.services.report.report_service import ReportService, report_service

__all__ = ["ReportService", "report_service"]
