"""Account moderation"""

from app.services.admin.admin_service import AdminService, admin_service

__all__ = ["AdminService", "admin_service"]
