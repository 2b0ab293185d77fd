"""API routers module"""

from app.routers.auth import router as auth_router
from app.routers.confessions import router as confessions_router
from app.routers.reports import router as reports_router
from app.routers.upload import router as upload_router
from app.routers.users import router as users_router
from app.routers.admin import router as admin_router

__all__ = [
    "auth_router",
    "confessions_router",
    "reports_router",
    "upload_router",
    "users_router",
    "admin_router",
]
