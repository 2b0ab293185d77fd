"""Admin router for account moderation"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.db import get_db
from app.schemas.common import ACTION_ERRORS
from app.schemas.user import AdminUserList, RoleUpdate
from app.services.admin import admin_service
from app.services.auth import AuthUser, get_current_user
from app.utils.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from app.utils.response_utils import action_response

router = APIRouter(prefix="/admin", tags=["Admin"], responses=ACTION_ERRORS)


@router.get("/users", response_model=AdminUserList)
async def list_users(
    q: Optional[str] = None,
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    user: Optional[AuthUser] = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Accounts, newest first. ADMIN or OWNER only."""
    result = await admin_service.list_users(db, user, query=q, limit=limit, offset=offset)
    return action_response(result)


@router.post("/users/{user_id}/ban")
async def toggle_ban(
    user_id: int,
    user: Optional[AuthUser] = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Ban or unban an account."""
    return action_response(await admin_service.toggle_ban(db, user_id, user))


@router.patch("/users/{user_id}/role")
async def update_user_role(
    user_id: int,
    payload: RoleUpdate,
    user: Optional[AuthUser] = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Change an account's role. OWNER only."""
    result = await admin_service.update_user_role(db, user_id, payload.role, user)
    return action_response(result)


@router.delete("/users/{user_id}")
async def delete_user(
    user_id: int,
    user: Optional[AuthUser] = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Delete an account with all its confessions and reports. OWNER only."""
    return action_response(await admin_service.delete_user_completely(db, user_id, user))
