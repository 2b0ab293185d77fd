"""Users router for profiles, search and the dashboard"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.db import get_db
from app.schemas.common import ACTION_ERRORS, ActionSuccess
from app.schemas.user import DashboardStats, ProfileUpdate, PublicProfile, SearchResponse
from app.services.auth import AuthUser, get_current_user
from app.services.profile import profile_service
from app.services.rate_limit import RateLimiter, get_client_ip
from app.utils.deps import get_search_limiter
from app.utils.response_utils import action_response

router = APIRouter(prefix="/users", tags=["Users"], responses=ACTION_ERRORS)


@router.get("/search", response_model=SearchResponse)
async def search_users(
    request: Request,
    q: str = "",
    user: Optional[AuthUser] = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    rate_limiter: RateLimiter = Depends(get_search_limiter),
):
    """Up to five users whose username contains ``q``."""
    result = await profile_service.search_users(db, q, user, get_client_ip(request), rate_limiter)
    return action_response(result)


@router.get("/me/dashboard", response_model=DashboardStats)
async def get_dashboard(
    user: Optional[AuthUser] = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return action_response(await profile_service.get_dashboard(db, user))


@router.delete("/me/image", response_model=ActionSuccess)
async def delete_profile_image(
    user: Optional[AuthUser] = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return action_response(await profile_service.delete_profile_image(db, user))


@router.patch("/{user_id}/profile", response_model=ActionSuccess)
async def update_profile(
    user_id: int,
    payload: ProfileUpdate,
    user: Optional[AuthUser] = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Update your own bio and/or image URL.

    Only fields present in the body are changed; send null to clear one.
    """
    changes = payload.model_dump(exclude_unset=True)
    result = await profile_service.update_profile(db, user_id, changes, user)
    return action_response(result)


@router.get("/{username}", response_model=PublicProfile)
async def get_public_profile(username: str, db: AsyncSession = Depends(get_db)):
    profile = await profile_service.get_public_profile(db, username)
    if profile is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return profile
