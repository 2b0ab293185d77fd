"""Authentication router for registration and login"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.db import get_db
from app.schemas.auth import LoginRequest, LoginResponse, RegisterRequest
from app.schemas.common import ACTION_ERRORS
from app.services.auth import login as login_action
from app.services.auth import register as register_action
from app.utils.response_utils import action_response

router = APIRouter(prefix="/auth", tags=["Authentication"], responses=ACTION_ERRORS)


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(payload: RegisterRequest, db: AsyncSession = Depends(get_db)):
    """Create a USER account."""
    result = await register_action(db, payload.username, payload.password)
    return action_response(result, status.HTTP_201_CREATED)


@router.post("/login", response_model=LoginResponse)
async def login(payload: LoginRequest, db: AsyncSession = Depends(get_db)):
    """
    Exchange username and password for a bearer token.

    The token embeds the account's role and ban flag; banned accounts are
    refused here.
    """
    result = await login_action(db, payload.username, payload.password)
    return action_response(result)
