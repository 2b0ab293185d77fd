"""Schemas for registration and login"""

from pydantic import BaseModel

from app.schemas.user import UserBrief


class RegisterRequest(BaseModel):
    username: str
    password: str


class LoginRequest(BaseModel):
    username: str
    password: str


class LoginResponse(BaseModel):
    """Login endpoint response"""
    success: bool = True
    access_token: str
    token_type: str = "bearer"
    user: UserBrief
