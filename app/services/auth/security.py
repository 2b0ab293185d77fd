"""Password hashing and signed session tokens"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from fastapi import Request
from jwt.exceptions import InvalidTokenError
from passlib.context import CryptContext

from app.config import settings

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

ALGORITHM = "HS256"


@dataclass
class SessionData:
    """Claims carried by a session token"""

    user_id: int
    username: str
    role: str
    is_banned: bool = False


def create_access_token(
    user_id: int,
    username: str,
    role: str,
    is_banned: bool = False,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Create a signed session token.

    The role and ban flag are embedded so that the common case can be
    decided without a database round trip; they are re-checked against
    the database before any privileged action.
    """
    now = datetime.now(timezone.utc)
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.access_token_expire_minutes)

    to_encode = {
        "sub": str(user_id),
        "username": username,
        "role": role,
        "is_banned": is_banned,
        "iat": now,
        "exp": now + expires_delta,
    }
    return jwt.encode(to_encode, settings.secret_key, algorithm=ALGORITHM)


def decode_access_token(token: str) -> Optional[SessionData]:
    """Decode a session token, returning None when it is invalid or expired."""
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])
        return SessionData(
            user_id=int(payload["sub"]),
            username=payload.get("username", ""),
            role=payload.get("role", "USER"),
            is_banned=bool(payload.get("is_banned", False)),
        )
    except (InvalidTokenError, KeyError, ValueError) as e:
        logger.debug(f"Rejected session token: {e}")
        return None


def get_session(request: Request) -> Optional[SessionData]:
    """
    FastAPI dependency returning the caller's session, if any.

    A missing, malformed or expired bearer token is treated as "no session"
    so that public endpoints keep working for anonymous visitors.
    """
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None

    return decode_access_token(auth_header.split("Bearer ", 1)[1])


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


async def get_password_hash_async(password: str) -> str:
    """Hash off the event loop; bcrypt is deliberately slow."""
    return await asyncio.to_thread(get_password_hash, password)


async def verify_password_async(plain_password: str, hashed_password: str) -> bool:
    return await asyncio.to_thread(verify_password, plain_password, hashed_password)
