"""Factories shared by the test modules."""

from datetime import datetime
from functools import lru_cache

from sqlalchemy.ext.asyncio import AsyncSession

from app.models import Confession, Role, User
from app.services.auth import AuthUser, get_password_hash

PASSWORD = "secret123"


@lru_cache(maxsize=1)
def password_hash() -> str:
    return get_password_hash(PASSWORD)


def as_caller(user: User) -> AuthUser:
    return AuthUser(id=user.id, username=user.username, role=user.role, is_banned=user.is_banned)


async def make_user(
    db: AsyncSession,
    username: str,
    role: Role = Role.USER,
    is_banned: bool = False,
    **fields,
) -> AuthUser:
    """Insert a user and return it as an AuthUser (plain values, safe after rollbacks)."""
    user = User(
        username=username,
        password_hash=password_hash(),
        role=role.value,
        is_banned=is_banned,
        **fields,
    )
    db.add(user)
    await db.commit()
    return as_caller(user)


async def make_confession(
    db: AsyncSession,
    receiver_id: int,
    content: str = "hello there",
    sender_id: int | None = None,
    is_pinned: bool = False,
    created_at: datetime | None = None,
):
    """Insert a confession and return its id."""
    confession = Confession(
        content=content,
        receiver_id=receiver_id,
        sender_id=sender_id,
        is_anonymous=sender_id is None,
        is_pinned=is_pinned,
        created_at=created_at or datetime.utcnow(),
    )
    db.add(confession)
    await db.commit()
    return confession.id
