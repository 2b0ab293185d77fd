import os
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from app.config import settings

db_port = os.getenv("DB_PORT", settings.db_port)
if db_port == "None" or not db_port:
    db_port = "5432"

# Async database URL (for FastAPI); DATABASE_URL overrides the individual parts
ASYNC_DATABASE_URL = settings.database_url or (
    f"postgresql+asyncpg://{os.getenv('DB_USER', settings.db_user)}:"
    f"{os.getenv('DB_PASSWORD', settings.db_password)}"
    f"@{os.getenv('DB_HOST', settings.db_host)}:{db_port}/{os.getenv('DB_NAME', settings.db_name)}"
)

async_engine = create_async_engine(ASYNC_DATABASE_URL, echo=False, pool_pre_ping=True)
AsyncSessionLocal = async_sessionmaker(
    async_engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)

Base = declarative_base()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Async dependency for FastAPI routes."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()


@asynccontextmanager
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Async context manager for database sessions (scripts and background tasks)."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception as error:
            await session.rollback()
            raise error
        finally:
            await session.close()
