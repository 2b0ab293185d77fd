import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv

# Load environment-specific .env file BEFORE any app imports
env = os.getenv("ENV", "local")
dotenv_file = f".env.{env}"
load_dotenv(dotenv_file)

from fastapi import FastAPI, Depends, Request
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.db import get_db
from app.middleware import PerformanceMiddleware
from app.utils import (
    logger,
    configure_sentry,
    is_debug,
    API_PREFIX,
)
from app.utils.response_utils import internal_error
from app.utils.sentry_utils import capture_exception
from app.routers import (
    auth_router,
    confessions_router,
    reports_router,
    upload_router,
    users_router,
    admin_router,
)
from app.services.events import EventBus
from app.services.rate_limit import create_confession_limiter, create_search_limiter
from app.services.scheduler import scheduler_service

# Initialize Sentry for error tracking (only in deployed environments)
sentry_enabled = configure_sentry()
if sentry_enabled:
    logger.info("Sentry error tracking initialized")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    # Startup
    logger.info("Starting background scheduler...")
    await scheduler_service.start(
        [app.state.confession_limiter, app.state.search_limiter]
    )

    yield

    # Shutdown
    logger.info("Stopping background scheduler...")
    await scheduler_service.stop()


app = FastAPI(
    title="Sarhni Backend",
    description="Anonymous confessions API",
    version="0.1.0",
    docs_url=None,
    redoc_url=None,
    lifespan=lifespan,
)

# Process-wide services, injected into handlers through app.utils.deps
app.state.event_bus = EventBus()
app.state.confession_limiter = create_confession_limiter()
app.state.search_limiter = create_search_limiter()

# CORS configuration - allow all origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Performance monitoring middleware
app.add_middleware(PerformanceMiddleware)

# Register routers
app.include_router(auth_router, prefix=API_PREFIX)
app.include_router(confessions_router, prefix=API_PREFIX)
app.include_router(reports_router, prefix=API_PREFIX)
app.include_router(upload_router, prefix=API_PREFIX)
app.include_router(users_router, prefix=API_PREFIX)
app.include_router(admin_router, prefix=API_PREFIX)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler for unhandled errors."""
    logger.error(
        f"Unhandled exception: {exc.__class__.__name__}: {exc}",
        exc_info=True,
    )

    capture_exception(exc)

    return internal_error()


@app.get("/")
async def root():
    return {"message": "Welcome to Sarhni API", "version": "0.1.0"}


@app.get("/health")
async def health_check(db: AsyncSession = Depends(get_db)):
    """Health check endpoint."""
    try:
        await db.execute(text("SELECT 1"))
        db_status = "connected"
    except SQLAlchemyError as e:
        logger.error(f"Database health check failed: {e}")
        db_status = "disconnected"

    return {
        "status": "healthy",
        "database": db_status,
        "scheduler": "running" if scheduler_service.running else "stopped",
    }


if __name__ == "__main__":
    import uvicorn

    logger.info(f"Starting Sarhni Backend (env={env}, debug={is_debug()})")
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=is_debug())
