"""Request timing middleware."""

import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from app.utils.constants import API_PREFIX
from app.utils.logger import logger


class PerformanceMiddleware(BaseHTTPMiddleware):
    """Measure and log request processing time.

    Adds an ``X-Process-Time`` header and warns about requests slower than
    500ms. Health, docs and the long-lived confession stream are not logged.
    """

    SLOW_REQUEST_THRESHOLD = 0.5  # 500ms

    EXCLUDED_PATHS = {
        "/health",
        "/",
        "/docs",
        "/redoc",
        "/openapi.json",
        f"{API_PREFIX}/confessions/stream",
    }

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.perf_counter()
        response = await call_next(request)
        process_time = time.perf_counter() - start_time

        response.headers["X-Process-Time"] = f"{process_time:.4f}"

        path = request.url.path
        if path in self.EXCLUDED_PATHS:
            return response

        status = response.status_code
        if process_time >= self.SLOW_REQUEST_THRESHOLD:
            logger.warning(f"[SLOW REQUEST] {request.method} {path} {status} - {process_time:.3f}s")
        else:
            logger.debug(f"[REQUEST] {request.method} {path} {status} - {process_time:.3f}s")

        return response
