"""Error taxonomy and the server-action result boundary.

Service operations raise the exceptions below internally. The
``server_action`` decorator turns them into the ``{"error": ...}`` result
shape, so callers always receive either ``{"success": True, ...}`` or an
error dict and never an exception.
"""

import functools
import logging
from typing import Any, Awaitable, Callable, TypeVar

from botocore.exceptions import BotoCoreError, ClientError
from fastapi import status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.utils.sentry_utils import capture_exception

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Awaitable[Any]])

RETRY_LATER_MESSAGE = "Something went wrong. Please try again later."


class ActionError(Exception):
    """Base class for errors that are reported back to the caller."""

    code = "ERROR"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_result(self) -> dict:
        return {"error": self.message, "code": self.code}


class ValidationError(ActionError):
    code = "VALIDATION_ERROR"
    status_code = status.HTTP_400_BAD_REQUEST


class UnauthorizedError(ActionError):
    code = "UNAUTHORIZED"
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class ForbiddenError(ActionError):
    code = "FORBIDDEN"
    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, message: str = "Forbidden: Insufficient permissions"):
        super().__init__(message)


class NotFoundError(ActionError):
    code = "NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND


class BusinessRuleError(ActionError):
    code = "BUSINESS_RULE"
    status_code = status.HTTP_409_CONFLICT


class RateLimitedError(BusinessRuleError):
    code = "RATE_LIMITED"
    status_code = status.HTTP_429_TOO_MANY_REQUESTS


class InfrastructureError(ActionError):
    code = "INTERNAL_ERROR"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    def __init__(self, message: str = RETRY_LATER_MESSAGE):
        super().__init__(message)


ERROR_STATUS_BY_CODE = {
    cls.code: cls.status_code
    for cls in (
        ActionError,
        ValidationError,
        UnauthorizedError,
        ForbiddenError,
        NotFoundError,
        BusinessRuleError,
        RateLimitedError,
        InfrastructureError,
    )
}


async def _rollback(args: tuple, kwargs: dict) -> None:
    """Roll back the session passed to a failed action so it stays usable."""
    candidates = list(kwargs.values()) + list(args)
    for candidate in candidates:
        if isinstance(candidate, AsyncSession):
            try:
                await candidate.rollback()
            except SQLAlchemyError:
                logger.warning("Rollback after failed action also failed", exc_info=True)
            return


def server_action(func: F) -> F:
    """Wrap an async service operation so it returns results instead of raising.

    Taxonomy errors become ``{"error", "code"}`` dicts. Database and blob
    store failures are logged, sent to Sentry and reported with a generic
    retry-later message.
    """

    @functools.wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return await func(*args, **kwargs)
        except (UnauthorizedError, ForbiddenError) as e:
            logger.info(f"{func.__name__} denied: {e.message}")
            return e.to_result()
        except ActionError as e:
            return e.to_result()
        except (SQLAlchemyError, ClientError, BotoCoreError) as e:
            await _rollback(args, kwargs)
            logger.error(f"{func.__name__} failed: {e.__class__.__name__}: {e}", exc_info=True)
            capture_exception(e)
            return InfrastructureError().to_result()

    return wrapper  # type: ignore


def is_error(result: Any) -> bool:
    return isinstance(result, dict) and "error" in result
