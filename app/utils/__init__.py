"""Utility modules for the sarhni backend."""

from app.utils.logger import logger, setup_logger
from app.utils.environment import is_production, is_staging, is_debug, get_environment
from app.utils.sentry_utils import configure_sentry, capture_exception
from app.utils.response_utils import success, error_response, action_response
from app.utils.errors import (
    ActionError,
    ValidationError,
    UnauthorizedError,
    ForbiddenError,
    NotFoundError,
    BusinessRuleError,
    RateLimitedError,
    InfrastructureError,
    server_action,
    is_error,
)
from app.utils.constants import API_VERSION, API_PREFIX

__all__ = [
    # Logger
    "logger",
    "setup_logger",
    # Environment
    "is_production",
    "is_staging",
    "is_debug",
    "get_environment",
    # Sentry
    "configure_sentry",
    "capture_exception",
    # Response
    "success",
    "error_response",
    "action_response",
    # Errors
    "ActionError",
    "ValidationError",
    "UnauthorizedError",
    "ForbiddenError",
    "NotFoundError",
    "BusinessRuleError",
    "RateLimitedError",
    "InfrastructureError",
    "server_action",
    "is_error",
    # Constants
    "API_VERSION",
    "API_PREFIX",
]
