"""Standardized response utilities."""

from typing import Any

from fastapi import status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from app.utils.errors import ERROR_STATUS_BY_CODE, is_error


def success(**data: Any) -> dict:
    """Build a successful action result: ``{"success": True, **data}``."""
    return {"success": True, **data}


def error_response(
    code: str,
    message: str,
    status_code: int = status.HTTP_400_BAD_REQUEST,
    details: dict | None = None,
) -> JSONResponse:
    """Create a standardized error response for non-action failures.

    Args:
        code: Error code (e.g., 'VALIDATION_ERROR', 'NOT_FOUND')
        message: Human-readable error message
        status_code: HTTP status code
        details: Additional error details

    Returns:
        JSONResponse with error structure
    """
    content = {
        "error": {
            "code": code,
            "message": message,
        }
    }
    if details:
        content["error"]["details"] = details

    return JSONResponse(status_code=status_code, content=content)


def action_response(
    result: Any,
    success_status: int = status.HTTP_200_OK,
) -> JSONResponse:
    """Turn a server-action result into an HTTP response.

    Error results keep their ``{"error", "code"}`` body and get the status
    mapped from their code; everything else is returned with
    ``success_status``.
    """
    if is_error(result):
        status_code = ERROR_STATUS_BY_CODE.get(
            result.get("code", ""), status.HTTP_400_BAD_REQUEST
        )
        return JSONResponse(status_code=status_code, content=jsonable_encoder(result))

    return JSONResponse(status_code=success_status, content=jsonable_encoder(result))


def internal_error(
    message: str = "An unexpected error occurred",
) -> JSONResponse:
    return error_response(
        code="INTERNAL_ERROR",
        message=message,
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
