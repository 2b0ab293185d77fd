"""Common schemas for action results"""

from pydantic import BaseModel


class ActionSuccess(BaseModel):
    """Result of a successful server action"""
    success: bool = True


class ActionFailure(BaseModel):
    """Result of a rejected server action"""
    error: str
    code: str | None = None


# OpenAPI documentation of the error results every action router can return
ACTION_ERRORS = {
    400: {"model": ActionFailure, "description": "Invalid input"},
    401: {"model": ActionFailure, "description": "Not signed in"},
    403: {"model": ActionFailure, "description": "Not allowed"},
    404: {"model": ActionFailure, "description": "Not found"},
    409: {"model": ActionFailure, "description": "Business rule violated"},
}
