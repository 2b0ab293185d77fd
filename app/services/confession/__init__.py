"""Confession store"""

from app.services.confession.confession_service import (
    ConfessionService,
    confession_service,
    serialize_confession,
    validate_content,
)

__all__ = [
    "ConfessionService",
    "confession_service",
    "serialize_confession",
    "validate_content",
]
