"""Profile store, user search and dashboard"""

from app.services.profile.profile_service import (
    ProfileService,
    profile_service,
    validate_bio,
    validate_image_url,
)

__all__ = ["ProfileService", "profile_service", "validate_bio", "validate_image_url"]
