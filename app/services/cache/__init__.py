"""Tagged read cache"""

from app.services.cache.cache_service import (
    ADMIN_USERS_TAG,
    DASHBOARD_PATH,
    REPORTS_PATH,
    SEARCH_TAG,
    USER_PROFILES_TAG,
    TaggedCache,
    cache_service,
    path_tag,
    profile_path,
    user_confessions_tag,
    user_profile_tag,
)

__all__ = [
    "ADMIN_USERS_TAG",
    "DASHBOARD_PATH",
    "REPORTS_PATH",
    "SEARCH_TAG",
    "USER_PROFILES_TAG",
    "TaggedCache",
    "cache_service",
    "path_tag",
    "profile_path",
    "user_confessions_tag",
    "user_profile_tag",
]
