"""Environment detection utilities."""

import os


def get_environment() -> str:
    """Get the current environment name.

    Returns:
        Environment name: 'local', 'test', 'staging', or 'production'
    """
    return os.getenv("ENV", "local")


def is_production() -> bool:
    return get_environment() == "production"


def is_staging() -> bool:
    return get_environment() == "staging"


def is_debug() -> bool:
    """True when running locally (ENV is 'local' or unset)."""
    return get_environment() == "local"


def is_deployed() -> bool:
    """True for staging and production."""
    return is_production() or is_staging()
