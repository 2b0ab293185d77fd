"""Sentry error tracking utilities."""

import os

from app.utils.environment import is_deployed, get_environment

# Track if Sentry has been initialized
_sentry_initialized = False


def configure_sentry(dsn_env_var: str = "SENTRY_DSN") -> bool:
    """Initialize Sentry for error tracking.

    Only initializes in deployed environments (staging/production) and
    only when the DSN environment variable is set.

    Returns:
        True if Sentry was initialized, False otherwise
    """
    global _sentry_initialized

    if _sentry_initialized:
        return True

    if not is_deployed():
        return False

    dsn = os.getenv(dsn_env_var)
    if not dsn:
        return False

    try:
        import sentry_sdk
        from sentry_sdk.integrations.fastapi import FastApiIntegration
        from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

        sentry_sdk.init(
            dsn=dsn,
            environment=get_environment(),
            traces_sample_rate=float(os.getenv("SENTRY_TRACES_SAMPLE_RATE", "0.2")),
            integrations=[
                FastApiIntegration(transaction_style="endpoint"),
                SqlalchemyIntegration(),
            ],
            # Confession content and usernames must not leave the service
            send_default_pii=False,
        )

        _sentry_initialized = True
        return True

    except ImportError:
        return False
    except Exception:
        return False


def capture_exception(exception: Exception) -> None:
    """Send an exception to Sentry if it is configured."""
    if not _sentry_initialized:
        return

    try:
        import sentry_sdk
        sentry_sdk.capture_exception(exception)
    except Exception:
        pass  # Don't let Sentry errors break the application


def set_user_context(user_id: int | str, role: str | None = None) -> None:
    """Tag subsequent Sentry events with the acting user."""
    if not _sentry_initialized:
        return

    try:
        import sentry_sdk
        sentry_sdk.set_user({"id": str(user_id), "role": role})
    except Exception:
        pass
