"""
Environment configuration for Alembic migrations.
This module provides functions to get database URLs for different environments.
"""

import os

from dotenv import load_dotenv

# Get the environment from ENV variable, default to local
env = os.getenv("ENV", "local")
dotenv_file = f".env.{env}"

# Load environment variables from the appropriate .env file
print(f"Alembic: Loading environment variables from {dotenv_file}")
load_dotenv(dotenv_file)


def get_database_url(environment: str = None) -> str:
    """
    Get the synchronous database URL for the specified environment.

    DATABASE_URL, when set, wins over the individual DB_* variables; its
    async driver is swapped for the synchronous one Alembic runs on.

    Args:
        environment: 'local', 'staging', 'production', or None (uses current ENV).
    """
    if not environment:
        environment = os.getenv("ENV", "local")

    database_url = os.getenv("DATABASE_URL")
    if database_url:
        return database_url.replace("+asyncpg", "").replace("+aiosqlite", "")

    db_user = os.getenv("DB_USER", "postgres")
    db_password = os.getenv("DB_PASSWORD", "")
    db_host = os.getenv("DB_HOST", "localhost")
    db_port = os.getenv("DB_PORT", "5432")
    db_name = os.getenv("DB_NAME", "sarhni_db")

    return f"postgresql://{db_user}:{db_password}@{db_host}:{db_port}/{db_name}"


# Tables owned by this service; anything else in the database is left alone
MANAGED_TABLES = frozenset({"users", "confessions", "reports"})


def include_object(object, name, type_, reflected, compare_to) -> bool:
    """Leave tables this service does not own out of autogenerate."""
    if type_ == "table":
        return name in MANAGED_TABLES
    return True


def migration_options(url: str) -> dict:
    """Keyword arguments for ``context.configure`` shared by both run modes."""
    return {
        "include_object": include_object,
        "compare_type": True,
        # SQLite cannot ALTER most constraints in place
        "render_as_batch": url.startswith("sqlite"),
    }
