"""Alembic environment for the users, confessions and reports schema"""

import os
import sys
from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine

# Project root, for the app package
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))
# This directory, for env_config
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))
from env_config import get_database_url, migration_options

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# Registers every mapped table on Base.metadata
from app.db.database import Base
from app.models import Confession, Report, User  # noqa: F401

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    """Emit the migration SQL for ``ENV``'s database without connecting."""
    url = get_database_url(os.getenv("ENV"))

    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **migration_options(url),
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Apply migrations over a synchronous connection."""
    url = get_database_url(os.getenv("ENV"))
    engine = create_engine(url)

    try:
        with engine.connect() as connection:
            context.configure(
                connection=connection,
                target_metadata=target_metadata,
                **migration_options(url),
            )

            with context.begin_transaction():
                context.run_migrations()
    finally:
        engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
