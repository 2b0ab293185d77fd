import importlib.util
from pathlib import Path

import pytest

from app.db.database import Base
from app.models import Confession, Report, User  # noqa: F401

ALEMBIC_DIR = Path(__file__).resolve().parent.parent / "alembic"


@pytest.fixture
def env_config(monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    spec = importlib.util.spec_from_file_location("env_config", ALEMBIC_DIR / "env_config.py")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def test_managed_tables_match_models(env_config):
    assert env_config.MANAGED_TABLES == set(Base.metadata.tables)


def test_foreign_tables_are_left_alone(env_config):
    assert env_config.include_object(None, "users", "table", True, None)
    assert not env_config.include_object(None, "spatial_ref_sys", "table", True, None)
    assert env_config.include_object(None, "ix_users_username", "index", True, None)


def test_sqlite_migrations_run_in_batch_mode(env_config):
    assert env_config.migration_options("sqlite:///sarhni.db")["render_as_batch"] is True
    options = env_config.migration_options("postgresql://u:p@localhost/sarhni_db")
    assert options["render_as_batch"] is False
    assert options["compare_type"] is True


def test_database_url_drops_async_driver(env_config, monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgresql+asyncpg://u:p@db:5432/sarhni")
    assert env_config.get_database_url() == "postgresql://u:p@db:5432/sarhni"

    monkeypatch.delenv("DATABASE_URL")
    monkeypatch.setenv("DB_HOST", "localhost")
    monkeypatch.setenv("DB_PORT", "5432")
    monkeypatch.setenv("DB_NAME", "confessions")
    assert env_config.get_database_url().endswith("@localhost:5432/confessions")
