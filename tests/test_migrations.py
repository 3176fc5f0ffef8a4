"""
Tests for the Alembic migration environment
"""

from pathlib import Path

import pytest
from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect

ROOT = Path(__file__).resolve().parent.parent


@pytest.fixture
def alembic_config(tmp_path):
    config = Config()
    config.set_main_option("script_location", str(ROOT / "alembic"))
    config.set_main_option("sqlalchemy.url", f"sqlite:///{tmp_path / 'migrations.db'}")
    return config


def test_upgrade_creates_auth_tables(alembic_config):
    command.upgrade(alembic_config, "head")

    engine = create_engine(alembic_config.get_main_option("sqlalchemy.url"))
    inspector = inspect(engine)
    assert {"tenant", "user"} <= set(inspector.get_table_names())

    user_constraints = {c["name"] for c in inspector.get_unique_constraints("user")}
    tenant_constraints = {c["name"] for c in inspector.get_unique_constraints("tenant")}
    assert "user_email_key" in user_constraints
    assert {"tenant_username_key", "tenant_email_key"} <= tenant_constraints
    assert "ix_user_reset_token" in {i["name"] for i in inspector.get_indexes("user")}
    engine.dispose()


def test_downgrade_drops_auth_tables(alembic_config):
    command.upgrade(alembic_config, "head")
    command.downgrade(alembic_config, "base")

    engine = create_engine(alembic_config.get_main_option("sqlalchemy.url"))
    assert not {"tenant", "user"} & set(inspect(engine).get_table_names())
    engine.dispose()
