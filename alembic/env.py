"""
Migration environment for the tenant and user tables.

Migrations run against the DATABASE_URL the service uses, with the same
connection arguments, unless sqlalchemy.url is set on the Alembic config.
"""

import os
import sys
from logging.config import fileConfig
from alembic import context
from sqlalchemy import create_engine, pool

sys.path.append(os.getcwd())

from app.database import Base, DATABASE_URL, engine_options
import app.models  # noqa: F401  registers Tenant and User on Base.metadata

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata

# An explicit sqlalchemy.url (set by tooling) wins over DATABASE_URL
database_url = config.get_main_option("sqlalchemy.url") or DATABASE_URL

# SQLite cannot ALTER most constraints in place
render_as_batch = database_url.startswith("sqlite")


def run_migrations_offline():
    """Emit the migration SQL without connecting."""
    context.configure(
        url=database_url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=render_as_batch,
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online():
    """Apply migrations over a short-lived connection."""
    options = engine_options(database_url)
    migration_engine = create_engine(
        database_url,
        poolclass=pool.NullPool,
        connect_args=options.get("connect_args", {}),
    )

    with migration_engine.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
            render_as_batch=render_as_batch,
        )

        with context.begin_transaction():
            context.run_migrations()

    migration_engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
