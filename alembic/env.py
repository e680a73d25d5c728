"""
Alembic environment for the MannXP backend database.

Only the server-side ``user_progression`` table is migrated here
(``mannxp.database.models.Base``).  The client's ``local_store`` table lives
on ``LocalBase`` and is created on demand by ``create_local_engine``, so it
is deliberately absent from ``target_metadata``.

The URL comes from ``DATABASE_URL`` (``.env`` is honoured), falling back to
``sqlalchemy.url`` in ``alembic.ini``.  Revision history::

    5c2e9a1f7b30  create user_progression
"""

from __future__ import annotations

import os
from logging.config import fileConfig

from dotenv import load_dotenv
from sqlalchemy import engine_from_config, pool

from alembic import context

from mannxp.database.models import Base

load_dotenv()

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def _database_url() -> str:
    url = os.getenv("DATABASE_URL") or config.get_main_option("sqlalchemy.url")
    if not url:
        raise RuntimeError(
            "DATABASE_URL is not set and alembic.ini has no sqlalchemy.url"
        )
    return url


def run_migrations_offline() -> None:
    """Emit SQL for the progression schema without connecting."""
    context.configure(
        url=_database_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        compare_type=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Apply migrations against the live backend database."""
    section = config.get_section(config.config_ini_section, {})
    section["sqlalchemy.url"] = _database_url()
    connectable = engine_from_config(
        section, prefix="sqlalchemy.", poolclass=pool.NullPool
    )
    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
        )
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
