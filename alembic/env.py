"""
Alembic migration environment for the import tables.

URL priority: ``-x db_url=...``, then ALEMBIC_DATABASE_URL, then
``sqlalchemy.url`` from alembic.ini, then the application's own resolution.
"""

from __future__ import annotations

import logging
import os
from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine, pool

import db.models  # noqa: F401 registers ORM models on Base.metadata
from db.base import Base
from db.config import get_database_settings, load_env_files

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

logger = logging.getLogger("alembic.env")
target_metadata = Base.metadata


def _override_url() -> str | None:
    x_args = context.get_x_argument(as_dictionary=True)
    for candidate in (
        x_args.get("db_url"),
        os.getenv("ALEMBIC_DATABASE_URL"),
        config.get_main_option("sqlalchemy.url"),
    ):
        if candidate and candidate.strip():
            return candidate
    return None


def _configure(**kwargs) -> None:
    context.configure(
        target_metadata=target_metadata,
        compare_type=True,
        compare_server_default=True,
        process_revision_directives=_skip_empty_autogenerate,
        **kwargs,
    )


def _skip_empty_autogenerate(migration_context, revision, directives) -> None:
    if getattr(config.cmd_opts, "autogenerate", False) and directives:
        script = directives[0]
        if script.upgrade_ops.is_empty():
            directives[:] = []
            logger.info("No schema changes detected; revision not created.")


def run_migrations_offline() -> None:
    load_env_files()
    settings = get_database_settings(_override_url())
    _configure(url=settings.url, literal_binds=True, dialect_opts={"paramstyle": "named"})

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    load_env_files()
    settings = get_database_settings(_override_url())
    connectable = create_engine(settings.url, poolclass=pool.NullPool, connect_args=settings.connect_args)

    with connectable.connect() as connection:
        _configure(connection=connection)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
