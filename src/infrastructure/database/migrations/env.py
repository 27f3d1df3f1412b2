# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Alembic entry point for the roster schema.

The target database comes from the application settings (DB_URL or the
DB_* components). A one-off URL can be passed on the command line instead:

    alembic -x url=sqlite+aiosqlite:///roster.db upgrade head

SQLite runs in batch mode so column and constraint changes are applied by
copying the table.
"""

import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import async_engine_from_config

from src.core.config import get_settings
from src.infrastructure.database.models import Base

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)


def roster_url() -> str:
    """URL of the roster database, preferring `-x url=...`."""
    return context.get_x_argument(as_dictionary=True).get("url") or get_settings().db.url


def configure(**options) -> None:
    """Apply the options shared by offline and online runs."""
    url = options.get("url") or str(options["connection"].engine.url)
    context.configure(
        target_metadata=Base.metadata,
        compare_type=True,
        render_as_batch=url.startswith("sqlite"),
        **options,
    )


def run_offline(url: str) -> None:
    """Write the migration SQL to stdout."""
    configure(url=url, literal_binds=True, dialect_opts={"paramstyle": "named"})

    with context.begin_transaction():
        context.run_migrations()


def migrate(connection: Connection) -> None:
    configure(connection=connection)

    with context.begin_transaction():
        context.run_migrations()


async def run_online(url: str) -> None:
    """Apply pending revisions over a throwaway async engine."""
    section = config.get_section(config.config_ini_section) or {}
    section["sqlalchemy.url"] = url
    engine = async_engine_from_config(section, prefix="sqlalchemy.", poolclass=pool.NullPool)

    try:
        async with engine.connect() as connection:
            await connection.run_sync(migrate)
    finally:
        await engine.dispose()


if context.is_offline_mode():
    run_offline(roster_url())
else:
    asyncio.run(run_online(roster_url()))
