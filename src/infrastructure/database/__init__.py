# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Database infrastructure for the student database.

Example:
    from src.infrastructure.database import get_session

    async with get_session() as session:
        result = await session.execute(select(SchoolClass))
"""

from src.infrastructure.database.connection import (
    DatabaseError,
    close_database,
    create_engine_for_url,
    create_sessionmaker,
    get_engine,
    get_session,
    get_sessionmaker,
    init_database,
)

__all__ = [
    "DatabaseError",
    "close_database",
    "create_engine_for_url",
    "create_sessionmaker",
    "get_engine",
    "get_session",
    "get_sessionmaker",
    "init_database",
]
