# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""DateTime utilities for ClassRoster.

All timestamps are stored as TIMESTAMPTZ and every Python datetime handled
by the services is timezone-aware UTC. SQLite hands back naive values, so
anything read from the database goes through ensure_utc() before it is
compared with utc_now().

Usage:
    from src.utils.datetime import utc_now

    # For SQLAlchemy model defaults
    created_at = mapped_column(DateTime(timezone=True), default=utc_now)
"""

from datetime import date, datetime, timedelta, timezone


def utc_now() -> datetime:
    """Get current UTC time as timezone-aware datetime.

    Returns:
        Timezone-aware datetime representing current UTC time.
    """
    return datetime.now(timezone.utc)


def utc_today() -> date:
    """Get the current UTC calendar date."""
    return utc_now().date()


def ensure_utc(dt: datetime | None) -> datetime | None:
    """Ensure a datetime is timezone-aware UTC.

    Args:
        dt: A datetime object (naive or aware) or None.

    Returns:
        Timezone-aware UTC datetime or None.

    Note:
        - If dt is None, returns None
        - If dt is naive, assumes UTC and adds tzinfo
        - If dt is aware, converts to UTC
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)

    return dt.astimezone(timezone.utc)


def time_since(start: datetime, now: datetime | None = None) -> timedelta:
    """Calculate time elapsed since a start datetime.

    Args:
        start: The start datetime.
        now: Reference time, defaults to the current UTC time.

    Returns:
        Timedelta since start (negative if start is in the future).
    """
    reference = ensure_utc(now) if now is not None else utc_now()
    return reference - ensure_utc(start)
