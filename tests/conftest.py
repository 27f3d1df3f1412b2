# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest configuration and shared fixtures.

This module provides fixtures used across all test types:
- Unit tests (mocked sessions)
- Integration tests (in-memory SQLite through the real ORM)
"""

from collections.abc import Generator
from uuid import uuid4

import pytest

from src.core.config import TransferSettings, clear_settings_cache


# =============================================================================
# Marker Configuration
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running"
    )
    config.addinivalue_line(
        "markers", "postgres: mark test as needing a PostgreSQL database"
    )


# =============================================================================
# Environment Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def reset_settings_cache() -> Generator[None, None, None]:
    """Drop cached settings so environment patches take effect per test."""
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def transfer_settings() -> TransferSettings:
    """Transfer rules with the default window and batch cap."""
    return TransferSettings(undo_window_minutes=5, max_batch_size=100)


# =============================================================================
# Helper Fixtures
# =============================================================================


@pytest.fixture
def acting_user_id() -> str:
    """Provide the id of the user running transfers."""
    return str(uuid4())


@pytest.fixture
def other_user_id() -> str:
    """Provide the id of a second user."""
    return str(uuid4())
