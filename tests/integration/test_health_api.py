# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Integration tests for the health endpoints with a mocked engine."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from src.api.app import create_app
from src.infrastructure.database.connection import DatabaseError


@pytest.fixture
def client():
    return TestClient(create_app())


def engine_with(conn: AsyncMock) -> MagicMock:
    """Engine whose connect() yields conn."""
    engine = MagicMock()
    engine.connect.return_value.__aenter__.return_value = conn
    return engine


class TestHealth:
    """Tests for GET /health."""

    def test_healthy(self, client):
        with patch("src.api.routes.health.get_engine", return_value=engine_with(AsyncMock())):
            response = client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"]["latency_ms"] is not None

    def test_database_not_initialized(self, client):
        with patch(
            "src.api.routes.health.get_engine",
            side_effect=DatabaseError("Database not initialized"),
        ):
            response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "unhealthy"
        assert "not initialized" in response.json()["database"]["message"]


class TestReadiness:
    """Tests for GET /health/ready."""

    def test_ready(self, client):
        with patch("src.api.routes.health.get_engine", return_value=engine_with(AsyncMock())):
            response = client.get("/health/ready")

        assert response.status_code == 200
        assert response.json()["ready"] is True

    def test_missing_tables(self, client):
        conn = AsyncMock()
        conn.execute.side_effect = [
            None,
            OperationalError("SELECT 1 FROM classes", {}, Exception("no such table: classes")),
        ]

        with patch("src.api.routes.health.get_engine", return_value=engine_with(conn)):
            response = client.get("/health/ready")

        assert response.status_code == 503
        checks = response.json()["checks"]
        assert checks["database"]["status"] == "healthy"
        assert checks["schema"]["status"] == "unhealthy"
