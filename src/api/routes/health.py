# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Liveness and readiness endpoints.

/health always answers 200 and reports the database state. /health/ready
answers 503 until the database is reachable and the roster tables exist.
"""

import logging
import time
from datetime import datetime, timezone

from fastapi import APIRouter, Response, status
from pydantic import BaseModel, Field
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from src import __version__
from src.core.config import get_settings
from src.infrastructure.database.connection import DatabaseError, get_engine

logger = logging.getLogger(__name__)

router = APIRouter()

_started_at = time.monotonic()


class ComponentHealth(BaseModel):
    status: str = Field(description="healthy or unhealthy")
    latency_ms: float | None = None
    message: str | None = None


class HealthResponse(BaseModel):
    status: str
    timestamp: datetime
    version: str
    environment: str
    uptime_seconds: int
    database: ComponentHealth


class ReadinessResponse(BaseModel):
    ready: bool
    checks: dict[str, ComponentHealth]


async def _run_check(name: str, statement: str) -> ComponentHealth:
    """Time one statement against the application engine."""
    started = time.monotonic()
    try:
        async with get_engine().connect() as conn:
            await conn.execute(text(statement))
    except (DatabaseError, SQLAlchemyError, OSError) as e:
        logger.error("Health check failed: check=%s, error=%s", name, e)
        return ComponentHealth(status="unhealthy", message=str(e))

    latency_ms = round((time.monotonic() - started) * 1000, 2)
    return ComponentHealth(status="healthy", latency_ms=latency_ms)


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    database = await _run_check("database", "SELECT 1")

    return HealthResponse(
        status=database.status,
        timestamp=datetime.now(timezone.utc),
        version=__version__,
        environment=get_settings().environment,
        uptime_seconds=int(time.monotonic() - _started_at),
        database=database,
    )


@router.get("/health/ready", response_model=ReadinessResponse)
async def readiness_check(response: Response) -> ReadinessResponse:
    """Report whether the service can take roster traffic."""
    checks = {
        "database": await _run_check("database", "SELECT 1"),
        "schema": await _run_check("schema", "SELECT 1 FROM classes LIMIT 1"),
    }
    ready = all(check.status == "healthy" for check in checks.values())
    if not ready:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return ReadinessResponse(ready=ready, checks=checks)
