# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Shared API models."""

from typing import Any

from pydantic import BaseModel, Field


class ErrorDetail(BaseModel):
    """Machine-readable error returned in HTTPException.detail."""

    code: str = Field(description="Symbolic error code, e.g. CAPACITY_EXCEEDED")
    message: str = Field(description="Human-readable explanation")
    errors: list[dict[str, Any]] | None = Field(
        default=None,
        description="Field-level validation errors, present for INVALID_REQUEST",
    )


class ErrorResponse(BaseModel):
    """Error body as rendered by FastAPI."""

    detail: ErrorDetail
