# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API v1 routes package.

This package contains all v1 API endpoint definitions.
Each module provides a FastAPI router for a specific domain.

Modules:
    classes: Eligible destinations, batch transfer, enrollment and history.
    students: Student enrollment history and single-student transfer.
    transfers: Undo of batch transfers.
"""

from fastapi import APIRouter

from src.api.v1 import classes, students, transfers

# Create the main v1 router
router = APIRouter(prefix="/api/v1")

router.include_router(classes.router, prefix="/classes", tags=["Classes"])
router.include_router(students.router, prefix="/students", tags=["Students"])
router.include_router(transfers.router, prefix="/transfers", tags=["Transfers"])

__all__ = ["router"]
