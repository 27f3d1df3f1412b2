# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment domain package.

This package provides student enrollment functionality including:
- Enrollment persistence (EnrollmentStore)
- The append-only enrollment history ledger (EnrollmentLedger)
- Student enrollment in classes and withdrawal
"""

from src.domains.enrollment.ledger import EnrollmentLedger, TransferRecord
from src.domains.enrollment.service import (
    EnrollmentService,
    EnrollmentServiceError,
    ClassNotFoundError,
    ClassInactiveError,
    ClassFullError,
    StudentNotFoundError,
    AlreadyEnrolledError,
    NotEnrolledError,
)
from src.domains.enrollment.store import EnrollmentStore

__all__ = [
    "EnrollmentLedger",
    "EnrollmentStore",
    "TransferRecord",
    "EnrollmentService",
    "EnrollmentServiceError",
    "ClassNotFoundError",
    "ClassInactiveError",
    "ClassFullError",
    "StudentNotFoundError",
    "AlreadyEnrolledError",
    "NotEnrolledError",
]
