# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""SQLAlchemy models for the student database."""

from src.infrastructure.database.models.base import (
    Base,
    SoftDeleteMixin,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
    canonical_id,
    new_uuid,
)
from src.infrastructure.database.models.school import (
    ClassStatus,
    Enrollment,
    EnrollmentAction,
    EnrollmentHistory,
    EnrollmentReason,
    EnrollmentStatus,
    SchoolClass,
)
from src.infrastructure.database.models.student import Student

__all__ = [
    "Base",
    "SoftDeleteMixin",
    "TimestampMixin",
    "UUIDPrimaryKeyMixin",
    "canonical_id",
    "new_uuid",
    "ClassStatus",
    "Enrollment",
    "EnrollmentAction",
    "EnrollmentHistory",
    "EnrollmentReason",
    "EnrollmentStatus",
    "SchoolClass",
    "Student",
]
