# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment service for managing student class enrollments.

This module provides the EnrollmentService class for:
- Student enrollment in classes
- Enrollment withdrawal
- Class and student enrollment history

Both write operations lock the class row, keep its enrollment count in step
with the enrollment rows and append a ledger entry in the same transaction.
"""

from __future__ import annotations

import logging
from collections import Counter
from datetime import datetime
from typing import Callable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.domains.class_.capacity import ClassCapacityTracker
from src.domains.enrollment.ledger import EnrollmentLedger
from src.domains.enrollment.store import EnrollmentStore
from src.infrastructure.database.models import (
    Enrollment,
    EnrollmentAction,
    EnrollmentHistory,
    EnrollmentReason,
    EnrollmentStatus,
    SchoolClass,
    Student,
    canonical_id,
)
from src.models.enrollment import (
    EnrollmentHistoryItem,
    EnrollmentHistoryResponse,
    EnrollmentResponse,
    StudentEnrollmentHistoryResponse,
)
from src.utils.datetime import utc_now

logger = logging.getLogger(__name__)


class EnrollmentServiceError(Exception):
    """Base exception for enrollment service errors."""

    pass


class ClassNotFoundError(EnrollmentServiceError):
    """Raised when class is not found."""

    pass


class ClassInactiveError(EnrollmentServiceError):
    """Raised when class does not accept enrollments."""

    pass


class ClassFullError(EnrollmentServiceError):
    """Raised when class has no free seat."""

    pass


class StudentNotFoundError(EnrollmentServiceError):
    """Raised when student is not found."""

    pass


class AlreadyEnrolledError(EnrollmentServiceError):
    """Raised when student already has an active enrollment."""

    pass


class NotEnrolledError(EnrollmentServiceError):
    """Raised when student is not enrolled in class."""

    pass


def _parse_id(
    value: UUID | str,
    error: type[EnrollmentServiceError],
    label: str,
) -> str:
    """Canonical form of an id; a value that is not a UUID is not found."""
    try:
        return canonical_id(value)
    except ValueError:
        raise error(f"{label} {value} not found")


class EnrollmentService:
    """Service for managing student enrollments.

    Attributes:
        db: Async database session.
        store: Enrollment persistence.
        ledger: Enrollment history ledger.
        capacity: Class locking and seat accounting.
    """

    def __init__(
        self,
        db: AsyncSession,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize enrollment service.

        Args:
            db: Async database session.
            clock: Source of the current UTC time.
        """
        self.db = db
        self._clock = clock
        self.store = EnrollmentStore(db)
        self.ledger = EnrollmentLedger(db)
        self.capacity = ClassCapacityTracker(db)

    async def enroll_student(
        self,
        class_id: UUID | str,
        student_id: UUID | str,
        acting_user_id: str,
        notes: str | None = None,
    ) -> EnrollmentResponse:
        """Enroll a student in a class.

        Args:
            class_id: Class identifier.
            student_id: Student identifier.
            acting_user_id: ID of user performing enrollment.
            notes: Optional free-text note stored on the enrollment.

        Returns:
            Enrollment response.

        Raises:
            ClassNotFoundError: If class not found.
            ClassInactiveError: If class is inactive.
            StudentNotFoundError: If student not found.
            AlreadyEnrolledError: If student already has an active enrollment.
            ClassFullError: If class has no free seat.
        """
        class_id = _parse_id(class_id, ClassNotFoundError, "Class")
        student_id = _parse_id(student_id, StudentNotFoundError, "Student")
        acting_user_id = canonical_id(acting_user_id)
        now = self._clock()

        class_ = await self._lock_class(class_id)
        if not class_.is_active:
            raise ClassInactiveError(f"Class {class_.name} is not active")

        student = await self._get_student(student_id)

        current = await self.store.find_active(student_id)
        if current is not None:
            where = "this class" if current.class_id == class_id else "another class"
            raise AlreadyEnrolledError(f"Student is already enrolled in {where}")

        if not class_.can_accept():
            raise ClassFullError(
                f"Class {class_.name} is full ({class_.current_enrollment}/{class_.capacity})"
            )

        reason = EnrollmentReason.NEW
        if await self._has_past_enrollment(student_id, class_id):
            reason = EnrollmentReason.RE_ENROLLMENT

        enrollment = await self.store.save(
            Enrollment(
                student_id=student_id,
                class_id=class_id,
                enrollment_date=now.date(),
                reason=reason,
                status=EnrollmentStatus.ACTIVE,
                notes=notes,
            )
        )
        class_.increment_enrollment()
        self.ledger.append(
            student_id=student_id,
            class_id=class_id,
            action=EnrollmentAction.ENROLLED,
            performed_by_user_id=acting_user_id,
            performed_at=now,
            reason=reason.value,
        )

        await self.db.commit()

        logger.info(
            "Enrolled student: student=%s, class=%s, by=%s",
            student_id,
            class_id,
            acting_user_id,
        )

        return self._to_response(enrollment, student)

    async def withdraw_student(
        self,
        class_id: UUID | str,
        student_id: UUID | str,
        acting_user_id: str,
        reason: str | None = None,
    ) -> EnrollmentResponse:
        """Withdraw a student from a class.

        Args:
            class_id: Class identifier.
            student_id: Student identifier.
            acting_user_id: ID of user performing withdrawal.
            reason: Optional reason recorded in the ledger.

        Returns:
            Updated enrollment.

        Raises:
            ClassNotFoundError: If class not found.
            NotEnrolledError: If student not actively enrolled in the class.
        """
        class_id = _parse_id(class_id, ClassNotFoundError, "Class")
        student_id = _parse_id(student_id, NotEnrolledError, "Enrollment of student")
        acting_user_id = canonical_id(acting_user_id)
        now = self._clock()

        class_ = await self._lock_class(class_id)

        enrollment = await self.store.find_active(student_id, class_id)
        if enrollment is None:
            raise NotEnrolledError("Student is not enrolled in this class")

        enrollment.status = EnrollmentStatus.WITHDRAWN
        enrollment.end_date = now.date()
        await self.store.save(enrollment)

        class_.decrement_enrollment()
        self.ledger.append(
            student_id=student_id,
            class_id=class_id,
            action=EnrollmentAction.WITHDRAWN,
            performed_by_user_id=acting_user_id,
            performed_at=now,
            reason=reason,
        )

        await self.db.commit()

        student = await self.db.get(Student, student_id)

        logger.info(
            "Withdrew student: student=%s, class=%s, by=%s",
            student_id,
            class_id,
            acting_user_id,
        )

        return self._to_response(enrollment, student)

    async def get_class_history(
        self,
        class_id: UUID | str,
        limit: int = 100,
    ) -> EnrollmentHistoryResponse:
        """List the ledger entries touching a class, newest first.

        Args:
            class_id: Class identifier.
            limit: Maximum number of entries.

        Returns:
            History response with student names resolved.

        Raises:
            ClassNotFoundError: If class not found.
        """
        class_id = _parse_id(class_id, ClassNotFoundError, "Class")
        if await self.capacity.get_class(class_id) is None:
            raise ClassNotFoundError(f"Class {class_id} not found")

        records = await self.ledger.list_for_class(class_id, limit=limit)
        names = await self._get_student_names({r.student_id for r in records})

        items = [self._to_history_item(record, names) for record in records]

        return EnrollmentHistoryResponse(class_id=class_id, items=items, total=len(items))

    async def get_student_history(
        self,
        student_id: UUID | str,
        limit: int = 100,
    ) -> StudentEnrollmentHistoryResponse:
        """Get a student's enrollments and ledger entries, newest first.

        Args:
            student_id: Student identifier.
            limit: Maximum number of ledger entries.

        Returns:
            Every enrollment of the student with counts per status, plus the
            ledger entries recorded for the student.

        Raises:
            StudentNotFoundError: If student not found.
        """
        student_id = _parse_id(student_id, StudentNotFoundError, "Student")
        student = await self._get_student(student_id)

        enrollments = await self.store.list_for_student(student_id)
        records = await self.ledger.list_for_student(student_id, limit=limit)
        names = {student.id: student.display_name}

        counts = Counter(enrollment.status for enrollment in enrollments)

        return StudentEnrollmentHistoryResponse(
            student_id=student.id,
            student_name=student.display_name,
            enrollments=[self._to_response(e, student) for e in enrollments],
            total_count=len(enrollments),
            active_count=counts[EnrollmentStatus.ACTIVE],
            transferred_count=counts[EnrollmentStatus.TRANSFERRED],
            withdrawn_count=counts[EnrollmentStatus.WITHDRAWN],
            completed_count=counts[EnrollmentStatus.COMPLETED],
            events=[self._to_history_item(record, names) for record in records],
        )


    async def _lock_class(self, class_id: str) -> SchoolClass:
        """Lock a class row for the rest of the transaction.

        Raises:
            ClassNotFoundError: If not found.
        """
        classes = await self.capacity.lock_classes(class_id)
        class_ = classes.get(class_id)
        if class_ is None:
            raise ClassNotFoundError(f"Class {class_id} not found")
        return class_

    async def _get_student(self, student_id: str) -> Student:
        """Get a student that has not been soft-deleted.

        Raises:
            StudentNotFoundError: If not found.
        """
        result = await self.db.execute(
            select(Student).where(
                Student.id == student_id,
                Student.deleted_at.is_(None),
            )
        )
        student = result.scalar_one_or_none()

        if not student:
            raise StudentNotFoundError(f"Student {student_id} not found")

        return student

    async def _has_past_enrollment(self, student_id: str, class_id: str) -> bool:
        """Check whether the student was enrolled in this class before."""
        result = await self.db.execute(
            select(Enrollment.id)
            .where(
                Enrollment.student_id == student_id,
                Enrollment.class_id == class_id,
            )
            .limit(1)
        )
        return result.first() is not None

    async def _get_student_names(self, student_ids: set[str]) -> dict[str, str]:
        """Map student ids to display names."""
        if not student_ids:
            return {}
        result = await self.db.execute(
            select(Student).where(Student.id.in_(student_ids))
        )
        return {s.id: s.display_name for s in result.scalars().all()}

    def _to_response(
        self,
        enrollment: Enrollment,
        student: Student | None,
    ) -> EnrollmentResponse:
        """Convert enrollment to response DTO."""
        return EnrollmentResponse(
            id=enrollment.id,
            class_id=enrollment.class_id,
            student_id=enrollment.student_id,
            student_name=student.display_name if student else None,
            status=enrollment.status.value,
            reason=enrollment.reason.value,
            enrollment_date=enrollment.enrollment_date,
            end_date=enrollment.end_date,
            origin_transfer_id=enrollment.origin_transfer_id,
        )

    def _to_history_item(
        self,
        record: EnrollmentHistory,
        names: dict[str, str],
    ) -> EnrollmentHistoryItem:
        """Convert a ledger row to a history item."""
        return EnrollmentHistoryItem(
            id=record.id,
            student_id=record.student_id,
            student_name=names.get(record.student_id),
            class_id=record.class_id,
            action=record.action.value,
            reason=record.reason,
            performed_at=record.performed_at,
            performed_by_user_id=record.performed_by_user_id,
            transfer_id=record.transfer_id,
            undo_of_transfer_id=record.undo_of_transfer_id,
            source_class_id=record.source_class_id,
            destination_class_id=record.destination_class_id,
        )
