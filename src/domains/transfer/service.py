# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Batch student transfer service.

This module provides the TransferService class for:
- Moving a batch of students from one class to another
- Moving a single student out of their current class
- Listing the classes a class's students can be moved to

A batch is validated as a whole first (request shape, classes, grade,
capacity), then each student is processed on their own. A student who fails
a check is reported in failed_transfers and nothing is written for them;
the students who pass are committed together at the end of the call.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config import TransferSettings, get_settings
from src.domains.class_.capacity import ClassCapacityTracker
from src.domains.enrollment.ledger import EnrollmentLedger
from src.domains.enrollment.store import EnrollmentStore
from src.domains.transfer.errors import (
    CapacityExceededError,
    DestinationClassInactiveError,
    DestinationClassNotFoundError,
    GradeMismatchError,
    InvalidTransferRequestError,
    SourceClassInactiveError,
    SourceClassNotFoundError,
    StudentTransferError,
    TransferErrorCode,
)
from src.infrastructure.database.models import (
    Enrollment,
    EnrollmentAction,
    EnrollmentReason,
    EnrollmentStatus,
    SchoolClass,
    Student,
    canonical_id,
    new_uuid,
)
from src.models.transfer import EligibleClass, FailedTransfer, TransferResult
from src.utils.datetime import utc_now

logger = logging.getLogger(__name__)


class TransferService:
    """Service for batch transfers between classes.

    Attributes:
        db: Async database session.
        settings: Transfer business rules.
        store: Enrollment persistence.
        ledger: Enrollment history ledger.
        capacity: Class locking and seat accounting.
    """

    def __init__(
        self,
        db: AsyncSession,
        settings: TransferSettings | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize transfer service.

        Args:
            db: Async database session.
            settings: Transfer settings, defaults to the application settings.
            clock: Source of the current UTC time.
        """
        self.db = db
        self.settings = settings or get_settings().transfer
        self._clock = clock
        self.store = EnrollmentStore(db)
        self.ledger = EnrollmentLedger(db)
        self.capacity = ClassCapacityTracker(db)

    async def batch_transfer(
        self,
        source_class_id: UUID | str,
        destination_class_id: UUID | str,
        student_ids: Sequence[UUID | str],
        acting_user_id: str,
        reason: str | None = None,
    ) -> TransferResult:
        """Move students from a source class to a destination class.

        Args:
            source_class_id: Class the students leave.
            destination_class_id: Class the students join.
            student_ids: Students to move.
            acting_user_id: Authenticated user running the transfer.
            reason: Reason stored on the closed enrollments, defaults to
                naming the destination class.

        Returns:
            Transfer result with the per-student failures.

        Raises:
            InvalidTransferRequestError: If an id is not a UUID, the student
                list is empty, too long or has duplicates, or source equals
                destination.
            SourceClassNotFoundError: If the source class does not exist.
            SourceClassInactiveError: If the source class is inactive.
            DestinationClassNotFoundError: If the destination does not exist.
            DestinationClassInactiveError: If the destination is inactive.
            GradeMismatchError: If the classes are different grades.
            CapacityExceededError: If the destination cannot take the batch.
        """
        source_id, destination_id, ids = self._parse_ids(
            source_class_id, destination_class_id, student_ids
        )
        acting_user_id = canonical_id(acting_user_id)

        self._validate_request(source_id, destination_id, ids)

        classes = await self.capacity.lock_classes(source_id, destination_id)
        source, destination = self._validate_classes(
            classes.get(source_id),
            classes.get(destination_id),
            len(ids),
        )

        transfer_id = new_uuid()
        transferred_at = self._clock()
        transfer_reason = reason or (
            f"Transferred to {destination.name} ({destination.section})"
        )
        students = await self._get_students(ids)

        failed: list[FailedTransfer] = []
        successful = 0

        for student_id in ids:
            student = students.get(student_id)
            source_enrollment, code = await self._check_student(
                student, student_id, source_id, destination_id
            )
            if code is not None:
                logger.warning(
                    "Student not transferred: transfer=%s, student=%s, reason=%s",
                    transfer_id,
                    student_id,
                    code.value,
                )
                failed.append(
                    FailedTransfer(
                        student_id=student_id,
                        student_name=student.display_name if student else None,
                        reason=code.value,
                    )
                )
                continue

            source_enrollment.mark_transferred(
                transfer_id,
                reason=transfer_reason,
                on=transferred_at.date(),
            )
            await self.store.save(source_enrollment)

            await self.store.save(
                Enrollment(
                    student_id=student_id,
                    class_id=destination_id,
                    enrollment_date=transferred_at.date(),
                    reason=EnrollmentReason.TRANSFER,
                    status=EnrollmentStatus.ACTIVE,
                    origin_transfer_id=transfer_id,
                )
            )

            self.ledger.append(
                student_id=student_id,
                class_id=destination_id,
                action=EnrollmentAction.TRANSFERRED,
                performed_by_user_id=acting_user_id,
                performed_at=transferred_at,
                reason=transfer_reason,
                transfer_id=transfer_id,
                source_class_id=source_id,
                destination_class_id=destination_id,
            )
            self.capacity.move_seat(source, destination)
            successful += 1

        await self.db.commit()

        logger.info(
            "Batch transfer completed: transfer=%s, source=%s, destination=%s, "
            "successful=%d, failed=%d, by=%s",
            transfer_id,
            source_id,
            destination_id,
            successful,
            len(failed),
            acting_user_id,
        )

        return TransferResult(
            transfer_id=transfer_id,
            source_class_id=source_id,
            destination_class_id=destination_id,
            successful_transfers=successful,
            failed_transfers=failed,
            transferred_at=transferred_at,
        )

    async def transfer_student(
        self,
        student_id: UUID | str,
        destination_class_id: UUID | str,
        acting_user_id: str,
        reason: str | None = None,
    ) -> TransferResult:
        """Move one student from their current class to another.

        The source is the class holding the student's ACTIVE enrollment.
        The move runs as a batch of one, so it gets a transfer id and can be
        undone like any batch.

        Args:
            student_id: Student to move.
            destination_class_id: Class the student joins.
            acting_user_id: Authenticated user running the transfer.
            reason: Optional reason stored on the closed enrollment.

        Returns:
            Transfer result with one successful transfer.

        Raises:
            StudentTransferError: If the student does not exist, has no
                active enrollment or was not moved.
            TransferServiceError: Any request or class-level rejection of
                batch_transfer.
        """
        try:
            student_id = canonical_id(student_id)
        except ValueError:
            raise StudentTransferError(
                TransferErrorCode.STUDENT_NOT_FOUND, f"Student {student_id} not found"
            )

        if student_id not in await self._get_students([student_id]):
            raise StudentTransferError(
                TransferErrorCode.STUDENT_NOT_FOUND, f"Student {student_id} not found"
            )

        current = await self.store.find_active(student_id)
        if current is None:
            raise StudentTransferError(
                TransferErrorCode.STUDENT_NOT_ENROLLED,
                f"Student {student_id} has no active enrollment",
            )

        result = await self.batch_transfer(
            current.class_id,
            destination_class_id,
            [student_id],
            acting_user_id,
            reason=reason,
        )
        if result.failed_transfers:
            failure = result.failed_transfers[0]
            raise StudentTransferError(
                TransferErrorCode(failure.reason),
                f"Student {student_id} was not transferred: {failure.reason}",
            )

        return result

    async def get_eligible_destinations(
        self,
        source_class_id: UUID | str,
    ) -> list[EligibleClass]:
        """List classes the source class's students can be moved to.

        Args:
            source_class_id: Class the students would leave.

        Returns:
            Active classes of the same grade with free seats, sorted by name.

        Raises:
            SourceClassNotFoundError: If the source class does not exist.
        """
        source = await self.capacity.get_class(str(source_class_id))
        if source is None:
            raise SourceClassNotFoundError(f"Class {source_class_id} not found")

        classes = await self.capacity.list_eligible_destinations(source)
        return [self._to_eligible(class_) for class_ in classes]

    def _parse_ids(
        self,
        source_class_id: UUID | str,
        destination_class_id: UUID | str,
        student_ids: Sequence[UUID | str],
    ) -> tuple[str, str, list[str]]:
        """Bring every id to canonical form so comparisons are exact."""
        try:
            return (
                canonical_id(source_class_id),
                canonical_id(destination_class_id),
                [canonical_id(student_id) for student_id in student_ids],
            )
        except ValueError:
            logger.warning(
                "Rejected batch transfer: malformed id, source=%s, destination=%s",
                source_class_id,
                destination_class_id,
            )
            raise InvalidTransferRequestError("Class and student ids must be UUIDs")

    def _validate_request(
        self,
        source_id: str,
        destination_id: str,
        student_ids: list[str],
    ) -> None:
        """Reject malformed requests before touching the database."""
        problem = None
        if not student_ids:
            problem = "At least one student is required"
        elif len(student_ids) > self.settings.max_batch_size:
            problem = (
                f"Cannot transfer more than {self.settings.max_batch_size} "
                "students at once"
            )
        elif len(set(student_ids)) != len(student_ids):
            problem = "Student list contains duplicates"
        elif source_id == destination_id:
            problem = "Source and destination classes must differ"

        if problem is not None:
            logger.warning(
                "Rejected batch transfer: source=%s, destination=%s, reason=%s",
                source_id,
                destination_id,
                problem,
            )
            raise InvalidTransferRequestError(problem)

    def _validate_classes(
        self,
        source: SchoolClass | None,
        destination: SchoolClass | None,
        batch_size: int,
    ) -> tuple[SchoolClass, SchoolClass]:
        """Apply the class-level checks in order, failing on the first."""
        error = None
        if source is None:
            error = SourceClassNotFoundError("Source class not found")
        elif not source.is_active:
            error = SourceClassInactiveError(f"Class {source.name} is not active")
        elif destination is None:
            error = DestinationClassNotFoundError("Destination class not found")
        elif not destination.is_active:
            error = DestinationClassInactiveError(
                f"Class {destination.name} is not active"
            )
        elif source.grade != destination.grade:
            error = GradeMismatchError(
                f"Cannot transfer from grade {source.grade} to grade {destination.grade}"
            )
        elif not destination.can_accept(batch_size):
            error = CapacityExceededError(
                f"Class {destination.name} has {destination.available_capacity} "
                f"free seats, {batch_size} requested"
            )

        if error is not None:
            logger.warning("Rejected batch transfer: code=%s, %s", error.code.value, error)
            raise error

        return source, destination

    async def _check_student(
        self,
        student: Student | None,
        student_id: str,
        source_id: str,
        destination_id: str,
    ) -> tuple[Enrollment | None, TransferErrorCode | None]:
        """Run the per-student checks.

        Returns:
            The source enrollment to close, or the failure code.
        """
        if student is None:
            return None, TransferErrorCode.STUDENT_NOT_FOUND

        source_enrollment = await self.store.find_active(student_id, source_id)
        if source_enrollment is None:
            return None, TransferErrorCode.STUDENT_NOT_ENROLLED

        # Unreachable while uq_enrollments_active_student holds: the student
        # already has an ACTIVE row in the source class.
        if await self.store.find_active(student_id, destination_id) is not None:
            return None, TransferErrorCode.ALREADY_ENROLLED

        return source_enrollment, None

    async def _get_students(self, student_ids: list[str]) -> dict[str, Student]:
        """Load the batch's students, leaving out soft-deleted ones."""
        result = await self.db.execute(
            select(Student).where(
                Student.id.in_(student_ids),
                Student.deleted_at.is_(None),
            )
        )
        return {student.id: student for student in result.scalars().all()}

    def _to_eligible(self, class_: SchoolClass) -> EligibleClass:
        """Convert a class to an eligible-destination entry."""
        return EligibleClass(
            id=class_.id,
            name=class_.name,
            section=class_.section,
            grade=class_.grade,
            academic_year=class_.academic_year,
            capacity=class_.capacity,
            current_enrollment=class_.current_enrollment,
            available_capacity=class_.available_capacity,
        )
