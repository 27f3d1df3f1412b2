# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Undo of batch transfers.

This module provides the UndoService class for:
- Reversing a batch transfer inside the undo window
- Previewing whether a transfer can still be undone

A transfer is rebuilt from its ledger rows. Only the user who ran it may
undo it, only once, and only while the undo window is open. Each student is
then checked against the current enrollment state: a student who was moved
again or withdrawn since the transfer is skipped, the others are moved back.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config import TransferSettings, get_settings
from src.domains.class_.capacity import ClassCapacityTracker
from src.domains.enrollment.ledger import EnrollmentLedger, TransferRecord
from src.domains.enrollment.store import EnrollmentStore
from src.domains.transfer.errors import (
    TransferAlreadyUndoneError,
    TransferErrorCode,
    TransferNotFoundError,
    TransferServiceError,
    UndoUnauthorizedError,
    UndoWindowExpiredError,
)
from src.infrastructure.database.models import (
    Enrollment,
    EnrollmentAction,
    EnrollmentStatus,
    SchoolClass,
    canonical_id,
)
from src.models.transfer import SkippedStudent, UndoEligibility, UndoResult
from src.utils.datetime import time_since, utc_now

logger = logging.getLogger(__name__)


def _same_user(stored_id: str, acting_user_id: UUID | str) -> bool:
    """Compare user ids regardless of how the UUID is spelled."""
    try:
        return canonical_id(stored_id) == canonical_id(acting_user_id)
    except ValueError:
        return False


@dataclass
class _Reversal:
    """The two enrollment rows a transfer touched for one student."""

    student_id: str
    source_enrollment: Enrollment
    destination_enrollment: Enrollment


@dataclass
class _UndoPlan:
    """Students that can be moved back and students that must be skipped."""

    reversals: list[_Reversal] = field(default_factory=list)
    skipped: list[SkippedStudent] = field(default_factory=list)


class UndoService:
    """Service for undoing batch transfers.

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
        """Initialize undo service.

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

    @property
    def undo_window(self) -> timedelta:
        """How long after a transfer it can still be undone."""
        return timedelta(minutes=self.settings.undo_window_minutes)

    async def undo_transfer(
        self,
        transfer_id: UUID | str,
        acting_user_id: str,
    ) -> UndoResult:
        """Move the students of a transfer back to their source class.

        Students whose enrollment changed after the transfer are skipped and
        listed in the result. An undo that moves nobody records nothing.

        Args:
            transfer_id: Transfer to reverse.
            acting_user_id: Authenticated user requesting the undo.

        Returns:
            Undo result with the number of students moved back.

        Raises:
            TransferNotFoundError: If no ledger rows carry the transfer id.
            UndoUnauthorizedError: If the user did not run the transfer.
            TransferAlreadyUndoneError: If the transfer was already undone.
            UndoWindowExpiredError: If the undo window has closed.
        """
        now = self._clock()
        transfer = await self._load_undoable(transfer_id, acting_user_id, now)
        acting_user_id = transfer.performed_by_user_id

        classes = await self.capacity.lock_classes(
            transfer.source_class_id,
            transfer.destination_class_id,
        )
        # A concurrent undo may have committed while this one waited for the locks.
        if await self.ledger.is_undone(transfer.transfer_id):
            logger.warning(
                "Rejected undo: transfer=%s, code=%s, by=%s",
                transfer.transfer_id,
                TransferErrorCode.TRANSFER_ALREADY_UNDONE.value,
                acting_user_id,
            )
            raise TransferAlreadyUndoneError(
                f"Transfer {transfer.transfer_id} has already been undone"
            )
        source = classes.get(transfer.source_class_id)
        destination = classes.get(transfer.destination_class_id)

        plan = await self._plan(transfer, source, destination)

        for reversal in plan.reversals:
            # The destination row goes first so the student never holds two
            # ACTIVE rows at flush time.
            await self.store.delete(reversal.destination_enrollment)
            reversal.source_enrollment.restore_active()
            await self.store.save(reversal.source_enrollment)

            self.capacity.move_seat(destination, source)
            self.ledger.append(
                student_id=reversal.student_id,
                class_id=transfer.source_class_id,
                action=EnrollmentAction.UNDO,
                performed_by_user_id=acting_user_id,
                performed_at=now,
                reason="Transfer undone",
                undo_of_transfer_id=transfer.transfer_id,
                source_class_id=transfer.source_class_id,
                destination_class_id=transfer.destination_class_id,
            )

        await self.db.commit()

        logger.info(
            "Transfer undone: transfer=%s, undone=%d, skipped=%d, by=%s",
            transfer.transfer_id,
            len(plan.reversals),
            len(plan.skipped),
            acting_user_id,
        )

        return UndoResult(
            transfer_id=transfer.transfer_id,
            undone_students=len(plan.reversals),
            source_class_id=transfer.source_class_id,
            undone_at=now,
            skipped_students=plan.skipped,
        )

    async def check_undo(
        self,
        transfer_id: UUID | str,
        acting_user_id: str,
    ) -> UndoEligibility:
        """Report whether undo_transfer() would currently succeed.

        Nothing is locked or written.

        Args:
            transfer_id: Transfer to inspect.
            acting_user_id: Authenticated user who would request the undo.

        Returns:
            Eligibility with the blocking error code, if any.
        """
        now = self._clock()

        try:
            transfer = await self._load_undoable(transfer_id, acting_user_id, now)
        except TransferServiceError as e:
            transfer = await self._find_transfer(transfer_id)
            return UndoEligibility(
                transfer_id=str(transfer_id),
                can_undo=False,
                reason=e.code.value,
                expires_at=self._expires_at(transfer),
            )

        source = await self.capacity.get_class(transfer.source_class_id)
        destination = await self.capacity.get_class(transfer.destination_class_id)
        plan = await self._plan(transfer, source, destination)

        undoable = len(plan.reversals)
        return UndoEligibility(
            transfer_id=transfer.transfer_id,
            can_undo=undoable > 0,
            reason=None if undoable else TransferErrorCode.UNDO_CONFLICT.value,
            expires_at=self._expires_at(transfer),
            undoable_students=undoable,
        )

    async def _find_transfer(self, transfer_id: UUID | str) -> TransferRecord | None:
        """Load a transfer by id; an id that is not a UUID matches nothing."""
        try:
            transfer_id = canonical_id(transfer_id)
        except ValueError:
            return None
        return await self.ledger.load_transfer(transfer_id)

    async def _load_undoable(
        self,
        transfer_id: UUID | str,
        acting_user_id: UUID | str,
        now: datetime,
    ) -> TransferRecord:
        """Load a transfer and apply the request-level undo checks in order."""
        transfer = await self._find_transfer(transfer_id)

        error = None
        if transfer is None:
            error = TransferNotFoundError(f"Transfer {transfer_id} not found")
        elif not _same_user(transfer.performed_by_user_id, acting_user_id):
            error = UndoUnauthorizedError(
                "Only the user who performed the transfer can undo it"
            )
        elif await self.ledger.is_undone(transfer.transfer_id):
            error = TransferAlreadyUndoneError(
                f"Transfer {transfer_id} has already been undone"
            )
        elif time_since(transfer.transferred_at, now) >= self.undo_window:
            error = UndoWindowExpiredError(
                f"Transfers can only be undone within "
                f"{self.settings.undo_window_minutes} minutes"
            )

        if error is not None:
            logger.warning(
                "Rejected undo: transfer=%s, code=%s, by=%s",
                transfer_id,
                error.code.value,
                acting_user_id,
            )
            raise error

        return transfer

    async def _plan(
        self,
        transfer: TransferRecord,
        source: SchoolClass | None,
        destination: SchoolClass | None,
    ) -> _UndoPlan:
        """Split the transfer's students into reversible and conflicting."""
        plan = _UndoPlan()

        for student_id in transfer.student_ids:
            reversal = None
            if source is not None and destination is not None:
                reversal = await self._find_reversal(transfer, student_id)

            if reversal is None:
                logger.warning(
                    "Skipping student in undo: transfer=%s, student=%s, reason=%s",
                    transfer.transfer_id,
                    student_id,
                    TransferErrorCode.UNDO_CONFLICT.value,
                )
                plan.skipped.append(
                    SkippedStudent(
                        student_id=student_id,
                        reason=TransferErrorCode.UNDO_CONFLICT.value,
                    )
                )
            else:
                plan.reversals.append(reversal)

        return plan

    async def _find_reversal(
        self,
        transfer: TransferRecord,
        student_id: str,
    ) -> _Reversal | None:
        """Find the rows to revert for a student, or None on conflict.

        The student must still hold the ACTIVE destination row the transfer
        created, and the source row the transfer closed must still be
        TRANSFERRED.
        """
        destination_enrollment = await self.store.find_by_origin_transfer(
            student_id, transfer.transfer_id
        )
        if (
            destination_enrollment is None
            or destination_enrollment.status != EnrollmentStatus.ACTIVE
            or destination_enrollment.class_id != transfer.destination_class_id
        ):
            return None

        source_enrollment = await self.store.find_by_exit_transfer(
            student_id, transfer.transfer_id
        )
        if (
            source_enrollment is None
            or source_enrollment.status != EnrollmentStatus.TRANSFERRED
            or source_enrollment.class_id != transfer.source_class_id
        ):
            return None

        return _Reversal(
            student_id=student_id,
            source_enrollment=source_enrollment,
            destination_enrollment=destination_enrollment,
        )

    def _expires_at(self, transfer: TransferRecord | None) -> datetime | None:
        """When the undo window of a transfer closes."""
        if transfer is None:
            return None
        return transfer.transferred_at + self.undo_window
