# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Append-only enrollment history ledger.

Every enrollment-affecting action appends one EnrollmentHistory row per
student. Rows are never updated or deleted. A batch transfer is rebuilt from
the TRANSFERRED rows sharing its transfer_id, and it counts as undone as
soon as one UNDO row names it in undo_of_transfer_id.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.infrastructure.database.models import EnrollmentAction, EnrollmentHistory
from src.utils.datetime import ensure_utc

logger = logging.getLogger(__name__)


@dataclass
class TransferRecord:
    """A batch transfer reconstructed from its ledger rows.

    Attributes:
        transfer_id: Correlation id shared by the batch.
        source_class_id: Class the students left.
        destination_class_id: Class the students joined.
        performed_by_user_id: User who ran the transfer.
        transferred_at: Timestamp of the earliest row in the batch.
        student_ids: Students moved, in ledger order.
    """

    transfer_id: str
    source_class_id: str
    destination_class_id: str
    performed_by_user_id: str
    transferred_at: datetime
    student_ids: list[str] = field(default_factory=list)


class EnrollmentLedger:
    """Reads and appends enrollment history.

    Attributes:
        db: Async database session.
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    def append(
        self,
        *,
        student_id: str,
        class_id: str,
        action: EnrollmentAction,
        performed_by_user_id: str,
        performed_at: datetime | None = None,
        reason: str | None = None,
        transfer_id: str | None = None,
        undo_of_transfer_id: str | None = None,
        source_class_id: str | None = None,
        destination_class_id: str | None = None,
    ) -> EnrollmentHistory:
        """Add a ledger row to the session.

        The row is written with the next flush or commit.

        Returns:
            The pending EnrollmentHistory row.
        """
        record = EnrollmentHistory(
            student_id=str(student_id),
            class_id=str(class_id),
            action=action,
            performed_by_user_id=str(performed_by_user_id),
            reason=reason,
            transfer_id=transfer_id,
            undo_of_transfer_id=undo_of_transfer_id,
            source_class_id=source_class_id,
            destination_class_id=destination_class_id,
        )
        if performed_at is not None:
            record.performed_at = performed_at

        self.db.add(record)
        return record

    async def find_by_transfer_id(self, transfer_id: str) -> list[EnrollmentHistory]:
        """Get the TRANSFERRED rows of a batch, oldest first."""
        result = await self.db.execute(
            select(EnrollmentHistory)
            .where(
                EnrollmentHistory.transfer_id == str(transfer_id),
                EnrollmentHistory.action == EnrollmentAction.TRANSFERRED,
            )
            .order_by(EnrollmentHistory.performed_at, EnrollmentHistory.id)
        )
        return list(result.scalars().all())

    async def is_undone(self, transfer_id: str) -> bool:
        """Check whether any UNDO row references the transfer."""
        result = await self.db.execute(
            select(func.count())
            .select_from(EnrollmentHistory)
            .where(EnrollmentHistory.undo_of_transfer_id == str(transfer_id))
        )
        return (result.scalar() or 0) > 0

    async def load_transfer(self, transfer_id: str) -> TransferRecord | None:
        """Rebuild a batch transfer from its ledger rows.

        Args:
            transfer_id: Transfer correlation id.

        Returns:
            The transfer, or None when no rows carry this id.
        """
        records = await self.find_by_transfer_id(transfer_id)
        if not records:
            return None

        first = records[0]
        return TransferRecord(
            transfer_id=str(transfer_id),
            source_class_id=first.source_class_id,
            destination_class_id=first.destination_class_id or first.class_id,
            performed_by_user_id=first.performed_by_user_id,
            transferred_at=min(ensure_utc(r.performed_at) for r in records),
            student_ids=[r.student_id for r in records],
        )

    async def list_for_class(
        self,
        class_id: str,
        limit: int = 100,
    ) -> list[EnrollmentHistory]:
        """Get ledger rows touching a class, newest first.

        A row touches the class when it was recorded against it or names it
        as the source or destination of a transfer.
        """
        class_id = str(class_id)
        result = await self.db.execute(
            select(EnrollmentHistory)
            .where(
                or_(
                    EnrollmentHistory.class_id == class_id,
                    EnrollmentHistory.source_class_id == class_id,
                    EnrollmentHistory.destination_class_id == class_id,
                )
            )
            .order_by(EnrollmentHistory.performed_at.desc(), EnrollmentHistory.id)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def list_for_student(
        self,
        student_id: str,
        limit: int = 100,
    ) -> list[EnrollmentHistory]:
        """Get ledger rows recorded for a student, newest first."""
        result = await self.db.execute(
            select(EnrollmentHistory)
            .where(EnrollmentHistory.student_id == str(student_id))
            .order_by(EnrollmentHistory.performed_at.desc(), EnrollmentHistory.id)
            .limit(limit)
        )
        return list(result.scalars().all())
