# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment persistence.

EnrollmentStore only reads and writes enrollment rows. It enforces no
cross-student rule; the transfer, undo and enrollment services decide what
to write and own the transaction.
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.infrastructure.database.models import Enrollment, EnrollmentStatus

logger = logging.getLogger(__name__)


class EnrollmentStore:
    """Lookup and persistence of Enrollment rows.

    Attributes:
        db: Async database session.
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def find_active(
        self,
        student_id: str,
        class_id: str | None = None,
    ) -> Enrollment | None:
        """Find the student's ACTIVE enrollment, optionally in one class.

        Args:
            student_id: Student identifier.
            class_id: Restrict the lookup to this class.

        Returns:
            The active enrollment or None.
        """
        query = select(Enrollment).where(
            Enrollment.student_id == str(student_id),
            Enrollment.status == EnrollmentStatus.ACTIVE,
        )
        if class_id is not None:
            query = query.where(Enrollment.class_id == str(class_id))

        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def list_for_student(self, student_id: str) -> list[Enrollment]:
        """Get every enrollment of a student, newest first."""
        result = await self.db.execute(
            select(Enrollment)
            .where(Enrollment.student_id == str(student_id))
            .order_by(Enrollment.enrollment_date.desc(), Enrollment.created_at.desc())
        )
        return list(result.scalars().all())

    async def find_by_origin_transfer(
        self,
        student_id: str,
        transfer_id: str,
    ) -> Enrollment | None:
        """Find the enrollment a transfer created for a student."""
        result = await self.db.execute(
            select(Enrollment).where(
                Enrollment.student_id == str(student_id),
                Enrollment.origin_transfer_id == str(transfer_id),
            )
        )
        return result.scalar_one_or_none()

    async def find_by_exit_transfer(
        self,
        student_id: str,
        transfer_id: str,
    ) -> Enrollment | None:
        """Find the enrollment a transfer closed for a student."""
        result = await self.db.execute(
            select(Enrollment).where(
                Enrollment.student_id == str(student_id),
                Enrollment.exit_transfer_id == str(transfer_id),
            )
        )
        return result.scalar_one_or_none()

    async def save(self, enrollment: Enrollment) -> Enrollment:
        """Add or update an enrollment and flush it.

        Flushing per write keeps the ACTIVE-per-student unique index
        satisfied between the status flip of one row and the insert of the
        next.
        """
        self.db.add(enrollment)
        await self.db.flush()
        return enrollment

    async def delete(self, enrollment: Enrollment) -> None:
        """Delete an enrollment and flush the DELETE immediately."""
        await self.db.delete(enrollment)
        await self.db.flush()
        logger.debug(
            "Deleted enrollment: id=%s, student=%s, class=%s",
            enrollment.id,
            enrollment.student_id,
            enrollment.class_id,
        )
