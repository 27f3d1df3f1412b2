# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Class capacity tracking.

Each class carries a denormalized count of its ACTIVE enrollments. The
tracker locks class rows before a transfer or undo reads that count and
moves seats between classes in the same transaction as the enrollment
writes.
"""

import logging

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.infrastructure.database.models import ClassStatus, SchoolClass

logger = logging.getLogger(__name__)


class ClassCapacityTracker:
    """Row locking and seat accounting for classes.

    Attributes:
        db: Async database session.
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def lock_classes(self, *class_ids: str) -> dict[str, SchoolClass]:
        """Lock class rows for the rest of the transaction.

        Rows are locked in ascending id order so two requests locking the
        same pair of classes always queue instead of deadlocking. Locked
        rows are re-read from the database, replacing any stale copy in the
        session.

        Args:
            *class_ids: Classes to lock. Unknown ids are left out.

        Returns:
            Locked classes keyed by id.
        """
        ids = sorted({str(class_id) for class_id in class_ids})
        result = await self.db.execute(
            select(SchoolClass)
            .where(SchoolClass.id.in_(ids))
            .order_by(SchoolClass.id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        classes = {class_.id: class_ for class_ in result.scalars().all()}
        logger.debug("Locked classes: requested=%s, found=%d", ids, len(classes))
        return classes

    async def get_class(self, class_id: str) -> SchoolClass | None:
        """Get a class without locking it."""
        result = await self.db.execute(
            select(SchoolClass).where(SchoolClass.id == str(class_id))
        )
        return result.scalar_one_or_none()

    async def list_eligible_destinations(self, source: SchoolClass) -> list[SchoolClass]:
        """List classes that can receive students from source.

        Args:
            source: The class students would leave.

        Returns:
            Other ACTIVE classes of the same grade with at least one free
            seat, sorted by name.
        """
        result = await self.db.execute(
            select(SchoolClass)
            .where(
                SchoolClass.id != source.id,
                SchoolClass.grade == source.grade,
                SchoolClass.status == ClassStatus.ACTIVE,
                or_(
                    SchoolClass.capacity.is_(None),
                    SchoolClass.capacity > SchoolClass.current_enrollment,
                ),
            )
            .order_by(SchoolClass.name, SchoolClass.section)
        )
        return list(result.scalars().all())

    @staticmethod
    def move_seat(from_class: SchoolClass, to_class: SchoolClass) -> None:
        """Move one active enrollment's seat between two classes."""
        to_class.increment_enrollment()
        from_class.decrement_enrollment()
