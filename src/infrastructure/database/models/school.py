# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Class, enrollment and enrollment history models.

Tables:
    classes: Class sections with a denormalized active-enrollment count.
    enrollments: Student x class rows with a lifecycle status.
    enrollment_history: Append-only ledger of enrollment actions.
"""

import enum
from datetime import date, datetime

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Uuid,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from src.infrastructure.database.models.base import (
    Base,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
)
from src.utils.datetime import utc_now, utc_today


class ClassStatus(str, enum.Enum):
    """Lifecycle status of a class."""

    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class EnrollmentStatus(str, enum.Enum):
    """Lifecycle status of an enrollment row."""

    ACTIVE = "ACTIVE"
    TRANSFERRED = "TRANSFERRED"
    WITHDRAWN = "WITHDRAWN"
    COMPLETED = "COMPLETED"


class EnrollmentReason(str, enum.Enum):
    """Why an enrollment row was created."""

    NEW = "NEW"
    TRANSFER = "TRANSFER"
    PROMOTION = "PROMOTION"
    RE_ENROLLMENT = "RE_ENROLLMENT"


class EnrollmentAction(str, enum.Enum):
    """Kind of ledger entry."""

    ENROLLED = "ENROLLED"
    TRANSFERRED = "TRANSFERRED"
    WITHDRAWN = "WITHDRAWN"
    UNDO = "UNDO"


class SchoolClass(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """A class section with capacity tracking.

    current_enrollment mirrors the number of ACTIVE enrollments pointing at
    this class. It is only changed through increment_enrollment() and
    decrement_enrollment(), in the same transaction as the enrollment write.
    """

    __tablename__ = "classes"
    __table_args__ = (
        CheckConstraint("current_enrollment >= 0", name="current_enrollment_non_negative"),
        CheckConstraint("grade BETWEEN 1 AND 12", name="grade_range"),
        Index("ix_classes_grade_status", "grade", "status"),
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    section: Mapped[str] = mapped_column(String(10), nullable=False)
    grade: Mapped[int] = mapped_column(Integer, nullable=False)
    academic_year: Mapped[str] = mapped_column(String(20), nullable=False)
    capacity: Mapped[int | None] = mapped_column(Integer, nullable=True)
    current_enrollment: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[ClassStatus] = mapped_column(
        Enum(ClassStatus, name="class_status", native_enum=False, length=20),
        nullable=False,
        default=ClassStatus.ACTIVE,
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    __mapper_args__ = {"version_id_col": version}

    @property
    def is_active(self) -> bool:
        """Check if the class accepts enrollments."""
        return self.status == ClassStatus.ACTIVE

    @property
    def available_capacity(self) -> int | None:
        """Free seats, or None when the class has no capacity limit."""
        if self.capacity is None:
            return None
        return max(self.capacity - self.current_enrollment, 0)

    def can_accept(self, count: int = 1) -> bool:
        """Check whether count more students fit in this class."""
        available = self.available_capacity
        return available is None or available >= count

    def increment_enrollment(self) -> None:
        """Record one more active enrollment."""
        self.current_enrollment += 1

    def decrement_enrollment(self) -> None:
        """Record one less active enrollment, never going below zero."""
        if self.current_enrollment > 0:
            self.current_enrollment -= 1

    def __repr__(self) -> str:
        return (
            f"<SchoolClass(id={self.id}, name={self.name!r}, grade={self.grade}, "
            f"enrollment={self.current_enrollment}/{self.capacity})>"
        )


class Enrollment(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """One student's membership of one class for a period.

    A transfer never deletes the source row: it flips it to TRANSFERRED and
    stamps exit_transfer_id, then creates a new ACTIVE row in the destination
    stamped with origin_transfer_id.
    """

    __tablename__ = "enrollments"
    __table_args__ = (
        CheckConstraint(
            "status != 'TRANSFERRED' OR "
            "(transfer_date IS NOT NULL AND transfer_reason IS NOT NULL)",
            name="transfer_fields",
        ),
        Index("ix_enrollments_student_class_status", "student_id", "class_id", "status"),
        Index("ix_enrollments_class_status", "class_id", "status"),
        Index(
            "uq_enrollments_active_student",
            "student_id",
            unique=True,
            postgresql_where=text("status = 'ACTIVE'"),
            sqlite_where=text("status = 'ACTIVE'"),
        ),
    )

    student_id: Mapped[str] = mapped_column(
        Uuid(as_uuid=False),
        ForeignKey("students.id", ondelete="CASCADE"),
        nullable=False,
    )
    class_id: Mapped[str] = mapped_column(
        Uuid(as_uuid=False),
        ForeignKey("classes.id", ondelete="CASCADE"),
        nullable=False,
    )
    enrollment_date: Mapped[date] = mapped_column(Date, nullable=False, default=utc_today)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    reason: Mapped[EnrollmentReason] = mapped_column(
        Enum(EnrollmentReason, name="enrollment_reason", native_enum=False, length=20),
        nullable=False,
        default=EnrollmentReason.NEW,
    )
    status: Mapped[EnrollmentStatus] = mapped_column(
        Enum(EnrollmentStatus, name="enrollment_status", native_enum=False, length=20),
        nullable=False,
        default=EnrollmentStatus.ACTIVE,
    )
    transfer_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    transfer_reason: Mapped[str | None] = mapped_column(String(500), nullable=True)
    origin_transfer_id: Mapped[str | None] = mapped_column(Uuid(as_uuid=False), nullable=True)
    exit_transfer_id: Mapped[str | None] = mapped_column(Uuid(as_uuid=False), nullable=True)
    notes: Mapped[str | None] = mapped_column(String(500), nullable=True)

    @property
    def is_active(self) -> bool:
        """Check if this is the student's current enrollment."""
        return self.status == EnrollmentStatus.ACTIVE

    def mark_transferred(self, transfer_id: str, reason: str, on: date) -> None:
        """Close this enrollment because the student moved to another class."""
        self.status = EnrollmentStatus.TRANSFERRED
        self.transfer_date = on
        self.transfer_reason = reason
        self.exit_transfer_id = transfer_id
        self.end_date = on

    def restore_active(self) -> None:
        """Reopen this enrollment after its transfer was undone."""
        self.status = EnrollmentStatus.ACTIVE
        self.transfer_date = None
        self.transfer_reason = None
        self.exit_transfer_id = None
        self.end_date = None

    def __repr__(self) -> str:
        return (
            f"<Enrollment(id={self.id}, student={self.student_id}, "
            f"class={self.class_id}, status={self.status})>"
        )


class EnrollmentHistory(Base, UUIDPrimaryKeyMixin):
    """Immutable ledger entry for an enrollment action.

    Records sharing a transfer_id form one batch transfer. UNDO records carry
    undo_of_transfer_id naming the transfer they reversed. Rows are only ever
    inserted.
    """

    __tablename__ = "enrollment_history"
    __table_args__ = (
        Index(
            "ix_enrollment_history_transfer_id",
            "transfer_id",
            postgresql_where=text("transfer_id IS NOT NULL"),
        ),
        Index(
            "ix_enrollment_history_undo_of_transfer_id",
            "undo_of_transfer_id",
            postgresql_where=text("undo_of_transfer_id IS NOT NULL"),
        ),
        Index("ix_enrollment_history_performed_at", "performed_at", "student_id"),
        Index("ix_enrollment_history_class_id", "class_id"),
    )

    student_id: Mapped[str] = mapped_column(Uuid(as_uuid=False), nullable=False)
    class_id: Mapped[str] = mapped_column(Uuid(as_uuid=False), nullable=False)
    action: Mapped[EnrollmentAction] = mapped_column(
        Enum(EnrollmentAction, name="enrollment_action", native_enum=False, length=50),
        nullable=False,
    )
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    performed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
    )
    performed_by_user_id: Mapped[str] = mapped_column(Uuid(as_uuid=False), nullable=False)
    transfer_id: Mapped[str | None] = mapped_column(Uuid(as_uuid=False), nullable=True)
    undo_of_transfer_id: Mapped[str | None] = mapped_column(Uuid(as_uuid=False), nullable=True)
    source_class_id: Mapped[str | None] = mapped_column(Uuid(as_uuid=False), nullable=True)
    destination_class_id: Mapped[str | None] = mapped_column(Uuid(as_uuid=False), nullable=True)

    def __repr__(self) -> str:
        return (
            f"<EnrollmentHistory(id={self.id}, student={self.student_id}, "
            f"action={self.action}, transfer={self.transfer_id})>"
        )
