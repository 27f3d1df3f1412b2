# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Batch transfer and undo schemas.

Ids are typed as UUIDs here. The list rules (non-empty, size cap, no
duplicates) are checked by TransferService. Both kinds of rejection are
reported as 400 with the INVALID_REQUEST code.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class BatchTransferRequest(BaseModel):
    """Request to move students out of the class named in the URL."""

    destination_class_id: UUID = Field(description="Class receiving the students")
    student_ids: list[UUID] = Field(description="Students to move (1 to 100, no duplicates)")


class StudentTransferRequest(BaseModel):
    """Request to move one student out of their current class."""

    destination_class_id: UUID = Field(description="Class receiving the student")
    reason: str | None = Field(default=None, max_length=500)


class FailedTransfer(BaseModel):
    """A student that was not moved, with the reason code."""

    student_id: str
    student_name: str | None = None
    reason: str


class TransferResult(BaseModel):
    """Outcome of a batch transfer.

    The batch is a full success when failed_transfers is empty and a
    partial success otherwise.
    """

    transfer_id: str
    source_class_id: str
    destination_class_id: str
    successful_transfers: int
    failed_transfers: list[FailedTransfer] = Field(default_factory=list)
    transferred_at: datetime

    @property
    def is_partial(self) -> bool:
        """True when at least one student could not be moved."""
        return bool(self.failed_transfers)


class SkippedStudent(BaseModel):
    """A student left in place by an undo because its state changed."""

    student_id: str
    reason: str


class UndoResult(BaseModel):
    """Outcome of undoing a transfer."""

    transfer_id: str
    undone_students: int
    source_class_id: str
    undone_at: datetime
    skipped_students: list[SkippedStudent] = Field(default_factory=list)


class UndoEligibility(BaseModel):
    """Read-only preview of whether a transfer can still be undone."""

    transfer_id: str
    can_undo: bool
    reason: str | None = Field(
        default=None,
        description="Error code that would be returned by the undo, if any",
    )
    expires_at: datetime | None = None
    undoable_students: int = 0


class EligibleClass(BaseModel):
    """A class that can receive students from a given source class."""

    id: str
    name: str
    section: str
    grade: int
    academic_year: str
    capacity: int | None
    current_enrollment: int
    available_capacity: int | None
