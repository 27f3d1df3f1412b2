# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment and enrollment history schemas."""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, Field


class EnrollStudentRequest(BaseModel):
    """Request to enroll a student in a class."""

    student_id: UUID
    notes: str | None = Field(default=None, max_length=500)


class WithdrawStudentRequest(BaseModel):
    """Optional body for a withdrawal."""

    reason: str | None = Field(default=None, max_length=500)


class EnrollmentResponse(BaseModel):
    """A student's enrollment in a class."""

    id: str
    class_id: str
    student_id: str
    student_name: str | None = None
    status: str
    reason: str
    enrollment_date: date
    end_date: date | None = None
    origin_transfer_id: str | None = None


class EnrollmentHistoryItem(BaseModel):
    """One ledger entry as shown in a class history."""

    id: str
    student_id: str
    student_name: str | None = None
    class_id: str
    action: str
    reason: str | None = None
    performed_at: datetime
    performed_by_user_id: str
    transfer_id: str | None = None
    undo_of_transfer_id: str | None = None
    source_class_id: str | None = None
    destination_class_id: str | None = None


class EnrollmentHistoryResponse(BaseModel):
    """Ledger entries touching a class, newest first."""

    class_id: str
    items: list[EnrollmentHistoryItem]
    total: int


class StudentEnrollmentHistoryResponse(BaseModel):
    """A student's enrollments across classes and the ledger entries behind them."""

    student_id: str
    student_name: str
    enrollments: list[EnrollmentResponse] = Field(description="Newest first")
    total_count: int
    active_count: int
    transferred_count: int
    withdrawn_count: int
    completed_count: int
    events: list[EnrollmentHistoryItem] = Field(description="Ledger entries, newest first")
