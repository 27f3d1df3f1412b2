# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pydantic request/response models for the ClassRoster API."""

from src.models.common import ErrorDetail, ErrorResponse
from src.models.enrollment import (
    EnrollmentHistoryItem,
    EnrollmentHistoryResponse,
    EnrollmentResponse,
    EnrollStudentRequest,
    StudentEnrollmentHistoryResponse,
    WithdrawStudentRequest,
)
from src.models.transfer import (
    BatchTransferRequest,
    EligibleClass,
    FailedTransfer,
    SkippedStudent,
    StudentTransferRequest,
    TransferResult,
    UndoEligibility,
    UndoResult,
)

__all__ = [
    "BatchTransferRequest",
    "EligibleClass",
    "EnrollStudentRequest",
    "EnrollmentHistoryItem",
    "EnrollmentHistoryResponse",
    "EnrollmentResponse",
    "ErrorDetail",
    "ErrorResponse",
    "FailedTransfer",
    "SkippedStudent",
    "StudentEnrollmentHistoryResponse",
    "StudentTransferRequest",
    "TransferResult",
    "UndoEligibility",
    "UndoResult",
    "WithdrawStudentRequest",
]
