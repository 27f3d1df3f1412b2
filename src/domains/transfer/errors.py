# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Error codes and exceptions for batch transfer and undo.

Request-level failures are raised as TransferServiceError subclasses.
Per-student outcomes (STUDENT_NOT_FOUND, STUDENT_NOT_ENROLLED,
ALREADY_ENROLLED, UNDO_CONFLICT) are reported inside results instead, except
for a single-student transfer, which raises them as StudentTransferError.
"""

import enum


class TransferErrorCode(str, enum.Enum):
    """Symbolic error codes surfaced to API callers."""

    INVALID_REQUEST = "INVALID_REQUEST"
    STUDENT_NOT_FOUND = "STUDENT_NOT_FOUND"
    STUDENT_NOT_ENROLLED = "STUDENT_NOT_ENROLLED"
    ALREADY_ENROLLED = "ALREADY_ENROLLED"
    SOURCE_CLASS_NOT_FOUND = "SOURCE_CLASS_NOT_FOUND"
    DESTINATION_CLASS_NOT_FOUND = "DESTINATION_CLASS_NOT_FOUND"
    SOURCE_CLASS_INACTIVE = "SOURCE_CLASS_INACTIVE"
    DESTINATION_CLASS_INACTIVE = "DESTINATION_CLASS_INACTIVE"
    GRADE_MISMATCH = "GRADE_MISMATCH"
    CAPACITY_EXCEEDED = "CAPACITY_EXCEEDED"
    TRANSFER_NOT_FOUND = "TRANSFER_NOT_FOUND"
    UNDO_UNAUTHORIZED = "UNDO_UNAUTHORIZED"
    UNDO_WINDOW_EXPIRED = "UNDO_WINDOW_EXPIRED"
    TRANSFER_ALREADY_UNDONE = "TRANSFER_ALREADY_UNDONE"
    UNDO_CONFLICT = "UNDO_CONFLICT"


class TransferServiceError(Exception):
    """Base exception for transfer service errors.

    Attributes:
        code: Symbolic error code.
        message: Human-readable description.
    """

    code: TransferErrorCode = TransferErrorCode.INVALID_REQUEST

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidTransferRequestError(TransferServiceError):
    """Raised when the request is empty, oversized or has duplicates."""

    code = TransferErrorCode.INVALID_REQUEST


class SourceClassNotFoundError(TransferServiceError):
    """Raised when the source class does not exist."""

    code = TransferErrorCode.SOURCE_CLASS_NOT_FOUND


class SourceClassInactiveError(TransferServiceError):
    """Raised when the source class is not active."""

    code = TransferErrorCode.SOURCE_CLASS_INACTIVE


class DestinationClassNotFoundError(TransferServiceError):
    """Raised when the destination class does not exist."""

    code = TransferErrorCode.DESTINATION_CLASS_NOT_FOUND


class DestinationClassInactiveError(TransferServiceError):
    """Raised when the destination class is not active."""

    code = TransferErrorCode.DESTINATION_CLASS_INACTIVE


class GradeMismatchError(TransferServiceError):
    """Raised when source and destination are different grades."""

    code = TransferErrorCode.GRADE_MISMATCH


class CapacityExceededError(TransferServiceError):
    """Raised when the destination cannot take the whole batch."""

    code = TransferErrorCode.CAPACITY_EXCEEDED


class TransferNotFoundError(TransferServiceError):
    """Raised when no ledger records exist for a transfer id."""

    code = TransferErrorCode.TRANSFER_NOT_FOUND


class UndoUnauthorizedError(TransferServiceError):
    """Raised when someone other than the original actor tries to undo."""

    code = TransferErrorCode.UNDO_UNAUTHORIZED


class UndoWindowExpiredError(TransferServiceError):
    """Raised when the undo window has elapsed."""

    code = TransferErrorCode.UNDO_WINDOW_EXPIRED


class TransferAlreadyUndoneError(TransferServiceError):
    """Raised when a transfer has already been undone."""

    code = TransferErrorCode.TRANSFER_ALREADY_UNDONE


class StudentTransferError(TransferServiceError):
    """Raised when a single-student transfer leaves the student in place.

    The code is the per-student reason a batch would report, such as
    STUDENT_NOT_FOUND or STUDENT_NOT_ENROLLED.
    """

    def __init__(self, code: TransferErrorCode, message: str) -> None:
        super().__init__(message)
        self.code = code
