# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Transfer domain package.

This package provides batch student transfer functionality including:
- Batch transfer between classes of the same grade
- Time-windowed undo of a transfer
- Eligible destination lookup
"""

from src.domains.transfer.errors import (
    CapacityExceededError,
    DestinationClassInactiveError,
    DestinationClassNotFoundError,
    GradeMismatchError,
    InvalidTransferRequestError,
    SourceClassInactiveError,
    SourceClassNotFoundError,
    TransferAlreadyUndoneError,
    TransferErrorCode,
    TransferNotFoundError,
    TransferServiceError,
    UndoUnauthorizedError,
    UndoWindowExpiredError,
)
from src.domains.transfer.service import TransferService
from src.domains.transfer.undo import UndoService

__all__ = [
    "TransferService",
    "UndoService",
    "TransferErrorCode",
    "TransferServiceError",
    "InvalidTransferRequestError",
    "SourceClassNotFoundError",
    "SourceClassInactiveError",
    "DestinationClassNotFoundError",
    "DestinationClassInactiveError",
    "GradeMismatchError",
    "CapacityExceededError",
    "TransferNotFoundError",
    "UndoUnauthorizedError",
    "UndoWindowExpiredError",
    "TransferAlreadyUndoneError",
]
