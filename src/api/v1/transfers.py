# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Transfer undo API endpoints.

- POST /{transfer_id}/undo - Undo a batch transfer
- GET /{transfer_id}/undo-eligibility - Check whether a transfer can be undone

Only the user who performed a transfer can undo it, within the undo window.
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Request

from src.api.dependencies import DB, TransferUser
from src.api.errors import transfer_http_exception
from src.api.middleware.rate_limit import RATE_LIMIT_TRANSFER, rate_limit
from src.domains.transfer.errors import TransferServiceError
from src.domains.transfer.undo import UndoService
from src.models.common import ErrorResponse
from src.models.transfer import UndoEligibility, UndoResult

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/{transfer_id}/undo",
    response_model=UndoResult,
    responses={
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        410: {"model": ErrorResponse},
    },
    summary="Undo transfer",
    description=(
        "Move the students of a transfer back to their source class. "
        "Students whose enrollment changed since are skipped."
    ),
)
@rate_limit(RATE_LIMIT_TRANSFER)
async def undo_transfer(
    request: Request,
    transfer_id: UUID,
    current_user: TransferUser,
    db: DB,
) -> UndoResult:
    """Undo a batch transfer.

    Args:
        request: HTTP request (used by the rate limiter).
        transfer_id: Transfer identifier.
        current_user: User holding the transfer permission.
        db: Database session.

    Returns:
        Undo result.

    Raises:
        HTTPException: With the symbolic error code if the undo is rejected.
    """
    logger.info("Undo requested: transfer=%s, by=%s", transfer_id, current_user.id)

    service = UndoService(db=db)

    try:
        return await service.undo_transfer(transfer_id, acting_user_id=current_user.id)
    except TransferServiceError as e:
        raise transfer_http_exception(e)


@router.get(
    "/{transfer_id}/undo-eligibility",
    response_model=UndoEligibility,
    summary="Check undo eligibility",
)
async def check_undo_eligibility(
    transfer_id: UUID,
    current_user: TransferUser,
    db: DB,
) -> UndoEligibility:
    """Report whether the current user could undo a transfer now.

    Args:
        transfer_id: Transfer identifier.
        current_user: User holding the transfer permission.
        db: Database session.

    Returns:
        Undo eligibility.
    """
    service = UndoService(db=db)
    return await service.check_undo(transfer_id, acting_user_id=current_user.id)
