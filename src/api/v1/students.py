# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Student API endpoints.

- GET /{student_id}/enrollment-history - Enrollments of one student
- POST /{student_id}/transfer - Move one student to another class
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Query, Request

from src.api.dependencies import DB, AuthenticatedUser, TransferUser
from src.api.errors import enrollment_http_exception, transfer_http_exception
from src.api.middleware.rate_limit import RATE_LIMIT_TRANSFER, rate_limit
from src.domains.enrollment.service import EnrollmentService, EnrollmentServiceError
from src.domains.transfer.errors import TransferServiceError
from src.domains.transfer.service import TransferService
from src.models.common import ErrorResponse
from src.models.enrollment import StudentEnrollmentHistoryResponse
from src.models.transfer import StudentTransferRequest, TransferResult

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "/{student_id}/enrollment-history",
    response_model=StudentEnrollmentHistoryResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Student enrollment history",
)
async def get_student_history(
    student_id: UUID,
    current_user: AuthenticatedUser,
    db: DB,
    limit: int = Query(100, ge=1, le=500),
) -> StudentEnrollmentHistoryResponse:
    """List a student's enrollments and ledger entries.

    Raises:
        HTTPException: If student not found.
    """
    service = EnrollmentService(db=db)

    try:
        return await service.get_student_history(student_id, limit=limit)
    except EnrollmentServiceError as e:
        raise enrollment_http_exception(e)


@router.post(
    "/{student_id}/transfer",
    response_model=TransferResult,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
    summary="Transfer one student",
    description=(
        "Move a student from their current class to another class of the "
        "same grade. The move can be undone like a batch transfer."
    ),
)
@rate_limit(RATE_LIMIT_TRANSFER)
async def transfer_student(
    request: Request,
    student_id: UUID,
    data: StudentTransferRequest,
    current_user: TransferUser,
    db: DB,
) -> TransferResult:
    """Transfer a single student.

    Args:
        request: HTTP request (used by the rate limiter).
        student_id: Student to move.
        data: Destination and optional reason.
        current_user: User holding the transfer permission.
        db: Database session.

    Returns:
        Transfer result.

    Raises:
        HTTPException: With the symbolic error code if the student was not moved.
    """
    logger.info(
        "Student transfer requested: student=%s, destination=%s, by=%s",
        student_id,
        data.destination_class_id,
        current_user.id,
    )

    service = TransferService(db=db)

    try:
        return await service.transfer_student(
            student_id=student_id,
            destination_class_id=data.destination_class_id,
            acting_user_id=current_user.id,
            reason=data.reason,
        )
    except TransferServiceError as e:
        raise transfer_http_exception(e)
