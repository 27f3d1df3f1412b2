# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Class roster API endpoints.

Transfer endpoints:
- GET /{class_id}/eligible-destinations - Classes students can move to
- POST /{class_id}/batch-transfer - Move students to another class

Student enrollment endpoints:
- POST /{class_id}/students - Enroll a student
- POST /{class_id}/students/{student_id}/withdraw - Withdraw student
- GET /{class_id}/history - Enrollment history of the class

Write endpoints require the classes.transfer permission. Read endpoints
require an authenticated user.
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Query, Request, status

from src.api.dependencies import DB, AuthenticatedUser, TransferUser
from src.api.errors import enrollment_http_exception, transfer_http_exception
from src.api.middleware.rate_limit import RATE_LIMIT_TRANSFER, rate_limit
from src.domains.enrollment.service import EnrollmentService, EnrollmentServiceError
from src.domains.transfer.errors import TransferServiceError
from src.domains.transfer.service import TransferService
from src.models.common import ErrorResponse
from src.models.enrollment import (
    EnrollmentHistoryResponse,
    EnrollmentResponse,
    EnrollStudentRequest,
    WithdrawStudentRequest,
)
from src.models.transfer import BatchTransferRequest, EligibleClass, TransferResult

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "/{class_id}/eligible-destinations",
    response_model=list[EligibleClass],
    responses={404: {"model": ErrorResponse}},
    summary="List eligible destination classes",
    description="Active classes of the same grade with at least one free seat, sorted by name.",
)
async def get_eligible_destinations(
    class_id: UUID,
    current_user: AuthenticatedUser,
    db: DB,
) -> list[EligibleClass]:
    """List the classes a class's students can be transferred to.

    Args:
        class_id: Source class identifier.
        current_user: Authenticated user.
        db: Database session.

    Returns:
        Eligible destination classes.

    Raises:
        HTTPException: If the class is not found.
    """
    service = TransferService(db=db)

    try:
        return await service.get_eligible_destinations(class_id)
    except TransferServiceError as e:
        raise transfer_http_exception(e)


@router.post(
    "/{class_id}/batch-transfer",
    response_model=TransferResult,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
    summary="Batch transfer students",
    description=(
        "Move up to 100 students to another class of the same grade. "
        "Students that cannot be moved are listed in failed_transfers."
    ),
)
@rate_limit(RATE_LIMIT_TRANSFER)
async def batch_transfer(
    request: Request,
    class_id: UUID,
    data: BatchTransferRequest,
    current_user: TransferUser,
    db: DB,
) -> TransferResult:
    """Transfer students from this class to another.

    Args:
        request: HTTP request (used by the rate limiter).
        class_id: Source class identifier.
        data: Destination and students.
        current_user: User holding the transfer permission.
        db: Database session.

    Returns:
        Transfer result.

    Raises:
        HTTPException: With the symbolic error code if the batch is rejected.
    """
    logger.info(
        "Batch transfer requested: source=%s, destination=%s, students=%d, by=%s",
        class_id,
        data.destination_class_id,
        len(data.student_ids),
        current_user.id,
    )

    service = TransferService(db=db)

    try:
        return await service.batch_transfer(
            source_class_id=class_id,
            destination_class_id=data.destination_class_id,
            student_ids=data.student_ids,
            acting_user_id=current_user.id,
        )
    except TransferServiceError as e:
        raise transfer_http_exception(e)


@router.post(
    "/{class_id}/students",
    response_model=EnrollmentResponse,
    status_code=status.HTTP_201_CREATED,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
    summary="Enroll student",
)
async def enroll_student(
    class_id: UUID,
    data: EnrollStudentRequest,
    current_user: TransferUser,
    db: DB,
) -> EnrollmentResponse:
    """Enroll a student in a class.

    Args:
        class_id: Class identifier.
        data: Enrollment request.
        current_user: User holding the transfer permission.
        db: Database session.

    Returns:
        Enrollment response.

    Raises:
        HTTPException: If class/student not found, class full or already enrolled.
    """
    service = EnrollmentService(db=db)

    try:
        return await service.enroll_student(
            class_id=class_id,
            student_id=data.student_id,
            acting_user_id=current_user.id,
            notes=data.notes,
        )
    except EnrollmentServiceError as e:
        raise enrollment_http_exception(e)


@router.post(
    "/{class_id}/students/{student_id}/withdraw",
    response_model=EnrollmentResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
    summary="Withdraw student",
)
async def withdraw_student(
    class_id: UUID,
    student_id: UUID,
    current_user: TransferUser,
    db: DB,
    data: WithdrawStudentRequest | None = None,
) -> EnrollmentResponse:
    """Withdraw a student from a class.

    Args:
        class_id: Class identifier.
        student_id: Student identifier.
        current_user: User holding the transfer permission.
        db: Database session.
        data: Optional withdrawal reason.

    Returns:
        Updated enrollment.

    Raises:
        HTTPException: If class not found or student not enrolled.
    """
    service = EnrollmentService(db=db)

    try:
        return await service.withdraw_student(
            class_id=class_id,
            student_id=student_id,
            acting_user_id=current_user.id,
            reason=data.reason if data else None,
        )
    except EnrollmentServiceError as e:
        raise enrollment_http_exception(e)


@router.get(
    "/{class_id}/history",
    response_model=EnrollmentHistoryResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Class enrollment history",
)
async def get_class_history(
    class_id: UUID,
    current_user: AuthenticatedUser,
    db: DB,
    limit: int = Query(100, ge=1, le=500),
) -> EnrollmentHistoryResponse:
    """List ledger entries touching a class, newest first.

    Args:
        class_id: Class identifier.
        current_user: Authenticated user.
        db: Database session.
        limit: Maximum number of entries.

    Returns:
        Enrollment history.

    Raises:
        HTTPException: If class not found.
    """
    service = EnrollmentService(db=db)

    try:
        return await service.get_class_history(class_id, limit=limit)
    except EnrollmentServiceError as e:
        raise enrollment_http_exception(e)
