# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Mapping of domain errors to HTTP errors.

Every error keeps its symbolic code in the response body, including
requests that fail validation:

    {"detail": {"code": "CAPACITY_EXCEEDED", "message": "..."}}
"""

import logging

from fastapi import HTTPException, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from src.domains.enrollment.service import (
    AlreadyEnrolledError,
    ClassFullError,
    ClassInactiveError,
    ClassNotFoundError,
    EnrollmentServiceError,
    NotEnrolledError,
    StudentNotFoundError,
)
from src.domains.transfer.errors import TransferErrorCode, TransferServiceError

logger = logging.getLogger(__name__)

TRANSFER_STATUS_CODES: dict[TransferErrorCode, int] = {
    TransferErrorCode.INVALID_REQUEST: status.HTTP_400_BAD_REQUEST,
    TransferErrorCode.SOURCE_CLASS_INACTIVE: status.HTTP_400_BAD_REQUEST,
    TransferErrorCode.DESTINATION_CLASS_INACTIVE: status.HTTP_400_BAD_REQUEST,
    TransferErrorCode.GRADE_MISMATCH: status.HTTP_400_BAD_REQUEST,
    TransferErrorCode.UNDO_UNAUTHORIZED: status.HTTP_403_FORBIDDEN,
    TransferErrorCode.STUDENT_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    TransferErrorCode.SOURCE_CLASS_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    TransferErrorCode.DESTINATION_CLASS_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    TransferErrorCode.TRANSFER_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    TransferErrorCode.CAPACITY_EXCEEDED: status.HTTP_409_CONFLICT,
    TransferErrorCode.TRANSFER_ALREADY_UNDONE: status.HTTP_409_CONFLICT,
    TransferErrorCode.ALREADY_ENROLLED: status.HTTP_409_CONFLICT,
    TransferErrorCode.UNDO_CONFLICT: status.HTTP_409_CONFLICT,
    TransferErrorCode.STUDENT_NOT_ENROLLED: status.HTTP_409_CONFLICT,
    TransferErrorCode.UNDO_WINDOW_EXPIRED: status.HTTP_410_GONE,
}

# Enrollment errors reuse a transfer code where one fits.
ENROLLMENT_ERROR_CODES: dict[type[EnrollmentServiceError], tuple[int, str]] = {
    ClassNotFoundError: (status.HTTP_404_NOT_FOUND, "CLASS_NOT_FOUND"),
    StudentNotFoundError: (
        status.HTTP_404_NOT_FOUND,
        TransferErrorCode.STUDENT_NOT_FOUND.value,
    ),
    ClassInactiveError: (status.HTTP_400_BAD_REQUEST, "CLASS_INACTIVE"),
    ClassFullError: (
        status.HTTP_409_CONFLICT,
        TransferErrorCode.CAPACITY_EXCEEDED.value,
    ),
    AlreadyEnrolledError: (
        status.HTTP_409_CONFLICT,
        TransferErrorCode.ALREADY_ENROLLED.value,
    ),
    NotEnrolledError: (
        status.HTTP_409_CONFLICT,
        TransferErrorCode.STUDENT_NOT_ENROLLED.value,
    ),
}


def transfer_http_exception(error: TransferServiceError) -> HTTPException:
    """Convert a transfer service error to an HTTPException."""
    return HTTPException(
        status_code=TRANSFER_STATUS_CODES.get(error.code, status.HTTP_400_BAD_REQUEST),
        detail={"code": error.code.value, "message": error.message},
    )


def enrollment_http_exception(error: EnrollmentServiceError) -> HTTPException:
    """Convert an enrollment service error to an HTTPException."""
    status_code, code = ENROLLMENT_ERROR_CODES.get(
        type(error),
        (status.HTTP_400_BAD_REQUEST, TransferErrorCode.INVALID_REQUEST.value),
    )
    return HTTPException(
        status_code=status_code,
        detail={"code": code, "message": str(error)},
    )


async def request_validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """Answer malformed requests with 400 and the INVALID_REQUEST code.

    Covers bodies, path and query parameters that fail validation, such as
    a student id that is not a UUID. The individual pydantic errors are
    passed along under "errors".
    """
    errors = jsonable_encoder(exc.errors())
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = f"{location}: {first.get('msg')}" if location else "Invalid request"

    logger.warning("Invalid request: %s %s: %s", request.method, request.url.path, message)

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "detail": {
                "code": TransferErrorCode.INVALID_REQUEST.value,
                "message": message,
                "errors": errors,
            }
        },
    )
