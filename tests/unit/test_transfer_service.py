# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the batch transfer service."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from src.core.config import TransferSettings
from src.domains.class_.capacity import ClassCapacityTracker
from src.domains.transfer.errors import (
    CapacityExceededError,
    InvalidTransferRequestError,
    StudentTransferError,
    TransferErrorCode,
)
from src.domains.transfer.service import TransferService
from src.infrastructure.database.models import (
    ClassStatus,
    Enrollment,
    EnrollmentAction,
    EnrollmentReason,
    EnrollmentStatus,
    SchoolClass,
)

NOW = datetime(2025, 12, 8, 9, 0, 0, tzinfo=timezone.utc)
DUPLICATE_ID = str(uuid4())


@pytest.fixture
def mock_db():
    """Create mock database session."""
    db = AsyncMock()
    db.add = MagicMock()
    db.delete = AsyncMock()
    db.flush = AsyncMock()
    db.commit = AsyncMock()
    db.execute = AsyncMock()
    return db


def make_class(name: str, grade: int = 7, capacity: int | None = 40, enrolled: int = 0):
    """Build an unsaved class."""
    return SchoolClass(
        id=str(uuid4()),
        name=name,
        section="A",
        grade=grade,
        academic_year="2025-2026",
        capacity=capacity,
        current_enrollment=enrolled,
        status=ClassStatus.ACTIVE,
    )


def make_student(name: str):
    """Build a mock student."""
    student = MagicMock()
    student.id = str(uuid4())
    student.display_name = name
    return student


@pytest.fixture
def source_class():
    """Class X with 38 of 40 seats taken."""
    return make_class("7 X", enrolled=38)


@pytest.fixture
def destination_class():
    """Class Y with 35 of 40 seats taken."""
    return make_class("7 Y", enrolled=35)


@pytest.fixture
def transfer_service(mock_db, source_class, destination_class):
    """Create transfer service with mocked collaborators."""
    service = TransferService(
        db=mock_db,
        settings=TransferSettings(undo_window_minutes=5, max_batch_size=100),
        clock=lambda: NOW,
    )
    service.capacity = MagicMock()
    service.capacity.lock_classes = AsyncMock(
        return_value={source_class.id: source_class, destination_class.id: destination_class}
    )
    service.capacity.move_seat = ClassCapacityTracker.move_seat
    service.store = MagicMock()
    service.store.save = AsyncMock(side_effect=lambda e: e)
    service.ledger = MagicMock()
    return service


def students_result(students):
    """Mock the result of the student lookup query."""
    result = MagicMock()
    result.scalars.return_value.all.return_value = students
    return result


class TestRequestValidation:
    """Request shape is checked before any query runs."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "student_ids",
        [
            [],
            [DUPLICATE_ID, DUPLICATE_ID],
            [DUPLICATE_ID, DUPLICATE_ID.upper()],
            [str(uuid4()) for _ in range(101)],
            ["not-a-uuid"],
        ],
        ids=["empty", "duplicates", "duplicates-differing-case", "too-many", "malformed"],
    )
    async def test_invalid_student_list(self, transfer_service, mock_db, student_ids):
        with pytest.raises(InvalidTransferRequestError) as exc_info:
            await transfer_service.batch_transfer(
                str(uuid4()), str(uuid4()), student_ids, str(uuid4())
            )

        assert exc_info.value.code == TransferErrorCode.INVALID_REQUEST
        transfer_service.capacity.lock_classes.assert_not_awaited()
        mock_db.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_same_source_and_destination(self, transfer_service, source_class):
        with pytest.raises(InvalidTransferRequestError):
            await transfer_service.batch_transfer(
                source_class.id, source_class.id, [str(uuid4())], str(uuid4())
            )

    @pytest.mark.asyncio
    async def test_batch_cap_follows_settings(self, mock_db, source_class, destination_class):
        service = TransferService(
            db=mock_db,
            settings=TransferSettings(max_batch_size=2),
        )

        with pytest.raises(InvalidTransferRequestError, match="more than 2"):
            await service.batch_transfer(
                source_class.id,
                destination_class.id,
                [str(uuid4()) for _ in range(3)],
                str(uuid4()),
            )


class TestBatchTransfer:
    """Tests for the per-student transfer loop."""

    @pytest.mark.asyncio
    async def test_capacity_checked_against_whole_batch(
        self, transfer_service, mock_db, source_class, destination_class
    ):
        destination_class.current_enrollment = 39

        with pytest.raises(CapacityExceededError):
            await transfer_service.batch_transfer(
                source_class.id,
                destination_class.id,
                [str(uuid4()) for _ in range(3)],
                str(uuid4()),
            )

        mock_db.commit.assert_not_awaited()
        assert destination_class.current_enrollment == 39

    @pytest.mark.asyncio
    async def test_successful_batch(
        self, transfer_service, mock_db, source_class, destination_class
    ):
        students = [make_student("Ada Lovelace"), make_student("Alan Turing")]
        mock_db.execute.return_value = students_result(students)
        enrollments = {
            s.id: Enrollment(
                id=str(uuid4()),
                student_id=s.id,
                class_id=source_class.id,
                status=EnrollmentStatus.ACTIVE,
            )
            for s in students
        }

        async def find_active(student_id, class_id=None):
            if class_id == source_class.id:
                return enrollments[student_id]
            return None

        transfer_service.store.find_active = AsyncMock(side_effect=find_active)
        acting_user_id = str(uuid4())

        result = await transfer_service.batch_transfer(
            source_class.id,
            destination_class.id,
            [s.id for s in students],
            acting_user_id,
        )

        assert result.successful_transfers == 2
        assert result.failed_transfers == []
        assert result.transferred_at == NOW
        assert source_class.current_enrollment == 36
        assert destination_class.current_enrollment == 37

        for enrollment in enrollments.values():
            assert enrollment.status == EnrollmentStatus.TRANSFERRED
            assert enrollment.exit_transfer_id == result.transfer_id
            assert enrollment.transfer_date == NOW.date()

        created = [
            call.args[0]
            for call in transfer_service.store.save.await_args_list
            if call.args[0].status == EnrollmentStatus.ACTIVE
        ]
        assert len(created) == 2
        assert all(e.class_id == destination_class.id for e in created)
        assert all(e.reason == EnrollmentReason.TRANSFER for e in created)
        assert all(e.origin_transfer_id == result.transfer_id for e in created)

        assert transfer_service.ledger.append.call_count == 2
        for call in transfer_service.ledger.append.call_args_list:
            assert call.kwargs["action"] == EnrollmentAction.TRANSFERRED
            assert call.kwargs["transfer_id"] == result.transfer_id
            assert call.kwargs["performed_by_user_id"] == acting_user_id
            assert call.kwargs["performed_at"] == NOW

        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_student_already_in_destination(
        self, transfer_service, mock_db, source_class, destination_class
    ):
        student = make_student("Grace Hopper")
        mock_db.execute.return_value = students_result([student])
        transfer_service.store.find_active = AsyncMock(return_value=MagicMock())

        result = await transfer_service.batch_transfer(
            source_class.id, destination_class.id, [student.id], str(uuid4())
        )

        assert result.successful_transfers == 0
        assert result.failed_transfers[0].reason == TransferErrorCode.ALREADY_ENROLLED.value
        assert result.failed_transfers[0].student_name == "Grace Hopper"
        transfer_service.ledger.append.assert_not_called()
        assert destination_class.current_enrollment == 35

    @pytest.mark.asyncio
    async def test_failures_keep_request_order(
        self, transfer_service, mock_db, source_class, destination_class
    ):
        mock_db.execute.return_value = students_result([])
        ids = [str(uuid4()) for _ in range(3)]

        result = await transfer_service.batch_transfer(
            source_class.id, destination_class.id, ids, str(uuid4())
        )

        assert [f.student_id for f in result.failed_transfers] == ids
        assert all(
            f.reason == TransferErrorCode.STUDENT_NOT_FOUND.value
            for f in result.failed_transfers
        )


class TestTransferStudent:
    """Tests for transfer_student."""

    @pytest.mark.asyncio
    async def test_runs_as_batch_of_one(
        self, transfer_service, mock_db, source_class, destination_class
    ):
        student = make_student("Ada Lovelace")
        mock_db.execute.return_value = students_result([student])
        current = Enrollment(
            id=str(uuid4()),
            student_id=student.id,
            class_id=source_class.id,
            status=EnrollmentStatus.ACTIVE,
        )
        transfer_service.store.find_active = AsyncMock(side_effect=[current, current, None])

        result = await transfer_service.transfer_student(
            student.id.upper(), destination_class.id, str(uuid4())
        )

        assert result.source_class_id == source_class.id
        assert result.successful_transfers == 1
        transfer_service.capacity.lock_classes.assert_awaited_once_with(
            source_class.id, destination_class.id
        )

    @pytest.mark.asyncio
    async def test_per_student_failure_is_raised(
        self, transfer_service, mock_db, source_class, destination_class
    ):
        student = make_student("Grace Hopper")
        mock_db.execute.return_value = students_result([student])
        transfer_service.store.find_active = AsyncMock(
            return_value=MagicMock(class_id=source_class.id)
        )

        with pytest.raises(StudentTransferError) as exc_info:
            await transfer_service.transfer_student(
                student.id, destination_class.id, str(uuid4())
            )

        assert exc_info.value.code == TransferErrorCode.ALREADY_ENROLLED
        transfer_service.ledger.append.assert_not_called()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("student_id", ["not-a-uuid", str(uuid4())])
    async def test_unknown_student(self, transfer_service, mock_db, student_id):
        mock_db.execute.return_value = students_result([])

        with pytest.raises(StudentTransferError) as exc_info:
            await transfer_service.transfer_student(student_id, str(uuid4()), str(uuid4()))

        assert exc_info.value.code == TransferErrorCode.STUDENT_NOT_FOUND
        transfer_service.capacity.lock_classes.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_not_enrolled(self, transfer_service, mock_db):
        student = make_student("Alan Turing")
        mock_db.execute.return_value = students_result([student])
        transfer_service.store.find_active = AsyncMock(return_value=None)

        with pytest.raises(StudentTransferError) as exc_info:
            await transfer_service.transfer_student(student.id, str(uuid4()), str(uuid4()))

        assert exc_info.value.code == TransferErrorCode.STUDENT_NOT_ENROLLED
        mock_db.commit.assert_not_awaited()


class TestEligibleDestinations:
    """Tests for get_eligible_destinations."""

    @pytest.mark.asyncio
    async def test_converts_classes(self, transfer_service, source_class, destination_class):
        transfer_service.capacity.get_class = AsyncMock(return_value=source_class)
        transfer_service.capacity.list_eligible_destinations = AsyncMock(
            return_value=[destination_class]
        )

        eligible = await transfer_service.get_eligible_destinations(source_class.id)

        assert len(eligible) == 1
        assert eligible[0].id == destination_class.id
        assert eligible[0].available_capacity == 5
        transfer_service.capacity.list_eligible_destinations.assert_awaited_once_with(
            source_class
        )
