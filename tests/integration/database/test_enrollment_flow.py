# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Integration tests for enrollment, withdrawal and class history."""

from uuid import uuid4

import pytest

from src.domains.enrollment.service import (
    AlreadyEnrolledError,
    ClassFullError,
    ClassInactiveError,
    ClassNotFoundError,
    EnrollmentService,
    NotEnrolledError,
    StudentNotFoundError,
)
from src.domains.transfer.service import TransferService
from src.domains.transfer.undo import UndoService
from src.infrastructure.database.models import ClassStatus


@pytest.fixture
def enrollments(db_session, clock) -> EnrollmentService:
    """Create an enrollment service on the test session."""
    return EnrollmentService(db=db_session, clock=clock)


class TestEnrollStudent:
    """Tests for enroll_student."""

    @pytest.mark.asyncio
    async def test_enroll_new_student(self, enrollments, roster, acting_user_id):
        class_ = await roster.add_class("7 A")
        student = await roster.add_student()

        response = await enrollments.enroll_student(
            class_.id, student.id, acting_user_id, notes="Joined mid-term"
        )

        assert response.status == "ACTIVE"
        assert response.reason == "NEW"
        assert response.student_name == student.display_name
        assert (await roster.reload_class(class_.id)).current_enrollment == 1
        assert await roster.ledger_count() == 1
        await roster.assert_counts_consistent(class_)

    @pytest.mark.asyncio
    async def test_re_enrollment_after_withdrawal(self, enrollments, roster, acting_user_id):
        class_ = await roster.add_class("7 A")
        [student] = await roster.enroll(class_, 1)
        await enrollments.withdraw_student(class_.id, student.id, acting_user_id)

        response = await enrollments.enroll_student(class_.id, student.id, acting_user_id)

        assert response.reason == "RE_ENROLLMENT"
        await roster.assert_counts_consistent(class_)

    @pytest.mark.asyncio
    async def test_student_enrolled_elsewhere(self, enrollments, roster, acting_user_id):
        class_a = await roster.add_class("7 A")
        class_b = await roster.add_class("7 B")
        [student] = await roster.enroll(class_a, 1)

        with pytest.raises(AlreadyEnrolledError):
            await enrollments.enroll_student(class_b.id, student.id, acting_user_id)

        assert await roster.active_classes_of(student.id) == [class_a.id]

    @pytest.mark.asyncio
    async def test_full_class(self, enrollments, roster, acting_user_id):
        class_ = await roster.add_class("7 A", capacity=1)
        await roster.enroll(class_, 1)
        student = await roster.add_student()

        with pytest.raises(ClassFullError):
            await enrollments.enroll_student(class_.id, student.id, acting_user_id)

    @pytest.mark.asyncio
    async def test_inactive_class(self, enrollments, roster, acting_user_id):
        class_ = await roster.add_class("7 A", status=ClassStatus.INACTIVE)
        student = await roster.add_student()

        with pytest.raises(ClassInactiveError):
            await enrollments.enroll_student(class_.id, student.id, acting_user_id)

    @pytest.mark.asyncio
    async def test_unknown_class_and_student(self, enrollments, roster, acting_user_id):
        class_ = await roster.add_class("7 A")

        with pytest.raises(ClassNotFoundError):
            await enrollments.enroll_student(uuid4(), uuid4(), acting_user_id)
        with pytest.raises(StudentNotFoundError):
            await enrollments.enroll_student(class_.id, uuid4(), acting_user_id)


class TestWithdrawStudent:
    """Tests for withdraw_student."""

    @pytest.mark.asyncio
    async def test_withdraw(self, enrollments, roster, clock, acting_user_id):
        class_ = await roster.add_class("7 A")
        [student] = await roster.enroll(class_, 1)

        response = await enrollments.withdraw_student(
            class_.id, student.id, acting_user_id, reason="Moved away"
        )

        assert response.status == "WITHDRAWN"
        assert response.end_date == clock().date()
        assert await roster.active_classes_of(student.id) == []
        await roster.assert_counts_consistent(class_)

    @pytest.mark.asyncio
    async def test_not_enrolled(self, enrollments, roster, acting_user_id):
        class_ = await roster.add_class("7 A")
        student = await roster.add_student()

        with pytest.raises(NotEnrolledError):
            await enrollments.withdraw_student(class_.id, student.id, acting_user_id)


class TestClassHistory:
    """Tests for get_class_history."""

    @pytest.mark.asyncio
    async def test_history_covers_transfer_and_undo(
        self, db_session, enrollments, roster, clock, transfer_settings, acting_user_id
    ):
        x = await roster.add_class("7 X")
        y = await roster.add_class("7 Y")
        student = await roster.add_student()
        await enrollments.enroll_student(x.id, student.id, acting_user_id)

        clock.advance(minutes=1)
        transfers = TransferService(db=db_session, settings=transfer_settings, clock=clock)
        result = await transfers.batch_transfer(x.id, y.id, [student.id], acting_user_id)

        clock.advance(minutes=1)
        undo = UndoService(db=db_session, settings=transfer_settings, clock=clock)
        await undo.undo_transfer(result.transfer_id, acting_user_id)

        history = await enrollments.get_class_history(x.id)

        assert history.total == 3
        assert [item.action for item in history.items] == ["UNDO", "TRANSFERRED", "ENROLLED"]
        assert history.items[0].undo_of_transfer_id == result.transfer_id
        assert history.items[1].transfer_id == result.transfer_id
        assert history.items[1].destination_class_id == y.id
        assert all(item.student_name == student.display_name for item in history.items)

    @pytest.mark.asyncio
    async def test_history_limit(self, enrollments, roster, clock, acting_user_id):
        class_ = await roster.add_class("7 A")
        for _ in range(3):
            student = await roster.add_student()
            clock.advance(seconds=1)
            await enrollments.enroll_student(class_.id, student.id, acting_user_id)

        history = await enrollments.get_class_history(class_.id, limit=2)

        assert history.total == 2

    @pytest.mark.asyncio
    async def test_unknown_class(self, enrollments):
        with pytest.raises(ClassNotFoundError):
            await enrollments.get_class_history(uuid4())


class TestStudentHistory:
    """Tests for get_student_history."""

    @pytest.mark.asyncio
    async def test_history_across_classes(
        self, db_session, enrollments, roster, clock, transfer_settings, acting_user_id
    ):
        x = await roster.add_class("7 X")
        y = await roster.add_class("7 Y")
        student = await roster.add_student()
        await enrollments.enroll_student(x.id, student.id, acting_user_id)

        clock.advance(minutes=1)
        transfers = TransferService(db=db_session, settings=transfer_settings, clock=clock)
        await transfers.transfer_student(student.id, y.id, acting_user_id)

        clock.advance(minutes=1)
        await enrollments.withdraw_student(y.id, student.id, acting_user_id)

        history = await enrollments.get_student_history(student.id)

        assert history.student_name == student.display_name
        assert history.total_count == 2
        assert history.active_count == 0
        assert history.transferred_count == 1
        assert history.withdrawn_count == 1
        assert history.completed_count == 0
        assert {(e.class_id, e.status) for e in history.enrollments} == {
            (x.id, "TRANSFERRED"),
            (y.id, "WITHDRAWN"),
        }
        assert [event.action for event in history.events] == [
            "WITHDRAWN",
            "TRANSFERRED",
            "ENROLLED",
        ]

    @pytest.mark.asyncio
    async def test_other_students_excluded(self, enrollments, roster):
        class_ = await roster.add_class("7 A")
        student, _ = await roster.enroll(class_, 2)

        history = await enrollments.get_student_history(student.id.upper())

        assert history.student_id == student.id
        assert history.total_count == 1
        assert history.active_count == 1
        assert history.events == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("student_id", ["missing", "not-a-uuid"])
    async def test_unknown_student(self, enrollments, student_id):
        with pytest.raises(StudentNotFoundError):
            await enrollments.get_student_history(
                str(uuid4()) if student_id == "missing" else student_id
            )
