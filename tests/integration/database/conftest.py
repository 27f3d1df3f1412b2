# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest fixtures for database integration tests.

Provides an in-memory SQLite database built from the ORM metadata, a
controllable clock, and helpers to seed classes, students and enrollments.
"""

from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.infrastructure.database.connection import create_engine_for_url, create_sessionmaker
from src.infrastructure.database.models import (
    Base,
    ClassStatus,
    Enrollment,
    EnrollmentHistory,
    EnrollmentStatus,
    SchoolClass,
    Student,
)

SQLITE_URL = "sqlite+aiosqlite:///:memory:"


class FrozenClock:
    """Clock that only moves when told to."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest_asyncio.fixture(scope="function")
async def db_engine():
    """Create an in-memory SQLite engine with all tables."""
    engine = create_engine_for_url(SQLITE_URL)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create an async session configured like the application's."""
    sessionmaker = create_sessionmaker(db_engine)

    async with sessionmaker() as session:
        yield session


@pytest.fixture
def clock() -> FrozenClock:
    """Provide a clock frozen at a fixed instant."""
    return FrozenClock(datetime(2025, 12, 8, 9, 0, 0, tzinfo=timezone.utc))


class RosterBuilder:
    """Seeds classes and enrolled students."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self._students = 0

    async def add_class(
        self,
        name: str,
        grade: int = 7,
        capacity: int | None = 40,
        section: str = "A",
        status: ClassStatus = ClassStatus.ACTIVE,
    ) -> SchoolClass:
        class_ = SchoolClass(
            name=name,
            section=section,
            grade=grade,
            academic_year="2025-2026",
            capacity=capacity,
            current_enrollment=0,
            status=status,
        )
        self.session.add(class_)
        await self.session.commit()
        return class_

    async def add_student(self, grade: int | None = 7) -> Student:
        self._students += 1
        student = Student(
            first_name="Student",
            last_name=f"{self._students:03d}",
            grade=grade,
        )
        self.session.add(student)
        await self.session.commit()
        return student

    async def enroll(self, class_: SchoolClass, count: int) -> list[Student]:
        """Create count students, each actively enrolled in class_."""
        students = []
        for _ in range(count):
            student = await self.add_student(grade=class_.grade)
            self.session.add(
                Enrollment(
                    student_id=student.id,
                    class_id=class_.id,
                    status=EnrollmentStatus.ACTIVE,
                )
            )
            class_.increment_enrollment()
            students.append(student)
        await self.session.commit()
        return students

    async def count_active(self, class_id: str) -> int:
        """Count ACTIVE enrollment rows pointing at a class."""
        result = await self.session.execute(
            select(func.count())
            .select_from(Enrollment)
            .where(
                Enrollment.class_id == class_id,
                Enrollment.status == EnrollmentStatus.ACTIVE,
            )
        )
        return result.scalar_one()

    async def active_classes_of(self, student_id: str) -> list[str]:
        """List the classes where a student has an ACTIVE enrollment."""
        result = await self.session.execute(
            select(Enrollment.class_id).where(
                Enrollment.student_id == student_id,
                Enrollment.status == EnrollmentStatus.ACTIVE,
            )
        )
        return list(result.scalars().all())

    async def reload_class(self, class_id: str) -> SchoolClass:
        """Re-read a class row from the database."""
        result = await self.session.execute(
            select(SchoolClass)
            .where(SchoolClass.id == class_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one()

    async def ledger_count(self) -> int:
        """Count all ledger rows."""
        result = await self.session.execute(
            select(func.count()).select_from(EnrollmentHistory)
        )
        return result.scalar_one()

    async def assert_counts_consistent(self, *classes: SchoolClass) -> None:
        """Check each class's counter against its ACTIVE rows."""
        for class_ in classes:
            fresh = await self.reload_class(class_.id)
            assert fresh.current_enrollment == await self.count_active(class_.id)


@pytest.fixture
def roster(db_session: AsyncSession) -> RosterBuilder:
    """Provide a builder bound to the test session."""
    return RosterBuilder(db_session)
