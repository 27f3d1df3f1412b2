# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Initial student database schema.

Creates students, classes, enrollments and enrollment_history.

Revision ID: 001_initial_schema
Revises:
Create Date: 2025-11-20
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _uuid_pk() -> sa.Column:
    return sa.Column(
        "id",
        postgresql.UUID(as_uuid=False),
        server_default=sa.text("gen_random_uuid()"),
        primary_key=True,
    )


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
    ]


def upgrade() -> None:
    """Create the base tables."""
    op.create_table(
        "students",
        _uuid_pk(),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("grade", sa.Integer, nullable=True),
        *_timestamps(),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
    )

    op.create_table(
        "classes",
        _uuid_pk(),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("section", sa.String(10), nullable=False),
        sa.Column("grade", sa.Integer, nullable=False),
        sa.Column("academic_year", sa.String(20), nullable=False),
        sa.Column("capacity", sa.Integer, nullable=True),
        sa.Column("current_enrollment", sa.Integer, nullable=False, server_default="0"),
        sa.Column("status", sa.String(20), nullable=False, server_default="ACTIVE"),
        sa.Column("version", sa.Integer, nullable=False, server_default="1"),
        *_timestamps(),
        sa.CheckConstraint("current_enrollment >= 0", name="ck_classes_current_enrollment_non_negative"),
        sa.CheckConstraint("grade BETWEEN 1 AND 12", name="ck_classes_grade_range"),
        sa.CheckConstraint("status IN ('ACTIVE', 'INACTIVE')", name="ck_classes_status"),
    )
    op.create_index("ix_classes_grade_status", "classes", ["grade", "status"])

    op.create_table(
        "enrollments",
        _uuid_pk(),
        sa.Column(
            "student_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("students.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "class_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("classes.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("enrollment_date", sa.Date, nullable=False, server_default=sa.text("CURRENT_DATE")),
        sa.Column("end_date", sa.Date, nullable=True),
        sa.Column("reason", sa.String(20), nullable=False, server_default="NEW"),
        sa.Column("status", sa.String(20), nullable=False, server_default="ACTIVE"),
        sa.Column("transfer_date", sa.Date, nullable=True),
        sa.Column("transfer_reason", sa.String(500), nullable=True),
        sa.Column("notes", sa.String(500), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "status IN ('ACTIVE', 'COMPLETED', 'TRANSFERRED', 'WITHDRAWN')",
            name="ck_enrollments_status",
        ),
        sa.CheckConstraint(
            "status != 'TRANSFERRED' OR "
            "(transfer_date IS NOT NULL AND transfer_reason IS NOT NULL)",
            name="ck_enrollments_transfer_fields",
        ),
    )
    op.create_index(
        "ix_enrollments_student_class_status",
        "enrollments",
        ["student_id", "class_id", "status"],
    )
    op.create_index("ix_enrollments_class_status", "enrollments", ["class_id", "status"])

    op.create_table(
        "enrollment_history",
        _uuid_pk(),
        sa.Column("student_id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("class_id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("action", sa.String(50), nullable=False),
        sa.Column("reason", sa.Text, nullable=True),
        sa.Column(
            "performed_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.CheckConstraint(
            "action IN ('ENROLLED', 'TRANSFERRED', 'WITHDRAWN', 'UNDO')",
            name="ck_enrollment_history_action",
        ),
    )
    op.create_index("ix_enrollment_history_class_id", "enrollment_history", ["class_id"])


def downgrade() -> None:
    """Drop the base tables."""
    op.drop_table("enrollment_history")
    op.drop_table("enrollments")
    op.drop_table("classes")
    op.drop_table("students")
