# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Add batch transfer and undo support.

enrollment_history gains the transfer correlation columns, the acting user
and typed source/destination class columns. enrollments gains the ids of
the transfers that created and closed each row, plus a partial unique index
allowing at most one ACTIVE enrollment per student.

Migration strategy:
1. Add history columns, performed_by_user_id nullable
2. Backfill performed_by_user_id with the system user
3. Make performed_by_user_id NOT NULL
4. Add enrollment transfer columns and indexes

Revision ID: 002_add_transfer_undo_support
Revises: 001_initial_schema
Create Date: 2025-12-04
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "002_add_transfer_undo_support"
down_revision: str = "001_initial_schema"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

SYSTEM_USER_ID = "00000000-0000-0000-0000-000000000000"


def upgrade() -> None:
    """Add transfer/undo columns and indexes."""
    # Step 1: History columns
    for column in (
        "transfer_id",
        "undo_of_transfer_id",
        "performed_by_user_id",
        "source_class_id",
        "destination_class_id",
    ):
        op.add_column(
            "enrollment_history",
            sa.Column(column, postgresql.UUID(as_uuid=False), nullable=True),
        )

    # Step 2: Existing rows were written by the system
    op.execute(
        f"UPDATE enrollment_history SET performed_by_user_id = '{SYSTEM_USER_ID}' "
        "WHERE performed_by_user_id IS NULL"
    )

    # Step 3
    op.alter_column(
        "enrollment_history",
        "performed_by_user_id",
        nullable=False,
        existing_type=postgresql.UUID(as_uuid=False),
    )

    op.create_index(
        "ix_enrollment_history_transfer_id",
        "enrollment_history",
        ["transfer_id"],
        postgresql_where=sa.text("transfer_id IS NOT NULL"),
    )
    op.create_index(
        "ix_enrollment_history_undo_of_transfer_id",
        "enrollment_history",
        ["undo_of_transfer_id"],
        postgresql_where=sa.text("undo_of_transfer_id IS NOT NULL"),
    )
    op.create_index(
        "ix_enrollment_history_performed_at",
        "enrollment_history",
        [sa.text("performed_at DESC"), "student_id"],
    )

    # Step 4: Enrollment transfer links
    op.add_column(
        "enrollments",
        sa.Column("origin_transfer_id", postgresql.UUID(as_uuid=False), nullable=True),
    )
    op.add_column(
        "enrollments",
        sa.Column("exit_transfer_id", postgresql.UUID(as_uuid=False), nullable=True),
    )
    op.create_index(
        "uq_enrollments_active_student",
        "enrollments",
        ["student_id"],
        unique=True,
        postgresql_where=sa.text("status = 'ACTIVE'"),
    )


def downgrade() -> None:
    """Remove transfer/undo columns and indexes."""
    op.drop_index("uq_enrollments_active_student", table_name="enrollments")
    op.drop_column("enrollments", "exit_transfer_id")
    op.drop_column("enrollments", "origin_transfer_id")

    op.drop_index("ix_enrollment_history_performed_at", table_name="enrollment_history")
    op.drop_index("ix_enrollment_history_undo_of_transfer_id", table_name="enrollment_history")
    op.drop_index("ix_enrollment_history_transfer_id", table_name="enrollment_history")

    for column in (
        "destination_class_id",
        "source_class_id",
        "performed_by_user_id",
        "undo_of_transfer_id",
        "transfer_id",
    ):
        op.drop_column("enrollment_history", column)
