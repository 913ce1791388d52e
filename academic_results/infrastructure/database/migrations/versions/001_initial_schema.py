# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Initial results database schema.

Revision ID: 001_initial
Revises: None
Create Date: 2025-01-15

Creates the reference tables read by the result engine, the results table
with its lifecycle constraints, and in-app notifications.
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "001_initial"
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


def _fk(column: str, target: str, ondelete: str) -> sa.Column:
    return sa.Column(
        column,
        postgresql.UUID(as_uuid=False),
        sa.ForeignKey(target, ondelete=ondelete),
        nullable=False,
    )


def upgrade() -> None:
    """Create results database tables."""
    # ==========================================================================
    # 1. Reference tables
    # ==========================================================================
    op.create_table(
        "students",
        _uuid_pk(),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), unique=True, nullable=True),
        sa.Column("matric_number", sa.String(50), unique=True, nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "courses",
        _uuid_pk(),
        sa.Column("code", sa.String(20), unique=True, nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("credits", sa.Integer, nullable=False, server_default="0"),
        *_timestamps(),
        sa.CheckConstraint("credits >= 0", name="ck_courses_credits_non_negative"),
    )

    op.create_table(
        "academic_sessions",
        _uuid_pk(),
        sa.Column("name", sa.String(50), unique=True, nullable=False),
        sa.Column("start_date", sa.Date, nullable=True),
        sa.Column("end_date", sa.Date, nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "enrollments",
        _uuid_pk(),
        _fk("student_id", "students.id", "CASCADE"),
        _fk("course_id", "courses.id", "CASCADE"),
        _fk("session_id", "academic_sessions.id", "CASCADE"),
        sa.Column("semester", sa.String(10), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        *_timestamps(),
        sa.UniqueConstraint(
            "student_id", "course_id", "session_id", "semester",
            name="uq_enrollments_student_course_term",
        ),
        sa.CheckConstraint(
            "status IN ('active', 'dropped', 'completed')",
            name="ck_enrollments_valid_status",
        ),
        sa.CheckConstraint(
            "semester IN ('first', 'second')",
            name="ck_enrollments_valid_semester",
        ),
    )

    # ==========================================================================
    # 2. results table
    # ==========================================================================
    op.create_table(
        "results",
        _uuid_pk(),
        _fk("student_id", "students.id", "RESTRICT"),
        _fk("course_id", "courses.id", "RESTRICT"),
        _fk("session_id", "academic_sessions.id", "RESTRICT"),
        sa.Column("semester", sa.String(10), nullable=False),
        sa.Column("ca_score", sa.Numeric(5, 2), nullable=False),
        sa.Column("exam_score", sa.Numeric(5, 2), nullable=False),
        sa.Column("total_score", sa.Numeric(5, 2), nullable=False),
        sa.Column("grade", sa.String(2), nullable=False),
        sa.Column("grade_points", sa.Numeric(3, 2), nullable=False),
        sa.Column("entered_by", sa.String(64), nullable=False),
        sa.Column("approved_by_hod", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("hod_approved_by", sa.String(64), nullable=True),
        sa.Column("hod_approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("approved_by_admin", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("admin_approved_by", sa.String(64), nullable=True),
        sa.Column("admin_approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("hod_rejection_reason", sa.Text, nullable=True),
        sa.Column("hod_rejected_by", sa.String(64), nullable=True),
        sa.Column("hod_rejected_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_published", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("published_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint(
            "student_id", "course_id", "session_id", "semester",
            name="uq_results_student_course_term",
        ),
        sa.CheckConstraint("ca_score >= 0 AND ca_score <= 30", name="ck_results_ca_score_range"),
        sa.CheckConstraint(
            "exam_score >= 0 AND exam_score <= 70", name="ck_results_exam_score_range"
        ),
        sa.CheckConstraint(
            "total_score >= 0 AND total_score <= 100", name="ck_results_total_score_range"
        ),
        sa.CheckConstraint(
            "total_score = ca_score + exam_score", name="ck_results_total_is_sum"
        ),
        sa.CheckConstraint("semester IN ('first', 'second')", name="ck_results_valid_semester"),
        sa.CheckConstraint(
            "NOT approved_by_admin OR approved_by_hod",
            name="ck_results_admin_after_hod",
        ),
        sa.CheckConstraint(
            "NOT is_published OR (approved_by_hod AND approved_by_admin)",
            name="ck_results_published_requires_approval",
        ),
    )
    op.create_index("ix_results_student_published", "results", ["student_id", "is_published"])
    op.create_index("ix_results_session_semester", "results", ["session_id", "semester"])

    # ==========================================================================
    # 3. notifications table
    # ==========================================================================
    op.create_table(
        "notifications",
        _uuid_pk(),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("notification_type", sa.String(50), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("message", sa.Text, nullable=False),
        sa.Column("is_read", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
    )
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"])


def downgrade() -> None:
    """Drop results database tables."""
    op.drop_index("ix_notifications_user_id", table_name="notifications")
    op.drop_table("notifications")
    op.drop_index("ix_results_session_semester", table_name="results")
    op.drop_index("ix_results_student_published", table_name="results")
    op.drop_table("results")
    op.drop_table("enrollments")
    op.drop_table("academic_sessions")
    op.drop_table("courses")
    op.drop_table("students")
