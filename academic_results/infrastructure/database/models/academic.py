# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Academic models: students, courses, sessions, enrollments, results.

Students, courses, sessions and enrollments are maintained by other
subsystems; the result engine only reads them. Results carry the lifecycle
invariants as table constraints so concurrent writers cannot break them.
"""

from datetime import date, datetime
from typing import Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from academic_results.infrastructure.database.models.base import (
    Base,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
)
from academic_results.utils.datetime import utc_now

SCORE = Numeric(5, 2, asdecimal=False)


class Student(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """Student identity."""

    __tablename__ = "students"

    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(255), unique=True, nullable=True)
    matric_number: Mapped[Optional[str]] = mapped_column(String(50), unique=True, nullable=True)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class Course(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """Course with its credit load."""

    __tablename__ = "courses"

    code: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    credits: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    __table_args__ = (
        CheckConstraint("credits >= 0", name="ck_courses_credits_non_negative"),
    )


class AcademicSession(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """Academic year, e.g. 2024/2025."""

    __tablename__ = "academic_sessions"

    name: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    start_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    end_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)


class Enrollment(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """Registration of a student in a course for a session."""

    __tablename__ = "enrollments"

    student_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("students.id", ondelete="CASCADE"),
        nullable=False,
    )
    course_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("courses.id", ondelete="CASCADE"),
        nullable=False,
    )
    session_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("academic_sessions.id", ondelete="CASCADE"),
        nullable=False,
    )
    semester: Mapped[str] = mapped_column(String(10), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="active")

    __table_args__ = (
        UniqueConstraint(
            "student_id", "course_id", "session_id", "semester",
            name="uq_enrollments_student_course_term",
        ),
        CheckConstraint(
            "status IN ('active', 'dropped', 'completed')",
            name="ck_enrollments_valid_status",
        ),
        CheckConstraint(
            "semester IN ('first', 'second')",
            name="ck_enrollments_valid_semester",
        ),
    )


class Result(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """Graded result of one student in one course and term."""

    __tablename__ = "results"

    student_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("students.id", ondelete="RESTRICT"),
        nullable=False,
    )
    course_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("courses.id", ondelete="RESTRICT"),
        nullable=False,
    )
    session_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("academic_sessions.id", ondelete="RESTRICT"),
        nullable=False,
    )
    semester: Mapped[str] = mapped_column(String(10), nullable=False)

    ca_score: Mapped[float] = mapped_column(SCORE, nullable=False)
    exam_score: Mapped[float] = mapped_column(SCORE, nullable=False)
    total_score: Mapped[float] = mapped_column(SCORE, nullable=False)
    grade: Mapped[str] = mapped_column(String(2), nullable=False)
    grade_points: Mapped[float] = mapped_column(Numeric(3, 2, asdecimal=False), nullable=False)
    entered_by: Mapped[str] = mapped_column(String(64), nullable=False)

    approved_by_hod: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    hod_approved_by: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    hod_approved_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    approved_by_admin: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    admin_approved_by: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    admin_approved_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    hod_rejection_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    hod_rejected_by: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    hod_rejected_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    is_published: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    published_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    course: Mapped[Course] = relationship(lazy="raise")
    academic_session: Mapped[AcademicSession] = relationship(lazy="raise")

    __table_args__ = (
        UniqueConstraint(
            "student_id", "course_id", "session_id", "semester",
            name="uq_results_student_course_term",
        ),
        CheckConstraint("ca_score >= 0 AND ca_score <= 30", name="ck_results_ca_score_range"),
        CheckConstraint(
            "exam_score >= 0 AND exam_score <= 70", name="ck_results_exam_score_range"
        ),
        CheckConstraint(
            "total_score >= 0 AND total_score <= 100", name="ck_results_total_score_range"
        ),
        CheckConstraint(
            "total_score = ca_score + exam_score", name="ck_results_total_is_sum"
        ),
        CheckConstraint(
            "semester IN ('first', 'second')",
            name="ck_results_valid_semester",
        ),
        CheckConstraint(
            "NOT approved_by_admin OR approved_by_hod",
            name="ck_results_admin_after_hod",
        ),
        CheckConstraint(
            "NOT is_published OR (approved_by_hod AND approved_by_admin)",
            name="ck_results_published_requires_approval",
        ),
        Index("ix_results_student_published", "student_id", "is_published"),
        Index("ix_results_session_semester", "session_id", "semester"),
    )


class Notification(Base, UUIDPrimaryKeyMixin):
    """In-app notice shown to a user."""

    __tablename__ = "notifications"

    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    notification_type: Mapped[str] = mapped_column(String(50), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
    )
