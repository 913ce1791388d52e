# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""SQLAlchemy ORM models."""

from academic_results.infrastructure.database.models.academic import (
    AcademicSession,
    Course,
    Enrollment,
    Notification,
    Result,
    Student,
)
from academic_results.infrastructure.database.models.base import (
    Base,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
)

__all__ = [
    "Base",
    "TimestampMixin",
    "UUIDPrimaryKeyMixin",
    "Student",
    "Course",
    "AcademicSession",
    "Enrollment",
    "Result",
    "Notification",
]
