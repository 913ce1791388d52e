# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Read-only lookups against the student, course, session and enrollment tables."""

import logging

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from academic_results.domains.results.errors import StorageError
from academic_results.domains.results.ports import AcademicDirectory
from academic_results.domains.results.records import CourseRef, StudentProfile
from academic_results.infrastructure.database.models.academic import (
    AcademicSession,
    Course,
    Enrollment,
    Student,
)

logger = logging.getLogger(__name__)

ACTIVE_ENROLLMENT = "active"


class SqlAcademicDirectory(AcademicDirectory):
    """AcademicDirectory over the shared reference tables.

    Lookup failures are fatal for the calling operation and surface as
    StorageError.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_student(self, student_id: str) -> StudentProfile | None:
        student = await self._scalar(
            select(Student).where(Student.id == student_id),
            "look up student",
        )
        if student is None:
            return None
        return StudentProfile(
            id=str(student.id),
            first_name=student.first_name,
            last_name=student.last_name,
            email=student.email,
            matric_number=student.matric_number,
        )

    async def get_course(self, course_id: str) -> CourseRef | None:
        course = await self._scalar(
            select(Course).where(Course.id == course_id),
            "look up course",
        )
        if course is None:
            return None
        return CourseRef(
            id=str(course.id),
            code=course.code,
            title=course.title,
            credits=course.credits,
        )

    async def session_exists(self, session_id: str) -> bool:
        found = await self._scalar(
            select(AcademicSession.id).where(AcademicSession.id == session_id),
            "look up session",
        )
        return found is not None

    async def is_actively_enrolled(
        self,
        student_id: str,
        course_id: str,
        session_id: str,
    ) -> bool:
        found = await self._scalar(
            select(Enrollment.id)
            .where(
                Enrollment.student_id == student_id,
                Enrollment.course_id == course_id,
                Enrollment.session_id == session_id,
                Enrollment.status == ACTIVE_ENROLLMENT,
            )
            .limit(1),
            "check enrollment",
        )
        return found is not None

    async def _scalar(self, stmt, action: str):
        try:
            return (await self.session.execute(stmt)).scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Failed to %s: %s", action, str(e))
            raise StorageError(f"Failed to {action}", e) from e
