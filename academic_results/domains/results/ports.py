# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Contracts the result components depend on.

The components receive these collaborators through their constructors;
nothing here holds global connection state.

- ResultRepository: result storage with guarded (compare-and-set) writes.
- AcademicDirectory: read-only identity and enrollment lookups.
- NotificationDispatcher: best-effort notices to students.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Sequence

from academic_results.domains.results.records import (
    CourseRef,
    NewResult,
    ResultFilter,
    ResultRecord,
    Semester,
    StudentProfile,
)


class ResultRepository(ABC):
    """Storage for results.

    Every mutating method is a single atomic conditional write. Guarded
    methods return None when the guard no longer holds (or the row is
    gone), leaving the caller to re-read and report the precise reason.
    """

    @abstractmethod
    async def get(self, result_id: str) -> ResultRecord | None:
        """Fetch one hydrated result."""

    @abstractmethod
    async def exists(
        self,
        student_id: str,
        course_id: str,
        session_id: str,
        semester: Semester,
    ) -> bool:
        """Check whether a result exists for the identity tuple."""

    @abstractmethod
    async def add(self, new_result: NewResult) -> ResultRecord:
        """Insert a result.

        Raises:
            AlreadyExistsError: If the identity tuple is taken.
        """

    @abstractmethod
    async def add_many(self, new_results: Sequence[NewResult]) -> list[ResultRecord]:
        """Insert several results in one transaction, all or nothing.

        Raises:
            AlreadyExistsError: If any identity tuple is taken.
        """

    @abstractmethod
    async def list(
        self,
        filters: ResultFilter,
        offset: int = 0,
        limit: int = 20,
    ) -> tuple[list[ResultRecord], int]:
        """List results newest first with the total match count."""

    @abstractmethod
    async def list_visible_for_student(
        self,
        student_id: str,
        session_id: str | None = None,
        semester: Semester | None = None,
    ) -> list[ResultRecord]:
        """All published, dual-approved results of a student."""

    @abstractmethod
    async def update_scores(
        self,
        result_id: str,
        ca_score: float,
        exam_score: float,
        total_score: float,
        grade: str,
        grade_points: float,
    ) -> ResultRecord | None:
        """Rewrite scores while neither approval flag is set."""

    @abstractmethod
    async def mark_hod_approved(
        self,
        result_id: str,
        approved_by: str,
        approved_at: datetime,
    ) -> ResultRecord | None:
        """Set the HOD approval while it is not yet set."""

    @abstractmethod
    async def mark_hod_rejected(
        self,
        result_id: str,
        reason: str,
        rejected_by: str,
        rejected_at: datetime,
    ) -> ResultRecord | None:
        """Record an HOD rejection while the HOD has not approved."""

    @abstractmethod
    async def mark_admin_approved(
        self,
        result_id: str,
        approved_by: str,
        approved_at: datetime,
    ) -> ResultRecord | None:
        """Set the admin approval while HOD-approved and not admin-approved."""

    @abstractmethod
    async def delete_unpublished(self, result_id: str) -> bool:
        """Delete a result while it is unpublished."""

    @abstractmethod
    async def publish(
        self,
        session_id: str,
        semester: Semester,
        published_at: datetime,
    ) -> list[ResultRecord]:
        """Publish the eligible snapshot of a session and semester.

        Selects dual-approved unpublished results, then flips exactly that
        selection in the same transaction.

        Returns:
            The records that were published by this call.
        """


class AcademicDirectory(ABC):
    """Identity and enrollment lookups owned by other subsystems."""

    @abstractmethod
    async def get_student(self, student_id: str) -> StudentProfile | None:
        """Fetch a student's identity summary."""

    async def student_exists(self, student_id: str) -> bool:
        return await self.get_student(student_id) is not None

    @abstractmethod
    async def get_course(self, course_id: str) -> CourseRef | None:
        """Fetch a course with its credit load."""

    @abstractmethod
    async def session_exists(self, session_id: str) -> bool:
        """Check that an academic session exists."""

    @abstractmethod
    async def is_actively_enrolled(
        self,
        student_id: str,
        course_id: str,
        session_id: str,
    ) -> bool:
        """Check for an active enrollment in the course for the session."""


class NotificationDispatcher(ABC):
    """Best-effort delivery of notices to students."""

    @abstractmethod
    async def notify(self, student_ids: Sequence[str], title: str, message: str) -> None:
        """Send one notice to each student."""
