# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest configuration and shared fixtures.

This module provides fixtures used across all test types:
- In-memory implementations of the repository, directory and notifier
- Seeded students, courses, sessions and enrollments
- Actors for every role
"""

from __future__ import annotations

import asyncio
import dataclasses
from datetime import date, datetime, timedelta, timezone
from typing import Any, Awaitable, Callable, Sequence
from uuid import uuid4

import pytest

from academic_results.domains.results.actor import Actor, Role
from academic_results.domains.results.errors import AlreadyExistsError
from academic_results.domains.results.grading import FIVE_POINT_SCALE
from academic_results.domains.results.ports import (
    AcademicDirectory,
    NotificationDispatcher,
    ResultRepository,
)
from academic_results.domains.results.records import (
    CourseRef,
    NewResult,
    ResultFilter,
    ResultRecord,
    Semester,
    SessionRef,
    StudentProfile,
)
from academic_results.domains.results.service import ResultService

# =============================================================================
# Sample identifiers
# =============================================================================

STUDENT_ID = "550e8400-e29b-41d4-a716-446655440001"
OTHER_STUDENT_ID = "550e8400-e29b-41d4-a716-446655440002"
LECTURER_ID = "550e8400-e29b-41d4-a716-446655440010"
OTHER_LECTURER_ID = "550e8400-e29b-41d4-a716-446655440011"
HOD_ID = "550e8400-e29b-41d4-a716-446655440020"
ADMIN_ID = "550e8400-e29b-41d4-a716-446655440030"

CSC101_ID = "6f1c2d3e-0000-4000-8000-000000000101"
MTH101_ID = "6f1c2d3e-0000-4000-8000-000000000102"
PHY101_ID = "6f1c2d3e-0000-4000-8000-000000000103"

SESSION_2023_ID = "7a2b3c4d-0000-4000-8000-000000002023"
SESSION_2024_ID = "7a2b3c4d-0000-4000-8000-000000002024"

_EPOCH = datetime(2024, 1, 1, tzinfo=timezone.utc)


# =============================================================================
# In-memory collaborators
# =============================================================================


class InMemoryDirectory(AcademicDirectory):
    """Student, course, session and enrollment lookups held in dicts."""

    def __init__(self) -> None:
        self.students: dict[str, StudentProfile] = {}
        self.courses: dict[str, CourseRef] = {}
        self.sessions: dict[str, SessionRef] = {}
        self.enrollments: dict[tuple[str, str, str], str] = {}
        self.failure: Exception | None = None

    def add_student(self, student_id: str, first_name: str, last_name: str) -> None:
        self.students[student_id] = StudentProfile(
            id=student_id,
            first_name=first_name,
            last_name=last_name,
            email=f"{first_name.lower()}@uni.example",
        )

    def add_course(self, course_id: str, code: str, title: str, credits: int) -> None:
        self.courses[course_id] = CourseRef(id=course_id, code=code, title=title, credits=credits)

    def add_session(self, session_id: str, name: str, start_date: date | None = None) -> None:
        self.sessions[session_id] = SessionRef(id=session_id, name=name, start_date=start_date)

    def enroll(self, student_id: str, course_id: str, session_id: str, status: str = "active") -> None:
        self.enrollments[(student_id, course_id, session_id)] = status

    def _check(self) -> None:
        if self.failure is not None:
            raise self.failure

    async def get_student(self, student_id: str) -> StudentProfile | None:
        self._check()
        return self.students.get(student_id)

    async def get_course(self, course_id: str) -> CourseRef | None:
        self._check()
        return self.courses.get(course_id)

    async def session_exists(self, session_id: str) -> bool:
        self._check()
        return session_id in self.sessions

    async def is_actively_enrolled(self, student_id: str, course_id: str, session_id: str) -> bool:
        self._check()
        return self.enrollments.get((student_id, course_id, session_id)) == "active"


class InMemoryResultRepository(ResultRepository):
    """ResultRepository over a dict, serialized by an asyncio lock."""

    def __init__(self, directory: InMemoryDirectory) -> None:
        self.directory = directory
        self.records: dict[str, ResultRecord] = {}
        self._lock = asyncio.Lock()
        self._tick = 0

    def _now(self) -> datetime:
        self._tick += 1
        return _EPOCH + timedelta(seconds=self._tick)

    def _build(self, new_result: NewResult) -> ResultRecord:
        now = self._now()
        return ResultRecord(
            id=str(uuid4()),
            student_id=new_result.student_id,
            course=self.directory.courses[new_result.course_id],
            session=self.directory.sessions[new_result.session_id],
            semester=new_result.semester,
            ca_score=new_result.ca_score,
            exam_score=new_result.exam_score,
            total_score=new_result.total_score,
            grade=new_result.grade,
            grade_points=new_result.grade_points,
            entered_by=new_result.entered_by,
            created_at=now,
            updated_at=now,
        )

    def _taken(self, identity: tuple[str, str, str, Semester]) -> bool:
        return any(
            (r.student_id, r.course.id, r.session.id, r.semester) == identity
            for r in self.records.values()
        )

    async def get(self, result_id: str) -> ResultRecord | None:
        return self.records.get(result_id)

    async def exists(self, student_id: str, course_id: str, session_id: str, semester: Semester) -> bool:
        return self._taken((student_id, course_id, session_id, semester))

    async def add(self, new_result: NewResult) -> ResultRecord:
        async with self._lock:
            if self._taken(new_result.identity):
                raise AlreadyExistsError("Result already exists")
            record = self._build(new_result)
            self.records[record.id] = record
            return record

    async def add_many(self, new_results: Sequence[NewResult]) -> list[ResultRecord]:
        async with self._lock:
            if any(self._taken(n.identity) for n in new_results):
                raise AlreadyExistsError("Result already exists")
            records = [self._build(n) for n in new_results]
            for record in records:
                self.records[record.id] = record
            return records

    async def list(
        self,
        filters: ResultFilter,
        offset: int = 0,
        limit: int = 20,
    ) -> tuple[list[ResultRecord], int]:
        matches = [r for r in self.records.values() if _matches(r, filters)]
        matches.sort(key=lambda r: r.created_at, reverse=True)
        return matches[offset:offset + limit], len(matches)

    async def list_visible_for_student(
        self,
        student_id: str,
        session_id: str | None = None,
        semester: Semester | None = None,
    ) -> list[ResultRecord]:
        return [
            r for r in self.records.values()
            if r.student_id == student_id
            and r.is_visible_to_student
            and (session_id is None or r.session.id == session_id)
            and (semester is None or r.semester == semester)
        ]

    async def _guarded(
        self,
        result_id: str,
        guard: Callable[[ResultRecord], bool],
        **changes: Any,
    ) -> ResultRecord | None:
        async with self._lock:
            record = self.records.get(result_id)
            if record is None or not guard(record):
                return None
            updated = dataclasses.replace(record, updated_at=self._now(), **changes)
            self.records[result_id] = updated
            return updated

    async def update_scores(self, result_id, ca_score, exam_score, total_score, grade, grade_points):
        return await self._guarded(
            result_id,
            lambda r: not r.approved_by_hod and not r.approved_by_admin,
            ca_score=ca_score,
            exam_score=exam_score,
            total_score=total_score,
            grade=grade,
            grade_points=grade_points,
        )

    async def mark_hod_approved(self, result_id, approved_by, approved_at):
        return await self._guarded(
            result_id,
            lambda r: not r.approved_by_hod,
            approved_by_hod=True,
            hod_approved_by=approved_by,
            hod_approved_at=approved_at,
        )

    async def mark_hod_rejected(self, result_id, reason, rejected_by, rejected_at):
        return await self._guarded(
            result_id,
            lambda r: not r.approved_by_hod,
            hod_rejection_reason=reason,
            hod_rejected_by=rejected_by,
            hod_rejected_at=rejected_at,
        )

    async def mark_admin_approved(self, result_id, approved_by, approved_at):
        return await self._guarded(
            result_id,
            lambda r: r.approved_by_hod and not r.approved_by_admin,
            approved_by_admin=True,
            admin_approved_by=approved_by,
            admin_approved_at=approved_at,
        )

    async def delete_unpublished(self, result_id: str) -> bool:
        async with self._lock:
            record = self.records.get(result_id)
            if record is None or record.is_published:
                return False
            del self.records[result_id]
            return True

    async def publish(self, session_id, semester, published_at) -> list[ResultRecord]:
        async with self._lock:
            snapshot = [
                r for r in self.records.values()
                if r.session.id == session_id
                and r.semester == semester
                and r.is_fully_approved
                and not r.is_published
            ]
            published = []
            for record in snapshot:
                updated = dataclasses.replace(
                    record,
                    is_published=True,
                    published_at=published_at,
                    updated_at=self._now(),
                )
                self.records[record.id] = updated
                published.append(updated)
            return published


def _matches(record: ResultRecord, filters: ResultFilter) -> bool:
    if filters.student_id is not None and record.student_id != filters.student_id:
        return False
    if filters.course_id is not None and record.course.id != filters.course_id:
        return False
    if filters.session_id is not None and record.session.id != filters.session_id:
        return False
    if filters.semester is not None and record.semester != filters.semester:
        return False
    if filters.published is not None and record.is_published != filters.published:
        return False
    if filters.state is not None and record.state != filters.state:
        return False
    if filters.visible_only and not record.is_visible_to_student:
        return False
    return True


class RecordingNotifier(NotificationDispatcher):
    """Captures notify() calls; can be told to fail or hang."""

    def __init__(self) -> None:
        self.calls: list[tuple[list[str], str, str]] = []
        self.failure: Exception | None = None
        self.delay: float = 0.0

    async def notify(self, student_ids: Sequence[str], title: str, message: str) -> None:
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.failure is not None:
            raise self.failure
        self.calls.append((list(student_ids), title, message))


# =============================================================================
# Marker Configuration
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test (requires services)"
    )


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def directory() -> InMemoryDirectory:
    """Directory seeded with two students, three courses and two sessions."""
    directory = InMemoryDirectory()
    directory.add_student(STUDENT_ID, "Ada", "Obi")
    directory.add_student(OTHER_STUDENT_ID, "Bayo", "Eze")
    directory.add_course(CSC101_ID, "CSC101", "Introduction to Computing", 3)
    directory.add_course(MTH101_ID, "MTH101", "Elementary Mathematics", 2)
    directory.add_course(PHY101_ID, "PHY101", "General Physics", 4)
    directory.add_session(SESSION_2023_ID, "2023/2024", date(2023, 9, 1))
    directory.add_session(SESSION_2024_ID, "2024/2025", date(2024, 9, 1))

    for session_id in (SESSION_2023_ID, SESSION_2024_ID):
        for course_id in (CSC101_ID, MTH101_ID, PHY101_ID):
            directory.enroll(STUDENT_ID, course_id, session_id)
    directory.enroll(OTHER_STUDENT_ID, CSC101_ID, SESSION_2023_ID)
    return directory


@pytest.fixture
def repository(directory: InMemoryDirectory) -> InMemoryResultRepository:
    """Empty in-memory result repository."""
    return InMemoryResultRepository(directory)


@pytest.fixture
def notifier() -> RecordingNotifier:
    """Notifier that records every call."""
    return RecordingNotifier()


@pytest.fixture
def service(repository, directory, notifier) -> ResultService:
    """Result service over the in-memory collaborators."""
    return ResultService(
        repository=repository,
        directory=directory,
        scale=FIVE_POINT_SCALE,
        notifier=notifier,
        notify_timeout=0.2,
    )


@pytest.fixture
def student() -> Actor:
    return Actor(id=STUDENT_ID, role=Role.STUDENT)


@pytest.fixture
def other_student() -> Actor:
    return Actor(id=OTHER_STUDENT_ID, role=Role.STUDENT)


@pytest.fixture
def lecturer() -> Actor:
    return Actor(id=LECTURER_ID, role=Role.LECTURER)


@pytest.fixture
def other_lecturer() -> Actor:
    return Actor(id=OTHER_LECTURER_ID, role=Role.LECTURER)


@pytest.fixture
def hod() -> Actor:
    return Actor(id=HOD_ID, role=Role.HOD)


@pytest.fixture
def admin() -> Actor:
    return Actor(id=ADMIN_ID, role=Role.ADMIN)


@pytest.fixture
def fully_approve(service, hod, admin) -> Callable[[str], Awaitable[ResultRecord]]:
    """Run a result through both approval stages."""

    async def _approve(result_id: str) -> ResultRecord:
        await service.approvals.approve_by_hod(result_id, hod)
        return await service.approvals.approve_by_admin(result_id, admin)

    return _approve
