# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Value objects for the result lifecycle.

Repositories return fully-hydrated ResultRecord instances (course and
session details included), so grading, GPA and transcript code work on
plain in-memory values and never touch the storage shape.
"""

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum

from academic_results.domains.results.errors import InvalidInputError
from academic_results.domains.results.gpa import GpaEntry


class Semester(str, Enum):
    """Sub-period within an academic session."""

    FIRST = "first"
    SECOND = "second"

    @property
    def rank(self) -> int:
        """Ordering position within a session."""
        return list(Semester).index(self)

    @classmethod
    def parse(cls, value: "str | Semester") -> "Semester":
        """Parse a semester name.

        Raises:
            InvalidInputError: If the value is not a known semester.
        """
        try:
            return cls(value)
        except ValueError:
            allowed = ", ".join(s.value for s in cls)
            raise InvalidInputError(
                f"Unknown semester '{value}'. Expected one of: {allowed}"
            ) from None


class ResultState(str, Enum):
    """Lifecycle state derived from the approval and publication flags."""

    PENDING = "pending"
    REJECTED_BY_HOD = "rejected_by_hod"
    HOD_APPROVED = "hod_approved"
    FULLY_APPROVED = "fully_approved"
    PUBLISHED = "published"


@dataclass(frozen=True)
class StudentProfile:
    """Identity summary of a student."""

    id: str
    first_name: str
    last_name: str
    email: str | None = None
    matric_number: str | None = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass(frozen=True)
class CourseRef:
    """Course details carried on a result."""

    id: str
    code: str
    title: str
    credits: int


@dataclass(frozen=True)
class SessionRef:
    """Academic session details carried on a result."""

    id: str
    name: str
    start_date: date | None = None


@dataclass(frozen=True)
class NewResult:
    """A validated result ready to be persisted."""

    student_id: str
    course_id: str
    session_id: str
    semester: Semester
    ca_score: float
    exam_score: float
    total_score: float
    grade: str
    grade_points: float
    entered_by: str

    @property
    def identity(self) -> tuple[str, str, str, Semester]:
        """The unique (student, course, session, semester) tuple."""
        return (self.student_id, self.course_id, self.session_id, self.semester)


@dataclass(frozen=True)
class ResultRecord:
    """A stored result, hydrated with its course and session."""

    id: str
    student_id: str
    course: CourseRef
    session: SessionRef
    semester: Semester
    ca_score: float
    exam_score: float
    total_score: float
    grade: str
    grade_points: float
    entered_by: str
    approved_by_hod: bool = False
    hod_approved_by: str | None = None
    hod_approved_at: datetime | None = None
    approved_by_admin: bool = False
    admin_approved_by: str | None = None
    admin_approved_at: datetime | None = None
    hod_rejection_reason: str | None = None
    hod_rejected_by: str | None = None
    hod_rejected_at: datetime | None = None
    is_published: bool = False
    published_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_approved(self) -> bool:
        """True once any approval stage has been passed."""
        return self.approved_by_hod or self.approved_by_admin

    @property
    def is_fully_approved(self) -> bool:
        return self.approved_by_hod and self.approved_by_admin

    @property
    def is_visible_to_student(self) -> bool:
        """Published and approved at both stages."""
        return self.is_published and self.is_fully_approved

    @property
    def state(self) -> ResultState:
        """Current lifecycle state."""
        if self.is_published:
            return ResultState.PUBLISHED
        if self.is_fully_approved:
            return ResultState.FULLY_APPROVED
        if self.approved_by_hod:
            return ResultState.HOD_APPROVED
        if self.hod_rejected_at is not None:
            return ResultState.REJECTED_BY_HOD
        return ResultState.PENDING

    def to_gpa_entry(self) -> GpaEntry:
        return GpaEntry(
            total_score=self.total_score,
            grade_points=self.grade_points,
            credits=self.course.credits,
        )


@dataclass(frozen=True)
class ResultFilter:
    """Criteria for listing results.

    ``published`` and ``state`` are independent: ``state`` narrows to one
    lifecycle state, ``published`` to the publication flag alone.
    ``visible_only`` restricts to published, dual-approved results.
    """

    student_id: str | None = None
    course_id: str | None = None
    session_id: str | None = None
    semester: Semester | None = None
    published: bool | None = None
    state: ResultState | None = None
    visible_only: bool = False
