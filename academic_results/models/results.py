# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Result API request and response models.

Score bounds are not declared on the request fields; they are validated by
the grading module so every entry point reports the same error.
"""

from __future__ import annotations

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from academic_results.domains.results.records import (
    ResultRecord,
    ResultState,
    Semester,
    StudentProfile,
)
from academic_results.domains.results.scores import ScoreSubmission
from academic_results.domains.results.transcript import ResultSummary, TermGroup, Transcript

# =========================================================================
# Requests
# =========================================================================


class ResultCreateRequest(BaseModel):
    """Raw scores for one student in one course and term."""

    student_id: UUID = Field(description="Student identifier")
    course_id: UUID = Field(description="Course identifier")
    session_id: UUID = Field(description="Academic session identifier")
    semester: str = Field(description="Semester within the session (first or second)")
    ca_score: float = Field(description="Continuous assessment score, 0 to 30")
    exam_score: float = Field(description="Examination score, 0 to 70")

    def to_submission(self) -> ScoreSubmission:
        return ScoreSubmission(
            student_id=str(self.student_id),
            course_id=str(self.course_id),
            session_id=str(self.session_id),
            semester=self.semester,
            ca_score=self.ca_score,
            exam_score=self.exam_score,
        )


class BulkImportRequest(BaseModel):
    """Batch of results imported all-or-nothing."""

    results: list[ResultCreateRequest] = Field(
        default_factory=list,
        description="Entries to import",
    )


class ResultUpdateRequest(BaseModel):
    """Score correction; omitted scores keep their stored values."""

    ca_score: float | None = Field(None, description="New continuous assessment score")
    exam_score: float | None = Field(None, description="New examination score")


class RejectRequest(BaseModel):
    """HOD rejection with an optional reason."""

    reason: str | None = Field(None, max_length=1000, description="Why the result was rejected")


class PublishRequest(BaseModel):
    """Session and semester to publish."""

    session: UUID = Field(description="Academic session identifier")
    semester: str = Field(description="Semester within the session")


# =========================================================================
# Responses
# =========================================================================


class CourseResponse(BaseModel):
    """Course summary embedded in a result."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    code: str
    title: str
    credits: int


class SessionResponse(BaseModel):
    """Academic session summary embedded in a result."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    start_date: date | None = None


class ResultResponse(BaseModel):
    """A result with its lifecycle state."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    student_id: str
    course: CourseResponse
    session: SessionResponse
    semester: Semester
    ca_score: float
    exam_score: float
    total_score: float
    grade: str
    grade_points: float
    entered_by: str
    state: ResultState
    approved_by_hod: bool
    hod_approved_by: str | None = None
    hod_approved_at: datetime | None = None
    approved_by_admin: bool
    admin_approved_by: str | None = None
    admin_approved_at: datetime | None = None
    hod_rejection_reason: str | None = None
    hod_rejected_by: str | None = None
    hod_rejected_at: datetime | None = None
    is_published: bool
    published_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_record(cls, record: ResultRecord) -> "ResultResponse":
        return cls.model_validate(record)


class StudentResultResponse(BaseModel):
    """A published result as shown to its student."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    course: CourseResponse
    session: SessionResponse
    semester: Semester
    ca_score: float
    exam_score: float
    total_score: float
    grade: str
    grade_points: float
    published_at: datetime | None = None


class ResultListResponse(BaseModel):
    """Paginated list of results."""

    items: list[ResultResponse]
    total: int
    page: int
    limit: int
    pages: int

    @classmethod
    def build(
        cls,
        records: list[ResultRecord],
        total: int,
        page: int,
        limit: int,
    ) -> "ResultListResponse":
        return cls(
            items=[ResultResponse.from_record(r) for r in records],
            total=total,
            page=page,
            limit=limit,
            pages=(total + limit - 1) // limit if total else 0,
        )


class BulkImportResponse(BaseModel):
    """Outcome of a bulk import."""

    created: int
    items: list[ResultResponse]


class PublishResponse(BaseModel):
    """Outcome of a publication sweep."""

    message: str
    modified_count: int


class StudentResponse(BaseModel):
    """Student identity on a transcript."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    first_name: str
    last_name: str
    full_name: str
    email: str | None = None
    matric_number: str | None = None

    @classmethod
    def from_profile(cls, profile: StudentProfile) -> "StudentResponse":
        return cls.model_validate(profile)


class TermResponse(BaseModel):
    """One session and semester of a transcript."""

    session_id: str
    session_name: str
    semester: Semester
    gpa: float
    total_credits: int
    results: list[StudentResultResponse]

    @classmethod
    def from_term(cls, term: TermGroup) -> "TermResponse":
        return cls(
            session_id=term.session_id,
            session_name=term.session_name,
            semester=term.semester,
            gpa=term.gpa,
            total_credits=term.total_credits,
            results=[StudentResultResponse.model_validate(r) for r in term.results],
        )


class TranscriptResponse(BaseModel):
    """Full academic transcript."""

    student: StudentResponse
    terms: list[TermResponse]
    cgpa: float
    total_courses: int
    total_credits: int

    @classmethod
    def from_transcript(cls, transcript: Transcript) -> "TranscriptResponse":
        return cls(
            student=StudentResponse.from_profile(transcript.student),
            terms=[TermResponse.from_term(t) for t in transcript.terms],
            cgpa=transcript.cgpa,
            total_courses=transcript.total_courses,
            total_credits=transcript.total_credits,
        )


class SummaryResponse(BaseModel):
    """Aggregate figures over a student's published results."""

    student_id: str
    total_courses: int
    total_credits: int
    gpa: float
    grade_distribution: dict[str, int]
    results: list[StudentResultResponse]

    @classmethod
    def from_summary(cls, summary: ResultSummary) -> "SummaryResponse":
        return cls(
            student_id=summary.student_id,
            total_courses=summary.total_courses,
            total_credits=summary.total_credits,
            gpa=summary.gpa,
            grade_distribution=summary.grade_distribution,
            results=[StudentResultResponse.model_validate(r) for r in summary.results],
        )


class ErrorBody(BaseModel):
    """Error payload."""

    kind: str
    message: str


class ErrorResponse(BaseModel):
    """Envelope for every domain error response."""

    error: ErrorBody


__all__ = [
    "ResultCreateRequest",
    "BulkImportRequest",
    "ResultUpdateRequest",
    "RejectRequest",
    "PublishRequest",
    "CourseResponse",
    "SessionResponse",
    "ResultResponse",
    "StudentResultResponse",
    "ResultListResponse",
    "BulkImportResponse",
    "PublishResponse",
    "StudentResponse",
    "TermResponse",
    "TranscriptResponse",
    "SummaryResponse",
    "ErrorResponse",
]
