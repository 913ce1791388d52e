# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Transcripts and result summaries.

Both are computed on read from a student's published, dual-approved
results; nothing here is stored.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date

from academic_results.domains.results.actor import Actor
from academic_results.domains.results.errors import NotFoundError
from academic_results.domains.results.gpa import compute_gpa, total_credits
from academic_results.domains.results.grading import GradingScale
from academic_results.domains.results.ports import AcademicDirectory, ResultRepository
from academic_results.domains.results.records import ResultRecord, Semester, StudentProfile

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TermGroup:
    """Results of one session and semester with their GPA."""

    session_id: str
    session_name: str
    semester: Semester
    gpa: float
    total_credits: int
    results: list[ResultRecord] = field(default_factory=list)


@dataclass(frozen=True)
class Transcript:
    """A student's published record grouped by term."""

    student: StudentProfile
    terms: list[TermGroup]
    cgpa: float
    total_courses: int
    total_credits: int


@dataclass(frozen=True)
class ResultSummary:
    """Aggregate figures over a student's published results."""

    student_id: str
    total_courses: int
    total_credits: int
    gpa: float
    grade_distribution: dict[str, int]
    results: list[ResultRecord]


class TranscriptBuilder:
    """Builds transcripts and summaries from published results.

    Attributes:
        repository: Result storage.
        directory: Student lookups.
        scale: Grading scale, used for the grade distribution letters.
    """

    def __init__(
        self,
        repository: ResultRepository,
        directory: AcademicDirectory,
        scale: GradingScale,
    ) -> None:
        self.repository = repository
        self.directory = directory
        self.scale = scale

    async def build(self, student_id: str, actor: Actor) -> Transcript:
        """Build the transcript of a student.

        Args:
            student_id: Student whose transcript is requested.
            actor: Requesting user; students may only read their own.

        Returns:
            Transcript with term groups in chronological order.

        Raises:
            ForbiddenError: If a student requests another student's transcript.
            NotFoundError: If the student does not exist.
        """
        actor.require_self_or_staff(student_id, "You can only access your own transcript")

        student = await self.directory.get_student(student_id)
        if student is None:
            raise NotFoundError("Student not found")

        results = await self.repository.list_visible_for_student(student_id)
        results = [r for r in results if r.is_visible_to_student]

        buckets: dict[tuple[str, Semester], list[ResultRecord]] = {}
        for record in results:
            buckets.setdefault((record.session.id, record.semester), []).append(record)

        terms = [
            TermGroup(
                session_id=members[0].session.id,
                session_name=members[0].session.name,
                semester=members[0].semester,
                gpa=compute_gpa(r.to_gpa_entry() for r in members),
                total_credits=total_credits(r.to_gpa_entry() for r in members),
                results=sorted(members, key=lambda r: r.course.code),
            )
            for members in buckets.values()
        ]
        terms.sort(key=_term_sort_key)

        entries = [r.to_gpa_entry() for r in results]

        logger.debug("Built transcript for %s: %d terms", student_id, len(terms))

        return Transcript(
            student=student,
            terms=terms,
            cgpa=compute_gpa(entries),
            total_courses=len(results),
            total_credits=total_credits(entries),
        )

    async def summarize(
        self,
        student_id: str,
        actor: Actor,
        session_id: str | None = None,
        semester: Semester | str | None = None,
    ) -> ResultSummary:
        """Summarize a student's published results.

        Args:
            student_id: Student to summarize.
            actor: Requesting user; students may only read their own.
            session_id: Optional session filter.
            semester: Optional semester filter.

        Returns:
            Course and credit totals, GPA and grade distribution. An empty
            result set yields zeros.

        Raises:
            ForbiddenError: If a student requests another student's summary.
            InvalidInputError: If the semester filter is unknown.
        """
        actor.require_self_or_staff(student_id, "You can only access your own results")

        semester = Semester.parse(semester) if semester else None
        results = await self.repository.list_visible_for_student(
            student_id,
            session_id=session_id,
            semester=semester,
        )
        results = [r for r in results if r.is_visible_to_student]
        entries = [r.to_gpa_entry() for r in results]

        distribution = {letter: 0 for letter in self.scale.letters}
        for record in results:
            distribution[record.grade] = distribution.get(record.grade, 0) + 1

        return ResultSummary(
            student_id=student_id,
            total_courses=len(results),
            total_credits=total_credits(entries),
            gpa=compute_gpa(entries),
            grade_distribution=distribution,
            results=results,
        )


def _term_sort_key(term: TermGroup) -> tuple[date, str, int]:
    start = term.results[0].session.start_date if term.results else None
    return (start or date.min, term.session_name, term.semester.rank)
