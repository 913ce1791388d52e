# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Score entry: creating, correcting and deleting results.

This module provides the ScoreEntryValidator class for:
- Single and bulk score submission with identity and enrollment checks
- Score correction while a result is still unapproved
- Deletion of unpublished results
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from academic_results.domains.results.actor import Actor, Capability
from academic_results.domains.results.errors import (
    AlreadyExistsError,
    ForbiddenError,
    ImmutableError,
    InvalidInputError,
    NotEnrolledError,
    NotFoundError,
    ResultServiceError,
)
from academic_results.domains.results.grading import GradingScale, validate_scores
from academic_results.domains.results.ports import AcademicDirectory, ResultRepository
from academic_results.domains.results.records import NewResult, ResultRecord, Semester

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScoreSubmission:
    """Raw scores for one student in one course and term."""

    student_id: str
    course_id: str
    session_id: str
    semester: Semester | str
    ca_score: float
    exam_score: float


class ScoreEntryValidator:
    """Validates and persists raw score submissions.

    Attributes:
        repository: Result storage.
        directory: Student, course, session and enrollment lookups.
        scale: Grading scale used to derive grades.
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

    async def submit(self, submission: ScoreSubmission, actor: Actor) -> ResultRecord:
        """Create a result from raw scores.

        Args:
            submission: Student, course, term and component scores.
            actor: Lecturer or admin entering the scores.

        Returns:
            The created result, pending approval.

        Raises:
            ForbiddenError: If the actor may not enter scores.
            InvalidInputError: If a score or the semester is invalid.
            NotFoundError: If the student, course or session is missing.
            NotEnrolledError: If the student is not actively enrolled.
            AlreadyExistsError: If a result exists for the same term.
        """
        actor.require(Capability.ENTER_SCORES)

        new_result = await self._prepare(submission, actor)
        if await self.repository.exists(*new_result.identity):
            raise AlreadyExistsError(
                "Result already exists for this student, course, session and semester"
            )

        record = await self.repository.add(new_result)

        logger.info(
            "Created result %s: student=%s, course=%s, total=%s, grade=%s, by=%s",
            record.id,
            record.student_id,
            record.course.code,
            record.total_score,
            record.grade,
            actor.id,
        )
        return record

    async def submit_many(
        self,
        submissions: Sequence[ScoreSubmission],
        actor: Actor,
    ) -> list[ResultRecord]:
        """Create several results in one all-or-nothing batch.

        Every entry is validated before anything is written. The first
        failing entry aborts the whole batch and is named in the error.

        Args:
            submissions: Entries to import.
            actor: Lecturer or admin importing the scores.

        Returns:
            The created results in input order.

        Raises:
            InvalidInputError: If the batch is empty or an entry is invalid.
            ResultServiceError: Any submit() error, prefixed with the entry index.
        """
        actor.require(Capability.ENTER_SCORES)

        if not submissions:
            raise InvalidInputError("Results payload is required")

        prepared: list[NewResult] = []
        seen: set[tuple[str, str, str, Semester]] = set()

        for index, submission in enumerate(submissions):
            try:
                new_result = await self._prepare(submission, actor)
                if new_result.identity in seen:
                    raise AlreadyExistsError("Duplicate entry in import batch")
                if await self.repository.exists(*new_result.identity):
                    raise AlreadyExistsError(
                        "Result already exists for this student, course, session and semester"
                    )
            except ResultServiceError as e:
                raise type(e)(f"Entry {index}: {e.message}") from e

            seen.add(new_result.identity)
            prepared.append(new_result)

        records = await self.repository.add_many(prepared)

        logger.info("Imported %d results, by=%s", len(records), actor.id)
        return records

    async def update(
        self,
        result_id: str,
        actor: Actor,
        ca_score: float | None = None,
        exam_score: float | None = None,
    ) -> ResultRecord:
        """Correct the scores of an unapproved result.

        Omitted scores keep their stored values; total, grade and grade
        points are recomputed.

        Raises:
            NotFoundError: If the result is missing.
            ImmutableError: If the result has any approval.
            ForbiddenError: If the actor is neither the enterer nor an admin.
            InvalidInputError: If a score is out of bounds.
        """
        actor.require(Capability.ENTER_SCORES)

        record = await self._get(result_id)

        if record.is_approved:
            raise ImmutableError("Cannot update approved results")

        if not actor.is_admin and record.entered_by != actor.id:
            raise ForbiddenError("You are not authorized to update this result")

        new_ca = record.ca_score if ca_score is None else ca_score
        new_exam = record.exam_score if exam_score is None else exam_score
        scores = validate_scores(new_ca, new_exam)
        grade = self.scale.grade(scores.total_score)

        updated = await self.repository.update_scores(
            result_id,
            ca_score=scores.ca_score,
            exam_score=scores.exam_score,
            total_score=scores.total_score,
            grade=grade.letter,
            grade_points=grade.points,
        )
        if updated is None:
            # Approved or deleted between the read and the write
            await self._get(result_id)
            raise ImmutableError("Cannot update approved results")

        logger.info(
            "Updated result %s: total=%s, grade=%s, by=%s",
            result_id,
            updated.total_score,
            updated.grade,
            actor.id,
        )
        return updated

    async def delete(self, result_id: str, actor: Actor) -> None:
        """Delete an unpublished result.

        Approved but unpublished results may still be deleted as an
        administrative correction; published results are permanent.

        Raises:
            ForbiddenError: If the actor is not an admin.
            NotFoundError: If the result is missing.
            ImmutableError: If the result is published.
        """
        actor.require(Capability.DELETE_RESULTS)

        record = await self._get(result_id)
        if record.is_published:
            raise ImmutableError("Cannot delete published results")

        if not await self.repository.delete_unpublished(result_id):
            await self._get(result_id)
            raise ImmutableError("Cannot delete published results")

        logger.info("Deleted result %s (state=%s), by=%s", result_id, record.state.value, actor.id)

    async def _prepare(self, submission: ScoreSubmission, actor: Actor) -> NewResult:
        """Validate a submission and derive its grade.

        Raises:
            InvalidInputError: If a score or the semester is invalid.
            NotFoundError: If the student, course or session is missing.
            NotEnrolledError: If the student is not actively enrolled.
        """
        semester = Semester.parse(submission.semester)
        scores = validate_scores(submission.ca_score, submission.exam_score)

        if not await self.directory.student_exists(submission.student_id):
            raise NotFoundError("Student not found")
        if await self.directory.get_course(submission.course_id) is None:
            raise NotFoundError("Course not found")
        if not await self.directory.session_exists(submission.session_id):
            raise NotFoundError("Session not found")

        enrolled = await self.directory.is_actively_enrolled(
            submission.student_id,
            submission.course_id,
            submission.session_id,
        )
        if not enrolled:
            raise NotEnrolledError("Student is not enrolled in this course")

        grade = self.scale.grade(scores.total_score)

        return NewResult(
            student_id=submission.student_id,
            course_id=submission.course_id,
            session_id=submission.session_id,
            semester=semester,
            ca_score=scores.ca_score,
            exam_score=scores.exam_score,
            total_score=scores.total_score,
            grade=grade.letter,
            grade_points=grade.points,
            entered_by=actor.id,
        )

    async def _get(self, result_id: str) -> ResultRecord:
        """Get result by ID.

        Raises:
            NotFoundError: If not found.
        """
        record = await self.repository.get(result_id)
        if record is None:
            raise NotFoundError(f"Result {result_id} not found")
        return record
