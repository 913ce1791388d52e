# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Result service.

This module provides the ResultService class, which wires the lifecycle
components over one repository and serves the role-aware read paths:
- Listing results with filters and pagination
- Fetching a single result
"""

from __future__ import annotations

import dataclasses
import logging

from academic_results.domains.results.actor import Actor, Capability
from academic_results.domains.results.approval import ApprovalStateMachine
from academic_results.domains.results.errors import ForbiddenError, InvalidInputError, NotFoundError
from academic_results.domains.results.grading import GradingScale
from academic_results.domains.results.ports import (
    AcademicDirectory,
    NotificationDispatcher,
    ResultRepository,
)
from academic_results.domains.results.publication import PUBLISHED_TITLE, PublicationGate
from academic_results.domains.results.records import ResultFilter, ResultRecord
from academic_results.domains.results.scores import ScoreEntryValidator
from academic_results.domains.results.transcript import TranscriptBuilder

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


class ResultService:
    """Entry point for result operations.

    Attributes:
        scores: Score submission, correction and deletion.
        approvals: HOD and admin approval transitions.
        publication: Publication sweep.
        transcripts: Transcript and summary builder.
    """

    def __init__(
        self,
        repository: ResultRepository,
        directory: AcademicDirectory,
        scale: GradingScale,
        notifier: NotificationDispatcher | None = None,
        notify_timeout: float = 5.0,
        notification_title: str = PUBLISHED_TITLE,
    ) -> None:
        self.repository = repository
        self.scores = ScoreEntryValidator(repository, directory, scale)
        self.approvals = ApprovalStateMachine(repository)
        self.publication = PublicationGate(
            repository,
            notifier=notifier,
            notify_timeout=notify_timeout,
            title=notification_title,
        )
        self.transcripts = TranscriptBuilder(repository, directory, scale)

    async def list_results(
        self,
        actor: Actor,
        filters: ResultFilter | None = None,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> tuple[list[ResultRecord], int]:
        """List results visible to the actor.

        Students always get their own published results, whatever filters
        they pass for student, publication or state.

        Returns:
            Tuple of (results on the page, total matching count).

        Raises:
            InvalidInputError: If page or limit is out of range.
        """
        if page < 1:
            raise InvalidInputError("Page must be at least 1")
        if not 1 <= limit <= MAX_PAGE_SIZE:
            raise InvalidInputError(f"Limit must be between 1 and {MAX_PAGE_SIZE}")

        filters = filters or ResultFilter()

        if actor.is_student:
            actor.require(Capability.VIEW_OWN_RESULTS)
            filters = dataclasses.replace(
                filters,
                student_id=actor.id,
                published=None,
                state=None,
                visible_only=True,
            )
        else:
            actor.require(Capability.VIEW_ALL_RESULTS)

        return await self.repository.list(
            filters,
            offset=(page - 1) * limit,
            limit=limit,
        )

    async def get_result(self, result_id: str, actor: Actor) -> ResultRecord:
        """Fetch one result.

        Raises:
            NotFoundError: If the result is missing.
            ForbiddenError: If a student asks for a result that is not
                their own published record.
        """
        record = await self.repository.get(result_id)
        if record is None:
            raise NotFoundError("Result not found")

        if actor.is_student:
            if record.student_id != actor.id or not record.is_visible_to_student:
                raise ForbiddenError("You are not authorized to view this result")
        else:
            actor.require(Capability.VIEW_ALL_RESULTS)

        return record
