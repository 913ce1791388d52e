# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Publication of approved results.

Publishing is the only way a result becomes visible to its student. The
sweep works on a snapshot: results approved after the selection wait for
the next call. Students are notified afterwards on a best-effort basis.
"""

from __future__ import annotations

import asyncio
import logging

from academic_results.domains.results.actor import Actor, Capability
from academic_results.domains.results.errors import InvalidInputError
from academic_results.domains.results.ports import NotificationDispatcher, ResultRepository
from academic_results.domains.results.records import Semester
from academic_results.utils.datetime import utc_now
from academic_results.utils.logging import result_context

logger = logging.getLogger(__name__)

PUBLISHED_TITLE = "Results Published"


class PublicationGate:
    """Batch-transitions dual-approved results to published.

    Attributes:
        repository: Result storage.
        notifier: Dispatcher for student notices, or None to skip them.
        notify_timeout: Upper bound in seconds for the notification call.
        title: Title of the notice sent to students.
    """

    def __init__(
        self,
        repository: ResultRepository,
        notifier: NotificationDispatcher | None = None,
        notify_timeout: float = 5.0,
        title: str = PUBLISHED_TITLE,
    ) -> None:
        self.repository = repository
        self.notifier = notifier
        self.notify_timeout = notify_timeout
        self.title = title

    async def publish(
        self,
        session_id: str,
        semester: Semester | str,
        actor: Actor,
    ) -> int:
        """Publish every eligible result of a session and semester.

        Args:
            session_id: Academic session to publish.
            semester: Semester within the session.
            actor: Admin performing the publication.

        Returns:
            Number of results published by this call; 0 when nothing new
            was eligible.

        Raises:
            ForbiddenError: If the actor may not publish.
            InvalidInputError: If session or semester is missing or unknown.
        """
        actor.require(Capability.PUBLISH_RESULTS)

        if not session_id or not semester:
            raise InvalidInputError("Session and semester are required")
        semester = Semester.parse(semester)

        with result_context(session_id=session_id, semester=semester):
            published = await self.repository.publish(session_id, semester, utc_now())

            logger.info("Published %d results, by=%s", len(published), actor.id)

            student_ids = sorted({record.student_id for record in published})
            if student_ids:
                await self._notify_students(student_ids, semester)

        return len(published)

    async def _notify_students(self, student_ids: list[str], semester: Semester) -> None:
        """Send the publication notice without affecting the outcome."""
        if self.notifier is None:
            return

        message = (
            f"Your results for {semester.value} semester have been published. "
            "Check your portal to view."
        )

        try:
            await asyncio.wait_for(
                self.notifier.notify(student_ids, self.title, message),
                timeout=self.notify_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(
                "Result notification timed out after %ss for %d students",
                self.notify_timeout,
                len(student_ids),
            )
        except Exception as e:
            logger.warning(
                "Result notification failed for %d students: %s",
                len(student_ids),
                str(e),
            )
