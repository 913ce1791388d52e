# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Two-stage approval of results.

States: Pending -> HODApproved -> FullyApproved -> Published, with an
advisory RejectedByHOD branch reachable only from Pending. A rejection
annotates the record; the lecturer may still correct it and the HOD may
approve it later.

Each transition checks the current state for a precise error, then writes
through a guarded repository call. When the guard fails because another
request got there first, the record is re-read and the loser sees the same
error it would have seen had it arrived second.
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable

from academic_results.domains.results.actor import Actor, Capability
from academic_results.domains.results.errors import (
    AlreadyApprovedError,
    NotFoundError,
    OutOfOrderError,
)
from academic_results.domains.results.ports import ResultRepository
from academic_results.domains.results.records import ResultRecord
from academic_results.utils.datetime import utc_now
from academic_results.utils.logging import result_context

logger = logging.getLogger(__name__)

DEFAULT_REJECTION_REASON = "No reason provided"


class ApprovalStateMachine:
    """Enforces the ordered HOD then admin approval protocol.

    Attributes:
        repository: Result storage.
    """

    def __init__(self, repository: ResultRepository) -> None:
        self.repository = repository

    async def approve_by_hod(self, result_id: str, actor: Actor) -> ResultRecord:
        """Record the Head-of-Department approval.

        Raises:
            ForbiddenError: If the actor is not an HOD.
            NotFoundError: If the result is missing.
            AlreadyApprovedError: If the HOD already approved it.
        """
        actor.require(Capability.APPROVE_AS_HOD)

        record = await self._transition(
            result_id,
            check=self._check_hod_pending,
            write=lambda: self.repository.mark_hod_approved(result_id, actor.id, utc_now()),
        )

        logger.info("Result %s approved by HOD %s", result_id, actor.id)
        return record

    async def reject_by_hod(
        self,
        result_id: str,
        reason: str | None,
        actor: Actor,
    ) -> ResultRecord:
        """Annotate a pending result with an HOD rejection.

        Raises:
            ForbiddenError: If the actor is not an HOD.
            NotFoundError: If the result is missing.
            AlreadyApprovedError: If the HOD already approved it.
        """
        actor.require(Capability.APPROVE_AS_HOD)

        reason = (reason or "").strip() or DEFAULT_REJECTION_REASON

        record = await self._transition(
            result_id,
            check=self._check_rejectable,
            write=lambda: self.repository.mark_hod_rejected(
                result_id, reason, actor.id, utc_now()
            ),
        )

        logger.info("Result %s rejected by HOD %s: %s", result_id, actor.id, reason)
        return record

    async def approve_by_admin(self, result_id: str, actor: Actor) -> ResultRecord:
        """Record the registrar/admin approval.

        Raises:
            ForbiddenError: If the actor is not an admin.
            NotFoundError: If the result is missing.
            OutOfOrderError: If the HOD has not approved yet.
            AlreadyApprovedError: If the admin already approved it.
        """
        actor.require(Capability.APPROVE_AS_ADMIN)

        record = await self._transition(
            result_id,
            check=self._check_admin_pending,
            write=lambda: self.repository.mark_admin_approved(result_id, actor.id, utc_now()),
        )

        logger.info("Result %s approved by admin %s", result_id, actor.id)
        return record

    async def _transition(
        self,
        result_id: str,
        check: Callable[[ResultRecord], None],
        write: Callable[[], Awaitable[ResultRecord | None]],
    ) -> ResultRecord:
        """Run a state check followed by the guarded write.

        If the guarded write matches nothing, the record changed underneath
        us; re-read and re-check so the caller gets the accurate error.
        """
        with result_context(result_id=result_id):
            check(await self._get(result_id))

            updated = await write()
            if updated is None:
                current = await self._get(result_id)
                check(current)
                raise AlreadyApprovedError(f"Result {result_id} changed concurrently")

            return updated

    @staticmethod
    def _check_hod_pending(record: ResultRecord) -> None:
        if record.approved_by_hod:
            raise AlreadyApprovedError("Result already approved by HOD")

    @staticmethod
    def _check_rejectable(record: ResultRecord) -> None:
        if record.approved_by_hod:
            raise AlreadyApprovedError("Approved results cannot be rejected")

    @staticmethod
    def _check_admin_pending(record: ResultRecord) -> None:
        if not record.approved_by_hod:
            raise OutOfOrderError("Result must be approved by HOD first")
        if record.approved_by_admin:
            raise AlreadyApprovedError("Result already approved by Admin")

    async def _get(self, result_id: str) -> ResultRecord:
        record = await self.repository.get(result_id)
        if record is None:
            raise NotFoundError(f"Result {result_id} not found")
        return record
