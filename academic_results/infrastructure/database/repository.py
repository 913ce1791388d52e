# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""SQLAlchemy result repository.

Every guarded write is a single conditional UPDATE or DELETE whose WHERE
clause restates the precondition, committed immediately. Row locking in
PostgreSQL makes concurrent writers serialize on the row, and the loser's
guard simply matches nothing.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, AsyncIterator, Sequence

from sqlalchemy import Select, and_, delete, func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from academic_results.domains.results.errors import AlreadyExistsError, StorageError
from academic_results.domains.results.ports import ResultRepository
from academic_results.domains.results.records import (
    CourseRef,
    NewResult,
    ResultFilter,
    ResultRecord,
    ResultState,
    Semester,
    SessionRef,
)
from academic_results.infrastructure.database.models.academic import Result
from academic_results.utils.datetime import utc_now

logger = logging.getLogger(__name__)

UNIQUE_RESULT_CONSTRAINT = "uq_results_student_course_term"
DUPLICATE_RESULT_MESSAGE = "Result already exists for this student, course, session and semester"

_VISIBLE = and_(
    Result.is_published.is_(True),
    Result.approved_by_hod.is_(True),
    Result.approved_by_admin.is_(True),
)

_STATE_CONDITIONS = {
    ResultState.PENDING: and_(
        Result.is_published.is_(False),
        Result.approved_by_hod.is_(False),
        Result.hod_rejected_at.is_(None),
    ),
    ResultState.REJECTED_BY_HOD: and_(
        Result.is_published.is_(False),
        Result.approved_by_hod.is_(False),
        Result.hod_rejected_at.is_not(None),
    ),
    ResultState.HOD_APPROVED: and_(
        Result.is_published.is_(False),
        Result.approved_by_hod.is_(True),
        Result.approved_by_admin.is_(False),
    ),
    ResultState.FULLY_APPROVED: and_(
        Result.is_published.is_(False),
        Result.approved_by_hod.is_(True),
        Result.approved_by_admin.is_(True),
    ),
    ResultState.PUBLISHED: Result.is_published.is_(True),
}


class SqlResultRepository(ResultRepository):
    """ResultRepository backed by the ``results`` table.

    Attributes:
        session: Request-scoped async session. Mutating methods commit it.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    # =========================================================================
    # Reads
    # =========================================================================

    async def get(self, result_id: str) -> ResultRecord | None:
        async with self._reading("load result"):
            row = (
                await self.session.execute(self._hydrated().where(Result.id == result_id))
            ).scalar_one_or_none()
        return _to_record(row) if row is not None else None

    async def exists(
        self,
        student_id: str,
        course_id: str,
        session_id: str,
        semester: Semester,
    ) -> bool:
        stmt = select(Result.id).where(
            Result.student_id == student_id,
            Result.course_id == course_id,
            Result.session_id == session_id,
            Result.semester == semester.value,
        )
        async with self._reading("check result existence"):
            found = (await self.session.execute(stmt.limit(1))).scalar_one_or_none()
        return found is not None

    async def list(
        self,
        filters: ResultFilter,
        offset: int = 0,
        limit: int = 20,
    ) -> tuple[list[ResultRecord], int]:
        conditions = _filter_conditions(filters)

        count_stmt = select(func.count()).select_from(Result).where(*conditions)
        page_stmt = (
            self._hydrated()
            .where(*conditions)
            .order_by(Result.created_at.desc(), Result.id)
            .offset(offset)
            .limit(limit)
        )

        async with self._reading("list results"):
            total = (await self.session.execute(count_stmt)).scalar_one()
            rows = (await self.session.execute(page_stmt)).scalars().all()

        return [_to_record(row) for row in rows], total

    async def list_visible_for_student(
        self,
        student_id: str,
        session_id: str | None = None,
        semester: Semester | None = None,
    ) -> list[ResultRecord]:
        stmt = self._hydrated().where(Result.student_id == student_id, _VISIBLE)
        if session_id is not None:
            stmt = stmt.where(Result.session_id == session_id)
        if semester is not None:
            stmt = stmt.where(Result.semester == semester.value)

        async with self._reading("list student results"):
            rows = (await self.session.execute(stmt)).scalars().all()

        return [_to_record(row) for row in rows]

    # =========================================================================
    # Inserts
    # =========================================================================

    async def add(self, new_result: NewResult) -> ResultRecord:
        row = _to_row(new_result)
        async with self._writing("create result"):
            self.session.add(row)
            await self.session.flush()
        return await self._reload(row.id)

    async def add_many(self, new_results: Sequence[NewResult]) -> list[ResultRecord]:
        rows = [_to_row(new_result) for new_result in new_results]
        async with self._writing("import results"):
            self.session.add_all(rows)
            await self.session.flush()

        ids = [row.id for row in rows]
        async with self._reading("load imported results"):
            loaded = (
                await self.session.execute(self._hydrated().where(Result.id.in_(ids)))
            ).scalars().all()

        by_id = {row.id: _to_record(row) for row in loaded}
        return [by_id[result_id] for result_id in ids]

    # =========================================================================
    # Guarded writes
    # =========================================================================

    async def update_scores(
        self,
        result_id: str,
        ca_score: float,
        exam_score: float,
        total_score: float,
        grade: str,
        grade_points: float,
    ) -> ResultRecord | None:
        return await self._guarded_update(
            result_id,
            and_(Result.approved_by_hod.is_(False), Result.approved_by_admin.is_(False)),
            ca_score=ca_score,
            exam_score=exam_score,
            total_score=total_score,
            grade=grade,
            grade_points=grade_points,
        )

    async def mark_hod_approved(
        self,
        result_id: str,
        approved_by: str,
        approved_at: datetime,
    ) -> ResultRecord | None:
        return await self._guarded_update(
            result_id,
            Result.approved_by_hod.is_(False),
            approved_by_hod=True,
            hod_approved_by=approved_by,
            hod_approved_at=approved_at,
        )

    async def mark_hod_rejected(
        self,
        result_id: str,
        reason: str,
        rejected_by: str,
        rejected_at: datetime,
    ) -> ResultRecord | None:
        return await self._guarded_update(
            result_id,
            Result.approved_by_hod.is_(False),
            hod_rejection_reason=reason,
            hod_rejected_by=rejected_by,
            hod_rejected_at=rejected_at,
        )

    async def mark_admin_approved(
        self,
        result_id: str,
        approved_by: str,
        approved_at: datetime,
    ) -> ResultRecord | None:
        return await self._guarded_update(
            result_id,
            and_(Result.approved_by_hod.is_(True), Result.approved_by_admin.is_(False)),
            approved_by_admin=True,
            admin_approved_by=approved_by,
            admin_approved_at=approved_at,
        )

    async def delete_unpublished(self, result_id: str) -> bool:
        stmt = (
            delete(Result)
            .where(Result.id == result_id, Result.is_published.is_(False))
            .returning(Result.id)
            .execution_options(synchronize_session=False)
        )
        async with self._writing("delete result"):
            deleted = (await self.session.execute(stmt)).scalar_one_or_none()
        return deleted is not None

    async def publish(
        self,
        session_id: str,
        semester: Semester,
        published_at: datetime,
    ) -> list[ResultRecord]:
        snapshot = (
            select(Result.id)
            .where(
                Result.session_id == session_id,
                Result.semester == semester.value,
                Result.approved_by_hod.is_(True),
                Result.approved_by_admin.is_(True),
                Result.is_published.is_(False),
            )
            .with_for_update(skip_locked=True)
        )

        async with self._writing("publish results"):
            ids = list((await self.session.execute(snapshot)).scalars().all())
            published_ids: list[str] = []
            if ids:
                stmt = (
                    update(Result)
                    .where(Result.id.in_(ids), Result.is_published.is_(False))
                    .values(is_published=True, published_at=published_at, updated_at=utc_now())
                    .returning(Result.id)
                    .execution_options(synchronize_session=False)
                )
                published_ids = list((await self.session.execute(stmt)).scalars().all())

        if not published_ids:
            return []

        async with self._reading("load published results"):
            rows = (
                await self.session.execute(self._hydrated().where(Result.id.in_(published_ids)))
            ).scalars().all()

        return [_to_record(row) for row in rows]

    # =========================================================================
    # Helpers
    # =========================================================================

    @staticmethod
    def _hydrated() -> Select:
        """Select results with their course and session loaded."""
        return (
            select(Result)
            .options(joinedload(Result.course), joinedload(Result.academic_session))
            .execution_options(populate_existing=True)
        )

    async def _guarded_update(
        self,
        result_id: str,
        guard: Any,
        **values: Any,
    ) -> ResultRecord | None:
        """Apply an UPDATE only while the guard holds.

        Returns:
            The updated record, or None if the guard matched nothing.
        """
        stmt = (
            update(Result)
            .where(Result.id == result_id, guard)
            .values(updated_at=utc_now(), **values)
            .returning(Result.id)
            .execution_options(synchronize_session=False)
        )
        async with self._writing("update result"):
            updated = (await self.session.execute(stmt)).scalar_one_or_none()

        if updated is None:
            return None
        return await self._reload(result_id)

    async def _reload(self, result_id: str) -> ResultRecord:
        record = await self.get(result_id)
        if record is None:
            raise StorageError(f"Result {result_id} vanished after write")
        return record

    @asynccontextmanager
    async def _reading(self, action: str) -> AsyncIterator[None]:
        try:
            yield
        except SQLAlchemyError as e:
            logger.error("Failed to %s: %s", action, str(e))
            await self.session.rollback()
            raise StorageError(f"Failed to {action}", e) from e

    @asynccontextmanager
    async def _writing(self, action: str) -> AsyncIterator[None]:
        """Run a write and commit it; roll back on any failure.

        Raises:
            AlreadyExistsError: If the result uniqueness constraint fires.
            StorageError: On any other database failure.
        """
        try:
            yield
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            if UNIQUE_RESULT_CONSTRAINT in str(e.orig):
                raise AlreadyExistsError(DUPLICATE_RESULT_MESSAGE) from e
            logger.error("Failed to %s: %s", action, str(e))
            raise StorageError(f"Failed to {action}", e) from e
        except SQLAlchemyError as e:
            logger.error("Failed to %s: %s", action, str(e))
            await self.session.rollback()
            raise StorageError(f"Failed to {action}", e) from e
        except Exception:
            await self.session.rollback()
            raise


def _filter_conditions(filters: ResultFilter) -> list[Any]:
    conditions: list[Any] = []
    if filters.student_id is not None:
        conditions.append(Result.student_id == filters.student_id)
    if filters.course_id is not None:
        conditions.append(Result.course_id == filters.course_id)
    if filters.session_id is not None:
        conditions.append(Result.session_id == filters.session_id)
    if filters.semester is not None:
        conditions.append(Result.semester == filters.semester.value)
    if filters.published is not None:
        conditions.append(Result.is_published.is_(filters.published))
    if filters.state is not None:
        conditions.append(_STATE_CONDITIONS[filters.state])
    if filters.visible_only:
        conditions.append(_VISIBLE)
    return conditions


def _to_row(new_result: NewResult) -> Result:
    return Result(
        student_id=new_result.student_id,
        course_id=new_result.course_id,
        session_id=new_result.session_id,
        semester=new_result.semester.value,
        ca_score=new_result.ca_score,
        exam_score=new_result.exam_score,
        total_score=new_result.total_score,
        grade=new_result.grade,
        grade_points=new_result.grade_points,
        entered_by=new_result.entered_by,
        approved_by_hod=False,
        approved_by_admin=False,
        is_published=False,
    )


def _to_record(row: Result) -> ResultRecord:
    return ResultRecord(
        id=str(row.id),
        student_id=str(row.student_id),
        course=CourseRef(
            id=str(row.course.id),
            code=row.course.code,
            title=row.course.title,
            credits=row.course.credits,
        ),
        session=SessionRef(
            id=str(row.academic_session.id),
            name=row.academic_session.name,
            start_date=row.academic_session.start_date,
        ),
        semester=Semester(row.semester),
        ca_score=float(row.ca_score),
        exam_score=float(row.exam_score),
        total_score=float(row.total_score),
        grade=row.grade,
        grade_points=float(row.grade_points),
        entered_by=row.entered_by,
        approved_by_hod=row.approved_by_hod,
        hod_approved_by=row.hod_approved_by,
        hod_approved_at=row.hod_approved_at,
        approved_by_admin=row.approved_by_admin,
        admin_approved_by=row.admin_approved_by,
        admin_approved_at=row.admin_approved_at,
        hod_rejection_reason=row.hod_rejection_reason,
        hod_rejected_by=row.hod_rejected_by,
        hod_rejected_at=row.hod_rejected_at,
        is_published=row.is_published,
        published_at=row.published_at,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
