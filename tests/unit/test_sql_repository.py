# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the SQLAlchemy result repository and directory."""

from datetime import date, datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from academic_results.domains.results.errors import AlreadyExistsError, StorageError
from academic_results.domains.results.records import (
    NewResult,
    ResultFilter,
    ResultState,
    Semester,
)
from academic_results.infrastructure.database.directory import SqlAcademicDirectory
from academic_results.infrastructure.database.repository import SqlResultRepository

_NOW = datetime(2024, 6, 1, tzinfo=timezone.utc)


@pytest.fixture
def mock_db():
    """Create mock database session."""
    db = AsyncMock()
    db.add = MagicMock()
    db.add_all = MagicMock()
    db.flush = AsyncMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    db.execute = AsyncMock()
    return db


@pytest.fixture
def repository(mock_db):
    return SqlResultRepository(mock_db)


@pytest.fixture
def sample_row():
    """Create a sample result row with its course and session loaded."""
    row = MagicMock()
    row.id = "r-1"
    row.student_id = "s-1"
    row.course.id = "c-1"
    row.course.code = "CSC101"
    row.course.title = "Introduction to Computing"
    row.course.credits = 3
    row.academic_session.id = "ss-1"
    row.academic_session.name = "2023/2024"
    row.academic_session.start_date = date(2023, 9, 1)
    row.semester = "first"
    row.ca_score = 25
    row.exam_score = 60
    row.total_score = 85
    row.grade = "A"
    row.grade_points = 5
    row.entered_by = "l-1"
    row.approved_by_hod = False
    row.hod_approved_by = None
    row.hod_approved_at = None
    row.approved_by_admin = False
    row.admin_approved_by = None
    row.admin_approved_at = None
    row.hod_rejection_reason = None
    row.hod_rejected_by = None
    row.hod_rejected_at = None
    row.is_published = False
    row.published_at = None
    row.created_at = _NOW
    row.updated_at = _NOW
    return row


def _scalar_result(value):
    result = MagicMock()
    result.scalar_one_or_none.return_value = value
    result.scalar_one.return_value = value
    return result


def _rows_result(rows):
    result = MagicMock()
    result.scalars.return_value.all.return_value = rows
    return result


def _new_result() -> NewResult:
    return NewResult(
        student_id="s-1",
        course_id="c-1",
        session_id="ss-1",
        semester=Semester.FIRST,
        ca_score=25,
        exam_score=60,
        total_score=85,
        grade="A",
        grade_points=5.0,
        entered_by="l-1",
    )


class TestReads:
    """Tests for repository reads."""

    @pytest.mark.asyncio
    async def test_get_hydrates_record(self, repository, mock_db, sample_row):
        mock_db.execute.return_value = _scalar_result(sample_row)

        record = await repository.get("r-1")

        assert record.id == "r-1"
        assert record.course.code == "CSC101"
        assert record.course.credits == 3
        assert record.session.name == "2023/2024"
        assert record.semester is Semester.FIRST
        assert record.total_score == 85.0
        assert isinstance(record.grade_points, float)
        assert record.state is ResultState.PENDING

    @pytest.mark.asyncio
    async def test_get_missing_returns_none(self, repository, mock_db):
        mock_db.execute.return_value = _scalar_result(None)

        assert await repository.get("missing") is None

    @pytest.mark.asyncio
    async def test_exists(self, repository, mock_db):
        mock_db.execute.return_value = _scalar_result("r-1")

        assert await repository.exists("s-1", "c-1", "ss-1", Semester.FIRST) is True

    @pytest.mark.asyncio
    async def test_list_returns_page_and_total(self, repository, mock_db, sample_row):
        mock_db.execute.side_effect = [_scalar_result(7), _rows_result([sample_row])]

        records, total = await repository.list(
            ResultFilter(state=ResultState.PENDING), offset=0, limit=1
        )

        assert total == 7
        assert [r.id for r in records] == ["r-1"]

    @pytest.mark.asyncio
    async def test_read_failure_becomes_storage_error(self, repository, mock_db):
        mock_db.execute.side_effect = OperationalError("SELECT", {}, Exception("down"))

        with pytest.raises(StorageError) as exc_info:
            await repository.get("r-1")

        assert exc_info.value.message == "Failed to load result"
        mock_db.rollback.assert_awaited_once()


class TestInserts:
    """Tests for result inserts."""

    @pytest.mark.asyncio
    async def test_duplicate_becomes_already_exists(self, repository, mock_db):
        mock_db.flush.side_effect = IntegrityError(
            "INSERT",
            {},
            Exception('duplicate key value violates unique constraint "uq_results_student_course_term"'),
        )

        with pytest.raises(AlreadyExistsError):
            await repository.add(_new_result())

        mock_db.rollback.assert_awaited_once()
        mock_db.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_other_integrity_error_becomes_storage_error(self, repository, mock_db):
        mock_db.flush.side_effect = IntegrityError(
            "INSERT",
            {},
            Exception('insert violates foreign key constraint "results_course_id_fkey"'),
        )

        with pytest.raises(StorageError):
            await repository.add_many([_new_result()])

        mock_db.rollback.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_add_many_rows_added_together(self, repository, mock_db):
        mock_db.flush.side_effect = IntegrityError(
            "INSERT", {}, Exception("uq_results_student_course_term")
        )

        with pytest.raises(AlreadyExistsError):
            await repository.add_many([_new_result(), _new_result()])

        mock_db.add_all.assert_called_once()
        assert len(mock_db.add_all.call_args.args[0]) == 2


class TestGuardedWrites:
    """Tests for conditional updates."""

    @pytest.mark.asyncio
    async def test_guard_miss_returns_none(self, repository, mock_db):
        mock_db.execute.return_value = _scalar_result(None)

        updated = await repository.mark_hod_approved("r-1", "h-1", _NOW)

        assert updated is None
        mock_db.commit.assert_awaited_once()
        assert mock_db.execute.await_count == 1

    @pytest.mark.asyncio
    async def test_guard_hit_reloads_record(self, repository, mock_db, sample_row):
        sample_row.approved_by_hod = True
        sample_row.hod_approved_by = "h-1"
        mock_db.execute.side_effect = [_scalar_result("r-1"), _scalar_result(sample_row)]

        updated = await repository.mark_hod_approved("r-1", "h-1", _NOW)

        assert updated.approved_by_hod is True
        assert updated.hod_approved_by == "h-1"
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_write_failure_rolls_back(self, repository, mock_db):
        mock_db.execute.side_effect = OperationalError("UPDATE", {}, Exception("down"))

        with pytest.raises(StorageError):
            await repository.update_scores("r-1", 20, 50, 70, "A", 5.0)

        mock_db.rollback.assert_awaited_once()
        mock_db.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_delete_of_published_returns_false(self, repository, mock_db):
        mock_db.execute.return_value = _scalar_result(None)

        assert await repository.delete_unpublished("r-1") is False

    @pytest.mark.asyncio
    async def test_delete_unpublished(self, repository, mock_db):
        mock_db.execute.return_value = _scalar_result("r-1")

        assert await repository.delete_unpublished("r-1") is True
        mock_db.commit.assert_awaited_once()


class TestPublish:
    """Tests for the publication snapshot."""

    @pytest.mark.asyncio
    async def test_empty_snapshot_publishes_nothing(self, repository, mock_db):
        mock_db.execute.return_value = _rows_result([])

        published = await repository.publish("ss-1", Semester.FIRST, _NOW)

        assert published == []
        assert mock_db.execute.await_count == 1
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_publishes_snapshot(self, repository, mock_db, sample_row):
        sample_row.approved_by_hod = True
        sample_row.approved_by_admin = True
        sample_row.is_published = True
        sample_row.published_at = _NOW
        mock_db.execute.side_effect = [
            _rows_result(["r-1"]),
            _rows_result(["r-1"]),
            _rows_result([sample_row]),
        ]

        published = await repository.publish("ss-1", Semester.FIRST, _NOW)

        assert [r.id for r in published] == ["r-1"]
        assert published[0].state is ResultState.PUBLISHED
        mock_db.commit.assert_awaited_once()


class TestSqlAcademicDirectory:
    """Tests for directory lookups."""

    @pytest.mark.asyncio
    async def test_get_course(self, mock_db):
        course = MagicMock()
        course.id = "c-1"
        course.code = "CSC101"
        course.title = "Introduction to Computing"
        course.credits = 3
        mock_db.execute.return_value = _scalar_result(course)

        ref = await SqlAcademicDirectory(mock_db).get_course("c-1")

        assert ref.code == "CSC101"
        assert ref.credits == 3

    @pytest.mark.asyncio
    async def test_missing_student(self, mock_db):
        mock_db.execute.return_value = _scalar_result(None)

        directory = SqlAcademicDirectory(mock_db)

        assert await directory.get_student("s-1") is None
        assert await directory.student_exists("s-1") is False

    @pytest.mark.asyncio
    async def test_enrollment_check(self, mock_db):
        mock_db.execute.return_value = _scalar_result("e-1")

        assert await SqlAcademicDirectory(mock_db).is_actively_enrolled("s-1", "c-1", "ss-1")

    @pytest.mark.asyncio
    async def test_lookup_failure_becomes_storage_error(self, mock_db):
        mock_db.execute.side_effect = OperationalError("SELECT", {}, Exception("down"))

        with pytest.raises(StorageError) as exc_info:
            await SqlAcademicDirectory(mock_db).session_exists("ss-1")

        assert exc_info.value.message == "Failed to look up session"
