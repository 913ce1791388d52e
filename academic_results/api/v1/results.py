# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Result lifecycle API endpoints.

This module provides endpoints for academic results:
- POST / - Submit scores for one student
- POST /import - Bulk import scores (all or nothing)
- GET / - List results visible to the caller
- PUT /publish - Publish approved results of a session and semester
- GET /transcript/me - Caller's own transcript
- GET /transcript/{student_id} - Transcript of a student
- GET /summary/{student_id} - GPA and grade distribution of a student
- GET /{result_id} - Get result details
- PUT /{result_id} - Correct scores before approval
- DELETE /{result_id} - Delete an unpublished result
- PUT /{result_id}/approve-hod - Head-of-Department approval
- PUT /{result_id}/reject-hod - Head-of-Department rejection
- PUT /{result_id}/approve-admin - Registrar approval

Domain errors propagate to the application's ResultServiceError handler.
"""

import logging
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, Response, status

from academic_results.api.dependencies import get_result_service, require_actor
from academic_results.api.middleware.rate_limit import bulk_limit, limiter
from academic_results.domains.results.actor import Actor
from academic_results.domains.results.records import ResultFilter, ResultState, Semester
from academic_results.domains.results.service import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, ResultService
from academic_results.models.results import (
    BulkImportRequest,
    BulkImportResponse,
    ErrorResponse,
    PublishRequest,
    PublishResponse,
    RejectRequest,
    ResultCreateRequest,
    ResultListResponse,
    ResultResponse,
    ResultUpdateRequest,
    SummaryResponse,
    TranscriptResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    responses={
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)

CurrentActor = Annotated[Actor, Depends(require_actor)]
Service = Annotated[ResultService, Depends(get_result_service)]


# =========================================================================
# Collection endpoints
# =========================================================================


@router.post(
    "",
    response_model=ResultResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Submit result",
    description="Submit CA and exam scores for a student. Requires lecturer or admin role.",
)
async def create_result(
    data: ResultCreateRequest,
    actor: CurrentActor,
    service: Service,
) -> ResultResponse:
    """Create a pending result from raw scores."""
    record = await service.scores.submit(data.to_submission(), actor)
    return ResultResponse.from_record(record)


@router.post(
    "/import",
    response_model=BulkImportResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Bulk import results",
    description="Import many results at once. Nothing is written if any entry fails.",
)
@limiter.limit(bulk_limit)
async def import_results(
    request: Request,
    data: BulkImportRequest,
    actor: CurrentActor,
    service: Service,
) -> BulkImportResponse:
    """Import a batch of results all-or-nothing."""
    logger.info("Importing %d results by %s", len(data.results), actor.id)

    records = await service.scores.submit_many(
        [entry.to_submission() for entry in data.results],
        actor,
    )
    return BulkImportResponse(
        created=len(records),
        items=[ResultResponse.from_record(r) for r in records],
    )


@router.get(
    "",
    response_model=ResultListResponse,
    summary="List results",
    description="List results. Students only ever see their own published results.",
)
async def list_results(
    actor: CurrentActor,
    service: Service,
    student_id: Annotated[UUID | None, Query(description="Filter by student")] = None,
    course_id: Annotated[UUID | None, Query(description="Filter by course")] = None,
    session_id: Annotated[UUID | None, Query(description="Filter by session")] = None,
    semester: Annotated[Semester | None, Query(description="Filter by semester")] = None,
    published: Annotated[bool | None, Query(description="Filter by publication")] = None,
    state: Annotated[ResultState | None, Query(description="Filter by lifecycle state")] = None,
    page: Annotated[int, Query(ge=1, description="Page number")] = 1,
    limit: Annotated[
        int, Query(ge=1, le=MAX_PAGE_SIZE, description="Items per page")
    ] = DEFAULT_PAGE_SIZE,
) -> ResultListResponse:
    """List results with filters and pagination."""
    filters = ResultFilter(
        student_id=str(student_id) if student_id else None,
        course_id=str(course_id) if course_id else None,
        session_id=str(session_id) if session_id else None,
        semester=semester,
        published=published,
        state=state,
    )

    records, total = await service.list_results(actor, filters, page=page, limit=limit)
    return ResultListResponse.build(records, total, page=page, limit=limit)


@router.put(
    "/publish",
    response_model=PublishResponse,
    summary="Publish results",
    description="Publish every dual-approved result of a session and semester. Admin only.",
)
@limiter.limit(bulk_limit)
async def publish_results(
    request: Request,
    data: PublishRequest,
    actor: CurrentActor,
    service: Service,
) -> PublishResponse:
    """Run a publication sweep; repeated calls publish nothing new."""
    count = await service.publication.publish(str(data.session), data.semester, actor)

    if count:
        message = f"Published {count} results"
    else:
        message = "No approved results awaiting publication"
    return PublishResponse(message=message, modified_count=count)


# =========================================================================
# Transcripts and summaries
# =========================================================================


@router.get(
    "/transcript/me",
    response_model=TranscriptResponse,
    summary="My transcript",
    description="Transcript of the calling student.",
)
async def get_my_transcript(
    actor: CurrentActor,
    service: Service,
) -> TranscriptResponse:
    """Build the caller's own transcript."""
    transcript = await service.transcripts.build(actor.id, actor)
    return TranscriptResponse.from_transcript(transcript)


@router.get(
    "/transcript/{student_id}",
    response_model=TranscriptResponse,
    summary="Student transcript",
    description="Transcript of a student. Students may only read their own.",
)
async def get_transcript(
    student_id: UUID,
    actor: CurrentActor,
    service: Service,
) -> TranscriptResponse:
    """Build a student's transcript."""
    transcript = await service.transcripts.build(str(student_id), actor)
    return TranscriptResponse.from_transcript(transcript)


@router.get(
    "/summary/{student_id}",
    response_model=SummaryResponse,
    summary="Student result summary",
    description="GPA, credit totals and grade distribution of a student.",
)
async def get_summary(
    student_id: UUID,
    actor: CurrentActor,
    service: Service,
    session_id: Annotated[UUID | None, Query(description="Filter by session")] = None,
    semester: Annotated[Semester | None, Query(description="Filter by semester")] = None,
) -> SummaryResponse:
    """Summarize a student's published results."""
    summary = await service.transcripts.summarize(
        str(student_id),
        actor,
        session_id=str(session_id) if session_id else None,
        semester=semester,
    )
    return SummaryResponse.from_summary(summary)


# =========================================================================
# Single-result endpoints
# =========================================================================


@router.get(
    "/{result_id}",
    response_model=ResultResponse,
    summary="Get result",
)
async def get_result(
    result_id: UUID,
    actor: CurrentActor,
    service: Service,
) -> ResultResponse:
    """Get result details."""
    record = await service.get_result(str(result_id), actor)
    return ResultResponse.from_record(record)


@router.put(
    "/{result_id}",
    response_model=ResultResponse,
    summary="Update result",
    description="Correct scores. Only the entering lecturer or an admin, and only before approval.",
)
async def update_result(
    result_id: UUID,
    data: ResultUpdateRequest,
    actor: CurrentActor,
    service: Service,
) -> ResultResponse:
    """Correct the scores of an unapproved result."""
    record = await service.scores.update(
        str(result_id),
        actor,
        ca_score=data.ca_score,
        exam_score=data.exam_score,
    )
    return ResultResponse.from_record(record)


@router.delete(
    "/{result_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete result",
    description="Delete an unpublished result. Admin only.",
)
async def delete_result(
    result_id: UUID,
    actor: CurrentActor,
    service: Service,
) -> Response:
    """Delete an unpublished result."""
    await service.scores.delete(str(result_id), actor)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put(
    "/{result_id}/approve-hod",
    response_model=ResultResponse,
    summary="HOD approval",
)
async def approve_by_hod(
    result_id: UUID,
    actor: CurrentActor,
    service: Service,
) -> ResultResponse:
    """Record the Head-of-Department approval."""
    record = await service.approvals.approve_by_hod(str(result_id), actor)
    return ResultResponse.from_record(record)


@router.put(
    "/{result_id}/reject-hod",
    response_model=ResultResponse,
    summary="HOD rejection",
    description="Annotate a pending result with a rejection. The result stays correctable.",
)
async def reject_by_hod(
    result_id: UUID,
    actor: CurrentActor,
    service: Service,
    data: RejectRequest | None = None,
) -> ResultResponse:
    """Record a Head-of-Department rejection."""
    reason = data.reason if data else None
    record = await service.approvals.reject_by_hod(str(result_id), reason, actor)
    return ResultResponse.from_record(record)


@router.put(
    "/{result_id}/approve-admin",
    response_model=ResultResponse,
    summary="Admin approval",
)
async def approve_by_admin(
    result_id: UUID,
    actor: CurrentActor,
    service: Service,
) -> ResultResponse:
    """Record the registrar/admin approval."""
    record = await service.approvals.approve_by_admin(str(result_id), actor)
    return ResultResponse.from_record(record)
