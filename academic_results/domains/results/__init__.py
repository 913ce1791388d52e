# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Result lifecycle domain package.

This package provides the academic result lifecycle:
- Score entry with identity, enrollment and uniqueness checks
- Grade derivation from a configurable grading scale
- Two-stage (HOD, then admin) approval
- Publication sweeps with student notification
- GPA, summaries and transcripts over published results
"""

from academic_results.domains.results.actor import Actor, Capability, Role
from academic_results.domains.results.approval import ApprovalStateMachine
from academic_results.domains.results.errors import (
    AlreadyApprovedError,
    AlreadyExistsError,
    ConflictError,
    ErrorKind,
    ForbiddenError,
    ImmutableError,
    InvalidInputError,
    NotEnrolledError,
    NotFoundError,
    OutOfOrderError,
    ResultServiceError,
    StorageError,
)
from academic_results.domains.results.gpa import GpaEntry, compute_gpa
from academic_results.domains.results.grading import (
    FIVE_POINT_SCALE,
    FOUR_POINT_SCALE,
    Grade,
    GradingScale,
    build_scale,
)
from academic_results.domains.results.publication import PublicationGate
from academic_results.domains.results.records import (
    ResultFilter,
    ResultRecord,
    ResultState,
    Semester,
)
from academic_results.domains.results.scores import ScoreEntryValidator, ScoreSubmission
from academic_results.domains.results.service import ResultService
from academic_results.domains.results.transcript import (
    ResultSummary,
    TermGroup,
    Transcript,
    TranscriptBuilder,
)

__all__ = [
    # Actors
    "Actor",
    "Capability",
    "Role",
    # Components
    "ResultService",
    "ScoreEntryValidator",
    "ScoreSubmission",
    "ApprovalStateMachine",
    "PublicationGate",
    "TranscriptBuilder",
    # Grading and GPA
    "Grade",
    "GradingScale",
    "FIVE_POINT_SCALE",
    "FOUR_POINT_SCALE",
    "build_scale",
    "GpaEntry",
    "compute_gpa",
    # Records
    "ResultFilter",
    "ResultRecord",
    "ResultState",
    "Semester",
    "Transcript",
    "TermGroup",
    "ResultSummary",
    # Errors
    "ErrorKind",
    "ResultServiceError",
    "NotFoundError",
    "AlreadyExistsError",
    "ConflictError",
    "NotEnrolledError",
    "InvalidInputError",
    "ImmutableError",
    "OutOfOrderError",
    "AlreadyApprovedError",
    "ForbiddenError",
    "StorageError",
]
