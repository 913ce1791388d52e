# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Error taxonomy for the result lifecycle.

Every failure raised by the result components is a ResultServiceError
subclass with a stable ``kind``. The API layer maps kinds to HTTP status
codes; nothing in the domain knows about HTTP.
"""

from enum import Enum


class ErrorKind(str, Enum):
    """Stable error kinds exposed to callers."""

    NOT_FOUND = "not_found"
    ALREADY_EXISTS = "already_exists"
    CONFLICT = "conflict"
    INVALID_INPUT = "invalid_input"
    IMMUTABLE = "immutable"
    OUT_OF_ORDER = "out_of_order"
    ALREADY_APPROVED = "already_approved"
    FORBIDDEN = "forbidden"
    INTERNAL = "internal"


class ResultServiceError(Exception):
    """Base exception for result service errors.

    Attributes:
        message: Human-readable error description.
    """

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(ResultServiceError):
    """Raised when a student, course, session or result is missing."""

    kind = ErrorKind.NOT_FOUND


class AlreadyExistsError(ResultServiceError):
    """Raised when a result already exists for the identity tuple."""

    kind = ErrorKind.ALREADY_EXISTS


class ConflictError(ResultServiceError):
    """Raised when a business rule conflicts with the request."""

    kind = ErrorKind.CONFLICT


class NotEnrolledError(ConflictError):
    """Raised when the student has no active enrollment for the course."""


class InvalidInputError(ResultServiceError):
    """Raised when a score, semester or grading input is out of range."""

    kind = ErrorKind.INVALID_INPUT


class ImmutableError(ResultServiceError):
    """Raised when editing or deleting a locked result."""

    kind = ErrorKind.IMMUTABLE


class OutOfOrderError(ResultServiceError):
    """Raised when admin approval is attempted before HOD approval."""

    kind = ErrorKind.OUT_OF_ORDER


class AlreadyApprovedError(ResultServiceError):
    """Raised when an approval stage has already been passed."""

    kind = ErrorKind.ALREADY_APPROVED


class ForbiddenError(ResultServiceError):
    """Raised on role or ownership violations."""

    kind = ErrorKind.FORBIDDEN


class StorageError(ResultServiceError):
    """Raised when the storage layer fails.

    Attributes:
        original_error: The underlying database error.
    """

    kind = ErrorKind.INTERNAL

    def __init__(self, message: str, original_error: Exception | None = None) -> None:
        super().__init__(message)
        self.original_error = original_error

    def __str__(self) -> str:
        if self.original_error:
            return f"{self.message}: {self.original_error}"
        return self.message
