# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Mapping of result service errors to HTTP responses."""

import logging

from fastapi import Request, status
from fastapi.responses import JSONResponse

from academic_results.domains.results.errors import ErrorKind, ResultServiceError

logger = logging.getLogger(__name__)

STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.ALREADY_EXISTS: status.HTTP_409_CONFLICT,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.INVALID_INPUT: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorKind.IMMUTABLE: status.HTTP_409_CONFLICT,
    ErrorKind.OUT_OF_ORDER: status.HTTP_409_CONFLICT,
    ErrorKind.ALREADY_APPROVED: status.HTTP_409_CONFLICT,
    ErrorKind.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorKind.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def error_response(status_code: int, kind: str, message: str) -> JSONResponse:
    """Build the error envelope response."""
    return JSONResponse(
        status_code=status_code,
        content={"error": {"kind": kind, "message": message}},
    )


async def result_service_error_handler(
    request: Request,
    exc: ResultServiceError,
) -> JSONResponse:
    """Render a ResultServiceError with the status code for its kind.

    Internal errors are logged with their cause and reported with a
    generic message.
    """
    status_code = STATUS_BY_KIND.get(exc.kind, status.HTTP_500_INTERNAL_SERVER_ERROR)

    if status_code >= 500:
        logger.error(
            "Internal error on %s %s: %s",
            request.method,
            request.url.path,
            str(exc),
            exc_info=exc,
        )
        return error_response(status_code, exc.kind.value, "Internal server error")

    logger.info(
        "%s %s rejected: kind=%s, message=%s",
        request.method,
        request.url.path,
        exc.kind.value,
        exc.message,
    )
    return error_response(status_code, exc.kind.value, exc.message)
