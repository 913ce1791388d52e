# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Rate limiting using slowapi.

Rate limits are applied per client (actor ID if known, otherwise IP
address). Bulk endpoints carry a tighter limit.

Example:
    @router.post("/import")
    @limiter.limit(bulk_limit)
    async def import_results(request: Request, ...):
        ...
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from academic_results.core.config import get_settings

logger = logging.getLogger(__name__)


def get_client_identifier(request: Request) -> str:
    """Get a unique identifier for the client.

    Args:
        request: HTTP request.

    Returns:
        Client identifier string.
    """
    actor = getattr(request.state, "actor", None)
    if actor is not None:
        return f"actor:{actor.id}"
    return f"ip:{get_remote_address(request)}"


def bulk_limit() -> str:
    """Limit string for bulk endpoints, read from settings."""
    return f"{get_settings().rate_limit.bulk_per_minute}/minute"


# Create the limiter instance
settings = get_settings()
limiter = Limiter(
    key_func=get_client_identifier,
    default_limits=[f"{settings.rate_limit.requests_per_minute}/minute"],
    storage_uri=settings.rate_limit.storage_uri,
    enabled=settings.rate_limit.enabled,
)


async def rate_limit_exceeded_handler(
    request: Request,
    exc: RateLimitExceeded,
) -> JSONResponse:
    """Handle rate limit exceeded errors.

    Returns a 429 Too Many Requests response in the error envelope.
    """
    logger.warning(
        "Rate limit exceeded: %s for %s",
        exc.detail,
        get_client_identifier(request),
    )

    return JSONResponse(
        status_code=429,
        content={
            "error": {
                "kind": "rate_limited",
                "message": "Too many requests. Please try again later.",
            }
        },
        headers={"Retry-After": "60"},
    )
