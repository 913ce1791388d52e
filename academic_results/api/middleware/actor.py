# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Actor resolution middleware.

Authentication happens at the upstream gateway, which forwards the
verified identity in two headers. This middleware turns them into an
Actor on request.state and binds request details into the log context.

Example:
    PUT /api/v1/results/{id}/approve-hod
    X-Actor-Id: 4b0d...
    X-Actor-Role: hod
"""

import logging
from typing import Callable
from uuid import UUID, uuid4

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from academic_results.domains.results.actor import Actor, Role
from academic_results.utils.logging import bind_context, clear_context

logger = logging.getLogger(__name__)

ACTOR_ID_HEADER = "X-Actor-Id"
ACTOR_ROLE_HEADER = "X-Actor-Role"
REQUEST_ID_HEADER = "X-Request-ID"


class ActorMiddleware(BaseHTTPMiddleware):
    """Populates request.state.actor from gateway headers.

    Requests without valid headers continue with request.state.actor set
    to None; endpoints that need an actor reject them.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Response],
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid4())
        request.state.request_id = request_id
        request.state.actor = parse_actor(
            request.headers.get(ACTOR_ID_HEADER),
            request.headers.get(ACTOR_ROLE_HEADER),
        )

        clear_context()
        bind_context(request_id=request_id)
        if request.state.actor is not None:
            bind_context(
                actor_id=request.state.actor.id,
                actor_role=request.state.actor.role.value,
            )

        try:
            response = await call_next(request)
        finally:
            clear_context()

        response.headers[REQUEST_ID_HEADER] = request_id
        return response


def parse_actor(actor_id: str | None, role: str | None) -> Actor | None:
    """Build an Actor from raw header values.

    Actor ids are user UUIDs and are normalized to their canonical
    lowercase form so they compare equal to stored identifiers.

    Returns:
        The actor, or None if either header is missing, the id is not a
        UUID, or the role is unknown.
    """
    actor_id = (actor_id or "").strip()
    role = (role or "").strip().lower()
    if not actor_id or not role:
        return None

    try:
        actor_uuid = UUID(actor_id)
    except ValueError:
        logger.debug("Malformed actor id: %s", actor_id)
        return None

    try:
        return Actor(id=str(actor_uuid), role=Role(role))
    except ValueError:
        logger.debug("Unknown actor role: %s", role)
        return None


def get_current_actor(request: Request) -> Actor | None:
    """Get the actor from request state."""
    return getattr(request.state, "actor", None)
