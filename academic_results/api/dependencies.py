# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI dependency injection definitions.

Dependencies are used to:
- Get database sessions
- Get the authenticated actor
- Get the result service wired over the request's session

Example:
    @router.get("/results")
    async def list_results(
        actor: Actor = Depends(require_actor),
        service: ResultService = Depends(get_result_service),
    ):
        ...
"""

import logging
from typing import AsyncGenerator

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from academic_results.api.middleware.actor import get_current_actor
from academic_results.core.config import get_settings
from academic_results.core.config.settings import Settings
from academic_results.domains.results.actor import Actor
from academic_results.domains.results.grading import GradingScale, build_scale
from academic_results.domains.results.ports import NotificationDispatcher
from academic_results.domains.results.service import ResultService
from academic_results.infrastructure.database.connection import (
    close_database,
    create_tables,
    get_session,
    get_sessionmaker,
    init_database,
)
from academic_results.infrastructure.database.directory import SqlAcademicDirectory
from academic_results.infrastructure.database.repository import SqlResultRepository
from academic_results.infrastructure.notifications import InAppNotificationDispatcher

logger = logging.getLogger(__name__)


async def init_db(settings: Settings) -> None:
    """Initialize the database connection and, if configured, the tables."""
    await init_database(settings)
    if settings.database.create_tables:
        await create_tables()
        logger.info("Database tables created")


async def close_db() -> None:
    """Close the database connection."""
    await close_database()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Get a database session for one request.

    Yields:
        AsyncSession committed on success and rolled back on error.
    """
    async with get_session() as session:
        yield session


def require_actor(request: Request) -> Actor:
    """Get the acting user, raising 401 if the gateway sent none.

    Raises:
        HTTPException: If the actor headers are missing or invalid.
    """
    actor = get_current_actor(request)
    if actor is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    return actor


def get_grading_scale() -> GradingScale:
    """Get the configured grading scale."""
    grading = get_settings().grading
    return build_scale(grading.scale, bands=grading.bands, points=grading.points)


def get_notifier() -> NotificationDispatcher | None:
    """Get the student notification dispatcher, or None when disabled."""
    if not get_settings().notifications.enabled:
        return None
    return InAppNotificationDispatcher(get_sessionmaker())


def get_result_service(
    db: AsyncSession = Depends(get_db),
    scale: GradingScale = Depends(get_grading_scale),
    notifier: NotificationDispatcher | None = Depends(get_notifier),
) -> ResultService:
    """Get the result service for the request's session."""
    notifications = get_settings().notifications
    return ResultService(
        repository=SqlResultRepository(db),
        directory=SqlAcademicDirectory(db),
        scale=scale,
        notifier=notifier,
        notify_timeout=notifications.timeout_seconds,
        notification_title=notifications.title,
    )
