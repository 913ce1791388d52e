# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""In-app notification dispatcher.

Creates notification records in the database that are displayed within
the student portal. Each dispatch uses its own session so a failed
notification never touches the caller's transaction.
"""

import logging
from typing import Sequence

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from academic_results.domains.results.ports import NotificationDispatcher
from academic_results.infrastructure.database.models.academic import Notification

logger = logging.getLogger(__name__)

RESULTS_NOTIFICATION_TYPE = "results_published"


class InAppNotificationDispatcher(NotificationDispatcher):
    """Writes one in-app notification per student.

    Attributes:
        sessionmaker: Factory for the dispatcher's own sessions.
        notification_type: Type recorded on every notification.
    """

    def __init__(
        self,
        sessionmaker: async_sessionmaker[AsyncSession],
        notification_type: str = RESULTS_NOTIFICATION_TYPE,
    ) -> None:
        self.sessionmaker = sessionmaker
        self.notification_type = notification_type

    async def notify(self, student_ids: Sequence[str], title: str, message: str) -> None:
        """Create the notifications in one transaction.

        Args:
            student_ids: Recipients.
            title: Notification title.
            message: Notification body.
        """
        if not student_ids:
            return

        notifications = [
            Notification(
                user_id=str(student_id),
                notification_type=self.notification_type,
                title=title,
                message=message,
            )
            for student_id in student_ids
        ]

        async with self.sessionmaker() as session:
            session.add_all(notifications)
            await session.commit()

        logger.info(
            "Created %d in-app notifications: type=%s",
            len(notifications),
            self.notification_type,
        )
