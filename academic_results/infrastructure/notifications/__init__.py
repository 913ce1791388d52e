# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Student notification delivery."""

from academic_results.infrastructure.notifications.service import InAppNotificationDispatcher

__all__ = ["InAppNotificationDispatcher"]
