# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Configuration package.

Example:
    >>> from academic_results.core.config import get_settings
    >>> settings = get_settings()
    >>> print(settings.environment)
    'development'
"""

from academic_results.core.config.settings import (
    APISettings,
    CORSSettings,
    DatabaseSettings,
    GradingSettings,
    NotificationSettings,
    RateLimitSettings,
    Settings,
    clear_settings_cache,
    get_settings,
)

__all__ = [
    # Settings
    "Settings",
    "get_settings",
    "clear_settings_cache",
    # Subsettings
    "DatabaseSettings",
    "GradingSettings",
    "NotificationSettings",
    "RateLimitSettings",
    "CORSSettings",
    "APISettings",
]
