# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Utility functions and helpers.

This package contains cross-cutting utilities:
- logging: structlog rendering with request and result context
- datetime: Timezone-aware datetime operations
"""

from academic_results.utils.datetime import utc_now
from academic_results.utils.logging import (
    bind_context,
    clear_context,
    get_logger,
    result_context,
    setup_logging,
)

__all__ = [
    # Logging
    "setup_logging",
    "get_logger",
    "bind_context",
    "clear_context",
    "result_context",
    # Datetime
    "utc_now",
]
