# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""DateTime utilities.

All timestamps are stored in UTC (TIMESTAMPTZ) and every Python datetime
is timezone-aware, so naive/aware mixing never happens.

Usage:
------
    from academic_results.utils.datetime import utc_now

    # For current time
    now = utc_now()

    # For SQLAlchemy model defaults
    created_at = Column(DateTime(timezone=True), default=utc_now)
"""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Get current UTC time as timezone-aware datetime.

    Returns:
        Timezone-aware datetime representing current UTC time.
    """
    return datetime.now(timezone.utc)
