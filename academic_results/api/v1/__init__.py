# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API v1 routes package.

Modules:
    results: Result lifecycle, transcript and summary endpoints.
"""

from fastapi import APIRouter

from academic_results.api.v1 import results

# Create the main v1 router
router = APIRouter(prefix="/api/v1")

# Include domain routers
router.include_router(results.router, prefix="/results", tags=["Results"])

__all__ = ["router"]
