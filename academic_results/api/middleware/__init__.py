# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API middleware components.

- ActorMiddleware: Resolves the acting user from gateway headers.
- limiter: slowapi rate limiter.
"""

from academic_results.api.middleware.actor import ActorMiddleware
from academic_results.api.middleware.rate_limit import limiter

__all__ = ["ActorMiddleware", "limiter"]
