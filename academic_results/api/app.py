# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI Application Factory.

This module provides the main application factory for the Academic
Results API.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded

from academic_results import __version__
from academic_results.api.dependencies import close_db, init_db
from academic_results.api.errors import result_service_error_handler
from academic_results.api.middleware.actor import ActorMiddleware
from academic_results.api.middleware.rate_limit import limiter, rate_limit_exceeded_handler
from academic_results.api.routes import health
from academic_results.api.v1 import router as v1_router
from academic_results.core.config import get_settings
from academic_results.domains.results.errors import ResultServiceError
from academic_results.utils.logging import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Configures logging and opens the database pool on startup; closes the
    pool on shutdown.

    Args:
        app: The FastAPI application instance.

    Yields:
        None during application runtime.
    """
    settings = get_settings()
    setup_logging(settings)

    logger.info(
        "Starting Academic Results API: environment=%s, debug=%s",
        settings.environment,
        settings.debug,
    )

    # =========================================================================
    # Startup
    # =========================================================================
    await init_db(settings)
    logger.info("Database connection initialized")

    yield

    # =========================================================================
    # Shutdown
    # =========================================================================
    try:
        await close_db()
        logger.info("Database connection closed")
    except Exception as e:
        logger.warning("Error closing database connection: %s", str(e))

    logger.info("Shutting down Academic Results API")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    settings = get_settings()

    app = FastAPI(
        title="Academic Results API",
        description="Score entry, approval, publication and transcripts",
        version=__version__,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
        redirect_slashes=False,
    )

    # =========================================================================
    # State
    # =========================================================================
    app.state.limiter = limiter

    # =========================================================================
    # Exception handlers
    # =========================================================================
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_exception_handler(ResultServiceError, result_service_error_handler)

    # =========================================================================
    # Middleware (order matters - last added is first executed)
    # =========================================================================
    app.add_middleware(ActorMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors.origins_list,
        allow_credentials=settings.cors.allow_credentials,
        allow_methods=settings.cors.allow_methods,
        allow_headers=settings.cors.allow_headers,
    )

    # =========================================================================
    # Routes
    # =========================================================================
    app.include_router(health.router, tags=["Health"])
    app.include_router(v1_router)

    return app
