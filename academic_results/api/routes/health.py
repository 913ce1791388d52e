# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Health check endpoints.

This module provides health and readiness endpoints for the API.
"""

import logging
import time
from datetime import datetime
from typing import Any

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from sqlalchemy import text

from academic_results import __version__
from academic_results.core.config import get_settings
from academic_results.infrastructure.database.connection import get_engine
from academic_results.utils.datetime import utc_now

logger = logging.getLogger(__name__)

router = APIRouter()

# Track server start time for uptime calculation
_server_start_time = time.time()


class ComponentHealth(BaseModel):
    """Individual component health status."""
    status: str = Field(description="Component status")
    latency_ms: float | None = Field(None, description="Response latency in ms")
    message: str | None = Field(None, description="Additional status message")


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str = Field(description="Overall health status")
    version: str = Field(description="API version")
    environment: str = Field(description="Deployment environment")
    uptime_seconds: int = Field(description="Server uptime in seconds")
    checked_at: datetime = Field(description="When health was checked")


class ReadinessResponse(BaseModel):
    """Readiness check response model."""
    ready: bool = Field(description="Whether the service is ready")
    checks: dict[str, Any] = Field(description="Individual check results")


async def check_database() -> ComponentHealth:
    """Check PostgreSQL database connection."""
    try:
        engine = get_engine()
        start = time.time()

        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

        latency = (time.time() - start) * 1000
        return ComponentHealth(status="healthy", latency_ms=round(latency, 2))
    except Exception as e:
        logger.error("Database health check failed: %s", str(e))
        return ComponentHealth(status="unhealthy", message=str(e))


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Liveness: the process is up and serving requests."""
    settings = get_settings()

    return HealthResponse(
        status="healthy",
        version=__version__,
        environment=settings.environment,
        uptime_seconds=int(time.time() - _server_start_time),
        checked_at=utc_now(),
    )


@router.get("/health/ready", response_model=ReadinessResponse)
async def readiness_check() -> JSONResponse:
    """Check if the API is ready to accept traffic.

    Returns:
        ReadinessResponse with individual check results; 503 when a
        dependency is unhealthy.
    """
    db_health = await check_database()
    checks: dict[str, Any] = {
        "database": {"status": db_health.status, "latency_ms": db_health.latency_ms},
    }
    ready = db_health.status == "healthy"

    body = ReadinessResponse(ready=ready, checks=checks)
    return JSONResponse(status_code=200 if ready else 503, content=body.model_dump())
