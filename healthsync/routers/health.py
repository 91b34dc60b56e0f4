"""Health check endpoint: public, no auth required."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter

from healthsync.config import get_settings

router = APIRouter(tags=["system"])
logger = logging.getLogger("healthsync.health_check")


@router.get("/health")
async def health_check() -> dict:
    """Liveness probe. Returns 200 if the API process is up."""
    settings = get_settings()
    return {
        "status": "healthy",
        "version": settings.app_version,
        "environment": settings.environment,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
