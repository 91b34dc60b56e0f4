"""HealthSync API: FastAPI application entry point.

Run locally:
    uvicorn healthsync.main:create_app --factory --reload --port 8000
"""

from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI

from healthsync.config import get_settings
from healthsync.health.config_loader import get_sync_config
from healthsync.routers import health, sync

# ---------- Logging ----------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-8s %(name)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
    stream=sys.stdout,
)
logger = logging.getLogger("healthsync")


# ---------- Lifespan ----------

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup / shutdown hooks."""
    settings = get_settings()
    logging.getLogger("healthsync").setLevel(settings.log_level.upper())
    config = get_sync_config()
    logger.info(
        "Starting HealthSync API v%s [%s], sync config v%s",
        settings.app_version,
        settings.environment,
        config.version,
    )
    yield
    logger.info("HealthSync API shut down")


# ---------- App factory ----------

def create_app() -> FastAPI:
    settings = get_settings()

    app = FastAPI(
        title=f"{settings.app_name} API",
        description=(
            "Reads weight, body fat, blood pressure, heart rate, sleep and steps "
            "from a health record store and syncs them to a remote endpoint."
        ),
        version=settings.app_version,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ---------- Health check (outside v1 prefix, always at /health) ----------
    app.include_router(health.router)

    # ---------- API v1 routes ----------
    v1_prefix = "/api/v1"
    app.include_router(sync.router, prefix=v1_prefix)

    return app
