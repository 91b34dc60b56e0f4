"""Summary screen and sync trigger endpoints.

This is the presentation boundary: core errors and sync outcomes are
turned into one tagged response variant here and nowhere else.
"""

from __future__ import annotations

import logging
from typing import assert_never

from fastapi import APIRouter, Response, status

from healthsync.dependencies import EngineConfig, Reader, Transport
from healthsync.health.base import HealthPlatformUnavailableError, PermissionsRequiredError
from healthsync.health.summary import SummaryBuilder
from healthsync.health.sync.service import SyncService
from healthsync.health.sync.transport import (
    SyncRejected,
    SyncSucceeded,
    SyncTransportFault,
)
from healthsync.models.screen import (
    ErrorState,
    NotSupportedState,
    PermissionsRequiredState,
    ScreenState,
    SuccessState,
    SummaryRead,
    SyncResponse,
)

router = APIRouter(tags=["sync"])
logger = logging.getLogger("healthsync.routers.sync")


@router.get("/summary", response_model=ScreenState)
async def get_summary(reader: Reader, config: EngineConfig) -> ScreenState:
    """Resolve the summary screen state.

    Availability and permissions are checked before any record is read.
    """
    try:
        if not await reader.is_available():
            return NotSupportedState()
        missing = await reader.missing_permissions()
        if missing:
            return PermissionsRequiredState(missing_permissions=sorted(missing))
        summary = await SummaryBuilder(reader, config=config).build()
    except Exception as exc:
        logger.exception("Failed to load health summary")
        return ErrorState(message=str(exc) or "Unknown error occurred")

    return SuccessState(summary=SummaryRead.model_validate(summary))


@router.post("/sync", response_model=SyncResponse)
async def trigger_sync(
    reader: Reader, transport: Transport, config: EngineConfig, response: Response
) -> SyncResponse:
    """Run one sync and report it as a single success or error message."""
    try:
        outcome = await SyncService(reader, transport, config=config).run()
    except HealthPlatformUnavailableError as exc:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return SyncResponse(status="error", message=str(exc))
    except PermissionsRequiredError as exc:
        response.status_code = status.HTTP_403_FORBIDDEN
        return SyncResponse(status="error", message=str(exc))
    except Exception as exc:
        logger.exception("Sync failed before sending")
        response.status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
        return SyncResponse(status="error", message=str(exc) or "Unknown error occurred")

    match outcome:
        case SyncSucceeded():
            return SyncResponse(status="success")
        case SyncRejected(status_code=code):
            response.status_code = status.HTTP_502_BAD_GATEWAY
            return SyncResponse(status="error", message=str(outcome), status_code=code)
        case SyncTransportFault():
            response.status_code = status.HTTP_504_GATEWAY_TIMEOUT
            return SyncResponse(status="error", message=str(outcome))
        case _:
            assert_never(outcome)
