"""Shared FastAPI dependencies injected into route handlers."""

from __future__ import annotations

from typing import Annotated, AsyncIterator

from fastapi import Depends

from healthsync.config import Settings, get_settings
from healthsync.health.adapters import HttpRecordStore
from healthsync.health.base import RecordStore
from healthsync.health.config_loader import SyncConfig, get_sync_config
from healthsync.health.reader import RecordReader
from healthsync.health.sync.transport import SyncTransport


def get_record_store(
    settings: Annotated[Settings, Depends(get_settings)],
    config: Annotated[SyncConfig, Depends(get_sync_config)],
) -> RecordStore:
    return HttpRecordStore(
        base_url=settings.record_store_url,
        access_token=settings.record_store_token,
        page_size=config.page_size,
        timeout=settings.request_timeout_seconds,
    )


def get_record_reader(
    store: Annotated[RecordStore, Depends(get_record_store)],
    config: Annotated[SyncConfig, Depends(get_sync_config)],
) -> RecordReader:
    return RecordReader(store, config=config)


async def get_sync_transport(
    settings: Annotated[Settings, Depends(get_settings)],
) -> AsyncIterator[SyncTransport]:
    """Yield a transport for one request and close it afterwards."""
    async with SyncTransport(
        settings.sync_api_url,
        settings.sync_api_key,
        timeout=settings.request_timeout_seconds,
    ) as transport:
        yield transport


# Annotated shortcuts for route signatures
EngineConfig = Annotated[SyncConfig, Depends(get_sync_config)]
Reader = Annotated[RecordReader, Depends(get_record_reader)]
Transport = Annotated[SyncTransport, Depends(get_sync_transport)]
