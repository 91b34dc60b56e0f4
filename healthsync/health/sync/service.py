"""One-shot sync workflow.

1. Check the health platform is available and permissions are granted
2. Read the six record lists (failed reads degrade to empty lists)
3. Build the normalized payload
4. Send it and return the outcome
"""

from __future__ import annotations

import logging
from datetime import tzinfo

from healthsync.health.config_loader import SyncConfig, get_sync_config
from healthsync.health.payload import build_sync_payload
from healthsync.health.reader import RecordReader
from healthsync.health.sync.transport import SyncOutcome, SyncTransport

logger = logging.getLogger("healthsync.health.sync.service")


class SyncService:
    """Read, build and send one sync payload.

    Usage::

        service = SyncService(RecordReader(store), transport)
        outcome = await service.run()
        if not outcome.ok:
            logger.warning("Sync failed: %s", outcome)
    """

    def __init__(
        self,
        reader: RecordReader,
        transport: SyncTransport,
        config: SyncConfig | None = None,
        tz: tzinfo | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            reader:    Reader bound to the record store.
            transport: Transport bound to the sync endpoint.
            config:    Engine config; the global one is used when omitted.
            tz:        Zone used to date step buckets (host local zone if None).
        """
        self._reader = reader
        self._transport = transport
        self._config = config or get_sync_config()
        self._tz = tz

    async def run(self) -> SyncOutcome:
        """Execute one sync.

        Raises:
            HealthPlatformUnavailableError: Before any read, if the platform is down.
            PermissionsRequiredError:       Before any read, if permissions are missing.

        Returns:
            The transport outcome.
        """
        await self._reader.ensure_ready()

        records = await self._reader.read_sync_records()
        payload = build_sync_payload(records, tz=self._tz, resolution=self._config.bucket)
        if payload.is_empty:
            logger.info("No records in any lookback window, sending an empty payload")
        else:
            logger.info("Syncing payload: %s", payload.counts())

        outcome = await self._transport.send(payload)
        if outcome.ok:
            logger.info("Sync complete")
        else:
            logger.warning("Sync failed: %s", outcome)
        return outcome
