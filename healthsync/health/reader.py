"""Record reader: drain paginated reads and isolate per-metric failures.

Pagination within one record kind is strictly sequential: each page's
continuation token gates the next request, and the loop ends when the store
returns no token.  Independent record kinds share no state, so
``read_sync_records()`` reads them concurrently.

Failure policy for the per-kind ``read_*`` helpers: any exception from the
store is logged and the kind degrades to an empty list.  Cancellation is
not an ``Exception`` and always propagates; pages accumulated so far are
dropped with the coroutine.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Any, Callable

from healthsync.health.base import (
    REQUIRED_PERMISSIONS,
    AggregateMetric,
    BloodPressureSample,
    BodyFatSample,
    HealthPlatformUnavailableError,
    HeartRateSample,
    HeartRateSeries,
    PermissionsRequiredError,
    RecordKind,
    RecordStore,
    SleepInterval,
    StepsBucket,
    WeightSample,
    expand_heart_rate,
    utc_now,
)
from healthsync.health.config_loader import SyncConfig, get_sync_config
from healthsync.health.payload import SyncRecords

logger = logging.getLogger("healthsync.health.reader")


class RecordReader:
    """Read record lists from a RecordStore for the sync lookback windows.

    Usage::

        reader = RecordReader(store)
        await reader.ensure_ready()
        records = await reader.read_sync_records()
    """

    def __init__(
        self,
        store: RecordStore,
        config: SyncConfig | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize the reader.

        Args:
            store:  Record store to query.
            config: Engine config; the global one is used when omitted.
            clock:  Returns "now" as an aware UTC datetime (injectable for tests).
        """
        self._store = store
        self._config = config or get_sync_config()
        self._clock = clock

    @property
    def store(self) -> RecordStore:
        return self._store

    # ------------------------------------------------------------------
    # Preconditions
    # ------------------------------------------------------------------

    async def is_available(self) -> bool:
        return await self._store.is_available()

    async def missing_permissions(self) -> set[str]:
        granted = await self._store.granted_permissions()
        return set(REQUIRED_PERMISSIONS - granted)

    async def has_all_permissions(self) -> bool:
        return not await self.missing_permissions()

    async def ensure_ready(self) -> None:
        """Check the platform and permissions before any read.

        Raises:
            HealthPlatformUnavailableError: The platform cannot be queried.
            PermissionsRequiredError:       Some read permissions are missing.
        """
        if not await self.is_available():
            raise HealthPlatformUnavailableError(
                f"{self._store.DISPLAY_NAME} is not available"
            )
        missing = await self.missing_permissions()
        if missing:
            raise PermissionsRequiredError(missing)

    # ------------------------------------------------------------------
    # Raw paging
    # ------------------------------------------------------------------

    async def read_all(self, kind: RecordKind, start: datetime, end: datetime) -> list:
        """Read every page of ``kind`` in ``[start, end)``.

        Raises whatever the store raises; nothing is returned on failure.
        """
        records: list = []
        page_token: str | None = None
        pages = 0

        while True:
            page = await self._store.read_page(kind, start, end, page_token)
            records.extend(page.records)
            pages += 1
            page_token = page.next_page_token
            if not page_token:
                break

        logger.debug(
            "Read %d %s records in %d page(s) from %s",
            len(records), kind.value, pages, self._store.DISPLAY_NAME,
        )
        return records

    def window(self, lookback: timedelta) -> tuple[datetime, datetime]:
        """Return ``(now - lookback, now)``."""
        now = self._clock()
        return now - lookback, now

    async def _read_isolated(self, kind: RecordKind, reader: Callable[..., Any]) -> list:
        start, end = self.window(self._config.sync_lookback(kind))
        try:
            return await reader(start, end)
        except Exception as exc:
            logger.warning(
                "Reading %s from %s failed, continuing without it: %s",
                kind.value, self._store.DISPLAY_NAME, exc,
            )
            return []

    # ------------------------------------------------------------------
    # Per-kind reads (failure → empty list)
    # ------------------------------------------------------------------

    async def read_weight(self) -> list[WeightSample]:
        async def _read(start: datetime, end: datetime) -> list[WeightSample]:
            return await self.read_all(RecordKind.WEIGHT, start, end)

        return await self._read_isolated(RecordKind.WEIGHT, _read)

    async def read_body_fat(self) -> list[BodyFatSample]:
        async def _read(start: datetime, end: datetime) -> list[BodyFatSample]:
            return await self.read_all(RecordKind.BODY_FAT, start, end)

        return await self._read_isolated(RecordKind.BODY_FAT, _read)

    async def read_blood_pressure(self) -> list[BloodPressureSample]:
        async def _read(start: datetime, end: datetime) -> list[BloodPressureSample]:
            return await self.read_all(RecordKind.BLOOD_PRESSURE, start, end)

        return await self._read_isolated(RecordKind.BLOOD_PRESSURE, _read)

    async def read_heart_rate(self) -> list[HeartRateSample]:
        """Read heart-rate records and expand them into their samples."""

        async def _read(start: datetime, end: datetime) -> list[HeartRateSample]:
            series: list[HeartRateSeries] = await self.read_all(
                RecordKind.HEART_RATE, start, end
            )
            return expand_heart_rate(series)

        return await self._read_isolated(RecordKind.HEART_RATE, _read)

    async def read_sleep(self) -> list[SleepInterval]:
        """Read raw sleep intervals; merging is left to the payload builder."""

        async def _read(start: datetime, end: datetime) -> list[SleepInterval]:
            return await self.read_all(RecordKind.SLEEP, start, end)

        return await self._read_isolated(RecordKind.SLEEP, _read)

    async def read_steps(self) -> list[StepsBucket]:
        """Read per-day step totals; days the store reports no value for are skipped."""

        async def _read(start: datetime, end: datetime) -> list[StepsBucket]:
            buckets = await self._store.aggregate_by_daily_period(
                AggregateMetric.STEPS_COUNT_TOTAL, start, end
            )
            return [
                StepsBucket(start=b.start, end=b.end, count=int(b.value))
                for b in buckets
                if b.value is not None
            ]

        return await self._read_isolated(RecordKind.STEPS, _read)

    async def read_sync_records(self) -> SyncRecords:
        """Read all six record lists concurrently."""
        weight, body_fat, blood_pressure, heart_rate, sleep, steps = await asyncio.gather(
            self.read_weight(),
            self.read_body_fat(),
            self.read_blood_pressure(),
            self.read_heart_rate(),
            self.read_sleep(),
            self.read_steps(),
        )
        return SyncRecords(
            weight=weight,
            body_fat=body_fat,
            blood_pressure=blood_pressure,
            heart_rate=heart_rate,
            sleep=sleep,
            steps=steps,
        )
