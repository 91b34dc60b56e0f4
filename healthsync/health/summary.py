"""Summary builder: latest value per metric and 7-day totals.

Each metric is read independently.  A failing read blanks only its own
field(s); the rest of the summary is still produced.  Totals come from the
store's windowed aggregates and are never recomputed here.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any, Awaitable, Callable, Iterable, TypeVar

from healthsync.health.base import (
    AggregateMetric,
    BloodPressureSample,
    HealthSummary,
    HeartRateSeries,
    RecordKind,
    utc_now,
)
from healthsync.health.config_loader import SyncConfig, get_sync_config
from healthsync.health.reader import RecordReader

logger = logging.getLogger("healthsync.health.summary")

T = TypeVar("T")


def latest_by_timestamp(samples: Iterable[T]) -> T | None:
    """Return the sample with the greatest ``timestamp``, or None if empty."""
    return max(samples, key=lambda s: s.timestamp, default=None)  # type: ignore[attr-defined]


def latest_heart_rate(series: Iterable[HeartRateSeries]) -> int | None:
    """Return the last beat reading of the most recently ended record.

    The record with the greatest ``end`` is chosen first, then its sample
    with the greatest timestamp.  Records without samples yield None.
    """
    newest = max(series, key=lambda r: r.end, default=None)
    if newest is None:
        return None
    sample = latest_by_timestamp(newest.samples)
    return sample.bpm if sample else None


def sleep_minutes(total: Any) -> int | None:
    """Convert a SLEEP_DURATION_TOTAL aggregate to whole minutes.

    Stores return a ``timedelta``; a bare number is taken as minutes.
    """
    if total is None:
        return None
    if isinstance(total, timedelta):
        return int(total.total_seconds() // 60)
    return int(total)


class SummaryBuilder:
    """Build the read-only HealthSummary shown on the summary screen.

    Usage::

        builder = SummaryBuilder(RecordReader(store))
        summary = await builder.build()
    """

    def __init__(
        self,
        reader: RecordReader,
        config: SyncConfig | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._reader = reader
        self._config = config or get_sync_config()
        self._clock = clock

    async def _isolated(self, metric: str, read: Awaitable[T]) -> T | None:
        """Await one metric's read; a failure yields None for that metric only."""
        try:
            return await read
        except Exception as exc:
            logger.warning("Summary metric %s unavailable: %s", metric, exc)
            return None

    async def _latest(self, kind: RecordKind, now: datetime) -> Any:
        records = await self._reader.read_all(
            kind, now - self._config.latest_lookback(kind), now
        )
        return latest_by_timestamp(records)

    async def _latest_heart_rate(self, now: datetime) -> int | None:
        kind = RecordKind.HEART_RATE
        series = await self._reader.read_all(
            kind, now - self._config.latest_lookback(kind), now
        )
        return latest_heart_rate(series)

    async def _total(self, metric: AggregateMetric, now: datetime) -> Any:
        return await self._reader.store.aggregate(
            metric, now - self._config.totals_lookback, now
        )

    async def build(self) -> HealthSummary:
        """Read every metric and assemble the summary.

        Returns:
            HealthSummary; fields whose read failed or found nothing are None.
        """
        now = self._clock()

        weight = await self._isolated("weight", self._latest(RecordKind.WEIGHT, now))
        body_fat = await self._isolated("body_fat", self._latest(RecordKind.BODY_FAT, now))
        bp: BloodPressureSample | None = await self._isolated(
            "blood_pressure", self._latest(RecordKind.BLOOD_PRESSURE, now)
        )
        heart_rate = await self._isolated("heart_rate", self._latest_heart_rate(now))
        steps = await self._isolated(
            "steps", self._total(AggregateMetric.STEPS_COUNT_TOTAL, now)
        )
        sleep = await self._isolated(
            "sleep", self._total(AggregateMetric.SLEEP_DURATION_TOTAL, now)
        )

        summary = HealthSummary(
            generated_at=now,
            latest_weight_kg=weight.value_kg if weight else None,
            latest_body_fat_percent=body_fat.percentage if body_fat else None,
            latest_systolic_mmhg=bp.systolic_mmhg if bp else None,
            latest_diastolic_mmhg=bp.diastolic_mmhg if bp else None,
            latest_heart_rate_bpm=heart_rate,
            total_steps_7d=int(steps) if steps is not None else None,
            total_sleep_minutes_7d=sleep_minutes(sleep),
        )
        logger.info(
            "Built health summary from %s at %s",
            self._reader.store.DISPLAY_NAME, now.isoformat(),
        )
        return summary
