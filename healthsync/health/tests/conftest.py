"""Shared fixtures and an in-memory record store for HealthSync engine tests."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Iterable

import httpx
import pytest

from healthsync.health.base import (
    REQUIRED_PERMISSIONS,
    AggregateBucket,
    AggregateMetric,
    BloodPressureSample,
    BodyFatSample,
    HeartRateSample,
    HeartRateSeries,
    RecordKind,
    RecordPage,
    RecordStore,
    SleepInterval,
    WeightSample,
)
from healthsync.health.config_loader import SyncConfig, load_sync_config

# Fixed "now" for every clock-dependent test
NOW = datetime(2026, 2, 23, 12, 0, 0, tzinfo=timezone.utc)


def at(day: int, hour: int, minute: int = 0, second: int = 0, micro: int = 0) -> datetime:
    """UTC instant in February 2026."""
    return datetime(2026, 2, day, hour, minute, second, micro, tzinfo=timezone.utc)


def fixed_clock() -> datetime:
    return NOW


# ---------------------------------------------------------------------------
# In-memory record store
# ---------------------------------------------------------------------------


class FakeRecordStore(RecordStore):
    """RecordStore over in-memory lists.

    Pages are served ``page_size`` records at a time with stringified
    offsets as continuation tokens.  Any RecordKind or AggregateMetric in
    ``failing`` raises on access.  Every call is recorded in ``calls``.
    """

    DISPLAY_NAME = "Fake store"

    def __init__(
        self,
        records: dict[RecordKind, list] | None = None,
        aggregates: dict[AggregateMetric, Any] | None = None,
        daily: list[AggregateBucket] | None = None,
        page_size: int = 2,
        failing: Iterable[object] = (),
        available: bool = True,
        permissions: Iterable[str] = REQUIRED_PERMISSIONS,
    ) -> None:
        self.records = records or {}
        self.aggregates = aggregates or {}
        self.daily = daily or []
        self.page_size = page_size
        self.failing = set(failing)
        self.available = available
        self.permissions = set(permissions)
        self.calls: list[tuple] = []

    async def read_page(
        self,
        kind: RecordKind,
        start: datetime,
        end: datetime,
        page_token: str | None = None,
    ) -> RecordPage:
        self.calls.append(("read_page", kind, start, end, page_token))
        if kind in self.failing:
            raise RuntimeError(f"{kind.value} read failed")
        items = self.records.get(kind, [])
        offset = int(page_token or 0)
        chunk = items[offset : offset + self.page_size]
        more = offset + self.page_size < len(items)
        return RecordPage(
            records=list(chunk),
            next_page_token=str(offset + self.page_size) if more else None,
        )

    async def aggregate(
        self, metric: AggregateMetric, start: datetime, end: datetime
    ) -> Any:
        self.calls.append(("aggregate", metric, start, end))
        if metric in self.failing:
            raise RuntimeError(f"{metric.value} aggregate failed")
        return self.aggregates.get(metric)

    async def aggregate_by_daily_period(
        self, metric: AggregateMetric, start: datetime, end: datetime
    ) -> list[AggregateBucket]:
        self.calls.append(("aggregate_by_daily_period", metric, start, end))
        if metric in self.failing:
            raise RuntimeError(f"{metric.value} daily aggregate failed")
        return list(self.daily)

    async def is_available(self) -> bool:
        return self.available

    async def granted_permissions(self) -> set[str]:
        return set(self.permissions)

    def read_calls(self, kind: RecordKind) -> list[tuple]:
        return [c for c in self.calls if c[0] == "read_page" and c[1] == kind]


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def sync_config() -> SyncConfig:
    """Load the real bundled config for tests."""
    return load_sync_config()


# ---------------------------------------------------------------------------
# Record fixtures
# ---------------------------------------------------------------------------


def make_populated_store() -> FakeRecordStore:
    """A store holding a realistic week of readings for every kind."""
    return FakeRecordStore(
        records={
            RecordKind.WEIGHT: [
                WeightSample(value_kg=72.4, timestamp=at(20, 7, 30, 10)),
                WeightSample(value_kg=72.1, timestamp=at(22, 7, 31, 5)),
                WeightSample(value_kg=71.9, timestamp=at(23, 8, 0, 15)),
            ],
            RecordKind.BODY_FAT: [
                BodyFatSample(percentage=18.2, timestamp=at(20, 7, 30, 40)),
                BodyFatSample(percentage=17.9, timestamp=at(23, 8, 0, 45)),
            ],
            RecordKind.BLOOD_PRESSURE: [
                BloodPressureSample(systolic_mmhg=121.6, diastolic_mmhg=79.2, timestamp=at(21, 9, 0, 5)),
                BloodPressureSample(systolic_mmhg=118.0, diastolic_mmhg=76.0, timestamp=at(23, 9, 15, 20)),
            ],
            RecordKind.HEART_RATE: [
                HeartRateSeries(
                    start=at(23, 9, 15),
                    end=at(23, 9, 16),
                    samples=(
                        HeartRateSample(bpm=64, timestamp=at(23, 9, 15, 2)),
                        HeartRateSample(bpm=66, timestamp=at(23, 9, 15, 40)),
                    ),
                ),
                HeartRateSeries(
                    start=at(22, 18, 0),
                    end=at(22, 18, 5),
                    samples=(HeartRateSample(bpm=88, timestamp=at(22, 18, 2)),),
                ),
            ],
            RecordKind.SLEEP: [
                SleepInterval(start=at(22, 1, 0), end=at(22, 3, 0)),
                SleepInterval(start=at(22, 2, 30), end=at(22, 4, 0)),
                SleepInterval(start=at(22, 10, 0), end=at(22, 11, 0)),
            ],
        },
        aggregates={
            AggregateMetric.STEPS_COUNT_TOTAL: 48211,
            AggregateMetric.SLEEP_DURATION_TOTAL: timedelta(hours=49, minutes=30, seconds=50),
        },
        daily=[
            AggregateBucket(start=at(22, 0), end=at(23, 0), value=9120),
            AggregateBucket(start=at(21, 0), end=at(22, 0), value=11032),
            AggregateBucket(start=at(23, 0), end=at(23, 12), value=None),
        ],
    )


@pytest.fixture
def populated_store() -> FakeRecordStore:
    return make_populated_store()


# ---------------------------------------------------------------------------
# Mock HTTP
# ---------------------------------------------------------------------------


class RecordingHandler:
    """httpx.MockTransport handler that records requests and replies with a
    fixed response (or raises a fixed exception)."""

    def __init__(
        self,
        status_code: int = 200,
        json: Any = None,
        text: str = "",
        raises: Exception | None = None,
    ) -> None:
        self.status_code = status_code
        self.json = json
        self.text = text
        self.raises = raises
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.raises is not None:
            raise self.raises
        if self.json is not None:
            return httpx.Response(self.status_code, json=self.json)
        return httpx.Response(self.status_code, text=self.text)


def mock_client(handler: Any) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))
