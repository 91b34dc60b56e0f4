"""Base classes and canonical record types for the HealthSync engine.

Every record store adapter must subclass RecordStore and return the
canonical sample types defined here.  These types are the single source of
truth consumed by the summary builder, the payload builder and the sync
service.  Raw JSON records never leave the adapter that fetched them.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Iterable

logger = logging.getLogger("healthsync.health")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class HealthSyncError(Exception):
    """Base class for all HealthSync errors."""


class HealthPlatformUnavailableError(HealthSyncError):
    """The health data platform is not available on this host."""


class PermissionsRequiredError(HealthSyncError):
    """One or more read permissions have not been granted.

    Attributes:
        missing: Permission names that are still missing.
    """

    def __init__(self, missing: Iterable[str]) -> None:
        self.missing = sorted(missing)
        super().__init__(f"Missing read permissions: {', '.join(self.missing)}")


# ---------------------------------------------------------------------------
# Record kinds and aggregate metrics
# ---------------------------------------------------------------------------


class RecordKind(str, Enum):
    """Record families exposed by a record store."""

    WEIGHT = "weight"
    BODY_FAT = "body_fat"
    BLOOD_PRESSURE = "blood_pressure"
    HEART_RATE = "heart_rate"
    SLEEP = "sleep"
    STEPS = "steps"

    @property
    def read_permission(self) -> str:
        return f"read:{self.value}"


#: Every permission the engine needs before it may read anything.
REQUIRED_PERMISSIONS: frozenset[str] = frozenset(k.read_permission for k in RecordKind)


class AggregateMetric(str, Enum):
    """Windowed aggregates computed by the record store, not locally."""

    STEPS_COUNT_TOTAL = "steps_count_total"
    SLEEP_DURATION_TOTAL = "sleep_duration_total"


# ---------------------------------------------------------------------------
# Canonical samples
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class WeightSample:
    value_kg: float
    timestamp: datetime


@dataclass(frozen=True)
class BodyFatSample:
    percentage: float
    timestamp: datetime


@dataclass(frozen=True)
class BloodPressureSample:
    systolic_mmhg: float
    diastolic_mmhg: float
    timestamp: datetime


@dataclass(frozen=True)
class HeartRateSample:
    bpm: int
    timestamp: datetime


@dataclass(frozen=True)
class HeartRateSeries:
    """One raw heart-rate record and the beat readings it carries.

    A single device record spans ``start``..``end`` and holds many
    timestamped samples.  Use :func:`expand_heart_rate` to flatten a list of
    series into the per-sample stream the correlator works on.

    Attributes:
        start:   Start of the recording window.
        end:     End of the recording window.
        samples: Beat readings inside the window.
    """

    start: datetime
    end: datetime
    samples: tuple[HeartRateSample, ...] = ()


@dataclass(frozen=True)
class SleepInterval:
    """A single sleep session.

    Duration is derived from the bounds on every access so it can never
    drift from them.
    """

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        if self.end < self.start:
            raise ValueError(
                f"Sleep interval ends before it starts: {self.start} > {self.end}"
            )

    @property
    def duration_minutes(self) -> int:
        return int((self.end - self.start).total_seconds() // 60)


@dataclass(frozen=True)
class StepsBucket:
    """Step total for one calendar-day bucket."""

    start: datetime
    end: datetime
    count: int


@dataclass(frozen=True)
class AggregateBucket:
    """One row of a per-period aggregate query.  ``value`` is None when the
    store has no data for that period."""

    start: datetime
    end: datetime
    value: Any = None


@dataclass(frozen=True)
class RecordPage:
    """A single page of records plus the token for the next one."""

    records: list = field(default_factory=list)
    next_page_token: str | None = None


@dataclass(frozen=True)
class HealthSummary:
    """Read-only snapshot for the summary screen.

    Optional fields are None when no sample exists in the lookback window,
    so callers can tell "no data" apart from a zero reading.

    Attributes:
        latest_weight_kg:         Most recent weight in the 30-day window.
        latest_body_fat_percent:  Most recent body-fat reading.
        latest_systolic_mmhg:     Systolic value of the latest BP reading.
        latest_diastolic_mmhg:    Diastolic value of the latest BP reading.
        latest_heart_rate_bpm:    Last beat reading of the latest HR record.
        total_steps_7d:           Store-computed step total over 7 days.
        total_sleep_minutes_7d:   Store-computed sleep total over 7 days.
        generated_at:             UTC instant the summary was built.
    """

    generated_at: datetime
    latest_weight_kg: float | None = None
    latest_body_fat_percent: float | None = None
    latest_systolic_mmhg: float | None = None
    latest_diastolic_mmhg: float | None = None
    latest_heart_rate_bpm: int | None = None
    total_steps_7d: int | None = None
    total_sleep_minutes_7d: int | None = None


def expand_heart_rate(series: Iterable[HeartRateSeries]) -> list[HeartRateSample]:
    """Flatten heart-rate records into their individual samples."""
    return [sample for record in series for sample in record.samples]


# ---------------------------------------------------------------------------
# Abstract record store
# ---------------------------------------------------------------------------


class RecordStore(ABC):
    """Abstract query boundary to a health-data source.

    The engine only ever talks to this interface.  Implementations return
    canonical samples from ``read_page``:

        WEIGHT         -> WeightSample
        BODY_FAT       -> BodyFatSample
        BLOOD_PRESSURE -> BloodPressureSample
        HEART_RATE     -> HeartRateSeries
        SLEEP          -> SleepInterval
        STEPS          -> StepsBucket
    """

    #: Human-readable name for logging.
    DISPLAY_NAME: str = "Unknown Store"

    @abstractmethod
    async def read_page(
        self,
        kind: RecordKind,
        start: datetime,
        end: datetime,
        page_token: str | None = None,
    ) -> RecordPage:
        """Read one page of records in ``[start, end)``.

        Args:
            kind:       Record family to read.
            start:      Window start (UTC).
            end:        Window end (UTC).
            page_token: Continuation token from the previous page, if any.

        Returns:
            RecordPage; ``next_page_token`` is None on the last page.
        """

    @abstractmethod
    async def aggregate(
        self, metric: AggregateMetric, start: datetime, end: datetime
    ) -> Any:
        """Compute a windowed aggregate.

        STEPS_COUNT_TOTAL yields an int and SLEEP_DURATION_TOTAL a
        ``timedelta``.  Returns None when the store has no data.
        """

    @abstractmethod
    async def aggregate_by_daily_period(
        self, metric: AggregateMetric, start: datetime, end: datetime
    ) -> list[AggregateBucket]:
        """Compute an aggregate sliced into one-day periods, oldest first."""

    @abstractmethod
    async def is_available(self) -> bool:
        """Return True if the underlying health platform can be queried."""

    @abstractmethod
    async def granted_permissions(self) -> set[str]:
        """Return the set of read permissions the user has granted."""

    # ------------------------------------------------------------------
    # Shared helpers available to all stores
    # ------------------------------------------------------------------

    @staticmethod
    def _safe_int(value: object) -> int | None:
        """Safely coerce a value to int, returning None on failure."""
        if value is None:
            return None
        try:
            return int(value)  # type: ignore[call-overload]
        except (TypeError, ValueError):
            return None

    @staticmethod
    def _safe_float(value: object) -> float | None:
        """Safely coerce a value to float, returning None on failure."""
        if value is None:
            return None
        try:
            return float(value)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return None

    @staticmethod
    def _parse_iso_datetime(value: str | None) -> datetime | None:
        """Parse an ISO-8601 string to an aware UTC datetime.

        Naive strings are assumed to be UTC.  Returns None if the value is
        None or unparseable.
        """
        if not value:
            return None
        try:
            dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except (ValueError, AttributeError):
            logger.warning("Could not parse datetime string: %r", value)
            return None
        if dt.tzinfo is None:
            return dt.replace(tzinfo=timezone.utc)
        return dt.astimezone(timezone.utc)
