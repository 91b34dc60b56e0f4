"""Sync payload builder: compose the outbound payload from raw record lists.

Pure functions only: no I/O, no clock.  Record lists that failed to load
arrive here as empty lists (see ``healthsync.health.reader``), so a partial
payload is still produced and can still be sent.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone, tzinfo

from healthsync.health.base import (
    BloodPressureSample,
    BodyFatSample,
    HeartRateSample,
    SleepInterval,
    StepsBucket,
    WeightSample,
)
from healthsync.health.correlator import MINUTE, correlate_enrich, correlate_outer
from healthsync.health.interval_merger import merge_intervals
from healthsync.models.sync import (
    BloodPressureReading,
    BodyMeasurement,
    SleepSession,
    StepsEntry,
    SyncPayload,
)

logger = logging.getLogger("healthsync.health.payload")


@dataclass(frozen=True)
class SyncRecords:
    """Everything read from the store for one sync run.

    Attributes:
        weight:         Weight samples (30-day window by default).
        body_fat:       Body-fat samples (30 days).
        blood_pressure: Blood-pressure samples (30 days).
        heart_rate:     Heart-rate samples, already expanded from records (7 days).
        sleep:          Raw, possibly overlapping sleep intervals (7 days).
        steps:          Daily step buckets (7 days).
    """

    weight: list[WeightSample] = field(default_factory=list)
    body_fat: list[BodyFatSample] = field(default_factory=list)
    blood_pressure: list[BloodPressureSample] = field(default_factory=list)
    heart_rate: list[HeartRateSample] = field(default_factory=list)
    sleep: list[SleepInterval] = field(default_factory=list)
    steps: list[StepsBucket] = field(default_factory=list)


def format_instant(ts: datetime) -> str:
    """Format an instant as UTC ISO-8601 with a ``Z`` suffix.

    Fractional seconds appear only when present.  Naive datetimes are
    treated as UTC.
    """
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


# ---------------------------------------------------------------------------
# Section builders
# ---------------------------------------------------------------------------


def build_body_measurements(
    weight: list[WeightSample],
    body_fat: list[BodyFatSample],
    resolution: timedelta = MINUTE,
) -> list[BodyMeasurement]:
    """One row per minute in which a weight or body-fat reading exists.

    ``recorded_at`` is the bucket instant shared by both readings.
    """
    return [
        BodyMeasurement(
            recorded_at=format_instant(row.bucket),
            weight_kg=row.left.value_kg if row.left else None,
            body_fat_percent=row.right.percentage if row.right else None,
        )
        for row in correlate_outer(weight, body_fat, resolution)
    ]


def build_blood_pressure(
    blood_pressure: list[BloodPressureSample],
    heart_rate: list[HeartRateSample],
    resolution: timedelta = MINUTE,
) -> list[BloodPressureReading]:
    """One row per blood-pressure reading, with the pulse taken in the same
    minute when there is one.  Heart-rate samples never create rows."""
    return [
        BloodPressureReading(
            recorded_at=format_instant(bp.timestamp),
            systolic=int(bp.systolic_mmhg),
            diastolic=int(bp.diastolic_mmhg),
            pulse=int(hr.bpm) if hr else None,
        )
        for bp, hr in correlate_enrich(blood_pressure, heart_rate, resolution)
    ]


def build_sleep_sessions(sleep: list[SleepInterval]) -> list[SleepSession]:
    return [
        SleepSession(
            start_time=format_instant(interval.start),
            end_time=format_instant(interval.end),
            duration_hours=interval.duration_minutes / 60.0,
        )
        for interval in merge_intervals(sleep)
    ]


def build_steps(steps: list[StepsBucket], tz: tzinfo | None = None) -> list[StepsEntry]:
    """Map daily buckets to ``{date, count}`` sorted by date.

    The date is the calendar day of the bucket start in ``tz`` (the host's
    local zone when None).  Buckets landing on the same date are all kept.
    """
    entries = [
        StepsEntry(date=bucket.start.astimezone(tz).date().isoformat(), count=bucket.count)
        for bucket in steps
    ]
    return sorted(entries, key=lambda e: e.date)


def build_sync_payload(
    records: SyncRecords,
    tz: tzinfo | None = None,
    resolution: timedelta = MINUTE,
) -> SyncPayload:
    """Build the complete outbound payload.

    Args:
        records:    Record lists read for this sync run.
        tz:         Zone used to date step buckets (host local zone if None).
        resolution: Correlation grid for body measurements and pulse lookup.

    Returns:
        SyncPayload ready for the transport.
    """
    payload = SyncPayload(
        body_measurements=build_body_measurements(records.weight, records.body_fat, resolution),
        blood_pressure=build_blood_pressure(records.blood_pressure, records.heart_rate, resolution),
        sleep_sessions=build_sleep_sessions(records.sleep),
        steps=build_steps(records.steps, tz),
    )
    logger.debug("Built sync payload: %s", payload.counts())
    return payload
