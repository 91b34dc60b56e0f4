"""Pydantic models for the outbound sync payload.

Field names are the wire names.  Optional values serialize as ``null``,
never as a zero placeholder.
"""

from __future__ import annotations

from pydantic import Field

from healthsync.models.base import HealthSyncBase


class BodyMeasurement(HealthSyncBase):
    recorded_at: str
    weight_kg: float | None = None
    body_fat_percent: float | None = None


class BloodPressureReading(HealthSyncBase):
    recorded_at: str
    systolic: int
    diastolic: int
    pulse: int | None = None


class SleepSession(HealthSyncBase):
    start_time: str
    end_time: str
    duration_hours: float


class StepsEntry(HealthSyncBase):
    date: str  # YYYY-MM-DD
    count: int


class SyncPayload(HealthSyncBase):
    body_measurements: list[BodyMeasurement] = Field(default_factory=list)
    blood_pressure: list[BloodPressureReading] = Field(default_factory=list)
    sleep_sessions: list[SleepSession] = Field(default_factory=list)
    steps: list[StepsEntry] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (
            self.body_measurements or self.blood_pressure or self.sleep_sessions or self.steps
        )

    def counts(self) -> dict[str, int]:
        """Row count per section, for logging."""
        return {
            "body_measurements": len(self.body_measurements),
            "blood_pressure": len(self.blood_pressure),
            "sleep_sessions": len(self.sleep_sessions),
            "steps": len(self.steps),
        }
