"""Pydantic models for the summary screen and sync trigger responses.

The screen state is a tagged union on ``status``; the API layer resolves
exactly one variant per request.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Literal, Union

from pydantic import Field

from healthsync.models.base import HealthSyncBase


class SummaryRead(HealthSyncBase):
    latest_weight_kg: float | None = None
    latest_body_fat_percent: float | None = None
    latest_systolic_mmhg: float | None = None
    latest_diastolic_mmhg: float | None = None
    latest_heart_rate_bpm: int | None = None
    total_steps_7d: int | None = None
    total_sleep_minutes_7d: int | None = None
    generated_at: datetime


class NotSupportedState(HealthSyncBase):
    status: Literal["not_supported"] = "not_supported"


class PermissionsRequiredState(HealthSyncBase):
    status: Literal["permissions_required"] = "permissions_required"
    missing_permissions: list[str] = Field(default_factory=list)


class SuccessState(HealthSyncBase):
    status: Literal["success"] = "success"
    summary: SummaryRead


class ErrorState(HealthSyncBase):
    status: Literal["error"] = "error"
    message: str


ScreenState = Annotated[
    Union[NotSupportedState, PermissionsRequiredState, SuccessState, ErrorState],
    Field(discriminator="status"),
]


class SyncResponse(HealthSyncBase):
    status: Literal["success", "error"]
    message: str | None = None
    status_code: int | None = None
