"""Shared Pydantic base model for HealthSync schemas."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class HealthSyncBase(BaseModel):
    """Base model with shared config for all HealthSync schemas.

    Schemas are value objects: built once per operation and never mutated.
    """

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        frozen=True,
    )
