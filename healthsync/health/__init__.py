"""HealthSync aggregation and correlation engine.

This package reads time-stamped health records from a paginated record
store, reconciles them into a summary and a normalized sync payload, and
sends that payload to a remote endpoint.

Subpackages:
    adapters/  - Concrete record stores (HTTP record service)
    sync/      - Sync transport and the one-shot sync workflow

Core modules:
    base            - RecordStore ABC and canonical record types
    config_loader   - Load/validate/hot-reload sync_config.yaml
    reader          - Paginated reads with per-metric failure isolation
    interval_merger - Overlapping sleep interval merging
    correlator      - Minute-bucket correlation of independent streams
    summary         - Latest-value and 7-day total summary
    payload         - Outbound sync payload construction
"""

from healthsync.health.base import (
    HealthSummary,
    RecordKind,
    RecordStore,
    SleepInterval,
)
from healthsync.health.config_loader import SyncConfig, get_sync_config

__all__ = [
    "RecordStore",
    "RecordKind",
    "HealthSummary",
    "SleepInterval",
    "SyncConfig",
    "get_sync_config",
]
