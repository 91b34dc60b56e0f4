"""Record store adapters for HealthSync.

Each adapter implements the RecordStore ABC and handles:
- Paginated, time-range-filtered record reads
- Windowed and per-day aggregate queries
- Availability and permission probes
- Normalizing source-specific JSON into canonical samples

Available adapters:
    HttpRecordStore - REST record service paginated by next_page_token
"""

from healthsync.health.adapters.http_store import HttpRecordStore

__all__ = ["HttpRecordStore"]
