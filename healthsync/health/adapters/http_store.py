"""HTTP record store adapter.

Reads health records from a REST record service that mirrors the device
health platform.  Every list endpoint is paginated with ``next_page_token``.

Endpoints used:
    /v1/status                       - Platform availability + granted permissions
    /v1/records/{kind}               - Paginated records for one record kind
    /v1/aggregate/{metric}           - Windowed aggregate (total steps, total sleep)
    /v1/aggregate/{metric}/daily     - Same aggregate sliced into one-day periods

Environment variables:
    HEALTHSYNC_RECORD_STORE_URL   - Base URL of the record service
    HEALTHSYNC_RECORD_STORE_TOKEN - Bearer token for the record service
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any

import httpx

from healthsync.health.base import (
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
    StepsBucket,
    WeightSample,
)

logger = logging.getLogger("healthsync.health.adapters.http_store")


class HttpRecordStore(RecordStore):
    """Record store backed by a paginated REST record service.

    Raw JSON records are converted to canonical samples by the
    ``normalize_*`` methods, which are pure and tolerate missing fields:
    a record that lacks its timestamp or value is skipped with a warning.
    """

    DISPLAY_NAME = "HTTP record store"

    def __init__(
        self,
        base_url: str,
        access_token: str,
        page_size: int = 1000,
        timeout: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the store.

        Args:
            base_url:     Base URL of the record service.
            access_token: Bearer token sent with every request.
            page_size:    Records requested per page.
            timeout:      Per-request timeout in seconds.
            http_client:  Optional pre-configured httpx client (for testing).
        """
        self._base_url = base_url.rstrip("/")
        self._access_token = access_token
        self._page_size = page_size
        self._timeout = timeout
        self._http_client = http_client

    # ------------------------------------------------------------------
    # RecordStore interface
    # ------------------------------------------------------------------

    async def read_page(
        self,
        kind: RecordKind,
        start: datetime,
        end: datetime,
        page_token: str | None = None,
    ) -> RecordPage:
        params: dict[str, Any] = {
            "start_time": start.isoformat(),
            "end_time": end.isoformat(),
            "page_size": self._page_size,
        }
        if page_token:
            params["page_token"] = page_token

        data = await self._get(f"/v1/records/{kind.value}", params)
        records = [
            record
            for raw in data.get("records") or []
            if (record := self.normalize(kind, raw)) is not None
        ]
        return RecordPage(records=records, next_page_token=data.get("next_page_token") or None)

    async def aggregate(
        self, metric: AggregateMetric, start: datetime, end: datetime
    ) -> Any:
        data = await self._get(
            f"/v1/aggregate/{metric.value}",
            {"start_time": start.isoformat(), "end_time": end.isoformat()},
        )
        return self._aggregate_value(metric, data.get("value"))

    async def aggregate_by_daily_period(
        self, metric: AggregateMetric, start: datetime, end: datetime
    ) -> list[AggregateBucket]:
        data = await self._get(
            f"/v1/aggregate/{metric.value}/daily",
            {"start_time": start.isoformat(), "end_time": end.isoformat()},
        )
        buckets: list[AggregateBucket] = []
        for raw in data.get("buckets") or []:
            bucket_start = self._parse_iso_datetime(raw.get("start_time"))
            bucket_end = self._parse_iso_datetime(raw.get("end_time"))
            if bucket_start is None or bucket_end is None:
                logger.warning("Skipping daily bucket without bounds: %r", raw)
                continue
            buckets.append(
                AggregateBucket(
                    start=bucket_start,
                    end=bucket_end,
                    value=self._aggregate_value(metric, raw.get("value")),
                )
            )
        return buckets

    async def is_available(self) -> bool:
        try:
            data = await self._get("/v1/status", {})
        except httpx.HTTPError as exc:
            logger.warning("Record store status probe failed: %s", exc)
            return False
        return bool(data.get("available", False))

    async def granted_permissions(self) -> set[str]:
        data = await self._get("/v1/status", {})
        return set(data.get("granted_permissions") or [])

    # ------------------------------------------------------------------
    # Normalization
    # ------------------------------------------------------------------

    def normalize(self, kind: RecordKind, raw: dict) -> Any:
        """Dispatch a raw record to the normalizer for its kind."""
        normalizer = {
            RecordKind.WEIGHT: self.normalize_weight,
            RecordKind.BODY_FAT: self.normalize_body_fat,
            RecordKind.BLOOD_PRESSURE: self.normalize_blood_pressure,
            RecordKind.HEART_RATE: self.normalize_heart_rate,
            RecordKind.SLEEP: self.normalize_sleep,
            RecordKind.STEPS: self.normalize_steps,
        }[kind]
        record = normalizer(raw)
        if record is None:
            logger.warning("Skipping malformed %s record: %r", kind.value, raw)
        return record

    def normalize_weight(self, raw: dict) -> WeightSample | None:
        ts = self._parse_iso_datetime(raw.get("time"))
        value = self._safe_float(raw.get("weight_kg"))
        if ts is None or value is None:
            return None
        return WeightSample(value_kg=value, timestamp=ts)

    def normalize_body_fat(self, raw: dict) -> BodyFatSample | None:
        ts = self._parse_iso_datetime(raw.get("time"))
        value = self._safe_float(raw.get("percentage"))
        if ts is None or value is None:
            return None
        return BodyFatSample(percentage=value, timestamp=ts)

    def normalize_blood_pressure(self, raw: dict) -> BloodPressureSample | None:
        ts = self._parse_iso_datetime(raw.get("time"))
        systolic = self._safe_float(raw.get("systolic_mmhg"))
        diastolic = self._safe_float(raw.get("diastolic_mmhg"))
        if ts is None or systolic is None or diastolic is None:
            return None
        return BloodPressureSample(
            systolic_mmhg=systolic, diastolic_mmhg=diastolic, timestamp=ts
        )

    def normalize_heart_rate(self, raw: dict) -> HeartRateSeries | None:
        """Convert one heart-rate record and all of its beat readings.

        Individual samples missing a time or bpm are dropped; the record
        itself is kept as long as its window is valid.
        """
        start = self._parse_iso_datetime(raw.get("start_time"))
        end = self._parse_iso_datetime(raw.get("end_time"))
        if start is None or end is None:
            return None

        samples = []
        for s in raw.get("samples") or []:
            ts = self._parse_iso_datetime(s.get("time"))
            bpm = self._safe_int(s.get("beats_per_minute"))
            if ts is not None and bpm is not None:
                samples.append(HeartRateSample(bpm=bpm, timestamp=ts))

        return HeartRateSeries(start=start, end=end, samples=tuple(samples))

    def normalize_sleep(self, raw: dict) -> SleepInterval | None:
        start = self._parse_iso_datetime(raw.get("start_time"))
        end = self._parse_iso_datetime(raw.get("end_time"))
        if start is None or end is None or end < start:
            return None
        return SleepInterval(start=start, end=end)

    def normalize_steps(self, raw: dict) -> StepsBucket | None:
        start = self._parse_iso_datetime(raw.get("start_time"))
        end = self._parse_iso_datetime(raw.get("end_time"))
        count = self._safe_int(raw.get("count"))
        if start is None or end is None or count is None:
            return None
        return StepsBucket(start=start, end=end, count=count)

    def _aggregate_value(self, metric: AggregateMetric, value: Any) -> Any:
        """STEPS_COUNT_TOTAL → int; SLEEP_DURATION_TOTAL (seconds) → timedelta."""
        if metric is AggregateMetric.SLEEP_DURATION_TOTAL:
            seconds = self._safe_float(value)
            return timedelta(seconds=seconds) if seconds is not None else None
        return self._safe_int(value)

    # ------------------------------------------------------------------
    # Private HTTP helper
    # ------------------------------------------------------------------

    def _build_headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self._access_token}"}

    async def _get(self, path: str, params: dict) -> dict:
        """Make an authenticated GET request to the record service.

        Raises:
            httpx.HTTPStatusError: On non-2xx responses.
            httpx.TransportError:  When the service cannot be reached.
        """
        url = f"{self._base_url}{path}"
        headers = self._build_headers()

        if self._http_client:
            response = await self._http_client.get(url, params=params, headers=headers)
        else:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.get(url, params=params, headers=headers)

        response.raise_for_status()
        return response.json()
