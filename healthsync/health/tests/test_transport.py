"""Tests for SyncTransport outcome classification."""

from __future__ import annotations

import json

import httpx
import pytest

from healthsync.health.sync.transport import (
    SyncRejected,
    SyncSucceeded,
    SyncTransport,
    SyncTransportFault,
)
from healthsync.models.sync import BloodPressureReading, SyncPayload
from healthsync.health.tests.conftest import RecordingHandler, mock_client

API_URL = "https://sync.example.test/v1/health"


def sample_payload() -> SyncPayload:
    return SyncPayload(
        blood_pressure=[
            BloodPressureReading(
                recorded_at="2026-02-23T09:00:00Z", systolic=120, diastolic=80
            )
        ]
    )


class TestSend:
    @pytest.mark.asyncio
    async def test_success_posts_json_with_bearer(self) -> None:
        handler = RecordingHandler(status_code=200, text="ok")
        transport = SyncTransport(API_URL, "sync-key", http_client=mock_client(handler))

        outcome = await transport.send(sample_payload())

        assert outcome == SyncSucceeded(status_code=200)
        assert outcome.ok
        request = handler.requests[0]
        assert request.method == "POST"
        assert str(request.url) == API_URL
        assert request.headers["Authorization"] == "Bearer sync-key"
        assert request.headers["Content-Type"] == "application/json"
        body = json.loads(request.content)
        assert body["blood_pressure"][0]["pulse"] is None
        assert body["steps"] == []

    @pytest.mark.asyncio
    async def test_any_2xx_succeeds(self) -> None:
        handler = RecordingHandler(status_code=201)
        transport = SyncTransport(API_URL, "sync-key", http_client=mock_client(handler))
        assert await transport.send(sample_payload()) == SyncSucceeded(status_code=201)

    @pytest.mark.asyncio
    async def test_non_2xx_is_rejected_with_body(self) -> None:
        handler = RecordingHandler(status_code=401, text="invalid api key")
        transport = SyncTransport(API_URL, "bad-key", http_client=mock_client(handler))

        outcome = await transport.send(sample_payload())

        assert outcome == SyncRejected(status_code=401, body="invalid api key")
        assert not outcome.ok
        assert str(outcome) == "API Error (401): invalid api key"

    @pytest.mark.asyncio
    async def test_unreachable_endpoint_is_transport_fault(self) -> None:
        handler = RecordingHandler(raises=httpx.ConnectError("connection refused"))
        transport = SyncTransport(API_URL, "sync-key", http_client=mock_client(handler))

        outcome = await transport.send(sample_payload())

        assert isinstance(outcome, SyncTransportFault)
        assert not outcome.ok
        assert "connection refused" in str(outcome)

    @pytest.mark.asyncio
    async def test_timeout_is_transport_fault(self) -> None:
        handler = RecordingHandler(raises=httpx.ReadTimeout("timed out"))
        transport = SyncTransport(API_URL, "sync-key", http_client=mock_client(handler))
        assert isinstance(await transport.send(sample_payload()), SyncTransportFault)


class TestClientLifecycle:
    @pytest.mark.asyncio
    async def test_injected_client_left_open(self) -> None:
        client = mock_client(RecordingHandler())
        async with SyncTransport(API_URL, "sync-key", http_client=client):
            pass
        assert not client.is_closed
        await client.aclose()

    @pytest.mark.asyncio
    async def test_owned_client_closed_on_exit(self) -> None:
        transport = SyncTransport(API_URL, "sync-key")
        async with transport:
            pass
        assert transport._client.is_closed

    @pytest.mark.asyncio
    async def test_owned_client_closed_when_block_raises(self) -> None:
        transport = SyncTransport(API_URL, "sync-key")
        with pytest.raises(RuntimeError, match="payload build failed"):
            async with transport:
                raise RuntimeError("payload build failed")
        assert transport._client.is_closed

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self) -> None:
        transport = SyncTransport(API_URL, "sync-key")
        await transport.close()
        await transport.close()
        assert transport._client.is_closed
