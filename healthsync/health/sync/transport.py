"""Sync transport: deliver the payload to the remote sync endpoint.

The outcome of a send is a value, not an exception.  Callers tell "the
remote rejected us" apart from "we never reached the remote" by the
outcome type alone:

    SyncSucceeded       - any 2xx response
    SyncRejected        - any other HTTP status; carries code and body text
    SyncTransportFault  - no response at all (DNS, refused, timeout, ...)

No retries happen here.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from types import TracebackType
from typing import Union

import httpx

from healthsync.models.sync import SyncPayload

logger = logging.getLogger("healthsync.health.sync.transport")


@dataclass(frozen=True)
class SyncSucceeded:
    status_code: int

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class SyncRejected:
    """The endpoint answered with a non-2xx status."""

    status_code: int
    body: str

    @property
    def ok(self) -> bool:
        return False

    def __str__(self) -> str:
        return f"API Error ({self.status_code}): {self.body}"


@dataclass(frozen=True)
class SyncTransportFault:
    """The request never produced a response."""

    description: str

    @property
    def ok(self) -> bool:
        return False

    def __str__(self) -> str:
        return f"Could not reach sync endpoint: {self.description}"


SyncOutcome = Union[SyncSucceeded, SyncRejected, SyncTransportFault]


class SyncTransport:
    """POST sync payloads to the configured endpoint with bearer auth.

    The transport closes its HTTP client on ``close()`` or when leaving an
    ``async with`` block, but only if it created the client itself.

    Usage::

        async with SyncTransport(api_url, api_key) as transport:
            outcome = await transport.send(payload)
    """

    def __init__(
        self,
        api_url: str,
        api_key: str,
        timeout: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the transport.

        Args:
            api_url:     Full URL of the sync endpoint.
            api_key:     Bearer credential.
            timeout:     Request timeout in seconds (ignored for injected clients).
            http_client: Optional pre-configured httpx client (for testing).
        """
        self._api_url = api_url
        self._api_key = api_key
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=timeout)

    async def __aenter__(self) -> SyncTransport:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owns_client and not self._client.is_closed:
            await self._client.aclose()
            logger.debug("Sync transport client closed")

    def _build_headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }

    async def send(self, payload: SyncPayload) -> SyncOutcome:
        """Send one payload and classify the result.

        Args:
            payload: The payload to deliver.

        Returns:
            SyncSucceeded, SyncRejected or SyncTransportFault.
        """
        try:
            response = await self._client.post(
                self._api_url,
                content=payload.model_dump_json(),
                headers=self._build_headers(),
            )
        except httpx.HTTPError as exc:
            description = str(exc) or type(exc).__name__
            logger.warning("Sync request to %s failed: %s", self._api_url, description)
            return SyncTransportFault(description=description)

        if response.is_success:
            logger.info("Sync accepted by %s (%d)", self._api_url, response.status_code)
            return SyncSucceeded(status_code=response.status_code)

        logger.warning(
            "Sync rejected by %s: %d %s",
            self._api_url, response.status_code, response.text[:200],
        )
        return SyncRejected(status_code=response.status_code, body=response.text)
