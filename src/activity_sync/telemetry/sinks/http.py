"""HTTP sink posting batches to the activity API."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import httpx

from ...errors import TransportError
from ..events import ActivityBatch
from .base import BatchSink


logger = logging.getLogger(__name__)

BATCH_ENDPOINT = "/api/activity/batch"


@dataclass
class HttpSink(BatchSink):
    """
    Sink that POSTs each batch to ``{base_url}/api/activity/batch``.

    Request body:
        {"userId": ..., "appId": ..., "events": [...], "ttl": <ms>}

    ``ttl`` is only sent when set, and lets the server expire stored
    activity on the same schedule the tracker uses locally.
    """
    base_url: str
    user_id: str
    app_id: str

    # Retention hint for the server (seconds)
    ttl: float | None = None

    # Request timeout (seconds)
    timeout: float = 10.0

    headers: dict[str, str] = field(default_factory=dict)

    # Custom httpx transport (tests, proxies)
    transport: httpx.AsyncBaseTransport | None = None

    # Internal state
    _client: httpx.AsyncClient | None = field(default=None, init=False)

    async def start(self) -> None:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers=self.headers,
                transport=self.transport,
            )

    async def stop(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def build_payload(self, batch: ActivityBatch) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "userId": self.user_id,
            "appId": self.app_id,
            "events": batch.to_dicts(),
        }
        if self.ttl is not None:
            payload["ttl"] = int(self.ttl * 1000)
        return payload

    async def send(self, batch: ActivityBatch) -> None:
        if self._client is None:
            await self.start()

        try:
            response = await self._client.post(BATCH_ENDPOINT, json=self.build_payload(batch))
        except httpx.HTTPError as e:
            raise TransportError(f"Failed to send activity batch: {e}") from e

        if response.is_error:
            raise TransportError(
                f"Failed to send activity batch: {response.status_code} {response.reason_phrase}",
                status_code=response.status_code,
            )
        logger.debug(f"Posted {batch.size} events to {self.base_url}{BATCH_ENDPOINT}")

    async def health_check(self) -> bool:
        return self._client is not None and not self._client.is_closed
