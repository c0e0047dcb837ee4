# src/dispatch_relay/analytics/publisher.py

from __future__ import annotations

import logging
from typing import Any

import httpx

logger = logging.getLogger(__name__)


class PublisherService:
    """
    Post JSON status messages to `/publish/<topic>`.

    Publishing is best-effort: failures are logged and never raised, so a
    flaky publish endpoint cannot break the sync that produced the message.
    """

    def __init__(
        self,
        topic: str,
        *,
        base_url: str = "",
        http_client: httpx.AsyncClient | None = None,
        timeout_seconds: float = 30.0,
    ) -> None:
        self.topic = topic
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(base_url=base_url, timeout=timeout_seconds)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def publish(self, payload: dict[str, Any]) -> None:
        try:
            response = await self._client.post(f"/publish/{self.topic}", json=payload)
        except httpx.HTTPError as exc:
            logger.error("Error publishing to topic %s: %r", self.topic, exc)
            return

        if not response.is_success:
            logger.error(
                "Publish to %s failed with status %d: %s",
                self.topic,
                response.status_code,
                response.text,
            )
            return

        logger.info("Publish to %s successful", self.topic)
