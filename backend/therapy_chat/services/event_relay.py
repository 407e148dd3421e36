"""
Event relay - publishes chat events to the external event-processing service.

Events go to the Inngest event API: POST <base_url>/e/<event_key> with a
``{"name": ..., "data": ...}`` body. Delivery is awaited; any failure to
hand the event over is reported as RelayUnavailable.
"""

import logging
import time
from typing import Any, Dict, List

import httpx

from ..core.errors import RelayUnavailable

logger = logging.getLogger(__name__)


class EventRelay:
    """One-way publisher for chat events."""

    def __init__(self, base_url: str, event_key: str, timeout: float = 10.0):
        self.base_url = base_url.rstrip("/")
        self.event_key = event_key
        self.timeout = timeout

    @property
    def url(self) -> str:
        return f"{self.base_url}/e/{self.event_key}"

    async def publish(self, name: str, data: Dict[str, Any]) -> List[str]:
        """
        Publish one event.

        Args:
            name: Event name (e.g., "therapy/session.message")
            data: JSON-serialisable event payload

        Returns:
            List[str]: Event ids assigned by the relay (may be empty)

        Raises:
            RelayUnavailable: On connection failure, timeout, or a non-2xx answer
        """
        start_time = time.time()
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.post(self.url, json={"name": name, "data": data})
                resp.raise_for_status()
        except httpx.TimeoutException as e:
            raise RelayUnavailable(f"event relay timed out: {type(e).__name__}") from e
        except httpx.HTTPError as e:
            raise RelayUnavailable(f"event relay failed: {type(e).__name__}: {e}") from e

        try:
            ids = resp.json().get("ids", [])
        except (ValueError, AttributeError):
            ids = []

        logger.info(
            f"Event published: {name}",
            extra={"extra_fields": {
                "event": name,
                "event_ids": ids,
                "duration_ms": round((time.time() - start_time) * 1000, 2),
            }}
        )
        return ids
