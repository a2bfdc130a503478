"""Home Assistant REST client for light service calls and state polling."""

import asyncio
import logging
from typing import Any

import httpx

from config import settings
from lightbridge.models.service_call import ServiceCall

logger = logging.getLogger(__name__)


class HomeAssistantClient:
    """Client for the Home Assistant REST API.

    Service calls are fire-and-forget from the engine's point of view:
    ``submit`` schedules the request and returns immediately, and a failed
    call is logged, never retried.
    """

    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        timeout: float | None = None,
    ):
        self._base_url = (base_url or settings.ha_base_url).rstrip("/")
        self._token = token if token is not None else settings.ha_token
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers={
                "Authorization": f"Bearer {self._token}",
                "Content-Type": "application/json",
            },
            timeout=timeout or settings.ha_request_timeout_seconds,
        )
        self._pending: set[asyncio.Task] = set()

    @property
    def configured(self) -> bool:
        return bool(self._token)

    async def call_service(self, call: ServiceCall) -> bool:
        """POST one service call. Returns False when HA rejected or was unreachable."""
        if not self.configured:
            logger.warning(f"Home Assistant token not configured, dropping {call.service.value}")
            return False

        try:
            resp = await self._client.post(
                f"/api/services/{call.domain}/{call.service.value}",
                json=call.to_rest_body(),
            )
            resp.raise_for_status()
            return True
        except httpx.HTTPError as e:
            logger.error(f"Home Assistant service call {call.to_payload()} failed: {e}")
            return False
        except ValueError as e:
            # body not JSON-encodable (NaN/inf)
            logger.error(f"Home Assistant service call for {call.entity_id} not sent: {e}")
            return False

    def submit(self, call: ServiceCall) -> None:
        """Schedule ``call_service`` without waiting for it."""
        task = asyncio.create_task(self.call_service(call))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def get_state(self, entity_id: str) -> dict[str, Any] | None:
        """Fetch the current state object of ``entity_id``."""
        if not self.configured:
            logger.warning("Home Assistant token not configured, skipping state poll")
            return None

        try:
            resp = await self._client.get(f"/api/states/{entity_id}")
            resp.raise_for_status()
            return resp.json()
        except httpx.HTTPError as e:
            logger.error(f"Home Assistant state poll for {entity_id} failed: {e}")
            return None

    async def close(self) -> None:
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)
        await self._client.aclose()


# Singleton
ha_client = HomeAssistantClient()
