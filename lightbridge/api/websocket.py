"""WebSocket fan-out of controller notifications to HTTP clients."""

import asyncio
import json
import logging
from typing import Any

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Tracks WebSocket clients, optionally filtered to one light each."""

    def __init__(self):
        self._connections: dict[WebSocket, str | None] = {}
        self._lock = asyncio.Lock()
        self._pending: set[asyncio.Task] = set()

    async def connect(self, websocket: WebSocket, light_id: str | None = None) -> None:
        await websocket.accept()
        async with self._lock:
            self._connections[websocket] = light_id
        logger.info(f"WebSocket connected (light={light_id}). Total: {len(self._connections)}")

    async def disconnect(self, websocket: WebSocket) -> None:
        async with self._lock:
            self._connections.pop(websocket, None)
        logger.info(f"WebSocket disconnected. Total: {len(self._connections)}")

    async def broadcast(self, light_id: str, message_type: str, data: Any) -> None:
        """Send a typed message to every client watching ``light_id``."""
        payload = json.dumps({"type": message_type, "light_id": light_id, "data": data})

        async with self._lock:
            targets = [ws for ws, watched in self._connections.items() if watched in (None, light_id)]

        dead: list[WebSocket] = []
        for ws in targets:
            try:
                await ws.send_text(payload)
            except Exception:
                dead.append(ws)

        if dead:
            async with self._lock:
                for ws in dead:
                    self._connections.pop(ws, None)

    def broadcast_nowait(self, light_id: str, message_type: str, data: Any) -> None:
        if not self._connections:
            return
        task = asyncio.create_task(self.broadcast(light_id, message_type, data))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def send_to(self, websocket: WebSocket, message_type: str, data: Any) -> None:
        payload = json.dumps({"type": message_type, "data": data})
        try:
            await websocket.send_text(payload)
        except Exception:
            await self.disconnect(websocket)

    @property
    def connection_count(self) -> int:
        return len(self._connections)


# Singleton
ws_manager = ConnectionManager()
