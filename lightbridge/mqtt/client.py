"""Async MQTT link carrying controller commands/notifications and HA events."""

import asyncio
import json
import logging
from typing import Any, Callable, Coroutine

import aiomqtt

from config import settings

logger = logging.getLogger(__name__)

# Type alias for message handlers
MessageHandler = Callable[[str, dict[str, Any]], Coroutine[Any, Any, None]]

RECONNECT_INTERVAL_SECONDS = 5.0


class MQTTClient:
    """MQTT client that keeps itself connected and re-subscribes on reconnect."""

    def __init__(self, hostname: str | None = None, port: int | None = None):
        self._hostname = hostname or settings.mqtt_host
        self._port = port or settings.mqtt_port
        self._client: aiomqtt.Client | None = None
        self._subscriptions: dict[str, list[MessageHandler]] = {}
        self._connected = asyncio.Event()
        self._run_task: asyncio.Task | None = None
        self._pending: set[asyncio.Task] = set()

    @property
    def is_connected(self) -> bool:
        return self._connected.is_set()

    async def connect(self, timeout: float = 5.0) -> None:
        """Start the connection loop and wait for the first connection.

        Raises ``TimeoutError`` when the broker is not reachable in time;
        the loop keeps retrying in the background regardless.
        """
        if self._run_task is None or self._run_task.done():
            self._run_task = asyncio.create_task(self._run())
        await asyncio.wait_for(self._connected.wait(), timeout)

    async def disconnect(self) -> None:
        if self._run_task:
            self._run_task.cancel()
            try:
                await self._run_task
            except asyncio.CancelledError:
                pass
            self._run_task = None
        self._connected.clear()
        self._client = None
        logger.info("Disconnected from MQTT broker")

    async def publish(self, topic: str, payload: dict[str, Any]) -> None:
        """Publish a JSON message to a topic."""
        if not self._client or not self.is_connected:
            logger.warning(f"Not connected, cannot publish to {topic}")
            return

        message = json.dumps(payload)
        try:
            await self._client.publish(topic, message.encode())
        except aiomqtt.MqttError as e:
            logger.error(f"Publish to {topic} failed: {e}")
            return
        logger.debug(f"Published to {topic}: {message[:200]}")

    def publish_nowait(self, topic: str, payload: dict[str, Any]) -> None:
        """Schedule a publish from synchronous code (timer callbacks)."""
        task = asyncio.create_task(self.publish(topic, payload))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def subscribe(self, topic: str, handler: MessageHandler) -> None:
        """Subscribe to a topic (wildcards allowed) with a message handler."""
        if topic not in self._subscriptions:
            self._subscriptions[topic] = []
            if self._client and self.is_connected:
                await self._client.subscribe(topic)
                logger.info(f"Subscribed to {topic}")

        self._subscriptions[topic].append(handler)

    async def unsubscribe(self, topic: str) -> None:
        if topic in self._subscriptions:
            del self._subscriptions[topic]
            if self._client and self.is_connected:
                await self._client.unsubscribe(topic)
                logger.info(f"Unsubscribed from {topic}")

    async def _run(self) -> None:
        while True:
            try:
                async with aiomqtt.Client(hostname=self._hostname, port=self._port) as client:
                    self._client = client
                    for topic in self._subscriptions:
                        await client.subscribe(topic)
                    self._connected.set()
                    logger.info(f"Connected to MQTT broker at {self._hostname}:{self._port}")

                    async for message in client.messages:
                        await self._dispatch(message)
            except aiomqtt.MqttError as e:
                if self.is_connected:
                    logger.warning(f"MQTT connection lost: {e}")
                else:
                    logger.debug(f"MQTT broker not reachable: {e}")
            finally:
                self._connected.clear()
                self._client = None
            await asyncio.sleep(RECONNECT_INTERVAL_SECONDS)

    async def _dispatch(self, message: aiomqtt.Message) -> None:
        topic = str(message.topic)
        try:
            payload = json.loads(bytes(message.payload).decode())
        except (json.JSONDecodeError, UnicodeDecodeError, TypeError):
            logger.warning(f"Invalid message on {topic}")
            return
        if not isinstance(payload, dict):
            logger.warning(f"Ignoring non-object payload on {topic}")
            return

        for sub_topic, handlers in list(self._subscriptions.items()):
            if not message.topic.matches(sub_topic):
                continue
            for handler in handlers:
                try:
                    await handler(topic, payload)
                except Exception as e:
                    logger.error(f"Handler error for {topic}: {e}", exc_info=True)


# Singleton instance
mqtt_client = MQTTClient()
