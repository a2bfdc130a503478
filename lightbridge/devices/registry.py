"""Light registry: loads bridged lights from YAML and manages their lifecycle."""

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from lightbridge.devices.bridge import LightBridge
from lightbridge.models.device import LightConfig
from lightbridge.mqtt.client import mqtt_client
from lightbridge.mqtt.topics import Topics
from lightbridge.storage.kv_store import KeyValueStore, kv_store
from lightbridge.storage.scene_store import SceneStore

logger = logging.getLogger(__name__)


class LightRegistry:
    """Manages all bridged lights and fans Home Assistant events out to them."""

    def __init__(self, store: KeyValueStore | None = None):
        self._store = store or kv_store
        self._lights: dict[str, LightBridge] = {}

    @property
    def lights(self) -> dict[str, LightBridge]:
        return self._lights

    def load_from_yaml(self, config_path: str) -> None:
        """Load light definitions from YAML config file."""
        path = Path(config_path)
        if not path.exists():
            logger.error(f"Lights config not found: {config_path}")
            return

        with open(path) as f:
            config = yaml.safe_load(f) or {}

        for light_data in config.get("lights", []):
            try:
                light_config = LightConfig.model_validate(light_data)
            except ValidationError as e:
                logger.warning(f"Skipping invalid light entry {light_data}: {e}")
                continue
            self.register(light_config)

    def register(self, light_config: LightConfig, **bridge_kwargs: Any) -> LightBridge:
        """Create and register the bridge for one light.

        A second registration of the same id is ignored and the running
        bridge is returned.
        """
        existing = self._lights.get(light_config.id)
        if existing is not None:
            logger.warning(f"Light {light_config.id} already registered, ignoring duplicate entry")
            return existing
        bridge = LightBridge(light_config, SceneStore(self._store, light_config.id), **bridge_kwargs)
        self._lights[bridge.light_id] = bridge
        logger.info(f"Registered light: {bridge.light_id} -> {bridge.entity_id}")
        return bridge

    async def start_all(self) -> None:
        """Subscribe to the HA event stream and start every light."""
        await mqtt_client.subscribe(Topics.ha_events(), self._handle_ha_event)
        for bridge in self._lights.values():
            await bridge.start()
        logger.info(f"Started {len(self._lights)} lights")

    async def stop_all(self) -> None:
        for bridge in self._lights.values():
            await bridge.stop()
        await mqtt_client.unsubscribe(Topics.ha_events())
        logger.info("All lights stopped")

    def get_light(self, light_id: str) -> LightBridge | None:
        return self._lights.get(light_id)

    def get_all_states(self) -> list[dict[str, Any]]:
        return [bridge.get_state_dict() for bridge in self._lights.values()]

    def dispatch_state(self, payload: dict[str, Any]) -> None:
        """Hand a backend state/event to every light; each ignores foreign entities."""
        for bridge in self._lights.values():
            bridge.handle_state(payload)

    async def _handle_ha_event(self, topic: str, payload: dict[str, Any]) -> None:
        self.dispatch_state(payload)


# Singleton
light_registry = LightRegistry()
