"""Scene persistence on top of the key-value store."""

import logging
import math
import xml.etree.ElementTree as ET
from typing import Any

from lightbridge.models.scene import SceneDefinition
from lightbridge.storage.kv_store import KeyValueStore

logger = logging.getLogger(__name__)

SCENE_NAMESPACE = "ALS"


def _typed(value: str | None) -> Any:
    """Convert an element's text to bool, int, float or leave it a string."""
    if value is None:
        return ""
    text = value.strip()
    if text in ("True", "true"):
        return True
    if text in ("False", "false"):
        return False
    try:
        return int(text)
    except ValueError:
        pass
    try:
        number = float(text)
    except ValueError:
        return text
    return number if math.isfinite(number) else text


def parse_scene_elements(elements_xml: str) -> dict[str, Any]:
    """Flatten the controller's scene ``<element>`` XML into a typed map.

    The children may arrive with or without the ``<element>`` wrapper.
    """
    try:
        root = ET.fromstring(elements_xml)
    except ET.ParseError:
        root = ET.fromstring(f"<element>{elements_xml}</element>")

    children = list(root)
    if not children:
        return {root.tag: _typed(root.text)}
    return {child.tag: _typed(child.text) for child in children}


class SceneStore:
    """Scenes of one light, one record per scene id under ``ALS:<light>:<scene>``."""

    def __init__(self, kv: KeyValueStore, light_id: str):
        self._kv = kv
        self._prefix = f"{SCENE_NAMESPACE}:{light_id}:"

    def _key(self, scene_id: str) -> str:
        return f"{self._prefix}{scene_id}"

    async def push_scene(self, scene_id: str, elements_xml: str) -> SceneDefinition:
        """Parse and persist a scene pushed by the controller."""
        elements = parse_scene_elements(elements_xml)
        return await self.put(scene_id, elements)

    async def put(self, scene_id: str, elements: dict[str, Any]) -> SceneDefinition:
        scene = SceneDefinition.model_validate(elements)
        await self._kv.set(self._key(scene_id), elements)
        logger.debug(f"Stored scene {scene_id}: {elements}")
        return scene

    async def get_elements(self, scene_id: str) -> dict[str, Any] | None:
        value = await self._kv.get(self._key(scene_id))
        return value if isinstance(value, dict) else None

    async def get(self, scene_id: str) -> SceneDefinition | None:
        elements = await self.get_elements(scene_id)
        if elements is None:
            return None
        return SceneDefinition.model_validate(elements)

    async def delete(self, scene_id: str) -> bool:
        return await self._kv.delete(self._key(scene_id))

    async def list_ids(self) -> list[str]:
        keys = await self._kv.keys(self._prefix)
        return [key[len(self._prefix):] for key in keys]
