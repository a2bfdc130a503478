"""Light REST API routes."""

from typing import Any

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from lightbridge.devices.bridge import LightBridge
from lightbridge.devices.registry import light_registry
from lightbridge.models.command import ControllerCommand

router = APIRouter(prefix="/lights", tags=["lights"])


class CommandRequest(BaseModel):
    command: str
    binding: int | None = None
    params: dict[str, Any] = {}


def _get_light(light_id: str) -> LightBridge:
    bridge = light_registry.get_light(light_id)
    if not bridge:
        raise HTTPException(status_code=404, detail=f"Light not found: {light_id}")
    return bridge


@router.get("")
async def list_lights() -> list[dict[str, Any]]:
    """List all bridged lights with their cached state."""
    return light_registry.get_all_states()


@router.get("/{light_id}")
async def get_light(light_id: str) -> dict[str, Any]:
    return _get_light(light_id).get_state_dict()


@router.post("/{light_id}/command")
async def send_command(light_id: str, req: CommandRequest) -> dict[str, Any]:
    """Send a controller command to a light, as if it came over MQTT."""
    bridge = _get_light(light_id)
    command = ControllerCommand(command=req.command, binding=req.binding, params=req.params)
    handled = await bridge.handle_command(command)
    return {"success": handled, "command": command.command.upper()}


@router.post("/{light_id}/state")
async def push_state(light_id: str, payload: dict[str, Any]) -> dict[str, Any]:
    """Feed a Home Assistant state object or state_changed event (webhook)."""
    bridge = _get_light(light_id)
    bridge.handle_state(payload)
    return bridge.get_state_dict()


@router.post("/{light_id}/refresh")
async def refresh_light(light_id: str) -> dict[str, Any]:
    """Poll Home Assistant for the light's current state."""
    bridge = _get_light(light_id)
    await bridge.refresh()
    return bridge.get_state_dict()


@router.get("/{light_id}/scenes")
async def list_scenes(light_id: str) -> dict[str, Any]:
    scenes = _get_light(light_id).dispatcher.scenes
    result = {}
    for scene_id in await scenes.list_ids():
        scene = await scenes.get(scene_id)
        if scene is not None:
            result[scene_id] = scene.model_dump(mode="json")
    return result


@router.delete("/{light_id}/scenes/{scene_id}")
async def delete_scene(light_id: str, scene_id: str) -> dict[str, Any]:
    scenes = _get_light(light_id).dispatcher.scenes
    if not await scenes.delete(scene_id):
        raise HTTPException(status_code=404, detail=f"Scene not found: {scene_id}")
    return {"success": True}
