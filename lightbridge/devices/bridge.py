"""One bridged light: engine wiring plus controller command routing."""

import inspect
import logging
from typing import Any, Awaitable, Callable

from config import settings
from lightbridge.api.websocket import ws_manager
from lightbridge.engine.dispatcher import CommandDispatcher, RampDirection
from lightbridge.engine.ingest import StateIngest
from lightbridge.engine.scheduler import AsyncioScheduler, Scheduler
from lightbridge.engine.session import BackendSink, DeviceSession, NotificationSink
from lightbridge.integrations.home_assistant import ha_client
from lightbridge.models.command import (
    BrightnessTargetParams,
    ButtonParams,
    ColorOnModeParams,
    ColorTargetParams,
    ControllerCommand,
    EffectParams,
    LevelParams,
    RateParams,
    SceneParams,
    ToleranceParams,
)
from lightbridge.models.device import LightConfig
from lightbridge.models.notification import Notification
from lightbridge.mqtt.client import mqtt_client
from lightbridge.mqtt.topics import Topics
from lightbridge.storage.scene_store import SceneStore

logger = logging.getLogger(__name__)

CommandHandler = Callable[[ControllerCommand], Awaitable[None] | None]

BUTTON_CLICK = 2

# Button-link bindings -> button ids (top, bottom, toggle)
BUTTON_BINDINGS = {200: 0, 201: 1, 202: 2}


class LightBridge:
    """Controller-facing side of one Home Assistant light entity."""

    def __init__(
        self,
        config: LightConfig,
        scenes: SceneStore,
        scheduler: Scheduler | None = None,
        notify: NotificationSink | None = None,
        call_service: BackendSink | None = None,
    ):
        self.config = config
        self.light_id = config.id
        self.entity_id = config.entity_id
        self.display_name = config.display_name or config.id

        self.session = DeviceSession(
            entity_id=config.entity_id,
            scheduler=scheduler or AsyncioScheduler(),
            notify=notify or self._publish_notification,
            call_service=call_service or ha_client.submit,
            color_trace_tolerance=settings.color_trace_tolerance,
            default_brightness_rate_ms=settings.default_brightness_rate_ms,
            default_color_rate_ms=settings.default_color_rate_ms,
        )
        self.dispatcher = CommandDispatcher(self.session, scenes)
        self.ingest = StateIngest(self.session)

        self._handlers: dict[str, CommandHandler] = {
            "ON": lambda cmd: self.dispatcher.turn_on(),
            "OFF": lambda cmd: self.dispatcher.turn_off(),
            "SET_BRIGHTNESS_TARGET": self._set_brightness_target,
            "SET_LEVEL": self._set_level,
            "GROUP_SET_LEVEL": self._set_level,
            "GROUP_RAMP_TO_LEVEL": self._set_level,
            "SET_COLOR_TARGET": self._set_color_target,
            "SYNCHRONIZE": lambda cmd: self.dispatcher.synchronize(),
            "PUSH_SCENE": self._push_scene,
            "ACTIVATE_SCENE": self._activate_scene,
            "RAMP_SCENE_UP": self._ramp_scene_up,
            "RAMP_SCENE_DOWN": self._ramp_scene_down,
            "STOP_SCENE_RAMP": lambda cmd: self.dispatcher.stop_ramp(),
            "SELECT_LIGHT_EFFECT": self._select_effect,
            "UPDATE_COLOR_ON_MODE": self._update_color_on_mode,
            "UPDATE_BRIGHTNESS_RATE_DEFAULT": self._update_brightness_rate_default,
            "UPDATE_COLOR_RATE_DEFAULT": self._update_color_rate_default,
            "SET_COLOR_TRACE_TOLERANCE": self._set_color_trace_tolerance,
            "BUTTON_ACTION": self._button_action,
            "DO_CLICK": self._do_click,
            "DO_PUSH": lambda cmd: None,
            "DO_RELEASE": lambda cmd: None,
        }

    @property
    def commands(self) -> list[str]:
        return sorted(self._handlers)

    async def start(self) -> None:
        """Subscribe to the command topic and poll the initial state."""
        await mqtt_client.subscribe(Topics.light_command(self.light_id), self._handle_mqtt_command)
        await self.refresh()
        logger.info(f"Light {self.light_id} ({self.entity_id}) started")

    async def stop(self) -> None:
        self.session.ramps.brightness.cancel()
        self.session.ramps.color.cancel()
        await mqtt_client.unsubscribe(Topics.light_command(self.light_id))
        logger.info(f"Light {self.light_id} stopped")

    async def refresh(self) -> None:
        """Poll Home Assistant for the entity's current state."""
        state = await ha_client.get_state(self.entity_id)
        if state is not None:
            self.ingest.parse(state)

    async def handle_command(self, command: ControllerCommand) -> bool:
        """Route one controller command. Never raises."""
        name = command.command.upper()
        handler = self._handlers.get(name)
        if handler is None:
            logger.warning(f"Light {self.light_id}: unknown command {command.command}")
            return False

        logger.info(f"Light {self.light_id} received command: {name} {command.params}")
        try:
            result = handler(command)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            logger.error(f"Light {self.light_id}: command {name} failed: {e}", exc_info=True)
            return False
        return True

    def handle_state(self, payload: dict[str, Any]) -> None:
        """Feed a Home Assistant state object or state_changed event."""
        self.ingest.handle_event(payload)

    def get_state_dict(self) -> dict[str, Any]:
        session = self.session
        return {
            "light_id": self.light_id,
            "entity_id": self.entity_id,
            "display_name": self.display_name,
            "state": session.state.to_dict(),
            "capabilities": session.capabilities.model_dump(mode="json"),
            "color_on_mode": session.color_on_mode.model_dump(mode="json"),
            "color_trace_tolerance": session.color_trace_tolerance,
            "default_brightness_rate_ms": session.default_brightness_rate_ms,
            "default_color_rate_ms": session.default_color_rate_ms,
            "ramping": {
                "brightness": session.ramps.brightness.is_ramping,
                "color": session.ramps.color.is_ramping,
            },
        }

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _publish_notification(self, notification: Notification) -> None:
        payload = notification.to_payload()
        mqtt_client.publish_nowait(Topics.light_notify(self.light_id), payload)
        ws_manager.broadcast_nowait(self.light_id, "notification", payload)

    async def _handle_mqtt_command(self, topic: str, payload: dict[str, Any]) -> None:
        try:
            command = ControllerCommand.model_validate(payload)
        except ValueError as e:
            logger.warning(f"Malformed command on {topic}: {e}")
            return
        await self.handle_command(command)

    # ------------------------------------------------------------------
    # Command handlers
    # ------------------------------------------------------------------

    def _set_brightness_target(self, cmd: ControllerCommand) -> None:
        params = BrightnessTargetParams.parse(cmd.params)
        self.dispatcher.set_brightness(params.target, params.rate_ms, params.preset_id)

    def _set_level(self, cmd: ControllerCommand) -> None:
        params = LevelParams.parse(cmd.params)
        self.dispatcher.set_brightness(params.level, params.effective_rate)

    def _set_color_target(self, cmd: ControllerCommand) -> None:
        params = ColorTargetParams.parse(cmd.params)
        self.dispatcher.set_color(params.x, params.y, params.mode, params.rate_ms)

    async def _push_scene(self, cmd: ControllerCommand) -> None:
        params = SceneParams.parse(cmd.params)
        await self.dispatcher.push_scene(params.scene_id, params.elements)

    async def _activate_scene(self, cmd: ControllerCommand) -> None:
        params = SceneParams.parse(cmd.params)
        await self.dispatcher.activate_scene(params.scene_id)

    async def _ramp_scene_up(self, cmd: ControllerCommand) -> None:
        params = SceneParams.parse(cmd.params)
        await self.dispatcher.ramp_to_scene_level(params.scene_id, params.rate_ms, RampDirection.UP)

    async def _ramp_scene_down(self, cmd: ControllerCommand) -> None:
        params = SceneParams.parse(cmd.params)
        await self.dispatcher.ramp_to_scene_level(params.scene_id, params.rate_ms, RampDirection.DOWN)

    def _select_effect(self, cmd: ControllerCommand) -> None:
        self.dispatcher.select_effect(EffectParams.parse(cmd.params).value)

    def _update_color_on_mode(self, cmd: ControllerCommand) -> None:
        self.dispatcher.update_color_on_mode(ColorOnModeParams.parse(cmd.params))

    def _update_brightness_rate_default(self, cmd: ControllerCommand) -> None:
        self.dispatcher.set_default_brightness_rate(RateParams.parse(cmd.params).rate_ms)

    def _update_color_rate_default(self, cmd: ControllerCommand) -> None:
        self.dispatcher.set_default_color_rate(RateParams.parse(cmd.params).rate_ms)

    def _set_color_trace_tolerance(self, cmd: ControllerCommand) -> None:
        self.dispatcher.set_color_trace_tolerance(ToleranceParams.parse(cmd.params).value)

    def _button_action(self, cmd: ControllerCommand) -> None:
        params = ButtonParams.parse(cmd.params)
        if params.action == BUTTON_CLICK:
            self.dispatcher.button_action(params.button_id)

    def _do_click(self, cmd: ControllerCommand) -> None:
        self.dispatcher.button_action(BUTTON_BINDINGS.get(cmd.binding, 2))
