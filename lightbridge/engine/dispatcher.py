"""Command dispatcher: controller intents to Home Assistant service calls.

Every public operation issues at most one backend call and schedules the
controller notifications that go with it. Nothing here raises on bad
input; missing values fall back to defaults or turn the command into a
logged no-op.
"""

import logging
from enum import Enum

from lightbridge.engine.color import (
    choose_representation,
    clamp_kelvin,
    echoed_preset,
    interpolate,
    should_suppress_echo,
    xy_to_kelvin,
)
from lightbridge.engine.levels import clamp_percent, percent_to_wire
from lightbridge.engine.session import DeviceSession, clamp_tolerance
from lightbridge.models.command import ColorOnModeParams
from lightbridge.models.device import (
    Chromaticity,
    ColorMode,
    ColorOnModeConfig,
    ColorOrigin,
    Representation,
)
from lightbridge.models.notification import (
    BrightnessChanging,
    CapabilitiesChanged,
    ColorChanged,
    ColorChanging,
)
from lightbridge.models.scene import SceneDefinition
from lightbridge.models.service_call import LightService, ServiceCall, ServiceData
from lightbridge.storage.scene_store import SceneStore

logger = logging.getLogger(__name__)


class RampDirection(str, Enum):
    UP = "up"
    DOWN = "down"


def _color_mode(value: int | None) -> ColorMode:
    return ColorMode.COLOR_TEMPERATURE if value == 1 else ColorMode.FULL_COLOR


class CommandDispatcher:
    """Public entry points for controller commands on one light."""

    def __init__(self, session: DeviceSession, scenes: SceneStore):
        self.session = session
        self.scenes = scenes

    # ------------------------------------------------------------------
    # Power and effects
    # ------------------------------------------------------------------

    def turn_on(self) -> None:
        """Bare turn_on; the backend restores its own last state."""
        self.session.call_service(ServiceCall(entity_id=self.session.entity_id))

    def turn_off(self) -> None:
        """Bare turn_off with no transition."""
        self.session.call_service(
            ServiceCall(entity_id=self.session.entity_id, service=LightService.TURN_OFF)
        )

    def select_effect(self, name: str | None) -> None:
        """Start a backend effect by name."""
        if not name:
            logger.warning(f"[{self.session.entity_id}] SELECT_LIGHT_EFFECT without an effect name")
            return
        self.session.call_service(
            ServiceCall(entity_id=self.session.entity_id, service_data=ServiceData(effect=name))
        )

    def button_action(self, button_id: int | None) -> None:
        """Top button turns on, bottom turns off, anything else toggles."""
        if button_id == 0:
            self.set_brightness(100)
        elif button_id == 1:
            self.set_brightness(0)
        elif self.session.state.is_on:
            self.set_brightness(0)
        else:
            self.set_brightness(100)

    def synchronize(self) -> None:
        """Re-emit the cached state."""
        state = self.session.state
        self.session.notify(self.session.brightness_changed(state.brightness_percent))
        if state.color is not None:
            self.session.notify(
                ColorChanged(current_x=state.color_x, current_y=state.color_y, mode=state.color_mode)
            )

    # ------------------------------------------------------------------
    # Brightness
    # ------------------------------------------------------------------

    def set_brightness(
        self,
        target: int | None,
        rate_ms: int | None = None,
        preset_id: int | None = None,
    ) -> None:
        """Move to ``target`` percent over ``rate_ms``.

        A missing rate uses the session default. A ``preset_id`` is echoed
        back on the BrightnessChanged that reports reaching ``target``.
        Target 0 becomes a turn_off carrying the transition.
        """
        session = self.session
        state = session.state

        if target is None:
            logger.warning(f"[{session.entity_id}] brightness command without a target level ignored")
            return

        target = clamp_percent(target)
        rate = session.default_brightness_rate_ms if rate_ms is None else max(rate_ms, 0)

        if preset_id is not None:
            state.preset_id = preset_id
            state.preset_target_level = target
        else:
            state.preset_id = None
            state.preset_target_level = None

        logger.debug(
            f"[{session.entity_id}] set_brightness target={target}, rate={rate}ms, preset={preset_id}"
        )

        start = self._brightness_position()
        session.ramps.brightness.arm(rate, target=target, start_value=start)
        session.notify(BrightnessChanging(current=round(start), target=target, rate_ms=rate))
        session.call_service(self._brightness_call(target, rate))

    def _brightness_position(self) -> float:
        """Where the light is now: the interpolated ramp position while ramping.

        During a ramp the cached level already holds the backend's echo of
        the target, not the light's actual level.
        """
        channel = self.session.ramps.brightness
        if channel.is_ramping:
            return channel.level_at(self.session.ramps.now_ms())
        return self.session.state.brightness_percent

    def _brightness_call(self, target: int, rate_ms: int) -> ServiceCall:
        session = self.session
        caps = session.capabilities
        config = session.color_on_mode

        if not caps.supports_brightness:
            data = ServiceData()
        else:
            data = ServiceData(brightness=percent_to_wire(target), transition=rate_ms / 1000)
            if target > 0:
                if config.fade_enabled:
                    fade = interpolate(config.dim_color, config.on_color, target)
                    logger.debug(f"[{session.entity_id}] dim-to-warm: {target}% -> xy{fade}")
                    self._apply_color(data, fade, ColorMode.COLOR_TEMPERATURE)
                elif not session.state.is_on:
                    power_on = self._power_on_color()
                    if power_on is not None:
                        self._apply_color(data, *power_on)

        call = ServiceCall(entity_id=session.entity_id, service_data=data)
        if target == 0:
            return call.power_off()
        return call

    def _power_on_color(self) -> tuple[Chromaticity, ColorMode] | None:
        """Color for an off -> on transition when fade mode is not active."""
        config = self.session.color_on_mode
        state = self.session.state

        if config.origin == ColorOrigin.USE_PRESET and config.on_color is not None:
            return config.on_color, config.on_mode
        if config.origin == ColorOrigin.RESTORE_PREVIOUS and state.color is not None:
            return state.color, state.color_mode
        return None

    # ------------------------------------------------------------------
    # Color
    # ------------------------------------------------------------------

    def set_color(
        self,
        x: float | None,
        y: float | None,
        mode: int | None = None,
        rate_ms: int | None = None,
    ) -> None:
        """Move to chromaticity ``(x, y)``, negotiated against the device.

        Ignored while fading when it only repeats one of the fade presets.
        """
        session = self.session

        if x is None or y is None:
            logger.warning(f"[{session.entity_id}] color command without x/y ignored")
            return

        config = session.color_on_mode
        if should_suppress_echo((x, y), config.on_color, config.dim_color, config.fade_enabled):
            preset = echoed_preset((x, y), config.on_color, config.dim_color)
            logger.debug(
                f"[{session.entity_id}] color ({x}, {y}) ignored: matches fade preset '{preset}'"
            )
            return

        color_mode = _color_mode(mode)
        rate = session.default_color_rate_ms if rate_ms is None else max(rate_ms, 0)

        session.ramps.color.arm(rate)
        session.notify(ColorChanging(target_x=x, target_y=y, mode=color_mode, rate_ms=rate))

        data = ServiceData()
        self._apply_color(data, (x, y), color_mode)
        if rate > 0:
            data.transition = rate / 1000

        session.call_service(ServiceCall(entity_id=session.entity_id, service_data=data))

    def _apply_color(self, data: ServiceData, color: Chromaticity, requested: ColorMode) -> None:
        caps = self.session.capabilities
        if choose_representation(requested, caps) == Representation.AS_TEMPERATURE:
            kelvin = xy_to_kelvin(*color)
            if kelvin is not None:
                data.color_temp_kelvin = clamp_kelvin(kelvin, caps)
                return
            logger.warning(f"[{self.session.entity_id}] no CCT for xy{color}, sending chromaticity")
        data.xy_color = (color[0], color[1])

    # ------------------------------------------------------------------
    # Scenes
    # ------------------------------------------------------------------

    async def push_scene(self, scene_id: str | None, elements: str | None) -> None:
        """Parse and store a scene pushed by the controller."""
        if not scene_id or not elements:
            logger.warning(f"[{self.session.entity_id}] PUSH_SCENE without scene id or elements")
            return
        scene = await self.scenes.push_scene(scene_id, elements)
        logger.info(f"[{self.session.entity_id}] stored scene {scene_id}: {scene.model_dump()}")

    async def _load_scene(self, scene_id: str | None) -> SceneDefinition | None:
        scene = await self.scenes.get(scene_id) if scene_id else None
        if scene is None:
            logger.warning(f"[{self.session.entity_id}] no scene data for scene {scene_id}")
        return scene

    async def activate_scene(self, scene_id: str | None) -> None:
        """Apply a stored scene; brightness plus color goes out as one call."""
        scene = await self._load_scene(scene_id)
        if scene is None:
            return

        if scene.brightness_enabled and scene.color_enabled:
            self._activate_combined(scene)
            return

        if scene.brightness_enabled:
            self.set_brightness(scene.level, scene.brightness_rate_ms)
        if scene.color_enabled:
            self.set_color(scene.color_x, scene.color_y, int(scene.color_mode), scene.color_rate_ms)

    def _activate_combined(self, scene: SceneDefinition) -> None:
        """Brightness and color in a single call.

        Two sequential calls would let dim-to-warm pick a color for the
        brightness step before the scene color lands, a visible flash.
        """
        session = self.session
        state = session.state
        target = clamp_percent(scene.level)
        max_rate = max(scene.brightness_rate_ms, scene.color_rate_ms, 0)

        state.preset_id = None
        state.preset_target_level = None

        start = self._brightness_position()
        session.notify(
            BrightnessChanging(
                current=round(start), target=target, rate_ms=scene.brightness_rate_ms
            )
        )
        session.notify(
            ColorChanging(
                target_x=scene.color_x,
                target_y=scene.color_y,
                mode=scene.color_mode,
                rate_ms=scene.color_rate_ms,
            )
        )

        session.ramps.brightness.arm(max_rate, target=target, start_value=start)
        session.ramps.color.arm(max_rate)

        data = ServiceData(transition=max_rate / 1000)
        if session.capabilities.supports_brightness:
            data.brightness = percent_to_wire(target)
        self._apply_color(data, (scene.color_x, scene.color_y), scene.color_mode)

        call = ServiceCall(entity_id=session.entity_id, service_data=data)
        if target == 0:
            call = call.power_off()
        session.call_service(call)

    async def ramp_to_scene_level(
        self, scene_id: str | None, rate_ms: int | None, direction: RampDirection
    ) -> None:
        """Ramp toward the scene's level (up) or to off (down).

        The backend has no continuous ramp, so holding a scene button is
        turned into one transition to the end point.
        """
        scene = await self._load_scene(scene_id)
        if scene is None:
            return

        if direction == RampDirection.UP:
            target = scene.brightness_level if scene.brightness_level is not None else 100
        else:
            target = 0
        self.set_brightness(target, rate_ms)

    def stop_ramp(self) -> None:
        """Freeze the light where the running brightness ramp currently is."""
        session = self.session
        channel = session.ramps.brightness
        if not channel.is_ramping:
            logger.debug(f"[{session.entity_id}] stop ramp: no ramp in progress")
            return

        level = clamp_percent(channel.level_at(session.ramps.now_ms()))
        logger.debug(f"[{session.entity_id}] stop ramp: freezing at {level}%")
        self.set_brightness(level, 0)

    # ------------------------------------------------------------------
    # Runtime configuration
    # ------------------------------------------------------------------

    def update_color_on_mode(self, params: ColorOnModeParams) -> None:
        """Replace the on/dim preset configuration as a whole."""
        on_color = None
        if params.on_x is not None and params.on_y is not None:
            on_color = (params.on_x, params.on_y)
        dim_color = None
        if params.dim_x is not None and params.dim_y is not None:
            dim_color = (params.dim_x, params.dim_y)

        origin = params.origin if params.origin in (0, 1, 2) else 0
        config = ColorOnModeConfig(
            origin=ColorOrigin(origin),
            on_color=on_color,
            on_mode=_color_mode(params.on_mode),
            dim_color=dim_color,
            dim_mode=_color_mode(params.dim_mode),
            fade_armed=True if params.fade_enabled is None else params.fade_enabled,
        )
        self.session.color_on_mode = config
        logger.info(
            f"[{self.session.entity_id}] color on mode: origin={config.origin.name}, "
            f"on={on_color}, dim={dim_color}, fade_enabled={config.fade_enabled}"
        )

    def set_color_trace_tolerance(self, value: float | None) -> None:
        """Clamp to 0.5-10.0 and announce the new tolerance."""
        if value is None:
            logger.warning(f"[{self.session.entity_id}] invalid color trace tolerance ignored")
            return
        self.session.color_trace_tolerance = clamp_tolerance(value)
        self.session.notify(
            CapabilitiesChanged(color_trace_tolerance=self.session.color_trace_tolerance)
        )

    def set_default_brightness_rate(self, rate_ms: int | None) -> None:
        self.session.default_brightness_rate_ms = max(rate_ms or 0, 0)

    def set_default_color_rate(self, rate_ms: int | None) -> None:
        self.session.default_color_rate_ms = max(rate_ms or 0, 0)
