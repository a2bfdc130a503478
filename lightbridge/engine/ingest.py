"""State ingest: Home Assistant state objects to controller notifications.

Brightness and color observations are routed through the ramp channels so
that a transition in progress is not reported as finished. Capability,
effect and connectivity changes are sent immediately.
"""

import logging
from typing import Any

from lightbridge.engine.capabilities import capabilities_notification, snapshot_from_color_modes
from lightbridge.engine.color import kelvin_to_xy
from lightbridge.engine.effects import effects_setup_xml, effects_state_xml
from lightbridge.engine.levels import wire_to_percent
from lightbridge.engine.session import DeviceSession
from lightbridge.models.device import NO_EFFECT, ColorMode
from lightbridge.models.notification import (
    ColorChanged,
    ExtrasSetupChanged,
    ExtrasStateChanged,
    OnlineChanged,
)

logger = logging.getLogger(__name__)

OFFLINE_STATES = {"unavailable"}


def _number(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def extract_new_state(payload: dict[str, Any]) -> dict[str, Any] | None:
    """Pull the entity state object out of a state poll or a state_changed event."""
    if "entity_id" in payload and ("state" in payload or "attributes" in payload):
        return payload
    for container in ("event_data", "data"):
        data = payload.get(container)
        if isinstance(data, dict) and isinstance(data.get("new_state"), dict):
            return data["new_state"]
    event = payload.get("event")
    if isinstance(event, dict):
        return extract_new_state(event)
    return None


class StateIngest:
    """Diffs backend observations against the session cache."""

    def __init__(self, session: DeviceSession):
        self.session = session
        self._seen = False

    def handle_event(self, payload: dict[str, Any]) -> None:
        new_state = extract_new_state(payload)
        if new_state is None:
            logger.debug(f"[{self.session.entity_id}] event without a new state ignored")
            return
        self.parse(new_state)

    def parse(self, data: dict[str, Any] | None) -> None:
        session = self.session

        if not data:
            logger.warning(f"[{session.entity_id}] empty state received")
            return
        if data.get("entity_id") != session.entity_id:
            return

        power = data.get("state")
        attributes = data.get("attributes")

        if power in OFFLINE_STATES or not isinstance(attributes, dict):
            self._set_offline()
            return

        self._seen = True
        if not session.connected:
            session.connected = True
            session.state.online = True
            session.notify(OnlineChanged(state=True))

        self._ingest_power(power, attributes)
        self._ingest_color(attributes)
        self._ingest_kelvin_range(attributes)
        self._ingest_effect(attributes)
        self._ingest_effect_list(attributes)
        self._ingest_color_modes(attributes)

    def _set_offline(self) -> None:
        session = self.session
        first_observation = not self._seen
        self._seen = True
        if not session.connected and not first_observation:
            return

        logger.info(f"[{session.entity_id}] backend reports entity unavailable")
        session.connected = False
        session.state.online = False
        session.notify(OnlineChanged(state=False))

    def _ingest_power(self, power: str | None, attributes: dict[str, Any]) -> None:
        session = self.session
        state = session.state
        caps = session.capabilities

        level: int | None = None
        if power == "off":
            state.is_on = False
            level = 0
        elif power == "on":
            state.is_on = True
            if not caps.supports_brightness:
                level = 100
            else:
                raw = _number(attributes.get("brightness"))
                if raw is not None:
                    # "on" never reports as 0%
                    level = max(wire_to_percent(raw), 1)

        if level is None:
            return

        changed = level != state.brightness_percent
        state.brightness_percent = level
        session.ramps.brightness.observe(session.brightness_changed(level), changed=changed)

    def _ingest_color(self, attributes: dict[str, Any]) -> None:
        session = self.session
        state = session.state
        ha_mode = attributes.get("color_mode")

        if ha_mode is None:
            return
        if ha_mode == "color_temp":
            kelvin = _number(attributes.get("color_temp_kelvin"))
            if kelvin is None or kelvin <= 0:
                return
            x, y = kelvin_to_xy(kelvin)
            mode = ColorMode.COLOR_TEMPERATURE
        else:
            xy = attributes.get("xy_color")
            if not isinstance(xy, (list, tuple)) or len(xy) < 2:
                return
            x, y = _number(xy[0]), _number(xy[1])
            if x is None or y is None:
                return
            mode = ColorMode.FULL_COLOR

        changed = (x, y, mode) != (state.color_x, state.color_y, state.color_mode)
        state.color_x, state.color_y, state.color_mode = x, y, mode
        session.ramps.color.observe(
            ColorChanged(current_x=x, current_y=y, mode=mode), changed=changed
        )

    def _ingest_kelvin_range(self, attributes: dict[str, Any]) -> None:
        caps = self.session.capabilities
        low = _number(attributes.get("min_color_temp_kelvin"))
        high = _number(attributes.get("max_color_temp_kelvin"))
        min_kelvin = caps.min_kelvin if low is None else int(low)
        max_kelvin = caps.max_kelvin if high is None else int(high)
        if (min_kelvin, max_kelvin) != (caps.min_kelvin, caps.max_kelvin):
            self.session.capabilities = caps.model_copy(
                update={"min_kelvin": min_kelvin, "max_kelvin": max_kelvin}
            )

    def _ingest_effect(self, attributes: dict[str, Any]) -> None:
        state = self.session.state
        effect = attributes.get("effect")
        name = NO_EFFECT if effect is None else str(effect)
        if name == state.effect_name:
            return
        state.effect_name = name
        self.session.notify(ExtrasStateChanged(xml=effects_state_xml(name)))

    def _ingest_effect_list(self, attributes: dict[str, Any]) -> None:
        session = self.session
        state = session.state
        effects = attributes.get("effect_list")

        if not isinstance(effects, list):
            if state.effect_catalog or session.capabilities.supports_effects:
                state.effect_catalog = []
                session.capabilities = session.capabilities.model_copy(
                    update={"supports_effects": False}
                )
            return

        catalog = [str(effect) for effect in effects]
        if catalog == state.effect_catalog and session.capabilities.supports_effects:
            return
        state.effect_catalog = catalog
        session.capabilities = session.capabilities.model_copy(update={"supports_effects": True})
        session.notify(ExtrasSetupChanged(xml=effects_setup_xml(catalog, state.effect_name)))

    def _ingest_color_modes(self, attributes: dict[str, Any]) -> None:
        session = self.session
        modes = attributes.get("supported_color_modes")
        if not isinstance(modes, list):
            return

        modes = tuple(str(mode) for mode in modes)
        caps = session.capabilities
        if modes == caps.supported_color_modes:
            return

        session.capabilities = snapshot_from_color_modes(
            modes, caps.min_kelvin, caps.max_kelvin, caps.supports_effects
        )
        logger.info(f"[{session.entity_id}] capabilities changed: {session.capabilities.model_dump()}")
        session.notify(capabilities_notification(session.capabilities, session.color_trace_tolerance))
