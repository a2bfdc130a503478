"""Capability model: derive the device feature set from backend attributes."""

from collections.abc import Iterable

from lightbridge.models.device import FULL_COLOR_MODES, CapabilitySnapshot
from lightbridge.models.notification import CapabilitiesChanged


def snapshot_from_color_modes(
    color_modes: Iterable[str],
    min_kelvin: int,
    max_kelvin: int,
    supports_effects: bool,
) -> CapabilitySnapshot:
    """Build a fresh snapshot from ``supported_color_modes``.

    A light is dimmable unless it reports the bare ``onoff`` mode.
    """
    modes = tuple(color_modes)
    return CapabilitySnapshot(
        supported_color_modes=modes,
        supports_brightness="onoff" not in modes,
        supports_full_color=any(m in FULL_COLOR_MODES for m in modes),
        supports_color_temperature="color_temp" in modes,
        min_kelvin=min_kelvin,
        max_kelvin=max_kelvin,
        supports_effects=supports_effects,
    )


def advertises_color_temperature(caps: CapabilitySnapshot) -> bool:
    """Whether to tell the controller the light does color temperature.

    Any full-color light is advertised as temperature-capable too. This
    only keeps the temperature slider visible in the controller UI; wire
    decisions use ``supports_color_temperature`` directly.
    """
    return caps.supports_color_temperature or caps.supports_full_color


def capabilities_notification(caps: CapabilitySnapshot, tolerance: float) -> CapabilitiesChanged:
    advertise_cct = advertises_color_temperature(caps)
    return CapabilitiesChanged(
        dimmable=caps.supports_brightness,
        set_level=caps.supports_brightness,
        supports_target=caps.supports_brightness,
        supports_color=caps.supports_full_color,
        supports_color_temperature=advertise_cct,
        temp_range_min=caps.min_kelvin if advertise_cct else 0,
        temp_range_max=caps.max_kelvin if advertise_cct else 0,
        has_effects=caps.supports_effects,
        color_trace_tolerance=tolerance,
    )
