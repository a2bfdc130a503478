"""Color negotiation between controller chromaticity and backend capabilities.

Pure functions only: choosing temperature vs chromaticity for a request,
dim-to-warm interpolation, suppression of the controller's preset "echo"
commands, and the xy <-> CCT conversions used on either side.
"""

import math

from lightbridge.models.device import (
    CapabilitySnapshot,
    Chromaticity,
    ColorMode,
    Representation,
)

ECHO_TOLERANCE = 0.005


def choose_representation(requested: ColorMode, caps: CapabilitySnapshot) -> Representation:
    """Honor the requested mode when the device can, otherwise fall back.

    A device that reports neither color temperature nor full color is
    addressed in chromaticity.
    """
    if requested == ColorMode.COLOR_TEMPERATURE:
        if caps.supports_color_temperature:
            return Representation.AS_TEMPERATURE
        return Representation.AS_CHROMATICITY

    if caps.supports_full_color:
        return Representation.AS_CHROMATICITY
    if caps.supports_color_temperature:
        return Representation.AS_TEMPERATURE
    return Representation.AS_CHROMATICITY


def interpolate(dim_color: Chromaticity, on_color: Chromaticity, brightness_percent: float) -> Chromaticity:
    """Dim-to-warm blend: ``dim + (on - dim) * brightness / 100``."""
    if brightness_percent >= 100:
        return on_color
    t = brightness_percent * 0.01
    return (
        dim_color[0] + (on_color[0] - dim_color[0]) * t,
        dim_color[1] + (on_color[1] - dim_color[1]) * t,
    )


def matches(a: Chromaticity, b: Chromaticity, tolerance: float = ECHO_TOLERANCE) -> bool:
    return abs(a[0] - b[0]) < tolerance and abs(a[1] - b[1]) < tolerance


def echoed_preset(
    requested: Chromaticity,
    on_color: Chromaticity | None,
    dim_color: Chromaticity | None,
    tolerance: float = ECHO_TOLERANCE,
) -> str | None:
    """Name of the preset ``requested`` lies within tolerance of, if any."""
    if on_color is not None and matches(requested, on_color, tolerance):
        return "on"
    if dim_color is not None and matches(requested, dim_color, tolerance):
        return "dim"
    return None


def should_suppress_echo(
    requested: Chromaticity,
    on_color: Chromaticity | None,
    dim_color: Chromaticity | None,
    fade_enabled: bool = True,
    tolerance: float = ECHO_TOLERANCE,
) -> bool:
    """True when a color command is the controller re-sending a fade preset.

    The controller periodically re-sends the nominal on/dim preset colors
    to "correct" drift; applying them would overwrite the interpolated
    fade color with a fixed one.
    """
    if not fade_enabled:
        return False
    return echoed_preset(requested, on_color, dim_color, tolerance) is not None


def xy_to_kelvin(x: float, y: float) -> int | None:
    """McCamy's CCT approximation from CIE 1931 xy."""
    denominator = 0.1858 - y
    if denominator == 0:
        return None
    n = (x - 0.3320) / denominator
    cct = 449.0 * n**3 + 3525.0 * n**2 + 6823.3 * n + 5520.33
    if not math.isfinite(cct) or cct <= 0:
        return None
    return int(round(cct))


def kelvin_to_xy(kelvin: float) -> Chromaticity:
    """Planckian locus point for ``kelvin`` (Krystek polynomials, 1000-25000K)."""
    t = max(1000.0, min(float(kelvin), 25000.0))
    inv_t = 1000.0 / t

    if t <= 4000:
        x = -0.2661239 * inv_t**3 - 0.2343589 * inv_t**2 + 0.8776956 * inv_t + 0.179910
    else:
        x = -3.0258469 * inv_t**3 + 2.1070379 * inv_t**2 + 0.2226347 * inv_t + 0.240390

    if t <= 2222:
        y = -1.1063814 * x**3 - 1.34811020 * x**2 + 2.18555832 * x - 0.20219683
    elif t <= 4000:
        y = -0.9549476 * x**3 - 1.37418593 * x**2 + 2.09137015 * x - 0.16748867
    else:
        y = 3.0817580 * x**3 - 5.87338670 * x**2 + 3.75112997 * x - 0.37001483

    return (round(x, 4), round(y, 4))


def clamp_kelvin(kelvin: int, caps: CapabilitySnapshot) -> int:
    if not caps.has_kelvin_range:
        return kelvin
    return max(caps.min_kelvin, min(kelvin, caps.max_kelvin))
