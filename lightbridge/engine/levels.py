"""Brightness scale conversion between controller percent and backend 0-255."""

import math


def map_value(value: float, out_max: int, in_max: int) -> int:
    """Rescale ``value`` from ``0..in_max`` to ``0..out_max``, rounding half up."""
    return int(math.floor(value * out_max / in_max + 0.5))


def percent_to_wire(level: float) -> int:
    return max(0, min(map_value(level, 255, 100), 255))


def wire_to_percent(raw: float) -> int:
    return max(0, min(map_value(raw, 100, 255), 100))


def clamp_percent(level: float) -> int:
    return max(0, min(int(round(level)), 100))
