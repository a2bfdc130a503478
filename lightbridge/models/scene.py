"""Pydantic model for advanced lighting scenes."""

import math
from typing import Any

from pydantic import BaseModel, model_validator

from lightbridge.models.device import ColorMode


def _first(raw: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if raw.get(key) is not None:
            return raw[key]
    return None


def _number(value: Any, default: float | None = 0) -> float | None:
    if isinstance(value, bool):
        return default
    try:
        result = float(value)
    except (TypeError, ValueError, OverflowError):
        return default
    if not math.isfinite(result):
        return default
    return value if isinstance(value, int) else result


class SceneDefinition(BaseModel):
    """Brightness/color/rate bundle applied atomically on activation.

    Built from the element map the controller pushes. The controller has
    used several names for the same element over time (``level`` vs
    ``brightness``, ``rate`` vs ``brightnessRate``), so the raw map is
    normalized before validation.
    """
    brightness_enabled: bool = False
    brightness_level: int | None = None
    brightness_rate_ms: int = 0
    color_enabled: bool = False
    color_x: float | None = None
    color_y: float | None = None
    color_mode: ColorMode = ColorMode.FULL_COLOR
    color_rate_ms: int = 0

    @model_validator(mode="before")
    @classmethod
    def _from_elements(cls, data: Any) -> Any:
        if not isinstance(data, dict) or "brightness_enabled" in data:
            return data

        level = _number(_first(data, "level", "brightness"), None)
        level_flag = _first(data, "brightnessEnabled", "levelEnabled") is True
        color_x = _number(data.get("colorX"), None)
        color_y = _number(data.get("colorY"), None)
        mode = _number(data.get("colorMode"), 0)

        return {
            "brightness_enabled": level_flag or level is not None,
            "brightness_level": None if level is None else round(level),
            "brightness_rate_ms": int(_number(_first(data, "rate", "brightnessRate"))),
            "color_enabled": (
                data.get("colorEnabled") is True and color_x is not None and color_y is not None
            ),
            "color_x": color_x,
            "color_y": color_y,
            "color_mode": ColorMode.COLOR_TEMPERATURE if mode == 1 else ColorMode.FULL_COLOR,
            "color_rate_ms": int(_number(data.get("colorRate"))),
        }

    @property
    def level(self) -> int:
        return self.brightness_level or 0
