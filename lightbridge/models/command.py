"""Pydantic models for inbound controller commands.

The controller sends every parameter as a loosely typed string. Each
command's parameters are validated once, here, into a struct whose numeric
fields are ``None`` when missing or unparseable; handlers then substitute
their documented defaults instead of failing.
"""

import math
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field


def _loose_float(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    return result if math.isfinite(result) else None


def _loose_int(value: Any) -> int | None:
    result = _loose_float(value)
    return None if result is None else int(round(result))


def _loose_bool(value: Any) -> bool | None:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "false", "1", "0"):
        return value.strip().lower() in ("true", "1")
    if isinstance(value, (int, float)):
        return bool(value)
    return None


def _loose_str(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)


LooseFloat = Annotated[float | None, BeforeValidator(_loose_float)]
LooseInt = Annotated[int | None, BeforeValidator(_loose_int)]
LooseBool = Annotated[bool | None, BeforeValidator(_loose_bool)]
LooseStr = Annotated[str | None, BeforeValidator(_loose_str)]


class ControllerCommand(BaseModel):
    """Envelope received on the command topic or the HTTP command route."""
    command: str
    binding: LooseInt = None
    params: dict[str, Any] = {}


class CommandParams(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @classmethod
    def parse(cls, params: dict[str, Any] | None):
        return cls.model_validate(params or {})


class BrightnessTargetParams(CommandParams):
    target: LooseInt = Field(default=None, alias="LIGHT_BRIGHTNESS_TARGET")
    rate_ms: LooseInt = Field(default=None, alias="RATE")
    preset_id: LooseInt = Field(default=None, alias="LIGHT_BRIGHTNESS_TARGET_PRESET_ID")


class LevelParams(CommandParams):
    """Legacy SET_LEVEL / GROUP_SET_LEVEL / GROUP_RAMP_TO_LEVEL."""
    level: LooseInt = Field(default=None, alias="LEVEL")
    rate_ms: LooseInt = Field(default=None, alias="RATE")
    time_ms: LooseInt = Field(default=None, alias="TIME")

    @property
    def effective_rate(self) -> int | None:
        return self.rate_ms if self.rate_ms is not None else self.time_ms


class ColorTargetParams(CommandParams):
    x: LooseFloat = Field(default=None, alias="LIGHT_COLOR_TARGET_X")
    y: LooseFloat = Field(default=None, alias="LIGHT_COLOR_TARGET_Y")
    mode: LooseInt = Field(default=None, alias="LIGHT_COLOR_TARGET_MODE")
    rate_ms: LooseInt = Field(default=None, alias="LIGHT_COLOR_TARGET_RATE")


class SceneParams(CommandParams):
    scene_id: LooseStr = Field(default=None, alias="SCENE_ID")
    rate_ms: LooseInt = Field(default=None, alias="RATE")
    elements: LooseStr = Field(default=None, alias="ELEMENTS")


class ColorOnModeParams(CommandParams):
    origin: LooseInt = Field(default=None, alias="COLOR_PRESET_ORIGIN")
    on_x: LooseFloat = Field(default=None, alias="COLOR_PRESET_COLOR_X")
    on_y: LooseFloat = Field(default=None, alias="COLOR_PRESET_COLOR_Y")
    on_mode: LooseInt = Field(default=None, alias="COLOR_PRESET_COLOR_MODE")
    dim_x: LooseFloat = Field(default=None, alias="COLOR_FADE_PRESET_COLOR_X")
    dim_y: LooseFloat = Field(default=None, alias="COLOR_FADE_PRESET_COLOR_Y")
    dim_mode: LooseInt = Field(default=None, alias="COLOR_FADE_PRESET_COLOR_MODE")
    fade_enabled: LooseBool = Field(default=None, alias="COLOR_FADE_ENABLED")


class ButtonParams(CommandParams):
    action: LooseInt = Field(default=None, alias="ACTION")
    button_id: LooseInt = Field(default=None, alias="BUTTON_ID")


class EffectParams(CommandParams):
    value: LooseStr = Field(default=None, alias="value")


class RateParams(CommandParams):
    rate_ms: LooseInt = Field(default=None, alias="RATE")


class ToleranceParams(CommandParams):
    value: LooseFloat = Field(default=None, alias="value")
