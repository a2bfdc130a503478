"""Pydantic models for notifications sent to the controller.

Field aliases are the controller's wire parameter names; ``to_payload``
produces the ``{"name": ..., "params": ...}`` envelope published on the
notify topic.
"""

from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field

from lightbridge.models.device import ColorMode


class Notification(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    name: ClassVar[str] = ""

    def to_params(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")

    def to_payload(self) -> dict[str, Any]:
        return {"name": self.name, "params": self.to_params()}


class BrightnessChanging(Notification):
    name: ClassVar[str] = "LIGHT_BRIGHTNESS_CHANGING"

    current: int = Field(alias="LIGHT_BRIGHTNESS_CURRENT")
    target: int = Field(alias="LIGHT_BRIGHTNESS_TARGET")
    rate_ms: int = Field(alias="RATE")


class BrightnessChanged(Notification):
    name: ClassVar[str] = "LIGHT_BRIGHTNESS_CHANGED"

    current: int = Field(alias="LIGHT_BRIGHTNESS_CURRENT")
    preset_id: int | None = Field(default=None, alias="LIGHT_BRIGHTNESS_CURRENT_PRESET_ID")


class ColorChanging(Notification):
    name: ClassVar[str] = "LIGHT_COLOR_CHANGING"

    target_x: float = Field(alias="LIGHT_COLOR_TARGET_X")
    target_y: float = Field(alias="LIGHT_COLOR_TARGET_Y")
    mode: ColorMode = Field(alias="LIGHT_COLOR_TARGET_COLOR_MODE")
    rate_ms: int = Field(alias="LIGHT_COLOR_TARGET_COLOR_RATE")


class ColorChanged(Notification):
    name: ClassVar[str] = "LIGHT_COLOR_CHANGED"

    current_x: float = Field(alias="LIGHT_COLOR_CURRENT_X")
    current_y: float = Field(alias="LIGHT_COLOR_CURRENT_Y")
    mode: ColorMode = Field(alias="LIGHT_COLOR_CURRENT_COLOR_MODE")


class CapabilitiesChanged(Notification):
    """Dynamic capability update. Fields left as None are not sent."""
    name: ClassVar[str] = "DYNAMIC_CAPABILITIES_CHANGED"

    dimmable: bool | None = Field(default=None, alias="dimmer")
    set_level: bool | None = Field(default=None, alias="set_level")
    supports_target: bool | None = Field(default=None, alias="supports_target")
    supports_color: bool | None = Field(default=None, alias="supports_color")
    supports_color_temperature: bool | None = Field(
        default=None, alias="supports_color_correlated_temperature"
    )
    temp_range_min: int | None = Field(default=None, alias="color_correlated_temperature_min")
    temp_range_max: int | None = Field(default=None, alias="color_correlated_temperature_max")
    has_effects: bool | None = Field(default=None, alias="has_extras")
    color_trace_tolerance: float | None = Field(default=None, alias="color_trace_tolerance")


class OnlineChanged(Notification):
    name: ClassVar[str] = "ONLINE_CHANGED"

    state: bool = Field(alias="STATE")


class ExtrasSetupChanged(Notification):
    name: ClassVar[str] = "EXTRAS_SETUP_CHANGED"

    xml: str = Field(alias="XML")


class ExtrasStateChanged(Notification):
    name: ClassVar[str] = "EXTRAS_STATE_CHANGED"

    xml: str = Field(alias="XML")
