"""Pydantic models for light state, capabilities and color-on-mode config."""

from enum import Enum, IntEnum

from pydantic import BaseModel, ConfigDict

NO_EFFECT = "Select Effect"

# Home Assistant color modes that mean "can render arbitrary chromaticity"
FULL_COLOR_MODES = frozenset({"hs", "xy", "rgb", "rgbw", "rgbww"})

Chromaticity = tuple[float, float]


class ColorMode(IntEnum):
    """Controller color mode wire values."""
    FULL_COLOR = 0
    COLOR_TEMPERATURE = 1


class ColorOrigin(IntEnum):
    """What color a light takes when switched on with fade disabled."""
    NONE = 0
    RESTORE_PREVIOUS = 1
    USE_PRESET = 2


class Representation(str, Enum):
    AS_TEMPERATURE = "temperature"
    AS_CHROMATICITY = "chromaticity"


class CapabilitySnapshot(BaseModel):
    """Feature set reported by the backend. Replaced wholesale, never mutated."""
    model_config = ConfigDict(frozen=True)

    supported_color_modes: tuple[str, ...] = ()
    supports_brightness: bool = True
    supports_full_color: bool = False
    supports_color_temperature: bool = False
    min_kelvin: int = 500
    max_kelvin: int = 20000
    supports_effects: bool = False

    @property
    def has_kelvin_range(self) -> bool:
        return 0 < self.min_kelvin < self.max_kelvin


class ColorOnModeConfig(BaseModel):
    """On/dim color presets pushed by the controller."""
    model_config = ConfigDict(frozen=True)

    origin: ColorOrigin = ColorOrigin.NONE
    on_color: Chromaticity | None = None
    on_mode: ColorMode = ColorMode.FULL_COLOR
    dim_color: Chromaticity | None = None
    dim_mode: ColorMode = ColorMode.FULL_COLOR
    fade_armed: bool = True

    @property
    def fade_enabled(self) -> bool:
        return self.fade_armed and self.on_color is not None and self.dim_color is not None


class DeviceState(BaseModel):
    """Cached state of the bridged light."""
    is_on: bool = False
    brightness_percent: int = 0
    color_x: float | None = None
    color_y: float | None = None
    color_mode: ColorMode = ColorMode.FULL_COLOR
    effect_name: str = NO_EFFECT
    effect_catalog: list[str] = []
    online: bool = False

    # Preset tracking, only used to annotate BrightnessChanged
    preset_id: int | None = None
    preset_target_level: int | None = None

    @property
    def color(self) -> Chromaticity | None:
        if self.color_x is None or self.color_y is None:
            return None
        return (self.color_x, self.color_y)

    def to_dict(self) -> dict:
        return {
            "is_on": self.is_on,
            "brightness_percent": self.brightness_percent,
            "color_x": self.color_x,
            "color_y": self.color_y,
            "color_mode": int(self.color_mode),
            "effect_name": self.effect_name,
            "effect_catalog": list(self.effect_catalog),
            "online": self.online,
        }


class LightConfig(BaseModel):
    """A bridged light loaded from YAML."""
    id: str
    entity_id: str
    display_name: str = ""
