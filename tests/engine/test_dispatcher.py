"""Test the command dispatcher against recorded backend calls"""
import pytest

from lightbridge.engine.levels import percent_to_wire, wire_to_percent
from lightbridge.models.command import ColorOnModeParams
from lightbridge.models.device import CapabilitySnapshot, ColorMode, ColorOrigin, ColorOnModeConfig
from lightbridge.models.notification import (
    BrightnessChanging,
    CapabilitiesChanged,
    ColorChanged,
    ColorChanging,
)
from lightbridge.models.service_call import LightService


def fade_config(**overrides):
    values = {"on_color": (0.40, 0.38), "dim_color": (0.55, 0.41)}
    values.update(overrides)
    return ColorOnModeConfig(**values)


class TestBrightness:
    def test_level_scales_to_wire(self, dispatcher, recorder):
        dispatcher.set_brightness(60, 500)

        assert len(recorder.calls) == 1
        call = recorder.calls[0]
        assert call.service == LightService.TURN_ON
        assert call.service_data.brightness == 153
        assert call.service_data.transition == 0.5

    def test_percent_wire_round_trip(self):
        assert percent_to_wire(60) == 153
        assert wire_to_percent(153) == 60
        assert percent_to_wire(100) == 255
        assert wire_to_percent(0) == 0

    def test_zero_target_turns_off_with_transition(self, dispatcher, recorder):
        dispatcher.set_brightness(0, 1500)

        call = recorder.calls[0]
        assert call.service == LightService.TURN_OFF
        assert call.service_data.transition == 1.5
        assert call.service_data.brightness is None
        assert not call.service_data.has_color

    def test_changing_notification_precedes_call(self, dispatcher, recorder, session):
        session.state.brightness_percent = 20
        dispatcher.set_brightness(70, 1000)

        changing = recorder.of_type(BrightnessChanging)
        assert len(changing) == 1
        assert changing[0].to_params() == {
            "LIGHT_BRIGHTNESS_CURRENT": 20,
            "LIGHT_BRIGHTNESS_TARGET": 70,
            "RATE": 1000,
        }
        assert session.ramps.brightness.is_ramping

    def test_missing_target_is_noop(self, dispatcher, recorder):
        dispatcher.set_brightness(None, 1000)
        assert recorder.calls == []
        assert recorder.notifications == []

    def test_target_is_clamped(self, dispatcher, recorder):
        dispatcher.set_brightness(140)
        assert recorder.calls[0].service_data.brightness == 255

    def test_default_rate_applies_when_rate_missing(self, dispatcher, recorder):
        dispatcher.set_default_brightness_rate(750)
        dispatcher.set_brightness(50)
        assert recorder.calls[0].service_data.transition == 0.75

    def test_non_dimmable_device_sends_bare_turn_on(self, dispatcher, recorder, session):
        session.capabilities = CapabilitySnapshot(supports_brightness=False)
        dispatcher.set_brightness(60, 500)
        call = recorder.calls[0]
        assert call.service == LightService.TURN_ON
        assert call.service_data.brightness is None
        assert call.service_data.transition is None


class TestDimToWarm:
    def test_brightness_carries_interpolated_color(self, dispatcher, recorder, session):
        session.color_on_mode = fade_config()
        dispatcher.set_brightness(50, 0)

        data = recorder.calls[0].service_data
        assert data.xy_color == pytest.approx((0.475, 0.395))
        assert data.color_temp_kelvin is None

    def test_full_brightness_uses_on_color_exactly(self, dispatcher, recorder, session):
        session.color_on_mode = fade_config()
        dispatcher.set_brightness(100, 0)
        assert recorder.calls[0].service_data.xy_color == (0.40, 0.38)

    def test_fade_prefers_temperature_on_cct_device(
        self, dispatcher, recorder, session, cct_only_caps
    ):
        session.capabilities = cct_only_caps
        session.color_on_mode = fade_config()
        dispatcher.set_brightness(50, 0)

        data = recorder.calls[0].service_data
        assert data.xy_color is None
        assert 2000 <= data.color_temp_kelvin <= 6500

    def test_disarmed_fade_sends_no_color(self, dispatcher, recorder, session):
        session.color_on_mode = fade_config(fade_armed=False)
        session.state.is_on = True
        dispatcher.set_brightness(50, 0)
        assert not recorder.calls[0].service_data.has_color

    def test_turn_off_never_carries_color(self, dispatcher, recorder, session):
        session.color_on_mode = fade_config()
        dispatcher.set_brightness(0, 0)
        assert not recorder.calls[0].service_data.has_color


class TestPowerOnColor:
    def test_restore_previous_color(self, dispatcher, recorder, session):
        session.color_on_mode = ColorOnModeConfig(origin=ColorOrigin.RESTORE_PREVIOUS)
        session.state.color_x, session.state.color_y = 0.3, 0.3
        dispatcher.set_brightness(50, 0)
        assert recorder.calls[0].service_data.xy_color == (0.3, 0.3)

    def test_use_preset_color(self, dispatcher, recorder, session):
        session.color_on_mode = ColorOnModeConfig(
            origin=ColorOrigin.USE_PRESET, on_color=(0.35, 0.36)
        )
        dispatcher.set_brightness(50, 0)
        assert recorder.calls[0].service_data.xy_color == (0.35, 0.36)

    def test_light_already_on_keeps_color(self, dispatcher, recorder, session):
        session.color_on_mode = ColorOnModeConfig(
            origin=ColorOrigin.USE_PRESET, on_color=(0.35, 0.36)
        )
        session.state.is_on = True
        dispatcher.set_brightness(50, 0)
        assert not recorder.calls[0].service_data.has_color


class TestColor:
    def test_chromaticity_on_plain_device(self, dispatcher, recorder):
        dispatcher.set_color(0.3, 0.3, 0, 0)
        data = recorder.calls[0].service_data
        assert data.xy_color == (0.3, 0.3)
        assert data.transition is None

    def test_transition_only_with_positive_rate(self, dispatcher, recorder):
        dispatcher.set_color(0.3, 0.3, 0, 2000)
        assert recorder.calls[0].service_data.transition == 2.0
        assert recorder.of_type(ColorChanging)[0].rate_ms == 2000

    def test_full_color_falls_back_to_temperature(self, dispatcher, recorder, session):
        """A CCT-only device gets the McCamy temperature of the request"""
        session.capabilities = CapabilitySnapshot(
            supported_color_modes=("color_temp",), supports_color_temperature=True
        )
        dispatcher.set_color(0.45, 0.41, int(ColorMode.FULL_COLOR), 0)

        data = recorder.calls[0].service_data
        assert data.xy_color is None
        assert abs(data.color_temp_kelvin - 2840) < 10

    def test_temperature_is_clamped_to_device_range(self, dispatcher, recorder, session, cct_only_caps):
        session.capabilities = cct_only_caps
        dispatcher.set_color(0.60, 0.39, int(ColorMode.COLOR_TEMPERATURE), 0)
        assert recorder.calls[0].service_data.color_temp_kelvin == 2000

    def test_preset_echo_is_ignored_while_fading(self, dispatcher, recorder, session):
        session.color_on_mode = fade_config()
        dispatcher.set_color(0.401, 0.381, 0, 1000)
        assert recorder.calls == []
        assert recorder.notifications == []
        assert not session.ramps.color.is_ramping

        dispatcher.set_color(0.30, 0.30, 0, 1000)
        assert len(recorder.calls) == 1

    def test_preset_color_applies_without_fade(self, dispatcher, recorder, session):
        session.color_on_mode = fade_config(fade_armed=False)
        dispatcher.set_color(0.40, 0.38, 0, 0)
        assert len(recorder.calls) == 1

    def test_missing_coordinate_is_noop(self, dispatcher, recorder):
        dispatcher.set_color(0.3, None)
        assert recorder.calls == []


class TestStopRamp:
    def test_freezes_at_interpolated_level(self, dispatcher, recorder, session, scheduler):
        dispatcher.set_brightness(100, 1000)
        scheduler.advance(250)
        recorder.clear()

        dispatcher.stop_ramp()

        assert len(recorder.calls) == 1
        data = recorder.calls[0].service_data
        assert data.brightness == percent_to_wire(25)
        assert data.transition == 0.0
        changing = recorder.of_type(BrightnessChanging)[0]
        assert (changing.target, changing.rate_ms) == (25, 0)
        assert not session.ramps.brightness.is_ramping

    def test_reversed_ramp_freezes_at_actual_position(
        self, dispatcher, ingest, recorder, scheduler, state_event
    ):
        """The backend's early echo of the target must not become the new ramp's start"""
        dispatcher.set_brightness(100, 5000)
        ingest.parse(state_event(brightness=255))

        scheduler.advance(2000)
        dispatcher.set_brightness(0, 4000)
        assert recorder.of_type(BrightnessChanging)[-1].current == 40

        scheduler.advance(1000)
        dispatcher.stop_ramp()

        assert recorder.calls[-1].service_data.brightness == percent_to_wire(30)
        assert recorder.of_type(BrightnessChanging)[-1].current == 30

    def test_without_ramp_is_noop(self, dispatcher, recorder, session):
        before = session.state.model_dump()
        dispatcher.stop_ramp()
        dispatcher.stop_ramp()
        assert recorder.calls == []
        assert recorder.notifications == []
        assert session.state.model_dump() == before

    def test_second_stop_is_noop(self, dispatcher, recorder, scheduler):
        dispatcher.set_brightness(100, 1000)
        scheduler.advance(500)
        dispatcher.stop_ramp()
        recorder.clear()
        dispatcher.stop_ramp()
        assert recorder.calls == []


class TestButtons:
    def test_top_button_turns_on(self, dispatcher, recorder):
        dispatcher.button_action(0)
        assert recorder.calls[0].service_data.brightness == 255

    def test_bottom_button_turns_off(self, dispatcher, recorder):
        dispatcher.button_action(1)
        assert recorder.calls[0].service == LightService.TURN_OFF

    def test_toggle(self, dispatcher, recorder, session):
        dispatcher.button_action(2)
        assert recorder.calls[-1].service == LightService.TURN_ON
        session.state.is_on = True
        dispatcher.button_action(2)
        assert recorder.calls[-1].service == LightService.TURN_OFF


class TestRuntimeConfiguration:
    def test_update_color_on_mode(self, dispatcher, session):
        params = ColorOnModeParams.parse({
            "COLOR_PRESET_ORIGIN": "2",
            "COLOR_PRESET_COLOR_X": "0.40",
            "COLOR_PRESET_COLOR_Y": "0.38",
            "COLOR_FADE_PRESET_COLOR_X": "0.55",
            "COLOR_FADE_PRESET_COLOR_Y": "0.41",
            "COLOR_FADE_ENABLED": "True",
        })
        dispatcher.update_color_on_mode(params)

        config = session.color_on_mode
        assert config.origin == ColorOrigin.USE_PRESET
        assert config.on_color == (0.40, 0.38)
        assert config.fade_enabled

    def test_fade_needs_both_presets(self, dispatcher, session):
        params = ColorOnModeParams.parse({
            "COLOR_PRESET_COLOR_X": "0.40",
            "COLOR_PRESET_COLOR_Y": "0.38",
            "COLOR_FADE_ENABLED": "True",
        })
        dispatcher.update_color_on_mode(params)
        assert not session.color_on_mode.fade_enabled

    def test_tolerance_is_clamped_and_announced(self, dispatcher, recorder, session):
        dispatcher.set_color_trace_tolerance(25.0)
        assert session.color_trace_tolerance == 10.0
        assert recorder.of_type(CapabilitiesChanged)[0].to_params() == {
            "color_trace_tolerance": 10.0
        }

    def test_invalid_tolerance_ignored(self, dispatcher, recorder, session):
        dispatcher.set_color_trace_tolerance(None)
        assert session.color_trace_tolerance == 1.0
        assert recorder.notifications == []


def test_synchronize_reemits_cached_state(dispatcher, recorder, session):
    session.state.brightness_percent = 42
    session.state.color_x, session.state.color_y = 0.3, 0.31
    dispatcher.synchronize()

    names = [n.name for n in recorder.notifications]
    assert names == ["LIGHT_BRIGHTNESS_CHANGED", "LIGHT_COLOR_CHANGED"]
    assert recorder.of_type(ColorChanged)[0].current_y == 0.31
    assert recorder.calls == []


def test_select_effect(dispatcher, recorder):
    dispatcher.select_effect("rainbow")
    assert recorder.calls[0].service_data.effect == "rainbow"
    dispatcher.select_effect(None)
    assert len(recorder.calls) == 1
