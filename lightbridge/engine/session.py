"""Per-light aggregate of all mutable engine state."""

import logging
from typing import Callable

from lightbridge.engine.ramp import RampCoordinator
from lightbridge.engine.scheduler import Scheduler
from lightbridge.models.device import CapabilitySnapshot, ColorOnModeConfig, DeviceState
from lightbridge.models.notification import BrightnessChanged, Notification
from lightbridge.models.service_call import ServiceCall

logger = logging.getLogger(__name__)

NotificationSink = Callable[[Notification], None]
BackendSink = Callable[[ServiceCall], None]

MIN_TOLERANCE = 0.5
MAX_TOLERANCE = 10.0


class DeviceSession:
    """Everything one bridged light knows, injected into every component."""

    def __init__(
        self,
        entity_id: str,
        scheduler: Scheduler,
        notify: NotificationSink,
        call_service: BackendSink,
        color_trace_tolerance: float = 1.0,
        default_brightness_rate_ms: int = 0,
        default_color_rate_ms: int = 0,
    ):
        self.entity_id = entity_id
        self._notify = notify
        self._call_service = call_service

        self.state = DeviceState()
        self.capabilities = CapabilitySnapshot()
        self.color_on_mode = ColorOnModeConfig()
        self.connected = False

        self.color_trace_tolerance = clamp_tolerance(color_trace_tolerance)
        self.default_brightness_rate_ms = max(default_brightness_rate_ms, 0)
        self.default_color_rate_ms = max(default_color_rate_ms, 0)

        self.ramps = RampCoordinator(scheduler, self.notify)

    def notify(self, notification: Notification) -> None:
        logger.debug(f"[{self.entity_id}] -> controller {notification.name}: {notification.to_params()}")
        self._notify(notification)

    def call_service(self, call: ServiceCall) -> None:
        logger.debug(f"[{self.entity_id}] -> backend {call.to_payload()}")
        self._call_service(call)

    def brightness_changed(self, level: int) -> BrightnessChanged:
        """BrightnessChanged, annotated with the preset id when it was reached."""
        preset_id = None
        if self.state.preset_id is not None and self.state.preset_target_level == level:
            preset_id = self.state.preset_id
        return BrightnessChanged(current=level, preset_id=preset_id)


def clamp_tolerance(value: float) -> float:
    return max(MIN_TOLERANCE, min(float(value), MAX_TOLERANCE))
