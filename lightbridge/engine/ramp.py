"""Ramp coordination: deferred "changed" notifications per transitioning property.

Home Assistant reports the *target* state of a transition as soon as the
service call is accepted, long before the lamp gets there. Forwarding that
straight away would tell the controller the transition is finished while
the light is still fading, so while a channel is ramping each observation
is parked and only the last one is sent when the channel's timer fires.
"""

import logging
from enum import Enum
from typing import Any, Callable

from lightbridge.engine.scheduler import Scheduler
from lightbridge.models.notification import Notification

logger = logging.getLogger(__name__)

Emit = Callable[[Notification], None]


def lerp(start: float, end: float, elapsed_ms: float, duration_ms: float) -> float:
    """Linear interpolation with progress clamped to [0, 1]."""
    if duration_ms <= 0:
        return end
    progress = min(max(elapsed_ms / duration_ms, 0.0), 1.0)
    return start + (end - start) * progress


class ChannelState(str, Enum):
    IDLE = "idle"
    RAMPING = "ramping"


class RampChannel:
    """One independently transitioning property (brightness or color).

    At most one timer is live per channel: ``arm`` always cancels the
    previous one first, so a burst of commands settles on the timing of
    the last command only.
    """

    def __init__(self, name: str, scheduler: Scheduler, emit: Emit):
        self.name = name
        self._scheduler = scheduler
        self._emit = emit

        self._timer: Any = None
        self.pending_notification = False
        self.pending_payload: Notification | None = None
        self.awaiting_confirmation = False

        self.ramp_start_ms = 0
        self.ramp_start_value: float = 0
        self.ramp_target: float = 0
        self.ramp_duration_ms = 0

    @property
    def state(self) -> ChannelState:
        return ChannelState.RAMPING if self._timer is not None else ChannelState.IDLE

    @property
    def is_ramping(self) -> bool:
        return self._timer is not None

    def arm(self, rate_ms: int, target: float = 0, start_value: float = 0) -> None:
        """Start tracking a new command, discarding any in-flight ramp.

        ``target`` and ``start_value`` only matter for channels whose
        position is interpolated (brightness).
        """
        self.cancel()
        self.pending_notification = False
        self.pending_payload = None
        self.awaiting_confirmation = True

        self.ramp_start_ms = self._scheduler.now_ms()
        self.ramp_start_value = start_value
        self.ramp_target = target
        self.ramp_duration_ms = max(rate_ms, 0)

        if rate_ms > 0:
            self._timer = self._scheduler.schedule(rate_ms, self._on_timer_fire)
            logger.debug(f"{self.name} ramp armed: target={target}, rate={rate_ms}ms")

    def cancel(self) -> None:
        """Cancel the live timer, if any. Pending state is left untouched."""
        if self._timer is not None:
            self._scheduler.cancel(self._timer)
            self._timer = None

    def observe(self, payload: Notification, changed: bool = True) -> None:
        """Route a backend observation: park it while ramping, else emit.

        An idle channel forwards unchanged observations only when a
        command is still waiting for its first confirmation.
        """
        if self.is_ramping:
            self.pending_payload = payload
            self.pending_notification = True
            logger.debug(f"{self.name} changed notification postponed (ramp in progress)")
            return

        if changed or self.awaiting_confirmation:
            self.awaiting_confirmation = False
            self._emit(payload)

    def level_at(self, now_ms: int) -> float:
        """Interpolated value of the current ramp at ``now_ms``."""
        return lerp(
            self.ramp_start_value,
            self.ramp_target,
            now_ms - self.ramp_start_ms,
            self.ramp_duration_ms,
        )

    def _on_timer_fire(self) -> None:
        self._timer = None
        logger.debug(f"{self.name} ramp complete, pending={self.pending_notification}")
        if self.pending_notification and self.pending_payload is not None:
            payload = self.pending_payload
            self.pending_notification = False
            self.pending_payload = None
            self.awaiting_confirmation = False
            self._emit(payload)


class RampCoordinator:
    """Holds the brightness and color channels of one light."""

    def __init__(self, scheduler: Scheduler, emit: Emit):
        self.scheduler = scheduler
        self.brightness = RampChannel("brightness", scheduler, emit)
        self.color = RampChannel("color", scheduler, emit)

    def now_ms(self) -> int:
        return self.scheduler.now_ms()
