"""Test ramp channels and deferred changed notifications"""
import pytest

from lightbridge.engine.ramp import ChannelState, RampChannel, lerp
from lightbridge.models.notification import BrightnessChanged


@pytest.fixture
def emitted():
    return []


@pytest.fixture
def channel(scheduler, emitted):
    return RampChannel("brightness", scheduler, emitted.append)


def test_lerp_clamps_progress():
    """Interpolation never leaves the start/end segment"""
    assert lerp(0, 100, 250, 1000) == 25
    assert lerp(0, 100, -50, 1000) == 0
    assert lerp(0, 100, 5000, 1000) == 100
    assert lerp(80, 20, 500, 1000) == 50


def test_lerp_zero_duration_is_end():
    assert lerp(10, 90, 0, 0) == 90


def test_idle_channel_emits_changed_observation(channel, emitted):
    """Without a ramp, a changed observation is forwarded immediately"""
    channel.observe(BrightnessChanged(current=40))
    assert [n.current for n in emitted] == [40]


def test_idle_channel_drops_unchanged_observation(channel, emitted):
    channel.observe(BrightnessChanged(current=40), changed=False)
    assert emitted == []


def test_unchanged_observation_forwarded_once_after_command(channel, emitted):
    """A command with no visible effect still gets its confirmation"""
    channel.arm(0, target=40, start_value=40)
    channel.observe(BrightnessChanged(current=40), changed=False)
    channel.observe(BrightnessChanged(current=40), changed=False)
    assert len(emitted) == 1


def test_zero_rate_does_not_schedule(channel, scheduler):
    channel.arm(0, target=50)
    assert not channel.is_ramping
    assert channel.state == ChannelState.IDLE
    assert scheduler.live_timers == 0


def test_ramping_parks_observations_until_timer_fires(channel, scheduler, emitted):
    """Only the last observation during a ramp is sent, when the ramp ends"""
    channel.arm(1000, target=80)
    assert channel.state == ChannelState.RAMPING

    channel.observe(BrightnessChanged(current=30))
    channel.observe(BrightnessChanged(current=80))
    assert emitted == []
    assert channel.pending_notification

    scheduler.advance(999)
    assert emitted == []

    scheduler.advance(1)
    assert [n.current for n in emitted] == [80]
    assert not channel.is_ramping
    assert not channel.pending_notification


def test_timer_without_observation_emits_nothing(channel, scheduler, emitted):
    channel.arm(500, target=10)
    scheduler.advance(500)
    assert emitted == []
    assert not channel.is_ramping


def test_rearm_keeps_one_live_timer(channel, scheduler):
    """Each new command cancels the previous timer"""
    channel.arm(1000, target=20)
    channel.arm(1000, target=40)
    channel.arm(1000, target=60)
    assert scheduler.live_timers == 1


def test_rearm_discards_pending_payload(channel, scheduler, emitted):
    """Observations belonging to a superseded command are dropped"""
    channel.arm(1000, target=50)
    channel.observe(BrightnessChanged(current=50))

    scheduler.advance(100)
    channel.arm(1000, target=80)
    assert not channel.pending_notification

    scheduler.advance(1000)
    assert emitted == []


def test_burst_collapses_to_single_notification(channel, scheduler, emitted):
    """Two commands in quick succession settle on the second one's timing"""
    channel.arm(2000, target=50)
    channel.observe(BrightnessChanged(current=50))

    scheduler.advance(100)
    channel.arm(1000, target=80)
    channel.observe(BrightnessChanged(current=80))

    scheduler.advance(999)
    assert emitted == []

    scheduler.advance(1000)
    assert [n.current for n in emitted] == [80]


def test_cancel_leaves_pending_untouched(channel):
    channel.arm(1000, target=50)
    channel.observe(BrightnessChanged(current=50))
    channel.cancel()
    assert not channel.is_ramping
    assert channel.pending_notification


def test_level_at_interpolates_position(channel, scheduler):
    channel.arm(1000, target=100, start_value=20)
    scheduler.advance(500)
    assert channel.level_at(scheduler.now_ms()) == 60
    scheduler.advance(2000)
    assert channel.level_at(scheduler.now_ms()) == 100
