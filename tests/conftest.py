"""Pytest configuration and shared fixtures"""
import sys
from pathlib import Path

import pytest

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from lightbridge.engine.dispatcher import CommandDispatcher  # noqa: E402
from lightbridge.engine.ingest import StateIngest  # noqa: E402
from lightbridge.engine.session import DeviceSession  # noqa: E402
from lightbridge.models.device import CapabilitySnapshot  # noqa: E402
from lightbridge.storage.kv_store import KeyValueStore  # noqa: E402
from lightbridge.storage.scene_store import SceneStore  # noqa: E402

ENTITY_ID = "light.test_lamp"


class FakeScheduler:
    """Deterministic clock; timers only fire from ``advance``."""

    def __init__(self):
        self.now = 0
        self._timers = {}
        self._next_handle = 0

    def now_ms(self):
        return self.now

    def schedule(self, duration_ms, callback):
        self._next_handle += 1
        self._timers[self._next_handle] = (self.now + duration_ms, callback)
        return self._next_handle

    def cancel(self, handle):
        self._timers.pop(handle, None)

    @property
    def live_timers(self):
        return len(self._timers)

    def advance(self, ms):
        target = self.now + ms
        while True:
            due = [(deadline, h) for h, (deadline, _) in self._timers.items() if deadline <= target]
            if not due:
                break
            deadline, handle = min(due)
            _, callback = self._timers.pop(handle)
            self.now = deadline
            callback()
        self.now = target


class Recorder:
    """Collects controller notifications and backend calls."""

    def __init__(self):
        self.notifications = []
        self.calls = []

    def notify(self, notification):
        self.notifications.append(notification)

    def call_service(self, call):
        self.calls.append(call)

    def of_type(self, cls):
        return [n for n in self.notifications if isinstance(n, cls)]

    def clear(self):
        self.notifications.clear()
        self.calls.clear()


def _state_event(state="on", **attributes):
    return {"entity_id": ENTITY_ID, "state": state, "attributes": attributes}


@pytest.fixture
def state_event():
    """Factory for Home Assistant state objects of the test entity."""
    return _state_event


@pytest.fixture
def scheduler():
    return FakeScheduler()


@pytest.fixture
def recorder():
    return Recorder()


@pytest.fixture
def session(scheduler, recorder):
    return DeviceSession(ENTITY_ID, scheduler, recorder.notify, recorder.call_service)


@pytest.fixture
def unused_scenes(tmp_path):
    """Scene store that never opens its database unless a test touches it."""
    return SceneStore(KeyValueStore(str(tmp_path / "unused.db")), "test")


@pytest.fixture
def dispatcher(session, unused_scenes):
    return CommandDispatcher(session, unused_scenes)


@pytest.fixture
def ingest(session):
    return StateIngest(session)


@pytest.fixture
async def store(tmp_path):
    kv = KeyValueStore(str(tmp_path / "scenes.db"))
    await kv.initialize()
    yield kv
    await kv.close()


@pytest.fixture
def scenes(store):
    return SceneStore(store, "test")


@pytest.fixture
def scene_dispatcher(session, scenes):
    return CommandDispatcher(session, scenes)


@pytest.fixture
def cct_only_caps():
    return CapabilitySnapshot(
        supported_color_modes=("color_temp",),
        supports_color_temperature=True,
        min_kelvin=2000,
        max_kelvin=6500,
    )


@pytest.fixture
def full_color_caps():
    return CapabilitySnapshot(
        supported_color_modes=("color_temp", "xy"),
        supports_full_color=True,
        supports_color_temperature=True,
        min_kelvin=2000,
        max_kelvin=6500,
    )
