"""One-shot timer scheduling for ramp channels."""

import asyncio
import time
from typing import Any, Callable, Protocol


class Scheduler(Protocol):
    """Clock plus cancelable one-shot timers."""

    def now_ms(self) -> int: ...

    def schedule(self, duration_ms: int, callback: Callable[[], None]) -> Any: ...

    def cancel(self, handle: Any) -> None: ...


class AsyncioScheduler:
    """Scheduler backed by the running event loop.

    ``loop.call_later`` handles are guaranteed not to run once cancelled,
    which is what ramp channels rely on.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None):
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def now_ms(self) -> int:
        return int(time.monotonic() * 1000)

    def schedule(self, duration_ms: int, callback: Callable[[], None]) -> asyncio.TimerHandle:
        return self.loop.call_later(duration_ms / 1000, callback)

    def cancel(self, handle: asyncio.TimerHandle) -> None:
        handle.cancel()
