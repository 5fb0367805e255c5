"""
Deferred-callback capability for the Observer SDK.

The client never touches the event loop directly. Buffer updates go through
``Scheduler.call_soon`` so they always run on the loop thread, the flush
timer is armed through ``Scheduler.call_later`` and background deliveries
start through ``Scheduler.spawn``. ``AsyncioScheduler`` binds all three to
one asyncio loop.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Protocol

logger = logging.getLogger(__name__)


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Timer and background-task capability used by ObserverClient."""

    def call_soon(self, callback: Callable[[], None]) -> None:
        """Run ``callback`` on the scheduler's thread of control.

        Inline when already there, otherwise handed over thread-safely.
        """
        ...

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle | None:
        """Run ``callback`` after ``delay`` seconds. None if timers are unavailable."""
        ...

    def spawn(self, factory: Callable[[], Awaitable[None]]) -> None:
        """Run the coroutine produced by ``factory`` in the background.

        Raises RuntimeError if nothing can run it.
        """
        ...

    async def wait_idle(self) -> None:
        """Wait until every spawned coroutine has finished."""
        ...


def _running_loop() -> asyncio.AbstractEventLoop | None:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None


class AsyncioScheduler:
    """
    Scheduler on top of an asyncio event loop.

    Binds to the loop passed in, the loop running at construction, or the
    first loop it is used from. Calls made from other threads (e.g. a logging
    handler on a worker thread) are handed to that loop with
    ``call_soon_threadsafe``. Spawned tasks are tracked until done so they
    are not garbage collected mid-flight.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None):
        self._loop = loop or _running_loop()
        self._tasks: set[asyncio.Task] = set()

    def _bound_loop(self) -> asyncio.AbstractEventLoop | None:
        if self._loop is None or self._loop.is_closed():
            self._loop = _running_loop()
        return self._loop

    def call_soon(self, callback: Callable[[], None]) -> None:
        loop = self._bound_loop()
        if loop is None or _running_loop() is loop:
            callback()
            return
        loop.call_soon_threadsafe(callback)

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle | None:
        loop = self._bound_loop()
        if loop is None:
            logger.debug("No event loop, timed flush not scheduled")
            return None
        return loop.call_later(delay, callback)

    def spawn(self, factory: Callable[[], Awaitable[None]]) -> None:
        loop = self._bound_loop()
        if loop is None:
            raise RuntimeError("no event loop to run the delivery on")
        task = loop.create_task(factory())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    @property
    def pending_tasks(self) -> int:
        return len(self._tasks)

    async def wait_idle(self) -> None:
        # asyncio.wait leaves the tasks running if the waiter is cancelled.
        # Tasks spawned while waiting are picked up by the next pass.
        while self._tasks:
            done, _ = await asyncio.wait(set(self._tasks))
            for task in done:
                if not task.cancelled() and task.exception() is not None:
                    logger.debug(f"Background delivery failed: {task.exception()}")
