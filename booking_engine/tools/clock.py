"""
Clock and one-shot timer service.

Timers live only in process memory: nothing armed here survives a restart.
Each timer is independent; cancelling or failing one never touches another.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)

TimerCallback = Callable[[], Awaitable[None]]


class TimerHandle:
    """Cancellable reference to one armed timer."""

    def __init__(self, when: datetime) -> None:
        self.when = when
        self.cancelled = False
        self.fired = False
        self._cancel_hook: Optional[Callable[[], None]] = None

    def bind(self, cancel_hook: Callable[[], None]) -> None:
        self._cancel_hook = cancel_hook

    def cancel(self) -> bool:
        """Disarm the timer. Returns False if it already fired or was cancelled."""
        if self.fired or self.cancelled:
            return False
        self.cancelled = True
        if self._cancel_hook is not None:
            self._cancel_hook()
        return True

    @property
    def pending(self) -> bool:
        return not (self.fired or self.cancelled)


class TimerService(ABC):
    @abstractmethod
    def now(self) -> datetime:
        """Current local wall-clock time."""

    @abstractmethod
    def schedule_at(self, instant: datetime, callback: TimerCallback) -> TimerHandle:
        """Run ``callback`` once at ``instant``."""


class AsyncioTimerService(TimerService):
    """Timers armed on the running asyncio event loop."""

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task] = set()

    def now(self) -> datetime:
        return datetime.now()

    def schedule_at(self, instant: datetime, callback: TimerCallback) -> TimerHandle:
        loop = asyncio.get_running_loop()
        handle = TimerHandle(instant)
        delay = max(0.0, (instant - self.now()).total_seconds())

        def _fire() -> None:
            if not handle.pending:
                return
            handle.fired = True
            task = loop.create_task(self._run(callback))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

        loop_handle = loop.call_later(delay, _fire)
        handle.bind(loop_handle.cancel)
        logger.debug("Timer armed for %s (in %.0fs)", instant.isoformat(), delay)
        return handle

    async def _run(self, callback: TimerCallback) -> None:
        try:
            await callback()
        except Exception:
            logger.exception("Timer callback failed")

    @property
    def running_tasks(self) -> int:
        return len(self._tasks)
