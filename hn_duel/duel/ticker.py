"""Cancellable periodic tick sources driving the round countdown."""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Awaitable, Callable, List, Optional

logger = logging.getLogger(__name__)

TickCallback = Callable[[], Awaitable[None]]


class TickHandle:
    """Handle to a running tick source."""

    def __init__(self, callback: TickCallback):
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        """Stop delivering ticks. Safe to call more than once."""
        self.cancelled = True


class Ticker(ABC):
    """Base class for tick sources."""

    @abstractmethod
    def start(self, callback: TickCallback, interval: float) -> TickHandle:
        """
        Start calling ``callback`` every ``interval`` seconds.

        Args:
            callback: Coroutine function awaited on every tick
            interval: Seconds between ticks

        Returns:
            Handle used to cancel the ticks
        """


class _AsyncioTickHandle(TickHandle):
    def __init__(self, callback: TickCallback):
        super().__init__(callback)
        self.task: Optional["asyncio.Task[None]"] = None

    def cancel(self) -> None:
        super().cancel()
        # From inside our own callback the loop exits once the callback returns
        if self.task is not None and self.task is not asyncio.current_task():
            self.task.cancel()


class AsyncioTicker(Ticker):
    """Wall-clock ticks driven by the running asyncio event loop."""

    def start(self, callback: TickCallback, interval: float) -> TickHandle:
        handle = _AsyncioTickHandle(callback)
        handle.task = asyncio.get_running_loop().create_task(self._run(handle, interval))
        return handle

    async def _run(self, handle: _AsyncioTickHandle, interval: float) -> None:
        while not handle.cancelled:
            await asyncio.sleep(interval)
            if handle.cancelled:
                break
            try:
                await handle.callback()
            except Exception:
                logger.exception("Tick callback failed; stopping ticks")
                handle.cancelled = True


class ManualTicker(Ticker):
    """Ticks delivered on demand, for deterministic simulations and tests."""

    def __init__(self):
        self.handles: List[TickHandle] = []

    def start(self, callback: TickCallback, interval: float) -> TickHandle:
        handle = TickHandle(callback)
        self.handles.append(handle)
        return handle

    @property
    def active(self) -> List[TickHandle]:
        return [h for h in self.handles if not h.cancelled]

    async def tick(self, count: int = 1) -> None:
        """
        Deliver ``count`` ticks to every active handle.

        Args:
            count: Number of simulated elapsed intervals
        """
        for _ in range(count):
            for handle in self.active:
                if not handle.cancelled:
                    await handle.callback()
