from __future__ import annotations

import asyncio
import logging
import time
from typing import List, Optional, Protocol


class WallClock:
    """Async friendly wall clock helper used by the executor and scheduler."""

    def now(self) -> float:
        return time.time()

    def monotonic(self) -> float:
        return time.monotonic()

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)


class TimeIterator(Protocol):
    async def on_tick(self, ts: float) -> object:  # pragma: no cover - protocol
        ...


class Clock:
    """Fixed-interval tick driver.

    Iterators are awaited one after another on every tick, so at most one
    tick body runs at a time. An exception raised by an iterator stops the
    loop and propagates to the caller of ``start``.
    """

    def __init__(
        self,
        interval: float = 1.0,
        *,
        wall: Optional[WallClock] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self._interval = interval
        self._wall = wall or WallClock()
        self._iters: List[TimeIterator] = []
        self._running = False
        self.ticks = 0
        self.log = logger or logging.getLogger("swapbot.core.clock")

    @property
    def running(self) -> bool:
        return self._running

    def add_iterator(self, it: TimeIterator) -> None:
        self._iters.append(it)

    async def start(self, *, max_ticks: int | None = None) -> None:
        self._running = True
        tick = 0
        self.log.info("clock_start", extra={"interval": self._interval, "max_ticks": max_ticks})
        try:
            while self._running:
                ts = self._wall.now()
                for it in list(self._iters):
                    await it.on_tick(ts)
                tick += 1
                self.ticks += 1
                if max_ticks is not None and tick >= max_ticks:
                    break
                await self._wall.sleep(self._interval)
        finally:
            self._running = False
            self.log.info("clock_stop", extra={"ticks": tick})

    def stop(self) -> None:
        self._running = False


__all__ = ["WallClock", "TimeIterator", "Clock"]
