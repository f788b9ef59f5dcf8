from __future__ import annotations

import logging
from contextlib import AsyncExitStack
from typing import Optional

from .context import AppContext


class LifecycleController:
    """Coordinates startup/shutdown for client-scoped resources and state."""

    def __init__(
        self,
        *,
        ctx: AppContext,
        persist: bool = True,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._ctx = ctx
        self._persist = persist
        self._stack = AsyncExitStack()
        self._started = False
        self.log = logger or logging.getLogger("swapbot.core.lifecycle")

    @property
    def started(self) -> bool:
        return self._started

    async def start(self) -> None:
        if self._started:
            return
        clients = [self._ctx.exchange, *self._ctx.ledgers.values()]
        try:
            for client in clients:
                await client.start()
                self._stack.push_async_callback(client.stop)
        except BaseException:
            await self._stack.aclose()
            raise
        if self._persist and not self._ctx.restored:
            # first start: persist the identity taken from config
            self._ctx.save()
        self._started = True
        self.log.info("lifecycle_started", extra={"pending": len(self._ctx.scheduler)})

    async def stop(self) -> None:
        if not self._started:
            return
        self._ctx.ticker.stop()
        try:
            if self._persist:
                self._ctx.save()
        finally:
            await self._stack.aclose()
            self._stack = AsyncExitStack()
            self._started = False
        self.log.info("lifecycle_stopped", extra={"pending": len(self._ctx.scheduler)})


__all__ = ["LifecycleController"]
