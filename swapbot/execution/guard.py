from __future__ import annotations

import logging
from typing import Optional

from .errors import AccessDenied


class AccessGuard:
    """Admits only the configured controller to privileged operations."""

    def __init__(self, controller: str, *, logger: Optional[logging.Logger] = None) -> None:
        if not controller:
            raise ValueError("controller identity is required")
        self._controller = controller
        self.log = logger or logging.getLogger("swapbot.execution.guard")

    @property
    def controller(self) -> str:
        return self._controller

    def check(self, caller: str) -> None:
        if caller != self._controller:
            self.log.warning("access_denied", extra={"caller": caller})
            raise AccessDenied(caller)


__all__ = ["AccessGuard"]
