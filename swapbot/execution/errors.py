"""Error taxonomy for the execution engine.

Transport failures (``RemoteCallFailed``) and explicit rejections from a
collaborator (``ApplicationRejected``) are kept apart so callers can tell a
network problem from an answer. ``MalformedPayloadError`` signals a programming
or data error and is never converted into a retry.
"""

from __future__ import annotations

from typing import Optional


class SwapBotError(Exception):
    """Base class for engine errors."""


class RemoteCallFailed(SwapBotError):
    """A collaborator call did not complete (network or host failure)."""

    def __init__(self, method: str, detail: str) -> None:
        super().__init__(f"{method}: remote call failed: {detail}")
        self.method = method
        self.detail = detail


class ApplicationRejected(SwapBotError):
    """A collaborator answered with an explicit error value."""

    def __init__(self, method: str, reason: str) -> None:
        super().__init__(f"{method}: rejected: {reason}")
        self.method = method
        self.reason = reason


class PairNotFound(SwapBotError):
    def __init__(self, give: str, take: str, detail: str = "no trading pair") -> None:
        super().__init__(f"{detail} for {give}/{take}")
        self.give = give
        self.take = take


class AmountOutOfRange(SwapBotError, ValueError):
    """Slippage arithmetic produced a value that is not a valid token amount."""


class SettlementFailed(SwapBotError):
    def __init__(self, reason: str, *, cause: Optional[BaseException] = None) -> None:
        super().__init__(f"settlement failed: {reason}")
        self.reason = reason
        self.cause = cause


class SchedulerFull(SwapBotError):
    pass


class AccessDenied(SwapBotError, PermissionError):
    def __init__(self, caller: str) -> None:
        super().__init__(f"access denied for caller {caller!r}")
        self.caller = caller


class MalformedPayloadError(SwapBotError):
    """Persisted or submitted payload does not describe a valid order."""


class StateRestoreError(SwapBotError):
    pass


__all__ = [
    "SwapBotError",
    "RemoteCallFailed",
    "ApplicationRejected",
    "PairNotFound",
    "AmountOutOfRange",
    "SettlementFailed",
    "SchedulerFull",
    "AccessDenied",
    "MalformedPayloadError",
    "StateRestoreError",
]
