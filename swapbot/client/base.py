from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from ..execution.errors import ApplicationRejected, RemoteCallFailed


def as_amount(value: Any) -> int:
    """Decode an amount sent as a decimal string (or a JSON int)."""
    if isinstance(value, bool):
        raise ValueError("boolean is not an amount")
    return int(str(value))


class BaseRpcClient:
    """Shared httpx transport for ledger and exchange endpoints.

    Every call is ``POST {base_url}/call/{method}`` with a JSON object of
    arguments. Replies are ``{"ok": value}`` or ``{"err": reason}``; amounts
    travel as decimal strings so large integers survive JSON.
    """

    def __init__(
        self,
        base_url: str,
        *,
        caller: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.caller = caller
        self._timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        self.log = logger or logging.getLogger("swapbot.client")

    async def start(self) -> None:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self._timeout,
                transport=self._transport,
                headers={"X-Caller": self.caller},
            )

    async def stop(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError("client not started")
        return self._client

    async def call(self, method: str, **args: Any) -> Any:
        body: Dict[str, Any] = {k: (str(v) if isinstance(v, int) and not isinstance(v, bool) else v) for k, v in args.items()}
        try:
            response = await self.client.post(f"/call/{method}", json=body)
            response.raise_for_status()
            reply = response.json()
        except httpx.HTTPError as exc:
            self.log.warning("remote_call_failed", extra={"endpoint": self.base_url, "method": method, "error": str(exc)})
            raise RemoteCallFailed(method, str(exc)) from exc
        except ValueError as exc:
            raise RemoteCallFailed(method, f"invalid JSON reply: {exc}") from exc
        if not isinstance(reply, dict) or not ({"ok", "err"} & reply.keys()):
            raise RemoteCallFailed(method, f"unexpected reply shape: {reply!r}")
        if "err" in reply:
            raise ApplicationRejected(method, str(reply["err"]))
        return reply["ok"]

    async def call_amount(self, method: str, **args: Any) -> int:
        """Like ``call`` but decodes the reply as a token amount."""
        value = await self.call(method, **args)
        try:
            return as_amount(value)
        except (TypeError, ValueError) as exc:
            raise RemoteCallFailed(method, f"unexpected amount in reply: {value!r}") from exc


__all__ = ["BaseRpcClient", "as_amount"]
