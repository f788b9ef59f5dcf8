from __future__ import annotations

from typing import Optional

import httpx

from .base import BaseRpcClient
from ..execution.errors import RemoteCallFailed


class HttpLedgerClient(BaseRpcClient):
    """Token ledger reached over the JSON call endpoint."""

    def __init__(
        self,
        base_url: str,
        *,
        token: str,
        caller: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        super().__init__(base_url, caller=caller, timeout=timeout, transport=transport)
        self.token = token
        self._decimals: Optional[int] = None

    async def approve(self, spender: str, amount: int) -> int:
        return await self.call_amount("approve", spender=spender, value=amount)

    async def transfer(self, to: str, amount: int) -> int:
        return await self.call_amount("transfer", to=to, value=amount)

    async def transfer_from(self, owner: str, to: str, amount: int) -> int:
        return await self.call_amount("transferFrom", **{"from": owner, "to": to, "value": amount})

    async def balance_of(self, owner: str) -> int:
        return await self.call_amount("balanceOf", who=owner)

    async def allowance(self, owner: str, spender: str) -> int:
        return await self.call_amount("allowance", owner=owner, spender=spender)

    async def decimals(self) -> int:
        if self._decimals is None:
            value = await self.call_amount("decimals")
            if not 0 <= value <= 255:
                raise RemoteCallFailed("decimals", f"ledger {self.token} reported invalid decimals {value}")
            self._decimals = value
        return self._decimals

    async def mint(self, to: str, amount: int) -> int:
        return await self.call_amount("mint", to=to, amount=amount)

    async def burn(self, amount: int) -> int:
        return await self.call_amount("burn", amount=amount)


__all__ = ["HttpLedgerClient"]
