from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx

from .base import BaseRpcClient, as_amount
from .interface import PairInfo
from ..execution.errors import RemoteCallFailed


def _parse_pair(raw: Dict[str, Any]) -> PairInfo:
    return PairInfo(
        token0=str(raw["token0"]),
        token1=str(raw["token1"]),
        reserve0=as_amount(raw["reserve0"]),
        reserve1=as_amount(raw["reserve1"]),
    )


class HttpExchangeClient(BaseRpcClient):
    """AMM swap exchange reached over the JSON call endpoint."""

    def __init__(
        self,
        base_url: str,
        *,
        caller: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        super().__init__(base_url, caller=caller, timeout=timeout, transport=transport)

    async def deposit(self, token: str, amount: int) -> int:
        return await self.call_amount("deposit", tokenId=token, value=amount)

    async def withdraw(self, token: str, amount: int) -> int:
        return await self.call_amount("withdraw", tokenId=token, value=amount)

    async def get_pair(self, token_a: str, token_b: str) -> Optional[PairInfo]:
        raw = await self.call("getPair", token0=token_a, token1=token_b)
        if raw is None:
            return None
        try:
            return _parse_pair(raw)
        except (KeyError, TypeError, ValueError) as exc:
            raise RemoteCallFailed("getPair", f"unexpected pair payload: {raw!r}") from exc

    async def swap_exact_in(
        self,
        *,
        amount_in: int,
        min_out: int,
        path: List[str],
        to: str,
        deadline: int,
    ) -> int:
        return await self.call_amount(
            "swapExactTokensForTokens",
            amountIn=amount_in,
            amountOutMin=min_out,
            path=list(path),
            to=to,
            deadline=deadline,
        )

    async def swap_exact_out(
        self,
        *,
        amount_out: int,
        max_in: int,
        path: List[str],
        to: str,
        deadline: int,
    ) -> int:
        return await self.call_amount(
            "swapTokensForExactTokens",
            amountOut=amount_out,
            amountInMax=max_in,
            path=list(path),
            to=to,
            deadline=deadline,
        )

    async def balance_of(self, token: str, owner: str) -> int:
        return await self.call_amount("balanceOf", tokenId=token, who=owner)


__all__ = ["HttpExchangeClient"]
