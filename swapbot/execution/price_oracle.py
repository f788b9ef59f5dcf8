from __future__ import annotations

import asyncio
import logging
from decimal import Decimal, localcontext
from typing import TYPE_CHECKING, Callable, Dict, Mapping, Optional

from .errors import PairNotFound
from .models import Currency, PriceQuote

if TYPE_CHECKING:
    from ..client.interface import IExchangeClient, ILedgerClient

PRICE_PRECISION = 60


class PriceOracle:
    """Derives give-per-take prices from live pair reserves.

    The price is ``(give_reserve / 10**give_decimals) / (take_reserve /
    10**take_decimals)``: how many whole give tokens one whole take token
    costs. Every threshold comparison uses this orientation.
    """

    def __init__(
        self,
        *,
        exchange: "IExchangeClient",
        ledgers: Mapping[Currency, "ILedgerClient"],
        resolve_address: Callable[[Currency], str],
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._exchange = exchange
        self._ledgers = ledgers
        self._resolve = resolve_address
        self._decimals: Dict[Currency, int] = {}
        self._locks: Dict[Currency, asyncio.Lock] = {}
        self.log = logger or logging.getLogger("swapbot.execution.price_oracle")

    async def decimals(self, currency: Currency) -> int:
        if currency in self._decimals:
            return self._decimals[currency]
        lock = self._locks.setdefault(currency, asyncio.Lock())
        async with lock:
            if currency in self._decimals:
                return self._decimals[currency]
            value = await self._ledgers[currency].decimals()
            self._decimals[currency] = int(value)
            return self._decimals[currency]

    async def quote(self, give: Currency, take: Currency) -> PriceQuote:
        if give == take:
            raise ValueError("price requires two distinct currencies")
        give_addr = self._resolve(give)
        take_addr = self._resolve(take)
        give_decimals = await self.decimals(give)
        take_decimals = await self.decimals(take)
        pair = await self._exchange.get_pair(give_addr, take_addr)
        if pair is None:
            raise PairNotFound(give.value, take.value)
        try:
            give_reserve, take_reserve = pair.reserves_for(give_addr, take_addr)
        except ValueError:
            raise PairNotFound(give.value, take.value, detail="pair tokens do not match") from None
        if give_reserve <= 0 or take_reserve <= 0:
            raise PairNotFound(give.value, take.value, detail="empty reserves")
        with localcontext() as ctx:
            ctx.prec = PRICE_PRECISION
            give_real = Decimal(give_reserve) / (Decimal(10) ** give_decimals)
            take_real = Decimal(take_reserve) / (Decimal(10) ** take_decimals)
            price = give_real / take_real
        self.log.debug(
            "price_quoted",
            extra={
                "give": give.value,
                "take": take.value,
                "give_reserve": give_reserve,
                "take_reserve": take_reserve,
                "price": str(price),
            },
        )
        return PriceQuote(price=price, give_decimals=give_decimals, take_decimals=take_decimals)

    async def price(self, give: Currency, take: Currency) -> Decimal:
        return (await self.quote(give, take)).price


__all__ = ["PriceOracle", "PRICE_PRECISION"]
