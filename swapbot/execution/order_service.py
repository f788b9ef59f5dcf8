from __future__ import annotations

import logging
from decimal import Decimal
from typing import TYPE_CHECKING, Callable, Dict, List, Mapping, Optional

from .executor import OrderExecutor
from .guard import AccessGuard
from .models import Currency, LimitOrder, MarketOrder, Order, OrderEvent, OrderState, ScheduledTask
from .price_oracle import PriceOracle
from .scheduler import LimitOrderScheduler
from .slippage import TolerancePreset

if TYPE_CHECKING:
    from ..client.interface import IExchangeClient, ILedgerClient


def _require_amount(amount: int) -> int:
    if isinstance(amount, bool) or not isinstance(amount, int) or amount < 0:
        raise ValueError(f"amount must be a non-negative int, got {amount!r}")
    return amount


class OrderService:
    """Caller-facing facade over the executor, scheduler and clients.

    Privileged operations take the caller identity first and check it before
    any remote call is made. Read-only queries are open to everyone.
    """

    def __init__(
        self,
        *,
        guard: AccessGuard,
        executor: OrderExecutor,
        scheduler: LimitOrderScheduler,
        oracle: PriceOracle,
        exchange: "IExchangeClient",
        ledgers: Mapping[Currency, "ILedgerClient"],
        resolve_address: Callable[[Currency], str],
        self_id: str,
        exchange_address: str,
        tolerance: TolerancePreset,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._guard = guard
        self._executor = executor
        self._scheduler = scheduler
        self._oracle = oracle
        self._exchange = exchange
        self._ledgers = ledgers
        self._resolve = resolve_address
        self._self_id = self_id
        self._exchange_address = exchange_address
        self._tolerance = tolerance
        self.log = logger or logging.getLogger("swapbot.execution.order_service")

    # ------------------------------------------------------------------
    # Orders

    async def submit(self, caller: str, order: Order) -> Optional[int]:
        """Run a market order now, or park a limit order.

        Returns ``None`` for a settled market order and the handle of the
        pending order for a limit order.
        """
        self._guard.check(caller)
        if isinstance(order, MarketOrder):
            await self._executor.execute(order, tolerance=self._tolerance.market)
            return None
        if isinstance(order, LimitOrder):
            return self._scheduler.enqueue(order)
        raise TypeError(f"not an order: {order!r}")

    async def cancel(self, caller: str, handle: int) -> bool:
        self._guard.check(caller)
        return self._scheduler.cancel(handle)

    # ------------------------------------------------------------------
    # Ledger / exchange administration

    def _ledger(self, currency: Currency) -> "ILedgerClient":
        try:
            return self._ledgers[currency]
        except KeyError:
            raise KeyError(f"no ledger client for {currency.value}") from None

    async def deposit(self, caller: str, currency: Currency, amount: int) -> int:
        """Approve the exchange on the ledger, then move ``amount`` into it."""
        self._guard.check(caller)
        _require_amount(amount)
        await self._ledger(currency).approve(self._exchange_address, amount)
        result = await self._exchange.deposit(self._resolve(currency), amount)
        self.log.info("deposit", extra={"currency": currency.value, "amount": str(amount)})
        return result

    async def withdraw(self, caller: str, currency: Currency, amount: int) -> int:
        self._guard.check(caller)
        _require_amount(amount)
        result = await self._exchange.withdraw(self._resolve(currency), amount)
        self.log.info("withdraw", extra={"currency": currency.value, "amount": str(amount)})
        return result

    async def transfer(self, caller: str, currency: Currency, to: str, amount: int) -> int:
        self._guard.check(caller)
        _require_amount(amount)
        result = await self._ledger(currency).transfer(to, amount)
        self.log.info("transfer", extra={"currency": currency.value, "to": to, "amount": str(amount)})
        return result

    async def approve(self, caller: str, currency: Currency, spender: str, amount: int) -> int:
        self._guard.check(caller)
        _require_amount(amount)
        return await self._ledger(currency).approve(spender, amount)

    async def mint(self, caller: str, currency: Currency, to: str, amount: int) -> int:
        self._guard.check(caller)
        _require_amount(amount)
        return await self._ledger(currency).mint(to, amount)

    async def burn(self, caller: str, currency: Currency, amount: int) -> int:
        self._guard.check(caller)
        _require_amount(amount)
        return await self._ledger(currency).burn(amount)

    # ------------------------------------------------------------------
    # Queries

    async def price(self, give: Currency, take: Currency) -> Decimal:
        return await self._oracle.price(give, take)

    async def balances(self, owner: Optional[str] = None) -> Dict[str, Dict[str, int]]:
        """Ledger and in-exchange balances per currency for ``owner`` (default: the engine)."""
        who = owner or self._self_id
        result: Dict[str, Dict[str, int]] = {}
        for currency in Currency:
            result[currency.value] = {
                "ledger": await self._ledger(currency).balance_of(who),
                "exchange": await self._exchange.balance_of(self._resolve(currency), who),
            }
        return result

    def pending(self) -> List[ScheduledTask]:
        return self._scheduler.pending()

    def status(self, handle: int) -> Optional[OrderState]:
        return self._scheduler.status(handle)

    def history(self, handle: int) -> List[OrderEvent]:
        return self._scheduler.history(handle)


__all__ = ["OrderService"]
