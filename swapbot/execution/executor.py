from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable, List, Optional

from .errors import ApplicationRejected, RemoteCallFailed, SettlementFailed
from .models import Currency, GiveExact, MarketOrder, SettlementResult, TakeExact
from .price_oracle import PriceOracle
from .slippage import bounded_counter_amount

if TYPE_CHECKING:
    from ..client.interface import IExchangeClient
    from ..core.clock import WallClock


class OrderExecutor:
    """Executes a market order as a single deadline-bounded swap.

    Price lookup errors (``PairNotFound``, ``RemoteCallFailed``) propagate as
    they are and no swap is attempted. Once the swap call is issued, any
    failure is reported as ``SettlementFailed``. Nothing is retried here.
    """

    def __init__(
        self,
        *,
        exchange: "IExchangeClient",
        oracle: PriceOracle,
        resolve_address: Callable[[Currency], str],
        recipient: str,
        clock: "WallClock",
        deadline_secs: int = 30,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._exchange = exchange
        self._oracle = oracle
        self._resolve = resolve_address
        self._recipient = recipient
        self._clock = clock
        self._deadline_secs = int(deadline_secs)
        self.log = logger or logging.getLogger("swapbot.execution.executor")

    def deadline(self) -> int:
        return int(self._clock.now()) + self._deadline_secs

    async def execute(self, order: MarketOrder, *, tolerance: float) -> SettlementResult:
        give_addr = self._resolve(order.give_currency)
        take_addr = self._resolve(order.take_currency)
        path: List[str] = [give_addr, take_addr]

        quote = await self._oracle.quote(order.give_currency, order.take_currency)
        directive = order.directive
        bound = bounded_counter_amount(directive, quote.unit_price, tolerance)
        deadline = self.deadline()
        kind = "exact_in" if isinstance(directive, GiveExact) else "exact_out"

        self.log.info(
            "swap_submitted",
            extra={
                "kind": kind,
                "path": [order.give_currency.value, order.take_currency.value],
                "amount": directive.amount,
                "bound": bound,
                "price": str(quote.price),
                "tolerance": tolerance,
                "deadline": deadline,
            },
        )
        try:
            if isinstance(directive, GiveExact):
                settled = await self._exchange.swap_exact_in(
                    amount_in=directive.amount,
                    min_out=bound,
                    path=path,
                    to=self._recipient,
                    deadline=deadline,
                )
            elif isinstance(directive, TakeExact):
                settled = await self._exchange.swap_exact_out(
                    amount_out=directive.amount,
                    max_in=bound,
                    path=path,
                    to=self._recipient,
                    deadline=deadline,
                )
            else:
                raise TypeError(f"unknown directive {directive!r}")
        except ApplicationRejected as exc:
            self.log.warning("swap_rejected", extra={"kind": kind, "reason": exc.reason})
            raise SettlementFailed(exc.reason, cause=exc) from exc
        except RemoteCallFailed as exc:
            self.log.warning("swap_transport_failed", extra={"kind": kind, "error": exc.detail})
            raise SettlementFailed(str(exc), cause=exc) from exc

        result = SettlementResult(
            kind=kind,
            path=path,
            amount=directive.amount,
            bound=bound,
            settled_amount=int(settled),
            deadline=deadline,
        )
        self.log.info("swap_settled", extra=result.to_dict())
        return result


__all__ = ["OrderExecutor"]
