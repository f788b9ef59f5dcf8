"""Order model: currencies, directives, market/limit orders and scheduler records."""

from __future__ import annotations

import math
import time
from dataclasses import dataclass, field
from decimal import Decimal, localcontext
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from .errors import MalformedPayloadError


class Currency(str, Enum):
    XTC = "XTC"
    WICP = "WICP"


class OrderState(str, Enum):
    PENDING_EVALUATION = "pending_evaluation"
    TRIGGERED = "triggered"
    EXECUTING = "executing"
    SETTLED = "settled"
    FAILED = "failed"
    CANCELLED = "cancelled"


FINAL_STATES = {OrderState.SETTLED, OrderState.FAILED, OrderState.CANCELLED}


def _check_amount(amount: object) -> None:
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise ValueError(f"amount must be an int, got {type(amount).__name__}")
    if amount < 0:
        raise ValueError(f"amount must be non-negative, got {amount}")


@dataclass(frozen=True, slots=True)
class GiveExact:
    """Offer exactly ``amount`` of the give currency; take side gets a floor."""

    amount: int

    def __post_init__(self) -> None:
        _check_amount(self.amount)


@dataclass(frozen=True, slots=True)
class TakeExact:
    """Receive exactly ``amount`` of the take currency; give side gets a ceiling."""

    amount: int

    def __post_init__(self) -> None:
        _check_amount(self.amount)


OrderDirective = Union[GiveExact, TakeExact]


@dataclass(frozen=True, slots=True)
class MarketOrder:
    give_currency: Currency
    take_currency: Currency
    directive: OrderDirective

    def __post_init__(self) -> None:
        if self.give_currency == self.take_currency:
            raise ValueError("give and take currencies must differ")


def _check_threshold(threshold: object) -> None:
    if isinstance(threshold, bool) or not isinstance(threshold, (int, float)):
        raise ValueError("threshold must be a number")
    if not math.isfinite(threshold):
        raise ValueError("threshold must be finite")


@dataclass(frozen=True, slots=True)
class MoreThan:
    threshold: float

    def __post_init__(self) -> None:
        _check_threshold(self.threshold)

    def is_met(self, price: Decimal) -> bool:
        return float(price) >= self.threshold


@dataclass(frozen=True, slots=True)
class LessThan:
    threshold: float

    def __post_init__(self) -> None:
        _check_threshold(self.threshold)

    def is_met(self, price: Decimal) -> bool:
        return float(price) <= self.threshold


TargetPriceCondition = Union[MoreThan, LessThan]


@dataclass(frozen=True, slots=True)
class LimitOrder:
    condition: TargetPriceCondition
    market_order: MarketOrder


Order = Union[MarketOrder, LimitOrder]


@dataclass(frozen=True, slots=True)
class PriceQuote:
    """Give-per-take price of a pair plus the decimals it was normalised with."""

    price: Decimal
    give_decimals: int
    take_decimals: int

    @property
    def unit_price(self) -> Decimal:
        # give native units per take native unit
        with localcontext() as ctx:
            ctx.prec = 60
            return self.price.scaleb(self.give_decimals - self.take_decimals)


@dataclass(frozen=True, slots=True)
class SettlementResult:
    kind: str                 # "exact_in" | "exact_out"
    path: List[str]
    amount: int               # the exact side of the swap
    bound: int                # min_out for exact_in, max_in for exact_out
    settled_amount: int
    deadline: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "path": list(self.path),
            "amount": str(self.amount),
            "bound": str(self.bound),
            "settled_amount": str(self.settled_amount),
            "deadline": self.deadline,
        }


@dataclass(slots=True)
class OrderEvent:
    state: OrderState
    ts: float = field(default_factory=time.time)
    info: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"state": self.state.value, "ts": self.ts}
        if self.info:
            payload["info"] = self.info
        return payload


@dataclass(slots=True)
class ScheduledTask:
    task_id: int
    handle: int
    payload: Dict[str, Any]
    next_fire_time: float
    interval: float
    remaining_iterations: int = 1

    def is_due(self, now: float) -> bool:
        return self.next_fire_time <= now

    def to_dict(self) -> Dict[str, Any]:
        return {
            "task_id": self.task_id,
            "handle": self.handle,
            "payload": self.payload,
            "next_fire_time": self.next_fire_time,
            "interval": self.interval,
            "remaining_iterations": self.remaining_iterations,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ScheduledTask":
        try:
            return cls(
                task_id=int(data["task_id"]),
                handle=int(data.get("handle", data["task_id"])),
                payload=dict(data["payload"]),
                next_fire_time=float(data["next_fire_time"]),
                interval=float(data["interval"]),
                remaining_iterations=int(data.get("remaining_iterations", 1)),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise MalformedPayloadError(f"invalid scheduled task record: {exc}") from exc


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------

def _directive_to_dict(directive: OrderDirective) -> Dict[str, Any]:
    kind = "give_exact" if isinstance(directive, GiveExact) else "take_exact"
    # str keeps arbitrary-precision amounts intact through JSON
    return {"kind": kind, "amount": str(directive.amount)}


def _condition_to_dict(condition: TargetPriceCondition) -> Dict[str, Any]:
    kind = "more_than" if isinstance(condition, MoreThan) else "less_than"
    return {"kind": kind, "threshold": condition.threshold}


def market_order_to_dict(order: MarketOrder) -> Dict[str, Any]:
    return {
        "type": "market",
        "give": order.give_currency.value,
        "take": order.take_currency.value,
        "directive": _directive_to_dict(order.directive),
    }


def order_to_dict(order: Order) -> Dict[str, Any]:
    if isinstance(order, MarketOrder):
        return market_order_to_dict(order)
    if isinstance(order, LimitOrder):
        return {
            "type": "limit",
            "condition": _condition_to_dict(order.condition),
            "market_order": market_order_to_dict(order.market_order),
        }
    raise TypeError(f"not an order: {order!r}")


def _directive_from_dict(data: Dict[str, Any]) -> OrderDirective:
    kind = data["kind"]
    amount = int(str(data["amount"]))
    if kind == "give_exact":
        return GiveExact(amount)
    if kind == "take_exact":
        return TakeExact(amount)
    raise ValueError(f"unknown directive kind {kind!r}")


def _condition_from_dict(data: Dict[str, Any]) -> TargetPriceCondition:
    kind = data["kind"]
    threshold = float(data["threshold"])
    if kind == "more_than":
        return MoreThan(threshold)
    if kind == "less_than":
        return LessThan(threshold)
    raise ValueError(f"unknown condition kind {kind!r}")


def _market_order_from_dict(data: Dict[str, Any]) -> MarketOrder:
    return MarketOrder(
        give_currency=Currency(data["give"]),
        take_currency=Currency(data["take"]),
        directive=_directive_from_dict(data["directive"]),
    )


def order_from_dict(data: Any) -> Order:
    """Rebuild an order from its dict form.

    Raises:
        MalformedPayloadError: if ``data`` does not describe a valid order.
    """
    try:
        kind = data["type"]
        if kind == "market":
            return _market_order_from_dict(data)
        if kind == "limit":
            return LimitOrder(
                condition=_condition_from_dict(data["condition"]),
                market_order=_market_order_from_dict(data["market_order"]),
            )
    except (KeyError, TypeError, ValueError) as exc:
        raise MalformedPayloadError(f"malformed order payload: {exc!r}") from exc
    raise MalformedPayloadError(f"unknown order type {kind!r}")


def limit_order_from_dict(data: Any) -> LimitOrder:
    order = order_from_dict(data)
    if not isinstance(order, LimitOrder):
        raise MalformedPayloadError("scheduled payload is not a limit order")
    return order


def describe_condition(condition: Optional[TargetPriceCondition]) -> str:
    if condition is None:
        return "-"
    op = ">=" if isinstance(condition, MoreThan) else "<="
    return f"{op}{condition.threshold}"


__all__ = [
    "Currency",
    "OrderState",
    "FINAL_STATES",
    "GiveExact",
    "TakeExact",
    "OrderDirective",
    "MarketOrder",
    "MoreThan",
    "LessThan",
    "TargetPriceCondition",
    "LimitOrder",
    "Order",
    "PriceQuote",
    "SettlementResult",
    "OrderEvent",
    "ScheduledTask",
    "market_order_to_dict",
    "order_to_dict",
    "order_from_dict",
    "limit_order_from_dict",
    "describe_condition",
]
