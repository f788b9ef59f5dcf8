"""Slippage-bounded counter amounts for exact-in and exact-out swaps.

Prices here are give-per-take ratios in native token units. For an exact-in
swap the counter amount is a minimum the exchange must deliver, so it is
rounded toward zero; for an exact-out swap it is the maximum we are willing to
pay, so it is rounded up. Flipping either rounding changes the risk profile.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from .errors import AmountOutOfRange
from .models import GiveExact, OrderDirective, TakeExact

MAX_AMOUNT = 2**256 - 1


@dataclass(frozen=True, slots=True)
class TolerancePreset:
    """Named tolerance factors: fraction of the naive amount still accepted."""

    market: float = 0.99
    limit: float = 0.995

    def __post_init__(self) -> None:
        for name in ("market", "limit"):
            value = getattr(self, name)
            if not 0 < value <= 1:
                raise ValueError(f"{name} tolerance must be in (0, 1], got {value}")


def _to_decimal(value: Decimal | float | int | str) -> Decimal:
    if isinstance(value, Decimal):
        return value
    # via str so binary floats like 0.99 stay exact
    return Decimal(str(value))


def bounded_counter_amount(
    directive: OrderDirective,
    price: Decimal | float | str,
    tolerance: Decimal | float | str,
) -> int:
    """Return the slippage bound for the side of the swap not fixed by ``directive``.

    Args:
        directive: ``GiveExact(g)`` or ``TakeExact(t)``.
        price: give units per take unit, both in native amounts.
        tolerance: factor in (0, 1]; 0.99 accepts up to 1% adverse movement.

    Returns:
        ``floor(g / price * tolerance)`` for ``GiveExact`` (minimum take) or
        ``ceil(t * price / tolerance)`` for ``TakeExact`` (maximum give).

    Raises:
        ValueError: tolerance outside (0, 1].
        AmountOutOfRange: price not finite and positive, or result not a
            representable token amount.
    """
    tol = _to_decimal(tolerance)
    if not tol.is_finite() or not Decimal(0) < tol <= Decimal(1):
        raise ValueError(f"tolerance must be in (0, 1], got {tolerance}")
    p = _to_decimal(price)
    if not p.is_finite() or p <= 0:
        raise AmountOutOfRange(f"price must be finite and positive, got {price}")

    # exact rationals: no intermediate rounding can cross an integer boundary
    p_num, p_den = p.as_integer_ratio()
    t_num, t_den = tol.as_integer_ratio()
    if isinstance(directive, GiveExact):
        bound = (directive.amount * t_num * p_den) // (t_den * p_num)
    elif isinstance(directive, TakeExact):
        bound = -((-directive.amount * p_num * t_den) // (p_den * t_num))
    else:
        raise TypeError(f"unknown directive {directive!r}")

    if bound < 0 or bound > MAX_AMOUNT:
        raise AmountOutOfRange(f"bounded amount {bound} outside [0, {MAX_AMOUNT}]")
    return bound


__all__ = [
    "MAX_AMOUNT",
    "TolerancePreset",
    "bounded_counter_amount",
]
