from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Protocol


@dataclass(frozen=True, slots=True)
class PairInfo:
    """Reserves of an exchange pair; reserve0 belongs to token0."""

    token0: str
    token1: str
    reserve0: int
    reserve1: int

    def reserves_for(self, give: str, take: str) -> tuple[int, int]:
        """Return ``(give_reserve, take_reserve)`` for the requested orientation."""
        if self.token0 == give and self.token1 == take:
            return self.reserve0, self.reserve1
        if self.token1 == give and self.token0 == take:
            return self.reserve1, self.reserve0
        raise ValueError(f"pair {self.token0}/{self.token1} does not match {give}/{take}")


class ILedgerClient(Protocol):
    """Async token ledger contract; one client per token."""

    token: str

    async def start(self) -> None:
        """Open the underlying transport."""

    async def stop(self) -> None:
        """Release the underlying transport."""

    async def approve(self, spender: str, amount: int) -> int:
        """Allow ``spender`` to move ``amount``; returns the ledger tx index."""

    async def transfer(self, to: str, amount: int) -> int:
        """Transfer ``amount`` from the engine's account; returns the tx index."""

    async def transfer_from(self, owner: str, to: str, amount: int) -> int:
        """Move ``amount`` from ``owner`` using an allowance; returns the tx index."""

    async def balance_of(self, owner: str) -> int:
        """Return the balance of ``owner`` in native units."""

    async def allowance(self, owner: str, spender: str) -> int:
        """Return the remaining allowance of ``spender`` over ``owner``."""

    async def decimals(self) -> int:
        """Return the token's decimal precision."""

    async def mint(self, to: str, amount: int) -> int:
        """Mint ``amount`` to ``to``; returns the tx index."""

    async def burn(self, amount: int) -> int:
        """Burn ``amount`` from the engine's account; returns the tx index."""


class IExchangeClient(Protocol):
    """Async AMM exchange contract required by the execution layer."""

    async def start(self) -> None:
        """Open the underlying transport."""

    async def stop(self) -> None:
        """Release the underlying transport."""

    async def deposit(self, token: str, amount: int) -> int:
        """Move ``amount`` of ``token`` from the ledger into the exchange."""

    async def withdraw(self, token: str, amount: int) -> int:
        """Move ``amount`` of ``token`` from the exchange back to the ledger."""

    async def get_pair(self, token_a: str, token_b: str) -> Optional[PairInfo]:
        """Return pair reserves or ``None`` if no pair exists."""

    async def swap_exact_in(
        self,
        *,
        amount_in: int,
        min_out: int,
        path: List[str],
        to: str,
        deadline: int,
    ) -> int:
        """Swap exactly ``amount_in``; returns the settled output amount."""

    async def swap_exact_out(
        self,
        *,
        amount_out: int,
        max_in: int,
        path: List[str],
        to: str,
        deadline: int,
    ) -> int:
        """Swap for exactly ``amount_out``; returns the settled input amount."""

    async def balance_of(self, token: str, owner: str) -> int:
        """Return ``owner``'s balance of ``token`` held inside the exchange."""


__all__ = ["PairInfo", "ILedgerClient", "IExchangeClient"]
