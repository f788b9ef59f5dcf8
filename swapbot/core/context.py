from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, Mapping, Optional

from ..execution.errors import MalformedPayloadError, StateRestoreError
from ..execution.executor import OrderExecutor
from ..execution.guard import AccessGuard
from ..execution.models import Currency
from ..execution.order_service import OrderService
from ..execution.price_oracle import PriceOracle
from ..execution.scheduler import LimitOrderScheduler
from .clock import Clock, WallClock
from .persistence import StateStore, apply_identity, state_record

if TYPE_CHECKING:
    from ..app.config import AppConfig
    from ..client.interface import IExchangeClient, ILedgerClient


@dataclass(slots=True)
class AppContext:
    """Everything one engine instance owns, wired together once at startup."""

    cfg: "AppConfig"
    wall: WallClock
    exchange: "IExchangeClient"
    ledgers: Dict[Currency, "ILedgerClient"]
    oracle: PriceOracle
    executor: OrderExecutor
    scheduler: LimitOrderScheduler
    guard: AccessGuard
    service: OrderService
    store: StateStore
    ticker: Clock
    restored: bool = False

    def save(self) -> None:
        self.store.save(state_record(self.cfg, self.scheduler.snapshot()))


def build_context(
    cfg: "AppConfig",
    *,
    exchange: Optional["IExchangeClient"] = None,
    ledgers: Optional[Mapping[Currency, "ILedgerClient"]] = None,
    store: Optional[StateStore] = None,
    wall: Optional[WallClock] = None,
    logger: Optional[logging.Logger] = None,
) -> AppContext:
    """Assemble an ``AppContext``, restoring persisted state when present.

    A saved record overrides the configured identity (controller, self id,
    addresses) and brings back the pending limit orders.
    """
    log = logger or logging.getLogger("swapbot.core.context")
    store = store or StateStore(cfg.state_path)
    record = store.load()
    if record is not None:
        cfg = apply_identity(cfg, record)

    if exchange is None or ledgers is None:
        from ..client.factory import build_clients

        built_exchange, built_ledgers = build_clients(cfg)
        exchange = exchange or built_exchange
        ledgers = ledgers if ledgers is not None else built_ledgers
    ledger_map: Dict[Currency, "ILedgerClient"] = dict(ledgers)

    wall = wall or WallClock()
    resolve = cfg.token_address
    oracle = PriceOracle(exchange=exchange, ledgers=ledger_map, resolve_address=resolve)
    executor = OrderExecutor(
        exchange=exchange,
        oracle=oracle,
        resolve_address=resolve,
        recipient=cfg.self_id,
        clock=wall,
        deadline_secs=cfg.deadline_secs,
    )

    def persist() -> None:
        store.save(state_record(cfg, scheduler.snapshot()))

    scheduler = LimitOrderScheduler(
        executor=executor,
        oracle=oracle,
        clock=wall,
        tolerance=cfg.tolerance.limit,
        interval_secs=cfg.recheck_interval_secs,
        failure_policy=cfg.failure_policy,
        max_pending=cfg.max_pending,
        on_change=persist,
    )
    if record is not None:
        try:
            scheduler.restore(record.get("scheduler") or {})
        except (MalformedPayloadError, ValueError, TypeError) as exc:
            raise StateRestoreError(f"invalid scheduler state in {store.path}: {exc}") from exc

    guard = AccessGuard(cfg.controller)
    service = OrderService(
        guard=guard,
        executor=executor,
        scheduler=scheduler,
        oracle=oracle,
        exchange=exchange,
        ledgers=ledger_map,
        resolve_address=resolve,
        self_id=cfg.self_id,
        exchange_address=cfg.exchange_address,
        tolerance=cfg.tolerance,
    )
    ticker = Clock(cfg.tick_interval_secs, wall=wall)
    ticker.add_iterator(scheduler)
    log.info(
        "context_built",
        extra={"restored": record is not None, "pending": len(scheduler), "state_path": str(store.path)},
    )
    return AppContext(
        cfg=cfg,
        wall=wall,
        exchange=exchange,
        ledgers=ledger_map,
        oracle=oracle,
        executor=executor,
        scheduler=scheduler,
        guard=guard,
        service=service,
        store=store,
        ticker=ticker,
        restored=record is not None,
    )


__all__ = ["AppContext", "build_context"]
