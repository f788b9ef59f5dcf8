"""Limit order scheduler: pending task store, tick drain and re-arm loop.

Each limit order lives in the store as a single-shot ``ScheduledTask``. On a
tick every due task is removed from the store and evaluated in turn:

    PENDING_EVALUATION -> TRIGGERED -> EXECUTING -> SETTLED | FAILED
    PENDING_EVALUATION -> PENDING_EVALUATION (re-armed with a new task id)

A triggered order is consumed whatever the settlement outcome unless the
failure policy is ``"retry"``. The caller-facing handle (the first task id)
stays the same across re-arms.
"""

from __future__ import annotations

import asyncio
import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Callable, Dict, Iterable, List, Optional, Set, Tuple

from ..utils.idgen import TaskIdGenerator
from .errors import MalformedPayloadError, SchedulerFull, SwapBotError
from .executor import OrderExecutor
from .models import (
    LimitOrder,
    OrderEvent,
    OrderState,
    ScheduledTask,
    SettlementResult,
    describe_condition,
    limit_order_from_dict,
    order_to_dict,
)
from .price_oracle import PriceOracle

if TYPE_CHECKING:
    from ..core.clock import WallClock

JOURNAL_LIMIT = 1000


def split_due(now: float, tasks: Iterable[ScheduledTask]) -> Tuple[List[ScheduledTask], List[ScheduledTask]]:
    """Partition ``tasks`` into (due, still pending); due is ordered by fire time then id."""
    due: List[ScheduledTask] = []
    pending: List[ScheduledTask] = []
    for task in tasks:
        (due if task.is_due(now) else pending).append(task)
    due.sort(key=lambda t: (t.next_fire_time, t.task_id))
    return due, pending


class TaskStore:
    """In-memory pending task store indexed by task id and by handle."""

    def __init__(self) -> None:
        self._tasks: Dict[int, ScheduledTask] = {}
        self._by_handle: Dict[int, int] = {}

    def __len__(self) -> int:
        return len(self._tasks)

    def add(self, task: ScheduledTask) -> None:
        if task.task_id in self._tasks:
            raise ValueError(f"duplicate task id {task.task_id}")
        self._tasks[task.task_id] = task
        self._by_handle[task.handle] = task.task_id

    def remove_handle(self, handle: int) -> Optional[ScheduledTask]:
        task_id = self._by_handle.pop(handle, None)
        if task_id is None:
            return None
        return self._tasks.pop(task_id, None)

    def get_handle(self, handle: int) -> Optional[ScheduledTask]:
        task_id = self._by_handle.get(handle)
        return None if task_id is None else self._tasks.get(task_id)

    def drain_due(self, now: float) -> List[ScheduledTask]:
        due, pending = split_due(now, self._tasks.values())
        self._tasks = {t.task_id: t for t in pending}
        self._by_handle = {t.handle: t.task_id for t in pending}
        return due

    def tasks(self) -> List[ScheduledTask]:
        return sorted(self._tasks.values(), key=lambda t: (t.next_fire_time, t.task_id))


@dataclass(slots=True)
class TickOutcome:
    handle: int
    task_id: int
    state: OrderState
    price: Optional[Decimal] = None
    result: Optional[SettlementResult] = None
    error: Optional[str] = None


@dataclass(slots=True)
class _Journal:
    limit: int = JOURNAL_LIMIT
    entries: "OrderedDict[int, List[OrderEvent]]" = field(default_factory=OrderedDict)
    pinned: Optional[Callable[[int], bool]] = None

    def record(self, handle: int, event: OrderEvent) -> None:
        history = self.entries.get(handle)
        if history is None:
            history = self.entries[handle] = []
            self._evict(keep=handle)
        history.append(event)

    def _evict(self, keep: int) -> None:
        # oldest first; pinned handles stay even past the limit
        excess = len(self.entries) - self.limit
        if excess <= 0:
            return
        for handle in list(self.entries):
            if excess <= 0:
                break
            if handle == keep or (self.pinned is not None and self.pinned(handle)):
                continue
            del self.entries[handle]
            excess -= 1

    def get(self, handle: int) -> List[OrderEvent]:
        return list(self.entries.get(handle, []))


class LimitOrderScheduler:
    """Owns pending limit orders and evaluates them on each tick."""

    def __init__(
        self,
        *,
        executor: OrderExecutor,
        oracle: PriceOracle,
        clock: "WallClock",
        tolerance: float,
        interval_secs: float = 10.0,
        failure_policy: str = "drop",
        max_pending: Optional[int] = None,
        on_change: Optional[Callable[[], None]] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        if interval_secs <= 0:
            raise ValueError("interval_secs must be positive")
        if failure_policy not in ("drop", "retry"):
            raise ValueError(f"unsupported failure policy {failure_policy!r}")
        self._executor = executor
        self._oracle = oracle
        self._clock = clock
        self._tolerance = tolerance
        self._interval = float(interval_secs)
        self._failure_policy = failure_policy
        self._max_pending = max_pending
        self._on_change = on_change
        self._store = TaskStore()
        self._ids = TaskIdGenerator()
        self._journal = _Journal(pinned=self._is_live)
        self._tick_lock = asyncio.Lock()
        self._in_flight: Set[int] = set()
        self.log = logger or logging.getLogger("swapbot.execution.scheduler")

    # ------------------------------------------------------------------
    # Store operations

    def enqueue(self, order: LimitOrder) -> int:
        """Register ``order`` for evaluation on the next tick; returns its handle."""
        if not isinstance(order, LimitOrder):
            raise TypeError(f"expected LimitOrder, got {type(order).__name__}")
        if self._max_pending is not None and len(self._store) >= self._max_pending:
            raise SchedulerFull(f"pending store holds {len(self._store)} orders (limit {self._max_pending})")
        task_id = self._ids.next()
        task = ScheduledTask(
            task_id=task_id,
            handle=task_id,
            payload=order_to_dict(order),
            next_fire_time=self._clock.now(),
            interval=self._interval,
        )
        self._store.add(task)
        self._record(task.handle, OrderState.PENDING_EVALUATION, condition=describe_condition(order.condition))
        self.log.info(
            "limit_order_enqueued",
            extra={"handle": task.handle, "condition": describe_condition(order.condition)},
        )
        self._notify_change()
        return task.handle

    def cancel(self, handle: int) -> bool:
        """Remove a pending order.

        Only effective while the order sits in the store; an order already
        dequeued for the running tick is not affected and ``False`` is returned.
        """
        task = self._store.remove_handle(handle)
        if task is None:
            return False
        self._record(handle, OrderState.CANCELLED)
        self.log.info("limit_order_cancelled", extra={"handle": handle})
        self._notify_change()
        return True

    def pending(self) -> List[ScheduledTask]:
        return self._store.tasks()

    def __len__(self) -> int:
        return len(self._store)

    def status(self, handle: int) -> Optional[OrderState]:
        history = self._journal.get(handle)
        return history[-1].state if history else None

    def history(self, handle: int) -> List[OrderEvent]:
        return self._journal.get(handle)

    # ------------------------------------------------------------------
    # Tick processing

    async def on_tick(self, ts: Optional[float] = None) -> List[TickOutcome]:
        """Drain and evaluate every due task.

        Raises:
            MalformedPayloadError: a stored payload is not a valid limit order.
                The offending task is dropped; unprocessed due tasks go back
                to the store before the error propagates.
            Exception: any other error from a collaborator propagates after the
                order is re-armed (price lookup) or recorded FAILED (execution).
        """
        async with self._tick_lock:
            now = self._clock.now() if ts is None else ts
            due = self._store.drain_due(now)
            if not due:
                return []
            self.log.debug("tick_drained", extra={"due": len(due), "pending": len(self._store)})
            outcomes: List[TickOutcome] = []
            processed = 0
            self._in_flight = {t.handle for t in due}
            try:
                for task in due:
                    processed += 1
                    outcomes.append(await self._process(task))
            finally:
                for task in due[processed:]:
                    self._store.add(task)
                self._in_flight = set()
                self._notify_change()
            return outcomes

    async def _process(self, task: ScheduledTask) -> TickOutcome:
        try:
            order = limit_order_from_dict(task.payload)
        except MalformedPayloadError:
            self._record(task.handle, OrderState.FAILED, error="malformed payload")
            self.log.error("limit_order_malformed", extra={"handle": task.handle, "task_id": task.task_id})
            raise

        market_order = order.market_order
        condition = describe_condition(order.condition)
        try:
            price = await self._oracle.price(market_order.give_currency, market_order.take_currency)
        except SwapBotError as exc:
            self.log.warning(
                "limit_order_price_unavailable",
                extra={"handle": task.handle, "error": str(exc)},
            )
            self._rearm(task, error=str(exc))
            return TickOutcome(task.handle, task.task_id, OrderState.PENDING_EVALUATION, error=str(exc))
        except Exception as exc:
            self._rearm(task, error=repr(exc))
            self.log.error("limit_order_price_error", extra={"handle": task.handle, "error": repr(exc)})
            raise

        if not order.condition.is_met(price):
            self._rearm(task, price=price)
            self.log.debug(
                "limit_order_rearmed",
                extra={"handle": task.handle, "price": str(price), "condition": condition},
            )
            return TickOutcome(task.handle, task.task_id, OrderState.PENDING_EVALUATION, price=price)

        self._record(task.handle, OrderState.TRIGGERED, price=str(price))
        self.log.info(
            "limit_order_triggered",
            extra={"handle": task.handle, "price": str(price), "condition": condition},
        )
        self._record(task.handle, OrderState.EXECUTING)
        try:
            result = await self._executor.execute(market_order, tolerance=self._tolerance)
        except SwapBotError as exc:
            self._record(task.handle, OrderState.FAILED, error=str(exc))
            self.log.warning(
                "limit_order_failed",
                extra={"handle": task.handle, "error": str(exc), "policy": self._failure_policy},
            )
            if self._failure_policy == "retry":
                self._rearm(task, error=str(exc))
                return TickOutcome(task.handle, task.task_id, OrderState.PENDING_EVALUATION, price=price, error=str(exc))
            return TickOutcome(task.handle, task.task_id, OrderState.FAILED, price=price, error=str(exc))
        except Exception as exc:
            self._record(task.handle, OrderState.FAILED, error=repr(exc))
            self.log.error("limit_order_failed", extra={"handle": task.handle, "error": repr(exc)})
            raise

        self._record(task.handle, OrderState.SETTLED, **result.to_dict())
        self.log.info("limit_order_settled", extra={"handle": task.handle, "settled_amount": result.settled_amount})
        return TickOutcome(task.handle, task.task_id, OrderState.SETTLED, price=price, result=result)

    def _rearm(self, task: ScheduledTask, *, price: Optional[Decimal] = None, error: Optional[str] = None) -> ScheduledTask:
        rearmed = ScheduledTask(
            task_id=self._ids.next(),
            handle=task.handle,
            payload=task.payload,
            next_fire_time=self._clock.now() + task.interval,
            interval=task.interval,
        )
        self._store.add(rearmed)
        info: Dict[str, Any] = {"rearmed": True, "task_id": rearmed.task_id}
        if price is not None:
            info["price"] = str(price)
        if error is not None:
            info["error"] = error
        self._record(task.handle, OrderState.PENDING_EVALUATION, **info)
        return rearmed

    def _is_live(self, handle: int) -> bool:
        return handle in self._in_flight or self._store.get_handle(handle) is not None

    def _record(self, handle: int, state: OrderState, **info: Any) -> None:
        self._journal.record(handle, OrderEvent(state=state, ts=self._clock.now(), info=info))

    def _notify_change(self) -> None:
        if self._on_change is not None:
            self._on_change()

    # ------------------------------------------------------------------
    # Persistence

    def snapshot(self) -> Dict[str, Any]:
        return {
            "last_task_id": self._ids.last,
            "tasks": [task.to_dict() for task in self._store.tasks()],
        }

    def restore(self, data: Dict[str, Any]) -> int:
        """Load pending tasks from a snapshot; returns how many were restored."""
        tasks = [ScheduledTask.from_dict(raw) for raw in data.get("tasks", [])]
        store = TaskStore()
        for task in tasks:
            store.add(task)
        self._store = store
        watermark = max([int(data.get("last_task_id", 0))] + [t.task_id for t in tasks])
        self._ids.advance_past(watermark)
        for task in tasks:
            self._record(task.handle, OrderState.PENDING_EVALUATION, restored=True)
        self.log.info("scheduler_restored", extra={"pending": len(tasks), "last_task_id": watermark})
        return len(tasks)


__all__ = ["LimitOrderScheduler", "TaskStore", "TickOutcome", "split_due"]
