# Execution package exports

from .errors import (
    AccessDenied,
    AmountOutOfRange,
    ApplicationRejected,
    MalformedPayloadError,
    PairNotFound,
    RemoteCallFailed,
    SchedulerFull,
    SettlementFailed,
    StateRestoreError,
    SwapBotError,
)
from .executor import OrderExecutor
from .guard import AccessGuard
from .models import (
    Currency,
    GiveExact,
    LessThan,
    LimitOrder,
    MarketOrder,
    MoreThan,
    OrderState,
    ScheduledTask,
    TakeExact,
)
from .order_service import OrderService
from .price_oracle import PriceOracle
from .scheduler import LimitOrderScheduler, split_due
from .slippage import TolerancePreset, bounded_counter_amount

__all__ = [
    # Errors
    "SwapBotError",
    "RemoteCallFailed",
    "ApplicationRejected",
    "PairNotFound",
    "AmountOutOfRange",
    "SettlementFailed",
    "SchedulerFull",
    "AccessDenied",
    "MalformedPayloadError",
    "StateRestoreError",

    # Models
    "Currency",
    "GiveExact",
    "TakeExact",
    "MarketOrder",
    "MoreThan",
    "LessThan",
    "LimitOrder",
    "OrderState",
    "ScheduledTask",

    # Services
    "PriceOracle",
    "OrderExecutor",
    "LimitOrderScheduler",
    "OrderService",
    "AccessGuard",
    "TolerancePreset",
    "bounded_counter_amount",
    "split_due",
]
