from __future__ import annotations

import argparse
import asyncio
import json
import os
from typing import Any, List, Optional, Sequence

from swapbot.core.context import AppContext, build_context
from swapbot.core.lifecycle import LifecycleController
from swapbot.execution.errors import SwapBotError
from swapbot.execution.models import (
    Currency,
    GiveExact,
    LessThan,
    LimitOrder,
    MarketOrder,
    MoreThan,
    OrderDirective,
    TakeExact,
    TargetPriceCondition,
    order_to_dict,
)
from swapbot.utils.logging import get_logger, setup_logging
from .config import FAILURE_POLICIES, AppConfig, load_config


def _emit(payload: Any) -> None:
    print(json.dumps(payload, indent=2, default=str))


def _directive(args: argparse.Namespace) -> OrderDirective:
    if args.give_exact is not None:
        return GiveExact(args.give_exact)
    return TakeExact(args.take_exact)


def _condition(args: argparse.Namespace) -> TargetPriceCondition:
    if args.more_than is not None:
        return MoreThan(args.more_than)
    return LessThan(args.less_than)


async def run(cfg: AppConfig, *, max_ticks: Optional[int] = None) -> None:
    logger = get_logger(__name__)
    ctx = build_context(cfg)
    lifecycle = LifecycleController(ctx=ctx)
    await lifecycle.start()
    try:
        logger.info(
            "engine_start",
            extra={
                "self_id": ctx.cfg.self_id,
                "pending": len(ctx.scheduler),
                "tick_interval": ctx.cfg.tick_interval_secs,
                "recheck_interval": ctx.cfg.recheck_interval_secs,
            },
        )
        await ctx.ticker.start(max_ticks=max_ticks)
    finally:
        logger.info("engine_stop", extra={"ticks": ctx.ticker.ticks})
        await lifecycle.stop()


async def _with_clients(ctx: AppContext, coro_factory) -> Any:
    lifecycle = LifecycleController(ctx=ctx, persist=False)
    await lifecycle.start()
    try:
        return await coro_factory()
    finally:
        await lifecycle.stop()


async def dispatch(args: argparse.Namespace, cfg: AppConfig) -> None:
    if args.command == "run":
        await run(cfg, max_ticks=args.max_ticks)
        return

    ctx = build_context(cfg)
    caller = args.caller or ctx.cfg.controller

    if args.command == "price":
        price = await _with_clients(ctx, lambda: ctx.service.price(args.give, args.take))
        _emit({"give": args.give.value, "take": args.take.value, "price": str(price)})
    elif args.command == "submit-market":
        order = MarketOrder(args.give, args.take, _directive(args))
        await _with_clients(ctx, lambda: ctx.service.submit(caller, order))
        _emit({"submitted": "market", "order": order_to_dict(order)})
    elif args.command == "submit-limit":
        order = LimitOrder(_condition(args), MarketOrder(args.give, args.take, _directive(args)))
        handle = await ctx.service.submit(caller, order)
        _emit({"submitted": "limit", "handle": handle})
    elif args.command == "pending":
        _emit([task.to_dict() for task in ctx.service.pending()])
    elif args.command == "cancel":
        cancelled = await ctx.service.cancel(caller, args.handle)
        _emit({"handle": args.handle, "cancelled": cancelled})
    else:
        raise ValueError(f"unknown command {args.command!r}")


def _currency(value: str) -> Currency:
    try:
        return Currency(value.upper())
    except ValueError:
        raise argparse.ArgumentTypeError(f"unknown currency {value!r}; choose from {[c.value for c in Currency]}") from None


def _add_order_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("give", type=_currency, help="currency given, e.g. WICP")
    parser.add_argument("take", type=_currency, help="currency taken, e.g. XTC")
    side = parser.add_mutually_exclusive_group(required=True)
    side.add_argument("--give-exact", type=int, help="exact amount given, native units")
    side.add_argument("--take-exact", type=int, help="exact amount taken, native units")


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="swapbot market/limit swap engine")
    parser.add_argument("--config", dest="config_path")
    parser.add_argument("--controller", help="identity allowed to submit and cancel")
    parser.add_argument("--self-id", dest="self_id", help="identity the engine acts as")
    parser.add_argument("--state", dest="state_path", help="state file path")
    parser.add_argument("--failure-policy", choices=FAILURE_POLICIES)
    parser.add_argument("--caller", help="caller identity for privileged commands (default: controller)")
    parser.add_argument("--log-level", default=os.getenv("SWAPBOT_LOG_LEVEL", "INFO"))
    sub = parser.add_subparsers(dest="command", required=True)

    run_p = sub.add_parser("run", help="tick the limit order scheduler until interrupted")
    run_p.add_argument("--max-ticks", type=int)

    price_p = sub.add_parser("price", help="print the give-per-take price")
    price_p.add_argument("give", type=_currency)
    price_p.add_argument("take", type=_currency)

    market_p = sub.add_parser("submit-market", help="execute a market swap now")
    _add_order_args(market_p)

    limit_p = sub.add_parser("submit-limit", help="park a limit order in the state file")
    _add_order_args(limit_p)
    cond = limit_p.add_mutually_exclusive_group(required=True)
    cond.add_argument("--more-than", type=float, help="trigger when price >= threshold")
    cond.add_argument("--less-than", type=float, help="trigger when price <= threshold")

    sub.add_parser("pending", help="list pending limit orders")

    cancel_p = sub.add_parser("cancel", help="cancel a pending limit order")
    cancel_p.add_argument("handle", type=int)
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    setup_logging(args.log_level)
    logger = get_logger(__name__)
    cfg = load_config(
        config_path=args.config_path,
        controller=args.controller,
        self_id=args.self_id,
        state_path=args.state_path,
        failure_policy=args.failure_policy,
    )
    try:
        asyncio.run(dispatch(args, cfg))
    except SwapBotError as exc:
        logger.error("command_failed", extra={"command": args.command, "error": str(exc)})
        raise SystemExit(1) from exc
    except KeyboardInterrupt:
        logger.info("interrupted", extra={"command": args.command})


if __name__ == "__main__":
    main()
