"""Unit tests for the state file, context assembly and lifecycle."""

import json

import pytest

from swapbot.app.config import AppConfig
from swapbot.core.context import build_context
from swapbot.core.lifecycle import LifecycleController
from swapbot.core.persistence import STATE_VERSION, StateStore, apply_identity, state_record
from swapbot.execution.errors import AccessDenied, StateRestoreError
from swapbot.execution.models import Currency, GiveExact, LimitOrder, MarketOrder, MoreThan
from swapbot.tests.stubs import ADDRESSES, FakeClock, StubExchange, StubLedger


def _cfg(tmp_path, **overrides):
    values = dict(
        controller="ctl",
        self_id="me",
        token_addresses=dict(ADDRESSES),
        state_path=str(tmp_path / "state" / "swapbot.json"),
    )
    values.update(overrides)
    return AppConfig(**values)


def _context(cfg):
    exchange = StubExchange()
    ledgers = {c: StubLedger(ADDRESSES[c]) for c in Currency}
    return build_context(cfg, exchange=exchange, ledgers=ledgers, wall=FakeClock())


LIMIT = LimitOrder(MoreThan(50.0), MarketOrder(Currency.XTC, Currency.WICP, GiveExact(1000)))


class TestStateStore:
    def test_missing_file_loads_none(self, tmp_path):
        """Test loading a state file that does not exist."""
        assert StateStore(tmp_path / "absent.json").load() is None

    def test_save_and_load(self, tmp_path):
        """Test atomic save followed by load."""
        store = StateStore(tmp_path / "nested" / "state.json")
        store.save({"version": STATE_VERSION, "controller": "ctl"})
        assert store.load() == {"version": STATE_VERSION, "controller": "ctl"}
        assert [p.name for p in (tmp_path / "nested").iterdir()] == ["state.json"]

    @pytest.mark.parametrize("content", ["{not json", "[]", json.dumps({"version": 99})])
    def test_corrupt_file(self, tmp_path, content):
        """Test a corrupt state file raises a restore error."""
        path = tmp_path / "state.json"
        path.write_text(content, encoding="utf-8")
        with pytest.raises(StateRestoreError):
            StateStore(path).load()

    def test_persisted_identity_wins(self, tmp_path):
        """Test persisted identity overrides the config file."""
        cfg = _cfg(tmp_path)
        record = state_record(cfg, {"tasks": []})
        record["controller"] = "persisted-ctl"
        record["token_addresses"] = {"XTC": "persisted-xtc"}

        merged = apply_identity(cfg, record)

        assert merged.controller == "persisted-ctl"
        assert merged.token_address(Currency.XTC) == "persisted-xtc"
        assert merged.token_address(Currency.WICP) == ADDRESSES[Currency.WICP]

    def test_bad_identity(self, tmp_path):
        """Test an incomplete identity record is rejected."""
        with pytest.raises(StateRestoreError):
            apply_identity(_cfg(tmp_path), {"token_addresses": {"DOGE": "x"}})


class TestContext:
    @pytest.mark.asyncio
    async def test_first_start_saves_identity(self, tmp_path):
        """Test the first start writes the identity record."""
        cfg = _cfg(tmp_path)
        ctx = _context(cfg)
        assert ctx.restored is False

        lifecycle = LifecycleController(ctx=ctx)
        await lifecycle.start()
        assert ctx.exchange.started
        assert all(ledger.started for ledger in ctx.ledgers.values())
        record = ctx.store.load()
        assert record["controller"] == "ctl"
        assert record["scheduler"]["tasks"] == []

        await lifecycle.stop()
        assert not ctx.exchange.started

    @pytest.mark.asyncio
    async def test_pending_orders_survive_restart(self, tmp_path):
        """Test pending limit orders are restored after restart."""
        cfg = _cfg(tmp_path)
        ctx = _context(cfg)
        handle = await ctx.service.submit("ctl", LIMIT)

        # the enqueue itself persisted the store
        restarted = _context(_cfg(tmp_path, controller="new-config-ctl"))

        assert restarted.restored is True
        assert [t.handle for t in restarted.service.pending()] == [handle]
        assert restarted.cfg.controller == "ctl"
        with pytest.raises(AccessDenied):
            await restarted.service.submit("new-config-ctl", LIMIT)
        assert await restarted.service.submit("ctl", LIMIT) > handle

    def test_corrupt_scheduler_state(self, tmp_path):
        """Test corrupt scheduler state stops the restore."""
        cfg = _cfg(tmp_path)
        store = StateStore(cfg.state_path)
        record = state_record(cfg, {"last_task_id": 1, "tasks": [{"task_id": "nope"}]})
        store.save(record)
        with pytest.raises(StateRestoreError):
            _context(cfg)

    @pytest.mark.asyncio
    async def test_run_ticks_scheduler(self, tmp_path):
        """Test the running clock drives scheduler ticks."""
        ctx = _context(_cfg(tmp_path))
        ctx.exchange.set_price(Currency.XTC, Currency.WICP, 55.0)
        await ctx.service.submit("ctl", LIMIT)

        lifecycle = LifecycleController(ctx=ctx)
        await lifecycle.start()
        try:
            await ctx.ticker.start(max_ticks=1)
        finally:
            await lifecycle.stop()

        assert len(ctx.exchange.swaps) == 1
        assert ctx.store.load()["scheduler"]["tasks"] == []
