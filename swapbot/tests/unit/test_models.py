"""Unit tests for the order model and its dict serialization."""

from decimal import Decimal

import pytest

from swapbot.execution.errors import MalformedPayloadError
from swapbot.execution.models import (
    Currency,
    GiveExact,
    LessThan,
    LimitOrder,
    MarketOrder,
    MoreThan,
    PriceQuote,
    ScheduledTask,
    TakeExact,
    describe_condition,
    limit_order_from_dict,
    order_from_dict,
    order_to_dict,
)


class TestDirectives:
    def test_rejects_negative_and_non_int_amounts(self):
        """Test directive amount validation."""
        with pytest.raises(ValueError):
            GiveExact(-1)
        with pytest.raises(ValueError):
            TakeExact(1.5)
        with pytest.raises(ValueError):
            GiveExact(True)

    def test_zero_and_huge_amounts_allowed(self):
        """Test zero and maximum amounts are accepted."""
        assert GiveExact(0).amount == 0
        assert TakeExact(2**200).amount == 2**200

    def test_market_order_requires_distinct_currencies(self):
        """Test market orders need two currencies."""
        with pytest.raises(ValueError):
            MarketOrder(Currency.XTC, Currency.XTC, GiveExact(1))


class TestConditions:
    @pytest.mark.parametrize(
        "price,expected",
        [("100.0", True), ("100.01", True), ("99.99", False)],
    )
    def test_more_than_boundary(self, price, expected):
        """Test MoreThan is strict at the threshold."""
        assert MoreThan(100.0).is_met(Decimal(price)) is expected

    @pytest.mark.parametrize(
        "price,expected",
        [("100.0", True), ("99.99", True), ("100.01", False)],
    )
    def test_less_than_boundary(self, price, expected):
        """Test LessThan is strict at the threshold."""
        assert LessThan(100.0).is_met(Decimal(price)) is expected

    def test_threshold_must_be_finite(self):
        """Test non-finite thresholds are rejected."""
        with pytest.raises(ValueError):
            MoreThan(float("nan"))
        with pytest.raises(ValueError):
            LessThan(float("inf"))

    def test_describe_condition(self):
        """Test condition descriptions."""
        assert describe_condition(MoreThan(50.0)) == ">=50.0"
        assert describe_condition(LessThan(1.5)) == "<=1.5"
        assert describe_condition(None) == "-"


class TestSerialization:
    def test_limit_order_dict_form(self):
        """Test the stored dict form of a limit order."""
        order = LimitOrder(MoreThan(50.0), MarketOrder(Currency.WICP, Currency.XTC, TakeExact(12345678901234567890)))
        payload = order_to_dict(order)
        assert payload["type"] == "limit"
        assert payload["condition"] == {"kind": "more_than", "threshold": 50.0}
        assert payload["market_order"]["directive"] == {"kind": "take_exact", "amount": "12345678901234567890"}
        assert order_from_dict(payload) == order

    def test_market_order_is_not_a_limit_payload(self):
        """Test a market order payload is malformed."""
        payload = order_to_dict(MarketOrder(Currency.XTC, Currency.WICP, GiveExact(5)))
        assert order_from_dict(payload).directive == GiveExact(5)
        with pytest.raises(MalformedPayloadError):
            limit_order_from_dict(payload)

    @pytest.mark.parametrize(
        "payload",
        [
            None,
            {},
            {"type": "swap"},
            {"type": "limit", "condition": {"kind": "between", "threshold": 1}},
            {
                "type": "limit",
                "condition": {"kind": "more_than", "threshold": 1},
                "market_order": {"give": "BTC", "take": "XTC", "directive": {"kind": "give_exact", "amount": "1"}},
            },
            {
                "type": "limit",
                "condition": {"kind": "less_than", "threshold": 1},
                "market_order": {"give": "XTC", "take": "WICP", "directive": {"kind": "give_exact", "amount": "-3"}},
            },
        ],
    )
    def test_malformed_payloads(self, payload):
        """Test malformed payloads raise MalformedPayloadError."""
        with pytest.raises(MalformedPayloadError):
            order_from_dict(payload)

    def test_scheduled_task_record(self):
        """Test the scheduled task record fields."""
        task = ScheduledTask(task_id=7, handle=3, payload={"type": "limit"}, next_fire_time=10.0, interval=10.0)
        assert task.is_due(10.0)
        assert not task.is_due(9.99)
        assert ScheduledTask.from_dict(task.to_dict()) == task
        with pytest.raises(MalformedPayloadError):
            ScheduledTask.from_dict({"task_id": "x"})


def test_unit_price_scales_by_decimals():
    quote = PriceQuote(price=Decimal("2"), give_decimals=8, take_decimals=12)
    assert quote.unit_price == Decimal("0.0002")
    same = PriceQuote(price=Decimal("2"), give_decimals=12, take_decimals=12)
    assert same.unit_price == Decimal("2")
