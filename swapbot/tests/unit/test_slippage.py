"""Unit tests for slippage-bounded counter amounts."""

import math
from decimal import Decimal
from fractions import Fraction

import pytest

from swapbot.execution.errors import AmountOutOfRange
from swapbot.execution.models import GiveExact, TakeExact
from swapbot.execution.slippage import MAX_AMOUNT, TolerancePreset, bounded_counter_amount


def _floor(g, p, t):
    return math.floor(Fraction(g) / Fraction(p) * Fraction(t))


def _ceil(k, p, t):
    return math.ceil(Fraction(k) * Fraction(p) / Fraction(t))


class TestGiveExact:
    def test_market_example(self):
        """Test the market tolerance example."""
        assert bounded_counter_amount(GiveExact(1000), Decimal("2.0"), 0.99) == 495

    @pytest.mark.parametrize(
        "g,p,t",
        [
            (1000, "3", "0.99"),
            (10**18, "0.000123", "0.995"),
            (7, "2.5", "1"),
            (123456789, "1.0001", "0.5"),
            (0, "42", "0.99"),
            (11 * 10**76 + 1, "1", "0.995"),
            (MAX_AMOUNT, "3", "0.99"),
        ],
    )
    def test_floor_of_exact_ratio(self, g, p, t):
        """Test GiveExact floors the exact ratio."""
        result = bounded_counter_amount(GiveExact(g), Decimal(p), t)
        assert result == _floor(g, p, t)
        assert result <= math.floor(Fraction(g) / Fraction(p))

    def test_rounds_toward_zero(self):
        """Test GiveExact rounds toward zero."""
        # 10 / 3 * 0.99 = 3.3 -> 3
        assert bounded_counter_amount(GiveExact(10), Decimal(3), 0.99) == 3

    def test_exact_near_max_amount(self):
        """Test exact rounding for amounts near the maximum."""
        # 0.995 * (11e76 + 1) = 1.0945e77 + 0.995
        assert bounded_counter_amount(GiveExact(11 * 10**76 + 1), Decimal(1), 0.995) == 10945 * 10**73


class TestTakeExact:
    @pytest.mark.parametrize(
        "k,p,t",
        [
            (1000, "2", "0.99"),
            (10**18, "0.000123", "0.995"),
            (7, "2.5", "1"),
            (1, "1", "0.99"),
            (11 * 10**76 + 1, "1.001", "1"),
            (10**77 + 7, "1.1", "0.995"),
        ],
    )
    def test_ceil_of_exact_ratio(self, k, p, t):
        """Test TakeExact ceils the exact ratio."""
        result = bounded_counter_amount(TakeExact(k), Decimal(p), t)
        assert result == _ceil(k, p, t)
        assert result >= math.ceil(Fraction(k) * Fraction(p))

    def test_rounds_up(self):
        """Test TakeExact rounds up."""
        # 1000 * 2 / 0.99 = 2020.20... -> 2021
        assert bounded_counter_amount(TakeExact(1000), Decimal(2), 0.99) == 2021

    def test_exact_near_max_amount(self):
        """Test exact rounding for amounts near the maximum."""
        # 1.001 * (11e76 + 1) = 1.1011e77 + 1.001
        assert bounded_counter_amount(TakeExact(11 * 10**76 + 1), Decimal("1.001"), 1) == 11011 * 10**73 + 2


class TestValidation:
    @pytest.mark.parametrize("tolerance", [0, -0.1, 1.01, float("nan")])
    def test_tolerance_outside_unit_interval(self, tolerance):
        """Test tolerance outside (0, 1] is rejected."""
        with pytest.raises(ValueError):
            bounded_counter_amount(GiveExact(1), Decimal(1), tolerance)

    @pytest.mark.parametrize("price", [Decimal(0), Decimal(-1), Decimal("NaN"), Decimal("Infinity")])
    def test_price_must_be_positive_and_finite(self, price):
        """Test invalid prices are rejected."""
        with pytest.raises(AmountOutOfRange):
            bounded_counter_amount(GiveExact(1), price, 0.99)

    def test_result_above_max_amount(self):
        """Test bounds above the maximum amount."""
        with pytest.raises(AmountOutOfRange):
            bounded_counter_amount(TakeExact(MAX_AMOUNT), Decimal(2), 1)

    def test_presets(self):
        """Test the tolerance presets."""
        preset = TolerancePreset()
        assert preset.market == 0.99
        assert preset.limit == 0.995
        assert preset.limit > preset.market
        with pytest.raises(ValueError):
            TolerancePreset(market=0)
