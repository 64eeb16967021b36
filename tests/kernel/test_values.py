"""Tests for Decimal money helpers."""

from decimal import Decimal

import pytest

from backoffice_kernel.domain.values import (
    ZERO,
    money_str,
    round_money,
    to_decimal,
    within_tolerance,
)


class TestToDecimal:
    @pytest.mark.parametrize("value", [None, "", "   "])
    def test_blank_is_zero(self, value):
        assert to_decimal(value) == ZERO

    def test_float_goes_through_str(self):
        assert to_decimal(0.1) == Decimal("0.1")

    def test_int(self):
        assert to_decimal(5000) == Decimal("5000")

    def test_bool_rejected(self):
        with pytest.raises(ValueError):
            to_decimal(True)

    def test_garbage_rejected(self):
        with pytest.raises(ValueError, match="Invalid amount"):
            to_decimal("12abc")

    @pytest.mark.parametrize("value", ["NaN", "Infinity", "-inf", Decimal("NaN"), float("inf")])
    def test_non_finite_rejected(self, value):
        with pytest.raises(ValueError, match="not a finite number"):
            to_decimal(value)

    def test_unsupported_type(self):
        with pytest.raises(ValueError):
            to_decimal([1])


class TestRounding:
    @pytest.mark.parametrize(
        "value,expected",
        [
            ("2067.741935", "2067.74"),
            ("0.005", "0.01"),
            ("0.004", "0.00"),
            ("-0.005", "-0.01"),
            ("4750", "4750.00"),
        ],
    )
    def test_round_half_up(self, value, expected):
        assert round_money(value) == Decimal(expected)

    def test_money_str(self):
        assert money_str(Decimal("5000")) == "5000.00"
        assert money_str("3600.005") == "3600.01"


class TestTolerance:
    def test_one_cent_is_balanced(self):
        assert within_tolerance(Decimal("100.00"), Decimal("99.99"))

    def test_two_cents_is_not(self):
        assert not within_tolerance(Decimal("100.00"), Decimal("99.98"))
