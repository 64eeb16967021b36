"""
Tests for the pro-rated rental engine.

Each month is priced at ``monthly_rate / days in that month`` per day and
the sum is rounded once.
"""

from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from backoffice_engines.rental import rental_cost


class TestRentalCost:
    def test_range_across_30_and_31_day_months(self):
        """Day 20 of June to day 10 of July at 3000/month."""
        expected = (
            Decimal(11) / Decimal(30) * Decimal("3000") + Decimal(10) / Decimal(31) * Decimal("3000")
        ).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)

        result = rental_cost(date(2023, 6, 20), date(2023, 7, 10), Decimal("3000"))

        assert result == expected
        assert result == Decimal("2067.74")

    def test_full_month_costs_the_monthly_rate(self):
        assert rental_cost(date(2023, 2, 1), date(2023, 2, 28), Decimal("2800")) == Decimal("2800.00")

    def test_single_day(self):
        assert rental_cost(date(2023, 4, 10), date(2023, 4, 10), Decimal("3000")) == Decimal("100.00")

    def test_reversed_range_costs_nothing(self):
        assert rental_cost(date(2023, 7, 10), date(2023, 6, 20), Decimal("3000")) == Decimal("0.00")

    def test_missing_bound_costs_nothing(self):
        assert rental_cost(None, date(2023, 6, 20), Decimal("3000")) == Decimal("0.00")

    def test_string_rate_is_accepted(self):
        assert rental_cost(date(2023, 4, 1), date(2023, 4, 30), "1500.50") == Decimal("1500.50")

    def test_emits_engine_trace(self, captured_logs):
        rental_cost(date(2023, 4, 1), date(2023, 4, 30), Decimal("1500"))

        traces = [r for r in captured_logs() if r["message"] == "ENGINE_TRACE"]
        assert traces
        assert traces[-1]["engine_name"] == "rental"
        assert len(traces[-1]["input_fingerprint"]) == 16
