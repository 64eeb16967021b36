"""
Module: backoffice_engines.rental
Responsibility:
    Pro-rated rental cost of an asset over a date range, priced month by
    month at ``monthly_rate / days in that month`` per calendar day.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Both endpoints are inclusive.
    - Each month uses its own length, so a day in February costs more than
      a day in March for the same monthly rate.
    - The sum is rounded once, to cents, at the end.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from backoffice_engines.calendar import calendar_days_in_month, iter_month_segments
from backoffice_engines.tracer import traced_engine
from backoffice_kernel.domain.values import ZERO, round_money, to_decimal


@traced_engine("rental", "1.0", fingerprint_fields=("start", "end", "monthly_rate"))
def rental_cost(
    start: date | datetime | None,
    end: date | datetime | None,
    monthly_rate: Decimal | int | str | None,
) -> Decimal:
    """
    Pro-rated cost of renting at ``monthly_rate`` from ``start`` to ``end``.

    Returns ``0.00`` for a reversed range or a missing bound.
    """
    rate = to_decimal(monthly_rate)
    total = ZERO
    for year, month, seg_start, seg_end in iter_month_segments(start, end):
        days = (seg_end - seg_start).days + 1
        daily_rate = rate / Decimal(calendar_days_in_month(month, year))
        total += daily_rate * days
    return round_money(total)
