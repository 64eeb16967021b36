"""
Values -- Decimal money helpers shared by every layer.

Responsibility:
    One place that decides how amounts are parsed, rounded and compared.
    The ledger is single-currency; amounts are plain ``Decimal`` quantized
    to cents with ROUND_HALF_UP.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - Decimal-only arithmetic: floats are converted through ``str`` so that
      ``0.1`` becomes ``Decimal("0.1")``, never its binary expansion.
    - Rounding happens at the boundaries (stored totals, GL amounts), not
      inside intermediate sums.

Failure modes:
    - ValueError when a value cannot be parsed as a finite number (NaN and
      infinities are rejected).
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

ZERO = Decimal("0")
CENT = Decimal("0.01")

# Largest |debit - credit| accepted as rounding noise in a balanced journal.
BALANCE_TOLERANCE = Decimal("0.01")


def _finite(parsed: Decimal, raw: Any) -> Decimal:
    if not parsed.is_finite():
        raise ValueError(f"Invalid amount: {raw!r} is not a finite number")
    return parsed


def to_decimal(value: Any) -> Decimal:
    """
    Parse a value into a Decimal without rounding.

    ``None`` and empty strings parse as zero, matching how nullable salary
    and amount columns are treated.
    """
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return _finite(value, value)
    if isinstance(value, bool):
        raise ValueError(f"Cannot use boolean as amount: {value!r}")
    if isinstance(value, (int, float)):
        return _finite(Decimal(str(value)), value)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return ZERO
        try:
            parsed = Decimal(text)
        except InvalidOperation as exc:
            raise ValueError(f"Invalid amount: {value!r}") from exc
        return _finite(parsed, value)
    raise ValueError(f"Cannot convert {type(value).__name__} to amount")


def round_money(value: Any) -> Decimal:
    """Quantize to cents with ROUND_HALF_UP."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def money_str(value: Any) -> str:
    """Render an amount as a fixed two-decimal string ("5000.00")."""
    return f"{round_money(value):.2f}"


def within_tolerance(a: Decimal, b: Decimal, tolerance: Decimal = BALANCE_TOLERANCE) -> bool:
    """True when ``|a - b| <= tolerance``."""
    return abs(to_decimal(a) - to_decimal(b)) <= tolerance
