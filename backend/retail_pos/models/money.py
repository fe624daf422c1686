from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Any

CENT = Decimal("0.01")


def quantize_money(value: Any) -> Decimal:
    """Round to the currency minor unit, half-up."""
    if not isinstance(value, Decimal):
        value = Decimal(str(value if value is not None else 0))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def money_to_number(value: Any) -> float | None:
    """NUMERIC column value -> JSON number (None stays None)."""
    if value is None:
        return None
    return float(quantize_money(value))
