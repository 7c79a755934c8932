from __future__ import annotations

from collections.abc import Iterable, Mapping
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

MONEY_QUANT = Decimal("0.01")
WEIGHT_QUANT = Decimal("0.001")


def to_money(value: Decimal | int | float | str) -> Decimal:
    return Decimal(str(value)).quantize(MONEY_QUANT, rounding=ROUND_HALF_UP)


def to_weight(value: Decimal | int | float | str) -> Decimal:
    return Decimal(str(value)).quantize(WEIGHT_QUANT, rounding=ROUND_HALF_UP)


def line_total(kilos: Decimal | int | float | str, unit_price: Decimal | int | float | str) -> float:
    """kilos x price per kilo, rounded half-up to cents."""
    return float(to_money(to_weight(kilos) * to_money(unit_price)))


def margin_percent(sales: float, purchases: float) -> float:
    """(sales - purchases) / sales * 100, and exactly 0 when there are no sales."""
    if not sales:
        return 0.0
    return (sales - purchases) / sales * 100


def round_row(
    row: Mapping[str, Any],
    *,
    money: Iterable[str] = (),
    weight: Iterable[str] = (),
) -> dict[str, Any]:
    """
    Copy of an aggregate row with the named money and weight fields rounded.

    SUM/AVG over REAL columns carry binary float noise (0.1 + 0.2); the
    rounded values are returned as floats so they serialize as JSON numbers.
    Fields missing from the row are left out.
    """
    rounded = dict(row)
    for key in money:
        if key in rounded:
            rounded[key] = float(to_money(rounded[key] or 0))
    for key in weight:
        if key in rounded:
            rounded[key] = float(to_weight(rounded[key] or 0))
    return rounded
