# common/money.py

"""
MONEY + QUANTITY NORMALIZERS

Hard rules:
- Money is Decimal, 2dp, ROUND_HALF_UP.
- Quantities and points are whole integers.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from common.exceptions import ValidationError

TWOPLACES = Decimal("0.01")
ZERO = Decimal("0.00")


def money(v) -> Decimal:
    if v is None or v == "":
        return ZERO
    try:
        return Decimal(str(v)).quantize(TWOPLACES, rounding=ROUND_HALF_UP)
    except InvalidOperation as exc:
        raise ValidationError(f"invalid money value: {v!r}") from exc


def to_int_qty(value, *, field_name: str = "quantity") -> int:
    if value is None or value == "":
        return 0

    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a whole integer unit")

    if isinstance(value, int):
        return value

    if isinstance(value, str):
        s = value.strip()
        if s.lstrip("-").isdigit():
            return int(s)

    raise ValidationError(f"{field_name} must be a whole integer unit")


def percent_of(amount, pct) -> Decimal:
    return money(money(amount) * Decimal(str(pct)) / Decimal("100"))


def earned_points(total, *, currency_unit, points_per_unit) -> int:
    """floor(total / currency_unit) * points_per_unit, as a whole number."""
    currency_unit = Decimal(str(currency_unit or 0))
    points_per_unit = Decimal(str(points_per_unit or 0))
    total = money(total)

    if currency_unit <= 0 or points_per_unit <= 0 or total <= ZERO:
        return 0

    units = int(total // currency_unit)
    return int(units * points_per_unit)
