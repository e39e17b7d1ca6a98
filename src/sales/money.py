"""Decimal money helpers.

Amounts are stored on aggregates as decimal strings with two minor-unit
digits ("25.50") and handled as ``Decimal`` everywhere else.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

MINOR_UNIT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value) -> Decimal:
    """Coerce a number or numeric string to a Decimal rounded to the minor unit."""
    if isinstance(value, float):
        value = repr(value)
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, TypeError) as exc:
        raise ValueError(f"Not a monetary amount: {value!r}") from exc
    if not amount.is_finite():
        raise ValueError(f"Not a monetary amount: {value!r}")
    return amount.quantize(MINOR_UNIT, rounding=ROUND_HALF_UP)


def format_money(value) -> str:
    return str(to_money(value))


def line_amount(quantity: int, unit_price) -> Decimal:
    return to_money(to_money(unit_price) * quantity)


def sum_lines(lines) -> Decimal:
    """Exact sum of ``(quantity, unit_price)`` pairs."""
    return to_money(sum((line_amount(quantity, price) for quantity, price in lines), ZERO))


def to_minor_units(value) -> int:
    """25.50 -> 2550, as payment gateways expect."""
    return int(to_money(value) * 100)
