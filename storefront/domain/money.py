# storefront/domain/money.py
from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")
TOLERANCE = Decimal("0.01")


def to_money(value) -> Decimal:
    # przez str, zeby float nie wniosl bledu binarnego
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def from_minor_units(amount: int | None) -> Decimal:
    """Stripe podaje kwoty w centach."""
    return to_money(Decimal(amount or 0) / 100)


def money_close(a: Decimal, b: Decimal) -> bool:
    return abs(to_money(a) - to_money(b)) < TOLERANCE
