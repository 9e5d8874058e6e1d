"""
Price utilities shared by the buffer, validator and bulk planner.

Money is handled as Decimal throughout; floats coming from JSON or
the database are converted through their string form.
"""

from decimal import Decimal
from typing import Optional, Union

Number = Union[Decimal, int, float, str]

HUNDRED = Decimal("100")
ZERO = Decimal("0")


def to_decimal(value: Number) -> Decimal:
    """
    Convert a number to Decimal without float artifacts.

    - 19.9 → Decimal("19.9")
    - "10" → Decimal("10")
    """
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def minimum_price(price: Number, max_discount_percent: Optional[Number]) -> Decimal:
    """
    Lowest price reachable with the maximum discount.

    price × (1 − maxDiscount/100). Display value only; nothing is
    validated against it. With no max discount the price itself is the
    lowest reachable price, so it is returned rather than 0.
    """
    price = to_decimal(price)
    if not max_discount_percent:
        return price
    return price * (1 - to_decimal(max_discount_percent) / HUNDRED)


def markup_percent(cost: Number, price: Number) -> Decimal:
    """Markup over cost in percent, 0 when cost is 0."""
    cost = to_decimal(cost)
    if cost == 0:
        return ZERO
    return (to_decimal(price) - cost) / cost * HUNDRED
