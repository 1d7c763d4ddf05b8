"""Decimal helpers for price strings"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional, Union

CENTS = Decimal("0.01")


def parse_amount(amount: Union[str, float, int, Decimal, None]) -> Optional[Decimal]:
    """Parse a price; None when it is missing or not a finite number"""
    if amount is None or amount == "":
        return None
    try:
        value = Decimal(str(amount).strip())
    except InvalidOperation:
        return None
    if not value.is_finite():
        return None
    return value


def round_cents(value: Decimal) -> Decimal:
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def format_amount(value: Decimal) -> str:
    """Two-decimal string, e.g. Decimal("550") -> "550.00" """
    return str(round_cents(value))
