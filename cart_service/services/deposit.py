"""Deposit / partial-payment amount derivation"""

from decimal import Decimal
from typing import Union

from ..models.checkout import DepositPlan
from .money import round_cents

DEPOSIT_RATIO = Decimal("0.30")
DEPOSIT_MINIMUM = Decimal("50.00")


def derive_deposit_plan(
    total_amount: Union[Decimal, float, int, str],
    currency_code: str = "USD",
    ratio: Union[Decimal, float, str] = DEPOSIT_RATIO,
    minimum: Union[Decimal, float, str] = DEPOSIT_MINIMUM,
) -> DepositPlan:
    """
    Split a total into deposit and remaining balance.

    deposit = max(total * ratio, minimum), rounded to cents. The remaining
    amount is not clamped: totals under the minimum give a negative balance,
    and callers decide whether to offer partial payment at all.
    """
    total = Decimal(str(total_amount))
    deposit = round_cents(max(total * Decimal(str(ratio)), Decimal(str(minimum))))
    remaining = round_cents(total - deposit)

    return DepositPlan(
        total_amount=round_cents(total),
        deposit_amount=deposit,
        remaining_amount=remaining,
        currency_code=currency_code,
    )
