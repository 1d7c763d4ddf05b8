"""
Cart View Compiler

Turns a stored CartRecord into the display shape the storefront renders.
Totals here are for display only; checkout totals come from the line builder.
"""

from decimal import Decimal

from ..models.cart import CartRecord, Money
from ..models.cart_view import (
    CartCost,
    CartLineView,
    CartView,
    LineCost,
    MerchandiseView,
    ProductImage,
    ProductView,
)
from .money import format_amount, parse_amount

DEFAULT_CURRENCY = "USD"


def _empty_view(cart_id: str) -> CartView:
    zero = Money(amount="0.00", currency_code=DEFAULT_CURRENCY)
    return CartView(
        id=cart_id,
        total_quantity=0,
        cost=CartCost(subtotal_amount=zero, total_amount=zero.model_copy()),
        lines=[],
    )


def compile_cart_view(cart: CartRecord) -> CartView:
    """
    Compile a cart into its display view.

    The currency comes from the first item and is applied to every line;
    mixed-currency carts are summed as if they shared it. Quantities below
    one display as one. Does not modify `cart`.
    """
    if not cart.items:
        return _empty_view(cart.id)

    currency_code = cart.items[0].unit_price.currency_code or DEFAULT_CURRENCY
    total_quantity = 0
    subtotal = Decimal("0")
    lines: list[CartLineView] = []

    for item in cart.items:
        quantity = max(item.quantity, 1)
        total_quantity += quantity
        unit_price = parse_amount(item.unit_price.amount) or Decimal("0")
        line_total = unit_price * quantity
        subtotal += line_total

        external_id = getattr(item, "external_id", None)
        merchandise_id = item.merchandise_ref or external_id or item.id

        lines.append(
            CartLineView(
                id=item.id,
                quantity=quantity,
                attributes=[a.model_copy() for a in item.attributes],
                merchandise=MerchandiseView(
                    id=merchandise_id,
                    title=item.title,
                    price=Money(amount=item.unit_price.amount, currency_code=currency_code),
                    product=ProductView(
                        id=item.product_handle or merchandise_id,
                        title=item.title,
                        handle=item.product_handle or "",
                        images=[ProductImage(url=item.image_url, alt_text=item.title)],
                    ),
                ),
                cost=LineCost(
                    total_amount=Money(
                        amount=format_amount(line_total),
                        currency_code=currency_code,
                    ),
                ),
            )
        )

    total = Money(amount=format_amount(subtotal), currency_code=currency_code)
    return CartView(
        id=cart.id,
        total_quantity=total_quantity,
        cost=CartCost(subtotal_amount=total, total_amount=total.model_copy()),
        lines=lines,
    )
