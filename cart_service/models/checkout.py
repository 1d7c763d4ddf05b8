"""Checkout and partial-payment models"""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from .cart import CartItemAttribute
from .cart_view import CartView


class CompiledCheckoutLine(BaseModel):
    """Platform-ready checkout line"""
    merchandise_id: str = Field(min_length=1)
    quantity: int = Field(gt=0)
    attributes: list[CartItemAttribute] = Field(default_factory=list)


class DepositPlan(BaseModel):
    """Split of a cart total into deposit and remaining balance"""
    total_amount: Decimal
    deposit_amount: Decimal
    remaining_amount: Decimal
    currency_code: str = "USD"

    @property
    def allows_partial_payment(self) -> bool:
        return self.remaining_amount > 0


class VariantAvailability(BaseModel):
    id: str
    available: bool
    quantity: Optional[int] = None


class CheckoutRequest(BaseModel):
    """Request to start checkout from an internal cart or a client snapshot"""
    cart_id: Optional[str] = None
    cart: Optional[CartView] = None


class CheckoutResponse(BaseModel):
    checkout_url: str


class DepositSessionItem(BaseModel):
    variant_id: str
    quantity: int


class DepositSession(BaseModel):
    """Partial-payment session backed by a platform draft order"""
    session_id: str
    customer_id: Optional[str] = None
    items: list[DepositSessionItem]
    total_amount: Decimal
    deposit_amount: Decimal
    remaining_amount: Decimal
    currency_code: str = "USD"
    draft_order_id: str
    created_at: int
    expires_at: int


class DepositSessionCreateRequest(BaseModel):
    cart_id: Optional[str] = None
    cart: Optional[CartView] = None
    customer_id: Optional[str] = None


class DepositSessionResponse(BaseModel):
    session_id: str
    deposit_session_url: str
    plan: DepositPlan
