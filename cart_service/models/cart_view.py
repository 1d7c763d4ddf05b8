"""Client-facing cart view models"""

from typing import Optional

from pydantic import BaseModel, Field

from .cart import CartItemAttribute, Money


class ProductImage(BaseModel):
    url: str
    alt_text: Optional[str] = None


class ProductView(BaseModel):
    id: str
    title: str
    handle: str = ""
    images: list[ProductImage] = Field(default_factory=list)


class MerchandiseView(BaseModel):
    """Variant as displayed on a cart line"""
    id: str
    title: str
    price: Money
    product: ProductView


class LineCost(BaseModel):
    total_amount: Money


class CartLineView(BaseModel):
    id: str
    quantity: int
    attributes: list[CartItemAttribute] = Field(default_factory=list)
    merchandise: MerchandiseView
    cost: LineCost


class CartCost(BaseModel):
    subtotal_amount: Money
    total_amount: Money
    total_tax_amount: Optional[Money] = None
    total_duty_amount: Optional[Money] = None


class CartView(BaseModel):
    """Display-ready cart; also accepted back from clients as a snapshot"""
    id: str
    checkout_url: str = ""
    total_quantity: int = 0
    cost: CartCost
    discount_codes: list[str] = Field(default_factory=list)
    lines: list[CartLineView] = Field(default_factory=list)


class CartResponse(BaseModel):
    """Cart API response"""
    cart_id: str
    cart: CartView
    message: Optional[str] = None
