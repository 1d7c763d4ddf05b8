# Cart Service Models

from .cart import (
    ItemSource,
    SourceType,
    Money,
    CartItemAttribute,
    PlatformNativeItem,
    ExternalItem,
    CartItem,
    CartRecord,
    AddItemRequest,
    UpdateItemRequest,
    RemoveItemRequest,
    CreateCartRequest,
)
from .cart_view import CartView, CartLineView, CartResponse
from .catalog import ExternalCatalogHit, VariantInput
from .checkout import (
    CompiledCheckoutLine,
    DepositPlan,
    VariantAvailability,
    CheckoutRequest,
    CheckoutResponse,
    DepositSession,
    DepositSessionItem,
    DepositSessionCreateRequest,
    DepositSessionResponse,
)

__all__ = [
    "ItemSource",
    "SourceType",
    "Money",
    "CartItemAttribute",
    "PlatformNativeItem",
    "ExternalItem",
    "CartItem",
    "CartRecord",
    "AddItemRequest",
    "UpdateItemRequest",
    "RemoveItemRequest",
    "CreateCartRequest",
    "CartView",
    "CartLineView",
    "CartResponse",
    "ExternalCatalogHit",
    "VariantInput",
    "CompiledCheckoutLine",
    "DepositPlan",
    "VariantAvailability",
    "CheckoutRequest",
    "CheckoutResponse",
    "DepositSession",
    "DepositSessionItem",
    "DepositSessionCreateRequest",
    "DepositSessionResponse",
]
