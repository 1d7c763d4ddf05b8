# API Routes

from .cart import router as cart_router
from .checkout import router as checkout_router
from .deposit import router as deposit_router

__all__ = ["cart_router", "checkout_router", "deposit_router"]
