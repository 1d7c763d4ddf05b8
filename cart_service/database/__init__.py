# Database modules

from .carts import CartDatabase, generate_cart_id, generate_line_id, now_ms
from .deposit_sessions import DepositSessionDatabase, generate_session_id

__all__ = [
    "CartDatabase",
    "generate_cart_id",
    "generate_line_id",
    "now_ms",
    "DepositSessionDatabase",
    "generate_session_id",
]
