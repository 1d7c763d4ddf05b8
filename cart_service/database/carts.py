"""Ephemeral cart storage"""

import time
import uuid
from dataclasses import dataclass
from typing import Callable, Optional

from ..models.cart import CartItem, CartRecord


def now_ms() -> int:
    """Current time in epoch milliseconds"""
    return int(time.time() * 1000)


def generate_cart_id(clock: Callable[[], int] = now_ms) -> str:
    return f"cart_{clock()}_{uuid.uuid4().hex[:8]}"


def generate_line_id(clock: Callable[[], int] = now_ms) -> str:
    return f"line_{clock()}_{uuid.uuid4().hex[:8]}"


@dataclass
class _StoredCart:
    record: CartRecord
    expires_at: int


class CartDatabase:
    """
    In-memory cart storage keyed by cart ID.

    Records are copied on the way in and out, so a caller only changes the
    stored cart through `save_cart`. Concurrent saves to the same ID are
    last-writer-wins.
    """

    DEFAULT_TTL_SECONDS = 7 * 24 * 60 * 60

    def __init__(
        self,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        clock: Callable[[], int] = now_ms,
    ):
        self.ttl_ms = ttl_seconds * 1000
        self.clock = clock
        self.carts: dict[str, _StoredCart] = {}

    def create_cart(self, cart_id: Optional[str] = None) -> CartRecord:
        """Create an empty cart under `cart_id`, or a generated ID"""
        now = self.clock()
        cart = CartRecord(
            id=cart_id or generate_cart_id(self.clock),
            items=[],
            created_at=now,
            updated_at=now,
        )
        self.carts[cart.id] = _StoredCart(
            record=cart.model_copy(deep=True),
            expires_at=now + self.ttl_ms,
        )
        self._cleanup()
        return cart

    def get_cart(self, cart_id: str) -> Optional[CartRecord]:
        """Get a cart by ID; expired and unknown carts are both None"""
        stored = self.carts.get(cart_id)
        if not stored:
            return None

        if self.clock() > stored.expires_at:
            self.carts.pop(cart_id, None)
            return None

        return stored.record.model_copy(deep=True)

    def save_cart(self, cart: CartRecord) -> CartRecord:
        """Replace (or create) the stored cart, bumping updated_at"""
        now = self.clock()
        updated = cart.model_copy(update={"updated_at": now}, deep=True)
        self.carts[updated.id] = _StoredCart(
            record=updated.model_copy(deep=True),
            expires_at=now + self.ttl_ms,
        )
        return updated

    def add_item(self, cart: CartRecord, item: CartItem) -> CartRecord:
        """
        Append an item and persist.

        Does not check for duplicate external items; callers must reject
        those before calling this.
        """
        updated = cart.model_copy(update={"items": [*cart.items, item]})
        return self.save_cart(updated)

    def update_item_quantity(
        self,
        cart_id: str,
        line_id: str,
        quantity: int,
    ) -> Optional[CartRecord]:
        """Set a line's quantity; zero or less removes the line"""
        cart = self.get_cart(cart_id)
        if not cart:
            return None

        items = [
            item.model_copy(update={"quantity": max(quantity, 0)})
            if item.id == line_id
            else item
            for item in cart.items
        ]
        items = [item for item in items if item.quantity > 0]
        return self.save_cart(cart.model_copy(update={"items": items}))

    def remove_item(self, cart_id: str, line_id: str) -> Optional[CartRecord]:
        """Remove a line from the cart"""
        cart = self.get_cart(cart_id)
        if not cart:
            return None

        items = [item for item in cart.items if item.id != line_id]
        return self.save_cart(cart.model_copy(update={"items": items}))

    def delete_cart(self, cart_id: str) -> bool:
        """Delete a cart"""
        return self.carts.pop(cart_id, None) is not None

    def _cleanup(self) -> None:
        """Drop expired carts"""
        now = self.clock()
        expired = [cid for cid, stored in self.carts.items() if now > stored.expires_at]
        for cid in expired:
            del self.carts[cid]
