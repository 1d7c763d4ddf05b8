"""
Checkout Line Builder

Compiles an internal cart, or a client snapshot of one, into platform
checkout lines. The build is all-or-nothing: one line that cannot be priced
or resolved fails the whole build, and no lines are returned.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Optional

from ..database.carts import CartDatabase
from ..models.cart import CartItem, CartRecord, ExternalItem, PlatformNativeItem, SourceType
from ..models.cart_view import CartView
from ..models.checkout import CompiledCheckoutLine
from .legacy import is_platform_variant_ref, source_type_for, upgrade_item
from .money import parse_amount
from .provisioner import PlaceholderProvisioner

logger = logging.getLogger(__name__)

DEFAULT_CURRENCY = "USD"
CART_NOT_FOUND = "Internal cart not found or expired"
CART_EMPTY = "Cart is empty"


class BuildErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    EMPTY = "empty"
    VALIDATION = "validation"
    PROVISIONING = "provisioning"


@dataclass
class BuildLinesResult:
    lines: list[CompiledCheckoutLine] = field(default_factory=list)
    total_amount: Decimal = Decimal("0")
    currency_code: str = DEFAULT_CURRENCY
    error: Optional[str] = None
    error_kind: Optional[BuildErrorKind] = None
    from_snapshot: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None


class _LineError(Exception):
    def __init__(self, kind: BuildErrorKind, message: str):
        super().__init__(message)
        self.kind = kind


def _failure(
    kind: BuildErrorKind,
    message: str,
    currency_code: str = DEFAULT_CURRENCY,
) -> BuildLinesResult:
    return BuildLinesResult(currency_code=currency_code, error=message, error_kind=kind)


class CheckoutLineBuilder:
    """Resolves every cart line to a platform merchandise ID"""

    def __init__(
        self,
        carts: CartDatabase,
        provisioner: PlaceholderProvisioner,
        default_source_type: SourceType = SourceType.LABGROWN,
    ):
        self.carts = carts
        self.provisioner = provisioner
        self.default_source_type = default_source_type

    async def build_lines(
        self,
        cart_id: Optional[str] = None,
        snapshot: Optional[CartView] = None,
    ) -> BuildLinesResult:
        """
        Build checkout lines for a stored cart.

        When the cart is unknown (expired, or lost with a restart) and the
        client sent a snapshot of its last rendered view, the snapshot is
        compiled instead, trusting its merchandise IDs and prices.
        """
        cart = self.carts.get_cart(cart_id) if cart_id else None

        if cart is None:
            if snapshot is not None:
                logger.warning(f"Cart {cart_id} not found, building lines from client snapshot")
                return self.build_lines_from_snapshot(snapshot)
            return _failure(BuildErrorKind.NOT_FOUND, CART_NOT_FOUND)

        return await self.build_lines_from_cart(cart)

    async def build_lines_from_cart(self, cart: CartRecord) -> BuildLinesResult:
        if not cart.items:
            return _failure(BuildErrorKind.EMPTY, CART_EMPTY)

        currency_code = cart.items[0].unit_price.currency_code or DEFAULT_CURRENCY
        lines: list[CompiledCheckoutLine] = []
        resolved_refs: dict[str, str] = {}
        total = Decimal("0")

        for item in cart.items:
            unit_price = parse_amount(item.unit_price.amount)
            if unit_price is None or unit_price <= 0:
                return _failure(
                    BuildErrorKind.VALIDATION,
                    f'Invalid price for item "{item.title}"',
                    currency_code,
                )

            quantity = max(item.quantity, 1)

            try:
                merchandise_id = await self._resolve_merchandise(item, unit_price)
            except _LineError as exc:
                return _failure(exc.kind, str(exc), currency_code)

            if item.merchandise_ref != merchandise_id:
                resolved_refs[item.id] = merchandise_id

            lines.append(
                CompiledCheckoutLine(
                    merchandise_id=merchandise_id,
                    quantity=quantity,
                    attributes=[a.model_copy() for a in item.attributes],
                )
            )
            total += unit_price * quantity

        if resolved_refs:
            self._remember_refs(cart.id, resolved_refs)

        return BuildLinesResult(lines=lines, total_amount=total, currency_code=currency_code)

    def build_lines_from_snapshot(self, snapshot: CartView) -> BuildLinesResult:
        currency_code = (
            snapshot.cost.total_amount.currency_code
            or snapshot.cost.subtotal_amount.currency_code
            or DEFAULT_CURRENCY
        )
        if not snapshot.lines:
            return _failure(BuildErrorKind.EMPTY, CART_EMPTY, currency_code)

        lines: list[CompiledCheckoutLine] = []
        total = Decimal("0")

        for line in snapshot.lines:
            title = line.merchandise.title
            unit_price = parse_amount(line.merchandise.price.amount)
            if unit_price is None or unit_price <= 0:
                return _failure(
                    BuildErrorKind.VALIDATION,
                    f'Invalid price for item "{title}"',
                    currency_code,
                )

            if not line.merchandise.id:
                return _failure(
                    BuildErrorKind.VALIDATION,
                    f'Failed to resolve merchandise for item "{title}"',
                    currency_code,
                )

            quantity = max(line.quantity, 1)
            lines.append(
                CompiledCheckoutLine(
                    merchandise_id=line.merchandise.id,
                    quantity=quantity,
                    attributes=[a.model_copy() for a in line.attributes],
                )
            )
            total += unit_price * quantity

        return BuildLinesResult(
            lines=lines,
            total_amount=total,
            currency_code=currency_code,
            from_snapshot=True,
        )

    async def _resolve_merchandise(self, item: CartItem, unit_price: Decimal) -> str:
        item = upgrade_item(item)

        if isinstance(item, PlatformNativeItem):
            if is_platform_variant_ref(item.merchandise_ref):
                return item.merchandise_ref
            raise _LineError(
                BuildErrorKind.VALIDATION,
                f'Invalid platform variant reference for item "{item.title}"',
            )

        if item.merchandise_ref:
            return item.merchandise_ref

        result = await self.provisioner.resolve(
            external_id=item.external_id,
            source_type=source_type_for(item, self.default_source_type),
            unit_price=unit_price,
            title=item.title,
            image_url=item.image_url,
            payload=item.payload,
        )
        if not result.ok:
            raise _LineError(
                BuildErrorKind.PROVISIONING,
                result.error or f'Failed to resolve merchandise for item "{item.title}"',
            )
        return result.variant_id

    def _remember_refs(self, cart_id: str, resolved_refs: dict[str, str]) -> None:
        """Store provisioned variant IDs on the cart lines they were built for"""
        cart = self.carts.get_cart(cart_id)
        if not cart:
            return

        items = []
        for item in cart.items:
            ref = resolved_refs.get(item.id)
            if ref:
                upgraded = upgrade_item(item)
                if isinstance(upgraded, ExternalItem):
                    item = upgraded.model_copy(update={"merchandise_ref": ref})
            items.append(item)
        self.carts.save_cart(cart.model_copy(update={"items": items}))
