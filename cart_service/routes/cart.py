"""Internal cart API routes"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from ..database.carts import generate_line_id
from ..dependencies import ServiceContainer, get_services
from ..models.cart import (
    AddItemRequest,
    CartRecord,
    CreateCartRequest,
    ExternalItem,
    ItemSource,
    RemoveItemRequest,
    UpdateItemRequest,
)
from ..models.cart_view import CartResponse
from ..services.cart_view import compile_cart_view
from ..services.catalog_search import CatalogSearchError
from ..services.legacy import (
    coerce_source_type,
    effective_external_id,
    external_id_from_attributes,
    item_from_payload,
    legacy_external_id,
    normalize_source,
)
from ..services.money import parse_amount

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/internal-cart", tags=["Internal Cart"])

ALREADY_IN_CART = "This item is already in your cart and is currently on hold."


def _cart_response(cart: CartRecord, message: Optional[str] = None) -> CartResponse:
    return CartResponse(cart_id=cart.id, cart=compile_cart_view(cart), message=message)


def holds_external_item(cart: CartRecord, external_id: str) -> bool:
    """Whether any line already resolves to `external_id`"""
    for item in cart.items:
        if effective_external_id(item) == external_id:
            return True
        if item.attribute("_external_id") == external_id:
            return True
    return False


@router.post("", response_model=CartResponse)
async def create_cart(
    request: Optional[CreateCartRequest] = None,
    services: ServiceContainer = Depends(get_services),
):
    """Create a new empty cart"""
    cart = services.carts.create_cart(request.cart_id if request else None)
    return _cart_response(cart, message="Cart created")


@router.get("/{cart_id}", response_model=CartResponse)
async def get_cart(
    cart_id: str,
    services: ServiceContainer = Depends(get_services),
):
    """Get cart view by ID"""
    cart = services.carts.get_cart(cart_id)
    if not cart:
        raise HTTPException(status_code=404, detail="Cart not found")
    return _cart_response(cart)


@router.post("/items", response_model=CartResponse)
async def add_item(
    request: AddItemRequest,
    services: ServiceContainer = Depends(get_services),
):
    """
    Add an item to the cart.

    Unknown or expired carts are replaced by a fresh one. External items are
    limited to one line per external ID, and their placeholder variant is
    provisioned before the line is stored.
    """
    source = normalize_source(request.source)
    if source is None:
        raise HTTPException(
            status_code=400,
            detail='Invalid or missing source (must be "platform-native" or "external")',
        )

    cart = services.carts.get_cart(request.cart_id) if request.cart_id else None
    if not cart:
        cart = services.carts.create_cart()

    raw = request.model_dump(exclude={"cart_id"})
    raw["id"] = generate_line_id()
    if not request.quantity or request.quantity <= 0:
        raw["quantity"] = 1

    external_id = None
    if source == ItemSource.EXTERNAL:
        external_id = request.external_id or external_id_from_attributes(raw["attributes"])
        if not external_id:
            raise HTTPException(
                status_code=400,
                detail="external_id or _external_id attribute is required for external items",
            )
    else:
        external_id = legacy_external_id(request.merchandise_ref)
        if not external_id and not request.merchandise_ref:
            raise HTTPException(
                status_code=400,
                detail="merchandise_ref is required for platform-native items",
            )

    if external_id:
        if holds_external_item(cart, external_id):
            raise HTTPException(status_code=409, detail=ALREADY_IN_CART)
        await _fill_from_catalog(raw, external_id, services)

    if not raw.get("title") or not raw.get("image_url") or not raw.get("unit_price"):
        raise HTTPException(
            status_code=400,
            detail="Missing required item fields (title, image_url, unit_price)",
        )

    try:
        item = item_from_payload(raw)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    if isinstance(item, ExternalItem):
        unit_price = parse_amount(item.unit_price.amount)
        if unit_price is None or unit_price <= 0:
            raise HTTPException(status_code=400, detail="Invalid price for external item")

        result = await services.provisioner.resolve(
            external_id=item.external_id,
            source_type=item.source_type or services.default_source_type,
            unit_price=unit_price,
            title=item.title,
            image_url=item.image_url,
            payload=item.payload,
        )
        if not result.ok:
            raise HTTPException(status_code=502, detail=result.error)
        item = item.model_copy(update={"merchandise_ref": result.variant_id})

    updated = services.carts.add_item(cart, item)
    logger.info(f"Added {item.quantity}x {item.title} to cart {updated.id}")
    return _cart_response(updated, message=f"Added {item.quantity}x {item.title} to cart")


async def _fill_from_catalog(raw: dict, external_id: str, services: ServiceContainer) -> None:
    """Complete missing display fields of an external item from the feed"""
    if raw.get("title") and raw.get("image_url") and raw.get("unit_price"):
        return

    source_type = coerce_source_type(raw.get("source_type"))
    try:
        hit = await services.catalog.search_by_external_id(external_id, source_type)
    except CatalogSearchError as exc:
        logger.warning(f"Feed lookup for {external_id} failed: {exc}")
        return

    if not hit:
        return

    raw["title"] = raw.get("title") or hit.title
    raw["image_url"] = raw.get("image_url") or hit.image_url
    raw["payload"] = raw.get("payload") or hit.payload
    if not raw.get("unit_price") and hit.price:
        raw["unit_price"] = {"amount": f"{hit.price:.2f}", "currency_code": "USD"}
    if not raw.get("source_type") and hit.source_type:
        raw["source_type"] = hit.source_type.value


@router.put("/items", response_model=CartResponse)
async def update_item(
    request: UpdateItemRequest,
    services: ServiceContainer = Depends(get_services),
):
    """Update a line's quantity; zero or less removes it"""
    cart = services.carts.update_item_quantity(request.cart_id, request.line_id, request.quantity)
    if not cart:
        raise HTTPException(status_code=404, detail="Cart not found")
    return _cart_response(cart, message="Cart updated")


@router.delete("/items", response_model=CartResponse)
async def remove_item(
    request: RemoveItemRequest,
    services: ServiceContainer = Depends(get_services),
):
    """Remove a line from the cart"""
    cart = services.carts.remove_item(request.cart_id, request.line_id)
    if not cart:
        raise HTTPException(status_code=404, detail="Cart not found")
    return _cart_response(cart, message="Item removed")
