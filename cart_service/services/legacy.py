"""
Legacy item adapter

Older carts and clients describe items loosely: the source is called
"shopify", the external ID only lives in an `_external_id` attribute, and some
external items were stored as platform items with a `variant-<external id>`
reference. Everything that inspects those shapes lives here; the rest of the
service only sees PlatformNativeItem / ExternalItem.
"""

from typing import Any, Optional, Union

from pydantic import TypeAdapter

from ..models.cart import (
    CartItem,
    CartItemBase,
    ExternalItem,
    ItemSource,
    PlatformNativeItem,
    SourceType,
)

PLATFORM_VARIANT_PREFIX = "gid://shopify/ProductVariant/"
LEGACY_EXTERNAL_PREFIX = "variant-"

EXTERNAL_ID_ATTRIBUTES = ("_external_id", "Item ID")
SOURCE_TYPE_ATTRIBUTE = "_source_type"

_SOURCE_ALIASES = {
    "platform-native": ItemSource.PLATFORM_NATIVE,
    "shopify": ItemSource.PLATFORM_NATIVE,
    "external": ItemSource.EXTERNAL,
}

_cart_item_adapter = TypeAdapter(CartItem)


def is_platform_variant_ref(ref: Optional[str]) -> bool:
    return bool(ref) and ref.startswith(PLATFORM_VARIANT_PREFIX)


def legacy_external_id(ref: Optional[str]) -> Optional[str]:
    """External ID encoded in a `variant-<id>` reference"""
    if ref and ref.startswith(LEGACY_EXTERNAL_PREFIX):
        return ref[len(LEGACY_EXTERNAL_PREFIX):] or None
    return None


def normalize_source(source: Optional[str]) -> Optional[ItemSource]:
    if not source:
        return None
    return _SOURCE_ALIASES.get(source.strip().lower())


def coerce_source_type(value: Optional[Union[str, SourceType]]) -> Optional[SourceType]:
    if not value:
        return None
    try:
        return SourceType(str(value).strip().lower())
    except ValueError:
        return None


def _attribute(attributes: list[dict[str, Any]], key: str) -> Optional[str]:
    return next((a.get("value") for a in attributes if a.get("key") == key), None)


def external_id_from_attributes(attributes: list[dict[str, Any]]) -> Optional[str]:
    for key in EXTERNAL_ID_ATTRIBUTES:
        value = _attribute(attributes, key)
        if value:
            return value
    return None


def effective_external_id(item: CartItemBase) -> Optional[str]:
    """External ID an item resolves to, whatever shape it was stored in"""
    if isinstance(item, ExternalItem):
        return item.external_id
    if isinstance(item, PlatformNativeItem):
        return legacy_external_id(item.merchandise_ref)
    return None


def source_type_for(item: CartItemBase, default: SourceType) -> SourceType:
    """Source-type bucket of an item: typed field, then attribute, then default"""
    if isinstance(item, ExternalItem) and item.source_type:
        return item.source_type
    return coerce_source_type(item.attribute(SOURCE_TYPE_ATTRIBUTE)) or default


def upgrade_item(item: CartItem) -> CartItem:
    """Re-tag a platform item whose reference actually encodes an external item"""
    if not isinstance(item, PlatformNativeItem):
        return item

    external_id = legacy_external_id(item.merchandise_ref)
    if not external_id:
        return item

    fields = item.model_dump(exclude={"source", "merchandise_ref"})
    return ExternalItem(
        **fields,
        external_id=external_id,
        source_type=coerce_source_type(item.attribute(SOURCE_TYPE_ATTRIBUTE)),
    )


def item_from_payload(raw: dict[str, Any]) -> CartItem:
    """
    Build a typed cart item from a loosely shaped dict.

    Raises ValueError (pydantic's ValidationError included) when the item
    cannot be typed.
    """
    data = dict(raw)
    source = normalize_source(data.get("source"))
    if source is None:
        raise ValueError('Invalid or missing source (must be "platform-native" or "external")')

    attributes = [
        a.model_dump() if hasattr(a, "model_dump") else dict(a)
        for a in data.get("attributes") or []
    ]
    data["attributes"] = attributes
    data["merchandise_ref"] = data.get("merchandise_ref") or data.pop("variant_id", None)

    legacy_id = legacy_external_id(data.get("merchandise_ref"))
    if source == ItemSource.PLATFORM_NATIVE and legacy_id:
        source = ItemSource.EXTERNAL
        data["external_id"] = data.get("external_id") or legacy_id
        data["merchandise_ref"] = None

    if source == ItemSource.EXTERNAL:
        external_id = data.get("external_id") or external_id_from_attributes(attributes)
        if not external_id:
            raise ValueError("external_id or _external_id attribute is required for external items")
        data["external_id"] = external_id
        data["source_type"] = coerce_source_type(
            data.get("source_type") or _attribute(attributes, SOURCE_TYPE_ATTRIBUTE)
        )
    else:
        data.pop("external_id", None)
        data.pop("source_type", None)

    data["source"] = source.value
    return _cart_item_adapter.validate_python(data)
