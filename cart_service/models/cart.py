"""Internal cart models"""

from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, Field


class ItemSource(str, Enum):
    PLATFORM_NATIVE = "platform-native"
    EXTERNAL = "external"


class SourceType(str, Enum):
    """Bucket an external item belongs to; selects its placeholder container"""
    LABGROWN = "labgrown"
    NATURAL = "natural"
    MOISSANITE = "moissanite"
    COLOREDSTONE = "coloredstone"
    CUSTOM = "custom"


class Money(BaseModel):
    """Decimal string amount with its currency"""
    amount: str
    currency_code: str = "USD"


class CartItemAttribute(BaseModel):
    """Opaque key/value carried onto the checkout line"""
    key: str
    value: str


class CartItemBase(BaseModel):
    """Fields shared by every cart line"""
    id: str
    title: str = Field(min_length=1)
    image_url: str = Field(min_length=1)
    quantity: int = 1
    unit_price: Money
    attributes: list[CartItemAttribute] = Field(default_factory=list)
    payload: Optional[dict[str, Any]] = None
    product_handle: Optional[str] = None

    def attribute(self, key: str) -> Optional[str]:
        """Value of the first attribute named `key`"""
        return next((a.value for a in self.attributes if a.key == key), None)


class PlatformNativeItem(CartItemBase):
    """Item sold straight from the platform catalog"""
    source: Literal["platform-native"] = "platform-native"
    merchandise_ref: str


class ExternalItem(CartItemBase):
    """Item from the diamond feed, backed by a provisioned placeholder variant"""
    source: Literal["external"] = "external"
    external_id: str = Field(min_length=1)
    merchandise_ref: Optional[str] = None
    source_type: Optional[SourceType] = None


CartItem = Annotated[
    Union[PlatformNativeItem, ExternalItem],
    Field(discriminator="source"),
]


class CartRecord(BaseModel):
    """Server-held cart"""
    id: str
    items: list[CartItem] = Field(default_factory=list)
    created_at: int
    updated_at: int


class AddItemRequest(BaseModel):
    """Request to add an item to the internal cart"""
    cart_id: Optional[str] = None
    source: str
    merchandise_ref: Optional[str] = None
    external_id: Optional[str] = None
    source_type: Optional[str] = None
    product_handle: Optional[str] = None
    title: Optional[str] = None
    image_url: Optional[str] = None
    quantity: Optional[int] = 1
    unit_price: Optional[Money] = None
    attributes: list[CartItemAttribute] = Field(default_factory=list)
    payload: Optional[dict[str, Any]] = None


class UpdateItemRequest(BaseModel):
    """Request to change a line's quantity"""
    cart_id: str
    line_id: str
    quantity: int


class RemoveItemRequest(BaseModel):
    """Request to remove a line"""
    cart_id: str
    line_id: str


class CreateCartRequest(BaseModel):
    """Request to create an empty cart"""
    cart_id: Optional[str] = None
