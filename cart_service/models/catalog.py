"""External catalog models"""

from typing import Any, Optional

from pydantic import BaseModel, Field

from .cart import SourceType


class ExternalCatalogHit(BaseModel):
    """Normalized document from the diamond feed"""
    external_id: str
    title: str
    image_url: Optional[str] = None
    price: Optional[float] = None
    source_type: Optional[SourceType] = None
    payload: dict[str, Any] = Field(default_factory=dict)


class VariantInput(BaseModel):
    """Placeholder variant to create under a container"""
    price: str
    sku: str
    external_tag: str
    title: Optional[str] = None
    image_url: Optional[str] = None
    metafields: dict[str, str] = Field(default_factory=dict)
