"""
External Catalog Search Client

Looks up diamond feed documents by their item ID and normalizes them into
ExternalCatalogHit, the shape used to describe external cart items.
"""

import logging
from typing import Any, Optional

import httpx

from ..models.cart import SourceType
from ..models.catalog import ExternalCatalogHit

logger = logging.getLogger(__name__)

ITEM_ID_FIELDS = ("id", "itemId", "item_id", "Item ID #")
IMAGE_FIELDS = ("image_url", "image", "Image Link", "imageUrl")
PRICE_FIELDS = ("total_price", "totalPrice", "price", "Total Price")


class CatalogSearchError(Exception):
    """Feed gateway errors"""
    pass


def _first(document: dict[str, Any], keys: tuple[str, ...]) -> Any:
    for key in keys:
        value = document.get(key)
        if value not in (None, ""):
            return value
    return None


def _title_for(document: dict[str, Any]) -> str:
    if document.get("title"):
        return str(document["title"])

    parts = []
    carat = document.get("carat") or document.get("Carat")
    if carat:
        parts.append(f"{carat}ct")
    for key in ("shape", "color", "clarity"):
        value = document.get(key) or document.get(key.capitalize())
        if value:
            parts.append(str(value))
    parts.append("Diamond")
    return " ".join(parts)


def normalize_hit(
    document: dict[str, Any],
    source_type: Optional[SourceType] = None,
) -> Optional[ExternalCatalogHit]:
    """Feed document -> ExternalCatalogHit; None when it has no item ID"""
    external_id = _first(document, ITEM_ID_FIELDS)
    if external_id is None:
        return None

    image = _first(document, IMAGE_FIELDS)
    if image is None and isinstance(document.get("images"), list) and document["images"]:
        image = document["images"][0]

    price = _first(document, PRICE_FIELDS)
    try:
        price = float(price) if price is not None else None
    except (TypeError, ValueError):
        price = None

    return ExternalCatalogHit(
        external_id=str(external_id),
        title=_title_for(document),
        image_url=str(image) if image else None,
        price=price,
        source_type=source_type,
        payload=dict(document),
    )


class CatalogSearchClient:
    """Client for the diamond feed gateway"""

    DEFAULT_COLLECTIONS = (SourceType.LABGROWN, SourceType.NATURAL)

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        timeout: float = 10.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._headers = {"Accept": "application/json"}
        if api_key:
            self._headers["X-API-Key"] = api_key
        self._http_client = http_client or httpx.AsyncClient(timeout=timeout)

    async def close(self) -> None:
        """Close HTTP client"""
        await self._http_client.aclose()

    async def search_by_external_id(
        self,
        external_id: str,
        source_type: Optional[SourceType] = None,
    ) -> Optional[ExternalCatalogHit]:
        """
        Fetch one feed document by item ID.

        Searches the given source-type collection, or each default collection
        in turn. Returns None when no collection has the item.
        """
        collections = [source_type] if source_type else list(self.DEFAULT_COLLECTIONS)

        for collection in collections:
            url = f"{self.base_url}/collections/{collection.value}/documents/{external_id}"
            try:
                response = await self._http_client.get(url, headers=self._headers)
            except httpx.HTTPError as exc:
                raise CatalogSearchError(f"Feed lookup failed for {external_id}: {exc}") from exc

            if response.status_code == 404:
                continue
            if response.status_code >= 400:
                logger.error(f"Feed lookup failed: {response.status_code} - {response.text}")
                raise CatalogSearchError(
                    f"Feed lookup failed for {external_id}: {response.status_code}"
                )

            try:
                body = response.json()
            except ValueError as exc:
                raise CatalogSearchError(f"Feed returned a non-JSON response for {external_id}") from exc
            if not isinstance(body, dict):
                raise CatalogSearchError(f"Feed returned an unexpected body for {external_id}")
            document = body.get("document") or body
            return normalize_hit(document, collection)

        return None
