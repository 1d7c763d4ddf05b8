"""
Commerce Platform Clients

GraphQL clients for the hosted commerce platform:
- PlatformAdminClient: placeholder products/variants, publishing, draft orders
- StorefrontClient: checkout creation and variant availability
"""

import logging
from typing import Any, Optional

import httpx

from ..models.cart import CartItemAttribute
from ..models.catalog import VariantInput
from ..models.checkout import CompiledCheckoutLine, VariantAvailability

logger = logging.getLogger(__name__)

EXTERNAL_OPTION_NAME = "External ID"
PLACEHOLDER_PUBLICATIONS = ("Online Store", "Storefront API")
CONFLICT_CODES = {"VARIANT_ALREADY_EXISTS", "TAKEN", "DUPLICATE"}


class PlatformAPIError(Exception):
    """Base exception for commerce platform errors"""
    pass


class PlatformConflictError(PlatformAPIError):
    """The platform refused a create because the resource already exists"""
    pass


class PlatformTimeoutError(PlatformAPIError):
    """A platform call did not finish within the configured timeout"""
    pass


def external_sku(external_id: str) -> str:
    """SKU that tags a placeholder variant with its external item"""
    return f"EXT-{external_id}"


def container_tag(source_type: str) -> str:
    """Tag that marks the placeholder container of a source-type bucket"""
    return f"external-placeholder-{source_type}"


def numeric_id(gid: str) -> str:
    """`gid://shopify/Product/123` -> `123`"""
    return gid.rsplit("/", 1)[-1]


def _is_conflict(user_errors: list[dict]) -> bool:
    for error in user_errors:
        if error.get("code") in CONFLICT_CODES:
            return True
        if "already exists" in (error.get("message") or "").lower():
            return True
    return False


def _raise_user_errors(operation: str, user_errors: list[dict]) -> None:
    if not user_errors:
        return
    message = ", ".join(
        f"{'.'.join(e.get('field') or []) or operation}: {e.get('message')}"
        for e in user_errors
    )
    if _is_conflict(user_errors):
        raise PlatformConflictError(f"{operation} conflict: {message}")
    raise PlatformAPIError(f"{operation} failed: {message}")


def _attributes_input(attributes: list[CartItemAttribute]) -> list[dict[str, str]]:
    return [{"key": a.key, "value": a.value} for a in attributes]


class _GraphQLClient:
    """Shared GraphQL transport"""

    def __init__(
        self,
        endpoint: str,
        headers: dict[str, str],
        timeout: float = 10.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.endpoint = endpoint
        self._headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            **headers,
        }
        self._http_client = http_client or httpx.AsyncClient(timeout=timeout)

    async def close(self) -> None:
        """Close HTTP client"""
        await self._http_client.aclose()

    async def _graphql(
        self,
        query: str,
        variables: Optional[dict[str, Any]] = None,
    ) -> dict[str, Any]:
        """Run a GraphQL operation and return its `data`"""
        try:
            response = await self._http_client.post(
                self.endpoint,
                headers=self._headers,
                json={"query": query, "variables": variables or {}},
            )
        except httpx.TimeoutException as exc:
            raise PlatformTimeoutError(f"Platform request timed out: {exc}") from exc
        except httpx.HTTPError as exc:
            raise PlatformAPIError(f"Platform request failed: {exc}") from exc

        if response.status_code == 409:
            raise PlatformConflictError(f"Platform conflict: {response.text}")
        if response.status_code >= 400:
            logger.error(f"Platform request failed: {response.status_code} - {response.text}")
            raise PlatformAPIError(
                f"Platform request failed: {response.status_code} - {response.text}"
            )

        try:
            result = response.json()
        except ValueError as exc:
            raise PlatformAPIError(f"Platform returned a non-JSON response: {exc}") from exc
        if not isinstance(result, dict):
            raise PlatformAPIError("Platform returned an unexpected response body")

        if result.get("errors"):
            messages = "; ".join(
                e.get("message", str(e)) if isinstance(e, dict) else str(e)
                for e in result["errors"]
            )
            raise PlatformAPIError(f"GraphQL error: {messages}")

        return result.get("data") or {}


class PlatformAdminClient(_GraphQLClient):
    """
    Admin API client.

    Placeholder containers are products tagged per source-type bucket; each
    external item gets one variant under its container, tagged by SKU.
    """

    def __init__(
        self,
        endpoint: str,
        access_token: Optional[str],
        timeout: float = 10.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        super().__init__(
            endpoint,
            {"X-Shopify-Access-Token": access_token or ""},
            timeout=timeout,
            http_client=http_client,
        )
        self._publication_ids: Optional[list[str]] = None

    # ==================== Containers ====================

    async def find_container_by_tag(self, tag: str) -> Optional[str]:
        """ID of the product carrying `tag`, if any"""
        data = await self._graphql(
            """
            query findContainer($query: String!) {
              products(first: 1, query: $query) {
                edges { node { id tags } }
              }
            }
            """,
            {"query": f"tag:'{tag}'"},
        )
        for edge in (data.get("products") or {}).get("edges") or []:
            node = edge["node"]
            if tag in node.get("tags", []):
                return node["id"]
        return None

    async def create_container(
        self,
        tag: str,
        title: str,
        initial_variant: VariantInput,
    ) -> str:
        """Create an active container product together with its first variant"""
        option_value = {"optionName": EXTERNAL_OPTION_NAME, "name": initial_variant.external_tag}
        data = await self._graphql(
            """
            mutation createContainer($input: ProductSetInput!) {
              productSet(synchronous: true, input: $input) {
                product {
                  id
                  variants(first: 1) { edges { node { id } } }
                }
                userErrors { field message code }
              }
            }
            """,
            {
                "input": {
                    "title": title,
                    "status": "ACTIVE",
                    "tags": [tag],
                    "productOptions": [
                        {
                            "name": EXTERNAL_OPTION_NAME,
                            "values": [{"name": initial_variant.external_tag}],
                        }
                    ],
                    "variants": [
                        {
                            "optionValues": [option_value],
                            "price": initial_variant.price,
                            "inventoryItem": {"sku": initial_variant.sku, "tracked": False},
                            "inventoryPolicy": "CONTINUE",
                        }
                    ],
                }
            },
        )
        result = data.get("productSet") or {}
        _raise_user_errors("productSet", result.get("userErrors") or [])

        product = result.get("product")
        if not product:
            raise PlatformAPIError("productSet returned no product")
        if not (product.get("variants") or {}).get("edges"):
            raise PlatformAPIError(f"Container {product['id']} was created without a variant")

        logger.info(f"Created placeholder container {product['id']} ({tag})")
        return product["id"]

    async def _get_publication_ids(self) -> list[str]:
        if self._publication_ids is None:
            data = await self._graphql(
                """
                query publications {
                  publications(first: 20) { edges { node { id name } } }
                }
                """
            )
            self._publication_ids = [
                edge["node"]["id"]
                for edge in (data.get("publications") or {}).get("edges") or []
                if edge["node"]["name"] in PLACEHOLDER_PUBLICATIONS
            ]
        return self._publication_ids

    async def ensure_published(self, product_id: str) -> bool:
        """Make sure the product is active and visible to the storefront API"""
        data = await self._graphql(
            """
            query productStatus($id: ID!) {
              product(id: $id) { id status }
            }
            """,
            {"id": product_id},
        )
        product = data.get("product")
        if not product:
            return False

        if product.get("status") != "ACTIVE":
            logger.warning(f"Container {product_id} is {product.get('status')}, activating")
            update = await self._graphql(
                """
                mutation activate($input: ProductInput!) {
                  productUpdate(input: $input) {
                    product { id status }
                    userErrors { field message }
                  }
                }
                """,
                {"input": {"id": product_id, "status": "ACTIVE"}},
            )
            _raise_user_errors("productUpdate", (update.get("productUpdate") or {}).get("userErrors") or [])

        publication_ids = await self._get_publication_ids()
        if not publication_ids:
            logger.warning("No storefront publications found")
            return False

        published = await self._graphql(
            """
            mutation publish($id: ID!, $input: [PublicationInput!]!) {
              publishablePublish(id: $id, input: $input) {
                userErrors { field message }
              }
            }
            """,
            {"id": product_id, "input": [{"publicationId": pid} for pid in publication_ids]},
        )
        user_errors = (published.get("publishablePublish") or {}).get("userErrors") or []
        if user_errors:
            logger.warning(f"Failed to publish {product_id}: {user_errors}")
            return False
        return True

    # ==================== Variants ====================

    async def find_variant_by_external_tag(
        self,
        container_id: str,
        external_id: str,
    ) -> Optional[str]:
        """ID of the variant under `container_id` tagged with `external_id`"""
        sku = external_sku(external_id)
        data = await self._graphql(
            """
            query findVariant($query: String!) {
              productVariants(first: 5, query: $query) {
                edges { node { id sku product { id } } }
              }
            }
            """,
            {"query": f"sku:'{sku}' AND product_id:{numeric_id(container_id)}"},
        )
        for edge in (data.get("productVariants") or {}).get("edges") or []:
            node = edge["node"]
            if node.get("sku") == sku and (node.get("product") or {}).get("id") == container_id:
                return node["id"]
        return None

    async def create_variant(self, container_id: str, variant: VariantInput) -> str:
        """Create one placeholder variant; raises PlatformConflictError on duplicates"""
        values = dict(variant.metafields)
        if variant.title:
            values["title"] = variant.title
        if variant.image_url:
            values["image_url"] = variant.image_url

        metafields = [
            {
                "namespace": "custom",
                "key": key,
                "value": value,
                "type": "json" if key == "payload" else "single_line_text_field",
            }
            for key, value in values.items()
        ]
        variant_input: dict[str, Any] = {
            "price": variant.price,
            "inventoryItem": {"sku": variant.sku, "tracked": False},
            "inventoryPolicy": "CONTINUE",
            "optionValues": [{"optionName": EXTERNAL_OPTION_NAME, "name": variant.external_tag}],
        }
        if metafields:
            variant_input["metafields"] = metafields

        data = await self._graphql(
            """
            mutation createVariant($productId: ID!, $variants: [ProductVariantsBulkInput!]!) {
              productVariantsBulkCreate(productId: $productId, variants: $variants) {
                productVariants { id sku }
                userErrors { field message code }
              }
            }
            """,
            {"productId": container_id, "variants": [variant_input]},
        )
        result = data.get("productVariantsBulkCreate") or {}
        _raise_user_errors("productVariantsBulkCreate", result.get("userErrors") or [])

        variants = result.get("productVariants") or []
        if not variants:
            raise PlatformAPIError("productVariantsBulkCreate returned no variant")

        logger.info(f"Created placeholder variant {variants[0]['id']} ({variant.sku})")
        return variants[0]["id"]

    # ==================== Draft orders ====================

    async def create_draft_order(
        self,
        lines: list[CompiledCheckoutLine],
        customer_id: Optional[str] = None,
        tags: Optional[list[str]] = None,
        custom_attributes: Optional[list[CartItemAttribute]] = None,
    ) -> str:
        """Create a draft order holding the full cart for a partial payment"""
        draft_input: dict[str, Any] = {
            "lineItems": [
                {"variantId": line.merchandise_id, "quantity": line.quantity}
                for line in lines
            ],
            "tags": tags or [],
            "customAttributes": _attributes_input(custom_attributes or []),
        }
        if customer_id:
            draft_input["customerId"] = customer_id

        data = await self._graphql(
            """
            mutation draftOrderCreate($input: DraftOrderInput!) {
              draftOrderCreate(input: $input) {
                draftOrder { id }
                userErrors { field message }
              }
            }
            """,
            {"input": draft_input},
        )
        result = data.get("draftOrderCreate") or {}
        _raise_user_errors("draftOrderCreate", result.get("userErrors") or [])

        draft_order = result.get("draftOrder")
        if not draft_order:
            raise PlatformAPIError("draftOrderCreate returned no draft order")
        return draft_order["id"]


class StorefrontClient(_GraphQLClient):
    """Storefront API client"""

    def __init__(
        self,
        endpoint: str,
        access_token: Optional[str],
        timeout: float = 10.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        super().__init__(
            endpoint,
            {"X-Shopify-Storefront-Access-Token": access_token or ""},
            timeout=timeout,
            http_client=http_client,
        )

    async def create_checkout(self, lines: list[CompiledCheckoutLine]) -> str:
        """Create a platform cart with `lines` and return its checkout URL"""
        data = await self._graphql(
            """
            mutation cartCreate($input: CartInput!) {
              cartCreate(input: $input) {
                cart { id checkoutUrl }
                userErrors { field message }
              }
            }
            """,
            {
                "input": {
                    "lines": [
                        {
                            "merchandiseId": line.merchandise_id,
                            "quantity": line.quantity,
                            "attributes": _attributes_input(line.attributes),
                        }
                        for line in lines
                    ]
                }
            },
        )
        result = data.get("cartCreate") or {}
        _raise_user_errors("cartCreate", result.get("userErrors") or [])

        cart = result.get("cart")
        if not cart or not cart.get("checkoutUrl"):
            raise PlatformAPIError("cartCreate returned no checkout URL")
        return cart["checkoutUrl"]

    async def query_availability(self, variant_ids: list[str]) -> list[VariantAvailability]:
        """Availability of each variant, in the order requested"""
        data = await self._graphql(
            """
            query availability($ids: [ID!]!) {
              nodes(ids: $ids) {
                __typename
                ... on ProductVariant { id availableForSale quantityAvailable }
              }
            }
            """,
            {"ids": variant_ids},
        )
        results = []
        for variant_id, node in zip(variant_ids, data.get("nodes") or []):
            if not node or node.get("__typename") != "ProductVariant":
                results.append(VariantAvailability(id=variant_id, available=False))
                continue
            results.append(
                VariantAvailability(
                    id=variant_id,
                    available=bool(node.get("availableForSale")),
                    quantity=node.get("quantityAvailable"),
                )
            )
        return results
