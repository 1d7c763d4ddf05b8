"""API tests for the cart, checkout and deposit routes"""

from cart_service.models.catalog import ExternalCatalogHit
from cart_service.services.platform_client import PlatformAPIError

IMAGE = "https://img.example.com/item.jpg"
NATIVE_REF = "gid://shopify/ProductVariant/1"


def _native(cart_id=None, quantity=2, price="25.00", **overrides):
    body = {
        "cart_id": cart_id,
        "source": "platform-native",
        "merchandise_ref": NATIVE_REF,
        "title": "Gold Band",
        "image_url": IMAGE,
        "quantity": quantity,
        "unit_price": {"amount": price, "currency_code": "USD"},
    }
    body.update(overrides)
    return body


def _external(cart_id=None, external_id="D1", price="500.00", **overrides):
    body = {
        "cart_id": cart_id,
        "source": "external",
        "external_id": external_id,
        "title": "1.01ct Round D VS1 Diamond",
        "image_url": IMAGE,
        "quantity": 1,
        "unit_price": {"amount": price, "currency_code": "USD"},
        "attributes": [{"key": "_external_id", "value": external_id}],
    }
    body.update(overrides)
    return body


def _add(client, body):
    return client.post("/api/internal-cart/items", json=body)


def _mixed_cart(client):
    """2 x $25 platform item + $500 external item"""
    cart_id = _add(client, _native()).json()["cart_id"]
    response = _add(client, _external(cart_id))
    assert response.status_code == 200
    return cart_id


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestCartEndpoints:
    def test_create_cart(self, client):
        response = client.post("/api/internal-cart")

        assert response.status_code == 200
        data = response.json()
        assert data["cart_id"].startswith("cart_")
        assert data["cart"]["total_quantity"] == 0

    def test_create_cart_with_id(self, client):
        response = client.post("/api/internal-cart", json={"cart_id": "cart_custom"})
        assert response.json()["cart_id"] == "cart_custom"

    def test_get_unknown_cart(self, client):
        response = client.get("/api/internal-cart/cart_missing")

        assert response.status_code == 404
        assert response.json()["detail"] == "Cart not found"

    def test_add_creates_cart_when_unknown(self, client):
        response = _add(client, _native(cart_id="cart_expired"))

        assert response.status_code == 200
        data = response.json()
        assert data["cart_id"] != "cart_expired"
        assert data["cart"]["total_quantity"] == 2

    def test_mixed_cart_view(self, client, admin):
        cart_id = _mixed_cart(client)

        cart = client.get(f"/api/internal-cart/{cart_id}").json()["cart"]

        assert cart["total_quantity"] == 3
        assert cart["cost"]["total_amount"] == {"amount": "550.00", "currency_code": "USD"}
        assert cart["lines"][0]["merchandise"]["id"] == NATIVE_REF
        assert cart["lines"][1]["merchandise"]["id"] in admin.variants.values()

    def test_quantity_floored_to_one(self, client):
        response = _add(client, _native(quantity=0))
        assert response.json()["cart"]["lines"][0]["quantity"] == 1

    def test_invalid_source(self, client):
        response = _add(client, _native(source="marketplace"))
        assert response.status_code == 400

    def test_platform_item_requires_ref(self, client):
        response = _add(client, _native(merchandise_ref=None))
        assert response.status_code == 400

    def test_external_item_requires_id(self, client):
        response = _add(client, _external(external_id=None, attributes=[]))
        assert response.status_code == 400

    def test_external_item_requires_positive_price(self, client):
        response = _add(client, _external(price="0"))

        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid price for external item"

    def test_missing_fields(self, client):
        response = _add(client, _native(title=None))

        assert response.status_code == 400
        assert "Missing required item fields" in response.json()["detail"]

    def test_provisioning_failure(self, client, admin):
        admin.variant_error = PlatformAPIError("productVariantsBulkCreate failed: boom")

        response = _add(client, _external())

        assert response.status_code == 502
        assert "Failed to create variant for external item" in response.json()["detail"]


class TestDuplicateExternalItems:
    def test_duplicate_rejected(self, client):
        cart_id = _add(client, _external()).json()["cart_id"]

        response = _add(client, _external(cart_id))

        assert response.status_code == 409
        assert "already in your cart" in response.json()["detail"]
        cart = client.get(f"/api/internal-cart/{cart_id}").json()["cart"]
        assert len(cart["lines"]) == 1

    def test_duplicate_by_attribute(self, client):
        cart_id = _add(client, _external(external_id="X1")).json()["cart_id"]

        body = _external(cart_id, external_id=None, attributes=[{"key": "_external_id", "value": "X1"}])
        response = _add(client, body)

        assert response.status_code == 409
        cart = client.get(f"/api/internal-cart/{cart_id}").json()["cart"]
        assert len(cart["lines"]) == 1

    def test_legacy_variant_ref_counts_as_duplicate(self, client):
        cart_id = _add(client, _external(external_id="D7")).json()["cart_id"]

        response = _add(client, _native(cart_id, merchandise_ref="variant-D7", quantity=1))

        assert response.status_code == 409

    def test_different_items_allowed(self, client):
        cart_id = _add(client, _external(external_id="D1")).json()["cart_id"]
        response = _add(client, _external(cart_id, external_id="D2"))

        assert response.status_code == 200
        assert len(response.json()["cart"]["lines"]) == 2


class TestCatalogEnrichment:
    def test_missing_fields_filled_from_feed(self, client, catalog):
        catalog.hits["D5"] = ExternalCatalogHit(
            external_id="D5",
            title="2.00ct Oval E VVS2 Diamond",
            image_url="https://img.example.com/d5.jpg",
            price=1250.0,
            payload={"carat": 2.0},
        )

        response = _add(client, _external(external_id="D5", title=None, image_url=None, unit_price=None))

        assert response.status_code == 200
        line = response.json()["cart"]["lines"][0]
        assert line["merchandise"]["title"] == "2.00ct Oval E VVS2 Diamond"
        assert line["merchandise"]["price"]["amount"] == "1250.00"
        assert catalog.lookups == ["D5"]

    def test_complete_items_skip_feed(self, client, catalog):
        _add(client, _external())
        assert catalog.lookups == []

    def test_unknown_feed_item(self, client):
        response = _add(client, _external(external_id="D404", title=None))
        assert response.status_code == 400


class TestUpdateAndRemove:
    def test_update_quantity(self, client):
        data = _add(client, _native(quantity=1)).json()
        line_id = data["cart"]["lines"][0]["id"]

        response = client.put(
            "/api/internal-cart/items",
            json={"cart_id": data["cart_id"], "line_id": line_id, "quantity": 4},
        )

        assert response.status_code == 200
        assert response.json()["cart"]["total_quantity"] == 4

    def test_update_to_zero_removes(self, client):
        data = _add(client, _native()).json()
        line_id = data["cart"]["lines"][0]["id"]

        response = client.put(
            "/api/internal-cart/items",
            json={"cart_id": data["cart_id"], "line_id": line_id, "quantity": 0},
        )

        assert response.json()["cart"]["lines"] == []

    def test_update_unknown_cart(self, client):
        response = client.put(
            "/api/internal-cart/items",
            json={"cart_id": "cart_missing", "line_id": "line_1", "quantity": 1},
        )
        assert response.status_code == 404

    def test_remove_item(self, client):
        data = _add(client, _native()).json()
        line_id = data["cart"]["lines"][0]["id"]

        response = client.request(
            "DELETE",
            "/api/internal-cart/items",
            json={"cart_id": data["cart_id"], "line_id": line_id},
        )

        assert response.status_code == 200
        assert response.json()["cart"]["total_quantity"] == 0


class TestCheckout:
    def test_checkout_mixed_cart(self, client, storefront):
        cart_id = _mixed_cart(client)

        response = client.post("/api/checkout", json={"cart_id": cart_id})

        assert response.status_code == 200
        assert response.json()["checkout_url"] == storefront.CHECKOUT_URL
        lines = storefront.checkouts[0]
        assert len(lines) == 2
        assert lines[0].merchandise_id == NATIVE_REF
        assert [line.quantity for line in lines] == [2, 1]

    def test_requires_cart(self, client):
        response = client.post("/api/checkout", json={})
        assert response.status_code == 400

    def test_unknown_cart(self, client):
        response = client.post("/api/checkout", json={"cart_id": "cart_missing"})

        assert response.status_code == 404
        assert response.json()["detail"] == "Internal cart not found or expired"

    def test_unknown_cart_with_snapshot(self, client, storefront):
        cart_id = _add(client, _native()).json()["cart_id"]
        snapshot = client.get(f"/api/internal-cart/{cart_id}").json()["cart"]

        response = client.post("/api/checkout", json={"cart_id": "cart_missing", "cart": snapshot})

        assert response.status_code == 200
        assert storefront.checkouts[0][0].merchandise_id == NATIVE_REF

    def test_empty_cart(self, client):
        cart_id = client.post("/api/internal-cart").json()["cart_id"]

        response = client.post("/api/checkout", json={"cart_id": cart_id})

        assert response.status_code == 400
        assert response.json()["detail"] == "Cart is empty"

    def test_unavailable_variants(self, client, storefront):
        cart_id = _add(client, _native()).json()["cart_id"]
        storefront.unavailable_rounds = {NATIVE_REF: 10}

        response = client.post("/api/checkout", json={"cart_id": cart_id})

        assert response.status_code == 409
        assert response.json()["detail"]["unavailable_variant_ids"] == [NATIVE_REF]
        assert storefront.checkouts == []

    def test_platform_failure(self, client, storefront):
        cart_id = _add(client, _native()).json()["cart_id"]
        storefront.checkout_error = PlatformAPIError("cartCreate failed: boom")

        response = client.post("/api/checkout", json={"cart_id": cart_id})

        assert response.status_code == 502


class TestDepositSessions:
    def test_create_from_cart(self, client, admin):
        cart_id = _mixed_cart(client)

        response = client.post(
            "/api/deposit-session/create-from-cart",
            json={"cart_id": cart_id, "customer_id": "gid://shopify/Customer/1"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["plan"]["total_amount"] == "550.00"
        assert data["plan"]["deposit_amount"] == "165.00"
        assert data["plan"]["remaining_amount"] == "385.00"
        assert data["deposit_session_url"] == f"/deposit-session/{data['session_id']}"

        draft_order = admin.draft_orders[0]
        assert draft_order["tags"] == ["partial-payment"]
        assert draft_order["customer_id"] == "gid://shopify/Customer/1"
        assert draft_order["custom_attributes"][0].value == data["session_id"]

    def test_get_session(self, client, admin):
        cart_id = _mixed_cart(client)
        session_id = client.post(
            "/api/deposit-session/create-from-cart", json={"cart_id": cart_id}
        ).json()["session_id"]

        response = client.get(f"/api/deposit-session/{session_id}")

        assert response.status_code == 200
        session = response.json()
        assert session["draft_order_id"] == admin.draft_orders[0]["id"]
        assert [item["quantity"] for item in session["items"]] == [2, 1]

    def test_total_too_low(self, client, admin):
        cart_id = _add(client, _native(quantity=1, price="40.00")).json()["cart_id"]

        response = client.post("/api/deposit-session/create-from-cart", json={"cart_id": cart_id})

        assert response.status_code == 400
        assert "too low" in response.json()["detail"]
        assert admin.draft_orders == []

    def test_draft_order_failure(self, client, admin):
        cart_id = _mixed_cart(client)
        admin.draft_order_error = PlatformAPIError("draftOrderCreate failed: boom")

        response = client.post("/api/deposit-session/create-from-cart", json={"cart_id": cart_id})

        assert response.status_code == 502

    def test_unknown_session(self, client):
        response = client.get("/api/deposit-session/deposit_missing")
        assert response.status_code == 404
