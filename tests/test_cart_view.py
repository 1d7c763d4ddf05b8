"""Tests for compiling the display view"""

from cart_service.models.cart import CartItemAttribute, CartRecord
from cart_service.services.cart_view import compile_cart_view
from tests.fakes import external_item, native_item


def _cart(*items):
    return CartRecord(id="cart_1", items=list(items), created_at=0, updated_at=0)


class TestCompileCartView:
    def test_empty_cart(self):
        view = compile_cart_view(_cart())

        assert view.id == "cart_1"
        assert view.total_quantity == 0
        assert view.lines == []
        assert view.cost.total_amount.amount == "0.00"
        assert view.cost.total_amount.currency_code == "USD"

    def test_mixed_cart_totals(self):
        cart = _cart(
            native_item(price="25.00", quantity=2),
            external_item(price="500.00"),
        )

        view = compile_cart_view(cart)

        assert view.total_quantity == 3
        assert view.cost.subtotal_amount.amount == "550.00"
        assert view.cost.total_amount.amount == "550.00"
        assert [line.cost.total_amount.amount for line in view.lines] == ["50.00", "500.00"]

    def test_merchandise_ids(self):
        cart = _cart(
            native_item(),
            external_item(),
            external_item(line_id="line_2", external_id="D2", merchandise_ref="gid://shopify/ProductVariant/77"),
        )

        view = compile_cart_view(cart)

        assert [line.merchandise.id for line in view.lines] == [
            "gid://shopify/ProductVariant/1",
            "D1",
            "gid://shopify/ProductVariant/77",
        ]

    def test_product_handle_used_for_product(self):
        view = compile_cart_view(_cart(native_item(product_handle="gold-band")))
        product = view.lines[0].merchandise.product

        assert product.id == "gold-band"
        assert product.handle == "gold-band"
        assert product.images[0].url == "https://img.example.com/item.jpg"

    def test_quantity_below_one_displays_as_one(self):
        view = compile_cart_view(_cart(native_item(quantity=0, price="10.00")))

        assert view.lines[0].quantity == 1
        assert view.total_quantity == 1
        assert view.cost.total_amount.amount == "10.00"

    def test_unparseable_price_counts_as_zero(self):
        view = compile_cart_view(_cart(native_item(price="abc"), external_item(price="500")))

        assert view.cost.total_amount.amount == "500.00"
        assert view.lines[0].cost.total_amount.amount == "0.00"

    def test_mixed_currency_uses_first_items_currency(self):
        cart = _cart(
            native_item(price="10.00", currency_code="USD"),
            external_item(price="5.00", currency_code="EUR"),
        )

        view = compile_cart_view(cart)

        assert view.cost.total_amount.currency_code == "USD"
        assert view.cost.total_amount.amount == "15.00"
        assert all(line.merchandise.price.currency_code == "USD" for line in view.lines)

    def test_attributes_carried(self):
        attributes = [CartItemAttribute(key="Engraving", value="A+B")]
        view = compile_cart_view(_cart(native_item(attributes=attributes)))

        assert view.lines[0].attributes == attributes

    def test_does_not_modify_cart(self):
        cart = _cart(native_item(quantity=0), external_item())
        before = cart.model_dump()

        compile_cart_view(cart)

        assert cart.model_dump() == before

    def test_repeated_compiles_are_identical(self):
        cart = _cart(native_item(quantity=2), external_item(price="499.99"))

        assert compile_cart_view(cart).model_dump_json() == compile_cart_view(cart).model_dump_json()
