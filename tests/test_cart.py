import asyncio

import pytest
from pydantic import ValidationError

from cart import CartItemUpdate, CartStore, CheckoutRequest
from errors import NotFound, ValidationFailure
from products import CatalogStore, ProductUpdate

PRODUCTS = [
    {"id": 5, "name": "Gold Chain", "category": "Chains", "price": 20000},
    {"id": 6, "name": "Nose Pin", "category": "Nose Pins", "price": 10000},
    {"id": 7, "name": "Choker", "category": "Necklaces", "price": 60000},
]

SHIPPING = {
    "firstName": "Priya",
    "lastName": "Sharma",
    "email": "priya@example.com",
    "phone": "+91 98765 43210",
    "address": "12 MG Road",
    "city": "Bengaluru",
    "state": "Karnataka",
    "pincode": "560001",
}


@pytest.fixture
def catalog():
    return CatalogStore(PRODUCTS)


@pytest.fixture
def cart(catalog):
    return CartStore(catalog)


async def test_adding_same_product_accumulates_quantity(cart):
    await cart.add(5, 2, {"size": "18in"})
    line = await cart.add(5, 3, {"engraving": "P&R"})

    items = await cart.get_all()
    assert len(items) == 1
    assert line.quantity == 5
    assert items[0].quantity == 5
    assert items[0].selected_options == {"size": "18in", "engraving": "P&R"}


async def test_new_options_win_on_conflict(cart):
    await cart.add(5, 1, {"size": "16in"})
    line = await cart.add(5, 1, {"size": "18in"})
    assert line.selected_options == {"size": "18in"}


async def test_new_lines_get_next_id(cart):
    first = await cart.add(5)
    second = await cart.add(6)
    assert (first.id, second.id) == (1, 2)
    assert first.quantity == 1


async def test_quantity_must_be_positive(cart):
    with pytest.raises(ValidationError):
        await cart.add(5, 0)


async def test_lines_for_missing_products_are_dropped(cart, catalog):
    await cart.add(5, 1)
    await cart.add(6, 2)
    await catalog.delete(6)

    lines = await cart.get_all()
    assert [line.product.name for line in lines] == ["Gold Chain"]

    totals = await cart.get_total()
    assert totals.subtotal == 20000
    assert totals.item_count == 1
    assert await cart.item_count() == 3


async def test_totals_with_free_shipping(cart):
    await cart.add(7, 1)

    totals = await cart.get_total()
    assert totals.subtotal == 60000
    assert totals.tax == pytest.approx(1800)
    assert totals.shipping == 0
    assert totals.total == pytest.approx(61800)


async def test_totals_with_flat_shipping(cart):
    await cart.add(5, 2)

    totals = await cart.get_total()
    assert totals.subtotal == 40000
    assert totals.tax == pytest.approx(1200)
    assert totals.shipping == 500
    assert totals.total == pytest.approx(41700)
    assert totals.item_count == 2


async def test_free_shipping_needs_strictly_more_than_threshold(cart):
    await cart.add(5, 2)
    await cart.add(6, 1)

    totals = await cart.get_total()
    assert totals.subtotal == 50000
    assert totals.shipping == 500


async def test_update_and_remove(cart):
    line = await cart.add(5, 1)
    updated = await cart.update(line.id, CartItemUpdate(quantity=4))

    assert updated.quantity == 4
    assert updated.updated_at is not None

    removed = await cart.remove(line.id)
    assert removed.id == line.id
    assert await cart.get_all() == []

    with pytest.raises(NotFound):
        await cart.update(line.id, CartItemUpdate(quantity=1))
    with pytest.raises(NotFound):
        await cart.remove(line.id)


async def test_clear_returns_removed_count(cart):
    await cart.add(5)
    await cart.add(6)

    assert await cart.clear() == 2
    assert await cart.get_all() == []


async def test_checkout_prices_and_empties_cart(cart):
    await cart.add(7, 1)
    confirmation = await cart.checkout(CheckoutRequest.model_validate({"shipping": SHIPPING, "paymentMethod": "upi"}))

    assert confirmation.order_number.startswith("JC-")
    assert confirmation.totals.total == pytest.approx(61800)
    assert confirmation.currency == "INR"
    assert confirmation.payment_method == "upi"
    assert [line.product_id for line in confirmation.lines] == [7]
    assert await cart.get_all() == []


async def test_checkout_of_empty_cart_is_rejected(cart):
    with pytest.raises(ValidationFailure):
        await cart.checkout(CheckoutRequest.model_validate({"shipping": SHIPPING}))


def test_checkout_requires_shipping_fields():
    incomplete = {**SHIPPING, "pincode": ""}
    with pytest.raises(ValidationError):
        CheckoutRequest.model_validate({"shipping": incomplete})


async def test_tax_is_exactly_three_percent_of_odd_subtotals(cart, catalog):
    await catalog.update(5, ProductUpdate(price=33333.33))
    await cart.add(5, 1)

    totals = await cart.get_total()
    assert totals.tax == pytest.approx(999.9999)
    assert totals.total == pytest.approx(33333.33 + 999.9999 + 500)


async def test_lines_are_resolved_concurrently(cart, catalog, monkeypatch):
    await cart.add(5, 1)
    await cart.add(6, 1)
    await cart.add(7, 1)

    in_flight = 0
    peak = 0
    lookup = catalog.get_by_id

    async def tracked_lookup(product_id):
        nonlocal in_flight, peak
        in_flight += 1
        peak = max(peak, in_flight)
        await asyncio.sleep(0)
        try:
            return await lookup(product_id)
        finally:
            in_flight -= 1

    monkeypatch.setattr(catalog, "get_by_id", tracked_lookup)

    lines = await cart.get_all()
    assert [line.product_id for line in lines] == [5, 6, 7]
    assert peak == 3
