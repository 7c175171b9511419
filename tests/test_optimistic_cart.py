# tests/test_optimistic_cart.py
from unittest import mock

import pytest

from storefront.errors import ApiError, StorefrontError


@pytest.fixture
def shopper(storefront):
    storefront.auth.login("alice@example.com", "password")
    storefront.cart.add(1, 2)   # Classic Tee, 20.00
    storefront.cart.add(2, 1)   # Denim Jacket, 64.00 on sale, 5 in stock
    return storefront


def line_for(sf, product_id):
    return next(i for i in sf.cart.cart.items if i.product_id == product_id)


def test_update_shows_new_quantity_before_the_server_answers(shopper):
    item_id = line_for(shopper, 1).id
    real_update = shopper.client.update_cart_item
    seen = {}

    def check(i, quantity):
        seen["quantity"] = shopper.cart.cart.find_item(i).quantity
        seen["count"] = shopper.cart.count
        seen["subtotal"] = shopper.cart.cart.subtotal
        return real_update(i, quantity)

    with mock.patch.object(shopper.client, "update_cart_item", side_effect=check):
        cart = shopper.cart.update_quantity(item_id, 3)

    assert seen == {"quantity": 3, "count": 4, "subtotal": 124.0}
    assert cart.find_item(item_id).quantity == 3
    assert shopper.cart.count == 4


def test_rejected_update_reverts_to_server_state(shopper):
    item_id = line_for(shopper, 2).id

    with pytest.raises(ApiError) as exc:
        shopper.cart.update_quantity(item_id, 99)

    assert exc.value.status_code == 400
    assert "available" in exc.value.message
    assert shopper.cart.cart.find_item(item_id).quantity == 1
    assert shopper.cart.count == 3
    assert shopper.cart.cart.subtotal == 104.0


def test_failed_remove_refetches_the_cart(shopper):
    item_id = line_for(shopper, 1).id
    real_get = shopper.client.get_cart

    with mock.patch.object(shopper.client, "remove_cart_item",
                           side_effect=ApiError("Failed to remove item", 500, "server")), \
            mock.patch.object(shopper.client, "get_cart", wraps=real_get) as refetch:
        with pytest.raises(ApiError):
            shopper.cart.remove_item(item_id)

    assert refetch.call_count == 1
    assert shopper.cart.cart.find_item(item_id) is not None
    assert shopper.cart.count == 3


def test_remove_drops_the_line(shopper):
    item_id = line_for(shopper, 1).id
    cart = shopper.cart.remove_item(item_id)
    assert cart.find_item(item_id) is None
    assert shopper.cart.count == 1


def test_network_failure_during_update_also_reverts(shopper):
    item_id = line_for(shopper, 1).id
    with mock.patch.object(shopper.client, "update_cart_item",
                           side_effect=ApiError("Network error. Please check your connection.", kind="network")):
        with pytest.raises(ApiError):
            shopper.cart.update_quantity(item_id, 7)
    assert shopper.cart.cart.find_item(item_id).quantity == 2


def test_clear_empties_the_server_cart(shopper):
    shopper.cart.clear()
    assert shopper.cart.count == 0
    assert shopper.client.get_cart().items == []


def test_move_to_cart_needs_an_account(storefront):
    with pytest.raises(StorefrontError):
        storefront.wishlist.move_to_cart(1)


def test_move_wishlist_item_to_cart(shopper):
    shopper.wishlist.add(4)
    item_id = shopper.wishlist.wishlist.items[0].id
    wishlist = shopper.wishlist.move_to_cart(item_id)
    assert wishlist.items == []
    assert 4 in {i.product_id for i in shopper.client.get_cart().items}
