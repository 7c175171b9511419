# tests/test_merge_on_login.py
from unittest import mock

from storefront.errors import ApiError
from storefront.events import AUTH_CHANGED
from storefront.guest import GUEST_CART_KEY
from storefront.state import Phase


def login_alice(sf):
    return sf.auth.login("alice@example.com", "password")


def test_guest_cart_is_pushed_once_per_item_and_cleared(storefront):
    storefront.cart.add(1, 2)
    storefront.cart.add(2, 1)
    assert storefront.cart.count == 3

    with mock.patch.object(storefront.client, "add_to_cart", wraps=storefront.client.add_to_cart) as spy:
        login_alice(storefront)

    assert spy.call_count == 2
    assert storefront.guest_cart.get_cart() == []
    assert storefront.cart.phase is Phase.AUTHENTICATED
    lines = {(i.product_id, i.quantity) for i in storefront.cart.cart.items}
    assert lines == {(1, 2), (2, 1)}
    assert storefront.cart.last_merge.attempted == 2
    assert storefront.cart.last_merge.failed == 0


def test_failed_item_is_skipped_and_guest_storage_still_cleared(storefront):
    storefront.cart.add(3, 1)  # Canvas Tote is out of stock
    storefront.cart.add(2, 1)

    with mock.patch.object(storefront.client, "add_to_cart", wraps=storefront.client.add_to_cart) as spy:
        login_alice(storefront)

    assert spy.call_count == 2
    assert storefront.guest_cart.get_cart() == []
    assert storefront.cart.guest_cart == []
    assert [i.product_id for i in storefront.cart.cart.items] == [2]
    assert storefront.cart.last_merge.failed == 1
    assert storefront.cart.last_merge.succeeded == 1


def test_every_push_failing_still_clears_guest_storage(storefront):
    storefront.cart.add(1, 1)
    storefront.cart.add(4, 1)

    with mock.patch.object(storefront.client, "add_to_cart",
                           side_effect=ApiError("Server error. Please try again later.", 500, "server")) as spy:
        login_alice(storefront)

    assert spy.call_count == 2
    assert storefront.guest_cart.get_cart() == []
    assert storefront.cart.cart.items == []
    assert storefront.cart.last_merge.failed == 2


def test_malformed_response_counts_as_failed_item(storefront):
    storefront.cart.add(1, 1)
    storefront.cart.add(4, 2)
    real_add = storefront.client.add_to_cart

    def flaky(product_id, *args, **kwargs):
        if product_id == 1:
            raise KeyError("cart")
        return real_add(product_id, *args, **kwargs)

    with mock.patch.object(storefront.client, "add_to_cart", side_effect=flaky) as spy:
        login_alice(storefront)

    assert spy.call_count == 2
    assert storefront.cart.phase is Phase.AUTHENTICATED
    assert storefront.guest_cart.get_cart() == []
    assert [(i.product_id, i.quantity) for i in storefront.cart.cart.items] == [(4, 2)]
    assert storefront.cart.last_merge.failed == 1


def test_merge_runs_once_per_login(storefront):
    storefront.cart.add(1, 1)
    login_alice(storefront)

    # anything written to guest storage after the merge is not pushed again
    storefront.guest_cart.storage.set_item(GUEST_CART_KEY, '[{"productId": 4, "quantity": 1}]')
    with mock.patch.object(storefront.client, "add_to_cart", wraps=storefront.client.add_to_cart) as spy:
        storefront.events.emit(AUTH_CHANGED, True)
        storefront.cart.refresh()

    assert spy.call_count == 0
    assert [i.product_id for i in storefront.cart.cart.items] == [1]


def test_adds_go_to_server_once_authenticated(storefront):
    login_alice(storefront)
    storefront.cart.add(1, 3)
    assert storefront.guest_cart.get_cart() == []
    assert storefront.cart.count == 3


def test_guest_wishlist_is_merged(storefront):
    storefront.wishlist.add(3)
    storefront.wishlist.add(4)
    storefront.wishlist.add(4)
    assert storefront.wishlist.count == 2

    with mock.patch.object(storefront.client, "add_to_wishlist",
                           wraps=storefront.client.add_to_wishlist) as spy:
        login_alice(storefront)

    assert spy.call_count == 2
    assert storefront.guest_wishlist.get_wishlist() == []
    assert {i.product_id for i in storefront.wishlist.wishlist.items} == {3, 4}
    assert storefront.wishlist.contains(4)


def test_unknown_guest_product_is_logged_and_skipped(storefront, caplog):
    storefront.cart.add(999, 1)
    storefront.cart.add(1, 1)
    login_alice(storefront)

    assert storefront.guest_cart.get_cart() == []
    assert [i.product_id for i in storefront.cart.cart.items] == [1]
    assert "failed to merge product 999" in caplog.text


def test_logout_returns_to_guest(storefront):
    login_alice(storefront)
    storefront.cart.add(1, 1)
    storefront.auth.logout()

    assert storefront.cart.phase is Phase.GUEST
    assert storefront.cart.cart is None
    assert storefront.cart.count == 0
    assert not storefront.client.is_authenticated()

    storefront.cart.add(2, 1)
    assert [i.product_id for i in storefront.guest_cart.get_cart()] == [2]


def test_guest_updates_reach_the_view(storefront):
    storefront.guest_cart.add_item(4, 2)
    assert [(i.product_id, i.quantity) for i in storefront.cart.guest_cart] == [(4, 2)]
    storefront.guest_wishlist.add_item(1)
    assert [i.product_id for i in storefront.wishlist.guest_wishlist] == [1]
