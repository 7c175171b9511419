# tests/test_guest_storage.py
import json

from storefront.events import GUEST_CART_UPDATED, GUEST_WISHLIST_UPDATED, EventBus
from storefront.guest import GUEST_CART_KEY, GUEST_WISHLIST_KEY, GuestCartManager, GuestWishlistManager
from storefront.storage import LocalStorage, MemoryStorage


def make_cart():
    return GuestCartManager(MemoryStorage(), EventBus())


def test_readd_keeps_one_entry_with_latest_quantity():
    guest = make_cart()
    guest.add_item(1, 2)
    guest.add_item(1, 5)
    cart = guest.get_cart()
    assert len([i for i in cart if i.product_id == 1]) == 1
    assert cart[0].quantity == 5


def test_remove_item_drops_the_product():
    guest = make_cart()
    guest.add_item(1, 2)
    guest.add_item(2, 1)
    guest.remove_item(1)
    assert [i.product_id for i in guest.get_cart()] == [2]


def test_remove_by_product_id_drops_variant_and_metadata_lines():
    guest = make_cart()
    guest.add_item(1, 2, variant_id=10)
    guest.add_item(1, 1, metadata={"engraving": "AB"})
    guest.add_item(2, 1)
    guest.remove_item(1)
    assert 1 not in [i.product_id for i in guest.get_cart()]
    assert guest.count() == 1


def test_remove_with_variant_keeps_other_lines():
    guest = make_cart()
    guest.add_item(1, 1, variant_id=10)
    guest.add_item(1, 1, variant_id=11)
    guest.remove_item(1, variant_id=10)
    assert [i.variant_id for i in guest.get_cart()] == [11]


def test_update_by_product_id_reaches_variant_lines():
    guest = make_cart()
    guest.add_item(1, 1, variant_id=10)
    guest.update_item(1, 4)
    assert guest.get_cart()[0].quantity == 4


def test_clear_cart_leaves_empty_list():
    guest = make_cart()
    guest.add_item(1, 2)
    guest.clear_cart()
    assert guest.get_cart() == []
    assert guest.storage.get_item(GUEST_CART_KEY) == "[]"


def test_update_below_one_is_ignored():
    guest = make_cart()
    guest.add_item(3, 4)
    guest.update_item(3, 0)
    assert guest.get_cart()[0].quantity == 4
    guest.update_item(3, 7)
    assert guest.get_cart()[0].quantity == 7


def test_variants_of_one_product_are_separate_lines():
    guest = make_cart()
    guest.add_item(1, 1, variant_id=10)
    guest.add_item(1, 1, variant_id=11)
    guest.add_item(1, 3, variant_id=10)
    lines = {(i.variant_id, i.quantity) for i in guest.get_cart()}
    assert lines == {(10, 3), (11, 1)}
    assert guest.count() == 4


def test_cart_is_stored_as_camel_case_json_array():
    guest = make_cart()
    guest.add_item(1, 2)
    assert json.loads(guest.storage.get_item(GUEST_CART_KEY)) == [{"productId": 1, "quantity": 2}]


def test_unreadable_entries_read_as_empty():
    storage = MemoryStorage({GUEST_CART_KEY: "{not json", GUEST_WISHLIST_KEY: '{"productId": 1}'})
    assert GuestCartManager(storage).get_cart() == []
    assert GuestWishlistManager(storage).get_wishlist() == []

    storage.set_item(GUEST_CART_KEY, '[{"quantity": 2}]')
    assert GuestCartManager(storage).get_cart() == []


def test_mutations_emit_update_events():
    events = EventBus()
    seen = []
    events.on(GUEST_CART_UPDATED, lambda detail: seen.append(("cart", [i.product_id for i in detail])))
    events.on(GUEST_WISHLIST_UPDATED, lambda detail: seen.append(("wishlist", detail)))
    storage = MemoryStorage()

    GuestCartManager(storage, events).add_item(7, 1)
    GuestWishlistManager(storage, events).add_item(8)
    GuestCartManager(storage, events).clear_cart()

    assert seen == [("cart", [7]), ("wishlist", None), ("cart", [])]


def test_wishlist_readd_is_a_no_op():
    guest = GuestWishlistManager(MemoryStorage(), EventBus())
    first = guest.add_item(5, name="Wool Scarf")[0]
    guest.add_item(5, name="Renamed")
    items = guest.get_wishlist()
    assert len(items) == 1
    assert items[0].added_at == first.added_at
    assert items[0].name == "Wool Scarf"
    assert guest.is_in_wishlist(5)
    assert not guest.is_in_wishlist(6)


def test_wishlist_remove_and_clear():
    guest = GuestWishlistManager(MemoryStorage(), EventBus())
    guest.add_item(1)
    guest.add_item(2)
    guest.remove_item(1)
    assert [i.product_id for i in guest.get_wishlist()] == [2]
    guest.clear_wishlist()
    assert guest.get_wishlist() == []
    assert guest.count() == 0


def test_local_storage_survives_a_new_instance(tmp_path):
    path = tmp_path / "state" / "storage.json"
    GuestCartManager(LocalStorage(path)).add_item(4, 3)
    again = GuestCartManager(LocalStorage(path)).get_cart()
    assert [(i.product_id, i.quantity) for i in again] == [(4, 3)]


def test_corrupt_storage_file_reads_as_empty(tmp_path):
    path = tmp_path / "storage.json"
    path.write_text("this is not json", encoding="utf-8")
    storage = LocalStorage(path)
    assert storage.get_item(GUEST_CART_KEY) is None
    GuestCartManager(storage).add_item(1, 1)
    assert json.loads(path.read_text(encoding="utf-8"))[GUEST_CART_KEY] == '[{"productId": 1, "quantity": 1}]'
