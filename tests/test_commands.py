# tests/test_commands.py
from storefront.__main__ import build_parser, run


def command(storefront, *argv):
    run(build_parser().parse_args(list(argv)), storefront)


def test_guest_remove_by_product_drops_variant_line(storefront):
    command(storefront, "add", "--product-id", "1", "--variant-id", "10")
    command(storefront, "add", "--product-id", "2", "--qty", "2")
    command(storefront, "remove", "--id", "1")
    assert [i.product_id for i in storefront.guest_cart.get_cart()] == [2]


def test_guest_update_can_target_one_variant(storefront):
    command(storefront, "add", "--product-id", "1", "--variant-id", "10")
    command(storefront, "add", "--product-id", "1", "--variant-id", "11")
    command(storefront, "update", "--id", "1", "--qty", "3", "--variant-id", "11")
    lines = {(i.variant_id, i.quantity) for i in storefront.guest_cart.get_cart()}
    assert lines == {(10, 1), (11, 3)}
    command(storefront, "remove", "--id", "1", "--variant-id", "10")
    assert [i.variant_id for i in storefront.guest_cart.get_cart()] == [11]
