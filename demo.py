#!/usr/bin/env python
# Walk-through against the stand-in API: uvicorn mockapi.main:app --port 8000
from rich import print

from storefront.config import settings
from storefront.log import configure_logging
from storefront.session import build_storefront
from storefront.storage import MemoryStorage
from storefront.variants import generate_variants


def main():
    configure_logging(settings.log_level)
    sf = build_storefront(storage=MemoryStorage())

    # -----------------------------
    # Reset everything for demo
    # -----------------------------
    print("Resetting store...")
    sf.client.reset()

    # -----------------------------
    # Browse as a guest
    # -----------------------------
    print("\nListing products...")
    for p in sf.client.list_products()["data"]:
        print(f"  {p.id}: {p.name} ${p.current_price:.2f} (stock {p.stock_quantity})")

    print("\nAdding to the guest cart and wishlist...")
    sf.cart.add(1, 2)
    sf.cart.add(2, 1)
    sf.wishlist.add(4, name="Wool Scarf")
    print("  guest cart:", [i.model_dump(by_alias=True, exclude_none=True) for i in sf.cart.guest_cart])
    print("  guest wishlist:", [i.product_id for i in sf.wishlist.guest_wishlist])

    # -----------------------------
    # Log in: guest items move to the account
    # -----------------------------
    print("\nLogging in as alice@example.com...")
    sf.auth.login("alice@example.com", "password")
    print("  merge report:", sf.cart.last_merge)
    print("  guest storage after merge:", sf.guest_cart.get_cart())
    print(f"  server cart: {sf.cart.count} item(s), subtotal ${sf.cart.cart.subtotal:.2f}")

    # -----------------------------
    # Optimistic update that the server rejects
    # -----------------------------
    line = sf.cart.cart.items[1]
    print(f"\nAsking for 99 of '{line.product.name}' (only {line.product.stock_quantity} in stock)...")
    try:
        sf.cart.update_quantity(line.id, 99)
    except Exception as e:
        print(f"  rejected: {e}")
    print("  quantity after refetch:", sf.cart.cart.find_item(line.id).quantity)

    # -----------------------------
    # Checkout and pay
    # -----------------------------
    print("\nPlacing order...")
    order = sf.client.create_order({"shipping_address": {"line1": "1 Main St", "city": "Springfield"}})
    print(f"  order {order.order_number}: ${order.total:.2f}")
    intent = sf.client.create_payment_intent(order.id)
    print("  payment window closes at", intent.expires_at)
    print(" ", sf.client.confirm_payment(order.id))

    # -----------------------------
    # Admin: variant combinations
    # -----------------------------
    print("\nGenerating variants as admin...")
    sf.auth.logout()
    sf.auth.login("admin@example.com", "password")
    attributes = sf.client.get_attributes()
    for d in generate_variants(attributes, [a.id for a in attributes], "TEE", 20.0):
        print(f"  {d.sku} -> {d.attribute_values}")

    sf.close()


if __name__ == "__main__":
    main()
