# storefront/__main__.py
import argparse
import asyncio
import sys

from rich import print

from .config import settings
from .countdown import PaymentCountdown
from .errors import StorefrontError, format_error
from .log import configure_logging
from .session import build_storefront
from .variants import generate_variants, submit_variants


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="storefront", description="Storefront CLI")
    parser.add_argument("--api", help="API base URL (defaults to STOREFRONT_API_BASE_URL)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # ---------------------------
    # Product commands
    # ---------------------------
    lp = subparsers.add_parser("products", help="List products")
    lp.add_argument("--search", help="Filter by name")
    lp.add_argument("--category-id", type=int, help="Filter by category")
    lp.add_argument("--in-stock", action="store_true", help="Only products in stock")

    gp = subparsers.add_parser("product", help="Show a product by slug or id")
    gp.add_argument("slug")

    hp = subparsers.add_parser("hydrate", help="Fetch several products concurrently")
    hp.add_argument("ids", type=int, nargs="+")

    # ---------------------------
    # Auth commands
    # ---------------------------
    li = subparsers.add_parser("login", help="Log in (merges the guest cart and wishlist)")
    li.add_argument("--email", required=True)
    li.add_argument("--password", required=True)
    subparsers.add_parser("logout", help="Log out")
    subparsers.add_parser("whoami", help="Show the logged-in user")

    # ---------------------------
    # Cart commands
    # ---------------------------
    subparsers.add_parser("cart", help="Show the cart (guest or account)")
    add = subparsers.add_parser("add", help="Add a product to the cart")
    add.add_argument("--product-id", type=int, required=True)
    add.add_argument("--qty", type=int, default=1)
    add.add_argument("--variant-id", type=int)
    up = subparsers.add_parser("update", help="Change a quantity (cart line id, or product id as guest)")
    up.add_argument("--id", type=int, required=True)
    up.add_argument("--qty", type=int, required=True)
    up.add_argument("--variant-id", type=int, help="Guest only: limit to one variant line")
    rm = subparsers.add_parser("remove", help="Remove a cart line (cart line id, or product id as guest)")
    rm.add_argument("--id", type=int, required=True)
    rm.add_argument("--variant-id", type=int, help="Guest only: limit to one variant line")
    subparsers.add_parser("clear-cart", help="Empty the cart")

    # ---------------------------
    # Wishlist commands
    # ---------------------------
    subparsers.add_parser("wishlist", help="Show the wishlist")
    wa = subparsers.add_parser("wish", help="Add a product to the wishlist")
    wa.add_argument("--product-id", type=int, required=True)
    wr = subparsers.add_parser("unwish", help="Remove a product from the wishlist")
    wr.add_argument("--product-id", type=int, required=True)

    # ---------------------------
    # Order commands
    # ---------------------------
    subparsers.add_parser("orders", help="List my orders")
    co = subparsers.add_parser("checkout", help="Place an order for the cart")
    co.add_argument("--address", required=True, help="Shipping address line")
    co.add_argument("--city", required=True)
    co.add_argument("--country", default="US")
    pay = subparsers.add_parser("pay", help="Start payment and confirm it before the window closes")
    pay.add_argument("--order-id", type=int, required=True)
    ps = subparsers.add_parser("payment-status", help="Show payment status for an order")
    ps.add_argument("--order-id", type=int, required=True)

    # ---------------------------
    # Admin commands
    # ---------------------------
    subparsers.add_parser("attributes", help="List variant attributes")
    gv = subparsers.add_parser("variants", help="Generate variant combinations for a product")
    gv.add_argument("--product", required=True, help="Parent product slug or id")
    gv.add_argument("--attr", type=int, action="append", required=True, help="Attribute id (repeatable)")
    gv.add_argument("--submit", action="store_true", help="Create the variants on the server")
    return parser


def run(args, storefront) -> None:
    client = storefront.client

    if args.command == "products":
        page = client.list_products(search=args.search, category_id=args.category_id, in_stock=args.in_stock)
        for p in page["data"]:
            print(p.model_dump())

    elif args.command == "product":
        print(client.get_product(args.slug).model_dump())

    elif args.command == "hydrate":
        for p in asyncio.run(client.fetch_products_async(args.ids)):
            print(p.model_dump() if p else None)

    elif args.command == "login":
        resp = storefront.auth.login(args.email, args.password)
        print(f"[green]Logged in as {resp.user.email}[/green]")
        for label, report in (("cart", storefront.cart.last_merge), ("wishlist", storefront.wishlist.last_merge)):
            if report:
                print(f"Merged guest {label}: {report.succeeded}/{report.attempted} item(s)")

    elif args.command == "logout":
        storefront.auth.logout()
        print("[green]Logged out[/green]")

    elif args.command == "whoami":
        print(storefront.auth.user.model_dump() if storefront.auth.user else "guest")

    elif args.command == "cart":
        if storefront.cart.is_authenticated:
            print(storefront.cart.cart.model_dump() if storefront.cart.cart else None)
        else:
            print([item.model_dump(by_alias=True, exclude_none=True) for item in storefront.cart.guest_cart])

    elif args.command == "add":
        storefront.cart.add(args.product_id, args.qty, args.variant_id)
        print(f"[green]Cart now holds {storefront.cart.count} item(s)[/green]")

    elif args.command == "update":
        if storefront.cart.is_authenticated:
            storefront.cart.update_quantity(args.id, args.qty)
        else:
            storefront.cart.update_guest_item(args.id, args.qty, args.variant_id)
        print(f"[green]Cart now holds {storefront.cart.count} item(s)[/green]")

    elif args.command == "remove":
        if storefront.cart.is_authenticated:
            storefront.cart.remove_item(args.id)
        else:
            storefront.cart.remove_guest_item(args.id, args.variant_id)
        print(f"[green]Cart now holds {storefront.cart.count} item(s)[/green]")

    elif args.command == "clear-cart":
        storefront.cart.clear()
        print("[green]Cart cleared[/green]")

    elif args.command == "wishlist":
        if storefront.wishlist.is_authenticated:
            print(storefront.wishlist.wishlist.model_dump() if storefront.wishlist.wishlist else None)
        else:
            print([item.model_dump(by_alias=True, exclude_none=True) for item in storefront.wishlist.guest_wishlist])

    elif args.command == "wish":
        storefront.wishlist.add(args.product_id)
        print(f"[green]Wishlist now holds {storefront.wishlist.count} item(s)[/green]")

    elif args.command == "unwish":
        storefront.wishlist.remove(args.product_id)
        print(f"[green]Wishlist now holds {storefront.wishlist.count} item(s)[/green]")

    elif args.command == "orders":
        for o in client.list_orders():
            print(o.model_dump())

    elif args.command == "checkout":
        order = client.create_order({"shipping_address": {"line1": args.address, "city": args.city,
                                                          "country": args.country}})
        print(order.model_dump())

    elif args.command == "pay":
        intent = client.create_payment_intent(args.order_id)
        countdown = PaymentCountdown(intent.expires_at)
        print(f"Payment {intent.payment_intent_id}, time remaining {countdown.display()}")
        if not countdown.can_submit():
            raise StorefrontError("Payment time has expired. Please create a new order.")
        print(client.confirm_payment(args.order_id))

    elif args.command == "payment-status":
        print(client.get_payment_status(args.order_id).model_dump())

    elif args.command == "attributes":
        for a in client.get_attributes():
            print(a.model_dump())

    elif args.command == "variants":
        product = client.get_product(args.product)
        drafts = generate_variants(client.get_attributes(), args.attr, product.sku or product.slug,
                                   product.current_price)
        for d in drafts:
            print(d.model_dump())
        if args.submit:
            created = submit_variants(client, product.id, drafts)
            print(f"[green]Created {created} of {len(drafts)} variants[/green]")


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(settings.log_level)
    config = settings.model_copy(update={"api_base_url": args.api}) if args.api else settings
    storefront = build_storefront(config)
    try:
        run(args, storefront)
    except StorefrontError as e:
        print(f"[red]Error: {format_error(e)}[/red]")
        return 1
    finally:
        storefront.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
