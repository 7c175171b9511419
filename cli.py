# cli.py - interactive storefront with autocomplete
import sys
from datetime import datetime
from typing import List, Optional

from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.prompt import IntPrompt, Confirm, Prompt
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.text import Text
from rich import box

from prompt_toolkit import prompt
from prompt_toolkit.completion import WordCompleter
from prompt_toolkit.styles import Style as PromptStyle

from storefront.config import settings
from storefront.countdown import PaymentCountdown
from storefront.errors import StorefrontError, format_error
from storefront.log import configure_logging
from storefront.models import Cart, Order, Product, Wishlist
from storefront.session import build_storefront
from storefront.variants import generate_variants, submit_variants, value_label

console = Console()

# Global state for status messages and caching
status_message = "Ready"
product_cache: List[Product] = []
email_cache = set()

# Custom prompt style for prompt_toolkit
custom_style = PromptStyle.from_dict({
    'completion-menu.completion': 'bg:#008888 #ffffff',
    'completion-menu.completion.current': 'bg:#00aaaa #000000',
    'scrollbar.background': 'bg:#88aaaa',
    'scrollbar.button': 'bg:#222222',
    'bottom-toolbar': 'bg:#222222 #ffffff',
})


# ---------------------------
# Display helpers
# ---------------------------
def money(amount: Optional[float]) -> str:
    return f"${(amount or 0):.2f}"


def show_products(products: List[Product]):
    if not products:
        console.print("[italic yellow]No products found[/italic yellow]")
        return

    table = Table(
        title="📦 Products Catalog",
        box=box.ROUNDED,
        header_style="bold cyan",
        title_style="bold magenta",
        show_lines=True
    )
    table.add_column("ID", style="dim", width=6)
    table.add_column("Name", style="bold", width=22)
    table.add_column("Slug", width=18)
    table.add_column("Price", justify="right", width=16)
    table.add_column("Stock", justify="right", width=8)

    for p in products:
        price = money(p.price)
        if p.sale_price is not None:
            price = f"[strike]{price}[/strike] [green]{money(p.sale_price)}[/green]"
        stock = str(p.stock_quantity) if p.in_stock else "[red]out[/red]"
        table.add_row(str(p.id), p.name, p.slug or "-", price, stock)
    console.print(table)


def show_cart(storefront):
    state = storefront.cart
    if not state.is_authenticated:
        items = state.guest_cart
        title = Text()
        title.append("🛒 Guest Cart", style="bold")
        title.append(f" - {state.count} item(s)", style="bold green")
        if not items:
            console.print(Panel("Your cart is empty 🛍️", title=title, style="blue"))
            return
        table = Table(box=box.ROUNDED, header_style="bold blue", show_lines=True)
        table.add_column("Product", style="bold", width=30)
        table.add_column("Variant", width=10)
        table.add_column("Qty", justify="right", width=8)
        names = {p.id: p.name for p in product_cache}
        for it in items:
            table.add_row(names.get(it.product_id, f"Product {it.product_id}"),
                          str(it.variant_id or "-"), str(it.quantity))
        console.print(Panel(table, title=title, border_style="blue"))
        console.print("[dim]Log in to check out; guest items move to your account.[/dim]")
        return

    cart: Optional[Cart] = state.cart
    if cart is None:
        console.print("[italic yellow]No cart data[/italic yellow]")
        return
    title = Text()
    title.append("🛒 Shopping Cart - ", style="bold")
    title.append(storefront.auth.user.email if storefront.auth.user else "you", style="bold cyan")
    title.append(f" - Total: {money(cart.subtotal)}", style="bold green")
    if not cart.items:
        console.print(Panel("Your cart is empty 🛍️", title=title, style="blue"))
        return

    table = Table(box=box.ROUNDED, header_style="bold blue", show_lines=True)
    table.add_column("Line", style="dim", width=6)
    table.add_column("Product", style="bold", width=28)
    table.add_column("Qty", justify="right", width=8)
    table.add_column("Price", justify="right", width=12)
    table.add_column("Subtotal", justify="right", width=12)
    for it in cart.items:
        name = it.product.name if it.product else f"[red]Missing product: {it.product_id}[/red]"
        table.add_row(str(it.id), name, str(it.quantity), money(it.price), money(it.total))
    console.print(Panel(table, title=title, border_style="blue"))


def show_wishlist(storefront):
    state = storefront.wishlist
    table = Table(title="💖 Wishlist", box=box.ROUNDED, header_style="bold magenta", show_lines=True)
    table.add_column("Item", style="dim", width=6)
    table.add_column("Product", style="bold", width=30)
    table.add_column("Added", width=22)

    if not state.is_authenticated:
        names = {p.id: p.name for p in product_cache}
        for it in state.guest_wishlist:
            table.add_row("-", it.name or names.get(it.product_id, f"Product {it.product_id}"), it.added_at[:19])
    else:
        wishlist: Optional[Wishlist] = state.wishlist
        for it in (wishlist.items if wishlist else []):
            table.add_row(str(it.id), it.product.name if it.product else f"Product {it.product_id}", "-")

    if state.count == 0:
        console.print("[italic yellow]Your wishlist is empty[/italic yellow]")
        return
    console.print(table)


def show_orders(orders: List[Order]):
    if not orders:
        console.print("[italic yellow]No orders found[/italic yellow]")
        return

    table = Table(
        title="📋 Orders",
        box=box.ROUNDED,
        header_style="bold yellow",
        title_style="bold yellow",
        show_lines=True
    )
    table.add_column("Order", style="dim", width=14)
    table.add_column("Contents", width=36)
    table.add_column("Status", width=12)
    table.add_column("Payment", width=18)
    table.add_column("Total", justify="right", width=10)

    for order in orders:
        names = [f"{it.name or it.product_id} x{it.quantity}" for it in order.items[:3]]
        contents = ", ".join(names) if names else "No items"
        if len(order.items) > 3:
            contents += f" +{len(order.items) - 3} more"
        status_style = "green" if order.status in ("processing", "shipped", "delivered") else "yellow"
        pay_style = "green" if order.payment_status == "paid" else "yellow"
        table.add_row(
            order.order_number or str(order.id),
            contents,
            f"[{status_style}]{order.status}[/{status_style}]",
            f"[{pay_style}]{order.payment_status}[/{pay_style}]",
            money(order.total),
        )
    console.print(table)


def show_reviews(storefront, product: Product):
    stats = try_api(storefront.client.get_review_statistics, product.id)
    reviews = try_api(storefront.client.get_product_reviews, product.id)
    if stats:
        console.print(Panel.fit(
            f"⭐ [bold]{stats.get('average_rating', 0)}[/bold] from {stats.get('total_reviews', 0)} review(s)",
            title=f"Reviews for {product.name}", border_style="yellow"))
    for r in (reviews or {}).get("data", [])[:5]:
        console.print(f"[yellow]{'★' * r['rating']}{'☆' * (5 - r['rating'])}[/yellow] "
                      f"[bold]{r.get('title') or ''}[/bold] - {r.get('user_name', 'anonymous')}")
        console.print(f"   {r['comment']}")


def show_status(message: str, is_success: bool = True):
    style = "green" if is_success else "red"
    return Panel.fit(f"[{style}]{message}[/{style}]", title="Status")


# ---------------------------
# API wrapper with error reporting
# ---------------------------
def try_api(fn, *args, success_msg: Optional[str] = None, **kwargs):
    """
    Calls fn(*args, **kwargs) behind a spinner.
    Storefront errors are shown as a status panel and turn into None.
    """
    global status_message
    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            transient=True,
        ) as progress:
            progress.add_task(description="Processing...", total=None)
            result = fn(*args, **kwargs)

        if success_msg:
            status_message = success_msg
            console.print(show_status(success_msg, True))
        return result
    except StorefrontError as e:
        status_message = f"Error: {format_error(e)}"
        console.print(show_status(status_message, False))
        return None


# ---------------------------
# Autocompletion helpers
# ---------------------------
def refresh_products(storefront):
    global product_cache
    page = try_api(storefront.client.list_products, per_page=100)
    if page is not None:
        product_cache = page["data"]
    return product_cache


def get_product_completer():
    words = [str(p.id) for p in product_cache] + [p.slug for p in product_cache if p.slug]
    return WordCompleter(words, ignore_case=True)


def get_email_completer():
    return WordCompleter(list(email_cache), ignore_case=True)


def ask_product_id(message: str = "Enter product ID or slug") -> Optional[int]:
    raw = prompt_with_autocomplete(message, completer=get_product_completer()).strip()
    for p in product_cache:
        if raw == str(p.id) or raw == p.slug:
            return p.id
    try:
        return int(raw)
    except ValueError:
        console.print(f"[red]Unknown product '{raw}'[/red]")
        return None


# ---------------------------
# Layout and Header
# ---------------------------
def create_header(storefront):
    header = Table(show_header=False, box=box.ROUNDED)
    header.add_column("left", width=30)
    header.add_column("center", width=40)
    header.add_column("right", width=30)

    now = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    who = storefront.auth.user.email if storefront.auth.user else "guest"
    header.add_row(
        f"🛍️ Storefront ({who})",
        f"[bold blue]🛒 {storefront.cart.count}  💖 {storefront.wishlist.count}[/bold blue]",
        f"[dim]{now}[/dim]"
    )
    return Panel(header, style="bold blue")


# ---------------------------
# Input helpers with autocomplete
# ---------------------------
def prompt_with_autocomplete(message: str, completer=None, default: str = "", **kwargs):
    return prompt(f"{message} ", completer=completer, style=custom_style, default=default, **kwargs)


# ---------------------------
# Flows
# ---------------------------
def login_flow(storefront, register: bool = False):
    email = prompt_with_autocomplete("Email", completer=get_email_completer()).strip()
    email_cache.add(email)
    password = Prompt.ask("Password", password=True)
    guest_items = len(storefront.guest_cart.get_cart()) + len(storefront.guest_wishlist.get_wishlist())
    if register:
        name = Prompt.ask("Name")
        resp = try_api(storefront.auth.register, name, email, password, success_msg=f"Welcome, {name}!")
    else:
        resp = try_api(storefront.auth.login, email, password, success_msg=f"Logged in as {email}")
    if resp is None:
        return
    if guest_items:
        failed = sum(r.failed for r in (storefront.cart.last_merge, storefront.wishlist.last_merge) if r)
        note = f"Moved {guest_items} guest item(s) to your account"
        if failed:
            note += f" ([yellow]{failed} could not be added[/yellow])"
        console.print(Panel.fit(note, title="🔀 Merge"))


def checkout_flow(storefront):
    if not storefront.auth.is_authenticated:
        console.print("[yellow]Please log in to check out.[/yellow]")
        return
    show_cart(storefront)
    if not storefront.cart.cart or not storefront.cart.cart.items:
        return
    if not Confirm.ask("Place order for this cart?"):
        return
    address = {
        "name": Prompt.ask("Full name", default=storefront.auth.user.name if storefront.auth.user else ""),
        "line1": Prompt.ask("Address"),
        "city": Prompt.ask("City"),
        "postal_code": Prompt.ask("Postal code"),
        "country": Prompt.ask("Country", default="US"),
    }
    order = try_api(storefront.client.create_order, {"shipping_address": address, "payment_method": "stripe"},
                    success_msg="Order placed")
    storefront.cart.refresh()
    if order is None:
        return
    pay_flow(storefront, order.id)


def pay_flow(storefront, order_id: int):
    intent = try_api(storefront.client.create_payment_intent, order_id)
    if intent is None:
        return
    countdown = PaymentCountdown(intent.expires_at)
    ticker = {"text": countdown.display()}
    countdown.start(lambda text: ticker.update(text=text))
    try:
        console.print(Panel.fit(
            f"Payment intent [bold]{intent.payment_intent_id}[/bold]\n"
            f"Complete payment before the timer expires.",
            title="💳 Payment", border_style="blue"))
        answer = prompt_with_autocomplete(
            "Type 'pay' to confirm, anything else to leave:",
            bottom_toolbar=lambda: f" Time remaining: {ticker['text']} ",
            refresh_interval=1.0,
        ).strip().lower()
    finally:
        countdown.stop()
    if answer != "pay":
        console.print("[dim]Payment left pending; you can resume it from the orders menu.[/dim]")
        return
    if not countdown.can_submit():
        console.print(show_status("Payment time has expired. Please create a new order.", False))
        return
    resp = try_api(storefront.client.confirm_payment, order_id, success_msg="Payment successful")
    if resp:
        console.print(Panel.fit(f"[green]Order {order_id} is {resp.get('payment_status')}[/green]",
                                title="✅ Payment"))


def review_flow(storefront):
    pid = ask_product_id()
    if pid is None:
        return
    eligibility = try_api(storefront.client.can_review, pid)
    if not eligibility:
        return
    if not eligibility.get("can_review"):
        console.print(f"[yellow]{eligibility.get('reason') or 'You cannot review this product.'}[/yellow]")
        return
    rating = IntPrompt.ask("Rating (1-5)", choices=[str(i) for i in range(1, 6)])
    title = Prompt.ask("Title", default="")
    comment = Prompt.ask("Comment")
    try_api(storefront.client.create_review, pid, rating, title, comment,
            success_msg="Review submitted and awaiting moderation")


def variants_flow(storefront):
    if not (storefront.auth.user and storefront.auth.user.is_admin):
        console.print("[yellow]Admin only.[/yellow]")
        return
    attributes = try_api(storefront.client.get_attributes)
    if not attributes:
        return
    for a in attributes:
        console.print(f"[cyan]{a.id}[/cyan] {a.name}: " + ", ".join(f"{v.value} ({v.code})" for v in a.values))
    raw = Prompt.ask("Attribute ids (comma separated)")
    try:
        selected = [int(x) for x in raw.replace(" ", "").split(",") if x]
    except ValueError:
        console.print("[red]Please enter numeric ids.[/red]")
        return
    pid = ask_product_id("Parent product")
    if pid is None:
        return
    product = try_api(storefront.client.get_product, str(pid))
    if product is None:
        return
    drafts = try_api(generate_variants, attributes, selected, product.sku or product.slug, product.current_price,
                     success_msg="Variant combinations generated")
    if not drafts:
        return
    table = Table(title=f"Variants for {product.name}", box=box.ROUNDED, show_lines=False)
    table.add_column("SKU", style="bold")
    table.add_column("Values")
    table.add_column("Price", justify="right")
    table.add_column("Stock", justify="right")
    for d in drafts:
        table.add_row(d.sku, " / ".join(value_label(attributes, v) for v in d.attribute_values),
                      money(d.price), str(d.stock_quantity))
    console.print(table)
    if Confirm.ask(f"Create {len(drafts)} variant(s)?"):
        created = try_api(submit_variants, storefront.client, product.id, drafts)
        if created is not None:
            console.print(show_status(f"Created {created} of {len(drafts)} variants successfully", True))


def inventory_flow(storefront):
    low = try_api(storefront.client.admin_list_products, stock_status="low")
    out = try_api(storefront.client.admin_list_products, stock_status="out")
    if low is None or out is None:
        return
    console.print(Panel.fit(f"Low stock: [yellow]{len(low['data'])}[/yellow]   "
                            f"Out of stock: [red]{len(out['data'])}[/red]", title="📦 Inventory"))
    show_products([Product.model_validate(p) for p in low["data"] + out["data"]])


# ---------------------------
# Main menu
# ---------------------------
def menu():
    global status_message

    storefront = build_storefront()
    console.clear()
    console.print(create_header(storefront))

    # Preload products for autocomplete
    refresh_products(storefront)

    while True:
        # Display status
        if status_message:
            console.print(show_status(status_message, "Error" not in status_message))

        menu_table = Table.grid(padding=(0, 2))
        menu_table.add_column("Key", style="bold cyan", width=4)
        menu_table.add_column("Option", width=30)
        menu_table.add_column("Key", style="bold cyan", width=4)
        menu_table.add_column("Option", width=30)

        logged_in = storefront.auth.is_authenticated
        options = [
            ("1", "📦 List products", "9", "💖 Add to wishlist"),
            ("2", "🔍 Search products", "10", "💔 Remove from wishlist"),
            ("3", "ℹ️ Product details", "11", "🔐 Log out" if logged_in else "🔐 Log in"),
            ("4", "🛒 Add to cart", "12", "📝 Register"),
            ("5", "🧺 View cart", "13", "✅ Checkout & pay"),
            ("6", "✏️ Change quantity", "14", "📋 My orders"),
            ("7", "➖ Remove from cart", "15", "⭐ Write a review"),
            ("8", "💖 View wishlist", "16", "🧬 Admin: generate variants"),
            ("", "", "17", "📦 Admin: inventory"),
            ("", "", "q", "👋 Quit"),
        ]
        for row in options:
            menu_table.add_row(*row)

        console.print(Panel(menu_table, title="📋 Menu", border_style="yellow"))

        choice = prompt_with_autocomplete(
            "\nChoose an option",
            completer=WordCompleter([str(i) for i in range(1, 18)] + ["q", "quit", "exit"])
        ).strip()

        if choice == "1":
            show_products(refresh_products(storefront))

        elif choice == "2":
            term = prompt_with_autocomplete("Enter search term")
            page = try_api(storefront.client.list_products, search=term,
                           success_msg=f"Search for '{term}' completed")
            if page is not None:
                show_products(page["data"])

        elif choice == "3":
            pid = ask_product_id()
            if pid is not None:
                product = try_api(storefront.client.get_product, str(pid))
                if product:
                    show_products([product])
                    show_reviews(storefront, product)

        elif choice == "4":
            pid = ask_product_id()
            if pid is not None:
                qty = IntPrompt.ask("Quantity", default=1)
                if try_api(storefront.cart.add, pid, qty, success_msg=f"Added {qty} of product {pid} to cart") \
                        is not None or not storefront.cart.is_authenticated:
                    show_cart(storefront)

        elif choice == "5":
            storefront.cart.refresh()
            show_cart(storefront)

        elif choice == "6":
            if storefront.cart.is_authenticated:
                line = IntPrompt.ask("Cart line")
                qty = IntPrompt.ask("New quantity", default=1)
                try_api(storefront.cart.update_quantity, line, qty, success_msg="Quantity updated")
            else:
                pid = ask_product_id()
                if pid is not None:
                    qty = IntPrompt.ask("New quantity", default=1)
                    storefront.cart.update_guest_item(pid, qty)
            show_cart(storefront)

        elif choice == "7":
            if storefront.cart.is_authenticated:
                line = IntPrompt.ask("Cart line")
                try_api(storefront.cart.remove_item, line, success_msg="Item removed")
            else:
                pid = ask_product_id()
                if pid is not None:
                    storefront.cart.remove_guest_item(pid)
            show_cart(storefront)

        elif choice == "8":
            storefront.wishlist.refresh()
            show_wishlist(storefront)
            if storefront.wishlist.is_authenticated and storefront.wishlist.count \
                    and Confirm.ask("Move an item to the cart?", default=False):
                item = IntPrompt.ask("Wishlist item")
                if try_api(storefront.wishlist.move_to_cart, item, success_msg="Moved to cart") is not None:
                    storefront.cart.refresh()

        elif choice == "9":
            pid = ask_product_id()
            if pid is not None:
                details = {}
                for p in product_cache:
                    if p.id == pid:
                        details = {"name": p.name, "slug": p.slug, "price": p.price}
                try_api(storefront.wishlist.add, pid, **details, success_msg=f"Product {pid} saved to wishlist")

        elif choice == "10":
            pid = ask_product_id()
            if pid is not None:
                try_api(storefront.wishlist.remove, pid, success_msg=f"Product {pid} removed from wishlist")

        elif choice == "11":
            if logged_in:
                storefront.auth.logout()
                status_message = "Logged out"
            else:
                login_flow(storefront)

        elif choice == "12":
            login_flow(storefront, register=True)

        elif choice == "13":
            checkout_flow(storefront)

        elif choice == "14":
            orders = try_api(storefront.client.list_orders, success_msg="Orders loaded")
            if orders is not None:
                show_orders(orders)
                pending = [o for o in orders if o.payment_status == "pending"]
                if pending and Confirm.ask("Resume a pending payment?", default=False):
                    order_id = IntPrompt.ask("Order id", choices=[str(o.id) for o in pending])
                    pay_flow(storefront, order_id)

        elif choice == "15":
            review_flow(storefront)

        elif choice == "16":
            variants_flow(storefront)

        elif choice == "17":
            inventory_flow(storefront)

        elif choice.lower() in ("q", "quit", "exit"):
            if Confirm.ask("Are you sure you want to quit?"):
                storefront.close()
                console.print(Panel.fit("[bold green]Thanks for shopping! 👋[/bold green]", title="Goodbye"))
                sys.exit(0)

        # Add a separator before next iteration
        console.print()
        console.rule(style="dim")
        console.print(create_header(storefront))


if __name__ == "__main__":
    configure_logging(settings.log_level)
    try:
        menu()
    except KeyboardInterrupt:
        console.print("\n\n[bold red]Interrupted by user[/bold red]")
        sys.exit(1)
    except Exception as e:
        console.print(f"\n\n[bold red]Unexpected error: {e}[/bold red]")
        sys.exit(1)
