# mockapi/database.py
import itertools
from typing import Any, Dict

# This file holds the in-memory data stores of the stand-in API.

USERS: Dict[int, Dict[str, Any]] = {}
TOKENS: Dict[str, int] = {}
CATEGORIES: Dict[int, Dict[str, Any]] = {}
PRODUCTS: Dict[int, Dict[str, Any]] = {}
ATTRIBUTES: Dict[int, Dict[str, Any]] = {}
VARIANTS: Dict[int, Dict[str, Any]] = {}
CARTS: Dict[int, Dict[int, Dict[str, Any]]] = {}
WISHLISTS: Dict[int, Dict[int, Dict[str, Any]]] = {}
ORDERS: Dict[int, Dict[str, Any]] = {}
PAYMENTS: Dict[int, Dict[str, Any]] = {}
REVIEWS: Dict[int, Dict[str, Any]] = {}
_COUNTERS: Dict[str, "itertools.count[int]"] = {}

STORES = (USERS, TOKENS, CATEGORIES, PRODUCTS, ATTRIBUTES, VARIANTS,
          CARTS, WISHLISTS, ORDERS, PAYMENTS, REVIEWS)


def next_id(kind: str) -> int:
    if kind not in _COUNTERS:
        _COUNTERS[kind] = itertools.count(1)
    return next(_COUNTERS[kind])


def seed() -> None:
    for store in STORES:
        store.clear()
    _COUNTERS.clear()

    for name, email, role in (("Admin", "admin@example.com", "admin"),
                              ("Alice", "alice@example.com", "customer")):
        uid = next_id("user")
        USERS[uid] = {"id": uid, "name": name, "email": email, "password": "password", "role": role}

    for name in ("Clothing", "Accessories"):
        cid = next_id("category")
        CATEGORIES[cid] = {"id": cid, "name": name, "slug": name.lower()}

    for name, sku, price, sale, stock, category in (
        ("Classic Tee", "TEE", 20.0, None, 50, 1),
        ("Denim Jacket", "JKT", 80.0, 64.0, 5, 1),
        ("Canvas Tote", "TOTE", 15.0, None, 0, 2),
        ("Wool Scarf", "SCARF", 30.0, None, 12, 2),
    ):
        pid = next_id("product")
        PRODUCTS[pid] = {
            "id": pid, "name": name, "slug": name.lower().replace(" ", "-"), "sku": sku,
            "price": price, "sale_price": sale, "stock_quantity": stock,
            "in_stock": stock > 0, "image": None, "category_id": category, "is_active": True,
        }

    for name, code, kind, values in (
        ("Color", "color", "color", (("Red", "red"), ("Blue", "blue"), ("Black", "black"))),
        ("Size", "size", "select", (("Small", "s"), ("Medium", "m"), ("Large", "l"))),
    ):
        aid = next_id("attribute")
        ATTRIBUTES[aid] = {
            "id": aid, "name": name, "code": code, "type": kind,
            "values": [{"id": next_id("attribute_value"), "value": v, "code": c} for v, c in values],
        }


seed()
