# storefront/guest.py
"""Guest cart and wishlist kept in local storage.

Lets a visitor collect items before logging in. Reads fail soft: a missing or
unreadable entry is an empty list. Every mutation writes the whole list back
and emits an update event so other views can resync.
"""
import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from .events import GUEST_CART_UPDATED, GUEST_WISHLIST_UPDATED, EventBus
from .models import GuestCartItem, GuestWishlistItem

logger = logging.getLogger(__name__)

GUEST_CART_KEY = "guest_cart"
GUEST_WISHLIST_KEY = "guest_wishlist"


def _load_list(storage, key: str, model) -> list:
    raw = storage.get_item(key)
    if not raw:
        return []
    try:
        data = json.loads(raw)
        if not isinstance(data, list):
            raise ValueError(f"expected a list, got {type(data).__name__}")
        return [model.model_validate(entry) for entry in data]
    except (ValueError, TypeError, ValidationError) as e:
        logger.error("Failed to read %s: %s", key, e)
        return []


def _matches(item: GuestCartItem, product_id: int, variant_id: Optional[int],
             metadata: Optional[Dict[str, Any]]) -> bool:
    # a bare product id addresses every line of that product
    if variant_id is None and not metadata:
        return item.product_id == product_id
    return item.same_line(product_id, variant_id, metadata)


class GuestCartManager:
    def __init__(self, storage, events: Optional[EventBus] = None):
        self.storage = storage
        self.events = events or EventBus()

    def get_cart(self) -> List[GuestCartItem]:
        return _load_list(self.storage, GUEST_CART_KEY, GuestCartItem)

    def save_cart(self, cart: List[GuestCartItem]) -> None:
        try:
            self.storage.set_item(
                GUEST_CART_KEY,
                json.dumps([item.model_dump(by_alias=True, exclude_none=True) for item in cart]),
            )
        except OSError as e:
            logger.error("Failed to save guest cart: %s", e)
            return
        self.events.emit(GUEST_CART_UPDATED, list(cart))

    def add_item(self, product_id: int, quantity: int = 1, variant_id: Optional[int] = None,
                 metadata: Optional[Dict[str, Any]] = None) -> List[GuestCartItem]:
        cart = self.get_cart()
        for item in cart:
            if item.same_line(product_id, variant_id, metadata):
                item.quantity = quantity
                break
        else:
            cart.append(GuestCartItem(product_id=product_id, quantity=quantity,
                                      variant_id=variant_id, metadata=metadata or None))
        self.save_cart(cart)
        return cart

    def update_item(self, product_id: int, quantity: int, variant_id: Optional[int] = None,
                    metadata: Optional[Dict[str, Any]] = None) -> List[GuestCartItem]:
        cart = self.get_cart()
        if quantity < 1:
            return cart
        for item in cart:
            if _matches(item, product_id, variant_id, metadata):
                item.quantity = quantity
        self.save_cart(cart)
        return cart

    def remove_item(self, product_id: int, variant_id: Optional[int] = None,
                    metadata: Optional[Dict[str, Any]] = None) -> List[GuestCartItem]:
        cart = [item for item in self.get_cart() if not _matches(item, product_id, variant_id, metadata)]
        self.save_cart(cart)
        return cart

    def clear_cart(self) -> None:
        self.save_cart([])

    def count(self) -> int:
        return sum(item.quantity for item in self.get_cart())


class GuestWishlistManager:
    def __init__(self, storage, events: Optional[EventBus] = None):
        self.storage = storage
        self.events = events or EventBus()

    def get_wishlist(self) -> List[GuestWishlistItem]:
        return _load_list(self.storage, GUEST_WISHLIST_KEY, GuestWishlistItem)

    def save_wishlist(self, wishlist: List[GuestWishlistItem]) -> None:
        try:
            self.storage.set_item(
                GUEST_WISHLIST_KEY,
                json.dumps([item.model_dump(by_alias=True, exclude_none=True) for item in wishlist]),
            )
        except OSError as e:
            logger.error("Failed to save guest wishlist: %s", e)
            return
        self.events.emit(GUEST_WISHLIST_UPDATED)

    def add_item(self, product_id: int, **details) -> List[GuestWishlistItem]:
        wishlist = self.get_wishlist()
        if any(item.product_id == product_id for item in wishlist):
            return wishlist
        wishlist.append(GuestWishlistItem(
            product_id=product_id,
            added_at=datetime.now(timezone.utc).isoformat(),
            **details,
        ))
        self.save_wishlist(wishlist)
        return wishlist

    def remove_item(self, product_id: int) -> List[GuestWishlistItem]:
        wishlist = [item for item in self.get_wishlist() if item.product_id != product_id]
        self.save_wishlist(wishlist)
        return wishlist

    def is_in_wishlist(self, product_id: int) -> bool:
        return any(item.product_id == product_id for item in self.get_wishlist())

    def clear_wishlist(self) -> None:
        self.save_wishlist([])

    def count(self) -> int:
        return len(self.get_wishlist())
