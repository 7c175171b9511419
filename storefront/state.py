# storefront/state.py
"""View-facing state for auth, cart and wishlist.

``CartState`` and ``WishlistState`` sit between the guest managers, the API
client and whatever renders them. Both follow the same phases::

    GUEST -> MERGING -> AUTHENTICATED   (logout returns to GUEST)

Entering AUTHENTICATED with items in guest storage pushes them to the server
one call at a time. A failed call is logged and skipped; guest storage is
cleared afterwards whatever happened, and the server copy is re-fetched.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from .client import StoreClient
from .errors import ApiError, StorefrontError, format_error
from .events import AUTH_CHANGED, GUEST_CART_UPDATED, GUEST_WISHLIST_UPDATED, EventBus
from .guest import GuestCartManager, GuestWishlistManager
from .models import AuthResponse, Cart, GuestCartItem, GuestWishlistItem, User, Wishlist

logger = logging.getLogger(__name__)


class Phase(Enum):
    GUEST = "GUEST"
    MERGING = "MERGING"
    AUTHENTICATED = "AUTHENTICATED"


@dataclass
class MergeReport:
    attempted: int = 0
    failed: int = 0

    @property
    def succeeded(self) -> int:
        return self.attempted - self.failed


class AuthState:
    def __init__(self, client: StoreClient, events: EventBus):
        self.client = client
        self.events = events
        self.user: Optional[User] = None
        self.is_authenticated = False
        self.error: Optional[str] = None

    def _set_user(self, user: Optional[User]) -> None:
        was_authenticated = self.is_authenticated
        self.user = user
        self.is_authenticated = user is not None
        if was_authenticated != self.is_authenticated:
            self.events.emit(AUTH_CHANGED, self.is_authenticated)

    def initialize(self) -> None:
        if not self.client.is_authenticated():
            return
        try:
            self._set_user(self.client.get_profile())
        except ApiError as e:
            self.error = format_error(e)

    def login(self, email: str, password: str) -> AuthResponse:
        self.error = None
        try:
            response = self.client.login(email, password)
        except ApiError as e:
            self.error = format_error(e)
            raise
        self._set_user(response.user)
        return response

    def register(self, name: str, email: str, password: str) -> AuthResponse:
        self.error = None
        try:
            response = self.client.register(name, email, password)
        except ApiError as e:
            self.error = format_error(e)
            raise
        self._set_user(response.user)
        return response

    def logout(self, everywhere: bool = False) -> None:
        if everywhere:
            self.client.logout_all()
        else:
            self.client.logout()
        self.error = None
        self._set_user(None)

    def refresh_profile(self) -> Optional[User]:
        if not self.is_authenticated:
            return None
        user = self.client.get_profile()
        self.user = user
        return user


class _SyncedState:
    """Phase handling shared by the cart and wishlist views.

    Subclasses provide the hooks: ``_read_guest``, ``_clear_guest``,
    ``_push_guest_item``, ``_fetch_server``, ``_reset_server`` and ``_set_guest``.
    """

    guest_event = ""

    def __init__(self, client: StoreClient, events: EventBus, authenticated: bool):
        self.client = client
        self.events = events
        self.phase = Phase.GUEST
        self.is_loading = True
        self.last_merge: Optional[MergeReport] = None
        self._unsubscribers: List[Callable[[], None]] = [
            events.on(AUTH_CHANGED, self._on_auth_changed),
            events.on(self.guest_event, self._on_guest_updated),
        ]
        if authenticated:
            self._enter_authenticated()
        else:
            self.refresh()

    # hooks for subclasses
    def _read_guest(self) -> list:
        raise NotImplementedError

    def _clear_guest(self) -> None:
        raise NotImplementedError

    def _push_guest_item(self, item) -> None:
        raise NotImplementedError

    def _fetch_server(self) -> None:
        raise NotImplementedError

    def _reset_server(self) -> None:
        raise NotImplementedError

    def _set_guest(self, items: list) -> None:
        raise NotImplementedError

    @property
    def is_authenticated(self) -> bool:
        return self.phase is not Phase.GUEST

    def _on_auth_changed(self, authenticated: Any) -> None:
        if authenticated and self.phase is Phase.GUEST:
            self._enter_authenticated()
        elif not authenticated and self.phase is not Phase.GUEST:
            self.phase = Phase.GUEST
            self._reset_server()
            self.refresh()

    def _on_guest_updated(self, detail: Any) -> None:
        if self.phase is Phase.GUEST:
            self._set_guest(list(detail) if detail is not None else self._read_guest())

    def _enter_authenticated(self) -> None:
        items = self._read_guest()
        try:
            if items:
                self.phase = Phase.MERGING
                self.last_merge = self.merge(items)
        finally:
            self.phase = Phase.AUTHENTICATED
            self.refresh()

    def merge(self, items: list) -> MergeReport:
        name = type(self).__name__
        logger.info("%s: merging %d guest item(s) into the server copy", name, len(items))
        report = MergeReport(attempted=len(items))
        try:
            for item in items:
                try:
                    self._push_guest_item(item)
                except Exception as e:
                    # malformed responses count as failed items too
                    report.failed += 1
                    logger.error("%s: failed to merge product %s: %s", name, item.product_id, e)
        finally:
            self._clear_guest()
            self._set_guest([])
        if report.failed:
            logger.error("%s: merge finished with %d of %d item(s) failed", name, report.failed, report.attempted)
        return report

    def refresh(self) -> None:
        if self.phase is Phase.GUEST:
            self._set_guest(self._read_guest())
            self._reset_server()
        else:
            try:
                self._fetch_server()
                self._set_guest([])
            except ApiError as e:
                logger.error("%s: failed to fetch: %s", type(self).__name__, e)
        self.is_loading = False

    def close(self) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []


class CartState(_SyncedState):
    guest_event = GUEST_CART_UPDATED

    def __init__(self, client: StoreClient, guest: GuestCartManager, events: EventBus,
                 authenticated: Optional[bool] = None):
        self.guest = guest
        self.cart: Optional[Cart] = None
        self.guest_cart: List[GuestCartItem] = []
        if authenticated is None:
            authenticated = client.is_authenticated()
        super().__init__(client, events, authenticated)

    def _read_guest(self) -> List[GuestCartItem]:
        return self.guest.get_cart()

    def _clear_guest(self) -> None:
        self.guest.clear_cart()

    def _push_guest_item(self, item: GuestCartItem) -> None:
        self.client.add_to_cart(item.product_id, item.quantity, item.variant_id, item.metadata)

    def _fetch_server(self) -> None:
        self.cart = self.client.get_cart()

    def _reset_server(self) -> None:
        self.cart = None

    def _set_guest(self, items: list) -> None:
        self.guest_cart = items

    def add(self, product_id: int, quantity: int = 1, variant_id: Optional[int] = None,
            metadata: Optional[Dict[str, Any]] = None) -> Optional[Cart]:
        if self.phase is Phase.GUEST:
            self.guest_cart = self.guest.add_item(product_id, quantity, variant_id, metadata)
            return None
        self.cart = self.client.add_to_cart(product_id, quantity, variant_id, metadata)
        return self.cart

    def update_guest_item(self, product_id: int, quantity: int, variant_id: Optional[int] = None) -> None:
        self.guest_cart = self.guest.update_item(product_id, quantity, variant_id)

    def remove_guest_item(self, product_id: int, variant_id: Optional[int] = None) -> None:
        self.guest_cart = self.guest.remove_item(product_id, variant_id)

    def _recount(self) -> None:
        if self.cart is None:
            return
        self.cart.total_items = sum(item.quantity for item in self.cart.items)
        self.cart.subtotal = round(sum(item.total for item in self.cart.items), 2)

    def update_quantity(self, item_id: int, quantity: int) -> Cart:
        """Change a server cart line, showing the new quantity before the call returns.

        On failure the whole cart is fetched again and the error re-raised.
        """
        item = self.cart.find_item(item_id) if self.cart else None
        if item is not None:
            item.quantity = quantity
            item.total = round(item.price * quantity, 2)
            self._recount()
        try:
            self.cart = self.client.update_cart_item(item_id, quantity)
        except ApiError:
            self.refresh()
            raise
        return self.cart

    def remove_item(self, item_id: int) -> Cart:
        if self.cart is not None:
            self.cart.items = [item for item in self.cart.items if item.id != item_id]
            self._recount()
        try:
            self.cart = self.client.remove_cart_item(item_id)
        except ApiError:
            self.refresh()
            raise
        return self.cart

    def clear(self) -> None:
        if self.phase is Phase.GUEST:
            self.guest.clear_cart()
            self.guest_cart = []
            return
        self.client.clear_cart()
        self.cart = None

    @property
    def count(self) -> int:
        if self.phase is Phase.GUEST:
            return sum(item.quantity for item in self.guest_cart)
        return self.cart.total_items if self.cart else 0


class WishlistState(_SyncedState):
    guest_event = GUEST_WISHLIST_UPDATED

    def __init__(self, client: StoreClient, guest: GuestWishlistManager, events: EventBus,
                 authenticated: Optional[bool] = None):
        self.guest = guest
        self.wishlist: Optional[Wishlist] = None
        self.guest_wishlist: List[GuestWishlistItem] = []
        if authenticated is None:
            authenticated = client.is_authenticated()
        super().__init__(client, events, authenticated)

    def _read_guest(self) -> List[GuestWishlistItem]:
        return self.guest.get_wishlist()

    def _clear_guest(self) -> None:
        self.guest.clear_wishlist()

    def _push_guest_item(self, item: GuestWishlistItem) -> None:
        self.client.add_to_wishlist(item.product_id)

    def _fetch_server(self) -> None:
        self.wishlist = self.client.get_wishlist()

    def _reset_server(self) -> None:
        self.wishlist = None

    def _set_guest(self, items: list) -> None:
        self.guest_wishlist = items

    def add(self, product_id: int, **details) -> None:
        if self.phase is Phase.GUEST:
            self.guest_wishlist = self.guest.add_item(product_id, **details)
            return
        self.wishlist = self.client.add_to_wishlist(product_id)

    def remove(self, product_id: int) -> None:
        if self.phase is Phase.GUEST:
            self.guest_wishlist = self.guest.remove_item(product_id)
            return
        self.wishlist = self.client.remove_wishlist_product(product_id)

    def clear(self) -> None:
        if self.phase is Phase.GUEST:
            self.guest.clear_wishlist()
            self.guest_wishlist = []
            return
        self.client.clear_wishlist()
        self.refresh()

    def contains(self, product_id: int) -> bool:
        if self.phase is Phase.GUEST:
            return self.guest.is_in_wishlist(product_id)
        if self.wishlist is None:
            return False
        return any(item.product_id == product_id for item in self.wishlist.items)

    def move_to_cart(self, item_id: int) -> Wishlist:
        if self.phase is Phase.GUEST:
            raise StorefrontError("Must be logged in to move items to cart")
        self.wishlist = self.client.move_wishlist_item_to_cart(item_id)
        return self.wishlist

    @property
    def count(self) -> int:
        if self.phase is Phase.GUEST:
            return len(self.guest_wishlist)
        return self.wishlist.total_items if self.wishlist else 0
