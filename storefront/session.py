# storefront/session.py
from dataclasses import dataclass
from typing import Optional

from .client import StoreClient
from .config import Settings, settings as default_settings
from .events import EventBus
from .guest import GuestCartManager, GuestWishlistManager
from .state import AuthState, CartState, WishlistState
from .storage import LocalStorage
from .tokens import TokenManager


@dataclass
class Storefront:
    """Everything a front end needs, wired to one storage and one event bus."""

    client: StoreClient
    events: EventBus
    guest_cart: GuestCartManager
    guest_wishlist: GuestWishlistManager
    auth: AuthState
    cart: CartState
    wishlist: WishlistState

    def close(self) -> None:
        self.cart.close()
        self.wishlist.close()


def build_storefront(config: Optional[Settings] = None, storage=None, session=None,
                     async_transport=None) -> Storefront:
    config = config or default_settings
    storage = storage if storage is not None else LocalStorage(config.storage_path)
    events = EventBus()
    client = StoreClient(
        base_url=config.api_base_url,
        tokens=TokenManager(storage),
        session=session,
        timeout=config.timeout,
        async_transport=async_transport,
    )
    auth = AuthState(client, events)
    auth.initialize()
    guest_cart = GuestCartManager(storage, events)
    guest_wishlist = GuestWishlistManager(storage, events)
    return Storefront(
        client=client,
        events=events,
        guest_cart=guest_cart,
        guest_wishlist=guest_wishlist,
        auth=auth,
        cart=CartState(client, guest_cart, events, authenticated=auth.is_authenticated),
        wishlist=WishlistState(client, guest_wishlist, events, authenticated=auth.is_authenticated),
    )
