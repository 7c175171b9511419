# storefront/events.py
import logging
from collections import defaultdict
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)

GUEST_CART_UPDATED = "guestCartUpdated"
GUEST_WISHLIST_UPDATED = "guestWishlistUpdated"
AUTH_CHANGED = "authChanged"

Handler = Callable[[Any], None]


class EventBus:
    """Same-process custom events, delivered synchronously in subscription order."""

    def __init__(self):
        self._handlers: Dict[str, List[Handler]] = defaultdict(list)

    def on(self, name: str, handler: Handler) -> Callable[[], None]:
        self._handlers[name].append(handler)

        def unsubscribe() -> None:
            self.off(name, handler)

        return unsubscribe

    def off(self, name: str, handler: Handler) -> None:
        handlers = self._handlers.get(name, [])
        if handler in handlers:
            handlers.remove(handler)

    def emit(self, name: str, detail: Any = None) -> None:
        # copy: handlers may unsubscribe while being called
        for handler in list(self._handlers.get(name, [])):
            try:
                handler(detail)
            except Exception:
                logger.exception("Handler for %s failed", name)

    def listener_count(self, name: str) -> int:
        return len(self._handlers.get(name, []))
