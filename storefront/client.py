# storefront/client.py
import asyncio
import logging
from typing import Any, Dict, Iterable, List, Optional

import httpx
import requests

from .config import settings
from .errors import ApiError
from .models import (
    Attribute, AuthResponse, Cart, Category, Order, PaymentIntent,
    PaymentStatus, Product, User, Wishlist,
)
from .storage import MemoryStorage
from .tokens import TokenManager

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {
    "Content-Type": "application/json",
    "Accept": "application/json",
    "X-Requested-With": "XMLHttpRequest",
}

TRANSPORT_ERRORS = (
    requests.exceptions.ConnectionError,
    requests.exceptions.Timeout,
    httpx.TransportError,
)


class StoreClient:
    """Client for the storefront REST API.

    ``session`` can be any object exposing the ``requests`` style
    ``request(method, url, params=, json=, headers=, timeout=)`` call, which is
    how the tests drive the in-memory API through FastAPI's TestClient.
    """

    def __init__(self, base_url: Optional[str] = None, tokens: Optional[TokenManager] = None,
                 session=None, timeout: Optional[float] = None, async_transport=None):
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self.tokens = tokens or TokenManager(MemoryStorage())
        self.session = session if session is not None else requests.Session()
        self.timeout = timeout if timeout is not None else settings.timeout
        self.async_transport = async_transport

    # ---------------------------
    # Transport
    # ---------------------------
    def _headers(self) -> Dict[str, str]:
        headers = dict(DEFAULT_HEADERS)
        token = self.tokens.get_token()
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def _request(self, method: str, path: str, fallback: str = "Request failed",
                 params: Optional[Dict[str, Any]] = None, json: Any = None) -> Any:
        url = f"{self.base_url}{path}"
        if params:
            params = {k: v for k, v in params.items() if v is not None}
        try:
            r = self.session.request(method, url, params=params or None, json=json,
                                     headers=self._headers(), timeout=self.timeout)
        except TRANSPORT_ERRORS as e:
            logger.warning("%s %s failed: %s", method, path, e)
            raise ApiError("Network error. Please check your connection.", kind="network") from e

        try:
            payload = r.json() if r.content else None
        except ValueError:
            payload = None

        if 200 <= r.status_code < 300:
            return payload
        raise self._to_error(r.status_code, payload, fallback)

    def _to_error(self, status: int, payload: Any, fallback: str) -> ApiError:
        body = payload if isinstance(payload, dict) else {}
        server_message = body.get("message") or body.get("detail")
        if not isinstance(server_message, str):
            server_message = None

        if status == 401:
            self.tokens.clear_token()
            return ApiError(server_message or "Unauthenticated.", status, "unauthorized", payload=payload)
        if status == 419:
            return ApiError("Session expired. Please refresh the page and try again.", status, "csrf",
                            payload=payload)
        if status == 429:
            return ApiError(server_message or "Too many requests. Please try again later.", status,
                            "rate_limit", payload=payload)
        if status == 422:
            return ApiError("Validation failed", status, "validation", errors=body.get("errors"),
                            payload=payload)
        if status >= 500:
            return ApiError("Server error. Please try again later.", status, "server", payload=payload)
        return ApiError(server_message or fallback, status, payload=payload)

    def _store_auth(self, data: Dict[str, Any]) -> AuthResponse:
        auth = AuthResponse.model_validate(data)
        self.tokens.set_token(auth.access_token, auth.expires_in, auth.token_type)
        return auth

    # ---------------------------
    # Auth
    # ---------------------------
    def register(self, name: str, email: str, password: str, password_confirmation: Optional[str] = None) -> AuthResponse:
        data = self._request("POST", "/register", "Registration failed", json={
            "name": name, "email": email, "password": password,
            "password_confirmation": password_confirmation or password,
        })
        return self._store_auth(data)

    def login(self, email: str, password: str) -> AuthResponse:
        data = self._request("POST", "/login", "Login failed", json={"email": email, "password": password})
        return self._store_auth(data)

    def logout(self) -> None:
        try:
            self._request("POST", "/logout", "Logout failed")
        except ApiError as e:
            # the local token goes regardless
            logger.warning("Logout request failed: %s", e)
        finally:
            self.tokens.clear_token()

    def logout_all(self) -> None:
        try:
            self._request("POST", "/logout-all", "Logout failed")
        except ApiError as e:
            logger.warning("Logout all request failed: %s", e)
        finally:
            self.tokens.clear_token()

    def get_profile(self) -> User:
        data = self._request("GET", "/profile", "Failed to load profile")
        return User.model_validate(data["user"])

    def refresh_token(self) -> AuthResponse:
        try:
            data = self._request("POST", "/refresh", "Failed to refresh session")
        except ApiError:
            self.tokens.clear_token()
            raise
        return self._store_auth(data)

    def is_authenticated(self) -> bool:
        return self.tokens.is_authenticated()

    # ---------------------------
    # Products
    # ---------------------------
    def list_products(self, search: Optional[str] = None, category_id: Optional[int] = None,
                      in_stock: Optional[bool] = None, sort_by: Optional[str] = None,
                      sort_order: Optional[str] = None, page: Optional[int] = None,
                      per_page: Optional[int] = None) -> Dict[str, Any]:
        params = {
            "search": search, "category_id": category_id,
            "in_stock": "true" if in_stock else None,
            "sort_by": sort_by, "sort_order": sort_order, "page": page, "per_page": per_page,
        }
        data = self._request("GET", "/products", "Failed to load products", params=params)
        return {
            "data": [Product.model_validate(p) for p in data.get("data", [])],
            "meta": data.get("meta", {}),
        }

    def get_product(self, slug: str) -> Product:
        data = self._request("GET", f"/products/{slug}", "Product not found")
        return Product.model_validate(data.get("data", data))

    def get_product_by_id(self, product_id: int) -> Product:
        # no direct id endpoint: scan the listing
        for p in self.list_products(per_page=1000)["data"]:
            if p.id == product_id:
                return p
        raise ApiError("Product not found", 404)

    def get_categories(self) -> List[Category]:
        data = self._request("GET", "/categories", "Failed to load categories")
        return [Category.model_validate(c) for c in data]

    def get_category(self, category_id: int) -> Category:
        return Category.model_validate(self._request("GET", f"/categories/{category_id}", "Category not found"))

    async def fetch_products_async(self, product_ids: Iterable[int]) -> List[Optional[Product]]:
        """Fetch several products concurrently; a failed fetch yields ``None``."""
        headers = self._headers()

        async def one(client: httpx.AsyncClient, pid: int) -> Optional[Product]:
            try:
                r = await client.get(f"{self.base_url}/products/{pid}", headers=headers)
                r.raise_for_status()
                body = r.json()
                return Product.model_validate(body.get("data", body))
            except (httpx.HTTPError, ValueError) as e:
                logger.warning("Failed to fetch product %s: %s", pid, e)
                return None

        async with httpx.AsyncClient(timeout=self.timeout, transport=self.async_transport) as client:
            return list(await asyncio.gather(*(one(client, pid) for pid in product_ids)))

    # ---------------------------
    # Cart
    # ---------------------------
    def get_cart(self) -> Cart:
        data = self._request("GET", "/cart", "Failed to fetch cart")
        if not data or not data.get("success") or not data.get("cart"):
            raise ApiError("Failed to fetch cart")
        return Cart.model_validate(data["cart"])

    def add_to_cart(self, product_id: Optional[int] = None, quantity: int = 1,
                    variant_id: Optional[int] = None, metadata: Optional[Dict[str, Any]] = None) -> Cart:
        payload: Dict[str, Any] = {"quantity": quantity, "metadata": metadata}
        if variant_id:
            payload["variant_id"] = variant_id
        elif product_id:
            payload["product_id"] = product_id
        data = self._request("POST", "/cart/add", "Failed to add item to cart", json=payload)
        return Cart.model_validate(data["cart"])

    def update_cart_item(self, item_id: int, quantity: int) -> Cart:
        data = self._request("PUT", f"/cart/items/{item_id}", "Failed to update quantity",
                             json={"quantity": quantity})
        if not data or not data.get("cart"):
            raise ApiError("Failed to update quantity")
        return Cart.model_validate(data["cart"])

    def remove_cart_item(self, item_id: int) -> Cart:
        data = self._request("DELETE", f"/cart/items/{item_id}", "Failed to remove item")
        if not data or not data.get("cart"):
            raise ApiError("Failed to remove item")
        return Cart.model_validate(data["cart"])

    def clear_cart(self) -> None:
        self._request("DELETE", "/cart/clear", "Failed to clear cart")

    # ---------------------------
    # Wishlist
    # ---------------------------
    def get_wishlist(self) -> Wishlist:
        data = self._request("GET", "/wishlist", "Failed to fetch wishlist")
        return Wishlist.model_validate(data["wishlist"])

    def add_to_wishlist(self, product_id: int) -> Wishlist:
        data = self._request("POST", "/wishlist/add", "Failed to add to wishlist",
                             json={"product_id": product_id})
        return Wishlist.model_validate(data["wishlist"])

    def remove_wishlist_product(self, product_id: int) -> Wishlist:
        data = self._request("DELETE", f"/wishlist/product/{product_id}", "Failed to remove from wishlist")
        return Wishlist.model_validate(data["wishlist"])

    def clear_wishlist(self) -> None:
        self._request("DELETE", "/wishlist/clear", "Failed to clear wishlist")

    def move_wishlist_item_to_cart(self, item_id: int) -> Wishlist:
        data = self._request("POST", f"/wishlist/items/{item_id}/move-to-cart", "Failed to move to cart")
        return Wishlist.model_validate(data["wishlist"])

    # ---------------------------
    # Orders & payments
    # ---------------------------
    def list_orders(self) -> List[Order]:
        data = self._request("GET", "/orders", "Failed to load orders")
        return [Order.model_validate(o) for o in data["orders"]]

    def get_order(self, order_id: int) -> Order:
        data = self._request("GET", f"/orders/{order_id}", "Order not found")
        return Order.model_validate(data["order"])

    def create_order(self, checkout: Dict[str, Any]) -> Order:
        data = self._request("POST", "/orders", "Failed to place order", json=checkout)
        return Order.model_validate(data["order"])

    def create_payment_intent(self, order_id: int) -> PaymentIntent:
        data = self._request("POST", f"/orders/{order_id}/payment/intent", "Failed to initialize payment")
        return PaymentIntent.model_validate(data)

    def get_payment_status(self, order_id: int) -> PaymentStatus:
        data = self._request("GET", f"/orders/{order_id}/payment/status", "Failed to load payment status")
        return PaymentStatus.model_validate(data)

    def confirm_payment(self, order_id: int) -> Dict[str, Any]:
        return self._request("POST", f"/orders/{order_id}/payment/confirm", "Failed to confirm payment")

    def get_payment_transactions(self, order_id: int) -> List[Dict[str, Any]]:
        data = self._request("GET", f"/orders/{order_id}/payment/transactions", "Failed to load transactions")
        return data["transactions"]

    def refund_order(self, order_id: int, reason: Optional[str] = None) -> Dict[str, Any]:
        return self._request("POST", f"/admin/orders/{order_id}/refund", "Refund failed",
                             json={"reason": reason})

    def partial_refund(self, order_id: int, amount: float, reason: Optional[str] = None) -> Dict[str, Any]:
        return self._request("POST", f"/admin/orders/{order_id}/refund/partial", "Refund failed",
                             json={"amount": amount, "reason": reason})

    # ---------------------------
    # Reviews
    # ---------------------------
    def get_product_reviews(self, product_id: int, sort_by: Optional[str] = None,
                            rating: Optional[int] = None, verified_only: bool = False,
                            page: Optional[int] = None, per_page: Optional[int] = None) -> Dict[str, Any]:
        params = {
            "sort_by": sort_by, "rating": rating,
            "verified_only": "true" if verified_only else None,
            "page": page, "per_page": per_page,
        }
        return self._request("GET", f"/products/{product_id}/reviews", "Failed to load reviews", params=params)

    def get_review_statistics(self, product_id: int) -> Dict[str, Any]:
        data = self._request("GET", f"/products/{product_id}/reviews/statistics", "Failed to load statistics")
        return data["statistics"]

    def create_review(self, product_id: int, rating: int, title: str, comment: str) -> Dict[str, Any]:
        return self._request("POST", f"/products/{product_id}/reviews", "Failed to submit review",
                             json={"rating": rating, "title": title, "comment": comment})

    def update_review(self, review_id: int, **changes) -> Dict[str, Any]:
        return self._request("PUT", f"/reviews/{review_id}", "Failed to update review", json=changes)

    def delete_review(self, review_id: int) -> Dict[str, Any]:
        return self._request("DELETE", f"/reviews/{review_id}", "Failed to delete review")

    def mark_review_helpful(self, review_id: int, is_helpful: bool) -> Dict[str, Any]:
        return self._request("POST", f"/reviews/{review_id}/helpful", "Failed to record vote",
                             json={"is_helpful": is_helpful})

    def can_review(self, product_id: int) -> Dict[str, Any]:
        return self._request("GET", f"/products/{product_id}/reviews/can-review", "Failed to check eligibility")

    # ---------------------------
    # Variants & attributes
    # ---------------------------
    def get_attributes(self) -> List[Attribute]:
        data = self._request("GET", "/attributes", "Failed to load attributes")
        return [Attribute.model_validate(a) for a in data["data"]]

    def get_variants(self, product_id: int, available_only: bool = False,
                     in_stock_only: bool = False) -> List[Dict[str, Any]]:
        params = {
            "available_only": "true" if available_only else None,
            "in_stock_only": "true" if in_stock_only else None,
        }
        data = self._request("GET", f"/products/{product_id}/variants", "Failed to load variants", params=params)
        return data["data"]

    def create_variant(self, product_id: int, variant: Dict[str, Any]) -> Dict[str, Any]:
        data = self._request("POST", f"/products/{product_id}/variants", "Failed to create variant", json=variant)
        return data["data"]

    def update_variant_stock(self, product_id: int, variant_id: int, quantity: int,
                             type: str = "set", reason: Optional[str] = None) -> Dict[str, Any]:
        return self._request("POST", f"/products/{product_id}/variants/{variant_id}/stock",
                             "Failed to update stock",
                             json={"quantity": quantity, "type": type, "reason": reason})

    # ---------------------------
    # Admin
    # ---------------------------
    def create_product(self, product: Dict[str, Any]) -> Product:
        data = self._request("POST", "/admin/products", "Failed to create product", json=product)
        return Product.model_validate(data["data"])

    def admin_list_products(self, stock_status: Optional[str] = None, search: Optional[str] = None,
                            page: Optional[int] = None) -> Dict[str, Any]:
        return self._request("GET", "/admin/products", "Failed to load products",
                             params={"stock_status": stock_status, "search": search, "page": page})

    def admin_update_stock(self, product_id: int, stock_quantity: int) -> Product:
        data = self._request("PUT", f"/admin/products/{product_id}/stock", "Failed to update stock",
                             json={"stock_quantity": stock_quantity})
        return Product.model_validate(data["data"])

    def admin_list_orders(self, status: Optional[str] = None, search: Optional[str] = None,
                          page: Optional[int] = None) -> Dict[str, Any]:
        return self._request("GET", "/admin/orders", "Failed to load orders",
                             params={"status": status, "search": search, "page": page})

    def admin_update_order_status(self, order_id: int, status: str, notes: Optional[str] = None) -> Order:
        data = self._request("PUT", f"/admin/orders/{order_id}/status", "Failed to update order status",
                             json={"status": status, "notes": notes})
        return Order.model_validate(data["order"])

    def admin_list_users(self, search: Optional[str] = None, role: Optional[str] = None) -> Dict[str, Any]:
        return self._request("GET", "/admin/users", "Failed to load users",
                             params={"search": search, "role": role})

    def admin_update_user_role(self, user_id: int, role: str) -> User:
        data = self._request("PUT", f"/admin/users/{user_id}/role", "Failed to update role", json={"role": role})
        return User.model_validate(data["user"])

    def admin_list_reviews(self, status: Optional[str] = None) -> Dict[str, Any]:
        return self._request("GET", "/admin/reviews", "Failed to load reviews", params={"status": status})

    def admin_approve_review(self, review_id: int, notes: Optional[str] = None) -> Dict[str, Any]:
        return self._request("POST", f"/admin/reviews/{review_id}/approve", "Failed to approve review",
                             json={"notes": notes})

    def admin_reject_review(self, review_id: int, reason: str, notes: Optional[str] = None) -> Dict[str, Any]:
        return self._request("POST", f"/admin/reviews/{review_id}/reject", "Failed to reject review",
                             json={"reason": reason, "notes": notes})

    # ---------------------------
    # Stand-in API helpers
    # ---------------------------
    def reset(self) -> Dict[str, Any]:
        return self._request("POST", "/reset", "Reset failed")
