# storefront/models.py
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ApiModel(BaseModel):
    # server payloads carry more fields than the client reads
    model_config = ConfigDict(extra="allow", populate_by_name=True)


# ---------------------------
# Guest (local storage) items
# ---------------------------
class GuestCartItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    product_id: int = Field(alias="productId")
    quantity: int = 1
    variant_id: Optional[int] = Field(default=None, alias="variantId")
    metadata: Optional[Dict[str, Any]] = None

    def same_line(self, product_id: int, variant_id: Optional[int] = None,
                  metadata: Optional[Dict[str, Any]] = None) -> bool:
        return (
            self.product_id == product_id
            and self.variant_id == variant_id
            and (self.metadata or {}) == (metadata or {})
        )


class GuestWishlistItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    product_id: int = Field(alias="productId")
    added_at: str = Field(alias="addedAt")
    name: Optional[str] = None
    slug: Optional[str] = None
    price: Optional[float] = None
    sale_price: Optional[float] = None
    image: Optional[str] = None
    in_stock: Optional[bool] = None


# ---------------------------
# Catalogue
# ---------------------------
class Category(ApiModel):
    id: int
    name: str
    slug: Optional[str] = None


class Product(ApiModel):
    id: int
    name: str
    slug: Optional[str] = None
    sku: Optional[str] = None
    price: float = 0
    sale_price: Optional[float] = None
    stock_quantity: int = 0
    in_stock: bool = True
    image: Optional[str] = None

    @property
    def current_price(self) -> float:
        return self.sale_price if self.sale_price is not None else self.price


class AttributeValue(ApiModel):
    id: int
    value: str
    code: str


class Attribute(ApiModel):
    id: int
    name: str
    code: str
    type: str = "select"
    values: List[AttributeValue] = []


class VariantDraft(BaseModel):
    sku: str
    price: float
    stock_quantity: int = 0
    attribute_values: List[int]


# ---------------------------
# Server-backed cart / wishlist
# ---------------------------
class CartItem(ApiModel):
    id: int
    product_id: Optional[int] = None
    variant_id: Optional[int] = None
    quantity: int
    price: float = 0
    total: float = 0
    product: Optional[Product] = None
    metadata: Optional[Dict[str, Any]] = None


class Cart(ApiModel):
    id: Optional[int] = None
    items: List[CartItem] = []
    subtotal: float = 0
    total_items: int = 0

    def find_item(self, item_id: int) -> Optional[CartItem]:
        for item in self.items:
            if item.id == item_id:
                return item
        return None


class WishlistItem(ApiModel):
    id: int
    product_id: int
    product: Optional[Product] = None


class Wishlist(ApiModel):
    id: Optional[int] = None
    items: List[WishlistItem] = []
    total_items: int = 0


# ---------------------------
# Auth / orders / payments
# ---------------------------
class User(ApiModel):
    id: int
    name: str
    email: str
    role: str = "customer"

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


class AuthResponse(ApiModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: User


class OrderItem(ApiModel):
    product_id: Optional[int] = None
    variant_id: Optional[int] = None
    name: Optional[str] = None
    quantity: int
    price: float = 0
    total: float = 0


class Order(ApiModel):
    id: int
    order_number: Optional[str] = None
    status: str
    payment_status: str = "pending"
    items: List[OrderItem] = []
    total: float = 0


class PaymentIntent(ApiModel):
    client_secret: str = Field(alias="clientSecret")
    payment_intent_id: str = Field(alias="paymentIntentId")
    expires_at: str = Field(alias="expiresAt")


class PaymentStatus(ApiModel):
    payment_status: str
    payment_intent_id: Optional[str] = None
    paid_at: Optional[str] = None
    payment_expires_at: Optional[str] = None
    refunded_amount: float = 0
