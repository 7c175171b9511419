# mockapi/schemas.py
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class RegisterIn(BaseModel):
    name: str = Field(min_length=1)
    email: str = Field(min_length=3)
    password: str = Field(min_length=6)
    password_confirmation: Optional[str] = None


class LoginIn(BaseModel):
    email: str
    password: str


class AddToCartIn(BaseModel):
    product_id: Optional[int] = None
    variant_id: Optional[int] = None
    quantity: int = Field(default=1, ge=1)
    metadata: Optional[Dict[str, Any]] = None


class UpdateCartItemIn(BaseModel):
    quantity: int = Field(ge=1)


class WishlistAddIn(BaseModel):
    product_id: int


class CheckoutIn(BaseModel):
    shipping_address: Dict[str, Any] = {}
    payment_method: str = "stripe"
    notes: Optional[str] = None


class RefundIn(BaseModel):
    reason: Optional[str] = None


class PartialRefundIn(BaseModel):
    amount: float = Field(gt=0)
    reason: Optional[str] = None


class ReviewIn(BaseModel):
    rating: int = Field(ge=1, le=5)
    title: str = ""
    comment: str = Field(min_length=1)


class ReviewUpdateIn(BaseModel):
    rating: Optional[int] = Field(default=None, ge=1, le=5)
    title: Optional[str] = None
    comment: Optional[str] = None


class HelpfulIn(BaseModel):
    is_helpful: bool


class ProductIn(BaseModel):
    name: str = Field(min_length=1)
    slug: Optional[str] = None
    sku: str = Field(min_length=1)
    price: float = Field(ge=0)
    sale_price: Optional[float] = None
    stock_quantity: int = Field(default=0, ge=0)
    category_id: Optional[int] = None
    is_active: bool = True


class VariantIn(BaseModel):
    sku: str = Field(min_length=1)
    price: float = Field(ge=0)
    stock_quantity: int = Field(default=0, ge=0)
    attribute_values: List[int] = []
    is_active: bool = True


class StockIn(BaseModel):
    quantity: int = Field(ge=0)
    type: str = "set"
    reason: Optional[str] = None


class ProductStockIn(BaseModel):
    stock_quantity: int = Field(ge=0)


class OrderStatusIn(BaseModel):
    status: str
    notes: Optional[str] = None


class RoleIn(BaseModel):
    role: str


class ModerationIn(BaseModel):
    reason: Optional[str] = None
    notes: Optional[str] = None
