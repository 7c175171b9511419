# mockapi/main.py
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional
import uuid

from fastapi import APIRouter, Depends, FastAPI, Header, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .database import (
    ATTRIBUTES, CARTS, CATEGORIES, ORDERS, PAYMENTS, PRODUCTS, REVIEWS,
    TOKENS, USERS, VARIANTS, WISHLISTS, next_id, seed,
)
from .schemas import (
    AddToCartIn, CheckoutIn, HelpfulIn, LoginIn, ModerationIn, OrderStatusIn,
    PartialRefundIn, ProductIn, ProductStockIn, RefundIn, RegisterIn, ReviewIn,
    ReviewUpdateIn, RoleIn, StockIn, UpdateCartItemIn, VariantIn, WishlistAddIn,
)

app = FastAPI(title="storefront API (in-memory stand-in)")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

api = APIRouter(prefix="/api")

TOKEN_TTL = 3600
PAYMENT_WINDOW = timedelta(minutes=30)


def _now() -> datetime:
    return datetime.now(timezone.utc)


@app.exception_handler(RequestValidationError)
async def validation_error(request: Request, exc: RequestValidationError):
    errors: Dict[str, List[str]] = {}
    for err in exc.errors():
        field = ".".join(str(p) for p in err["loc"] if p != "body") or "body"
        errors.setdefault(field, []).append(err["msg"])
    return JSONResponse(status_code=422, content={"message": "Validation failed", "errors": errors})


# ---------------------------
# Auth helpers
# ---------------------------
def _public_user(u: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in u.items() if k != "password"}


def _issue_token(user: Dict[str, Any]) -> Dict[str, Any]:
    token = uuid.uuid4().hex
    TOKENS[token] = user["id"]
    return {"access_token": token, "token_type": "bearer", "expires_in": TOKEN_TTL, "user": _public_user(user)}


def _bearer(authorization: Optional[str]) -> Optional[str]:
    if not authorization or not authorization.lower().startswith("bearer "):
        return None
    return authorization.split(" ", 1)[1].strip()


async def current_user(authorization: Optional[str] = Header(None)) -> Dict[str, Any]:
    token = _bearer(authorization)
    if not token or token not in TOKENS:
        raise HTTPException(status_code=401, detail="Unauthenticated.")
    return USERS[TOKENS[token]]


async def admin_user(user: Dict[str, Any] = Depends(current_user)) -> Dict[str, Any]:
    if user["role"] != "admin":
        raise HTTPException(status_code=403, detail="This action is unauthorized.")
    return user


# ---------------------------
# Auth endpoints
# ---------------------------
@api.post("/register", status_code=201)
async def register(payload: RegisterIn):
    if payload.password_confirmation is not None and payload.password_confirmation != payload.password:
        return JSONResponse(status_code=422, content={
            "message": "Validation failed", "errors": {"password": ["The password confirmation does not match."]}})
    if any(u["email"] == payload.email for u in USERS.values()):
        return JSONResponse(status_code=422, content={
            "message": "Validation failed", "errors": {"email": ["The email has already been taken."]}})
    uid = next_id("user")
    USERS[uid] = {"id": uid, "name": payload.name, "email": payload.email,
                  "password": payload.password, "role": "customer"}
    return _issue_token(USERS[uid])


@api.post("/login")
async def login(payload: LoginIn):
    for u in USERS.values():
        if u["email"] == payload.email and u["password"] == payload.password:
            return _issue_token(u)
    raise HTTPException(status_code=401, detail="Invalid credentials")


@api.post("/logout")
async def logout(authorization: Optional[str] = Header(None), user=Depends(current_user)):
    TOKENS.pop(_bearer(authorization), None)
    return {"message": "Logged out"}


@api.post("/logout-all")
async def logout_all(user=Depends(current_user)):
    for token in [t for t, uid in TOKENS.items() if uid == user["id"]]:
        del TOKENS[token]
    return {"message": "Logged out from all devices"}


@api.post("/refresh")
async def refresh(authorization: Optional[str] = Header(None), user=Depends(current_user)):
    TOKENS.pop(_bearer(authorization), None)
    return _issue_token(user)


@api.get("/profile")
async def profile(user=Depends(current_user)):
    return {"user": _public_user(user)}


# ---------------------------
# Catalogue
# ---------------------------
def _product_or_404(product_id: int) -> Dict[str, Any]:
    p = PRODUCTS.get(product_id)
    if not p:
        raise HTTPException(status_code=404, detail="Product not found")
    return p


@api.get("/products")
async def list_products(search: Optional[str] = None, category_id: Optional[int] = None,
                        in_stock: bool = False, sort_by: str = "id", sort_order: str = "asc",
                        page: int = 1, per_page: int = 12):
    out = []
    for p in PRODUCTS.values():
        if not p["is_active"]:
            continue
        if search and search.lower() not in p["name"].lower():
            continue
        if category_id and p["category_id"] != category_id:
            continue
        if in_stock and p["stock_quantity"] <= 0:
            continue
        out.append(p)
    if sort_by in ("id", "name", "price", "stock_quantity"):
        out.sort(key=lambda p: p[sort_by], reverse=sort_order == "desc")
    start = (max(page, 1) - 1) * per_page
    return {"data": out[start:start + per_page],
            "meta": {"total": len(out), "page": page, "per_page": per_page}}


@api.get("/products/{slug}")
async def get_product(slug: str):
    for p in PRODUCTS.values():
        if p["slug"] == slug or str(p["id"]) == slug:
            return {"data": p}
    raise HTTPException(status_code=404, detail="Product not found")


@api.get("/categories")
async def list_categories():
    return list(CATEGORIES.values())


@api.get("/categories/{category_id}")
async def get_category(category_id: int):
    c = CATEGORIES.get(category_id)
    if not c:
        raise HTTPException(status_code=404, detail="Category not found")
    return c


@api.get("/attributes")
async def list_attributes():
    return {"data": list(ATTRIBUTES.values())}


# ---------------------------
# Variants
# ---------------------------
@api.get("/products/{product_id}/variants")
async def list_variants(product_id: int, available_only: bool = False, in_stock_only: bool = False):
    _product_or_404(product_id)
    out = []
    for v in VARIANTS.values():
        if v["product_id"] != product_id:
            continue
        if available_only and not v["is_active"]:
            continue
        if in_stock_only and v["stock_quantity"] <= 0:
            continue
        out.append(v)
    return {"data": out}


@api.post("/products/{product_id}/variants", status_code=201)
async def create_variant(product_id: int, payload: VariantIn, user=Depends(admin_user)):
    _product_or_404(product_id)
    if any(v["sku"] == payload.sku for v in VARIANTS.values()):
        return JSONResponse(status_code=422, content={
            "message": "Validation failed", "errors": {"sku": ["The sku has already been taken."]}})
    vid = next_id("variant")
    VARIANTS[vid] = {"id": vid, "product_id": product_id, **payload.model_dump()}
    PRODUCTS[product_id]["has_variants"] = True
    return {"data": VARIANTS[vid]}


@api.post("/products/{product_id}/variants/{variant_id}/stock")
async def update_variant_stock(product_id: int, variant_id: int, payload: StockIn, user=Depends(admin_user)):
    v = VARIANTS.get(variant_id)
    if not v or v["product_id"] != product_id:
        raise HTTPException(status_code=404, detail="Variant not found")
    if payload.type == "set":
        v["stock_quantity"] = payload.quantity
    elif payload.type == "increment":
        v["stock_quantity"] += payload.quantity
    elif payload.type == "decrement":
        v["stock_quantity"] = max(0, v["stock_quantity"] - payload.quantity)
    else:
        raise HTTPException(status_code=400, detail="type must be set, increment or decrement")
    return {"message": "Stock updated", "stock_quantity": v["stock_quantity"]}


# ---------------------------
# Cart
# ---------------------------
def _unit_price(product: Dict[str, Any], variant: Optional[Dict[str, Any]]) -> float:
    if variant:
        return variant["price"]
    return product["sale_price"] if product["sale_price"] is not None else product["price"]


def _cart_view(user_id: int) -> Dict[str, Any]:
    items = []
    for it in CARTS.get(user_id, {}).values():
        product = PRODUCTS.get(it["product_id"])
        total = round(it["price"] * it["quantity"], 2)
        items.append({**it, "total": total, "product": product})
    return {
        "id": user_id,
        "user_id": user_id,
        "items": items,
        "subtotal": round(sum(i["total"] for i in items), 2),
        "total_items": sum(i["quantity"] for i in items),
    }


@api.get("/cart")
async def get_cart(user=Depends(current_user)):
    return {"success": True, "cart": _cart_view(user["id"])}


@api.post("/cart/add")
async def cart_add(payload: AddToCartIn, user=Depends(current_user)):
    variant = None
    if payload.variant_id:
        variant = VARIANTS.get(payload.variant_id)
        if not variant:
            raise HTTPException(status_code=404, detail="Variant not found")
        product_id = variant["product_id"]
    elif payload.product_id:
        product_id = payload.product_id
    else:
        return JSONResponse(status_code=422, content={
            "message": "Validation failed", "errors": {"product_id": ["A product or variant is required."]}})
    product = _product_or_404(product_id)

    cart = CARTS.setdefault(user["id"], {})
    line = None
    for it in cart.values():
        if (it["product_id"] == product_id and it["variant_id"] == payload.variant_id
                and (it["metadata"] or {}) == (payload.metadata or {})):
            line = it
            break
    wanted = payload.quantity + (line["quantity"] if line else 0)
    stock = variant["stock_quantity"] if variant else product["stock_quantity"]
    if wanted > stock:
        raise HTTPException(status_code=400, detail=f"Only {stock} item(s) of {product['name']} available")

    if line:
        line["quantity"] = wanted
    else:
        item_id = next_id("cart_item")
        cart[item_id] = {
            "id": item_id, "cart_id": user["id"], "product_id": product_id,
            "variant_id": payload.variant_id, "quantity": payload.quantity,
            "price": _unit_price(product, variant), "metadata": payload.metadata,
        }
    return {"success": True, "message": "Item added to cart", "cart": _cart_view(user["id"])}


def _cart_line_or_404(user_id: int, item_id: int) -> Dict[str, Any]:
    line = CARTS.get(user_id, {}).get(item_id)
    if not line:
        raise HTTPException(status_code=404, detail="Cart item not found")
    return line


@api.put("/cart/items/{item_id}")
async def cart_update(item_id: int, payload: UpdateCartItemIn, user=Depends(current_user)):
    line = _cart_line_or_404(user["id"], item_id)
    product = PRODUCTS[line["product_id"]]
    variant = VARIANTS.get(line["variant_id"]) if line["variant_id"] else None
    stock = variant["stock_quantity"] if variant else product["stock_quantity"]
    if payload.quantity > stock:
        raise HTTPException(status_code=400, detail=f"Only {stock} item(s) of {product['name']} available")
    line["quantity"] = payload.quantity
    return {"success": True, "cart": _cart_view(user["id"])}


@api.delete("/cart/items/{item_id}")
async def cart_remove(item_id: int, user=Depends(current_user)):
    _cart_line_or_404(user["id"], item_id)
    del CARTS[user["id"]][item_id]
    return {"success": True, "cart": _cart_view(user["id"])}


@api.delete("/cart/clear")
async def cart_clear(user=Depends(current_user)):
    CARTS[user["id"]] = {}
    return {"success": True, "message": "Cart cleared"}


# ---------------------------
# Wishlist
# ---------------------------
def _wishlist_view(user_id: int) -> Dict[str, Any]:
    items = [{**it, "product": PRODUCTS.get(it["product_id"])} for it in WISHLISTS.get(user_id, {}).values()]
    return {"id": user_id, "user_id": user_id, "items": items, "total_items": len(items)}


@api.get("/wishlist")
async def get_wishlist(user=Depends(current_user)):
    return {"success": True, "wishlist": _wishlist_view(user["id"])}


@api.post("/wishlist/add")
async def wishlist_add(payload: WishlistAddIn, user=Depends(current_user)):
    _product_or_404(payload.product_id)
    wishlist = WISHLISTS.setdefault(user["id"], {})
    if not any(it["product_id"] == payload.product_id for it in wishlist.values()):
        item_id = next_id("wishlist_item")
        wishlist[item_id] = {"id": item_id, "wishlist_id": user["id"], "product_id": payload.product_id}
    return {"success": True, "wishlist": _wishlist_view(user["id"])}


@api.delete("/wishlist/product/{product_id}")
async def wishlist_remove(product_id: int, user=Depends(current_user)):
    wishlist = WISHLISTS.setdefault(user["id"], {})
    for item_id in [i for i, it in wishlist.items() if it["product_id"] == product_id]:
        del wishlist[item_id]
    return {"success": True, "wishlist": _wishlist_view(user["id"])}


@api.delete("/wishlist/clear")
async def wishlist_clear(user=Depends(current_user)):
    WISHLISTS[user["id"]] = {}
    return {"success": True, "message": "Wishlist cleared"}


@api.post("/wishlist/items/{item_id}/move-to-cart")
async def wishlist_move_to_cart(item_id: int, user=Depends(current_user)):
    wishlist = WISHLISTS.setdefault(user["id"], {})
    item = wishlist.get(item_id)
    if not item:
        raise HTTPException(status_code=404, detail="Wishlist item not found")
    await cart_add(AddToCartIn(product_id=item["product_id"], quantity=1), user)
    del wishlist[item_id]
    return {"success": True, "wishlist": _wishlist_view(user["id"])}


# ---------------------------
# Orders & payments
# ---------------------------
def _order_or_404(order_id: int, user: Dict[str, Any]) -> Dict[str, Any]:
    order = ORDERS.get(order_id)
    if not order or (order["user_id"] != user["id"] and user["role"] != "admin"):
        raise HTTPException(status_code=404, detail="Order not found")
    return order


@api.get("/orders")
async def list_orders(user=Depends(current_user)):
    return {"orders": [o for o in ORDERS.values() if o["user_id"] == user["id"]]}


@api.get("/orders/{order_id}")
async def get_order(order_id: int, user=Depends(current_user)):
    return {"order": _order_or_404(order_id, user)}


@api.post("/orders", status_code=201)
async def create_order(payload: CheckoutIn, user=Depends(current_user)):
    cart = CARTS.get(user["id"], {})
    if not cart:
        raise HTTPException(status_code=400, detail="Your cart is empty")

    for line in cart.values():
        stock_owner = VARIANTS.get(line["variant_id"]) if line["variant_id"] else PRODUCTS[line["product_id"]]
        if stock_owner["stock_quantity"] < line["quantity"]:
            raise HTTPException(status_code=409, detail=f"Insufficient stock for product {line['product_id']}")

    items = []
    for line in cart.values():
        stock_owner = VARIANTS.get(line["variant_id"]) if line["variant_id"] else PRODUCTS[line["product_id"]]
        stock_owner["stock_quantity"] -= line["quantity"]
        product = PRODUCTS[line["product_id"]]
        product["in_stock"] = product["stock_quantity"] > 0
        items.append({
            "product_id": line["product_id"], "variant_id": line["variant_id"], "name": product["name"],
            "quantity": line["quantity"], "price": line["price"],
            "total": round(line["price"] * line["quantity"], 2),
        })

    order_id = next_id("order")
    ORDERS[order_id] = {
        "id": order_id,
        "order_number": f"ORD-{order_id:06d}",
        "user_id": user["id"],
        "status": "pending",
        "payment_status": "pending",
        "items": items,
        "total": round(sum(i["total"] for i in items), 2),
        "shipping_address": payload.shipping_address,
        "payment_method": payload.payment_method,
        "notes": payload.notes,
        "created_at": _now().isoformat(),
    }
    CARTS[user["id"]] = {}
    return {"order": ORDERS[order_id]}


def _transaction(order: Dict[str, Any], kind: str, amount: float, status: str) -> Dict[str, Any]:
    payment = PAYMENTS[order["id"]]
    tx = {
        "id": next_id("transaction"), "order_id": order["id"], "transaction_type": kind,
        "stripe_id": payment["payment_intent_id"], "amount": amount, "currency": "usd",
        "status": status, "processed_at": _now().isoformat(),
    }
    payment["transactions"].append(tx)
    return tx


@api.post("/orders/{order_id}/payment/intent")
async def create_payment_intent(order_id: int, user=Depends(current_user)):
    order = _order_or_404(order_id, user)
    if order["payment_status"] == "paid":
        raise HTTPException(status_code=400, detail="Order is already paid")
    intent_id = f"pi_{uuid.uuid4().hex[:24]}"
    expires_at = _now() + PAYMENT_WINDOW
    PAYMENTS[order_id] = {
        "payment_intent_id": intent_id,
        "client_secret": f"{intent_id}_secret_{uuid.uuid4().hex[:16]}",
        "expires_at": expires_at,
        "paid_at": None,
        "refunded_amount": 0.0,
        "transactions": [],
    }
    return {"clientSecret": PAYMENTS[order_id]["client_secret"], "paymentIntentId": intent_id,
            "expiresAt": expires_at.isoformat()}


def _payment_or_404(order_id: int) -> Dict[str, Any]:
    payment = PAYMENTS.get(order_id)
    if not payment:
        raise HTTPException(status_code=404, detail="No payment started for this order")
    return payment


@api.get("/orders/{order_id}/payment/status")
async def payment_status(order_id: int, user=Depends(current_user)):
    order = _order_or_404(order_id, user)
    payment = PAYMENTS.get(order_id)
    if payment and order["payment_status"] == "pending" and _now() >= payment["expires_at"]:
        order["payment_status"] = "expired"
    return {
        "payment_status": order["payment_status"],
        "payment_intent_id": payment["payment_intent_id"] if payment else None,
        "paid_at": payment["paid_at"] if payment else None,
        "payment_expires_at": payment["expires_at"].isoformat() if payment else None,
        "refunded_amount": payment["refunded_amount"] if payment else 0.0,
    }


@api.post("/orders/{order_id}/payment/confirm")
async def confirm_payment(order_id: int, user=Depends(current_user)):
    order = _order_or_404(order_id, user)
    payment = _payment_or_404(order_id)
    if _now() >= payment["expires_at"]:
        order["payment_status"] = "expired"
        raise HTTPException(status_code=400, detail="Payment time has expired. Please create a new order.")
    order["payment_status"] = "paid"
    order["status"] = "processing"
    payment["paid_at"] = _now().isoformat()
    _transaction(order, "charge", order["total"], "succeeded")
    return {"message": "Payment confirmed", "payment_status": "paid"}


@api.get("/orders/{order_id}/payment/transactions")
async def payment_transactions(order_id: int, user=Depends(current_user)):
    _order_or_404(order_id, user)
    return {"transactions": _payment_or_404(order_id)["transactions"]}


@api.post("/admin/orders/{order_id}/refund")
async def refund(order_id: int, payload: RefundIn, user=Depends(admin_user)):
    order = _order_or_404(order_id, user)
    payment = _payment_or_404(order_id)
    if order["payment_status"] not in ("paid", "partially_refunded"):
        raise HTTPException(status_code=400, detail="Only paid orders can be refunded")
    amount = round(order["total"] - payment["refunded_amount"], 2)
    payment["refunded_amount"] = order["total"]
    order["payment_status"] = "refunded"
    order["status"] = "refunded"
    return {"message": "Refund processed", "transaction": _transaction(order, "refund", amount, "succeeded")}


@api.post("/admin/orders/{order_id}/refund/partial")
async def partial_refund(order_id: int, payload: PartialRefundIn, user=Depends(admin_user)):
    order = _order_or_404(order_id, user)
    payment = _payment_or_404(order_id)
    if order["payment_status"] not in ("paid", "partially_refunded"):
        raise HTTPException(status_code=400, detail="Only paid orders can be refunded")
    if payment["refunded_amount"] + payload.amount > order["total"]:
        raise HTTPException(status_code=400, detail="Refund exceeds the order total")
    payment["refunded_amount"] = round(payment["refunded_amount"] + payload.amount, 2)
    order["payment_status"] = "refunded" if payment["refunded_amount"] >= order["total"] else "partially_refunded"
    return {"message": "Partial refund processed",
            "transaction": _transaction(order, "refund", payload.amount, "succeeded")}


# ---------------------------
# Reviews
# ---------------------------
def _has_purchased(user_id: int, product_id: int) -> bool:
    return any(
        o["user_id"] == user_id and any(i["product_id"] == product_id for i in o["items"])
        for o in ORDERS.values()
    )


def _review_or_404(review_id: int) -> Dict[str, Any]:
    review = REVIEWS.get(review_id)
    if not review:
        raise HTTPException(status_code=404, detail="Review not found")
    return review


@api.get("/products/{product_id}/reviews")
async def product_reviews(product_id: int, sort_by: str = "recent", rating: Optional[int] = None,
                          verified_only: bool = False, page: int = 1, per_page: int = 10):
    _product_or_404(product_id)
    out = [r for r in REVIEWS.values() if r["product_id"] == product_id and r["status"] == "approved"]
    if rating:
        out = [r for r in out if r["rating"] == rating]
    if verified_only:
        out = [r for r in out if r["verified_purchase"]]
    if sort_by == "helpful":
        out.sort(key=lambda r: r["helpful_count"], reverse=True)
    elif sort_by in ("rating_high", "rating_low"):
        out.sort(key=lambda r: r["rating"], reverse=sort_by == "rating_high")
    else:
        out.sort(key=lambda r: r["id"], reverse=True)
    start = (max(page, 1) - 1) * per_page
    return {"data": out[start:start + per_page], "meta": {"total": len(out), "page": page, "per_page": per_page}}


@api.get("/products/{product_id}/reviews/statistics")
async def review_statistics(product_id: int):
    _product_or_404(product_id)
    approved = [r for r in REVIEWS.values() if r["product_id"] == product_id and r["status"] == "approved"]
    distribution = {str(star): 0 for star in range(1, 6)}
    for r in approved:
        distribution[str(r["rating"])] += 1
    average = round(sum(r["rating"] for r in approved) / len(approved), 1) if approved else 0
    return {"success": True, "statistics": {
        "total_reviews": len(approved), "average_rating": average, "rating_distribution": distribution}}


@api.get("/products/{product_id}/reviews/can-review")
async def can_review(product_id: int, user=Depends(current_user)):
    _product_or_404(product_id)
    purchased = _has_purchased(user["id"], product_id)
    reviewed = any(r["product_id"] == product_id and r["user_id"] == user["id"] for r in REVIEWS.values())
    reason = None
    if reviewed:
        reason = "You have already reviewed this product"
    elif not purchased:
        reason = "Only customers who purchased this product can review it"
    return {"success": True, "can_review": reason is None, "has_purchased": purchased, "reason": reason}


@api.post("/products/{product_id}/reviews", status_code=201)
async def create_review(product_id: int, payload: ReviewIn, user=Depends(current_user)):
    eligibility = await can_review(product_id, user)
    if not eligibility["can_review"]:
        raise HTTPException(status_code=403, detail=eligibility["reason"])
    rid = next_id("review")
    REVIEWS[rid] = {
        "id": rid, "product_id": product_id, "user_id": user["id"], "user_name": user["name"],
        **payload.model_dump(), "status": "pending", "verified_purchase": True,
        "helpful_count": 0, "not_helpful_count": 0, "created_at": _now().isoformat(),
    }
    return {"success": True, "message": "Review submitted and awaiting moderation", "review": REVIEWS[rid]}


@api.put("/reviews/{review_id}")
async def update_review(review_id: int, payload: ReviewUpdateIn, user=Depends(current_user)):
    review = _review_or_404(review_id)
    if review["user_id"] != user["id"]:
        raise HTTPException(status_code=403, detail="This action is unauthorized.")
    review.update(payload.model_dump(exclude_none=True))
    review["status"] = "pending"
    return {"success": True, "message": "Review updated", "review": review}


@api.delete("/reviews/{review_id}")
async def delete_review(review_id: int, user=Depends(current_user)):
    review = _review_or_404(review_id)
    if review["user_id"] != user["id"] and user["role"] != "admin":
        raise HTTPException(status_code=403, detail="This action is unauthorized.")
    del REVIEWS[review_id]
    return {"success": True, "message": "Review deleted"}


@api.post("/reviews/{review_id}/helpful")
async def mark_helpful(review_id: int, payload: HelpfulIn, user=Depends(current_user)):
    review = _review_or_404(review_id)
    review["helpful_count" if payload.is_helpful else "not_helpful_count"] += 1
    return {"success": True, "message": "Thanks for your feedback",
            "helpful_count": review["helpful_count"], "not_helpful_count": review["not_helpful_count"]}


# ---------------------------
# Admin
# ---------------------------
@api.post("/admin/products", status_code=201)
async def admin_create_product(payload: ProductIn, user=Depends(admin_user)):
    if any(p["sku"] == payload.sku for p in PRODUCTS.values()):
        return JSONResponse(status_code=422, content={
            "message": "Validation failed", "errors": {"sku": ["The sku has already been taken."]}})
    pid = next_id("product")
    data = payload.model_dump()
    data["slug"] = data["slug"] or payload.name.lower().replace(" ", "-")
    PRODUCTS[pid] = {"id": pid, **data, "in_stock": payload.stock_quantity > 0, "image": None}
    return {"data": PRODUCTS[pid]}


@api.get("/admin/products")
async def admin_products(stock_status: Optional[str] = None, search: Optional[str] = None,
                         page: int = 1, low_stock_threshold: int = 10, user=Depends(admin_user)):
    out = list(PRODUCTS.values())
    if search:
        out = [p for p in out if search.lower() in p["name"].lower()]
    if stock_status == "low":
        out = [p for p in out if 0 < p["stock_quantity"] <= low_stock_threshold]
    elif stock_status == "out":
        out = [p for p in out if p["stock_quantity"] <= 0]
    return {"data": out, "meta": {"total": len(out), "page": page}}


@api.put("/admin/products/{product_id}/stock")
async def admin_product_stock(product_id: int, payload: ProductStockIn, user=Depends(admin_user)):
    p = _product_or_404(product_id)
    p["stock_quantity"] = payload.stock_quantity
    p["in_stock"] = payload.stock_quantity > 0
    return {"data": p}


@api.get("/admin/orders")
async def admin_orders(status: Optional[str] = None, search: Optional[str] = None,
                       page: int = 1, user=Depends(admin_user)):
    out = list(ORDERS.values())
    if status:
        out = [o for o in out if o["status"] == status]
    if search:
        out = [o for o in out if search.lower() in o["order_number"].lower()]
    return {"data": out, "meta": {"total": len(out), "page": page}}


ORDER_STATUSES = ("pending", "processing", "shipped", "delivered", "cancelled", "refunded")


@api.put("/admin/orders/{order_id}/status")
async def admin_order_status(order_id: int, payload: OrderStatusIn, user=Depends(admin_user)):
    order = _order_or_404(order_id, user)
    if payload.status not in ORDER_STATUSES:
        return JSONResponse(status_code=422, content={
            "message": "Validation failed", "errors": {"status": ["The selected status is invalid."]}})
    order["status"] = payload.status
    return {"order": order}


@api.get("/admin/users")
async def admin_users(search: Optional[str] = None, role: Optional[str] = None, user=Depends(admin_user)):
    out = [_public_user(u) for u in USERS.values()]
    if search:
        out = [u for u in out if search.lower() in u["name"].lower() or search.lower() in u["email"].lower()]
    if role:
        out = [u for u in out if u["role"] == role]
    return {"data": out}


@api.put("/admin/users/{user_id}/role")
async def admin_user_role(user_id: int, payload: RoleIn, user=Depends(admin_user)):
    target = USERS.get(user_id)
    if not target:
        raise HTTPException(status_code=404, detail="User not found")
    if payload.role not in ("customer", "admin"):
        return JSONResponse(status_code=422, content={
            "message": "Validation failed", "errors": {"role": ["The selected role is invalid."]}})
    target["role"] = payload.role
    return {"user": _public_user(target)}


@api.get("/admin/reviews")
async def admin_reviews(status: Optional[str] = None, user=Depends(admin_user)):
    out = list(REVIEWS.values())
    if status:
        out = [r for r in out if r["status"] == status]
    return {"data": out}


@api.post("/admin/reviews/{review_id}/approve")
async def admin_approve_review(review_id: int, payload: ModerationIn, user=Depends(admin_user)):
    review = _review_or_404(review_id)
    review["status"] = "approved"
    review["admin_notes"] = payload.notes
    return {"success": True, "message": "Review approved", "review": review}


@api.post("/admin/reviews/{review_id}/reject")
async def admin_reject_review(review_id: int, payload: ModerationIn, user=Depends(admin_user)):
    review = _review_or_404(review_id)
    if not payload.reason:
        return JSONResponse(status_code=422, content={
            "message": "Validation failed", "errors": {"reason": ["A rejection reason is required."]}})
    review["status"] = "rejected"
    review["rejection_reason"] = payload.reason
    review["admin_notes"] = payload.notes
    return {"success": True, "message": "Review rejected", "review": review}


# ---------------------------
# Utility: reset (for tests/demo)
# ---------------------------
@api.post("/reset")
async def reset_all():
    seed()
    return {"status": "reset"}


app.include_router(api)
