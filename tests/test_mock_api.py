# tests/test_mock_api.py
from fastapi.testclient import TestClient

from mockapi.main import app

client = TestClient(app)


def reset():
    client.post("/api/reset")


def login(email="alice@example.com"):
    r = client.post("/api/login", json={"email": email, "password": "password"})
    assert r.status_code == 200
    return {"Authorization": f"Bearer {r.json()['access_token']}"}


def test_cart_requires_auth():
    reset()
    r = client.get("/api/cart")
    assert r.status_code == 401
    assert r.json()["detail"] == "Unauthenticated."


def test_same_line_adds_up():
    reset()
    h = login()
    client.post("/api/cart/add", json={"product_id": 1, "quantity": 2}, headers=h)
    r = client.post("/api/cart/add", json={"product_id": 1, "quantity": 3}, headers=h)
    cart = r.json()["cart"]
    assert len(cart["items"]) == 1
    assert cart["total_items"] == 5
    assert cart["subtotal"] == 100.0


def test_stock_is_enforced():
    reset()
    h = login()
    r = client.post("/api/cart/add", json={"product_id": 3, "quantity": 1}, headers=h)
    assert r.status_code == 400
    r = client.post("/api/cart/add", json={"product_id": 2, "quantity": 6}, headers=h)
    assert r.status_code == 400


def test_validation_error_shape():
    reset()
    h = login()
    r = client.post("/api/cart/add", json={"product_id": 1, "quantity": 0}, headers=h)
    assert r.status_code == 422
    body = r.json()
    assert body["message"] == "Validation failed"
    assert "quantity" in body["errors"]


def test_checkout_needs_items():
    reset()
    h = login()
    r = client.post("/api/orders", json={}, headers=h)
    assert r.status_code == 400


def test_admin_routes_are_forbidden_to_customers():
    reset()
    h = login()
    assert client.get("/api/admin/orders", headers=h).status_code == 403
    assert client.get("/api/admin/orders", headers=login("admin@example.com")).status_code == 200


def test_reset_restores_seed_data():
    reset()
    h = login("admin@example.com")
    client.put("/api/admin/products/1/stock", json={"stock_quantity": 0}, headers=h)
    reset()
    r = client.get("/api/products/classic-tee")
    assert r.json()["data"]["stock_quantity"] == 50
