"""Integration tests for cart, wishlist and recently viewed endpoints."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from protean import current_domain
from storefront.account.flows import login
from storefront.api import register_error_handlers
from storefront.api.routes import cart_router, recently_viewed_router, wishlist_router
from storefront.session.lifecycle import EnsureSession

SESSION = "1a" * 16
HEADERS = {"X-Session-Id": SESSION}
BILLING = {
    "email": "amal@example.com",
    "first_name": "Amal",
    "last_name": "Haddad",
    "country": "AE",
    "street_address_1": "12 Marina Walk",
    "city": "Dubai",
    "phone": "+971500000000",
}


@pytest.fixture(autouse=True)
def shopper_session():
    return current_domain.process(EnsureSession(session_id=SESSION), asynchronous=False)


@pytest.fixture()
def client():
    app = FastAPI()
    app.include_router(cart_router)
    app.include_router(wishlist_router)
    app.include_router(recently_viewed_router)
    register_error_handlers(app)
    return TestClient(app)


class TestCartAPI:
    def test_empty_cart(self, client):
        response = client.get("/cart", headers=HEADERS)
        assert response.status_code == 200
        assert response.json()["items"] == []

    def test_session_required(self, client):
        response = client.get("/cart")
        assert response.status_code == 401
        assert response.json()["error"]["code"] == "SESSION_REQUIRED"

    def test_add_item(self, client):
        response = client.post(
            "/cart/items",
            json={"product_id": "prod-tee", "variant_item_ids": ["size-m", "color-red"], "quantity": 2},
            headers=HEADERS,
        )
        assert response.status_code == 200
        body = response.json()
        assert body["total_items"] == 2
        assert body["subtotal"] == 200.0
        assert body["items"][0]["variant_item_ids"] == ["color-red", "size-m"]

    def test_add_zero_quantity_rejected(self, client):
        response = client.post("/cart/items", json={"product_id": "prod-tee", "quantity": 0}, headers=HEADERS)
        assert response.status_code == 422

    def test_add_unknown_product(self, client):
        response = client.post("/cart/items", json={"product_id": "prod-nope"}, headers=HEADERS)
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "PRODUCT_NOT_FOUND"

    def test_update_quantity(self, client):
        client.post("/cart/items", json={"product_id": "prod-mug"}, headers=HEADERS)
        response = client.put("/cart/items", json={"product_id": "prod-mug", "quantity": 3}, headers=HEADERS)
        assert response.json()["total_items"] == 3

    def test_update_without_cart(self, client):
        response = client.put("/cart/items", json={"product_id": "prod-mug", "quantity": 3}, headers=HEADERS)
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "CART_NOT_FOUND"

    def test_remove_item_with_variants(self, client):
        client.post("/cart/items", json={"product_id": "prod-tee", "variant_item_ids": ["size-m"]}, headers=HEADERS)
        client.post("/cart/items", json={"product_id": "prod-tee", "variant_item_ids": ["size-xl"]}, headers=HEADERS)

        response = client.delete("/cart/items/prod-tee", params={"variant_item_ids": ["size-m"]}, headers=HEADERS)

        assert [i["variant_item_ids"] for i in response.json()["items"]] == [["size-xl"]]

    def test_clear(self, client):
        client.post("/cart/items", json={"product_id": "prod-mug"}, headers=HEADERS)
        assert client.delete("/cart", headers=HEADERS).json()["items"] == []

    def test_billing_details(self, client):
        client.post("/cart/items", json={"product_id": "prod-mug"}, headers=HEADERS)
        response = client.put("/cart/billing", json=BILLING, headers=HEADERS)
        assert response.json()["billing_details"]["city"] == "Dubai"

    def test_invalid_billing_email(self, client):
        client.post("/cart/items", json={"product_id": "prod-mug"}, headers=HEADERS)
        response = client.put("/cart/billing", json={**BILLING, "email": "nope"}, headers=HEADERS)
        assert response.status_code == 400

    def test_bound_session_reads_user_cart(self, client):
        client.post("/cart/items", json={"product_id": "prod-mug"}, headers=HEADERS)
        login(user_id="user-001", session_id=SESSION)

        client.post("/cart/items", json={"product_id": "prod-cap"}, headers=HEADERS)

        body = client.get("/cart", headers=HEADERS).json()
        assert sorted(i["product_id"] for i in body["items"]) == ["prod-cap", "prod-mug"]

    def test_user_header_is_ignored(self, client):
        login(user_id="user-001", session_id=SESSION)
        client.post("/cart/items", json={"product_id": "prod-mug"}, headers=HEADERS)

        other_session = current_domain.process(EnsureSession(), asynchronous=False)
        response = client.get("/cart", headers={"X-Session-Id": other_session, "X-User-Id": "user-001"})

        assert response.status_code == 200
        assert response.json()["items"] == []


class TestWishlistAPI:
    def test_add_and_read(self, client):
        client.post("/wishlist/items", json={"product_id": "prod-tee"}, headers=HEADERS)
        client.post("/wishlist/items", json={"product_id": "prod-tee"}, headers=HEADERS)
        assert len(client.get("/wishlist", headers=HEADERS).json()["items"]) == 1

    def test_remove(self, client):
        client.post("/wishlist/items", json={"product_id": "prod-tee"}, headers=HEADERS)
        response = client.delete("/wishlist/items/prod-tee", headers=HEADERS)
        assert response.json()["items"] == []

    def test_remove_missing(self, client):
        client.post("/wishlist/items", json={"product_id": "prod-tee"}, headers=HEADERS)
        response = client.delete("/wishlist/items/prod-mug", headers=HEADERS)
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "ITEM_NOT_FOUND"


class TestRecentlyViewedAPI:
    def test_track_and_read(self, client):
        assert client.post("/recently-viewed", json={"product_id": "prod-mug"}, headers=HEADERS).json() == {
            "status": "tracked"
        }
        products = client.get("/recently-viewed", headers=HEADERS).json()["products"]
        assert [p["name"] for p in products] == ["Stoneware Mug"]
        assert products[0]["price"] == 45.5
