"""
HTTP end-to-end sobre la app FastAPI con el container de test
(stores en memoria, proveedor de identidad y notificador falsos).
"""

import asyncio

import pytest
from fastapi.testclient import TestClient

from app.api.main import app
from app.container import (
    get_document_store,
    get_notification_channel,
    get_relational_store,
)
from app.identity.users import UserRole

pytestmark = pytest.mark.unit


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


def _register(client, email="ana@example.com", username="ana"):
    res = client.post(
        "/v1/auth/register",
        json={"email": email, "username": username, "password": "password123"},
    )
    assert res.status_code == 201, res.text
    client.cookies.clear()
    body = res.json()
    return body["user"], {"Authorization": f"Bearer {body['access_token']}"}


def _promote(user_id: int) -> None:
    asyncio.run(get_relational_store().update_user(user_id, {"role": UserRole.ADMIN}))


class TestHealth:
    def test_healthz(self, client):
        res = client.get("/healthz")
        assert res.status_code == 200
        assert res.json()["ok"] is True

    def test_readyz_reports_each_store(self, client):
        body = client.get("/readyz").json()
        assert body["ok"] is True
        assert body["relational"] == "connected"
        assert body["document"] == "connected"

    def test_readyz_ok_with_one_store_down(self, client):
        get_document_store().faults.fail("ping")
        body = client.get("/readyz").json()
        assert body["ok"] is True
        assert body["document"] == "disconnected"


class TestAuth:
    def test_register_then_login(self, client):
        user, _ = _register(client)
        assert user["email"] == "ana@example.com"
        assert user["role"] == "user"

        res = client.post(
            "/v1/auth/login", json={"email": "ana@example.com", "password": "password123"}
        )
        assert res.status_code == 200
        assert res.json()["access_token"]
        assert res.json()["requires_two_factor"] is False

    def test_wrong_password_is_401(self, client):
        _register(client)
        res = client.post(
            "/v1/auth/login", json={"email": "ana@example.com", "password": "nope-nope"}
        )
        assert res.status_code == 401

    def test_duplicate_registration_is_409(self, client):
        _register(client)
        res = client.post(
            "/v1/auth/register",
            json={"email": "ana@example.com", "username": "otra", "password": "password123"},
        )
        assert res.status_code == 409


class TestStorefront:
    def test_admin_routes_forbidden_for_users(self, client):
        _, headers = _register(client)
        assert client.get("/v1/admin/dashboard", headers=headers).status_code == 403

    def test_admin_routes_require_session(self, client):
        assert client.get("/v1/admin/dashboard").status_code == 401

    def test_role_change_at_users_role(self, client):
        admin, admin_headers = _register(client, "boss@example.com", "boss")
        _promote(admin["id"])
        _, headers = _register(client, "ana@example.com", "ana")

        denied = client.post(
            "/v1/users/role", json={"email": "ana@example.com", "role": "admin"}, headers=headers
        )
        assert denied.status_code == 403
        assert client.post("/v1/users/role", json={"role": "admin"}).status_code == 401

        res = client.post(
            "/v1/users/role",
            json={"email": "ana@example.com", "role": "admin"},
            headers=admin_headers,
        )
        assert res.status_code == 200, res.text
        assert res.json()["per_store"]["relational"] is True
        assert client.get("/v1/users/me", headers=headers).json()["role"] == "admin"

    def test_malformed_product_id_is_400(self, client):
        res = client.get("/v1/products/abc")
        assert res.status_code == 400
        assert res.json()["code"] == "MALFORMED_KEY"

    def test_unknown_product_is_404(self, client):
        assert client.get("/v1/products/999").status_code == 404

    def test_catalog_and_guest_checkout(self, client):
        admin, headers = _register(client, "boss@example.com", "boss")
        _promote(admin["id"])

        res = client.post("/v1/categories", json={"name": "Shirts"}, headers=headers)
        assert res.status_code == 201, res.text
        category_id = res.json()["id"]

        res = client.post(
            "/v1/products",
            json={
                "name": "Linen shirt",
                "price": "40",
                "discount_price": "30",
                "category_id": category_id,
                "stock": 5,
            },
            headers=headers,
        )
        assert res.status_code == 201, res.text
        product = res.json()
        assert product["is_on_sale"] is True
        assert product["effective_price"] == 30.0

        listed = client.get("/v1/products", params={"category_id": category_id}).json()
        assert [p["id"] for p in listed] == [product["id"]]

        res = client.post(
            "/v1/orders",
            json={
                "items": [{"product_id": product["id"], "quantity": 2}],
                "shipping_address": {"city": "Córdoba"},
            },
        )
        assert res.status_code == 201, res.text
        order = res.json()
        assert order["user_id"] is None
        assert order["total_amount"] == 60.0

        dashboard = client.get("/v1/admin/dashboard", headers=headers).json()
        assert dashboard["total_orders"] == 1
        assert dashboard["total_revenue"] == 60.0

    def test_guest_order_history_is_empty(self, client):
        res = client.get("/v1/orders")
        assert res.status_code == 200
        assert res.json() == []


class TestTwoFactor:
    def test_setup_then_login_requires_code(self, client):
        _, headers = _register(client)
        mailbox = get_notification_channel()

        res = client.post("/v1/auth/2fa/setup", json={}, headers=headers)
        assert res.status_code == 200, res.text
        code = mailbox.last_to("ana@example.com").body.split("code is: ", 1)[1][:6]

        res = client.post("/v1/auth/2fa/setup", json={"code": code}, headers=headers)
        assert res.status_code == 200, res.text
        assert res.json()["overall_success"] is True

        res = client.post(
            "/v1/auth/login", json={"email": "ana@example.com", "password": "password123"}
        )
        body = res.json()
        assert body["requires_two_factor"] is True
        assert body["access_token"] is None

        login_code = mailbox.last_to("ana@example.com").body.split("code is: ", 1)[1][:6]
        res = client.post(
            "/v1/auth/2fa/verify", json={"owner": body["owner"], "code": login_code}
        )
        assert res.status_code == 200, res.text
        assert res.json()["access_token"]

    def test_wrong_code_is_generic(self, client):
        _, headers = _register(client)
        client.post("/v1/auth/2fa/setup", json={}, headers=headers)
        res = client.post("/v1/auth/2fa/setup", json={"code": "000000x"}, headers=headers)
        assert res.status_code == 400
        assert res.json()["code"] == "INVALID_OR_EXPIRED_CODE"
