"""
Authorization tests for MiniPOS.

Verifies:
- Unauthenticated requests return 401
- Cashier role denied back-office operations (403)
- Manager and admin roles can perform privileged operations
- Logout revokes the token
"""

import pytest

from conftest import auth_headers, get_auth_token


# =============================================================================
# UNAUTHENTICATED ACCESS - 401
# =============================================================================


class TestUnauthenticatedAccess:
    """All protected endpoints return 401 without a token."""

    @pytest.mark.parametrize(
        "method,path",
        [
            ("POST", "/api/pos/cart"),
            ("GET", "/api/pos/cart?register_id=1"),
            ("PUT", "/api/pos/cart/1"),
            ("DELETE", "/api/pos/cart/1"),
            ("POST", "/api/pos/holds"),
            ("GET", "/api/pos/holds/1"),
            ("POST", "/api/pos/complete-sale"),
            ("POST", "/api/registers/open"),
            ("POST", "/api/registers/1/close"),
            ("GET", "/api/registers"),
            ("GET", "/api/products"),
            ("POST", "/api/inventory/stock/set"),
            ("GET", "/api/stores"),
            ("GET", "/api/warehouses"),
            ("GET", "/api/customers"),
            ("GET", "/api/sales"),
            ("GET", "/api/auth/me"),
            ("POST", "/api/auth/users"),
            ("GET", "/api/reports/sales"),
            ("GET", "/api/expenses"),
            ("POST", "/api/cashflows"),
        ],
    )
    def test_requires_auth(self, client, seed, method, path):
        resp = getattr(client, method.lower())(path)
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"

    def test_invalid_token(self, client, seed):
        resp = client.get("/api/products", headers=auth_headers("not-a-real-token"))
        assert resp.status_code == 401

    def test_health_is_public(self, client, seed):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json["status"] == "ok"
        assert resp.json["checks"]["database"]["details"]["stores"] == 1


# =============================================================================
# LOGIN
# =============================================================================


class TestLogin:

    def test_login_returns_token_and_permissions(self, client, seed):
        resp = client.post("/api/auth/login", json={"username": "cashier", "password": "Password123"})
        assert resp.status_code == 200
        assert resp.json["token"]
        assert "USE_POS" in resp.json["permissions"]
        assert "MANAGE_PRODUCTS" not in resp.json["permissions"]

    def test_wrong_password(self, client, seed):
        resp = client.post("/api/auth/login", json={"username": "cashier", "password": "nope12345"})
        assert resp.status_code == 401

    def test_missing_fields(self, client, seed):
        resp = client.post("/api/auth/login", json={"username": "cashier"})
        assert resp.status_code == 400

    def test_logout_revokes_token(self, client, seed):
        token = get_auth_token(client, "cashier")
        headers = auth_headers(token)
        assert client.get("/api/auth/me", headers=headers).status_code == 200

        assert client.post("/api/auth/logout", headers=headers).status_code == 200
        assert client.get("/api/auth/me", headers=headers).status_code == 401


# =============================================================================
# CASHIER DENIED BACK-OFFICE OPERATIONS - 403
# =============================================================================


class TestCashierDenied:
    """Cashier role cannot manage the catalog, stock, stores or users."""

    def test_cannot_create_product(self, client, cashier_headers):
        resp = client.post(
            "/api/products",
            json={"code": "X-1", "name": "X", "price_cents": 100},
            headers=cashier_headers,
        )
        assert resp.status_code == 403
        assert resp.json["error"]

    def test_cannot_set_stock(self, client, seed, cashier_headers):
        resp = client.post(
            "/api/inventory/stock/set",
            json={"product_id": seed.product_a_id, "store_id": seed.store_id, "quantity": 100},
            headers=cashier_headers,
        )
        assert resp.status_code == 403

    def test_cannot_create_store(self, client, cashier_headers):
        resp = client.post("/api/stores", json={"name": "Rogue"}, headers=cashier_headers)
        assert resp.status_code == 403

    def test_cannot_create_user(self, client, cashier_headers):
        resp = client.post(
            "/api/auth/users",
            json={"username": "x", "password": "Password123", "role": "admin"},
            headers=cashier_headers,
        )
        assert resp.status_code == 403

    def test_cannot_create_customer(self, client, cashier_headers):
        resp = client.post("/api/customers", json={"name": "Ada"}, headers=cashier_headers)
        assert resp.status_code == 403

    def test_can_view_products(self, client, cashier_headers):
        resp = client.get("/api/products", headers=cashier_headers)
        assert resp.status_code == 200


# =============================================================================
# PRIVILEGED ROLES
# =============================================================================


class TestPrivilegedAccess:

    def test_manager_can_create_product(self, client, manager_headers):
        resp = client.post(
            "/api/products",
            json={"code": "M-1", "name": "Manager Product", "price_cents": 150},
            headers=manager_headers,
        )
        assert resp.status_code == 201

    def test_manager_cannot_create_user(self, client, manager_headers):
        resp = client.post(
            "/api/auth/users",
            json={"username": "newbie", "password": "Password123", "role": "cashier"},
            headers=manager_headers,
        )
        assert resp.status_code == 403

    def test_admin_can_create_user(self, client, admin_headers):
        resp = client.post(
            "/api/auth/users",
            json={"username": "newbie", "password": "Password123", "role": "cashier"},
            headers=admin_headers,
        )
        assert resp.status_code == 201
        assert resp.json["user"]["role"] == "cashier"

    def test_admin_weak_password_rejected(self, client, admin_headers):
        resp = client.post(
            "/api/auth/users",
            json={"username": "weak", "password": "short", "role": "cashier"},
            headers=admin_headers,
        )
        assert resp.status_code == 400
