"""
Authorization tests for the procedure endpoint.

Verifies:
- Unauthenticated calls return 401
- Cashier role denied manager-only procedures (403)
- Manager role can call them
- Tokens of deactivated users stop working immediately
"""

import pytest

from conftest import auth_headers, call, get_auth_token

from retail_pos.services import token_service


PROTECTED_PROCEDURES = [
    ("POST", "createUser"),
    ("GET", "getCurrentUser"),
    ("GET", "getUsers"),
    ("POST", "setUserActive"),
    ("POST", "createProduct"),
    ("GET", "getProducts"),
    ("POST", "updateProduct"),
    ("GET", "getProductByBarcode"),
    ("POST", "createSale"),
    ("GET", "generateReceipt"),
    ("GET", "getTransactions"),
    ("POST", "createStockAdjustment"),
    ("GET", "getStockAdjustments"),
    ("GET", "getLowStockProducts"),
    ("GET", "getSalesReport"),
    ("GET", "getProfitLossReport"),
]

MANAGER_ONLY = [
    ("POST", "createUser"),
    ("GET", "getUsers"),
    ("POST", "setUserActive"),
    ("POST", "createProduct"),
    ("POST", "updateProduct"),
    ("POST", "createStockAdjustment"),
    ("GET", "getSalesReport"),
    ("GET", "getProfitLossReport"),
]


# =============================================================================
# UNAUTHENTICATED ACCESS - 401
# =============================================================================


class TestUnauthenticatedAccess:
    """All protected procedures return 401 without a token."""

    @pytest.mark.parametrize("method,name", PROTECTED_PROCEDURES)
    def test_requires_auth(self, client, db_session, method, name):
        resp = call(client, name, {}, method=method)
        assert resp.status_code == 401, f"{name} returned {resp.status_code}"
        assert resp.json["code"] == "UNAUTHORIZED"

    def test_garbage_token_rejected(self, client, db_session):
        resp = call(client, "getProducts", method="GET", headers=auth_headers("not-a-token"))
        assert resp.status_code == 401

    def test_non_bearer_scheme_rejected(self, client, cashier):
        token = get_auth_token(client, cashier.username)
        resp = call(client, "getProducts", method="GET", headers={"Authorization": f"Token {token}"})
        assert resp.status_code == 401

    def test_expired_token_rejected(self, app, client, cashier):
        app.config["AUTH_TOKEN_MAX_AGE"] = -1
        try:
            token = token_service.issue_token(cashier)
            resp = call(client, "getProducts", method="GET", headers=auth_headers(token))
        finally:
            app.config["AUTH_TOKEN_MAX_AGE"] = 12 * 60 * 60
        assert resp.status_code == 401

    def test_healthcheck_is_public(self, client, db_session):
        resp = call(client, "healthcheck", method="GET")
        assert resp.status_code == 200
        assert resp.json["result"]["status"] == "ok"
        assert resp.json["result"]["timestamp"].endswith("Z")

    def test_login_is_public(self, client, cashier):
        resp = call(client, "loginUser", {"username": "cashier", "password": "secret123"})
        assert resp.status_code == 200


# =============================================================================
# CASHIER DENIED MANAGER-ONLY PROCEDURES - 403
# =============================================================================


class TestCashierDenied:
    """Cashier role cannot perform manager operations."""

    @pytest.mark.parametrize("method,name", MANAGER_ONLY)
    def test_manager_only(self, client, cashier_headers, method, name):
        resp = call(client, name, {}, method=method, headers=cashier_headers)
        assert resp.status_code == 403, f"{name} returned {resp.status_code}"
        assert resp.json["code"] == "FORBIDDEN"

    def test_cashier_can_sell(self, client, cashier_headers, make_product):
        product = make_product(stock_quantity=3)
        resp = call(client, "createSale", {
            "items": [{"product_id": product.id, "quantity": 1, "unit_price": 15}],
            "payment_method": "cash",
        }, headers=cashier_headers)
        assert resp.status_code == 200

    def test_cashier_can_read_products(self, client, cashier_headers, make_product):
        make_product()
        resp = call(client, "getProducts", method="GET", headers=cashier_headers)
        assert resp.status_code == 200
        assert len(resp.json["result"]) == 1


# =============================================================================
# MANAGER ACCESS
# =============================================================================


class TestManagerAccess:

    def test_manager_can_list_users(self, client, manager_headers, cashier):
        resp = call(client, "getUsers", method="GET", headers=manager_headers)
        assert resp.status_code == 200
        usernames = [u["username"] for u in resp.json["result"]]
        assert usernames == ["cashier", "manager"]
        assert all("password_hash" not in u for u in resp.json["result"])

    def test_manager_can_read_reports(self, client, manager_headers):
        resp = call(client, "getSalesReport",
                    {"start_date": "2024-01-01", "end_date": "2024-01-31"},
                    method="GET", headers=manager_headers)
        assert resp.status_code == 200


# =============================================================================
# ACCOUNT STATE
# =============================================================================


class TestDeactivation:

    def test_deactivated_user_token_stops_working(self, client, manager_headers, cashier):
        token = get_auth_token(client, cashier.username)
        assert call(client, "getCurrentUser", method="GET",
                    headers=auth_headers(token)).status_code == 200

        resp = call(client, "setUserActive", {"user_id": cashier.id, "is_active": False},
                    headers=manager_headers)
        assert resp.status_code == 200
        assert resp.json["result"]["is_active"] is False

        resp = call(client, "getCurrentUser", method="GET", headers=auth_headers(token))
        assert resp.status_code == 401

    def test_manager_cannot_deactivate_self(self, client, manager, manager_headers):
        resp = call(client, "setUserActive", {"user_id": manager.id, "is_active": False},
                    headers=manager_headers)
        assert resp.status_code == 400

    def test_set_active_unknown_user(self, client, manager_headers):
        resp = call(client, "setUserActive", {"user_id": 9999, "is_active": True},
                    headers=manager_headers)
        assert resp.status_code == 404
