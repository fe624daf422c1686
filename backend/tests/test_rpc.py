"""
Procedure endpoint tests: transport rules, error envelope and CORS.
"""

import json

from conftest import call

from retail_pos.rpc import registry


class TestTransport:

    def test_success_envelope(self, client, cashier_headers, make_product):
        make_product(name="Soap")
        resp = call(client, "getProducts", method="GET", headers=cashier_headers)
        assert resp.status_code == 200
        assert set(resp.json.keys()) == {"result"}

    def test_query_accepts_post(self, client, cashier_headers, make_product):
        make_product(barcode="123")
        resp = call(client, "getProductByBarcode", {"barcode": "123"}, headers=cashier_headers)
        assert resp.status_code == 200
        assert resp.json["result"]["barcode"] == "123"

    def test_query_input_from_query_string(self, client, cashier_headers, make_product):
        make_product(barcode="456")
        resp = call(client, "getProductByBarcode", {"barcode": "456"}, method="GET",
                    headers=cashier_headers)
        assert resp.status_code == 200
        assert resp.json["result"]["barcode"] == "456"

    def test_mutation_rejects_get(self, client, manager_headers):
        resp = call(client, "createProduct", {"name": "x"}, method="GET", headers=manager_headers)
        assert resp.status_code == 405
        assert resp.json["code"] == "METHOD_NOT_SUPPORTED"

    def test_unknown_procedure(self, client, db_session):
        resp = call(client, "dropAllTables")
        assert resp.status_code == 404
        assert resp.json["code"] == "NOT_FOUND"

    def test_malformed_query_input(self, client, cashier_headers):
        resp = client.get("/rpc/getProductByBarcode", query_string={"input": "{not json"},
                          headers=cashier_headers)
        assert resp.status_code == 400
        assert resp.json["code"] == "BAD_REQUEST"

    def test_malformed_post_body(self, client, manager_headers):
        resp = client.post("/rpc/createProduct", data="{oops", content_type="application/json",
                           headers=manager_headers)
        assert resp.status_code == 400

    def test_catalogue_lists_every_procedure(self, client, db_session):
        resp = client.get("/rpc")
        assert resp.status_code == 200
        names = {p["name"] for p in resp.json["procedures"]}
        assert names == set(registry.names())
        assert {"healthcheck", "loginUser", "createSale", "getProfitLossReport"} <= names


class TestInputValidation:

    def test_unknown_field_rejected(self, client, cashier_headers):
        resp = call(client, "getProductByBarcode", {"barcode": "1", "extra": True},
                    headers=cashier_headers)
        assert resp.status_code == 400
        assert "extra" in resp.json["error"]

    def test_missing_required_field(self, client, cashier_headers):
        resp = call(client, "generateReceipt", {}, method="GET", headers=cashier_headers)
        assert resp.status_code == 400
        assert "transaction_id" in resp.json["error"]

    def test_sale_needs_at_least_one_item(self, client, cashier_headers):
        resp = call(client, "createSale", {"items": [], "payment_method": "cash"},
                    headers=cashier_headers)
        assert resp.status_code == 400

    def test_sale_rejects_unknown_payment_method(self, client, cashier_headers, make_product):
        product = make_product()
        resp = call(client, "createSale", {
            "items": [{"product_id": product.id, "quantity": 1, "unit_price": 15}],
            "payment_method": "cheque",
        }, headers=cashier_headers)
        assert resp.status_code == 400

    def test_sale_rejects_zero_quantity(self, client, cashier_headers, make_product):
        product = make_product()
        resp = call(client, "createSale", {
            "items": [{"product_id": product.id, "quantity": 0, "unit_price": 15}],
            "payment_method": "cash",
        }, headers=cashier_headers)
        assert resp.status_code == 400
        assert "items[0].quantity" in resp.json["error"]

    def test_sale_rejects_negative_discount(self, client, cashier_headers, make_product):
        product = make_product()
        resp = call(client, "createSale", {
            "items": [{"product_id": product.id, "quantity": 1, "unit_price": 15}],
            "payment_method": "cash",
            "discount_amount": -1,
        }, headers=cashier_headers)
        assert resp.status_code == 400

    def test_adjustment_reason_length(self, client, manager_headers, make_product):
        product = make_product()
        for reason in ("", "x" * 501):
            resp = call(client, "createStockAdjustment", {
                "product_id": product.id,
                "adjustment_type": "increase",
                "quantity_change": 1,
                "reason": reason,
            }, headers=manager_headers)
            assert resp.status_code == 400

    def test_report_requires_both_dates(self, client, manager_headers):
        resp = call(client, "getSalesReport", {"start_date": "2024-01-01"}, method="GET",
                    headers=manager_headers)
        assert resp.status_code == 400

    def test_report_rejects_bad_date(self, client, manager_headers):
        resp = call(client, "getSalesReport", {"start_date": "yesterday", "end_date": "2024-01-01"},
                    method="GET", headers=manager_headers)
        assert resp.status_code == 400


class TestErrorMapping:

    def test_not_found(self, client, cashier_headers):
        resp = call(client, "generateReceipt", {"transaction_id": 424242}, method="GET",
                    headers=cashier_headers)
        assert resp.status_code == 404
        assert resp.json["code"] == "NOT_FOUND"

    def test_conflict_carries_stock_details(self, client, cashier_headers, make_product):
        product = make_product(stock_quantity=1)
        resp = call(client, "createSale", {
            "items": [{"product_id": product.id, "quantity": 2, "unit_price": 15}],
            "payment_method": "card",
        }, headers=cashier_headers)
        assert resp.status_code == 409
        assert resp.json["code"] == "CONFLICT"
        assert resp.json["details"]["items"] == [
            {"product_id": product.id, "requested_quantity": 2, "on_hand": 1}
        ]

    def test_unexpected_error_is_generic_500(self, app, client, cashier_headers, monkeypatch):
        from retail_pos.services import products_service

        def boom():
            raise RuntimeError("database exploded: secret internals")

        monkeypatch.setattr(products_service, "list_products", boom)
        resp = call(client, "getProducts", method="GET", headers=cashier_headers)
        assert resp.status_code == 500
        assert resp.json == {"error": "Internal server error", "code": "INTERNAL_SERVER_ERROR"}


class TestCors:

    def test_allowed_origin_echoed(self, client, db_session):
        resp = client.get("/rpc/healthcheck", headers={"Origin": "http://localhost:5173"})
        assert resp.headers["Access-Control-Allow-Origin"] == "http://localhost:5173"
        assert "Authorization" in resp.headers["Access-Control-Allow-Headers"]

    def test_unknown_origin_not_echoed(self, client, db_session):
        resp = client.get("/rpc/healthcheck", headers={"Origin": "http://evil.example"})
        assert "Access-Control-Allow-Origin" not in resp.headers

    def test_preflight(self, client, db_session):
        resp = client.options("/rpc/createSale", headers={
            "Origin": "http://localhost:5173",
            "Access-Control-Request-Method": "POST",
        })
        assert resp.status_code == 200
        assert resp.headers["Access-Control-Allow-Origin"] == "http://localhost:5173"


def test_get_input_may_be_omitted(client, cashier_headers):
    resp = client.get("/rpc/getTransactions", headers=cashier_headers)
    assert resp.status_code == 200
    assert resp.json["result"] == []


def test_post_without_body_is_empty_input(client, cashier_headers):
    resp = client.post("/rpc/getLowStockProducts", headers=cashier_headers)
    assert resp.status_code == 200
    assert json.loads(resp.data) == {"result": []}
