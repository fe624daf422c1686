"""
Product procedures and service: create, update, lookup, low stock.
"""

import pytest

from conftest import call

from retail_pos.extensions import db
from retail_pos.models import Product
from retail_pos.services import products_service


def _create(client, headers, **overrides):
    payload = {
        "name": "Green Tea",
        "cost_price": 2.5,
        "selling_price": 4.0,
        "stock_quantity": 20,
    }
    payload.update(overrides)
    return call(client, "createProduct", payload, headers=headers)


class TestCreateProduct:

    def test_defaults(self, client, manager_headers):
        resp = _create(client, manager_headers)
        assert resp.status_code == 200
        product = resp.json["result"]
        assert product["description"] is None
        assert product["barcode"] is None
        assert product["category"] is None
        assert product["min_stock_level"] == 0
        assert product["cost_price"] == 2.5
        assert product["selling_price"] == 4.0
        assert product["created_at"].endswith("Z")

    def test_duplicate_barcode_conflicts(self, client, manager_headers):
        assert _create(client, manager_headers, barcode="4006381333931").status_code == 200
        resp = _create(client, manager_headers, name="Other", barcode="4006381333931")
        assert resp.status_code == 409
        assert resp.json["code"] == "CONFLICT"

    def test_products_without_barcode_never_conflict(self, client, manager_headers):
        for _ in range(3):
            assert _create(client, manager_headers).status_code == 200
        assert _create(client, manager_headers, barcode="").status_code == 200
        assert db.session.query(Product).filter(Product.barcode.is_(None)).count() == 4

    @pytest.mark.parametrize(
        "overrides",
        [
            {"cost_price": 0},
            {"selling_price": -1},
            {"stock_quantity": -1},
            {"min_stock_level": -2},
            {"stock_quantity": 1.5},
            {"name": ""},
            {"name": "x" * 201},
            {"sku": "not-a-field"},
        ],
    )
    def test_invalid_input(self, client, manager_headers, overrides):
        resp = _create(client, manager_headers, **overrides)
        assert resp.status_code == 400

    def test_missing_required(self, client, manager_headers):
        resp = call(client, "createProduct", {"name": "Only a name"}, headers=manager_headers)
        assert resp.status_code == 400
        assert "cost_price" in resp.json["error"]


class TestUpdateProduct:

    def test_partial_update(self, client, manager_headers, make_product):
        product = make_product(name="Old", category="Snacks", barcode="111")

        resp = call(client, "updateProduct", {"id": product.id, "name": "New"}, headers=manager_headers)

        assert resp.status_code == 200
        result = resp.json["result"]
        assert result["name"] == "New"
        assert result["category"] == "Snacks"
        assert result["barcode"] == "111"

    def test_explicit_null_clears_nullable(self, client, manager_headers, make_product):
        product = make_product(category="Snacks")
        resp = call(client, "updateProduct", {"id": product.id, "category": None}, headers=manager_headers)
        assert resp.json["result"]["category"] is None

    def test_null_on_required_field_rejected(self, client, manager_headers, make_product):
        product = make_product()
        resp = call(client, "updateProduct", {"id": product.id, "name": None}, headers=manager_headers)
        assert resp.status_code == 400

    def test_refreshes_updated_at(self, client, manager_headers, make_product):
        product = make_product()
        product.updated_at = product.updated_at.replace(year=2020)
        db.session.commit()

        resp = call(client, "updateProduct", {"id": product.id}, headers=manager_headers)
        assert resp.status_code == 200
        assert not resp.json["result"]["updated_at"].startswith("2020")

    def test_missing_product(self, client, manager_headers):
        resp = call(client, "updateProduct", {"id": 9999, "name": "x"}, headers=manager_headers)
        assert resp.status_code == 404

    def test_missing_id(self, client, manager_headers):
        resp = call(client, "updateProduct", {"name": "x"}, headers=manager_headers)
        assert resp.status_code == 400

    def test_barcode_collision(self, client, manager_headers, make_product):
        make_product(name="A", barcode="AAA")
        b = make_product(name="B", barcode="BBB")
        resp = call(client, "updateProduct", {"id": b.id, "barcode": "AAA"}, headers=manager_headers)
        assert resp.status_code == 409
        assert db.session.get(Product, b.id).barcode == "BBB"


class TestProductQueries:

    def test_list_ordered_by_name(self, db_session, make_product):
        make_product(name="Zucchini")
        make_product(name="Apple")
        make_product(name="Mango")
        assert [p["name"] for p in products_service.list_products()] == ["Apple", "Mango", "Zucchini"]

    def test_barcode_lookup(self, db_session, make_product):
        make_product(name="Null barcode")
        make_product(name="Scanned", barcode="9780201379624")

        assert products_service.get_product_by_barcode("9780201379624")["name"] == "Scanned"
        assert products_service.get_product_by_barcode("") is None
        assert products_service.get_product_by_barcode("   ") is None
        assert products_service.get_product_by_barcode("0000") is None

    def test_barcode_lookup_procedure_returns_null(self, client, cashier_headers, make_product):
        make_product()
        resp = call(client, "getProductByBarcode", {"barcode": ""}, method="GET", headers=cashier_headers)
        assert resp.status_code == 200
        assert resp.json["result"] is None

    def test_low_stock_is_boundary_inclusive(self, db_session, make_product):
        make_product(name="At threshold", stock_quantity=5, min_stock_level=5)
        make_product(name="Below", stock_quantity=1, min_stock_level=5)
        make_product(name="Above", stock_quantity=6, min_stock_level=5)
        make_product(name="No threshold", stock_quantity=5, min_stock_level=0)

        names = {p["name"] for p in products_service.get_low_stock_products()}
        assert names == {"At threshold", "Below"}
