# Overview: Procedures for product operations; validates input and returns JSON-ready dicts.

# backend/retail_pos/routes/products.py
"""
Product procedures.

SECURITY: All procedures require authentication.
- Reads (list, barcode lookup, low stock) are open to any signed-in user
- createProduct / updateProduct require the manager role

Create/update payloads are validated against the Product columns through
PRODUCT_POLICY rather than a hand-written schema, so column lengths and
nullability stay in one place.
"""
from ..decorators import require_auth, require_role
from ..models import Product
from ..rpc import registry, takes_input
from ..services import products_service
from ..validation import (
    Field,
    ModelValidationPolicy,
    ValidationError,
    coerce_int,
    enforce_rules_product,
    validate_payload,
)

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={
        "name",
        "description",
        "barcode",
        "cost_price",
        "selling_price",
        "stock_quantity",
        "min_stock_level",
        "category",
    },
    required_on_create={"name", "cost_price", "selling_price", "stock_quantity"},
)

BARCODE_INPUT = {
    "barcode": Field("string", max_length=128),
}


@registry.mutation("createProduct")
@require_auth
@require_role("manager")
def create_product(payload):
    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
    enforce_rules_product(patch)
    return products_service.create_product(patch=patch)


@registry.query("getProducts")
@require_auth
def get_products(payload):
    return products_service.list_products()


@registry.mutation("updateProduct")
@require_auth
@require_role("manager")
def update_product(payload):
    """
    Partial update: {"id": ..., <any writable field>...}.

    Omitted fields keep their value; explicit null clears a nullable field.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    payload = dict(payload)
    if "id" not in payload:
        raise ValidationError("Missing required field: id")
    product_id = coerce_int("id", payload.pop("id"))

    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=True)
    enforce_rules_product(patch)
    return products_service.update_product(product_id=product_id, patch=patch)


@registry.query("getProductByBarcode")
@require_auth
@takes_input(BARCODE_INPUT)
def get_product_by_barcode(data):
    return products_service.get_product_by_barcode(data["barcode"])


@registry.query("getLowStockProducts")
@require_auth
def get_low_stock_products(payload):
    return products_service.get_low_stock_products()
