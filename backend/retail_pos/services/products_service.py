# backend/retail_pos/services/products_service.py
"""
Products Service

Product create/update take a patch dict that the route layer has already
validated with validate_payload + enforce_rules_product. Barcode uniqueness
is owned by the uq_products_barcode constraint; an IntegrityError on commit
becomes a ConflictError.
"""
from __future__ import annotations

from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Product
from ..validation import ConflictError, NotFoundError
from retail_pos.time_utils import utcnow

PRODUCT_MUTABLE_FIELDS = {
    "name",
    "description",
    "barcode",
    "cost_price",
    "selling_price",
    "stock_quantity",
    "min_stock_level",
    "category",
}


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        setattr(p, k, v)


def _commit_or_conflict(barcode: str | None) -> None:
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError(f"Product with barcode {barcode} already exists")


def list_products() -> list[dict]:
    products = (
        db.session.query(Product)
        .order_by(Product.name.asc(), Product.id.asc())
        .all()
    )
    return [p.to_dict() for p in products]


def create_product(*, patch: dict) -> dict:
    """
    Create product using a validated patch dict.

    Optional fields default to null; min_stock_level defaults to 0.

    Raises:
        ConflictError: If the barcode already belongs to another product
    """
    p = Product(
        description=None,
        barcode=None,
        category=None,
        min_stock_level=0,
    )
    apply_product_patch(p, patch)

    db.session.add(p)
    _commit_or_conflict(p.barcode)

    current_app.logger.info("Created product id=%s name=%s", p.id, p.name)
    return p.to_dict()


def update_product(*, product_id: int, patch: dict) -> dict:
    """
    Partial update: keys absent from the patch keep their value, explicit
    None clears a nullable column.

    Raises:
        NotFoundError: If the product doesn't exist
        ConflictError: If the new barcode already belongs to another product
    """
    p = db.session.get(Product, product_id)
    if p is None:
        raise NotFoundError(f"Product with id {product_id} not found")

    apply_product_patch(p, patch)
    # onupdate only fires when a column changed; always bump on an update call
    p.updated_at = utcnow()

    _commit_or_conflict(p.barcode)
    return p.to_dict()


def get_product_by_barcode(barcode: str) -> dict | None:
    if barcode is None or not barcode.strip():
        return None

    p = db.session.query(Product).filter(Product.barcode == barcode.strip()).first()
    return p.to_dict() if p else None


def get_low_stock_products() -> list[dict]:
    """Products at or below their minimum stock level (boundary inclusive)."""
    products = (
        db.session.query(Product)
        .filter(Product.stock_quantity <= Product.min_stock_level)
        .order_by(Product.stock_quantity.asc(), Product.name.asc(), Product.id.asc())
        .all()
    )
    return [p.to_dict() for p in products]
