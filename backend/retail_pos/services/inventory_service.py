# Overview: Service-layer operations for inventory; encapsulates business logic and database work.

# backend/retail_pos/services/inventory_service.py
"""
Inventory Invariants

- Product.stock_quantity is the on-hand count; sales and adjustments mutate it.
- Manual adjustments never leave stock below zero (decrease/recount clamp).
- Every manual adjustment writes a StockAdjustment audit row in the same
  database transaction as the stock change.
- The audit row keeps quantity_change exactly as submitted, so a clamped
  decrease still shows what the user asked for.
"""

from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import Product, StockAdjustment
from ..validation import NotFoundError, ValidationError
from retail_pos.time_utils import utcnow
from .concurrency import atomic, lock_for_update


def compute_adjusted_stock(current: int, adjustment_type: str, quantity_change: int) -> int:
    """
    New on-hand quantity after a manual adjustment.

    - increase: current + |change|
    - decrease: current - |change|, floored at 0
    - recount: change is the counted total, floored at 0
    """
    if adjustment_type == "increase":
        return current + abs(quantity_change)
    if adjustment_type == "decrease":
        return max(0, current - abs(quantity_change))
    if adjustment_type == "recount":
        return max(0, quantity_change)
    raise ValidationError(f"Invalid adjustment type: {adjustment_type}")


def create_stock_adjustment(
    *,
    product_id: int,
    adjustment_type: str,
    quantity_change: int,
    reason: str,
    user_id: int,
) -> dict:
    """
    Record a manual stock adjustment and apply it to the product.

    Raises:
        NotFoundError: If the product doesn't exist
    """
    with atomic():
        product = lock_for_update(
            db.session.query(Product).filter(Product.id == product_id)
        ).first()
        if product is None:
            raise NotFoundError(f"Product with id {product_id} not found")

        previous = product.stock_quantity
        new_quantity = compute_adjusted_stock(previous, adjustment_type, quantity_change)

        adjustment = StockAdjustment(
            product_id=product_id,
            user_id=user_id,
            adjustment_type=adjustment_type,
            quantity_change=quantity_change,
            reason=reason,
        )
        db.session.add(adjustment)

        product.stock_quantity = new_quantity
        product.updated_at = utcnow()

    current_app.logger.info(
        "Stock %s on product %s: %s -> %s by user %s",
        adjustment_type,
        product_id,
        previous,
        new_quantity,
        user_id,
    )
    return adjustment.to_dict()


def list_stock_adjustments(product_id: int | None = None) -> list[dict]:
    """Adjustment history, newest first, optionally for one product."""
    query = db.session.query(StockAdjustment)
    if product_id is not None:
        query = query.filter(StockAdjustment.product_id == product_id)

    rows = query.order_by(
        StockAdjustment.created_at.desc(),
        StockAdjustment.id.desc(),
    ).all()
    return [row.to_dict() for row in rows]
