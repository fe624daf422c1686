# Overview: Procedures for manual stock adjustments and their audit trail.

# backend/retail_pos/routes/inventory.py
"""
Inventory procedures.

SECURITY:
- createStockAdjustment requires the manager role
- getStockAdjustments is open to any signed-in user

The low-stock query lives with the product procedures.
"""
from flask import g

from ..decorators import require_auth, require_role
from ..models import ADJUSTMENT_TYPES
from ..rpc import registry, takes_input
from ..services import inventory_service
from ..validation import Field

STOCK_ADJUSTMENT_INPUT = {
    "product_id": Field("int", min_value=1),
    "adjustment_type": Field("enum", choices=ADJUSTMENT_TYPES),
    # Signed: for "recount" this is the counted total
    "quantity_change": Field("int"),
    "reason": Field("string", min_length=1, max_length=500),
}

ADJUSTMENT_HISTORY_INPUT = {
    "productId": Field("int", required=False, nullable=True, min_value=1),
}


@registry.mutation("createStockAdjustment")
@require_auth
@require_role("manager")
@takes_input(STOCK_ADJUSTMENT_INPUT)
def create_stock_adjustment(data):
    return inventory_service.create_stock_adjustment(
        product_id=data["product_id"],
        adjustment_type=data["adjustment_type"],
        quantity_change=data["quantity_change"],
        reason=data["reason"],
        user_id=g.current_user.id,
    )


@registry.query("getStockAdjustments")
@require_auth
@takes_input(ADJUSTMENT_HISTORY_INPUT)
def get_stock_adjustments(data):
    return inventory_service.list_stock_adjustments(product_id=data.get("productId"))
