# Overview: Procedures for sales; parses input and returns JSON-ready dicts.

# backend/retail_pos/routes/sales.py
"""
Sales procedures: ring up a sale, print its receipt, browse history.

Open to any signed-in user. The acting user comes from g.current_user,
never from the payload.
"""
from decimal import Decimal

from flask import g

from ..decorators import require_auth
from ..models import PAYMENT_METHODS
from ..rpc import registry, takes_input
from ..services import sales_service
from ..validation import MAX_MONEY, Field

SALE_ITEM_INPUT = {
    "product_id": Field("int", min_value=1),
    "quantity": Field("int", min_value=0, exclusive_min=True),
    "unit_price": Field("decimal", min_value=Decimal("0"), exclusive_min=True, max_value=MAX_MONEY),
}

CREATE_SALE_INPUT = {
    "items": Field("list", min_length=1, fields=SALE_ITEM_INPUT),
    "payment_method": Field("enum", choices=PAYMENT_METHODS),
    "discount_amount": Field("decimal", required=False, default=Decimal("0"),
                             min_value=Decimal("0"), max_value=MAX_MONEY),
    "tax_rate": Field("decimal", required=False, default=Decimal("0"), min_value=Decimal("0")),
}

RECEIPT_INPUT = {
    "transaction_id": Field("int", min_value=1),
}

TRANSACTIONS_INPUT = {
    "start_date": Field("date", required=False, nullable=True),
    "end_date": Field("date", required=False, nullable=True),
}


@registry.mutation("createSale")
@require_auth
@takes_input(CREATE_SALE_INPUT)
def create_sale(data):
    """
    Record a completed sale and decrement stock.

    Returns the Transaction; 409 with per-item details if stock is short.
    """
    return sales_service.create_sale(
        items=data["items"],
        payment_method=data["payment_method"],
        discount_amount=data["discount_amount"],
        tax_rate=data["tax_rate"],
        user_id=g.current_user.id,
    )


@registry.query("generateReceipt")
@require_auth
@takes_input(RECEIPT_INPUT)
def generate_receipt(data):
    return sales_service.generate_receipt(data["transaction_id"])


@registry.query("getTransactions")
@require_auth
@takes_input(TRANSACTIONS_INPUT)
def get_transactions(data):
    return sales_service.list_transactions(
        start_date=data.get("start_date"),
        end_date=data.get("end_date"),
    )
