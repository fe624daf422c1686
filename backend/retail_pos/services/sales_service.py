"""
Sales Service - sale processing, transaction history and receipts

A sale is written as one unit: the Transaction header, its items and the
stock decrements commit together or not at all. Products are locked before
stock is checked so two registers selling the last unit can't both succeed
on databases that honor SELECT ... FOR UPDATE.
"""

from __future__ import annotations

import secrets
from decimal import Decimal

from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Product, Transaction, TransactionItem
from ..models.money import quantize_money
from ..validation import ConflictError, NotFoundError
from retail_pos.time_utils import epoch_millis, parse_range_end, parse_range_start, utcnow, to_utc_z
from .concurrency import atomic, lock_for_update


class InsufficientStockError(ConflictError):
    """Raised when a sale asks for more units than are on hand."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


def generate_receipt_number() -> str:
    """RCP-<epoch millis>-<random suffix>; the suffix keeps same-millisecond sales apart."""
    return f"RCP-{epoch_millis()}-{secrets.token_hex(3).upper()}"


def compute_sale_totals(items: list[dict], tax_rate: Decimal, discount_amount: Decimal) -> dict:
    """
    subtotal = sum(quantity * unit_price)
    tax      = subtotal * tax_rate          (rounded to the cent)
    total    = subtotal + tax - discount     (not clamped at zero)
    """
    subtotal = sum(
        (Decimal(item["quantity"]) * Decimal(str(item["unit_price"])) for item in items),
        Decimal("0"),
    )
    subtotal = quantize_money(subtotal)
    tax_amount = quantize_money(subtotal * Decimal(str(tax_rate)))
    discount = quantize_money(discount_amount)
    total = quantize_money(subtotal + tax_amount - discount)
    return {
        "subtotal": subtotal,
        "tax_amount": tax_amount,
        "discount_amount": discount,
        "total_amount": total,
    }


def _lock_products(product_ids: set[int]) -> dict[int, Product]:
    products = lock_for_update(
        db.session.query(Product).filter(Product.id.in_(product_ids))
    ).all()
    found = {p.id: p for p in products}
    missing = sorted(product_ids - set(found))
    if missing:
        raise NotFoundError(f"Product with id {missing[0]} not found")
    return found


def _validate_on_hand(items: list[dict], products: dict[int, Product]) -> None:
    requested: dict[int, int] = {}
    for item in items:
        requested[item["product_id"]] = requested.get(item["product_id"], 0) + item["quantity"]

    insufficient = []
    for product_id, qty in requested.items():
        on_hand = products[product_id].stock_quantity
        if on_hand < qty:
            insufficient.append({
                "product_id": product_id,
                "requested_quantity": qty,
                "on_hand": on_hand,
            })

    if insufficient:
        first = insufficient[0]
        raise InsufficientStockError(
            f"Insufficient stock for product {first['product_id']}: "
            f"requested {first['requested_quantity']}, on hand {first['on_hand']}",
            details={"items": insufficient},
        )


def create_sale(
    *,
    items: list[dict],
    payment_method: str,
    user_id: int,
    discount_amount: Decimal = Decimal("0"),
    tax_rate: Decimal = Decimal("0"),
) -> dict:
    """
    Record a completed sale and take its items out of stock.

    items: [{"product_id": int, "quantity": int > 0, "unit_price": Decimal > 0}, ...]

    Raises:
        NotFoundError: an item references a product that doesn't exist
        InsufficientStockError: an item asks for more than is on hand
        ConflictError: the generated receipt number collided with an existing one
    """
    totals = compute_sale_totals(items, tax_rate, discount_amount)

    try:
        transaction = _write_sale(items, payment_method, user_id, totals)
    except IntegrityError:
        # uq_transactions_receipt_number
        raise ConflictError("Receipt number already in use, please retry the sale")

    current_app.logger.info(
        "Sale %s recorded by user %s: %s item(s), total %s",
        transaction.receipt_number,
        user_id,
        len(items),
        totals["total_amount"],
    )
    return transaction.to_dict()


def _write_sale(items: list[dict], payment_method: str, user_id: int, totals: dict) -> Transaction:
    with atomic():
        products = _lock_products({item["product_id"] for item in items})
        _validate_on_hand(items, products)

        transaction = Transaction(
            user_id=user_id,
            total_amount=totals["total_amount"],
            tax_amount=totals["tax_amount"],
            discount_amount=totals["discount_amount"],
            payment_method=payment_method,
            status="completed",
            receipt_number=generate_receipt_number(),
        )
        db.session.add(transaction)
        db.session.flush()  # ensure transaction.id exists before items

        now = utcnow()
        for item in items:
            unit_price = quantize_money(item["unit_price"])
            db.session.add(TransactionItem(
                transaction_id=transaction.id,
                product_id=item["product_id"],
                quantity=item["quantity"],
                unit_price=unit_price,
                total_price=quantize_money(unit_price * item["quantity"]),
            ))

            # Column-relative decrement: the database computes the new value
            db.session.query(Product).filter(Product.id == item["product_id"]).update(
                {
                    Product.stock_quantity: Product.stock_quantity - item["quantity"],
                    Product.updated_at: now,
                },
                synchronize_session=False,
            )
    return transaction


def list_transactions(start_date: str | None = None, end_date: str | None = None) -> list[dict]:
    """
    Transaction history, newest first.

    Bounds are inclusive; a date-only end_date covers the whole day.
    """
    start_dt = parse_range_start(start_date)
    end_dt = parse_range_end(end_date)

    query = db.session.query(Transaction)
    if start_dt is not None:
        query = query.filter(Transaction.created_at >= start_dt)
    if end_dt is not None:
        query = query.filter(Transaction.created_at <= end_dt)

    rows = query.order_by(Transaction.created_at.desc(), Transaction.id.desc()).all()
    return [row.to_dict() for row in rows]


def _business_info() -> dict:
    cfg = current_app.config
    return {
        "name": cfg.get("BUSINESS_NAME"),
        "address": cfg.get("BUSINESS_ADDRESS") or None,
        "phone": cfg.get("BUSINESS_PHONE") or None,
        "email": cfg.get("BUSINESS_EMAIL") or None,
    }


def generate_receipt(transaction_id: int) -> dict:
    """
    Assemble a printable receipt: the transaction, its items with product
    names, and the business header.

    Raises:
        NotFoundError: If the transaction doesn't exist
    """
    transaction = db.session.get(Transaction, transaction_id)
    if transaction is None:
        raise NotFoundError(f"Transaction with ID {transaction_id} not found")

    rows = (
        db.session.query(TransactionItem, Product.name)
        .join(Product, TransactionItem.product_id == Product.id)
        .filter(TransactionItem.transaction_id == transaction_id)
        .order_by(TransactionItem.id.asc())
        .all()
    )

    items = []
    for item, product_name in rows:
        data = item.to_dict()
        data["product_name"] = product_name
        items.append(data)

    return {
        "transaction": transaction.to_dict(),
        "items": items,
        "business_info": _business_info(),
        "generated_at": to_utc_z(utcnow()),
    }
