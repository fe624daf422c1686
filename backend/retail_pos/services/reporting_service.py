# Overview: Service-layer operations for reporting; encapsulates business logic and database work.

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from flask import current_app
from sqlalchemy import func

from retail_pos.extensions import db
from retail_pos.models import Product, Transaction, TransactionItem
from retail_pos.models.money import money_to_number, quantize_money
from retail_pos.time_utils import parse_range_end, parse_range_start, to_utc_z
from retail_pos.validation import ValidationError

REPORTABLE_STATUS = "completed"


def _parse_range(start: str, end: str) -> tuple[datetime, datetime]:
    start_dt = parse_range_start(start)
    end_dt = parse_range_end(end)
    if start_dt is None or end_dt is None:
        raise ValidationError("start_date and end_date are required")
    if end_dt < start_dt:
        raise ValidationError("end_date must not be before start_date")
    return start_dt, end_dt


def _in_range(query, start_dt: datetime, end_dt: datetime):
    return query.filter(
        Transaction.status == REPORTABLE_STATUS,
        Transaction.created_at >= start_dt,
        Transaction.created_at <= end_dt,
    )


def _dec(value) -> Decimal:
    return quantize_money(value if value is not None else 0)


def _cost_of_goods_sold(start_dt: datetime, end_dt: datetime) -> Decimal:
    query = (
        db.session.query(
            func.coalesce(func.sum(TransactionItem.quantity * Product.cost_price), 0)
        )
        .join(Transaction, TransactionItem.transaction_id == Transaction.id)
        .join(Product, TransactionItem.product_id == Product.id)
    )
    return _dec(_in_range(query, start_dt, end_dt).scalar())


def sales_report(*, start: str, end: str) -> dict:
    """
    Sales summary for completed transactions in [start, end].

    total_profit is an absolute amount: total_sales (tax and discount
    included) minus the cost of the units sold.
    """
    start_dt, end_dt = _parse_range(start, end)

    totals_query = db.session.query(
        func.coalesce(func.sum(Transaction.total_amount), 0),
        func.count(Transaction.id),
    )
    total_sales_raw, transaction_count = _in_range(totals_query, start_dt, end_dt).one()
    total_sales = _dec(total_sales_raw)
    transaction_count = int(transaction_count or 0)

    average = quantize_money(total_sales / transaction_count) if transaction_count else Decimal("0")
    total_profit = total_sales - _cost_of_goods_sold(start_dt, end_dt)

    qty_sold = func.sum(TransactionItem.quantity).label("quantity_sold")
    top_query = (
        db.session.query(
            Product.id,
            Product.name,
            qty_sold,
            func.coalesce(func.sum(TransactionItem.total_price), 0).label("revenue"),
        )
        .join(TransactionItem, TransactionItem.product_id == Product.id)
        .join(Transaction, TransactionItem.transaction_id == Transaction.id)
    )
    top_rows = (
        _in_range(top_query, start_dt, end_dt)
        .group_by(Product.id, Product.name)
        .order_by(qty_sold.desc(), Product.id.asc())
        .limit(current_app.config.get("TOP_PRODUCTS_LIMIT", 5))
        .all()
    )

    method_query = db.session.query(
        Transaction.payment_method,
        func.count(Transaction.id),
        func.coalesce(func.sum(Transaction.total_amount), 0),
    )
    method_rows = (
        _in_range(method_query, start_dt, end_dt)
        .group_by(Transaction.payment_method)
        .order_by(Transaction.payment_method.asc())
        .all()
    )

    return {
        "total_sales": money_to_number(total_sales),
        "total_transactions": transaction_count,
        "average_transaction_value": money_to_number(average),
        "total_profit": money_to_number(total_profit),
        "top_selling_products": [
            {
                "product_id": product_id,
                "product_name": name,
                "quantity_sold": int(quantity or 0),
                "revenue": money_to_number(_dec(revenue)),
            }
            for product_id, name, quantity, revenue in top_rows
        ],
        "sales_by_payment_method": [
            {
                "payment_method": method,
                "count": int(count or 0),
                "total_amount": money_to_number(_dec(amount)),
            }
            for method, count, amount in method_rows
        ],
    }


def profit_loss_report(*, start: str, end: str) -> dict:
    """
    Revenue and gross margin from the line items of completed transactions.

    A completed transaction without items contributes nothing here, not even
    to total_transactions, because everything is read through its items.
    gross_profit_margin is a percentage.
    """
    start_dt, end_dt = _parse_range(start, end)

    query = (
        db.session.query(
            func.coalesce(func.sum(TransactionItem.total_price), 0),
            func.coalesce(func.sum(TransactionItem.quantity * Product.cost_price), 0),
            func.count(func.distinct(TransactionItem.transaction_id)),
        )
        .join(Transaction, TransactionItem.transaction_id == Transaction.id)
        .join(Product, TransactionItem.product_id == Product.id)
    )
    revenue_raw, cogs_raw, transaction_count = _in_range(query, start_dt, end_dt).one()

    revenue = _dec(revenue_raw)
    cogs = _dec(cogs_raw)
    gross_profit = revenue - cogs
    margin = (gross_profit / revenue * 100) if revenue > 0 else Decimal("0")

    return {
        "total_revenue": money_to_number(revenue),
        "total_cost_of_goods_sold": money_to_number(cogs),
        "gross_profit": money_to_number(gross_profit),
        "gross_profit_margin": money_to_number(margin),
        "total_transactions": int(transaction_count or 0),
        "period_start": to_utc_z(start_dt),
        "period_end": to_utc_z(end_dt),
    }
