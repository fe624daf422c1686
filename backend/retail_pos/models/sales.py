from __future__ import annotations

from ..extensions import db
from retail_pos.time_utils import to_utc_z, utcnow
from retail_pos.models.money import money_to_number

PAYMENT_METHODS = ("cash", "card", "mobile_money", "bank_transfer")
TRANSACTION_STATUSES = ("pending", "completed", "cancelled", "refunded")


class Transaction(db.Model):
    """
    A sale document.

    Created together with its items in one database transaction by
    sales_service.create_sale. Only "completed" transactions count towards
    reports; status changes after creation are not exposed.
    """
    __tablename__ = "transactions"
    __table_args__ = (
        db.UniqueConstraint("receipt_number", name="uq_transactions_receipt_number"),
        db.CheckConstraint(
            "payment_method IN ('cash', 'card', 'mobile_money', 'bank_transfer')",
            name="ck_transactions_payment_method",
        ),
        db.CheckConstraint(
            "status IN ('pending', 'completed', 'cancelled', 'refunded')",
            name="ck_transactions_status",
        ),
        db.Index("ix_transactions_status_created", "status", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    total_amount = db.Column(db.Numeric(10, 2), nullable=False)
    tax_amount = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    discount_amount = db.Column(db.Numeric(10, 2), nullable=False, default=0)

    payment_method = db.Column(db.String(32), nullable=False)
    status = db.Column(db.String(16), nullable=False, default="pending")
    receipt_number = db.Column(db.String(64), nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    user = db.relationship("User", backref=db.backref("transactions", lazy=True))
    items = db.relationship(
        "TransactionItem",
        back_populates="transaction",
        lazy=True,
        order_by="TransactionItem.id",
    )

    def __repr__(self) -> str:
        return f"<Transaction id={self.id} receipt={self.receipt_number!r} status={self.status}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "total_amount": money_to_number(self.total_amount),
            "tax_amount": money_to_number(self.tax_amount),
            "discount_amount": money_to_number(self.discount_amount),
            "payment_method": self.payment_method,
            "status": self.status,
            "receipt_number": self.receipt_number,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class TransactionItem(db.Model):
    """One line of a transaction. Immutable once written."""
    __tablename__ = "transaction_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    transaction_id = db.Column(db.Integer, db.ForeignKey("transactions.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Numeric(10, 2), nullable=False)
    total_price = db.Column(db.Numeric(10, 2), nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    transaction = db.relationship("Transaction", back_populates="items")
    product = db.relationship("Product", backref=db.backref("transaction_items", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "transaction_id": self.transaction_id,
            "product_id": self.product_id,
            "quantity": self.quantity,
            "unit_price": money_to_number(self.unit_price),
            "total_price": money_to_number(self.total_price),
            "created_at": to_utc_z(self.created_at),
        }
