from __future__ import annotations

from ..extensions import db
from retail_pos.time_utils import to_utc_z, utcnow
from retail_pos.models.money import money_to_number

ADJUSTMENT_TYPES = ("increase", "decrease", "recount")


class Product(db.Model):
    """
    Product master data.

    BARCODE: optional, but unique when present. The database constraint is
    the source of truth; services translate its IntegrityError into a
    ConflictError rather than pre-checking.

    Prices are NUMERIC(10, 2) and surface as Decimal on the model; to_dict()
    converts them to JSON numbers.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.UniqueConstraint("barcode", name="uq_products_barcode"),
        db.Index("ix_products_name", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=True)
    barcode = db.Column(db.String(128), nullable=True)

    cost_price = db.Column(db.Numeric(10, 2), nullable=False)
    selling_price = db.Column(db.Numeric(10, 2), nullable=False)

    stock_quantity = db.Column(db.Integer, nullable=False, default=0)
    min_stock_level = db.Column(db.Integer, nullable=False, default=0)

    category = db.Column(db.String(100), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    @property
    def is_low_stock(self) -> bool:
        return self.stock_quantity <= self.min_stock_level

    def __repr__(self) -> str:
        return f"<Product id={self.id} name={self.name!r} barcode={self.barcode!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "barcode": self.barcode,
            "cost_price": money_to_number(self.cost_price),
            "selling_price": money_to_number(self.selling_price),
            "stock_quantity": self.stock_quantity,
            "min_stock_level": self.min_stock_level,
            "category": self.category,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class StockAdjustment(db.Model):
    """
    Append-only audit record of a manual stock change.

    quantity_change is stored exactly as submitted (signed). For "recount"
    it is the counted total, not a delta; the stock mutation applied to the
    product may differ because of clamping at zero.
    """
    __tablename__ = "stock_adjustments"
    __table_args__ = (
        db.CheckConstraint(
            "adjustment_type IN ('increase', 'decrease', 'recount')",
            name="ck_stock_adjustments_type",
        ),
        db.Index("ix_stock_adjustments_product_created", "product_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    adjustment_type = db.Column(db.String(16), nullable=False)
    quantity_change = db.Column(db.Integer, nullable=False)
    reason = db.Column(db.String(500), nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    product = db.relationship("Product", backref=db.backref("stock_adjustments", lazy=True))
    user = db.relationship("User", backref=db.backref("stock_adjustments", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "user_id": self.user_id,
            "adjustment_type": self.adjustment_type,
            "quantity_change": self.quantity_change,
            "reason": self.reason,
            "created_at": to_utc_z(self.created_at),
        }
