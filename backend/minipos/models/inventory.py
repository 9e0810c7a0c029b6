from __future__ import annotations

from ..extensions import db
from minipos.time_utils import to_utc_z

LOCATION_STORE = "STORE"
LOCATION_WAREHOUSE = "WAREHOUSE"


class Product(db.Model):
    """
    Product master data.

    cost_cents / price_cents are the current catalog values. Cart lines copy
    them when the product is added, so later catalog edits never reprice an
    open cart or a completed sale.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.Index("ix_products_name", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    code = db.Column(db.String(64), nullable=False, unique=True)
    name = db.Column(db.String(255), nullable=False)
    category = db.Column(db.String(64), nullable=True, index=True)
    description = db.Column(db.Text, nullable=True)
    unit = db.Column(db.String(32), nullable=True)

    # Authoritative storage in cents (frontend may only format for display)
    cost_cents = db.Column(db.Integer, nullable=False, default=0)
    price_cents = db.Column(db.Integer, nullable=False, default=0)

    # Low-stock threshold per store
    alert_quantity = db.Column(db.Integer, nullable=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def __repr__(self) -> str:
        return f"<Product id={self.id} code={self.code!r} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "code": self.code,
            "name": self.name,
            "category": self.category,
            "description": self.description,
            "unit": self.unit,
            "cost_cents": self.cost_cents,
            "price_cents": self.price_cents,
            "alert_quantity": self.alert_quantity,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class StockRecord(db.Model):
    """
    Quantity on hand for one product at one location (store or warehouse).

    A missing row is a valid zero-stock state. quantity never goes below zero;
    the CHECK constraint backs up the conditional decrement in stock_service.
    """
    __tablename__ = "stock_records"
    __table_args__ = (
        db.UniqueConstraint("location_type", "location_id", "product_id", name="uq_stock_location_product"),
        db.CheckConstraint("quantity >= 0", name="ck_stock_quantity_non_negative"),
        db.Index("ix_stock_product", "product_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False)

    location_type = db.Column(db.String(16), nullable=False, default=LOCATION_STORE)  # STORE, WAREHOUSE
    location_id = db.Column(db.Integer, nullable=False)

    quantity = db.Column(db.Integer, nullable=False, default=0)

    # Optional store-specific selling price
    price_cents = db.Column(db.Integer, nullable=True)

    product = db.relationship("Product", backref=db.backref("stock_records", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "location_type": self.location_type,
            "location_id": self.location_id,
            "quantity": self.quantity,
            "price_cents": self.price_cents,
        }
