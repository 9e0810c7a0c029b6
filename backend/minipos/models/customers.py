from __future__ import annotations

from ..extensions import db
from minipos.time_utils import to_utc_z


class Customer(db.Model):
    """
    Customer master data.

    discount is free text as entered at the counter ("5%", "2.50"); the POS
    screen reads it back and applies it client-side before checkout.
    """
    __tablename__ = "customers"
    __table_args__ = (
        db.Index("ix_customers_name", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(32), nullable=True)
    discount = db.Column(db.String(16), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "discount": self.discount,
            "created_at": to_utc_z(self.created_at),
        }
