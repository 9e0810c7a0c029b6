from __future__ import annotations

from ..extensions import db
from minipos.time_utils import to_utc_z

LINE_ACTIVE = "ACTIVE"
LINE_HELD = "HELD"

SALE_PAID = "PAID"
SALE_PARTIAL = "PARTIAL"


class CartLine(db.Model):
    """
    One product entry in a register's in-progress sale.

    STATES:
    - ACTIVE: part of the working cart (slot_number is NULL)
    - HELD: parked under a hold slot (slot_number set)

    name / unit_cost_cents / unit_price_cents are snapshots taken when the
    product was first added.
    """
    __tablename__ = "cart_lines"
    __table_args__ = (
        db.Index("ix_cart_lines_register_state", "register_id", "state"),
        db.Index("ix_cart_lines_register_slot", "register_id", "slot_number"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    register_id = db.Column(db.Integer, db.ForeignKey("register_sessions.id"), nullable=False)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False)

    name = db.Column(db.String(255), nullable=False)
    unit_cost_cents = db.Column(db.Integer, nullable=False, default=0)
    unit_price_cents = db.Column(db.Integer, nullable=False)
    quantity = db.Column(db.Integer, nullable=False, default=1)

    state = db.Column(db.String(16), nullable=False, default=LINE_ACTIVE)
    slot_number = db.Column(db.Integer, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    @property
    def line_subtotal_cents(self) -> int:
        return self.unit_price_cents * self.quantity

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "register_id": self.register_id,
            "product_id": self.product_id,
            "name": self.name,
            "unit_cost_cents": self.unit_cost_cents,
            "unit_price_cents": self.unit_price_cents,
            "quantity": self.quantity,
            "line_subtotal_cents": self.line_subtotal_cents,
            "state": self.state,
            "slot_number": self.slot_number,
        }


class HoldSlot(db.Model):
    """
    Numbered, parked cart for a register.

    Slot numbers are assigned max+1 per register. Gaps after removals are
    fine; only live slots must be unique.
    """
    __tablename__ = "hold_slots"
    __table_args__ = (
        db.UniqueConstraint("register_id", "slot_number", name="uq_hold_slots_register_slot"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    register_id = db.Column(db.Integer, db.ForeignKey("register_sessions.id"), nullable=False, index=True)
    slot_number = db.Column(db.Integer, nullable=False)

    # Display label ("HH:MM") shown in the hold list
    time_label = db.Column(db.String(16), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "register_id": self.register_id,
            "slot_number": self.slot_number,
            "time": self.time_label,
            "created_at": to_utc_z(self.created_at),
        }


class Sale(db.Model):
    """
    Completed sale.

    Created together with its items inside the checkout unit of work.
    total/tax/discount/paid come from the caller; cost_cents is the cost basis
    of the cart lines and feeds profit reporting.
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.Index("ix_sales_register_created", "register_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    register_id = db.Column(db.Integer, db.ForeignKey("register_sessions.id"), nullable=False, index=True)

    client_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=True, index=True)
    client_name = db.Column(db.String(255), nullable=True)

    # All amounts in cents
    subtotal_cents = db.Column(db.Integer, nullable=False)
    tax_cents = db.Column(db.Integer, nullable=False, default=0)
    discount_cents = db.Column(db.Integer, nullable=False, default=0)
    total_cents = db.Column(db.Integer, nullable=False)
    paid_cents = db.Column(db.Integer, nullable=False)
    cost_cents = db.Column(db.Integer, nullable=False, default=0)

    payment_method = db.Column(db.String(16), nullable=False)  # cash, card, cheque
    item_count = db.Column(db.Integer, nullable=False)

    status = db.Column(db.String(16), nullable=False, index=True)  # PAID, PARTIAL

    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    register = db.relationship("RegisterSession", backref=db.backref("sales", lazy=True))

    @property
    def change_cents(self) -> int:
        return max(self.paid_cents - self.total_cents, 0)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "register_id": self.register_id,
            "client_id": self.client_id,
            "client_name": self.client_name,
            "subtotal_cents": self.subtotal_cents,
            "tax_cents": self.tax_cents,
            "discount_cents": self.discount_cents,
            "total_cents": self.total_cents,
            "paid_cents": self.paid_cents,
            "change_cents": self.change_cents,
            "cost_cents": self.cost_cents,
            "payment_method": self.payment_method,
            "item_count": self.item_count,
            "status": self.status,
            "created_by_user_id": self.created_by_user_id,
            "created_at": to_utc_z(self.created_at),
        }


class SaleItem(db.Model):
    """Line snapshot of a completed sale."""
    __tablename__ = "sale_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False)

    name = db.Column(db.String(255), nullable=False)
    unit_price_cents = db.Column(db.Integer, nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    line_subtotal_cents = db.Column(db.Integer, nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    sale = db.relationship("Sale", backref=db.backref("items", lazy=True, order_by="SaleItem.id"))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sale_id": self.sale_id,
            "product_id": self.product_id,
            "name": self.name,
            "unit_price_cents": self.unit_price_cents,
            "quantity": self.quantity,
            "line_subtotal_cents": self.line_subtotal_cents,
            "created_at": to_utc_z(self.created_at),
        }
