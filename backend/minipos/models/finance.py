from __future__ import annotations

from ..extensions import db
from minipos.time_utils import to_utc_z

CATEGORY_EXPENSE = "EXPENSE"
CATEGORY_CASHFLOW = "CASHFLOW"
CATEGORY_KINDS = (CATEGORY_EXPENSE, CATEGORY_CASHFLOW)

FLOW_INFLOW = "INFLOW"
FLOW_OUTFLOW = "OUTFLOW"
FLOW_TYPES = (FLOW_INFLOW, FLOW_OUTFLOW)


class LedgerCategory(db.Model):
    """
    Named bucket for expenses or cashflow entries ("Rent", "Supplier refund").

    kind keeps the two lists apart; a name is unique within its kind.
    """
    __tablename__ = "ledger_categories"
    __table_args__ = (
        db.UniqueConstraint("kind", "name", name="uq_ledger_categories_kind_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    kind = db.Column(db.String(16), nullable=False, index=True)
    name = db.Column(db.String(120), nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {"id": self.id, "kind": self.kind, "name": self.name}


class Expense(db.Model):
    """
    Money paid out by a store (rent, utilities, supplies).

    is_paid marks whether the bill has been settled; unpaid expenses still
    count toward period totals.
    """
    __tablename__ = "expenses"
    __table_args__ = (
        db.Index("ix_expenses_store_date", "store_id", "expense_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=False, index=True)
    category_id = db.Column(db.Integer, db.ForeignKey("ledger_categories.id"), nullable=False, index=True)

    expense_date = db.Column(db.Date, nullable=False)
    reference = db.Column(db.String(64), nullable=True)
    amount_cents = db.Column(db.Integer, nullable=False)
    is_paid = db.Column(db.Boolean, nullable=False, default=False, index=True)
    note = db.Column(db.Text, nullable=True)

    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    category = db.relationship("LedgerCategory")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "store_id": self.store_id,
            "category_id": self.category_id,
            "category": self.category.name if self.category else None,
            "date": self.expense_date.isoformat() if self.expense_date else None,
            "reference": self.reference,
            "amount_cents": self.amount_cents,
            "is_paid": self.is_paid,
            "note": self.note,
            "created_by_user_id": self.created_by_user_id,
            "created_at": to_utc_z(self.created_at),
        }


class CashflowEntry(db.Model):
    """
    Manual cash movement in or out of a store, outside of register sales.

    amount_cents is always positive; flow_type gives the sign. Entries are
    soft-deleted so the books keep a trace of what was removed and by whom.
    """
    __tablename__ = "cashflow_entries"
    __table_args__ = (
        db.Index("ix_cashflow_entries_store_date", "store_id", "entry_date"),
        db.CheckConstraint("flow_type IN ('INFLOW', 'OUTFLOW')", name="ck_cashflow_entries_flow_type"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=False, index=True)
    category_id = db.Column(db.Integer, db.ForeignKey("ledger_categories.id"), nullable=False, index=True)

    entry_date = db.Column(db.Date, nullable=False)
    flow_type = db.Column(db.String(16), nullable=False)  # INFLOW, OUTFLOW
    reference = db.Column(db.String(64), nullable=True)
    amount_cents = db.Column(db.Integer, nullable=False)
    is_settled = db.Column(db.Boolean, nullable=False, default=False)
    note = db.Column(db.Text, nullable=True)

    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    is_deleted = db.Column(db.Boolean, nullable=False, default=False, index=True)
    deleted_at = db.Column(db.DateTime(timezone=True), nullable=True)
    deleted_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    category = db.relationship("LedgerCategory")

    @property
    def signed_amount_cents(self) -> int:
        return self.amount_cents if self.flow_type == FLOW_INFLOW else -self.amount_cents

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "store_id": self.store_id,
            "category_id": self.category_id,
            "category": self.category.name if self.category else None,
            "date": self.entry_date.isoformat() if self.entry_date else None,
            "flow_type": self.flow_type,
            "reference": self.reference,
            "amount_cents": self.amount_cents,
            "signed_amount_cents": self.signed_amount_cents,
            "is_settled": self.is_settled,
            "note": self.note,
            "created_by_user_id": self.created_by_user_id,
            "created_at": to_utc_z(self.created_at),
        }
