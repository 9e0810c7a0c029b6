from __future__ import annotations

from ..extensions import db
from minipos.time_utils import to_utc_z

SESSION_OPEN = "OPEN"
SESSION_CLOSED = "CLOSED"

PAYMENT_METHODS = ("cash", "card", "cheque")


class RegisterSession(db.Model):
    """
    Cash-drawer session for one store.

    The session id is the register id used by carts, holds and sales: a
    cashier opens a register, sells against it, and closes it.

    LIFECYCLE:
    - OPEN: accepting sales; every completed sale is settled into the totals
    - CLOSED: terminal, immutable

    At most one OPEN session per store. The partial unique index backs up the
    check made in register_service.open_session.

    Each payment method keeps a lifetime total and a settled sub-total. Both
    grow by the sale total on every settlement.
    """
    __tablename__ = "register_sessions"
    __table_args__ = (
        db.Index(
            "uq_register_sessions_store_open",
            "store_id",
            unique=True,
            sqlite_where=db.text("status = 'OPEN'"),
            postgresql_where=db.text("status = 'OPEN'"),
        ),
        db.Index("ix_register_sessions_store_opened", "store_id", "opened_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=False, index=True)

    status = db.Column(db.String(16), nullable=False, default=SESSION_OPEN, index=True)  # OPEN, CLOSED

    # Cash tracking (all amounts in cents)
    opening_cash_cents = db.Column(db.Integer, nullable=False, default=0)
    cash_total_cents = db.Column(db.Integer, nullable=False, default=0)
    cash_settled_cents = db.Column(db.Integer, nullable=False, default=0)
    card_total_cents = db.Column(db.Integer, nullable=False, default=0)
    card_settled_cents = db.Column(db.Integer, nullable=False, default=0)
    cheque_total_cents = db.Column(db.Integer, nullable=False, default=0)
    cheque_settled_cents = db.Column(db.Integer, nullable=False, default=0)

    opened_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)
    closed_at = db.Column(db.DateTime(timezone=True), nullable=True)
    closed_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    # Closing notes
    note = db.Column(db.Text, nullable=True)
    version_id = db.Column(db.Integer, nullable=False, default=1)

    store = db.relationship("Store", backref=db.backref("register_sessions", lazy=True))
    user = db.relationship("User", foreign_keys=[user_id], backref=db.backref("register_sessions", lazy=True))
    __mapper_args__ = {"version_id_col": version_id}

    @property
    def is_open(self) -> bool:
        return self.status == SESSION_OPEN

    def balance_cents(self) -> int:
        """Opening float plus everything settled into the drawer session."""
        return (
            (self.opening_cash_cents or 0)
            + (self.cash_total_cents or 0)
            + (self.card_total_cents or 0)
            + (self.cheque_total_cents or 0)
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "store_id": self.store_id,
            "status": self.status,
            "opening_cash_cents": self.opening_cash_cents,
            "cash_total_cents": self.cash_total_cents,
            "cash_settled_cents": self.cash_settled_cents,
            "card_total_cents": self.card_total_cents,
            "card_settled_cents": self.card_settled_cents,
            "cheque_total_cents": self.cheque_total_cents,
            "cheque_settled_cents": self.cheque_settled_cents,
            "balance_cents": self.balance_cents(),
            "opened_at": to_utc_z(self.opened_at),
            "closed_at": to_utc_z(self.closed_at) if self.closed_at else None,
            "closed_by_user_id": self.closed_by_user_id,
            "note": self.note,
            "version_id": self.version_id,
        }
