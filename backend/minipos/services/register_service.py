"""
Register Session Service

WHY: Track cash-drawer accountability per store. A cashier opens a register
with an opening float, every completed sale is settled into the session, and
the session is closed at the end of the shift.

DESIGN PRINCIPLES:
- One OPEN session per store at a time
- Sessions are immutable once closed
- Settling adds to both the lifetime total and the settled sub-total of the
  payment method
- The session id is the register id used by carts, holds and sales
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import RegisterSession, Sale, Store
from ..models.registers import SESSION_OPEN, SESSION_CLOSED, PAYMENT_METHODS
from ..time_utils import utcnow
from ..validation import ValidationError, NotFoundError, ConflictError, InvalidStateError
from .concurrency import lock_for_update, unit_of_work


# =============================================================================
# LOOKUPS
# =============================================================================

def get_session(session_id: int, *, lock: bool = False) -> RegisterSession:
    """Load a session or raise NotFoundError."""
    query = db.session.query(RegisterSession).filter(RegisterSession.id == session_id)
    if lock:
        query = lock_for_update(query)
    session = query.first()
    if not session:
        raise NotFoundError("Register session not found", details={"register_id": session_id})
    return session


def get_open_session(store_id: int) -> RegisterSession | None:
    """The OPEN session of a store, or None."""
    return db.session.query(RegisterSession).filter_by(
        store_id=store_id,
        status=SESSION_OPEN,
    ).first()


def list_sessions(
    *,
    store_id: int | None = None,
    user_id: int | None = None,
    status: str | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
) -> list[RegisterSession]:
    """
    Session history, newest first.

    Covers the by-user, by-store and date-range lookups used by the back
    office. start/end bound opened_at (inclusive).
    """
    query = db.session.query(RegisterSession)
    if store_id is not None:
        query = query.filter(RegisterSession.store_id == store_id)
    if user_id is not None:
        query = query.filter(RegisterSession.user_id == user_id)
    if status is not None:
        if status not in (SESSION_OPEN, SESSION_CLOSED):
            raise ValidationError("status must be OPEN or CLOSED", details={"status": status})
        query = query.filter(RegisterSession.status == status)
    if start is not None:
        query = query.filter(RegisterSession.opened_at >= start)
    if end is not None:
        query = query.filter(RegisterSession.opened_at <= end)
    return query.order_by(RegisterSession.opened_at.desc(), RegisterSession.id.desc()).all()


def balance(session_id: int) -> int:
    """Opening cash plus cash, card and cheque totals, in cents."""
    return get_session(session_id).balance_cents()


def get_session_summary(session_id: int) -> dict:
    """
    Session with its sales aggregates.

    Returns:
        Dict with the session fields, sale_count, sales_total_cents,
        totals_by_method and balance_cents.
    """
    session = get_session(session_id)

    rows = (
        db.session.query(
            Sale.payment_method,
            func.count(Sale.id),
            func.coalesce(func.sum(Sale.total_cents), 0),
        )
        .filter(Sale.register_id == session_id)
        .group_by(Sale.payment_method)
        .all()
    )

    totals_by_method = {method: 0 for method in PAYMENT_METHODS}
    sale_count = 0
    for method, count, total in rows:
        totals_by_method[method] = int(total)
        sale_count += count

    return {
        "session": session.to_dict(),
        "sale_count": sale_count,
        "sales_total_cents": sum(totals_by_method.values()),
        "totals_by_method": totals_by_method,
        "balance_cents": session.balance_cents(),
    }


# =============================================================================
# LIFECYCLE
# =============================================================================

def open_session(user_id: int, store_id: int, opening_cash_cents: int) -> RegisterSession:
    """
    Open a register session for a store.

    WHY: Every sale must be attributable to an open drawer. Only one drawer
    per store may be open at a time.

    Args:
        user_id: Cashier opening the register
        store_id: Store the register belongs to
        opening_cash_cents: Starting cash in drawer (in cents)

    Raises:
        NotFoundError: store does not exist
        ValidationError: opening cash is negative
        ConflictError: the store already has an OPEN session
    """
    if opening_cash_cents is None or opening_cash_cents < 0:
        raise ValidationError(
            "Opening cash cannot be negative",
            details={"opening_cash_cents": opening_cash_cents},
        )

    try:
        with unit_of_work():
            store = db.session.get(Store, store_id)
            if not store:
                raise NotFoundError("Store not found", details={"store_id": store_id})

            existing = get_open_session(store_id)
            if existing:
                raise ConflictError(
                    "A register is already open for this store",
                    details={"store_id": store_id, "register_id": existing.id},
                )

            session = RegisterSession(
                user_id=user_id,
                store_id=store_id,
                status=SESSION_OPEN,
                opening_cash_cents=opening_cash_cents,
                cash_total_cents=0,
                cash_settled_cents=0,
                card_total_cents=0,
                card_settled_cents=0,
                cheque_total_cents=0,
                cheque_settled_cents=0,
                opened_at=utcnow(),
            )
            db.session.add(session)
            db.session.flush()
    except IntegrityError as exc:
        # Lost the race against a concurrent open; the partial unique index caught it
        raise ConflictError(
            "A register is already open for this store",
            details={"store_id": store_id},
        ) from exc

    return session


def settle(session_id: int, method: str, amount_cents: int) -> RegisterSession:
    """
    Add a payment to the session totals.

    Runs inside the caller's unit of work (checkout) and does not commit.

    Raises:
        ValidationError: unknown payment method or negative amount
        NotFoundError: session missing
        InvalidStateError: session is CLOSED
    """
    if method not in PAYMENT_METHODS:
        raise ValidationError(
            f"Unknown payment method: {method}",
            details={"method": method, "allowed": list(PAYMENT_METHODS)},
        )
    if amount_cents < 0:
        raise ValidationError("Amount cannot be negative", details={"amount_cents": amount_cents})

    session = get_session(session_id, lock=True)
    if not session.is_open:
        raise InvalidStateError(
            "Cannot settle a closed register session",
            details={"register_id": session_id, "status": session.status},
        )

    total_attr = f"{method}_total_cents"
    settled_attr = f"{method}_settled_cents"
    setattr(session, total_attr, (getattr(session, total_attr) or 0) + amount_cents)
    setattr(session, settled_attr, (getattr(session, settled_attr) or 0) + amount_cents)

    db.session.flush()
    return session


def close_session(session_id: int, closed_by_user_id: int, note: str | None = None) -> RegisterSession:
    """
    Close a register session. Irreversible.

    Raises:
        NotFoundError: session missing
        InvalidStateError: session already CLOSED
    """
    with unit_of_work():
        session = get_session(session_id, lock=True)
        if not session.is_open:
            raise InvalidStateError(
                "Register session is already closed",
                details={"register_id": session_id, "status": session.status},
            )

        session.status = SESSION_CLOSED
        session.closed_at = utcnow()
        session.closed_by_user_id = closed_by_user_id
        session.note = note
        db.session.flush()

    return session
