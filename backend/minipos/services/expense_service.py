# Overview: Service-layer operations for store expenses; encapsulates business logic and database work.

"""
Expense Ledger

WHY: Sales only tell half of the story. Rent, utilities and supplier bills
are recorded per store so the back office can compare what came in against
what went out.

DESIGN:
- Amounts are positive integer cents
- Each expense belongs to one store and one EXPENSE category
- is_paid tracks settlement; unpaid bills still count toward period totals
- Payloads are parsed here, not in the routes
"""

from __future__ import annotations

from datetime import date

from sqlalchemy import func

from ..extensions import db
from ..models import Expense
from ..models.finance import CATEGORY_EXPENSE
from ..money import parse_cents
from ..time_utils import month_bounds
from ..validation import ValidationError, NotFoundError, require_date, require_positive_int, require_year_month
from . import category_service, store_service
from .concurrency import unit_of_work


WRITABLE_FIELDS = {"store_id", "category_id", "date", "reference", "amount_cents", "is_paid", "note"}
REQUIRED_ON_CREATE = {"store_id", "category_id", "date", "amount_cents"}


def _parse_fields(payload: dict, *, partial: bool) -> dict:
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    unknown = sorted(set(payload) - WRITABLE_FIELDS)
    if unknown:
        raise ValidationError(f"Field not allowed: {unknown[0]}", details={"fields": unknown})
    if not partial:
        missing = sorted(f for f in REQUIRED_ON_CREATE if payload.get(f) is None)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}", details={"fields": missing})

    fields = {}
    if "store_id" in payload:
        fields["store_id"] = store_service.get_store(require_positive_int(payload["store_id"], "store_id")).id
    if "category_id" in payload:
        category_id = require_positive_int(payload["category_id"], "category_id")
        fields["category_id"] = category_service.get_category(category_id, CATEGORY_EXPENSE).id
    if "date" in payload:
        fields["expense_date"] = require_date(payload["date"], "date")
    if "amount_cents" in payload:
        amount = parse_cents(payload["amount_cents"], "amount_cents")
        if amount == 0:
            raise ValidationError("amount_cents must be > 0", details={"field": "amount_cents"})
        fields["amount_cents"] = amount
    if "is_paid" in payload:
        if not isinstance(payload["is_paid"], bool):
            raise ValidationError("is_paid must be a boolean", details={"field": "is_paid"})
        fields["is_paid"] = payload["is_paid"]
    for key in ("reference", "note"):
        if key in payload:
            fields[key] = (str(payload[key]).strip() or None) if payload[key] is not None else None
    return fields


def create_expense(payload: dict, *, created_by_user_id: int | None = None) -> Expense:
    """
    Record an expense.

    Raises:
        ValidationError: missing or malformed fields
        NotFoundError: unknown store or expense category
    """
    fields = _parse_fields(payload, partial=False)
    with unit_of_work():
        expense = Expense(created_by_user_id=created_by_user_id, **fields)
        db.session.add(expense)
        db.session.flush()
    return expense


def get_expense(expense_id: int) -> Expense:
    expense = db.session.get(Expense, expense_id)
    if not expense:
        raise NotFoundError("Expense not found", details={"expense_id": expense_id})
    return expense


def update_expense(expense_id: int, payload: dict) -> Expense:
    fields = _parse_fields(payload, partial=True)
    with unit_of_work():
        expense = get_expense(expense_id)
        for key, value in fields.items():
            setattr(expense, key, value)
        db.session.flush()
    return expense


def delete_expense(expense_id: int) -> None:
    with unit_of_work():
        db.session.delete(get_expense(expense_id))


def _filtered(query, *, store_id=None, category_id=None, start: date | None = None, end: date | None = None, is_paid=None):
    if store_id is not None:
        query = query.filter(Expense.store_id == store_id)
    if category_id is not None:
        query = query.filter(Expense.category_id == category_id)
    if start is not None:
        query = query.filter(Expense.expense_date >= start)
    if end is not None:
        query = query.filter(Expense.expense_date <= end)
    if is_paid is not None:
        query = query.filter(Expense.is_paid.is_(is_paid))
    return query


def list_expenses(
    *,
    store_id: int | None = None,
    category_id: int | None = None,
    start: date | None = None,
    end: date | None = None,
    is_paid: bool | None = None,
) -> list[Expense]:
    """Expenses newest first. start/end are inclusive calendar days."""
    query = _filtered(
        db.session.query(Expense),
        store_id=store_id, category_id=category_id, start=start, end=end, is_paid=is_paid,
    )
    return query.order_by(Expense.expense_date.desc(), Expense.id.desc()).all()


def total(
    *,
    store_id: int | None = None,
    category_id: int | None = None,
    start: date | None = None,
    end: date | None = None,
    is_paid: bool | None = None,
) -> int:
    """Sum of amount_cents over the matching expenses."""
    query = _filtered(
        db.session.query(func.coalesce(func.sum(Expense.amount_cents), 0)),
        store_id=store_id, category_id=category_id, start=start, end=end, is_paid=is_paid,
    )
    return int(query.scalar() or 0)


def monthly_total(year: int, month: int, *, store_id: int | None = None) -> int:
    year, month = require_year_month(year, month)
    first, last = month_bounds(year, month)
    return total(store_id=store_id, start=first, end=last)


def unpaid_total(*, store_id: int | None = None) -> int:
    return total(store_id=store_id, is_paid=False)
