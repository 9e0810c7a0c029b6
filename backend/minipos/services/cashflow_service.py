# Overview: Service-layer operations for manual cashflow entries; encapsulates business logic and database work.

"""
Cashflow Ledger

Manual cash movements per store that do not go through a register: owner
deposits, supplier refunds, petty-cash withdrawals.

Invariants:
- amount_cents > 0; flow_type (INFLOW / OUTFLOW) carries the sign.
- Deleting an entry only flags it (is_deleted, deleted_at, deleted_by); every
  read and total skips flagged entries.
- Net = inflow - outflow over the same filter.
"""

from __future__ import annotations

from datetime import date

from sqlalchemy import case, func

from ..extensions import db
from ..models import CashflowEntry
from ..models.finance import CATEGORY_CASHFLOW, FLOW_INFLOW, FLOW_OUTFLOW, FLOW_TYPES
from ..money import parse_cents
from ..time_utils import month_bounds, utcnow
from ..validation import ValidationError, NotFoundError, require_date, require_positive_int, require_year_month
from . import category_service, store_service
from .concurrency import unit_of_work


WRITABLE_FIELDS = {"store_id", "category_id", "date", "flow_type", "reference", "amount_cents", "is_settled", "note"}
REQUIRED_ON_CREATE = {"store_id", "category_id", "date", "flow_type", "amount_cents"}


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
        fields["category_id"] = category_service.get_category(category_id, CATEGORY_CASHFLOW).id
    if "date" in payload:
        fields["entry_date"] = require_date(payload["date"], "date")
    if "flow_type" in payload:
        flow_type = str(payload["flow_type"] or "").strip().upper()
        if flow_type not in FLOW_TYPES:
            raise ValidationError(
                "flow_type must be INFLOW or OUTFLOW",
                details={"field": "flow_type", "allowed": list(FLOW_TYPES)},
            )
        fields["flow_type"] = flow_type
    if "amount_cents" in payload:
        amount = parse_cents(payload["amount_cents"], "amount_cents")
        if amount == 0:
            raise ValidationError("amount_cents must be > 0", details={"field": "amount_cents"})
        fields["amount_cents"] = amount
    if "is_settled" in payload:
        if not isinstance(payload["is_settled"], bool):
            raise ValidationError("is_settled must be a boolean", details={"field": "is_settled"})
        fields["is_settled"] = payload["is_settled"]
    for key in ("reference", "note"):
        if key in payload:
            fields[key] = (str(payload[key]).strip() or None) if payload[key] is not None else None
    return fields


def create_entry(payload: dict, *, created_by_user_id: int | None = None) -> CashflowEntry:
    """
    Record a cash movement.

    Raises:
        ValidationError: missing or malformed fields
        NotFoundError: unknown store or cashflow category
    """
    fields = _parse_fields(payload, partial=False)
    with unit_of_work():
        entry = CashflowEntry(created_by_user_id=created_by_user_id, **fields)
        db.session.add(entry)
        db.session.flush()
    return entry


def get_entry(entry_id: int) -> CashflowEntry:
    """Load a live entry; soft-deleted entries are not found."""
    entry = db.session.get(CashflowEntry, entry_id)
    if not entry or entry.is_deleted:
        raise NotFoundError("Cashflow entry not found", details={"entry_id": entry_id})
    return entry


def update_entry(entry_id: int, payload: dict) -> CashflowEntry:
    fields = _parse_fields(payload, partial=True)
    with unit_of_work():
        entry = get_entry(entry_id)
        for key, value in fields.items():
            setattr(entry, key, value)
        db.session.flush()
    return entry


def delete_entry(entry_id: int, *, deleted_by_user_id: int | None = None) -> CashflowEntry:
    """Flag an entry as deleted. A second delete of the same entry is NotFoundError."""
    with unit_of_work():
        entry = get_entry(entry_id)
        entry.is_deleted = True
        entry.deleted_at = utcnow()
        entry.deleted_by_user_id = deleted_by_user_id
        db.session.flush()
    return entry


def _filtered(query, *, store_id=None, category_id=None, start: date | None = None, end: date | None = None,
              flow_type=None, is_settled=None):
    query = query.filter(CashflowEntry.is_deleted.is_(False))
    if store_id is not None:
        query = query.filter(CashflowEntry.store_id == store_id)
    if category_id is not None:
        query = query.filter(CashflowEntry.category_id == category_id)
    if start is not None:
        query = query.filter(CashflowEntry.entry_date >= start)
    if end is not None:
        query = query.filter(CashflowEntry.entry_date <= end)
    if flow_type is not None:
        if flow_type not in FLOW_TYPES:
            raise ValidationError("flow_type must be INFLOW or OUTFLOW", details={"flow_type": flow_type})
        query = query.filter(CashflowEntry.flow_type == flow_type)
    if is_settled is not None:
        query = query.filter(CashflowEntry.is_settled.is_(is_settled))
    return query


def list_entries(
    *,
    store_id: int | None = None,
    category_id: int | None = None,
    start: date | None = None,
    end: date | None = None,
    flow_type: str | None = None,
    is_settled: bool | None = None,
) -> list[CashflowEntry]:
    """Live entries newest first. start/end are inclusive calendar days."""
    query = _filtered(
        db.session.query(CashflowEntry),
        store_id=store_id, category_id=category_id, start=start, end=end,
        flow_type=flow_type, is_settled=is_settled,
    )
    return query.order_by(CashflowEntry.entry_date.desc(), CashflowEntry.id.desc()).all()


def totals(
    *,
    store_id: int | None = None,
    category_id: int | None = None,
    start: date | None = None,
    end: date | None = None,
) -> dict:
    """
    Inflow, outflow and net over the matching live entries.

    Returns:
        Dict with inflow_cents, outflow_cents and net_cents.
    """
    inflow = func.coalesce(func.sum(case((CashflowEntry.flow_type == FLOW_INFLOW, CashflowEntry.amount_cents), else_=0)), 0)
    outflow = func.coalesce(func.sum(case((CashflowEntry.flow_type == FLOW_OUTFLOW, CashflowEntry.amount_cents), else_=0)), 0)

    row = _filtered(
        db.session.query(inflow.label("inflow"), outflow.label("outflow")),
        store_id=store_id, category_id=category_id, start=start, end=end,
    ).one()

    inflow_cents = int(row.inflow or 0)
    outflow_cents = int(row.outflow or 0)
    return {
        "inflow_cents": inflow_cents,
        "outflow_cents": outflow_cents,
        "net_cents": inflow_cents - outflow_cents,
    }


def monthly_totals(year: int, month: int, *, store_id: int | None = None) -> dict:
    year, month = require_year_month(year, month)
    first, last = month_bounds(year, month)
    return {"year": year, "month": month, **totals(store_id=store_id, start=first, end=last)}
