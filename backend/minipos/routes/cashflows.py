# Overview: Flask API routes for manual cashflow entries; parses input and returns JSON responses.

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_permission
from ..models.finance import CATEGORY_CASHFLOW
from ..services import cashflow_service, category_service
from ..validation import optional_bool, require_date, require_int, require_positive_int


cashflows_bp = Blueprint("cashflows", __name__, url_prefix="/api/cashflows")


def _int_arg(name: str):
    raw = request.args.get(name)
    return require_positive_int(raw, name) if raw else None


def _range_filters() -> dict:
    return {
        "store_id": _int_arg("store_id"),
        "category_id": _int_arg("category_id"),
        "start": require_date(request.args.get("start"), "start", required=False),
        "end": require_date(request.args.get("end"), "end", required=False),
    }


# -- categories --

@cashflows_bp.get("/categories")
@require_auth
@require_permission("MANAGE_FINANCE")
def list_categories_route():
    categories = category_service.list_categories(CATEGORY_CASHFLOW)
    return jsonify({"categories": [c.to_dict() for c in categories]}), 200


@cashflows_bp.post("/categories")
@require_auth
@require_permission("MANAGE_FINANCE")
def create_category_route():
    data = request.get_json(silent=True) or {}
    category = category_service.create_category(CATEGORY_CASHFLOW, data.get("name"))
    return jsonify({"category": category.to_dict()}), 201


# -- entries --

@cashflows_bp.get("")
@require_auth
@require_permission("MANAGE_FINANCE")
def list_entries_route():
    """
    List live entries, newest first, with the totals of the same filter.

    Query params (all optional):
    - store_id, category_id: int
    - start, end: YYYY-MM-DD, inclusive
    - flow_type: INFLOW | OUTFLOW
    - is_settled: true | false
    """
    filters = _range_filters()
    flow_type = (request.args.get("flow_type") or "").strip().upper() or None
    entries = cashflow_service.list_entries(
        **filters,
        flow_type=flow_type,
        is_settled=optional_bool(request.args.get("is_settled"), "is_settled"),
    )
    return jsonify({
        "entries": [e.to_dict() for e in entries],
        "count": len(entries),
        "totals": cashflow_service.totals(**filters),
    }), 200


@cashflows_bp.post("")
@require_auth
@require_permission("MANAGE_FINANCE")
def create_entry_route():
    """
    Record a cash movement.

    Request body:
    {
        "store_id": 1,
        "category_id": 3,
        "date": "2026-10-01",
        "flow_type": "OUTFLOW",
        "amount_cents": 2500,
        "reference": "PC-12",    (optional)
        "is_settled": true,      (optional)
        "note": "Petty cash"     (optional)
    }
    """
    entry = cashflow_service.create_entry(request.get_json(silent=True) or {}, created_by_user_id=g.current_user.id)
    current_app.logger.info(
        "Cashflow recorded: entry_id=%s store_id=%s flow_type=%s amount_cents=%s user=%s",
        entry.id, entry.store_id, entry.flow_type, entry.amount_cents, g.current_user.id,
    )
    return jsonify({"entry": entry.to_dict()}), 201


@cashflows_bp.get("/<int:entry_id>")
@require_auth
@require_permission("MANAGE_FINANCE")
def get_entry_route(entry_id: int):
    return jsonify({"entry": cashflow_service.get_entry(entry_id).to_dict()}), 200


@cashflows_bp.put("/<int:entry_id>")
@require_auth
@require_permission("MANAGE_FINANCE")
def update_entry_route(entry_id: int):
    entry = cashflow_service.update_entry(entry_id, request.get_json(silent=True) or {})
    return jsonify({"entry": entry.to_dict()}), 200


@cashflows_bp.delete("/<int:entry_id>")
@require_auth
@require_permission("MANAGE_FINANCE")
def delete_entry_route(entry_id: int):
    cashflow_service.delete_entry(entry_id, deleted_by_user_id=g.current_user.id)
    current_app.logger.info("Cashflow deleted: entry_id=%s user=%s", entry_id, g.current_user.id)
    return jsonify({"deleted": True}), 200


@cashflows_bp.get("/monthly-total")
@require_auth
@require_permission("MANAGE_FINANCE")
def monthly_total_route():
    year = require_int(request.args.get("year"), "year")
    month = require_int(request.args.get("month"), "month")
    return jsonify(cashflow_service.monthly_totals(year, month, store_id=_int_arg("store_id"))), 200
