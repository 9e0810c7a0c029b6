# Overview: Flask API routes for store expenses; parses input and returns JSON responses.

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_permission
from ..models.finance import CATEGORY_EXPENSE
from ..services import category_service, expense_service
from ..validation import optional_bool, require_date, require_int, require_positive_int


expenses_bp = Blueprint("expenses", __name__, url_prefix="/api/expenses")


def _int_arg(name: str):
    raw = request.args.get(name)
    return require_positive_int(raw, name) if raw else None


def _filter_args() -> dict:
    return {
        "store_id": _int_arg("store_id"),
        "category_id": _int_arg("category_id"),
        "start": require_date(request.args.get("start"), "start", required=False),
        "end": require_date(request.args.get("end"), "end", required=False),
        "is_paid": optional_bool(request.args.get("is_paid"), "is_paid"),
    }


# -- categories --

@expenses_bp.get("/categories")
@require_auth
@require_permission("MANAGE_FINANCE")
def list_categories_route():
    categories = category_service.list_categories(CATEGORY_EXPENSE)
    return jsonify({"categories": [c.to_dict() for c in categories]}), 200


@expenses_bp.post("/categories")
@require_auth
@require_permission("MANAGE_FINANCE")
def create_category_route():
    data = request.get_json(silent=True) or {}
    category = category_service.create_category(CATEGORY_EXPENSE, data.get("name"))
    return jsonify({"category": category.to_dict()}), 201


# -- expenses --

@expenses_bp.get("")
@require_auth
@require_permission("MANAGE_FINANCE")
def list_expenses_route():
    """
    List expenses, newest first.

    Query params (all optional):
    - store_id, category_id: int
    - start, end: YYYY-MM-DD, inclusive
    - is_paid: true | false
    """
    filters = _filter_args()
    expenses = expense_service.list_expenses(**filters)
    return jsonify({
        "expenses": [e.to_dict() for e in expenses],
        "count": len(expenses),
        "total_cents": expense_service.total(**filters),
    }), 200


@expenses_bp.post("")
@require_auth
@require_permission("MANAGE_FINANCE")
def create_expense_route():
    """
    Record an expense.

    Request body:
    {
        "store_id": 1,
        "category_id": 2,
        "date": "2026-10-01",
        "amount_cents": 150000,
        "reference": "INV-88",   (optional)
        "is_paid": false,        (optional)
        "note": "October rent"   (optional)
    }
    """
    expense = expense_service.create_expense(request.get_json(silent=True) or {}, created_by_user_id=g.current_user.id)
    current_app.logger.info(
        "Expense recorded: expense_id=%s store_id=%s amount_cents=%s user=%s",
        expense.id, expense.store_id, expense.amount_cents, g.current_user.id,
    )
    return jsonify({"expense": expense.to_dict()}), 201


@expenses_bp.get("/<int:expense_id>")
@require_auth
@require_permission("MANAGE_FINANCE")
def get_expense_route(expense_id: int):
    return jsonify({"expense": expense_service.get_expense(expense_id).to_dict()}), 200


@expenses_bp.put("/<int:expense_id>")
@require_auth
@require_permission("MANAGE_FINANCE")
def update_expense_route(expense_id: int):
    expense = expense_service.update_expense(expense_id, request.get_json(silent=True) or {})
    return jsonify({"expense": expense.to_dict()}), 200


@expenses_bp.delete("/<int:expense_id>")
@require_auth
@require_permission("MANAGE_FINANCE")
def delete_expense_route(expense_id: int):
    expense_service.delete_expense(expense_id)
    current_app.logger.info("Expense deleted: expense_id=%s user=%s", expense_id, g.current_user.id)
    return jsonify({"deleted": True}), 200


# -- totals --

@expenses_bp.get("/monthly-total")
@require_auth
@require_permission("MANAGE_FINANCE")
def monthly_total_route():
    year = require_int(request.args.get("year"), "year")
    month = require_int(request.args.get("month"), "month")
    total = expense_service.monthly_total(year, month, store_id=_int_arg("store_id"))
    return jsonify({"year": year, "month": month, "total_cents": total}), 200


@expenses_bp.get("/unpaid-total")
@require_auth
@require_permission("MANAGE_FINANCE")
def unpaid_total_route():
    return jsonify({"total_cents": expense_service.unpaid_total(store_id=_int_arg("store_id"))}), 200
