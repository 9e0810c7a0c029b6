# Overview: Flask API routes for back-office reports; parses query arguments and returns JSON responses.

from flask import Blueprint, jsonify, request

from ..decorators import require_auth, require_permission
from ..services import reporting_service
from ..time_utils import utcnow
from ..validation import require_date, require_int, require_positive_int


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


def _store_arg():
    raw = request.args.get("store_id")
    return require_positive_int(raw, "store_id") if raw else None


def _range_args():
    return (
        require_date(request.args.get("start"), "start", required=False),
        require_date(request.args.get("end"), "end", required=False),
    )


def _year_arg():
    raw = request.args.get("year")
    return require_int(raw, "year") if raw else utcnow().year


@reports_bp.get("/dashboard")
@require_auth
@require_permission("VIEW_REPORTS")
def dashboard_route():
    return jsonify(reporting_service.dashboard(store_id=_store_arg())), 200


@reports_bp.get("/sales")
@require_auth
@require_permission("VIEW_REPORTS")
def sales_report_route():
    """
    Sales grouped by period.

    Query params:
    - start, end: YYYY-MM-DD, inclusive (optional)
    - store_id: int (optional)
    - group_by: day | week | month (default day)
    """
    start, end = _range_args()
    report = reporting_service.sales_report(
        start=start,
        end=end,
        store_id=_store_arg(),
        group_by=request.args.get("group_by", "day"),
    )
    return jsonify(report), 200


@reports_bp.get("/profit")
@require_auth
@require_permission("VIEW_REPORTS")
def profit_report_route():
    start, end = _range_args()
    return jsonify(reporting_service.profit_report(start=start, end=end, store_id=_store_arg())), 200


@reports_bp.get("/sales/monthly")
@require_auth
@require_permission("VIEW_REPORTS")
def monthly_sales_route():
    year = _year_arg()
    return jsonify({"year": year, "months": reporting_service.monthly_sales(year, store_id=_store_arg())}), 200


@reports_bp.get("/expenses/monthly")
@require_auth
@require_permission("VIEW_REPORTS")
def monthly_expenses_route():
    year = _year_arg()
    return jsonify({"year": year, "months": reporting_service.monthly_expenses(year, store_id=_store_arg())}), 200


@reports_bp.get("/products/top")
@require_auth
@require_permission("VIEW_REPORTS")
def top_products_route():
    year = _year_arg()
    limit = require_positive_int(request.args.get("limit", "5"), "limit")
    products = reporting_service.top_products(year, limit=min(limit, 50), store_id=_store_arg())
    return jsonify({"year": year, "products": products}), 200


@reports_bp.get("/products/<int:product_id>/performance")
@require_auth
@require_permission("VIEW_REPORTS")
def product_performance_route(product_id: int):
    return jsonify(reporting_service.product_performance(product_id, _year_arg())), 200


@reports_bp.get("/cashflow")
@require_auth
@require_permission("VIEW_REPORTS")
def cashflow_report_route():
    """
    Income, expenses and net for one month.

    Query params:
    - year: int (default current year)
    - month: 1-12 (default current month)
    - store_id: int (optional)
    """
    raw_month = request.args.get("month")
    month = require_int(raw_month, "month") if raw_month else utcnow().month
    return jsonify(reporting_service.cashflow_report(_year_arg(), month, store_id=_store_arg())), 200
