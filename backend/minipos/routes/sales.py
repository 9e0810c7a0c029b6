# Overview: Flask API routes for sales history; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify

from ..decorators import require_auth, require_permission
from ..services import checkout_service, sales_service

sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


@sales_bp.get("")
@require_auth
@require_permission("VIEW_SALES")
def list_sales_route():
    """
    List sales, newest first.

    Query params:
    - register_id: int (optional)
    - limit: int (optional, default 100, max 500)
    """
    limit = min(request.args.get("limit", 100, type=int) or 100, 500)
    sales = sales_service.list_sales(register_id=request.args.get("register_id", type=int), limit=limit)
    return jsonify({"sales": [s.to_dict() for s in sales], "count": len(sales)}), 200


@sales_bp.get("/<int:sale_id>")
@require_auth
@require_permission("VIEW_SALES")
def get_sale_route(sale_id: int):
    return jsonify({"sale": sales_service.get_sale_with_items(sale_id)}), 200


@sales_bp.get("/<int:sale_id>/receipt")
@require_auth
@require_permission("VIEW_SALES")
def sale_receipt_route(sale_id: int):
    return jsonify({"sale_id": sale_id, "receipt": checkout_service.render_sale_receipt(sale_id)}), 200
