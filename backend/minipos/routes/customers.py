# Overview: Flask API routes for customers; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify

from ..decorators import require_auth, require_permission
from ..services import customer_service

customers_bp = Blueprint("customers", __name__, url_prefix="/api/customers")


@customers_bp.get("")
@require_auth
@require_permission("USE_POS")
def list_customers_route():
    customers = customer_service.list_customers(q=request.args.get("q"))
    return jsonify({"customers": [c.to_dict() for c in customers]}), 200


@customers_bp.get("/<int:customer_id>")
@require_auth
@require_permission("USE_POS")
def get_customer_route(customer_id: int):
    return jsonify({"customer": customer_service.get_customer(customer_id).to_dict()}), 200


@customers_bp.post("")
@require_auth
@require_permission("MANAGE_CUSTOMERS")
def create_customer_route():
    """
    Create a customer.

    Request body:
    {
        "name": "Ada",
        "phone": "555-0101",     (optional)
        "email": "a@x.test",     (optional)
        "discount": "5%"         (optional, free text shown at the POS)
    }
    """
    data = request.get_json(silent=True) or {}
    customer = customer_service.create_customer(
        data.get("name"),
        email=data.get("email"),
        phone=data.get("phone"),
        discount=data.get("discount"),
    )
    return jsonify({"customer": customer.to_dict()}), 201
