# Overview: Flask API routes for the POS screen (cart, holds, checkout); parses input and returns JSON responses.

# backend/minipos/routes/pos.py
"""
POS API Routes

WHY: The cashier's screen drives one register at a time: build a cart, park
it, bring it back, take payment. Every endpoint takes the register id (the
register session id) explicitly.

DESIGN:
- Cart mutations commit per request
- hold/select/remove-hold and complete-sale are atomic in the service layer
- Amounts are integer cents in and out; the receipt renders two decimals

SECURITY:
- USE_POS permission on every endpoint (cashier, manager, admin)
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..decorators import require_auth, require_permission
from ..services import cart_service, hold_service, checkout_service
from ..services.checkout_service import SaleInput
from ..services.concurrency import unit_of_work
from ..validation import require_positive_int


pos_bp = Blueprint("pos", __name__, url_prefix="/api/pos")


def _json_body() -> dict:
    return request.get_json(silent=True) or {}


def _register_id_from_args() -> int:
    return require_positive_int(request.args.get("register_id"), "register_id")


def _cart_payload(register_id: int) -> dict:
    lines = cart_service.list_lines(register_id)
    return {
        "register_id": register_id,
        "lines": [line.to_dict() for line in lines],
        "subtotal_cents": cart_service.subtotal(register_id),
        "item_count": cart_service.item_count(register_id),
    }


# =============================================================================
# CART
# =============================================================================

@pos_bp.post("/cart")
@require_auth
@require_permission("USE_POS")
def add_to_cart_route():
    """
    Add one unit of a product to the register's cart.

    Request body:
    {
        "register_id": 1,
        "product_id": 7
    }
    """
    data = _json_body()
    register_id = require_positive_int(data.get("register_id"), "register_id")
    product_id = require_positive_int(data.get("product_id"), "product_id")

    with unit_of_work():
        line = cart_service.add_item(register_id, product_id)
        line_dict = line.to_dict()

    return jsonify({"line": line_dict, **_cart_payload(register_id)}), 201


@pos_bp.get("/cart")
@require_auth
@require_permission("USE_POS")
def get_cart_route():
    register_id = _register_id_from_args()
    return jsonify(_cart_payload(register_id)), 200


@pos_bp.put("/cart/<int:line_id>")
@require_auth
@require_permission("USE_POS")
def set_quantity_route(line_id: int):
    data = _json_body()
    quantity = require_positive_int(data.get("quantity"), "quantity")

    with unit_of_work():
        line = cart_service.set_quantity(line_id, quantity)
        line_dict = line.to_dict()

    return jsonify({"line": line_dict, "subtotal_cents": cart_service.subtotal(line_dict["register_id"])}), 200


@pos_bp.delete("/cart/<int:line_id>")
@require_auth
@require_permission("USE_POS")
def remove_item_route(line_id: int):
    with unit_of_work():
        cart_service.remove_item(line_id)
    return jsonify({"deleted": True, "line_id": line_id}), 200


@pos_bp.get("/subtotal")
@require_auth
@require_permission("USE_POS")
def subtotal_route():
    register_id = _register_id_from_args()
    return jsonify({"register_id": register_id, "subtotal_cents": cart_service.subtotal(register_id)}), 200


@pos_bp.get("/total-items")
@require_auth
@require_permission("USE_POS")
def total_items_route():
    register_id = _register_id_from_args()
    return jsonify({"register_id": register_id, "item_count": cart_service.item_count(register_id)}), 200


@pos_bp.post("/reset")
@require_auth
@require_permission("USE_POS")
def reset_cart_route():
    data = _json_body()
    register_id = require_positive_int(data.get("register_id"), "register_id")
    with unit_of_work():
        deleted = cart_service.clear(register_id)
    return jsonify({"register_id": register_id, "deleted": deleted}), 200


# =============================================================================
# HOLDS
# =============================================================================

@pos_bp.get("/holds/<int:register_id>")
@require_auth
@require_permission("USE_POS")
def list_holds_route(register_id: int):
    holds = hold_service.list_holds(register_id)
    return jsonify({"register_id": register_id, "holds": [h.to_dict() for h in holds]}), 200


@pos_bp.post("/holds")
@require_auth
@require_permission("USE_POS")
def hold_cart_route():
    data = _json_body()
    register_id = require_positive_int(data.get("register_id"), "register_id")
    hold = hold_service.hold(register_id)
    return jsonify({"hold": hold.to_dict()}), 201


@pos_bp.post("/holds/<int:register_id>/<int:slot>/select")
@require_auth
@require_permission("USE_POS")
def select_hold_route(register_id: int, slot: int):
    hold_service.select(register_id, slot)
    return jsonify(_cart_payload(register_id)), 200


@pos_bp.delete("/holds/<int:register_id>/<int:slot>")
@require_auth
@require_permission("USE_POS")
def remove_hold_route(register_id: int, slot: int):
    deleted = hold_service.remove(register_id, slot)
    return jsonify({"register_id": register_id, "slot": slot, "deleted_lines": deleted}), 200


# =============================================================================
# CHECKOUT
# =============================================================================

@pos_bp.post("/complete-sale")
@require_auth
@require_permission("USE_POS")
def complete_sale_route():
    """
    Complete the sale for a register.

    Request body:
    {
        "register_id": 1,
        "payment_method": "cash",     (cash | card | cheque)
        "total_cents": 3000,
        "paid_cents": 3000,
        "tax_cents": 0,               (optional)
        "discount_cents": 0,          (optional)
        "subtotal_cents": 3000,       (optional, defaults to cart subtotal)
        "client_id": 4,               (optional)
        "client_name": "Walk-in"      (optional)
    }

    Returns the sale and the plain-text receipt.
    """
    data = _json_body()
    register_id = require_positive_int(data.get("register_id"), "register_id")
    sale_input = SaleInput.from_payload(data)

    result = checkout_service.complete_sale(register_id, sale_input, actor_user_id=g.current_user.id)
    sale = result.sale

    current_app.logger.info(
        "Sale completed: sale_id=%s register_id=%s total_cents=%s method=%s user=%s",
        sale.id, register_id, sale.total_cents, sale.payment_method, g.current_user.id,
    )
    return jsonify({"sale": sale.to_dict(), "receipt": result.receipt}), 201


@pos_bp.get("/discount/<int:customer_id>")
@require_auth
@require_permission("USE_POS")
def customer_discount_route(customer_id: int):
    discount = checkout_service.get_customer_discount(customer_id)
    return jsonify({"customer_id": customer_id, "discount": discount}), 200
