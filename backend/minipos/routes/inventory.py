# Overview: Flask API routes for stock ledger operations; parses input and returns JSON responses.

# backend/minipos/routes/inventory.py
"""
Stock ledger routes.

Every write names exactly one location: "store_id" or "warehouse_id".

SECURITY:
- VIEW_INVENTORY for reads
- MANAGE_INVENTORY for receiving stock and stock takes
"""
from flask import Blueprint, request, jsonify

from ..decorators import require_auth, require_permission
from ..money import parse_cents
from ..services import stock_service
from ..services.concurrency import unit_of_work
from ..validation import ValidationError, require_int, require_positive_int

inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")


def _location_kwargs(source: dict) -> dict:
    store_id = source.get("store_id")
    warehouse_id = source.get("warehouse_id")
    if (store_id is None) == (warehouse_id is None):
        raise ValidationError("Exactly one of store_id or warehouse_id is required")
    if store_id is not None:
        return {"store_id": require_positive_int(store_id, "store_id")}
    return {"warehouse_id": require_positive_int(warehouse_id, "warehouse_id")}


@inventory_bp.get("/stock")
@require_auth
@require_permission("VIEW_INVENTORY")
def get_stock_route():
    """
    Stock for a product.

    Query params:
    - product_id: int (required)
    - store_id | warehouse_id: int (optional) - return one location's quantity
    """
    product_id = require_positive_int(request.args.get("product_id"), "product_id")

    if request.args.get("store_id") is None and request.args.get("warehouse_id") is None:
        records = stock_service.list_for_product(product_id)
        return jsonify({"product_id": product_id, "records": [r.to_dict() for r in records]}), 200

    location = _location_kwargs(request.args)
    quantity = stock_service.available(product_id, **location)
    return jsonify({"product_id": product_id, **location, "quantity": quantity}), 200


@inventory_bp.post("/stock/increase")
@require_auth
@require_permission("MANAGE_INVENTORY")
def increase_stock_route():
    """
    Receive stock at one location.

    Request body:
    {
        "product_id": 7,
        "store_id": 1,
        "quantity": 24
    }
    """
    data = request.get_json(silent=True) or {}
    product_id = require_positive_int(data.get("product_id"), "product_id")
    quantity = require_int(data.get("quantity"), "quantity")
    location = _location_kwargs(data)

    with unit_of_work():
        record = stock_service.increase(product_id, quantity, **location)
        body = record.to_dict()
    return jsonify({"record": body}), 200


@inventory_bp.post("/stock/set")
@require_auth
@require_permission("MANAGE_INVENTORY")
def set_stock_route():
    """
    Stock take: overwrite the quantity at one location.

    Request body:
    {
        "product_id": 7,
        "warehouse_id": 2,
        "quantity": 40,
        "price_cents": 1099      (optional)
    }
    """
    data = request.get_json(silent=True) or {}
    product_id = require_positive_int(data.get("product_id"), "product_id")
    quantity = require_int(data.get("quantity"), "quantity")
    price_cents = parse_cents(data.get("price_cents"), "price_cents", required=False)
    location = _location_kwargs(data)

    with unit_of_work():
        record = stock_service.set_quantity(product_id, quantity, price_cents=price_cents, **location)
        body = record.to_dict()
    return jsonify({"record": body}), 200


@inventory_bp.post("/stock/update")
@require_auth
@require_permission("MANAGE_INVENTORY")
def bulk_update_stock_route():
    """
    Apply one stock request to several locations atomically.

    Request body:
    {
        "product_id": 7,
        "mode": "set",           (set | add)
        "stores": [{"store_id": 1, "quantity": 10, "price_cents": 1099}],
        "warehouses": [{"warehouse_id": 2, "quantity": 50}]
    }
    """
    data = request.get_json(silent=True) or {}
    product_id = require_positive_int(data.get("product_id"), "product_id")

    records = stock_service.bulk_update(
        product_id,
        stores=data.get("stores") or [],
        warehouses=data.get("warehouses") or [],
        mode=data.get("mode") or "set",
    )
    return jsonify({"records": [r.to_dict() for r in records]}), 200


@inventory_bp.get("/low-stock")
@require_auth
@require_permission("VIEW_INVENTORY")
def low_stock_route():
    store_id = require_positive_int(request.args.get("store_id"), "store_id")
    return jsonify({"store_id": store_id, "items": stock_service.low_stock(store_id)}), 200
