# Overview: Flask API routes for stores and warehouses; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify

from ..decorators import require_auth, require_permission
from ..services import store_service

stores_bp = Blueprint("stores", __name__, url_prefix="/api/stores")
warehouses_bp = Blueprint("warehouses", __name__, url_prefix="/api/warehouses")


# =============================================================================
# STORES
# =============================================================================

@stores_bp.get("")
@require_auth
@require_permission("VIEW_STORES")
def list_stores_route():
    stores = store_service.list_stores()
    return jsonify({"stores": [s.to_dict() for s in stores]}), 200


@stores_bp.get("/<int:store_id>")
@require_auth
@require_permission("VIEW_STORES")
def get_store_route(store_id: int):
    return jsonify({"store": store_service.get_store(store_id).to_dict()}), 200


@stores_bp.post("")
@require_auth
@require_permission("MANAGE_STORES")
def create_store_route():
    """
    Create a store.

    Request body:
    {
        "name": "Main Street",
        "address": "1 Main St",           (optional)
        "phone": "555-0100",              (optional)
        "footer_text": "See you soon!"    (optional, printed on receipts)
    }
    """
    data = request.get_json(silent=True) or {}
    store = store_service.create_store(
        data.get("name"),
        address=data.get("address"),
        phone=data.get("phone"),
        footer_text=data.get("footer_text"),
    )
    return jsonify({"store": store.to_dict()}), 201


@stores_bp.put("/<int:store_id>")
@require_auth
@require_permission("MANAGE_STORES")
def update_store_route(store_id: int):
    data = request.get_json(silent=True) or {}
    store = store_service.update_store(
        store_id,
        name=data.get("name"),
        address=data.get("address"),
        phone=data.get("phone"),
        footer_text=data.get("footer_text"),
    )
    return jsonify({"store": store.to_dict()}), 200


# =============================================================================
# WAREHOUSES
# =============================================================================

@warehouses_bp.get("")
@require_auth
@require_permission("VIEW_STORES")
def list_warehouses_route():
    warehouses = store_service.list_warehouses()
    return jsonify({"warehouses": [w.to_dict() for w in warehouses]}), 200


@warehouses_bp.get("/<int:warehouse_id>")
@require_auth
@require_permission("VIEW_STORES")
def get_warehouse_route(warehouse_id: int):
    return jsonify({"warehouse": store_service.get_warehouse(warehouse_id).to_dict()}), 200


@warehouses_bp.post("")
@require_auth
@require_permission("MANAGE_STORES")
def create_warehouse_route():
    data = request.get_json(silent=True) or {}
    warehouse = store_service.create_warehouse(
        data.get("name"),
        address=data.get("address"),
        phone=data.get("phone"),
    )
    return jsonify({"warehouse": warehouse.to_dict()}), 201
