# Overview: Flask API routes for register sessions; parses input and returns JSON responses.

# backend/minipos/routes/registers.py
"""
Register Session API Routes

WHY: Cash accountability. A cashier opens a register for a store with an
opening float and closes it at the end of the shift.

DESIGN:
- Lifecycle: open -> close (immutable once closed)
- One OPEN session per store
- Sales settle into the session through the checkout endpoint, not here

SECURITY:
- OPERATE_REGISTER for open/close (cashier, manager, admin)
- VIEW_REGISTERS for lookups
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..decorators import require_auth, require_permission
from ..money import parse_cents
from ..services import register_service
from ..time_utils import parse_iso_datetime
from ..validation import ValidationError, require_positive_int


registers_bp = Blueprint("registers", __name__, url_prefix="/api/registers")


def _parse_datetime_arg(name: str):
    raw = request.args.get(name)
    try:
        return parse_iso_datetime(raw)
    except ValueError:
        raise ValidationError(f"{name} must be an ISO-8601 datetime", details={"field": name, "value": raw})


@registers_bp.post("/open")
@require_auth
@require_permission("OPERATE_REGISTER")
def open_register_route():
    """
    Open a register session.

    Request body:
    {
        "store_id": 1,
        "opening_cash_cents": 10000
    }
    """
    data = request.get_json(silent=True) or {}
    store_id = require_positive_int(data.get("store_id"), "store_id")
    opening_cash_cents = parse_cents(data.get("opening_cash_cents"), "opening_cash_cents", required=False, default=0)

    session = register_service.open_session(g.current_user.id, store_id, opening_cash_cents)

    current_app.logger.info(
        "Register opened: register_id=%s store_id=%s user=%s opening_cash_cents=%s",
        session.id, store_id, g.current_user.id, opening_cash_cents,
    )
    return jsonify({"session": session.to_dict()}), 201


@registers_bp.post("/<int:session_id>/close")
@require_auth
@require_permission("OPERATE_REGISTER")
def close_register_route(session_id: int):
    """
    Close a register session.

    Request body (optional):
    {
        "note": "Drawer counted, all good"
    }
    """
    data = request.get_json(silent=True) or {}
    note = data.get("note")

    session = register_service.close_session(session_id, g.current_user.id, note=note)

    current_app.logger.info(
        "Register closed: register_id=%s store_id=%s by=%s balance_cents=%s",
        session.id, session.store_id, g.current_user.id, session.balance_cents(),
    )
    return jsonify({"session": session.to_dict()}), 200


@registers_bp.get("/store/<int:store_id>/open")
@require_auth
@require_permission("VIEW_REGISTERS")
def open_register_for_store_route(store_id: int):
    session = register_service.get_open_session(store_id)
    if not session:
        return jsonify({"error": "No open register for this store", "details": {"store_id": store_id}}), 404
    return jsonify({"session": session.to_dict()}), 200


@registers_bp.get("/my")
@require_auth
@require_permission("VIEW_REGISTERS")
def my_sessions_route():
    sessions = register_service.list_sessions(user_id=g.current_user.id)
    return jsonify({"sessions": [s.to_dict() for s in sessions]}), 200


@registers_bp.get("/")
@registers_bp.get("")
@require_auth
@require_permission("VIEW_REGISTERS")
def list_sessions_route():
    """
    Session history.

    Query params: store_id, user_id, status (OPEN|CLOSED), start, end (ISO-8601).
    """
    sessions = register_service.list_sessions(
        store_id=request.args.get("store_id", type=int),
        user_id=request.args.get("user_id", type=int),
        status=(request.args.get("status") or "").upper() or None,
        start=_parse_datetime_arg("start"),
        end=_parse_datetime_arg("end"),
    )
    return jsonify({"sessions": [s.to_dict() for s in sessions]}), 200


@registers_bp.get("/<int:session_id>")
@require_auth
@require_permission("VIEW_REGISTERS")
def get_session_route(session_id: int):
    session = register_service.get_session(session_id)
    return jsonify({"session": session.to_dict()}), 200


@registers_bp.get("/<int:session_id>/summary")
@require_auth
@require_permission("VIEW_REGISTERS")
def session_summary_route(session_id: int):
    return jsonify(register_service.get_session_summary(session_id)), 200
