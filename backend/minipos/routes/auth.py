# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

# backend/minipos/routes/auth.py
"""
Authentication API routes

Users are created by administrators (CLI `flask users create` or
POST /api/auth/users); there is no self-registration.
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..decorators import require_auth, require_permission
from ..permissions import get_role_permissions
from ..services import auth_service, session_service


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/login")
def login_route():
    """
    Authenticate user and create session token.

    Token must be included in the Authorization header for protected routes.
    """
    data = request.get_json(silent=True) or {}
    username = data.get("username")
    password = data.get("password")

    if not all([username, password]):
        return jsonify({"error": "username and password required"}), 400

    user = auth_service.authenticate(username, password)
    if not user:
        current_app.logger.info("Failed login for username=%s", username)
        return jsonify({"error": "Invalid credentials"}), 401

    session, token = session_service.create_session(user.id)

    return jsonify({
        "user": user.to_dict(),
        "permissions": sorted(get_role_permissions(user.role)),
        "token": token,
        "session": session.to_dict(),
        "message": "Login successful",
    }), 200


@auth_bp.post("/logout")
@require_auth
def logout_route():
    session_service.revoke_session(g.auth_token)
    return jsonify({"message": "Logged out"}), 200


@auth_bp.get("/me")
@require_auth
def me_route():
    user = g.current_user
    return jsonify({
        "user": user.to_dict(),
        "permissions": sorted(get_role_permissions(user.role)),
    }), 200


@auth_bp.post("/users")
@require_auth
@require_permission("MANAGE_USERS")
def create_user_route():
    """
    Create a user account.

    Request body:
    {
        "username": "cashier1",
        "password": "secret123",
        "role": "cashier",
        "store_id": 1          (optional)
    }
    """
    data = request.get_json(silent=True) or {}
    user = auth_service.create_user(
        data.get("username"),
        data.get("password"),
        role=data.get("role") or "cashier",
        email=data.get("email"),
        store_id=data.get("store_id"),
    )
    current_app.logger.info("User created: id=%s role=%s by=%s", user.id, user.role, g.current_user.id)
    return jsonify({"user": user.to_dict()}), 201
