from flask import Blueprint, request, jsonify, make_response, current_app
from werkzeug.security import check_password_hash
from utils.tokens import get_jwt_token, decode_jwt
from utils.utils import get_request_token

auth_bp = Blueprint('auth_bp', __name__)


def _set_token_cookie(response, token, max_age):
    response.set_cookie(
        "access_token", token,
        httponly=True,
        secure=current_app.config.get("SESSION_COOKIE_SECURE", False),
        samesite=current_app.config.get("SESSION_COOKIE_SAMESITE", "Lax"),
        path="/",
        max_age=max_age
    )
    return response


# Admin Login
@auth_bp.route('/admin/login', methods=['POST'])
def admin_login():
    data = request.get_json(silent=True) or {}
    user_id = data.get("user_id")
    password = data.get("password")

    if not user_id or not password:
        return jsonify({"success": False, "error": "User ID and password are required"}), 400

    password_hash = current_app.config.get("ADMIN_PASSWORD_HASH")
    if not password_hash:
        current_app.logger.error("ADMIN_PASSWORD_HASH is not configured, admin login disabled")
        return jsonify({"success": False, "error": "Admin login is not configured"}), 500

    if user_id != current_app.config.get("ADMIN_USERNAME") or not check_password_hash(password_hash, password):
        current_app.logger.warning("Failed admin login for %r", user_id)
        return jsonify({"success": False, "error": "Invalid credentials"}), 401

    token = get_jwt_token({"sub": user_id, "role": "admin"})
    current_app.logger.info("Admin %s logged in", user_id)

    response = make_response(jsonify({"success": True, "token": token}))
    return _set_token_cookie(response, token, current_app.config.get("ADMIN_TOKEN_HOURS", 12) * 3600)


# Admin Token Check
@auth_bp.route('/admin/verify', methods=['GET', 'POST'])
def admin_verify():
    data = request.get_json(silent=True) or {}
    token = data.get("token") or get_request_token()

    if not token:
        return jsonify({"valid": False}), 401

    decoded = decode_jwt(token)
    if not decoded or decoded.get("role") != "admin":
        return jsonify({"valid": False}), 401

    return jsonify({"valid": True, "user_id": decoded.get("sub")}), 200


# Logout
@auth_bp.route('/admin/logout', methods=['POST'])
def admin_logout():
    response = make_response(jsonify({"message": "Logout successful"}))
    return _set_token_cookie(response, "", 0)
