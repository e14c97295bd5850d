"""
Auth Blueprint — JWT authentication endpoints.

  POST /api/v1/auth/login   — Email + password → access token
  GET  /api/v1/auth/me      — Current user profile
"""

from flask import Blueprint, jsonify

from tracker.middleware.permission_required import current_user
from tracker.services.jwt_service import token_response
from tracker.services.user_service import authenticate
from tracker.utils.helpers import get_json_body

auth_bp = Blueprint("auth", __name__, url_prefix="/api/v1/auth")


# ═══════════════════════════════════════════════════════════════
# POST /api/v1/auth/login
# ═══════════════════════════════════════════════════════════════
@auth_bp.route("/login", methods=["POST"])
def login():
    """
    Authenticate with email + password, return an access token.

    Body: { "email": "...", "password": "..." }
    """
    data = get_json_body()
    user = authenticate(data.get("email"), data.get("password"))
    return jsonify(token_response(user)), 200


# ═══════════════════════════════════════════════════════════════
# GET /api/v1/auth/me
# ═══════════════════════════════════════════════════════════════
@auth_bp.route("/me", methods=["GET"])
def me():
    return jsonify(current_user().to_dict(include_projects=True)), 200
