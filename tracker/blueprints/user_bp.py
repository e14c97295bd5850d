"""
User Blueprint — user administration and the invitation flow.

Endpoints:
    GET    /api/v1/users                              — List (ADMIN)
    POST   /api/v1/users/invite                       — Invite (ADMIN)
    POST   /api/v1/users/accept-invitation            — Set password (public)
    PUT    /api/v1/users/<id>                         — Update (ADMIN)
    DELETE /api/v1/users/<id>                         — Delete (ADMIN)
    POST   /api/v1/users/<id>/resend-invitation       — New token (ADMIN)
"""

from flask import Blueprint, jsonify

from tracker.middleware.permission_required import current_user, require_roles
from tracker.models.auth import ROLE_ADMIN
from tracker.services import user_service
from tracker.utils.helpers import get_json_body

user_bp = Blueprint("user", __name__, url_prefix="/api/v1/users")


@user_bp.route("", methods=["GET"])
@require_roles(ROLE_ADMIN)
def list_users():
    return jsonify(user_service.list_users()), 200


@user_bp.route("/invite", methods=["POST"])
@require_roles(ROLE_ADMIN)
def invite_user():
    result = user_service.invite_user(get_json_body(), current_user())
    result["message"] = "User invited successfully"
    return jsonify(result), 201


@user_bp.route("/accept-invitation", methods=["POST"])
def accept_invitation():
    return jsonify(user_service.accept_invitation(get_json_body())), 200


@user_bp.route("/<int:user_id>", methods=["PUT"])
@require_roles(ROLE_ADMIN)
def update_user(user_id):
    return jsonify(user_service.update_user(user_id, get_json_body(), current_user())), 200


@user_bp.route("/<int:user_id>", methods=["DELETE"])
@require_roles(ROLE_ADMIN)
def delete_user(user_id):
    user_service.delete_user(user_id, current_user())
    return jsonify({"success": True}), 200


@user_bp.route("/<int:user_id>/resend-invitation", methods=["POST"])
@require_roles(ROLE_ADMIN)
def resend_invitation(user_id):
    return jsonify(user_service.resend_invitation(user_id, current_user())), 200
