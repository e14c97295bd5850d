"""
Project Blueprint — project CRUD and membership.

Endpoints:
    GET    /api/v1/projects                          — List (ADMIN all, others own)
    POST   /api/v1/projects                          — Create (ADMIN)
    GET    /api/v1/projects/<id>                     — Detail + members
    PUT    /api/v1/projects/<id>                     — Update (ADMIN)
    DELETE /api/v1/projects/<id>                     — Delete (ADMIN)
    POST   /api/v1/projects/<id>/users               — Add member (ADMIN)
    DELETE /api/v1/projects/<id>/users/<user_id>     — Remove member (ADMIN)
"""

from flask import Blueprint, jsonify

from tracker.middleware.permission_required import current_user, require_roles
from tracker.models.auth import ROLE_ADMIN
from tracker.services import project_service
from tracker.utils.helpers import get_json_body

project_bp = Blueprint("project", __name__, url_prefix="/api/v1")


@project_bp.route("/projects", methods=["GET"])
def list_projects():
    return jsonify(project_service.list_projects(current_user())), 200


@project_bp.route("/projects", methods=["POST"])
@require_roles(ROLE_ADMIN)
def create_project():
    return jsonify(project_service.create_project(get_json_body(), current_user())), 201


@project_bp.route("/projects/<int:project_id>", methods=["GET"])
def get_project(project_id):
    return jsonify(project_service.get_project(project_id, current_user())), 200


@project_bp.route("/projects/<int:project_id>", methods=["PUT"])
@require_roles(ROLE_ADMIN)
def update_project(project_id):
    return jsonify(project_service.update_project(project_id, get_json_body(), current_user())), 200


@project_bp.route("/projects/<int:project_id>", methods=["DELETE"])
@require_roles(ROLE_ADMIN)
def delete_project(project_id):
    project_service.delete_project(project_id, current_user())
    return jsonify({"success": True}), 200


# ── Members ──────────────────────────────────────────────────────────────────

@project_bp.route("/projects/<int:project_id>/users", methods=["POST"])
@require_roles(ROLE_ADMIN)
def add_member(project_id):
    return jsonify(project_service.add_member(project_id, get_json_body(), current_user())), 201


@project_bp.route("/projects/<int:project_id>/users/<int:user_id>", methods=["DELETE"])
@require_roles(ROLE_ADMIN)
def remove_member(project_id, user_id):
    project_service.remove_member(project_id, user_id, current_user())
    return jsonify({"success": True}), 200
