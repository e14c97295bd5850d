"""
Finance Blueprint — project funding lines.

Endpoints:
    GET    /api/v1/finance                    — Scoped list (ADMIN, MANAGER)
    POST   /api/v1/finance                    — Create (ADMIN, MANAGER member)
    GET    /api/v1/finance/budget-overview    — Totals over the caller's scope
    PUT    /api/v1/finance/<id>               — Update (ADMIN, MANAGER member)
    DELETE /api/v1/finance/<id>               — Delete (ADMIN)
"""

from flask import Blueprint, jsonify

from tracker.middleware.permission_required import current_user, require_roles
from tracker.models.auth import ROLE_ADMIN, ROLE_MANAGER
from tracker.services import finance_service
from tracker.utils.helpers import get_json_body

finance_bp = Blueprint("finance", __name__, url_prefix="/api/v1/finance")


@finance_bp.route("", methods=["GET"])
def list_finances():
    return jsonify(finance_service.list_finances(current_user())), 200


@finance_bp.route("/budget-overview", methods=["GET"])
def budget_overview():
    return jsonify(finance_service.budget_overview(current_user())), 200


@finance_bp.route("", methods=["POST"])
@require_roles(ROLE_ADMIN, ROLE_MANAGER)
def create_finance():
    return jsonify(finance_service.create_finance(get_json_body(), current_user())), 201


@finance_bp.route("/<int:finance_id>", methods=["PUT"])
@require_roles(ROLE_ADMIN, ROLE_MANAGER)
def update_finance(finance_id):
    return jsonify(finance_service.update_finance(finance_id, get_json_body(), current_user())), 200


@finance_bp.route("/<int:finance_id>", methods=["DELETE"])
@require_roles(ROLE_ADMIN)
def delete_finance(finance_id):
    finance_service.delete_finance(finance_id, current_user())
    return jsonify({"success": True}), 200
