"""
Reference Blueprint — taxonomy catalog (countries, regions, cities, funders,
thematic focus, activity types, target groups, programme areas).

Endpoints:
    GET    /api/v1/reference/children/<parent_id>     — Children of an item
    GET    /api/v1/reference/<category>               — List (?parentId=)
    POST   /api/v1/reference/<category>               — Create (ADMIN)
    GET    /api/v1/reference/<category>/<id>          — Get
    PUT    /api/v1/reference/<category>/<id>          — Update (ADMIN)
    DELETE /api/v1/reference/<category>/<id>          — Delete (ADMIN)
"""

from flask import Blueprint, jsonify, request

from tracker.core.exceptions import ValidationError
from tracker.middleware.permission_required import current_user, require_roles
from tracker.models.auth import ROLE_ADMIN
from tracker.services import reference_service
from tracker.utils.helpers import get_json_body, parse_positive_int

reference_bp = Blueprint("reference", __name__, url_prefix="/api/v1/reference")


@reference_bp.route("/children/<int:parent_id>", methods=["GET"])
def list_children(parent_id):
    return jsonify({"data": reference_service.list_children(parent_id)}), 200


@reference_bp.route("/<category>", methods=["GET"])
def list_items(category):
    parent_id = None
    raw_parent = request.args.get("parentId")
    if raw_parent:
        parent_id = parse_positive_int(raw_parent)
        if parent_id is None:
            raise ValidationError.for_field("parentId", "Must be a positive integer")
    return jsonify({"data": reference_service.list_items(category, parent_id)}), 200


@reference_bp.route("/<category>", methods=["POST"])
@require_roles(ROLE_ADMIN)
def create_item(category):
    item = reference_service.create_item(category, get_json_body(), current_user())
    return jsonify(item), 201


@reference_bp.route("/<category>/<int:item_id>", methods=["GET"])
def get_item(category, item_id):
    return jsonify(reference_service.get_item(category, item_id)), 200


@reference_bp.route("/<category>/<int:item_id>", methods=["PUT"])
@require_roles(ROLE_ADMIN)
def update_item(category, item_id):
    item = reference_service.update_item(category, item_id, get_json_body(), current_user())
    return jsonify(item), 200


@reference_bp.route("/<category>/<int:item_id>", methods=["DELETE"])
@require_roles(ROLE_ADMIN)
def delete_item(category, item_id):
    reference_service.delete_item(category, item_id, current_user())
    return jsonify({"success": True}), 200
