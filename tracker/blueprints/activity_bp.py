"""
Activity Blueprint — submission, listing and review of field activities.

Endpoints:
    GET    /api/v1/activities                 — Scoped, filtered, paginated list
    POST   /api/v1/activities                 — Create (DRAFT or SUBMITTED)
    GET    /api/v1/activities/<id>            — Hydrated aggregate
    PUT    /api/v1/activities/<id>            — Replace-all update
    DELETE /api/v1/activities/<id>            — Delete (ADMIN)
    POST   /api/v1/activities/<id>/submit     — DRAFT/REJECTED → SUBMITTED
    POST   /api/v1/activities/<id>/validate   — SUBMITTED → VALIDATED/REJECTED
"""

import logging

from flask import Blueprint, jsonify, request

from tracker.middleware.permission_required import current_user
from tracker.services import activity_lifecycle, activity_query, activity_service
from tracker.services.scope_resolver import resolve_scope
from tracker.utils.helpers import get_json_body

logger = logging.getLogger(__name__)

activity_bp = Blueprint("activity", __name__, url_prefix="/api/v1")


@activity_bp.route("/activities", methods=["GET"])
def list_activities():
    filters = activity_query.parse_activity_filters(request.args)
    scope = resolve_scope(current_user())
    return jsonify(activity_query.list_activities(scope, filters)), 200


@activity_bp.route("/activities", methods=["POST"])
def create_activity():
    data = get_json_body()
    return jsonify(activity_service.create_activity(data, current_user())), 201


@activity_bp.route("/activities/<activity_id>", methods=["GET"])
def get_activity(activity_id):
    return jsonify(activity_service.get_activity(activity_id)), 200


@activity_bp.route("/activities/<activity_id>", methods=["PUT"])
def update_activity(activity_id):
    data = get_json_body()
    return jsonify(activity_service.update_activity(activity_id, data, current_user())), 200


@activity_bp.route("/activities/<activity_id>", methods=["DELETE"])
def delete_activity(activity_id):
    activity_service.delete_activity(activity_id, current_user())
    return jsonify({"success": True}), 200


# ── Lifecycle ────────────────────────────────────────────────────────────────

@activity_bp.route("/activities/<activity_id>/submit", methods=["POST"])
def submit_activity(activity_id):
    activity = activity_lifecycle.transition_activity(activity_id, "submit", current_user())
    return jsonify(activity), 200


@activity_bp.route("/activities/<activity_id>/validate", methods=["POST"])
def validate_activity(activity_id):
    """
    Body: { "status": "VALIDATED" | "REJECTED", "rejectionReason": "..." }
    """
    data = get_json_body()
    activity = activity_lifecycle.review_activity(
        activity_id,
        data.get("status"),
        current_user(),
        rejection_reason=data.get("rejectionReason"),
    )
    return jsonify(activity), 200
