"""
Dashboard Blueprint — aggregate views over the caller's activity scope.

All endpoints accept the activity list filters except pagination and
sorting: projectId, status, search, country/countries, funder/funders,
thematic/thematicFocus, dateFrom, dateTo.

    GET /api/v1/dashboard/stats
    GET /api/v1/dashboard/activities-by-status
    GET /api/v1/dashboard/participants-by-gender
    GET /api/v1/dashboard/activities-trend
"""

from flask import Blueprint, jsonify, request

from tracker.middleware.permission_required import current_user
from tracker.services import activity_query
from tracker.services.scope_resolver import resolve_scope

dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/api/v1/dashboard")


def _scope_and_filters():
    filters = activity_query.parse_activity_filters(request.args, paginate=False)
    return resolve_scope(current_user()), filters


@dashboard_bp.route("/stats", methods=["GET"])
def stats():
    return jsonify(activity_query.headline_stats(*_scope_and_filters())), 200


@dashboard_bp.route("/activities-by-status", methods=["GET"])
def activities_by_status():
    return jsonify(activity_query.status_breakdown(*_scope_and_filters())), 200


@dashboard_bp.route("/participants-by-gender", methods=["GET"])
def participants_by_gender():
    return jsonify(activity_query.gender_breakdown(*_scope_and_filters())), 200


@dashboard_bp.route("/activities-trend", methods=["GET"])
def activities_trend():
    return jsonify(activity_query.monthly_trend(*_scope_and_filters())), 200
