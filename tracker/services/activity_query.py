"""
Activity Query & Aggregation Engine.

Turns query-string filters into SQLAlchemy conditions, AND-combines them
with the caller's scope clause, and serves:

  - list_activities     paginated, sorted list of hydrated activities
  - status_breakdown    [{status, count}] for all four statuses
  - gender_breakdown    [{gender, count}] summed participant counts
  - monthly_trend       [{month: "YYYY-MM", count}] by created_at, sparse
  - headline_stats      dashboard headline counters

Every view recomputes from the database; nothing is cached.
Filter parsing fails fast with a ValidationError before any query runs.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import date

from sqlalchemy import func

from tracker.core.exceptions import ValidationError
from tracker.models import db
from tracker.models.activity import (
    ACTIVITY_STATUSES,
    Activity,
    ActivityFunder,
    ActivityLocation,
    ActivityThematicFocus,
)
from tracker.services.scope_resolver import ActivityScope
from tracker.utils.helpers import MAX_DB_INT, parse_date_input, parse_positive_int

logger = logging.getLogger(__name__)

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 20
MAX_LIMIT = 100

SORT_COLUMNS = {
    "createdAt": Activity.created_at,
    "updatedAt": Activity.updated_at,
    "activityTitle": Activity.activity_title,
    "status": Activity.status,
    "activityStartDate": Activity.activity_start_date,
}
SORT_ORDERS = ("asc", "desc")

# canonical filter → accepted query parameter names
_ID_FILTER_PARAMS = {
    "countries": ("country", "countries"),
    "funders": ("funder", "funders"),
    "thematics": ("thematic", "thematicFocus"),
}

GENDER_COLUMNS = (
    ("Male", Activity.male_count),
    ("Female", Activity.female_count),
    ("Non-Binary", Activity.non_binary_count),
)


@dataclass(frozen=True)
class ActivityFilters:
    project_id: int | None = None
    status: str | None = None
    search: str | None = None
    countries: tuple = field(default_factory=tuple)
    funders: tuple = field(default_factory=tuple)
    thematics: tuple = field(default_factory=tuple)
    date_from: date | None = None
    date_to: date | None = None
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT
    sort_by: str = "createdAt"
    sort_order: str = "desc"


# ═════════════════════════════════════════════════════════════════════════════
# Parsing
# ═════════════════════════════════════════════════════════════════════════════

def _values(args, key) -> list[str]:
    """All non-blank values for ``key``; repeated params and comma lists both work."""
    if hasattr(args, "getlist"):
        raw = args.getlist(key)
    else:
        raw = args.get(key)
        if raw is None:
            raw = []
        elif not isinstance(raw, (list, tuple)):
            raw = [raw]
    values = []
    for item in raw:
        for part in str(item).split(","):
            part = part.strip()
            if part:
                values.append(part)
    return values


def _single(args, key):
    values = _values(args, key)
    return values[0] if values else None


def _int_param(args, key, default, errors, *, minimum, maximum=None):
    raw = _single(args, key)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        errors.append({"field": key, "message": "Must be an integer"})
        return default
    if value < minimum or (maximum is not None and value > maximum):
        bounds = f"between {minimum} and {maximum}" if maximum is not None else f"at least {minimum}"
        errors.append({"field": key, "message": f"Must be {bounds}"})
        return default
    return value


def parse_activity_filters(args, paginate: bool = True) -> ActivityFilters:
    """Validate list/dashboard query parameters.

    Raises:
        ValidationError: with one detail entry per offending parameter.
    """
    errors: list[dict] = []
    kwargs: dict = {}

    raw_project = _single(args, "projectId")
    if raw_project is not None:
        kwargs["project_id"] = parse_positive_int(raw_project)
        if kwargs["project_id"] is None:
            errors.append({"field": "projectId", "message": "Must be a positive integer"})

    status = _single(args, "status")
    if status is not None:
        if status not in ACTIVITY_STATUSES:
            errors.append({"field": "status", "message": f"Must be one of {', '.join(ACTIVITY_STATUSES)}"})
        else:
            kwargs["status"] = status

    search = args.get("search")
    if search is not None and str(search).strip():
        kwargs["search"] = str(search).strip()

    for name, params in _ID_FILTER_PARAMS.items():
        ids = []
        for param in params:
            for raw in _values(args, param):
                ref_id = parse_positive_int(raw)
                if ref_id is None:
                    errors.append({"field": param, "message": f"Invalid id: {raw}"})
                elif ref_id not in ids:
                    ids.append(ref_id)
        kwargs[name] = tuple(ids)

    for param, attr in (("dateFrom", "date_from"), ("dateTo", "date_to")):
        raw = _single(args, param)
        if raw is None:
            continue
        try:
            kwargs[attr] = parse_date_input(raw)
        except ValueError as exc:
            errors.append({"field": param, "message": str(exc)})
    if kwargs.get("date_from") and kwargs.get("date_to") and kwargs["date_from"] > kwargs["date_to"]:
        errors.append({"field": "dateFrom", "message": "dateFrom must not be after dateTo"})

    if paginate:
        kwargs["page"] = _int_param(args, "page", DEFAULT_PAGE, errors, minimum=1, maximum=MAX_DB_INT)
        kwargs["limit"] = _int_param(args, "limit", DEFAULT_LIMIT, errors, minimum=1, maximum=MAX_LIMIT)
        sort_by = _single(args, "sortBy")
        if sort_by is not None:
            if sort_by not in SORT_COLUMNS:
                errors.append({"field": "sortBy", "message": f"Must be one of {', '.join(SORT_COLUMNS)}"})
            else:
                kwargs["sort_by"] = sort_by
        sort_order = _single(args, "sortOrder")
        if sort_order is not None:
            if sort_order.lower() not in SORT_ORDERS:
                errors.append({"field": "sortOrder", "message": "Must be asc or desc"})
            else:
                kwargs["sort_order"] = sort_order.lower()

    if errors:
        raise ValidationError("Invalid filters", details=errors)
    return ActivityFilters(**kwargs)


# ═════════════════════════════════════════════════════════════════════════════
# Conditions
# ═════════════════════════════════════════════════════════════════════════════

def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def build_conditions(scope: ActivityScope, filters: ActivityFilters) -> list:
    """Scope clause first, then one condition per active filter."""
    conditions = [scope.clause(Activity)]
    if filters.project_id is not None:
        conditions.append(Activity.project_id == filters.project_id)
    if filters.status:
        conditions.append(Activity.status == filters.status)
    if filters.search:
        conditions.append(Activity.activity_title.ilike(f"%{_escape_like(filters.search)}%", escape="\\"))
    if filters.countries:
        conditions.append(Activity.locations.any(ActivityLocation.country_id.in_(filters.countries)))
    if filters.funders:
        conditions.append(Activity.funder_links.any(ActivityFunder.reference_id.in_(filters.funders)))
    if filters.thematics:
        conditions.append(
            Activity.thematic_focus_links.any(ActivityThematicFocus.reference_id.in_(filters.thematics))
        )
    if filters.date_from:
        conditions.append(Activity.activity_start_date >= filters.date_from)
    if filters.date_to:
        conditions.append(Activity.activity_start_date <= filters.date_to)
    return conditions


# ═════════════════════════════════════════════════════════════════════════════
# Views
# ═════════════════════════════════════════════════════════════════════════════

def list_activities(scope: ActivityScope, filters: ActivityFilters) -> dict:
    if scope.is_empty:
        return {
            "data": [],
            "pagination": {"page": filters.page, "limit": filters.limit, "total": 0, "totalPages": 0},
        }
    column = SORT_COLUMNS[filters.sort_by]
    order = column.asc() if filters.sort_order == "asc" else column.desc()
    q = (
        Activity.query
        .filter(*build_conditions(scope, filters))
        .order_by(order, Activity.id.asc())
    )
    paginated = q.paginate(page=filters.page, per_page=filters.limit, error_out=False)
    total = paginated.total or 0
    return {
        "data": [a.to_dict() for a in paginated.items],
        "pagination": {
            "page": filters.page,
            "limit": filters.limit,
            "total": total,
            "totalPages": (total + filters.limit - 1) // filters.limit,
        },
    }


def status_breakdown(scope: ActivityScope, filters: ActivityFilters) -> list[dict]:
    rows = (
        db.session.query(Activity.status, func.count(Activity.id))
        .filter(*build_conditions(scope, filters))
        .group_by(Activity.status)
        .all()
    )
    counts = {status: count for status, count in rows}
    return [{"status": s, "count": counts.get(s, 0)} for s in ACTIVITY_STATUSES]


def gender_breakdown(scope: ActivityScope, filters: ActivityFilters) -> list[dict]:
    sums = (
        db.session.query(*[func.coalesce(func.sum(col), 0) for _, col in GENDER_COLUMNS])
        .filter(*build_conditions(scope, filters))
        .one()
    )
    return [{"gender": label, "count": int(total)} for (label, _), total in zip(GENDER_COLUMNS, sums)]


def monthly_trend(scope: ActivityScope, filters: ActivityFilters) -> list[dict]:
    """Activities created per calendar month; months without activity are omitted."""
    rows = (
        db.session.query(Activity.created_at)
        .filter(*build_conditions(scope, filters))
        .all()
    )
    months = Counter(r.created_at.strftime("%Y-%m") for r in rows if r.created_at is not None)
    return [{"month": month, "count": months[month]} for month in sorted(months)]


def headline_stats(scope: ActivityScope, filters: ActivityFilters) -> dict:
    by_status = {row["status"]: row["count"] for row in status_breakdown(scope, filters)}
    participants = sum(row["count"] for row in gender_breakdown(scope, filters))
    return {
        "totalActivities": sum(by_status.values()),
        "draftActivities": by_status["DRAFT"],
        "submittedActivities": by_status["SUBMITTED"],
        "validatedActivities": by_status["VALIDATED"],
        "rejectedActivities": by_status["REJECTED"],
        "totalParticipants": participants,
    }
