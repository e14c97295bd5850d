"""
Activity Service — create / update / get / delete for the activity aggregate.

An activity is written together with its children (locations and the four
reference associations) inside one transaction: every child row is flushed
before the single commit, and any failure rolls the whole aggregate back.

Update is patch-for-scalars, replace-all-for-collections: each collection
named in the payload replaces the stored one; collections not named are
re-created from their current contents. An empty list for a named
collection is a validation error, since every activity needs at least one
of each.

After a successful create the ``ActivityCreated`` event is published to the
notification dispatcher; notification problems never reach the caller.
"""

import logging
from datetime import datetime, timezone

from tracker.core.exceptions import NotFoundError, ValidationError
from tracker.models import db
from tracker.models.activity import (
    ASSOCIATIONS,
    DEMOGRAPHIC_FIELDS,
    NARRATIVE_FIELDS,
    STATUS_DRAFT,
    STATUS_SUBMITTED,
    Activity,
    ActivityLocation,
)
from tracker.models.audit import write_audit
from tracker.models.auth import ROLE_MANAGER, STATUS_ACTIVE, ProjectMember, User
from tracker.models.project import Project
from tracker.models.reference import ReferenceCategory, ReferenceItem
from tracker.services.activity_lifecycle import check_delete_allowed, check_edit_allowed
from tracker.services.notification import ActivityCreated, Recipient, dispatcher
from tracker.services.scope_resolver import require_project_access
from tracker.utils.helpers import MAX_DB_INT, commit_or_rollback, parse_date_input, parse_positive_int

logger = logging.getLogger(__name__)

TITLE_MIN, TITLE_MAX = 3, 500
# narrative fields stored in bounded columns
_MAX_LENGTHS = {"consortium": 100, "implementingPartners": 500}
INITIAL_STATUSES = (STATUS_DRAFT, STATUS_SUBMITTED)

_COLLECTION_KEYS = ("locations",) + tuple(a.key for a in ASSOCIATIONS)


# ═════════════════════════════════════════════════════════════════════════════
# Payload validation
# ═════════════════════════════════════════════════════════════════════════════

class _Errors:
    """Collects field-level problems; raises them all at once."""

    def __init__(self):
        self.items = []

    def add(self, field, message):
        self.items.append({"field": field, "message": message})

    def raise_if_any(self, message="Invalid activity data"):
        if self.items:
            raise ValidationError(message, details=self.items)


def _clean_scalars(data: dict, errors: _Errors, *, creating: bool) -> dict:
    """Validate scalar fields present in ``data``; returns attr → value."""
    cleaned = {}

    if "activityTitle" in data or creating:
        title = data.get("activityTitle")
        if not isinstance(title, str) or not title.strip():
            errors.add("activityTitle", "Activity title is required")
        else:
            title = title.strip()
            if not TITLE_MIN <= len(title) <= TITLE_MAX:
                errors.add("activityTitle", f"Activity title must be {TITLE_MIN}-{TITLE_MAX} characters")
            else:
                cleaned["activity_title"] = title

    for key, attr in NARRATIVE_FIELDS.items():
        if key not in data:
            continue
        value = data[key]
        if value is None:
            cleaned[attr] = None
            continue
        if not isinstance(value, str):
            errors.add(key, "Must be a string")
            continue
        value = value.strip()
        max_len = _MAX_LENGTHS.get(key)
        if max_len and len(value) > max_len:
            errors.add(key, f"Must be at most {max_len} characters")
            continue
        cleaned[attr] = value or None

    for key, attr in DEMOGRAPHIC_FIELDS.items():
        if key not in data:
            if creating:
                cleaned[attr] = 0
            continue
        value = data[key]
        if value is None:
            cleaned[attr] = 0
        elif isinstance(value, bool) or not isinstance(value, int):
            errors.add(key, "Must be a whole number")
        elif value < 0:
            errors.add(key, "Must not be negative")
        elif value > MAX_DB_INT:
            errors.add(key, f"Must be at most {MAX_DB_INT}")
        else:
            cleaned[attr] = value

    return cleaned


def _clean_id_list(key, raw, errors: _Errors):
    if not isinstance(raw, list):
        errors.add(key, "Must be a list of ids")
        return None
    if not raw:
        errors.add(key, "At least one entry is required")
        return None
    ids = []
    for value in raw:
        ref_id = parse_positive_int(value)
        if ref_id is None:
            errors.add(key, f"Invalid id: {value!r}")
            return None
        if ref_id not in ids:
            ids.append(ref_id)
    return ids


def _clean_locations(raw, errors: _Errors):
    if not isinstance(raw, list):
        errors.add("locations", "Must be a list")
        return None
    if not raw:
        errors.add("locations", "At least one location is required")
        return None

    locations = []
    for index, item in enumerate(raw):
        prefix = f"locations[{index}]"
        if not isinstance(item, dict):
            errors.add(prefix, "Must be an object")
            continue
        loc = {
            "country_id": parse_positive_int(item.get("countryId")),
            "region_id": None,
            "city_id": None,
        }
        if loc["country_id"] is None:
            errors.add(f"{prefix}.countryId", "Country is required")
        for key, attr in (("regionId", "region_id"), ("cityId", "city_id")):
            value = item.get(key)
            if value in (None, ""):
                continue
            loc[attr] = parse_positive_int(value)
            if loc[attr] is None:
                errors.add(f"{prefix}.{key}", f"Invalid id: {value!r}")
        if loc["city_id"] is not None and loc["region_id"] is None and item.get("regionId") in (None, ""):
            errors.add(f"{prefix}.regionId", "A city requires a region")

        bad_date = False
        for key, attr in (("dateStart", "date_start"), ("dateEnd", "date_end")):
            try:
                loc[attr] = parse_date_input(item.get(key))
            except ValueError as exc:
                errors.add(f"{prefix}.{key}", str(exc))
                bad_date = True
        if bad_date:
            continue
        if loc["date_start"] is None:
            errors.add(f"{prefix}.dateStart", "Start date is required")
        elif loc["date_end"] is not None and loc["date_end"] < loc["date_start"]:
            errors.add(f"{prefix}.dateEnd", "End date must not be before start date")
        locations.append(loc)
    return locations


def _check_references(collections: dict, errors: _Errors) -> None:
    """Every id must exist with the right category and place in the hierarchy."""
    wanted = set()
    for loc in collections.get("locations") or []:
        wanted.update(v for v in (loc["country_id"], loc["region_id"], loc["city_id"]) if v)
    for assoc in ASSOCIATIONS:
        wanted.update(collections.get(assoc.key) or [])
    if not wanted:
        return

    items = {
        item.id: item
        for item in ReferenceItem.query.filter(ReferenceItem.id.in_(sorted(wanted))).all()
    }

    def expect(field, ref_id, category):
        item = items.get(ref_id)
        if item is None:
            errors.add(field, f"Reference item {ref_id} does not exist")
            return None
        if item.category != category:
            errors.add(field, f"Reference item {ref_id} is not a {category.value}")
            return None
        return item

    for index, loc in enumerate(collections.get("locations") or []):
        prefix = f"locations[{index}]"
        if loc["country_id"]:
            expect(f"{prefix}.countryId", loc["country_id"], ReferenceCategory.COUNTRY)
        if loc["region_id"]:
            region = expect(f"{prefix}.regionId", loc["region_id"], ReferenceCategory.REGION)
            if region is not None and region.parent_id != loc["country_id"]:
                errors.add(f"{prefix}.regionId", "Region does not belong to the selected country")
        if loc["city_id"]:
            city = expect(f"{prefix}.cityId", loc["city_id"], ReferenceCategory.CITY)
            if city is not None and loc["region_id"] and city.parent_id != loc["region_id"]:
                errors.add(f"{prefix}.cityId", "City does not belong to the selected region")

    for assoc in ASSOCIATIONS:
        for ref_id in collections.get(assoc.key) or []:
            expect(assoc.key, ref_id, assoc.category)


def _clean_collections(data: dict, errors: _Errors, *, creating: bool) -> dict:
    """Validate the collections present in ``data`` (all are required on create)."""
    collections = {}
    for key in _COLLECTION_KEYS:
        if key not in data:
            if creating:
                errors.add(key, "At least one entry is required")
            continue
        if key == "locations":
            collections[key] = _clean_locations(data[key], errors)
        else:
            collections[key] = _clean_id_list(key, data[key], errors)
    _check_references(collections, errors)
    return collections


# ═════════════════════════════════════════════════════════════════════════════
# Children
# ═════════════════════════════════════════════════════════════════════════════

def _current_collections(activity: Activity) -> dict:
    current = {
        "locations": [
            {
                "country_id": loc.country_id,
                "region_id": loc.region_id,
                "city_id": loc.city_id,
                "date_start": loc.date_start,
                "date_end": loc.date_end,
            }
            for loc in activity.locations
        ],
    }
    for assoc in ASSOCIATIONS:
        current[assoc.key] = [link.reference_id for link in getattr(activity, assoc.attr)]
    return current


def _apply_derived_dates(activity: Activity, locations: list) -> None:
    starts = [loc["date_start"] for loc in locations if loc["date_start"]]
    ends = [loc["date_end"] for loc in locations if loc["date_end"]]
    activity.activity_start_date = min(starts) if starts else None
    activity.activity_end_date = max(ends) if ends else None


def _replace_children(activity: Activity, collections: dict, *, clear_existing: bool) -> None:
    """Delete every child row of ``activity`` and recreate it from ``collections``.

    Old rows are flushed out before new ones are added so the per-activity
    unique constraints never see both generations at once.
    """
    if clear_existing:
        activity.locations.clear()
        for assoc in ASSOCIATIONS:
            getattr(activity, assoc.attr).clear()
        db.session.flush()

    for loc in collections["locations"]:
        activity.locations.append(ActivityLocation(**loc))
    for assoc in ASSOCIATIONS:
        links = getattr(activity, assoc.attr)
        for ref_id in collections[assoc.key]:
            links.append(assoc.model(reference_id=ref_id))

    _apply_derived_dates(activity, collections["locations"])


# ═════════════════════════════════════════════════════════════════════════════
# Notification
# ═════════════════════════════════════════════════════════════════════════════

def _location_label(activity: Activity) -> str:
    if not activity.locations:
        return ""
    loc = activity.locations[0]
    parts = [ref.name for ref in (loc.city, loc.region, loc.country) if ref is not None]
    return ", ".join(parts)


def build_created_event(activity: Activity) -> ActivityCreated:
    """Resolve everything the notification handlers need up front."""
    managers = (
        User.query
        .join(ProjectMember, ProjectMember.user_id == User.id)
        .filter(
            ProjectMember.project_id == activity.project_id,
            User.role == ROLE_MANAGER,
            User.status == STATUS_ACTIVE,
            User.id != activity.created_by_id,
        )
        .order_by(User.id)
        .all()
    )
    return ActivityCreated(
        activity_id=activity.id,
        activity_title=activity.activity_title,
        project_id=activity.project_id,
        project_name=activity.project.name if activity.project else "",
        created_by_name=activity.created_by.name if activity.created_by else "",
        activity_date=activity.activity_start_date.isoformat() if activity.activity_start_date else "",
        location=_location_label(activity),
        participant_count=activity.total_participants,
        status=activity.status,
        recipients=tuple(Recipient(email=u.email, name=u.name) for u in managers),
    )


def _notify_created(activity: Activity) -> None:
    try:
        dispatcher.publish(build_created_event(activity))
    except Exception:
        # the activity is committed; a notification problem must not surface
        logger.exception("Failed to publish ActivityCreated for %s", activity.id,
                         extra={"activity_id": activity.id})


# ═════════════════════════════════════════════════════════════════════════════
# Operations
# ═════════════════════════════════════════════════════════════════════════════

def _load(activity_id) -> Activity:
    activity = db.session.get(Activity, activity_id)
    if activity is None:
        raise NotFoundError("Activity", activity_id)
    return activity


def _resolve_project(raw_project_id, user, errors: _Errors):
    project_id = parse_positive_int(raw_project_id)
    if project_id is None:
        errors.add("projectId", "A valid project is required")
        return None
    require_project_access(user, project_id)
    if db.session.get(Project, project_id) is None:
        errors.add("projectId", f"Project {project_id} does not exist")
        return None
    return project_id


def create_activity(data: dict, creator) -> dict:
    """Validate and persist a new activity with all its children."""
    errors = _Errors()
    project_id = _resolve_project(data.get("projectId"), creator, errors)

    status = data.get("status") or STATUS_DRAFT
    if status not in INITIAL_STATUSES:
        errors.add("status", "Initial status must be DRAFT or SUBMITTED")

    scalars = _clean_scalars(data, errors, creating=True)
    collections = _clean_collections(data, errors, creating=True)
    errors.raise_if_any()

    activity = Activity(
        project_id=project_id,
        created_by_id=creator.id,
        status=status,
        **scalars,
    )
    db.session.add(activity)
    try:
        _replace_children(activity, collections, clear_existing=False)
        db.session.flush()
        write_audit(
            entity_type="activity",
            entity_id=activity.id,
            action="create",
            actor_user_id=creator.id,
            project_id=project_id,
            diff={"activity_title": activity.activity_title, "status": status},
        )
    except Exception:
        db.session.rollback()
        raise
    commit_or_rollback()

    logger.info("Activity %s created by user %d in project %d", activity.id, creator.id, project_id,
                extra={"activity_id": activity.id, "user_id": creator.id, "project_id": project_id})
    _notify_created(activity)
    return activity.to_dict()


def update_activity(activity_id, data: dict, caller) -> dict:
    """Patch scalar fields and replace all child collections in one transaction."""
    activity = _load(activity_id)
    check_edit_allowed(activity, caller)

    errors = _Errors()
    new_project_id = None
    if "projectId" in data:
        new_project_id = _resolve_project(data.get("projectId"), caller, errors)

    scalars = _clean_scalars(data, errors, creating=False)
    supplied = _clean_collections(data, errors, creating=False)
    errors.raise_if_any()

    collections = _current_collections(activity)
    collections.update(supplied)

    diff = {}
    for attr, value in scalars.items():
        old = getattr(activity, attr)
        if old != value:
            diff[attr] = {"old": old, "new": value}
    if new_project_id is not None and new_project_id != activity.project_id:
        diff["project_id"] = {"old": activity.project_id, "new": new_project_id}
    if supplied:
        diff["replaced"] = sorted(supplied)

    try:
        for attr, value in scalars.items():
            setattr(activity, attr, value)
        if new_project_id is not None:
            activity.project_id = new_project_id
        _replace_children(activity, collections, clear_existing=True)
        activity.updated_at = datetime.now(timezone.utc)
        write_audit(
            entity_type="activity",
            entity_id=activity.id,
            action="update",
            actor_user_id=caller.id,
            project_id=activity.project_id,
            diff=diff,
        )
    except Exception:
        db.session.rollback()
        raise
    commit_or_rollback()

    logger.info("Activity %s updated by user %d", activity.id, caller.id,
                extra={"activity_id": activity.id, "user_id": caller.id})
    return activity.to_dict()


def get_activity(activity_id) -> dict:
    return _load(activity_id).to_dict()


def delete_activity(activity_id, caller) -> None:
    """Hard delete; ADMIN only. Child rows go with it."""
    check_delete_allowed(caller)
    activity = _load(activity_id)
    write_audit(
        entity_type="activity",
        entity_id=activity.id,
        action="delete",
        actor_user_id=caller.id,
        project_id=activity.project_id,
        diff={"activity_title": activity.activity_title, "status": activity.status},
    )
    db.session.delete(activity)
    commit_or_rollback()
    logger.info("Activity %s deleted by user %d", activity_id, caller.id,
                extra={"activity_id": activity_id, "user_id": caller.id})
