"""
Reference catalog service — CRUD over ``ReferenceItem`` per category.

Geographic items form a strict hierarchy (country → region → city) through
``parent_id``; every other category is flat. Deleting an item is refused
while anything still points at it: child items, activity locations, or
activity associations.
"""

import logging

from sqlalchemy import func, or_

from tracker.core.exceptions import (
    ConflictError,
    DependencyConflictError,
    NotFoundError,
    ValidationError,
)
from tracker.models import db
from tracker.models.activity import ASSOCIATIONS, ActivityLocation
from tracker.models.audit import write_audit
from tracker.models.reference import PARENT_CATEGORY, ReferenceCategory, ReferenceItem
from tracker.utils.helpers import commit_or_rollback, parse_positive_int

logger = logging.getLogger(__name__)

NAME_MAX = 200


def parse_category(raw) -> ReferenceCategory:
    category = ReferenceCategory.parse(raw)
    if category is None:
        raise ValidationError.for_field("category", f"Invalid category: {raw}")
    return category


def list_items(category, parent_id=None) -> list[dict]:
    """All items of ``category``, name-ordered; optionally one parent's children."""
    category = parse_category(category)
    q = ReferenceItem.query.filter_by(category=category)
    if parent_id is not None:
        q = q.filter_by(parent_id=parent_id)
    return [item.to_dict() for item in q.order_by(ReferenceItem.name.asc()).all()]


def _get(category: ReferenceCategory, item_id) -> ReferenceItem:
    item = db.session.get(ReferenceItem, item_id)
    if item is None or item.category != category:
        raise NotFoundError("Reference item", item_id)
    return item


def get_item(category, item_id) -> dict:
    return _get(parse_category(category), item_id).to_dict()


def list_children(parent_id) -> list[dict]:
    parent = db.session.get(ReferenceItem, parent_id)
    if parent is None:
        raise NotFoundError("Reference item", parent_id)
    children = parent.children.order_by(ReferenceItem.name.asc()).all()
    return [child.to_dict() for child in children]


# ── Validation ───────────────────────────────────────────────────────────────

def _clean_name(data: dict, *, required: bool):
    if "name" not in data and not required:
        return None
    name = data.get("name")
    if not isinstance(name, str) or not name.strip():
        raise ValidationError.for_field("name", "Name is required and must be non-empty")
    name = name.strip()
    if len(name) > NAME_MAX:
        raise ValidationError.for_field("name", f"Name must be at most {NAME_MAX} characters")
    return name


def _clean_parent(category: ReferenceCategory, data: dict, *, required: bool):
    """Resolve ``parentId`` against the category's logical parent."""
    expected = PARENT_CATEGORY.get(category)
    raw = data.get("parentId")
    if raw in (None, ""):
        if expected is not None and required:
            raise ValidationError.for_field(
                "parentId", f"A {category.value} requires a parent {expected.value}",
            )
        return None
    if expected is None:
        raise ValidationError.for_field("parentId", f"A {category.value} cannot have a parent")
    parent_id = parse_positive_int(raw)
    parent = db.session.get(ReferenceItem, parent_id) if parent_id else None
    if parent is None:
        raise ValidationError.for_field("parentId", "Parent item does not exist")
    if parent.category != expected:
        raise ValidationError.for_field(
            "parentId", f"Parent of a {category.value} must be a {expected.value}",
        )
    return parent.id


def _ensure_unique_name(category: ReferenceCategory, name: str, exclude_id=None):
    q = ReferenceItem.query.filter(
        ReferenceItem.category == category,
        func.lower(ReferenceItem.name) == name.lower(),
    )
    if exclude_id is not None:
        q = q.filter(ReferenceItem.id != exclude_id)
    if q.first() is not None:
        raise ConflictError("Reference item", "name", name)


# ── Writes ───────────────────────────────────────────────────────────────────

def create_item(category, data: dict, actor) -> dict:
    category = parse_category(category)
    name = _clean_name(data, required=True)
    parent_id = _clean_parent(category, data, required=True)
    _ensure_unique_name(category, name)

    item = ReferenceItem(
        category=category,
        name=name,
        description=(data.get("description") or None),
        parent_id=parent_id,
    )
    db.session.add(item)
    db.session.flush()
    write_audit(
        entity_type="reference_item", entity_id=item.id, action="create",
        actor_user_id=actor.id, diff={"category": category.value, "name": name},
    )
    commit_or_rollback()
    logger.info("Reference item %s/%s created (id=%d)", category.value, name, item.id)
    return item.to_dict()


def update_item(category, item_id, data: dict, actor) -> dict:
    category = parse_category(category)
    item = _get(category, item_id)

    diff = {}
    name = _clean_name(data, required=False)
    if name is not None and name != item.name:
        _ensure_unique_name(category, name, exclude_id=item.id)
        diff["name"] = {"old": item.name, "new": name}
        item.name = name
    if "description" in data:
        description = data.get("description") or None
        if description != item.description:
            diff["description"] = {"old": item.description, "new": description}
            item.description = description
    if "parentId" in data:
        parent_id = _clean_parent(category, data, required=True)
        if parent_id != item.parent_id:
            diff["parent_id"] = {"old": item.parent_id, "new": parent_id}
            item.parent_id = parent_id

    write_audit(
        entity_type="reference_item", entity_id=item.id, action="update",
        actor_user_id=actor.id, diff=diff,
    )
    commit_or_rollback()
    return item.to_dict()


def usage_count(item_id: int) -> int:
    """How many activity locations and association rows reference the item."""
    total = ActivityLocation.query.filter(
        or_(
            ActivityLocation.country_id == item_id,
            ActivityLocation.region_id == item_id,
            ActivityLocation.city_id == item_id,
        )
    ).count()
    for assoc in ASSOCIATIONS:
        total += assoc.model.query.filter_by(reference_id=item_id).count()
    return total


def delete_item(category, item_id, actor) -> None:
    category = parse_category(category)
    item = _get(category, item_id)

    child_count = item.children.count()
    if child_count:
        raise DependencyConflictError(
            "Reference item",
            f"Cannot delete '{item.name}': it has {child_count} child item(s)",
            details=[{"field": "children", "message": str(child_count)}],
        )
    in_use = usage_count(item.id)
    if in_use:
        raise DependencyConflictError(
            "Reference item",
            f"Cannot delete '{item.name}': it is used by {in_use} activity record(s)",
            details=[{"field": "usage", "message": str(in_use)}],
        )

    write_audit(
        entity_type="reference_item", entity_id=item.id, action="delete",
        actor_user_id=actor.id, diff={"category": category.value, "name": item.name},
    )
    db.session.delete(item)
    commit_or_rollback()
    logger.info("Reference item %s/%s deleted (id=%s)", category.value, item.name, item_id)
