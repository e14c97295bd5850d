"""
Project service — project CRUD and membership management.

Projects are visible to ADMIN (all) and to their members. Writes are ADMIN
only and gated in the blueprint. A project with activities cannot be
deleted; its memberships and finance records are removed with it.
"""

import logging
import re

from tracker.core.exceptions import (
    AuthorizationError,
    ConflictError,
    DependencyConflictError,
    NotFoundError,
    ValidationError,
)
from tracker.models import db
from tracker.models.audit import write_audit
from tracker.models.auth import ProjectMember, User
from tracker.models.project import Project
from tracker.services.scope_resolver import can_access_project, member_project_ids
from tracker.utils.helpers import commit_or_rollback, parse_positive_int

logger = logging.getLogger(__name__)

_SLUG_RE = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")


def slugify(value: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", value.lower()).strip("-")
    return slug[:100]


def _get(project_id) -> Project:
    project = db.session.get(Project, project_id)
    if project is None:
        raise NotFoundError("Project", project_id)
    return project


def list_projects(user) -> list[dict]:
    q = Project.query
    if not user.is_admin:
        ids = member_project_ids(user.id)
        if not ids:
            return []
        q = q.filter(Project.id.in_(sorted(ids)))
    return [p.to_dict(include_counts=True) for p in q.order_by(Project.name.asc()).all()]


def get_project(project_id, user) -> dict:
    project = _get(project_id)
    if not can_access_project(user, project.id):
        raise AuthorizationError("Access denied")
    return project.to_dict(include_counts=True, include_members=True)


# ── Validation ───────────────────────────────────────────────────────────────

def _clean(data: dict, *, creating: bool) -> dict:
    cleaned = {}
    if "name" in data or creating:
        name = data.get("name")
        if not isinstance(name, str) or not name.strip():
            raise ValidationError.for_field("name", "Name is required")
        cleaned["name"] = name.strip()[:200]

    if data.get("slug") not in (None, ""):
        slug = str(data["slug"]).strip().lower()
        if not _SLUG_RE.match(slug):
            raise ValidationError.for_field("slug", "Slug may only contain a-z, 0-9 and single hyphens")
        cleaned["slug"] = slug
    elif creating:
        cleaned["slug"] = slugify(cleaned["name"])
        if not cleaned["slug"]:
            raise ValidationError.for_field("slug", "Slug is required")

    if "description" in data:
        cleaned["description"] = data.get("description") or None
    if "isActive" in data:
        if not isinstance(data["isActive"], bool):
            raise ValidationError.for_field("isActive", "Must be true or false")
        cleaned["is_active"] = data["isActive"]
    return cleaned


def _ensure_unique_slug(slug, exclude_id=None):
    q = Project.query.filter(Project.slug == slug)
    if exclude_id is not None:
        q = q.filter(Project.id != exclude_id)
    if q.first() is not None:
        raise ConflictError("Project", "slug", slug)


# ── Writes ───────────────────────────────────────────────────────────────────

def create_project(data: dict, actor) -> dict:
    cleaned = _clean(data, creating=True)
    _ensure_unique_slug(cleaned["slug"])
    project = Project(**cleaned)
    db.session.add(project)
    db.session.flush()
    write_audit(
        entity_type="project", entity_id=project.id, action="create",
        actor_user_id=actor.id, project_id=project.id,
        diff={"name": project.name, "slug": project.slug},
    )
    commit_or_rollback()
    logger.info("Project %s created (id=%d)", project.slug, project.id)
    return project.to_dict(include_counts=True)


def update_project(project_id, data: dict, actor) -> dict:
    project = _get(project_id)
    cleaned = _clean(data, creating=False)
    if "slug" in cleaned and cleaned["slug"] != project.slug:
        _ensure_unique_slug(cleaned["slug"], exclude_id=project.id)

    diff = {}
    for attr, value in cleaned.items():
        old = getattr(project, attr)
        if old != value:
            diff[attr] = {"old": old, "new": value}
            setattr(project, attr, value)
    write_audit(
        entity_type="project", entity_id=project.id, action="update",
        actor_user_id=actor.id, project_id=project.id, diff=diff,
    )
    commit_or_rollback()
    return project.to_dict(include_counts=True)


def delete_project(project_id, actor) -> None:
    project = _get(project_id)
    activity_count = project.activities.count()
    if activity_count:
        raise DependencyConflictError(
            "Project",
            f"Cannot delete project with {activity_count} activities. Delete or move them first.",
            details=[{"field": "activities", "message": str(activity_count)}],
        )
    write_audit(
        entity_type="project", entity_id=project.id, action="delete",
        actor_user_id=actor.id, diff={"name": project.name, "slug": project.slug},
    )
    db.session.delete(project)
    commit_or_rollback()
    logger.info("Project %s deleted (id=%s)", project.slug, project_id)


def add_member(project_id, data: dict, actor) -> dict:
    project = _get(project_id)
    user_id = parse_positive_int(data.get("userId"))
    if user_id is None:
        raise ValidationError.for_field("userId", "userId is required")
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError("User", user_id)
    if ProjectMember.query.filter_by(project_id=project.id, user_id=user.id).first():
        raise ConflictError("Project member", "userId", str(user.id))

    member = ProjectMember(project_id=project.id, user_id=user.id)
    db.session.add(member)
    db.session.flush()
    write_audit(
        entity_type="project", entity_id=project.id, action="update",
        actor_user_id=actor.id, project_id=project.id, diff={"member_added": user.id},
    )
    commit_or_rollback()
    return member.to_dict()


def remove_member(project_id, user_id, actor) -> None:
    project = _get(project_id)
    member = ProjectMember.query.filter_by(project_id=project.id, user_id=user_id).first()
    if member is None:
        raise NotFoundError("Project member", user_id)
    db.session.delete(member)
    write_audit(
        entity_type="project", entity_id=project.id, action="update",
        actor_user_id=actor.id, project_id=project.id, diff={"member_removed": user_id},
    )
    commit_or_rollback()
