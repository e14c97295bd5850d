"""
Authorization scope resolver — which rows a caller may read.

Every role-dependent read goes through here, so list endpoints and the
dashboard never branch on role themselves:

    ADMIN    → everything
    MANAGER  → rows of projects the user is a member of (none → no rows)
    FIELD    → rows the user created

Usage:
    scope = resolve_scope(g.current_user)
    query = Activity.query.filter(scope.clause(Activity))
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import sqlalchemy as sa

from tracker.core.exceptions import AuthorizationError
from tracker.models.auth import ROLE_ADMIN, ROLE_FIELD, ROLE_MANAGER, ProjectMember

logger = logging.getLogger(__name__)

SCOPE_ALL = "all"
SCOPE_PROJECTS = "projects"
SCOPE_OWN = "own"


@dataclass(frozen=True)
class ActivityScope:
    """Resolved read scope for one caller.

    ``clause(model)`` works against any model with a ``project_id`` column;
    OWN scopes also need ``created_by_id``.
    """

    kind: str
    user_id: int
    project_ids: frozenset = field(default_factory=frozenset)

    def clause(self, model):
        if self.kind == SCOPE_ALL:
            return sa.true()
        if self.kind == SCOPE_OWN:
            return model.created_by_id == self.user_id
        if not self.project_ids:
            return sa.false()
        return model.project_id.in_(sorted(self.project_ids))

    @property
    def is_empty(self) -> bool:
        """True when the scope can never match a row."""
        return self.kind == SCOPE_PROJECTS and not self.project_ids


def member_project_ids(user_id: int) -> frozenset:
    rows = ProjectMember.query.with_entities(ProjectMember.project_id).filter_by(user_id=user_id).all()
    return frozenset(r.project_id for r in rows)


def resolve_scope(user) -> ActivityScope:
    """Build the activity read scope for ``user``."""
    if user.role == ROLE_ADMIN:
        return ActivityScope(SCOPE_ALL, user.id)
    if user.role == ROLE_MANAGER:
        project_ids = member_project_ids(user.id)
        if not project_ids:
            logger.debug("Manager %d has no project memberships; scope is empty", user.id)
        return ActivityScope(SCOPE_PROJECTS, user.id, project_ids)
    if user.role == ROLE_FIELD:
        return ActivityScope(SCOPE_OWN, user.id)
    # unknown roles see nothing
    logger.warning("User %d has unknown role %r", user.id, user.role)
    return ActivityScope(SCOPE_PROJECTS, user.id)


def resolve_finance_scope(user) -> ActivityScope:
    """Finance is visible to ADMIN (all) and MANAGER (member projects) only."""
    if user.role == ROLE_ADMIN:
        return ActivityScope(SCOPE_ALL, user.id)
    if user.role == ROLE_MANAGER:
        return ActivityScope(SCOPE_PROJECTS, user.id, member_project_ids(user.id))
    raise AuthorizationError("Insufficient permissions")


def can_access_project(user, project_id) -> bool:
    """ADMIN always; everyone else by membership."""
    if user.role == ROLE_ADMIN:
        return True
    if project_id is None:
        return False
    return (
        ProjectMember.query
        .filter_by(user_id=user.id, project_id=project_id)
        .first()
        is not None
    )


def require_project_access(user, project_id, message="You don't have access to this project") -> None:
    if not can_access_project(user, project_id):
        raise AuthorizationError(message)
