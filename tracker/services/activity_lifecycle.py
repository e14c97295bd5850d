"""
Activity Lifecycle Service

Manages activity status transitions with:
  - Transition validation (ACTIVITY_TRANSITIONS)
  - Role / ownership guards
  - Side effects (reviewer id, rejection reason)
  - Audit trail via write_audit

3 valid transitions:
  submit    DRAFT | REJECTED → SUBMITTED
  validate  SUBMITTED        → VALIDATED
  reject    SUBMITTED        → REJECTED   (reason required)

Checks run in a fixed order: role guard (403), existence (404), payload
(400 ValidationError), current state (400 TransitionError). A failed
check leaves the activity untouched.

Usage:
    from tracker.services.activity_lifecycle import transition_activity

    result = transition_activity(activity_id, "reject", user, rejection_reason="Missing evidence")
"""

import logging

from tracker.core.exceptions import (
    AuthorizationError,
    NotFoundError,
    TransitionError,
    ValidationError,
)
from tracker.models import db
from tracker.models.activity import (
    ACTIVITY_TRANSITIONS,
    STATUS_REJECTED,
    STATUS_VALIDATED,
    Activity,
)
from tracker.models.audit import write_audit
from tracker.models.auth import REVIEWER_ROLES, ROLE_ADMIN, ROLE_FIELD, ROLE_MANAGER
from tracker.services.scope_resolver import can_access_project
from tracker.utils.helpers import commit_or_rollback

logger = logging.getLogger(__name__)

# Actions gated purely on role, checked before the activity is loaded
_ACTION_ROLES = {
    "validate": REVIEWER_ROLES,
    "reject": REVIEWER_ROLES,
}

# Review decision in the validate endpoint body → lifecycle action
REVIEW_DECISIONS = {
    STATUS_VALIDATED: "validate",
    STATUS_REJECTED: "reject",
}


# ── Guards ───────────────────────────────────────────────────────────────────

def can_submit(activity: Activity, user) -> bool:
    """Creator, any ADMIN, or a MANAGER who is a member of the activity's project."""
    if user.role == ROLE_ADMIN or activity.created_by_id == user.id:
        return True
    return user.role == ROLE_MANAGER and can_access_project(user, activity.project_id)


def check_edit_allowed(activity: Activity, user) -> None:
    """Raise AuthorizationError unless ``user`` may edit ``activity``.

    VALIDATED activities are frozen for everyone but ADMIN; FIELD users
    only ever edit their own.
    """
    if activity.status == STATUS_VALIDATED and user.role != ROLE_ADMIN:
        raise AuthorizationError("Validated activities can only be edited by an administrator")
    if user.role == ROLE_FIELD and activity.created_by_id != user.id:
        raise AuthorizationError("You can only edit your own activities")
    if user.role == ROLE_MANAGER and not (
        activity.created_by_id == user.id or can_access_project(user, activity.project_id)
    ):
        raise AuthorizationError("You don't have access to this project")


def check_delete_allowed(user) -> None:
    if user.role != ROLE_ADMIN:
        raise AuthorizationError("Only administrators can delete activities")


def validate_transition(activity: Activity, action: str) -> dict:
    """
    Check whether ``action`` is valid for the activity's current state.

    Returns:
        {"valid": bool, "from": str, "to": str|None, "reason": str|None}
    """
    rule = ACTIVITY_TRANSITIONS.get(action)
    if not rule:
        return {"valid": False, "from": activity.status, "to": None,
                "reason": f"Unknown action: {action}"}
    if activity.status not in rule["from"]:
        return {"valid": False, "from": activity.status, "to": rule["to"],
                "reason": f"Cannot '{action}' from status '{activity.status}'"}
    return {"valid": True, "from": activity.status, "to": rule["to"], "reason": None}


# ── Transition ───────────────────────────────────────────────────────────────

def transition_activity(activity_id: str, action: str, user, *, rejection_reason=None) -> dict:
    """
    Execute an activity lifecycle transition and commit it.

    Args:
        activity_id: UUID of the activity
        action: "submit" | "validate" | "reject"
        user: the authenticated caller
        rejection_reason: required (non-blank) for "reject"

    Returns:
        The hydrated activity dict after the transition.
    """
    if action not in ACTIVITY_TRANSITIONS:
        raise ValidationError.for_field("action", f"Unknown action: {action}")

    required_roles = _ACTION_ROLES.get(action)
    if required_roles and user.role not in required_roles:
        raise AuthorizationError("Only managers and administrators can review activities")

    activity = db.session.get(Activity, activity_id)
    if activity is None:
        raise NotFoundError("Activity", activity_id)

    if action == "submit" and not can_submit(activity, user):
        raise AuthorizationError("You cannot submit this activity")

    reason = None
    if action == "reject":
        if rejection_reason is not None and not isinstance(rejection_reason, str):
            raise ValidationError.for_field("rejectionReason", "Rejection reason must be text")
        reason = (rejection_reason or "").strip()
        if not reason:
            raise ValidationError.for_field("rejectionReason", "Rejection reason is required")

    check = validate_transition(activity, action)
    if not check["valid"]:
        raise TransitionError(action, activity.status, ACTIVITY_TRANSITIONS[action]["from"])

    old_status = activity.status
    activity.status = check["to"]
    if action == "submit":
        activity.rejection_reason = None
        activity.validated_by_id = None
    elif action == "validate":
        activity.rejection_reason = None
        activity.validated_by_id = user.id
    else:
        activity.rejection_reason = reason
        activity.validated_by_id = user.id

    diff = {"status": {"old": old_status, "new": activity.status}}
    if reason:
        diff["rejection_reason"] = reason
    write_audit(
        entity_type="activity",
        entity_id=activity.id,
        action=f"activity.{action}",
        actor_user_id=user.id,
        project_id=activity.project_id,
        diff=diff,
    )
    commit_or_rollback()

    logger.info(
        "Activity %s: %s → %s by user %d", activity.id, old_status, activity.status, user.id,
        extra={"activity_id": activity.id, "user_id": user.id, "project_id": activity.project_id},
    )
    return activity.to_dict()


def review_activity(activity_id: str, decision, user, *, rejection_reason=None) -> dict:
    """Apply a reviewer's VALIDATED/REJECTED decision."""
    if user.role not in REVIEWER_ROLES:
        raise AuthorizationError("Only managers and administrators can review activities")
    action = REVIEW_DECISIONS.get(decision) if isinstance(decision, str) else None
    if action is None:
        if db.session.get(Activity, activity_id) is None:
            raise NotFoundError("Activity", activity_id)
        raise ValidationError.for_field("status", "status must be VALIDATED or REJECTED")
    return transition_activity(activity_id, action, user, rejection_reason=rejection_reason)
