"""
User Service — login, invitation flow, CRUD and role management.

Invariants kept here:
  - at least one ACTIVE ADMIN exists at all times (role change, status
    change and delete are all checked)
  - users who created activities are deactivated, never deleted
"""

import logging
from datetime import datetime, timedelta, timezone

from email_validator import EmailNotValidError, validate_email
from flask import current_app

from tracker.core.exceptions import (
    AuthenticationError,
    ConflictError,
    DependencyConflictError,
    NotFoundError,
    ValidationError,
)
from tracker.models import db
from tracker.models.activity import Activity
from tracker.models.audit import write_audit
from tracker.models.auth import (
    ROLE_ADMIN,
    ROLES,
    STATUS_ACTIVE,
    STATUS_INVITED,
    USER_STATUSES,
    ProjectMember,
    User,
)
from tracker.models.project import Project
from tracker.services.email_service import send_invitation_email
from tracker.utils.crypto import generate_invitation_token, hash_password, verify_password
from tracker.utils.helpers import commit_or_rollback, parse_positive_int

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8


def _utcnow():
    return datetime.now(timezone.utc)


def _as_aware(value):
    # SQLite hands back naive datetimes even for timezone=True columns
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def normalize_email(email) -> str:
    if not isinstance(email, str) or not email.strip():
        raise ValidationError.for_field("email", "Email is required")
    try:
        valid = validate_email(email.strip(), check_deliverability=False)
    except EmailNotValidError as e:
        raise ValidationError.for_field("email", f"Invalid email: {e}")
    return valid.normalized.lower()


def _get(user_id) -> User:
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError("User", user_id)
    return user


# ═══════════════════════════════════════════════════════════════
# Login
# ═══════════════════════════════════════════════════════════════
def authenticate(email, password) -> User:
    """Return the ACTIVE user matching the credentials, or AuthenticationError."""
    if not email or not password:
        raise ValidationError("Email and password are required", details=[
            {"field": "email" if not email else "password", "message": "Required"},
        ])
    try:
        email = normalize_email(email)
    except ValidationError:
        raise AuthenticationError("Invalid email or password")

    user = User.query.filter_by(email=email).first()
    if user is None or not verify_password(password, user.password_hash):
        logger.info("Failed login for %s", email)
        raise AuthenticationError("Invalid email or password")
    if user.status != STATUS_ACTIVE:
        raise AuthenticationError("Account is not active")

    user.last_login_at = _utcnow()
    commit_or_rollback()
    logger.info("User %d logged in", user.id, extra={"user_id": user.id})
    return user


# ═══════════════════════════════════════════════════════════════
# Invariant helpers
# ═══════════════════════════════════════════════════════════════
def _other_active_admins(user_id) -> int:
    return User.query.filter(
        User.role == ROLE_ADMIN,
        User.status == STATUS_ACTIVE,
        User.id != user_id,
    ).count()


def _guard_last_admin(user: User, *, new_role=None, new_status=None, deleting=False) -> None:
    if not (user.role == ROLE_ADMIN and user.status == STATUS_ACTIVE):
        return
    stays_admin = (
        not deleting
        and (new_role or user.role) == ROLE_ADMIN
        and (new_status or user.status) == STATUS_ACTIVE
    )
    if stays_admin or _other_active_admins(user.id):
        return
    if deleting:
        message = "Cannot delete the last active administrator"
    elif new_role and new_role != ROLE_ADMIN:
        message = "Cannot demote the last active administrator"
    else:
        message = "Cannot deactivate the last active administrator"
    raise DependencyConflictError("User", message, details=[{"field": "role", "message": message}])


def _clean_project_ids(raw) -> list[int]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ValidationError.for_field("projects", "Must be a list of project ids")
    ids = []
    for value in raw:
        project_id = parse_positive_int(value)
        if project_id is None:
            raise ValidationError.for_field("projects", f"Invalid project id: {value!r}")
        if project_id not in ids:
            ids.append(project_id)
    if ids:
        found = {p.id for p in Project.query.filter(Project.id.in_(ids)).all()}
        missing = [pid for pid in ids if pid not in found]
        if missing:
            raise ValidationError.for_field("projects", f"Unknown project id(s): {missing}")
    return ids


def _set_memberships(user: User, project_ids: list[int]) -> None:
    current = {m.project_id: m for m in user.project_memberships.all()}
    for project_id, membership in current.items():
        if project_id not in project_ids:
            db.session.delete(membership)
    for project_id in project_ids:
        if project_id not in current:
            db.session.add(ProjectMember(project_id=project_id, user_id=user.id))


# ═══════════════════════════════════════════════════════════════
# User CRUD
# ═══════════════════════════════════════════════════════════════
def list_users() -> list[dict]:
    users = User.query.order_by(User.created_at.desc(), User.id.desc()).all()
    return [u.to_dict(include_projects=True) for u in users]


def _issue_invitation(user: User) -> None:
    days = current_app.config.get("INVITATION_EXPIRES_DAYS", 7)
    user.invitation_token = generate_invitation_token()
    user.invitation_expires_at = _utcnow() + timedelta(days=days)


def _send_invitation(user: User, actor) -> bool:
    return send_invitation_email(
        recipient_email=user.email,
        recipient_name=user.name,
        invitation_token=user.invitation_token,
        role=user.role,
        invited_by=actor.name or "An administrator",
    )


def invite_user(data: dict, actor) -> dict:
    """Create an INVITED user with a 7-day token and email the link (best-effort)."""
    email = normalize_email(data.get("email"))
    name = data.get("name")
    if not isinstance(name, str) or not name.strip():
        raise ValidationError.for_field("name", "Name is required")
    role = data.get("role")
    if role not in ROLES:
        raise ValidationError.for_field("role", f"Role must be one of {', '.join(ROLES)}")
    project_ids = _clean_project_ids(data.get("projects"))

    if User.query.filter_by(email=email).first() is not None:
        raise ConflictError("User", "email", email)

    user = User(email=email, name=name.strip()[:100], role=role, status=STATUS_INVITED)
    _issue_invitation(user)
    db.session.add(user)
    db.session.flush()
    _set_memberships(user, project_ids)
    write_audit(
        entity_type="user", entity_id=user.id, action="create", actor_user_id=actor.id,
        diff={"email": email, "role": role, "projects": project_ids},
    )
    commit_or_rollback()
    logger.info("User %s invited as %s by %d", email, role, actor.id)

    email_sent = _send_invitation(user, actor)
    return {
        "user": user.to_dict(include_projects=True),
        "invitationLink": f"/accept-invitation?token={user.invitation_token}",
        "emailSent": email_sent,
    }


def accept_invitation(data: dict) -> dict:
    token = data.get("token")
    password = data.get("password")
    if not token or not password:
        raise ValidationError("Token and password are required", details=[
            {"field": "token" if not token else "password", "message": "Required"},
        ])
    if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError.for_field(
            "password", f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
        )

    user = User.query.filter_by(invitation_token=str(token)).first()
    expires_at = _as_aware(user.invitation_expires_at) if user else None
    if user is None or expires_at is None or expires_at < _utcnow():
        raise ValidationError.for_field("token", "Invalid or expired invitation token")

    user.password_hash = hash_password(password)
    user.status = STATUS_ACTIVE
    user.invitation_token = None
    user.invitation_expires_at = None
    write_audit(
        entity_type="user", entity_id=user.id, action="update", actor_user_id=user.id,
        diff={"status": {"old": STATUS_INVITED, "new": STATUS_ACTIVE}},
    )
    commit_or_rollback()
    logger.info("User %d accepted invitation", user.id)
    return {"message": "Account activated successfully"}


def update_user(user_id, data: dict, actor) -> dict:
    user = _get(user_id)

    new_role = data.get("role")
    if new_role is not None and new_role not in ROLES:
        raise ValidationError.for_field("role", f"Role must be one of {', '.join(ROLES)}")
    new_status = data.get("status")
    if new_status is not None and new_status not in USER_STATUSES:
        raise ValidationError.for_field("status", f"Status must be one of {', '.join(USER_STATUSES)}")
    project_ids = _clean_project_ids(data.get("projects")) if "projects" in data else None
    name = data.get("name")
    if name is not None and (not isinstance(name, str) or not name.strip()):
        raise ValidationError.for_field("name", "Name must be non-empty")

    _guard_last_admin(user, new_role=new_role, new_status=new_status)

    diff = {}
    for attr, value in (("name", name.strip()[:100] if name else None), ("role", new_role), ("status", new_status)):
        if value is not None and getattr(user, attr) != value:
            diff[attr] = {"old": getattr(user, attr), "new": value}
            setattr(user, attr, value)
    if project_ids is not None:
        diff["projects"] = project_ids
        _set_memberships(user, project_ids)

    write_audit(entity_type="user", entity_id=user.id, action="update", actor_user_id=actor.id, diff=diff)
    commit_or_rollback()
    return user.to_dict(include_projects=True)


def delete_user(user_id, actor) -> None:
    user = _get(user_id)
    _guard_last_admin(user, deleting=True)

    created = Activity.query.filter_by(created_by_id=user.id).count()
    if created:
        raise DependencyConflictError(
            "User",
            f"Cannot delete a user who created {created} activities; deactivate the account instead",
            details=[{"field": "activities", "message": str(created)}],
        )

    write_audit(
        entity_type="user", entity_id=user.id, action="delete", actor_user_id=actor.id,
        diff={"email": user.email, "role": user.role},
    )
    db.session.delete(user)
    commit_or_rollback()
    logger.info("User %s deleted by %d", user_id, actor.id)


def resend_invitation(user_id, actor) -> dict:
    user = _get(user_id)
    if user.status == STATUS_ACTIVE:
        raise ValidationError.for_field("status", "User is already active")

    _issue_invitation(user)
    write_audit(
        entity_type="user", entity_id=user.id, action="update", actor_user_id=actor.id,
        diff={"invitation": "reissued"},
    )
    commit_or_rollback()

    email_sent = _send_invitation(user, actor)
    return {
        "message": "Invitation resent successfully",
        "invitationLink": f"/accept-invitation?token={user.invitation_token}",
        "emailSent": email_sent,
    }
