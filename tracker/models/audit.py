"""
Audit trail — one append-only row per write and per lifecycle transition.

Rows are added with ``write_audit`` inside the caller's transaction, so an
audit entry exists exactly when the change it describes was committed.
"""

import json
from datetime import datetime, timezone

from tracker.models import db

ENTITY_TYPES = frozenset({"activity", "project", "user", "finance", "reference_item"})

CRUD_ACTIONS = frozenset({"create", "update", "delete"})
LIFECYCLE_ACTIONS = frozenset({"activity.submit", "activity.validate", "activity.reject"})


class AuditLog(db.Model):
    __tablename__ = "audit_logs"

    id = db.Column(db.Integer, primary_key=True)
    entity_type = db.Column(db.String(30), nullable=False)
    # activity ids are UUID strings, everything else an integer stored as text
    entity_id = db.Column(db.String(36), nullable=False)
    action = db.Column(db.String(60), nullable=False, index=True)
    actor_user_id = db.Column(
        db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True,
    )
    project_id = db.Column(
        db.Integer, db.ForeignKey("projects.id", ondelete="SET NULL"), nullable=True, index=True,
    )
    diff_json = db.Column(db.Text, default="{}")
    timestamp = db.Column(
        db.DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc), index=True,
    )

    __table_args__ = (
        db.Index("ix_audit_logs_entity", "entity_type", "entity_id"),
    )

    @property
    def diff(self):
        """Changed fields as ``{field: {"old", "new"}}`` or an entity summary."""
        if not self.diff_json:
            return {}
        return json.loads(self.diff_json)

    def to_dict(self):
        return {
            "id": self.id,
            "entityType": self.entity_type,
            "entityId": self.entity_id,
            "action": self.action,
            "actorUserId": self.actor_user_id,
            "projectId": self.project_id,
            "diff": self.diff,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
        }

    def __repr__(self):
        return f"<AuditLog {self.entity_type}/{self.entity_id} {self.action}>"


def write_audit(*, entity_type, entity_id, action, actor_user_id=None, project_id=None, diff=None):
    """Stage an audit row in the current session (flushed, not committed)."""
    if entity_type not in ENTITY_TYPES:
        raise ValueError(f"Unknown audit entity type: {entity_type}")
    if action not in CRUD_ACTIONS and action not in LIFECYCLE_ACTIONS:
        raise ValueError(f"Unknown audit action: {action}")

    row = AuditLog(
        entity_type=entity_type,
        entity_id=str(entity_id),
        action=action,
        actor_user_id=actor_user_id,
        project_id=project_id,
        diff_json=json.dumps(diff or {}, default=str),
    )
    db.session.add(row)
    db.session.flush()
    return row
