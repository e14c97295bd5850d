"""
Auth Models — users and project memberships.

Roles are flat (ADMIN > MANAGER > FIELD); what each role may see is decided
by ``tracker.services.scope_resolver``, not by these models.
"""

from datetime import datetime, timezone

from tracker.models import db


ROLE_ADMIN = "ADMIN"
ROLE_MANAGER = "MANAGER"
ROLE_FIELD = "FIELD"
ROLES = (ROLE_ADMIN, ROLE_MANAGER, ROLE_FIELD)
REVIEWER_ROLES = frozenset({ROLE_ADMIN, ROLE_MANAGER})

STATUS_ACTIVE = "ACTIVE"
STATUS_INVITED = "INVITED"
STATUS_INACTIVE = "INACTIVE"
USER_STATUSES = (STATUS_ACTIVE, STATUS_INVITED, STATUS_INACTIVE)


# ═══════════════════════════════════════════════════════════════
# 1. USERS
# ═══════════════════════════════════════════════════════════════
class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(200), nullable=False, unique=True)
    name = db.Column(db.String(100), nullable=False)
    role = db.Column(db.String(20), nullable=False, default=ROLE_FIELD)  # ADMIN | MANAGER | FIELD
    status = db.Column(db.String(20), nullable=False, default=STATUS_INVITED)  # ACTIVE | INVITED | INACTIVE
    password_hash = db.Column(db.String(256))  # NULL until the invitation is accepted
    invitation_token = db.Column(db.String(256), index=True)
    invitation_expires_at = db.Column(db.DateTime(timezone=True))
    last_login_at = db.Column(db.DateTime(timezone=True))
    created_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(
        db.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        db.Index("ix_users_role_status", "role", "status"),
    )

    # Relationships
    project_memberships = db.relationship(
        "ProjectMember", back_populates="user", lazy="dynamic",
        cascade="all, delete-orphan",
    )

    @property
    def is_admin(self):
        return self.role == ROLE_ADMIN

    @property
    def project_ids(self):
        """IDs of the projects this user is a member of."""
        return [m.project_id for m in self.project_memberships.all()]

    def to_summary(self):
        return {"id": self.id, "name": self.name, "email": self.email}

    def to_dict(self, include_projects=False):
        d = {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "role": self.role,
            "status": self.status,
            "lastLoginAt": self.last_login_at.isoformat() if self.last_login_at else None,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
        if include_projects:
            d["projects"] = [
                {"id": m.project.id, "name": m.project.name, "slug": m.project.slug}
                for m in self.project_memberships.all()
            ]
        return d

    def __repr__(self):
        return f"<User {self.id}: {self.email} ({self.role})>"


# ═══════════════════════════════════════════════════════════════
# 2. PROJECT_MEMBERS (User ↔ Project assignment)
# ═══════════════════════════════════════════════════════════════
class ProjectMember(db.Model):
    __tablename__ = "project_members"

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(
        db.Integer, db.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False
    )
    user_id = db.Column(
        db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    joined_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        db.UniqueConstraint("project_id", "user_id", name="uq_project_member"),
        db.Index("ix_project_members_project", "project_id"),
        db.Index("ix_project_members_user", "user_id"),
    )

    # Relationships
    user = db.relationship("User", back_populates="project_memberships")
    project = db.relationship("Project", back_populates="memberships")

    def to_dict(self):
        return {
            "id": self.id,
            "projectId": self.project_id,
            "userId": self.user_id,
            "joinedAt": self.joined_at.isoformat() if self.joined_at else None,
            "user": self.user.to_dict() if self.user else None,
        }
