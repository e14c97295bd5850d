"""Project domain model — the unit activities and finance records belong to."""

from datetime import datetime, timezone

from tracker.models import db


class Project(db.Model):
    """Donor-funded programme track that field teams report activities against."""

    __tablename__ = "projects"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    slug = db.Column(db.String(100), nullable=False, unique=True)
    description = db.Column(db.Text, nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    memberships = db.relationship(
        "ProjectMember", back_populates="project", lazy="dynamic",
        cascade="all, delete-orphan",
    )
    activities = db.relationship("Activity", back_populates="project", lazy="dynamic")
    finances = db.relationship(
        "Finance", back_populates="project", lazy="dynamic",
        cascade="all, delete-orphan",
    )

    def to_summary(self):
        return {"id": self.id, "name": self.name, "slug": self.slug}

    def to_dict(self, include_counts=False, include_members=False):
        d = {
            "id": self.id,
            "name": self.name,
            "slug": self.slug,
            "description": self.description,
            "isActive": self.is_active,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }
        if include_counts:
            d["counts"] = {
                "activities": self.activities.count(),
                "users": self.memberships.count(),
                "finances": self.finances.count(),
            }
        if include_members:
            d["users"] = [m.to_dict() for m in self.memberships.all()]
        return d

    def __repr__(self):
        return f"<Project {self.id}: {self.slug}>"
