"""
Activity domain model — the recorded programme event and its child rows.

Models:
    - Activity: scalar fields, status, demographics
    - ActivityLocation: country → region → city + dates (≥1 per activity)
    - ActivityActivityType / ActivityTargetGroup / ActivityThematicFocus /
      ActivityFunder: join rows to ReferenceItem

Lifecycle: DRAFT → SUBMITTED → VALIDATED | REJECTED; REJECTED → SUBMITTED.
Transitions are executed by ``tracker.services.activity_lifecycle`` only.
"""

import uuid
from collections import namedtuple
from datetime import datetime, timezone

from sqlalchemy.ext.declarative import declared_attr

from tracker.models import db
from tracker.models.reference import ReferenceCategory

__all__ = [
    "ACTIVITY_STATUSES",
    "ACTIVITY_TRANSITIONS",
    "ASSOCIATIONS",
    "DEMOGRAPHIC_FIELDS",
    "NARRATIVE_FIELDS",
    "Activity",
    "ActivityActivityType",
    "ActivityFunder",
    "ActivityLocation",
    "ActivityTargetGroup",
    "ActivityThematicFocus",
]


# ── Helpers ──────────────────────────────────────────────────────────────────

def _uuid():
    return str(uuid.uuid4())


def _utcnow():
    return datetime.now(timezone.utc)


def _iso(value):
    return value.isoformat() if value else None


# ── Status & transitions ─────────────────────────────────────────────────────

STATUS_DRAFT = "DRAFT"
STATUS_SUBMITTED = "SUBMITTED"
STATUS_VALIDATED = "VALIDATED"
STATUS_REJECTED = "REJECTED"
ACTIVITY_STATUSES = (STATUS_DRAFT, STATUS_SUBMITTED, STATUS_VALIDATED, STATUS_REJECTED)

ACTIVITY_TRANSITIONS = {
    "submit": {"from": [STATUS_DRAFT, STATUS_REJECTED], "to": STATUS_SUBMITTED},
    "validate": {"from": [STATUS_SUBMITTED], "to": STATUS_VALIDATED},
    "reject": {"from": [STATUS_SUBMITTED], "to": STATUS_REJECTED},
}


# ── Wire ↔ column maps (camelCase payload keys → snake_case attributes) ──────

NARRATIVE_FIELDS = {
    "consortium": "consortium",
    "implementingPartners": "implementing_partners",
    "keyOutputs": "key_outputs",
    "immediateOutcomes": "immediate_outcomes",
    "skillsGained": "skills_gained",
    "actionsTaken": "actions_taken",
    "meansOfVerification": "means_of_verification",
    "evidenceAvailable": "evidence_available",
    "policiesInfluenced": "policies_influenced",
    "institutionalChanges": "institutional_changes",
    "commitmentsSecured": "commitments_secured",
    "mediaMentions": "media_mentions",
    "publicationsProduced": "publications_produced",
    "genderOutcomes": "gender_outcomes",
    "inclusionMarginalised": "inclusion_marginalised",
    "womenLeadership": "women_leadership",
    "newPartnerships": "new_partnerships",
    "existingPartnerships": "existing_partnerships",
}

DEMOGRAPHIC_FIELDS = {
    "maleCount": "male_count",
    "femaleCount": "female_count",
    "nonBinaryCount": "non_binary_count",
    "ageUnder25": "age_under_25",
    "age25to40": "age_25_to_40",
    "age40plus": "age_40_plus",
    "disabilityYes": "disability_yes",
    "disabilityNo": "disability_no",
}


# ═════════════════════════════════════════════════════════════════════════════
# Activity
# ═════════════════════════════════════════════════════════════════════════════

class Activity(db.Model):
    __tablename__ = "activities"

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    project_id = db.Column(
        db.Integer, db.ForeignKey("projects.id", ondelete="RESTRICT"), nullable=False, index=True,
    )
    created_by_id = db.Column(
        db.Integer, db.ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True,
    )
    validated_by_id = db.Column(
        db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True,
    )

    status = db.Column(db.String(20), nullable=False, default=STATUS_DRAFT, index=True)
    rejection_reason = db.Column(db.Text, nullable=True)

    activity_title = db.Column(db.String(500), nullable=False)
    activity_start_date = db.Column(
        db.Date, nullable=True, index=True,
        comment="Earliest location date_start; used by the dashboard date filter",
    )
    activity_end_date = db.Column(db.Date, nullable=True)

    # ── Narrative ──
    consortium = db.Column(db.String(100))
    implementing_partners = db.Column(db.String(500))
    key_outputs = db.Column(db.Text)
    immediate_outcomes = db.Column(db.Text)
    skills_gained = db.Column(db.Text)
    actions_taken = db.Column(db.Text)
    means_of_verification = db.Column(db.Text)
    evidence_available = db.Column(db.Text)
    policies_influenced = db.Column(db.Text)
    institutional_changes = db.Column(db.Text)
    commitments_secured = db.Column(db.Text)
    media_mentions = db.Column(db.Text)
    publications_produced = db.Column(db.Text)
    gender_outcomes = db.Column(db.Text)
    inclusion_marginalised = db.Column(db.Text)
    women_leadership = db.Column(db.Text)
    new_partnerships = db.Column(db.Text)
    existing_partnerships = db.Column(db.Text)

    # ── Demographics ──
    male_count = db.Column(db.Integer, nullable=False, default=0)
    female_count = db.Column(db.Integer, nullable=False, default=0)
    non_binary_count = db.Column(db.Integer, nullable=False, default=0)
    age_under_25 = db.Column(db.Integer, nullable=False, default=0)
    age_25_to_40 = db.Column(db.Integer, nullable=False, default=0)
    age_40_plus = db.Column(db.Integer, nullable=False, default=0)
    disability_yes = db.Column(db.Integer, nullable=False, default=0)
    disability_no = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow, index=True)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    __table_args__ = (
        db.CheckConstraint(
            "status IN ('DRAFT', 'SUBMITTED', 'VALIDATED', 'REJECTED')",
            name="ck_activities_status",
        ),
        db.CheckConstraint(
            "status <> 'REJECTED' OR (rejection_reason IS NOT NULL AND rejection_reason <> '')",
            name="ck_activities_rejected_has_reason",
        ),
        db.CheckConstraint(
            "status = 'REJECTED' OR rejection_reason IS NULL",
            name="ck_activities_reason_only_when_rejected",
        ),
        db.CheckConstraint(
            "male_count >= 0 AND female_count >= 0 AND non_binary_count >= 0 "
            "AND age_under_25 >= 0 AND age_25_to_40 >= 0 AND age_40_plus >= 0 "
            "AND disability_yes >= 0 AND disability_no >= 0",
            name="ck_activities_counts_non_negative",
        ),
        db.Index("ix_activities_project_status", "project_id", "status"),
    )

    # Relationships
    project = db.relationship("Project", back_populates="activities")
    created_by = db.relationship("User", foreign_keys=[created_by_id])
    validated_by = db.relationship("User", foreign_keys=[validated_by_id])

    locations = db.relationship(
        "ActivityLocation", back_populates="activity",
        cascade="all, delete-orphan", passive_deletes=True,
        order_by="ActivityLocation.id",
    )
    activity_type_links = db.relationship(
        "ActivityActivityType", cascade="all, delete-orphan", passive_deletes=True,
    )
    target_group_links = db.relationship(
        "ActivityTargetGroup", cascade="all, delete-orphan", passive_deletes=True,
    )
    thematic_focus_links = db.relationship(
        "ActivityThematicFocus", cascade="all, delete-orphan", passive_deletes=True,
    )
    funder_links = db.relationship(
        "ActivityFunder", cascade="all, delete-orphan", passive_deletes=True,
    )

    @property
    def total_participants(self):
        return (self.male_count or 0) + (self.female_count or 0) + (self.non_binary_count or 0)

    def to_dict(self):
        """Hydrated aggregate: every association resolved to its reference item."""
        d = {
            "id": self.id,
            "projectId": self.project_id,
            "project": self.project.to_summary() if self.project else None,
            "createdById": self.created_by_id,
            "createdBy": self.created_by.to_summary() if self.created_by else None,
            "validatedById": self.validated_by_id,
            "status": self.status,
            "rejectionReason": self.rejection_reason,
            "activityTitle": self.activity_title,
            "activityStartDate": _iso(self.activity_start_date),
            "activityEndDate": _iso(self.activity_end_date),
            "locations": [loc.to_dict() for loc in self.locations],
            "totalParticipants": self.total_participants,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }
        for key, attr in NARRATIVE_FIELDS.items():
            d[key] = getattr(self, attr)
        for key, attr in DEMOGRAPHIC_FIELDS.items():
            d[key] = getattr(self, attr)
        for assoc in ASSOCIATIONS:
            d[assoc.key] = [
                link.reference.to_summary()
                for link in getattr(self, assoc.attr)
                if link.reference is not None
            ]
        return d

    def __repr__(self):
        return f"<Activity {self.id}: {self.status}>"


# ═════════════════════════════════════════════════════════════════════════════
# ActivityLocation
# ═════════════════════════════════════════════════════════════════════════════

class ActivityLocation(db.Model):
    __tablename__ = "activity_locations"

    id = db.Column(db.Integer, primary_key=True)
    activity_id = db.Column(
        db.String(36), db.ForeignKey("activities.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    country_id = db.Column(
        db.Integer, db.ForeignKey("reference_items.id", ondelete="RESTRICT"), nullable=False, index=True,
    )
    region_id = db.Column(
        db.Integer, db.ForeignKey("reference_items.id", ondelete="RESTRICT"), nullable=True,
    )
    city_id = db.Column(
        db.Integer, db.ForeignKey("reference_items.id", ondelete="RESTRICT"), nullable=True,
    )
    date_start = db.Column(db.Date, nullable=False)
    date_end = db.Column(db.Date, nullable=True)

    activity = db.relationship("Activity", back_populates="locations")
    country = db.relationship("ReferenceItem", foreign_keys=[country_id])
    region = db.relationship("ReferenceItem", foreign_keys=[region_id])
    city = db.relationship("ReferenceItem", foreign_keys=[city_id])

    def to_dict(self):
        return {
            "id": self.id,
            "countryId": self.country_id,
            "country": self.country.to_summary() if self.country else None,
            "regionId": self.region_id,
            "region": self.region.to_summary() if self.region else None,
            "cityId": self.city_id,
            "city": self.city.to_summary() if self.city else None,
            "dateStart": _iso(self.date_start),
            "dateEnd": _iso(self.date_end),
        }


# ═════════════════════════════════════════════════════════════════════════════
# Association join rows
# ═════════════════════════════════════════════════════════════════════════════

class _ActivityReferenceLink(db.Model):
    """Abstract join row Activity ↔ ReferenceItem."""
    __abstract__ = True

    id = db.Column(db.Integer, primary_key=True)
    activity_id = db.Column(
        db.String(36), db.ForeignKey("activities.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    reference_id = db.Column(
        db.Integer, db.ForeignKey("reference_items.id", ondelete="RESTRICT"), nullable=False, index=True,
    )

    @declared_attr
    def reference(cls):
        return db.relationship("ReferenceItem", lazy="joined")

    @declared_attr
    def __table_args__(cls):
        return (
            db.UniqueConstraint("activity_id", "reference_id", name=f"uq_{cls.__tablename__}_pair"),
        )


class ActivityActivityType(_ActivityReferenceLink):
    __tablename__ = "activity_activity_types"


class ActivityTargetGroup(_ActivityReferenceLink):
    __tablename__ = "activity_target_groups"


class ActivityThematicFocus(_ActivityReferenceLink):
    __tablename__ = "activity_thematic_focus"


class ActivityFunder(_ActivityReferenceLink):
    __tablename__ = "activity_funders"


# payload key, Activity relationship attribute, link model, required category
Association = namedtuple("Association", "key attr model category")

ASSOCIATIONS = (
    Association("activityTypes", "activity_type_links", ActivityActivityType, ReferenceCategory.ACTIVITY_TYPE),
    Association("targetGroups", "target_group_links", ActivityTargetGroup, ReferenceCategory.TARGET_GROUP),
    Association("thematicFocus", "thematic_focus_links", ActivityThematicFocus, ReferenceCategory.THEMATIC_FOCUS),
    Association("funders", "funder_links", ActivityFunder, ReferenceCategory.FUNDER),
)
