"""
Reference data model — one self-referencing table for every taxonomy.

Countries, regions and cities form a hierarchy through ``parent_id``;
funders, thematic areas, activity types, target groups and programme
areas are flat lists in the same table, told apart by ``category``.
"""

import enum
from datetime import datetime, timezone

from tracker.models import db


class ReferenceCategory(enum.Enum):
    COUNTRY = "country"
    REGION = "region"
    CITY = "city"
    FUNDER = "funder"
    THEMATIC_FOCUS = "thematic_focus"
    ACTIVITY_TYPE = "activity_type"
    TARGET_GROUP = "target_group"
    PROGRAMME_AREA = "programme_area"

    @classmethod
    def parse(cls, raw):
        """Map a URL/category string to a member, or None when unknown.

        Accepts the canonical value and the plural aliases older clients send.
        """
        if isinstance(raw, cls):
            return raw
        key = (raw or "").strip()
        try:
            return cls(key)
        except ValueError:
            return CATEGORY_ALIASES.get(key)


CATEGORY_ALIASES = {
    "countries": ReferenceCategory.COUNTRY,
    "regions": ReferenceCategory.REGION,
    "cities": ReferenceCategory.CITY,
    "funders": ReferenceCategory.FUNDER,
    "thematicFocus": ReferenceCategory.THEMATIC_FOCUS,
    "activityTypes": ReferenceCategory.ACTIVITY_TYPE,
    "targetGroups": ReferenceCategory.TARGET_GROUP,
    "programmeAreas": ReferenceCategory.PROGRAMME_AREA,
}

# child category → required parent category
PARENT_CATEGORY = {
    ReferenceCategory.REGION: ReferenceCategory.COUNTRY,
    ReferenceCategory.CITY: ReferenceCategory.REGION,
}


class ReferenceItem(db.Model):
    __tablename__ = "reference_items"

    id = db.Column(db.Integer, primary_key=True)
    category = db.Column(
        db.Enum(
            ReferenceCategory,
            name="reference_category",
            native_enum=False,
            length=30,
            values_callable=lambda members: [m.value for m in members],
        ),
        nullable=False,
    )
    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=True)
    parent_id = db.Column(
        db.Integer,
        db.ForeignKey("reference_items.id"),
        nullable=True,
        index=True,
    )
    created_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(
        db.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        db.UniqueConstraint("category", "name", name="uq_reference_category_name"),
        db.Index("ix_reference_items_category", "category"),
    )

    parent = db.relationship("ReferenceItem", remote_side=[id], backref=db.backref("children", lazy="dynamic"))

    def to_summary(self):
        return {"id": self.id, "name": self.name}

    def to_dict(self):
        return {
            "id": self.id,
            "category": self.category.value,
            "name": self.name,
            "description": self.description,
            "parentId": self.parent_id,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f"<ReferenceItem {self.id}: {self.category.value}/{self.name}>"
