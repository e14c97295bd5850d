"""Finance domain model — funding lines recorded against a project."""

from datetime import datetime, timezone

from tracker.models import db

FINANCE_STATUSES = ("NEW", "CONTINUOUS")
DEFAULT_CURRENCY = "USD"
MIN_YEAR, MAX_YEAR = 2000, 2100


class Finance(db.Model):
    __tablename__ = "finances"

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(
        db.Integer, db.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    funder = db.Column(db.String(200), nullable=False)
    amount = db.Column(db.Numeric(14, 2), nullable=False)
    currency = db.Column(db.String(3), nullable=False, default=DEFAULT_CURRENCY)
    status = db.Column(db.String(20), nullable=False, default="NEW")  # NEW | CONTINUOUS
    year = db.Column(db.Integer, nullable=False)
    notes = db.Column(db.Text, nullable=True)
    created_at = db.Column(
        db.DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc),
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        db.CheckConstraint("amount > 0", name="ck_finances_amount_positive"),
        db.CheckConstraint("status IN ('NEW', 'CONTINUOUS')", name="ck_finances_status"),
        db.CheckConstraint(f"year BETWEEN {MIN_YEAR} AND {MAX_YEAR}", name="ck_finances_year"),
    )

    project = db.relationship("Project", back_populates="finances")

    def to_dict(self):
        return {
            "id": self.id,
            "projectId": self.project_id,
            "project": {"id": self.project.id, "name": self.project.name} if self.project else None,
            "funder": self.funder,
            "amount": float(self.amount) if self.amount is not None else None,
            "currency": self.currency,
            "status": self.status,
            "year": self.year,
            "notes": self.notes,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f"<Finance {self.id}: project={self.project_id} {self.amount} {self.currency}>"
