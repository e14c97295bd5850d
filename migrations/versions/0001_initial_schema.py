"""initial_schema

Create the activity tracker schema: users, projects, memberships, reference
catalog, activities with their locations and association tables, finance
and audit log.

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19 09:00:00.000000
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect as sa_inspect


# revision identifiers, used by Alembic.
revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None

_REFERENCE_LINK_TABLES = (
    "activity_activity_types",
    "activity_target_groups",
    "activity_thematic_focus",
    "activity_funders",
)

_REFERENCE_CATEGORIES = (
    "country", "region", "city", "funder", "thematic_focus",
    "activity_type", "target_group", "programme_area",
)


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade():
    bind = op.get_bind()
    existing_tables = set(sa_inspect(bind).get_table_names())

    if "users" not in existing_tables:
        op.create_table(
            "users",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("email", sa.String(length=200), nullable=False),
            sa.Column("name", sa.String(length=100), nullable=False),
            sa.Column("role", sa.String(length=20), nullable=False),
            sa.Column("status", sa.String(length=20), nullable=False),
            sa.Column("password_hash", sa.String(length=256), nullable=True),
            sa.Column("invitation_token", sa.String(length=256), nullable=True),
            sa.Column("invitation_expires_at", sa.DateTime(timezone=True), nullable=True),
            sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
            *_timestamps(),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("email"),
        )
        op.create_index("ix_users_invitation_token", "users", ["invitation_token"])
        op.create_index("ix_users_role_status", "users", ["role", "status"])

    if "projects" not in existing_tables:
        op.create_table(
            "projects",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("name", sa.String(length=200), nullable=False),
            sa.Column("slug", sa.String(length=100), nullable=False),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
            *_timestamps(),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("slug"),
        )

    if "project_members" not in existing_tables:
        op.create_table(
            "project_members",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("project_id", sa.Integer(), nullable=False),
            sa.Column("user_id", sa.Integer(), nullable=False),
            sa.Column("joined_at", sa.DateTime(timezone=True), nullable=True),
            sa.ForeignKeyConstraint(["project_id"], ["projects.id"], ondelete="CASCADE"),
            sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("project_id", "user_id", name="uq_project_member"),
        )
        op.create_index("ix_project_members_project", "project_members", ["project_id"])
        op.create_index("ix_project_members_user", "project_members", ["user_id"])

    if "reference_items" not in existing_tables:
        op.create_table(
            "reference_items",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column(
                "category",
                sa.Enum(*_REFERENCE_CATEGORIES, name="reference_category", native_enum=False, length=30),
                nullable=False,
            ),
            sa.Column("name", sa.String(length=200), nullable=False),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column("parent_id", sa.Integer(), nullable=True),
            *_timestamps(),
            sa.ForeignKeyConstraint(["parent_id"], ["reference_items.id"]),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("category", "name", name="uq_reference_category_name"),
        )
        op.create_index("ix_reference_items_category", "reference_items", ["category"])
        op.create_index("ix_reference_items_parent_id", "reference_items", ["parent_id"])

    if "activities" not in existing_tables:
        op.create_table(
            "activities",
            sa.Column("id", sa.String(length=36), nullable=False),
            sa.Column("project_id", sa.Integer(), nullable=False),
            sa.Column("created_by_id", sa.Integer(), nullable=False),
            sa.Column("validated_by_id", sa.Integer(), nullable=True),
            sa.Column("status", sa.String(length=20), nullable=False),
            sa.Column("rejection_reason", sa.Text(), nullable=True),
            sa.Column("activity_title", sa.String(length=500), nullable=False),
            sa.Column("activity_start_date", sa.Date(), nullable=True),
            sa.Column("activity_end_date", sa.Date(), nullable=True),
            sa.Column("consortium", sa.String(length=100), nullable=True),
            sa.Column("implementing_partners", sa.String(length=500), nullable=True),
            *[
                sa.Column(name, sa.Text(), nullable=True)
                for name in (
                    "key_outputs", "immediate_outcomes", "skills_gained", "actions_taken",
                    "means_of_verification", "evidence_available", "policies_influenced",
                    "institutional_changes", "commitments_secured", "media_mentions",
                    "publications_produced", "gender_outcomes", "inclusion_marginalised",
                    "women_leadership", "new_partnerships", "existing_partnerships",
                )
            ],
            *[
                sa.Column(name, sa.Integer(), nullable=False, server_default="0")
                for name in (
                    "male_count", "female_count", "non_binary_count", "age_under_25",
                    "age_25_to_40", "age_40_plus", "disability_yes", "disability_no",
                )
            ],
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
            sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
            sa.CheckConstraint(
                "status IN ('DRAFT', 'SUBMITTED', 'VALIDATED', 'REJECTED')",
                name="ck_activities_status",
            ),
            sa.CheckConstraint(
                "status <> 'REJECTED' OR (rejection_reason IS NOT NULL AND rejection_reason <> '')",
                name="ck_activities_rejected_has_reason",
            ),
            sa.CheckConstraint(
                "status = 'REJECTED' OR rejection_reason IS NULL",
                name="ck_activities_reason_only_when_rejected",
            ),
            sa.CheckConstraint(
                "male_count >= 0 AND female_count >= 0 AND non_binary_count >= 0 "
                "AND age_under_25 >= 0 AND age_25_to_40 >= 0 AND age_40_plus >= 0 "
                "AND disability_yes >= 0 AND disability_no >= 0",
                name="ck_activities_counts_non_negative",
            ),
            sa.ForeignKeyConstraint(["project_id"], ["projects.id"], ondelete="RESTRICT"),
            sa.ForeignKeyConstraint(["created_by_id"], ["users.id"], ondelete="RESTRICT"),
            sa.ForeignKeyConstraint(["validated_by_id"], ["users.id"], ondelete="SET NULL"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_activities_project_id", "activities", ["project_id"])
        op.create_index("ix_activities_created_by_id", "activities", ["created_by_id"])
        op.create_index("ix_activities_status", "activities", ["status"])
        op.create_index("ix_activities_activity_start_date", "activities", ["activity_start_date"])
        op.create_index("ix_activities_created_at", "activities", ["created_at"])
        op.create_index("ix_activities_project_status", "activities", ["project_id", "status"])

    if "activity_locations" not in existing_tables:
        op.create_table(
            "activity_locations",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("activity_id", sa.String(length=36), nullable=False),
            sa.Column("country_id", sa.Integer(), nullable=False),
            sa.Column("region_id", sa.Integer(), nullable=True),
            sa.Column("city_id", sa.Integer(), nullable=True),
            sa.Column("date_start", sa.Date(), nullable=False),
            sa.Column("date_end", sa.Date(), nullable=True),
            sa.ForeignKeyConstraint(["activity_id"], ["activities.id"], ondelete="CASCADE"),
            sa.ForeignKeyConstraint(["country_id"], ["reference_items.id"], ondelete="RESTRICT"),
            sa.ForeignKeyConstraint(["region_id"], ["reference_items.id"], ondelete="RESTRICT"),
            sa.ForeignKeyConstraint(["city_id"], ["reference_items.id"], ondelete="RESTRICT"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_activity_locations_activity_id", "activity_locations", ["activity_id"])
        op.create_index("ix_activity_locations_country_id", "activity_locations", ["country_id"])

    for table in _REFERENCE_LINK_TABLES:
        if table in existing_tables:
            continue
        op.create_table(
            table,
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("activity_id", sa.String(length=36), nullable=False),
            sa.Column("reference_id", sa.Integer(), nullable=False),
            sa.ForeignKeyConstraint(["activity_id"], ["activities.id"], ondelete="CASCADE"),
            sa.ForeignKeyConstraint(["reference_id"], ["reference_items.id"], ondelete="RESTRICT"),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("activity_id", "reference_id", name=f"uq_{table}_pair"),
        )
        op.create_index(f"ix_{table}_activity_id", table, ["activity_id"])
        op.create_index(f"ix_{table}_reference_id", table, ["reference_id"])

    if "finances" not in existing_tables:
        op.create_table(
            "finances",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("project_id", sa.Integer(), nullable=False),
            sa.Column("funder", sa.String(length=200), nullable=False),
            sa.Column("amount", sa.Numeric(14, 2), nullable=False),
            sa.Column("currency", sa.String(length=3), nullable=False, server_default="USD"),
            sa.Column("status", sa.String(length=20), nullable=False, server_default="NEW"),
            sa.Column("year", sa.Integer(), nullable=False),
            sa.Column("notes", sa.Text(), nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
            sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
            sa.CheckConstraint("amount > 0", name="ck_finances_amount_positive"),
            sa.CheckConstraint("status IN ('NEW', 'CONTINUOUS')", name="ck_finances_status"),
            sa.CheckConstraint("year BETWEEN 2000 AND 2100", name="ck_finances_year"),
            sa.ForeignKeyConstraint(["project_id"], ["projects.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_finances_project_id", "finances", ["project_id"])

    if "audit_logs" not in existing_tables:
        op.create_table(
            "audit_logs",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("project_id", sa.Integer(), nullable=True),
            sa.Column("entity_type", sa.String(length=30), nullable=False),
            sa.Column("entity_id", sa.String(length=36), nullable=False),
            sa.Column("action", sa.String(length=60), nullable=False),
            sa.Column("actor_user_id", sa.Integer(), nullable=True),
            sa.Column("diff_json", sa.Text(), nullable=True),
            sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
            sa.ForeignKeyConstraint(["project_id"], ["projects.id"], ondelete="SET NULL"),
            sa.ForeignKeyConstraint(["actor_user_id"], ["users.id"], ondelete="SET NULL"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_audit_logs_project_id", "audit_logs", ["project_id"])
        op.create_index("ix_audit_logs_actor_user_id", "audit_logs", ["actor_user_id"])
        op.create_index("ix_audit_logs_entity", "audit_logs", ["entity_type", "entity_id"])
        op.create_index("ix_audit_logs_action", "audit_logs", ["action"])
        op.create_index("ix_audit_logs_timestamp", "audit_logs", ["timestamp"])


def downgrade():
    existing_tables = set(sa_inspect(op.get_bind()).get_table_names())
    ordered = (
        "audit_logs", "finances", *_REFERENCE_LINK_TABLES, "activity_locations",
        "activities", "reference_items", "project_members", "projects", "users",
    )
    for table in ordered:
        if table in existing_tables:
            op.drop_table(table)
