"""Initial schema for StudyFlow.

Создаёт enum-типы и таблицы: справочники (persons, roles, study_types),
исследования, регуляторные подачи с историей статусов, назначения, задачи
и журнал аудита.
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


_SUBMISSION_STATUSES = (
    "DRAFT",
    "READY_TO_SUBMIT",
    "SUBMITTED",
    "PRE_REVIEW",
    "MODIFICATIONS_REQUESTED",
    "RESUBMITTED",
    "EXEMPT_DETERMINATION",
    "EXPEDITED_APPROVED",
    "MEETING_SCHEDULED",
    "APPROVED",
    "CONDITIONALLY_APPROVED",
    "DEFERRED",
    "NOT_APPROVED",
)

risk_level = postgresql.ENUM("MINIMAL", "MORE_THAN_MINIMAL", name="risk_level", create_type=False)
study_status = postgresql.ENUM(
    "DRAFT", "READY_TO_SUBMIT", "SUBMITTED_TO_IRB", "ACTIVE", "CLOSED",
    name="study_status",
    create_type=False,
)
submission_status = postgresql.ENUM(*_SUBMISSION_STATUSES, name="submission_status", create_type=False)
review_path = postgresql.ENUM(
    "UNSET", "EXEMPT", "EXPEDITED", "CONVENED", name="review_path", create_type=False
)
task_status = postgresql.ENUM(
    "PENDING", "IN_PROGRESS", "COMPLETED", "BLOCKED", name="task_status", create_type=False
)


def _create_enums() -> None:
    op.execute("CREATE TYPE risk_level AS ENUM ('MINIMAL','MORE_THAN_MINIMAL')")
    op.execute(
        "CREATE TYPE study_status AS ENUM "
        "('DRAFT','READY_TO_SUBMIT','SUBMITTED_TO_IRB','ACTIVE','CLOSED')"
    )
    op.execute(
        "CREATE TYPE submission_status AS ENUM ("
        + ",".join(f"'{s}'" for s in _SUBMISSION_STATUSES)
        + ")"
    )
    op.execute("CREATE TYPE review_path AS ENUM ('UNSET','EXEMPT','EXPEDITED','CONVENED')")
    op.execute(
        "CREATE TYPE task_status AS ENUM ('PENDING','IN_PROGRESS','COMPLETED','BLOCKED')"
    )


def upgrade() -> None:
    _create_enums()

    # Справочники
    op.create_table(
        "roles",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_roles"),
    )
    op.create_table(
        "persons",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("full_name", sa.Text(), nullable=False),
        sa.Column("email", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_persons"),
    )
    op.create_table(
        "person_roles",
        sa.Column("person_id", sa.String(64), nullable=False),
        sa.Column("role_id", sa.String(64), nullable=False),
        sa.ForeignKeyConstraint(
            ["person_id"], ["persons.id"], name="fk_person_roles_person_id_persons", ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(
            ["role_id"], ["roles.id"], name="fk_person_roles_role_id_roles", ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("person_id", "role_id", name="pk_person_roles"),
    )
    op.create_table(
        "study_types",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("default_task_template", postgresql.JSONB(), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_study_types"),
    )

    # Исследования
    op.create_table(
        "studies",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("short_title", sa.String(50), nullable=True),
        sa.Column("type_id", sa.String(64), nullable=False),
        sa.Column("risk_level", risk_level, nullable=False),
        sa.Column("status", study_status, nullable=False),
        sa.Column("pi_id", sa.String(64), nullable=False),
        sa.Column("sponsor_name", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(
            ["type_id"], ["study_types.id"], name="fk_studies_type_id_study_types", ondelete="RESTRICT"
        ),
        sa.ForeignKeyConstraint(
            ["pi_id"], ["persons.id"], name="fk_studies_pi_id_persons", ondelete="RESTRICT"
        ),
        sa.PrimaryKeyConstraint("id", name="pk_studies"),
    )
    op.create_index("ix_studies_pi_id", "studies", ["pi_id"])
    op.create_index("ix_studies_status", "studies", ["status"])

    op.create_table(
        "tasks",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("study_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", task_status, nullable=False),
        sa.Column("role_id", sa.String(64), nullable=True),
        sa.Column("due_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ["study_id"], ["studies.id"], name="fk_tasks_study_id_studies", ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id", name="pk_tasks"),
    )
    op.create_index("ix_tasks_study_id", "tasks", ["study_id"])

    # Регуляторные подачи
    op.create_table(
        "regulatory_submissions",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("study_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("current_status", submission_status, nullable=False),
        sa.Column("path", review_path, nullable=False),
        sa.Column("expedited_category", sa.Text(), nullable=True),
        sa.Column("meeting_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("determined_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ["study_id"],
            ["studies.id"],
            name="fk_regulatory_submissions_study_id_studies",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_regulatory_submissions"),
        sa.UniqueConstraint("study_id", name="uq_regulatory_submissions_study_id"),
    )

    op.create_table(
        "submission_status_history",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("submission_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("from_status", submission_status, nullable=True),
        sa.Column("to_status", submission_status, nullable=False),
        sa.Column("note", sa.Text(), nullable=True),
        sa.Column("actor_id", sa.String(128), nullable=True),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ["submission_id"],
            ["regulatory_submissions.id"],
            name="fk_submission_status_history_submission_id_regulatory_submissions",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_submission_status_history"),
    )
    op.create_index(
        "ix_submission_status_history_submission_id",
        "submission_status_history",
        ["submission_id"],
    )

    # Назначения
    op.create_table(
        "assignments",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("study_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("person_id", sa.String(64), nullable=False),
        sa.Column("role_id", sa.String(64), nullable=False),
        sa.Column("effort_percent", sa.Numeric(5, 2), nullable=True),
        sa.Column("hours_per_week", sa.Numeric(5, 2), nullable=True),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ["study_id"], ["studies.id"], name="fk_assignments_study_id_studies", ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(
            ["person_id"], ["persons.id"], name="fk_assignments_person_id_persons", ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(
            ["role_id"], ["roles.id"], name="fk_assignments_role_id_roles", ondelete="RESTRICT"
        ),
        sa.PrimaryKeyConstraint("id", name="pk_assignments"),
    )
    op.create_index("ix_assignments_person_id", "assignments", ["person_id"])
    op.create_index("ix_assignments_study_id", "assignments", ["study_id"])

    # Аудит
    op.create_table(
        "audit_events",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("action", sa.Text(), nullable=False),
        sa.Column("entity_type", sa.Text(), nullable=False),
        sa.Column("entity_id", sa.String(128), nullable=False),
        sa.Column("actor_id", sa.String(128), nullable=True),
        sa.Column("before_json", postgresql.JSONB(), nullable=True),
        sa.Column("after_json", postgresql.JSONB(), nullable=True),
        sa.Column("ip_address", sa.String(64), nullable=True),
        sa.Column("user_agent", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_audit_events"),
    )
    op.create_index("ix_audit_events_entity", "audit_events", ["entity_type", "entity_id"])


def downgrade() -> None:
    op.drop_index("ix_audit_events_entity", table_name="audit_events")
    op.drop_table("audit_events")
    op.drop_index("ix_assignments_study_id", table_name="assignments")
    op.drop_index("ix_assignments_person_id", table_name="assignments")
    op.drop_table("assignments")
    op.drop_index(
        "ix_submission_status_history_submission_id", table_name="submission_status_history"
    )
    op.drop_table("submission_status_history")
    op.drop_table("regulatory_submissions")
    op.drop_index("ix_tasks_study_id", table_name="tasks")
    op.drop_table("tasks")
    op.drop_index("ix_studies_status", table_name="studies")
    op.drop_index("ix_studies_pi_id", table_name="studies")
    op.drop_table("studies")
    op.drop_table("study_types")
    op.drop_table("person_roles")
    op.drop_table("persons")
    op.drop_table("roles")

    for enum_name in ("task_status", "review_path", "submission_status", "study_status", "risk_level"):
        op.execute(f"DROP TYPE IF EXISTS {enum_name}")
