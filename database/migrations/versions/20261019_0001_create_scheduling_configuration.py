"""create scheduling configuration

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    room_type = sa.Enum("lecture", "lab", "seminar", "other", name="room_type")
    constraint_type = sa.Enum("teacher", "room", name="availability_constraint_type")

    op.create_table(
        "period_templates",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("academic_year", sa.String(length=20), nullable=False),
        sa.Column("days_of_week", sa.JSON(), nullable=False),
        sa.Column("periods_per_day", sa.Integer(), nullable=False, server_default="8"),
        sa.Column("period_timings", sa.JSON(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_period_templates_academic_year", "period_templates", ["academic_year"])
    op.create_index("ix_period_templates_is_active", "period_templates", ["is_active"])

    op.create_table(
        "rooms",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("capacity", sa.Integer(), nullable=False, server_default="30"),
        sa.Column("room_type", room_type, nullable=False),
        sa.Column("facilities", sa.JSON(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_rooms_name", "rooms", ["name"], unique=True)

    op.create_table(
        "class_sections",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("class_name", sa.String(length=100), nullable=False),
        sa.Column("class_code", sa.String(length=50), nullable=False),
        sa.Column("academic_year", sa.String(length=20), nullable=False),
        sa.Column("strength", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("description", sa.String(length=500), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_class_sections_class_code", "class_sections", ["class_code"], unique=True)
    op.create_index("ix_class_sections_academic_year", "class_sections", ["academic_year"])

    op.create_table(
        "availability_constraints",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("constraint_type", constraint_type, nullable=False),
        sa.Column("entity_id", sa.String(length=36), nullable=False),
        sa.Column("day_of_week", sa.String(length=20), nullable=False),
        sa.Column("period_number", sa.Integer(), nullable=False),
        sa.Column("is_available", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("reason", sa.String(length=500), nullable=True),
        sa.Column("academic_year", sa.String(length=20), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint(
            "constraint_type",
            "entity_id",
            "day_of_week",
            "period_number",
            "academic_year",
            name="uq_availability_constraints_cell",
        ),
    )
    op.create_index("ix_availability_constraints_constraint_type", "availability_constraints", ["constraint_type"])
    op.create_index("ix_availability_constraints_entity_id", "availability_constraints", ["entity_id"])
    op.create_index("ix_availability_constraints_academic_year", "availability_constraints", ["academic_year"])

    op.create_table(
        "teaching_assignments",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("sequence", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("teacher_id", sa.String(length=36), nullable=False),
        sa.Column("subject_id", sa.String(length=36), nullable=False),
        sa.Column("section_ids", sa.JSON(), nullable=False),
        sa.Column("sessions_per_week", sa.Integer(), nullable=False, server_default="5"),
        sa.Column("session_length", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("preferred_room_ids", sa.JSON(), nullable=False),
        sa.Column("room_fixed", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("allowed_days", sa.JSON(), nullable=True),
        sa.Column("fixed_day", sa.String(length=20), nullable=True),
        sa.Column("fixed_period", sa.Integer(), nullable=True),
        sa.Column("same_daily_pattern", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("academic_year", sa.String(length=20), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_teaching_assignments_sequence", "teaching_assignments", ["sequence"])
    op.create_index("ix_teaching_assignments_teacher_id", "teaching_assignments", ["teacher_id"])
    op.create_index("ix_teaching_assignments_academic_year", "teaching_assignments", ["academic_year"])


def downgrade() -> None:
    op.drop_index("ix_teaching_assignments_academic_year", table_name="teaching_assignments")
    op.drop_index("ix_teaching_assignments_teacher_id", table_name="teaching_assignments")
    op.drop_index("ix_teaching_assignments_sequence", table_name="teaching_assignments")
    op.drop_table("teaching_assignments")

    op.drop_index("ix_availability_constraints_academic_year", table_name="availability_constraints")
    op.drop_index("ix_availability_constraints_entity_id", table_name="availability_constraints")
    op.drop_index("ix_availability_constraints_constraint_type", table_name="availability_constraints")
    op.drop_table("availability_constraints")

    op.drop_index("ix_class_sections_academic_year", table_name="class_sections")
    op.drop_index("ix_class_sections_class_code", table_name="class_sections")
    op.drop_table("class_sections")

    op.drop_index("ix_rooms_name", table_name="rooms")
    op.drop_table("rooms")

    op.drop_index("ix_period_templates_is_active", table_name="period_templates")
    op.drop_index("ix_period_templates_academic_year", table_name="period_templates")
    op.drop_table("period_templates")

    sa.Enum(name="availability_constraint_type").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="room_type").drop(op.get_bind(), checkfirst=True)
