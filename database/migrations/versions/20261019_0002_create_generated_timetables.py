"""create generated timetables

Revision ID: 20261019_0002
Revises: 20261019_0001
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20261019_0002"
down_revision = "20261019_0001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    generation_status = sa.Enum("pending", "generating", "completed", "failed", name="generation_status")

    op.create_table(
        "generated_timetables",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("academic_year", sa.String(length=20), nullable=False),
        sa.Column("period_template_id", sa.String(length=36), nullable=True),
        sa.Column("generation_status", generation_status, nullable=False),
        sa.Column("total_sessions", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("assigned_sessions", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("unassigned_sessions", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("generation_log", sa.JSON(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_generated_timetables_academic_year", "generated_timetables", ["academic_year"])
    op.create_index("ix_generated_timetables_generation_status", "generated_timetables", ["generation_status"])
    op.create_index("ix_generated_timetables_is_active", "generated_timetables", ["is_active"])

    op.create_table(
        "timetable_slots",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("timetable_id", sa.String(length=36), nullable=False),
        sa.Column("teaching_assignment_id", sa.String(length=36), nullable=False),
        sa.Column("session_index", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("teacher_id", sa.String(length=36), nullable=False),
        sa.Column("subject_id", sa.String(length=36), nullable=False),
        sa.Column("section_ids", sa.JSON(), nullable=False),
        sa.Column("day_of_week", sa.String(length=20), nullable=False),
        sa.Column("period_number", sa.Integer(), nullable=False),
        sa.Column("session_length", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("room_id", sa.String(length=36), nullable=True),
    )
    op.create_index("ix_timetable_slots_timetable_id", "timetable_slots", ["timetable_id"])
    op.create_index("ix_timetable_slots_teaching_assignment_id", "timetable_slots", ["teaching_assignment_id"])
    op.create_index("ix_timetable_slots_teacher_id", "timetable_slots", ["teacher_id"])
    op.create_index("ix_timetable_slots_room_id", "timetable_slots", ["room_id"])

    op.create_table(
        "unassigned_sessions",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("timetable_id", sa.String(length=36), nullable=False),
        sa.Column("teaching_assignment_id", sa.String(length=36), nullable=False),
        sa.Column("session_index", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("conflict_reasons", sa.JSON(), nullable=False),
        sa.Column("suggested_fixes", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_unassigned_sessions_timetable_id", "unassigned_sessions", ["timetable_id"])
    op.create_index(
        "ix_unassigned_sessions_teaching_assignment_id",
        "unassigned_sessions",
        ["teaching_assignment_id"],
    )


def downgrade() -> None:
    op.drop_index("ix_unassigned_sessions_teaching_assignment_id", table_name="unassigned_sessions")
    op.drop_index("ix_unassigned_sessions_timetable_id", table_name="unassigned_sessions")
    op.drop_table("unassigned_sessions")

    op.drop_index("ix_timetable_slots_room_id", table_name="timetable_slots")
    op.drop_index("ix_timetable_slots_teacher_id", table_name="timetable_slots")
    op.drop_index("ix_timetable_slots_teaching_assignment_id", table_name="timetable_slots")
    op.drop_index("ix_timetable_slots_timetable_id", table_name="timetable_slots")
    op.drop_table("timetable_slots")

    op.drop_index("ix_generated_timetables_is_active", table_name="generated_timetables")
    op.drop_index("ix_generated_timetables_generation_status", table_name="generated_timetables")
    op.drop_index("ix_generated_timetables_academic_year", table_name="generated_timetables")
    op.drop_table("generated_timetables")
    sa.Enum(name="generation_status").drop(op.get_bind(), checkfirst=True)
