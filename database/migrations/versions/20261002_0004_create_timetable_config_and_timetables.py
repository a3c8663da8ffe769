"""create timetable configs, timetables and entries

Revision ID: 20261002_0004
Revises: 20261001_0003
Create Date: 2026-10-02 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20261002_0004"
down_revision = "20261001_0003"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "timetable_configs",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("periods_per_day", sa.Integer(), nullable=False, server_default=sa.text("14")),
        sa.Column("school_start_time", sa.String(length=5), nullable=False, server_default="07:30"),
        sa.Column("school_end_time", sa.String(length=5), nullable=False, server_default="16:10"),
        sa.Column("period_duration", sa.Integer(), nullable=False, server_default=sa.text("35")),
        sa.Column("break_periods", sa.JSON(), nullable=False),
        sa.Column("days_of_week", sa.JSON(), nullable=False),
        sa.Column("preferences", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_timetable_configs_is_active", "timetable_configs", ["is_active"])

    op.create_table(
        "timetables",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("term", sa.String(length=50), nullable=False),
        sa.Column("academic_year", sa.String(length=20), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column(
            "config_id",
            sa.String(length=36),
            sa.ForeignKey("timetable_configs.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )

    op.create_table(
        "timetable_entries",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column(
            "timetable_id", sa.String(length=36), sa.ForeignKey("timetables.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("day", sa.String(length=20), nullable=False),
        sa.Column("period", sa.String(length=10), nullable=False),
        sa.Column("room", sa.String(length=100), nullable=True),
        sa.Column(
            "class_id", sa.String(length=36), sa.ForeignKey("school_classes.id", ondelete="SET NULL"), nullable=True
        ),
        sa.Column("teacher_id", sa.String(length=36), sa.ForeignKey("teachers.id", ondelete="SET NULL"), nullable=True),
        sa.Column("subject_id", sa.String(length=36), sa.ForeignKey("subjects.id", ondelete="SET NULL"), nullable=True),
    )
    op.create_index("ix_timetable_entries_timetable_id", "timetable_entries", ["timetable_id"])
    op.create_index("ix_timetable_entries_slot", "timetable_entries", ["timetable_id", "day", "period"])


def downgrade() -> None:
    op.drop_index("ix_timetable_entries_slot", table_name="timetable_entries")
    op.drop_index("ix_timetable_entries_timetable_id", table_name="timetable_entries")
    op.drop_table("timetable_entries")
    op.drop_table("timetables")
    op.drop_index("ix_timetable_configs_is_active", table_name="timetable_configs")
    op.drop_table("timetable_configs")
