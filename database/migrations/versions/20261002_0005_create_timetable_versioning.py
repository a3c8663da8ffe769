"""create timetable versions and change logs

Revision ID: 20261002_0005
Revises: 20261002_0004
Create Date: 2026-10-02 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20261002_0005"
down_revision = "20261002_0004"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "timetable_versions",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column(
            "timetable_id", sa.String(length=36), sa.ForeignKey("timetables.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("version_number", sa.Integer(), nullable=False),
        sa.Column("description", sa.String(length=500), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("created_by", sa.String(length=36), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("timetable_id", "version_number", name="uq_timetable_versions_timetable_number"),
    )
    op.create_index("ix_timetable_versions_timetable_id", "timetable_versions", ["timetable_id"])

    op.create_table(
        "timetable_change_logs",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column(
            "version_id",
            sa.String(length=36),
            sa.ForeignKey("timetable_versions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("action", sa.String(length=20), nullable=False),
        sa.Column("old_value", sa.JSON(), nullable=False),
        sa.Column("new_value", sa.JSON(), nullable=False),
        sa.Column("changed_by", sa.String(length=36), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("reason", sa.String(length=500), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_timetable_change_logs_version_id", "timetable_change_logs", ["version_id"])


def downgrade() -> None:
    op.drop_index("ix_timetable_change_logs_version_id", table_name="timetable_change_logs")
    op.drop_table("timetable_change_logs")
    op.drop_index("ix_timetable_versions_timetable_id", table_name="timetable_versions")
    op.drop_table("timetable_versions")
