"""add is_locked to timetable entries

Revision ID: 20261003_0006
Revises: 20261002_0005
Create Date: 2026-10-03 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20261003_0006"
down_revision = "20261002_0005"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.add_column(
        "timetable_entries",
        sa.Column("is_locked", sa.Boolean(), nullable=False, server_default=sa.text("false")),
    )


def downgrade() -> None:
    op.drop_column("timetable_entries", "is_locked")
