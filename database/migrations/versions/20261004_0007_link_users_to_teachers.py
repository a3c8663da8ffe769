"""link users to teachers

Revision ID: 20261004_0007
Revises: 20261003_0006
Create Date: 2026-10-04 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20261004_0007"
down_revision = "20261003_0006"
branch_labels = None
depends_on = None


def upgrade() -> None:
    with op.batch_alter_table("users") as batch_op:
        batch_op.add_column(sa.Column("teacher_id", sa.String(length=36), nullable=True))
        batch_op.add_column(sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True))
        batch_op.create_foreign_key(
            "fk_users_teacher_id_teachers",
            "teachers",
            ["teacher_id"],
            ["id"],
            ondelete="SET NULL",
        )
        batch_op.create_unique_constraint("uq_users_teacher_id", ["teacher_id"])


def downgrade() -> None:
    with op.batch_alter_table("users") as batch_op:
        batch_op.drop_constraint("uq_users_teacher_id", type_="unique")
        batch_op.drop_constraint("fk_users_teacher_id_teachers", type_="foreignkey")
        batch_op.drop_column("last_login_at")
        batch_op.drop_column("teacher_id")
