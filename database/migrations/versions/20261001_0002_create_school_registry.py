"""create teachers, classes, subjects and their links

Revision ID: 20261001_0002
Revises: 20261001_0001
Create Date: 2026-10-01 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20261001_0002"
down_revision = "20261001_0001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "teachers",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("first_name", sa.String(length=100), nullable=False),
        sa.Column("last_name", sa.String(length=100), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True, unique=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )

    op.create_table(
        "school_classes",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("form", sa.String(length=50), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_school_classes_name", "school_classes", ["name"], unique=True)

    op.create_table(
        "subjects",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("code", sa.String(length=50), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_subjects_code", "subjects", ["code"], unique=True)

    op.create_table(
        "teacher_classes",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("teacher_id", sa.String(length=36), sa.ForeignKey("teachers.id", ondelete="CASCADE"), nullable=False),
        sa.Column(
            "class_id", sa.String(length=36), sa.ForeignKey("school_classes.id", ondelete="CASCADE"), nullable=False
        ),
        sa.UniqueConstraint("teacher_id", "class_id", name="uq_teacher_classes_teacher_class"),
    )
    op.create_index("ix_teacher_classes_teacher_id", "teacher_classes", ["teacher_id"])
    op.create_index("ix_teacher_classes_class_id", "teacher_classes", ["class_id"])

    op.create_table(
        "teacher_subjects",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("teacher_id", sa.String(length=36), sa.ForeignKey("teachers.id", ondelete="CASCADE"), nullable=False),
        sa.Column("subject_id", sa.String(length=36), sa.ForeignKey("subjects.id", ondelete="CASCADE"), nullable=False),
        sa.UniqueConstraint("teacher_id", "subject_id", name="uq_teacher_subjects_teacher_subject"),
    )
    op.create_index("ix_teacher_subjects_teacher_id", "teacher_subjects", ["teacher_id"])
    op.create_index("ix_teacher_subjects_subject_id", "teacher_subjects", ["subject_id"])

    op.create_table(
        "class_subjects",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column(
            "class_id", sa.String(length=36), sa.ForeignKey("school_classes.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("subject_id", sa.String(length=36), sa.ForeignKey("subjects.id", ondelete="CASCADE"), nullable=False),
        sa.UniqueConstraint("class_id", "subject_id", name="uq_class_subjects_class_subject"),
    )
    op.create_index("ix_class_subjects_class_id", "class_subjects", ["class_id"])
    op.create_index("ix_class_subjects_subject_id", "class_subjects", ["subject_id"])


def downgrade() -> None:
    op.drop_index("ix_class_subjects_subject_id", table_name="class_subjects")
    op.drop_index("ix_class_subjects_class_id", table_name="class_subjects")
    op.drop_table("class_subjects")
    op.drop_index("ix_teacher_subjects_subject_id", table_name="teacher_subjects")
    op.drop_index("ix_teacher_subjects_teacher_id", table_name="teacher_subjects")
    op.drop_table("teacher_subjects")
    op.drop_index("ix_teacher_classes_class_id", table_name="teacher_classes")
    op.drop_index("ix_teacher_classes_teacher_id", table_name="teacher_classes")
    op.drop_table("teacher_classes")
    op.drop_index("ix_subjects_code", table_name="subjects")
    op.drop_table("subjects")
    op.drop_index("ix_school_classes_name", table_name="school_classes")
    op.drop_table("school_classes")
    op.drop_table("teachers")
