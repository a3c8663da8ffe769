from __future__ import annotations

import logging

from sqlalchemy import inspect, text

import app.models  # noqa: F401
from app.db.base import Base
from app.db.session import engine

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS: dict[str, set[str]] = {
    "users": {"id", "email", "role", "teacher_id", "last_login_at"},
    "subjects": {"id", "code", "teaching_periods"},
    "timetable_configs": {"id", "is_active", "periods_per_day", "break_periods", "days_of_week"},
    "timetables": {"id", "config_id"},
    "timetable_entries": {"id", "timetable_id", "day", "period", "is_locked"},
    "timetable_versions": {"id", "timetable_id", "version_number", "is_active"},
    "timetable_change_logs": {"id", "version_id", "action", "changed_by"},
}

ADDITIVE_COLUMNS: tuple[tuple[str, str, str], ...] = (
    ("timetable_entries", "is_locked", "BOOLEAN NOT NULL DEFAULT FALSE"),
    ("subjects", "teaching_periods", "INTEGER NOT NULL DEFAULT 0"),
    ("users", "teacher_id", "VARCHAR(36)"),
    ("users", "last_login_at", "TIMESTAMP WITH TIME ZONE"),
)


def _ensure_column(table_name: str, column_name: str, ddl: str) -> bool:
    with engine.begin() as connection:
        inspector = inspect(connection)
        if table_name not in set(inspector.get_table_names()):
            return False
        column_names = {item["name"] for item in inspector.get_columns(table_name)}
        if column_name in column_names:
            return False
        connection.execute(text(f"ALTER TABLE {table_name} ADD COLUMN {column_name} {ddl}"))
    logger.warning("SCHEMA PATCHED | table=%s | column=%s", table_name, column_name)
    return True


def _ensure_additive_columns() -> None:
    for table_name, column_name, ddl in ADDITIVE_COLUMNS:
        _ensure_column(table_name, column_name, ddl)


def _assert_required_columns() -> None:
    with engine.begin() as connection:
        inspector = inspect(connection)
        table_names = set(inspector.get_table_names())
        missing_tables = [name for name in REQUIRED_COLUMNS if name not in table_names]
        if missing_tables:
            raise RuntimeError(f"Missing required tables: {', '.join(sorted(missing_tables))}")

        missing_columns: list[str] = []
        for table_name, required in REQUIRED_COLUMNS.items():
            existing = {item["name"] for item in inspector.get_columns(table_name)}
            for column_name in sorted(required - existing):
                missing_columns.append(f"{table_name}.{column_name}")
        if missing_columns:
            raise RuntimeError(f"Missing required columns: {', '.join(missing_columns)}")


def ensure_runtime_schema_compatibility() -> None:
    try:
        # Ensure missing tables are present before additive compatibility patches.
        Base.metadata.create_all(bind=engine)
        _ensure_additive_columns()
        _assert_required_columns()
    except Exception as exc:  # pragma: no cover - runtime environment dependent
        logger.exception("Runtime schema compatibility bootstrap failed")
        raise RuntimeError("Runtime schema compatibility bootstrap failed") from exc
