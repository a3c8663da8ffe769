import pytest
from sqlalchemy import create_engine, inspect, text

from app.db import bootstrap


def _raise_error(message: str):
    raise RuntimeError(message)


def _columns(inspector, table_name: str) -> set[str]:
    return {item["name"] for item in inspector.get_columns(table_name)}


def test_runtime_schema_bootstrap_raises_on_validation_failure(monkeypatch):
    monkeypatch.setattr(bootstrap.Base.metadata, "create_all", lambda bind: None)
    monkeypatch.setattr(bootstrap, "_ensure_additive_columns", lambda: None)
    monkeypatch.setattr(
        bootstrap,
        "_assert_required_columns",
        lambda: _raise_error("missing required schema"),
    )

    with pytest.raises(RuntimeError, match="Runtime schema compatibility bootstrap failed"):
        bootstrap.ensure_runtime_schema_compatibility()


def test_bootstrap_patches_legacy_tables(monkeypatch, tmp_path):
    engine = create_engine(f"sqlite+pysqlite:///{tmp_path / 'legacy.db'}")
    with engine.begin() as connection:
        connection.execute(
            text(
                "CREATE TABLE users ("
                "id VARCHAR(36) PRIMARY KEY, name VARCHAR(200), email VARCHAR(255), "
                "hashed_password VARCHAR(255), role VARCHAR(20), is_active BOOLEAN)"
            )
        )
        connection.execute(text("CREATE TABLE subjects (id VARCHAR(36) PRIMARY KEY, code VARCHAR(50))"))
        connection.execute(
            text(
                "CREATE TABLE timetable_entries ("
                "id VARCHAR(36) PRIMARY KEY, timetable_id VARCHAR(36), day VARCHAR(20), period VARCHAR(10))"
            )
        )
    monkeypatch.setattr(bootstrap, "engine", engine)

    bootstrap.ensure_runtime_schema_compatibility()

    inspector = inspect(engine)
    assert "is_locked" in _columns(inspector, "timetable_entries")
    assert "teaching_periods" in _columns(inspector, "subjects")
    assert {"teacher_id", "last_login_at"} <= _columns(inspector, "users")
    assert "timetable_change_logs" in inspector.get_table_names()
    engine.dispose()


def test_ensure_column_is_idempotent(monkeypatch, tmp_path):
    engine = create_engine(f"sqlite+pysqlite:///{tmp_path / 'patch.db'}")
    with engine.begin() as connection:
        connection.execute(text("CREATE TABLE subjects (id VARCHAR(36) PRIMARY KEY)"))
    monkeypatch.setattr(bootstrap, "engine", engine)

    assert bootstrap._ensure_column("subjects", "teaching_periods", "INTEGER NOT NULL DEFAULT 0") is True
    assert bootstrap._ensure_column("subjects", "teaching_periods", "INTEGER NOT NULL DEFAULT 0") is False
    assert bootstrap._ensure_column("missing_table", "anything", "INTEGER") is False
    engine.dispose()
