from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import func, inspect, select, text
from sqlalchemy.engine import Connection
from sqlalchemy.exc import SQLAlchemyError

from app.db.bootstrap import REQUIRED_COLUMNS
from app.db.session import engine
from app.models.timetable import Timetable
from app.models.timetable_config import TimetableConfig

router = APIRouter()

VERSIONING_TABLES = ("timetable_versions", "timetable_change_logs")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _schema_gaps(connection: Connection) -> tuple[list[str], dict[str, list[str]]]:
    inspector = inspect(connection)
    table_names = set(inspector.get_table_names())
    missing_tables: list[str] = []
    missing_columns: dict[str, list[str]] = {}
    for table_name, columns in REQUIRED_COLUMNS.items():
        if table_name not in table_names:
            missing_tables.append(table_name)
            continue
        existing = {item["name"] for item in inspector.get_columns(table_name)}
        missing = sorted(columns - existing)
        if missing:
            missing_columns[table_name] = missing
    return missing_tables, missing_columns


def _scheduling_summary(connection: Connection) -> dict:
    active_config_id = connection.execute(
        select(TimetableConfig.id)
        .where(TimetableConfig.is_active.is_(True))
        .order_by(TimetableConfig.created_at.desc())
        .limit(1)
    ).scalar_one_or_none()
    timetable_count = connection.execute(select(func.count()).select_from(Timetable)).scalar_one()
    return {
        "active_config_id": active_config_id,
        "using_default_config": active_config_id is None,
        "timetables": timetable_count,
    }


@router.get("/health")
def health() -> dict:
    return {"status": "ok"}


@router.get("/health/live")
def health_live() -> dict:
    return {"status": "ok", "timestamp": _now()}


@router.get("/health/ready")
def health_ready() -> JSONResponse:
    db_ok = True
    missing_tables: list[str] = []
    missing_columns: dict[str, list[str]] = {}
    scheduling: dict | None = None
    db_error: str | None = None

    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
            missing_tables, missing_columns = _schema_gaps(connection)
            if "timetable_configs" not in missing_tables and "timetables" not in missing_tables:
                scheduling = _scheduling_summary(connection)
    except SQLAlchemyError as exc:  # pragma: no cover - environment dependent
        db_ok = False
        db_error = str(exc)

    schema_ok = not missing_tables and not missing_columns
    ready = db_ok and schema_ok
    versioning_ok = not any(name in missing_tables for name in VERSIONING_TABLES)

    payload = {
        "status": "ok" if ready else "degraded",
        "timestamp": _now(),
        "database": {
            "ok": db_ok,
            "schema_ok": schema_ok,
            "missing_tables": missing_tables,
            "missing_columns": missing_columns,
            "error": db_error,
        },
        "versioning": {"available": db_ok and versioning_ok},
        "scheduling": scheduling,
    }
    return JSONResponse(status_code=200 if ready else 503, content=payload)
