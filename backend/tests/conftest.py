import os
import tempfile
from pathlib import Path

# The app engine is built at import time; keep it off the production database.
_BOOTSTRAP_DB = Path(tempfile.mkdtemp(prefix="classgrid-tests-")) / "bootstrap.db"
os.environ.setdefault("DATABASE_URL", f"sqlite+pysqlite:///{_BOOTSTRAP_DB}")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine, event  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from app.api.deps import get_db  # noqa: E402
from app.db.base import Base  # noqa: E402
from app.main import app  # noqa: E402
from app.models.user import User, UserRole  # noqa: E402


def _build_engine():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # pysqlite needs explicit BEGIN handling for SAVEPOINT to behave.
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")

    Base.metadata.create_all(bind=engine)
    return engine


@pytest.fixture()
def engine():
    engine = _build_engine()
    yield engine
    engine.dispose()


@pytest.fixture()
def db_session(engine):
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def user(db_session):
    record = User(name="Scheduler", email="scheduler@example.com", hashed_password="x", role=UserRole.admin)
    db_session.add(record)
    db_session.commit()
    return record


@pytest.fixture()
def client(engine):
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


def register_user(client, payload):
    response = client.post("/api/auth/register", json=payload)
    assert response.status_code == 201
    return response.json()


def login_user(client, email, password, role=None):
    body = {"email": email, "password": password}
    if role:
        body["role"] = role
    response = client.post("/api/auth/login", json=body)
    assert response.status_code == 200
    return response.json()["access_token"]


def _headers_for(client, role):
    email = f"{role}@example.com"
    register_user(client, {"name": f"{role.title()} User", "email": email, "password": "password123", "role": role})
    token = login_user(client, email, "password123", role)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def admin_headers(client):
    return _headers_for(client, "admin")


@pytest.fixture()
def student_headers(client):
    return _headers_for(client, "student")
