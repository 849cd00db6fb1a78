"""Shared fixtures: in-memory database, tenants and employee factory."""

import uuid

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from src.config.settings import reset_settings
from src.data.employee_repository import EmployeeRepository
from src.database.database import get_db
from src.main import app
from src.models.base import Base
from src.models.tenant import Tenant


@pytest.fixture
def engine():
    """In-memory SQLite engine shared across threads."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # pysqlite needs explicit BEGIN for SAVEPOINT to behave
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        dbapi_connection.execute("PRAGMA foreign_keys=ON")

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")

    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    factory = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    session = factory()
    yield session
    session.rollback()
    session.close()


@pytest.fixture(autouse=True)
def fresh_settings():
    """Re-read settings from the environment for each test."""
    reset_settings()
    yield
    reset_settings()


def _make_tenant(session, name: str, subdomain: str, is_active: bool = True) -> Tenant:
    tenant = Tenant(
        id=str(uuid.uuid4()),
        name=name,
        subdomain=subdomain,
        is_active=is_active,
    )
    session.add(tenant)
    session.flush()
    return tenant


@pytest.fixture
def tenant(session):
    return _make_tenant(session, "Acme Corp", "acme")


@pytest.fixture
def other_tenant(session):
    return _make_tenant(session, "Globex", "globex")


@pytest.fixture
def inactive_tenant(session):
    return _make_tenant(session, "Initech", "initech", is_active=False)


@pytest.fixture
def repository(session):
    return EmployeeRepository(session)


@pytest.fixture
def make_employee(repository, tenant):
    """Create employees in the default tenant with sensible defaults."""
    counter = {"n": 0}

    def _make(tenant_id=None, **overrides):
        counter["n"] += 1
        data = {
            "first_name": "Test",
            "last_name": f"Person {chr(ord('a') + counter['n'] - 1)}",
            "email": f"person{counter['n']}@example.com",
            "skills": [],
            "custom_fields": {},
        }
        data.update(overrides)
        return repository.create(tenant_id or tenant.id, data)

    return _make


@pytest.fixture
def client(session):
    """TestClient bound to the test session."""

    def override_get_db():
        yield session

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()
