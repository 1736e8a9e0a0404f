"""Pytest configuration and shared fixtures."""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from docgov.core.approval.engine import ApprovalWorkflowEngine
from docgov.core.approval.locks import KeyedLock
from docgov.db.base import Base
from docgov.db.session import init_db
from docgov.services import DocumentService, PolicyAcceptanceTracker
from docgov.stores import create_memory_stores, create_sql_stores

from tests.factories import ADMIN, ANALYST, COORDINATOR, MANAGER, OPERATOR, create_user


@pytest.fixture
def role_assignments():
    """One user per role."""
    return {
        ADMIN: "admin",
        MANAGER: "manager",
        COORDINATOR: "coordinator",
        ANALYST: "analyst",
        OPERATOR: "operator",
    }


@pytest.fixture
def stores(role_assignments):
    """Empty in-memory store bundle with the seeded role directory."""
    return create_memory_stores(role_assignments)


@pytest.fixture
def locks():
    """Lock registry private to one test."""
    return KeyedLock()


@pytest.fixture
def engine(stores, locks):
    return ApprovalWorkflowEngine(stores, locks=locks)


@pytest.fixture
def document_service(stores, locks):
    return DocumentService(stores, locks=locks)


@pytest.fixture
def tracker(stores):
    return PolicyAcceptanceTracker(stores)


# ---------------------------------------------------------------------------
# SQLAlchemy
# ---------------------------------------------------------------------------


@pytest.fixture
def sql_engine():
    """In-memory SQLite database shared by every connection of one test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(sql_engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=sql_engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def sql_users(db_session):
    """One user row per role, keyed by role name."""
    users = {
        role: create_user(db_session, role=role, username=role)
        for role in ("admin", "manager", "coordinator", "analyst", "operator")
    }
    db_session.commit()
    return {role: user.id for role, user in users.items()}


@pytest.fixture
def sql_stores(db_session, sql_users):
    return create_sql_stores(db_session)


# ---------------------------------------------------------------------------
# API
# ---------------------------------------------------------------------------


@pytest.fixture
def client(stores):
    """TestClient whose requests run against the in-memory bundle."""
    from fastapi.testclient import TestClient

    from docgov.api.deps import get_stores
    from docgov.api.main import app

    app.dependency_overrides[get_stores] = lambda: stores
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
