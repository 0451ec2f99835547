"""
Root conftest.py for pytest configuration and shared fixtures.
"""
import os
import pytest
from typing import Generator
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

# Set test environment BEFORE importing any app code
os.environ["ENV"] = "test"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["GITHUB_WEBHOOK_SECRET"] = "test-webhook-secret"
os.environ["MONITORED_USERNAME"] = "alice"
os.environ["DB_DEBUG"] = "0"

TEST_WEBHOOK_SECRET = os.environ["GITHUB_WEBHOOK_SECRET"]


@pytest.fixture(scope="session")
def test_db_engine():
    """
    Create a test database engine using SQLite in-memory.
    Session-scoped so it's created once for all tests.
    """
    from services.pushwatch.app.db import Base
    # Import all models so they're registered with Base.metadata
    from services.pushwatch.app.models.github_events import GithubEvent  # noqa: F401

    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,  # Required for SQLite in-memory
        echo=False,
    )

    Base.metadata.create_all(engine)

    yield engine

    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(test_db_engine) -> Generator[Session, None, None]:
    """
    Create a new database session for a test.
    Function-scoped so each test gets a fresh session with rollback.
    """
    connection = test_db_engine.connect()
    transaction = connection.begin()

    SessionLocal = sessionmaker(bind=connection, expire_on_commit=False)
    session = SessionLocal()

    # Begin a nested transaction (using SAVEPOINT)
    nested = connection.begin_nested()

    # If the application code calls session.commit(), it will only commit
    # the nested transaction (SAVEPOINT), not the outer transaction
    @event.listens_for(session, "after_transaction_end")
    def restart_savepoint(session, transaction):
        if transaction.nested and not transaction._parent.nested:
            session.expire_all()
            session.begin_nested()

    yield session

    # Rollback everything (test changes are discarded)
    session.close()
    transaction.rollback()
    connection.close()


@pytest.fixture(scope="function")
def client(test_db_engine, db_session: Session) -> Generator[TestClient, None, None]:
    """
    Create a FastAPI test client with database overrides.
    """
    # Must import here to ensure test environment is set
    import services.pushwatch.app.db as db_module
    from services.pushwatch.app.main import app
    from services.pushwatch.app.api.deps import get_db_session

    # Override the global engine and sessionmaker
    original_engine = db_module._engine
    original_sessionmaker = db_module._SessionLocal

    db_module._engine = test_db_engine
    db_module._SessionLocal = sessionmaker(bind=test_db_engine, expire_on_commit=False)

    def override_get_db():
        try:
            yield db_session
        finally:
            pass  # Don't close, managed by db_session fixture

    app.dependency_overrides[get_db_session] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    # Restore original state
    app.dependency_overrides.clear()
    db_module._engine = original_engine
    db_module._SessionLocal = original_sessionmaker


@pytest.fixture
def webhook_secret() -> str:
    return TEST_WEBHOOK_SECRET


@pytest.fixture
def sample_push_payload():
    """Minimal GitHub push payload for the monitored user."""
    return {
        "ref": "refs/heads/main",
        "pusher": {"name": "alice", "email": "a@x.com"},
        "head_commit": {
            "id": "6dcb09b5b57875f334f61aebed695e2e4193db5e",
            "message": "Fix all the bugs",
            "timestamp": "2024-01-01T00:00:00Z",
        },
    }


@pytest.fixture(autouse=True)
def reset_environment():
    """Reset environment variables after each test."""
    original_env = os.environ.copy()
    yield
    os.environ.clear()
    os.environ.update(original_env)
