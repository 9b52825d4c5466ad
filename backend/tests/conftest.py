import os

# Keep the app's own engine off disk; every test uses test_engine below
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import uuid  # noqa: E402
from typing import Optional  # noqa: E402

import pytest  # noqa: E402
from fastapi import Header, HTTPException  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from sqlmodel import Session, SQLModel, create_engine  # noqa: E402

from courtside.auth import get_current_player_id  # noqa: E402
from courtside.database import get_session, init_db  # noqa: E402
from courtside.main import app  # noqa: E402

TEST_DATABASE_URL = "sqlite:///:memory:"
TEST_PLAYER_HEADER = "X-Test-Player"

# ============================================================================
# Test Database Setup with StaticPool
# ============================================================================
# 1. sqlite:///:memory: with StaticPool so ALL sessions share the same DB
# 2. check_same_thread=False required for TestClient/threaded access
# 3. Tables created per test and dropped afterwards (see session_fixture)
# 4. App dependencies overridden: DB session and caller identity (see client_fixture)
# Threaded race tests use their own file-backed engine (see file_engine)
test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


def override_get_session():
    """Override session to use test engine"""
    with Session(test_engine) as session:
        yield session


def override_current_player_id(x_test_player: Optional[str] = Header(default=None)) -> uuid.UUID:
    """Stand-in for the identity service: the caller is whoever X-Test-Player names"""
    if not x_test_player:
        raise HTTPException(status_code=401, detail="UNAUTHORIZED: Missing Authorization header")
    return uuid.UUID(x_test_player)


def _as_player(player_id: uuid.UUID) -> dict:
    return {TEST_PLAYER_HEADER: str(player_id)}


@pytest.fixture(name="session", scope="function")
def session_fixture():
    """Provide a test database session on a fresh schema"""
    init_db(test_engine)

    with Session(test_engine) as session:
        yield session

    SQLModel.metadata.drop_all(test_engine)


@pytest.fixture(name="client")
def client_fixture(session: Session):
    """Provide a test client with overridden database session and identity

    Overrides MUST be set BEFORE TestClient() and stay in place for the
    entire duration so the app never uses its own engine.
    """
    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_current_player_id] = override_current_player_id

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def file_engine(tmp_path):
    """File-backed SQLite engine for tests that need real concurrent connections"""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'race.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def as_player():
    """Headers that make a request come from the given player"""
    return _as_player


@pytest.fixture
def owner_id() -> uuid.UUID:
    return uuid.uuid4()
