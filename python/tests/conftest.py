"""Pytest configuration and fixtures for memorial tests.

Test isolation strategy:
- Every test gets its own SQLite database file under tmp_path, with the
  schema created from the ORM metadata
- Tests needing several independent connections (race tests) open extra
  sessions from session_factory; they see each other's commits
- API tests use an app wired with MockJwtVerifier and get_db overridden to
  the per-test database
"""

import os
import sys
from collections.abc import Generator
from pathlib import Path

# Settings are read at app creation; give the test run a complete environment
os.environ.setdefault("MEMORIAL_ENV", "test")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SUPABASE_JWKS_URL", "http://localhost:54321/auth/v1/.well-known/jwks.json")
os.environ.setdefault("SUPABASE_ISSUER", "test-issuer")
os.environ.setdefault("SUPABASE_AUDIENCES", "test-audience")
os.environ.setdefault("LOG_JSON", "false")

# Add repo root to sys.path for importing top-level packages (e.g., apps)
_repo_root = Path(__file__).parent.parent.parent
if str(_repo_root) not in sys.path:
    sys.path.insert(0, str(_repo_root))

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import Engine
from sqlalchemy.orm import Session, sessionmaker

from memorial.app import add_request_id_middleware, create_app
from memorial.config import clear_settings_cache
from memorial.db.engine import create_db_engine
from memorial.db.models import Base
from memorial.db.session import create_session_factory, get_db
from tests.support.test_verifier import MockJwtVerifier


@pytest.fixture
def engine(tmp_path: Path) -> Generator[Engine, None, None]:
    """Create a file-backed SQLite engine with the full schema."""
    engine = create_db_engine(f"sqlite:///{tmp_path / 'memorial.db'}")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine: Engine) -> sessionmaker[Session]:
    return create_session_factory(engine)


@pytest.fixture
def db_session(session_factory: sessionmaker[Session]) -> Generator[Session, None, None]:
    """Provide a database session on the per-test database."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def app(session_factory: sessionmaker[Session]) -> FastAPI:
    """Provide the full app: auth (test verifier), routes and request-id middleware."""
    app = create_app(token_verifier=MockJwtVerifier(), session_factory=session_factory)

    def override_get_db() -> Generator[Session, None, None]:
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    add_request_id_middleware(app, log_requests=False)
    return app


@pytest.fixture
def client(app: FastAPI) -> Generator[TestClient, None, None]:
    """Provide a test client with auth middleware.

    Use auth_headers() to generate valid tokens for requests.
    """
    with TestClient(app) as client:
        yield client


@pytest.fixture
def test_verifier() -> MockJwtVerifier:
    """Provide a test token verifier."""
    return MockJwtVerifier()


@pytest.fixture(autouse=True)
def reset_settings_cache():
    """Reset the settings cache before each test."""
    clear_settings_cache()
    yield
    clear_settings_cache()
