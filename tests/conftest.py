# tests/conftest.py
"""
Pytest configuration and fixtures.

Environment is set before the app is imported so settings, the module-level
engine and the identity resolver all pick up the test values.
"""
import os
import sys
from pathlib import Path

project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["IDENTITY_MODE"] = "jwt"
os.environ["SECRET_KEY"] = "test-secret-key-for-portal-tests"
os.environ["JWT_AUDIENCE"] = "authenticated"
os.environ["EMAIL_HOST"] = ""
os.environ["PROFILE_RETRY_BACKOFF_SECONDS"] = "0"

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

from app.auth.identity import JWTSessionResolver
from app.database import Base, build_engine, get_db
from app.main import app
from app.services.identity_provider import IdentityProviderClient
from tests.factories import TEST_SECRET


@pytest.fixture
def engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'portal.db'}")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def serialized_session_factory(tmp_path):
    """
    File-backed SQLite where every transaction takes the write lock up front,
    so concurrent writers queue on the database instead of failing with
    'database is locked'.
    """
    engine = create_engine(
        f"sqlite:///{tmp_path / 'race.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    Base.metadata.create_all(engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture
def provider_requests():
    """Requests seen by the mocked identity provider."""
    return []


@pytest.fixture
def provider_handler():
    """Replace in a test to script identity provider answers."""
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, json={"msg": "not scripted"})
    return handler


@pytest.fixture
def identity_client(provider_handler, provider_requests):
    def record(request: httpx.Request) -> httpx.Response:
        provider_requests.append(request)
        return provider_handler(request)

    return IdentityProviderClient(
        base_url="https://idp.test",
        api_key="anon-key",
        timeout=1.0,
        transport=httpx.MockTransport(record),
    )


@pytest.fixture
def client(session_factory, identity_client):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    previous = (
        app.state.session_factory,
        app.state.identity_resolver,
        app.state.identity_client,
    )
    app.dependency_overrides[get_db] = override_get_db
    app.state.session_factory = session_factory
    app.state.identity_resolver = JWTSessionResolver(TEST_SECRET, "HS256", "authenticated")
    app.state.identity_client = identity_client

    with TestClient(app, follow_redirects=False) as test_client:
        yield test_client

    app.dependency_overrides.clear()
    (
        app.state.session_factory,
        app.state.identity_resolver,
        app.state.identity_client,
    ) = previous
