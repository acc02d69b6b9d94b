"""Pytest fixtures for testing"""

import httpx
import pytest
from typing import Callable, Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from mock.portal_server.main import MockRemote, create_mock_app
from society_portal.api.main import create_app
from society_portal.infrastructure.clients.portal import PortalClient
from society_portal.infrastructure.database.models import Base
from society_portal.services.notices import NoticeBoard
from society_portal.services.session_store import SessionStore


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

REMOTE_BASE_URL = "http://remote.test/api"


@pytest.fixture
def db_factory() -> Generator[Callable[[], Session], None, None]:
    """Create test database and hand out its session factory"""
    Base.metadata.create_all(bind=engine)
    try:
        yield TestingSessionLocal
    finally:
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def remote() -> MockRemote:
    """Fresh in-memory remote society API"""
    return MockRemote()


@pytest.fixture
def portal_client(remote: MockRemote) -> PortalClient:
    """Remote API client wired to the mock server in-process"""
    return PortalClient(
        base_url=REMOTE_BASE_URL,
        transport=httpx.ASGITransport(app=create_mock_app(remote)),
    )


@pytest.fixture
def session_store(portal_client: PortalClient, db_factory) -> SessionStore:
    return SessionStore(portal_client, db_factory)


@pytest.fixture
async def tenant_store(session_store: SessionStore) -> SessionStore:
    """Session store signed in as the invited PG tenant"""
    await session_store.authenticate("tenant@example.com", "secret")
    return session_store


@pytest.fixture
async def owner_store(session_store: SessionStore) -> SessionStore:
    """Session store signed in as a flat owner with maintenance invoices"""
    await session_store.authenticate("owner@example.com", "secret")
    return session_store


@pytest.fixture
def notices() -> NoticeBoard:
    return NoticeBoard()


@pytest.fixture
def client(portal_client: PortalClient, db_factory) -> Generator[TestClient, None, None]:
    """Create FastAPI test client with test database and mock remote API"""
    app = create_app(client=portal_client, db_factory=db_factory)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def login(client: TestClient) -> Callable[[str], dict]:
    """Sign the host in as one of the seeded remote users"""

    def _login(email: str = "tenant@example.com", password: str = "secret") -> dict:
        response = client.post("/v1/session/login", json={"email": email, "password": password})
        assert response.status_code == 200, response.text
        return response.json()

    return _login
