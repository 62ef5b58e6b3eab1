"""
LinkShelf Backend — Test Configuration (conftest.py)
======================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy:
    ├── test_settings:      Settings pinned to mock mode, test environment
    ├── mock_backend:       Empty MockBackend (no users either)
    ├── seeded_backend:     MockBackend with the demo collection
    ├── sql_backend:        SqlBackend over a throwaway SQLite file, demo user only
    ├── backend:            Parametrized over mock + sql (contract tests)
    ├── github_api:         Fake GitHub (httpx.MockTransport) recording calls
    ├── app:                create_app() over seeded_backend + fake GitHub
    ├── test_client:        HTTPX AsyncClient talking to `app` in-process
    └── api:                LinkShelfClient talking to `app` in-process
"""

import os

# Pin configuration BEFORE any linkshelf import: linkshelf.main builds a
# module-level app from the environment
os.environ["DATABASE_URL"] = ""
os.environ["USE_MOCK_DATA"] = "true"
os.environ["GITHUB_CLIENT_ID"] = "test-client-id"
os.environ["GITHUB_CLIENT_SECRET"] = "test-client-secret"
os.environ["ENVIRONMENT"] = "test"
os.environ["LOG_LEVEL"] = "WARNING"  # Reduce noise during tests

from typing import List

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from linkshelf.backends.mock_backend import MockBackend
from linkshelf.backends.sql_backend import SqlBackend
from linkshelf.client.api import LinkShelfClient
from linkshelf.config import Settings
from linkshelf.database import create_all, create_engine
from linkshelf.main import create_app
from linkshelf.services.github_oauth import GitHubOAuthClient

GITHUB_USER = {"id": 4242, "login": "octo"}
GITHUB_EMAILS = [
    {"email": "octo@users.noreply.github.com", "primary": False, "verified": True},
    {"email": "octo@example.com", "primary": True, "verified": True},
]


# ══════════════════════════════════════════════════════════════════════════
# Configuration & Backends
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        _env_file=None,
        database_url="",
        use_mock_data=True,
        environment="test",
        log_level="WARNING",
        github_client_id="test-client-id",
        github_client_secret="test-client-secret",
    )


@pytest.fixture
def mock_backend() -> MockBackend:
    return MockBackend(seed=False)


@pytest.fixture
def seeded_backend() -> MockBackend:
    return MockBackend(seed=True)


@pytest_asyncio.fixture
async def sql_backend(tmp_path, test_settings):
    """
    SqlBackend over a fresh SQLite file per test.

    A file (not :memory:) so every pooled connection sees the same tables.
    """
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'linkshelf.db'}", config=test_settings)
    await create_all(engine)
    backend = SqlBackend(engine)
    await backend.get_current_user()
    yield backend
    await backend.close()


@pytest_asyncio.fixture(params=["mock", "sql"])
async def backend(request, tmp_path, test_settings):
    """
    Runs a test once against each BookmarkBackend implementation.

    Both start empty apart from the demo user, who owns what the tests create.
    """
    if request.param == "mock":
        mock = MockBackend(seed=False)
        await mock.get_current_user()
        yield mock
        return

    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'contract.db'}", config=test_settings)
    await create_all(engine)
    sql = SqlBackend(engine)
    await sql.get_current_user()
    yield sql
    await sql.close()


# ══════════════════════════════════════════════════════════════════════════
# Fake GitHub
# ══════════════════════════════════════════════════════════════════════════

class FakeGitHub:
    """
    Answers the three GitHub endpoints the login flow calls.

    Attributes:
        calls:         Request paths received, in order
        token_payload: Body returned by the token endpoint
    """

    def __init__(self):
        self.calls: List[str] = []
        self.token_payload = {"access_token": "gho_test_token", "token_type": "bearer"}
        self.emails = list(GITHUB_EMAILS)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request.url.path)
        if request.url.path == "/login/oauth/access_token":
            return httpx.Response(200, json=self.token_payload)
        if request.url.path == "/user":
            return httpx.Response(200, json=GITHUB_USER)
        if request.url.path == "/user/emails":
            return httpx.Response(200, json=self.emails)
        return httpx.Response(404, json={"message": "Not Found"})

    def client(self) -> GitHubOAuthClient:
        return GitHubOAuthClient(
            client_id="test-client-id",
            client_secret="test-client-secret",
            redirect_uri="http://test/auth/callback/github",
            transport=httpx.MockTransport(self.handler),
        )


@pytest.fixture
def github_api() -> FakeGitHub:
    return FakeGitHub()


# ══════════════════════════════════════════════════════════════════════════
# Application & HTTP Clients
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def app(test_settings, seeded_backend, github_api):
    return create_app(config=test_settings, backend=seeded_backend, github=github_api.client())


@pytest_asyncio.fixture
async def test_client(app):
    """
    HTTPX AsyncClient routed straight into the ASGI app.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def api(app):
    async with LinkShelfClient(base_url="http://test", transport=ASGITransport(app=app)) as client:
        yield client


def session_cookie_header(token: str) -> dict:
    """Request headers carrying a session cookie (per-request, not jar-based)."""
    return {"Cookie": f"auth-session={token}"}


def set_cookie_headers(response: httpx.Response, name: str) -> List[str]:
    """Set-Cookie header values on `response` for cookie `name`."""
    return [
        value for value in response.headers.get_list("set-cookie")
        if value.startswith(f"{name}=")
    ]
