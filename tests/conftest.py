"""
Pantry Lookup API — Test Configuration (conftest.py)
======================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy (all function-scoped):
    ├── mock_db_session:  AsyncMock database session (no real DB needed)
    ├── db_session:       In-memory SQLite session with the lookup schema
    ├── seeded_session:   db_session populated with reference rows
    ├── auth_transport:   httpx.MockTransport emulating the identity provider
    └── api_client / api_client_factory:
                          HTTPX AsyncClient talking to the FastAPI app, with the
                          backend handle wired to a test session + fake provider
"""

import json
import os

# Override settings BEFORE any pantry_api import reads them
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["BACKEND_URL"] = "http://backend.test"
os.environ["BACKEND_ANON_KEY"] = "test-anon-key"
os.environ["LOG_LEVEL"] = "WARNING"

from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
import pytest_asyncio
from fastapi import Request, Response
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from pantry_api.database import Base
from pantry_api.models.lookup import ProductCatalog, ProductCategory, StapleDefinition, Unit
from pantry_api.services.backend_client import create_backend_client, get_backend_client


# ══════════════════════════════════════════════════════════════════════════
# Fake Identity Provider
# ══════════════════════════════════════════════════════════════════════════

USER_ID = "1904e4e8-db9a-435d-a881-2c460c715785"
VALID_TOKEN = "valid-access-token"
EXPIRED_TOKEN = "expired-access-token"
VALID_REFRESH_TOKEN = "valid-refresh-token"
SESSION_COOKIE = "sb-backend-auth-token"

USER_PAYLOAD = {
    "id": USER_ID,
    "aud": "authenticated",
    "role": "authenticated",
    "email": "cook@example.com",
    "app_metadata": {"provider": "email", "providers": ["email"]},
    "user_metadata": {},
    "created_at": "2026-01-20T12:00:00Z",
}


def auth_provider(request: httpx.Request) -> httpx.Response:
    """
    Emulates /auth/v1/user, /auth/v1/token and /auth/v1/health.

    Bodies follow the provider's JSON shapes closely enough for the
    supabase_auth client to parse them (user records, sessions, error codes).
    """
    if request.headers.get("apikey") != "test-anon-key":
        return httpx.Response(401, json={"message": "No API key found in request"})

    if request.url.path == "/auth/v1/user":
        if request.headers.get("authorization") == f"Bearer {VALID_TOKEN}":
            return httpx.Response(200, json=USER_PAYLOAD)
        return httpx.Response(401, json={"code": 401, "msg": "invalid JWT: token is expired"})

    if request.url.path == "/auth/v1/token":
        body = json.loads(request.content)
        if request.url.params.get("grant_type") == "refresh_token" and \
                body.get("refresh_token") == VALID_REFRESH_TOKEN:
            return httpx.Response(200, json={
                "access_token": VALID_TOKEN,
                "refresh_token": "rotated-refresh-token",
                "token_type": "bearer",
                "expires_in": 3600,
                "user": USER_PAYLOAD,
            })
        return httpx.Response(400, json={
            "code": 400,
            "error_code": "refresh_token_not_found",
            "msg": "Invalid Refresh Token: Refresh Token Not Found",
        })

    if request.url.path == "/auth/v1/health":
        return httpx.Response(200, json={"name": "GoTrue"})

    return httpx.Response(404)


@pytest.fixture
def auth_calls():
    """Records every request sent to the fake identity provider."""
    return []


@pytest.fixture
def auth_transport(auth_calls):
    def handler(request: httpx.Request) -> httpx.Response:
        auth_calls.append(request)
        return auth_provider(request)
    return httpx.MockTransport(handler)


# ══════════════════════════════════════════════════════════════════════════
# Database Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def mock_db_session():
    """
    Provides a mock async database session.

    Usage:
        mock_db_session.execute.assert_not_called()
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.bind = MagicMock()
    session.bind.dialect.name = "postgresql"
    return session


@pytest_asyncio.fixture
async def db_session():
    """
    Provides a session on a fresh in-memory SQLite database.

    StaticPool keeps a single connection, so the schema created here is the
    one every query in the test sees.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session

    await engine.dispose()


@pytest_asyncio.fixture
async def seeded_session(db_session):
    """
    db_session with reference rows.

    Expected API orderings:
        units:      sztuka | litr, mililitr | dekagram, gram, kilogram
        categories: ids 2, 1, 3, 4 (1 and 3 share display_order 2)
        staples:    ids 1, 4 (2 inactive, 3 points at a missing product)
    """
    db_session.add_all([
        Unit(id=1, name_pl="gram", abbreviation="g", unit_type="weight", base_unit_multiplier=1),
        Unit(id=2, name_pl="kilogram", abbreviation="kg", unit_type="weight", base_unit_multiplier=1000),
        Unit(id=3, name_pl="litr", abbreviation="l", unit_type="volume", base_unit_multiplier=1000),
        Unit(id=4, name_pl="mililitr", abbreviation="ml", unit_type="volume", base_unit_multiplier=1),
        Unit(id=5, name_pl="sztuka", abbreviation="szt.", unit_type="count", base_unit_multiplier=1),
        Unit(id=6, name_pl="dekagram", abbreviation="dag", unit_type="weight", base_unit_multiplier=10),
        ProductCategory(id=1, name_pl="Warzywa", display_order=2),
        ProductCategory(id=2, name_pl="Owoce", display_order=1),
        ProductCategory(id=3, name_pl="Nabial", display_order=2),
        ProductCategory(id=4, name_pl="Pieczywo", display_order=3),
        ProductCatalog(id=100, name_pl="Sol"),
        ProductCatalog(id=101, name_pl="Pieprz czarny"),
        ProductCatalog(id=102, name_pl="Olej rzepakowy"),
    ])
    await db_session.flush()
    db_session.add_all([
        StapleDefinition(id=1, product_id=100, is_active=True),
        StapleDefinition(id=2, product_id=101, is_active=False),
        # SQLite does not enforce foreign keys by default: an orphaned staple
        StapleDefinition(id=3, product_id=999, is_active=True),
        StapleDefinition(id=4, product_id=102, is_active=True),
    ])
    await db_session.commit()
    return db_session


# ══════════════════════════════════════════════════════════════════════════
# API Client Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def api_client_factory(auth_transport):
    """
    Builds an HTTPX AsyncClient bound to the app, with the backend handle
    using the given session and the fake identity provider.

    Usage:
        async def test_units(api_client_factory, seeded_session):
            client = await api_client_factory(seeded_session)
            response = await client.get("/api/units")
    """
    from pantry_api.main import app

    clients = []

    async def factory(session):
        def backend_client_override(request: Request, response: Response):
            return create_backend_client(
                headers=request.headers,
                cookies=request.cookies,
                session=session,
                response=response,
                transport=auth_transport,
            )

        app.dependency_overrides[get_backend_client] = backend_client_override
        client = AsyncClient(transport=ASGITransport(app=app), base_url="http://test")
        clients.append(client)
        return client

    yield factory

    for client in clients:
        await client.aclose()
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def api_client(api_client_factory, seeded_session):
    """API client backed by the seeded SQLite database."""
    return await api_client_factory(seeded_session)


@pytest.fixture
def bearer_headers():
    return {"Authorization": f"Bearer {VALID_TOKEN}"}
