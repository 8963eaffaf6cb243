"""Pytest configuration and fixtures for BananaTrack tests.

Each test gets a fresh in-memory SQLite database (aiosqlite) with the full
schema, an httpx client bound to the app, one user per role and helpers
for walking a batch through its lifecycle.  Redis-backed caching and
notifications are switched off.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("CACHE_ENABLED", "false")
os.environ.setdefault("NOTIFICATIONS_ENABLED", "false")

from datetime import date
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.auth.jwt import create_access_token
from app.auth.permissions import resolve_permissions
from app.database import Base, get_db
from app.main import app
from app.models.user import User, UserRole
from app.utils.cache import run_pending_invalidations


# ── Test Database Setup ──────────────────────────────────────────

@pytest_asyncio.fixture
async def test_engine():
    """Fresh in-memory database per test."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # SAVEPOINT support: let SQLAlchemy emit BEGIN itself
    @event.listens_for(engine.sync_engine, "connect")
    def _do_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _do_begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """Test client whose requests each run in their own committed session."""

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
                await run_pending_invalidations(session)
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


# ── Users and tokens ─────────────────────────────────────────────

async def _create_user(session_factory, email: str, name: str, role: UserRole) -> User:
    async with session_factory() as session:
        user = User(email=email, full_name=name, role=role, is_active=True)
        session.add(user)
        await session.commit()
        return user


def _headers(user: User) -> dict:
    token = create_access_token(
        user_id=user.id,
        role=user.role.value,
        permissions=resolve_permissions(user.role.value),
    )
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def admin_user(session_factory) -> User:
    return await _create_user(session_factory, "admin@example.com", "Ada Admin", UserRole.SUPER_ADMIN)


@pytest_asyncio.fixture
async def manager_user(session_factory) -> User:
    return await _create_user(session_factory, "manager@example.com", "Mo Manager", UserRole.MANAGER)


@pytest_asyncio.fixture
async def vendor_user(session_factory) -> User:
    return await _create_user(session_factory, "vendor@example.com", "Val Vendor", UserRole.VENDOR)


@pytest_asyncio.fixture
async def other_vendor(session_factory) -> User:
    return await _create_user(session_factory, "vendor2@example.com", "Vic Vendor", UserRole.VENDOR)


@pytest_asyncio.fixture
async def store_keeper(session_factory) -> User:
    return await _create_user(
        session_factory, "store@example.com", "Sam Storekeeper", UserRole.STORE_KEEPER
    )


@pytest.fixture
def manager_headers(manager_user: User) -> dict:
    return _headers(manager_user)


@pytest.fixture
def vendor_headers(vendor_user: User) -> dict:
    return _headers(vendor_user)


@pytest.fixture
def other_vendor_headers(other_vendor: User) -> dict:
    return _headers(other_vendor)


@pytest.fixture
def store_headers(store_keeper: User) -> dict:
    return _headers(store_keeper)


# ── Lifecycle helpers ────────────────────────────────────────────

@pytest.fixture
def make_batch(client: AsyncClient, manager_headers: dict, vendor_headers: dict):
    """Factory: farm → inspection → approval; returns the new batch JSON."""

    async def _make(estimated_boxes: int = 100) -> dict:
        farm = await client.post(
            "/api/farms",
            json={"farmer_name": "Ravi Kumar", "location": "Theni"},
            headers=manager_headers,
        )
        assert farm.status_code == 201, farm.text

        inspection = await client.post(
            "/api/inspections",
            json={"farm_id": farm.json()["id"], "estimated_boxes": estimated_boxes},
            headers=vendor_headers,
        )
        assert inspection.status_code == 201, inspection.text

        decision = await client.post(
            f"/api/inspections/{inspection.json()['id']}/decision",
            json={"approved": True},
            headers=manager_headers,
        )
        assert decision.status_code == 200, decision.text
        return decision.json()["batch"]

    return _make


@pytest.fixture
def harvest(client: AsyncClient, vendor_headers: dict):
    """Factory: submit a daily harvest report, returning the raw response."""

    async def _harvest(batch_id: str, boxes: int, **extra):
        payload = {
            "batch_id": batch_id,
            "report_date": date.today().isoformat(),
            "boxes_packed": boxes,
        }
        payload.update(extra)
        return await client.post("/api/harvest/daily", json=payload, headers=vendor_headers)

    return _harvest


@pytest.fixture
def dispatch(client: AsyncClient, vendor_headers: dict):
    """Factory: create a gate pass, returning the raw response."""

    async def _dispatch(batch_id: str, boxes: int, truck: str = "TN-58-AB-1234"):
        return await client.post(
            "/api/gate-passes",
            json={
                "batch_id": batch_id,
                "truck_number": truck,
                "total_boxes": boxes,
                "dispatch_date": date.today().isoformat(),
            },
            headers=vendor_headers,
        )

    return _dispatch


# ── Test Markers ─────────────────────────────────────────────────

def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "api: API endpoint tests")
    config.addinivalue_line("markers", "integration: Integration tests")
