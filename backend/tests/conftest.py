"""
Shared pytest fixtures for the drivetime backend tests.

Uses SQLite in-memory with StaticPool so all sessions share one connection,
meaning data written in one session is visible to others (important for HTTP client tests).
"""
import uuid
from datetime import date, datetime, time, timezone

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

import drivetime.models  # noqa – registers all SQLAlchemy models with Base.metadata
from drivetime.core.database import Base, get_db
from drivetime.core.security import create_access_token
from drivetime.main import app
from drivetime.models.organization import Organization
from drivetime.models.time_entry import TimeEntry
from drivetime.models.user import User

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


# ── Shared engine (function-scoped: fresh DB per test) ───────────────────────

@pytest_asyncio.fixture
async def engine():
    """Creates a fresh in-memory SQLite engine per test with a shared connection pool."""
    eng = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,          # single shared connection → all sessions see same data
    )
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield eng

    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await eng.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory) -> AsyncSession:
    """Async DB session for direct data inspection inside tests."""
    async with session_factory() as session:
        yield session


# ── HTTP client fixture ───────────────────────────────────────────────────────

@pytest_asyncio.fixture
async def client(session_factory) -> AsyncClient:
    """
    FastAPI test client with get_db overridden to use the test engine.
    Each request gets its own session but shares the same underlying
    connection via StaticPool.
    """
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()


# ── Organization + User fixtures ──────────────────────────────────────────────

async def _make_org(db, name: str) -> Organization:
    org = Organization(
        id=uuid.uuid4(),
        name=name,
        slug=f"org-{uuid.uuid4().hex[:8]}",
        is_active=True,
        created_at=datetime.now(timezone.utc),
        updated_at=datetime.now(timezone.utc),
    )
    db.add(org)
    await db.commit()
    await db.refresh(org)
    return org


async def _make_user(db, org: Organization, email: str, role: str, **kwargs) -> User:
    u = User(
        id=uuid.uuid4(),
        organization_id=org.id,
        email=email,
        role=role,
        is_active=True,
        created_at=datetime.now(timezone.utc),
        **kwargs,
    )
    db.add(u)
    await db.commit()
    await db.refresh(u)
    return u


@pytest_asyncio.fixture
async def organization(db) -> Organization:
    return await _make_org(db, "Test Haulage Ltd")


@pytest_asyncio.fixture
async def other_organization(db) -> Organization:
    return await _make_org(db, "Other Transport Ltd")


@pytest_asyncio.fixture
async def admin_user(db, organization) -> User:
    return await _make_user(db, organization, "admin@test.co.uk", "admin")


@pytest_asyncio.fixture
async def manager_user(db, organization) -> User:
    return await _make_user(db, organization, "ops@test.co.uk", "manager")


@pytest_asyncio.fixture
async def driver_user(db, organization) -> User:
    return await _make_user(
        db, organization, "driver@test.co.uk", "driver", first_name="Dan", last_name="Driver"
    )


@pytest_asyncio.fixture
async def second_driver(db, organization) -> User:
    return await _make_user(
        db, organization, "driver2@test.co.uk", "driver", first_name="Sam", last_name="Second"
    )


@pytest_asyncio.fixture
async def foreign_driver(db, other_organization) -> User:
    return await _make_user(db, other_organization, "driver@other.co.uk", "driver")


@pytest_asyncio.fixture
def admin_token(admin_user) -> str:
    return create_access_token(admin_user.id, admin_user.organization_id, "admin")


@pytest_asyncio.fixture
def manager_token(manager_user) -> str:
    return create_access_token(manager_user.id, manager_user.organization_id, "manager")


@pytest_asyncio.fixture
def driver_token(driver_user) -> str:
    return create_access_token(driver_user.id, driver_user.organization_id, "driver")


# ── Helper ────────────────────────────────────────────────────────────────────

def auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def _t(value: str | None) -> time | None:
    if value is None:
        return None
    h, m = map(int, value.split(":"))
    return time(h, m)


async def add_entry(
    db,
    driver: User,
    entry_date: date,
    start: str,
    end: str | None,
    break_start: str | None = None,
    break_end: str | None = None,
    driving_minutes: int = 0,
) -> TimeEntry:
    """Legt einen Zeiteintrag direkt in der DB an."""
    entry = TimeEntry(
        organization_id=driver.organization_id,
        driver_id=driver.id,
        entry_date=entry_date,
        clock_in_time=_t(start),
        clock_out_time=_t(end),
        break_start_time=_t(break_start),
        break_end_time=_t(break_end),
        driving_minutes=driving_minutes,
        status="completed" if end else "active",
    )
    db.add(entry)
    await db.commit()
    await db.refresh(entry)
    return entry
