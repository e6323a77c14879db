"""
Centralized Test Configuration.
"""

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import Pool, StaticPool

from bus_tracking.app.main import app
from bus_tracking.app.db.session import get_db, Base
from bus_tracking.app.core.dependencies import get_event_publisher
from bus_tracking.app.core.jwt import create_access_token
from bus_tracking.app.models.enums import UserRole
from bus_tracking.app.models.user import User
from bus_tracking.app.models.route import Route
from bus_tracking.app.services.event_publisher import InMemoryEventPublisher

# Setup In-Memory Test Database
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@event.listens_for(Pool, "connect")
def set_sqlite_pragma(dbapi_conn, connection_record):
    """Enable foreign key constraints for SQLite."""
    if 'sqlite' in str(type(dbapi_conn)).lower():
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


@pytest.fixture
async def engine():
    """Fresh in-memory database per test."""
    test_engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield test_engine

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory):
    """Session for fixture data and direct service calls."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def publisher():
    return InMemoryEventPublisher()


@pytest.fixture
def apply_overrides(session_factory, publisher):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_event_publisher] = lambda: publisher
    yield
    app.dependency_overrides = {}


@pytest.fixture
async def client(apply_overrides):
    """Async client for testing."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


# Fixture data

@pytest.fixture
async def driver(db_session):
    user = User(username="driver01", role=UserRole.DRIVER, bus_number="KA-01-F-1234")
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest.fixture
async def other_driver(db_session):
    user = User(username="driver02", role=UserRole.DRIVER, bus_number="KA-01-F-5678")
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest.fixture
async def admin(db_session):
    user = User(username="admin01", role=UserRole.ADMIN)
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest.fixture
async def route(db_session):
    """Route with a 60 km/h limit and a 1 km circular fence around the depot."""
    route = Route(
        name="Depot Loop",
        stops=[{"lat": 12.97, "lng": 77.59, "name": "Depot", "order": 1}],
        geofence={"type": "circle", "coords": {"center": [12.97, 77.59], "radius": 1000}},
        speed_limit=60.0,
    )
    db_session.add(route)
    await db_session.commit()
    await db_session.refresh(route)
    return route


@pytest.fixture
async def open_route(db_session):
    """Route without a geofence or speed limit."""
    route = Route(name="City Shuttle", stops=[])
    db_session.add(route)
    await db_session.commit()
    await db_session.refresh(route)
    return route


def token_for(user: User) -> str:
    return create_access_token(data={"sub": user.username, "user_id": user.id, "role": user.role.value})


@pytest.fixture
def driver_headers(driver):
    return {"Authorization": f"Bearer {token_for(driver)}"}


@pytest.fixture
def admin_headers(admin):
    return {"Authorization": f"Bearer {token_for(admin)}"}


@pytest.fixture
def other_driver_headers(other_driver):
    return {"Authorization": f"Bearer {token_for(other_driver)}"}
