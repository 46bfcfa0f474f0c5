"""
Pytest fixtures for test database, client, lifecycle manager and seed data.

Every test gets a fresh schema. By default that is a SQLite file under the
test's tmp_path; set TEST_DATABASE_URL to run against PostgreSQL instead.
"""

import itertools
import os
from decimal import Decimal
from typing import AsyncGenerator

# Background work and Redis are off for the whole test run
os.environ.setdefault("REDIS_ENABLED", "false")
os.environ.setdefault("SWEEP_ENABLED", "false")

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event, select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker

from trekadmin.main import app
from trekadmin.api.deps import get_lifecycle_manager
from trekadmin.db.base import Base
from trekadmin.db.session import get_db
from trekadmin.models import Booking, TrekBatch, User
from trekadmin.schemas.trek import TrekCreate
from trekadmin.services.batch_lifecycle import BatchLifecycleManager
from trekadmin.services.trek_service import create_trek

from helpers import ADMIN_ROOM, RecordingSink, trek_payload


@pytest_asyncio.fixture(scope="function")
async def engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """Create tables, yield engine, then drop tables for isolation."""
    url = os.environ.get("TEST_DATABASE_URL") or f"sqlite+aiosqlite:///{tmp_path / 'trekadmin_test.db'}"
    test_engine = create_async_engine(url, echo=False)

    if test_engine.dialect.name == "sqlite":
        @event.listens_for(test_engine.sync_engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield test_engine

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def manager(sink: RecordingSink) -> BatchLifecycleManager:
    return BatchLifecycleManager(sink, admin_room=ADMIN_ROOM)


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession, manager: BatchLifecycleManager) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client that overrides the DB and lifecycle dependencies."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_lifecycle_manager] = lambda: manager

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def make_trek(db_session: AsyncSession):
    """Create a trek through the reconciler. Returns (trek_id, batch ids in creation order)."""

    async def _make(**kwargs) -> tuple[int, list[int]]:
        trek_id = await create_trek(db_session, TrekCreate.model_validate(trek_payload(**kwargs)))
        batch_ids = list(
            await db_session.scalars(
                select(TrekBatch.id).where(TrekBatch.trek_id == trek_id).order_by(TrekBatch.id)
            )
        )
        return trek_id, batch_ids

    return _make


@pytest_asyncio.fixture
async def test_user(db_session: AsyncSession) -> User:
    """Create a test user in the database."""
    user = User(full_name="Asha Rao", email="asha@example.com", phone_number="+91 98450 00000")
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest.fixture
def make_booking(db_session: AsyncSession):
    """Insert a booking directly, the way the storefront would."""
    references = itertools.count(1)

    async def _make(
        batch_id: int,
        status: str = "confirmed",
        participants: int = 1,
        total_amount: str = "12500.00",
        payment_status: str = "paid",
        customer_name: str = "Asha Rao",
        **fields,
    ) -> Booking:
        batch = await db_session.get(TrekBatch, batch_id)
        booking = Booking(
            booking_reference=f"TRK-{next(references):05d}",
            trek_id=batch.trek_id,
            batch_id=batch_id,
            customer_name=customer_name,
            customer_email="asha@example.com",
            participants=participants,
            total_amount=Decimal(total_amount),
            amount_paid=Decimal(total_amount) if payment_status == "paid" else Decimal("0"),
            booking_status=status,
            payment_status=payment_status,
            **fields,
        )
        db_session.add(booking)
        await db_session.commit()
        await db_session.refresh(booking)
        return booking

    return _make
