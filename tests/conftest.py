"""Shared pytest fixtures: throwaway SQLite ledger, seeded stay and an ASGI client."""

import asyncio
import os
import uuid
from datetime import date
from decimal import Decimal

import pytest

# Must be set before app.config is imported
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./test_unused.db"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["LOG_FORMAT"] = "text"

from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.main import app
from app.config import settings
from app.api import deps
from app.core.errors import ArtifactUnavailable
from app.database import Base
from app.models import BillType, Occupant, Room, Stay, StayStatus


class FakeBlobStore:
    """In-memory slip store. ``broken`` refs raise, ``slow`` refs never answer."""

    def __init__(self):
        self.present = set()
        self.broken = set()
        self.slow = set()
        self.calls = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.closed = False

    async def exists(self, ref: str) -> bool:
        self.calls.append(ref)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(0)
            if ref in self.slow:
                await asyncio.sleep(3600)
            if ref in self.broken:
                raise ArtifactUnavailable(f"{ref} unreachable")
            return ref in self.present
        finally:
            self.in_flight -= 1

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def admin_id() -> uuid.UUID:
    return uuid.uuid4()


@pytest.fixture
async def seeded(session_factory) -> dict:
    """
    One tenant in room A101 at 3500/month, water at 18/unit and electricity at
    7/unit. Returns the ids.
    """
    async with session_factory() as session:
        tenant = Occupant(user_name="Somchai")
        room = Room(room_num="A101", room_price=Decimal("3500.00"))
        session.add_all([tenant, room])
        await session.flush()
        stay = Stay(
            user_id=tenant.id,
            room_id=room.id,
            room_price=Decimal("3500.00"),
            stay_date=date(2025, 1, 1),
            stay_status=StayStatus.ACTIVE,
        )
        session.add_all([
            stay,
            BillType(billtype_no=1, bill_type="Water", unit_price=Decimal("18.00")),
            BillType(billtype_no=2, bill_type="Electricity", unit_price=Decimal("7.00")),
        ])
        await session.commit()
        return {"stay_id": stay.id, "user_id": tenant.id, "room_id": room.id}


@pytest.fixture
def blob_store() -> FakeBlobStore:
    return FakeBlobStore()


@pytest.fixture
def api_base() -> str:
    """Base URL for API requests."""
    return f"http://test{settings.API_V1_PREFIX}"


@pytest.fixture
async def async_client(api_base: str, session_factory, blob_store: FakeBlobStore):
    """ASGI client bound to the test database and the fake slip store."""

    async def override_get_db():
        async with session_factory() as session:
            yield session

    async def override_get_blob_store():
        yield blob_store

    app.dependency_overrides[deps.get_db] = override_get_db
    app.dependency_overrides[deps.get_blob_store] = override_get_blob_store
    transport = ASGITransport(app=app)
    client = AsyncClient(transport=transport, base_url=api_base, timeout=30.0)
    yield client
    await client.aclose()
    app.dependency_overrides.clear()


@pytest.fixture
def actor_headers(admin_id: uuid.UUID) -> dict:
    return {"X-Actor-ID": str(admin_id)}
