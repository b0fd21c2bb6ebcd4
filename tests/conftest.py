"""Pytest fixtures and configuration."""

from __future__ import annotations

import os
from collections.abc import AsyncGenerator
from typing import TYPE_CHECKING, Any

# Settings refuse to load without a connection string; the application
# module builds its settings at import time.
os.environ.setdefault("POSTGRES_URL", "sqlite+aiosqlite:///:memory:")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from src.moneyview_api.db.session import Base, get_db
from src.moneyview_api.main import app
from src.moneyview_api.models.moneyview import Moneyview

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

# Test database URL (in-memory SQLite for tests)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

API_KEY = "moneyview"


@pytest.fixture
def api_headers() -> dict[str, str]:
    """Headers carrying the partner shared secret."""
    return {"api-key": API_KEY}


@pytest_asyncio.fixture(scope="function")
async def test_engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create a test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture(scope="function")
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture(scope="function")
async def client(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncClient, None]:
    """Create a test HTTP client with overridden dependencies."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def sample_record() -> dict[str, Any]:
    """A fully populated partner record."""
    return {
        "name": "Ravi Kumar",
        "phone": "9876543210",
        "email": "ravi.kumar@example.com",
        "employment": "Salaried",
        "pan": "ABCPK1234F",
        "pincode": "560001",
        "income": "55000",
        "city": "Bengaluru",
        "state": "Karnataka",
        "dob": "1990-04-12",
        "gender": "Male",
        "partnerId": "cashkuber",
    }


@pytest_asyncio.fixture
async def stored_lead(db_session: AsyncSession) -> Moneyview:
    """A lead already present in the table with phone 9999999999."""
    row = Moneyview(
        name="Existing Lead",
        phone="9999999999",
        pan="EXIPL0000A",
        partner_id="cashkuber",
    )
    db_session.add(row)
    await db_session.commit()
    return row
