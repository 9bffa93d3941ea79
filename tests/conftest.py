"""Shared test fixtures for litestar-ct-filing test suite."""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING
from uuid import uuid4

import pytest
from advanced_alchemy.base import UUIDAuditBase
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from litestar_ct_filing.core.models import FilingPeriodData
from litestar_ct_filing.db.stores import (
    ConversionAttemptManager,
    CtTypeStore,
    FilingPeriodStore,
    WorkflowStepStore,
)

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from litestar_ct_filing.db.models import CtTypeModel, FilingPeriodModel


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture
async def async_engine():
    """Create an async SQLite in-memory engine for testing."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        future=True,
    )

    # Enable foreign keys for SQLite
    @event.listens_for(engine.sync_engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(UUIDAuditBase.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_maker(async_engine) -> async_sessionmaker[AsyncSession]:
    """Create session factory."""
    return async_sessionmaker(
        bind=async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest.fixture
async def async_session(session_maker) -> AsyncIterator[AsyncSession]:
    """Create an async session for testing."""
    async with session_maker() as session:
        yield session
        await session.rollback()


# =============================================================================
# Store Fixtures
# =============================================================================


@pytest.fixture
def ct_type_store(async_session: AsyncSession) -> CtTypeStore:
    """Create a CT type store."""
    return CtTypeStore(async_session)


@pytest.fixture
def period_store(async_session: AsyncSession) -> FilingPeriodStore:
    """Create a filing period store."""
    return FilingPeriodStore(async_session)


@pytest.fixture
def attempt_manager(async_session: AsyncSession) -> ConversionAttemptManager:
    """Create a conversion attempt manager."""
    return ConversionAttemptManager(async_session)


@pytest.fixture
def step_store(async_session: AsyncSession) -> WorkflowStepStore:
    """Create a workflow step store."""
    return WorkflowStepStore(async_session)


# =============================================================================
# Sample Data Fixtures
# =============================================================================


@pytest.fixture
def customer_id() -> str:
    """Sample customer identifier."""
    return f"CUST-{uuid4().hex[:8]}"


@pytest.fixture
async def ct_type(ct_type_store: CtTypeStore) -> CtTypeModel:
    """Create the canonical CT Type 1."""
    return await ct_type_store.add("CT Type 1")


@pytest.fixture
async def period(
    period_store: FilingPeriodStore,
    ct_type: CtTypeModel,
    customer_id: str,
) -> FilingPeriodModel:
    """Create a 2024 calendar-year filing period."""
    return await period_store.create(
        FilingPeriodData(
            customer_id=customer_id,
            ct_type_id=ct_type.id,
            period_from=date(2024, 1, 1),
            period_to=date(2024, 12, 31),
            due_date=date(2025, 9, 30),
            user_id="user-1",
        )
    )
