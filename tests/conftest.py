"""Shared test fixtures for Paddock."""

from datetime import timedelta
from typing import AsyncGenerator

import pytest
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from paddock.config import tz_now_naive
from paddock.ledger.accounts import register_account
from paddock.ledger.events import register_event
from paddock.models.database import Base
from paddock.wagering.types import DividendEntry, EventResult, WagerCategory


@pytest.fixture
async def db_engine():
    """Create an in-memory SQLite engine for testing."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for testing."""
    async_session = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    async with async_session() as session:
        yield session


@pytest.fixture
async def file_engine(tmp_path):
    """File-backed SQLite engine so several sessions get their own connections."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'paddock.db'}",
        echo=False,
        connect_args={"timeout": 30},
    )
    async with engine.begin() as conn:
        await conn.execute(text("PRAGMA journal_mode=WAL"))
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(file_engine):
    """Session factory over the shared file database, one connection per session."""
    return async_sessionmaker(
        file_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest.fixture
async def account(db_session):
    """A registered account holding the starting 1000 points."""
    return await register_account(db_session, "user-1", "Tester")


@pytest.fixture
async def event(db_session):
    """An event open for wagering, post time an hour from now."""
    return await register_event(
        db_session,
        "202610170511",
        post_time=tz_now_naive() + timedelta(hours=1),
        name="Test Stakes",
        venue="Tokyo",
    )


@pytest.fixture
def official_result() -> EventResult:
    """Full dividend table for event 202610170511 (finish 7-9-3)."""
    return EventResult(
        event_id="202610170511",
        finish_order=(7, 9, 3, 5, 1),
        dividends={
            WagerCategory.WIN: (DividendEntry((7,), 450, 2),),
            WagerCategory.PLACE: (
                DividendEntry((7,), 160, 2),
                DividendEntry((9,), 220, 4),
                DividendEntry((3,), 130, 1),
            ),
            WagerCategory.QUINELLA: (DividendEntry((7, 9), 1200, 5),),
            WagerCategory.WIDE: (
                DividendEntry((7, 9), 410, 5),
                DividendEntry((3, 7), 250, 2),
                DividendEntry((3, 9), 380, 4),
            ),
            WagerCategory.EXACTA: (DividendEntry((7, 9), 2650, 9),),
            WagerCategory.TRIFECTA: (DividendEntry((7, 9, 3), 15400, 41),),
            WagerCategory.TRIO: (DividendEntry((3, 7, 9), 2900, 8),),
        },
    )
