"""Shared pytest fixtures for all test suites."""

import os
from collections.abc import AsyncGenerator, Awaitable, Callable
from pathlib import Path
from typing import Any

import pytest
import pytest_asyncio
from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.pool import NullPool

from backend.tripdesk.db.inmemory import (
    InMemoryBudgetRepository,
    InMemoryDayRepository,
    InMemoryPlanDirectory,
)
from backend.tripdesk.db.models import Base
from backend.tripdesk.db.repositories import DayDraft, DayRecord
from backend.tripdesk.itinerary.normalizer import normalize_activities
from backend.tripdesk.models.common import ItineraryType

FIXED_NOW = 1_700_000_000.0


def fixed_clock() -> float:
    """Clock frozen at FIXED_NOW (epoch seconds)."""
    return FIXED_NOW


class SleepRecorder:
    """Async sleep replacement that records requested delays."""

    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def sleep_recorder() -> SleepRecorder:
    """Fresh sleep recorder."""
    return SleepRecorder()


@pytest.fixture
def day_repo() -> InMemoryDayRepository:
    """Empty in-memory day repository."""
    return InMemoryDayRepository()


@pytest.fixture
def budget_repo() -> InMemoryBudgetRepository:
    """Empty in-memory budget repository."""
    return InMemoryBudgetRepository()


@pytest.fixture
def plans() -> InMemoryPlanDirectory:
    """Empty in-memory plan directory."""
    return InMemoryPlanDirectory()


def sample_activities() -> list[dict[str, Any]]:
    """Four activities a, b, c, d costing 100, 200, 300 and 400."""
    return [
        {"activityId": "a", "name": "Ben Thanh Market", "type": "shopping", "cost": 100},
        {"activityId": "b", "name": "War Remnants Museum", "type": "history", "cost": 200},
        {"activityId": "c", "name": "Pho lunch", "type": "food", "cost": 300, "timeSlot": "afternoon"},
        {"activityId": "d", "name": "Saigon River cruise", "type": "leisure", "cost": 400, "timeSlot": "evening"},
    ]


SeedDay = Callable[..., Awaitable[DayRecord]]


@pytest.fixture
def seed_day(day_repo: InMemoryDayRepository) -> SeedDay:
    """Insert one day document into the in-memory day repository."""

    async def _seed(
        origin_id: str = "plan-1",
        day_number: int = 1,
        itinerary_type: ItineraryType = ItineraryType.customized,
        activities: list[dict[str, Any]] | None = None,
        title: str = "Saigon highlights",
    ) -> DayRecord:
        raw = sample_activities() if activities is None else activities
        if itinerary_type == ItineraryType.tour:
            normalized = normalize_activities(raw, itinerary_type, day_number)
        else:
            normalized = normalize_activities(raw, itinerary_type, day_number, fixed_clock)
        [day] = await day_repo.insert_days(
            [
                DayDraft(
                    origin_id=origin_id,
                    type=itinerary_type,
                    day_number=day_number,
                    title=title,
                    activities=normalized,
                )
            ]
        )
        return day

    return _seed


@pytest.fixture
def sqlite_path(tmp_path: Path) -> Path:
    """SQLite database file with all tables created."""
    path = tmp_path / "tripdesk.db"
    engine = create_engine(f"sqlite:///{path}")
    Base.metadata.create_all(engine)
    engine.dispose()
    return path


@pytest_asyncio.fixture
async def sqlite_engine(sqlite_path: Path) -> AsyncGenerator[AsyncEngine, None]:
    """Async engine over the SQLite test database."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{sqlite_path}", poolclass=NullPool)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def sqlite_session(sqlite_engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """Async session over the SQLite test database."""
    async with AsyncSession(sqlite_engine, expire_on_commit=False) as session:
        yield session


@pytest_asyncio.fixture
async def postgres_engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create async engine for PostgreSQL integration tests.

    Requires DATABASE_URL to be set to a real PostgreSQL connection string.
    Tests using this fixture should be marked with @pytest.mark.postgres.
    """
    database_url = os.getenv("DATABASE_URL")
    if not database_url:
        pytest.skip("DATABASE_URL not set - skipping postgres test")

    if not database_url.startswith(("postgresql://", "postgresql+asyncpg://")):
        pytest.skip(f"DATABASE_URL is not PostgreSQL: {database_url}")

    if database_url.startswith("postgresql://"):
        database_url = database_url.replace("postgresql://", "postgresql+asyncpg://", 1)

    engine = create_async_engine(database_url, poolclass=NullPool, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()
