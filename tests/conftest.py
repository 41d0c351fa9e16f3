"""
Pytest configuration and fixtures.
"""

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
import pytest_asyncio
from sqlalchemy import func, select

# Add project root
sys.path.insert(0, str(Path(__file__).parent.parent))

from timekeeper.infra.db import Database, TimeEntryModel
from timekeeper.infra.repository import EntryTagRepository, TimeEntryRepository
from timekeeper.services import (AccountService, CatalogService, EntryQueryService,
                                 SummaryService, TimerService)

OWNER = 1
OTHER_OWNER = 2


class FakeClock:
    """Clock whose current instant only moves when told to"""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def set(self, now: datetime):
        self.now = now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 3, 10, 12, 0, 0, tzinfo=timezone.utc))


@pytest_asyncio.fixture
async def database(tmp_path):
    """A fresh SQLite database file per test"""
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await db.create_tables()
    yield db
    await db.dispose()


@pytest.fixture
def timer(database, clock):
    return TimerService(database, clock=clock)


@pytest.fixture
def summary(database, clock):
    return SummaryService(database, clock=clock)


@pytest.fixture
def entry_query(database):
    return EntryQueryService(database)


@pytest.fixture
def catalog(database):
    return CatalogService(database)


@pytest.fixture
def accounts(database):
    # Lowest bcrypt cost keeps the suite fast
    return AccountService(database, hash_rounds=4)


async def count_entries(database: Database, owner_id: int) -> int:
    async with database.session() as session:
        result = await session.execute(
            select(func.count()).select_from(TimeEntryModel)
            .where(TimeEntryModel.owner_id == owner_id)
        )
        return result.scalar_one()


async def count_open(database: Database, owner_id: int) -> int:
    async with database.session() as session:
        return await TimeEntryRepository(session).count_open(owner_id)


async def get_entry(database: Database, entry_id: int):
    async with database.session() as session:
        return await TimeEntryRepository(session).get_by_id(entry_id)


async def tag_ids_of(database: Database, entry_id: int) -> list:
    async with database.session() as session:
        tags = (await EntryTagRepository(session).list_for([entry_id])).get(entry_id, [])
    return sorted(t.id for t in tags)
