"""
Data Seeder for Time Tracker.
Populates the database with realistic data for one owner, for testing and demo purposes.

Usage:
    python scripts/seed_data.py [owner_id]
"""

import asyncio
import random
import sys
from datetime import datetime, time, timedelta, timezone
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from timekeeper.domain.models import Project, Tag, TimeEntry
from timekeeper.infra.config import get_settings
from timekeeper.infra.db import Database
from timekeeper.infra.repository import (EntryTagRepository, ProjectRepository, TagRepository,
                                         TimeEntryRepository)


async def seed(owner_id: int = 1, days: int = 30):
    print("Starting data seeding...")

    database = Database(get_settings().get_db_url())
    await database.create_tables()

    try:
        async with database.transaction("seed") as session:
            project_repo = ProjectRepository(session)
            tag_repo = TagRepository(session)
            entry_repo = TimeEntryRepository(session)
            link_repo = EntryTagRepository(session)

            # 1. Projects and tags
            existing = {p.name: p for p in await project_repo.get_all(owner_id)}
            projects = []
            for name, color in [("Client Work", "#2f80ed"), ("Internal", "#27ae60"),
                                ("Learning", "#9b51e0")]:
                if name in existing:
                    print(f"Project exists: {name}")
                    projects.append(existing[name])
                else:
                    print(f"Creating project: {name}")
                    projects.append(await project_repo.create(
                        Project(owner_id=owner_id, name=name, color=color)
                    ))

            existing_tags = {t.name: t for t in await tag_repo.get_all(owner_id)}
            tags = []
            for name in ["meeting", "deep-work", "review", "support"]:
                tags.append(existing_tags.get(name) or await tag_repo.create(
                    Tag(owner_id=owner_id, name=name)
                ))

            # 2. Closed entries for the last N weekdays (UTC)
            # Pattern: 09:00 - 12:00 and 13:00 - 17:00
            today = datetime.now(timezone.utc).date()
            for offset in range(days, 0, -1):
                day = today - timedelta(days=offset)
                if day.weekday() >= 5:  # Sat=5, Sun=6
                    continue

                for start_hour, end_hour, note in [(9, 12, "Morning session"),
                                                   (13, 17, "Afternoon session")]:
                    start_at = datetime.combine(day, time(start_hour), tzinfo=timezone.utc)
                    entry = await entry_repo.create(TimeEntry(
                        owner_id=owner_id,
                        start_at=start_at,
                        end_at=start_at + timedelta(hours=end_hour - start_hour),
                        project_id=random.choice(projects).id,
                        note=note
                    ))
                    await link_repo.attach(entry.id, {t.id for t in random.sample(tags, 2)})

                print(f"Generated entries for {day}")
    finally:
        await database.dispose()

    print("Seeding complete.")


if __name__ == "__main__":
    asyncio.run(seed(int(sys.argv[1]) if len(sys.argv) > 1 else 1))
