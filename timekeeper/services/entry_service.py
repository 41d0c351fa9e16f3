"""
Entry listing enriched with project and tag metadata.
"""

from typing import List

from timekeeper.domain.models import EntryView
from timekeeper.infra.db import Database
from timekeeper.infra.repository import EntryTagRepository, TimeEntryRepository

RECENT_ENTRIES_LIMIT = 200


class EntryQueryService:
    """Read-only listing of an owner's past entries."""

    def __init__(self, database: Database, limit: int = RECENT_ENTRIES_LIMIT):
        self.database = database
        self.limit = limit

    async def list_recent(self, owner_id: int) -> List[EntryView]:
        """
        The owner's latest entries by start time, newest first.

        Tags for the whole page are loaded with a single batch query.
        """
        async with self.database.session("list entries") as session:
            views = await TimeEntryRepository(session).get_recent_views(owner_id, self.limit)
            tags_map = await EntryTagRepository(session).list_for([v.id for v in views])

        for view in views:
            view.tags = tags_map.get(view.id, [])
        return views
