"""
Summary Service - Totals bucketed by the caller's local calendar day.

A local day is the date of ``start_at + offset_minutes``. Entries are
attributed wholly to the local day they started on, and a running entry
counts up to "now".
"""

import datetime
import logging
from typing import Dict, List

from timekeeper.domain.models import DayTotal, TimeEntry, TodaySummary
from timekeeper.infra.db import Database
from timekeeper.infra.repository import TimeEntryRepository
from timekeeper.utils import (DEFAULT_HISTORY_DAYS, MAX_HISTORY_DAYS, Clock, elapsed_seconds,
                              local_day, local_day_bounds, utc_midnight, utc_now)

logger = logging.getLogger(__name__)


def entry_seconds(entry: TimeEntry, now: datetime.datetime) -> int:
    """Duration of an entry, using ``now`` as the end of a running one"""
    return elapsed_seconds(entry.start_at, entry.end_at or now)


class SummaryService:
    """
    Read-only aggregation over an owner's entries.
    """

    def __init__(self, database: Database, clock: Clock = utc_now,
                 max_days: int = MAX_HISTORY_DAYS):
        self.database = database
        self.clock = clock
        self.max_days = max_days

    async def today(self, owner_id: int, offset_minutes: int = 0) -> TodaySummary:
        """
        Total for the local day containing "now".

        ``running`` reports whether the owner has any open entry at all, even
        one that started on an earlier local day and adds nothing here.
        """
        now = self.clock()
        day_start, day_end = local_day_bounds(local_day(now, offset_minutes), offset_minutes)

        async with self.database.session("today summary") as session:
            entry_repo = TimeEntryRepository(session)
            entries = await entry_repo.get_spans(owner_id, day_start, day_end)
            running = await entry_repo.has_open_entry(owner_id)

        total = sum(entry_seconds(entry, now) for entry in entries)
        return TodaySummary(total_seconds=total, running=running)

    async def history(self, owner_id: int, offset_minutes: int = 0,
                      days: int = DEFAULT_HISTORY_DAYS) -> List[DayTotal]:
        """
        Per-local-day totals, newest day first.

        Args:
            owner_id: Trusted identity of the caller
            offset_minutes: Minutes east of UTC used for bucketing
            days: Only entries started on or after UTC midnight ``days`` ago count.
                A negative value puts the cutoff in the future.

        Returns:
            One DayTotal per local day that has entries; empty days are skipped
        """
        days = min(self.max_days, days)
        now = self.clock()
        cutoff = utc_midnight(now) - datetime.timedelta(days=days)

        async with self.database.session("history summary") as session:
            entries = await TimeEntryRepository(session).get_spans(owner_id, cutoff)

        buckets: Dict[datetime.date, int] = {}
        for entry in entries:
            day = local_day(entry.start_at, offset_minutes)
            buckets[day] = buckets.get(day, 0) + entry_seconds(entry, now)

        logger.debug(f"History for owner {owner_id}: {len(entries)} entries in {len(buckets)} days")
        return [
            DayTotal(day=day, total_seconds=total)
            for day, total in sorted(buckets.items(), reverse=True)
        ]
