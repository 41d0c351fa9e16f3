"""
Tests for the entry lifecycle: start, end and the one-open-entry rule.
"""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from conftest import (OTHER_OWNER, OWNER, count_entries, count_open, get_entry, tag_ids_of)
from timekeeper.domain.errors import (ConflictError, InputValidationError, InvalidStateError,
                                      NotOwnedError, StorageError)
from timekeeper.domain.models import EndResult, EntryPatch, StartResult, TimeEntry
from timekeeper.infra.repository import TimeEntryRepository
from timekeeper.services.ownership import OwnershipValidator


class TestStart:

    @pytest.mark.asyncio
    async def test_start_opens_entry_at_now(self, database, timer, clock):
        result = await timer.start(OWNER)

        entry = await get_entry(database, result.entry_id)
        assert entry.owner_id == OWNER
        assert entry.start_at == clock.now
        assert entry.end_at is None
        assert entry.project_id is None
        assert entry.note is None

    @pytest.mark.asyncio
    async def test_start_with_project_note_and_tags(self, database, timer, catalog):
        project = await catalog.create_project(OWNER, "Client")
        t3 = await catalog.create_tag(OWNER, "three")
        t5 = await catalog.create_tag(OWNER, "five")

        result = await timer.start(OWNER, EntryPatch(
            project_id=project.id, note="kickoff", tags=[t3.id, t3.id, t5.id]
        ))

        entry = await get_entry(database, result.entry_id)
        assert entry.project_id == project.id
        assert entry.note == "kickoff"
        assert await tag_ids_of(database, result.entry_id) == sorted([t3.id, t5.id])

    @pytest.mark.asyncio
    async def test_second_start_conflicts_without_new_row(self, database, timer):
        await timer.start(OWNER)

        with pytest.raises(ConflictError) as exc_info:
            await timer.start(OWNER)

        assert exc_info.value.message == "Already running"
        assert await count_entries(database, OWNER) == 1
        assert await count_open(database, OWNER) == 1

    @pytest.mark.asyncio
    async def test_owners_are_independent(self, database, timer):
        await timer.start(OWNER)
        await timer.start(OTHER_OWNER)

        assert await count_open(database, OWNER) == 1
        assert await count_open(database, OTHER_OWNER) == 1

    @pytest.mark.asyncio
    async def test_foreign_project_aborts_without_row(self, database, timer, catalog):
        theirs = await catalog.create_project(OTHER_OWNER, "Theirs")

        with pytest.raises(NotOwnedError):
            await timer.start(OWNER, {"project_id": theirs.id})

        assert await count_entries(database, OWNER) == 0

    @pytest.mark.asyncio
    async def test_foreign_tag_aborts_without_row(self, database, timer, catalog):
        mine = await catalog.create_tag(OWNER, "mine")
        theirs = await catalog.create_tag(OTHER_OWNER, "theirs")

        with pytest.raises(NotOwnedError):
            await timer.start(OWNER, {"tags": [mine.id, theirs.id]})

        assert await count_entries(database, OWNER) == 0

    @pytest.mark.asyncio
    async def test_invalid_mapping_raises_validation_error(self, database, timer):
        with pytest.raises(InputValidationError) as exc_info:
            await timer.start(OWNER, {"project_id": -4, "tags": ["x"]})

        fields = {tuple(err["loc"]) for err in exc_info.value.errors}
        assert ("project_id",) in fields
        assert await count_entries(database, OWNER) == 0

    @pytest.mark.asyncio
    async def test_lost_race_is_reported_as_conflict(self, database, timer, monkeypatch):
        """Two starts that both saw 'idle' are settled by the open-entry index"""
        await timer.start(OWNER)

        async def looks_idle(self, owner_id):
            return False

        monkeypatch.setattr(TimeEntryRepository, "has_open_entry", looks_idle)

        with pytest.raises(ConflictError):
            await timer.start(OWNER)

        assert await count_entries(database, OWNER) == 1

    @pytest.mark.asyncio
    async def test_other_integrity_failures_are_storage_errors(self, database, timer,
                                                               monkeypatch):
        """A project removed after validation fails the foreign key, not the open-entry rule"""
        async def project_looks_owned(self, owner_id, project_id):
            return None

        monkeypatch.setattr(OwnershipValidator, "validate_project", project_looks_owned)

        with pytest.raises(StorageError) as exc_info:
            await timer.start(OWNER, {"project_id": 999})

        assert not isinstance(exc_info.value, ConflictError)
        assert await count_entries(database, OWNER) == 0

    @pytest.mark.asyncio
    async def test_concurrent_starts_open_one_entry(self, database, timer):
        results = await asyncio.gather(
            *(timer.start(OWNER) for _ in range(5)), return_exceptions=True
        )

        started = [r for r in results if isinstance(r, StartResult)]
        conflicts = [r for r in results if isinstance(r, ConflictError)]
        assert len(started) == 1
        assert len(conflicts) == 4
        assert await count_open(database, OWNER) == 1
        assert await count_entries(database, OWNER) == 1

    @pytest.mark.asyncio
    async def test_database_rejects_second_open_row(self, database, clock):
        async with database.transaction() as session:
            await TimeEntryRepository(session).create(TimeEntry(owner_id=OWNER, start_at=clock.now))

        with pytest.raises(StorageError):
            async with database.transaction() as session:
                await TimeEntryRepository(session).create(
                    TimeEntry(owner_id=OWNER, start_at=clock.now + timedelta(seconds=1))
                )

        assert await count_open(database, OWNER) == 1


class TestEnd:

    @pytest.mark.asyncio
    async def test_end_without_running_entry(self, database, timer):
        with pytest.raises(InvalidStateError) as exc_info:
            await timer.end(OWNER)

        assert exc_info.value.message == "No running entry"
        assert await count_entries(database, OWNER) == 0

    @pytest.mark.asyncio
    async def test_end_twice(self, timer):
        await timer.start(OWNER)
        await timer.end(OWNER)

        with pytest.raises(InvalidStateError):
            await timer.end(OWNER)

    @pytest.mark.asyncio
    async def test_concurrent_ends_close_once(self, database, timer, clock):
        entry_id = (await timer.start(OWNER)).entry_id
        clock.advance(seconds=30)

        results = await asyncio.gather(
            *(timer.end(OWNER) for _ in range(3)), return_exceptions=True
        )

        ended = [r for r in results if isinstance(r, EndResult)]
        rejected = [r for r in results if isinstance(r, InvalidStateError)]
        assert [r.entry_id for r in ended] == [entry_id]
        assert len(rejected) == 2
        assert (await get_entry(database, entry_id)).end_at == clock.now
        assert await count_open(database, OWNER) == 0

    @pytest.mark.asyncio
    async def test_seconds_match_stored_timestamps(self, database, timer, clock):
        entry_id = (await timer.start(OWNER)).entry_id
        clock.advance(hours=1, minutes=2, seconds=3)

        result = await timer.end(OWNER)

        entry = await get_entry(database, entry_id)
        assert result.entry_id == entry_id
        assert result.seconds == 3723
        assert result.seconds == int((entry.end_at - entry.start_at).total_seconds())
        assert await count_open(database, OWNER) == 0

    @pytest.mark.asyncio
    async def test_sub_second_precision_is_truncated(self, timer, clock):
        await timer.start(OWNER)
        clock.advance(seconds=59, milliseconds=999)

        assert (await timer.end(OWNER)).seconds == 59

    @pytest.mark.asyncio
    async def test_end_patches_only_supplied_fields(self, database, timer, catalog):
        project = await catalog.create_project(OWNER, "Client")
        entry_id = (await timer.start(OWNER, {"project_id": project.id, "note": "draft"})).entry_id

        await timer.end(OWNER, {"note": "final"})

        entry = await get_entry(database, entry_id)
        assert entry.note == "final"
        assert entry.project_id == project.id

    @pytest.mark.asyncio
    async def test_explicit_null_clears_field(self, database, timer, catalog):
        project = await catalog.create_project(OWNER, "Client")
        entry_id = (await timer.start(OWNER, {"project_id": project.id, "note": "draft"})).entry_id

        await timer.end(OWNER, {"project_id": None})

        entry = await get_entry(database, entry_id)
        assert entry.project_id is None
        assert entry.note == "draft"

    @pytest.mark.asyncio
    async def test_omitted_tags_are_left_alone(self, database, timer, catalog):
        tag = await catalog.create_tag(OWNER, "keep")
        entry_id = (await timer.start(OWNER, {"tags": [tag.id]})).entry_id

        await timer.end(OWNER, {"note": "done"})

        assert await tag_ids_of(database, entry_id) == [tag.id]

    @pytest.mark.asyncio
    async def test_empty_tags_clear_links(self, database, timer, catalog):
        tag = await catalog.create_tag(OWNER, "drop")
        entry_id = (await timer.start(OWNER, {"tags": [tag.id]})).entry_id

        await timer.end(OWNER, {"tags": []})

        assert await tag_ids_of(database, entry_id) == []

    @pytest.mark.asyncio
    async def test_tags_are_replaced_wholesale(self, database, timer, catalog):
        old = await catalog.create_tag(OWNER, "old")
        new = await catalog.create_tag(OWNER, "new")
        entry_id = (await timer.start(OWNER, {"tags": [old.id]})).entry_id

        await timer.end(OWNER, {"tags": [new.id, new.id]})

        assert await tag_ids_of(database, entry_id) == [new.id]

    @pytest.mark.asyncio
    async def test_foreign_project_leaves_entry_open_and_unchanged(self, database, timer,
                                                                   catalog):
        tag = await catalog.create_tag(OWNER, "mine")
        theirs = await catalog.create_project(OTHER_OWNER, "Theirs")
        entry_id = (await timer.start(OWNER, {"note": "working", "tags": [tag.id]})).entry_id

        with pytest.raises(NotOwnedError):
            await timer.end(OWNER, {"project_id": theirs.id, "note": "changed", "tags": []})

        entry = await get_entry(database, entry_id)
        assert entry.end_at is None
        assert entry.project_id is None
        assert entry.note == "working"
        assert await tag_ids_of(database, entry_id) == [tag.id]

    @pytest.mark.asyncio
    async def test_end_ignores_closed_entries(self, database, timer, clock):
        older = TimeEntry(owner_id=OWNER, start_at=clock.now - timedelta(hours=2),
                          end_at=clock.now - timedelta(hours=1))
        async with database.transaction() as session:
            older_id = (await TimeEntryRepository(session).create(older)).id

        newest_id = (await timer.start(OWNER)).entry_id
        clock.advance(seconds=30)

        result = await timer.end(OWNER)

        assert result.entry_id == newest_id
        assert result.seconds == 30
        assert (await get_entry(database, older_id)).end_at == clock.now - timedelta(hours=1, seconds=30)


@pytest.mark.asyncio
async def test_open_entries_never_exceed_one(database, timer, clock):
    for _ in range(3):
        await timer.start(OWNER)
        with pytest.raises(ConflictError):
            await timer.start(OWNER)
        assert await count_open(database, OWNER) == 1
        clock.advance(minutes=5)
        await timer.end(OWNER)
        assert await count_open(database, OWNER) == 0

    assert await count_entries(database, OWNER) == 3


@pytest.mark.asyncio
async def test_start_uses_utc_instant(database, timer, clock):
    clock.set(datetime(2024, 6, 1, 8, 30, tzinfo=timezone(timedelta(hours=2))))

    entry_id = (await timer.start(OWNER)).entry_id

    entry = await get_entry(database, entry_id)
    assert entry.start_at == datetime(2024, 6, 1, 6, 30, tzinfo=timezone.utc)
    assert entry.start_at.utcoffset() == timedelta(0)
