"""
Timer Service - Core time tracking logic.

Each owner is either idle (no open entry) or running (exactly one open
entry). ``start`` moves idle -> running and ``end`` moves running -> idle;
every other transition is rejected before anything is written.

Architecture Decision: One transaction per transition
The open-entry check, ownership checks, inserts and updates of a transition
run in a single transaction. The database's partial unique index on open
entries decides races between concurrent ``start`` calls, and ``end`` closes
the row with a conditional update.
"""

import logging
from typing import Any, Mapping, Union

import pydantic
from sqlalchemy.exc import IntegrityError

from timekeeper.domain.errors import ConflictError, InputValidationError, InvalidStateError
from timekeeper.domain.models import EndResult, EntryPatch, StartResult, TimeEntry
from timekeeper.infra.db import Database, violates_open_entry_index
from timekeeper.infra.repository import EntryTagRepository, TimeEntryRepository
from timekeeper.services.ownership import OwnershipValidator
from timekeeper.utils import Clock, elapsed_seconds, utc_now

logger = logging.getLogger(__name__)

PatchInput = Union[EntryPatch, Mapping[str, Any], None]


def coerce_patch(patch: PatchInput) -> EntryPatch:
    """Accept an EntryPatch, a raw mapping, or None"""
    if patch is None:
        return EntryPatch()
    if isinstance(patch, EntryPatch):
        return patch
    try:
        return EntryPatch.model_validate(dict(patch))
    except pydantic.ValidationError as e:
        raise InputValidationError(
            e.errors(include_url=False, include_context=False, include_input=False)
        ) from e


class TimerService:
    """
    The time tracking engine. Manages entry state transitions for any owner.
    """

    def __init__(self, database: Database, clock: Clock = utc_now):
        self.database = database
        self.clock = clock

    async def start(self, owner_id: int, patch: PatchInput = None) -> StartResult:
        """
        Open a new entry for ``owner_id``.

        Args:
            owner_id: Trusted identity of the caller
            patch: Optional project_id, note and tags for the new entry

        Raises:
            ConflictError: if the owner already has an open entry
            NotOwnedError: if the project or a tag is not the owner's
        """
        patch = coerce_patch(patch)

        async with self.database.transaction("start entry") as session:
            entry_repo = TimeEntryRepository(session)
            validator = OwnershipValidator(session)

            if await entry_repo.has_open_entry(owner_id):
                logger.info(f"Start rejected for owner {owner_id}: already running")
                raise ConflictError(owner_id)

            await validator.validate_project(owner_id, patch.project_id)
            tag_ids = await validator.validate_tags(owner_id, patch.tags)

            try:
                entry = await entry_repo.create(TimeEntry(
                    owner_id=owner_id,
                    start_at=self.clock(),
                    project_id=patch.project_id,
                    note=patch.note
                ))
            except IntegrityError as e:
                if not violates_open_entry_index(e):
                    raise
                # Lost the race against a concurrent start
                logger.info(f"Start rejected for owner {owner_id}: open entry constraint")
                raise ConflictError(owner_id) from e

            await EntryTagRepository(session).attach(entry.id, tag_ids)

        logger.info(f"Started entry {entry.id} for owner {owner_id}")
        return StartResult(entry_id=entry.id)

    async def end(self, owner_id: int, patch: PatchInput = None) -> EndResult:
        """
        Close the owner's open entry, optionally patching it first.

        Only fields present in ``patch`` are written. A present ``tags`` field
        replaces the entry's tag set, even when empty or null.

        Returns:
            The entry id and its duration in whole seconds

        Raises:
            InvalidStateError: if nothing is running
            NotOwnedError: if the project or a tag is not the owner's
        """
        patch = coerce_patch(patch)

        async with self.database.transaction("end entry") as session:
            entry_repo = TimeEntryRepository(session)
            validator = OwnershipValidator(session)

            current = await entry_repo.get_open_entry(owner_id, for_update=True)
            if current is None:
                logger.info(f"End rejected for owner {owner_id}: no running entry")
                raise InvalidStateError(owner_id)

            await validator.validate_project(owner_id, patch.project_id)
            tag_ids = await validator.validate_tags(owner_id, patch.tags)

            fields = {}
            if patch.has("project_id"):
                fields["project_id"] = patch.project_id
            if patch.has("note"):
                fields["note"] = patch.note
            await entry_repo.update_fields(current.id, **fields)

            if patch.has("tags"):
                await EntryTagRepository(session).replace_all(current.id, tag_ids)

            end_at = self.clock()
            if not await entry_repo.close(current.id, end_at):
                logger.info(f"End rejected for owner {owner_id}: entry {current.id} already closed")
                raise InvalidStateError(owner_id)

        seconds = elapsed_seconds(current.start_at, end_at)
        logger.info(f"Stopped entry {current.id} for owner {owner_id} after {seconds}s")
        return EndResult(entry_id=current.id, seconds=seconds)
