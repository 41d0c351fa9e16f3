"""
Repository Pattern Implementation.

Architecture Decision: Why Repository Pattern?
Separates data access logic from business logic. Every repository works on a
session handed to it by the service, so several repositories can share one
transaction and the service decides when it commits.
"""

import datetime
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from timekeeper.domain.models import Account, EntryView, Project, Tag, TagView, TimeEntry
from timekeeper.infra.db import EntryTagModel, ProjectModel, TagModel, TimeEntryModel, UserModel


class UserRepository:
    """
    Handles registered accounts.

    Password hashes are stored and returned as opaque strings; hashing
    happens in the service.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, user_id: int) -> Optional[Account]:
        model = await self.session.get(UserModel, user_id)
        return Account.model_validate(model) if model else None

    async def email_exists(self, email: str) -> bool:
        result = await self.session.execute(
            select(UserModel.id).where(UserModel.email == email)
        )
        return result.first() is not None

    async def get_credentials(self, email: str) -> Optional[Tuple[Account, str]]:
        """The account for ``email`` and its password hash"""
        result = await self.session.execute(select(UserModel).where(UserModel.email == email))
        model = result.scalar_one_or_none()
        if model is None:
            return None
        return Account.model_validate(model), model.password_hash

    async def create(self, account: Account, password_hash: str) -> Account:
        model = UserModel(
            email=account.email,
            password_hash=password_hash,
            full_name=account.full_name,
            role=account.role,
            avatar_path=account.avatar_path
        )
        self.session.add(model)
        await self.session.flush()
        return Account.model_validate(model)

    async def update_fields(self, user_id: int, **values) -> bool:
        """Write ``values`` to the account; False if it does not exist"""
        result = await self.session.execute(
            update(UserModel).where(UserModel.id == user_id).values(**values)
        )
        return result.rowcount > 0


class ProjectRepository:
    """
    Handles all Project-related database operations.

    Converts between domain models (Pydantic) and ORM models (SQLAlchemy).
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_all(self, owner_id: int) -> List[Project]:
        """Get the owner's projects, newest first"""
        result = await self.session.execute(
            select(ProjectModel)
            .where(ProjectModel.owner_id == owner_id)
            .order_by(ProjectModel.id.desc())
        )
        return [Project.model_validate(m) for m in result.scalars().all()]

    async def get_owned(self, owner_id: int, project_id: int) -> Optional[Project]:
        """Get a project only if it belongs to ``owner_id``"""
        result = await self.session.execute(
            select(ProjectModel).where(
                ProjectModel.id == project_id,
                ProjectModel.owner_id == owner_id
            )
        )
        model = result.scalar_one_or_none()
        return Project.model_validate(model) if model else None

    async def create(self, project: Project) -> Project:
        model = ProjectModel(owner_id=project.owner_id, name=project.name, color=project.color)
        self.session.add(model)
        await self.session.flush()
        return Project.model_validate(model)

    async def update(self, project: Project) -> bool:
        """Update name/color; returns False if the row is not the owner's"""
        result = await self.session.execute(
            update(ProjectModel)
            .where(ProjectModel.id == project.id, ProjectModel.owner_id == project.owner_id)
            .values(name=project.name, color=project.color)
        )
        return result.rowcount > 0

    async def delete(self, owner_id: int, project_id: int) -> bool:
        result = await self.session.execute(
            delete(ProjectModel).where(
                ProjectModel.id == project_id,
                ProjectModel.owner_id == owner_id
            )
        )
        return result.rowcount > 0


class TagRepository:
    """
    Handles all Tag-related database operations.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_all(self, owner_id: int) -> List[Tag]:
        """Get the owner's tags ordered by name"""
        result = await self.session.execute(
            select(TagModel)
            .where(TagModel.owner_id == owner_id)
            .order_by(TagModel.name.asc(), TagModel.id.asc())
        )
        return [Tag.model_validate(m) for m in result.scalars().all()]

    async def get_owned_ids(self, owner_id: int, tag_ids: Iterable[int]) -> Set[int]:
        """Subset of ``tag_ids`` that exist and belong to ``owner_id``"""
        tag_ids = list(tag_ids)
        if not tag_ids:
            return set()
        result = await self.session.execute(
            select(TagModel.id).where(TagModel.owner_id == owner_id, TagModel.id.in_(tag_ids))
        )
        return set(result.scalars().all())

    async def create(self, tag: Tag) -> Tag:
        model = TagModel(owner_id=tag.owner_id, name=tag.name, color=tag.color)
        self.session.add(model)
        await self.session.flush()
        return Tag.model_validate(model)

    async def update(self, tag: Tag) -> bool:
        result = await self.session.execute(
            update(TagModel)
            .where(TagModel.id == tag.id, TagModel.owner_id == tag.owner_id)
            .values(name=tag.name, color=tag.color)
        )
        return result.rowcount > 0

    async def delete(self, owner_id: int, tag_id: int) -> bool:
        result = await self.session.execute(
            delete(TagModel).where(TagModel.id == tag_id, TagModel.owner_id == owner_id)
        )
        return result.rowcount > 0


class EntryTagRepository:
    """
    Many-to-many bookkeeping between time entries and tags.

    Inserts skip pairs that already exist, so overlapping tag sets never
    trip the (entry_id, tag_id) primary key.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _linked_ids(self, entry_id: int) -> Set[int]:
        result = await self.session.execute(
            select(EntryTagModel.tag_id).where(EntryTagModel.entry_id == entry_id)
        )
        return set(result.scalars().all())

    async def attach(self, entry_id: int, tag_ids: Iterable[int]) -> None:
        """Insert links for ``tag_ids``; existing pairs are left alone"""
        wanted = set(tag_ids)
        if not wanted:
            return
        missing = wanted - await self._linked_ids(entry_id)
        self.session.add_all(
            EntryTagModel(entry_id=entry_id, tag_id=tag_id) for tag_id in sorted(missing)
        )
        await self.session.flush()

    async def replace_all(self, entry_id: int, tag_ids: Iterable[int]) -> None:
        """Drop every link of the entry, then attach ``tag_ids``"""
        await self.session.execute(
            delete(EntryTagModel).where(EntryTagModel.entry_id == entry_id)
        )
        await self.attach(entry_id, tag_ids)

    async def list_for(self, entry_ids: Sequence[int]) -> Dict[int, List[TagView]]:
        """
        Batch fetch tags for many entries.

        Returns:
            entry id -> tags ordered by name. Entries without tags are omitted.
        """
        if not entry_ids:
            return {}
        result = await self.session.execute(
            select(EntryTagModel.entry_id, TagModel.id, TagModel.name, TagModel.color)
            .join(TagModel, TagModel.id == EntryTagModel.tag_id)
            .where(EntryTagModel.entry_id.in_(list(entry_ids)))
            .order_by(EntryTagModel.entry_id, TagModel.name, TagModel.id)
        )
        tags_map: Dict[int, List[TagView]] = {}
        for entry_id, tag_id, name, color in result.all():
            tags_map.setdefault(entry_id, []).append(TagView(id=tag_id, name=name, color=color))
        return tags_map


class TimeEntryRepository:
    """
    Handles all TimeEntry-related database operations.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, entry: TimeEntry) -> TimeEntry:
        """
        Insert a new time entry.

        Flushes immediately so constraint violations surface here, inside the
        caller's transaction.
        """
        model = TimeEntryModel(
            owner_id=entry.owner_id,
            start_at=entry.start_at,
            end_at=entry.end_at,
            project_id=entry.project_id,
            note=entry.note
        )
        self.session.add(model)
        await self.session.flush()
        return TimeEntry.model_validate(model)

    async def get_by_id(self, entry_id: int) -> Optional[TimeEntry]:
        result = await self.session.execute(
            select(TimeEntryModel).where(TimeEntryModel.id == entry_id)
        )
        model = result.scalar_one_or_none()
        return TimeEntry.model_validate(model) if model else None

    async def get_open_entry(self, owner_id: int, for_update: bool = False) -> Optional[TimeEntry]:
        """Get the owner's running entry; the newest one if several exist"""
        query = (
            select(TimeEntryModel)
            .where(TimeEntryModel.owner_id == owner_id, TimeEntryModel.end_at.is_(None))
            .order_by(TimeEntryModel.id.desc())
            .limit(1)
        )
        if for_update:
            query = query.with_for_update()
        result = await self.session.execute(query)
        model = result.scalar_one_or_none()
        return TimeEntry.model_validate(model) if model else None

    async def has_open_entry(self, owner_id: int) -> bool:
        result = await self.session.execute(
            select(TimeEntryModel.id)
            .where(TimeEntryModel.owner_id == owner_id, TimeEntryModel.end_at.is_(None))
            .limit(1)
        )
        return result.first() is not None

    async def count_open(self, owner_id: int) -> int:
        result = await self.session.execute(
            select(func.count())
            .select_from(TimeEntryModel)
            .where(TimeEntryModel.owner_id == owner_id, TimeEntryModel.end_at.is_(None))
        )
        return result.scalar_one()

    async def update_fields(self, entry_id: int, **values) -> None:
        """Write the given project_id/note values; no-op when empty"""
        if not values:
            return
        await self.session.execute(
            update(TimeEntryModel).where(TimeEntryModel.id == entry_id).values(**values)
        )

    async def close(self, entry_id: int, end_at: datetime.datetime) -> bool:
        """
        Set end_at on a still-open entry.

        Returns:
            False if the entry was already closed by someone else
        """
        result = await self.session.execute(
            update(TimeEntryModel)
            .where(TimeEntryModel.id == entry_id, TimeEntryModel.end_at.is_(None))
            .values(end_at=end_at)
        )
        return result.rowcount > 0

    async def get_spans(self, owner_id: int, start_from: datetime.datetime,
                        start_before: Optional[datetime.datetime] = None) -> List[TimeEntry]:
        """Entries of the owner whose start_at lies in [start_from, start_before)"""
        query = select(TimeEntryModel).where(
            TimeEntryModel.owner_id == owner_id,
            TimeEntryModel.start_at >= start_from
        )
        if start_before is not None:
            query = query.where(TimeEntryModel.start_at < start_before)

        result = await self.session.execute(query.order_by(TimeEntryModel.start_at.desc()))
        return [TimeEntry.model_validate(m) for m in result.scalars().all()]

    async def get_recent_views(self, owner_id: int, limit: int) -> List[EntryView]:
        """Most recent entries left-joined with their project"""
        result = await self.session.execute(
            select(
                TimeEntryModel.id,
                TimeEntryModel.start_at,
                TimeEntryModel.end_at,
                TimeEntryModel.note,
                TimeEntryModel.project_id,
                ProjectModel.name.label("project_name"),
                ProjectModel.color.label("project_color"),
            )
            .outerjoin(ProjectModel, ProjectModel.id == TimeEntryModel.project_id)
            .where(TimeEntryModel.owner_id == owner_id)
            .order_by(TimeEntryModel.start_at.desc(), TimeEntryModel.id.desc())
            .limit(limit)
        )
        return [EntryView(**row._mapping) for row in result.all()]
