"""
Domain Models using Pydantic for validation.

Architecture Decision: Why Pydantic?
The same models validate request bodies at the API edge and carry rows out of
the repositories (``from_attributes``), so the services never see raw ORM
objects or unchecked dictionaries.
"""

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, PositiveInt


DEFAULT_AVATAR = "uploads/avatar-default.png"


class Account(BaseModel):
    """
    A registered user. Its id is the ``owner_id`` of everything the user
    tracks. The password hash never leaves the repository.
    """
    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    email: str = Field(..., max_length=190)
    full_name: str = Field(..., max_length=190)
    role: str = "user"
    avatar_path: Optional[str] = DEFAULT_AVATAR


class Project(BaseModel):
    """A project an owner can file time entries under."""
    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    owner_id: int
    name: str = Field(..., min_length=1, max_length=190)
    color: Optional[str] = Field(default=None, max_length=16)


class Tag(BaseModel):
    """A label; many-to-many with time entries."""
    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    owner_id: int
    name: str = Field(..., min_length=1, max_length=100)
    color: Optional[str] = Field(default=None, max_length=16)


class TimeEntry(BaseModel):
    """
    A single tracked session.

    ``end_at`` is None while the entry is running. Both timestamps are UTC.
    """
    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    owner_id: int
    start_at: datetime
    end_at: Optional[datetime] = None
    project_id: Optional[int] = None
    note: Optional[str] = None


class EntryPatch(BaseModel):
    """
    Optional fields supplied to ``start`` or ``end``.

    A field is present when the caller sent it, even as null, and absent
    otherwise; see :meth:`has`.
    """

    project_id: Optional[PositiveInt] = None
    note: Optional[str] = Field(default=None, max_length=2000)
    tags: Optional[List[PositiveInt]] = None

    def has(self, field_name: str) -> bool:
        """True if the caller supplied ``field_name`` explicitly."""
        return field_name in self.model_fields_set


class TagView(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    color: Optional[str] = None


class EntryView(BaseModel):
    """A past entry joined with its project and tag metadata."""

    id: int
    start_at: datetime
    end_at: Optional[datetime] = None
    note: Optional[str] = None
    project_id: Optional[int] = None
    project_name: Optional[str] = None
    project_color: Optional[str] = None
    tags: List[TagView] = Field(default_factory=list)


class StartResult(BaseModel):
    entry_id: int


class EndResult(BaseModel):
    entry_id: int
    seconds: int


class TodaySummary(BaseModel):
    total_seconds: int = 0
    running: bool = False


class DayTotal(BaseModel):
    day: date
    total_seconds: int
