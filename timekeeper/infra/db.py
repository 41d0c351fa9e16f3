"""
SQLAlchemy database models and configuration.

Architecture Decision: Why SQLAlchemy?
- Provides ORM for cleaner code and prevents SQL injection
- Supports async operations for non-blocking database access
- Partial unique indexes and row locks are expressed per dialect, so the
  one-open-entry rule is enforced by the database rather than by a read
"""

import datetime
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from sqlalchemy import (DateTime, ForeignKey, Index, Integer, String, Text,
                        TypeDecorator, event, text)
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from timekeeper.domain.errors import StorageError, TimeTrackingError

logger = logging.getLogger(__name__)


class UTCDateTime(TypeDecorator):
    """Stores naive UTC, hands back aware UTC."""

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None and value.tzinfo is not None:
            value = value.astimezone(datetime.timezone.utc).replace(tzinfo=None)
        return value

    def process_result_value(self, value, dialect):
        if value is not None and value.tzinfo is None:
            value = value.replace(tzinfo=datetime.timezone.utc)
        return value


# Base class for all models
class Base(DeclarativeBase):
    pass


class UserModel(Base):
    """SQLAlchemy model for a registered account"""
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(190), nullable=False, unique=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    full_name: Mapped[str] = mapped_column(String(190), nullable=False)
    role: Mapped[str] = mapped_column(String(16), nullable=False, default="user")
    avatar_path: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)


class ProjectModel(Base):
    """SQLAlchemy model for Project entity"""
    __tablename__ = "projects"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    owner_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(190), nullable=False)
    color: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)


class TagModel(Base):
    """SQLAlchemy model for Tag entity"""
    __tablename__ = "tags"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    owner_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    color: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)


OPEN_ENTRY_INDEX = "uq_time_entries_one_open"


class TimeEntryModel(Base):
    """SQLAlchemy model for TimeEntry entity"""
    __tablename__ = "time_entries"
    __table_args__ = (
        Index("ix_time_entries_owner_start", "owner_id", "start_at"),
        # At most one row per owner with end_at IS NULL
        Index(
            OPEN_ENTRY_INDEX,
            "owner_id",
            unique=True,
            sqlite_where=text("end_at IS NULL"),
            postgresql_where=text("end_at IS NULL"),
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    owner_id: Mapped[int] = mapped_column(Integer, nullable=False)
    start_at: Mapped[datetime.datetime] = mapped_column(UTCDateTime, nullable=False)
    end_at: Mapped[Optional[datetime.datetime]] = mapped_column(UTCDateTime, nullable=True)
    project_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("projects.id", ondelete="SET NULL"), nullable=True
    )
    note: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


class EntryTagModel(Base):
    """Link row between a time entry and a tag"""
    __tablename__ = "time_entry_tags"

    entry_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("time_entries.id", ondelete="CASCADE"), primary_key=True
    )
    tag_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True
    )


def violates_open_entry_index(error: IntegrityError) -> bool:
    """
    True if ``error`` came from the one-open-entry index.

    PostgreSQL names the index in its message; SQLite names the indexed
    column instead.
    """
    message = str(error.orig)
    return OPEN_ENTRY_INDEX in message or (
        "UNIQUE" in message and "time_entries.owner_id" in message
    )


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """
    Storage handle: owns the engine and hands out sessions.

    Created once at startup and disposed at shutdown by whoever built it;
    there is no global instance.
    """

    def __init__(self, db_url: str, echo: bool = False, **engine_kwargs):
        self.url = db_url
        self.engine = create_async_engine(db_url, echo=echo, **engine_kwargs)
        if self.engine.dialect.name == "sqlite":
            event.listen(self.engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False
        )

    async def create_tables(self):
        """Create all tables in the database"""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self):
        """Close every pooled connection"""
        await self.engine.dispose()

    @asynccontextmanager
    async def session(self, operation: str = "query") -> AsyncIterator[AsyncSession]:
        """Read-only unit of work."""
        async with self.session_factory() as session:
            try:
                yield session
            except TimeTrackingError:
                raise
            except SQLAlchemyError as e:
                logger.error(f"Storage failure during {operation}: {e}")
                raise StorageError(operation, type(e).__name__) from e

    @asynccontextmanager
    async def transaction(self, operation: str = "write") -> AsyncIterator[AsyncSession]:
        """
        Unit of work committed on success and rolled back on any exception.

        Unexpected SQLAlchemy errors are re-raised as StorageError.
        """
        async with self.session_factory() as session:
            try:
                async with session.begin():
                    yield session
            except TimeTrackingError:
                raise
            except SQLAlchemyError as e:
                logger.error(f"Storage failure during {operation}: {e}")
                raise StorageError(operation, type(e).__name__) from e
