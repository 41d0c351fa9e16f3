"""
SQLAlchemy ORM models.
Separated from db.py for cleaner imports.
"""

from .db import Base, EntryTagModel, ProjectModel, TagModel, TimeEntryModel, UserModel

__all__ = ["Base", "EntryTagModel", "ProjectModel", "TagModel", "TimeEntryModel", "UserModel"]
