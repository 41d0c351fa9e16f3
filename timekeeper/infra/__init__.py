"""Infrastructure layer - Database, persistence and configuration"""

from .db import Database
from .models import Base, EntryTagModel, ProjectModel, TagModel, TimeEntryModel, UserModel

__all__ = [
    "Database", "Base", "EntryTagModel", "ProjectModel", "TagModel", "TimeEntryModel",
    "UserModel",
]
