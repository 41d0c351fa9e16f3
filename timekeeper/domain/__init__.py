"""Domain layer - Pure business entities and errors"""

from .models import (
    Account,
    DayTotal,
    EndResult,
    EntryPatch,
    EntryView,
    Project,
    StartResult,
    Tag,
    TagView,
    TimeEntry,
    TodaySummary,
)
from .errors import (
    ConflictError,
    EmailExistsError,
    InputValidationError,
    InvalidCredentialsError,
    InvalidStateError,
    NotFoundError,
    NotOwnedError,
    StorageError,
    TimeTrackingError,
)

__all__ = [
    "Account", "DayTotal", "EndResult", "EntryPatch", "EntryView", "Project", "StartResult",
    "Tag", "TagView", "TimeEntry", "TodaySummary",
    "ConflictError", "EmailExistsError", "InputValidationError", "InvalidCredentialsError",
    "InvalidStateError", "NotFoundError", "NotOwnedError", "StorageError", "TimeTrackingError",
]
