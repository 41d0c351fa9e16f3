"""Services layer - Business logic"""

from .account_service import AccountService
from .catalog_service import CatalogService
from .entry_service import EntryQueryService
from .ownership import OwnershipValidator
from .summary_service import SummaryService
from .timer_service import TimerService

__all__ = [
    "AccountService", "CatalogService", "EntryQueryService", "OwnershipValidator",
    "SummaryService", "TimerService",
]
