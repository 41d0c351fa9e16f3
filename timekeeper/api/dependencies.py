"""
FastAPI dependency providers.

The storage handle lives on ``app.state``; services are cheap and built per
request around it.
"""

from fastapi import Depends, Request

from timekeeper.infra.config import Settings
from timekeeper.infra.db import Database
from timekeeper.services import (AccountService, CatalogService, EntryQueryService,
                                 SummaryService, TimerService)
from timekeeper.utils import Clock, utc_now


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_database(request: Request) -> Database:
    return request.app.state.database


def get_clock() -> Clock:
    """Override in tests to freeze or advance time"""
    return utc_now


def get_timer_service(
    database: Database = Depends(get_database),
    clock: Clock = Depends(get_clock),
) -> TimerService:
    return TimerService(database, clock=clock)


def get_summary_service(
    database: Database = Depends(get_database),
    clock: Clock = Depends(get_clock),
    settings: Settings = Depends(get_app_settings),
) -> SummaryService:
    return SummaryService(database, clock=clock, max_days=settings.history_max_days)


def get_entry_query_service(
    database: Database = Depends(get_database),
    settings: Settings = Depends(get_app_settings),
) -> EntryQueryService:
    return EntryQueryService(database, limit=settings.recent_entries_limit)


def get_catalog_service(database: Database = Depends(get_database)) -> CatalogService:
    return CatalogService(database)


def get_account_service(
    database: Database = Depends(get_database),
    settings: Settings = Depends(get_app_settings),
) -> AccountService:
    return AccountService(database, hash_rounds=settings.password_hash_rounds)
