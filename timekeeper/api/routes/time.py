"""
Time tracking routes.

- Timestamps are stored in UTC
- "today" and history are bucketed by the caller's local day (offsetMinutes)
- start/end accept project_id, note and tags
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from timekeeper.api.auth import User, get_current_user
from timekeeper.api.dependencies import (get_app_settings, get_entry_query_service,
                                         get_summary_service, get_timer_service)
from timekeeper.api.schemas import (EndResponse, EntriesResponse, ErrorResponse,
                                    HistoryResponse, StartResponse, TodayResponse)
from timekeeper.domain.models import EntryPatch
from timekeeper.infra.config import Settings
from timekeeper.services import EntryQueryService, SummaryService, TimerService
from timekeeper.utils import parse_history_days, parse_offset_minutes

router = APIRouter(prefix="/time", tags=["Time"])


@router.post(
    "/start",
    response_model=StartResponse,
    responses={400: {"description": "Already running or not owned", "model": ErrorResponse}},
    summary="Start a time entry",
)
async def start_entry(
    patch: Optional[EntryPatch] = None,
    user: User = Depends(get_current_user),
    timer: TimerService = Depends(get_timer_service),
):
    """Open an entry at the current UTC time."""
    result = await timer.start(user.id, patch)
    return StartResponse(entry_id=result.entry_id)


@router.post(
    "/end",
    response_model=EndResponse,
    responses={400: {"description": "Nothing running or not owned", "model": ErrorResponse}},
    summary="End the running time entry",
)
async def end_entry(
    patch: Optional[EntryPatch] = None,
    user: User = Depends(get_current_user),
    timer: TimerService = Depends(get_timer_service),
):
    """
    Close the open entry.

    project_id, note and tags are only changed when present in the body;
    an explicit empty tags list clears the entry's tags.
    """
    result = await timer.end(user.id, patch)
    return EndResponse(entry_id=result.entry_id, seconds=result.seconds)


@router.get("/today", response_model=TodayResponse, summary="Total for the local day")
async def today(
    offset_minutes: Optional[str] = Query(default=None, alias="offsetMinutes"),
    user: User = Depends(get_current_user),
    summary: SummaryService = Depends(get_summary_service),
):
    result = await summary.today(user.id, parse_offset_minutes(offset_minutes))
    return TodayResponse(total_seconds=result.total_seconds, running=result.running)


@router.get("/history", response_model=HistoryResponse, summary="Totals per local day")
async def history(
    offset_minutes: Optional[str] = Query(default=None, alias="offsetMinutes"),
    days: Optional[str] = Query(default=None),
    user: User = Depends(get_current_user),
    summary: SummaryService = Depends(get_summary_service),
    settings: Settings = Depends(get_app_settings),
):
    limit_days = parse_history_days(
        days, default=settings.history_default_days, maximum=settings.history_max_days
    )
    totals = await summary.history(user.id, parse_offset_minutes(offset_minutes), limit_days)
    return HistoryResponse(history=totals)


@router.get("/entries", response_model=EntriesResponse, summary="Recent entries")
async def list_entries(
    user: User = Depends(get_current_user),
    entries: EntryQueryService = Depends(get_entry_query_service),
):
    """Latest entries with project info and tags."""
    return EntriesResponse(entries=await entries.list_recent(user.id))
