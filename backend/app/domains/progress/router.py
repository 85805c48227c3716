from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from app.api.deps import get_data_source, get_targets, get_viewer
from worktime.aggregation import week_progress
from worktime.datasource import InMemoryDataSource
from worktime.models import CompletionTargets, DraftEntry, Profile
from worktime.quickfill import batch_fill, last_week_entries, last_week_stats, shift_to_this_week

router = APIRouter(tags=["progress"])


class DayStatusOut(BaseModel):
    date: date
    day_name: str
    filled: bool
    hours: float
    is_workday: bool
    is_complete: bool
    shortfall: float


class WeekProgressOut(BaseModel):
    filled_days: int
    total_days: int
    percentage: float
    total_hours: float
    daily_target_hours: float
    daily_status: list[DayStatusOut]


class DraftOut(BaseModel):
    project_id: str
    hours: float
    date: date
    note: str = ""


class QuickFillOut(BaseModel):
    total_entries: int
    total_hours: float
    project_hours: dict[str, float]
    drafts: list[DraftOut]


class BatchFillIn(BaseModel):
    project_id: str
    hours: float = Field(..., gt=0, le=24)
    dates: list[date]
    note: str = ""


def _draft_out(draft: DraftEntry) -> DraftOut:
    return DraftOut(project_id=draft.project_id, hours=draft.hours, date=draft.date, note=draft.note)


@router.get("/progress", response_model=WeekProgressOut, summary="Filling progress for the viewer's week")
def progress(
    today: date | None = None,
    viewer: Profile = Depends(get_viewer),
    source: InMemoryDataSource = Depends(get_data_source),
    targets: CompletionTargets = Depends(get_targets),
) -> WeekProgressOut:
    result = week_progress(source.fetch_entries(), viewer.id, today, targets)
    return WeekProgressOut(
        filled_days=result.filled_days,
        total_days=result.total_days,
        percentage=result.percentage,
        total_hours=result.total_hours,
        daily_target_hours=targets.daily_hours,
        daily_status=[DayStatusOut(**status.__dict__) for status in result.daily_status],
    )


@router.get("/quickfill", response_model=QuickFillOut, summary="Last week's entries copied forward as drafts")
def quickfill(
    today: date | None = None,
    viewer: Profile = Depends(get_viewer),
    source: InMemoryDataSource = Depends(get_data_source),
) -> QuickFillOut:
    previous = last_week_entries(source.fetch_entries(), viewer.id, today)
    stats = last_week_stats(previous)
    return QuickFillOut(
        total_entries=stats.total_entries,
        total_hours=stats.total_hours,
        project_hours=stats.project_hours,
        drafts=[_draft_out(draft) for draft in shift_to_this_week(previous)],
    )


@router.post("/quickfill/batch", response_model=list[DraftOut], summary="One draft per selected day")
def quickfill_batch(payload: BatchFillIn, viewer: Profile = Depends(get_viewer)) -> list[DraftOut]:
    drafts = batch_fill(payload.project_id, payload.hours, sorted(set(payload.dates)), payload.note)
    return [_draft_out(draft) for draft in drafts]
