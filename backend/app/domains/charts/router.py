from __future__ import annotations

from datetime import date
from typing import Any, Literal

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from app.api.deps import get_data_source, get_viewer
from worktime.aggregation import period_totals
from worktime.charts import (
    daily_project_rows,
    member_project_rows,
    new_projects,
    project_share,
    project_trends,
    trend_window,
    weekly_trend_rows,
)
from worktime.dates import week_bounds
from worktime.datasource import InMemoryDataSource
from worktime.models import Profile, Role
from worktime.policy import visible_entries

router = APIRouter(prefix="/charts", tags=["charts"])


class TrendOut(BaseModel):
    name: str
    color: str
    trend: Literal["up", "down", "stable"]
    change: int


class TrendsOut(BaseModel):
    range: str
    rows: list[dict[str, Any]]
    trends: list[TrendOut]
    new_projects: list[str]


class DashboardOut(BaseModel):
    week_start: date
    week_end: date
    total_hours: float
    entry_count: int
    weekly: list[dict[str, Any]]
    share: list[dict[str, Any]]
    daily: list[dict[str, Any]]
    members: list[dict[str, Any]]


def _scoped_entries(source: InMemoryDataSource, viewer: Profile, department_id: str | None):
    if department_id and viewer.role is Role.DEPARTMENT_ADMIN and department_id != viewer.department_id:
        raise HTTPException(status_code=403, detail="Department is outside the viewer's scope")
    return visible_entries(source.fetch_entries(), viewer, source.fetch_profiles(), department_id)


@router.get("/trends", response_model=TrendsOut, summary="Weekly project trend series")
def trends(
    time_range: Literal["1month", "3months"] = Query(default="1month", alias="range"),
    project_id: str | None = None,
    department_id: str | None = None,
    viewer: Profile = Depends(get_viewer),
    source: InMemoryDataSource = Depends(get_data_source),
) -> TrendsOut:
    window = trend_window(time_range)
    projects = source.fetch_projects()
    entries = _scoped_entries(source, viewer, department_id)
    rows = weekly_trend_rows(entries, projects, window.weeks, project_id=project_id)
    classified = project_trends(rows, projects, window.recent_weeks, window.compare_weeks)
    return TrendsOut(
        range=time_range,
        rows=rows,
        trends=[TrendOut(**item.__dict__) for item in classified],
        new_projects=[project.name for project in new_projects(rows, projects, window.recent_weeks)],
    )


@router.get("/dashboard", response_model=DashboardOut, summary="Current-week dashboard series")
def dashboard(
    weeks: int = Query(default=4, ge=1, le=52),
    department_id: str | None = None,
    viewer: Profile = Depends(get_viewer),
    source: InMemoryDataSource = Depends(get_data_source),
) -> DashboardOut:
    projects = source.fetch_projects()
    entries = _scoped_entries(source, viewer, department_id)
    start, end = week_bounds(0)
    this_week = [e for e in entries if start <= e.date <= end]
    total_hours, entry_count = period_totals(this_week)
    return DashboardOut(
        week_start=start,
        week_end=end,
        total_hours=total_hours,
        entry_count=entry_count,
        weekly=weekly_trend_rows(entries, projects, weeks),
        share=project_share(this_week, projects),
        daily=daily_project_rows(this_week, projects, start),
        members=member_project_rows(this_week, source.fetch_profiles(), projects),
    )
