"""Reshape aggregates into the row and series layout chart components consume."""

from __future__ import annotations
import math
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Dict, Iterable, List, Optional

from .aggregation import by_project, group_by_key
from .dates import WEEKDAY_LABELS, month_day, week_bounds
from .models import Profile, Project, TimeEntry


ChartRow = Dict[str, Any]

TREND_THRESHOLD = 10.0


@dataclass(frozen=True)
class TrendWindow:
    weeks: int
    recent_weeks: int
    compare_weeks: int


TREND_WINDOWS = {
    "1month": TrendWindow(weeks=4, recent_weeks=2, compare_weeks=2),
    "3months": TrendWindow(weeks=12, recent_weeks=3, compare_weeks=3),
}


@dataclass
class ProjectTrend:
    name: str
    color: str
    trend: str
    change: int


def trend_window(time_range: str) -> TrendWindow:
    try:
        return TREND_WINDOWS[time_range]
    except KeyError as exc:
        raise ValueError(f"Unknown trend range: {time_range}") from exc


def _active(projects: Iterable[Project]) -> List[Project]:
    return [project for project in projects if project.is_active]


def weekly_trend_rows(
    entries: Iterable[TimeEntry],
    projects: Iterable[Project],
    weeks: int,
    today: date | None = None,
    project_id: Optional[str] = None,
) -> List[ChartRow]:
    """One row per week, oldest first and ending with the current week.

    Every active project gets a column in every row, zero when idle, so
    series stay aligned across weeks.
    """
    active = _active(projects)
    entry_list = [e for e in entries if project_id is None or e.project_id == project_id]
    rows: List[ChartRow] = []
    for weeks_ago in range(weeks - 1, -1, -1):
        start, end = week_bounds(weeks_ago, today)
        week_entries = [e for e in entry_list if start <= e.date <= end]
        hours = group_by_key(week_entries, by_project)
        row: ChartRow = {"week_label": month_day(start), "week_start": start}
        for project in active:
            group = hours.get(project.id)
            row[project.name] = group.total_hours if group else 0
        row["total"] = sum(e.hours for e in week_entries)
        rows.append(row)
    return rows


def project_share(entries: Iterable[TimeEntry], projects: Iterable[Project]) -> List[ChartRow]:
    project_index = {project.id: project for project in projects}
    rows: List[ChartRow] = []
    for key, group in group_by_key(entries, by_project).items():
        project = project_index.get(key)
        if project is None:
            continue
        rows.append({"name": project.name, "hours": group.total_hours, "color": project.color})
    return sorted(rows, key=lambda row: row["hours"], reverse=True)


def daily_project_rows(
    entries: Iterable[TimeEntry],
    projects: Iterable[Project],
    week_start: date,
) -> List[ChartRow]:
    active = _active(projects)
    entry_list = list(entries)
    rows: List[ChartRow] = []
    for offset, label in enumerate(WEEKDAY_LABELS):
        day = week_start + timedelta(days=offset)
        hours = group_by_key((e for e in entry_list if e.date == day), by_project)
        row: ChartRow = {"name": label}
        for project in active:
            group = hours.get(project.id)
            row[project.name] = group.total_hours if group else 0
        rows.append(row)
    return rows


def member_project_rows(
    entries: Iterable[TimeEntry],
    profiles: Iterable[Profile],
    projects: Iterable[Project],
) -> List[ChartRow]:
    profile_index = {profile.id: profile for profile in profiles}
    project_index = {project.id: project for project in projects}
    rows: Dict[str, ChartRow] = {}
    for entry in entries:
        profile = profile_index.get(entry.user_id)
        project = project_index.get(entry.project_id)
        if profile is None or project is None:
            continue
        row = rows.setdefault(profile.id, {"username": profile.username, "total": 0})
        row[project.name] = row.get(project.name, 0) + entry.hours
        row["total"] += entry.hours
    return sorted(rows.values(), key=lambda row: row["total"], reverse=True)


def _average(rows: List[ChartRow], name: str, divisor: int) -> float:
    return sum(row.get(name, 0) or 0 for row in rows) / divisor


def project_trends(
    rows: List[ChartRow],
    projects: Iterable[Project],
    recent_weeks: int,
    compare_weeks: int,
    threshold: float = TREND_THRESHOLD,
) -> List[ProjectTrend]:
    """Classify each active project as up, down or stable.

    The recent window is the last ``recent_weeks`` rows; the baseline is the
    ``compare_weeks`` rows right before it. A zero baseline reads as +100%
    when the project is newly active and 0% otherwise.
    """
    if recent_weeks < 1 or compare_weeks < 1:
        raise ValueError("trend windows must span at least one week")
    recent = rows[-recent_weeks:]
    baseline = rows[-(recent_weeks + compare_weeks):-recent_weeks]
    trends: List[ProjectTrend] = []
    for project in _active(projects):
        recent_avg = _average(recent, project.name, recent_weeks)
        baseline_avg = _average(baseline, project.name, max(len(baseline), 1))
        if baseline_avg > 0:
            change = (recent_avg - baseline_avg) / baseline_avg * 100
        else:
            change = 100.0 if recent_avg > 0 else 0.0
        if change > threshold:
            trend = "up"
        elif change < -threshold:
            trend = "down"
        else:
            trend = "stable"
        trends.append(
            ProjectTrend(name=project.name, color=project.color, trend=trend, change=math.floor(change + 0.5))
        )
    return sorted(trends, key=lambda item: item.change, reverse=True)


def new_projects(rows: List[ChartRow], projects: Iterable[Project], recent_weeks: int) -> List[Project]:
    """Active projects with hours in the recent rows and none before them."""
    recent = rows[-recent_weeks:]
    older = rows[:-recent_weeks]
    return [
        project
        for project in _active(projects)
        if any((row.get(project.name) or 0) > 0 for row in recent)
        and not any((row.get(project.name) or 0) > 0 for row in older)
    ]
