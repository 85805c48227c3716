from __future__ import annotations
from typing import Dict, Iterable, List

from .aggregation import project_name
from .charts import ProjectTrend
from .models import DraftEntry, Project, WeekProgress


def format_week_progress(progress: WeekProgress) -> str:
    rows = ["Week progress", "Date        Day   Hours  Status"]
    for day in progress.daily_status:
        if day.is_complete:
            status = "done"
        elif day.is_workday:
            status = f"short {day.shortfall:.1f}h"
        else:
            status = "-"
        rows.append(f"{day.date.isoformat()}  {day.day_name}  {day.hours:>5.1f}  {status}")
    rows.append(f"Filled {progress.filled_days}/{progress.total_days} days ({progress.percentage:.0f}%)")
    rows.append(f"Total hours: {progress.total_hours:.1f}")
    return "\n".join(rows)


def format_drafts(drafts: Iterable[DraftEntry], projects: Iterable[Project]) -> str:
    project_index: Dict[str, Project] = {project.id: project for project in projects}
    rows = ["Draft entries", "Date        Hours  Project              Note"]
    total = 0.0
    for draft in sorted(drafts, key=lambda d: d.date):
        total += draft.hours
        rows.append(
            f"{draft.date.isoformat()}  {draft.hours:>5.1f}  {project_name(project_index, draft.project_id):<20} {draft.note or '-'}"
        )
    rows.append(f"Total hours: {total:.1f}")
    return "\n".join(rows)


def format_trends(trends: List[ProjectTrend]) -> str:
    arrows = {"up": "↑", "down": "↓", "stable": "→"}
    rows = ["Project trends"]
    for item in trends:
        sign = "+" if item.change > 0 else ""
        rows.append(f"{arrows[item.trend]} {item.name:<20} {sign}{item.change}%")
    if not trends:
        rows.append("No active projects")
    return "\n".join(rows)
