from __future__ import annotations
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Dict, Iterable, List

from .dates import week_bounds
from .models import DraftEntry, TimeEntry


SHIFT_DAYS = 7


@dataclass
class LastWeekStats:
    total_entries: int = 0
    total_hours: float = 0.0
    project_hours: Dict[str, float] = field(default_factory=dict)


def last_week_entries(all_entries: Iterable[TimeEntry], user_id: str, today: date | None = None) -> List[TimeEntry]:
    start, end = week_bounds(1, today)
    return [e for e in all_entries if e.user_id == user_id and start <= e.date <= end]


def shift_to_this_week(entries: Iterable[TimeEntry | DraftEntry]) -> List[DraftEntry]:
    """Copy entries forward by one week as drafts.

    Every call adds exactly seven days. The result knows nothing about entries
    already logged in the target week; the user reviews the drafts before
    anything is submitted.
    """
    return [
        DraftEntry(
            project_id=entry.project_id,
            hours=entry.hours,
            date=entry.date + timedelta(days=SHIFT_DAYS),
            note=entry.note or "",
        )
        for entry in entries
    ]


def last_week_stats(entries: Iterable[TimeEntry]) -> LastWeekStats:
    project_hours: Dict[str, float] = defaultdict(float)
    entry_list = list(entries)
    for entry in entry_list:
        project_hours[entry.project_id] += entry.hours
    return LastWeekStats(
        total_entries=len(entry_list),
        total_hours=sum(e.hours for e in entry_list),
        project_hours=dict(project_hours),
    )


def batch_fill(project_id: str, hours: float, dates: Iterable[date], note: str = "") -> List[DraftEntry]:
    """One draft per selected day for a single project."""
    selected = list(dates)
    if not project_id or not selected:
        return []
    return [DraftEntry(project_id=project_id, hours=hours, date=day, note=note) for day in selected]
