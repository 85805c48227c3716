from __future__ import annotations

from datetime import date
from typing import Iterable, List, Optional

from worktime.models import Profile, TimeEntry


def filter_entries(
    entries: Iterable[TimeEntry],
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    user_ids: Optional[List[str]] = None,
) -> List[TimeEntry]:
    """Filter time entries by an inclusive date window and owners."""

    def matches(entry: TimeEntry) -> bool:
        if start_date and entry.date < start_date:
            return False
        if end_date and entry.date > end_date:
            return False
        if user_ids is not None and entry.user_id not in user_ids:
            return False
        return True

    return [entry for entry in entries if matches(entry)]


def department_members(profiles: Iterable[Profile], department_id: str) -> List[Profile]:
    return [profile for profile in profiles if profile.department_id == department_id]
