from __future__ import annotations
from calendar import monthrange
from datetime import date, datetime, timedelta
from typing import List, Tuple


WEEKDAY_LABELS = ["週一", "週二", "週三", "週四", "週五", "週六", "週日"]


def parse_iso_date(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value).split("T")[0])


def week_of(anchor: date) -> Tuple[date, date]:
    start = anchor - timedelta(days=anchor.weekday())
    end = start + timedelta(days=6)
    return start, end


def week_bounds(weeks_ago: int = 0, today: date | None = None) -> Tuple[date, date]:
    """Monday-Sunday bounds of the week ``weeks_ago`` weeks before the current one."""
    if weeks_ago < 0:
        raise ValueError("weeks_ago must be zero or positive")
    today = today or date.today()
    try:
        anchor = today - timedelta(weeks=weeks_ago)
    except OverflowError as exc:
        raise ValueError(f"weeks_ago {weeks_ago} is outside the supported date range") from exc
    return week_of(anchor)


def month_bounds(months_ago: int = 0, today: date | None = None) -> Tuple[date, date]:
    """First and last day of the month ``months_ago`` months before the current one."""
    if months_ago < 0:
        raise ValueError("months_ago must be zero or positive")
    today = today or date.today()
    year, month_index = divmod(today.year * 12 + (today.month - 1) - months_ago, 12)
    month = month_index + 1
    _, last_day = monthrange(year, month)
    return date(year, month, 1), date(year, month, last_day)


def weeks_in_range(start: date, end: date) -> List[date]:
    """Monday of every week that overlaps ``start``..``end``."""
    current, _ = week_of(start)
    weeks: List[date] = []
    while current <= end:
        weeks.append(current)
        current += timedelta(days=7)
    return weeks


def days_of_week(anchor: date) -> List[date]:
    start, _ = week_of(anchor)
    return [start + timedelta(days=offset) for offset in range(7)]


def is_weekend(day: date) -> bool:
    return day.weekday() >= 5


def weekday_label(day: date) -> str:
    return WEEKDAY_LABELS[day.weekday()]


def month_day(day: date) -> str:
    return f"{day.month}/{day.day}"
