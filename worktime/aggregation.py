from __future__ import annotations
from collections import defaultdict
from datetime import date
from typing import Callable, Dict, Hashable, Iterable, List, Optional, Tuple

from .dates import days_of_week, is_weekend, month_day, weekday_label, weeks_in_range, week_of
from .models import (
    UNKNOWN_PROJECT,
    CompletionTargets,
    DailyRecord,
    DayCompletion,
    DayStatus,
    Department,
    DepartmentStats,
    Group,
    MemberCompletion,
    Profile,
    Project,
    TimeEntry,
    UserStats,
    WeekBreakdown,
    WeekProgress,
)


KeyFn = Callable[[TimeEntry], Hashable]


def by_user(entry: TimeEntry) -> str:
    return entry.user_id


def by_project(entry: TimeEntry) -> str:
    return entry.project_id


def by_date(entry: TimeEntry) -> str:
    return entry.date.isoformat()


def by_department(profiles: Iterable[Profile]) -> KeyFn:
    """Key extractor mapping an entry to its owner's department id (``None`` when unassigned)."""
    departments = {profile.id: profile.department_id for profile in profiles}

    def key(entry: TimeEntry) -> Optional[str]:
        return departments.get(entry.user_id)

    return key


def group_by_key(entries: Iterable[TimeEntry], key_fn: KeyFn) -> Dict[Hashable, Group]:
    """Group entries by ``key_fn`` and sum hours per group.

    Keys keep the order in which they first appear; callers sort the result.
    """
    groups: Dict[Hashable, Group] = {}
    for entry in entries:
        key = key_fn(entry)
        if key not in groups:
            groups[key] = Group()
        groups[key].add(entry)
    return groups


def totals(groups: Dict[Hashable, Group]) -> Dict[Hashable, float]:
    return {key: group.total_hours for key, group in groups.items()}


def period_totals(entries: Iterable[TimeEntry]) -> Tuple[float, int]:
    entry_list = list(entries)
    return sum(e.hours for e in entry_list), len(entry_list)


def daily_completion(date_entries: Iterable[TimeEntry], weekend: bool, target: float) -> DayCompletion:
    hours = sum(e.hours for e in date_entries)
    if weekend:
        return DayCompletion(hours=hours, is_complete=hours > 0, shortfall=0.0)
    return DayCompletion(hours=hours, is_complete=hours >= target, shortfall=max(0.0, target - hours))


def member_completion(total_hours: float, weekly_target: float) -> MemberCompletion:
    if total_hours >= weekly_target:
        return MemberCompletion(is_complete=True, remaining_hours=0.0)
    return MemberCompletion(is_complete=False, remaining_hours=weekly_target - total_hours)


def week_progress(
    entries: Iterable[TimeEntry],
    user_id: str,
    today: date | None = None,
    targets: CompletionTargets = CompletionTargets(),
) -> WeekProgress:
    today = today or date.today()
    by_day = group_by_key((e for e in entries if e.user_id == user_id), by_date)

    daily_status: List[DayStatus] = []
    for day in days_of_week(today):
        group = by_day.get(day.isoformat(), Group())
        weekend = is_weekend(day)
        completion = daily_completion(group.entries, weekend, targets.daily_hours)
        daily_status.append(
            DayStatus(
                date=day,
                day_name=weekday_label(day),
                filled=completion.hours > 0,
                hours=completion.hours,
                is_workday=not weekend,
                is_complete=completion.is_complete,
                shortfall=completion.shortfall,
            )
        )

    filled_days = sum(1 for status in daily_status if status.filled)
    return WeekProgress(
        filled_days=filled_days,
        total_days=7,
        percentage=filled_days / 7 * 100,
        total_hours=sum(status.hours for status in daily_status),
        daily_status=daily_status,
    )


def daily_records(
    entries: Iterable[TimeEntry],
    user_id: str,
    targets: CompletionTargets = CompletionTargets(),
) -> List[DailyRecord]:
    """Per-day groups of one user's entries, newest day first."""
    groups = group_by_key((e for e in entries if e.user_id == user_id), lambda e: e.date)
    records: List[DailyRecord] = []
    for day, group in sorted(groups.items(), key=lambda item: item[0], reverse=True):
        weekend = is_weekend(day)
        completion = daily_completion(group.entries, weekend, targets.daily_hours)
        records.append(
            DailyRecord(
                date=day,
                entries=group.entries,
                total_hours=completion.hours,
                is_workday=not weekend,
                hours_needed=0.0 if weekend else targets.daily_hours,
                shortfall=completion.shortfall,
            )
        )
    return records


def user_stats(entries: Iterable[TimeEntry], profiles: Iterable[Profile]) -> List[UserStats]:
    """Per-member totals sorted by hours; entries of unknown users are skipped."""
    profile_index = {profile.id: profile for profile in profiles}
    stats: Dict[str, UserStats] = {}
    for entry in entries:
        profile = profile_index.get(entry.user_id)
        if profile is None:
            continue
        if entry.user_id not in stats:
            stats[entry.user_id] = UserStats(user_id=entry.user_id, username=profile.username)
        user = stats[entry.user_id]
        user.total_hours += entry.hours
        user.entries.append(entry)
        user.daily_hours[entry.date] = user.daily_hours.get(entry.date, 0.0) + entry.hours
    return sorted(stats.values(), key=lambda user: user.total_hours, reverse=True)


def department_stats(
    entries: Iterable[TimeEntry],
    profiles: Iterable[Profile],
    departments: Iterable[Department],
) -> List[DepartmentStats]:
    """Hours, headcount and average per department that has at least one member.

    Inactive departments are treated as missing, so their members and entries
    are left out of every department total.
    """
    stats: Dict[str, DepartmentStats] = {
        dept.id: DepartmentStats(department_id=dept.id, department_name=dept.name)
        for dept in departments
        if dept.is_active
    }

    profile_list = list(profiles)
    for profile in profile_list:
        if profile.department_id and profile.department_id in stats:
            dept = stats[profile.department_id]
            dept.profiles.append(profile)
            dept.member_count += 1

    owner_department = {profile.id: profile.department_id for profile in profile_list}
    for entry in entries:
        department_id = owner_department.get(entry.user_id)
        if department_id and department_id in stats:
            dept = stats[department_id]
            dept.entries.append(entry)
            dept.total_hours += entry.hours

    for dept in stats.values():
        dept.avg_hours = dept.total_hours / dept.member_count if dept.member_count else 0.0

    return sorted(
        (dept for dept in stats.values() if dept.member_count > 0),
        key=lambda dept: dept.total_hours,
        reverse=True,
    )


def project_name(projects: Dict[str, Project], project_id: str) -> str:
    project = projects.get(project_id)
    return project.name if project else UNKNOWN_PROJECT


def weekly_project_breakdown(
    entries: Iterable[TimeEntry],
    projects: Iterable[Project],
    start: date,
    end: date,
) -> List[WeekBreakdown]:
    """Hours per project name for every Monday-start week overlapping ``start``..``end``."""
    project_index = {project.id: project for project in projects}
    entry_list = sorted(entries, key=lambda e: e.date)
    weeks: List[WeekBreakdown] = []
    for index, week_start in enumerate(weeks_in_range(start, end), start=1):
        _, week_end = week_of(week_start)
        hours: Dict[str, float] = defaultdict(float)
        total = 0.0
        for entry in entry_list:
            if week_start <= entry.date <= week_end:
                hours[project_name(project_index, entry.project_id)] += entry.hours
                total += entry.hours
        weeks.append(
            WeekBreakdown(
                label=f"Week {index} ({month_day(week_start)} - {month_day(week_end)})",
                week_start=week_start,
                week_end=week_end,
                project_hours=dict(hours),
                total_hours=total,
            )
        )
    return weeks
