from datetime import date

import pytest

from worktime.aggregation import (
    by_date,
    by_department,
    by_project,
    by_user,
    daily_completion,
    daily_records,
    department_stats,
    group_by_key,
    member_completion,
    period_totals,
    totals,
    user_stats,
    week_progress,
    weekly_project_breakdown,
)
from worktime.models import CompletionTargets, TimeEntry

TODAY = date(2024, 1, 10)


def test_monday_scenario_groups_and_completion():
    monday = [
        TimeEntry(id="a", user_id="u1", project_id="P1", date=date(2024, 1, 1), hours=8),
        TimeEntry(id="b", user_id="u1", project_id="P2", date=date(2024, 1, 1), hours=2),
    ]

    for target in (7.0, 8.0):
        completion = daily_completion(monday, weekend=False, target=target)
        assert (completion.hours, completion.is_complete, completion.shortfall) == (10, True, 0)

    assert totals(group_by_key(monday, by_project)) == {"P1": 8, "P2": 2}


def test_hour_totals_are_conserved_across_groupings(entries):
    flat = sum(e.hours for e in entries)

    assert sum(totals(group_by_key(entries, by_project)).values()) == pytest.approx(flat)
    assert sum(totals(group_by_key(entries, by_date)).values()) == pytest.approx(flat)
    assert sum(totals(group_by_key(entries, by_user)).values()) == pytest.approx(flat)
    assert period_totals(entries) == (pytest.approx(flat), len(entries))


def test_group_keys_follow_first_appearance(entries):
    keys = list(group_by_key(entries, by_date))

    assert keys[:3] == ["2024-01-01", "2024-01-02", "2024-01-03"]


def test_empty_input_gives_empty_groups():
    assert group_by_key([], by_project) == {}
    assert period_totals([]) == (0, 0)


def test_weekend_day_completes_with_any_hours():
    saturday = [TimeEntry(id="s", user_id="u1", project_id="p1", date=date(2024, 1, 6), hours=0.5)]

    completion = daily_completion(saturday, weekend=True, target=7)
    assert completion.is_complete
    assert completion.shortfall == 0
    assert not daily_completion([], weekend=True, target=7).is_complete


def test_member_completion_against_weekly_target():
    assert member_completion(35, 35).is_complete
    short = member_completion(30, 35)
    assert not short.is_complete
    assert short.remaining_hours == 5


def test_week_progress_reports_each_day(entries):
    progress = week_progress(entries, "u1", today=TODAY, targets=CompletionTargets(daily_hours=7))

    assert progress.filled_days == 2
    assert progress.total_days == 7
    assert progress.percentage == pytest.approx(200 / 7)
    assert progress.total_hours == 10
    monday, tuesday = progress.daily_status[:2]
    assert monday.day_name == "週一" and monday.is_complete
    assert not tuesday.is_complete and tuesday.shortfall == 4
    assert not progress.daily_status[5].is_workday


def test_daily_records_are_newest_first(entries):
    records = daily_records(entries, "u1")

    assert [r.date for r in records] == [date(2024, 1, 9), date(2024, 1, 8), date(2024, 1, 1)]
    assert records[-1].total_hours == 10
    assert records[-1].shortfall == 0
    assert records[0].shortfall == 4


def test_user_stats_sorted_by_hours(entries, profiles):
    stats = user_stats(entries, profiles)

    assert [s.username for s in stats] == ["Alice", "Bob", "Carol", "Eve", "Dave"]
    assert stats[0].total_hours == 20
    assert stats[0].daily_hours[date(2024, 1, 1)] == 10


def test_department_stats_skip_unassigned_and_inactive(entries, profiles, departments):
    stats = department_stats(entries, profiles, departments)

    assert [d.department_name for d in stats] == ["研發部", "業務部"]
    rd, sales = stats
    assert rd.total_hours == 27.5
    assert rd.member_count == 2
    assert rd.avg_hours == 13.75
    assert sales.total_hours == 6
    assert sales.avg_hours == 3


def test_unassigned_profile_creates_no_department(entries, profiles, departments):
    stats = department_stats(entries, profiles, departments)

    assert all(d.department_id for d in stats)
    assert all(p.id != "u4" for d in stats for p in d.profiles)
    assert None in group_by_key(entries, by_department(profiles))


def test_weekly_project_breakdown_for_month(entries, projects):
    weeks = weekly_project_breakdown(entries, projects, date(2024, 1, 1), date(2024, 1, 31))

    assert len(weeks) == 5
    first = weeks[0]
    assert first.label == "Week 1 (1/1 - 1/7)"
    assert first.project_hours == {"Alpha": 19.5, "Beta": 13}
    assert first.total_hours == 32.5
    assert weeks[1].project_hours == {"Alpha": 7, "Gamma": 3}
    assert weeks[-1].total_hours == 0
