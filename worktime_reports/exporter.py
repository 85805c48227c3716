from __future__ import annotations

import csv
import io
from datetime import date
from pathlib import Path
from typing import Any, Dict, Iterable, List, Sequence

import xlsxwriter

from worktime.aggregation import department_stats, project_name, user_stats, weekly_project_breakdown
from worktime.dates import month_day, weekday_label
from worktime.models import (
    UNASSIGNED_DEPARTMENT,
    UNKNOWN_USER,
    Department,
    Profile,
    Project,
    TimeEntry,
)

UTF8_BOM = "\ufeff"
ENTRY_HEADERS = ["部門", "員工姓名", "日期", "星期", "專案", "時數", "備註"]
PERSONAL_HEADERS = ["日期", "星期", "專案", "時數", "備註"]


def _hours(value: float) -> str:
    return f"{value:g}"


def _one_decimal(value: float) -> str:
    return f"{value:.1f}"


def _render_csv(rows: Iterable[Sequence[Any]]) -> bytes:
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    for row in rows:
        writer.writerow(row)
    return (UTF8_BOM + buffer.getvalue()).encode("utf-8")


class _Lookups:
    def __init__(
        self,
        projects: Iterable[Project],
        profiles: Iterable[Profile],
        departments: Iterable[Department] = (),
    ) -> None:
        self.projects: Dict[str, Project] = {project.id: project for project in projects}
        self.profiles: Dict[str, Profile] = {profile.id: profile for profile in profiles}
        self.departments: Dict[str, Department] = {dept.id: dept for dept in departments}

    def username(self, user_id: str) -> str:
        profile = self.profiles.get(user_id)
        return profile.username if profile else UNKNOWN_USER

    def department_name(self, user_id: str, default: str = UNASSIGNED_DEPARTMENT) -> str:
        profile = self.profiles.get(user_id)
        if profile is None or not profile.department_id:
            return default
        department = self.departments.get(profile.department_id)
        return department.name if department else default

    def entry_row(self, entry: TimeEntry, department: str) -> List[str]:
        return [
            department,
            self.username(entry.user_id),
            entry.date.strftime("%Y/%m/%d"),
            weekday_label(entry.date),
            project_name(self.projects, entry.project_id),
            _hours(entry.hours),
            entry.note or "",
        ]


def _sorted_entries(entries: Iterable[TimeEntry], lookups: _Lookups, department_of) -> List[TimeEntry]:
    """Order rows by department name, then date, then username."""
    return sorted(entries, key=lambda e: (department_of(e), e.date, lookups.username(e.user_id)))


def render_department_csv(
    entries: Iterable[TimeEntry],
    projects: Iterable[Project],
    profiles: Iterable[Profile],
    department_name: str,
) -> bytes:
    entry_list = list(entries)
    profile_list = list(profiles)
    lookups = _Lookups(projects, profile_list)
    rows: List[Sequence[Any]] = [ENTRY_HEADERS]
    for entry in _sorted_entries(entry_list, lookups, lambda e: department_name):
        rows.append(lookups.entry_row(entry, department_name))

    members = user_stats(entry_list, profile_list)
    total = sum(member.total_hours for member in members)
    average = total / len(members) if members else 0
    rows.extend(
        [
            [],
            ["統計摘要"],
            ["部門總時數", f"{_one_decimal(total)}小時"],
            ["參與人數", f"{len(members)}人"],
            ["平均時數", f"{_one_decimal(average)}小時"],
            [],
            ["個人統計"],
            ["員工姓名", "總時數"],
        ]
    )
    rows.extend([member.username, _one_decimal(member.total_hours)] for member in members)
    return _render_csv(rows)


def render_company_csv(
    entries: Iterable[TimeEntry],
    projects: Iterable[Project],
    profiles: Iterable[Profile],
    departments: Iterable[Department],
) -> bytes:
    entry_list = list(entries)
    profile_list = list(profiles)
    department_list = list(departments)
    lookups = _Lookups(projects, profile_list, department_list)
    rows: List[Sequence[Any]] = [ENTRY_HEADERS]
    for entry in _sorted_entries(entry_list, lookups, lambda e: lookups.department_name(e.user_id, "")):
        rows.append(lookups.entry_row(entry, lookups.department_name(entry.user_id)))

    stats = department_stats(entry_list, profile_list, department_list)
    total = sum(dept.total_hours for dept in stats)
    members = sum(dept.member_count for dept in stats)
    average = total / members if members else 0
    rows.extend(
        [
            [],
            ["統計摘要"],
            ["公司總時數", f"{_one_decimal(total)}小時"],
            ["部門數量", f"{len(stats)}個"],
            ["總人數", f"{members}人"],
            ["平均時數", f"{_one_decimal(average)}小時"],
            [],
            ["各部門統計"],
            ["部門名稱", "人數", "總時數", "平均時數"],
        ]
    )
    rows.extend(
        [dept.department_name, dept.member_count, _one_decimal(dept.total_hours), _one_decimal(dept.avg_hours)]
        for dept in stats
    )
    return _render_csv(rows)


def render_personal_csv(entries: Iterable[TimeEntry], projects: Iterable[Project]) -> bytes:
    project_index = {project.id: project for project in projects}
    rows: List[Sequence[Any]] = [PERSONAL_HEADERS]
    for entry in sorted(entries, key=lambda e: e.date):
        rows.append(
            [
                entry.date.isoformat(),
                weekday_label(entry.date),
                project_name(project_index, entry.project_id),
                _hours(entry.hours),
                entry.note or "",
            ]
        )
    return _render_csv(rows)


def _workbook(sheet_name: str, rows: List[List[Any]], widths: Sequence[int]) -> bytes:
    buffer = io.BytesIO()
    workbook = xlsxwriter.Workbook(buffer, {"in_memory": True})
    sheet = workbook.add_worksheet(sheet_name)
    title = workbook.add_format({"bold": True, "font_size": 14})
    header = workbook.add_format({"bold": True, "bg_color": "#428BCA", "font_color": "#FFFFFF", "border": 1})
    for column, width in enumerate(widths):
        sheet.set_column(column, column, width)
    for row_index, row in enumerate(rows):
        fmt = None
        if row_index == 0:
            fmt = title
        elif row_index == 4:
            fmt = header
        for column, value in enumerate(row):
            if fmt is None:
                sheet.write(row_index, column, value)
            else:
                sheet.write(row_index, column, value, fmt)
    workbook.close()
    return buffer.getvalue()


def render_weekly_xlsx(
    entries: Iterable[TimeEntry],
    projects: Iterable[Project],
    start: date,
    end: date,
    user_name: str,
) -> bytes:
    project_index = {project.id: project for project in projects}
    sorted_entries = sorted(entries, key=lambda e: e.date)
    rows: List[List[Any]] = [
        ["工時週報"],
        ["期間", f"{start.strftime('%Y/%m/%d')} - {end.strftime('%Y/%m/%d')}"],
        ["人員", user_name],
        [],
        PERSONAL_HEADERS,
    ]
    for entry in sorted_entries:
        rows.append(
            [
                month_day(entry.date),
                weekday_label(entry.date),
                project_name(project_index, entry.project_id),
                entry.hours,
                entry.note or "",
            ]
        )
    rows.append([])
    rows.append(["小計", "", "", sum(e.hours for e in sorted_entries), ""])
    return _workbook("週報", rows, [8, 6, 20, 8, 30])


def share_label(hours: float, total: float) -> str:
    return f"{hours / total * 100:.1f}%" if total > 0 else "0%"


def render_monthly_xlsx(
    entries: Iterable[TimeEntry],
    projects: Iterable[Project],
    start: date,
    end: date,
    user_name: str,
) -> bytes:
    entry_list = list(entries)
    total = sum(e.hours for e in entry_list)
    rows: List[List[Any]] = [
        ["工時月報"],
        ["期間", f"{start.strftime('%Y/%m')} ({start.strftime('%Y/%m/%d')} - {end.strftime('%Y/%m/%d')})"],
        ["人員", user_name],
        [],
        ["週次", "專案", "時數", "佔比"],
    ]
    for week in weekly_project_breakdown(entry_list, projects, start, end):
        if week.total_hours <= 0:
            continue
        rows.append([week.label, "", "", ""])
        for name, hours in week.project_hours.items():
            rows.append(["", name, hours, share_label(hours, total)])
        rows.append(["", "週小計", week.total_hours, share_label(week.total_hours, total)])
        rows.append([""])
    rows.append(["總計", "", total, share_label(total, total)])
    return _workbook("月報", rows, [20, 20, 10, 10])


def department_csv_filename(scope_label: str, start: date, end: date) -> str:
    return f"{scope_label}_工時報表_{start.isoformat()}_{end.isoformat()}.csv"


def personal_csv_filename(start: date, end: date) -> str:
    return f"工時紀錄_{start.isoformat()}_至_{end.isoformat()}.csv"


def weekly_xlsx_filename(start: date, end: date) -> str:
    return f"工時週報_{start.isoformat()}_至_{end.isoformat()}.xlsx"


def monthly_xlsx_filename(start: date) -> str:
    return f"工時月報_{start.strftime('%Y-%m')}.xlsx"


def write_export(content: bytes, output_dir: Path, filename: str) -> Path:
    path = output_dir / filename
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(content)
    return path
