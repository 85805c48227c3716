from __future__ import annotations

import json
from datetime import date
from pathlib import Path

import pytest

from worktime.datasource import InMemoryDataSource
from worktime.models import Department, Profile, Project, Role, TimeEntry


@pytest.fixture
def projects():
    return [
        Project(id="p1", name="Alpha", color="#3B82F6"),
        Project(id="p2", name="Beta", color="#10B981"),
        Project(id="p3", name="Gamma", color="#F59E0B"),
        Project(id="p4", name="Delta", color="#EF4444"),
        Project(id="p5", name="Legacy", color="#6B7280", is_active=False),
    ]


@pytest.fixture
def departments():
    return [
        Department(id="d1", name="研發部", code="RD"),
        Department(id="d2", name="業務部", code="BD"),
        Department(id="d3", name="舊部門", code="OLD", is_active=False),
    ]


@pytest.fixture
def profiles():
    return [
        Profile(id="u1", username="Alice", department_id="d1"),
        Profile(id="u2", username="Bob", department_id="d1", role=Role.DEPARTMENT_ADMIN),
        Profile(id="u3", username="Carol", department_id="d2"),
        Profile(id="u4", username="Dave", department_id=None),
        Profile(id="u5", username="Root", department_id="d2", role=Role.SUPER_ADMIN),
        Profile(id="u6", username="Eve", department_id="d3"),
    ]


@pytest.fixture
def entries():
    return [
        TimeEntry(id="e1", user_id="u1", project_id="p1", date=date(2024, 1, 1), hours=8),
        TimeEntry(id="e2", user_id="u1", project_id="p2", date=date(2024, 1, 1), hours=2, note='Review "API" docs'),
        TimeEntry(id="e3", user_id="u2", project_id="p1", date=date(2024, 1, 2), hours=7.5),
        TimeEntry(id="e4", user_id="u3", project_id="p2", date=date(2024, 1, 3), hours=6),
        TimeEntry(id="e5", user_id="u4", project_id="p1", date=date(2024, 1, 4), hours=4),
        TimeEntry(id="e6", user_id="u1", project_id="p1", date=date(2024, 1, 8), hours=7),
        TimeEntry(id="e7", user_id="u1", project_id="p3", date=date(2024, 1, 9), hours=3, note="Kickoff"),
        TimeEntry(id="e8", user_id="u6", project_id="p2", date=date(2024, 1, 2), hours=5),
    ]


@pytest.fixture
def source(entries, projects, profiles, departments):
    return InMemoryDataSource(entries, projects, profiles, departments)


@pytest.fixture
def snapshot_path(tmp_path: Path, entries, projects, profiles, departments) -> Path:
    path = tmp_path / "worktime.json"
    content = {
        "time_entries": [
            {
                "id": e.id,
                "user_id": e.user_id,
                "project_id": e.project_id,
                "date": e.date.isoformat(),
                "hours": e.hours,
                "note": e.note,
            }
            for e in entries
        ],
        "projects": [
            {"id": p.id, "name": p.name, "color": p.color, "is_active": p.is_active} for p in projects
        ],
        "profiles": [
            {"id": p.id, "username": p.username, "department_id": p.department_id, "role": p.role.value}
            for p in profiles
        ],
        "departments": [
            {"id": d.id, "name": d.name, "code": d.code, "is_active": d.is_active} for d in departments
        ],
    }
    path.write_text(json.dumps(content, ensure_ascii=False), encoding="utf-8")
    return path
