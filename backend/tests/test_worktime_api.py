from __future__ import annotations

from datetime import timedelta
from urllib.parse import quote

import pytest
from fastapi.testclient import TestClient

from app.api.deps import get_data_source
from app.main import app
from worktime.datasource import InMemoryDataSource
from worktime.dates import week_bounds
from worktime.models import Department, Profile, Project, Role, TimeEntry

MONDAY, _ = week_bounds(0)
LAST_MONDAY = MONDAY - timedelta(days=7)


def build_source() -> InMemoryDataSource:
    return InMemoryDataSource(
        entries=[
            TimeEntry(id="e1", user_id="u1", project_id="p1", date=LAST_MONDAY, hours=8, note="Plan"),
            TimeEntry(id="e2", user_id="u1", project_id="p2", date=LAST_MONDAY + timedelta(days=1), hours=6),
            TimeEntry(id="e3", user_id="u1", project_id="p1", date=MONDAY, hours=7),
            TimeEntry(id="e4", user_id="u2", project_id="p2", date=MONDAY, hours=5),
        ],
        projects=[
            Project(id="p1", name="Alpha", color="#3B82F6"),
            Project(id="p2", name="Beta", color="#10B981"),
        ],
        profiles=[
            Profile(id="u1", username="Alice", department_id="d1"),
            Profile(id="u2", username="Bob", department_id="d1", role=Role.DEPARTMENT_ADMIN),
            Profile(id="u3", username="Root", department_id=None, role=Role.SUPER_ADMIN),
            Profile(id="u4", username="Carol", department_id="d2"),
        ],
        departments=[Department(id="d1", name="研發部"), Department(id="d2", name="業務部")],
    )


@pytest.fixture(autouse=True)
def override_source():
    source = build_source()
    app.dependency_overrides[get_data_source] = lambda: source
    yield source
    app.dependency_overrides.clear()


def get(path: str, profile: str | None = "u1", **params):
    headers = {"X-Profile-Id": profile} if profile else {}
    with TestClient(app) as client:
        return client.get(path, headers=headers, params=params)


def test_healthcheck():
    response = get("/health", profile=None)

    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_export_requires_known_profile():
    assert get("/reports/export", profile=None).status_code == 401
    assert get("/reports/export", profile="ghost").status_code == 401


def test_individual_csv_export():
    response = get("/reports/export", format="csv", offset=1)

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    disposition = response.headers["content-disposition"]
    assert disposition.startswith("attachment;")
    assert f"filename*=UTF-8''{quote('工時紀錄_')}" in disposition
    body = response.content.decode("utf-8-sig")
    assert "Plan" in body
    assert "Alpha" in body


def test_department_pdf_export_for_admin():
    response = get("/reports/export", profile="u2", scope="department", format="pdf")

    assert response.status_code == 200
    assert response.content.startswith(b"%PDF")
    assert quote("研發部_工時週報") in response.headers["content-disposition"]


def test_member_cannot_export_company_report():
    assert get("/reports/export", scope="company", format="csv").status_code == 403


def test_xlsx_department_export_is_rejected():
    assert get("/reports/export", profile="u3", scope="department", format="xlsx", department_id="d1").status_code == 400


def test_negative_offset_is_rejected():
    assert get("/reports/export", format="csv", offset=-1).status_code == 422


def test_offset_beyond_calendar_is_a_bad_request():
    assert get("/reports/export", format="csv", offset=200_000).status_code == 400


def test_department_admin_cannot_export_foreign_member():
    assert get("/reports/export", profile="u2", format="csv", user_id="u1").status_code == 200
    assert get("/reports/export", profile="u2", format="csv", user_id="u4").status_code == 403


def test_progress():
    response = get("/progress")

    assert response.status_code == 200
    body = response.json()
    assert body["total_days"] == 7
    assert body["daily_status"][0]["hours"] == 7
    assert body["daily_status"][0]["is_complete"] is True
    assert body["daily_target_hours"] == 7


def test_quickfill_copies_last_week():
    response = get("/quickfill")

    assert response.status_code == 200
    body = response.json()
    assert body["total_entries"] == 2
    assert body["total_hours"] == 14
    assert [d["date"] for d in body["drafts"]] == [MONDAY.isoformat(), (MONDAY + timedelta(days=1)).isoformat()]
    assert body["drafts"][0]["note"] == "Plan"


def test_quickfill_batch():
    days = [MONDAY.isoformat(), (MONDAY + timedelta(days=2)).isoformat()]
    with TestClient(app) as client:
        response = client.post(
            "/quickfill/batch",
            headers={"X-Profile-Id": "u1"},
            json={"project_id": "p1", "hours": 4, "dates": days, "note": "Sprint"},
        )

    assert response.status_code == 200
    assert [d["date"] for d in response.json()] == days


def test_trends_are_scoped_to_viewer():
    response = get("/charts/trends", range="1month")

    assert response.status_code == 200
    body = response.json()
    assert len(body["rows"]) == 4
    assert body["rows"][-1]["Alpha"] == 7
    assert body["rows"][-1]["Beta"] == 0
    assert {t["name"] for t in body["trends"]} == {"Alpha", "Beta"}


def test_dashboard_for_department_admin():
    response = get("/charts/dashboard", profile="u2")

    assert response.status_code == 200
    body = response.json()
    assert body["total_hours"] == 12
    assert body["entry_count"] == 2
    assert body["share"][0]["name"] == "Alpha"
    assert len(body["daily"]) == 7
    assert body["members"][0]["username"] == "Alice"


def test_dashboard_rejects_foreign_department():
    assert get("/charts/dashboard", profile="u2", department_id="d9").status_code == 403
