import csv
import io
from datetime import date

import pytest

from worktime.models import Granularity, Scope
from worktime.policy import AccessDenied
from worktime_reports.reports import ReportError, ReportRequest, build_report, resolve_period

TODAY = date(2024, 1, 10)


def csv_rows(content: bytes):
    return list(csv.reader(io.StringIO(content.decode("utf-8-sig"))))


def test_resolve_period_for_previous_week_and_month():
    week = resolve_period(ReportRequest(offset=1, today=TODAY))
    month = resolve_period(ReportRequest(granularity=Granularity.MONTH, offset=1, today=TODAY))

    assert (week.start, week.end) == (date(2024, 1, 1), date(2024, 1, 7))
    assert (month.start, month.end) == (date(2023, 12, 1), date(2023, 12, 31))


def test_negative_offset_is_a_report_error():
    with pytest.raises(ReportError):
        resolve_period(ReportRequest(offset=-1, today=TODAY))


def test_offset_beyond_calendar_is_a_report_error():
    with pytest.raises(ReportError):
        resolve_period(ReportRequest(offset=200_000, today=TODAY))
    with pytest.raises(ReportError):
        resolve_period(ReportRequest(granularity=Granularity.MONTH, offset=200_000, today=TODAY))


def test_individual_pdf_for_viewer(source, profiles):
    request = ReportRequest(scope=Scope.INDIVIDUAL, fmt="pdf", offset=1, today=TODAY)

    artifact = build_report(request, source, viewer=profiles[0])

    assert artifact.filename == "工時週報_2024-01-01_至_2024-01-07.pdf"
    assert artifact.media_type == "application/pdf"
    assert artifact.content.startswith(b"%PDF")


def test_department_csv_only_contains_members(source, profiles):
    request = ReportRequest(scope=Scope.DEPARTMENT, fmt="csv", offset=1, today=TODAY)

    artifact = build_report(request, source, viewer=profiles[1])

    assert artifact.filename == "研發部_工時報表_2024-01-01_2024-01-07.csv"
    names = {row[1] for row in csv_rows(artifact.content)[1:4]}
    assert names == {"Alice", "Bob"}


def test_company_csv_for_super_admin(source, profiles):
    request = ReportRequest(scope=Scope.COMPANY, fmt="csv", offset=1, today=TODAY)

    artifact = build_report(request, source, viewer=profiles[4])

    assert artifact.filename == "全公司_工時報表_2024-01-01_2024-01-07.csv"
    assert artifact.media_type.startswith("text/csv")


def test_monthly_xlsx_filename(source):
    request = ReportRequest(granularity=Granularity.MONTH, fmt="xlsx", user_id="u1", today=TODAY)

    artifact = build_report(request, source)

    assert artifact.filename == "工時月報_2024-01.xlsx"
    assert artifact.content[:2] == b"PK"


def test_xlsx_rejected_outside_individual_scope(source):
    request = ReportRequest(scope=Scope.DEPARTMENT, fmt="xlsx", department_id="d1", today=TODAY)

    with pytest.raises(ReportError):
        build_report(request, source)


def test_unknown_format_and_department(source):
    with pytest.raises(ReportError):
        build_report(ReportRequest(fmt="docx", user_id="u1"), source)
    with pytest.raises(ReportError):
        build_report(ReportRequest(scope=Scope.DEPARTMENT, fmt="csv", department_id="nope"), source)


def test_policy_is_enforced(source, profiles):
    member, admin = profiles[0], profiles[1]

    with pytest.raises(AccessDenied):
        build_report(ReportRequest(scope=Scope.COMPANY, fmt="csv"), source, viewer=member)
    with pytest.raises(AccessDenied):
        build_report(ReportRequest(scope=Scope.DEPARTMENT, fmt="csv", department_id="d2"), source, viewer=admin)
    with pytest.raises(AccessDenied):
        build_report(ReportRequest(fmt="csv", user_id="u3"), source, viewer=member)


def test_department_admin_cannot_export_other_department_member(source, profiles):
    admin = profiles[1]

    artifact = build_report(ReportRequest(fmt="csv", user_id="u1", offset=1, today=TODAY), source, viewer=admin)
    assert csv_rows(artifact.content)[1][2] == "Alpha"
    with pytest.raises(AccessDenied):
        build_report(ReportRequest(fmt="csv", user_id="u3", offset=1, today=TODAY), source, viewer=admin)
