from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Dict, List, Optional

from worktime.dates import month_bounds, week_bounds
from worktime.datasource import DataSource
from worktime.logging import get_logger
from worktime.models import CompletionTargets, Department, Granularity, Profile, Scope, UNKNOWN_USER
from worktime.policy import ensure_scope

from . import exporter, pdf
from .filters import department_members, filter_entries
from .fonts import FALLBACK, ensure_cjk_font

logger = get_logger(__name__)

FORMATS = ("pdf", "csv", "xlsx")
COMPANY_LABEL = "全公司"

MEDIA_TYPES = {
    "pdf": "application/pdf",
    "csv": "text/csv; charset=utf-8",
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
}


class ReportError(ValueError):
    pass


@dataclass
class ReportRequest:
    scope: Scope = Scope.INDIVIDUAL
    granularity: Granularity = Granularity.WEEK
    fmt: str = "pdf"
    offset: int = 0
    user_id: Optional[str] = None
    department_id: Optional[str] = None
    today: Optional[date] = None


@dataclass
class ReportArtifact:
    filename: str
    content: bytes
    media_type: str


def resolve_period(request: ReportRequest) -> pdf.Period:
    granularity = Granularity(request.granularity)
    try:
        if granularity is Granularity.WEEK:
            start, end = week_bounds(request.offset, request.today)
        else:
            start, end = month_bounds(request.offset, request.today)
    except ValueError as exc:
        raise ReportError(str(exc)) from exc
    return pdf.Period(start, end, granularity)


def _department(departments: List[Department], department_id: Optional[str]) -> Department:
    if not department_id:
        raise ReportError("A department report needs a department id")
    for department in departments:
        if department.id == department_id:
            return department
    raise ReportError(f"Unknown department: {department_id}")


def build_report(
    request: ReportRequest,
    source: DataSource,
    targets: CompletionTargets = CompletionTargets(),
    viewer: Optional[Profile] = None,
    font_path: Optional[str] = None,
    font_url: Optional[str] = None,
    generated_at: Optional[datetime] = None,
) -> ReportArtifact:
    """Resolve the window, apply the access policy, filter and render one export."""
    scope = Scope(request.scope)
    fmt = request.fmt.lower()
    if fmt not in FORMATS:
        raise ReportError(f"Unsupported format: {request.fmt}")
    if fmt == "xlsx" and scope is not Scope.INDIVIDUAL:
        raise ReportError("Spreadsheet exports are only available for individual reports")

    user_id = request.user_id or (viewer.id if viewer else None)
    department_id = request.department_id or (viewer.department_id if viewer and scope is Scope.DEPARTMENT else None)
    profiles = source.fetch_profiles()
    if viewer is not None:
        ensure_scope(viewer, scope, department_id=department_id, user_id=user_id, profiles=profiles)

    period = resolve_period(request)
    projects = source.fetch_projects()
    in_window = filter_entries(source.fetch_entries(), start_date=period.start, end_date=period.end)
    fonts = ensure_cjk_font(font_path, font_url) if fmt == "pdf" else FALLBACK

    if scope is Scope.INDIVIDUAL:
        if not user_id:
            raise ReportError("An individual report needs a user id")
        names: Dict[str, str] = {profile.id: profile.username for profile in profiles}
        user_name = names.get(user_id, UNKNOWN_USER)
        entries = filter_entries(in_window, user_ids=[user_id])
        if fmt == "pdf":
            content = pdf.render_individual_pdf(entries, projects, period, user_name, fonts, generated_at)
            filename = pdf.individual_pdf_filename(period)
        elif fmt == "csv":
            content = exporter.render_personal_csv(entries, projects)
            filename = exporter.personal_csv_filename(period.start, period.end)
        elif period.granularity is Granularity.WEEK:
            content = exporter.render_weekly_xlsx(entries, projects, period.start, period.end, user_name)
            filename = exporter.weekly_xlsx_filename(period.start, period.end)
        else:
            content = exporter.render_monthly_xlsx(entries, projects, period.start, period.end, user_name)
            filename = exporter.monthly_xlsx_filename(period.start)
    elif scope is Scope.DEPARTMENT:
        department = _department(source.fetch_departments(), department_id)
        members = department_members(profiles, department.id)
        entries = filter_entries(in_window, user_ids=[member.id for member in members])
        if fmt == "pdf":
            content = pdf.render_department_pdf(
                entries, projects, members, period, department.name, targets, fonts, generated_at
            )
            filename = pdf.department_pdf_filename(department.name, period)
        else:
            content = exporter.render_department_csv(entries, projects, members, department.name)
            filename = exporter.department_csv_filename(department.name, period.start, period.end)
    else:
        departments = source.fetch_departments()
        entries = in_window
        if fmt == "pdf":
            content = pdf.render_company_pdf(entries, profiles, departments, period, targets, fonts, generated_at)
            filename = pdf.company_pdf_filename(period)
        else:
            content = exporter.render_company_csv(entries, projects, profiles, departments)
            filename = exporter.department_csv_filename(COMPANY_LABEL, period.start, period.end)

    logger.info(
        "report_built",
        scope=scope.value,
        granularity=period.granularity.value,
        fmt=fmt,
        start=period.start.isoformat(),
        end=period.end.isoformat(),
        entries=len(entries),
        font=fonts.regular,
        size=len(content),
    )
    return ReportArtifact(filename=filename, content=content, media_type=MEDIA_TYPES[fmt])
