from __future__ import annotations

import io
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Sequence
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import PageBreak, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from worktime.aggregation import (
    department_stats,
    member_completion,
    project_name,
    user_stats,
    weekly_project_breakdown,
)
from worktime.dates import month_day, weekday_label
from worktime.models import (
    UNKNOWN_USER,
    CompletionTargets,
    Department,
    Granularity,
    Profile,
    Project,
    TimeEntry,
)

from .exporter import share_label
from .fonts import FALLBACK, FontPair


HEADER_BLUE = colors.Color(59 / 255, 130 / 255, 246 / 255)
HEADER_GREY = colors.Color(229 / 255, 231 / 255, 235 / 255)


@dataclass(frozen=True)
class Period:
    start: date
    end: date
    granularity: Granularity = Granularity.WEEK

    @property
    def label(self) -> str:
        return "工時週報" if self.granularity is Granularity.WEEK else "工時月報"


def _hours(value: float) -> str:
    return f"{value:.1f}"


def _entry_hours(value: float) -> str:
    return f"{value:g}"


def _slash_date(value: date) -> str:
    return value.strftime("%Y/%m/%d")


def _status(total_hours: float, weekly_target: float) -> str:
    completion = member_completion(total_hours, weekly_target)
    if completion.is_complete:
        return "✓ 達標"
    return f"還差 {completion.remaining_hours:.1f}h"


class _Styles:
    def __init__(self, fonts: FontPair):
        base = getSampleStyleSheet()
        self.fonts = fonts
        self.title = ParagraphStyle("wt_title", parent=base["Title"], fontName=fonts.bold, fontSize=18)
        self.subtitle = ParagraphStyle(
            "wt_subtitle", parent=base["Normal"], fontName=fonts.regular, fontSize=10, alignment=TA_CENTER
        )
        self.heading = ParagraphStyle("wt_heading", parent=base["Heading3"], fontName=fonts.bold, fontSize=12)
        self.section = ParagraphStyle(
            "wt_section", parent=base["Heading2"], fontName=fonts.bold, fontSize=14, alignment=TA_CENTER
        )
        self.body = ParagraphStyle("wt_body", parent=base["Normal"], fontName=fonts.regular, fontSize=9)

    def para(self, text: str, style: ParagraphStyle | None = None) -> Paragraph:
        return Paragraph(escape(text), style or self.body)


def _header(styles: _Styles, title: str, period: Period, generated_at: datetime) -> List[Any]:
    return [
        styles.para(title, styles.title),
        styles.para(f"期間： {_slash_date(period.start)} - {_slash_date(period.end)}", styles.subtitle),
        styles.para(f"匯出時間： {generated_at.strftime('%Y/%m/%d %H:%M')}", styles.subtitle),
        Spacer(1, 8),
    ]


def _summary_table(styles: _Styles, rows: Sequence[Sequence[str]]) -> Table:
    table = Table([list(row) for row in rows], colWidths=[40 * mm, 60 * mm], hAlign="LEFT")
    table.setStyle(
        TableStyle(
            [
                ("FONTNAME", (0, 0), (-1, -1), styles.fonts.regular),
                ("FONTSIZE", (0, 0), (-1, -1), 10),
                ("TOPPADDING", (0, 0), (-1, -1), 3),
                ("BOTTOMPADDING", (0, 0), (-1, -1), 3),
            ]
        )
    )
    return table


def _grid_table(
    styles: _Styles,
    head: Sequence[str],
    body: Sequence[Sequence[Any]],
    col_widths: Sequence[float],
    header_color=HEADER_BLUE,
    striped: bool = False,
    align_right: Sequence[int] = (),
) -> Table:
    header_text = colors.white if header_color is HEADER_BLUE else colors.black
    table = Table([list(head)] + [list(row) for row in body], colWidths=list(col_widths), hAlign="LEFT", repeatRows=1)
    commands = [
        ("BACKGROUND", (0, 0), (-1, 0), header_color),
        ("TEXTCOLOR", (0, 0), (-1, 0), header_text),
        ("FONTNAME", (0, 0), (-1, -1), styles.fonts.regular),
        ("FONTSIZE", (0, 0), (-1, -1), 9),
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
        ("LEFTPADDING", (0, 0), (-1, -1), 5),
        ("RIGHTPADDING", (0, 0), (-1, -1), 5),
        ("TOPPADDING", (0, 0), (-1, -1), 4),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 4),
    ]
    if striped:
        commands.append(("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, colors.whitesmoke]))
    else:
        commands.append(("GRID", (0, 0), (-1, -1), 0.25, colors.lightgrey))
    for column in align_right:
        commands.append(("ALIGN", (column, 1), (column, -1), "RIGHT"))
    table.setStyle(TableStyle(commands))
    return table


def _build(story: List[Any], title: str) -> bytes:
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        title=title,
        leftMargin=14 * mm,
        rightMargin=14 * mm,
        topMargin=16 * mm,
        bottomMargin=16 * mm,
    )
    doc.build(story)
    return buffer.getvalue()


def render_individual_pdf(
    entries: Iterable[TimeEntry],
    projects: Iterable[Project],
    period: Period,
    user_name: str,
    fonts: FontPair = FALLBACK,
    generated_at: datetime | None = None,
) -> bytes:
    """Personal weekly or monthly report for one member."""
    styles = _Styles(fonts)
    generated_at = generated_at or datetime.now()
    project_list = list(projects)
    project_index: Dict[str, Project] = {project.id: project for project in project_list}
    sorted_entries = sorted(entries, key=lambda e: e.date)
    total = sum(e.hours for e in sorted_entries)

    story = _header(styles, period.label, period, generated_at)
    story.append(styles.para(f"人員: {user_name}", styles.heading))

    if period.granularity is Granularity.WEEK:
        body: List[List[Any]] = [
            [
                month_day(e.date),
                weekday_label(e.date),
                project_name(project_index, e.project_id),
                _entry_hours(e.hours),
                styles.para(e.note or ""),
            ]
            for e in sorted_entries
        ]
        body.append(["", "", "小計", _entry_hours(total), ""])
        story.append(
            _grid_table(
                styles,
                ["日期", "星期", "專案", "時數", "備註"],
                body,
                [20 * mm, 20 * mm, 50 * mm, 20 * mm, 70 * mm],
                align_right=[3],
            )
        )
    else:
        body = []
        for week in weekly_project_breakdown(sorted_entries, project_list, period.start, period.end):
            if week.total_hours <= 0:
                continue
            body.append([week.label, "", "", ""])
            for name, hours in week.project_hours.items():
                body.append(["", name, _entry_hours(hours), ""])
            body.append(["", "週小計", _entry_hours(week.total_hours), ""])
        body.append(["總計", "", _entry_hours(total), share_label(total, total)])
        story.append(
            _grid_table(
                styles,
                ["週次", "專案", "時數", "佔比"],
                body,
                [60 * mm, 50 * mm, 30 * mm, 30 * mm],
                align_right=[2, 3],
            )
        )
    return _build(story, period.label)


def render_department_pdf(
    entries: Iterable[TimeEntry],
    projects: Iterable[Project],
    profiles: Iterable[Profile],
    period: Period,
    department_name: str,
    targets: CompletionTargets = CompletionTargets(),
    fonts: FontPair = FALLBACK,
    generated_at: datetime | None = None,
) -> bytes:
    """Department report: summary, per-member status, then per-member detail pages."""
    styles = _Styles(fonts)
    generated_at = generated_at or datetime.now()
    project_index = {project.id: project for project in projects}
    members = user_stats(entries, profiles)
    department_total = sum(member.total_hours for member in members)
    average = department_total / len(members) if members else 0.0
    completed = sum(1 for member in members if member.total_hours >= targets.weekly_hours)

    story = _header(styles, f"{department_name} - {period.label}", period, generated_at)
    story.append(styles.para("統計摘要", styles.heading))
    story.append(
        _summary_table(
            styles,
            [
                ["部門總時數", f"{_hours(department_total)} 小時"],
                ["參與人數", f"{len(members)} 人"],
                ["平均時數", f"{_hours(average)} 小時"],
                [f"達標人數 (≥{targets.weekly_hours:g}h)", f"{completed} 人"],
            ],
        )
    )
    story.append(Spacer(1, 10))
    story.append(styles.para("成員工時明細", styles.heading))
    story.append(
        _grid_table(
            styles,
            ["員工姓名", "總時數", "完成狀態"],
            [
                [member.username, f"{_hours(member.total_hours)}h", _status(member.total_hours, targets.weekly_hours)]
                for member in members
            ],
            [60 * mm, 40 * mm, 60 * mm],
        )
    )

    if members:
        story.append(PageBreak())
        story.append(styles.para("每日工時詳情", styles.section))
        for index, member in enumerate(members, start=1):
            story.append(styles.para(f"{index}. {member.username} (總計: {_hours(member.total_hours)}h)", styles.heading))
            detail = [
                [
                    f"{month_day(e.date)} ({weekday_label(e.date)})",
                    project_name(project_index, e.project_id),
                    f"{_entry_hours(e.hours)}h",
                    styles.para(e.note or "-"),
                ]
                for e in sorted(member.entries, key=lambda e: e.date)
            ]
            story.append(
                _grid_table(
                    styles,
                    ["日期", "專案", "時數", "備註"],
                    detail,
                    [30 * mm, 50 * mm, 20 * mm, 70 * mm],
                    header_color=HEADER_GREY,
                    striped=True,
                )
            )
            story.append(Spacer(1, 8))
    return _build(story, f"{department_name} - {period.label}")


def render_company_pdf(
    entries: Iterable[TimeEntry],
    profiles: Iterable[Profile],
    departments: Iterable[Department],
    period: Period,
    targets: CompletionTargets = CompletionTargets(),
    fonts: FontPair = FALLBACK,
    generated_at: datetime | None = None,
) -> bytes:
    """Company report: totals, one row per department, then member status per department."""
    styles = _Styles(fonts)
    generated_at = generated_at or datetime.now()
    stats = department_stats(entries, profiles, departments)
    company_total = sum(dept.total_hours for dept in stats)
    total_members = sum(dept.member_count for dept in stats)
    average = company_total / total_members if total_members else 0.0
    title = f"全公司{period.label}"

    story = _header(styles, title, period, generated_at)
    story.append(styles.para("全公司統計摘要", styles.heading))
    story.append(
        _summary_table(
            styles,
            [
                ["公司總時數", f"{_hours(company_total)} 小時"],
                ["部門數量", f"{len(stats)} 個部門"],
                ["總人數", f"{total_members} 人"],
                ["平均時數", f"{_hours(average)} 小時"],
            ],
        )
    )
    story.append(Spacer(1, 10))
    story.append(styles.para("各部門統計", styles.heading))
    story.append(
        _grid_table(
            styles,
            ["部門名稱", "人數", "總時數", "平均時數"],
            [
                [dept.department_name, f"{dept.member_count} 人", f"{_hours(dept.total_hours)}h", f"{_hours(dept.avg_hours)}h"]
                for dept in stats
            ],
            [60 * mm, 30 * mm, 40 * mm, 40 * mm],
        )
    )

    if stats:
        story.append(PageBreak())
        story.append(styles.para("各部門詳細資料", styles.section))
        for index, dept in enumerate(stats, start=1):
            story.append(
                styles.para(
                    f"{index}. {dept.department_name} (總計: {_hours(dept.total_hours)}h, {dept.member_count}人)",
                    styles.heading,
                )
            )
            members = user_stats(dept.entries, dept.profiles)
            story.append(
                _grid_table(
                    styles,
                    ["員工姓名", "總時數", "完成狀態"],
                    [
                        [
                            member.username or UNKNOWN_USER,
                            f"{_hours(member.total_hours)}h",
                            _status(member.total_hours, targets.weekly_hours),
                        ]
                        for member in members
                    ],
                    [50 * mm, 30 * mm, 50 * mm],
                    header_color=HEADER_GREY,
                    striped=True,
                )
            )
            story.append(Spacer(1, 8))
    return _build(story, title)


def individual_pdf_filename(period: Period) -> str:
    if period.granularity is Granularity.WEEK:
        return f"工時週報_{period.start.isoformat()}_至_{period.end.isoformat()}.pdf"
    return f"工時月報_{period.start.strftime('%Y-%m')}.pdf"


def department_pdf_filename(department_name: str, period: Period) -> str:
    return f"{department_name}_{period.label}_{period.start.isoformat()}.pdf"


def company_pdf_filename(period: Period) -> str:
    return f"全公司{period.label}_{period.start.isoformat()}.pdf"
