from __future__ import annotations

import argparse
import json
from datetime import date
from pathlib import Path

from worktime.aggregation import week_progress
from worktime.charts import new_projects, project_trends, trend_window, weekly_trend_rows
from worktime.datasource import JsonFileDataSource
from worktime.logging import configure_logging
from worktime.models import CompletionTargets, Granularity, Scope
from worktime.quickfill import last_week_entries, last_week_stats, shift_to_this_week
from worktime.views import format_drafts, format_trends, format_week_progress

from .audit import AuditLogger
from .exporter import write_export
from .reports import ReportRequest, build_report

DEFAULT_DATA_PATH = Path("data/worktime.json")
DEFAULT_AUDIT_PATH = Path("worktime_audit.jsonl")


def parse_date(value: str | None) -> date | None:
    if not value:
        return None
    return date.fromisoformat(value)


def source_from_args(args: argparse.Namespace) -> JsonFileDataSource:
    return JsonFileDataSource(Path(args.data) if args.data else DEFAULT_DATA_PATH)


def targets_from_args(args: argparse.Namespace) -> CompletionTargets:
    return CompletionTargets(daily_hours=args.daily_target, weekly_hours=args.weekly_target)


def cmd_export(args: argparse.Namespace) -> None:
    source = source_from_args(args)
    viewer = None
    if args.viewer:
        viewer = source.find_profile(args.viewer)
        if viewer is None:
            raise ValueError(f"Unknown viewer profile: {args.viewer}")
    request = ReportRequest(
        scope=Scope(args.scope),
        granularity=Granularity(args.granularity),
        fmt=args.format,
        offset=args.offset,
        user_id=args.user,
        department_id=args.department,
        today=parse_date(args.today),
    )
    artifact = build_report(
        request,
        source,
        targets=targets_from_args(args),
        viewer=viewer,
        font_path=args.font_path,
        font_url=args.font_url,
    )
    output_path = write_export(artifact.content, Path(args.output_dir), artifact.filename)
    AuditLogger(Path(args.audit_log)).log_export(request, artifact, output_path, viewer_id=args.viewer)
    print(f"Report exported to {output_path}")


def cmd_progress(args: argparse.Namespace) -> None:
    source = source_from_args(args)
    progress = week_progress(source.fetch_entries(), args.user, parse_date(args.today), targets_from_args(args))
    print(format_week_progress(progress))


def cmd_quickfill(args: argparse.Namespace) -> None:
    source = source_from_args(args)
    previous = last_week_entries(source.fetch_entries(), args.user, parse_date(args.today))
    if not previous:
        print("No entries last week")
        return
    stats = last_week_stats(previous)
    print(f"Last week: {stats.total_entries} entries, {stats.total_hours:.1f} hours")
    print(format_drafts(shift_to_this_week(previous), source.fetch_projects()))


def cmd_trends(args: argparse.Namespace) -> None:
    source = source_from_args(args)
    window = trend_window(args.range)
    projects = source.fetch_projects()
    rows = weekly_trend_rows(source.fetch_entries(), projects, window.weeks, parse_date(args.today))
    print(format_trends(project_trends(rows, projects, window.recent_weeks, window.compare_weeks)))
    fresh = new_projects(rows, projects, window.recent_weeks)
    if fresh:
        print("New projects: " + ", ".join(project.name for project in fresh))


def show_audit(args: argparse.Namespace) -> None:
    records = AuditLogger(Path(args.audit_log)).read()
    print(json.dumps(records, ensure_ascii=False, indent=2))


def build_parser() -> argparse.ArgumentParser:
    defaults = CompletionTargets()
    parser = argparse.ArgumentParser(description="Work-hours reporting utility")
    parser.add_argument("--data", help="JSON snapshot of time entries, projects, profiles and departments")
    parser.add_argument("--daily-target", type=float, default=defaults.daily_hours)
    parser.add_argument("--weekly-target", type=float, default=defaults.weekly_hours)
    parser.add_argument("--font-path", help="TrueType font with CJK glyphs for PDF exports")
    parser.add_argument("--font-url", help="URL to fetch the CJK font from")
    parser.add_argument("--audit-log", default=str(DEFAULT_AUDIT_PATH))
    parser.add_argument("--log-level", default="WARNING")
    subparsers = parser.add_subparsers(dest="command", required=True)

    export_cmd = subparsers.add_parser("export", help="Export a PDF, CSV or XLSX report")
    export_cmd.add_argument("--scope", choices=[scope.value for scope in Scope], default=Scope.INDIVIDUAL.value)
    export_cmd.add_argument(
        "--granularity", choices=[item.value for item in Granularity], default=Granularity.WEEK.value
    )
    export_cmd.add_argument("--format", choices=["pdf", "csv", "xlsx"], default="pdf")
    export_cmd.add_argument("--offset", type=int, default=0, help="Weeks or months before the current one")
    export_cmd.add_argument("--user", help="Profile id for individual reports")
    export_cmd.add_argument("--department", help="Department id for department reports")
    export_cmd.add_argument("--viewer", help="Profile id the access policy is checked against")
    export_cmd.add_argument("--today", help="Reference date (YYYY-MM-DD)")
    export_cmd.add_argument("--output-dir", default=".")
    export_cmd.set_defaults(func=cmd_export)

    progress_cmd = subparsers.add_parser("progress", help="Show this week's filling progress")
    progress_cmd.add_argument("--user", required=True)
    progress_cmd.add_argument("--today")
    progress_cmd.set_defaults(func=cmd_progress)

    quickfill_cmd = subparsers.add_parser("quickfill", help="Preview last week's entries copied forward")
    quickfill_cmd.add_argument("--user", required=True)
    quickfill_cmd.add_argument("--today")
    quickfill_cmd.set_defaults(func=cmd_quickfill)

    trends_cmd = subparsers.add_parser("trends", help="Show project hour trends")
    trends_cmd.add_argument("--range", choices=["1month", "3months"], default="1month")
    trends_cmd.add_argument("--today")
    trends_cmd.set_defaults(func=cmd_trends)

    audit_cmd = subparsers.add_parser("audit", help="Show export audit log")
    audit_cmd.set_defaults(func=show_audit)

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)
    args.func(args)


if __name__ == "__main__":
    main()
