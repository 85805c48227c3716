from __future__ import annotations

from typing import Literal
from urllib.parse import quote

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from app.api.deps import get_data_source, get_targets, get_viewer
from app.core.config import Settings, get_settings
from app.core.observability import export_counter, get_tracer
from worktime.datasource import InMemoryDataSource
from worktime.logging import get_logger
from worktime.models import CompletionTargets, Granularity, Profile, Scope
from worktime.policy import AccessDenied
from worktime_reports.reports import ReportError, ReportRequest, build_report

router = APIRouter(prefix="/reports", tags=["reporting"])
logger = get_logger(__name__)
tracer = get_tracer(__name__)
exports = export_counter()


def content_disposition(filename: str) -> str:
    ascii_name = filename.encode("ascii", "ignore").decode() or "report"
    return f"attachment; filename=\"{ascii_name}\"; filename*=UTF-8''{quote(filename)}"


@router.get("/export", summary="Render a PDF, CSV or XLSX work-hours report")
def export_report(
    scope: Scope = Scope.INDIVIDUAL,
    granularity: Granularity = Granularity.WEEK,
    fmt: Literal["pdf", "csv", "xlsx"] = Query(default="pdf", alias="format"),
    offset: int = Query(default=0, ge=0),
    user_id: str | None = None,
    department_id: str | None = None,
    viewer: Profile = Depends(get_viewer),
    source: InMemoryDataSource = Depends(get_data_source),
    targets: CompletionTargets = Depends(get_targets),
    settings: Settings = Depends(get_settings),
) -> Response:
    request = ReportRequest(
        scope=scope,
        granularity=granularity,
        fmt=fmt,
        offset=offset,
        user_id=user_id,
        department_id=department_id,
    )
    with tracer.start_as_current_span("report.export"):
        try:
            artifact = build_report(
                request,
                source,
                targets=targets,
                viewer=viewer,
                font_path=settings.font_path,
                font_url=settings.font_url,
            )
        except AccessDenied as exc:
            logger.warning("report_denied", viewer=viewer.id, scope=scope.value, reason=str(exc))
            raise HTTPException(status_code=403, detail=str(exc)) from exc
        except ReportError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc

    exports.add(1, {"scope": scope.value, "format": fmt})
    return Response(
        content=artifact.content,
        media_type=artifact.media_type,
        headers={"Content-Disposition": content_disposition(artifact.filename)},
    )
