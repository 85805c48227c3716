from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from .reports import ReportArtifact, ReportRequest

AUDIT_LOG = Path("worktime_audit.jsonl")


class AuditLogger:
    """Append-only JSON lines record of generated exports."""

    def __init__(self, path: Path = AUDIT_LOG):
        self.path = path

    def log(self, entry: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        record = {**entry, "timestamp": datetime.now(timezone.utc).isoformat()}
        with self.path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(record, ensure_ascii=False) + "\n")

    def log_export(
        self,
        request: ReportRequest,
        artifact: ReportArtifact,
        output: Path,
        viewer_id: Optional[str] = None,
    ) -> None:
        self.log(
            {
                "action": "export",
                "scope": request.scope.value,
                "granularity": request.granularity.value,
                "format": request.fmt,
                "offset": request.offset,
                "user_id": request.user_id,
                "department_id": request.department_id,
                "viewer_id": viewer_id,
                "filename": artifact.filename,
                "bytes": len(artifact.content),
                "output": str(output),
            }
        )

    def read(self) -> List[Dict[str, Any]]:
        if not self.path.exists():
            return []
        with self.path.open("r", encoding="utf-8") as handle:
            return [json.loads(line) for line in handle if line.strip()]
