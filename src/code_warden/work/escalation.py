"""Escalation monitor: S1 findings nobody has picked up.

Detection is a pure filter over documents.  Alerts are plain JSON files
that overwrite each other, so re-detecting the same document on every
scan is harmless.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

from ..logging_config import get_logger
from ..snapshot.store import _check_component, write_json
from .models import Severity, WorkDocument, utc_now_iso

logger = get_logger(__name__)

ESCALATION_THRESHOLD = 3


@dataclass(frozen=True)
class AlertPayload:
    finding_id: str
    code: str
    severity: str
    consecutive_reports: int
    path: Optional[str]
    escalated_at: str

    @classmethod
    def for_document(cls, doc: WorkDocument, now: Optional[str] = None) -> "AlertPayload":
        return cls(
            finding_id=doc.finding_id,
            code=doc.code,
            severity=doc.severity.value,
            consecutive_reports=doc.consecutive_reports,
            path=doc.path,
            escalated_at=now or utc_now_iso(),
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "findingId": self.finding_id,
            "code": self.code,
            "severity": self.severity,
            "consecutiveReports": self.consecutive_reports,
        }
        if self.path is not None:
            data["path"] = self.path
        data["escalatedAt"] = self.escalated_at
        return data


def detect_escalations(
    docs: Iterable[WorkDocument], threshold: int = ESCALATION_THRESHOLD
) -> List[WorkDocument]:
    """Documents at S1, seen *threshold* or more times, still unassigned."""
    return [
        doc
        for doc in docs
        if doc.severity == Severity.S1
        and doc.consecutive_reports >= threshold
        and doc.status == "unassigned"
    ]


def alert_path(data_dir: Union[str, Path], slug: str, finding_id: str) -> Path:
    return (
        Path(data_dir)
        / _check_component(slug, "slug")
        / "alerts"
        / f"{_check_component(finding_id, 'finding id')}-escalated.json"
    )


def write_alert(
    slug: str, doc: WorkDocument, data_dir: Union[str, Path], now: Optional[str] = None
) -> Path:
    """Write the escalation alert for *doc* and return where it went."""
    path = alert_path(data_dir, slug, doc.finding_id)
    write_json(path, AlertPayload.for_document(doc, now).to_dict())
    logger.warning(
        "Escalated %s in %s (%d consecutive reports at S1)",
        doc.finding_id,
        slug,
        doc.consecutive_reports,
    )
    return path
