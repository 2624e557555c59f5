"""Work document persistence and lifecycle operations.

Layout::

    <data_dir>/<slug>/work/<finding_id>.json

Documents are mutated in memory by the functions below and written back
with :meth:`WorkStore.save`.  Only the scan pipeline writes documents for
a repository while a scan is running.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Union

from ..exceptions import WorkDocumentError
from ..findings.identity import generate_finding_id
from ..findings.models import FindingInstance
from ..logging_config import get_logger
from ..snapshot.store import _check_component, write_json
from .models import (
    REPORT_UPDATE_PREFIX,
    SYSTEM_AUTHOR,
    VALID_STATUSES,
    Severity,
    WorkDocument,
    WorkNote,
    WorkStatus,
    utc_now_iso,
)
from .severity import (
    FIRST_NUMBER,
    MIN_REPORTS_FOR_CHANGE,
    TrendSignal,
    compute_trend,
    evaluate_demotion,
    evaluate_promotion,
)

logger = get_logger(__name__)


class WorkStore:
    """Reads and writes work documents for all repositories under *data_dir*."""

    def __init__(self, data_dir: Union[str, Path]) -> None:
        self.data_dir = Path(data_dir)

    def work_dir(self, slug: str) -> Path:
        return self.data_dir / _check_component(slug, "slug") / "work"

    def document_path(self, slug: str, finding_id: str) -> Path:
        return self.work_dir(slug) / f"{_check_component(finding_id, 'finding id')}.json"

    def load_all(self, slug: str) -> List[WorkDocument]:
        """All readable documents for *slug*, ordered by finding id.

        Unreadable documents are skipped with a warning.
        """
        work_dir = self.work_dir(slug)
        if not work_dir.is_dir():
            return []

        docs: List[WorkDocument] = []
        for path in sorted(work_dir.glob("*.json")):
            try:
                with open(path, encoding="utf-8") as f:
                    docs.append(WorkDocument.from_dict(json.load(f)))
            except (OSError, ValueError, KeyError, TypeError) as e:
                logger.warning("Skipping unreadable work document %s: %s", path.name, e)
        return docs

    def load(self, slug: str, finding_id: str) -> Optional[WorkDocument]:
        """The document for *finding_id*, or None when there is none."""
        path = self.document_path(slug, finding_id)
        if not path.exists():
            return None
        try:
            with open(path, encoding="utf-8") as f:
                return WorkDocument.from_dict(json.load(f))
        except (OSError, ValueError, KeyError, TypeError) as e:
            raise WorkDocumentError(finding_id, f"unreadable document: {e}") from e

    def save(self, slug: str, doc: WorkDocument) -> Path:
        """Write *doc* atomically and return its path."""
        path = self.document_path(slug, doc.finding_id)
        tmp = path.with_name(f".{path.name}.tmp")
        try:
            write_json(tmp, doc.to_dict())
            os.replace(tmp, path)
        except OSError as e:
            raise WorkDocumentError(doc.finding_id, str(e)) from e
        return path


# ── Lifecycle ─────────────────────────────────────────────────────


def add_note(doc: WorkDocument, author: str, text: str, timestamp: Optional[str] = None) -> WorkNote:
    note = WorkNote(timestamp=timestamp or utc_now_iso(), author=author, text=text)
    doc.notes.append(note)
    return note


def create_work_document(
    finding: FindingInstance, severity: Severity, now: Optional[str] = None
) -> WorkDocument:
    """New document for a first-seen finding: counter 0, trend "new"."""
    now = now or utc_now_iso()
    doc = WorkDocument(
        finding_id=generate_finding_id(finding),
        code=finding.code,
        metric=finding.metric,
        severity=severity,
        first_seen=now,
        last_seen=now,
        path=finding.path,
        symbol=finding.symbol,
    )
    add_note(doc, SYSTEM_AUTHOR, f"First detected. Severity: {severity.value}.", now)
    return doc


def update_status(
    doc: WorkDocument,
    status: WorkStatus,
    note: Optional[str] = None,
    author: str = SYSTEM_AUTHOR,
) -> None:
    """Move *doc* to *status*, optionally recording why.

    Raises:
        WorkDocumentError: For an unknown status.
    """
    if status not in VALID_STATUSES:
        raise WorkDocumentError(doc.finding_id, f"unknown status {status!r}")
    if status == "resolved":
        resolve_work_document(doc, note=note, author=author)
        return
    doc.status = status
    doc.resolved_at = None
    if note:
        add_note(doc, author, note)


def resolve_work_document(
    doc: WorkDocument,
    note: Optional[str] = None,
    author: str = SYSTEM_AUTHOR,
    now: Optional[str] = None,
) -> None:
    now = now or utc_now_iso()
    doc.status = "resolved"
    doc.resolved_at = now
    doc.consecutive_reports = 0
    add_note(doc, author, note or "Finding no longer active. Resolved.", now)


@dataclass(frozen=True)
class Observation:
    """What a recurrence did to a document."""

    reopened: bool
    previous_severity: Severity
    severity: Severity

    @property
    def severity_changed(self) -> bool:
        return self.previous_severity != self.severity


def record_observation(
    doc: WorkDocument,
    finding: FindingInstance,
    min_reports: int = MIN_REPORTS_FOR_CHANGE,
    signal: TrendSignal = FIRST_NUMBER,
    now: Optional[str] = None,
) -> Observation:
    """Apply one recurrence of *finding* to its existing document.

    Order matters: the trend is computed before the counter moves, the
    severity decision sees the new counter and trend, and the report note
    is appended last so the next scan compares against this one.
    """
    now = now or utc_now_iso()
    previous = doc.severity

    reopened = doc.status == "resolved"
    if reopened:
        doc.status = "unassigned"
        doc.resolved_at = None
        doc.consecutive_reports = 0
        add_note(doc, SYSTEM_AUTHOR, "Finding reappeared. Reopened.", now)

    doc.trend = compute_trend(doc, finding, signal)
    doc.consecutive_reports += 1
    doc.last_seen = now

    promoted = evaluate_promotion(doc, min_reports)
    if promoted is not None:
        add_note(
            doc,
            SYSTEM_AUTHOR,
            f"Auto-promoted {doc.severity.value} -> {promoted.value}: "
            f"worsening for {doc.consecutive_reports} consecutive reports.",
            now,
        )
        doc.severity = promoted
    else:
        demoted = evaluate_demotion(doc, min_reports)
        if demoted is not None:
            add_note(
                doc,
                SYSTEM_AUTHOR,
                f"Auto-demoted {doc.severity.value} -> {demoted.value}: "
                f"improving for {doc.consecutive_reports} consecutive reports.",
                now,
            )
            doc.severity = demoted

    add_note(doc, SYSTEM_AUTHOR, f"{REPORT_UPDATE_PREFIX} {finding.summary}", now)
    return Observation(reopened=reopened, previous_severity=previous, severity=doc.severity)
