"""Work document data models: the durable record that follows a finding.

A work document is created the first time a finding is observed and is
updated on every later scan that reports the same finding id.  Its notes
are append-only; notes starting with ``REPORT_UPDATE_PREFIX`` snapshot the
finding's summary at each recurrence and are the only baseline the trend
engine compares against.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from ..exceptions import SeverityError

Trend = Literal["new", "worsening", "stable", "improving"]
WorkStatus = Literal[
    "unassigned",
    "auto-assigned",
    "agent-in-progress",
    "agent-complete",
    "pm-review",
    "blocked",
    "resolved",
    "wont-fix",
]

TRENDS: tuple = ("new", "worsening", "stable", "improving")
VALID_STATUSES: tuple = (
    "unassigned",
    "auto-assigned",
    "agent-in-progress",
    "agent-complete",
    "pm-review",
    "blocked",
    "resolved",
    "wont-fix",
)

REPORT_UPDATE_PREFIX = "Report update:"
SYSTEM_AUTHOR = "warden"


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class Severity(str, Enum):
    """S0 (most urgent, manual only) through S5 (least urgent).

    The numeric level is the only ordering key.
    """

    S0 = "S0"
    S1 = "S1"
    S2 = "S2"
    S3 = "S3"
    S4 = "S4"
    S5 = "S5"

    @property
    def level(self) -> int:
        return int(self.value[1])

    @classmethod
    def from_level(cls, level: int) -> "Severity":
        """Severity for *level*, clamped to [0, 5]."""
        return cls(f"S{min(5, max(0, int(level)))}")

    @classmethod
    def parse(cls, value: Any) -> "Severity":
        """Parse ``"S3"`` (or a Severity).

        Raises:
            SeverityError: For anything outside S0-S5.
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).upper())
        except ValueError:
            raise SeverityError(value) from None


@dataclass
class WorkNote:
    timestamp: str
    author: str
    text: str

    def to_dict(self) -> Dict[str, str]:
        return {"timestamp": self.timestamp, "author": self.author, "text": self.text}

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "WorkNote":
        return cls(
            timestamp=str(raw.get("timestamp", "")),
            author=str(raw.get("author", "")),
            text=str(raw.get("text", "")),
        )

    @property
    def is_report_update(self) -> bool:
        return self.text.startswith(REPORT_UPDATE_PREFIX)


@dataclass
class WorkDocument:
    """Persistent tracking record for one finding across scans.

    Attributes:
        finding_id: Stable identity (code + location)
        code: Finding code, e.g. ``WD-M5-001``
        metric: Metric category, e.g. ``M5``
        severity: Current severity
        first_seen / last_seen: ISO-8601 timestamps
        consecutive_reports: Recurrences since creation or reopening;
            never negative, reset to 0 only on resolution
        trend: new / worsening / stable / improving
        status: Lifecycle status, orthogonal to severity
        notes: Append-only history
    """

    finding_id: str
    code: str
    metric: str
    severity: Severity
    first_seen: str
    last_seen: str
    path: Optional[str] = None
    symbol: Optional[str] = None
    consecutive_reports: int = 0
    trend: Trend = "new"
    status: WorkStatus = "unassigned"
    assigned_to: Optional[str] = None
    resolved_at: Optional[str] = None
    notes: List[WorkNote] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.severity = Severity.parse(self.severity)
        if self.consecutive_reports < 0:
            raise ValueError("consecutive_reports must be non-negative")

    def latest_report_note(self) -> Optional[WorkNote]:
        """The most recently appended "Report update:" note, if any."""
        for note in reversed(self.notes):
            if note.is_report_update:
                return note
        return None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "findingId": self.finding_id,
            "code": self.code,
            "metric": self.metric,
            "severity": self.severity.value,
            "path": self.path,
            "symbol": self.symbol,
            "firstSeen": self.first_seen,
            "lastSeen": self.last_seen,
            "consecutiveReports": self.consecutive_reports,
            "trend": self.trend,
            "status": self.status,
            "assignedTo": self.assigned_to,
            "resolvedAt": self.resolved_at,
            "notes": [n.to_dict() for n in self.notes],
        }
        return {k: v for k, v in data.items() if v is not None}

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "WorkDocument":
        trend = raw.get("trend", "new")
        status = raw.get("status", "unassigned")
        return cls(
            finding_id=str(raw["findingId"]),
            code=str(raw["code"]),
            metric=str(raw.get("metric", "")),
            severity=Severity.parse(raw["severity"]),
            first_seen=str(raw.get("firstSeen", "")),
            last_seen=str(raw.get("lastSeen", "")),
            path=raw.get("path"),
            symbol=raw.get("symbol"),
            consecutive_reports=max(0, int(raw.get("consecutiveReports", 0))),
            trend=trend if trend in TRENDS else "stable",
            status=status if status in VALID_STATUSES else "unassigned",
            assigned_to=raw.get("assignedTo"),
            resolved_at=raw.get("resolvedAt"),
            notes=[WorkNote.from_dict(n) for n in raw.get("notes", []) if isinstance(n, dict)],
        )
