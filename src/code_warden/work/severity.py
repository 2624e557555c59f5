"""Severity/trend engine: the finding state machine.

Observable state is (severity, trend); status is an orthogonal lifecycle
axis handled elsewhere.  Everything in this module is a pure decision
function: callers apply the result, append the rationale note and bump
counters.

Policy:
  - Initial severity comes from a code -> severity table (unknown: S3),
    assigned once when the work document is created.
  - Promotion (one level more urgent) needs trend "worsening" and at
    least ``min_reports`` consecutive reports; S1 is the ceiling, S0 is
    manual only.
  - Demotion (one level less urgent) needs trend "improving" and at least
    ``min_reports`` consecutive reports; S4 is the floor.
  - The ``min_reports`` gate keeps a single noisy recurrence from moving
    severity.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional, Protocol

from ..findings.models import FindingInstance
from .models import Severity, Trend, WorkDocument

MIN_REPORTS_FOR_CHANGE = 2
PROMOTION_CEILING = 1  # S1
DEMOTION_FLOOR = 4  # S4

DEFAULT_SEVERITY: Dict[str, Severity] = {
    "WD-M1-001": Severity.S3,
    "WD-M1-002": Severity.S3,
    "WD-M1-003": Severity.S3,
    "WD-M2-001": Severity.S4,
    "WD-M2-002": Severity.S3,
    "WD-M2-003": Severity.S4,
    "WD-M3-001": Severity.S3,
    "WD-M3-002": Severity.S3,
    "WD-M4-001": Severity.S2,
    "WD-M4-002": Severity.S2,
    "WD-M4-003": Severity.S1,
    "WD-M5-001": Severity.S1,
    "WD-M5-002": Severity.S2,
    "WD-M5-003": Severity.S1,
    "WD-M6-001": Severity.S4,
    "WD-M6-002": Severity.S3,
    "WD-M6-003": Severity.S3,
    "WD-M6-004": Severity.S3,
    "WD-M7-001": Severity.S3,
    "WD-M7-002": Severity.S2,
    "WD-M7-003": Severity.S2,
    "WD-M8-001": Severity.S4,
    "WD-M8-002": Severity.S3,
    "WD-M8-003": Severity.S4,
    "WD-M9-001": Severity.S5,
    "WD-M9-002": Severity.S5,
    "WD-M9-003": Severity.S4,
}


@dataclass(frozen=True)
class SeverityPolicy:
    """Finding code -> initial severity, injected from configuration."""

    table: Mapping[str, Severity] = field(default_factory=lambda: dict(DEFAULT_SEVERITY))
    default: Severity = Severity.S3

    @classmethod
    def from_overrides(cls, overrides: Mapping[str, str]) -> "SeverityPolicy":
        """Built-in table with *overrides* (``{"WD-M4-001": "S1"}``) applied."""
        table = dict(DEFAULT_SEVERITY)
        for code, value in overrides.items():
            table[code.upper()] = Severity.parse(value)
        return cls(table=table)

    def initial_for(self, code: str) -> Severity:
        return self.table.get(code.upper(), self.default)


DEFAULT_POLICY = SeverityPolicy()


def assign_initial_severity(
    finding: FindingInstance, policy: SeverityPolicy = DEFAULT_POLICY
) -> Severity:
    return policy.initial_for(finding.code)


# ── Trend signal ──────────────────────────────────────────────────


class TrendSignal(Protocol):
    """Extracts the comparable value from a note or summary text."""

    def value(self, text: str) -> Optional[float]: ...


class FirstNumberSignal:
    """The first contiguous run of digits/decimal points that parses as a number.

    ``"line 42: 3 issues"`` yields 42; the first match wins.
    """

    _NUMBER = re.compile(r"[\d.]+", re.ASCII)

    def value(self, text: str) -> Optional[float]:
        for match in self._NUMBER.findall(text):
            try:
                return float(match)
            except ValueError:
                continue
        return None


FIRST_NUMBER = FirstNumberSignal()


def compute_trend(
    doc: WorkDocument,
    current: FindingInstance,
    signal: TrendSignal = FIRST_NUMBER,
) -> Trend:
    """Classify the finding's trajectory against the last report note.

    Returns "new" while the document has no recurrences; "stable"
    whenever either side carries no number.
    """
    if doc.consecutive_reports == 0:
        return "new"

    note = doc.latest_report_note()
    previous = signal.value(note.text) if note is not None else None
    latest = signal.value(current.summary)

    if previous is None or latest is None:
        return "stable"
    if latest > previous:
        return "worsening"
    if latest < previous:
        return "improving"
    return "stable"


# ── Promotion / demotion ──────────────────────────────────────────


def evaluate_promotion(
    doc: WorkDocument, min_reports: int = MIN_REPORTS_FOR_CHANGE
) -> Optional[Severity]:
    """One level more urgent, or None when no change applies."""
    if doc.trend != "worsening" or doc.consecutive_reports < min_reports:
        return None
    level = doc.severity.level
    if level <= PROMOTION_CEILING:
        return None
    return Severity.from_level(level - 1)


def evaluate_demotion(
    doc: WorkDocument, min_reports: int = MIN_REPORTS_FOR_CHANGE
) -> Optional[Severity]:
    """One level less urgent, or None when no change applies."""
    if doc.trend != "improving" or doc.consecutive_reports < min_reports:
        return None
    level = doc.severity.level
    if level >= DEMOTION_FLOOR:
        return None
    return Severity.from_level(level + 1)
