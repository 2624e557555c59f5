"""Work documents: the durable, severity-tracked record behind each finding."""

from .escalation import ESCALATION_THRESHOLD, AlertPayload, detect_escalations, write_alert
from .models import (
    REPORT_UPDATE_PREFIX,
    VALID_STATUSES,
    Severity,
    Trend,
    WorkDocument,
    WorkNote,
    WorkStatus,
)
from .severity import (
    DEFAULT_SEVERITY,
    FirstNumberSignal,
    SeverityPolicy,
    TrendSignal,
    assign_initial_severity,
    compute_trend,
    evaluate_demotion,
    evaluate_promotion,
)
from .store import (
    Observation,
    WorkStore,
    add_note,
    create_work_document,
    record_observation,
    resolve_work_document,
    update_status,
)

__all__ = [
    "ESCALATION_THRESHOLD",
    "AlertPayload",
    "detect_escalations",
    "write_alert",
    "REPORT_UPDATE_PREFIX",
    "VALID_STATUSES",
    "Severity",
    "Trend",
    "WorkDocument",
    "WorkNote",
    "WorkStatus",
    "DEFAULT_SEVERITY",
    "FirstNumberSignal",
    "SeverityPolicy",
    "TrendSignal",
    "assign_initial_severity",
    "compute_trend",
    "evaluate_demotion",
    "evaluate_promotion",
    "Observation",
    "WorkStore",
    "add_note",
    "create_work_document",
    "record_observation",
    "resolve_work_document",
    "update_status",
]
