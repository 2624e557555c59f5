"""
Code Warden - Longitudinal Code-Health Finding Tracker

Turns repeated metric snapshots of a codebase into durable work documents,
one per finding, with trend inference, bounded severity escalation and
alerting when critical findings persist.
"""

__version__ = "0.3.0"

from .diff import SnapshotDelta, compute_delta
from .findings import FindingInstance
from .pipeline import ScanPipeline, ScanResult
from .snapshot import SnapshotBundle, SnapshotStore
from .work import Severity, WorkDocument

__all__ = [
    "ScanPipeline",  # Main entry point
    "ScanResult",
    "SnapshotStore",
    "SnapshotBundle",
    "SnapshotDelta",
    "compute_delta",
    "FindingInstance",
    "WorkDocument",
    "Severity",
]
