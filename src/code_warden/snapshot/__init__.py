"""Snapshot bundles and their filesystem store."""

from .models import (
    OPTIONAL_SECTIONS,
    REQUIRED_SECTIONS,
    ComplexitySnapshot,
    CoverageSnapshot,
    DebtMarkersSnapshot,
    DebtSummary,
    DocStalenessSnapshot,
    GitStatsSnapshot,
    ImportsSnapshot,
    ImportsSummary,
    LoadedSnapshot,
    RuntimeSnapshot,
    SnapshotBundle,
    StalenessSnapshot,
)
from .store import SnapshotStore, timestamp_folder_name

__all__ = [
    "SnapshotStore",
    "SnapshotBundle",
    "LoadedSnapshot",
    "GitStatsSnapshot",
    "StalenessSnapshot",
    "DebtMarkersSnapshot",
    "DebtSummary",
    "ComplexitySnapshot",
    "ImportsSnapshot",
    "ImportsSummary",
    "RuntimeSnapshot",
    "CoverageSnapshot",
    "DocStalenessSnapshot",
    "REQUIRED_SECTIONS",
    "OPTIONAL_SECTIONS",
    "timestamp_folder_name",
]
