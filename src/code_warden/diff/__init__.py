"""Snapshot diffing: counter deltas between two scans."""

from .engine import compute_delta
from .models import SnapshotDelta

__all__ = ["compute_delta", "SnapshotDelta"]
