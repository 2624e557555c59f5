"""Data model for snapshot deltas: counter changes between two bundles."""

from dataclasses import asdict, dataclass
from typing import Dict, Optional


@dataclass(frozen=True)
class SnapshotDelta:
    """Signed change of each tracked counter (current - previous).

    Required-section counters are always integers.  Optional-section
    counters are ``None`` unless both bundles carry the section, so an
    unmeasured metric never reads as "no change".
    """

    stale_files_delta: int
    stale_directories_delta: int
    total_todos_delta: int
    total_fixmes_delta: int
    total_hacks_delta: int
    total_eslint_disables_delta: int
    total_any_casts_delta: int
    complexity_findings_delta: Optional[int]
    deep_imports_delta: Optional[int]
    circular_chains_delta: Optional[int]

    def to_dict(self) -> Dict[str, Optional[int]]:
        return asdict(self)
