"""Delta engine: counts-only comparison of two snapshot bundles.

No identity matching of individual findings happens here; each tracked
counter is subtracted.  Counters from optional sections collapse to
``None`` when either side lacks the section.
"""

from typing import Callable, Optional, TypeVar

from ..snapshot.models import SnapshotBundle
from .models import SnapshotDelta

S = TypeVar("S")


def _optional_delta(
    previous: Optional[S],
    current: Optional[S],
    counter: Callable[[S], int],
) -> Optional[int]:
    if previous is None or current is None:
        return None
    return counter(current) - counter(previous)


def compute_delta(previous: SnapshotBundle, current: SnapshotBundle) -> SnapshotDelta:
    """Compute the signed counter deltas from *previous* to *current*."""
    prev_debt = previous.debt_markers.summary
    curr_debt = current.debt_markers.summary

    return SnapshotDelta(
        stale_files_delta=(
            len(current.staleness.stale_files) - len(previous.staleness.stale_files)
        ),
        stale_directories_delta=(
            len(current.staleness.stale_directories) - len(previous.staleness.stale_directories)
        ),
        total_todos_delta=curr_debt.total_todos - prev_debt.total_todos,
        total_fixmes_delta=curr_debt.total_fixmes - prev_debt.total_fixmes,
        total_hacks_delta=curr_debt.total_hacks - prev_debt.total_hacks,
        total_eslint_disables_delta=(
            curr_debt.total_eslint_disables - prev_debt.total_eslint_disables
        ),
        total_any_casts_delta=curr_debt.total_any_casts - prev_debt.total_any_casts,
        complexity_findings_delta=_optional_delta(
            previous.complexity, current.complexity, lambda s: s.summary.total_findings
        ),
        deep_imports_delta=_optional_delta(
            previous.imports, current.imports, lambda s: s.summary.deep_imports
        ),
        circular_chains_delta=_optional_delta(
            previous.imports, current.imports, lambda s: s.summary.circular_chains
        ),
    )
