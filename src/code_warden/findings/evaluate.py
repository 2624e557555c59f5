"""Derive finding instances from a snapshot bundle.

Collectors already filter their output against the repository thresholds
where they can (e.g. only files above the growth multiplier are listed),
so most entries translate one-to-one into findings.  The secondary
findings (large growing files, rewrite risk, complexity hotspots, low
coverage...) are decided here using the repository's ``RepoThresholds``.

Every finding passes through suppression before it is kept:
    - allowlist entries (``path`` or ``path:symbol``) per code
    - suppression rules (glob pattern + codes) from the repo config
"""

from __future__ import annotations

from collections import Counter
from fnmatch import fnmatch
from typing import Any, Dict, List, Optional

from ..config import RepoConfig
from ..logging_config import get_logger
from ..snapshot.models import SnapshotBundle
from .models import FindingInstance

logger = get_logger(__name__)


def _matches_allowlist_entry(entry: str, path: Optional[str], symbol: Optional[str]) -> bool:
    if not path:
        return False
    if ":" in entry:
        entry_path, _, entry_symbol = entry.partition(":")
        if not entry_path or not entry_symbol:
            return False
        return entry_path == path and entry_symbol == symbol
    return entry == path


def is_finding_suppressed(config: RepoConfig, finding: FindingInstance) -> bool:
    """True if the allowlist or a suppression rule covers *finding*."""
    code = finding.code.upper()

    for entry in config.allowlist.get(code, ()):
        if _matches_allowlist_entry(entry, finding.path, finding.symbol):
            return True

    if not finding.path:
        return False

    for rule in config.suppressions:
        if code in rule.codes and (
            rule.pattern == finding.path or fnmatch(finding.path, rule.pattern)
        ):
            return True
    return False


def _num(entry: Dict[str, Any], key: str, default: float = 0) -> Any:
    value = entry.get(key, default)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    return value


class _Evaluator:
    """Accumulates findings for one bundle under one repo config."""

    def __init__(self, config: RepoConfig, bundle: SnapshotBundle) -> None:
        self.config = config
        self.thresholds = config.thresholds
        self.bundle = bundle
        self.findings: List[FindingInstance] = []
        self.suppressed = 0

    def add(self, finding: FindingInstance) -> None:
        if is_finding_suppressed(self.config, finding):
            self.suppressed += 1
            return
        self.findings.append(finding)

    # ── M1 / M3 / M6-004: growth and churn ──────────────────────

    def growth_and_churn(self) -> None:
        w7 = self.bundle.git_stats.window("7d")

        for file in w7.get("files", []):
            path = file.get("path", "")
            self.add(FindingInstance(
                code="WD-M1-001",
                metric="M1",
                summary=f"File growth exceeds threshold ({_num(file, 'growthRatio')}x avg): {path}",
                path=path,
            ))
            lines_added = _num(file, "linesAdded")
            if lines_added >= self.thresholds.large_file_growth_lines:
                self.add(FindingInstance(
                    code="WD-M6-004",
                    metric="M6",
                    summary=f"Large file still growing (+{lines_added} lines): {path}",
                    path=path,
                ))

        for directory in w7.get("directories", []):
            path = directory.get("path", "")
            self.add(FindingInstance(
                code="WD-M1-002",
                metric="M1",
                summary=(
                    f"Directory growth exceeds threshold "
                    f"({_num(directory, 'growthPct')}%): {path}"
                ),
                path=path,
            ))
            new_files = _num(directory, "newFiles")
            if new_files >= self.thresholds.new_file_cluster_count:
                self.add(FindingInstance(
                    code="WD-M1-003",
                    metric="M1",
                    summary=f"New file cluster ({new_files} files): {path}",
                    path=path,
                ))

        for churn in w7.get("highChurnFiles", []):
            path = churn.get("path", "")
            self.add(FindingInstance(
                code="WD-M3-001",
                metric="M3",
                summary=f"High churn ({_num(churn, 'editCount')} edits): {path}",
                path=path,
            ))
            ratio = _num(churn, "addDeleteRatio")
            if ratio >= self.thresholds.high_rewrite_ratio:
                self.add(FindingInstance(
                    code="WD-M3-002",
                    metric="M3",
                    summary=f"High rewrite ratio ({ratio}): {path}",
                    path=path,
                ))

    # ── M2: staleness ────────────────────────────────────────────

    def staleness(self) -> None:
        for stale in self.bundle.staleness.stale_files:
            if stale.get("importCheckSkipped"):
                continue
            path = stale.get("path", "")
            days = _num(stale, "daysSinceLastCommit")
            if stale.get("isImported"):
                self.add(FindingInstance(
                    code="WD-M2-001",
                    metric="M2",
                    summary=f"Stale imported file ({days}d): {path}",
                    path=path,
                ))
            else:
                self.add(FindingInstance(
                    code="WD-M2-002",
                    metric="M2",
                    summary=f"Stale unimported file ({days}d): {path}",
                    path=path,
                ))

        for stale_dir in self.bundle.staleness.stale_directories:
            path = stale_dir.get("path", "")
            self.add(FindingInstance(
                code="WD-M2-003",
                metric="M2",
                summary=f"Stale directory ({_num(stale_dir, 'daysSinceActivity')}d): {path}",
                path=path,
            ))

    # ── M6: debt markers ─────────────────────────────────────────

    def debt(self) -> None:
        for debt in self.bundle.debt_markers.files:
            path = debt.get("path", "")
            todo_fixme = len(debt.get("todos", [])) + len(debt.get("fixmes", []))
            if todo_fixme > 0:
                self.add(FindingInstance(
                    code="WD-M6-001",
                    metric="M6",
                    summary=f"TODO/FIXME markers ({todo_fixme}): {path}",
                    path=path,
                ))
            any_casts = _num(debt, "anyCasts")
            if any_casts > 0:
                self.add(FindingInstance(
                    code="WD-M6-002",
                    metric="M6",
                    summary=f"any usage ({any_casts}): {path}",
                    path=path,
                ))
            disables = len(debt.get("eslintDisables", []))
            if disables > 0:
                self.add(FindingInstance(
                    code="WD-M6-003",
                    metric="M6",
                    summary=f"eslint-disable markers ({disables}): {path}",
                    path=path,
                ))

    # ── M4: complexity (optional) ────────────────────────────────

    def complexity(self) -> None:
        if self.bundle.complexity is None:
            return

        per_file: Counter = Counter()
        for item in self.bundle.complexity.findings:
            path = item.get("path", "")
            rule_id = item.get("ruleId", "")
            self.add(FindingInstance(
                code="WD-M4-001" if rule_id == "complexity" else "WD-M4-002",
                metric="M4",
                summary=f"{rule_id} at {path}:{item.get('line', 0)}",
                path=path,
            ))
            per_file[path] += 1

        for path, count in per_file.items():
            if count >= self.thresholds.complexity_hotspot_count:
                self.add(FindingInstance(
                    code="WD-M4-003",
                    metric="M4",
                    summary=f"Systemic complexity ({count} findings): {path}",
                    path=path,
                ))

    # ── M5: import graph (optional) ──────────────────────────────

    def imports(self) -> None:
        imports = self.bundle.imports
        if imports is None:
            return

        for deep in imports.deep_import_findings:
            self.add(FindingInstance(
                code="WD-M5-001",
                metric="M5",
                summary=f"Deep import {deep.get('target', '')} in {deep.get('importer', '')}",
                path=deep.get("importer", ""),
            ))

        for dep in imports.undeclared_dependency_findings:
            self.add(FindingInstance(
                code="WD-M5-002",
                metric="M5",
                summary=(
                    f"Undeclared dependency {dep.get('dependency', '')} "
                    f"in {dep.get('importer', '')}"
                ),
                path=dep.get("importer", ""),
            ))

        for chain in imports.circular_chains:
            self.add(FindingInstance(
                code="WD-M5-003",
                metric="M5",
                summary=f"Circular chain: {' -> '.join(chain)}",
                path=chain[0] if chain else "unknown",
            ))

    # ── M9: runtime (optional) ───────────────────────────────────

    def runtime(self) -> None:
        runtime = self.bundle.runtime
        if runtime is None:
            return

        if runtime.summary.unique_routes == 0:
            self.add(FindingInstance(
                code="WD-M9-001",
                metric="M9",
                summary="No API route hits captured for this snapshot",
                path="runtime:routes",
            ))

        for route in runtime.route_hits:
            count = _num(route, "count")
            if count <= self.thresholds.low_route_hit_count:
                label = f"{route.get('method', '')} {route.get('route', '')}"
                self.add(FindingInstance(
                    code="WD-M9-002",
                    metric="M9",
                    summary=f"Low route hit count ({count}) for {label}",
                    path=f"route:{label}",
                ))

        for module in runtime.coverage:
            if _num(module, "coveredFunctions") == 0:
                path = module.get("path", "")
                self.add(FindingInstance(
                    code="WD-M9-003",
                    metric="M9",
                    summary=f"Module never loaded at runtime: {path}",
                    path=path,
                ))

    # ── M7: coverage (optional) ──────────────────────────────────

    def coverage(self) -> None:
        coverage = self.bundle.coverage
        if coverage is None:
            return

        low = self.thresholds.low_coverage_pct
        for entry in coverage.files:
            path = entry.get("path", "")
            line_cov = _num(entry, "lineCoverage")
            if line_cov < low:
                self.add(FindingInstance(
                    code="WD-M7-001",
                    metric="M7",
                    summary=f"Low file coverage ({line_cov}%): {path}",
                    path=path,
                ))
                if entry.get("isHighChurn"):
                    self.add(FindingInstance(
                        code="WD-M7-002",
                        metric="M7",
                        summary=(
                            f"High-churn file undercovered "
                            f"({_num(entry, 'churnEdits')} edits, {line_cov}%): {path}"
                        ),
                        path=path,
                    ))
            delta = _num(entry, "lineCoverageDelta")
            if delta <= -self.thresholds.coverage_regression_pct:
                self.add(FindingInstance(
                    code="WD-M7-003",
                    metric="M7",
                    summary=f"Coverage regression ({delta}%): {path}",
                    path=path,
                ))

    # ── M8: documentation staleness (optional) ───────────────────

    def doc_staleness(self) -> None:
        docs = self.bundle.doc_staleness
        if docs is None:
            return

        for entry in docs.stale_doc_files:
            doc_path = entry.get("docPath", "")
            self.add(FindingInstance(
                code="WD-M8-001",
                metric="M8",
                summary=(
                    f"Stale documentation ({_num(entry, 'daysSinceDocUpdate')}d, "
                    f"{_num(entry, 'codeChangesSince')} code changes): {doc_path}"
                ),
                path=doc_path,
            ))

        for entry in docs.orphaned_refs:
            doc_path = entry.get("docPath", "")
            self.add(FindingInstance(
                code="WD-M8-002",
                metric="M8",
                summary=(
                    f"Orphaned {entry.get('referenceType', 'file')} reference at "
                    f"{doc_path}:{entry.get('line', 0)}: {entry.get('reference', '')}"
                ),
                path=doc_path,
            ))

        for entry in docs.undocumented_apis:
            name = entry.get("exportName", "")
            path = entry.get("path", "")
            self.add(FindingInstance(
                code="WD-M8-003",
                metric="M8",
                summary=f"Undocumented public {entry.get('exportType', 'function')}: {name} ({path})",
                path=path,
                symbol=name or None,
            ))


def evaluate_findings(config: RepoConfig, bundle: SnapshotBundle) -> List[FindingInstance]:
    """Return all unsuppressed findings for *bundle*, grouped by metric."""
    evaluator = _Evaluator(config, bundle)
    evaluator.growth_and_churn()
    evaluator.staleness()
    evaluator.debt()
    evaluator.complexity()
    evaluator.imports()
    evaluator.runtime()
    evaluator.coverage()
    evaluator.doc_staleness()

    if evaluator.suppressed:
        logger.debug("Suppressed %d finding(s) for %s", evaluator.suppressed, config.slug)
    return evaluator.findings


def summarize_findings_by_code(findings: List[FindingInstance]) -> List[str]:
    """``["WD-M2-001: 3", "WD-M6-001: 12", ...]`` sorted by code."""
    counts = Counter(f.code for f in findings)
    return [f"{code}: {count}" for code, count in sorted(counts.items())]
