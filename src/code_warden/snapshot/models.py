"""Data models for snapshot bundles: immutable records of a single scan.

Each section mirrors one collector output file.  Collectors write camelCase
JSON, so ``from_dict``/``to_dict`` translate between the wire keys and the
snake_case attribute names.  Per-entry detail (stale files, debt entries,
route hits…) stays as plain dicts: this package only reads a handful of
their keys and never reshapes them.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, ClassVar, Dict, List, Optional


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def _as_number(value: Any) -> Any:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    return value


def _check_entries(key: str, value: Any, outer: type, inner: type) -> Any:
    """Reject an entry collection that is not an *outer* of *inner* items."""
    if not isinstance(value, outer):
        raise ValueError(f"'{key}' must be a JSON {_JSON_NAMES[outer]}")
    items = value.values() if outer is dict else value
    for item in items:
        if not isinstance(item, inner):
            raise ValueError(f"'{key}' entries must be JSON {_JSON_NAMES[inner]}s")
    return value


_JSON_NAMES = {dict: "object", list: "array"}

# annotation of an entry field -> (container, item type)
_ENTRY_SHAPES = {
    "List[Dict[str, Any]]": (list, dict),
    "Dict[str, Dict[str, Any]]": (dict, dict),
    "List[List[str]]": (list, list),
}


# ── Summaries ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class _Summary:
    @classmethod
    def from_dict(cls, raw: Optional[Dict[str, Any]]):
        raw = raw or {}
        if not isinstance(raw, dict):
            raise ValueError(f"'summary' must be a JSON object, got {type(raw).__name__}")
        return cls(**{f.name: _as_number(raw.get(_camel(f.name), 0)) for f in fields(cls)})

    def to_dict(self) -> Dict[str, Any]:
        return {_camel(f.name): getattr(self, f.name) for f in fields(self)}


@dataclass(frozen=True)
class DebtSummary(_Summary):
    total_todos: int = 0
    total_fixmes: int = 0
    total_hacks: int = 0
    total_eslint_disables: int = 0
    total_any_casts: int = 0


@dataclass(frozen=True)
class ComplexitySummary(_Summary):
    total_findings: int = 0
    complexity_warnings: int = 0
    max_lines_warnings: int = 0


@dataclass(frozen=True)
class ImportsSummary(_Summary):
    files_scanned: int = 0
    deep_imports: int = 0
    undeclared_dependencies: int = 0
    circular_chains: int = 0


@dataclass(frozen=True)
class RuntimeSummary(_Summary):
    api_hit_events: int = 0
    unique_routes: int = 0
    coverage_files: int = 0


@dataclass(frozen=True)
class CoverageSummary(_Summary):
    total_files: int = 0
    covered_files: int = 0
    average_coverage: float = 0.0
    files_below50: int = 0
    files_below80: int = 0


@dataclass(frozen=True)
class DocStalenessSummary(_Summary):
    total_doc_files: int = 0
    stale_doc_files: int = 0
    orphaned_refs: int = 0
    undocumented_apis: int = 0


# ── Sections ──────────────────────────────────────────────────────


@dataclass(frozen=True)
class _Section:
    """Common collector metadata plus generic (de)serialisation.

    Subclasses declare a ``summary`` field (typed by ``_SUMMARY``) and any
    number of entry collections, which are copied verbatim.
    """

    _SUMMARY: ClassVar[Optional[type]] = None

    collected_at: str = ""
    branch: str = ""

    @classmethod
    def from_dict(cls, raw: Any):
        if not isinstance(raw, dict):
            raise ValueError(f"expected a JSON object, got {type(raw).__name__}")
        kwargs: Dict[str, Any] = {}
        for f in fields(cls):
            key = _camel(f.name)
            if f.name == "summary":
                kwargs["summary"] = cls._SUMMARY.from_dict(raw.get("summary"))
            elif f.name in ("collected_at", "branch"):
                value = raw.get(key, "")
                kwargs[f.name] = value if isinstance(value, str) else str(value)
            elif key in raw:
                outer, inner = _ENTRY_SHAPES[f.type]
                kwargs[f.name] = _check_entries(key, raw[key], outer, inner)
        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            out[_camel(f.name)] = value.to_dict() if f.name == "summary" else value
        return out


@dataclass(frozen=True)
class GitStatsSnapshot(_Section):
    """Growth and churn windows ("7d", "30d", "90d")."""

    windows: Dict[str, Dict[str, Any]] = field(default_factory=dict)

    _WINDOW_ENTRIES: ClassVar[tuple] = ("files", "directories", "highChurnFiles")

    @classmethod
    def from_dict(cls, raw: Any):
        section = super().from_dict(raw)
        for name, window in section.windows.items():
            for key in cls._WINDOW_ENTRIES:
                if key in window:
                    _check_entries(f"windows.{name}.{key}", window[key], list, dict)
        return section

    def window(self, name: str = "7d") -> Dict[str, Any]:
        return self.windows.get(name) or {}


@dataclass(frozen=True)
class StalenessSnapshot(_Section):
    stale_files: List[Dict[str, Any]] = field(default_factory=list)
    stale_directories: List[Dict[str, Any]] = field(default_factory=list)


@dataclass(frozen=True)
class DebtMarkersSnapshot(_Section):
    _SUMMARY: ClassVar[type] = DebtSummary

    summary: DebtSummary = field(default_factory=DebtSummary)
    files: List[Dict[str, Any]] = field(default_factory=list)


@dataclass(frozen=True)
class ComplexitySnapshot(_Section):
    _SUMMARY: ClassVar[type] = ComplexitySummary

    summary: ComplexitySummary = field(default_factory=ComplexitySummary)
    findings: List[Dict[str, Any]] = field(default_factory=list)


@dataclass(frozen=True)
class ImportsSnapshot(_Section):
    _SUMMARY: ClassVar[type] = ImportsSummary

    summary: ImportsSummary = field(default_factory=ImportsSummary)
    deep_import_findings: List[Dict[str, Any]] = field(default_factory=list)
    undeclared_dependency_findings: List[Dict[str, Any]] = field(default_factory=list)
    circular_chains: List[List[str]] = field(default_factory=list)


@dataclass(frozen=True)
class RuntimeSnapshot(_Section):
    _SUMMARY: ClassVar[type] = RuntimeSummary

    summary: RuntimeSummary = field(default_factory=RuntimeSummary)
    route_hits: List[Dict[str, Any]] = field(default_factory=list)
    coverage: List[Dict[str, Any]] = field(default_factory=list)


@dataclass(frozen=True)
class CoverageSnapshot(_Section):
    _SUMMARY: ClassVar[type] = CoverageSummary

    summary: CoverageSummary = field(default_factory=CoverageSummary)
    files: List[Dict[str, Any]] = field(default_factory=list)


@dataclass(frozen=True)
class DocStalenessSnapshot(_Section):
    _SUMMARY: ClassVar[type] = DocStalenessSummary

    summary: DocStalenessSummary = field(default_factory=DocStalenessSummary)
    stale_doc_files: List[Dict[str, Any]] = field(default_factory=list)
    orphaned_refs: List[Dict[str, Any]] = field(default_factory=list)
    undocumented_apis: List[Dict[str, Any]] = field(default_factory=list)


# ── Bundle ────────────────────────────────────────────────────────

# attribute -> (file name, section type)
SECTION_FILES: Dict[str, tuple] = {
    "git_stats": ("git-stats.json", GitStatsSnapshot),
    "staleness": ("staleness.json", StalenessSnapshot),
    "debt_markers": ("debt-markers.json", DebtMarkersSnapshot),
    "complexity": ("complexity.json", ComplexitySnapshot),
    "imports": ("imports.json", ImportsSnapshot),
    "runtime": ("runtime.json", RuntimeSnapshot),
    "coverage": ("coverage.json", CoverageSnapshot),
    "doc_staleness": ("doc-staleness.json", DocStalenessSnapshot),
}

REQUIRED_SECTIONS = ("git_stats", "staleness", "debt_markers")
OPTIONAL_SECTIONS = ("complexity", "imports", "runtime", "coverage", "doc_staleness")


@dataclass(frozen=True)
class SnapshotBundle:
    """Complete, immutable record of one scan of one repository.

    Optional sections are ``None`` when their collector did not run or
    failed; that is a valid state, not an error.
    """

    git_stats: GitStatsSnapshot
    staleness: StalenessSnapshot
    debt_markers: DebtMarkersSnapshot
    complexity: Optional[ComplexitySnapshot] = None
    imports: Optional[ImportsSnapshot] = None
    runtime: Optional[RuntimeSnapshot] = None
    coverage: Optional[CoverageSnapshot] = None
    doc_staleness: Optional[DocStalenessSnapshot] = None

    @property
    def branch(self) -> str:
        return self.git_stats.branch

    def present_sections(self) -> List[str]:
        """Names of all sections carried by this bundle."""
        return [name for name in SECTION_FILES if getattr(self, name) is not None]

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "SnapshotBundle":
        """Build a bundle from ``{"gitStats": {...}, "staleness": {...}, ...}``."""
        kwargs: Dict[str, Any] = {}
        for name, (_, section_type) in SECTION_FILES.items():
            value = raw.get(_camel(name))
            if value is None:
                if name in REQUIRED_SECTIONS:
                    raise ValueError(f"missing required section '{_camel(name)}'")
                continue
            kwargs[name] = section_type.from_dict(value)
        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        return {
            _camel(name): getattr(self, name).to_dict() for name in self.present_sections()
        }


@dataclass(frozen=True)
class LoadedSnapshot:
    """A bundle together with the timestamp key it was stored under."""

    timestamp: str
    bundle: SnapshotBundle
