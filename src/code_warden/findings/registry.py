"""Registry of known finding codes."""

from typing import Dict, List, Optional

from .models import FindingCodeDef, FindingMetric


def _code(code: str, metric: FindingMetric, description: str) -> FindingCodeDef:
    return FindingCodeDef(
        code=code,
        metric=metric,
        short_description=description,
        wiki_path=f"wiki/{code}.md",
    )


FINDING_CODE_REGISTRY: List[FindingCodeDef] = [
    # M1 growth
    _code("WD-M1-001", "M1", "File growth exceeds threshold (>Nx repo average)"),
    _code("WD-M1-002", "M1", "Directory growth exceeds threshold (>N%)"),
    _code("WD-M1-003", "M1", "New file cluster detected"),
    # M2 staleness
    _code("WD-M2-001", "M2", "Stale file still imported"),
    _code("WD-M2-002", "M2", "Stale file not imported"),
    _code("WD-M2-003", "M2", "Stale directory"),
    # M3 churn
    _code("WD-M3-001", "M3", "High churn file (>N edits in window)"),
    _code("WD-M3-002", "M3", "High add/delete ratio (rewrite risk)"),
    # M4 complexity
    _code("WD-M4-001", "M4", "Function approaching complexity limit"),
    _code("WD-M4-002", "M4", "Function approaching line-count limit"),
    _code("WD-M4-003", "M4", "File with systemic complexity"),
    # M5 imports
    _code("WD-M5-001", "M5", "Deep import into package internals"),
    _code("WD-M5-002", "M5", "Undeclared cross-package dependency"),
    _code("WD-M5-003", "M5", "Circular dependency chain"),
    # M6 debt markers
    _code("WD-M6-001", "M6", "TODO/FIXME density increase"),
    _code("WD-M6-002", "M6", "any type usage growth"),
    _code("WD-M6-003", "M6", "eslint-disable comment growth"),
    _code("WD-M6-004", "M6", "Large file still growing"),
    # M7 coverage
    _code("WD-M7-001", "M7", "File below coverage threshold"),
    _code("WD-M7-002", "M7", "High-churn file with low coverage"),
    _code("WD-M7-003", "M7", "Coverage regression"),
    # M8 doc staleness
    _code("WD-M8-001", "M8", "Documentation stale relative to code"),
    _code("WD-M8-002", "M8", "Orphaned documentation reference"),
    _code("WD-M8-003", "M8", "Undocumented public API"),
    # M9 runtime
    _code("WD-M9-001", "M9", "API route received zero hits"),
    _code("WD-M9-002", "M9", "API route with low hit count"),
    _code("WD-M9-003", "M9", "Module never loaded at runtime"),
]

_CODE_MAP: Dict[str, FindingCodeDef] = {d.code: d for d in FINDING_CODE_REGISTRY}


def lookup_code(code: str) -> Optional[FindingCodeDef]:
    return _CODE_MAP.get(code.upper())


def list_codes() -> List[FindingCodeDef]:
    return list(FINDING_CODE_REGISTRY)


def codes_for_metric(metric: FindingMetric) -> List[FindingCodeDef]:
    return [d for d in FINDING_CODE_REGISTRY if d.metric == metric]
