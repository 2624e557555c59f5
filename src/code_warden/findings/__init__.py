"""Findings: code registry, identity, and derivation from snapshot bundles."""

from .evaluate import evaluate_findings, is_finding_suppressed, summarize_findings_by_code
from .identity import generate_finding_id
from .models import FindingCodeDef, FindingInstance, FindingMetric
from .registry import FINDING_CODE_REGISTRY, codes_for_metric, list_codes, lookup_code

__all__ = [
    "FindingInstance",
    "FindingCodeDef",
    "FindingMetric",
    "generate_finding_id",
    "evaluate_findings",
    "is_finding_suppressed",
    "summarize_findings_by_code",
    "FINDING_CODE_REGISTRY",
    "lookup_code",
    "list_codes",
    "codes_for_metric",
]
