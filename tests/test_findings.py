"""Tests for the finding registry, identity and evaluation."""

import pytest

from code_warden.config import RepoConfig, Suppression
from code_warden.findings import (
    FINDING_CODE_REGISTRY,
    FindingInstance,
    codes_for_metric,
    evaluate_findings,
    generate_finding_id,
    is_finding_suppressed,
    list_codes,
    lookup_code,
    summarize_findings_by_code,
)
from code_warden.snapshot import SnapshotBundle
from code_warden.work.severity import DEFAULT_SEVERITY


@pytest.fixture
def repo():
    return RepoConfig(slug="web", path="/src/web")


class TestRegistry:
    def test_codes_are_unique(self):
        codes = [d.code for d in FINDING_CODE_REGISTRY]
        assert len(codes) == len(set(codes)) == 27

    def test_lookup_is_case_insensitive(self):
        entry = lookup_code("wd-m5-001")
        assert entry is not None
        assert entry.metric == "M5"
        assert entry.wiki_path == "wiki/WD-M5-001.md"

    def test_unknown_code(self):
        assert lookup_code("WD-M0-000") is None

    def test_codes_for_metric(self):
        assert [d.code for d in codes_for_metric("M7")] == ["WD-M7-001", "WD-M7-002", "WD-M7-003"]

    def test_every_code_has_a_default_severity(self):
        assert {d.code for d in list_codes()} == set(DEFAULT_SEVERITY)


class TestFindingIdentity:
    def test_path_is_slugified(self):
        finding = FindingInstance("WD-M2-001", "M2", "Stale (40d)", path="src/app/main.ts")
        assert generate_finding_id(finding) == "WD-M2-001--src-app-main-ts"

    def test_global_finding(self):
        finding = FindingInstance("WD-M9-001", "M9", "No hits")
        assert generate_finding_id(finding) == "WD-M9-001--_global"

    def test_symbol_appended(self):
        finding = FindingInstance("WD-M8-003", "M8", "Undocumented", path="src/a.ts", symbol="render")
        assert generate_finding_id(finding) == "WD-M8-003--src-a-ts--render"

    def test_summary_does_not_affect_identity(self):
        a = FindingInstance("WD-M6-001", "M6", "TODO/FIXME markers (3)", path="src/a.ts")
        b = FindingInstance("WD-M6-001", "M6", "TODO/FIXME markers (9)", path="src/a.ts")
        assert generate_finding_id(a) == generate_finding_id(b)

    def test_id_is_filename_safe(self):
        finding = FindingInstance("WD-M9-002", "M9", "Low", path="route:GET /api/users/:id")
        finding_id = generate_finding_id(finding)
        assert "/" not in finding_id
        assert ":" not in finding_id
        assert " " not in finding_id


class TestFindingInstance:
    def test_from_dict_infers_metric(self):
        finding = FindingInstance.from_dict({"code": "WD-M3-001", "summary": "High churn (7 edits)"})
        assert finding.metric == "M3"
        assert finding.path is None

    def test_to_dict_omits_empty(self):
        data = FindingInstance("WD-M9-001", "M9", "No hits").to_dict()
        assert data == {"code": "WD-M9-001", "metric": "M9", "summary": "No hits"}


class TestEvaluateFindings:
    def test_stale_files(self, repo, bundle_dict):
        raw = bundle_dict()
        raw["staleness"]["staleFiles"] = [
            {"path": "src/a.ts", "daysSinceLastCommit": 40, "isImported": True},
            {"path": "src/b.ts", "daysSinceLastCommit": 50, "isImported": False},
            {"path": "src/c.ts", "daysSinceLastCommit": 60, "importCheckSkipped": True},
        ]
        findings = evaluate_findings(repo, SnapshotBundle.from_dict(raw))
        assert [(f.code, f.path) for f in findings] == [
            ("WD-M2-001", "src/a.ts"),
            ("WD-M2-002", "src/b.ts"),
        ]
        assert findings[0].summary == "Stale imported file (40d): src/a.ts"

    def test_growth_and_large_file(self, repo, bundle_dict):
        raw = bundle_dict(
            git_files=[{"path": "src/big.ts", "growthRatio": 2.5, "linesAdded": 400}]
        )
        codes = [f.code for f in evaluate_findings(repo, SnapshotBundle.from_dict(raw))]
        assert codes == ["WD-M1-001", "WD-M6-004"]

    def test_deep_imports_and_cycles(self, repo, bundle_dict):
        raw = bundle_dict(deep_imports=1)
        raw["imports"]["deepImportFindings"] = [
            {"importer": "apps/web/page.ts", "target": "@pkg/core/src/internal"}
        ]
        raw["imports"]["circularChains"] = [["a.ts", "b.ts", "a.ts"]]
        findings = evaluate_findings(repo, SnapshotBundle.from_dict(raw))
        assert [f.code for f in findings] == ["WD-M5-001", "WD-M5-003"]
        assert findings[0].path == "apps/web/page.ts"
        assert findings[1].summary == "Circular chain: a.ts -> b.ts -> a.ts"

    def test_complexity_hotspot(self, repo, bundle_dict):
        raw = bundle_dict(complexity=5)
        raw["complexity"]["findings"] = [
            {"path": "src/x.ts", "line": i, "ruleId": "complexity"} for i in range(5)
        ]
        codes = [f.code for f in evaluate_findings(repo, SnapshotBundle.from_dict(raw))]
        assert codes.count("WD-M4-001") == 5
        assert codes.count("WD-M4-003") == 1

    def test_absent_optional_sections_produce_nothing(self, repo, make_bundle):
        assert evaluate_findings(repo, make_bundle()) == []


class TestSuppression:
    def test_glob_suppression(self, bundle_dict):
        repo = RepoConfig(
            slug="web",
            path="/src/web",
            suppressions=(Suppression(pattern="src/legacy/*", codes=("WD-M2-002",)),),
        )
        raw = bundle_dict()
        raw["staleness"]["staleFiles"] = [
            {"path": "src/legacy/old.ts", "daysSinceLastCommit": 90, "isImported": False},
            {"path": "src/new.ts", "daysSinceLastCommit": 90, "isImported": False},
        ]
        findings = evaluate_findings(repo, SnapshotBundle.from_dict(raw))
        assert [f.path for f in findings] == ["src/new.ts"]

    def test_suppression_is_per_code(self):
        repo = RepoConfig(
            slug="web",
            path="/src/web",
            suppressions=(Suppression(pattern="src/*", codes=("WD-M2-002",)),),
        )
        finding = FindingInstance("WD-M2-001", "M2", "Stale", path="src/a.ts")
        assert not is_finding_suppressed(repo, finding)

    def test_allowlist_path_and_symbol(self):
        repo = RepoConfig(
            slug="web",
            path="/src/web",
            allowlist={"WD-M8-003": ("src/api.ts:render",), "WD-M2-001": ("src/keep.ts",)},
        )
        assert is_finding_suppressed(
            repo, FindingInstance("WD-M8-003", "M8", "x", path="src/api.ts", symbol="render")
        )
        assert not is_finding_suppressed(
            repo, FindingInstance("WD-M8-003", "M8", "x", path="src/api.ts", symbol="other")
        )
        assert is_finding_suppressed(repo, FindingInstance("WD-M2-001", "M2", "x", path="src/keep.ts"))

    def test_global_findings_are_never_suppressed_by_pattern(self):
        repo = RepoConfig(
            slug="web",
            path="/src/web",
            suppressions=(Suppression(pattern="*", codes=("WD-M9-001",)),),
        )
        assert not is_finding_suppressed(repo, FindingInstance("WD-M9-001", "M9", "No hits"))


def test_summarize_findings_by_code():
    findings = [
        FindingInstance("WD-M6-001", "M6", "a", path="a"),
        FindingInstance("WD-M2-001", "M2", "b", path="b"),
        FindingInstance("WD-M6-001", "M6", "c", path="c"),
    ]
    assert summarize_findings_by_code(findings) == ["WD-M2-001: 1", "WD-M6-001: 2"]
