"""Tests for the escalation monitor."""

import json

from code_warden.findings import FindingInstance
from code_warden.work import (
    ESCALATION_THRESHOLD,
    AlertPayload,
    Severity,
    create_work_document,
    detect_escalations,
    update_status,
    write_alert,
)


def _doc(severity=Severity.S1, reports=3, code="WD-M5-001", path="apps/web/page.ts"):
    doc = create_work_document(FindingInstance(code, "M5", "Deep import", path=path), severity)
    doc.consecutive_reports = reports
    return doc


class TestDetectEscalations:
    def test_threshold_default(self):
        assert ESCALATION_THRESHOLD == 3

    def test_qualifying_document(self):
        doc = _doc()
        assert detect_escalations([doc]) == [doc]

    def test_below_threshold(self):
        assert detect_escalations([_doc(reports=2)]) == []

    def test_only_s1(self):
        assert detect_escalations([_doc(severity=Severity.S2, reports=10)]) == []
        assert detect_escalations([_doc(severity=Severity.S0, reports=10)]) == []

    def test_only_unassigned(self):
        doc = _doc()
        update_status(doc, "auto-assigned")
        assert detect_escalations([doc]) == []

    def test_custom_threshold(self):
        assert detect_escalations([_doc(reports=3)], threshold=4) == []

    def test_idempotent(self):
        docs = [_doc(), _doc(reports=1, path="other.ts")]
        assert detect_escalations(docs) == detect_escalations(docs)


class TestWriteAlert:
    def test_writes_payload(self, tmp_path):
        doc = _doc()
        path = write_alert("repo-a", doc, tmp_path, now="2025-01-04T00:00:00+00:00")

        assert path == tmp_path / "repo-a" / "alerts" / f"{doc.finding_id}-escalated.json"
        payload = json.loads(path.read_text())
        assert payload == {
            "findingId": doc.finding_id,
            "code": "WD-M5-001",
            "severity": "S1",
            "consecutiveReports": 3,
            "path": "apps/web/page.ts",
            "escalatedAt": "2025-01-04T00:00:00+00:00",
        }

    def test_last_write_wins(self, tmp_path):
        doc = _doc()
        write_alert("repo-a", doc, tmp_path)
        doc.consecutive_reports = 4
        path = write_alert("repo-a", doc, tmp_path)
        assert json.loads(path.read_text())["consecutiveReports"] == 4
        assert len(list(path.parent.iterdir())) == 1

    def test_payload_from_document(self):
        payload = AlertPayload.for_document(_doc(reports=5), now="t")
        assert payload.consecutive_reports == 5
        assert payload.to_dict()["severity"] == "S1"

    def test_global_finding_has_no_path(self):
        doc = _doc()
        doc.path = None
        data = AlertPayload.for_document(doc, now="t").to_dict()
        assert "path" not in data
        assert data["escalatedAt"] == "t"
