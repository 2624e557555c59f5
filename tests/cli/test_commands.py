"""Tests for the code-warden CLI commands."""

import json

import pytest
from typer.testing import CliRunner

from code_warden import __version__
from code_warden.cli import app

runner = CliRunner()


@pytest.fixture
def cli_env(tmp_path, monkeypatch):
    """Temp HOME/cwd plus a config file tracking one repository."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.chdir(tmp_path)
    config_file = tmp_path / "warden.toml"
    config_file.write_text(
        f'data_dir = "{(tmp_path / "data").as_posix()}"\n'
        "\n"
        "[[repos]]\n"
        'slug = "web"\n'
        'path = "/src/web"\n'
    )
    return tmp_path, config_file


def _invoke(config_file, *args):
    return runner.invoke(app, ["--config", str(config_file), *args])


def _write_bundle(path, raw):
    path.write_text(json.dumps(raw))
    return path


def _deep_import_bundle(bundle_dict):
    raw = bundle_dict(deep_imports=1)
    raw["imports"]["deepImportFindings"] = [
        {"importer": "apps/web/page.ts", "target": "@pkg/core/src/internal"}
    ]
    return raw


class TestGlobalOptions:
    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_unknown_repo(self, cli_env):
        _, config_file = cli_env
        result = _invoke(config_file, "history", "nope")
        assert result.exit_code == 2
        assert "Unknown repo slug: nope" in result.output


class TestIngestAndHistory:
    def test_history_without_snapshots(self, cli_env):
        _, config_file = cli_env
        result = _invoke(config_file, "history", "web")
        assert result.exit_code == 1
        assert "No snapshots found for web" in result.output

    def test_ingest_file(self, cli_env, bundle_dict):
        tmp_path, config_file = cli_env
        bundle = _write_bundle(tmp_path / "bundle.json", bundle_dict(todos=3))
        result = _invoke(config_file, "ingest", "web", str(bundle), "--json")
        assert result.exit_code == 0, result.output
        payload = json.loads(result.output)
        assert payload["slug"] == "web"
        assert payload["delta"] is None

    def test_ingest_directory(self, cli_env, bundle_dict):
        tmp_path, config_file = cli_env
        raw = bundle_dict()
        collected = tmp_path / "collected"
        collected.mkdir()
        (collected / "git-stats.json").write_text(json.dumps(raw["gitStats"]))
        (collected / "staleness.json").write_text(json.dumps(raw["staleness"]))
        (collected / "debt-markers.json").write_text(json.dumps(raw["debtMarkers"]))

        result = _invoke(config_file, "ingest", "web", str(collected))
        assert result.exit_code == 0, result.output
        assert "Stored" in result.output

    def test_ingest_invalid_bundle(self, cli_env):
        tmp_path, config_file = cli_env
        bad = tmp_path / "bad.json"
        bad.write_text('{"gitStats": {}}')
        result = _invoke(config_file, "ingest", "web", str(bad))
        assert result.exit_code == 1
        assert "Cannot read bundle" in result.output

    def test_ingest_rejects_wrong_shaped_section(self, cli_env):
        tmp_path, config_file = cli_env
        bad = _write_bundle(
            tmp_path / "bad.json",
            {"gitStats": {"windows": []}, "staleness": {}, "debtMarkers": {}},
        )
        result = _invoke(config_file, "ingest", "web", str(bad))
        assert result.exit_code == 1
        assert "Cannot read bundle" in result.output
        assert not (tmp_path / "data" / "web" / "snapshots").exists()

    def test_ingest_unanalysable_bundle_stores_nothing(self, cli_env, bundle_dict):
        tmp_path, config_file = cli_env
        raw = bundle_dict()
        raw["staleness"]["staleFiles"] = [{"path": 5, "daysSinceLastCommit": 40, "isImported": True}]
        result = _invoke(config_file, "ingest", "web", str(_write_bundle(tmp_path / "bad.json", raw)))
        assert result.exit_code == 1
        assert "Ingest failed" in result.output
        history = _invoke(config_file, "history", "web")
        assert "No snapshots found for web" in history.output

    def test_ingest_counts_findings_by_code(self, cli_env, bundle_dict):
        tmp_path, config_file = cli_env
        bundle = _write_bundle(tmp_path / "bundle.json", _deep_import_bundle(bundle_dict))
        result = _invoke(config_file, "ingest", "web", str(bundle), "--json")
        assert result.exit_code == 0, result.output
        assert json.loads(result.output)["byCode"] == ["WD-M5-001: 1"]

    def test_history_and_delta(self, cli_env, bundle_dict):
        tmp_path, config_file = cli_env
        _invoke(config_file, "ingest", "web", str(_write_bundle(tmp_path / "a.json", bundle_dict(todos=1))))
        single = _invoke(config_file, "delta", "web")
        assert single.exit_code == 0
        assert "A delta needs two" in single.output

        _invoke(config_file, "ingest", "web", str(_write_bundle(tmp_path / "b.json", bundle_dict(todos=6))))

        history = _invoke(config_file, "history", "web", "--json")
        assert history.exit_code == 0
        rows = json.loads(history.output)
        assert len(rows) == 2
        assert rows[0]["todos"] == 6

        delta = _invoke(config_file, "delta", "web", "--json")
        assert delta.exit_code == 0
        assert json.loads(delta.output)["delta"]["total_todos_delta"] == 5

    def test_delta_without_history(self, cli_env):
        _, config_file = cli_env
        result = _invoke(config_file, "delta", "web")
        assert result.exit_code == 1
        assert "Run collection first" in result.output


class TestWorkCommands:
    @pytest.fixture
    def finding_id(self, cli_env, bundle_dict):
        tmp_path, config_file = cli_env
        bundle = _write_bundle(tmp_path / "bundle.json", _deep_import_bundle(bundle_dict))
        assert _invoke(config_file, "ingest", "web", str(bundle)).exit_code == 0
        return "WD-M5-001--apps-web-page-ts"

    def test_list(self, cli_env, finding_id):
        _, config_file = cli_env
        result = _invoke(config_file, "work", "list", "web", "--json")
        assert result.exit_code == 0
        docs = json.loads(result.output)
        assert [d["findingId"] for d in docs] == [finding_id]
        assert docs[0]["severity"] == "S1"

    def test_show(self, cli_env, finding_id):
        _, config_file = cli_env
        result = _invoke(config_file, "work", "show", "web", finding_id, "--json")
        assert result.exit_code == 0
        assert json.loads(result.output)["notes"][0]["text"] == "First detected. Severity: S1."

    def test_show_describes_the_code(self, cli_env, finding_id):
        _, config_file = cli_env
        result = _invoke(config_file, "work", "show", "web", finding_id)
        assert result.exit_code == 0
        assert "Deep import into package internals" in result.output
        assert "wiki/WD-M5-001.md" in result.output

    def test_show_missing(self, cli_env, finding_id):
        _, config_file = cli_env
        result = _invoke(config_file, "work", "show", "web", "WD-M5-001--other")
        assert result.exit_code == 1

    def test_status_and_note(self, cli_env, finding_id):
        _, config_file = cli_env
        result = _invoke(
            config_file, "work", "status", "web", finding_id, "blocked", "--note", "Waiting on API"
        )
        assert result.exit_code == 0, result.output
        _invoke(config_file, "work", "note", "web", finding_id, "Pinged owner", "--author", "pm")

        doc = json.loads(_invoke(config_file, "work", "show", "web", finding_id, "--json").output)
        assert doc["status"] == "blocked"
        assert [n["text"] for n in doc["notes"]][-2:] == ["Waiting on API", "Pinged owner"]
        assert doc["notes"][-1]["author"] == "pm"

    def test_invalid_status(self, cli_env, finding_id):
        _, config_file = cli_env
        result = _invoke(config_file, "work", "status", "web", finding_id, "done")
        assert result.exit_code == 2

    def test_edit_leaves_lock_free(self, cli_env, finding_id):
        from code_warden.locking import repo_lock

        tmp_path, config_file = cli_env
        result = _invoke(config_file, "work", "note", "web", finding_id, "Checked")
        assert result.exit_code == 0, result.output
        with repo_lock(tmp_path / "data", "web", blocking=False) as path:
            assert path.parent == tmp_path / "data" / "web"


class TestCodes:
    def test_lists_every_code(self, cli_env):
        _, config_file = cli_env
        result = _invoke(config_file, "codes", "--json")
        assert result.exit_code == 0
        codes = json.loads(result.output)
        assert len(codes) == 27
        assert codes[0] == {
            "code": "WD-M1-001",
            "metric": "M1",
            "description": "File growth exceeds threshold (>Nx repo average)",
            "wiki": "wiki/WD-M1-001.md",
        }

    def test_filter_by_metric(self, cli_env):
        _, config_file = cli_env
        result = _invoke(config_file, "codes", "--metric", "m2", "--json")
        assert result.exit_code == 0
        assert [c["code"] for c in json.loads(result.output)] == ["WD-M2-001", "WD-M2-002", "WD-M2-003"]

    def test_unknown_metric(self, cli_env):
        _, config_file = cli_env
        result = _invoke(config_file, "codes", "--metric", "M42")
        assert result.exit_code == 0
        assert "No finding codes" in result.output


class TestEscalationsAndPrune:
    def test_escalation_after_sustained_reports(self, cli_env, bundle_dict):
        tmp_path, config_file = cli_env
        bundle = _write_bundle(tmp_path / "bundle.json", _deep_import_bundle(bundle_dict))

        clean = _invoke(config_file, "escalations", "web")
        assert clean.exit_code == 0
        assert "No escalations" in clean.output

        for _ in range(4):
            assert _invoke(config_file, "ingest", "web", str(bundle)).exit_code == 0

        result = _invoke(config_file, "escalations", "web", "--write", "--json")
        assert result.exit_code == 1
        payload = json.loads(result.output)
        assert [d["findingId"] for d in payload["escalations"]] == ["WD-M5-001--apps-web-page-ts"]
        alert = tmp_path / "data" / "web" / "alerts" / "WD-M5-001--apps-web-page-ts-escalated.json"
        assert alert.exists()

    def test_prune(self, cli_env, bundle_dict):
        tmp_path, config_file = cli_env
        bundle = _write_bundle(tmp_path / "bundle.json", bundle_dict())
        for _ in range(3):
            _invoke(config_file, "ingest", "web", str(bundle))

        result = _invoke(config_file, "prune", "web", "--keep", "1")
        assert result.exit_code == 0
        assert "Pruned" in result.output
        history = json.loads(_invoke(config_file, "history", "web", "--json").output)
        assert len(history) == 1
