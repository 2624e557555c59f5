"""Shared test fixtures for Code Warden."""

import pytest

from code_warden.config import RepoConfig, WardenConfig
from code_warden.snapshot import SnapshotBundle, SnapshotStore
from code_warden.work import WorkStore


def pytest_addoption(parser):
    """Add --run-slow option for slow tests."""
    parser.addoption(
        "--run-slow",
        action="store_true",
        default=False,
        help="run slow tests",
    )


def pytest_configure(config):
    """Configure slow marker."""
    config.addinivalue_line("markers", "slow: mark test as slow to run")


def pytest_collection_modifyitems(config, items):
    """Skip slow tests unless --run-slow is given."""
    if config.getoption("--run-slow"):
        return
    skip_slow = pytest.mark.skip(reason="need --run-slow option to run")
    for item in items:
        if "slow" in item.keywords:
            item.add_marker(skip_slow)


def _bundle_dict(
    branch="main",
    stale_files=0,
    stale_directories=0,
    todos=0,
    fixmes=0,
    hacks=0,
    eslint_disables=0,
    any_casts=0,
    complexity=None,
    deep_imports=None,
    circular_chains=None,
    git_files=None,
):
    raw = {
        "gitStats": {
            "collectedAt": "2025-01-01T00:00:00Z",
            "branch": branch,
            "windows": {"7d": {"files": git_files or [], "directories": [], "highChurnFiles": []}},
        },
        "staleness": {
            "collectedAt": "2025-01-01T00:00:00Z",
            "branch": branch,
            "staleFiles": [
                {"path": f"src/stale{i}.ts", "daysSinceLastCommit": 40, "isImported": True}
                for i in range(stale_files)
            ],
            "staleDirectories": [
                {"path": f"src/old{i}", "daysSinceActivity": 90} for i in range(stale_directories)
            ],
        },
        "debtMarkers": {
            "collectedAt": "2025-01-01T00:00:00Z",
            "branch": branch,
            "summary": {
                "totalTodos": todos,
                "totalFixmes": fixmes,
                "totalHacks": hacks,
                "totalEslintDisables": eslint_disables,
                "totalAnyCasts": any_casts,
            },
            "files": [],
        },
    }
    if complexity is not None:
        raw["complexity"] = {
            "collectedAt": "2025-01-01T00:00:00Z",
            "branch": branch,
            "summary": {"totalFindings": complexity},
            "findings": [],
        }
    if deep_imports is not None or circular_chains is not None:
        raw["imports"] = {
            "collectedAt": "2025-01-01T00:00:00Z",
            "branch": branch,
            "summary": {
                "deepImports": deep_imports or 0,
                "circularChains": circular_chains or 0,
            },
            "deepImportFindings": [],
            "undeclaredDependencyFindings": [],
            "circularChains": [],
        }
    return raw


@pytest.fixture
def bundle_dict():
    """Factory for camelCase bundle dicts with the given counters."""
    return _bundle_dict


@pytest.fixture
def make_bundle():
    """Factory for SnapshotBundle objects with the given counters."""

    def factory(**kwargs):
        return SnapshotBundle.from_dict(_bundle_dict(**kwargs))

    return factory


@pytest.fixture
def config(tmp_path):
    """Configuration with two repositories rooted in a temp data dir."""
    return WardenConfig(
        data_dir=str(tmp_path / "data"),
        repos=(
            RepoConfig(slug="repo-a", path="/src/a"),
            RepoConfig(slug="repo-b", path="/src/b"),
        ),
    )


@pytest.fixture
def store(config):
    return SnapshotStore(config.data_path)


@pytest.fixture
def work_store(config):
    return WorkStore(config.data_path)
