"""Tests for the Code Warden exception hierarchy."""

import pytest

from code_warden.exceptions import (
    ConfigurationError,
    InvalidBundleError,
    InvalidConfigError,
    ScanInProgressError,
    SeverityError,
    SnapshotCorruptError,
    SnapshotError,
    SnapshotNotFoundError,
    UnknownRepoError,
    WardenError,
    WorkDocumentError,
)


class TestWardenError:
    def test_plain_message(self):
        assert str(WardenError("boom")) == "boom"

    def test_details_rendered(self):
        err = WardenError("boom", details={"slug": "web"})
        assert str(err) == "boom (slug=web)"
        assert err.message == "boom"


class TestSnapshotNotFound:
    def test_tells_user_to_collect(self):
        err = SnapshotNotFoundError("web")
        assert err.message == "No snapshots found for web. Run collection first."
        assert err.details == {"slug": "web"}
        assert err.branch is None

    def test_branch_variant(self):
        err = SnapshotNotFoundError("web", branch="release")
        assert "on branch 'release'" in err.message
        assert err.details["branch"] == "release"


@pytest.mark.parametrize(
    "err, parent",
    [
        (UnknownRepoError("web"), ConfigurationError),
        (InvalidConfigError("data_dir", "", "must not be empty"), ConfigurationError),
        (SnapshotNotFoundError("web"), SnapshotError),
        (SnapshotCorruptError("web", "t", "staleness", "bad json"), SnapshotError),
        (InvalidBundleError("web", "bad path"), SnapshotError),
        (WorkDocumentError("WD-M6-001--_global", "bad json"), WardenError),
        (SeverityError("S9"), WardenError),
        (ScanInProgressError("web"), WardenError),
    ],
)
def test_hierarchy(err, parent):
    assert isinstance(err, parent)
    assert isinstance(err, WardenError)


def test_invalid_config_keeps_reason():
    err = InvalidConfigError("escalation_threshold", 0, "must be >= 1")
    assert err.details["reason"] == "must be >= 1"
    assert "escalation_threshold" in str(err)


def test_invalid_bundle_names_repo_and_reason():
    err = InvalidBundleError("web", "expected string")
    assert err.message == "Rejected snapshot bundle for web: expected string"
    assert err.details == {"slug": "web", "reason": "expected string"}
