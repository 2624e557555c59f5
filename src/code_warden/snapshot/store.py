"""Filesystem snapshot store: one directory per scan, one JSON file per section.

Layout::

    <data_dir>/<slug>/snapshots/<timestamp>/git-stats.json
                                           /staleness.json
                                           /debt-markers.json
                                           /complexity.json      (optional)
                                           /...

Timestamps are sortable strings, so descending string order is descending
chronological order.
"""

from __future__ import annotations

import json
import os
import shutil
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, List, Optional, Union

from ..exceptions import SnapshotCorruptError, SnapshotNotFoundError
from ..logging_config import get_logger
from .models import (
    OPTIONAL_SECTIONS,
    REQUIRED_SECTIONS,
    SECTION_FILES,
    GitStatsSnapshot,
    LoadedSnapshot,
    SnapshotBundle,
)

logger = get_logger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%dT%H-%M-%S"


def timestamp_folder_name(moment: Optional[datetime] = None) -> str:
    """ISO-8601 UTC timestamp with ``:`` replaced and fractional seconds dropped."""
    moment = moment or datetime.now(timezone.utc)
    return moment.astimezone(timezone.utc).strftime(TIMESTAMP_FORMAT)


def _check_component(value: str, what: str) -> str:
    if not value or value in (".", "..") or "/" in value or "\\" in value or value.startswith("."):
        raise ValueError(f"Invalid {what}: {value!r}")
    return value


def write_json(path: Path, data: Any) -> None:
    """Write *data* as indented JSON with a trailing newline."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")


def read_json_if_present(path: Path) -> Optional[Any]:
    """Return parsed JSON, or None if the file is missing or unparsable."""
    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except (OSError, ValueError) as e:
        logger.debug("Skipping unreadable %s: %s", path, e)
        return None


class SnapshotStore:
    """Persists and retrieves snapshot bundles per repository.

    Usage::

        store = SnapshotStore("data")
        ts = store.save("web", bundle)
        latest = store.latest("web")
        previous = store.previous("web")  # None if fewer than two
    """

    def __init__(self, data_dir: Union[str, Path]) -> None:
        self.data_dir = Path(data_dir)

    # ── paths ─────────────────────────────────────────────────────

    def snapshots_root(self, slug: str) -> Path:
        return self.data_dir / _check_component(slug, "slug") / "snapshots"

    def snapshot_dir(self, slug: str, timestamp: str) -> Path:
        return self.snapshots_root(slug) / _check_component(timestamp, "timestamp")

    # ── write ─────────────────────────────────────────────────────

    def save(self, slug: str, bundle: SnapshotBundle, timestamp: Optional[str] = None) -> str:
        """Persist *bundle* and return the timestamp key it was stored under.

        Sections are written into a hidden staging directory which is then
        renamed into place, so readers never observe a partial bundle.
        A key that already exists gets a numeric suffix.
        """
        root = self.snapshots_root(slug)
        root.mkdir(parents=True, exist_ok=True)

        base = timestamp or timestamp_folder_name()
        key = base
        n = 1
        while (root / key).exists():
            key = f"{base}-{n:02d}"
            n += 1
        _check_component(key, "timestamp")

        staging = root / f".{key}.tmp"
        if staging.exists():
            shutil.rmtree(staging)
        staging.mkdir()
        try:
            for name in bundle.present_sections():
                filename = SECTION_FILES[name][0]
                write_json(staging / filename, getattr(bundle, name).to_dict())
            os.replace(staging, root / key)
        except BaseException:
            shutil.rmtree(staging, ignore_errors=True)
            raise

        logger.debug(
            "Saved snapshot %s/%s (%s)", slug, key, ", ".join(bundle.present_sections())
        )
        return key

    # ── read ──────────────────────────────────────────────────────

    def list_timestamps(self, slug: str) -> List[str]:
        """All snapshot timestamps for *slug*, newest first."""
        root = self.snapshots_root(slug)
        try:
            entries = [
                entry.name
                for entry in root.iterdir()
                if entry.is_dir() and not entry.name.startswith(".")
            ]
        except FileNotFoundError:
            return []
        return sorted(entries, reverse=True)

    def load(self, slug: str, timestamp: str) -> LoadedSnapshot:
        """Load one snapshot.

        Raises:
            SnapshotCorruptError: If a required section is missing or invalid.
                Optional sections that fail to load come back as ``None``.
        """
        snapshot_dir = self.snapshot_dir(slug, timestamp)
        kwargs: dict = {}

        for name in REQUIRED_SECTIONS:
            filename, section_type = SECTION_FILES[name]
            try:
                with open(snapshot_dir / filename, encoding="utf-8") as f:
                    kwargs[name] = section_type.from_dict(json.load(f))
            except (AttributeError, OSError, TypeError, ValueError) as e:
                raise SnapshotCorruptError(slug, timestamp, filename, str(e)) from e

        for name in OPTIONAL_SECTIONS:
            filename, section_type = SECTION_FILES[name]
            raw = read_json_if_present(snapshot_dir / filename)
            if raw is None:
                continue
            try:
                kwargs[name] = section_type.from_dict(raw)
            except (AttributeError, TypeError, ValueError) as e:
                logger.debug("Optional section %s of %s/%s degraded: %s", filename, slug, timestamp, e)

        return LoadedSnapshot(timestamp=timestamp, bundle=SnapshotBundle(**kwargs))

    def latest(self, slug: str) -> LoadedSnapshot:
        """Most recent snapshot.

        Raises:
            SnapshotNotFoundError: If the repository has no snapshots.
        """
        timestamps = self.list_timestamps(slug)
        if not timestamps:
            raise SnapshotNotFoundError(slug)
        return self.load(slug, timestamps[0])

    def previous(self, slug: str) -> Optional[LoadedSnapshot]:
        """Second-most-recent snapshot, or None when fewer than two exist."""
        timestamps = self.list_timestamps(slug)
        if len(timestamps) < 2:
            return None
        return self.load(slug, timestamps[1])

    def latest_for_branch(self, slug: str, branch: str) -> LoadedSnapshot:
        """Newest snapshot whose git statistics report *branch*.

        Raises:
            SnapshotNotFoundError: If no snapshot matches.
        """
        for timestamp in self.list_timestamps(slug):
            raw = read_json_if_present(
                self.snapshot_dir(slug, timestamp) / SECTION_FILES["git_stats"][0]
            )
            if not isinstance(raw, dict):
                continue
            if GitStatsSnapshot.from_dict(raw).branch == branch:
                return self.load(slug, timestamp)
        raise SnapshotNotFoundError(slug, branch=branch)
