"""Snapshot retention: keep the newest N scans per repository."""

from __future__ import annotations

import shutil
from typing import List

from .logging_config import get_logger
from .snapshot import SnapshotStore

logger = get_logger(__name__)


def prune_snapshots(store: SnapshotStore, slug: str, keep: int) -> List[str]:
    """Delete all but the newest *keep* snapshots (at least one is kept).

    Returns the deleted timestamps, newest first.
    """
    keep = max(1, keep)
    doomed = store.list_timestamps(slug)[keep:]
    for timestamp in doomed:
        shutil.rmtree(store.snapshot_dir(slug, timestamp))
        logger.debug("Pruned snapshot %s/%s", slug, timestamp)
    if doomed:
        logger.info("Pruned %d snapshot(s) of %s, kept %d", len(doomed), slug, keep)
    return doomed
