"""Per-repository lock file shared by every process touching one data dir.

The lock lives at ``<data_dir>/<slug>/.lock`` and is held with ``flock``
for the whole of a scan or a work-document edit, so a ``serve`` process
and a CLI ``ingest`` against the same data directory never interleave.
"""

from __future__ import annotations

import fcntl
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Union

from .exceptions import ScanInProgressError

LOCK_NAME = ".lock"


def lock_path(data_dir: Union[str, Path], slug: str) -> Path:
    return Path(data_dir) / slug / LOCK_NAME


@contextmanager
def repo_lock(data_dir: Union[str, Path], slug: str, blocking: bool = True) -> Iterator[Path]:
    """Hold the exclusive lock for *slug* for the duration of the block.

    Raises:
        ScanInProgressError: When non-blocking and another holder has it
    """
    path = lock_path(data_dir, slug)
    path.parent.mkdir(parents=True, exist_ok=True)
    flags = fcntl.LOCK_EX if blocking else fcntl.LOCK_EX | fcntl.LOCK_NB
    with open(path, "a", encoding="utf-8") as handle:
        try:
            fcntl.flock(handle.fileno(), flags)
        except BlockingIOError as e:
            raise ScanInProgressError(slug) from e
        try:
            yield path
        finally:
            fcntl.flock(handle.fileno(), fcntl.LOCK_UN)
