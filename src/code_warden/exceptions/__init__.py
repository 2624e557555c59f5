"""Exception hierarchy for Code Warden."""

from .base import WardenError
from .config import ConfigurationError, InvalidConfigError, UnknownRepoError
from .snapshot import (
    InvalidBundleError,
    SnapshotCorruptError,
    SnapshotError,
    SnapshotNotFoundError,
)
from .work import ScanInProgressError, SeverityError, WorkDocumentError

__all__ = [
    "WardenError",
    "SnapshotError",
    "SnapshotNotFoundError",
    "SnapshotCorruptError",
    "InvalidBundleError",
    "WorkDocumentError",
    "SeverityError",
    "ScanInProgressError",
    "ConfigurationError",
    "InvalidConfigError",
    "UnknownRepoError",
]
