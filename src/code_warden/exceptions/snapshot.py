"""Snapshot storage exceptions: missing history, unreadable required sections."""

from typing import Optional

from .base import WardenError


class SnapshotError(WardenError):
    """Base class for snapshot storage errors."""

    pass


class SnapshotNotFoundError(SnapshotError):
    """Raised when no snapshot exists where one is required.

    This means collection has not been run yet (or not on the requested
    branch), so the message tells the user what to do next.
    """

    def __init__(self, slug: str, branch: Optional[str] = None):
        if branch is None:
            message = f"No snapshots found for {slug}. Run collection first."
        else:
            message = (
                f"No snapshots found for {slug} on branch '{branch}'. "
                f"Run collection for {slug} on that branch first."
            )
        details = {"slug": slug}
        if branch is not None:
            details["branch"] = branch
        super().__init__(message, details=details)
        self.slug = slug
        self.branch = branch


class SnapshotCorruptError(SnapshotError):
    """Raised when a required section of a snapshot cannot be loaded."""

    def __init__(self, slug: str, timestamp: str, section: str, reason: str):
        super().__init__(
            f"Cannot load required section '{section}' of snapshot {slug}/{timestamp}",
            details={"slug": slug, "timestamp": timestamp, "section": section, "reason": reason},
        )
        self.slug = slug
        self.timestamp = timestamp
        self.section = section
        self.reason = reason


class InvalidBundleError(SnapshotError):
    """Raised when an incoming bundle parses but cannot be analysed.

    Nothing is written for a rejected bundle.
    """

    def __init__(self, slug: str, reason: str):
        super().__init__(
            f"Rejected snapshot bundle for {slug}: {reason}",
            details={"slug": slug, "reason": reason},
        )
        self.slug = slug
        self.reason = reason
