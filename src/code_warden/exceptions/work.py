"""Work-document, severity and pipeline exceptions."""

from .base import WardenError


class WorkDocumentError(WardenError):
    """Raised when a work document cannot be written or is unknown."""

    def __init__(self, finding_id: str, reason: str):
        super().__init__(
            f"Work document error for {finding_id}",
            details={"finding_id": finding_id, "reason": reason},
        )
        self.finding_id = finding_id
        self.reason = reason


class SeverityError(WardenError):
    """A severity outside S0-S5 was produced or parsed.

    Clamping in the severity engine makes this unreachable for computed
    values; seeing it means a programming error or a corrupt document.
    """

    def __init__(self, value: object):
        super().__init__(f"Invalid severity: {value!r}", details={"value": str(value)})
        self.value = value


class ScanInProgressError(WardenError):
    """Raised when a scan of a repository is submitted while another one runs."""

    def __init__(self, slug: str):
        super().__init__(
            f"A scan of {slug} is already being processed",
            details={"slug": slug},
        )
        self.slug = slug
