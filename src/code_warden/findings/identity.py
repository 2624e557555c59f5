"""Stable identity for findings.

A finding's id stays the same across scans as long as the same code is
reported on the same location, which is what lets a work document follow
the finding over time.  Ids double as file names, so they are restricted
to a filename-safe alphabet.

Rules:
    code + slugified path (or "_global" when there is no path)
    + symbol, if any, joined with "--".
"""

import re

from .models import FindingInstance

_UNSAFE = re.compile(r"[^A-Za-z0-9_@+-]")


def slugify_path(path: str) -> str:
    """``src/app/main.ts`` -> ``src-app-main-ts``."""
    return _UNSAFE.sub("-", path)


def generate_finding_id(finding: FindingInstance) -> str:
    path_part = slugify_path(finding.path) if finding.path else "_global"
    parts = [finding.code, path_part]
    if finding.symbol:
        parts.append(_UNSAFE.sub("-", finding.symbol))
    return "--".join(parts)
