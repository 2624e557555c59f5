"""Finding data models: one observed problem in one scan."""

from dataclasses import asdict, dataclass
from typing import Any, Dict, Literal, Optional

FindingMetric = Literal["M1", "M2", "M3", "M4", "M5", "M6", "M7", "M8", "M9"]


@dataclass(frozen=True)
class FindingCodeDef:
    """Registry entry describing a finding code."""

    code: str
    metric: FindingMetric
    short_description: str
    wiki_path: str


@dataclass(frozen=True)
class FindingInstance:
    """A single observation of a problem in the current scan.

    Ephemeral: rebuilt from every bundle and never stored on its own.
    ``summary`` is free text and may embed a number (a count, a ratio,
    a day count) that the trend engine compares across scans.
    """

    code: str
    metric: FindingMetric
    summary: str
    path: Optional[str] = None
    symbol: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None}

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "FindingInstance":
        return cls(
            code=str(raw["code"]),
            metric=raw.get("metric") or _metric_of(str(raw["code"])),
            summary=str(raw.get("summary", "")),
            path=raw.get("path"),
            symbol=raw.get("symbol"),
        )


def _metric_of(code: str) -> str:
    # "WD-M5-001" -> "M5"
    parts = code.split("-")
    return parts[1] if len(parts) >= 3 else "M1"
