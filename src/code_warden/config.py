"""Configuration loading and management for Code Warden.

Configuration sources are merged in priority order:
    1. Defaults (defined in WardenConfig)
    2. Global config (~/.code-warden.toml)
    3. Project config (./code-warden.toml)
    4. Explicit config file
    5. Environment variables (WARDEN_* prefix)
    6. CLI overrides (passed as kwargs)

Example TOML::

    data_dir = "data"
    escalation_threshold = 3

    [severity]
    "WD-M4-001" = "S1"

    [[repos]]
    slug = "web"
    path = "/src/web"

    [repos.thresholds]
    stale_days = 14

    [[repos.suppressions]]
    pattern = "src/legacy/*"
    codes = ["WD-M2-002"]
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Literal, Optional, get_type_hints

from .exceptions import InvalidConfigError, UnknownRepoError, WardenError

Verbosity = Literal["quiet", "normal", "verbose"]

_SEVERITY_RE = re.compile(r"^S[0-5]$")
_SLUG_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")


@dataclass(frozen=True)
class RepoThresholds:
    """Per-repository thresholds used when deriving findings from a snapshot.

    Attributes:
        stale_days: Days without commits before a file counts as stale
        doc_stale_days: Days without doc updates before a doc counts as stale
        high_churn_edits: Edits in the 7d window that make a file high-churn
        growth_multiplier: File growth relative to repo average
        directory_growth_pct: Directory growth percentage
        high_rewrite_ratio: add/delete ratio marking rewrite risk
        complexity_hotspot_count: Complexity findings per file for WD-M4-003
        large_file_growth_lines: Lines added in the window for WD-M6-004
        low_route_hit_count: Route hits at or below this are "low"
        new_file_cluster_count: New files in a directory for WD-M1-003
        low_coverage_pct: Line coverage below this is "low"
        coverage_regression_pct: Coverage drop (points) for WD-M7-003
    """

    stale_days: int = 10
    doc_stale_days: int = 30
    high_churn_edits: int = 5
    growth_multiplier: float = 2.0
    directory_growth_pct: float = 20.0
    high_rewrite_ratio: float = 3.0
    complexity_hotspot_count: int = 5
    large_file_growth_lines: int = 300
    low_route_hit_count: int = 2
    new_file_cluster_count: int = 6
    low_coverage_pct: float = 50.0
    coverage_regression_pct: float = 5.0

    def __post_init__(self) -> None:
        for f in fields(self):
            value = getattr(self, f.name)
            if value <= 0:
                raise InvalidConfigError(f"thresholds.{f.name}", value, "must be positive")


@dataclass(frozen=True)
class RepoRetention:
    """How many snapshots to keep per repository."""

    snapshots: int = 10

    def __post_init__(self) -> None:
        if self.snapshots < 1:
            raise InvalidConfigError("retention.snapshots", self.snapshots, "must be at least 1")


@dataclass(frozen=True)
class Suppression:
    """Suppress the listed finding codes for paths matching *pattern*."""

    pattern: str
    codes: tuple[str, ...]
    reason: Optional[str] = None


@dataclass(frozen=True)
class RepoConfig:
    """One tracked repository."""

    slug: str
    path: str
    branch: Optional[str] = None
    thresholds: RepoThresholds = field(default_factory=RepoThresholds)
    retention: RepoRetention = field(default_factory=RepoRetention)
    suppressions: tuple[Suppression, ...] = ()
    allowlist: dict[str, tuple[str, ...]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not _SLUG_RE.match(self.slug):
            raise InvalidConfigError("slug", self.slug, "must be a simple identifier")
        if not self.path.strip():
            raise InvalidConfigError("path", self.path, "must not be empty")


@dataclass(frozen=True)
class WardenConfig:
    """Top-level configuration.

    Attributes:
        data_dir: Root directory for snapshots, work documents and alerts
        verbosity: Logging verbosity level
        escalation_threshold: Consecutive reports at S1 before alerting
        min_reports_for_change: Consecutive reports required before
            automatic promotion or demotion
        hub_queue_size: Outbound queue size per live observer
        max_message_bytes: Largest inbound live-update message accepted
        severity: Finding code -> initial severity overrides ("S0".."S5")
        repos: Tracked repositories
    """

    data_dir: str = "data"
    verbosity: Verbosity = "normal"
    escalation_threshold: int = 3
    min_reports_for_change: int = 2
    hub_queue_size: int = 32
    max_message_bytes: int = 64 * 1024
    severity: dict[str, str] = field(default_factory=dict)
    repos: tuple[RepoConfig, ...] = ()

    def __post_init__(self) -> None:
        if self.escalation_threshold < 1:
            raise InvalidConfigError(
                "escalation_threshold", self.escalation_threshold, "must be at least 1"
            )
        if self.min_reports_for_change < 1:
            raise InvalidConfigError(
                "min_reports_for_change", self.min_reports_for_change, "must be at least 1"
            )
        if self.hub_queue_size < 1:
            raise InvalidConfigError("hub_queue_size", self.hub_queue_size, "must be at least 1")
        if self.max_message_bytes < 1:
            raise InvalidConfigError(
                "max_message_bytes", self.max_message_bytes, "must be positive"
            )
        for code, level in self.severity.items():
            if not isinstance(level, str) or not _SEVERITY_RE.match(level):
                raise InvalidConfigError(f"severity.{code}", level, "expected S0..S5")

        seen: set[str] = set()
        for repo in self.repos:
            if repo.slug in seen:
                raise InvalidConfigError("repos", repo.slug, "duplicate slug")
            seen.add(repo.slug)

    @property
    def data_path(self) -> Path:
        """Resolved data directory."""
        return Path(self.data_dir).expanduser().resolve()

    @property
    def slugs(self) -> list[str]:
        return [repo.slug for repo in self.repos]

    def repo(self, slug: str) -> RepoConfig:
        """Return the configuration for *slug*.

        Raises:
            UnknownRepoError: If the slug is not configured
        """
        for repo in self.repos:
            if repo.slug == slug:
                return repo
        raise UnknownRepoError(slug)

    def is_known_slug(self, slug: str) -> bool:
        return any(repo.slug == slug for repo in self.repos)


def load_config(config_file: Optional[Path] = None, **overrides) -> WardenConfig:
    """Load configuration with auto-discovery and merging.

    Args:
        config_file: Optional explicit config file path
        **overrides: Direct overrides (typically from CLI flags)

    Returns:
        Validated WardenConfig instance

    Raises:
        WardenError: If a config file is invalid or missing
    """
    merged: dict = {}

    global_config = Path.home() / ".code-warden.toml"
    if global_config.exists():
        try:
            merged.update(_load_toml_file(global_config))
        except Exception as e:
            raise WardenError(f"Invalid global config '{global_config}': {e}")

    project_config = Path.cwd() / "code-warden.toml"
    if project_config.exists():
        try:
            merged.update(_load_toml_file(project_config))
        except Exception as e:
            raise WardenError(f"Invalid project config '{project_config}': {e}")

    if config_file is not None:
        if not config_file.exists():
            raise WardenError(f"Config file not found: {config_file}")
        try:
            merged.update(_load_toml_file(config_file))
        except Exception as e:
            raise WardenError(f"Invalid config file '{config_file}': {e}")

    merged.update(_load_env_vars())

    if "verbose" in overrides:
        if overrides["verbose"]:
            overrides["verbosity"] = "verbose"
        del overrides["verbose"]
    if "quiet" in overrides:
        if overrides["quiet"]:
            overrides["verbosity"] = "quiet"
        del overrides["quiet"]

    merged.update({k: v for k, v in overrides.items() if v is not None})

    repos_raw = merged.pop("repos", None)
    if repos_raw is not None:
        if not isinstance(repos_raw, (list, tuple)):
            raise InvalidConfigError("repos", repos_raw, "expected an array of tables")
        merged["repos"] = tuple(
            item if isinstance(item, RepoConfig) else _parse_repo(item) for item in repos_raw
        )

    try:
        return WardenConfig(**merged)
    except TypeError as e:
        raise WardenError(f"Invalid configuration: {e}")


def _parse_repo(raw: Any) -> RepoConfig:
    """Build a RepoConfig from one ``[[repos]]`` table."""
    if not isinstance(raw, dict):
        raise InvalidConfigError("repos", raw, "expected a table")
    data = dict(raw)

    thresholds = data.pop("thresholds", None)
    if thresholds is not None:
        try:
            data["thresholds"] = RepoThresholds(**thresholds)
        except TypeError as e:
            raise WardenError(f"Invalid [repos.thresholds] config: {e}")

    retention = data.pop("retention", None)
    if retention is not None:
        try:
            data["retention"] = RepoRetention(**retention)
        except TypeError as e:
            raise WardenError(f"Invalid [repos.retention] config: {e}")

    suppressions = data.pop("suppressions", None) or []
    parsed: list[Suppression] = []
    for item in suppressions:
        # Entries without a pattern or codes suppress nothing
        pattern = item.get("pattern") if isinstance(item, dict) else None
        codes = item.get("codes") if isinstance(item, dict) else None
        if not isinstance(pattern, str) or not pattern or not isinstance(codes, list):
            continue
        code_tuple = tuple(c.upper() for c in codes if isinstance(c, str))
        if not code_tuple:
            continue
        reason = item.get("reason")
        parsed.append(
            Suppression(
                pattern=pattern,
                codes=code_tuple,
                reason=reason if isinstance(reason, str) else None,
            )
        )
    data["suppressions"] = tuple(parsed)

    allowlist = data.pop("allowlist", None) or {}
    data["allowlist"] = {
        code.upper(): tuple(str(entry).strip() for entry in entries)
        for code, entries in allowlist.items()
        if isinstance(entries, list)
    }

    try:
        return RepoConfig(**data)
    except TypeError as e:
        raise WardenError(f"Invalid [[repos]] entry: {e}")


def _load_env_vars() -> dict[str, Any]:
    """Load configuration from WARDEN_* environment variables.

    Supported environment variables:
        WARDEN_DATA_DIR: str
        WARDEN_VERBOSITY: quiet/normal/verbose
        WARDEN_ESCALATION_THRESHOLD: int
        WARDEN_MIN_REPORTS_FOR_CHANGE: int
        WARDEN_HUB_QUEUE_SIZE: int
        WARDEN_MAX_MESSAGE_BYTES: int

    Returns:
        Dict of field_name -> parsed_value for any WARDEN_* vars found.
    """
    type_hints = get_type_hints(WardenConfig)

    result: dict[str, Any] = {}

    for field_name in WardenConfig.__dataclass_fields__:
        env_key = f"WARDEN_{field_name.upper()}"
        env_value = os.environ.get(env_key)

        if env_value is None:
            continue

        type_hint = type_hints.get(field_name)
        if type_hint is None:
            continue

        try:
            parsed = _parse_env_value(env_value, type_hint)
            if parsed is not None:
                result[field_name] = parsed
        except ValueError as e:
            raise WardenError(f"Invalid {env_key}: {e}")

    return result


def _parse_env_value(value: str, type_hint: Any) -> Any:
    """Parse an environment variable string to the field's type.

    Returns None for types that cannot be expressed as a single string
    (tables and arrays).
    """
    origin = getattr(type_hint, "__origin__", None)

    if origin in (dict, tuple, list):
        return None

    if type_hint is bool:
        lower = value.lower()
        if lower in ("true", "1", "yes", "on"):
            return True
        if lower in ("false", "0", "no", "off"):
            return False
        raise ValueError(f"expected true/false, got '{value}'")

    if type_hint is int:
        return int(value)

    if type_hint is float:
        return float(value)

    if type_hint is str or origin is Literal:
        return value

    return None


def _load_toml_file(path: Path) -> dict:
    """Load a TOML file and return the parsed dict."""
    try:
        import tomllib
    except ModuleNotFoundError:
        try:
            import tomli as tomllib  # type: ignore
        except ImportError:
            raise WardenError(
                "TOML support requires Python 3.11+ or 'tomli' package. "
                "Install with: pip install tomli"
            )

    with open(path, "rb") as f:
        return tomllib.load(f)
