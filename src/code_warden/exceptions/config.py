"""Configuration exceptions: invalid settings, unknown repositories."""

from typing import Any

from .base import WardenError


class ConfigurationError(WardenError):
    """Base class for configuration-related errors."""

    pass


class InvalidConfigError(ConfigurationError):
    """Raised when configuration values are invalid."""

    def __init__(self, key: str, value: Any, reason: str):
        super().__init__(
            f"Invalid configuration for {key}: {value}",
            details={"key": key, "value": str(value), "reason": reason},
        )
        self.key = key
        self.value = value
        self.reason = reason


class UnknownRepoError(ConfigurationError):
    """Raised when a repository slug is not configured."""

    def __init__(self, slug: str):
        super().__init__(f"Unknown repo slug: {slug}", details={"slug": slug})
        self.slug = slug
