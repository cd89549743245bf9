from __future__ import annotations


class VibeSafeError(Exception):
    """Base exception for all scanner errors."""


class ConfigError(VibeSafeError):
    """Configuration validation failed."""


class FileReadError(VibeSafeError):
    """A file in the scan set could not be read or decoded."""


class ParseError(VibeSafeError):
    """Source text could not be parsed into a syntax tree."""


class VulnerabilityLookupError(VibeSafeError):
    """The vulnerability database could not answer for a package."""

    def __init__(self, name: str, version: str, reason: str) -> None:
        super().__init__(f"{name}@{version}: {reason}")
        self.name = name
        self.version = version
        self.reason = reason


class SuggestionUnavailable(VibeSafeError):
    """Suggestion generation was skipped or failed (degrades to placeholder text)."""
