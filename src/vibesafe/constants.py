from __future__ import annotations

from enum import Enum
from typing import Iterable


class Severity(str, Enum):
    """Severity levels for findings, ordered Info < Low < Medium < High < Critical."""

    INFO = "Info"
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"

    @property
    def rank(self) -> int:
        return _SEVERITY_ORDER.index(self)

    def downgrade(self) -> "Severity":
        return _SEVERITY_ORDER[max(self.rank - 1, 0)]

    @classmethod
    def parse(cls, value: str) -> "Severity":
        """Case-insensitive lookup; unknown labels map to Info."""
        lowered = str(value or "").strip().lower()
        for member in cls:
            if member.value.lower() == lowered:
                return member
        if lowered == "moderate":
            return cls.MEDIUM
        return cls.INFO

    @classmethod
    def max_of(cls, severities: Iterable["Severity"]) -> "Severity":
        result = cls.INFO
        for severity in severities:
            if severity > result:
                result = severity
        return result

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank >= other.rank

    def __str__(self) -> str:
        return self.value


_SEVERITY_ORDER = (
    Severity.INFO,
    Severity.LOW,
    Severity.MEDIUM,
    Severity.HIGH,
    Severity.CRITICAL,
)


class Limits:
    """Shared hard limits."""

    MAX_FILE_SIZE = 1_000_000  # 1MB
    MAX_FILES = 5_000
    MAX_SNIPPET_LENGTH = 200
    MAX_DETAILS_SNIPPET = 100
    MAX_SECRETS_FOR_AI = 10
    MAX_DEPS_FOR_AI = 15
    MAX_VULN_IDS_FOR_AI = 3
