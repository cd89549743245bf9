from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from .constants import Severity


class LoggingIssueType(str, Enum):
    UNSANITIZED_ERROR_LOG = "UnsanitizedErrorLog"
    PII_LOG = "PiiLog"


@dataclass(frozen=True)
class Finding:
    """Common shape of every reported issue."""

    file: str
    line: int
    severity: Severity
    message: str

    def __post_init__(self) -> None:
        if not self.file:
            raise ValueError("finding file must be non-empty")
        if self.line < 1:
            raise ValueError(f"finding line must be >= 1, got {self.line}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "file": self.file,
            "line": self.line,
            "severity": self.severity.value,
            "message": self.message,
        }


@dataclass(frozen=True)
class SecretFinding(Finding):
    type: str = ""
    snippet: Optional[str] = None
    details: Optional[str] = None
    span: Tuple[int, int] = field(default=(0, 0), compare=False, repr=False)

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({"type": self.type, "snippet": self.snippet, "details": self.details})
        return data


@dataclass(frozen=True)
class LoggingFinding(Finding):
    type: LoggingIssueType = LoggingIssueType.PII_LOG
    snippet: Optional[str] = None
    details: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({"type": self.type.value, "snippet": self.snippet, "details": self.details})
        return data


@dataclass(frozen=True)
class Vulnerability:
    id: str
    severity: Severity
    summary: str = ""


@dataclass(frozen=True)
class DependencyFinding(Finding):
    name: str = ""
    version: str = ""
    vulnerabilities: Tuple[Vulnerability, ...] = ()
    lookup_failed: bool = False

    def __post_init__(self) -> None:
        super().__post_init__()
        # severity always mirrors the rolled-up vulnerability severity.
        object.__setattr__(self, "vulnerabilities", tuple(self.vulnerabilities))
        object.__setattr__(self, "severity", self.max_severity)

    @property
    def max_severity(self) -> Severity:
        return Severity.max_of(v.severity for v in self.vulnerabilities)

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update(
            {
                "name": self.name,
                "version": self.version,
                "vulnerabilities": [
                    {"id": v.id, "severity": v.severity.value} for v in self.vulnerabilities
                ],
                "maxSeverity": self.max_severity.value,
                "lookup_failed": self.lookup_failed,
            }
        )
        return data


@dataclass(frozen=True)
class ScanWarning:
    """A non-fatal degraded state surfaced to the caller."""

    file: str
    stage: str
    message: str

    def to_dict(self) -> Dict[str, str]:
        return {"file": self.file, "stage": self.stage, "message": self.message}


@dataclass(frozen=True)
class ResolvedPackage:
    """One (name, version) pair from a resolved dependency manifest."""

    name: str
    version: str
    ecosystem: str = "npm"
    manifest: str = "package.json"
