from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from .constants import Severity
from .models import DependencyFinding, Finding, LoggingFinding, ScanWarning, SecretFinding


@dataclass
class FileFindings:
    secrets: List[SecretFinding] = field(default_factory=list)
    logging: List[LoggingFinding] = field(default_factory=list)
    dependencies: List[DependencyFinding] = field(default_factory=list)

    def all(self) -> List[Finding]:
        return [*self.secrets, *self.logging, *self.dependencies]


@dataclass
class ReportData:
    """Combined scan output handed to reporters and the suggestion generator."""

    secret_findings: List[SecretFinding] = field(default_factory=list)
    logging_findings: List[LoggingFinding] = field(default_factory=list)
    dependency_findings: List[DependencyFinding] = field(default_factory=list)
    warnings: List[ScanWarning] = field(default_factory=list)
    ai_suggestions: Optional[str] = None
    files_scanned: int = 0
    aborted: bool = False

    def all_findings(self) -> List[Finding]:
        return [*self.secret_findings, *self.logging_findings, *self.dependency_findings]

    def by_file(self) -> Dict[str, FileFindings]:
        """Findings grouped per file; files appear in discovery order."""
        grouped: Dict[str, FileFindings] = {}
        for finding in self.secret_findings:
            grouped.setdefault(finding.file, FileFindings()).secrets.append(finding)
        for finding in self.logging_findings:
            grouped.setdefault(finding.file, FileFindings()).logging.append(finding)
        for finding in self.dependency_findings:
            grouped.setdefault(finding.file, FileFindings()).dependencies.append(finding)
        return grouped

    def vulnerable_dependencies(self) -> List[DependencyFinding]:
        return [d for d in self.dependency_findings if d.vulnerabilities]

    def severity_counts(self) -> Dict[str, int]:
        counts = Counter(f.severity for f in self.all_findings())
        return {severity.value: counts.get(severity, 0) for severity in Severity}

    def max_severity(self) -> Severity:
        return Severity.max_of(f.severity for f in self.all_findings())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "secretFindings": [f.to_dict() for f in self.secret_findings],
            "loggingFindings": [f.to_dict() for f in self.logging_findings],
            "dependencyFindings": [f.to_dict() for f in self.dependency_findings],
            "warnings": [w.to_dict() for w in self.warnings],
            "aiSuggestions": self.ai_suggestions,
            "summary": {
                "filesScanned": self.files_scanned,
                "aborted": self.aborted,
                "severityCounts": self.severity_counts(),
            },
        }


class FindingAggregator:
    """Appends each finder's output in discovery order; owns no detection logic."""

    def __init__(self) -> None:
        self._report = ReportData()

    def add_file(
        self,
        secrets: Iterable[SecretFinding] = (),
        logging: Iterable[LoggingFinding] = (),
        warnings: Iterable[ScanWarning] = (),
    ) -> None:
        self._report.secret_findings.extend(secrets)
        self._report.logging_findings.extend(logging)
        self._report.warnings.extend(warnings)
        self._report.files_scanned += 1

    def add_dependencies(
        self,
        findings: Iterable[DependencyFinding],
        warnings: Iterable[ScanWarning] = (),
    ) -> None:
        self._report.dependency_findings.extend(findings)
        self._report.warnings.extend(warnings)

    def add_warning(self, warning: ScanWarning) -> None:
        self._report.warnings.append(warning)

    def mark_aborted(self) -> None:
        self._report.aborted = True

    def set_suggestions(self, suggestions: str) -> None:
        self._report.ai_suggestions = suggestions

    def build(self) -> ReportData:
        return self._report
