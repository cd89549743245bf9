from __future__ import annotations

from vibesafe.aggregate import FindingAggregator
from vibesafe.constants import Severity
from vibesafe.models import DependencyFinding, LoggingFinding, ScanWarning, SecretFinding, Vulnerability


def _secret(file: str, line: int) -> SecretFinding:
    return SecretFinding(file=file, line=line, severity=Severity.CRITICAL, message="m", type="Private Key")


def _log(file: str, line: int) -> LoggingFinding:
    return LoggingFinding(file=file, line=line, severity=Severity.LOW, message="m")


def _dep(name: str, vulns) -> DependencyFinding:
    return DependencyFinding(
        file="package.json",
        line=1,
        severity=Severity.INFO,
        message="m",
        name=name,
        version="1.0.0",
        vulnerabilities=vulns,
    )


def test_aggregator_keeps_discovery_order() -> None:
    agg = FindingAggregator()
    agg.add_file([_secret("b.js", 3)], [_log("b.js", 5)])
    agg.add_file([], [_log("a.js", 1)], [ScanWarning("a.js", "logging", "Parse failed")])
    agg.add_dependencies([_dep("lodash", [Vulnerability("GHSA-1", Severity.HIGH)]), _dep("express", [])])

    report = agg.build()

    assert list(report.by_file()) == ["b.js", "a.js", "package.json"]
    assert report.files_scanned == 2
    assert [d.name for d in report.vulnerable_dependencies()] == ["lodash"]
    assert report.max_severity() == Severity.CRITICAL
    assert report.severity_counts() == {"Info": 1, "Low": 2, "Medium": 0, "High": 1, "Critical": 1}


def test_empty_report_is_info() -> None:
    report = FindingAggregator().build()
    assert report.max_severity() == Severity.INFO
    assert report.all_findings() == []


def test_report_to_dict() -> None:
    agg = FindingAggregator()
    agg.add_file([_secret("a.js", 1)])
    agg.set_suggestions("1. Rotate the key.")
    agg.mark_aborted()

    data = agg.build().to_dict()

    assert data["secretFindings"][0]["type"] == "Private Key"
    assert data["aiSuggestions"] == "1. Rotate the key."
    assert data["summary"]["aborted"] is True
    assert data["summary"]["filesScanned"] == 1
