"""Deterministic finders."""

from .dependency_scanner import DependencyScanResult, build_dependency_finding, scan_dependencies
from .entropy import calculate_entropy, is_high_entropy
from .logging_scanner import LoggerAllowList, LoggingIssueScanner, scan_for_logging_issues
from .patterns import SECRET_PATTERNS, SecretPattern, match_candidate
from .secret_scanner import scan_for_secrets

__all__ = [
    "DependencyScanResult",
    "LoggerAllowList",
    "LoggingIssueScanner",
    "SECRET_PATTERNS",
    "SecretPattern",
    "build_dependency_finding",
    "calculate_entropy",
    "is_high_entropy",
    "match_candidate",
    "scan_dependencies",
    "scan_for_logging_issues",
    "scan_for_secrets",
]
