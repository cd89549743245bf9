from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from ...constants import Severity
from ...errors import VulnerabilityLookupError
from ...logging import NullLogger, ScanLogger
from ...models import DependencyFinding, ResolvedPackage, ScanWarning, Vulnerability
from ...vulndb.base import VulnerabilityLookup

DEFAULT_LOOKUP_CONCURRENCY = 8
DEFAULT_LOOKUP_TIMEOUT_SECONDS = 15.0


@dataclass
class DependencyScanResult:
    findings: List[DependencyFinding] = field(default_factory=list)
    warnings: List[ScanWarning] = field(default_factory=list)


def build_dependency_finding(
    package: ResolvedPackage,
    vulnerabilities: Sequence[Vulnerability],
) -> DependencyFinding:
    """One finding per package, vulnerable or not (Info when clean)."""
    vulns = tuple(vulnerabilities)
    max_severity = Severity.max_of(v.severity for v in vulns)
    if vulns:
        message = (
            f"{package.name}@{package.version} has {len(vulns)} known "
            f"vulnerabilit{'y' if len(vulns) == 1 else 'ies'} (max severity {max_severity.value})"
        )
    else:
        message = f"{package.name}@{package.version} has no known vulnerabilities"
    return DependencyFinding(
        file=package.manifest or "package.json",
        line=1,
        severity=max_severity,
        message=message,
        name=package.name,
        version=package.version,
        vulnerabilities=vulns,
    )


def lookup_failed_finding(package: ResolvedPackage, reason: str) -> DependencyFinding:
    return DependencyFinding(
        file=package.manifest or "package.json",
        line=1,
        severity=Severity.INFO,
        message=(
            f"{package.name}@{package.version}: vulnerability status unknown "
            f"(lookup failed: {reason})"
        ),
        name=package.name,
        version=package.version,
        vulnerabilities=(),
        lookup_failed=True,
    )


async def scan_dependencies(
    packages: Sequence[ResolvedPackage],
    lookup: VulnerabilityLookup,
    *,
    concurrency: int = DEFAULT_LOOKUP_CONCURRENCY,
    timeout_seconds: float = DEFAULT_LOOKUP_TIMEOUT_SECONDS,
    logger: Optional[ScanLogger] = None,
) -> DependencyScanResult:
    """
    Look up every package and build one DependencyFinding per package.

    Lookups fan out concurrently up to ``concurrency``; each is bounded by
    ``timeout_seconds``. A failed or timed-out lookup becomes an Info finding
    flagged ``lookup_failed`` plus a warning. Output order matches input order.
    """
    logger = logger or NullLogger()
    semaphore = asyncio.Semaphore(max(int(concurrency), 1))

    async def _one(package: ResolvedPackage) -> tuple[DependencyFinding, Optional[ScanWarning]]:
        async with semaphore:
            try:
                vulns = await asyncio.wait_for(lookup.lookup(package), timeout=timeout_seconds)
            except asyncio.TimeoutError:
                reason = f"timeout after {timeout_seconds}s"
            except VulnerabilityLookupError as exc:
                reason = exc.reason
            except Exception as exc:
                reason = f"{type(exc).__name__}: {exc}"
            else:
                return build_dependency_finding(package, vulns), None

        logger.warning(
            "dependency_lookup_failed",
            package=package.name,
            version=package.version,
            error=reason,
        )
        warning = ScanWarning(
            file=package.manifest or "package.json",
            stage="dependencies",
            message=f"Vulnerability lookup failed for {package.name}@{package.version}: {reason}",
        )
        return lookup_failed_finding(package, reason), warning

    outcomes = await asyncio.gather(*(_one(package) for package in packages))

    result = DependencyScanResult()
    for finding, warning in outcomes:
        result.findings.append(finding)
        if warning is not None:
            result.warnings.append(warning)
    return result
