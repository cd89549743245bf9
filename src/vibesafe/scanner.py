from __future__ import annotations

import asyncio
import threading
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence

from .aggregate import FindingAggregator, ReportData
from .analyze.deterministic.dependency_scanner import scan_dependencies
from .analyze.deterministic.logging_scanner import LoggerAllowList, LoggingIssueScanner
from .analyze.deterministic.secret_scanner import scan_for_secrets
from .analyze.llm.suggestions import SuggestionGenerator
from .config import ScanConfig
from .errors import FileReadError, ParseError
from .ingest.file_classifier import FileClassification, classify_file
from .ingest.file_walker import ScanTarget, collect_files
from .ingest.manifest import resolve_manifest
from .logging import ScanLogger
from .models import LoggingFinding, ResolvedPackage, ScanWarning, SecretFinding
from .utils import safe_read_text
from .vulndb.base import VulnerabilityLookup
from .vulndb.osv import OsvLookup


@dataclass
class FileScanResult:
    file: str
    secrets: List[SecretFinding] = field(default_factory=list)
    logging: List[LoggingFinding] = field(default_factory=list)
    warnings: List[ScanWarning] = field(default_factory=list)


def scan_content(
    file_path: str,
    content: str,
    logging_scanner: LoggingIssueScanner,
    classification: Optional[FileClassification] = None,
) -> FileScanResult:
    """Run both per-file finders; a failure in one never hides the other's output."""
    classification = classification or classify_file(file_path)
    result = FileScanResult(file=file_path)

    if classification.scan_secrets:
        try:
            result.secrets = scan_for_secrets(file_path, content)
        except Exception as exc:
            result.warnings.append(ScanWarning(file_path, "secrets", f"Secret scan failed: {exc}"))

    if classification.scan_logging:
        try:
            result.logging = logging_scanner.scan(file_path, content)
        except ParseError as exc:
            result.warnings.append(ScanWarning(file_path, "logging", f"Parse failed: {exc}"))
        except Exception as exc:
            result.warnings.append(ScanWarning(file_path, "logging", f"Logging scan failed: {exc}"))

    return result


class Scanner:
    """Scans a source tree: per-file finders in parallel, then dependencies, then suggestions."""

    def __init__(
        self,
        config: Optional[ScanConfig] = None,
        *,
        logger: Optional[ScanLogger] = None,
        lookup: Optional[VulnerabilityLookup] = None,
        suggestions: Optional[SuggestionGenerator] = None,
    ) -> None:
        self.config = config or ScanConfig()
        self.logger = logger or ScanLogger(run_id=uuid.uuid4().hex[:12], level=self.config.log_level)
        self.lookup = lookup
        self.suggestions = suggestions
        self.logging_scanner = LoggingIssueScanner(
            LoggerAllowList.from_names(
                self.config.logger_object_names,
                self.config.logger_method_names,
            )
        )
        self._abort = threading.Event()

    def abort(self) -> None:
        """Stop scheduling new file scans; scans already running finish normally."""
        self._abort.set()

    @property
    def aborted(self) -> bool:
        return self._abort.is_set()

    def _scan_target(self, target: ScanTarget) -> FileScanResult:
        log = self.logger.bind(path=target.rel_path)
        try:
            content = safe_read_text(target.path, max_bytes=self.config.max_file_size_bytes)
        except FileReadError as exc:
            log.warning("file_read_failed", error=str(exc))
            return FileScanResult(
                file=target.rel_path,
                warnings=[ScanWarning(target.rel_path, "read", f"Unreadable file: {exc}")],
            )
        result = scan_content(target.rel_path, content, self.logging_scanner, target.classification)
        for warning in result.warnings:
            log.warning("file_scan_degraded", stage=warning.stage, error=warning.message)
        log.debug("file_scanned", findings=len(result.secrets) + len(result.logging))
        return result

    async def scan_files(self, targets: Sequence[ScanTarget]) -> List[FileScanResult]:
        """Scan files on worker threads, at most ``max_concurrency`` at a time.

        Results come back in ``targets`` order regardless of completion order.
        """
        semaphore = asyncio.Semaphore(self.config.max_concurrency)

        async def _run(target: ScanTarget) -> FileScanResult:
            try:
                return await asyncio.to_thread(self._scan_target, target)
            finally:
                semaphore.release()

        tasks: List[asyncio.Task] = []
        for target in targets:
            await semaphore.acquire()
            if self._abort.is_set():
                semaphore.release()
                self.logger.warning("scan_aborted", scheduled=len(tasks), total=len(targets))
                break
            tasks.append(asyncio.create_task(_run(target)))

        return list(await asyncio.gather(*tasks))

    async def _scan_dependencies(
        self,
        root: Path,
        packages: Optional[Sequence[ResolvedPackage]],
        aggregator: FindingAggregator,
    ) -> None:
        if packages is None:
            packages = resolve_manifest(root, logger=self.logger)
        if not packages:
            return

        lookup = self.lookup
        owns_lookup = lookup is None
        if lookup is None:
            lookup = OsvLookup(
                api_url=self.config.osv_api_url,
                timeout_seconds=self.config.lookup_timeout_seconds,
            )
        try:
            result = await scan_dependencies(
                packages,
                lookup,
                concurrency=self.config.lookup_concurrency,
                timeout_seconds=self.config.lookup_timeout_seconds,
                logger=self.logger,
            )
        except Exception as exc:
            self.logger.error("dependency_scan_failed", error=str(exc))
            aggregator.add_warning(ScanWarning(".", "dependencies", f"Dependency scan failed: {exc}"))
            return
        finally:
            if owns_lookup:
                await lookup.aclose()
        aggregator.add_dependencies(result.findings, result.warnings)

    async def scan(
        self,
        root: Path,
        *,
        packages: Optional[Sequence[ResolvedPackage]] = None,
        include_dependencies: bool = True,
    ) -> ReportData:
        """
        Scan ``root`` and return the aggregated report.

        ``packages`` overrides manifest resolution when the caller already has
        a resolved dependency list.
        """
        root = Path(root)
        aggregator = FindingAggregator()

        with self.logger.stage("collect_files"):
            inventory = collect_files(
                root,
                max_files=self.config.max_files,
                max_file_size_bytes=self.config.max_file_size_bytes,
                logger=self.logger,
            )
        for rel_path in inventory.skipped_too_large:
            aggregator.add_warning(ScanWarning(rel_path, "read", "File skipped: larger than size limit"))
        if inventory.truncated:
            aggregator.add_warning(
                ScanWarning(".", "read", f"File limit reached; only {self.config.max_files} files scanned")
            )

        with self.logger.stage("scan_files"):
            results = await self.scan_files(inventory.targets)
            for result in results:
                aggregator.add_file(result.secrets, result.logging, result.warnings)
            if self._abort.is_set():
                aggregator.mark_aborted()
            self.logger.info("files_scanned", count=len(results), total=len(inventory.targets))

        if include_dependencies and not self._abort.is_set():
            with self.logger.stage("dependencies"):
                await self._scan_dependencies(root, packages, aggregator)

        report = aggregator.build()
        if self.suggestions is not None:
            with self.logger.stage("suggestions"):
                aggregator.set_suggestions(
                    await self.suggestions.generate(report.secret_findings, report.dependency_findings)
                )

        counts = report.severity_counts()
        self.logger.info("scan_complete", findings=len(report.all_findings()), **counts)
        return report


def scan_path(
    root: Path,
    config: Optional[ScanConfig] = None,
    *,
    lookup: Optional[VulnerabilityLookup] = None,
    with_suggestions: bool = False,
    logger: Optional[ScanLogger] = None,
) -> ReportData:
    """Blocking entry point for callers without an event loop."""
    config = config or ScanConfig()
    suggestions = SuggestionGenerator.from_config(config, logger=logger) if with_suggestions else None
    scanner = Scanner(config, logger=logger, lookup=lookup, suggestions=suggestions)
    return asyncio.run(scanner.scan(Path(root)))
