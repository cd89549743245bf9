from __future__ import annotations

import threading
import time
from pathlib import Path
from unittest.mock import patch

import pytest

from vibesafe.analyze.deterministic.logging_scanner import LoggingIssueScanner
from vibesafe.config import ScanConfig
from vibesafe.ingest.file_walker import ScanTarget, collect_files
from vibesafe.logging import NullLogger
from vibesafe.models import LoggingIssueType
from vibesafe.scanner import Scanner, scan_content


def test_scan_content_runs_both_finders(aws_key_id: str) -> None:
    content = f'const k = "{aws_key_id}";\ntry {{}} catch (err) {{ console.error(err); }}\n'
    result = scan_content("src/app.js", content, LoggingIssueScanner())
    assert [f.line for f in result.secrets] == [1]
    assert [(f.type, f.line) for f in result.logging] == [(LoggingIssueType.UNSANITIZED_ERROR_LOG, 2)]
    assert result.warnings == []


def test_parse_failure_keeps_secret_findings(aws_key_id: str) -> None:
    content = f'const k = "{aws_key_id}";\nconsole.log(err\n'
    result = scan_content("src/broken.js", content, LoggingIssueScanner())
    assert len(result.secrets) == 1
    assert result.logging == []
    assert [(w.stage, w.file) for w in result.warnings] == [("logging", "src/broken.js")]
    assert result.warnings[0].message.startswith("Parse failed")


def test_secret_finder_failure_is_isolated() -> None:
    with patch("vibesafe.scanner.scan_for_secrets", side_effect=RuntimeError("boom")):
        result = scan_content("src/app.js", "console.log(password);", LoggingIssueScanner())
    assert [w.stage for w in result.warnings] == ["secrets"]
    assert len(result.logging) == 1


def test_non_parseable_file_gets_secret_scan_only(aws_key_id: str) -> None:
    result = scan_content("config/.env", f"KEY={aws_key_id}\nconsole.log(err)\n", LoggingIssueScanner())
    assert len(result.secrets) == 1
    assert result.logging == []


@pytest.mark.anyio
async def test_scan_files_preserves_order(tmp_path: Path) -> None:
    for i in range(12):
        (tmp_path / f"f{i:02d}.js").write_text(f"console.log(password{i});\n")
    scanner = Scanner(ScanConfig(max_concurrency=3), logger=NullLogger())
    targets = collect_files(tmp_path).targets

    results = await scanner.scan_files(targets)

    assert [r.file for r in results] == [t.rel_path for t in targets]
    assert all(len(r.logging) == 1 for r in results)


@pytest.mark.anyio
async def test_scan_files_never_exceeds_max_concurrency(tmp_path: Path) -> None:
    for i in range(12):
        (tmp_path / f"f{i:02d}.js").write_text("console.log(err);\n")
    scanner = Scanner(ScanConfig(max_concurrency=3), logger=NullLogger())
    scan_target = scanner._scan_target
    lock = threading.Lock()
    running = 0
    peak = 0

    def tracking(target: ScanTarget):
        nonlocal running, peak
        with lock:
            running += 1
            peak = max(peak, running)
        try:
            time.sleep(0.05)
            return scan_target(target)
        finally:
            with lock:
                running -= 1

    scanner._scan_target = tracking
    results = await scanner.scan_files(collect_files(tmp_path).targets)

    assert len(results) == 12
    assert 1 < peak <= 3


@pytest.mark.anyio
async def test_abort_mid_scan_stops_scheduling_but_finishes_in_flight(tmp_path: Path) -> None:
    for i in range(6):
        (tmp_path / f"f{i:02d}.js").write_text("console.log(err);\n")
    scanner = Scanner(ScanConfig(max_concurrency=2), logger=NullLogger())
    scan_target = scanner._scan_target
    started: list[str] = []

    def aborting(target: ScanTarget):
        started.append(target.rel_path)
        if len(started) == 1:
            scanner.abort()
            time.sleep(0.05)
        return scan_target(target)

    scanner._scan_target = aborting
    report = await scanner.scan(tmp_path, include_dependencies=False)

    assert report.aborted is True
    assert 1 <= report.files_scanned < 6
    assert report.files_scanned == len(started)
    assert sorted({f.file for f in report.logging_findings}) == sorted(started)


@pytest.mark.anyio
async def test_abort_before_scan_schedules_nothing(tmp_path: Path) -> None:
    (tmp_path / "a.js").write_text("console.log(err);\n")
    scanner = Scanner(ScanConfig(), logger=NullLogger())
    scanner.abort()

    report = await scanner.scan(tmp_path, include_dependencies=False)

    assert scanner.aborted
    assert report.aborted is True
    assert report.files_scanned == 0


@pytest.mark.anyio
async def test_unreadable_file_becomes_warning(tmp_path: Path) -> None:
    (tmp_path / "image.js").write_bytes(b"\x00\x01binary")
    scanner = Scanner(ScanConfig(), logger=NullLogger())

    results = await scanner.scan_files(collect_files(tmp_path).targets)

    assert [(w.stage, w.file) for w in results[0].warnings] == [("read", "image.js")]
