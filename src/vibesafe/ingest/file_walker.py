from __future__ import annotations

import fnmatch
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from ..constants import Limits
from ..logging import NullLogger, ScanLogger
from .file_classifier import FileClassification, classify_file

IGNORE_FILES = (".gitignore", ".vibesafeignore")
DEFAULT_IGNORED_DIRS = frozenset(
    {
        ".git",
        ".hg",
        ".svn",
        "node_modules",
        "bower_components",
        "dist",
        "build",
        "coverage",
        ".next",
        ".nuxt",
        "__pycache__",
        ".venv",
        "venv",
        ".tox",
        ".mypy_cache",
        ".pytest_cache",
    }
)


@dataclass(frozen=True)
class ScanTarget:
    path: Path
    rel_path: str
    size_bytes: int
    classification: FileClassification


@dataclass
class FileInventory:
    targets: List[ScanTarget] = field(default_factory=list)
    skipped_too_large: List[str] = field(default_factory=list)
    truncated: bool = False


def load_ignore_patterns(repo_root: Path) -> List[str]:
    patterns: List[str] = []
    for name in IGNORE_FILES:
        ignore_path = repo_root / name
        if not ignore_path.is_file():
            continue
        try:
            raw = ignore_path.read_text(encoding="utf-8")
        except OSError:
            continue
        for line in raw.splitlines():
            stripped = line.strip()
            if not stripped or stripped.startswith("#"):
                continue
            patterns.append(stripped)
    return patterns


def matches_ignore(path: str, patterns: List[str]) -> bool:
    if not patterns:
        return False
    normalized = path.replace("\\", "/")
    ignored = False
    for pattern in patterns:
        negated = pattern.startswith("!")
        pat = pattern[1:] if negated else pattern
        pat = pat.strip().lstrip("/")
        if not pat:
            continue
        if pat.endswith("/"):
            prefix = pat.rstrip("/")
            match = normalized.startswith(prefix + "/") or f"/{prefix}/" in f"/{normalized}"
        elif "/" in pat:
            match = fnmatch.fnmatch(normalized, pat)
        else:
            match = fnmatch.fnmatch(Path(normalized).name, pat) or fnmatch.fnmatch(normalized, pat)
        if match:
            ignored = not negated
    return ignored


def collect_files(
    repo_root: Path,
    *,
    max_files: int = Limits.MAX_FILES,
    max_file_size_bytes: int = Limits.MAX_FILE_SIZE,
    logger: Optional[ScanLogger] = None,
) -> FileInventory:
    """Walk ``repo_root`` and return scan targets in sorted path order."""
    logger = logger or NullLogger()
    repo_root = repo_root.resolve()
    patterns = load_ignore_patterns(repo_root)
    inventory = FileInventory()

    for dirpath, dirnames, filenames in os.walk(repo_root):
        rel_dir = Path(dirpath).relative_to(repo_root).as_posix()
        rel_dir = "" if rel_dir == "." else rel_dir
        dirnames[:] = sorted(
            d
            for d in dirnames
            if d not in DEFAULT_IGNORED_DIRS
            and not matches_ignore(f"{rel_dir}/{d}/".lstrip("/"), patterns)
        )
        for filename in sorted(filenames):
            rel_path = f"{rel_dir}/{filename}".lstrip("/")
            if filename in IGNORE_FILES or matches_ignore(rel_path, patterns):
                continue
            full_path = Path(dirpath) / filename
            if full_path.is_symlink() or not full_path.is_file():
                continue
            try:
                size_bytes = full_path.stat().st_size
            except OSError as exc:
                logger.warning("file_stat_failed", path=rel_path, error=str(exc))
                continue
            if size_bytes > max_file_size_bytes:
                inventory.skipped_too_large.append(rel_path)
                continue
            if len(inventory.targets) >= max_files:
                inventory.truncated = True
                break
            inventory.targets.append(
                ScanTarget(
                    path=full_path,
                    rel_path=rel_path,
                    size_bytes=size_bytes,
                    classification=classify_file(rel_path),
                )
            )
        if inventory.truncated:
            break

    if inventory.truncated:
        logger.warning("file_limit_reached", max_files=max_files)
    if inventory.skipped_too_large:
        logger.warning("oversized_files_skipped", count=len(inventory.skipped_too_large))
    return inventory
