from __future__ import annotations

import json
import re
import tomllib
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from ..logging import NullLogger, ScanLogger
from ..models import ResolvedPackage

_REQUIREMENT_PIN_RE = re.compile(r"^\s*([A-Za-z0-9][A-Za-z0-9._-]*)(?:\[[^\]]*\])?\s*===?\s*([^\s;#]+)")
_NPM_RANGE_PREFIX_RE = re.compile(r"^[\^~>=<v\s]+")
_PLAIN_VERSION_RE = re.compile(r"^\d+(?:\.\d+){0,3}(?:[-+][0-9A-Za-z.-]+)?$")


def _read_json(path: Path, logger: ScanLogger) -> Optional[dict]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("manifest_read_failed", path=path.name, error=str(exc))
        return None
    return data if isinstance(data, dict) else None


def _npm_lock_packages(path: Path, logger: ScanLogger) -> List[ResolvedPackage]:
    data = _read_json(path, logger)
    if data is None:
        return []
    found: Dict[Tuple[str, str], ResolvedPackage] = {}
    packages = data.get("packages")
    if isinstance(packages, dict):
        for key, meta in packages.items():
            if not key or not isinstance(meta, dict):
                continue
            name = meta.get("name") or key.rsplit("node_modules/", 1)[-1]
            version = meta.get("version")
            if name and isinstance(version, str) and not meta.get("link"):
                found.setdefault((name, version), ResolvedPackage(name, version, "npm", path.name))
    else:
        dependencies = data.get("dependencies")
        if isinstance(dependencies, dict):
            for name, meta in dependencies.items():
                version = meta.get("version") if isinstance(meta, dict) else None
                if isinstance(version, str):
                    found.setdefault((name, version), ResolvedPackage(name, version, "npm", path.name))
    return list(found.values())


def _package_json_packages(path: Path, logger: ScanLogger) -> List[ResolvedPackage]:
    data = _read_json(path, logger)
    if data is None:
        return []
    resolved: List[ResolvedPackage] = []
    for section in ("dependencies", "devDependencies"):
        deps = data.get(section)
        if not isinstance(deps, dict):
            continue
        for name, spec in deps.items():
            if not isinstance(spec, str):
                continue
            version = _NPM_RANGE_PREFIX_RE.sub("", spec.strip())
            # Ranges, tags, git and file specs cannot be looked up as a single version.
            if not _PLAIN_VERSION_RE.match(version):
                logger.debug("manifest_unpinned_dependency", package=name, spec=spec)
                continue
            resolved.append(ResolvedPackage(name, version, "npm", path.name))
    return resolved


def _requirements_packages(path: Path, logger: ScanLogger) -> List[ResolvedPackage]:
    try:
        text = path.read_text(encoding="utf-8", errors="ignore")
    except OSError as exc:
        logger.warning("manifest_read_failed", path=path.name, error=str(exc))
        return []
    resolved: List[ResolvedPackage] = []
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith(("#", "-")):
            continue
        match = _REQUIREMENT_PIN_RE.match(stripped)
        if match:
            resolved.append(ResolvedPackage(match.group(1), match.group(2), "PyPI", path.name))
    return resolved


def _poetry_lock_packages(path: Path, logger: ScanLogger) -> List[ResolvedPackage]:
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except (OSError, tomllib.TOMLDecodeError) as exc:
        logger.warning("manifest_read_failed", path=path.name, error=str(exc))
        return []
    resolved: List[ResolvedPackage] = []
    for entry in data.get("package", []):
        if isinstance(entry, dict) and entry.get("name") and entry.get("version"):
            resolved.append(ResolvedPackage(str(entry["name"]), str(entry["version"]), "PyPI", path.name))
    return resolved


def _pipfile_lock_packages(path: Path, logger: ScanLogger) -> List[ResolvedPackage]:
    data = _read_json(path, logger)
    if data is None:
        return []
    resolved: List[ResolvedPackage] = []
    for section in ("default", "develop"):
        entries = data.get(section)
        if not isinstance(entries, dict):
            continue
        for name, meta in entries.items():
            version = meta.get("version") if isinstance(meta, dict) else None
            if isinstance(version, str) and version.startswith("=="):
                resolved.append(ResolvedPackage(name, version[2:], "PyPI", path.name))
    return resolved


def resolve_manifest(repo_root: Path, logger: Optional[ScanLogger] = None) -> List[ResolvedPackage]:
    """
    Resolve the project's dependency manifest into (name, version) pairs.

    Lockfiles win over declaration files: package-lock.json over package.json,
    poetry.lock / Pipfile.lock over requirements.txt. Both ecosystems are
    collected when present.
    """
    logger = logger or NullLogger()
    packages: List[ResolvedPackage] = []

    npm_lock = repo_root / "package-lock.json"
    package_json = repo_root / "package.json"
    if npm_lock.is_file():
        packages.extend(_npm_lock_packages(npm_lock, logger))
    elif package_json.is_file():
        packages.extend(_package_json_packages(package_json, logger))

    poetry_lock = repo_root / "poetry.lock"
    pipfile_lock = repo_root / "Pipfile.lock"
    requirements = repo_root / "requirements.txt"
    if poetry_lock.is_file():
        packages.extend(_poetry_lock_packages(poetry_lock, logger))
    elif pipfile_lock.is_file():
        packages.extend(_pipfile_lock_packages(pipfile_lock, logger))
    elif requirements.is_file():
        packages.extend(_requirements_packages(requirements, logger))

    logger.info("manifest_resolved", packages=len(packages))
    return packages
