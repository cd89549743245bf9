from __future__ import annotations

from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Callable, List, Optional, Tuple

from ..analyze.syntax.parsers import language_for_path

PARSEABLE_LANGUAGES = frozenset({"javascript", "typescript", "tsx", "python"})
SKIP_SECRET_CATEGORIES = frozenset({"generated", "lockfile"})


@dataclass(frozen=True)
class FileClassification:
    """What a file is, and therefore which finders run on it."""

    category: str
    language: str

    @property
    def scan_secrets(self) -> bool:
        return self.category not in SKIP_SECRET_CATEGORIES

    @property
    def scan_logging(self) -> bool:
        return self.category in ("source", "test") and self.language in PARSEABLE_LANGUAGES


# Source languages the secret finder still reads but no parser handles.
OTHER_SOURCE_LANGUAGES = {
    ".go": "go", ".rs": "rust", ".java": "java", ".kt": "kotlin", ".cs": "csharp",
    ".rb": "ruby", ".php": "php", ".swift": "swift", ".sh": "shell", ".bash": "shell",
}
CONFIG_LANGUAGES = {
    ".json": "json", ".yaml": "yaml", ".yml": "yaml", ".toml": "toml", ".ini": "ini",
    ".cfg": "ini", ".conf": "conf", ".properties": "properties", ".env": "env",
    ".pem": "pem", ".key": "pem",
}
DOC_LANGUAGES = {".md": "markdown", ".rst": "rst", ".txt": "text"}

LOCKFILE_NAMES = frozenset(
    {"package-lock.json", "yarn.lock", "pnpm-lock.yaml", "poetry.lock", "pipfile.lock", "cargo.lock"}
)
GENERATED_SUFFIXES = (".min.js", ".min.css", ".bundle.js", ".map")
# Dotfiles that routinely hold credentials.
CREDENTIAL_FILENAMES = frozenset(
    {"dockerfile", "docker-compose.yml", "docker-compose.yaml", ".npmrc", ".pypirc", ".netrc"}
)
TEST_DIRS = frozenset({"test", "tests", "__tests__", "spec", "specs", "fixtures"})
TEST_NAME_MARKERS = (".test.", ".spec.", "_test.", "-test.", "test_")


@dataclass(frozen=True)
class _PathInfo:
    path: str
    name: str
    ext: str
    dirs: Tuple[str, ...]

    @classmethod
    def parse(cls, path: str) -> "_PathInfo":
        normalized = path.replace("\\", "/")
        pure = PurePosixPath(normalized)
        return cls(
            path=normalized,
            name=pure.name.lower(),
            ext=pure.suffix.lower(),
            dirs=tuple(part.lower() for part in pure.parts[:-1]),
        )

    def code_language(self) -> Optional[str]:
        return language_for_path(self.path) or OTHER_SOURCE_LANGUAGES.get(self.ext)


def _lockfile(info: _PathInfo) -> Optional[FileClassification]:
    if info.name in LOCKFILE_NAMES:
        return FileClassification("lockfile", CONFIG_LANGUAGES.get(info.ext, "text"))
    return None


def _generated(info: _PathInfo) -> Optional[FileClassification]:
    if info.name.endswith(GENERATED_SUFFIXES):
        return FileClassification("generated", info.code_language() or "unknown")
    return None


def _dotenv(info: _PathInfo) -> Optional[FileClassification]:
    if info.name == ".env" or info.name.startswith(".env."):
        return FileClassification("config", "env")
    return None


def _test(info: _PathInfo) -> Optional[FileClassification]:
    in_test_dir = any(part in TEST_DIRS for part in info.dirs)
    if in_test_dir or any(marker in info.name for marker in TEST_NAME_MARKERS):
        return FileClassification("test", info.code_language() or "unknown")
    return None


def _credential_file(info: _PathInfo) -> Optional[FileClassification]:
    if info.name in CREDENTIAL_FILENAMES:
        return FileClassification("config", CONFIG_LANGUAGES.get(info.ext, "config"))
    return None


def _by_extension(info: _PathInfo) -> Optional[FileClassification]:
    language = info.code_language()
    if language:
        return FileClassification("source", language)
    if info.ext in CONFIG_LANGUAGES:
        return FileClassification("config", CONFIG_LANGUAGES[info.ext])
    if info.ext in DOC_LANGUAGES:
        return FileClassification("docs", DOC_LANGUAGES[info.ext])
    return None


# First match wins.
_RULES: List[Callable[[_PathInfo], Optional[FileClassification]]] = [
    _lockfile,
    _generated,
    _dotenv,
    _test,
    _credential_file,
    _by_extension,
]


def classify_file(path: str) -> FileClassification:
    info = _PathInfo.parse(path)
    for rule in _RULES:
        classification = rule(info)
        if classification is not None:
            return classification
    return FileClassification("other", "unknown")
