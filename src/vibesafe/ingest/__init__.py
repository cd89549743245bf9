"""File discovery and dependency manifest resolution."""

from .file_classifier import FileClassification, classify_file
from .file_walker import FileInventory, ScanTarget, collect_files, load_ignore_patterns, matches_ignore
from .manifest import resolve_manifest

__all__ = [
    "FileClassification",
    "FileInventory",
    "ScanTarget",
    "classify_file",
    "collect_files",
    "load_ignore_patterns",
    "matches_ignore",
    "resolve_manifest",
]
