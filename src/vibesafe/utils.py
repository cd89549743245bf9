from __future__ import annotations

from bisect import bisect_right
from pathlib import Path
from typing import List

from .errors import FileReadError

BINARY_SNIFF_BYTES = 8192


def safe_read_text(path: Path, max_bytes: int = 5_000_000) -> str:
    """Read a text file for scanning. Raises FileReadError for unreadable, oversized or binary files."""
    try:
        data = path.read_bytes()
    except OSError as exc:
        raise FileReadError(f"Cannot read {path}: {exc.strerror or exc}") from exc
    if len(data) > max_bytes:
        raise FileReadError(f"File too large: {path} ({len(data)} bytes)")
    if b"\x00" in data[:BINARY_SNIFF_BYTES]:
        raise FileReadError(f"Binary file: {path}")
    return data.decode("utf-8", errors="replace")


def truncate_snippet(snippet: str, max_chars: int) -> str:
    if len(snippet) <= max_chars:
        return snippet
    if max_chars <= 3:
        return snippet[:max_chars]
    return f"{snippet[: max_chars - 3]}..."


def build_line_starts(content: str) -> List[int]:
    line_starts: List[int] = []
    offset = 0
    for line in content.splitlines(keepends=True):
        line_starts.append(offset)
        offset += len(line)
    if not line_starts:
        line_starts.append(0)
    return line_starts


def index_to_line(line_starts: List[int], idx: int) -> int:
    """Map a character offset to its 1-based line number."""
    return bisect_right(line_starts, idx)
