from __future__ import annotations

from pathlib import Path

import pytest

from vibesafe.errors import FileReadError
from vibesafe.utils import build_line_starts, index_to_line, safe_read_text, truncate_snippet


def test_index_to_line() -> None:
    content = "first\nsecond\n\nfourth"
    starts = build_line_starts(content)
    assert index_to_line(starts, 0) == 1
    assert index_to_line(starts, content.index("second")) == 2
    assert index_to_line(starts, content.index("fourth")) == 4


def test_line_starts_of_empty_content() -> None:
    assert build_line_starts("") == [0]


def test_truncate_snippet() -> None:
    assert truncate_snippet("short", 10) == "short"
    assert truncate_snippet("a" * 20, 10) == "aaaaaaa..."


def test_safe_read_text_rejects_binary(tmp_path: Path) -> None:
    path = tmp_path / "blob.bin"
    path.write_bytes(b"\x89PNG\x00\x00")
    with pytest.raises(FileReadError):
        safe_read_text(path)


def test_safe_read_text_rejects_large(tmp_path: Path) -> None:
    path = tmp_path / "big.js"
    path.write_text("x" * 100)
    with pytest.raises(FileReadError):
        safe_read_text(path, max_bytes=10)


def test_safe_read_text_replaces_invalid_utf8(tmp_path: Path) -> None:
    path = tmp_path / "latin.js"
    path.write_bytes(b"caf\xe9")
    assert safe_read_text(path) == "caf�"


def test_safe_read_text_missing_file(tmp_path: Path) -> None:
    with pytest.raises(FileReadError):
        safe_read_text(tmp_path / "gone.js")
