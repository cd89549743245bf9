from __future__ import annotations

import re
from pathlib import PurePosixPath
from typing import Iterable, List, Optional, Sequence, Tuple

from ...constants import Limits
from ...models import SecretFinding
from ...utils import build_line_starts, index_to_line, truncate_snippet
from .entropy import calculate_entropy
from .patterns import SECRET_PATTERNS, SecretPattern

Span = Tuple[int, int]

_ENV_ASSIGN_RE = re.compile(r"^\s*(?:export\s+)?[A-Za-z_][A-Za-z0-9_.-]*\s*[=:](?!=)")
_ENV_STYLE_SUFFIXES = frozenset({".properties", ".sh", ".bash", ".zsh"})
_PLACEHOLDER_RE = re.compile(
    r"example|placeholder|changeme|change_me|dummy|sample|fake|your[_-]|x{4,}",
    re.IGNORECASE,
)


def mask_secret(value: str, keep: int = 4) -> str:
    if len(value) <= keep:
        return "*" * len(value)
    return f"{value[:keep]}****"


def _overlaps(span: Span, spans: Iterable[Span]) -> bool:
    for other in spans:
        if span[0] < other[1] and other[0] < span[1]:
            return True
    return False


def is_env_style_file(file_path: str) -> bool:
    """Files made of NAME=value lines: dotenv, Java properties, shell scripts."""
    name = PurePosixPath(file_path.replace("\\", "/")).name.lower()
    if name in (".env", ".envrc") or name.startswith(".env."):
        return True
    return PurePosixPath(name).suffix in _ENV_STYLE_SUFFIXES


def _suppression_reason(source_line: str, start: int, end: int, env_style: bool) -> Optional[str]:
    if env_style and _ENV_ASSIGN_RE.match(source_line):
        return "environment-style assignment"
    # The matched value itself never counts as placeholder text.
    surrounding = source_line[:start] + " " + source_line[end:]
    if _PLACEHOLDER_RE.search(surrounding):
        return "placeholder/example value on line"
    return None


def _source_line(lines: Sequence[str], line_no: int) -> str:
    return lines[line_no - 1] if 0 < line_no <= len(lines) else ""


def scan_for_secrets(
    file_path: str,
    content: str,
    patterns: Sequence[SecretPattern] = SECRET_PATTERNS,
) -> List[SecretFinding]:
    """Find hard-coded secrets in ``content``.

    Structural patterns run first; entropy-gated patterns then skip any span
    already claimed by a structural match. Matches on environment-style
    assignment lines or next to placeholder text are downgraded one severity
    level instead of being dropped. The environment-style rule only applies to
    files that are made of assignments (see ``is_env_style_file``).
    """
    env_style = is_env_style_file(file_path)
    line_starts = build_line_starts(content)
    lines = content.splitlines()
    findings: List[SecretFinding] = []
    structural_spans: List[Span] = []

    ordered = [p for p in patterns if not p.requires_entropy] + [p for p in patterns if p.requires_entropy]
    for pattern in ordered:
        accepted: List[Tuple[int, Span]] = []
        for match in pattern.finditer(content):
            span = match.span()
            if span[0] == span[1]:
                continue
            candidate = match.group(0)
            if pattern.requires_entropy:
                if _overlaps(span, structural_spans):
                    continue
                if not pattern.accepts(candidate):
                    continue

            line_no = index_to_line(line_starts, span[0])
            if any(line == line_no and _overlaps(span, [prev]) for line, prev in accepted):
                continue
            accepted.append((line_no, span))
            if not pattern.requires_entropy:
                structural_spans.append(span)

            severity = pattern.severity
            source_line = _source_line(lines, line_no)
            offset = span[0] - line_starts[line_no - 1]
            details = f"{pattern.recommendation}. Matched at column {offset + 1}."
            reason = _suppression_reason(source_line, offset, offset + len(candidate), env_style)
            if reason:
                severity = severity.downgrade()
                details += f" Severity lowered from {pattern.severity.value} ({reason})."
            if pattern.requires_entropy:
                details += f" Entropy {calculate_entropy(candidate):.2f} bits/char."

            findings.append(
                SecretFinding(
                    file=file_path,
                    line=line_no,
                    severity=severity,
                    message=pattern.message,
                    type=pattern.name,
                    snippet=truncate_snippet(mask_secret(candidate), Limits.MAX_SNIPPET_LENGTH),
                    details=details,
                    span=span,
                )
            )

    return findings
