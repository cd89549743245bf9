from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, List, Optional

from ...constants import Limits, Severity
from ...errors import ParseError
from ...models import LoggingFinding, LoggingIssueType
from ..syntax.nodes import Call, Identifier, Member, SyntaxNode, SyntaxTree, walk
from ..syntax.parsers import parse_source

ERROR_VARIABLE_NAMES: FrozenSet[str] = frozenset({"err", "error", "e"})
STACK_PROPERTY_NAME = "stack"
SENSITIVE_DATA_RE = re.compile(r"password|email|token|ssn|secret|key|credential", re.IGNORECASE)


@dataclass(frozen=True)
class LoggerAllowList:
    """Receiver/method name pairs treated as logger calls."""

    object_names: FrozenSet[str] = field(default_factory=lambda: frozenset({"console", "log", "logger"}))
    method_names: FrozenSet[str] = field(
        default_factory=lambda: frozenset({"log", "info", "warn", "error", "debug"})
    )

    @classmethod
    def from_names(cls, object_names: Iterable[str], method_names: Iterable[str]) -> "LoggerAllowList":
        return cls(object_names=frozenset(object_names), method_names=frozenset(method_names))

    def receiver_name(self, node: SyntaxNode) -> Optional[str]:
        """Name of the logger receiver: a bare identifier or the last property of a member chain."""
        if isinstance(node, Identifier):
            name = node.name
        elif isinstance(node, Member) and isinstance(node.property, Identifier):
            name = node.property.name
        else:
            return None
        return name if name in self.object_names else None

    def match(self, call: Call) -> Optional[tuple[str, str]]:
        callee = call.callee
        if not isinstance(callee, Member) or not isinstance(callee.property, Identifier):
            return None
        method = callee.property.name
        if method not in self.method_names:
            return None
        receiver = self.receiver_name(callee.object)
        if receiver is None:
            return None
        return receiver, method


DEFAULT_ALLOW_LIST = LoggerAllowList()


def _is_error_like(arg: SyntaxNode) -> bool:
    if isinstance(arg, Identifier):
        return arg.name in ERROR_VARIABLE_NAMES
    if isinstance(arg, Member):
        return isinstance(arg.property, Identifier) and arg.property.name == STACK_PROPERTY_NAME
    return False


def _preview(text: str, limit: int) -> str:
    return f"{text[:limit]}{'...' if len(text) > limit else ''}"


class LoggingIssueScanner:
    """Flags logger calls that print raw errors/stack traces or sensitive-looking values."""

    def __init__(self, allow_list: LoggerAllowList = DEFAULT_ALLOW_LIST) -> None:
        self.allow_list = allow_list

    def scan(self, file_path: str, content: str) -> List[LoggingFinding]:
        """Parse and scan one file. Raises ``ParseError`` when the file cannot be parsed."""
        tree = parse_source(file_path, content)
        return self.scan_tree(file_path, tree)

    def scan_tree(self, file_path: str, tree: SyntaxTree) -> List[LoggingFinding]:
        findings: List[LoggingFinding] = []

        def visit(node: SyntaxNode) -> None:
            if isinstance(node, Call):
                self._check_call(file_path, tree, node, findings)

        walk(tree.root, visit)
        return findings

    def _check_call(
        self,
        file_path: str,
        tree: SyntaxTree,
        call: Call,
        findings: List[LoggingFinding],
    ) -> None:
        matched = self.allow_list.match(call)
        if matched is None:
            return
        receiver, method = matched
        line = call.loc.line
        call_text = tree.text(call)

        if call.arguments and _is_error_like(call.arguments[0]):
            already = any(
                f.line == line and f.type is LoggingIssueType.UNSANITIZED_ERROR_LOG for f in findings
            )
            if not already:
                variable = tree.text(call.arguments[0])
                findings.append(
                    LoggingFinding(
                        file=file_path,
                        line=line,
                        severity=Severity.LOW,
                        message=(
                            "Potential logging of unsanitized error object/stack trace "
                            f"using variable '{variable}'."
                        ),
                        type=LoggingIssueType.UNSANITIZED_ERROR_LOG,
                        details=f"Found call: {_preview(call_text, Limits.MAX_DETAILS_SNIPPET)}",
                        snippet=call_text[: Limits.MAX_SNIPPET_LENGTH],
                    )
                )

        for index, arg in enumerate(call.arguments):
            arg_text = tree.text(arg)
            match = SENSITIVE_DATA_RE.search(arg_text)
            if not match:
                continue
            preview = arg_text[: Limits.MAX_DETAILS_SNIPPET].strip()
            # Near-duplicate arguments on one line collapse by snippet prefix.
            duplicate = any(
                f.line == line
                and f.type is LoggingIssueType.PII_LOG
                and (f.snippet or "").startswith(preview)
                for f in findings
            )
            if duplicate:
                continue
            ellipsis = "..." if len(arg_text) > Limits.MAX_DETAILS_SNIPPET else ""
            findings.append(
                LoggingFinding(
                    file=file_path,
                    line=line,
                    severity=Severity.MEDIUM,
                    message=f"Potential logging of sensitive data (matched keyword: '{match.group(0)}').",
                    type=LoggingIssueType.PII_LOG,
                    details=(
                        f"Found potential PII in argument {index + 1} of {receiver}.{method} call "
                        f"near line {line}. Snippet: {preview}{ellipsis}"
                    ),
                    snippet=arg_text[: Limits.MAX_SNIPPET_LENGTH],
                )
            )


def scan_for_logging_issues(
    file_path: str,
    content: str,
    allow_list: LoggerAllowList = DEFAULT_ALLOW_LIST,
) -> List[LoggingFinding]:
    """Non-raising convenience wrapper: a parse failure yields no findings."""
    try:
        return LoggingIssueScanner(allow_list).scan(file_path, content)
    except ParseError:
        return []
