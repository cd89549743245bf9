"""Parser adapters producing ``SyntaxTree`` values.

JavaScript and TypeScript go through tree-sitter; Python goes through the
standard ``ast`` module. Any syntax error is reported as ``ParseError`` so
callers can treat the file as unparseable.
"""

from __future__ import annotations

import ast
from functools import lru_cache
from pathlib import PurePosixPath
from typing import List, Optional

import tree_sitter_javascript
import tree_sitter_typescript
from tree_sitter import Language, Node, Parser

from ...errors import ParseError
from .nodes import Call, Identifier, Location, Member, Other, SyntaxNode, SyntaxTree

LANGUAGE_BY_EXTENSION = {
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".ts": "typescript",
    ".mts": "typescript",
    ".cts": "typescript",
    ".tsx": "tsx",
    ".py": "python",
}

_TS_IDENTIFIER_TYPES = frozenset({"identifier", "property_identifier", "private_property_identifier"})


def language_for_path(path: str) -> Optional[str]:
    suffix = PurePosixPath(path.replace("\\", "/")).suffix.lower()
    if path.lower().endswith(".d.ts"):
        return None
    return LANGUAGE_BY_EXTENSION.get(suffix)


def parse_source(path: str, content: str, language: Optional[str] = None) -> SyntaxTree:
    """Parse ``content`` into a ``SyntaxTree``; raises ``ParseError`` on failure."""
    language = language or language_for_path(path)
    if language is None:
        raise ParseError(f"No parser registered for {path}")
    if language == "python":
        return _parse_python(path, content)
    return _parse_tree_sitter(path, content, language)


def _encode(path: str, content: str) -> bytes:
    try:
        return content.encode("utf-8")
    except UnicodeEncodeError as exc:
        raise ParseError(f"Source is not valid Unicode in {path}: {exc.reason}") from exc


# --- tree-sitter (JavaScript / TypeScript) ---------------------------------


@lru_cache(maxsize=None)
def _ts_language(language: str) -> Language:
    if language == "javascript":
        return Language(tree_sitter_javascript.language())
    if language == "typescript":
        return Language(tree_sitter_typescript.language_typescript())
    if language == "tsx":
        return Language(tree_sitter_typescript.language_tsx())
    raise ParseError(f"Unsupported tree-sitter language: {language}")


def _parse_tree_sitter(path: str, content: str, language: str) -> SyntaxTree:
    source = _encode(path, content)
    # Parser instances are not shared between threads.
    parser = Parser(_ts_language(language))
    tree = parser.parse(source)
    root = tree.root_node
    if root.has_error:
        raise ParseError(f"Syntax error in {path}")
    try:
        converted = _convert_ts(root, source)
    except RecursionError as exc:
        raise ParseError(f"Syntax tree too deep in {path}") from exc
    return SyntaxTree(root=converted, source=source, language=language)


def _ts_location(node: Node) -> Location:
    row, col = node.start_point
    return Location(start=node.start_byte, end=node.end_byte, line=row + 1, column=col)


def _ts_unwrap(node: Node) -> Node:
    # ESTree has no parenthesized-expression node; mirror that.
    while node.type == "parenthesized_expression" and node.named_child_count == 1:
        node = node.named_children[0]
    return node


def _ts_named(node: Node) -> List[Node]:
    return [child for child in node.named_children if child.type != "comment"]


def _convert_ts(node: Node, source: bytes) -> SyntaxNode:
    node = _ts_unwrap(node)
    loc = _ts_location(node)

    if node.type == "call_expression":
        function = node.child_by_field_name("function")
        args_node = node.child_by_field_name("arguments")
        if function is not None:
            if args_node is None:
                arguments = []
            elif args_node.type == "arguments":
                arguments = [_convert_ts(arg, source) for arg in _ts_named(args_node)]
            else:
                # Tagged template: the template string is the only argument.
                arguments = [_convert_ts(args_node, source)]
            return Call(callee=_convert_ts(function, source), arguments=tuple(arguments), loc=loc)

    if node.type == "member_expression":
        obj = node.child_by_field_name("object")
        prop = node.child_by_field_name("property")
        if obj is not None and prop is not None:
            return Member(object=_convert_ts(obj, source), property=_convert_ts(prop, source), loc=loc)

    if node.type in _TS_IDENTIFIER_TYPES:
        name = source[node.start_byte : node.end_byte].decode("utf-8", errors="replace")
        return Identifier(name=name, loc=loc)

    return Other(
        kind=node.type,
        children=tuple(_convert_ts(child, source) for child in _ts_named(node)),
        loc=loc,
    )


# --- Python (stdlib ast) ----------------------------------------------------


class _PythonConverter:
    def __init__(self, source: bytes) -> None:
        self.source = source
        self.line_starts: List[int] = []
        offset = 0
        for line in source.splitlines(keepends=True):
            self.line_starts.append(offset)
            offset += len(line)
        self.line_starts.append(offset)

    def _offset(self, lineno: int, col: int) -> int:
        index = min(max(lineno - 1, 0), len(self.line_starts) - 1)
        return self.line_starts[index] + col

    def location(self, node: ast.AST) -> Optional[Location]:
        lineno = getattr(node, "lineno", None)
        if lineno is None:
            return None
        col = getattr(node, "col_offset", 0) or 0
        end_lineno = getattr(node, "end_lineno", None) or lineno
        end_col = getattr(node, "end_col_offset", None)
        start = self._offset(lineno, col)
        end = self._offset(end_lineno, end_col) if end_col is not None else start
        return Location(start=start, end=end, line=lineno, column=col)

    def convert(self, node: ast.AST) -> SyntaxNode:
        loc = self.location(node)

        if isinstance(node, ast.Call) and loc is not None:
            arguments = [self.convert(arg) for arg in node.args]
            arguments.extend(self.convert(kw) for kw in node.keywords)
            return Call(callee=self.convert(node.func), arguments=tuple(arguments), loc=loc)

        if isinstance(node, ast.Attribute) and loc is not None:
            attr_len = len(node.attr.encode("utf-8"))
            prop_loc = Location(
                start=loc.end - attr_len,
                end=loc.end,
                line=getattr(node, "end_lineno", None) or loc.line,
                column=max((getattr(node, "end_col_offset", 0) or 0) - attr_len, 0),
            )
            return Member(
                object=self.convert(node.value),
                property=Identifier(name=node.attr, loc=prop_loc),
                loc=loc,
            )

        if isinstance(node, ast.Name) and loc is not None:
            return Identifier(name=node.id, loc=loc)

        return Other(
            kind=type(node).__name__,
            children=tuple(self.convert(child) for child in ast.iter_child_nodes(node)),
            loc=loc,
        )


def _parse_python(path: str, content: str) -> SyntaxTree:
    source = _encode(path, content)
    try:
        module = ast.parse(content, filename=path)
    except (SyntaxError, ValueError) as exc:
        raise ParseError(f"Syntax error in {path}: {exc}") from exc
    try:
        root = _PythonConverter(source).convert(module)
    except RecursionError as exc:
        raise ParseError(f"Syntax tree too deep in {path}") from exc
    return SyntaxTree(root=root, source=source, language="python")
