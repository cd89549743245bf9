"""Closed set of syntax node variants and the pre-order walker over them.

Parser adapters (see ``parsers.py``) translate whatever concrete tree their
parser produces into these four shapes. Only call expressions, member
accesses and identifiers carry meaning for the scanners; everything else is
an ``Other`` container that exists so the walk can reach nested calls.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterator, List, Optional, Tuple, Union


@dataclass(frozen=True)
class Location:
    start: int  # byte offset into the UTF-8 source, inclusive
    end: int  # byte offset, exclusive
    line: int  # 1-based
    column: int  # 0-based


@dataclass(frozen=True, eq=False)
class Identifier:
    name: str
    loc: Location


@dataclass(frozen=True, eq=False)
class Member:
    object: "SyntaxNode"
    property: "SyntaxNode"
    loc: Location


@dataclass(frozen=True, eq=False)
class Call:
    callee: "SyntaxNode"
    arguments: Tuple["SyntaxNode", ...]
    loc: Location


@dataclass(frozen=True, eq=False)
class Other:
    kind: str
    children: Tuple["SyntaxNode", ...]
    loc: Optional[Location] = None


SyntaxNode = Union[Identifier, Member, Call, Other]


def children(node: SyntaxNode) -> Tuple[SyntaxNode, ...]:
    if isinstance(node, Call):
        return (node.callee, *node.arguments)
    if isinstance(node, Member):
        return (node.object, node.property)
    if isinstance(node, Other):
        return node.children
    if isinstance(node, Identifier):
        return ()
    raise TypeError(f"Unknown syntax node variant: {type(node).__name__}")


def iter_preorder(root: SyntaxNode) -> Iterator[SyntaxNode]:
    stack: List[SyntaxNode] = [root]
    seen: set[int] = set()
    while stack:
        node = stack.pop()
        if id(node) in seen:
            continue
        seen.add(id(node))
        yield node
        stack.extend(reversed(children(node)))


def walk(root: SyntaxNode, visit: Callable[[SyntaxNode], None]) -> None:
    """Depth-first, pre-order traversal calling ``visit`` once per node."""
    for node in iter_preorder(root):
        visit(node)


@dataclass(frozen=True)
class SyntaxTree:
    root: SyntaxNode
    source: bytes
    language: str

    def text(self, node: SyntaxNode) -> str:
        loc = node.loc
        if loc is None:
            return ""
        return self.source[loc.start : loc.end].decode("utf-8", errors="replace")
