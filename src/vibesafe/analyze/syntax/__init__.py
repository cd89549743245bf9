"""Syntax trees: closed node variants, walker and parser adapters."""

from .nodes import Call, Identifier, Location, Member, Other, SyntaxNode, SyntaxTree, iter_preorder, walk
from .parsers import language_for_path, parse_source

__all__ = [
    "Call",
    "Identifier",
    "Location",
    "Member",
    "Other",
    "SyntaxNode",
    "SyntaxTree",
    "iter_preorder",
    "language_for_path",
    "parse_source",
    "walk",
]
