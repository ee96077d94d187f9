"""Shared helpers for working with the token trees fed to the translator.

Token trees are plain Lark objects: leaves are ``lark.Token`` and delimited
groups are ``lark.Tree`` with positions stored on ``meta``.
"""
from __future__ import annotations
from typing import Iterator, List, Optional, Tuple
from typing_extensions import TypeAlias, TypeGuard

from lark import Token, Tree

Node: TypeAlias = Tree | Token

DELIMITERS = {
    "bracket": ("[", "]"),
    "brace": ("{", "}"),
    "paren": ("(", ")"),
}

# Tokens rendered without a space before them.
_TIGHT_BEFORE = {"COMMA", "COLON"}


def is_tree(node: Node) -> TypeGuard[Tree]:
    return isinstance(node, Tree)

def is_token(node: Node) -> TypeGuard[Token]:
    return isinstance(node, Token)

def tree_label(node: Node) -> Optional[str]:
    return node.data if is_tree(node) else None

def token_type(node: Node) -> Optional[str]:
    return node.type if is_token(node) else None

def group_position(tree: Tree) -> Tuple[Optional[int], Optional[int], Optional[int], Optional[int]]:
    meta = tree.meta
    return (
        getattr(meta, "line", None),
        getattr(meta, "column", None),
        getattr(meta, "end_line", None),
        getattr(meta, "end_column", None),
    )


def _pieces(node: Node) -> Iterator[Tuple[str, Optional[int], Optional[int]]]:
    """Yield (text, line, column) for every lexical piece of ``node`` in order."""
    if is_token(node):
        yield str(node.value), node.line, node.column
        return

    line, column, end_line, end_column = group_position(node)
    if node.data == "sequence":
        yield "$", line, column
        for child in node.children:
            yield from _pieces(child)
        return

    open_, close = DELIMITERS.get(node.data, ("(", ")"))
    yield open_, line, column
    for child in node.children:
        yield from _pieces(child)
    close_column = end_column - 1 if end_column is not None else None
    yield close, end_line, close_column


def render(node: Node) -> str:
    """Compact single-line rendering used in diagnostics."""
    out: List[str] = []
    prev = ""

    for text, _, _ in _pieces(node):
        if out and text not in (",", ":", ")", "]", "}") and prev not in ("(", "[", "{", "$"):
            out.append(" ")
        out.append(text)
        prev = text

    return "".join(out)


def render_source(node: Node) -> str:
    """
    Render ``node`` back to source text, keeping the original line breaks and
    column offsets so the result re-tokenizes the same way it was written.
    Pieces without a position are separated by a single space.
    """
    out: List[str] = []
    cur_line: Optional[int] = None
    cur_col = 1

    for text, line, column in _pieces(node):
        if line is None or column is None or cur_line is None:
            if out:
                out.append(" ")
        elif line > cur_line:
            out.append("\n" * (line - cur_line))
            out.append(" " * (column - 1))
        elif column > cur_col:
            out.append(" " * (column - cur_col))
        elif column < cur_col:
            out.append(" ")

        out.append(text)

        if line is not None and column is not None:
            newlines = text.count("\n")
            if newlines:
                cur_line = line + newlines
                cur_col = len(text) - text.rfind("\n")
            else:
                cur_line = line
                cur_col = column + len(text)

    return "".join(out)
