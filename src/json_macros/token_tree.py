"""Group a flat token stream into token trees.

Leaves are ``lark.Token`` instances typed by token-type name; delimited groups
are ``lark.Tree`` nodes labelled ``bracket``, ``brace``, ``paren`` or
``sequence`` (the ``$( ... ) sep? op`` repetition form).
"""

from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

from lark import Token, Tree

from .lexer import LexError, Lexer, tokenize
from .token_types import CLOSERS, OPENERS, TT, Tok
from .tree import Node

GROUP_LABELS = {
    TT.LSQB: "bracket",
    TT.LBRACE: "brace",
    TT.LPAR: "paren",
}

# Repetition operators that may follow a `$( ... )` group.
_REPEAT_OPS = {TT.STAR, TT.PLUS, TT.QMARK}


def to_token(tok: Tok) -> Token:
    """Convert a lexer token into a positioned lark token."""
    return Token(
        tok.type.name,
        tok.value,
        line=tok.line,
        column=tok.column,
        end_line=tok.end_line,
        end_column=tok.end_column,
    )


def _make_group(label: str, children: List[Node], opener: Tok, closer: Tok) -> Tree:
    tree = Tree(label, children)
    meta = tree.meta
    meta.line = opener.line
    meta.column = opener.column
    meta.end_line = closer.end_line
    meta.end_column = closer.end_column
    meta.empty = False
    return tree


class TreeBuilder:
    """Recursive grouping over a token list with a single cursor."""

    def __init__(self, tokens: Sequence[Tok]):
        self.tokens = [t for t in tokens if t.type not in (TT.EOF, TT.COMMENT)]
        self.pos = 0

    def peek(self, offset: int = 0) -> Optional[Tok]:
        idx = self.pos + offset
        if idx < len(self.tokens):
            return self.tokens[idx]
        return None

    def build(self) -> List[Node]:
        nodes = self.parse_until(None)
        if self.pos < len(self.tokens):
            tok = self.tokens[self.pos]
            raise LexError(f"unexpected closing delimiter `{tok.value}`", tok.line, tok.column)
        return nodes

    def parse_until(self, closer: Optional[TT]) -> List[Node]:
        nodes: List[Node] = []

        while True:
            tok = self.peek()
            if tok is None:
                return nodes
            if tok.type in CLOSERS:
                if tok.type != closer:
                    if closer is None:
                        return nodes
                    raise LexError(
                        f"mismatched closing delimiter `{tok.value}`", tok.line, tok.column
                    )
                return nodes

            nodes.append(self.parse_node())

    def parse_node(self) -> Node:
        tok = self.peek()
        assert tok is not None

        if tok.type == TT.DOLLAR:
            nxt = self.peek(1)
            if nxt is not None and nxt.type == TT.LPAR:
                return self.parse_sequence()

        if tok.type in OPENERS:
            return self.parse_group()

        self.pos += 1
        return to_token(tok)

    def parse_group(self) -> Tree:
        opener = self.tokens[self.pos]
        self.pos += 1
        closer_type = OPENERS[opener.type]
        children = self.parse_until(closer_type)

        closer = self.peek()
        if closer is None:
            raise LexError(f"unclosed delimiter `{opener.value}`", opener.line, opener.column)
        self.pos += 1
        return _make_group(GROUP_LABELS[opener.type], children, opener, closer)

    def parse_sequence(self) -> Node:
        dollar = self.tokens[self.pos]
        start = self.pos
        self.pos += 1
        body = self.parse_group()

        sep, op = self._repeat_suffix()
        if op is None:
            # Plain `$` followed by a parenthesized group, not a repetition.
            self.pos = start + 1
            return to_token(dollar)

        children: List[Node] = [body]
        if sep is not None:
            children.append(to_token(sep))
        children.append(to_token(op))
        self.pos += len(children) - 1
        return _make_group("sequence", children, dollar, op)

    def _repeat_suffix(self) -> Tuple[Optional[Tok], Optional[Tok]]:
        first = self.peek()
        if first is None:
            return None, None
        if first.type in _REPEAT_OPS:
            return None, first

        second = self.peek(1)
        if (
            second is not None
            and second.type in _REPEAT_OPS
            and first.type not in OPENERS
            and first.type not in CLOSERS
        ):
            return first, second
        return None, None


def build_token_trees(tokens: Sequence[Tok]) -> List[Node]:
    """Group ``tokens`` into a list of token trees."""
    return TreeBuilder(tokens).build()


def parse_token_trees(source: str) -> List[Node]:
    """Tokenize ``source`` and group it into token trees."""
    return build_token_trees(tokenize(source))


def scan_invocation(source: str, pos: int, line: int, column: int) -> Tuple[List[Tok], int]:
    """Tokenize the delimited group at ``pos``; returns its tokens and end offset."""
    lexer = Lexer(source, pos=pos, line=line, column=column)
    tokens = lexer.tokenize_group()
    return tokens, lexer.pos


def group_tree(tokens: Sequence[Tok]) -> Tree:
    trees = build_token_trees(tokens)
    assert len(trees) == 1 and isinstance(trees[0], Tree)
    return trees[0]


def read_invocation(source: str, pos: int, line: int, column: int) -> Tuple[Tree, int]:
    """
    Read the delimited group starting at ``pos`` in a host file.

    Returns the group tree and the offset just past its closing delimiter.
    """
    tokens, end = scan_invocation(source, pos, line, column)
    return group_tree(tokens), end
