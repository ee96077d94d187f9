"""
Recursive Descent Translator for json! literals

Turns the token tree of one literal into a Python expression that builds the
matching structured value when evaluated.

Structure:
- Dispatcher: routes leaves, [ ... ], { ... } and ( ... ) groups
- Classifier: scalar tokens (strings, numbers, null, true, false)
- Array/Object assemblers: comma-separated elements and "key": value entries
- Escape: ( ... ) is parsed as ordinary Python and wrapped in to_json()

Failures are recorded on the Reporter once and signalled with ``None``.
"""

from __future__ import annotations

import ast
from typing import Callable, List, Optional, Sequence, Tuple

from lark import Token

from .builder import ExprBuilder
from .config import Options
from .diagnostics import AlreadyReported, ErrorKind, Reporter, Span, best_span, span_of
from .lexer import FLOAT_SUFFIXES, INT_SUFFIXES
from .tree import Node, is_token, render, render_source, token_type
from .value import INT64_MAX, INT64_MIN

Pair = Tuple[ast.expr, ast.expr]
ExprParser = Callable[[str, Optional[Span]], ast.expr]


def parse_python_expr(source: str, span: Optional[Span] = None) -> ast.expr:
    """Parse one Python expression, shifted to start on ``span``'s line."""
    expr = ast.parse(source, mode="eval").body
    if span is not None:
        ast.increment_lineno(expr, span.line - 1)
    return expr


def strip_suffix(text: str, suffixes: frozenset) -> str:
    for suffix in suffixes:
        if text.endswith(suffix):
            return text[: -len(suffix)]
    return text


def decode_string(token: Token) -> Optional[str]:
    """Decode a STRING token with Python's literal rules; None unless it is a str."""
    if token.type != "STRING":
        return None
    try:
        value = ast.literal_eval(token.value)
    except (ValueError, SyntaxError):
        return None
    return value if isinstance(value, str) else None


class Cursor:
    """Lookahead cursor over the children of one group"""

    def __init__(self, nodes: Sequence[Node]):
        self.nodes = list(nodes)
        self.pos = 0

    def peek(self, offset: int = 0) -> Optional[Node]:
        idx = self.pos + offset
        if idx < len(self.nodes):
            return self.nodes[idx]
        return None

    def advance(self, n: int = 1) -> None:
        self.pos += n

    def at_end(self) -> bool:
        return self.pos >= len(self.nodes)


class Translator:
    """
    Translate token trees into constructor expressions.

    One instance serves one literal; it only holds the reporter, the options
    and the escape parser.
    """

    def __init__(
        self,
        reporter: Optional[Reporter] = None,
        options: Optional[Options] = None,
        parse_expr: Optional[ExprParser] = None,
    ):
        self.reporter = reporter if reporter is not None else Reporter()
        self.options = options if options is not None else Options()
        self.parse_expr = parse_expr if parse_expr is not None else parse_python_expr
        self.build = ExprBuilder(self.options.runtime_name)

    # ========================================================================
    # Dispatcher
    # ========================================================================

    def translate(self, node: Node, span: Optional[Span] = None) -> Optional[ast.expr]:
        """
        Translate any token-tree node.

        ``span`` is the position of the enclosing group, used when a failing
        node has no position of its own.
        """
        if is_token(node):
            return self.classify(node, span)

        own = span_of(node) or span

        if node.data == "bracket":
            items = self.parse_array(own, node.children)
            if items is None:
                return None
            return self.build.list_(items)

        if node.data == "brace":
            pairs = self.parse_object(own, node.children)
            if pairs is None:
                return None
            return self.build.object_(pairs)

        if node.data == "paren":
            return self.escape(node, own)

        if node.data == "sequence":
            message = "unexpected repetition sequence in JSON"
        else:
            message = f"unexpected `{node.data}` group in JSON"
        self.reporter.error(ErrorKind.UNSUPPORTED_CONSTRUCT, own, message)
        return None

    # ========================================================================
    # Scalars
    # ========================================================================

    def classify(self, token: Token, span: Optional[Span] = None) -> Optional[ast.expr]:
        """Map one leaf token to a scalar constructor."""
        if token.type == "STRING":
            text = decode_string(token)
            if text is not None:
                return self.build.string(text)

        elif token.type == "INTEGER":
            return self.integer(token, span)

        elif token.type == "FLOAT":
            # Width suffixes are dropped.
            try:
                value = float(strip_suffix(token.value, FLOAT_SUFFIXES))
            except ValueError:
                pass
            else:
                return self.build.float_(value)

        elif token.type == "IDENT" and token.value == "null":
            return self.build.null()

        elif token.type == "TRUE":
            return self.build.boolean(True)

        elif token.type == "FALSE":
            return self.build.boolean(False)

        # A leading `-` is its own token and ends up here as well.
        self.reporter.error(
            ErrorKind.UNEXPECTED_TOKEN,
            best_span(span, token),
            f"unexpected `{render(token)}` in JSON",
        )
        return None

    def integer(self, token: Token, span: Optional[Span]) -> Optional[ast.expr]:
        text = strip_suffix(token.value, INT_SUFFIXES)
        try:
            value = int(text, 0)
        except ValueError:
            self.reporter.error(
                ErrorKind.UNEXPECTED_TOKEN,
                best_span(span, token),
                f"unexpected `{render(token)}` in JSON",
            )
            return None

        if not INT64_MIN <= value <= INT64_MAX:
            if self.options.int_overflow == "wrap":
                value = (value - INT64_MIN) % 2 ** 64 + INT64_MIN
            else:
                self.reporter.error(
                    ErrorKind.INTEGER_OUT_OF_RANGE,
                    best_span(span, token),
                    f"integer literal `{token.value}` does not fit in a signed 64-bit integer",
                )
                return None

        return self.build.integer(value)

    # ========================================================================
    # Composites
    # ========================================================================

    def parse_array(self, span: Optional[Span], nodes: Sequence[Node]) -> Optional[List[ast.expr]]:
        """
        Parse array elements: value (',' value)*

        Even positions are values, odd positions must be commas. A trailing
        comma is accepted.
        """
        exprs: List[ast.expr] = []

        for i, node in enumerate(nodes):
            if i % 2 == 1:
                if token_type(node) == "COMMA":
                    continue
                self.reporter.expected_but_found(
                    ErrorKind.MALFORMED_ARRAY_SEPARATOR, span, "`,`", node
                )
                return None

            expr = self.translate(node, span)
            if expr is None:
                return None
            exprs.append(expr)

        return exprs

    def parse_object(self, span: Optional[Span], nodes: Sequence[Node]) -> Optional[List[Pair]]:
        """
        Parse object entries:

            object := (entry ','?)*
            entry  := STRING ':' value

        Entries keep source order; repeated keys are left to the mapping.
        """
        cursor = Cursor(nodes)
        pairs: List[Pair] = []

        while not cursor.at_end():
            pair = self.parse_entry(cursor, span)
            if pair is None:
                return None
            pairs.append(pair)

        return pairs

    def parse_entry(self, cursor: Cursor, span: Optional[Span]) -> Optional[Pair]:
        """Parse one `"key": value` entry and its optional trailing comma."""
        kind = ErrorKind.MALFORMED_OBJECT_ENTRY
        name = cursor.peek()
        assert name is not None

        key = decode_string(name) if is_token(name) else None
        if key is None:
            self.reporter.expected_but_found(kind, span, "string literal", name)
            return None

        colon = cursor.peek(1)
        if colon is None:
            self.reporter.error(
                kind, best_span(span, name), "found name but no colon-value afterwards"
            )
            return None
        if token_type(colon) != "COLON":
            self.reporter.expected_but_found(kind, span, "`:`", colon)
            return None

        value_node = cursor.peek(2)
        if value_node is None:
            self.reporter.error(
                kind, best_span(span, colon), "found `:` but no value afterwards"
            )
            return None

        # The separator is checked before the value is translated.
        sep = cursor.peek(3)
        if sep is not None and token_type(sep) != "COMMA":
            self.reporter.expected_but_found(kind, span, "`,`", sep)
            return None

        value = self.translate(value_node, span)
        if value is None:
            return None

        cursor.advance(3 if sep is None else 4)
        return ast.Constant(value=key), value

    # ========================================================================
    # Escapes
    # ========================================================================

    def escape(self, node: Node, span: Optional[Span]) -> Optional[ast.expr]:
        """Hand a ( ... ) group to the Python expression parser as-is."""
        source = render_source(node)
        try:
            expr = self.parse_expr(source, span)
        except AlreadyReported:
            return None
        except (SyntaxError, ValueError) as exc:
            message = getattr(exc, "msg", None) or str(exc)
            self.reporter.error(
                ErrorKind.ESCAPE_DELEGATION_FAILURE,
                span,
                f"invalid escape expression `{render(node)}`: {message}",
            )
            return None

        return self.build.to_json(expr)


def translate(
    node: Node,
    reporter: Optional[Reporter] = None,
    options: Optional[Options] = None,
    span: Optional[Span] = None,
) -> Optional[ast.expr]:
    """Translate one token tree; ``None`` means a diagnostic was recorded."""
    return Translator(reporter, options).translate(node, span)
