"""Host integration: expand ``json!( ... )`` invocations.

The translator only ever sees token trees; this module finds invocations in
Python source, tokenizes their bodies, substitutes the generated expression
(or a placeholder when translation failed) and binds the runtime alias.
"""

from __future__ import annotations

import ast
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from types import CodeType
from typing import Any, Iterator, List, Mapping, Optional, Sequence, Tuple

from . import value as value_module
from .builder import ExprBuilder
from .config import Options
from .diagnostics import AlreadyReported, ErrorKind, Reporter, Span, TranslationError
from .lexer import LexError
from .token_tree import group_tree, parse_token_trees, scan_invocation
from .translate import ExprParser, Translator, parse_python_expr
from .tree import Node, render
from .value import JsonValue

logger = logging.getLogger(__name__)

RUNTIME_MODULE = "json_macros.value"

_CODING_RE = re.compile(r"^[ \t\f]*#.*?coding[:=]")


@dataclass
class ExpansionResult:
    source: str
    errors: List[TranslationError] = field(default_factory=list)
    expanded: int = 0

    @property
    def ok(self) -> bool:
        return not self.errors


# ============================================================================
# Single literal
# ============================================================================

def expand(
    tts: Sequence[Node],
    span: Optional[Span],
    reporter: Reporter,
    options: Optional[Options] = None,
    parse_expr: Optional[ExprParser] = None,
) -> ast.expr:
    """
    Translate the token trees of one ``json!`` body.

    Always returns an expression: a placeholder stands in for a literal that
    failed, so the caller can keep going and report every literal's errors.
    """
    options = options or Options()
    build = ExprBuilder(options.runtime_name)
    logger.debug("JSON token tree %s", " ".join(render(tt) for tt in tts))

    if not tts:
        reporter.error(ErrorKind.EMPTY_LITERAL, span, "expected JSON literal")
        return build.placeholder()

    if len(tts) > 1:
        logger.warning(
            "json! at %s: ignoring %d token tree(s) after the literal",
            span or "<unknown>", len(tts) - 1,
        )

    expr = Translator(reporter, options, parse_expr).translate(tts[0], span)
    if expr is None:
        return build.placeholder()
    return expr


def expand_literal(body: str, options: Optional[Options] = None) -> ast.Expression:
    """
    Translate a literal body such as ``'{"a": [1, 2]}'``.

    Raises LexError or the first TranslationError instead of returning a
    placeholder.
    """
    options = options or Options()
    reporter = Reporter()
    trees = parse_token_trees(body)
    expr = expand(trees, Span(1, 1), reporter, options, _nested_parser(reporter, options))
    reporter.raise_first()
    return ast.fix_missing_locations(ast.Expression(body=expr))


def compile_literal(body: str, options: Optional[Options] = None, filename: str = "<json>") -> CodeType:
    return compile(expand_literal(body, options), filename, "eval")


def literal(
    body: str,
    namespace: Optional[Mapping[str, Any]] = None,
    options: Optional[Options] = None,
) -> JsonValue:
    """Translate and evaluate a literal body; escapes see ``namespace``."""
    options = options or Options()
    scope = dict(namespace or {})
    scope[options.runtime_name] = value_module
    return eval(compile_literal(body, options), scope)


# ============================================================================
# Source files
# ============================================================================

def _skip_string(source: str, i: int) -> int:
    """Return the offset just past the string literal starting at ``i``."""
    quote = source[i]
    if source.startswith(quote * 3, i):
        quote = quote * 3
    i += len(quote)

    while i < len(source):
        if source.startswith(quote, i):
            return i + len(quote)
        ch = source[i]
        if ch == "\\":
            i += 2
            continue
        if ch == "\n" and len(quote) == 1:
            return i
        i += 1

    return len(source)


def find_invocations(source: str, macro_name: str = "json") -> Iterator[Tuple[int, int]]:
    """
    Yield ``(start, paren)`` offsets of ``name!(`` invocations, skipping
    comments and string literals.
    """
    head = re.compile(re.escape(macro_name) + r"!\s*\(")
    i = 0

    while i < len(source):
        ch = source[i]

        if ch == "#":
            nl = source.find("\n", i)
            if nl < 0:
                return
            i = nl
            continue

        if ch in ("'", '"'):
            i = _skip_string(source, i)
            continue

        if ch.isalnum() or ch == "_":
            j = i
            while j < len(source) and (source[j].isalnum() or source[j] == "_"):
                j += 1
            m = head.match(source, i)
            if m is not None and i + len(macro_name) == j and (i == 0 or source[i - 1] != "."):
                yield i, m.end() - 1
                i = m.end()
                continue
            i = j
            continue

        i += 1


def _position(
    source: str, offset: int, line_offset: int = 0, column_offset: int = 0
) -> Tuple[int, int]:
    """
    Host position of ``offset``. ``source`` may itself start at line
    ``line_offset + 1``, column ``column_offset + 1`` of the host file.
    """
    line = source.count("\n", 0, offset) + 1
    column = offset - (source.rfind("\n", 0, offset) + 1) + 1
    if line == 1:
        column += column_offset
    return line + line_offset, column


def _expand_one(
    source: str,
    start: int,
    paren: int,
    reporter: Reporter,
    options: Options,
    offsets: Tuple[int, int],
) -> Optional[Tuple[str, int]]:
    """Replacement text and end offset of one invocation; None leaves it as written."""
    span = Span(*_position(source, start, *offsets))
    paren_line, paren_column = _position(source, paren, *offsets)

    try:
        tokens, end = scan_invocation(source, paren, paren_line, paren_column)
    except LexError as exc:
        where = Span(exc.line, exc.column) if exc.line is not None else span
        reporter.error(ErrorKind.TOKENIZE_FAILURE, where, exc.message)
        return None

    build = ExprBuilder(options.runtime_name)
    try:
        group = group_tree(tokens)
        expr = expand(group.children, span, reporter, options, _nested_parser(reporter, options))
        text = ast.unparse(expr)
    except LexError as exc:
        reporter.error(ErrorKind.TOKENIZE_FAILURE, Span(exc.line, exc.column), exc.message)
        text = ast.unparse(build.placeholder())
    except RecursionError:
        reporter.error(ErrorKind.NESTING_TOO_DEEP, span, "JSON literal is nested too deeply")
        text = ast.unparse(build.placeholder())

    newlines = source.count("\n", start, end)
    return "(" + text + "\n" * newlines + ")", end


def _expand_text(
    source: str,
    reporter: Reporter,
    options: Options,
    line_offset: int = 0,
    column_offset: int = 0,
) -> Tuple[str, int]:
    out: List[str] = []
    last = 0
    expanded = 0

    for start, paren in find_invocations(source, options.macro_name):
        if start < last:
            # Nested inside an invocation that was already expanded.
            continue

        replaced = _expand_one(
            source, start, paren, reporter, options, (line_offset, column_offset)
        )
        if replaced is None:
            continue

        text, end = replaced
        out.append(source[last:start])
        out.append(text)
        last = end
        expanded += 1

    out.append(source[last:])
    return "".join(out), expanded


def _nested_parser(reporter: Reporter, options: Options) -> ExprParser:
    """
    Escape parser that first expands invocations nested in the escape.

    A nested literal that fails makes the escape fail too, without a second
    diagnostic.
    """

    def parse(source: str, span: Optional[Span]) -> ast.expr:
        line_offset = span.line - 1 if span is not None else 0
        column_offset = span.column - 1 if span is not None else 0
        before = len(reporter.errors)
        text, _ = _expand_text(source, reporter, options, line_offset, column_offset)
        if len(reporter.errors) > before:
            raise AlreadyReported()
        return parse_python_expr(text, span)

    return parse


def _import_line(options: Options) -> str:
    return f"import {RUNTIME_MODULE} as {options.runtime_name}\n"


def _insert_runtime_import(source: str, options: Options) -> str:
    """Bind the runtime alias after the docstring and __future__ imports."""
    line = _import_line(options)
    if line in source:
        return source

    lines = source.splitlines(keepends=True)
    insert_at = 0

    try:
        module = ast.parse(source)
    except SyntaxError:
        module = None

    if module is not None:
        for i, stmt in enumerate(module.body):
            is_docstring = (
                i == 0
                and isinstance(stmt, ast.Expr)
                and isinstance(stmt.value, ast.Constant)
                and isinstance(stmt.value.value, str)
            )
            is_future = isinstance(stmt, ast.ImportFrom) and stmt.module == "__future__"
            if not (is_docstring or is_future):
                break
            insert_at = stmt.end_lineno or insert_at

    # Keep a shebang or coding cookie on the first lines.
    for i in range(min(2, len(lines))):
        if i == insert_at and (lines[i].startswith("#!") or _CODING_RE.match(lines[i])):
            insert_at += 1

    if insert_at and insert_at <= len(lines) and not lines[insert_at - 1].endswith("\n"):
        lines[insert_at - 1] += "\n"
    lines.insert(insert_at, line)
    return "".join(lines)


def expand_source(source: str, options: Optional[Options] = None) -> ExpansionResult:
    """
    Expand every ``json!( ... )`` in ``source``.

    Failed literals become ``(None)`` and their diagnostics are collected, so
    one broken literal does not hide errors in the others.
    """
    options = options or Options()
    reporter = Reporter()
    text, expanded = _expand_text(source, reporter, options)

    if expanded:
        text = _insert_runtime_import(text, options)

    return ExpansionResult(source=text, errors=list(reporter.errors), expanded=expanded)


def expand_file(path: Path, options: Optional[Options] = None) -> ExpansionResult:
    return expand_source(Path(path).read_text(encoding="utf-8"), options)
