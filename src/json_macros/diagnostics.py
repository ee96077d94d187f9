"""Error reporting for JSON literal translation.

Every failure is recorded exactly once, where it is detected, and the caller
gets ``None`` back as the failure sentinel.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import List, Optional

from .tree import Node, group_position, is_token, render

logger = logging.getLogger(__name__)


class ErrorKind(Enum):
    EMPTY_LITERAL = auto()
    UNEXPECTED_TOKEN = auto()
    INTEGER_OUT_OF_RANGE = auto()
    MALFORMED_ARRAY_SEPARATOR = auto()
    MALFORMED_OBJECT_ENTRY = auto()
    UNSUPPORTED_CONSTRUCT = auto()
    ESCAPE_DELEGATION_FAILURE = auto()
    TOKENIZE_FAILURE = auto()
    NESTING_TOO_DEEP = auto()


class AlreadyReported(Exception):
    """Raised by an escape parser whose failure is already on the Reporter."""


@dataclass(frozen=True)
class Span:
    line: int
    column: int
    end_line: Optional[int] = None
    end_column: Optional[int] = None

    def __str__(self) -> str:
        return f"{self.line}:{self.column}"


class TranslationError(Exception):
    """A translation failure with its resolved source position."""

    def __init__(self, kind: ErrorKind, message: str, span: Optional[Span] = None):
        self.kind = kind
        self.message = message
        self.span = span
        super().__init__(
            f"{message} at line {span.line}, col {span.column}" if span else message
        )

    @property
    def line(self) -> Optional[int]:
        return self.span.line if self.span else None

    @property
    def column(self) -> Optional[int]:
        return self.span.column if self.span else None

    def format(self, filename: str = "<json>") -> str:
        """Render as ``file:line:col: error: message``."""
        where = f"{filename}:{self.span}" if self.span else filename
        return f"{where}: error: {self.message}"


def span_of(node: Node) -> Optional[Span]:
    """Own position of ``node``, if it has one."""
    if is_token(node):
        if node.line is None or node.column is None:
            return None
        return Span(node.line, node.column, node.end_line, node.end_column)

    line, column, end_line, end_column = group_position(node)
    if line is None or column is None:
        return None
    return Span(line, column, end_line, end_column)


def best_span(fallback: Optional[Span], node: Node) -> Optional[Span]:
    """Prefer a token's own position; groups and bare tokens use ``fallback``."""
    if is_token(node):
        own = span_of(node)
        if own is not None:
            return own
    return fallback


class Reporter:
    """Collects the diagnostics produced while translating literals."""

    def __init__(self) -> None:
        self.errors: List[TranslationError] = []

    @property
    def failed(self) -> bool:
        return bool(self.errors)

    def error(self, kind: ErrorKind, span: Optional[Span], message: str) -> None:
        err = TranslationError(kind, message, span)
        logger.debug("json! diagnostic (%s): %s", kind.name, err)
        self.errors.append(err)

    def expected_but_found(
        self, kind: ErrorKind, fallback: Optional[Span], expected: str, found: Node
    ) -> None:
        self.error(
            kind,
            best_span(fallback, found),
            f"expected {expected} but found: `{render(found)}`",
        )

    def raise_first(self) -> None:
        """Raise the first recorded error, if any."""
        if self.errors:
            raise self.errors[0]
