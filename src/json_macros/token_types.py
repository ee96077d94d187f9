"""
Token Types for json! literal bodies

Shared between the lexer, the token-tree builder and the REPL highlighter.
"""

from typing import Any, Optional
from dataclasses import dataclass
from enum import Enum, auto


class TT(Enum):
    """Token Types - one per lexical category of a literal body"""

    # Literals
    INTEGER = auto()
    FLOAT = auto()
    STRING = auto()
    IDENT = auto()

    # Reserved words
    TRUE = auto()
    FALSE = auto()

    # Operators
    PLUS = auto()
    MINUS = auto()
    STAR = auto()
    SLASH = auto()
    FLOORDIV = auto()
    MOD = auto()
    POW = auto()
    MATMUL = auto()
    AMP = auto()
    PIPE = auto()
    CARET = auto()
    TILDE = auto()
    LSHIFT = auto()
    RSHIFT = auto()
    NOT = auto()  # !

    # Comparison
    EQ = auto()
    NEQ = auto()
    LT = auto()
    LTE = auto()
    GT = auto()
    GTE = auto()

    # Assignment
    ASSIGN = auto()  # =
    WALRUS = auto()  # :=
    AUGASSIGN = auto()  # +=, -=, ...
    ARROW = auto()  # ->

    # Punctuation
    LPAR = auto()
    RPAR = auto()
    LSQB = auto()
    RSQB = auto()
    LBRACE = auto()
    RBRACE = auto()
    DOT = auto()
    ELLIPSIS = auto()
    COMMA = auto()
    COLON = auto()
    SEMI = auto()
    QMARK = auto()
    DOLLAR = auto()

    # Special
    COMMENT = auto()
    EOF = auto()


OPENERS = {TT.LPAR: TT.RPAR, TT.LSQB: TT.RSQB, TT.LBRACE: TT.RBRACE}
CLOSERS = {close: open_ for open_, close in OPENERS.items()}


@dataclass
class Tok:
    """Token with position info"""

    type: TT
    value: Any
    line: int = 0
    column: int = 0
    end_line: Optional[int] = None
    end_column: Optional[int] = None

    def __repr__(self):
        return f"Tok({self.type.name}, {self.value!r}, {self.line}:{self.column})"
