"""prompt_toolkit lexer for live json! literal highlighting in the REPL."""

from __future__ import annotations

from typing import Callable

from prompt_toolkit.document import Document
from prompt_toolkit.formatted_text import StyleAndTextTuples
from prompt_toolkit.lexers import Lexer

from .lexer import Lexer as LiteralLexer, LexError
from .token_types import TT, Tok

# Map highlight groups → prompt_toolkit style strings.
GROUP_STYLE = {
    "constant": "ansicyan",
    "number": "ansimagenta",
    "string": "ansigreen",
    "key": "bold ansiblue",
    "identifier": "",
    "operator": "",
    "punctuation": "",
    "comment": "italic ansigray",
    "error": "bold ansired",
}

_TT_GROUP = {
    TT.TRUE: "constant",
    TT.FALSE: "constant",
    TT.INTEGER: "number",
    TT.FLOAT: "number",
    TT.STRING: "string",
    TT.IDENT: "identifier",
    TT.LPAR: "punctuation",
    TT.RPAR: "punctuation",
    TT.LSQB: "punctuation",
    TT.RSQB: "punctuation",
    TT.LBRACE: "punctuation",
    TT.RBRACE: "punctuation",
    TT.COMMA: "punctuation",
    TT.COLON: "punctuation",
    TT.COMMENT: "comment",
}


def _group_for(tokens: list[Tok], idx: int) -> str:
    tok = tokens[idx]

    if tok.type == TT.IDENT and tok.value == "null":
        return "constant"

    # A string directly followed by `:` is an object key.
    if tok.type == TT.STRING and idx + 1 < len(tokens) and tokens[idx + 1].type == TT.COLON:
        return "key"

    return _TT_GROUP.get(tok.type, "operator")


def _highlight_line(text: str) -> StyleAndTextTuples:
    """Tokenize a single line and return styled fragments."""
    if not text:
        return [("", "")]

    try:
        tokens = LiteralLexer(text, emit_comments=True).tokenize()
    except LexError:
        return [("", text)]

    result: StyleAndTextTuples = []
    pos = 0

    for i, tok in enumerate(tokens):
        if tok.type == TT.EOF:
            continue
        tok_text = str(tok.value) if tok.value is not None else ""
        if not tok_text:
            continue

        # Tokens are single-line here, so the column is the offset.
        idx = tok.column - 1
        if idx < pos:
            continue

        # Unstyled gap before token.
        if idx > pos:
            result.append(("", text[pos:idx]))

        style = GROUP_STYLE.get(_group_for(tokens, i), "")
        result.append((style, text[idx:idx + len(tok_text)]))
        pos = idx + len(tok_text)

    # Trailing unstyled text.
    if pos < len(text):
        result.append(("", text[pos:]))

    return result if result else [("", text)]


class LiteralHighlighter(Lexer):
    """prompt_toolkit Lexer that highlights literal bodies using the json! lexer."""

    def lex_document(self, document: Document) -> Callable[[int], StyleAndTextTuples]:
        lines = document.lines

        # Pre-compute highlights lazily per line.
        cache: dict[int, StyleAndTextTuples] = {}

        def get_line(lineno: int) -> StyleAndTextTuples:
            if lineno not in cache:
                if lineno < len(lines):
                    cache[lineno] = _highlight_line(lines[lineno])
                else:
                    cache[lineno] = [("", "")]

            return cache[lineno]

        return get_line
