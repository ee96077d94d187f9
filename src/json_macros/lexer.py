"""
Lexer for json! literal bodies

Tokenizes the text between the parentheses of a ``json!( ... )`` invocation
into a flat stream of tokens. The token-tree builder groups that stream into
bracket/brace/paren trees.

Features:
- Single-pass tokenization
- Position tracking (line, column), starting from any offset in a host file
- Python string literals (prefixes, triple quotes) kept as raw text
- Numeric literals with optional width suffixes (``10i64``, ``2.5f32``)
"""

from typing import List, Optional

from .token_types import CLOSERS, OPENERS, TT, Tok

# ============================================================================
# Lexer Implementation
# ============================================================================

INT_SUFFIXES = frozenset(
    ["i8", "i16", "i32", "i64", "i128", "isize",
     "u8", "u16", "u32", "u64", "u128", "usize"]
)
FLOAT_SUFFIXES = frozenset(["f32", "f64"])
STRING_PREFIXES = frozenset(
    ["r", "u", "b", "f", "br", "rb", "fr", "rf"]
)


class LexError(Exception):
    """Lexical analysis error"""

    def __init__(self, message: str, line: Optional[int] = None, column: Optional[int] = None):
        self.message = message
        self.line = line
        self.column = column
        super().__init__(
            f"{message} at line {line}, col {column}" if line is not None else message
        )


class Lexer:
    """
    Lexer for the body of a JSON literal.

    Whitespace, newlines and ``#`` comments separate tokens and are otherwise
    dropped, since a literal body always sits inside parentheses.
    """

    # Reserved word mapping
    KEYWORDS = {
        'true': TT.TRUE,
        'false': TT.FALSE,
    }

    # Operator mapping: longest matches first to handle prefixes correctly
    OPERATORS = [
        # Three-character operators
        ('**=', TT.AUGASSIGN),
        ('//=', TT.AUGASSIGN),
        ('>>=', TT.AUGASSIGN),
        ('<<=', TT.AUGASSIGN),
        ('...', TT.ELLIPSIS),

        # Two-character operators
        ('==', TT.EQ),
        ('!=', TT.NEQ),
        ('<=', TT.LTE),
        ('>=', TT.GTE),
        (':=', TT.WALRUS),
        ('->', TT.ARROW),
        ('**', TT.POW),
        ('//', TT.FLOORDIV),
        ('<<', TT.LSHIFT),
        ('>>', TT.RSHIFT),
        ('+=', TT.AUGASSIGN),
        ('-=', TT.AUGASSIGN),
        ('*=', TT.AUGASSIGN),
        ('/=', TT.AUGASSIGN),
        ('%=', TT.AUGASSIGN),
        ('@=', TT.AUGASSIGN),
        ('&=', TT.AUGASSIGN),
        ('|=', TT.AUGASSIGN),
        ('^=', TT.AUGASSIGN),

        # Single-character operators
        ('+', TT.PLUS),
        ('-', TT.MINUS),
        ('*', TT.STAR),
        ('/', TT.SLASH),
        ('%', TT.MOD),
        ('@', TT.MATMUL),
        ('&', TT.AMP),
        ('|', TT.PIPE),
        ('^', TT.CARET),
        ('~', TT.TILDE),
        ('<', TT.LT),
        ('>', TT.GT),
        ('!', TT.NOT),
        ('=', TT.ASSIGN),
        ('(', TT.LPAR),
        (')', TT.RPAR),
        ('[', TT.LSQB),
        (']', TT.RSQB),
        ('{', TT.LBRACE),
        ('}', TT.RBRACE),
        ('.', TT.DOT),
        (',', TT.COMMA),
        (':', TT.COLON),
        (';', TT.SEMI),
        ('?', TT.QMARK),
        ('$', TT.DOLLAR),
    ]

    def __init__(self, source: str, pos: int = 0, line: int = 1, column: int = 1,
                 emit_comments: bool = False):
        self.source = source
        self.pos = pos
        self.line = line
        self.column = column
        self.tokens: List[Tok] = []
        self.emit_comments = emit_comments

        # Start of the token being scanned
        self.tok_line = line
        self.tok_column = column

    # ========================================================================
    # Main Tokenization
    # ========================================================================

    def tokenize(self) -> List[Tok]:
        """Tokenize entire source, return token list"""
        while self.pos < len(self.source):
            self.scan_token()

        self.mark()
        self.emit(TT.EOF, None)
        return self.tokens

    def tokenize_group(self) -> List[Tok]:
        """
        Tokenize exactly one delimited group starting at the current position.

        Stops right after the delimiter that closes the opening one, so the
        caller can resume scanning host text at ``self.pos``.
        """
        self.skip_trivia()
        if self.peek() not in '([{':
            raise LexError("expected an opening delimiter", self.line, self.column)

        depth = 0
        while self.pos < len(self.source):
            self.scan_token()
            if not self.tokens:
                continue

            last = self.tokens[-1]
            if last.type in OPENERS:
                depth += 1
            elif last.type in CLOSERS:
                depth -= 1
                if depth == 0:
                    return self.tokens

        opener = self.tokens[0]
        raise LexError(f"unclosed delimiter `{opener.value}`", opener.line, opener.column)

    def scan_token(self):
        """Scan next token"""
        if self.skip_whitespace():
            return

        self.mark()

        # Comments
        if self.peek() == '#':
            self.skip_comment()
            return

        # String literals
        if self.peek() in ('"', "'"):
            self.scan_string('')
            return

        # Numbers
        if self.peek().isdigit():
            self.scan_number()
            return

        # Identifiers, reserved words and prefixed strings
        if self.peek().isalpha() or self.peek() == '_':
            self.scan_identifier()
            return

        # Operators and punctuation
        self.scan_operator()

    # ========================================================================
    # Token Scanners
    # ========================================================================

    def scan_string(self, prefix: str):
        """Scan string literal: "...", '...', triple-quoted, optionally prefixed"""
        quote = self.peek()
        if self.peek(1) == quote and self.peek(2) == quote:
            quote = quote * 3
        value = prefix + self.advance(len(quote))  # Keep opening quote

        while self.pos < len(self.source):
            if self.source.startswith(quote, self.pos):
                value += self.advance(len(quote))  # Closing quote
                self.emit(TT.STRING, value)
                return

            ch = self.peek()
            if ch == '\\':
                # Keep escape sequence as-is
                value += self.advance(2)
                continue
            if ch == '\n' and len(quote) == 1:
                break
            value += self.advance()

        raise LexError("unterminated string", self.tok_line, self.tok_column)

    def scan_number(self):
        """Scan integer or float literal, including an optional width suffix"""
        value = ''
        is_float = False
        radix = 10

        if self.peek() == '0' and self.peek(1) in ('x', 'X', 'o', 'O', 'b', 'B'):
            radix = {'x': 16, 'o': 8, 'b': 2}[self.peek(1).lower()]
            value += self.advance(2)
            digits = {16: '0123456789abcdefABCDEF_', 8: '01234567_', 2: '01_'}[radix]
            while self.peek() != '\0' and self.peek() in digits:
                value += self.advance()
        else:
            # Integer part
            while self.peek().isdigit() or self.peek() == '_':
                value += self.advance()

            # Decimal part
            if self.peek() == '.' and self.peek(1).isdigit():
                is_float = True
                value += self.advance()  # .
                while self.peek().isdigit() or self.peek() == '_':
                    value += self.advance()

            # Scientific notation
            if self.peek() in ('e', 'E') and (
                self.peek(1).isdigit()
                or (self.peek(1) in ('+', '-') and self.peek(2).isdigit())
            ):
                is_float = True
                value += self.advance(2)
                while self.peek().isdigit() or self.peek() == '_':
                    value += self.advance()

        # Width suffix
        if self.peek().isalpha() or self.peek() == '_':
            suffix = ''
            while self.peek().isalnum() or self.peek() == '_':
                suffix += self.advance()

            if suffix in FLOAT_SUFFIXES and radix == 10:
                is_float = True
            elif suffix not in INT_SUFFIXES or is_float:
                raise LexError(
                    f"invalid suffix `{suffix}` for number literal",
                    self.tok_line, self.tok_column,
                )
            value += suffix

        self.emit(TT.FLOAT if is_float else TT.INTEGER, value)

    def scan_identifier(self):
        """Scan identifier, reserved word, or string prefix"""
        value = ''

        while self.peek().isalnum() or self.peek() == '_':
            value += self.advance()

        if value.lower() in STRING_PREFIXES and self.peek() in ('"', "'"):
            self.scan_string(value)
            return

        token_type = self.KEYWORDS.get(value, TT.IDENT)
        self.emit(token_type, value)

    def scan_operator(self):
        """Scan operators and punctuation"""
        for op_str, op_type in self.OPERATORS:
            if self.source.startswith(op_str, self.pos):
                self.advance(len(op_str))
                self.emit(op_type, op_str)
                return

        ch = self.peek()
        raise LexError(f"unexpected character '{ch}'", self.line, self.column)

    # ========================================================================
    # Utilities
    # ========================================================================

    def peek(self, offset: int = 0) -> str:
        """Look ahead at character"""
        idx = self.pos + offset
        if idx < len(self.source):
            return self.source[idx]
        return '\0'

    def advance(self, n: int = 1) -> str:
        """Consume n characters and return them as a string"""
        if n < 0:
            raise ValueError(f"advance() requires n >= 0, got {n}")
        result = ''
        for _ in range(n):
            if self.pos >= len(self.source):
                break
            ch = self.source[self.pos]
            result += ch
            self.pos += 1
            if ch == '\n':
                self.line += 1
                self.column = 1
            else:
                self.column += 1
        return result

    def mark(self):
        """Remember where the next token starts"""
        self.tok_line = self.line
        self.tok_column = self.column

    def skip_whitespace(self) -> bool:
        """Skip whitespace, newlines and line continuations"""
        skipped = False
        while True:
            ch = self.peek()
            if ch in (' ', '\t', '\f', '\r', '\n'):
                self.advance()
            elif ch == '\\' and self.peek(1) in ('\n', '\r'):
                self.advance(2)
            else:
                return skipped
            skipped = True

    def skip_trivia(self):
        """Skip whitespace and comments without emitting anything"""
        while True:
            if self.skip_whitespace():
                continue
            if self.peek() == '#':
                self.skip_comment(emit=False)
                continue
            return

    def skip_comment(self, emit: bool = True):
        """Skip comment until end of line"""
        text = ''
        while self.peek() not in ('\n', '\r', '\0'):
            text += self.advance()
        if emit and self.emit_comments:
            self.emit(TT.COMMENT, text)

    def emit(self, token_type: TT, value):
        """Emit a token spanning from the last mark to the current position"""
        tok = Tok(
            type=token_type,
            value=value,
            line=self.tok_line,
            column=self.tok_column,
            end_line=self.line,
            end_column=self.column,
        )
        self.tokens.append(tok)


def tokenize(source: str, emit_comments: bool = False) -> List[Tok]:
    """Convenience function to tokenize source"""
    lexer = Lexer(source, emit_comments=emit_comments)
    return lexer.tokenize()
