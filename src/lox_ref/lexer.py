"""
Scanner for Lox

Tokenizes Lox source code into a stream of tokens.

Features:
- Single-pass tokenization
- Longest-match operator table
- Absolute offset tracking (the front-end maps offsets to line/column)
- Lexical errors are reported and scanning carries on
"""

import logging
from typing import List, Optional, Tuple

from .diagnostics import Diagnostics, Phase
from .token_types import TT, Tok

logger = logging.getLogger(__name__)

_DIGITS = "0123456789"

# ============================================================================
# Scanner Implementation
# ============================================================================

class Scanner:
    """
    Lox scanner.

    Lexical errors never stop the scan: an unexpected character or an
    unterminated string is recorded in the diagnostics collector and the
    scanner resumes at the next character, so one run can surface several
    errors.
    """

    # Keyword mapping
    KEYWORDS = {
        'and': TT.AND,
        'class': TT.CLASS,
        'else': TT.ELSE,
        'false': TT.FALSE,
        'for': TT.FOR,
        'fun': TT.FUN,
        'if': TT.IF,
        'nil': TT.NIL,
        'or': TT.OR,
        'print': TT.PRINT,
        'return': TT.RETURN,
        'super': TT.SUPER,
        'this': TT.THIS,
        'true': TT.TRUE,
        'var': TT.VAR,
        'while': TT.WHILE,
    }

    # Operator mapping: longest matches first to handle prefixes correctly
    OPERATORS = [
        # Two-character operators
        ('!=', TT.BANG_EQUAL),
        ('==', TT.EQUAL_EQUAL),
        ('<=', TT.LESS_EQUAL),
        ('>=', TT.GREATER_EQUAL),

        # Single-character operators
        ('(', TT.LEFT_PAREN),
        (')', TT.RIGHT_PAREN),
        ('{', TT.LEFT_BRACE),
        ('}', TT.RIGHT_BRACE),
        (',', TT.COMMA),
        ('.', TT.DOT),
        ('-', TT.MINUS),
        ('+', TT.PLUS),
        (';', TT.SEMICOLON),
        ('/', TT.SLASH),
        ('*', TT.STAR),
        ('?', TT.QUESTION),
        (':', TT.COLON),
        ('!', TT.BANG),
        ('=', TT.EQUAL),
        ('<', TT.LESS),
        ('>', TT.GREATER),
    ]

    def __init__(self, source: str, diagnostics: Optional[Diagnostics] = None):
        self.source = source
        self.pos = 0
        self.start = 0
        self.tokens: List[Tok] = []
        self.diagnostics = diagnostics if diagnostics is not None else Diagnostics()

    # ========================================================================
    # Main Tokenization
    # ========================================================================

    def tokenize(self) -> List[Tok]:
        """Tokenize entire source, return token list"""
        while self.pos < len(self.source):
            self.start = self.pos
            self.scan_token()

        self.tokens.append(Tok(TT.EOF, "", None, len(self.source)))
        logger.debug("scanned %d tokens, %d lexical errors", len(self.tokens), len(self.diagnostics))
        return self.tokens

    def scan_token(self):
        """Scan next token"""
        # Skip whitespace (newlines included)
        if self.skip_whitespace():
            return

        # Comments
        if self.source.startswith('//', self.pos):
            self.skip_comment()
            return

        # String literals
        if self.peek() == '"':
            self.scan_string()
            return

        # Numbers
        if self.peek() in _DIGITS:
            self.scan_number()
            return

        # Identifiers and keywords
        if self.peek().isalpha() or self.peek() == '_':
            self.scan_identifier()
            return

        # Operators and punctuation
        self.scan_operator()

    # ========================================================================
    # Token Scanners
    # ========================================================================

    def scan_string(self):
        """Scan string literal: "..." (may span lines, no escapes)"""
        self.advance()  # opening quote

        while self.pos < len(self.source) and self.peek() != '"':
            self.advance()

        if self.pos >= len(self.source):
            self.error(self.pos, "Unterminated string.")
            return

        self.advance()  # closing quote
        self.emit(TT.STRING, self.source[self.start + 1:self.pos - 1])

    def scan_number(self):
        """Scan number literal: digits with an optional fractional part"""
        while self.peek() in _DIGITS:
            self.advance()

        # A trailing dot is not part of the number: `1.` scans as NUMBER DOT
        if self.peek() == '.' and self.peek(1) in _DIGITS:
            self.advance()
            while self.peek() in _DIGITS:
                self.advance()

        self.emit(TT.NUMBER, float(self.source[self.start:self.pos]))

    def scan_identifier(self):
        """Scan identifier or keyword"""
        while self.peek().isalnum() or self.peek() == '_':
            self.advance()

        text = self.source[self.start:self.pos]
        self.emit(self.KEYWORDS.get(text, TT.IDENTIFIER))

    def scan_operator(self):
        """Scan operators and punctuation"""
        for op_str, op_type in self.OPERATORS:
            if self.source.startswith(op_str, self.pos):
                self.advance(len(op_str))
                self.emit(op_type)
                return

        ch = self.advance()
        self.error(self.start, f"Unexpected character '{ch}'.")

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
        result = self.source[self.pos:self.pos + n]
        self.pos = min(self.pos + n, len(self.source))
        return result

    def skip_whitespace(self) -> bool:
        """Skip whitespace, return True if any skipped"""
        skipped = False
        while self.peek() in (' ', '\t', '\r', '\n'):
            self.advance()
            skipped = True
        return skipped

    def skip_comment(self):
        """Skip comment until end of line"""
        while self.peek() not in ('\n', '\0'):
            self.advance()

    def emit(self, token_type: TT, literal=None):
        """Emit a token spanning start..pos"""
        tok = Tok(
            type=token_type,
            lexeme=self.source[self.start:self.pos],
            literal=literal,
            offset=self.start,
        )
        self.tokens.append(tok)

    def error(self, offset: int, message: str):
        self.diagnostics.report(offset, message, Phase.LEXICAL)


def scan(source: str) -> Tuple[List[Tok], Diagnostics]:
    """Tokenize source; return the tokens and any lexical diagnostics"""
    diagnostics = Diagnostics()
    tokens = Scanner(source, diagnostics).tokenize()
    return tokens, diagnostics
