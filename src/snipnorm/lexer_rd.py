"""
Lexer for snippet bodies - Recursive Descent Parser front end

Tokenizes snippet source into a stream of tokens.

Features:
- Single-pass tokenization
- Context free: the parser decides what a token means
- Lossless: concatenating token values gives back the source
- Position tracking (line, column)
"""

from typing import List

from .token_types import TT, Tok

# ============================================================================
# Lexer Implementation
# ============================================================================

class Lexer:
    """
    Snippet lexer.

    Single characters with a grammatical role get their own token, digit runs
    become INT, identifier runs become NAME and every other run of characters
    is folded into one TEXT token.
    """

    PUNCTUATION = {
        '$': TT.DOLLAR,
        ':': TT.COLON,
        ',': TT.COMMA,
        '{': TT.LBRACE,
        '}': TT.RBRACE,
        '\\': TT.BACKSLASH,
        '/': TT.SLASH,
        '|': TT.PIPE,
        '+': TT.PLUS,
        '-': TT.DASH,
        '?': TT.QMARK,
    }

    def __init__(self, source: str):
        self.source = source
        self.pos = 0
        self.line = 1
        self.column = 1
        self.tokens: List[Tok] = []

    # ========================================================================
    # Main Tokenization
    # ========================================================================

    def tokenize(self) -> List[Tok]:
        """Tokenize entire source, return token list"""
        while self.pos < len(self.source):
            self.scan_token()

        self.emit(TT.EOF, None, self.line, self.column)
        return self.tokens

    def scan_token(self):
        """Scan next token"""
        ch = self.peek()

        if ch in self.PUNCTUATION:
            line, column = self.line, self.column
            self.emit(self.PUNCTUATION[ch], self.advance(), line, column)
            return

        if self.is_digit(ch):
            self.scan_int()
            return

        if self.is_name_start(ch):
            self.scan_name()
            return

        self.scan_text()

    def scan_int(self):
        """Scan a run of ASCII digits"""
        line, column = self.line, self.column
        start = self.pos
        while self.is_digit(self.peek()):
            self.advance()
        self.emit(TT.INT, self.source[start:self.pos], line, column)

    def scan_name(self):
        """Scan a variable name: [_a-zA-Z][_a-zA-Z0-9]*"""
        line, column = self.line, self.column
        start = self.pos
        while self.is_name_char(self.peek()):
            self.advance()
        self.emit(TT.NAME, self.source[start:self.pos], line, column)

    def scan_text(self):
        """Scan everything up to the next character with its own token"""
        line, column = self.line, self.column
        start = self.pos
        while self.pos < len(self.source):
            ch = self.peek()
            if ch in self.PUNCTUATION or self.is_digit(ch) or self.is_name_start(ch):
                break
            self.advance()
        self.emit(TT.TEXT, self.source[start:self.pos], line, column)

    # ========================================================================
    # Utilities
    # ========================================================================

    @staticmethod
    def is_digit(ch: str) -> bool:
        return '0' <= ch <= '9'

    @staticmethod
    def is_name_start(ch: str) -> bool:
        return ch == '_' or ('a' <= ch <= 'z') or ('A' <= ch <= 'Z')

    @staticmethod
    def is_name_char(ch: str) -> bool:
        return Lexer.is_name_start(ch) or Lexer.is_digit(ch)

    def peek(self, offset: int = 0) -> str:
        """Look ahead at character"""
        idx = self.pos + offset
        if idx < len(self.source):
            return self.source[idx]
        return '\0'

    def advance(self) -> str:
        """Consume one character, keeping line/column current"""
        ch = self.source[self.pos]
        self.pos += 1
        if ch == '\n':
            self.line += 1
            self.column = 1
        else:
            self.column += 1
        return ch

    def emit(self, token_type: TT, value, line: int, column: int):
        """Emit a token"""
        tok = Tok(
            type=token_type,
            value=value,
            line=line,
            column=column
        )
        self.tokens.append(tok)


def tokenize(source: str) -> List[Tok]:
    """Convenience function to tokenize source"""
    lexer = Lexer(source)
    return lexer.tokenize()
