"""
Token Types for the snippet parser

Shared between lexer and parser to avoid circular dependencies.
"""

from typing import Any
from dataclasses import dataclass
from enum import Enum, auto


class TT(Enum):
    """Token Types - one per character class the snippet grammar cares about"""

    # Punctuation
    DOLLAR = auto()  # $
    COLON = auto()  # :
    COMMA = auto()  # ,
    LBRACE = auto()  # {
    RBRACE = auto()  # }
    BACKSLASH = auto()  # \
    SLASH = auto()  # /
    PIPE = auto()  # |
    PLUS = auto()  # +
    DASH = auto()  # -
    QMARK = auto()  # ?

    # Words
    INT = auto()
    NAME = auto()

    # Everything else (including newlines)
    TEXT = auto()

    # Special
    EOF = auto()


@dataclass
class Tok:
    """Token with position info"""

    type: TT
    value: Any
    line: int = 0
    column: int = 0

    def __repr__(self):
        return f"Tok({self.type.name}, {self.value!r}, {self.line}:{self.column})"
