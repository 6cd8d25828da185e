"""prompt_toolkit lexer for live snippet-syntax highlighting in the REPL."""

from __future__ import annotations

from typing import Callable, List

from prompt_toolkit.document import Document
from prompt_toolkit.formatted_text import StyleAndTextTuples
from prompt_toolkit.lexers import Lexer

from .lexer_rd import tokenize
from .token_types import TT, Tok

# Map highlight groups → prompt_toolkit style strings.
GROUP_STYLE = {
    "sigil": "bold ansicyan",
    "index": "ansimagenta",
    "variable": "ansiyellow",
    "punctuation": "ansicyan",
    "escape": "ansigreen",
    "text": "",
}

_PUNCTUATION = {TT.LBRACE, TT.RBRACE, TT.PIPE, TT.COLON, TT.COMMA, TT.SLASH}


def _groups(tokens: List[Tok]) -> List[str]:
    """Highlight group for each token, using its left neighbours as context."""
    groups: List[str] = []
    after_sigil = False
    escaped = False

    for tok in tokens:
        group = "text"

        if escaped:
            group = "escape"
            escaped = False
        elif tok.type == TT.BACKSLASH:
            group = "escape"
            escaped = True
        elif tok.type == TT.DOLLAR:
            group = "sigil"
        elif after_sigil and tok.type == TT.INT:
            group = "index"
        elif after_sigil and tok.type == TT.NAME:
            group = "variable"
        elif tok.type in _PUNCTUATION:
            group = "punctuation"

        # `$` and `${` both put the next word in index/variable position.
        after_sigil = tok.type == TT.DOLLAR or (tok.type == TT.LBRACE and groups[-1:] == ["sigil"])
        groups.append(group)

    return groups


def _highlight_line(text: str) -> StyleAndTextTuples:
    """Tokenize a single line and return styled fragments."""
    if not text:
        return [("", "")]

    tokens = [tok for tok in tokenize(text) if tok.type != TT.EOF]
    result: StyleAndTextTuples = []

    for tok, group in zip(tokens, _groups(tokens)):
        result.append((GROUP_STYLE[group], tok.value))

    return result if result else [("", text)]


class SnippetLexer(Lexer):
    """prompt_toolkit Lexer that highlights snippet bodies using the RD lexer."""

    def lex_document(self, document: Document) -> Callable[[int], StyleAndTextTuples]:
        lines = document.lines

        cache: dict[int, StyleAndTextTuples] = {}

        def get_line(lineno: int) -> StyleAndTextTuples:
            if lineno not in cache:
                if lineno < len(lines):
                    cache[lineno] = _highlight_line(lines[lineno])
                else:
                    cache[lineno] = [("", "")]

            return cache[lineno]

        return get_line
