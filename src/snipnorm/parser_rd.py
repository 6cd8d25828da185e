"""
Recursive Descent Parser for snippet bodies

Structure:
- Lexer: context-free token stream from source
- Parser: recursive descent with backtracking; any construct that does not
  parse is kept as literal text, so parsing never fails
- AST: raw Lark Tree/Token parse tree, typed later by ast_transforms

Grammar (TextMate / VS Code snippet syntax):

    any         ::= tabstop | placeholder | choice | variable | text
    tabstop     ::= '$' int | '${' int '}' | '${' int transform '}'
    placeholder ::= '${' int ':' any* '}'
    choice      ::= '${' int '|' option (',' option)* '|}'
    variable    ::= '$' name | '${' name '}' | '${' name ':' any* '}'
                  | '${' name transform '}'
    transform   ::= '/' regex '/' (format | text)* '/' options
    format      ::= '$' int | '${' int '}' | '${' int ':/' name '}'
                  | '${' int ':+' if '}' | '${' int ':?' if ':' else '}'
                  | '${' int ':-' else '}' | '${' int ':' else '}'
"""

from typing import Dict, List, Optional, Tuple, Union

from lark import Tree, Token

from .lexer_rd import tokenize
from .token_types import TT, Tok

RawNode = Union[Tree, Token]

# ============================================================================
# Parser
# ============================================================================

class Parser:
    """
    Recursive descent parser for snippet bodies.

    Every `parse_*` method that can fail restores `self.pos` to where it
    started and returns None; callers then fall back to literal text.
    """

    # Characters a backslash escapes in plain text.
    TEXT_ESCAPES = (TT.DOLLAR, TT.RBRACE, TT.BACKSLASH)
    # ... inside a choice option.
    CHOICE_ESCAPES = (TT.COMMA, TT.PIPE, TT.BACKSLASH)
    # ... inside the format part of a transform.
    FORMAT_ESCAPES = (TT.DOLLAR, TT.BACKSLASH, TT.SLASH, TT.RBRACE)
    # ... inside conditional format text.
    CONDITIONAL_ESCAPES = (TT.DOLLAR, TT.RBRACE, TT.BACKSLASH, TT.COLON)

    def __init__(self, tokens: List[Tok]):
        self.tokens = tokens
        self.pos = 0
        # `$` position -> (parsed node or None, position after it).
        self.memo: Dict[int, Tuple[Optional[Tree], int]] = {}

    # ========================================================================
    # Token Navigation
    # ========================================================================

    @property
    def current(self) -> Tok:
        if self.pos < len(self.tokens):
            return self.tokens[self.pos]
        return Tok(TT.EOF, None, 0, 0)

    def advance(self) -> Tok:
        """Consume current token and move to next"""
        prev = self.current
        if prev.type != TT.EOF:
            self.pos += 1
        return prev

    def check(self, *types: TT) -> bool:
        """Check if current token matches any of the given types"""
        return self.current.type in types

    def match(self, *types: TT) -> Optional[Tok]:
        """Consume and return the current token if it matches"""
        if self.check(*types):
            return self.advance()
        return None

    def backtrack(self, pos: int) -> None:
        self.pos = pos

    # ========================================================================
    # Top-Level Parsing
    # ========================================================================

    def parse(self) -> Tree:
        """Parse an entire snippet body"""
        children: List[RawNode] = []

        while not self.check(TT.EOF):
            self.parse_any(children)

        return Tree('snippet', children)

    def parse_any(self, children: List[RawNode]) -> None:
        """Parse one construct (or one token of text) into `children`."""
        if self.match(TT.BACKSLASH):
            if self.check(*self.TEXT_ESCAPES):
                self.append_text(children, self.advance().value)
            else:
                self.append_text(children, '\\')
            return

        if self.check(TT.DOLLAR):
            node = self.parse_dollar()
            if node is not None:
                children.append(node)
                return

        self.append_text(children, self.advance().value)

    def parse_body(self) -> Optional[List[RawNode]]:
        """Parse `any*` up to and including the closing brace."""
        children: List[RawNode] = []

        while not self.match(TT.RBRACE):
            if self.check(TT.EOF):
                return None
            self.parse_any(children)

        return children

    @staticmethod
    def append_text(children: List[RawNode], value: str) -> None:
        """Append text, merging with a directly preceding text node."""
        if children and isinstance(children[-1], Tree) and children[-1].data == 'text':
            value = children[-1].children[0] + value
            children[-1] = Tree('text', [Token('ESC', value)])
            return

        children.append(Tree('text', [Token('ESC', value)]))

    # ========================================================================
    # Tabstops, Placeholders, Choices, Variables
    # ========================================================================

    def parse_dollar(self) -> Optional[Tree]:
        """Parse the construct starting at `$`, at most once per position.

        A construct parses the same way whatever encloses it, so a failed
        `${` is not retried when an enclosing one falls back to text.
        """
        start = self.pos
        if start in self.memo:
            node, end = self.memo[start]
            self.pos = end
            return node

        node = self._parse_dollar()
        self.memo[start] = (node, self.pos)
        return node

    def _parse_dollar(self) -> Optional[Tree]:
        start = self.pos
        self.advance()  # $

        tok = self.match(TT.INT)
        if tok is not None:
            return Tree('tabstop', [_tok('INT', tok)])

        tok = self.match(TT.NAME)
        if tok is not None:
            return Tree('variable', [_tok('NAME', tok)])

        if self.match(TT.LBRACE):
            node = self.parse_complex()
            if node is not None:
                return node

        self.backtrack(start)
        return None

    def parse_complex(self) -> Optional[Tree]:
        """Parse the part of `${...}` after the opening brace."""
        tok = self.match(TT.INT)
        if tok is not None:
            index = _tok('INT', tok)

            if self.match(TT.RBRACE):
                return Tree('tabstop', [index])

            if self.match(TT.COLON):
                body = self.parse_body()
                if body is None:
                    return None
                return Tree('placeholder', [index, *body])

            if self.match(TT.PIPE):
                return self.parse_choice(index)

            if self.match(TT.SLASH):
                transform = self.parse_transform()
                if transform is None:
                    return None
                return Tree('tabstop', [index, transform])

            return None

        tok = self.match(TT.NAME)
        if tok is not None:
            name = _tok('NAME', tok)

            if self.match(TT.RBRACE):
                return Tree('variable', [name])

            if self.match(TT.COLON):
                body = self.parse_body()
                if body is None:
                    return None
                return Tree('variable', [name, Tree('default', body)])

            if self.match(TT.SLASH):
                transform = self.parse_transform()
                if transform is None:
                    return None
                return Tree('variable', [name, transform])

        return None

    def parse_choice(self, index: Token) -> Optional[Tree]:
        options: List[RawNode] = [index]

        while True:
            option = self.parse_choice_option()
            if option is None:
                return None
            options.append(Token('OPTION', option))

            if self.match(TT.COMMA):
                continue

            if self.match(TT.PIPE) and self.match(TT.RBRACE):
                return Tree('choice', options)

            return None

    def parse_choice_option(self) -> Optional[str]:
        parts: List[str] = []

        while not self.check(TT.COMMA, TT.PIPE, TT.EOF):
            if self.match(TT.BACKSLASH):
                if self.check(*self.CHOICE_ESCAPES):
                    parts.append(self.advance().value)
                else:
                    parts.append('\\')
                continue
            parts.append(self.advance().value)

        if self.check(TT.EOF) or not parts:
            return None

        return ''.join(parts)

    # ========================================================================
    # Transforms
    # ========================================================================

    def parse_transform(self) -> Optional[Tree]:
        """Parse `regex/format/options}` (the leading slash is consumed)."""
        regex: List[str] = []

        while not self.match(TT.SLASH):
            if self.check(TT.EOF):
                return None
            if self.match(TT.BACKSLASH):
                if self.check(TT.SLASH):
                    regex.append(self.advance().value)
                elif self.match(TT.BACKSLASH):
                    regex.append('\\\\')
                else:
                    regex.append('\\')
                continue
            regex.append(self.advance().value)

        fragments: List[RawNode] = []

        while not self.match(TT.SLASH):
            if self.check(TT.EOF):
                return None
            if self.match(TT.BACKSLASH):
                if self.check(*self.FORMAT_ESCAPES):
                    self.append_format_text(fragments, self.advance().value)
                else:
                    self.append_format_text(fragments, '\\')
                continue
            if self.check(TT.DOLLAR):
                fragment = self.parse_format_string()
                if fragment is not None:
                    fragments.append(fragment)
                    continue
            self.append_format_text(fragments, self.advance().value)

        options: List[str] = []

        while not self.match(TT.RBRACE):
            if self.check(TT.EOF):
                return None
            options.append(self.advance().value)

        return Tree('regex_transform', [
            Token('PATTERN', ''.join(regex)),
            Tree('format_spec', fragments),
            Token('OPTIONS', ''.join(options)),
        ])

    @staticmethod
    def append_format_text(fragments: List[RawNode], value: str) -> None:
        if fragments and isinstance(fragments[-1], Tree) and fragments[-1].data == 'format_text':
            value = fragments[-1].children[0] + value
            fragments[-1] = Tree('format_text', [Token('ESC', value)])
            return

        fragments.append(Tree('format_text', [Token('ESC', value)]))

    def parse_format_string(self) -> Optional[Tree]:
        start = self.pos
        self.advance()  # $

        tok = self.match(TT.INT)
        if tok is not None:
            return Tree('format_capture', [_tok('INT', tok)])

        if not self.match(TT.LBRACE):
            self.backtrack(start)
            return None

        tok = self.match(TT.INT)
        if tok is None:
            self.backtrack(start)
            return None
        index = _tok('INT', tok)

        if self.match(TT.RBRACE):
            return Tree('format_capture', [index])

        if not self.match(TT.COLON):
            self.backtrack(start)
            return None

        node: Optional[Tree] = None

        if self.match(TT.SLASH):
            name = self.match(TT.NAME)
            if name is not None and self.match(TT.RBRACE):
                node = Tree('format_modifier', [index, _tok('MODIFIER', name)])
        elif self.match(TT.PLUS):
            if_text = self.parse_until(TT.RBRACE)
            if if_text is not None:
                node = Tree('format_if', [index, Token('IF_TEXT', if_text)])
        elif self.match(TT.QMARK):
            if_text = self.parse_until(TT.COLON)
            if if_text is not None:
                else_text = self.parse_until(TT.RBRACE)
                if else_text is not None:
                    node = Tree('format_ifelse', [
                        index,
                        Token('IF_TEXT', if_text),
                        Token('ELSE_TEXT', else_text),
                    ])
        else:
            # `${1:-else}` and the shorthand `${1:else}` mean the same thing.
            self.match(TT.DASH)
            else_text = self.parse_until(TT.RBRACE)
            if else_text is not None:
                node = Tree('format_else', [index, Token('ELSE_TEXT', else_text)])

        if node is None:
            self.backtrack(start)
        return node

    def parse_until(self, end: TT) -> Optional[str]:
        """Collect escaped text up to (and consuming) an unescaped `end`."""
        parts: List[str] = []

        while not self.match(end):
            if self.check(TT.EOF):
                return None
            if self.match(TT.BACKSLASH):
                if self.check(*self.CONDITIONAL_ESCAPES):
                    parts.append(self.advance().value)
                else:
                    parts.append('\\')
                continue
            parts.append(self.advance().value)

        return ''.join(parts)


def _tok(type_: str, tok: Tok) -> Token:
    return Token(type_, tok.value, line=tok.line, column=tok.column)


def parse_source(source: str) -> Tree:
    """Tokenize and parse a snippet body into a raw Lark tree."""
    return Parser(tokenize(source)).parse()
