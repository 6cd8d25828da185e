"""
Typed-AST construction for snippet parse trees.

`SnippetBuilder` turns the raw Lark tree produced by `parser_rd` into the
node dataclasses of `types.py`, bottom-up, the same way the parse-tree pruning
transformers work on program trees.
"""

from __future__ import annotations

from typing import List, Optional

from lark import Token, Transformer, Tree, v_args

from .types import (
    Choice,
    FormatCapture,
    FormatFragment,
    FormatText,
    Placeholder,
    Snippet,
    SnippetNode,
    Tabstop,
    Text,
    TransformSpec,
    Variable,
)


class SnippetBuilder(Transformer):
    # ---- terminals ----
    def INT(self, tok: Token) -> int:
        return int(tok)

    # ---- structure ----
    def snippet(self, c: List[SnippetNode]) -> Snippet:
        return Snippet(children=list(c))

    @v_args(inline=True)
    def text(self, esc: Token) -> Text:
        return Text(esc=str(esc))

    def tabstop(self, c) -> Tabstop:
        transform: Optional[TransformSpec] = c[1] if len(c) > 1 else None
        return Tabstop(tabstop=c[0], transform=transform)

    def placeholder(self, c) -> Placeholder:
        return Placeholder(tabstop=c[0], children=list(c[1:]))

    def choice(self, c) -> Choice:
        return Choice(tabstop=c[0], items=[str(option) for option in c[1:]])

    def variable(self, c) -> Variable:
        node = Variable(name=str(c[0]))

        for extra in c[1:]:
            if isinstance(extra, TransformSpec):
                node.transform = extra
            else:
                node.default = extra

        return node

    def default(self, c: List[SnippetNode]) -> List[SnippetNode]:
        return list(c)

    # ---- transforms ----
    @v_args(inline=True)
    def regex_transform(self, pattern: Token, fragments: List[FormatFragment], options: Token) -> TransformSpec:
        return TransformSpec(pattern=str(pattern), option=str(options), format=tuple(fragments))

    def format_spec(self, c: List[FormatFragment]) -> List[FormatFragment]:
        return list(c)

    @v_args(inline=True)
    def format_text(self, esc: Token) -> FormatText:
        return FormatText(esc=str(esc))

    @v_args(inline=True)
    def format_capture(self, index: int) -> FormatCapture:
        return FormatCapture(capture_index=index)

    @v_args(inline=True)
    def format_modifier(self, index: int, modifier: Token) -> FormatCapture:
        return FormatCapture(capture_index=index, modifier=str(modifier))

    @v_args(inline=True)
    def format_if(self, index: int, if_text: Token) -> FormatCapture:
        return FormatCapture(capture_index=index, if_text=str(if_text))

    @v_args(inline=True)
    def format_ifelse(self, index: int, if_text: Token, else_text: Token) -> FormatCapture:
        return FormatCapture(capture_index=index, if_text=str(if_text), else_text=str(else_text))

    @v_args(inline=True)
    def format_else(self, index: int, else_text: Token) -> FormatCapture:
        return FormatCapture(capture_index=index, else_text=str(else_text))


def build_ast(tree: Tree) -> Snippet:
    """Convert a raw snippet parse tree into the typed AST."""
    ast = SnippetBuilder().transform(tree)
    assert isinstance(ast, Snippet)
    return ast
