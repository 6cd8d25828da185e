"""Default expansion text of a normalized snippet.

This is what a snippet reads like right after expansion, before the user has
typed anything: placeholders show their defaults, choices their first item,
copies mirror their real tabstop (through their own transform) and variables
are substituted with their continuation lines indented like the line they
start on.
"""
from __future__ import annotations

import re
from typing import Dict, List, Mapping, Optional, Set

from .tree import ltr_nodes
from .transform import LinesFn, TransformEvaluator
from .types import NodeType, Snippet, SnippetNode, TransformSpec

_LEADING_WS = re.compile(r"[ \t]*")


def indent_lines(value: str, previous_text: Optional[List[str]]) -> str:
    """Prefix every line after the first with the indentation in front of it."""
    if "\n" not in value or not previous_text:
        return value

    indent = _LEADING_WS.match(previous_text[-1]).group()
    lines = value.split("\n")
    return "\n".join([lines[0]] + [indent + line for line in lines[1:]])


class Renderer:
    def __init__(self, ast: Snippet, variables: Optional[Mapping[str, str]] = None,
                 evaluator: Optional[TransformEvaluator] = None):
        self.ast = ast
        self.variables: Mapping[str, str] = variables or {}
        self.evaluator = evaluator if evaluator is not None else TransformEvaluator()
        self.owners: Dict[int, SnippetNode] = {}
        self._transforms: Dict[TransformSpec, LinesFn] = {}
        self._active: Set[int] = set()

        for node in ltr_nodes(ast):
            for dep in node.dependents or ():
                self.owners[id(dep)] = node

    def render(self, node: Optional[SnippetNode] = None) -> str:
        node = self.ast if node is None else node

        # a copy nested inside its own real tabstop would mirror itself.
        if id(node) in self._active:
            return ""

        self._active.add(id(node))
        try:
            return self._render(node)
        finally:
            self._active.discard(id(node))

    def _render(self, node: SnippetNode) -> str:
        owner = self.owners.get(id(node))
        if owner is not None:
            return self._apply_transform(node, self.render(owner))

        match node.type:
            case NodeType.TEXT:
                return getattr(node, "esc")
            case NodeType.SNIPPET | NodeType.PLACEHOLDER:
                return "".join(self.render(child) for child in node.children or ())
            case NodeType.CHOICE:
                items = getattr(node, "items")
                return items[0] if items else ""
            case NodeType.TABSTOP:
                return ""
            case NodeType.VARIABLE:
                return self._render_variable(node)
            case _:
                raise AssertionError(f"unknown node type {node.type}")

    def _render_variable(self, node: SnippetNode) -> str:
        value = self.variables.get(getattr(node, "name"))
        if value is None:
            value = "".join(self.render(child) for child in getattr(node, "default") or ())
        value = self._apply_transform(node, value)
        return indent_lines(value, node.previous_text)

    def _apply_transform(self, node: SnippetNode, text: str) -> str:
        if node.transform is None:
            return text

        fn = self._transforms.get(node.transform)
        if fn is None:
            fn = self.evaluator.build(node.transform)
            self._transforms[node.transform] = fn

        return "\n".join(fn(text.split("\n")))


def render_snippet(ast: Snippet, variables: Optional[Mapping[str, str]] = None,
                   evaluator: Optional[TransformEvaluator] = None) -> str:
    return Renderer(ast, variables, evaluator).render()
