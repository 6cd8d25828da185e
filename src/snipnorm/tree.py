"""Shared helpers for walking snippet ASTs.

Every pass is built on `predicate_ltr_nodes`: a pre-order, left-to-right walk
that only descends into placeholders and the snippet root, i.e. the nodes a
cursor can jump into. Choices, variables and transforms are opaque leaves.
"""
from __future__ import annotations

from typing import Callable, List, Optional, Tuple

from .types import NodeType, SnippetNode, is_container

NodePredicate = Callable[[SnippetNode], bool]


def predicate_ltr_nodes(ast: SnippetNode, fn: NodePredicate) -> bool:
    """Walk `ast` pre-order, left to right, stopping as soon as `fn` returns True.

    Returns whether the predicate matched.
    """
    if fn(ast):
        return True

    if is_container(ast):
        for child in ast.children or ():
            if predicate_ltr_nodes(child, fn):
                return True

    return False

def ltr_nodes(ast: SnippetNode) -> List[SnippetNode]:
    """All nodes reachable by the walk, in traversal order."""
    nodes: List[SnippetNode] = []

    def collect(node: SnippetNode) -> bool:
        nodes.append(node)
        return False

    predicate_ltr_nodes(ast, collect)
    return nodes

def zero_node(ast: SnippetNode) -> Tuple[Optional[SnippetNode], Optional[int]]:
    """Find the exit node (index 0, no transform) and the index of the root
    child that contains it."""
    found: List[SnippetNode] = []

    def is_exit(node: SnippetNode) -> bool:
        if node.tabstop == 0 and node.transform is None:
            found.append(node)
            return True
        return False

    for idx, child in enumerate(ast.children or ()):
        if predicate_ltr_nodes(child, is_exit):
            return found[0], idx

    return None, None

def count_tabstop(ast: SnippetNode, tabstop_indx: int) -> int:
    count = 0

    def visit(node: SnippetNode) -> bool:
        nonlocal count
        if node.tabstop == tabstop_indx:
            count += 1
        return False

    predicate_ltr_nodes(ast, visit)
    return count

def text_only_placeholder(placeholder: SnippetNode) -> bool:
    """True if everything below `placeholder` is plain text."""
    def non_text(node: SnippetNode) -> bool:
        return node is not placeholder and node.type is not NodeType.TEXT

    return not predicate_ltr_nodes(placeholder, non_text)

def max_position(ast: SnippetNode) -> int:
    highest = -1

    def visit(node: SnippetNode) -> bool:
        nonlocal highest
        position = node.tabstop if node.tabstop is not None else -1
        if position > highest:
            highest = position
        return False

    predicate_ltr_nodes(ast, visit)
    return highest

def replace_position(ast: SnippetNode, p1: int, p2: int) -> None:
    def visit(node: SnippetNode) -> bool:
        if node.tabstop == p1:
            node.tabstop = p2
        return False

    predicate_ltr_nodes(ast, visit)

def copy_nodes(ast: SnippetNode) -> List[SnippetNode]:
    """Every node listed in some authority's `dependents`."""
    copies: List[SnippetNode] = []

    def visit(node: SnippetNode) -> bool:
        copies.extend(node.dependents or ())
        return False

    predicate_ltr_nodes(ast, visit)
    return copies

def authority_of(ast: SnippetNode, node: SnippetNode) -> Optional[SnippetNode]:
    """The authoritative node `node` mirrors, or None if it mirrors nothing."""
    owner: List[SnippetNode] = []

    def visit(candidate: SnippetNode) -> bool:
        if any(dep is node for dep in candidate.dependents or ()):
            owner.append(candidate)
            return True
        return False

    predicate_ltr_nodes(ast, visit)
    return owner[0] if owner else None

def pretty(ast: SnippetNode, indent: str = '  ',
           mark: Optional[Callable[[SnippetNode], str]] = None) -> str:
    """Return pretty-printed tree representation."""
    def describe(node: SnippetNode) -> str:
        parts = [node.type.value]
        if node.tabstop is not None:
            parts.append(f"#{node.tabstop}")
        match node.type:
            case NodeType.TEXT:
                parts.append(repr(getattr(node, "esc")))
            case NodeType.VARIABLE:
                parts.append(getattr(node, "name"))
            case NodeType.CHOICE:
                parts.append("|" + ",".join(getattr(node, "items")) + "|")
            case _:
                pass
        if node.transform is not None:
            parts.append(f"/{node.transform.pattern}/{node.transform.option}")
        if node.dependents:
            parts.append(f"dependents={len(node.dependents)}")
        if node.previous_text is not None:
            parts.append(f"previous_text={node.previous_text!r}")
        if mark is not None:
            parts.append(mark(node))
        return " ".join(p for p in parts if p)

    def _pretty(node: SnippetNode, level: int) -> str:
        lines = [f'{indent * level}{describe(node)}\n']
        if is_container(node):
            for child in node.children or ():
                lines.append(_pretty(child, level + 1))
        return ''.join(lines)

    return _pretty(ast, 0)
