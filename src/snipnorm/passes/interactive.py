from __future__ import annotations

from typing import Set

from ..tree import copy_nodes, ltr_nodes
from ..types import MalformedSnippetError, NodeType, Snippet, SnippetNode


def _copy_ids(root: Snippet) -> Set[int]:
    nodes = ltr_nodes(root)
    if any(node.tabstop is not None for node in nodes) and not any(
        node.dependents is not None for node in nodes
    ):
        raise MalformedSnippetError("interactivity needs resolved dependents; run add_dependents first")
    return {id(node) for node in copy_nodes(root)}


def is_interactive(node: SnippetNode, root: Snippet) -> bool:
    """Whether the cursor can stop at `node` or somewhere inside it."""
    return _is_interactive(node, _copy_ids(root))


def _is_interactive(node: SnippetNode, copies: Set[int]) -> bool:
    match node.type:
        case NodeType.TEXT | NodeType.VARIABLE:
            return False
        case NodeType.CHOICE:
            return True
        case NodeType.TABSTOP:
            # a copy only mirrors its real tabstop.
            return id(node) not in copies
        case NodeType.PLACEHOLDER | NodeType.SNIPPET:
            return any(_is_interactive(child, copies) for child in node.children or ())
        case _:
            raise AssertionError(f"unknown node type {node.type}")


def interactive_nodes(root: Snippet) -> Set[int]:
    """ids of every interactive node reachable from `root`."""
    copies = _copy_ids(root)
    return {id(node) for node in ltr_nodes(root) if _is_interactive(node, copies)}
