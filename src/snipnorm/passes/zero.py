from __future__ import annotations

import logging
from typing import Optional

from ..tree import count_tabstop, max_position, replace_position, text_only_placeholder, zero_node
from ..types import MalformedSnippetError, NodeType, Snippet, SnippetNode, Tabstop

logger = logging.getLogger(__name__)


def is_simple_exit(node: SnippetNode) -> bool:
    """A bare tabstop, or a placeholder holding nothing but text."""
    if node.type is NodeType.TABSTOP:
        return True
    return node.type is NodeType.PLACEHOLDER and text_only_placeholder(node)


def fix_zero(ast: Snippet) -> None:
    """Make sure the snippet has exactly one simple `$0` directly under the root.

    An exit that is a choice, a placeholder with interactive content, nested
    below the root or duplicated is moved out of the way: every node on index
    0 is renumbered to one past the highest index, and a fresh `$0` is inserted
    right after the root child that held the old exit (or at the end when the
    snippet had none).
    """
    zn, ast_child_with_0_indx = zero_node(ast)

    if (
        zn is not None
        and ast_child_with_0_indx is not None
        and is_simple_exit(zn)
        and ast.children[ast_child_with_0_indx] is zn
        and count_tabstop(ast, 0) <= 1
    ):
        return

    max_pos = max_position(ast)
    replace_position(ast, 0, max_pos + 1)

    insert_at = len(ast.children) if ast_child_with_0_indx is None else ast_child_with_0_indx + 1
    ast.children.insert(insert_at, Tabstop(tabstop=0))

    logger.debug(
        "exit point rewritten: old $0 renumbered to %d, new $0 at root child %d",
        max_pos + 1,
        insert_at,
    )


def check_exit_point(ast: Snippet, source: Optional[str] = None) -> SnippetNode:
    """Return the exit node, or fail if the tree was not normalized."""
    zeros = [child for child in ast.children if child.tabstop == 0]
    total = count_tabstop(ast, 0)

    if total == 0:
        raise MalformedSnippetError("snippet has no exit point ($0); run fix_zero first", source)
    if total > 1:
        raise MalformedSnippetError(f"exit point ($0) is ambiguous: {total} nodes hold index 0", source)
    if not zeros:
        raise MalformedSnippetError("exit point ($0) is not a direct child of the snippet", source)

    exit_node = zeros[0]
    if exit_node.transform is not None or not is_simple_exit(exit_node):
        raise MalformedSnippetError(
            f"exit point ($0) must be a plain tabstop, found {exit_node.type.value}", source
        )

    return exit_node
