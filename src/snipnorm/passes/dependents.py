"""Tabstop authority resolution.

Of all nodes sharing a tabstop index, exactly one is the "real" tabstop; the
others are copies that mirror it. Observed behaviour of the reference editor:

- in "${1|b,c|} ${1:aa}" ${1:aa} is the copy,
- in "${1:aa}, ${1|b,c|}" ${1|b,c|} is the copy,
- in "$1 ${1:aa}" $1 is the copy.

So placeholders and choices share a priority above bare tabstops, and among
equal priorities the node seen first wins (in "${1: ${1:lel}}" that is the
outer placeholder).
"""
from __future__ import annotations

import logging
from typing import Dict, List, Optional

from ..tree import ltr_nodes
from ..types import NodeType, Snippet, SnippetNode
from .zero import check_exit_point

logger = logging.getLogger(__name__)

REAL_TABSTOP_PRIO: Dict[NodeType, int] = {
    NodeType.TABSTOP: 1,
    NodeType.PLACEHOLDER: 2,
    NodeType.CHOICE: 2,
}


def real_tabstop_order_less(prev_node: SnippetNode, current_node: SnippetNode) -> bool:
    """True if `current_node` should replace `prev_node` as the real tabstop.

    Only meaningful when `prev_node` comes before `current_node` in traversal
    order; this is a fold step, not a comparator.
    """
    prio_prev = REAL_TABSTOP_PRIO[prev_node.type]
    prio_current = REAL_TABSTOP_PRIO[current_node.type]
    return prio_prev < prio_current


def add_dependents(ast: Snippet, source: Optional[str] = None) -> None:
    """Attach to every real tabstop the list of nodes that copy it.

    Authorities without copies get an empty `dependents` list; copies keep
    `dependents` unset.
    """
    check_exit_point(ast, source)

    # tabstop index -> current real tabstop.
    tabstops: Dict[int, SnippetNode] = {}
    # tabstop index -> copies, in the order they were displaced/encountered.
    copies: Dict[int, List[SnippetNode]] = {}

    for node in ltr_nodes(ast):
        index = node.tabstop
        if index is None:
            continue

        real = tabstops.get(index)
        if real is None:
            tabstops[index] = node
            continue

        if real_tabstop_order_less(real, node):
            copies.setdefault(index, []).append(real)
            tabstops[index] = node
        else:
            copies.setdefault(index, []).append(node)

    for index, real_tabstop in tabstops.items():
        real_tabstop.dependents = list(copies.get(index, ()))

    logger.debug(
        "resolved %d tabstop(s), %d copies",
        len(tabstops),
        sum(len(found) for found in copies.values()),
    )
