from __future__ import annotations

from typing import List

from ..tree import predicate_ltr_nodes
from ..types import Snippet, SnippetNode, is_text, is_variable


def give_vars_previous_text(ast: Snippet) -> None:
    """Give each variable the text in front of it, split into lines.

    Variables need it to decide how to indent multi-line values:
    in "asdf\\n\\t$TM_SELECTED_TEXT" every line of the selection gets "\\t".
    """
    last_text: List[str] = [""]

    def visit(node: SnippetNode) -> bool:
        nonlocal last_text

        # Containers contribute text only through their children. Looking at
        # them here would reset `last_text` before a leading child variable,
        # as in "asdf\n\t${1:$TM_SELECTED_TEXT}".
        if node.children is not None:
            return False

        if is_text(node):
            last_text = node.esc.split("\n")
        elif is_variable(node):
            node.previous_text = last_text
        else:
            # whatever a tabstop or choice inserts is unknown here.
            last_text = [""]

        return False

    predicate_ltr_nodes(ast, visit)
