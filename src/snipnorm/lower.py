from __future__ import annotations

from typing import Optional

from .passes.dependents import add_dependents
from .passes.variables import give_vars_previous_text
from .passes.zero import fix_zero
from .types import Snippet


def lower(ast: Snippet, source: Optional[str] = None) -> Snippet:
    """Load-time normalization: exit point, then tabstop authorities, then
    variable context. The order is fixed; each pass relies on the previous one."""
    fix_zero(ast)
    add_dependents(ast, source)
    give_vars_previous_text(ast)
    return ast
