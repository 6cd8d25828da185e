from __future__ import annotations

import pytest

from snipnorm.passes.dependents import REAL_TABSTOP_PRIO, add_dependents, real_tabstop_order_less
from snipnorm.tree import authority_of, copy_nodes
from snipnorm.types import NodeType
from tests.support.harness import (
    MalformedSnippetError,
    authority,
    check_single_authority,
    load,
    nodes_at,
    parse,
    parse_fixed,
)

TIE_BREAK_CASES = [
    ("tabstop-then-placeholder", "$1 ${1:aa}", NodeType.PLACEHOLDER),
    ("placeholder-then-choice", "${1:aa}, ${1|b,c|}", NodeType.PLACEHOLDER),
    ("choice-then-placeholder", "${1|b,c|} ${1:aa}", NodeType.CHOICE),
    ("two-tabstops", "$1 $1", NodeType.TABSTOP),
    ("placeholder-then-tabstop", "${1:x} $1", NodeType.PLACEHOLDER),
]


@pytest.mark.parametrize(
    "body, winner",
    [pytest.param(body, winner, id=name) for name, body, winner in TIE_BREAK_CASES],
)
def test_real_tabstop_tie_break(body: str, winner: NodeType) -> None:
    ast = parse_fixed(body)
    add_dependents(ast)

    real = authority(ast, 1)
    assert real.type is winner
    assert len(real.dependents) == 1
    assert real.dependents[0] is not real
    assert check_single_authority(ast) is None


def test_earlier_of_equal_priority_wins() -> None:
    ast = parse_fixed("${1:a} ${1:b}")
    add_dependents(ast)

    first, second = nodes_at(ast, 1)
    assert first.dependents == [second]
    assert second.dependents is None


def test_nested_same_index_outer_wins() -> None:
    ast = parse_fixed("${1: ${1:lel}}")
    add_dependents(ast)

    outer, inner = nodes_at(ast, 1)
    assert outer.dependents == [inner]
    assert inner.dependents is None


def test_displaced_authority_becomes_copy() -> None:
    ast = parse_fixed("$1 $1 ${1:x} $1")
    add_dependents(ast)

    t1, t2, placeholder, t3 = nodes_at(ast, 1)
    assert placeholder.dependents == [t2, t1, t3]
    for node in (t1, t2, t3):
        assert node.dependents is None
    assert check_single_authority(ast) is None


def test_every_index_gets_dependents() -> None:
    ast = parse_fixed("$2 ${1:x}")
    add_dependents(ast)

    for index in (0, 1, 2):
        assert authority(ast, index).dependents == []


def test_copies_are_kept_per_index() -> None:
    ast = parse_fixed("$1 $2 ${1:a} ${2:b}")
    add_dependents(ast)

    assert authority(ast, 1).dependents == [nodes_at(ast, 1)[0]]
    assert authority(ast, 2).dependents == [nodes_at(ast, 2)[0]]


def test_transformed_tabstop_is_a_copy() -> None:
    ast = parse_fixed("${1:a} ${1/a/b/}")
    add_dependents(ast)

    placeholder, mirrored = nodes_at(ast, 1)
    assert placeholder.dependents == [mirrored]
    assert mirrored.transform is not None


def test_nodes_out_of_walk_are_not_considered() -> None:
    ast = parse_fixed("${NAME:$1} $1")
    add_dependents(ast)

    reachable = nodes_at(ast, 1)
    assert len(reachable) == 1
    assert reachable[0].dependents == []


def test_single_authority_holds_after_load() -> None:
    ast = load("${1|b,c|} ${1:aa} $1 ${2:${1:z}} ${3} $2")

    assert check_single_authority(ast) is None
    for copy in copy_nodes(ast):
        owner = authority_of(ast, copy)
        assert owner is not None and owner.tabstop == copy.tabstop


def test_end_to_end_choice_beats_placeholder() -> None:
    ast = load("${1|b,c|} ${1:aa}")

    choice, text, placeholder, exit_node = ast.children
    assert choice.type is NodeType.CHOICE
    assert choice.dependents == [placeholder]
    assert placeholder.dependents is None
    assert exit_node.type is NodeType.TABSTOP and exit_node.tabstop == 0
    assert text.type is NodeType.TEXT


def test_add_dependents_requires_normalized_exit() -> None:
    with pytest.raises(MalformedSnippetError) as exc_info:
        add_dependents(parse("${0|a,b|}"), source="choice-exit")

    assert exc_info.value.source == "choice-exit"


def test_priority_step() -> None:
    tab, placeholder, choice = parse("$1${1:x}${1|a|}").children

    assert real_tabstop_order_less(tab, placeholder)
    assert not real_tabstop_order_less(placeholder, choice)
    assert not real_tabstop_order_less(choice, tab)
    assert REAL_TABSTOP_PRIO[NodeType.PLACEHOLDER] == REAL_TABSTOP_PRIO[NodeType.CHOICE]
