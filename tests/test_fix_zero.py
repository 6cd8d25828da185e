from __future__ import annotations

from dataclasses import dataclass
from typing import List

import pytest

from snipnorm.passes.zero import check_exit_point, fix_zero, is_simple_exit
from snipnorm.tree import count_tabstop
from snipnorm.types import NodeType
from tests.support.harness import MalformedSnippetError, parse, shape


@dataclass(frozen=True)
class Case:
    name: str
    source: str
    expected: List[object]


UNCHANGED_CASES: List[Case] = [
    Case("bare-exit", "$1 $0", [("tabstop", 1), ("text", " "), ("tabstop", 0)]),
    Case("text-only-exit", "${0:done}", [("placeholder", 0, [("text", "done")])]),
    Case("exit-first", "$0 $1", [("tabstop", 0), ("text", " "), ("tabstop", 1)]),
]

REWRITE_CASES: List[Case] = [
    Case(
        "choice-exit",
        "${0|a,b|}",
        [("choice", 1, ["a", "b"]), ("tabstop", 0)],
    ),
    Case(
        "interactive-placeholder-exit",
        "${0:${1:x}}",
        [("placeholder", 2, [("placeholder", 1, [("text", "x")])]), ("tabstop", 0)],
    ),
    Case(
        "placeholder-exit-with-variable",
        "${0:$NAME} a",
        [("placeholder", 1, [("variable", "NAME")]), ("tabstop", 0), ("text", " a")],
    ),
    Case(
        "nested-exit",
        "${1:$0} tail",
        [("placeholder", 1, [("tabstop", 2)]), ("tabstop", 0), ("text", " tail")],
    ),
    Case(
        "duplicate-exit",
        "$0 $0",
        [("tabstop", 1), ("tabstop", 0), ("text", " "), ("tabstop", 1)],
    ),
    Case(
        "duplicate-text-only-exit",
        "${0:a}$0",
        [("placeholder", 1, [("text", "a")]), ("tabstop", 0), ("tabstop", 1)],
    ),
    Case("no-exit", "a $1", [("text", "a "), ("tabstop", 1), ("tabstop", 0)]),
    Case("empty", "", [("tabstop", 0)]),
    Case(
        "only-transformed-exit",
        "${0/a/b/} x",
        [("tabstop", 1, "a"), ("text", " x"), ("tabstop", 0)],
    ),
]


@pytest.mark.parametrize("case", UNCHANGED_CASES, ids=lambda case: case.name)
def test_valid_exit_is_left_alone(case: Case) -> None:
    ast = parse(case.source)
    before = list(ast.children)

    fix_zero(ast)

    assert shape(ast) == case.expected
    assert all(a is b for a, b in zip(ast.children, before))
    assert len(ast.children) == len(before)


@pytest.mark.parametrize("case", REWRITE_CASES, ids=lambda case: case.name)
def test_exit_is_rewritten(case: Case) -> None:
    ast = parse(case.source)
    fix_zero(ast)

    assert shape(ast) == case.expected
    assert count_tabstop(ast, 0) == 1
    assert check_exit_point(ast).type is NodeType.TABSTOP


def test_demoted_exit_keeps_its_content() -> None:
    ast = parse("${0:${1:x}} $1")
    old_exit = ast.children[0]

    fix_zero(ast)

    assert old_exit.tabstop == 2
    assert ast.children[0] is old_exit
    assert shape(old_exit) == ("placeholder", 2, [("placeholder", 1, [("text", "x")])])


def test_fix_zero_is_idempotent() -> None:
    ast = parse("${1:$0} ${2|a,b|}")
    fix_zero(ast)
    once = shape(ast)

    fix_zero(ast)

    assert shape(ast) == once


def test_fix_zero_logs_rewrite(snipnorm_logs) -> None:
    fix_zero(parse("${0|a,b|}"))

    assert any("exit point rewritten" in rec.getMessage() for rec in snipnorm_logs.records)


@pytest.mark.parametrize(
    "body, message",
    [
        ("$1", "no exit point"),
        ("$0$0", "ambiguous"),
        ("${1:$0}", "not a direct child"),
        ("${0|a,b|}", "must be a plain tabstop"),
        ("${0:${1:x}}", "must be a plain tabstop"),
    ],
    ids=["missing", "ambiguous", "nested", "choice", "interactive-placeholder"],
)
def test_check_exit_point_rejects_unnormalized(body: str, message: str) -> None:
    with pytest.raises(MalformedSnippetError) as exc_info:
        check_exit_point(parse(body), source="demo")

    err = exc_info.value
    assert message in str(err)
    assert err.source == "demo"
    assert "demo" in str(err)


def test_is_simple_exit() -> None:
    assert is_simple_exit(parse("$0").children[0])
    assert is_simple_exit(parse("${0:text}").children[0])
    assert not is_simple_exit(parse("${0|a|}").children[0])
