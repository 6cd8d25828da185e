from __future__ import annotations

import pytest

from snipnorm import runner
from snipnorm.runner import describe, load_snippet, load_snippets, main, parse_snippet, validate_transforms
from snipnorm.transform import TransformEvaluator
from snipnorm.types import MalformedSnippetError, NodeType, TransformError
from tests.support.harness import parse, regex_evaluator


@pytest.fixture
def quiet_cli(monkeypatch: pytest.MonkeyPatch) -> None:
    # the CLI installs a stderr handler; keep it off pytest's capture streams.
    monkeypatch.setattr(runner, "setup_logging", lambda: None)


def test_load_snippet_runs_all_passes() -> None:
    ast = load_snippet("x\n\t${1:a} $1 $TM_SELECTED_TEXT")

    exit_node = ast.children[-1]
    assert exit_node.type is NodeType.TABSTOP and exit_node.tabstop == 0
    assert ast.children[1].dependents is not None
    assert ast.children[5].previous_text == [" "]


def test_load_snippet_rejects_bad_transform() -> None:
    with pytest.raises(TransformError):
        load_snippet("${1/(/x/}", evaluator=regex_evaluator())


def test_validate_transforms_counts() -> None:
    ast = load_snippet("${1:a} ${1/a/b/} ${NAME/x/y/}")
    assert validate_transforms(ast, regex_evaluator()) == 2


def test_load_snippets_skips_failures(snipnorm_logs) -> None:
    loaded = load_snippets(
        {
            "good": "${1:foo} $1",
            "bad": "${1/(/x/}",
            "also-good": "$TM_FILENAME",
        },
        evaluator=regex_evaluator(),
    )

    assert sorted(loaded) == ["also-good", "good"]
    warnings = [rec.getMessage() for rec in snipnorm_logs.records if rec.levelname == "WARNING"]
    assert len(warnings) == 1
    assert "skipping snippet bad" in warnings[0]


DEEP = "${1:" * 3000 + "x" + "}" * 3000


def test_deep_nesting_is_malformed() -> None:
    with pytest.raises(MalformedSnippetError) as exc_info:
        parse_snippet(DEEP, source="deep")

    assert "nests too deeply" in str(exc_info.value)
    assert "(snippet deep)" in str(exc_info.value)


def test_load_snippets_skips_deep_nesting(snipnorm_logs) -> None:
    loaded = load_snippets({"deep": DEEP, "flat": "$1"})

    assert list(loaded) == ["flat"]
    warnings = [rec.getMessage() for rec in snipnorm_logs.records if rec.levelname == "WARNING"]
    assert any("skipping snippet deep" in msg for msg in warnings)


def test_load_snippets_without_engine_accepts_any_pattern() -> None:
    loaded = load_snippets({"bad-regex": "${1/(/x/}"}, evaluator=TransformEvaluator(None))
    assert list(loaded) == ["bad-regex"]


def test_describe_marks_interactive_nodes() -> None:
    out = describe(load_snippet("${1:foo} $1"))

    assert out.splitlines() == [
        "snippet *",
        "  placeholder #1 dependents=1",
        "    text 'foo'",
        "  text ' '",
        "  tabstop #1",
        "  tabstop #0 *",
    ]


def test_describe_unresolved_tree_fails() -> None:
    with pytest.raises(MalformedSnippetError):
        describe(parse("$1 $0"))


def test_cli_prints_tree(quiet_cli, capsys) -> None:
    assert main(["${1|a,b|} $0"]) == 0

    out = capsys.readouterr().out
    assert "choice #1 |a,b| *" in out
    assert "tabstop #0 *" in out


def test_cli_render(quiet_cli, capsys) -> None:
    assert main(["${1:foo} ${1/(.*)/${1:/upcase}/}", "--render"]) == 0
    assert capsys.readouterr().out == "foo FOO\n"


def test_cli_render_and_tree(quiet_cli, capsys) -> None:
    assert main(["$1", "--render", "--tree"]) == 0

    out = capsys.readouterr().out
    assert out.startswith("snippet *\n")
    assert out.endswith("\n\n")


def test_cli_variables(quiet_cli, capsys) -> None:
    assert main(["Hi $NAME:\n\t$BODY", "--render", "--var", "NAME=Bob", "--var", "BODY=a\\nb"]) == 0
    assert capsys.readouterr().out == "Hi Bob:\n\ta\n\tb\n"


def test_cli_no_regex(quiet_cli, capsys) -> None:
    assert main(["${1:foo} ${1/(.*)/${1:/upcase}/}", "--render", "--no-regex"]) == 0
    assert capsys.readouterr().out == "foo foo\n"


def test_cli_reports_errors(quiet_cli, capsys) -> None:
    assert main(["${1/(/x/}"]) == 1
    assert "invalid transform pattern" in capsys.readouterr().err


def test_cli_reads_file(quiet_cli, capsys, tmp_path) -> None:
    path = tmp_path / "snippet.txt"
    path.write_text("${1:from file} $1", encoding="utf-8")

    assert main([str(path), "--render"]) == 0
    assert capsys.readouterr().out == "from file from file\n"


def test_cli_rejects_malformed_var(quiet_cli) -> None:
    with pytest.raises(SystemExit):
        main(["$NAME", "--render", "--var", "NAME"])
