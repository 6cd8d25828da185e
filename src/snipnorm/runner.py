from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Dict, List, Mapping, Optional

from lark.exceptions import VisitError

from .ast_transforms import build_ast
from .lower import lower
from .parser_rd import parse_source
from .passes.interactive import interactive_nodes
from .render import render_snippet
from .transform import TransformEvaluator
from .tree import ltr_nodes, pretty
from .types import MalformedSnippetError, Snippet, SnippetError, SnippetNode
from .utils import setup_logging

logger = logging.getLogger(__name__)


def parse_snippet(body: str, source: Optional[str] = None) -> Snippet:
    """Parse a snippet body into its typed, not yet normalized, AST."""
    try:
        return build_ast(parse_source(body))
    except RecursionError as exc:
        raise MalformedSnippetError("snippet nests too deeply to parse", source) from exc
    except VisitError as exc:
        # the builder wraps errors raised inside its callbacks.
        if isinstance(exc.orig_exc, RecursionError):
            raise MalformedSnippetError("snippet nests too deeply to parse", source) from exc
        raise


def validate_transforms(ast: Snippet, evaluator: Optional[TransformEvaluator] = None) -> int:
    """Compile every transform in `ast` so bad patterns fail at load time.

    Returns the number of transforms compiled.
    """
    evaluator = evaluator if evaluator is not None else TransformEvaluator()
    count = 0

    for node in ltr_nodes(ast):
        if node.transform is not None:
            evaluator.build(node.transform)
            count += 1

    return count


def load_snippet(body: str, source: str = "<snippet>",
                 evaluator: Optional[TransformEvaluator] = None) -> Snippet:
    """Parse and normalize one snippet definition."""
    ast = lower(parse_snippet(body, source), source)
    validate_transforms(ast, evaluator)
    return ast


def load_snippets(bodies: Mapping[str, str],
                  evaluator: Optional[TransformEvaluator] = None) -> Dict[str, Snippet]:
    """Load many definitions; one that fails is logged and skipped."""
    evaluator = evaluator if evaluator is not None else TransformEvaluator()
    loaded: Dict[str, Snippet] = {}

    for name, body in bodies.items():
        try:
            loaded[name] = load_snippet(body, source=name, evaluator=evaluator)
        except SnippetError as exc:
            logger.warning("skipping snippet %s: %s", name, exc)

    logger.debug("loaded %d of %d snippet(s)", len(loaded), len(bodies))
    return loaded


def describe(ast: Snippet) -> str:
    """Pretty tree with interactive nodes marked by `*`."""
    interactive = interactive_nodes(ast)

    def mark(node: SnippetNode) -> str:
        return "*" if id(node) in interactive else ""

    return pretty(ast, mark=mark)


def _load_source(arg: Optional[str]) -> str:
    """
    Resolve CLI input into a snippet body.
    - None or "-" => read stdin.
    - Existing path => read file contents.
    - Otherwise treat the argument as the literal body.
    """

    if arg is None or arg == "-":
        data = sys.stdin.read()
        if not data:
            raise SystemExit("No input provided on stdin")
        return data

    if _is_file(arg):
        return Path(arg).read_text(encoding="utf-8")

    return arg


def _is_file(arg: str) -> bool:
    try:
        return Path(arg).is_file()
    except OSError:
        # long literal bodies are not valid file names
        return False


def _parse_vars(pairs: List[str]) -> Dict[str, str]:
    variables: Dict[str, str] = {}

    for pair in pairs:
        name, sep, value = pair.partition("=")
        if not sep or not name:
            raise SystemExit(f"--var expects NAME=VALUE, got {pair!r}")
        variables[name] = value.replace("\\n", "\n")

    return variables


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(prog="snipnorm", description="Normalize a snippet body")
    ap.add_argument("source", nargs="?", help="Snippet body, path to a file holding one, or - for stdin")
    ap.add_argument("--tree", action="store_true", help="Print the normalized tree (default)")
    ap.add_argument("--render", action="store_true", help="Print the default expansion text")
    ap.add_argument("--var", action="append", default=[], metavar="NAME=VALUE",
                    help="Variable value for --render (\\n in VALUE is a newline)")
    ap.add_argument("--no-regex", action="store_true", help="Render transforms as if no regex engine existed")

    args = ap.parse_args(argv)
    setup_logging()

    body = _load_source(args.source)
    if args.source in (None, "-"):
        label = "<stdin>"
    elif _is_file(args.source):
        label = args.source
    else:
        label = "<arg>"

    try:
        evaluator = TransformEvaluator(None) if args.no_regex else TransformEvaluator()
        ast = load_snippet(body, source=label, evaluator=evaluator)
        rendered = None
        if args.render:
            rendered = render_snippet(ast, _parse_vars(args.var), evaluator)
    except SnippetError as err:
        sys.stderr.write(str(err) + "\n")
        return 1

    if args.tree or not args.render:
        print(describe(ast), end="")
    if rendered is not None:
        print(rendered)

    return 0


if __name__ == "__main__":
    sys.exit(main())
