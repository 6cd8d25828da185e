"""Interactive REPL for snippet bodies, powered by prompt_toolkit."""

from __future__ import annotations

import os
import re
import sys
import traceback
from dataclasses import dataclass, field
from typing import Dict

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.history import InMemoryHistory
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.shortcuts import clear

from .lexer_rd import tokenize
from .render import render_snippet
from .repl_highlight import SnippetLexer
from .runner import describe, load_snippet
from .token_types import TT
from .transform import TransformEvaluator
from .types import SnippetError
from .utils import ENV_DEBUG_PY_TRACE, debug_py_trace_enabled, setup_logging

# Zero-width and invisible characters to strip from input.
_INVISIBLE_RE = re.compile("[\u200b\u200c\u200d\ufeff\r]")

# Slash commands: name => (description, argument_hint).
_SLASH_CMDS = {
    "/clear": ("Clear the terminal screen", ""),
    "/var": ("Set (or with no value, unset) a variable", "NAME[=VALUE]"),
    "/vars": ("List variables", ""),
    "/render": ("Toggle printing the expanded text", "[on|off]"),
    "/py-traceback": ("Toggle Python traceback on errors", "[on|off]"),
}

_ON = ("on", "1", "true", "yes")
_OFF = ("off", "0", "false", "no")


@dataclass
class ReplState:
    variables: Dict[str, str] = field(default_factory=dict)
    render: bool = True
    evaluator: TransformEvaluator = field(default_factory=TransformEvaluator)


def open_braces(text: str) -> int:
    """How many `${` in *text* are still waiting for their `}`."""
    depth = 0
    prev = None

    for tok in tokenize(text):
        if prev == TT.BACKSLASH:
            # escaped; also keeps `\$` from opening a following `{`.
            prev = None
            continue
        if tok.type == TT.LBRACE and prev == TT.DOLLAR:
            depth += 1
        elif tok.type == TT.RBRACE and depth > 0:
            depth -= 1
        prev = tok.type

    return depth


class _SlashCompleter(Completer):
    """Autocomplete slash commands on the primary prompt."""

    def get_completions(self, document, complete_event):
        text = document.text_before_cursor
        if not text.startswith("/"):
            return

        for cmd, (desc, hint) in _SLASH_CMDS.items():
            if cmd.startswith(text):
                yield Completion(
                    cmd,
                    start_position=-len(text),
                    display_meta=desc,
                )


def _toggle(arg: str, current: bool) -> bool | None:
    if arg.lower() in _ON:
        return True
    if arg.lower() in _OFF:
        return False
    if arg == "":
        return not current
    return None


def handle_slash(line: str, state: ReplState) -> bool:
    """Handle slash commands. Returns True if the line was a command."""
    stripped = line.strip()
    if not stripped.startswith("/"):
        return False

    parts = stripped.split(None, 1)
    cmd = parts[0]
    arg = parts[1] if len(parts) > 1 else ""

    if cmd == "/clear":
        clear()
        return True

    if cmd == "/var":
        name, sep, value = arg.partition("=")
        name = name.strip()
        if not name:
            print("Usage: /var NAME[=VALUE]", file=sys.stderr)
        elif sep:
            state.variables[name] = value.replace("\\n", "\n")
        else:
            state.variables.pop(name, None)
        return True

    if cmd == "/vars":
        for name, value in sorted(state.variables.items()):
            print(f"{name}={value!r}")
        return True

    if cmd == "/render":
        toggled = _toggle(arg, state.render)
        if toggled is None:
            print("Usage: /render [on|off]", file=sys.stderr)
            return True
        state.render = toggled
        print(f"Render: {'on' if state.render else 'off'}")
        return True

    if cmd == "/py-traceback":
        toggled = _toggle(arg, debug_py_trace_enabled())
        if toggled is None:
            print("Usage: /py-traceback [on|off]", file=sys.stderr)
            return True
        if toggled:
            os.environ[ENV_DEBUG_PY_TRACE] = "1"
        else:
            os.environ.pop(ENV_DEBUG_PY_TRACE, None)
        print(f"Python traceback: {'on' if toggled else 'off'}")
        return True

    print(f"Unknown command: {cmd}", file=sys.stderr)
    return True


def evaluate(text: str, state: ReplState) -> str:
    """Normalize *text* and return what the REPL prints for it."""
    ast = load_snippet(text, source="<repl>", evaluator=state.evaluator)
    out = describe(ast)

    if state.render:
        rendered = render_snippet(ast, state.variables, state.evaluator)
        out += "--- expands to ---\n" + rendered + "\n"

    return out


def _normalize(text: str) -> str:
    """Strip invisible characters from input."""
    return _INVISIBLE_RE.sub("", text)


def repl() -> None:
    """Interactive read-normalize-print loop with prompt_toolkit."""
    setup_logging()
    state = ReplState()

    bindings = KeyBindings()

    @bindings.add("enter")
    def _enter(event):
        buf = event.app.current_buffer

        # keep reading while a `${` is unclosed.
        if open_braces(buf.text) > 0:
            buf.insert_text("\n")
            return

        buf.validate_and_handle()

    @bindings.add("escape", "enter")
    def _newline(event):
        event.app.current_buffer.insert_text("\n")

    session: PromptSession[str] = PromptSession(
        history=InMemoryHistory(),
        lexer=SnippetLexer(),
        completer=_SlashCompleter(),
        complete_while_typing=True,
        key_bindings=bindings,
        multiline=True,
        prompt_continuation="... ",
    )

    print("snipnorm repl: Ctrl-D to exit, Esc-Enter for a newline, / for commands")

    while True:
        try:
            text = session.prompt(">>> ")
        except EOFError:
            print()
            break
        except KeyboardInterrupt:
            print("KeyboardInterrupt")
            continue

        text = _normalize(text)
        if not text.strip():
            continue

        if handle_slash(text, state):
            continue

        try:
            print(evaluate(text, state), end="")
        except SnippetError as exc:
            print(f"Error: {exc}", file=sys.stderr)
            if debug_py_trace_enabled():
                print("\nPython traceback:", file=sys.stderr)
                print("".join(traceback.format_tb(exc.__traceback__)), file=sys.stderr, end="")


if __name__ == "__main__":
    repl()
