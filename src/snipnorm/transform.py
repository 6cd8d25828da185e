"""Regex transforms (`${1/pattern/format/options}`) for mirrored and variable text.

The regex engine is an explicit capability: `TransformEvaluator(engine=None)`
models an environment without one, in which every transform passes its input
through unchanged (and says so once).
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Union
from typing_extensions import Protocol, TypeAlias

from .types import FormatCapture, FormatFragment, FormatText, TransformError, TransformSpec
from .utils import regex_disabled

logger = logging.getLogger(__name__)

LinesFn: TypeAlias = Callable[[List[str]], List[str]]


@dataclass(frozen=True)
class RegexMatch:
    start: int
    end: int
    # groups[0] is the whole match; unmatched groups are None.
    groups: Tuple[Optional[str], ...]


Matcher: TypeAlias = Callable[[str], List[RegexMatch]]


class RegexEngine(Protocol):
    def compile(self, pattern: str, option: str) -> Matcher: ...


# JavaScript character classes: \d \w \b are ASCII-only, \s has its own set.
_JS_WORD = "A-Za-z0-9_"
_JS_SPACE = r"\t\n\v\f\r \u00a0\u1680\u2000-\u200a\u2028\u2029\u202f\u205f\u3000\ufeff"
_JS_DOT = r"[^\n\r\u2028\u2029]"

_JS_ESCAPES: Dict[str, str] = {
    "d": "[0-9]",
    "D": "[^0-9]",
    "w": f"[{_JS_WORD}]",
    "W": f"[^{_JS_WORD}]",
    "s": f"[{_JS_SPACE}]",
    "S": f"[^{_JS_SPACE}]",
    "b": f"(?:(?<=[{_JS_WORD}])(?![{_JS_WORD}])|(?<![{_JS_WORD}])(?=[{_JS_WORD}]))",
    "B": f"(?:(?<=[{_JS_WORD}])(?=[{_JS_WORD}])|(?<![{_JS_WORD}])(?![{_JS_WORD}]))",
}

# Inside [...]; \b there is a backspace in both dialects.
_JS_CLASS_ESCAPES: Dict[str, str] = {
    "d": "0-9",
    "D": r"\x00-\x2f\x3a-\U0010ffff",
    "w": _JS_WORD,
    "W": r"\x00-\x2f\x3a-\x40\x5b-\x5e\x60\x7b-\U0010ffff",
    "s": _JS_SPACE,
}

_NAMED_GROUP = re.compile(r"\(\?<(?=[A-Za-z_])")
_NAMED_BACKREF = re.compile(r"\\k<([A-Za-z_][A-Za-z0-9_]*)>")


class PythonRegexEngine:
    """JavaScript-flavoured patterns on top of `re`."""

    FLAGS: Dict[str, int] = {
        "i": re.IGNORECASE,
        "m": re.MULTILINE,
        "s": re.DOTALL,
        # unicode is the default for str patterns; sticky has no `re` analogue.
        "u": 0,
        "y": 0,
    }

    @staticmethod
    def translate(pattern: str, option: str) -> str:
        """Rewrite a JavaScript pattern into `re` syntax with the same meaning.

        Covers `(?<name>` and `\\k<name>`, ASCII `\\d \\w \\b`, the JavaScript
        `\\s` set, `.` not matching line terminators, and `$` only matching at
        the very end unless the `m` flag is set.
        """
        multiline = "m" in option
        dotall = "s" in option
        out: List[str] = []
        in_class = False
        i = 0

        while i < len(pattern):
            ch = pattern[i]

            if ch == "\\":
                backref = None if in_class else _NAMED_BACKREF.match(pattern, i)
                if backref is not None:
                    out.append(f"(?P={backref.group(1)})")
                    i = backref.end()
                    continue
                escaped = pattern[i + 1:i + 2]
                table = _JS_CLASS_ESCAPES if in_class else _JS_ESCAPES
                out.append(table.get(escaped, ch + escaped))
                i += 2
                continue

            if in_class:
                if ch == "]":
                    in_class = False
            elif ch == "[":
                in_class = True
            elif ch == "$" and not multiline:
                ch = r"\Z"
            elif ch == "." and not dotall:
                ch = _JS_DOT
            elif _NAMED_GROUP.match(pattern, i):
                out.append("(?P<")
                i += 3
                continue

            out.append(ch)
            i += 1

        return "".join(out)

    def compile(self, pattern: str, option: str) -> Matcher:
        flags = 0
        global_match = False

        for flag in option:
            if flag == "g":
                global_match = True
            elif flag in self.FLAGS:
                flags |= self.FLAGS[flag]
            else:
                raise TransformError(f"unsupported regex option '{flag}'", pattern)

        try:
            compiled = re.compile(self.translate(pattern, option), flags)
        except re.error as exc:
            raise TransformError(f"invalid transform pattern /{pattern}/: {exc}", pattern) from exc

        def matcher(text: str) -> List[RegexMatch]:
            matches: List[RegexMatch] = []
            for m in compiled.finditer(text):
                matches.append(RegexMatch(m.start(), m.end(), (m.group(0),) + m.groups()))
                if not global_match:
                    break
            return matches

        return matcher


def default_regex_engine() -> Optional[RegexEngine]:
    """The engine transforms use unless told otherwise (None if disabled)."""
    if regex_disabled():
        return None
    return PythonRegexEngine()


# ---------- format application ----------

def _capitalize(text: str) -> str:
    return text[:1].upper() + text[1:]

MODIFIERS: Dict[str, Callable[[str], str]] = {
    "upcase": str.upper,
    "downcase": str.lower,
    "capitalize": _capitalize,
}

def apply_modifier(text: str, modifier: str) -> str:
    fn = MODIFIERS.get(modifier)
    if fn is None:
        logger.debug("unknown transform modifier %r, leaving capture unchanged", modifier)
        return text
    return fn(text)

def apply_transform_format(fragments: Sequence[FormatFragment], captures: Sequence[Optional[str]]) -> str:
    transformed: List[str] = []

    for fragment in fragments:
        match fragment:
            case FormatText(esc=esc):
                transformed.append(esc)
            case FormatCapture(capture_index=index, modifier=modifier, if_text=if_text, else_text=else_text):
                capture = captures[index] if index < len(captures) else None
                # a capture only counts if it matched something non-empty.
                if capture:
                    if if_text is not None:
                        transformed.append(if_text)
                    elif modifier is not None:
                        transformed.append(apply_modifier(capture, modifier))
                    else:
                        transformed.append(capture)
                elif else_text is not None:
                    transformed.append(else_text)

    return "".join(transformed)


# ---------- building transforms ----------

def _identity(lines: List[str]) -> List[str]:
    return lines


class _Default:
    pass

DEFAULT_ENGINE = _Default()


class TransformEvaluator:
    """Builds transform functions against one regex engine.

    Compiled matchers hold no per-call state, so a built function can be
    shared by any number of expansions of the same snippet.
    """

    def __init__(self, engine: Union[RegexEngine, None, _Default] = DEFAULT_ENGINE):
        self.engine: Optional[RegexEngine] = (
            default_regex_engine() if isinstance(engine, _Default) else engine
        )
        self._warned = False

    @property
    def available(self) -> bool:
        return self.engine is not None

    def build(self, spec: TransformSpec) -> LinesFn:
        if self.engine is None:
            if not self._warned:
                logger.warning(
                    "no regex engine available: snippet transforms will leave text unchanged"
                )
                self._warned = True
            return _identity

        matcher = self.engine.compile(spec.pattern, spec.option)
        fragments = spec.format

        def apply(lines: List[str]) -> List[str]:
            # the matcher works on one string; line breaks are just characters in it.
            text = "\n".join(lines)

            transformed: List[str] = []
            prev_match_end = 0
            for m in matcher(text):
                transformed.append(text[prev_match_end:m.start])
                transformed.append(apply_transform_format(fragments, m.groups))
                prev_match_end = m.end
            transformed.append(text[prev_match_end:])

            return "".join(transformed).split("\n")

        return apply


def build_transform(spec: TransformSpec,
                    engine: Union[RegexEngine, None, _Default] = DEFAULT_ENGINE) -> LinesFn:
    """Compile `spec` into a function from captured lines to replaced lines."""
    return TransformEvaluator(engine).build(spec)
