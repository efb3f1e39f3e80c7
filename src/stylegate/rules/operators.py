from __future__ import annotations

import keyword
import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import Final, Literal

from ..source import SourceUnit
from . import Violation
from .lexer import ScannedLine, scan

CHECKED_OPERATORS: Final[frozenset[str]] = frozenset({"=", "==", "<", ">", "+", "-", "*"})
WORD_OPERATORS: Final[frozenset[str]] = frozenset({"and", "or"})
# Operators that may also be prefix (unary or unpacking) forms
_PREFIX_CAPABLE: Final[frozenset[str]] = frozenset({"+", "-", "*"})

# Longest first so that e.g. "<=" never splits into "<" and "="
_SYMBOLS: Final[tuple[str, ...]] = (
    "**=",
    "//=",
    ">>=",
    "<<=",
    "...",
    "->",
    ":=",
    "==",
    "!=",
    "<=",
    ">=",
    "**",
    "//",
    "<<",
    ">>",
    "+=",
    "-=",
    "*=",
    "/=",
    "%=",
    "&=",
    "|=",
    "^=",
    "@=",
)
_SINGLE_OPS: Final[str] = "+-*/%@&|^~<>=:.;"

_NUMBER: Final[re.Pattern[str]] = re.compile(
    r"0[xXoObB][0-9a-fA-F_]+|\d[\d_]*\.?[\d_]*(?:[eE][+-]?\d[\d_]*)?[jJ]?"
)
_NAME: Final[re.Pattern[str]] = re.compile(r"[^\W\d]\w*")
_DEF_PARAMS: Final[re.Pattern[str]] = re.compile(r"\bdef\s+\w+\s*(?:\[[^\]]*\])?\s*$")
_NON_OPERANDS: Final[frozenset[str]] = (
    frozenset(keyword.kwlist) - {"True", "False", "None"}
) | {"case"}

_Prev = Literal["operand", "operator", "keyword", "open"] | None


@dataclass
class _Frame:
    bracket: str
    params: bool = False
    annotated: bool = False
    lambdas: int = 0


@dataclass
class _State:
    frames: list[_Frame]
    prev: _Prev = None

    @property
    def top(self) -> _Frame:
        return self.frames[-1]


class OperatorSpacingRule:
    """Exactly one space on each side of selected binary operators.

    An `=` binding a keyword argument, an unannotated parameter default or a
    lambda default takes no spaces; an annotated parameter default takes one on
    each side. A side that is the start or end of the physical line is not
    checked.
    """

    code = "operator-spacing"
    description = "One space around binary operators; none around keyword equals"

    def run(
        self, unit: SourceUnit, lines: tuple[ScannedLine, ...] | None = None
    ) -> list[Violation]:
        out: list[Violation] = []
        state = _State(frames=[_Frame("")])
        for ln in scan(unit) if lines is None else lines:
            if not ln.continuation:
                state = _State(frames=[_Frame("")])
            found = _scan_code(ln, state)
            if ln.skip:
                continue
            out.extend(Violation(self.code, ln.number, col, msg) for col, msg in found)
        return out


def _scan_code(ln: ScannedLine, state: _State) -> list[tuple[int, str]]:
    code = ln.code.rstrip()
    n = len(code)
    first = len(code) - len(code.lstrip())
    found: list[tuple[int, str]] = []

    def check(op: str, start: int, end: int, spaced: bool) -> None:
        msg = _spacing_problem(code, op, start, end, first, spaced)
        if msg is not None:
            found.append((start + 1, msg))

    i = 0
    while i < n:
        ch = code[i]
        if ch in " \t\f\\":
            i += 1
            continue
        if ch in "\"'":
            state.prev = "operand"
            i += 1
            continue
        if ch.isdigit():
            m = _NUMBER.match(code, i)
            i = m.end() if m is not None else i + 1
            state.prev = "operand"
            continue
        m = _NAME.match(code, i)
        if m is not None:
            word = m.group()
            if word in WORD_OPERATORS:
                check(word, i, m.end(), True)
                state.prev = "operator"
            elif word == "lambda":
                state.top.lambdas += 1
                state.prev = "keyword"
            elif word in _NON_OPERANDS:
                state.prev = "keyword"
            else:
                state.prev = "operand"
            i = m.end()
            continue
        if ch in "([{":
            params = ch == "(" and _DEF_PARAMS.search(code, 0, i) is not None
            state.frames.append(_Frame(ch, params=params))
            state.prev = "open"
            i += 1
            continue
        if ch in ")]}":
            if len(state.frames) > 1:
                state.frames.pop()
            state.prev = "operand"
            i += 1
            continue
        if ch == ",":
            state.top.annotated = False
            state.prev = "open"
            i += 1
            continue
        tok = next((s for s in _SYMBOLS if code.startswith(s, i)), ch)
        if tok not in _SYMBOLS and tok not in _SINGLE_OPS:
            i += 1
            continue
        if tok == ":":
            if state.top.lambdas:
                state.top.lambdas -= 1
            elif state.top.params:
                state.top.annotated = True
        if tok in CHECKED_OPERATORS:
            if tok == "=":
                _check_equals(state.top, i, check)
            elif tok not in _PREFIX_CAPABLE or state.prev == "operand":
                check(tok, i, i + len(tok), True)
        state.prev = "operand" if tok == "..." else "operator"
        i += len(tok)
    return found


def _check_equals(frame: _Frame, i: int, check: Callable[[str, int, int, bool], None]) -> None:
    if frame.bracket in ("[", "{"):
        return
    if frame.lambdas:
        check("=", i, i + 1, False)
    elif frame.bracket == "(":
        check("=", i, i + 1, frame.params and frame.annotated)
    else:
        check("=", i, i + 1, True)


def _spacing_problem(
    code: str, op: str, start: int, end: int, first: int, spaced: bool
) -> str | None:
    sides: list[str] = []
    if start > first:
        k = start
        while k > 0 and code[k - 1] in " \t":
            k -= 1
        sides.append(code[k:start])
    if end < len(code):
        k = end
        while k < len(code) and code[k] in " \t":
            k += 1
        sides.append(code[end:k])
    if not spaced:
        if any(sides):
            return f"unexpected whitespace around keyword or parameter equals '{op}'"
        return None
    if any(s == "" for s in sides):
        return f"missing whitespace around operator '{op}'"
    if any(s != " " for s in sides):
        return f"multiple spaces around operator '{op}'"
    return None
