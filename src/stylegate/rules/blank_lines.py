from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Final

from ..source import SourceUnit
from . import Violation
from .lexer import ScannedLine, scan

TOP_LEVEL_BLANKS: Final[int] = 2
METHOD_BLANKS: Final[int] = 1

_DEF_RE: Final[re.Pattern[str]] = re.compile(r"(?:async\s+def|def|class)\b")
_CLASS_RE: Final[re.Pattern[str]] = re.compile(r"class\b")


@dataclass
class _Block:
    indent: int
    is_class: bool
    has_body: bool = False


class BlankLinesRule:
    """Blank lines around definitions.

    Two blank lines before a top-level def or class, one before a method. A
    definition owns the decorators and comment lines directly above it, so the
    count is taken above those. The first statement of a file and the first
    member of a class body carry no requirement.
    """

    code = "blank-lines"
    description = "Two blank lines before top-level definitions, one before methods"

    def run(
        self, unit: SourceUnit, lines: tuple[ScannedLine, ...] | None = None
    ) -> list[Violation]:
        lines = scan(unit) if lines is None else lines
        out: list[Violation] = []
        stack: list[_Block] = []
        for idx, ln in enumerate(lines):
            if not ln.logical_start or ln.blank or ln.is_comment:
                continue
            head = ln.code.lstrip()
            indent = ln.indent
            while stack and stack[-1].indent >= indent:
                stack.pop()
            parent = stack[-1] if stack else None
            if head.startswith("@"):
                # Decorators belong to the definition below them
                continue
            first_in_body = parent is not None and not parent.has_body
            if parent is not None:
                parent.has_body = True
            is_def = _DEF_RE.match(head) is not None
            stack.append(_Block(indent, _CLASS_RE.match(head) is not None))
            if not is_def:
                continue
            if parent is None:
                expected, kind = TOP_LEVEL_BLANKS, "top-level definition"
            elif parent.is_class and head.startswith(("def", "async")):
                if first_in_body:
                    continue
                expected, kind = METHOD_BLANKS, "method definition"
            else:
                continue
            found = _blanks_above(lines, _definition_start(lines, idx))
            if found is None or found == expected:
                continue
            noun = "blank line" if expected == 1 else "blank lines"
            out.append(
                Violation(
                    self.code,
                    ln.number,
                    None,
                    f"expected {expected} {noun} before {kind}, found {found}",
                )
            )
        return out


def _definition_start(lines: tuple[ScannedLine, ...], idx: int) -> int:
    start = idx
    k = idx - 1
    while k >= 0:
        ln = lines[k]
        if ln.blank:
            break
        if ln.is_comment or (ln.logical_start and ln.code.lstrip().startswith("@")):
            start = k
        elif not ln.continuation:
            break
        k -= 1
    return start


def _blanks_above(lines: tuple[ScannedLine, ...], start: int) -> int | None:
    """Count blank lines directly above `start`; None when no statement precedes them."""
    count = 0
    k = start - 1
    while k >= 0 and lines[k].blank:
        count += 1
        k -= 1
    if all(ln.blank or ln.is_comment for ln in lines[: k + 1]):
        return None
    return count
