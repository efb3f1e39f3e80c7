from __future__ import annotations

from dataclasses import dataclass
from typing import Final

from ..source import SourceUnit

_OPEN: Final[str] = "([{"
_CLOSE: Final[str] = ")]}"
_QUOTES: Final[str] = "\"'"
_MASK: Final[str] = "_"


@dataclass(frozen=True)
class ScannedLine:
    """One physical line with the token-level facts rules need.

    `code` is the line with string literal contents replaced by underscores
    (delimiters kept, columns preserved) and any trailing comment removed.
    """

    number: int
    text: str
    code: str
    depth: int
    continuation: bool
    in_string: bool
    skip: bool

    @property
    def blank(self) -> bool:
        return not self.in_string and not self.text.strip()

    @property
    def is_comment(self) -> bool:
        return not self.in_string and self.text.lstrip().startswith("#")

    @property
    def logical_start(self) -> bool:
        return not self.in_string and not self.continuation

    @property
    def indent(self) -> int:
        return len(self.text) - len(self.text.lstrip(" \t"))


def scan(unit: SourceUnit) -> tuple[ScannedLine, ...]:
    out: list[ScannedLine] = []
    triple: str | None = None
    depth = 0
    backslash = False
    for number, text in enumerate(unit.lines, start=1):
        in_string = triple is not None
        continuation = depth > 0 or backslash
        start_depth = depth
        code, triple, depth, skip = _scan_line(text, triple, depth)
        backslash = triple is None and not skip and code.rstrip().endswith("\\")
        out.append(
            ScannedLine(
                number=number,
                text=text,
                code=code,
                depth=start_depth,
                continuation=continuation,
                in_string=in_string,
                skip=skip,
            )
        )
    return tuple(out)


def _scan_line(text: str, triple: str | None, depth: int) -> tuple[str, str | None, int, bool]:
    chars = list(text)
    n = len(text)
    i = 0
    if triple is not None:
        close = _find_close(text, 0, triple)
        if close < 0:
            return _MASK * n, triple, depth, False
        _mask(chars, 0, close)
        i = close + len(triple)
    while i < n:
        ch = text[i]
        if ch == "#":
            return "".join(chars[:i]), None, depth, False
        if ch in _QUOTES:
            delim = text[i : i + 3] if text[i : i + 3] in ('"""', "'''") else ch
            start = i + len(delim)
            close = _find_close(text, start, delim)
            if close < 0:
                _mask(chars, start, n)
                if len(delim) == 3:
                    return "".join(chars), delim, depth, False
                # Unterminated single-quoted literal: token facts for this line are unreliable
                return "".join(chars), None, depth, True
            _mask(chars, start, close)
            i = close + len(delim)
            continue
        if ch in _OPEN:
            depth += 1
        elif ch in _CLOSE:
            depth = max(0, depth - 1)
        i += 1
    return "".join(chars), None, depth, False


def _find_close(text: str, start: int, delim: str) -> int:
    j = start
    n = len(text)
    while j < n:
        if text[j] == "\\":
            j += 2
            continue
        if text.startswith(delim, j):
            return j
        j += 1
    return -1


def _mask(chars: list[str], start: int, end: int) -> None:
    for k in range(start, end):
        chars[k] = _MASK
