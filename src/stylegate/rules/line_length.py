from __future__ import annotations

from ..source import SourceUnit
from . import Violation
from .lexer import ScannedLine

DEFAULT_MAX_LINE_LENGTH = 79


class LineLengthRule:
    code = "line-length"
    description = "Lines stay within the maximum length"

    def __init__(self, max_line_length: int = DEFAULT_MAX_LINE_LENGTH) -> None:
        self.max_line_length = max_line_length

    def run(
        self, unit: SourceUnit, lines: tuple[ScannedLine, ...] | None = None
    ) -> list[Violation]:
        limit = self.max_line_length
        out: list[Violation] = []
        for i, line in enumerate(unit.lines, start=1):
            n = len(line)
            if n > limit:
                out.append(
                    Violation(self.code, i, limit + 1, f"line too long ({n} > {limit} characters)")
                )
        return out
