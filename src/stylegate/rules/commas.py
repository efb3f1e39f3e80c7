from __future__ import annotations

from ..source import SourceUnit
from . import Violation
from .lexer import ScannedLine, scan


class CommaSpacingRule:
    code = "comma-spacing"
    description = "No space before a comma, exactly one after"

    def run(
        self, unit: SourceUnit, lines: tuple[ScannedLine, ...] | None = None
    ) -> list[Violation]:
        out: list[Violation] = []
        for ln in scan(unit) if lines is None else lines:
            if ln.skip:
                continue
            code = ln.code.rstrip()
            first = len(code) - len(code.lstrip())
            last = len(code) - 1
            for i, ch in enumerate(code):
                if ch != ",":
                    continue
                # A leading comma on a continuation line sits after indentation
                if i > first and code[i - 1] in " \t":
                    out.append(Violation(self.code, ln.number, i + 1, "whitespace before ','"))
                if i == last or code[i + 1] in ")]}":
                    continue
                after = code[i + 1 : len(code) - len(code[i + 1 :].lstrip(" \t"))]
                if after == "":
                    out.append(
                        Violation(self.code, ln.number, i + 1, "missing whitespace after ','")
                    )
                elif after != " ":
                    out.append(
                        Violation(self.code, ln.number, i + 1, "too much whitespace after ','")
                    )
        return out
