from __future__ import annotations

from ..source import SourceUnit
from . import Violation
from .lexer import ScannedLine, scan


class IndentationRule:
    code = "indentation"
    description = "Indent with spaces only, in multiples of the indent size"

    def __init__(self, indent_size: int = 4) -> None:
        self.indent_size = indent_size

    def run(
        self, unit: SourceUnit, lines: tuple[ScannedLine, ...] | None = None
    ) -> list[Violation]:
        out: list[Violation] = []
        for ln in scan(unit) if lines is None else lines:
            # Continuation lines align freely; string bodies are data
            if not ln.logical_start or not ln.text.strip():
                continue
            lead = ln.text[: ln.indent]
            if "\t" in lead:
                if " " in lead:
                    msg = "indentation mixes tabs and spaces"
                else:
                    msg = "indentation uses tabs"
                out.append(Violation(self.code, ln.number, 1, msg))
            elif len(lead) % self.indent_size:
                out.append(
                    Violation(
                        self.code,
                        ln.number,
                        1,
                        f"indentation is not a multiple of {self.indent_size} spaces "
                        f"(found {len(lead)})",
                    )
                )
        return out
