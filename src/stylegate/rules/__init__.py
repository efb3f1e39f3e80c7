from __future__ import annotations

from dataclasses import dataclass
from typing import Final, Protocol

from ..source import SourceUnit
from .lexer import ScannedLine

# Registration order; reports list violations rule by rule in this order
RULE_CODES: Final[tuple[str, ...]] = (
    "indentation",
    "line-length",
    "blank-lines",
    "operator-spacing",
    "comma-spacing",
    "import-order",
)


@dataclass(frozen=True)
class Violation:
    rule_code: str
    line: int
    column: int | None
    message: str


class Rule(Protocol):
    code: str
    description: str

    def run(
        self, unit: SourceUnit, lines: tuple[ScannedLine, ...] | None = None
    ) -> list[Violation]: ...
