from __future__ import annotations

import re
import sys
from dataclasses import dataclass, field
from typing import Final

from ..source import SourceUnit
from . import Violation
from .lexer import ScannedLine, scan

STDLIB: Final[int] = 0
THIRD_PARTY: Final[int] = 1
LOCAL: Final[int] = 2
GROUP_NAMES: Final[tuple[str, ...]] = ("standard-library", "third-party", "local")

_IMPORT_RE: Final[re.Pattern[str]] = re.compile(r"import\s+([\w.]+)")
_MODULE_RE: Final[re.Pattern[str]] = re.compile(r"[\w.]+")
_FROM_RE: Final[re.Pattern[str]] = re.compile(r"from\s+(\.*[\w.]*)\s+import\b")
_STRING_START_RE: Final[re.Pattern[str]] = re.compile(r"[rRuUbBfF]{0,2}['\"]")


@dataclass(frozen=True)
class ImportClassifier:
    """Maps a module name to its import group.

    Relative imports and `known_local` roots are local, `known_third_party`
    roots are third-party, the interpreter's standard-library names plus
    `known_stdlib` are standard library, and anything unknown is third-party.
    """

    known_stdlib: frozenset[str] = field(default_factory=frozenset)
    known_third_party: frozenset[str] = field(default_factory=frozenset)
    known_local: frozenset[str] = field(default_factory=frozenset)

    def group(self, module: str) -> int:
        if module.startswith("."):
            return LOCAL
        root = module.split(".", 1)[0]
        if root in self.known_local:
            return LOCAL
        if root in self.known_third_party:
            return THIRD_PARTY
        if root in self.known_stdlib or root in sys.stdlib_module_names:
            return STDLIB
        return THIRD_PARTY


@dataclass(frozen=True)
class ImportStatement:
    line: int
    end_line: int
    module: str
    group: int


class ImportOrderRule:
    code = "import-order"
    description = "Imports grouped stdlib, third-party, local; sorted; one blank line between"

    def __init__(self, classifier: ImportClassifier | None = None) -> None:
        self.classifier = classifier if classifier is not None else ImportClassifier()

    def run(
        self, unit: SourceUnit, lines: tuple[ScannedLine, ...] | None = None
    ) -> list[Violation]:
        lines = scan(unit) if lines is None else lines
        stmts = leading_imports(lines, self.classifier)
        out: list[Violation] = []
        highest = -1
        prev: ImportStatement | None = None
        last_in_group: dict[int, str] = {}
        for st in stmts:
            if st.group < highest:
                out.append(
                    Violation(
                        self.code,
                        st.line,
                        None,
                        f"{GROUP_NAMES[st.group]} import '{st.module}' "
                        f"after {GROUP_NAMES[highest]} imports",
                    )
                )
                continue
            if prev is not None and st.group != prev.group:
                blanks = _blank_lines_between(lines, prev.end_line, st.line)
                if blanks != 1:
                    out.append(
                        Violation(
                            self.code,
                            st.line,
                            None,
                            f"expected 1 blank line between {GROUP_NAMES[prev.group]} and "
                            f"{GROUP_NAMES[st.group]} imports, found {blanks}",
                        )
                    )
            before = last_in_group.get(st.group)
            if before is not None and st.module.lower() < before.lower():
                out.append(
                    Violation(
                        self.code,
                        st.line,
                        None,
                        f"import '{st.module}' is not sorted within its group "
                        f"(should come before '{before}')",
                    )
                )
            else:
                last_in_group[st.group] = st.module
            highest = st.group
            prev = st
        return out


def leading_imports(
    lines: tuple[ScannedLine, ...], classifier: ImportClassifier
) -> list[ImportStatement]:
    """Collect the import statements at the top of a module.

    The block may open with a docstring and may contain comments and blank
    lines; it ends at the first statement that is not an import.
    """
    out: list[ImportStatement] = []
    idx = 0
    n = len(lines)
    seen_statement = False
    while idx < n:
        ln = lines[idx]
        if ln.blank or ln.is_comment or not ln.logical_start:
            idx += 1
            continue
        head = ln.code.strip()
        if not seen_statement and _STRING_START_RE.match(head):
            seen_statement = True
            idx += 1
            continue
        seen_statement = True
        from_match = _FROM_RE.match(head)
        if from_match is None and _IMPORT_RE.match(head) is None:
            break
        end = idx
        while end + 1 < n and lines[end + 1].continuation:
            end += 1
        if from_match is not None:
            modules = [from_match.group(1)]
        else:
            modules = _import_names(
                " ".join(lines[k].code.strip().rstrip("\\") for k in range(idx, end + 1))
            )
        out.extend(
            ImportStatement(
                line=ln.number,
                end_line=lines[end].number,
                module=module,
                group=classifier.group(module),
            )
            for module in modules
        )
        idx = end + 1
    return out


def _import_names(stmt: str) -> list[str]:
    """Every module bound by a plain `import a, b as c` statement, in order."""
    body = stmt.split(";", 1)[0].strip()[len("import") :]
    names: list[str] = []
    for part in body.split(","):
        m = _MODULE_RE.match(part.strip())
        if m is not None:
            names.append(m.group())
    return names


def _blank_lines_between(lines: tuple[ScannedLine, ...], after: int, before: int) -> int:
    # Line numbers are 1-based, tuple indexes 0-based
    return sum(1 for ln in lines[after : before - 1] if ln.blank)
