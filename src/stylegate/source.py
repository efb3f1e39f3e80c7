from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from .errors import ReadFailure

IGNORED_PARTS: Final[frozenset[str]] = frozenset(
    {
        ".git",
        ".venv",
        "venv",
        "__pycache__",
        ".mypy_cache",
        ".ruff_cache",
        ".pytest_cache",
        ".tox",
        "build",
        "dist",
    }
)

# Only the line terminators the tokenizer honours; form feeds and Unicode
# separators stay inside the line
_LINE_BREAK: Final[re.Pattern[str]] = re.compile(r"\r\n|\r|\n")


@dataclass(frozen=True)
class SourceUnit:
    path: str
    lines: tuple[str, ...]

    @classmethod
    def from_text(cls, text: str, path: str = "<input>") -> SourceUnit:
        lines = _LINE_BREAK.split(text)
        if lines[-1] == "":
            lines.pop()
        return cls(path=path, lines=tuple(lines))


def load_source(path: Path) -> SourceUnit:
    """Read one file into a SourceUnit.

    Raises ReadFailure for anything that prevents a check: a missing path, a
    directory, permission problems, or bytes that are not valid UTF-8.
    """
    label = path.as_posix()
    if not path.exists():
        raise ReadFailure(label, "file not found")
    if path.is_dir():
        raise ReadFailure(label, "is a directory")
    try:
        raw = path.read_bytes()
    except OSError as exc:
        raise ReadFailure(label, exc.strerror or str(exc)) from exc
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise ReadFailure(label, f"cannot decode as utf-8 at byte {exc.start}") from exc
    # A BOM is an encoding artifact, not a source character
    return SourceUnit.from_text(text.removeprefix("\ufeff"), path=label)


def iter_py_files(paths: Iterable[Path]) -> list[Path]:
    """Expand directories into the Python files under them.

    Plain paths pass through unchanged, including ones that do not exist, so the
    caller can report them as read failures.
    """
    out: list[Path] = []
    for root in paths:
        if not root.is_dir():
            out.append(root)
            continue
        for p in sorted(root.rglob("*.py")):
            if any(part in IGNORED_PARTS for part in p.relative_to(root).parts):
                continue
            out.append(p)
    return out
