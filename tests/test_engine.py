from __future__ import annotations

from pathlib import Path

from stylegate.config import CheckConfig, ImportsConfig
from stylegate.engine import RuleEngine, build_rules
from stylegate.rules import RULE_CODES, Violation
from stylegate.rules.lexer import ScannedLine, scan
from stylegate.source import SourceUnit

_CLEAN_MODULE = '''"""Module doc."""

from __future__ import annotations

import os


def join(a: str, b: str = "") -> str:
    return os.path.join(a, b)


class Box:
    size: int = 0

    def grow(self, by=1):
        self.size += by
        return self.size
'''


def test_build_rules_follows_registration_order() -> None:
    rules = build_rules(CheckConfig(), ImportsConfig())
    assert tuple(r.code for r in rules) == RULE_CODES
    subset = build_rules(CheckConfig(select=("import-order", "indentation")), ImportsConfig())
    assert [r.code for r in subset] == ["indentation", "import-order"]


def test_clean_module_passes_every_rule() -> None:
    report = RuleEngine.from_config().check(SourceUnit.from_text(_CLEAN_MODULE, "clean.py"))
    assert report.violations == ()
    assert report.passed


def test_short_line_passes_default_threshold() -> None:
    line = 'x = "' + "a" * 69 + '"'
    assert len(line) == 75
    report = RuleEngine.from_config().check(SourceUnit.from_text(line + "\n"))
    assert report.passed


def test_violations_grouped_by_rule_in_registration_order() -> None:
    unit = SourceUnit.from_text("import sys\nimport os\nx=[1,2]\n")
    report = RuleEngine.from_config().check(unit)
    assert [v.rule_code for v in report.violations] == [
        "operator-spacing",
        "comma-spacing",
        "import-order",
    ]


def test_check_is_idempotent() -> None:
    engine = RuleEngine.from_config()
    unit = SourceUnit.from_text("x=y+5\n" + "z" * 90 + "\n")
    assert engine.check(unit) == engine.check(unit)


def test_selection_limits_rules() -> None:
    engine = RuleEngine.from_config(CheckConfig(select=("line-length",)))
    report = engine.check(SourceUnit.from_text("x=y+5\n" + "z" * 90 + "\n"))
    assert [(v.rule_code, v.line) for v in report.violations] == [("line-length", 2)]


def test_check_paths_sorted_and_isolated(tmp_path: Path) -> None:
    a = tmp_path / "a.py"
    b = tmp_path / "b.py"
    a.write_text("x=y+5\n", encoding="utf-8")
    b.write_text("x = 1\n", encoding="utf-8")
    missing = tmp_path / "missing.py"
    engine = RuleEngine.from_config()

    batch = engine.check_paths([missing, b, a], workers=4)

    assert [r.path for r in batch.reports] == [a.as_posix(), b.as_posix(), missing.as_posix()]
    assert batch.reports[0] == engine.check_path(a)
    assert batch.reports[1].passed
    assert batch.reports[2].error == "file not found"
    assert batch.reports[2].violations == ()
    assert batch.file_count == 3
    assert batch.error_count == 1
    assert batch.violation_count == 2
    assert not batch.passed


def test_worker_count_does_not_change_results(tmp_path: Path) -> None:
    paths = []
    for i in range(6):
        p = tmp_path / f"m{i}.py"
        p.write_text("x=1\n" * (i + 1), encoding="utf-8")
        paths.append(p)
    engine = RuleEngine.from_config()
    assert engine.check_paths(paths, workers=1) == engine.check_paths(paths, workers=3)


class _RecordingRule:
    code = "line-length"
    description = "Records the scanned lines it is handed"

    def __init__(self) -> None:
        self.seen: list[tuple[ScannedLine, ...] | None] = []

    def run(
        self, unit: SourceUnit, lines: tuple[ScannedLine, ...] | None = None
    ) -> list[Violation]:
        self.seen.append(lines)
        return []


def test_rules_share_one_scan_per_check() -> None:
    first, second = _RecordingRule(), _RecordingRule()
    engine = RuleEngine([first, second])
    engine.check(SourceUnit.from_text("x = 1\n"))
    engine.check(SourceUnit.from_text("x = 1\n"))

    assert first.seen[0] is not None
    assert first.seen[0] is second.seen[0]
    assert first.seen[1] is second.seen[1]
    # Each check scans afresh; nothing is retained between calls
    assert first.seen[0] is not first.seen[1]
    assert not hasattr(scan, "cache_info")
