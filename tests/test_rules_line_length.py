from __future__ import annotations

from stylegate.rules.line_length import LineLengthRule
from stylegate.source import SourceUnit


def test_line_over_threshold_yields_one_violation() -> None:
    unit = SourceUnit.from_text("x = 1\n" + "y" * 80 + "\nz = 2\n")
    out = LineLengthRule().run(unit)
    assert len(out) == 1
    v = out[0]
    assert (v.rule_code, v.line, v.column) == ("line-length", 2, 80)
    assert v.message == "line too long (80 > 79 characters)"


def test_line_at_threshold_is_fine() -> None:
    unit = SourceUnit.from_text("y" * 79 + "\n")
    assert LineLengthRule().run(unit) == []


def test_threshold_is_configurable() -> None:
    unit = SourceUnit.from_text("a" * 90 + "\n" + "b" * 101 + "\n")
    out = LineLengthRule(max_line_length=100).run(unit)
    assert [v.line for v in out] == [2]


def test_every_long_line_reported_in_order() -> None:
    unit = SourceUnit.from_text("\n".join(["q" * 85, "ok", "r" * 120]))
    out = LineLengthRule().run(unit)
    assert [v.line for v in out] == [1, 3]
