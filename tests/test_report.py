from __future__ import annotations

from stylegate.report import BatchReport, CheckReport, format_violation
from stylegate.rules import Violation


def test_format_with_and_without_column() -> None:
    v1 = Violation("operator-spacing", 3, 2, "missing whitespace around operator '='")
    v2 = Violation(
        "blank-lines", 7, None, "expected 2 blank lines before top-level definition, found 1"
    )
    assert format_violation("pkg/m.py", v1) == (
        "pkg/m.py:3:2: [operator-spacing] missing whitespace around operator '='"
    )
    assert format_violation("pkg/m.py", v2).startswith("pkg/m.py:7: [blank-lines] expected")


def test_batch_render_and_counts() -> None:
    v = Violation("line-length", 1, 80, "line too long (80 > 79 characters)")
    r1 = CheckReport("a.py", (v,))
    r2 = CheckReport("b.py", error="file not found")
    batch = BatchReport((r1, r2))
    assert batch.render() == [
        "a.py:1:80: [line-length] line too long (80 > 79 characters)",
        "b.py: [read-error] file not found",
        "1 file(s) could not be read",
        "1 violation(s) in 2 file(s)",
    ]
    counts = batch.counts_by_rule()
    assert counts["line-length"] == 1 and counts["indentation"] == 0


def test_to_dict_shape() -> None:
    d = CheckReport("a.py").to_dict()
    assert d == {
        "path": "a.py",
        "passed": True,
        "error": None,
        "violation_count": 0,
        "violations": [],
    }
