from __future__ import annotations

from stylegate.rules.commas import CommaSpacingRule
from stylegate.source import SourceUnit


def _run(text: str) -> list[tuple[int, int | None, str]]:
    out = CommaSpacingRule().run(SourceUnit.from_text(text))
    return [(v.line, v.column, v.message) for v in out]


def test_missing_whitespace_after_comma() -> None:
    assert _run("f(a,b)\n") == [(1, 4, "missing whitespace after ','")]


def test_whitespace_before_comma() -> None:
    assert _run("f(a , b)\n") == [(1, 5, "whitespace before ','")]


def test_too_much_whitespace_after_comma() -> None:
    assert _run("f(a,  b)\n") == [(1, 4, "too much whitespace after ','")]


def test_clean_forms() -> None:
    text = "x = (1,)\nf(a,\n  b)\ny = [1, 2]  # a,b\ns = \"a,b\"\n"
    assert _run(text) == []


def test_leading_comma_on_continuation_line() -> None:
    assert _run("x = [\n    1\n    , 2\n]\n") == []
