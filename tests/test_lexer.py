from __future__ import annotations

from stylegate.rules.lexer import ScannedLine, scan
from stylegate.source import SourceUnit


def _scan(text: str) -> tuple[ScannedLine, ...]:
    return scan(SourceUnit.from_text(text))


def test_strings_masked_and_comment_removed() -> None:
    lines = _scan('x = "a, b"  # c, d\n')
    assert lines[0].code == 'x = "____"  '
    assert lines[0].text == 'x = "a, b"  # c, d'


def test_escaped_quote_stays_inside_literal() -> None:
    lines = _scan("s = 'it\\'s'\n")
    assert lines[0].code == "s = '_____'"
    assert lines[0].skip is False


def test_triple_quoted_string_spans_lines() -> None:
    lines = _scan('def f():\n    """Doc\n    more\n    """\n    return 1\n')
    assert [ln.in_string for ln in lines] == [False, False, True, True, False]
    assert lines[1].code == '    """___'
    assert lines[2].code == "_" * len("    more")
    assert lines[3].code == '____"""'


def test_bracket_and_backslash_continuation() -> None:
    lines = _scan("x = foo(\n    1,\n)\ny = 2\n")
    assert [ln.continuation for ln in lines] == [False, True, True, False]
    assert [ln.depth for ln in lines] == [0, 1, 1, 0]

    lines = _scan("x = 1 + \\\n    2\n")
    assert [ln.continuation for ln in lines] == [False, True]


def test_unterminated_string_marks_line_skipped() -> None:
    lines = _scan("x = 'abc\ny = 1\n")
    assert lines[0].skip is True
    assert lines[1].skip is False


def test_line_properties() -> None:
    lines = _scan("  # note\n\n    x = 1\n")
    assert lines[0].is_comment is True
    assert lines[1].blank is True
    assert lines[2].indent == 4
    assert lines[2].logical_start is True
