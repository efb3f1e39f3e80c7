from __future__ import annotations

from stylegate.rules.blank_lines import BlankLinesRule
from stylegate.source import SourceUnit


def _run(text: str) -> list[tuple[int, str]]:
    out = BlankLinesRule().run(SourceUnit.from_text(text))
    assert all(v.rule_code == "blank-lines" and v.column is None for v in out)
    return [(v.line, v.message) for v in out]


def test_top_level_def_after_one_blank() -> None:
    text = "import os\n\ndef f():\n    return 1\n"
    assert _run(text) == [(3, "expected 2 blank lines before top-level definition, found 1")]


def test_top_level_def_after_two_blanks_is_clean() -> None:
    assert _run("import os\n\n\ndef f():\n    return 1\n") == []


def test_too_many_blank_lines() -> None:
    text = "import os\n\n\n\nclass A:\n    pass\n"
    assert _run(text) == [(5, "expected 2 blank lines before top-level definition, found 3")]


def test_first_definition_in_file_is_exempt() -> None:
    assert _run("def f():\n    return 1\n") == []
    assert _run("# header\n\ndef f():\n    return 1\n") == []


def test_async_def_counts_as_definition() -> None:
    text = "import os\n\nasync def f():\n    pass\n"
    assert [line for line, _ in _run(text)] == [3]


def test_decorators_are_counted_with_the_definition() -> None:
    assert _run("import os\n\n\n@decorator\ndef f():\n    return 1\n") == []
    text = "import os\n\n@decorator\ndef f():\n    return 1\n"
    assert _run(text) == [(4, "expected 2 blank lines before top-level definition, found 1")]


def test_attached_comment_belongs_to_definition() -> None:
    assert _run("x = 1\n\n\n# helper\ndef f():\n    return 1\n") == []


def test_methods_need_one_blank_line() -> None:
    text = (
        "class A:\n"
        "    def a(self):\n"
        "        return 1\n"
        "    def b(self):\n"
        "        return 2\n"
    )
    assert _run(text) == [(4, "expected 1 blank line before method definition, found 0")]


def test_methods_separated_correctly() -> None:
    text = (
        "class A:\n"
        '    """Doc."""\n'
        "\n"
        "    def a(self):\n"
        "        return 1\n"
        "\n"
        "    def b(self):\n"
        "        return 2\n"
    )
    assert _run(text) == []


def test_method_with_two_blank_lines() -> None:
    text = "class A:\n    x = 1\n\n\n    def a(self):\n        return 1\n"
    assert _run(text) == [(5, "expected 1 blank line before method definition, found 2")]


def test_nested_functions_are_not_checked() -> None:
    assert _run("def f():\n    x = 1\n    def g():\n        pass\n    return g\n") == []


def test_form_feed_separator_counts_as_blank_line() -> None:
    assert _run("import os\n\x0c\n\ndef f():\n    return 1\n") == []
