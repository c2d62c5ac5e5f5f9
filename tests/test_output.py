"""Tests for output rendering helpers."""

from __future__ import annotations

import io
import json
from typing import cast

import pytest
from rich.console import Console
from rich.syntax import Syntax

from stacfilter import output
from stacfilter.cql2 import flatten_conjunction, parse_text


class _FakeConsole:
    def __init__(self) -> None:
        self.file = io.StringIO()
        self.renderables: list[object] = []

    def print(self, renderable: object, **kwargs: object) -> None:
        del kwargs
        self.renderables.append(renderable)


@pytest.mark.parametrize(
    ("value", "expected"),
    [("text", output.OutputFormat.TEXT), (" JSON ", output.OutputFormat.JSON)],
)
def test_parse_output_format(value: str, expected: output.OutputFormat) -> None:
    """Output formats should be matched case-insensitively."""
    assert output.parse_output_format(value) == expected


def test_parse_output_format_unknown() -> None:
    """Unknown formats should list the available ones."""
    with pytest.raises(output.OutputFormatError, match="Available formats: text, json"):
        output.parse_output_format("yaml")


def test_should_use_color_explicit_flag() -> None:
    """An explicit flag should win over TTY detection."""
    assert output.should_use_color(True) is True
    assert output.should_use_color(False) is False


def test_render_filter_formats() -> None:
    """render_filter should pick the serializer and highlight language."""
    expr = parse_text("a = 1")

    text = output.render_filter(expr, output.OutputFormat.TEXT, None)
    compact = output.render_filter(expr, output.OutputFormat.JSON, None)
    indented = output.render_filter(expr, output.OutputFormat.JSON, 4)

    assert text == output.RenderedOutput("a = 1", "sql")
    assert compact.text == '{"op":"=","args":[{"property":"a"},1]}'
    assert compact.language == "json"
    assert indented.text.startswith('{\n    "op"')


def test_render_predicates_grouped_text_has_no_language() -> None:
    """Grouped text output is not a filter and should not be highlighted."""
    predicates = flatten_conjunction(parse_text("a = 1 AND b = 2"))

    rendered = output.render_predicates(predicates, output.OutputFormat.TEXT, "property", None)

    assert rendered.language is None
    assert rendered.text == "a:\n  a = 1\nb:\n  b = 2"


def test_render_predicates_grouped_json() -> None:
    """Grouped JSON output should be an object of lists."""
    predicates = flatten_conjunction(parse_text("a = 1 AND b = 2"))

    rendered = output.render_predicates(predicates, output.OutputFormat.JSON, "operator", None)

    assert json.loads(rendered.text) == {
        "=": [
            {"op": "=", "args": [{"property": "a"}, 1]},
            {"op": "=", "args": [{"property": "b"}, 2]},
        ]
    }


def test_print_output_plain_writes_text() -> None:
    """Plain output should be written verbatim."""
    console = _FakeConsole()

    output.print_output(
        cast(Console, console), output.RenderedOutput("a = 1", "sql"), color_enabled=False
    )

    assert console.file.getvalue() == "a = 1\n"
    assert console.renderables == []


def test_print_output_color_uses_syntax_theme() -> None:
    """Colored output should be rendered through rich Syntax."""
    console = _FakeConsole()

    output.print_output(
        cast(Console, console),
        output.RenderedOutput('{"op":"="}', "json"),
        color_enabled=True,
        out_theme="monokai",
    )

    assert len(console.renderables) == 1
    syntax = console.renderables[0]
    assert isinstance(syntax, Syntax)
    assert syntax.lexer == "json" or getattr(syntax.lexer, "name", "").lower() == "json"


def test_print_output_color_without_language_is_plain() -> None:
    """Output without a language should stay plain even with color enabled."""
    console = _FakeConsole()

    output.print_output(
        cast(Console, console), output.RenderedOutput("a:\n  a = 1", None), color_enabled=True
    )

    assert console.file.getvalue() == "a:\n  a = 1\n"
