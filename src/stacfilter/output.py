"""Output formats and console rendering for CLI commands."""

from __future__ import annotations

import json
import sys
from dataclasses import dataclass
from enum import StrEnum

from rich.console import Console
from rich.syntax import Syntax

from stacfilter.cql2 import Expr, serialize_json, serialize_text
from stacfilter.cql2.ast import TerminalPredicate
from stacfilter.cql2.flatten import group_by_operator, group_by_property

DEFAULT_OUTPUT_THEME = "github-dark"
MISSING_PROPERTY_KEY = "(none)"


class OutputFormat(StrEnum):
    """Supported filter encodings for command output."""

    TEXT = "text"
    JSON = "json"


class OutputFormatError(ValueError):
    """Raised when an unknown output format is requested."""


_SYNTAX_LANGUAGES: dict[str, str] = {
    OutputFormat.TEXT: "sql",
    OutputFormat.JSON: "json",
}


@dataclass(frozen=True)
class RenderedOutput:
    """Rendered command output with the language used for highlighting."""

    text: str
    language: str | None


def parse_output_format(value: str) -> OutputFormat:
    normalized = value.strip().lower()
    try:
        return OutputFormat(normalized)
    except ValueError as exc:
        available = ", ".join(item.value for item in OutputFormat)
        raise OutputFormatError(
            f"Unknown output format: {value}. Available formats: {available}"
        ) from exc


def should_use_color(color_flag: bool | None) -> bool:
    """Use the explicit flag, otherwise color only when stdout is a TTY."""
    if color_flag is None:
        return sys.stdout.isatty()
    return color_flag


def build_console(color_enabled: bool) -> Console:
    return Console(
        force_terminal=color_enabled,
        no_color=not color_enabled,
        highlight=False,
        soft_wrap=True,
    )


def _dump_json(value: object, indent: int | None) -> str:
    if indent is None or indent == 0:
        return json.dumps(value, separators=(",", ":"), ensure_ascii=True)
    return json.dumps(value, indent=indent, ensure_ascii=True)


def render_filter(expr: Expr, output_format: OutputFormat, indent: int | None) -> RenderedOutput:
    """Serialize a filter in the requested encoding."""
    if output_format == OutputFormat.JSON:
        return RenderedOutput(_dump_json(serialize_json(expr), indent), "json")
    return RenderedOutput(serialize_text(expr), _SYNTAX_LANGUAGES[output_format])


def render_predicates(
    predicates: list[TerminalPredicate],
    output_format: OutputFormat,
    group_by: str,
    indent: int | None,
) -> RenderedOutput:
    """Render flattened predicates, optionally bucketed by property or operator."""
    if group_by == "none":
        if output_format == OutputFormat.JSON:
            payload = [serialize_json(predicate) for predicate in predicates]
            return RenderedOutput(_dump_json(payload, indent), "json")
        return RenderedOutput(
            "\n".join(serialize_text(predicate) for predicate in predicates), "sql"
        )

    if group_by == "property":
        groups = {
            key or MISSING_PROPERTY_KEY: members
            for key, members in group_by_property(predicates).items()
        }
    else:
        groups = dict(group_by_operator(predicates))

    if output_format == OutputFormat.JSON:
        grouped_payload = {
            key: [serialize_json(predicate) for predicate in members]
            for key, members in groups.items()
        }
        return RenderedOutput(_dump_json(grouped_payload, indent), "json")

    lines: list[str] = []
    for key, members in groups.items():
        lines.append(f"{key}:")
        lines.extend(f"  {serialize_text(predicate)}" for predicate in members)
    return RenderedOutput("\n".join(lines), None)


def print_output(
    console: Console,
    output: RenderedOutput,
    color_enabled: bool,
    out_theme: str = DEFAULT_OUTPUT_THEME,
) -> None:
    """Print rendered output, highlighting it when color is enabled."""
    if color_enabled and output.language is not None and output.text:
        console.print(
            Syntax(
                output.text,
                output.language,
                theme=out_theme.strip() or DEFAULT_OUTPUT_THEME,
                line_numbers=False,
                word_wrap=True,
                background_color="default",
            )
        )
        return
    console.file.write(f"{output.text}\n")
    console.file.flush()
