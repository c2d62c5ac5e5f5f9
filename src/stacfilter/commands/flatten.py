"""Flatten command: list the predicates of an AND-only filter."""

from __future__ import annotations

from dataclasses import dataclass

import click
import typer

from stacfilter import config as config_module
from stacfilter.cli_common import (
    parse_filter_source,
    read_filter_argument,
    resolve_indent,
    resolve_output_format,
)
from stacfilter.config import GROUP_BY_CHOICES
from stacfilter.cql2 import FilterError, flatten_conjunction
from stacfilter.output import (
    DEFAULT_OUTPUT_THEME,
    OutputFormat,
    build_console,
    print_output,
    render_predicates,
    should_use_color,
)


@dataclass
class FlattenArgs:
    """Arguments for the flatten command."""

    filter_text: str
    input_format: str
    group_by: str
    out: str
    indent: int | None
    color_flag: bool | None
    out_theme: str


def run_flatten(args: FlattenArgs) -> None:
    """Run the flatten command."""
    if args.group_by not in GROUP_BY_CHOICES:
        raise typer.BadParameter(
            f"--group-by must be one of: {', '.join(GROUP_BY_CHOICES)}"
        )
    output_format = resolve_output_format(args.out)
    indent = resolve_indent(args.indent)
    expr = parse_filter_source(read_filter_argument(args.filter_text), args.input_format)
    try:
        predicates = flatten_conjunction(expr)
        rendered = render_predicates(predicates, output_format, args.group_by, indent)
    except FilterError as exc:
        raise click.UsageError(str(exc)) from exc

    color_enabled = should_use_color(args.color_flag)
    print_output(build_console(color_enabled), rendered, color_enabled, args.out_theme)


def register(app: typer.Typer) -> None:
    """Register the flatten command."""

    @app.command("flatten")
    def flatten_command(
        filter_text: str = typer.Argument(
            ..., metavar="FILTER", help="Filter expression, '-' for stdin or @FILE"
        ),
        input_format: str = typer.Option(
            "auto", "--from", help="Input encoding: auto, text or json"
        ),
        group_by: str = typer.Option(
            "none", "--group-by", help="Group predicates by: none, property or operator"
        ),
        out: str = typer.Option(
            OutputFormat.TEXT, "--out", "--to", help="Output encoding: text or json"
        ),
        indent: int | None = typer.Option(
            None, "--indent", metavar="N", help="Indent JSON output by N spaces"
        ),
        color_flag: bool | None = typer.Option(
            None,
            "--color/--no-color",
            help="Force colored output",
        ),
        out_theme: str = typer.Option(
            DEFAULT_OUTPUT_THEME,
            "--out-theme",
            help="Syntax theme for highlighted output",
        ),
    ) -> None:
        """Split an AND-only filter into its terminal predicates."""
        args = FlattenArgs(
            filter_text=filter_text,
            input_format=input_format,
            group_by=group_by,
            out=out,
            indent=indent,
            color_flag=color_flag,
            out_theme=out_theme,
        )
        config_module.log_applied_config_defaults("flatten")
        config_module.log_command_arguments(args, "flatten")
        run_flatten(args)
