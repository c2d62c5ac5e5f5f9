"""Convert command: re-encode a filter between CQL2-Text and CQL2-JSON."""

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
from stacfilter.cql2 import FilterError
from stacfilter.output import (
    DEFAULT_OUTPUT_THEME,
    OutputFormat,
    build_console,
    print_output,
    render_filter,
    should_use_color,
)


@dataclass
class ConvertArgs:
    """Arguments for the convert command."""

    filter_text: str
    input_format: str
    out: str
    indent: int | None
    color_flag: bool | None
    out_theme: str


def run_convert(args: ConvertArgs) -> None:
    """Run the convert command."""
    output_format = resolve_output_format(args.out)
    indent = resolve_indent(args.indent)
    expr = parse_filter_source(read_filter_argument(args.filter_text), args.input_format)
    try:
        rendered = render_filter(expr, output_format, indent)
    except FilterError as exc:
        raise click.UsageError(str(exc)) from exc

    color_enabled = should_use_color(args.color_flag)
    print_output(build_console(color_enabled), rendered, color_enabled, args.out_theme)


def register(app: typer.Typer) -> None:
    """Register the convert command."""

    @app.command("convert")
    def convert_command(
        filter_text: str = typer.Argument(
            ..., metavar="FILTER", help="Filter expression, '-' for stdin or @FILE"
        ),
        input_format: str = typer.Option(
            "auto", "--from", help="Input encoding: auto, text or json"
        ),
        out: str = typer.Option(
            OutputFormat.JSON, "--out", "--to", help="Output encoding: text or json"
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
        """Convert a filter between CQL2-Text and CQL2-JSON."""
        args = ConvertArgs(
            filter_text=filter_text,
            input_format=input_format,
            out=out,
            indent=indent,
            color_flag=color_flag,
            out_theme=out_theme,
        )
        config_module.log_applied_config_defaults("convert")
        config_module.log_command_arguments(args, "convert")
        run_convert(args)
