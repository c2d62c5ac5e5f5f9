"""Translate command: render a filter in a target query language."""

from __future__ import annotations

from dataclasses import dataclass

import click
import typer

from stacfilter import config as config_module
from stacfilter.cli_common import parse_filter_source, read_filter_argument
from stacfilter.cql2 import FilterError, translate
from stacfilter.cql2.translator import get_dialect


@dataclass
class TranslateArgs:
    """Arguments for the translate command."""

    filter_text: str
    input_format: str
    dialect: str


def run_translate(args: TranslateArgs) -> None:
    """Run the translate command."""
    try:
        dialect = get_dialect(args.dialect, config_module.CONFIG_DIALECTS)
    except KeyError as exc:
        raise typer.BadParameter(str(exc.args[0])) from exc

    expr = parse_filter_source(read_filter_argument(args.filter_text), args.input_format)
    try:
        result = translate(expr, dialect)
    except FilterError as exc:
        raise click.UsageError(str(exc)) from exc
    typer.echo(result)


def register(app: typer.Typer) -> None:
    """Register the translate command."""

    @app.command("translate")
    def translate_command(
        filter_text: str = typer.Argument(
            ..., metavar="FILTER", help="Filter expression, '-' for stdin or @FILE"
        ),
        input_format: str = typer.Option(
            "auto", "--from", help="Input encoding: auto, text or json"
        ),
        dialect: str = typer.Option(
            "sql", "--dialect", "-d", help="Target dialect: sql, odata or a configured name"
        ),
    ) -> None:
        """Translate a filter into SQL, OData or a configured dialect."""
        args = TranslateArgs(filter_text=filter_text, input_format=input_format, dialect=dialect)
        config_module.log_applied_config_defaults("translate")
        config_module.log_command_arguments(args, "translate")
        run_translate(args)
