"""Build command: assemble a STAC item filter from simple conditions."""

from __future__ import annotations

import re
from dataclasses import dataclass

import click
import typer

from stacfilter import config as config_module
from stacfilter.cli_common import resolve_indent, resolve_output_format
from stacfilter.cql2 import Expr, FilterBuilder, FilterError
from stacfilter.cql2.builder import bbox, interval, to_literal
from stacfilter.cql2.values import OPEN_BOUND, parse_instant
from stacfilter.output import (
    DEFAULT_OUTPUT_THEME,
    OutputFormat,
    build_console,
    print_output,
    render_filter,
    should_use_color,
)
from stacfilter.queryables import Queryables, QueryablesError, coerce_value, load_queryables


WHERE_PATTERN = re.compile(
    r"^\s*(?P<name>[A-Za-z_][A-Za-z0-9_:.]*)\s*(?P<op><>|<=|>=|!=|=|<|>|~)\s*(?P<value>.*?)\s*$"
)

_COMPARISONS = {
    "=": FilterBuilder.equal,
    "<>": FilterBuilder.not_equal,
    "!=": FilterBuilder.not_equal,
    "<": FilterBuilder.less_than,
    "<=": FilterBuilder.less_than_or_equal,
    ">": FilterBuilder.greater_than,
    ">=": FilterBuilder.greater_than_or_equal,
}


@dataclass
class BuildArgs:
    """Arguments for the build command."""

    where: list[str] | None
    bbox_value: str | None
    datetime_value: str | None
    geometry_property: str
    datetime_property: str
    queryables: str | None
    out: str
    indent: int | None
    color_flag: bool | None
    out_theme: str


def _parse_bbox(value: str) -> Expr:
    parts = [part.strip() for part in value.split(",")]
    try:
        numbers = [float(part) for part in parts]
    except ValueError as exc:
        raise typer.BadParameter(f"--bbox expects comma separated numbers, got {value!r}") from exc
    if len(numbers) not in (4, 6):
        raise typer.BadParameter(f"--bbox expects 4 or 6 numbers, got {len(numbers)}")
    return bbox(*numbers)


def _parse_datetime(value: str) -> Expr:
    """Read a STAC datetime parameter: one instant or ``start/end`` with ``..`` bounds."""
    try:
        if "/" in value:
            start, end = (part.strip() for part in value.split("/", 1))
            if start in ("", OPEN_BOUND) and end in ("", OPEN_BOUND):
                raise typer.BadParameter("--datetime interval needs at least one bound")
            return interval(start or OPEN_BOUND, end or OPEN_BOUND)
        return to_literal(parse_instant(value.strip()))
    except ValueError as exc:
        raise typer.BadParameter(f"Invalid --datetime value: {value!r}") from exc


def _apply_where(builder: FilterBuilder, condition: str, queryables: Queryables | None) -> None:
    match = WHERE_PATTERN.match(condition)
    if match is None:
        raise typer.BadParameter(
            f"--where expects NAME<op>VALUE with op one of = <> < <= > >= ~, got {condition!r}"
        )
    name, op, raw = match.group("name"), match.group("op"), match.group("value")
    queryable = queryables.get(name) if queryables is not None else None
    if queryables is not None and queryable is None and not queryables.additional_properties:
        raise typer.BadParameter(f"Unknown queryable: {name}")
    if op == "~":
        builder.like(name, raw)
        return
    try:
        value = coerce_value(raw, queryable)
    except QueryablesError as exc:
        raise typer.BadParameter(str(exc)) from exc
    _COMPARISONS[op](builder, name, value)


def build_filter(args: BuildArgs) -> Expr | None:
    """Assemble the filter described by the build arguments."""
    queryables = None
    if args.queryables is not None:
        try:
            queryables = load_queryables(args.queryables)
        except QueryablesError as exc:
            raise typer.BadParameter(str(exc)) from exc

    builder = FilterBuilder()
    for condition in args.where or []:
        _apply_where(builder, condition, queryables)
    if args.bbox_value is not None:
        builder.intersects(args.geometry_property, _parse_bbox(args.bbox_value))
    if args.datetime_value is not None:
        builder.t_intersects(args.datetime_property, _parse_datetime(args.datetime_value))
    return builder.build()


def run_build(args: BuildArgs) -> None:
    """Run the build command."""
    output_format = resolve_output_format(args.out)
    indent = resolve_indent(args.indent)
    expr = build_filter(args)
    if expr is None:
        raise click.UsageError("Nothing to build: pass --where, --bbox or --datetime")
    try:
        rendered = render_filter(expr, output_format, indent)
    except FilterError as exc:
        raise click.UsageError(str(exc)) from exc

    color_enabled = should_use_color(args.color_flag)
    print_output(build_console(color_enabled), rendered, color_enabled, args.out_theme)


def register(app: typer.Typer) -> None:
    """Register the build command."""

    @app.command("build")
    def build_command(  # noqa: PLR0913
        where: list[str] | None = typer.Option(  # noqa: B008
            None,
            "--where",
            "-w",
            metavar="COND",
            help="Condition NAME<op>VALUE, repeatable; ~ means LIKE",
        ),
        bbox_value: str | None = typer.Option(
            None, "--bbox", metavar="MINX,MINY,MAXX,MAXY", help="Spatial extent to intersect"
        ),
        datetime_value: str | None = typer.Option(
            None, "--datetime", metavar="INSTANT|START/END", help="Instant or interval to intersect"
        ),
        geometry_property: str = typer.Option(
            "geometry", "--geometry-property", help="Property tested by --bbox"
        ),
        datetime_property: str = typer.Option(
            "datetime", "--datetime-property", help="Property tested by --datetime"
        ),
        queryables: str | None = typer.Option(
            None,
            "--queryables",
            metavar="FILE",
            help="Queryables JSON Schema used to type --where values",
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
        """Build a filter from conditions, a bbox and a datetime range."""
        args = BuildArgs(
            where=where,
            bbox_value=bbox_value,
            datetime_value=datetime_value,
            geometry_property=geometry_property,
            datetime_property=datetime_property,
            queryables=queryables,
            out=out,
            indent=indent,
            color_flag=color_flag,
            out_theme=out_theme,
        )
        config_module.log_applied_config_defaults("build")
        config_module.log_command_arguments(args, "build")
        run_build(args)
