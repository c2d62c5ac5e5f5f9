"""Shared helpers for CLI commands."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click
import typer

from stacfilter.cql2 import Expr, FilterError, parse_json, parse_text
from stacfilter.output import OutputFormat, OutputFormatError, parse_output_format


logger = logging.getLogger("stacfilter")

INPUT_FORMATS = ("auto", "text", "json")


def read_filter_argument(value: str) -> str:
    """Resolve a FILTER argument: ``-`` reads stdin and ``@path`` reads a file."""
    if value == "-":
        return sys.stdin.read()
    if value.startswith("@"):
        path = Path(value[1:])
        try:
            return path.read_text(encoding="utf-8")
        except OSError as exc:
            raise typer.BadParameter(f"Cannot read filter file {path}: {exc}") from exc
    return value


def detect_input_format(source: str) -> str:
    """Guess the encoding of a filter: JSON documents start with ``{``."""
    return "json" if source.lstrip().startswith("{") else "text"


def parse_filter_source(source: str, input_format: str = "auto") -> Expr:
    """Parse filter text in the given or detected encoding.

    Filter errors are reported as click usage errors.
    """
    if input_format not in INPUT_FORMATS:
        raise typer.BadParameter(
            f"Unknown input format: {input_format}. Available formats: {', '.join(INPUT_FORMATS)}"
        )
    resolved = detect_input_format(source) if input_format == "auto" else input_format
    logger.info("Parsing filter as CQL2-%s", resolved.upper() if resolved == "json" else "Text")
    try:
        if resolved == "json":
            return parse_json(source)
        return parse_text(source)
    except FilterError as exc:
        raise click.UsageError(str(exc)) from exc


def resolve_output_format(value: str) -> OutputFormat:
    try:
        return parse_output_format(value)
    except OutputFormatError as exc:
        raise click.UsageError(str(exc)) from exc


def resolve_indent(indent: int | None) -> int | None:
    if indent is not None and indent < 0:
        raise typer.BadParameter("--indent must be non-negative")
    return indent
