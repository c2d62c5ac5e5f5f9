#!/usr/bin/env python
"""CLI interface for stacfilter - CQL2 filter conversion and translation."""

from __future__ import annotations

import sys

import typer

from stacfilter import config, logging_config
from stacfilter.commands import build, convert, flatten, translate


app = typer.Typer(
    help="Parse, convert, flatten and translate OGC CQL2 filter expressions.",
    no_args_is_help=True,
)


DEFAULT_VERBOSE: dict[str, bool] = {"value": False}


@app.callback()
def main_callback(
    verbose: bool | None = typer.Option(
        None,
        "--verbose",
        "-v",
        help="Enable verbose logging output",
    ),
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Also log parser and translator details",
    ),
    config_path: str = typer.Option(
        config.CONFIG_FILE,
        "--config",
        metavar="FILE",
        help="Config file name to load from current directory",
    ),
) -> None:
    """Global CLI options."""
    del config_path
    if verbose is None and not debug and not DEFAULT_VERBOSE["value"]:
        return
    resolved_verbose = DEFAULT_VERBOSE["value"] if verbose is None else verbose
    logging_config.configure_logging(resolved_verbose, debug)


convert.register(app)
flatten.register(app)
translate.register(app)
build.register(app)


def main() -> None:
    """Main CLI entry point."""
    loaded_config = config.load_cli_config(sys.argv)
    defaults = dict(loaded_config.defaults)
    DEFAULT_VERBOSE["value"] = bool(defaults.pop("verbose", False))
    config.CONFIG_DEFAULTS.clear()
    config.CONFIG_DEFAULTS.update(defaults)
    config.CONFIG_DIALECTS.clear()
    config.CONFIG_DIALECTS.update(loaded_config.dialects)

    command = typer.main.get_command(app)
    default_map = config.build_default_map(defaults) if defaults else None
    command.main(
        args=sys.argv[1:],
        prog_name="stacfilter",
        standalone_mode=True,
        default_map=default_map,
    )


if __name__ == "__main__":
    main()
