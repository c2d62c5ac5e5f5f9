"""Configuration handling for the stacfilter CLI."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import TypeGuard, cast

import typer

from stacfilter.cql2.translator import BUILTIN_DIALECTS, Dialect


CONFIG_FILE = ".stacfilter.json"

OUTPUT_FORMATS = ("text", "json")
GROUP_BY_CHOICES = ("none", "property", "operator")

OPTION_DESTS: dict[str, str] = {
    "--dialect": "dialect",
    "--group-by": "group_by",
    "--indent": "indent",
    "--out": "out",
    "--out-theme": "out_theme",
    "--queryables": "queryables",
    "--verbose": "verbose",
}

COMMAND_OPTIONS: dict[str, frozenset[str]] = {
    "convert": frozenset({"out", "indent", "color_flag", "out_theme"}),
    "flatten": frozenset({"out", "group_by", "color_flag", "out_theme"}),
    "translate": frozenset({"dialect"}),
    "build": frozenset({"out", "indent", "queryables", "color_flag", "out_theme"}),
}

CONFIG_DEFAULTS: dict[str, object] = {}
CONFIG_DIALECTS: dict[str, Dialect] = {}


logger = logging.getLogger("stacfilter")


@dataclass
class LoadedCliConfig:
    """Fully parsed CLI config payload."""

    defaults: dict[str, object] = field(default_factory=dict)
    dialects: dict[str, Dialect] = field(default_factory=dict)


def load_config(filepath: str) -> tuple[dict[str, object], bool]:
    """Load config from JSON file.

    Args:
        filepath: Path to config file

    Returns:
        Tuple of (config dict, malformed flag)
    """
    try:
        with open(filepath, encoding="utf-8") as f:
            config = json.load(f)
    except FileNotFoundError:
        return ({}, False)
    except OSError:
        return ({}, True)
    except json.JSONDecodeError:
        return ({}, True)

    if not isinstance(config, dict):
        return ({}, True)

    return (config, False)


def is_string_dict(value: object) -> TypeGuard[dict[str, str]]:
    """Check if value is dict[str, str]."""
    return isinstance(value, dict) and all(
        isinstance(key, str) and isinstance(item, str) for key, item in value.items()
    )


def parse_color_defaults(config: dict[str, object]) -> tuple[dict[str, object], bool]:
    """Parse ``--color``/``--no-color`` entries into a ``color_flag`` default."""
    color_value = config.get("--color")
    no_color_value = config.get("--no-color")

    if "--color" in config and not isinstance(color_value, bool):
        return ({}, False)
    if "--no-color" in config and not isinstance(no_color_value, bool):
        return ({}, False)
    if color_value is True and no_color_value is True:
        return ({}, False)

    if color_value is True:
        return ({"color_flag": True}, True)
    if no_color_value is True:
        return ({"color_flag": False}, True)
    return ({}, True)


def validate_option(key: str, value: object) -> object | None:
    """Return the validated value of one defaults entry, or None when invalid."""
    match key:
        case "--out":
            return value if value in OUTPUT_FORMATS else None
        case "--group-by":
            return value if value in GROUP_BY_CHOICES else None
        case "--indent":
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                return None
            return value
        case "--verbose":
            return value if isinstance(value, bool) else None
        case "--dialect" | "--queryables" | "--out-theme":
            if not isinstance(value, str) or not value.strip():
                return None
            return value
    return None


def build_config_defaults(section: dict[str, object]) -> dict[str, object] | None:
    """Validate the ``defaults`` section and map option names to parameter names."""
    defaults, color_ok = parse_color_defaults(section)
    if not color_ok:
        return None

    for key, value in section.items():
        if key in ("--color", "--no-color"):
            continue
        dest = OPTION_DESTS.get(key)
        if dest is None:
            logger.warning("Unknown config option: %s", key)
            return None
        validated = validate_option(key, value)
        if validated is None:
            logger.warning("Invalid value for config option %s: %r", key, value)
            return None
        defaults[dest] = validated
    return defaults


def parse_dialects(section: object) -> dict[str, Dialect] | None:
    """Build custom dialects from the ``dialects`` section.

    Accepted shape:
      {
        "name": {"base": "sql", "templates": {"s_intersects": "intersects({0}, {1})"}}
      }
    """
    if not isinstance(section, dict):
        return None

    dialects: dict[str, Dialect] = {}
    for name, entry in section.items():
        if not isinstance(entry, dict) or any(key not in ("base", "templates") for key in entry):
            return None
        base_name = entry.get("base", "sql")
        base = BUILTIN_DIALECTS.get(base_name) if isinstance(base_name, str) else None
        templates = entry.get("templates", {})
        if base is None or not is_string_dict(templates):
            return None
        try:
            dialects[name] = Dialect.from_mapping(name, templates, base=base)
        except ValueError as exc:
            logger.warning("Invalid dialect %s: %s", name, exc)
            return None
    return dialects


def parse_config_sections(
    raw_config: dict[str, object],
) -> tuple[dict[str, object], object] | None:
    """Split the config into its ``defaults`` and ``dialects`` sections."""
    if any(key not in ("defaults", "dialects") for key in raw_config):
        return None
    defaults_section = raw_config.get("defaults", {})
    if not isinstance(defaults_section, dict):
        return None
    return (cast(dict[str, object], defaults_section), raw_config.get("dialects", {}))


def parse_config_argument(argv: list[str]) -> str:
    """Parse only the --config argument from argv."""
    for idx, arg in enumerate(argv[1:], start=1):
        if arg == "--config" and idx + 1 < len(argv):
            return argv[idx + 1]
        if arg.startswith("--config="):
            return arg.split("=", 1)[1]
    return CONFIG_FILE


def load_cli_config(argv: list[str]) -> LoadedCliConfig:
    """Load config defaults from the configured file path."""
    config_path = Path(parse_config_argument(argv))
    if not config_path.is_absolute():
        config_path = Path.cwd() / config_path
    config, malformed = load_config(str(config_path))
    if malformed:
        raise typer.BadParameter("Malformed config")

    sections = parse_config_sections(config)
    if sections is None:
        raise typer.BadParameter("Malformed config")
    defaults_section, dialects_section = sections

    defaults = build_config_defaults(defaults_section)
    dialects = parse_dialects(dialects_section)
    if defaults is None or dialects is None:
        raise typer.BadParameter("Malformed config")

    if config:
        logger.info("Loaded config from %s", config_path)
    return LoadedCliConfig(defaults=defaults, dialects=dialects)


def build_default_map(defaults: dict[str, object]) -> dict[str, dict[str, object]]:
    """Build Click default_map for Typer commands."""
    default_map: dict[str, dict[str, object]] = {}
    for command_name, options in COMMAND_OPTIONS.items():
        command_defaults = {key: value for key, value in defaults.items() if key in options}
        if command_defaults:
            default_map[command_name] = command_defaults
    return default_map


def log_applied_config_defaults(command_name: str) -> None:
    """Log config defaults that apply to a command."""
    if not logger.isEnabledFor(logging.INFO):
        return
    options = COMMAND_OPTIONS.get(command_name, frozenset())
    entries = [
        f"{key}={value!r}" for key, value in sorted(CONFIG_DEFAULTS.items()) if key in options
    ]
    if entries:
        logger.info("Config defaults (%s): %s", command_name, ", ".join(entries))


def log_command_arguments(args: object, command_name: str) -> None:
    """Log all final argument values used to run a command."""
    if not logger.isEnabledFor(logging.INFO):
        return
    try:
        arg_items = vars(args).items()
    except TypeError:
        return
    entries = [f"{name}={value!r}" for name, value in sorted(arg_items, key=lambda item: item[0])]
    logger.info("Command arguments (%s): %s", command_name, ", ".join(entries))
