"""CliRunner tests for the Typer CLI."""

from __future__ import annotations

import json
from pathlib import Path

from typer.testing import CliRunner

from stacfilter import config
from stacfilter.cli import app
from stacfilter.cql2.translator import Dialect, SQL_DIALECT


FIXTURES_DIR = Path(__file__).resolve().parent.parent / "fixtures"


def test_cli_runner_convert_text_to_json() -> None:
    """convert should emit compact CQL2-JSON by default."""
    runner = CliRunner()

    result = runner.invoke(app, ["convert", "--no-color", "a = 1 AND b IS NULL"])

    assert result.exit_code == 0
    assert json.loads(result.stdout) == {
        "op": "and",
        "args": [
            {"op": "=", "args": [{"property": "a"}, 1]},
            {"op": "isNull", "args": [{"property": "b"}]},
        ],
    }


def test_cli_runner_convert_json_file_to_text() -> None:
    """convert should read @FILE arguments and detect JSON input."""
    runner = CliRunner()
    fixture_path = FIXTURES_DIR / "landsat_filter.json"

    result = runner.invoke(app, ["convert", "--no-color", "--to", "text", f"@{fixture_path}"])

    assert result.exit_code == 0
    assert result.stdout.strip() == (
        'collection = "landsat-c2-l2" AND eo:cloud_cover < 10 '
        "AND geometry S_INTERSECTS BBOX(-105.3, 39.5, -104.6, 40.1)"
    )


def test_cli_runner_convert_reads_stdin() -> None:
    """A FILTER of - should read the filter from stdin."""
    runner = CliRunner()

    result = runner.invoke(
        app, ["convert", "--no-color", "--indent", "2", "-"], input="x <> 'y'\n"
    )

    assert result.exit_code == 0
    assert '"op": "<>"' in result.stdout


def test_cli_runner_convert_syntax_error() -> None:
    """Syntax errors should be usage errors with a pointer."""
    runner = CliRunner()

    result = runner.invoke(app, ["convert", "--no-color", "temp >"])

    assert result.exit_code == 2
    assert "Invalid filter syntax" in result.output
    assert "^" in result.output


def test_cli_runner_convert_unknown_output_format() -> None:
    """Unknown output formats should be rejected."""
    runner = CliRunner()

    result = runner.invoke(app, ["convert", "--no-color", "--to", "yaml", "a = 1"])

    assert result.exit_code == 2
    assert "Error" in result.output


def test_cli_runner_flatten_groups_by_property() -> None:
    """flatten should bucket predicates by property."""
    runner = CliRunner()

    result = runner.invoke(
        app,
        ["flatten", "--no-color", "--group-by", "property", "a > 1 AND b = 2 AND a < 9"],
    )

    assert result.exit_code == 0
    assert result.stdout.splitlines() == ["a:", "  a > 1", "  a < 9", "b:", "  b = 2"]


def test_cli_runner_flatten_rejects_or() -> None:
    """flatten should refuse filters with OR."""
    runner = CliRunner()

    result = runner.invoke(app, ["flatten", "--no-color", "a = 1 OR b = 2"])

    assert result.exit_code == 2
    assert "Only AND is supported" in result.output


def test_cli_runner_translate_sql_and_odata() -> None:
    """translate should render SQL by default and OData on request."""
    runner = CliRunner()
    fixture_path = FIXTURES_DIR / "scenes.cql2"

    sql = runner.invoke(app, ["translate", f"@{fixture_path}"])
    odata = runner.invoke(app, ["translate", "-d", "odata", "a = 1 AND b <> 'x'"])

    assert sql.exit_code == 0
    assert sql.stdout.strip() == (
        "collection = 'sentinel-2-l2a' AND \"eo:cloud_cover\" <= 20 "
        "AND datetime <@ tstzrange('2023-06-01T00:00:00Z', NULL, '[]')"
    )
    assert odata.exit_code == 0
    assert odata.stdout.strip() == "a eq 1 and b ne 'x'"


def test_cli_runner_translate_configured_dialect() -> None:
    """translate should use dialects loaded from config."""
    runner = CliRunner()
    config.CONFIG_DIALECTS["pg"] = Dialect.from_mapping(
        "pg", {"like": "{0} ILIKE {1}"}, base=SQL_DIALECT
    )

    result = runner.invoke(app, ["translate", "--dialect", "pg", "name LIKE 'a%'"])

    assert result.exit_code == 0
    assert result.stdout.strip() == "name ILIKE 'a%'"


def test_cli_runner_translate_unsupported_operator() -> None:
    """Operators missing from a dialect should be usage errors."""
    runner = CliRunner()

    result = runner.invoke(app, ["translate", "-d", "odata", "name LIKE 'a%'"])

    assert result.exit_code == 2
    assert "like" in result.output


def test_cli_runner_translate_unknown_dialect() -> None:
    """Unknown dialect names should be rejected."""
    runner = CliRunner()

    result = runner.invoke(app, ["translate", "-d", "mongo", "a = 1"])

    assert result.exit_code == 2
    assert "Unknown dialect" in result.output


def test_cli_runner_build_with_queryables() -> None:
    """build should type --where values with queryables."""
    runner = CliRunner()
    queryables_path = str(FIXTURES_DIR / "queryables.json")

    result = runner.invoke(
        app,
        [
            "build",
            "--no-color",
            "--to",
            "text",
            "--queryables",
            queryables_path,
            "-w",
            "eo:cloud_cover<=20",
            "-w",
            "platform=sentinel-2a",
            "--bbox",
            "0,0,1,1",
            "--datetime",
            "2023-01-01T00:00:00Z/..",
        ],
    )

    assert result.exit_code == 0
    assert result.stdout.strip() == (
        'eo:cloud_cover <= 20 AND platform = "sentinel-2a" '
        "AND geometry S_INTERSECTS BBOX(0, 0, 1, 1) "
        'AND datetime T_INTERSECTS ["2023-01-01T00:00:00Z"/".."]'
    )


def test_cli_runner_build_without_conditions() -> None:
    """build with nothing to add should fail."""
    runner = CliRunner()

    result = runner.invoke(app, ["build", "--no-color"])

    assert result.exit_code == 2
    assert "Nothing to build" in result.output


def test_cli_runner_verbose_logs_arguments() -> None:
    """--verbose should log the final command arguments."""
    runner = CliRunner()

    result = runner.invoke(app, ["--verbose", "translate", "a = 1"])

    assert result.exit_code == 0
    assert "Command arguments (translate):" in result.stdout
    assert result.stdout.strip().endswith("a = 1")
