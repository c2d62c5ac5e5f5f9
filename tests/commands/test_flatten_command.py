"""Tests for flatten command behavior."""

from __future__ import annotations

import json

import click
import pytest

from stacfilter.commands.flatten import FlattenArgs, run_flatten
from stacfilter.output import OutputFormat


def _make_args(filter_text: str, **overrides: object) -> FlattenArgs:
    args = FlattenArgs(
        filter_text=filter_text,
        input_format="auto",
        group_by="none",
        out=OutputFormat.TEXT,
        indent=None,
        color_flag=False,
        out_theme="github-dark",
    )
    for key, value in overrides.items():
        setattr(args, key, value)
    return args


def test_run_flatten_lists_predicates(capsys: pytest.CaptureFixture[str]) -> None:
    """Each predicate should be printed on its own line in order."""
    run_flatten(_make_args("a = 1 AND (b > 2 AND c IS NULL)"))
    captured = capsys.readouterr().out

    assert captured.splitlines() == ["a = 1", "b > 2", "c IS NULL"]


def test_run_flatten_json_list(capsys: pytest.CaptureFixture[str]) -> None:
    """JSON output should be a list of predicate documents."""
    run_flatten(_make_args("a = 1 AND b > 2", out=OutputFormat.JSON))
    captured = capsys.readouterr().out

    assert json.loads(captured) == [
        {"op": "=", "args": [{"property": "a"}, 1]},
        {"op": ">", "args": [{"property": "b"}, 2]},
    ]


def test_run_flatten_group_by_operator_json(capsys: pytest.CaptureFixture[str]) -> None:
    """Grouped JSON output should map operator names to predicate lists."""
    run_flatten(
        _make_args("a = 1 AND b > 2 AND c = 3", out=OutputFormat.JSON, group_by="operator")
    )
    captured = json.loads(capsys.readouterr().out)

    assert list(captured) == ["=", ">"]
    assert len(captured["="]) == 2


def test_run_flatten_group_by_property_without_property(
    capsys: pytest.CaptureFixture[str],
) -> None:
    """Predicates without a tested property should go under (none)."""
    document = json.dumps(
        {
            "op": "and",
            "args": [
                {"op": "=", "args": [{"property": "a"}, 1]},
                {"op": "isNull", "args": [{"op": "casei", "args": ["x"]}]},
            ],
        }
    )

    run_flatten(_make_args(document, group_by="property"))
    captured = capsys.readouterr().out

    assert captured.splitlines() == ["a:", "  a = 1", "(none):", '  CASEI("x") IS NULL']


def test_run_flatten_rejects_not() -> None:
    """NOT should be reported as a usage error."""
    with pytest.raises(click.UsageError, match="found NOT"):
        run_flatten(_make_args("a = 1 AND NOT b = 2"))


def test_run_flatten_rejects_unknown_grouping() -> None:
    """Unknown --group-by values should be rejected."""
    with pytest.raises(click.BadParameter, match="--group-by"):
        run_flatten(_make_args("a = 1", group_by="tag"))
