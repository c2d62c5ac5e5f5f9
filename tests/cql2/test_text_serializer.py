"""Tests for CQL2-Text serialization."""

from __future__ import annotations

from datetime import UTC, date, datetime

import pytest

from stacfilter.cql2 import parse_text, serialize_text
from stacfilter.cql2.ast import (
    BBoxLiteral,
    Comparison,
    FunctionCall,
    GeometryLiteral,
    IntervalLiteral,
    Logical,
    Not,
    NumberLiteral,
    Property,
    SpatialPredicate,
    StringLiteral,
    TemporalPredicate,
    TimestampLiteral,
)
from stacfilter.cql2.errors import FilterSerializationError


def _compare(name: str, op: str, value: float | str) -> Comparison:
    literal = NumberLiteral(float(value)) if not isinstance(value, str) else StringLiteral(value)
    return Comparison(op, Property(name), literal)


def test_serialize_text_minimal_parentheses() -> None:
    """An OR under AND should be the only parenthesized group."""
    expr = parse_text("temp > 30 AND (humidity < 50 OR NOT status = 'active')")

    assert serialize_text(expr) == 'temp > 30 AND (humidity < 50 OR NOT status = "active")'


def test_serialize_text_drops_redundant_parentheses() -> None:
    """AND under OR binds tighter and needs no parentheses."""
    expr = Logical(
        "OR",
        (
            _compare("a", "=", 1),
            Logical("AND", (_compare("b", "=", 2), _compare("c", "=", 3))),
        ),
    )

    assert serialize_text(expr) == "a = 1 OR b = 2 AND c = 3"


def test_serialize_text_negated_group() -> None:
    """NOT over a logical node should wrap it in parentheses."""
    expr = Not(Logical("AND", (_compare("a", "=", 1), _compare("b", "=", 2))))

    assert serialize_text(expr) == "NOT (a = 1 AND b = 2)"


def test_serialize_text_single_child_logical_renders_child() -> None:
    """A one-child logical node should render as its child."""
    expr = Logical("AND", (_compare("score", ">", 99),))

    assert serialize_text(expr) == "score > 99"


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (30.0, "30"),
        (2.5, "2.5"),
        (-0.25, "-0.25"),
        (1e20, "1e+20"),
    ],
)
def test_serialize_text_numbers(value: float, expected: str) -> None:
    """Numbers should use their shortest form."""
    assert serialize_text(_compare("x", "=", value)) == f"x = {expected}"


def test_serialize_text_escapes_strings() -> None:
    """Quotes and backslashes inside strings should be escaped."""
    expr = _compare("name", "=", 'say "hi" \\ now')

    assert serialize_text(expr) == 'name = "say \\"hi\\" \\\\ now"'


def test_serialize_text_typed_literals() -> None:
    """Temporal and spatial literals should use their text forms."""
    after = TemporalPredicate(
        "after", Property("updated"), TimestampLiteral(datetime(2021, 1, 1, tzinfo=UTC))
    )
    during = TemporalPredicate(
        "during", Property("datetime"), IntervalLiteral(date(2020, 1, 1), None)
    )
    within = SpatialPredicate("within", Property("geometry"), BBoxLiteral((0, 0, 1.5, 1)))
    point = SpatialPredicate(
        "intersects", Property("geometry"), GeometryLiteral("Point", (1.0, 2.0))
    )

    assert serialize_text(after) == 'updated T_AFTER TIMESTAMP("2021-01-01T00:00:00Z")'
    assert serialize_text(during) == 'datetime T_DURING ["2020-01-01"/".."]'
    assert serialize_text(within) == "geometry S_WITHIN BBOX(0, 0, 1.5, 1)"
    assert serialize_text(point) == "geometry S_INTERSECTS POINT(1 2)"


def test_serialize_text_interval_as_comparison_operand() -> None:
    """Intervals outside temporal predicates should use INTERVAL(...)."""
    expr = Comparison(
        "=", Property("period"), IntervalLiteral(None, date(2021, 1, 1))
    )

    assert serialize_text(expr) == 'period = INTERVAL("..", "2021-01-01")'


def test_serialize_text_known_function() -> None:
    """casei should render upper case around its arguments."""
    expr = Comparison("=", FunctionCall("casei", (Property("name"),)), StringLiteral("x"))

    assert serialize_text(expr) == 'CASEI(name) = "x"'


def test_serialize_text_rejects_empty_expression() -> None:
    """None has no text form."""
    with pytest.raises(FilterSerializationError):
        serialize_text(None)


@pytest.mark.parametrize(
    "expr",
    [
        Comparison("=", FunctionCall("upper", (Property("n"),)), StringLiteral("X")),
        Comparison("=", Property("has space"), StringLiteral("x")),
        Comparison("=", Property("and"), StringLiteral("x")),
        Comparison("=", Property("a"), NumberLiteral(float("inf"))),
    ],
)
def test_serialize_text_rejects_unwritable_nodes(expr: Comparison) -> None:
    """Nodes with no CQL2-Text form should raise FilterSerializationError."""
    with pytest.raises(FilterSerializationError):
        serialize_text(expr)
