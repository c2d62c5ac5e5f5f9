"""Tests for the programmatic filter builder."""

from __future__ import annotations

from datetime import UTC, date, datetime

import pytest

from stacfilter.cql2 import FilterBuilder, serialize_json, serialize_text
from stacfilter.cql2.ast import (
    BBoxLiteral,
    GeometryLiteral,
    IntervalLiteral,
    Logical,
    Property,
    StringLiteral,
)
from stacfilter.cql2.builder import (
    bbox,
    casei,
    date_literal,
    geometry,
    interval,
    line_string,
    point,
    polygon,
    prop,
    timestamp,
    to_literal,
)


def test_builder_empty_builds_none() -> None:
    """A fresh builder should build no filter."""
    builder = FilterBuilder()

    assert builder.is_empty
    assert builder.build() is None


def test_builder_chains_with_and() -> None:
    """Chained predicates should fold into one flat AND."""
    expr = (
        FilterBuilder()
        .equal("collection", "landsat-8")
        .less_than("eo:cloud_cover", 10)
        .is_null("deprecated")
        .build()
    )

    assert isinstance(expr, Logical)
    assert len(expr.children) == 3
    assert serialize_text(expr) == (
        'collection = "landsat-8" AND eo:cloud_cover < 10 AND deprecated IS NULL'
    )


def test_builder_or_and_not() -> None:
    """or_ and not_ should wrap the accumulated expression."""
    sunny = FilterBuilder().less_than("eo:cloud_cover", 10)
    expr = (
        FilterBuilder()
        .greater_than("temp", 30)
        .or_(sunny)
        .not_()
        .build()
    )

    assert serialize_text(expr) == "NOT (temp > 30 OR eo:cloud_cover < 10)"


def test_builder_or_requires_alternatives() -> None:
    """or_ with nothing to combine should raise ValueError."""
    with pytest.raises(ValueError):
        FilterBuilder().or_(FilterBuilder())


def test_builder_not_requires_expression() -> None:
    """Negating an empty builder should raise ValueError."""
    with pytest.raises(ValueError):
        FilterBuilder().not_()


def test_builder_or_on_empty_builder_uses_alternatives() -> None:
    """or_ on an empty builder should OR the given alternatives only."""
    left = FilterBuilder().equal("a", 1).build()
    right = FilterBuilder().equal("b", 2).build()

    expr = FilterBuilder().or_(left, right).build()  # type: ignore[arg-type]

    assert serialize_text(expr) == "a = 1 OR b = 2"


def test_builder_predicates_serialize_to_json() -> None:
    """Each helper should produce the matching CQL2-JSON operator."""
    expr = (
        FilterBuilder()
        .between("gsd", 1, 30)
        .like("id", "S2%")
        .in_("platform", ["sentinel-2a", "sentinel-2b"])
        .intersects("geometry", bbox(0, 0, 1, 1))
        .during("datetime", interval("2020-01-01", ".."))
        .after("updated", timestamp("2021-01-01T00:00:00Z"))
        .build()
    )

    ops = [arg["op"] for arg in serialize_json(expr)["args"]]  # type: ignore[index]
    assert ops == ["between", "like", "in", "s_intersects", "t_during", "t_after"]


def test_builder_subject_can_be_function() -> None:
    """A casei wrapper should be accepted as the tested value."""
    expr = FilterBuilder().equal(casei(prop("name")), casei("abc")).build()

    assert serialize_text(expr) == 'CASEI(name) = CASEI("abc")'


def test_to_literal_conversions() -> None:
    """Plain values should become literals of the matching type."""
    assert to_literal("x") == StringLiteral("x")
    assert to_literal(True).value is True  # type: ignore[attr-defined]
    assert to_literal(date(2020, 1, 1)) == date_literal("2020-01-01")
    assert to_literal({"bbox": [0, 0, 1, 1]}) == BBoxLiteral((0.0, 0.0, 1.0, 1.0))
    assert to_literal({"type": "Point", "coordinates": [1, 2]}) == point(1, 2)
    assert to_literal(Property("p")) == Property("p")
    with pytest.raises(TypeError):
        to_literal(object())  # type: ignore[arg-type]
    with pytest.raises(ValueError):
        to_literal(float("nan"))


def test_temporal_helpers() -> None:
    """Timestamps should be UTC and intervals may be open."""
    assert timestamp("2021-01-01T00:00:00").value == datetime(2021, 1, 1, tzinfo=UTC)
    assert interval(None, "2021-01-01") == IntervalLiteral(None, date(2021, 1, 1))


def test_geometry_helpers() -> None:
    """Geometry helpers should validate their positions."""
    square = polygon([(0, 0), (1, 0), (1, 1), (0, 0)])

    assert square.geometry_type == "Polygon"
    assert line_string((0, 0), (1, 1)) == GeometryLiteral(
        "LineString", ((0.0, 0.0), (1.0, 1.0))
    )
    assert geometry({"type": "Point", "coordinates": [0, 0, 5]}) == point(0, 0, 5)
    with pytest.raises(ValueError):
        polygon([(0, 0), (1, 0), (1, 1)])
    with pytest.raises(ValueError):
        line_string((0, 0))
    with pytest.raises(ValueError):
        bbox(1, 2, 3)


def test_builder_temporal_coerces_strings() -> None:
    """Temporal strings should become typed instants or intervals."""
    expr = (
        FilterBuilder()
        .after("datetime", "2021-01-01T00:00:00Z")
        .before("published", "2021-06-01")
        .during("datetime", "2020-01-01/..")
        .build()
    )

    assert serialize_text(expr) == (
        'datetime T_AFTER TIMESTAMP("2021-01-01T00:00:00Z") '
        'AND published T_BEFORE DATE("2021-06-01") '
        'AND datetime T_DURING ["2020-01-01"/".."]'
    )


@pytest.mark.parametrize(
    "add",
    [
        lambda b: b.after("datetime", 5),
        lambda b: b.during("datetime", "last week"),
        lambda b: b.t_intersects("datetime", point(1, 2)),
        lambda b: b.intersects("geometry", "POINT(1 2)"),
        lambda b: b.spatial("within", "geometry", 5),
        lambda b: b.like("name", prop("other")),
        lambda b: b.like("name", 5),
        lambda b: b.equal(StringLiteral("a"), 1),
        lambda b: b.equal("a", FilterBuilder().equal("b", 1).build()),
        lambda b: b.in_("a", [FilterBuilder().is_null("b").build()]),
    ],
)
def test_builder_rejects_operands_the_parsers_cannot_read(add: object) -> None:
    """Operands that have no place in either encoding should raise ValueError."""
    with pytest.raises(ValueError):
        add(FilterBuilder())  # type: ignore[operator]
