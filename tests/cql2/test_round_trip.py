"""Round trips between CQL2-Text and CQL2-JSON."""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, date, datetime

import pytest

from stacfilter.cql2 import FilterBuilder, parse_json, parse_text, serialize_json, serialize_text
from stacfilter.cql2.builder import bbox, casei, date_literal, interval, point, prop


TEXT_FILTERS = [
    "temp > 30 AND (humidity < 50 OR NOT status = \"active\")",
    "a = 1 OR b = 2 AND c = 3",
    "NOT (a = 1 AND b = 2)",
    "eo:cloud_cover BETWEEN 0 AND 10.5",
    "name LIKE \"S2%\" AND platform IN (\"sentinel-2a\", \"sentinel-2b\")",
    "CASEI(name) = CASEI(\"Landsat\")",
    "updated IS NULL",
    "geometry S_INTERSECTS POLYGON((0 0, 1 0, 1 1, 0 1, 0 0))",
    "geometry S_WITHIN BBOX(-10, -5, 10, 5)",
    "datetime T_DURING [\"2020-01-01T00:00:00Z\"/\"..\"]",
    "updated T_AFTER TIMESTAMP(\"2021-01-01T00:00:00Z\")",
    "start T_METBY DATE(\"2021-06-01\")",
    "flag = TRUE AND other <> NULL",
]


@pytest.mark.parametrize("text", TEXT_FILTERS)
def test_text_serializer_is_stable(text: str) -> None:
    """Serializing a parsed canonical filter should give back the same text."""
    assert serialize_text(parse_text(text)) == text


@pytest.mark.parametrize("text", TEXT_FILTERS)
def test_json_round_trip_preserves_tree(text: str) -> None:
    """Text to JSON and back should give an equal tree."""
    expr = parse_text(text)

    assert parse_json(serialize_json(expr)) == expr


def test_parse_text_of_serialized_tree_is_equal() -> None:
    """Reparsing serialized text should give an equal tree."""
    expr = parse_text("((a = 1) AND (b = 2)) AND NOT NOT c = 3")

    assert parse_text(serialize_text(expr)) == expr


BUILDER_FILTERS: list[tuple[str, Callable[[FilterBuilder], FilterBuilder]]] = [
    ("equal", lambda b: b.equal("collection", "landsat-8")),
    ("not_equal", lambda b: b.not_equal("platform", "sentinel-2a")),
    ("less_than", lambda b: b.less_than("eo:cloud_cover", 10)),
    ("less_than_or_equal", lambda b: b.less_than_or_equal("gsd", 30.5)),
    ("greater_than", lambda b: b.greater_than("updated", datetime(2021, 1, 1, tzinfo=UTC))),
    ("greater_than_or_equal", lambda b: b.greater_than_or_equal("created", date(2020, 2, 29))),
    ("between", lambda b: b.between("eo:cloud_cover", 0, 10.5)),
    ("like", lambda b: b.like("id", "S2%")),
    ("like_casei", lambda b: b.like(casei(prop("id")), casei("s2%"))),
    ("in", lambda b: b.in_("platform", ["sentinel-2a", "sentinel-2b", None, True])),
    ("is_null", lambda b: b.is_null("updated")),
    ("intersects_point", lambda b: b.intersects("geometry", point(1, 2))),
    ("within_bbox", lambda b: b.spatial("within", "geometry", bbox(0, 0, 1, 1))),
    (
        "contains_geojson",
        lambda b: b.spatial(
            "contains",
            "geometry",
            {"type": "Polygon", "coordinates": [[[0, 0], [1, 0], [1, 1], [0, 0]]]},
        ),
    ),
    ("disjoint_property", lambda b: b.spatial("disjoint", "geometry", prop("footprint"))),
    ("after_timestamp_string", lambda b: b.after("datetime", "2021-01-01T00:00:00Z")),
    ("before_date_string", lambda b: b.before("published", "2021-06-01")),
    ("during_interval_string", lambda b: b.during("datetime", "2020-01-01T00:00:00Z/..")),
    (
        "t_intersects_interval",
        lambda b: b.t_intersects("datetime", interval("2020-01-01", "2020-12-31")),
    ),
    ("met_by_date", lambda b: b.temporal("metBy", "start", date_literal("2021-06-01"))),
    ("equals_property", lambda b: b.temporal("equals", "start", prop("end_datetime"))),
    ("function", lambda b: b.function("casei", prop("flag"))),
    ("or_then_not", lambda b: b.equal("a", 1).or_(FilterBuilder().equal("b", 2)).not_()),
    (
        "and_builders",
        lambda b: b.and_(FilterBuilder().less_than("x", 1), FilterBuilder().greater_than("y", 2)),
    ),
]


@pytest.mark.parametrize(
    "build", [case for _, case in BUILDER_FILTERS], ids=[name for name, _ in BUILDER_FILTERS]
)
def test_builder_tree_round_trips_through_text(
    build: Callable[[FilterBuilder], FilterBuilder],
) -> None:
    """Builder output should serialize to text that parses back to the same tree."""
    expr = build(FilterBuilder()).build()

    assert parse_text(serialize_text(expr)) == expr


@pytest.mark.parametrize(
    "build", [case for _, case in BUILDER_FILTERS], ids=[name for name, _ in BUILDER_FILTERS]
)
def test_builder_tree_round_trips_through_json(
    build: Callable[[FilterBuilder], FilterBuilder],
) -> None:
    """Builder output should serialize to JSON that parses back to the same tree."""
    expr = build(FilterBuilder()).build()

    assert parse_json(serialize_json(expr)) == expr
