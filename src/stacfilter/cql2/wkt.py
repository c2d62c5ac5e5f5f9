"""Well-known text reading and writing for geometry literals."""

from __future__ import annotations

from collections.abc import Generator

from parsy import Parser, forward_declaration, generate

from stacfilter.cql2.ast import Coordinates, GeometryLiteral
from stacfilter.cql2.lexer import kind_item, punct_item, word_item
from stacfilter.cql2.values import format_number


WKT_NAMES: dict[str, str] = {
    "POINT": "Point",
    "LINESTRING": "LineString",
    "POLYGON": "Polygon",
    "MULTIPOINT": "MultiPoint",
    "MULTILINESTRING": "MultiLineString",
    "MULTIPOLYGON": "MultiPolygon",
    "GEOMETRYCOLLECTION": "GeometryCollection",
}

_TYPE_TO_WKT = {geometry_type: name for name, geometry_type in WKT_NAMES.items()}


def _format_position(position: Coordinates) -> str:
    return " ".join(format_number(value) for value in position)  # type: ignore[arg-type]


def _format_positions(positions: Coordinates) -> str:
    return ", ".join(_format_position(position) for position in positions)  # type: ignore[arg-type]


def _format_rings(rings: Coordinates) -> str:
    return ", ".join(f"({_format_positions(ring)})" for ring in rings)  # type: ignore[arg-type]


def to_wkt(geometry: GeometryLiteral) -> str:
    """Render a geometry literal as WKT, e.g. ``POINT(1 2)``."""
    name = _TYPE_TO_WKT[geometry.geometry_type]
    if geometry.geometry_type == "GeometryCollection":
        members = ", ".join(to_wkt(member) for member in geometry.geometries)
        return f"{name}({members})"

    coordinates = geometry.coordinates
    if coordinates is None:
        raise ValueError(f"{geometry.geometry_type} requires coordinates")
    match geometry.geometry_type:
        case "Point":
            body = _format_position(coordinates)
        case "LineString":
            body = _format_positions(coordinates)
        case "MultiPoint":
            body = ", ".join(
                f"({_format_position(point)})" for point in coordinates  # type: ignore[arg-type]
            )
        case "Polygon" | "MultiLineString":
            body = _format_rings(coordinates)
        case _:
            body = ", ".join(
                f"({_format_rings(polygon)})" for polygon in coordinates  # type: ignore[arg-type]
            )
    return f"{name}({body})"


def bbox_to_wkt(extent: tuple[float, ...]) -> str:
    """Render the 2D footprint of a bounding box as a WKT polygon."""
    if len(extent) == 6:
        min_x, min_y, max_x, max_y = extent[0], extent[1], extent[3], extent[4]
    else:
        min_x, min_y, max_x, max_y = extent
    ring = ((min_x, min_y), (max_x, min_y), (max_x, max_y), (min_x, max_y), (min_x, min_y))
    return f"POLYGON(({_format_positions(ring)}))"


def build_wkt_parser() -> Parser:
    """Build a token-stream parser for WKT geometries.

    Both ``MULTIPOINT((0 0), (1 1))`` and ``MULTIPOINT(0 0, 1 1)`` are read,
    and an optional ``Z`` marker after the type name is skipped.
    """
    number = kind_item("NUMBER", "number").map(lambda token: float(token.value))
    open_paren = punct_item("(")
    close_paren = punct_item(")")
    comma = punct_item(",")
    z_marker = word_item("Z").optional()

    position = number.times(2, 3).map(tuple)
    positions = open_paren >> position.sep_by(comma, min=1).map(tuple) << close_paren
    rings = open_paren >> positions.sep_by(comma, min=1).map(tuple) << close_paren
    polygons = open_paren >> rings.sep_by(comma, min=1).map(tuple) << close_paren
    point_body = open_paren >> position << close_paren
    multi_point_body = (
        open_paren >> (point_body | position).sep_by(comma, min=1).map(tuple) << close_paren
    )

    geometry = forward_declaration()

    def _tagged(name: str, body: Parser) -> Parser:
        geometry_type = WKT_NAMES[name]
        return (word_item(name) >> z_marker >> body).map(
            lambda coordinates: GeometryLiteral(geometry_type, coordinates)
        )

    @generate
    def collection() -> Generator[Parser, object, GeometryLiteral]:
        yield word_item("GEOMETRYCOLLECTION")
        yield z_marker
        yield open_paren
        members = yield geometry.sep_by(comma, min=1)
        yield close_paren
        return GeometryLiteral("GeometryCollection", None, tuple(members))  # type: ignore[arg-type]

    geometry.become(
        _tagged("POINT", point_body)
        | _tagged("LINESTRING", positions)
        | _tagged("POLYGON", rings)
        | _tagged("MULTIPOINT", multi_point_body)
        | _tagged("MULTILINESTRING", rings)
        | _tagged("MULTIPOLYGON", polygons)
        | collection
    )
    return geometry
