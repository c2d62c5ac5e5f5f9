"""Serialize AST expressions to canonical CQL2-JSON."""

from __future__ import annotations

import json

from stacfilter.cql2.ast import (
    BBoxLiteral,
    Between,
    BoolLiteral,
    Comparison,
    Coordinates,
    DateLiteral,
    Expr,
    FunctionCall,
    GeometryLiteral,
    In,
    IntervalLiteral,
    IsNull,
    Like,
    Literal,
    Logical,
    Not,
    NullLiteral,
    NumberLiteral,
    Property,
    SpatialPredicate,
    StringLiteral,
    TemporalPredicate,
    TimestampLiteral,
)
from stacfilter.cql2.errors import FilterSerializationError
from stacfilter.cql2.operators import KNOWN_FUNCTIONS, spatial_json_name, temporal_json_name
from stacfilter.cql2.values import format_instant, json_number


def _number(value: float) -> int | float:
    try:
        return json_number(value)
    except ValueError as exc:
        raise FilterSerializationError(str(exc)) from exc


def _coordinates(value: Coordinates) -> list[object]:
    return [
        _coordinates(item) if isinstance(item, tuple) else _number(item)  # type: ignore[arg-type]
        for item in value
    ]


def geometry_to_geojson(geometry: GeometryLiteral) -> dict[str, object]:
    """Render a geometry literal as a GeoJSON geometry object."""
    if geometry.geometry_type == "GeometryCollection":
        return {
            "type": geometry.geometry_type,
            "geometries": [geometry_to_geojson(member) for member in geometry.geometries],
        }
    return {
        "type": geometry.geometry_type,
        "coordinates": _coordinates(geometry.coordinates or ()),
    }


def _op(name: str, *args: object) -> dict[str, object]:
    return {"op": name, "args": list(args)}


def to_json_value(expr: Expr) -> object:
    """Convert an expression to plain JSON-compatible Python values."""
    match expr:
        case Logical(op=op, children=children):
            if len(children) == 1:
                return to_json_value(children[0])
            return _op(op.lower(), *(to_json_value(child) for child in children))
        case Not(child=child):
            return _op("not", to_json_value(child))
        case Comparison(op=op, left=left, right=right):
            return _op(op, to_json_value(left), to_json_value(right))
        case Between(value=value, lower=lower, upper=upper):
            return _op("between", to_json_value(value), to_json_value(lower), to_json_value(upper))
        case Like(value=value, pattern=pattern):
            return _op("like", to_json_value(value), to_json_value(pattern))
        case In(value=value, candidates=candidates):
            return _op("in", to_json_value(value), [to_json_value(item) for item in candidates])
        case IsNull(value=value):
            return _op("isNull", to_json_value(value))
        case SpatialPredicate(op=op, left=left, right=right):
            return _op(spatial_json_name(op), to_json_value(left), to_json_value(right))
        case TemporalPredicate(op=op, left=left, right=right):
            return _op(temporal_json_name(op), to_json_value(left), to_json_value(right))
        case FunctionCall(name=name, args=args):
            arguments = [to_json_value(arg) for arg in args]
            if name in KNOWN_FUNCTIONS:
                return _op(name, *arguments)
            return {"function": {"name": name, "args": arguments}}
        case Property(name=name):
            return {"property": name}
        case StringLiteral(value=value):
            return value
        case NumberLiteral(value=value):
            return _number(value)
        case BoolLiteral(value=value):
            return value
        case NullLiteral():
            return None
        case TimestampLiteral(value=value):
            return {"timestamp": format_instant(value)}
        case DateLiteral(value=value):
            return {"date": format_instant(value)}
        case IntervalLiteral(start=start, end=end):
            return {
                "interval": [
                    None if start is None else format_instant(start),
                    None if end is None else format_instant(end),
                ]
            }
        case GeometryLiteral():
            return geometry_to_geojson(expr)
        case BBoxLiteral(extent=extent):
            return {"bbox": [_number(value) for value in extent]}
        case _:
            raise FilterSerializationError(f"Cannot serialize node: {type(expr).__name__}")


def serialize_json(expr: Expr | None) -> dict[str, object]:
    """Render a filter expression as a CQL2-JSON object."""
    if expr is None:
        raise FilterSerializationError("Cannot serialize an empty expression")
    if isinstance(expr, (Literal, Property)):
        raise FilterSerializationError(
            f"{type(expr).__name__} is not a filter expression and has no CQL2-JSON object form"
        )
    return to_json_value(expr)  # type: ignore[return-value]


def serialize_json_text(expr: Expr | None, indent: int | None = None) -> str:
    """Render a filter expression as CQL2-JSON text."""
    document = serialize_json(expr)
    if indent is None:
        return json.dumps(document, separators=(",", ":"), ensure_ascii=True)
    return json.dumps(document, indent=indent, ensure_ascii=True)
