"""Parser for CQL2-JSON filter documents."""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Mapping
from typing import TypeAlias

from stacfilter.cql2.ast import (
    GEOMETRY_TYPES,
    BBoxLiteral,
    Between,
    BoolLiteral,
    Comparison,
    DateLiteral,
    Expr,
    FunctionCall,
    GeometryLiteral,
    In,
    IntervalLiteral,
    IsNull,
    Like,
    Not,
    NullLiteral,
    NumberLiteral,
    Property,
    SpatialPredicate,
    StringLiteral,
    TemporalPredicate,
    TimestampLiteral,
    make_logical,
)
from stacfilter.cql2.errors import FilterSemanticError
from stacfilter.cql2.operators import JSON_OPERATORS, OperatorSpec
from stacfilter.cql2.values import parse_bound, parse_date, parse_timestamp


logger = logging.getLogger("stacfilter")

JsonDocument: TypeAlias = str | bytes | bytearray | Mapping[str, object]

_COORDINATE_DEPTH: dict[str, int] = {
    "Point": 1,
    "LineString": 2,
    "MultiPoint": 2,
    "Polygon": 3,
    "MultiLineString": 3,
    "MultiPolygon": 4,
}


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _coordinates(value: object, depth: int) -> tuple[object, ...]:
    if not isinstance(value, list):
        raise ValueError("coordinates must be arrays")
    if depth == 1:
        if len(value) not in (2, 3) or not all(_is_number(item) for item in value):
            raise ValueError("a position must hold 2 or 3 numbers")
        return tuple(float(item) for item in value)
    if not value:
        raise ValueError("coordinate arrays must not be empty")
    return tuple(_coordinates(item, depth - 1) for item in value)


def geometry_from_geojson(value: Mapping[str, object]) -> GeometryLiteral:
    """Convert a GeoJSON geometry object into a geometry literal.

    Members other than ``type``, ``coordinates`` and ``geometries`` are dropped.
    Raises FilterSemanticError when the object is not a valid geometry.
    """
    geometry_type = value.get("type")
    if geometry_type not in GEOMETRY_TYPES:
        raise FilterSemanticError(f"Unknown geometry type: {geometry_type}")
    if geometry_type == "GeometryCollection":
        members = value.get("geometries")
        if not isinstance(members, list):
            raise FilterSemanticError("GeometryCollection requires a 'geometries' array")
        converted: list[GeometryLiteral] = []
        for member in members:
            if not isinstance(member, Mapping):
                raise FilterSemanticError("GeometryCollection members must be geometry objects")
            converted.append(geometry_from_geojson(member))
        return GeometryLiteral("GeometryCollection", None, tuple(converted))
    try:
        coordinates = _coordinates(value.get("coordinates"), _COORDINATE_DEPTH[str(geometry_type)])
    except ValueError as exc:
        raise FilterSemanticError(f"Invalid {geometry_type} coordinates: {exc}") from exc
    return GeometryLiteral(str(geometry_type), coordinates)


def _instant_wrapper(value: Mapping[str, object], key: str) -> TimestampLiteral | DateLiteral:
    raw = value[key]
    if not isinstance(raw, str):
        raise FilterSemanticError(f"'{key}' must be an ISO 8601 string")
    try:
        if key == "timestamp":
            return TimestampLiteral(parse_timestamp(raw))
        return DateLiteral(parse_date(raw))
    except ValueError as exc:
        raise FilterSemanticError(f"Invalid {key}: {raw}") from exc


def _interval(value: object) -> IntervalLiteral:
    if not isinstance(value, list) or len(value) != 2:
        raise FilterSemanticError("'interval' must be an array of two bounds")
    bounds: list[object] = []
    for bound in value:
        if bound is None:
            bounds.append(None)
        elif isinstance(bound, str):
            try:
                bounds.append(parse_bound(bound))
            except ValueError as exc:
                raise FilterSemanticError(f"Invalid interval bound: {bound}") from exc
        elif isinstance(bound, Mapping) and len(bound) == 1 and (
            "timestamp" in bound or "date" in bound
        ):
            key = "timestamp" if "timestamp" in bound else "date"
            bounds.append(_instant_wrapper(bound, key).value)
        else:
            raise FilterSemanticError(f"Invalid interval bound: {bound!r}")
    return IntervalLiteral(bounds[0], bounds[1])  # type: ignore[arg-type]


def _bbox(value: object) -> BBoxLiteral:
    if not isinstance(value, list) or len(value) not in (4, 6):
        raise FilterSemanticError("'bbox' must be an array of 4 or 6 numbers")
    if not all(_is_number(item) for item in value):
        raise FilterSemanticError("'bbox' must be an array of 4 or 6 numbers")
    return BBoxLiteral(tuple(float(item) for item in value))


def _is_expression(value: object) -> bool:
    return isinstance(value, Mapping) and ("op" in value or "function" in value)


def _object_operand(value: Mapping[str, object], op: str) -> Expr:
    if _is_expression(value):
        expr = _expression(value)
        if not isinstance(expr, FunctionCall):
            raise FilterSemanticError(
                f"Operator {op} cannot take a predicate as an operand", operator=op
            )
        return expr
    keys = set(value)
    if keys == {"property"}:
        name = value["property"]
        if not isinstance(name, str) or not name:
            raise FilterSemanticError("'property' must be a non-empty string", operator=op)
        return Property(name)
    if keys == {"timestamp"} or keys == {"date"}:
        return _instant_wrapper(value, keys.pop())
    if keys == {"interval"}:
        return _interval(value["interval"])
    if keys == {"bbox"}:
        return _bbox(value["bbox"])
    if "type" in keys:
        return geometry_from_geojson(value)
    raise FilterSemanticError(
        f"Unrecognized operand object with keys: {', '.join(sorted(keys))}", operator=op
    )


def _operand(value: object, op: str) -> Expr:
    match value:
        case bool():
            return BoolLiteral(value)
        case int() | float():
            return NumberLiteral(float(value))
        case str():
            return StringLiteral(value)
        case None:
            return NullLiteral()
        case Mapping():
            return _object_operand(value, op)
        case list():
            raise FilterSemanticError(
                f"Operator {op} does not accept an array operand", operator=op
            )
        case _:
            raise FilterSemanticError(f"Unsupported operand value: {value!r}", operator=op)


def _subject(value: object, op: str) -> Expr:
    if isinstance(value, Mapping) and (set(value) == {"property"} or _is_expression(value)):
        return _object_operand(value, op)
    raise FilterSemanticError(
        f"First argument of {op} must be a property reference or a nested expression",
        operator=op,
    )


def _predicate(value: object, op: str) -> Expr:
    if not _is_expression(value):
        raise FilterSemanticError(f"Arguments of {op} must be expressions", operator=op)
    return _expression(value)  # type: ignore[arg-type]


def _spatial_operand(value: object, op: str) -> Expr:
    operand = _operand(value, op)
    if not isinstance(operand, (GeometryLiteral, BBoxLiteral, Property)):
        raise FilterSemanticError(
            f"Operator {op} requires a geometry, bbox or property operand", operator=op
        )
    return operand


def _temporal_operand(value: object, op: str) -> Expr:
    operand = _operand(value, op)
    if not isinstance(operand, (TimestampLiteral, DateLiteral, IntervalLiteral, Property)):
        raise FilterSemanticError(
            f"Operator {op} requires a timestamp, date, interval or property operand",
            operator=op,
        )
    return operand


def _pattern(value: object, op: str) -> Expr:
    if isinstance(value, str):
        return StringLiteral(value)
    if _is_expression(value):
        return _object_operand(value, op)  # type: ignore[arg-type]
    raise FilterSemanticError(f"Operator {op} requires a string pattern", operator=op)


def _in_candidates(value: object, op: str) -> tuple[Expr, ...]:
    if not isinstance(value, list):
        raise FilterSemanticError(f"Operator {op} requires an array of values", operator=op)
    return tuple(_operand(item, op) for item in value)


_Builder: TypeAlias = Callable[[str, OperatorSpec, list[object]], Expr]

_BUILDERS: dict[str, _Builder] = {
    "logical": lambda op, spec, args: make_logical(
        spec.node_op, [_predicate(arg, op) for arg in args]
    ),
    "not": lambda op, _spec, args: Not(_predicate(args[0], op)),
    "comparison": lambda op, spec, args: Comparison(
        spec.node_op, _subject(args[0], op), _operand(args[1], op)
    ),
    "between": lambda op, _spec, args: Between(
        _subject(args[0], op), _operand(args[1], op), _operand(args[2], op)
    ),
    "like": lambda op, _spec, args: Like(_subject(args[0], op), _pattern(args[1], op)),
    "in": lambda op, _spec, args: In(_subject(args[0], op), _in_candidates(args[1], op)),
    "isNull": lambda op, _spec, args: IsNull(_subject(args[0], op)),
    "spatial": lambda op, spec, args: SpatialPredicate(
        spec.node_op, _subject(args[0], op), _spatial_operand(args[1], op)
    ),
    "temporal": lambda op, spec, args: TemporalPredicate(
        spec.node_op, _subject(args[0], op), _temporal_operand(args[1], op)
    ),
    "function": lambda op, spec, args: FunctionCall(
        spec.node_op, tuple(_operand(arg, op) for arg in args)
    ),
}


def _function_object(value: Mapping[str, object]) -> FunctionCall:
    """Read the ``{"function": {"name": ..., "args": [...]}}`` form."""
    body = value["function"]
    if not isinstance(body, Mapping):
        raise FilterSemanticError("'function' must be an object")
    name = body.get("name")
    if not isinstance(name, str) or not name:
        raise FilterSemanticError("'function' requires a non-empty 'name'")
    args = body.get("args", [])
    if not isinstance(args, list):
        raise FilterSemanticError(f"Function {name} requires an 'args' array", operator=name)
    return FunctionCall(name, tuple(_operand(arg, name) for arg in args))


def _expression(value: Mapping[str, object]) -> Expr:
    if "op" not in value and "function" in value:
        return _function_object(value)
    op = value.get("op")
    if not isinstance(op, str):
        raise FilterSemanticError("Expression object requires a string 'op'")
    spec = JSON_OPERATORS.get(op)
    if spec is None:
        raise FilterSemanticError(f"Unknown operator: {op}", operator=op)
    args = value.get("args")
    if not isinstance(args, list):
        raise FilterSemanticError(
            f"Operator {op} requires an 'args' array",
            operator=op,
            expected=spec.describe_arity(),
        )
    if not spec.accepts(len(args)):
        raise FilterSemanticError(
            f"Operator {op} expects {spec.describe_arity()} arguments, got {len(args)}",
            operator=op,
            expected=spec.describe_arity(),
            actual=len(args),
        )
    return _BUILDERS[spec.kind](op, spec, args)


def parse_json(document: JsonDocument) -> Expr:
    """Parse a CQL2-JSON document, given as text or an already decoded mapping."""
    if isinstance(document, (str, bytes, bytearray)):
        try:
            value = json.loads(document)
        except json.JSONDecodeError as exc:
            raise FilterSemanticError(f"Invalid JSON: {exc}") from exc
    else:
        value = document
    if not isinstance(value, Mapping) or not _is_expression(value):
        raise FilterSemanticError("Filter must be a JSON object with an 'op' member")
    expr = _expression(value)
    logger.debug("Parsed CQL2-JSON filter rooted at %s", type(expr).__name__)
    return expr
