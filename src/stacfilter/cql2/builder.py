"""Fluent construction of filter expressions."""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping, Sequence
from datetime import date, datetime
from typing import TypeAlias

from stacfilter.cql2.ast import (
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
    Literal,
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
from stacfilter.cql2.json_parser import geometry_from_geojson
from stacfilter.cql2.values import OPEN_BOUND, parse_date, parse_instant, parse_timestamp


Value: TypeAlias = str | int | float | bool | None | datetime | date | Mapping[str, object] | Expr
Subject: TypeAlias = str | Expr
Position: TypeAlias = Sequence[float]


def to_literal(value: Value) -> Expr:
    """Coerce a plain Python value into a literal expression.

    Expressions pass through unchanged and GeoJSON mappings become geometry
    literals. Strings are always string literals, never property references.
    """
    if isinstance(value, Expr):
        return value
    if isinstance(value, bool):
        return BoolLiteral(value)
    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            raise ValueError(f"Number is not finite: {value}")
        return NumberLiteral(float(value))
    if isinstance(value, str):
        return StringLiteral(value)
    if value is None:
        return NullLiteral()
    if isinstance(value, datetime):
        return TimestampLiteral(value)
    if isinstance(value, date):
        return DateLiteral(value)
    if isinstance(value, Mapping):
        if set(value) == {"bbox"}:
            return bbox(*value["bbox"])  # type: ignore[misc]
        return geometry_from_geojson(value)
    raise TypeError(f"Cannot convert {type(value).__name__} to a literal")


def prop(name: str) -> Property:
    return Property(name)


def _subject(value: Subject) -> Expr:
    if isinstance(value, str):
        return Property(value)
    if not isinstance(value, (Property, FunctionCall)):
        raise ValueError(f"Subject must be a property or a function call: {value}")
    return value


def _operand(value: Value) -> Expr:
    operand = to_literal(value)
    if not isinstance(operand, (Literal, Property, FunctionCall)):
        raise ValueError(f"A predicate cannot be used as an operand: {operand}")
    return operand


def _pattern(value: str | Expr) -> Expr:
    pattern = to_literal(value)
    if not isinstance(pattern, (StringLiteral, FunctionCall)):
        raise ValueError(f"LIKE pattern must be a string or a function call: {pattern}")
    return pattern


def _spatial_operand(value: Value) -> Expr:
    if isinstance(value, str):
        raise ValueError(f"Spatial operand must be a geometry, not a string: {value!r}")
    operand = to_literal(value)
    if not isinstance(operand, (GeometryLiteral, BBoxLiteral, Property)):
        raise ValueError(f"Spatial operand must be a geometry, bbox or property: {operand}")
    return operand


def _temporal_operand(value: Value) -> Expr:
    """Coerce a temporal operand; strings are ISO instants or ``start/end`` intervals."""
    if isinstance(value, str):
        if "/" in value:
            start, end = value.split("/", 1)
            return interval(start, end)
        return to_literal(parse_instant(value))
    operand = to_literal(value)
    if not isinstance(operand, (TimestampLiteral, DateLiteral, IntervalLiteral, Property)):
        raise ValueError(f"Temporal operand must be an instant, interval or property: {operand}")
    return operand


def timestamp(value: str | datetime) -> TimestampLiteral:
    if isinstance(value, str):
        value = parse_timestamp(value)
    return TimestampLiteral(value)


def date_literal(value: str | date) -> DateLiteral:
    if isinstance(value, str):
        value = parse_date(value)
    return DateLiteral(value)


def _bound(value: str | date | None) -> date | None:
    if value is None or value == OPEN_BOUND:
        return None
    if isinstance(value, str):
        return parse_instant(value)
    return value


def interval(start: str | date | None, end: str | date | None) -> IntervalLiteral:
    """Build an interval; ``None`` or ``".."`` leaves a bound open."""
    return IntervalLiteral(_bound(start), _bound(end))


def _position(values: Position) -> tuple[float, ...]:
    if len(values) not in (2, 3):
        raise ValueError("A position requires 2 or 3 numbers")
    return tuple(float(value) for value in values)


def point(x: float, y: float, z: float | None = None) -> GeometryLiteral:
    coordinates = (x, y) if z is None else (x, y, z)
    return GeometryLiteral("Point", _position(coordinates))


def line_string(*positions: Position) -> GeometryLiteral:
    if len(positions) < 2:
        raise ValueError("A line string requires at least 2 positions")
    return GeometryLiteral("LineString", tuple(_position(p) for p in positions))


def polygon(*rings: Sequence[Position]) -> GeometryLiteral:
    """Build a polygon from rings; the first ring is the exterior."""
    if not rings:
        raise ValueError("A polygon requires at least one ring")
    converted = []
    for ring in rings:
        positions = tuple(_position(p) for p in ring)
        if len(positions) < 4 or positions[0] != positions[-1]:
            raise ValueError("A polygon ring must be closed and hold at least 4 positions")
        converted.append(positions)
    return GeometryLiteral("Polygon", tuple(converted))


def multi_point(*positions: Position) -> GeometryLiteral:
    if not positions:
        raise ValueError("A multi point requires at least one position")
    return GeometryLiteral("MultiPoint", tuple(_position(p) for p in positions))


def bbox(*extent: float) -> BBoxLiteral:
    return BBoxLiteral(tuple(float(value) for value in extent))


def geometry(value: Mapping[str, object]) -> GeometryLiteral:
    """Build a geometry literal from a GeoJSON geometry mapping."""
    return geometry_from_geojson(value)


def casei(value: Value) -> FunctionCall:
    """Case-insensitive wrapper; pass ``prop(name)`` to wrap a property."""
    return FunctionCall("casei", (to_literal(value),))


def accenti(value: Value) -> FunctionCall:
    return FunctionCall("accenti", (to_literal(value),))


class FilterBuilder:
    """Accumulate predicates into one filter expression.

    Predicate methods AND their node onto the expression built so far, while
    ``or_`` and ``not_`` wrap it. Every method returns the builder.
    """

    def __init__(self) -> None:
        self._expr: Expr | None = None

    @property
    def is_empty(self) -> bool:
        return self._expr is None

    def build(self) -> Expr | None:
        """Return the accumulated expression, or None when nothing was added."""
        return self._expr

    def _resolve(self, item: Expr | FilterBuilder) -> Expr | None:
        if isinstance(item, FilterBuilder):
            return item.build()
        return item

    def where(self, expr: Expr | FilterBuilder) -> FilterBuilder:
        resolved = self._resolve(expr)
        if resolved is None:
            return self
        if self._expr is None:
            self._expr = resolved
        else:
            self._expr = make_logical("AND", [self._expr, resolved])
        return self

    def and_(self, *exprs: Expr | FilterBuilder) -> FilterBuilder:
        for expr in exprs:
            self.where(expr)
        return self

    def or_(self, *exprs: Expr | FilterBuilder) -> FilterBuilder:
        """OR the accumulated expression with the given alternatives."""
        alternatives = [expr for expr in map(self._resolve, exprs) if expr is not None]
        if not alternatives:
            raise ValueError("or_ requires at least one expression")
        if self._expr is not None:
            alternatives.insert(0, self._expr)
        if len(alternatives) == 1:
            self._expr = alternatives[0]
        else:
            self._expr = make_logical("OR", alternatives)
        return self

    def not_(self) -> FilterBuilder:
        """Negate the accumulated expression."""
        if self._expr is None:
            raise ValueError("Cannot negate an empty filter")
        self._expr = Not(self._expr)
        return self

    def _compare(self, op: str, subject: Subject, value: Value) -> FilterBuilder:
        return self.where(Comparison(op, _subject(subject), _operand(value)))

    def equal(self, subject: Subject, value: Value) -> FilterBuilder:
        return self._compare("=", subject, value)

    def not_equal(self, subject: Subject, value: Value) -> FilterBuilder:
        return self._compare("<>", subject, value)

    def less_than(self, subject: Subject, value: Value) -> FilterBuilder:
        return self._compare("<", subject, value)

    def less_than_or_equal(self, subject: Subject, value: Value) -> FilterBuilder:
        return self._compare("<=", subject, value)

    def greater_than(self, subject: Subject, value: Value) -> FilterBuilder:
        return self._compare(">", subject, value)

    def greater_than_or_equal(self, subject: Subject, value: Value) -> FilterBuilder:
        return self._compare(">=", subject, value)

    def between(self, subject: Subject, lower: Value, upper: Value) -> FilterBuilder:
        return self.where(Between(_subject(subject), _operand(lower), _operand(upper)))

    def like(self, subject: Subject, pattern: str | Expr) -> FilterBuilder:
        return self.where(Like(_subject(subject), _pattern(pattern)))

    def in_(self, subject: Subject, values: Iterable[Value]) -> FilterBuilder:
        return self.where(In(_subject(subject), tuple(_operand(value) for value in values)))

    def is_null(self, subject: Subject) -> FilterBuilder:
        return self.where(IsNull(_subject(subject)))

    def spatial(self, op: str, subject: Subject, value: Value) -> FilterBuilder:
        """Add a spatial predicate, e.g. ``spatial("within", "geometry", bbox(...))``."""
        return self.where(SpatialPredicate(op, _subject(subject), _spatial_operand(value)))

    def intersects(self, subject: Subject, value: Value) -> FilterBuilder:
        return self.spatial("intersects", subject, value)

    def temporal(self, op: str, subject: Subject, value: Value) -> FilterBuilder:
        return self.where(TemporalPredicate(op, _subject(subject), _temporal_operand(value)))

    def after(self, subject: Subject, value: Value) -> FilterBuilder:
        return self.temporal("after", subject, value)

    def before(self, subject: Subject, value: Value) -> FilterBuilder:
        return self.temporal("before", subject, value)

    def during(self, subject: Subject, value: Value) -> FilterBuilder:
        return self.temporal("during", subject, value)

    def t_intersects(self, subject: Subject, value: Value) -> FilterBuilder:
        return self.temporal("intersects", subject, value)

    def function(self, name: str, *args: Value) -> FilterBuilder:
        """AND a boolean function call onto the filter."""
        return self.where(FunctionCall(name, tuple(_operand(arg) for arg in args)))
