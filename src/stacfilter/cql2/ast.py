"""AST nodes for CQL2 filter expressions."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from typing import TypeAlias

from stacfilter.cql2.operators import (
    COMPARISON_OPERATORS,
    LOGICAL_OPERATORS,
    SPATIAL_OPERATORS,
    TEMPORAL_OPERATORS,
)


GEOMETRY_TYPES: tuple[str, ...] = (
    "Point",
    "LineString",
    "Polygon",
    "MultiPoint",
    "MultiLineString",
    "MultiPolygon",
    "GeometryCollection",
)

Coordinates: TypeAlias = tuple[object, ...]
Instant: TypeAlias = datetime | date


@dataclass(frozen=True, slots=True)
class Expr:
    """Base AST expression type."""


@dataclass(frozen=True, slots=True)
class Property(Expr):
    """Reference to a field of the filtered record."""

    name: str


@dataclass(frozen=True, slots=True)
class Literal(Expr):
    """Base type for literal values."""


@dataclass(frozen=True, slots=True)
class StringLiteral(Literal):
    """String literal."""

    value: str


@dataclass(frozen=True, slots=True)
class NumberLiteral(Literal):
    """Numeric literal."""

    value: float


@dataclass(frozen=True, slots=True)
class BoolLiteral(Literal):
    """Boolean literal."""

    value: bool


@dataclass(frozen=True, slots=True)
class NullLiteral(Literal):
    """Null literal."""


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


@dataclass(frozen=True, slots=True)
class TimestampLiteral(Literal):
    """Date-time instant literal; naive values are taken as UTC."""

    value: datetime

    def __post_init__(self) -> None:
        object.__setattr__(self, "value", _as_utc(self.value))


@dataclass(frozen=True, slots=True)
class DateLiteral(Literal):
    """Calendar date literal."""

    value: date

    def __post_init__(self) -> None:
        if isinstance(self.value, datetime):
            raise ValueError("DateLiteral requires a date, not a datetime")


@dataclass(frozen=True, slots=True)
class IntervalLiteral(Literal):
    """Temporal interval; a None bound is open."""

    start: Instant | None
    end: Instant | None

    def __post_init__(self) -> None:
        if isinstance(self.start, datetime):
            object.__setattr__(self, "start", _as_utc(self.start))
        if isinstance(self.end, datetime):
            object.__setattr__(self, "end", _as_utc(self.end))


@dataclass(frozen=True, slots=True)
class GeometryLiteral(Literal):
    """GeoJSON-shaped geometry, never evaluated.

    Coordinates are nested tuples of numbers. Only ``GeometryCollection``
    carries ``geometries`` instead of coordinates.
    """

    geometry_type: str
    coordinates: Coordinates | None = None
    geometries: tuple[GeometryLiteral, ...] = field(default=())

    def __post_init__(self) -> None:
        if self.geometry_type not in GEOMETRY_TYPES:
            raise ValueError(f"Unknown geometry type: {self.geometry_type}")
        if self.geometry_type == "GeometryCollection":
            if self.coordinates is not None:
                raise ValueError("GeometryCollection does not take coordinates")
        elif self.coordinates is None:
            raise ValueError(f"{self.geometry_type} requires coordinates")


@dataclass(frozen=True, slots=True)
class BBoxLiteral(Literal):
    """Bounding box of 4 (2D) or 6 (3D) numbers."""

    extent: tuple[float, ...]

    def __post_init__(self) -> None:
        if len(self.extent) not in (4, 6):
            raise ValueError(f"Bounding box requires 4 or 6 numbers, got {len(self.extent)}")


@dataclass(frozen=True, slots=True)
class Comparison(Expr):
    """Binary comparison."""

    op: str
    left: Expr
    right: Expr

    def __post_init__(self) -> None:
        if self.op not in COMPARISON_OPERATORS:
            raise ValueError(f"Unknown comparison operator: {self.op}")


@dataclass(frozen=True, slots=True)
class Logical(Expr):
    """N-ary AND/OR combination."""

    op: str
    children: tuple[Expr, ...]

    def __post_init__(self) -> None:
        if self.op not in LOGICAL_OPERATORS:
            raise ValueError(f"Unknown logical operator: {self.op}")
        if not self.children:
            raise ValueError(f"{self.op} requires at least one child")


@dataclass(frozen=True, slots=True)
class Not(Expr):
    """Negation."""

    child: Expr


@dataclass(frozen=True, slots=True)
class Between(Expr):
    """Inclusive range test."""

    value: Expr
    lower: Expr
    upper: Expr


@dataclass(frozen=True, slots=True)
class Like(Expr):
    """Pattern test with ``%`` and ``_`` wildcards."""

    value: Expr
    pattern: Expr


@dataclass(frozen=True, slots=True)
class In(Expr):
    """Membership test against an ordered candidate list."""

    value: Expr
    candidates: tuple[Expr, ...]


@dataclass(frozen=True, slots=True)
class IsNull(Expr):
    """Null test."""

    value: Expr


@dataclass(frozen=True, slots=True)
class SpatialPredicate(Expr):
    """Spatial relationship test."""

    op: str
    left: Expr
    right: Expr

    def __post_init__(self) -> None:
        if self.op not in SPATIAL_OPERATORS:
            raise ValueError(f"Unknown spatial operator: {self.op}")


@dataclass(frozen=True, slots=True)
class TemporalPredicate(Expr):
    """Temporal relationship test."""

    op: str
    left: Expr
    right: Expr

    def __post_init__(self) -> None:
        if self.op not in TEMPORAL_OPERATORS:
            raise ValueError(f"Unknown temporal operator: {self.op}")


@dataclass(frozen=True, slots=True)
class FunctionCall(Expr):
    """Call of a named function outside the fixed operator set."""

    name: str
    args: tuple[Expr, ...]


TerminalPredicate: TypeAlias = (
    Comparison
    | Between
    | Like
    | In
    | IsNull
    | SpatialPredicate
    | TemporalPredicate
    | FunctionCall
)

TERMINAL_PREDICATE_TYPES: tuple[type[Expr], ...] = (
    Comparison,
    Between,
    Like,
    In,
    IsNull,
    SpatialPredicate,
    TemporalPredicate,
    FunctionCall,
)


def make_logical(op: str, children: Iterable[Expr]) -> Logical:
    """Build a Logical node, merging children that use the same operator.

    A Logical node never has a direct child with its own operator, so
    ``a AND (b AND c)`` and ``(a AND b) AND c`` produce the same tree.
    """
    merged: list[Expr] = []
    for child in children:
        if isinstance(child, Logical) and child.op == op:
            merged.extend(child.children)
        else:
            merged.append(child)
    return Logical(op, tuple(merged))
