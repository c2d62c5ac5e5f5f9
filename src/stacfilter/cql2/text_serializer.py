"""Serialize AST expressions to CQL2-Text."""

from __future__ import annotations

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
from stacfilter.cql2.lexer import BOOLEAN_WORDS, IDENTIFIER_PATTERN
from stacfilter.cql2.operators import (
    KNOWN_FUNCTIONS,
    LOGICAL_PRECEDENCE,
    PRECEDENCE_NONE,
    PRECEDENCE_NOT,
    PRECEDENCE_PREDICATE,
    TEXT_KEYWORDS,
    spatial_text_name,
    temporal_text_name,
)
from stacfilter.cql2.values import format_bound, format_instant, format_number
from stacfilter.cql2.wkt import to_wkt


def quote_string(value: str) -> str:
    """Double quote a string, escaping backslashes and quotes."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def _precedence(expr: Expr) -> int:
    if isinstance(expr, Logical):
        if len(expr.children) == 1:
            return _precedence(expr.children[0])
        return LOGICAL_PRECEDENCE[expr.op]
    if isinstance(expr, Not):
        return PRECEDENCE_NOT
    return PRECEDENCE_PREDICATE


def _property(name: str) -> str:
    upper = name.upper()
    if (
        IDENTIFIER_PATTERN.fullmatch(name) is None
        or upper in TEXT_KEYWORDS
        or upper in BOOLEAN_WORDS
    ):
        raise FilterSerializationError(f"Property name cannot be written as CQL2-Text: {name!r}")
    return name


def _number(value: float) -> str:
    try:
        return format_number(value)
    except ValueError as exc:
        raise FilterSerializationError(str(exc)) from exc


def _operand(expr: Expr) -> str:
    match expr:
        case Property(name=name):
            return _property(name)
        case StringLiteral(value=value):
            return quote_string(value)
        case NumberLiteral(value=value):
            return _number(value)
        case BoolLiteral(value=value):
            return "TRUE" if value else "FALSE"
        case NullLiteral():
            return "NULL"
        case TimestampLiteral(value=value):
            return f"TIMESTAMP({quote_string(format_instant(value))})"
        case DateLiteral(value=value):
            return f"DATE({quote_string(format_instant(value))})"
        case IntervalLiteral(start=start, end=end):
            return (
                f"INTERVAL({quote_string(format_bound(start))}, "
                f"{quote_string(format_bound(end))})"
            )
        case GeometryLiteral():
            return to_wkt(expr)
        case BBoxLiteral(extent=extent):
            return f"BBOX({', '.join(_number(value) for value in extent)})"
        case FunctionCall(name=name, args=args):
            if name not in KNOWN_FUNCTIONS:
                raise FilterSerializationError(f"Unknown function cannot be written: {name}")
            return f"{name.upper()}({', '.join(_operand(arg) for arg in args)})"
        case _:
            raise FilterSerializationError(
                f"{type(expr).__name__} cannot be used as an operand in CQL2-Text"
            )


def _temporal_operand(expr: Expr) -> str:
    if isinstance(expr, IntervalLiteral):
        return f"[{quote_string(format_bound(expr.start))}/{quote_string(format_bound(expr.end))}]"
    return _operand(expr)


def _node(expr: Expr) -> str:
    match expr:
        case Logical(op=op, children=children):
            precedence = LOGICAL_PRECEDENCE[op]
            return f" {op} ".join(_render(child, precedence) for child in children)
        case Not(child=child):
            return f"NOT {_render(child, PRECEDENCE_NOT)}"
        case Comparison(op=op, left=left, right=right):
            return f"{_operand(left)} {op} {_operand(right)}"
        case Between(value=value, lower=lower, upper=upper):
            return f"{_operand(value)} BETWEEN {_operand(lower)} AND {_operand(upper)}"
        case Like(value=value, pattern=pattern):
            return f"{_operand(value)} LIKE {_operand(pattern)}"
        case In(value=value, candidates=candidates):
            return f"{_operand(value)} IN ({', '.join(_operand(item) for item in candidates)})"
        case IsNull(value=value):
            return f"{_operand(value)} IS NULL"
        case SpatialPredicate(op=op, left=left, right=right):
            return f"{_operand(left)} {spatial_text_name(op)} {_operand(right)}"
        case TemporalPredicate(op=op, left=left, right=right):
            return f"{_operand(left)} {temporal_text_name(op)} {_temporal_operand(right)}"
        case _:
            return _operand(expr)


def _render(expr: Expr, enclosing: int) -> str:
    if isinstance(expr, Logical) and len(expr.children) == 1:
        return _render(expr.children[0], enclosing)
    text = _node(expr)
    if _precedence(expr) < enclosing:
        return f"({text})"
    return text


def serialize_text(expr: Expr | None) -> str:
    """Render an expression as CQL2-Text with the fewest parentheses."""
    if expr is None:
        raise FilterSerializationError("Cannot serialize an empty expression")
    return _render(expr, PRECEDENCE_NONE)
