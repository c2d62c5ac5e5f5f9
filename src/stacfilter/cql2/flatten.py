"""Flatten conjunctions into terminal predicates and group them."""

from __future__ import annotations

from collections.abc import Iterable

from stacfilter.cql2.ast import (
    TERMINAL_PREDICATE_TYPES,
    Between,
    Comparison,
    Expr,
    FunctionCall,
    In,
    IsNull,
    Like,
    Logical,
    Not,
    Property,
    SpatialPredicate,
    TemporalPredicate,
    TerminalPredicate,
)
from stacfilter.cql2.errors import FilterPolicyError
from stacfilter.cql2.operators import spatial_json_name, temporal_json_name


def _collect(expr: Expr, predicates: list[TerminalPredicate]) -> None:
    if isinstance(expr, Logical):
        if expr.op != "AND":
            raise FilterPolicyError(
                f"Only AND is supported when flattening, found {expr.op}", expr.op
            )
        for child in expr.children:
            _collect(child, predicates)
        return
    if isinstance(expr, Not):
        raise FilterPolicyError("Only AND is supported when flattening, found NOT", "NOT")
    if isinstance(expr, TERMINAL_PREDICATE_TYPES):
        predicates.append(expr)  # type: ignore[arg-type]
        return
    node_name = type(expr).__name__
    raise FilterPolicyError(f"{node_name} is not a predicate and cannot be flattened", node_name)


def flatten_conjunction(expr: Expr | None) -> list[TerminalPredicate]:
    """Return the terminal predicates of a pure AND tree, left to right.

    ``None`` means no filter and yields an empty list. Any OR or NOT raises
    FilterPolicyError.
    """
    predicates: list[TerminalPredicate] = []
    if expr is not None:
        _collect(expr, predicates)
    return predicates


def predicate_operator(predicate: TerminalPredicate) -> str:
    """Return the CQL2-JSON operator name of a terminal predicate."""
    match predicate:
        case Comparison(op=op):
            return op
        case Between():
            return "between"
        case Like():
            return "like"
        case In():
            return "in"
        case IsNull():
            return "isNull"
        case SpatialPredicate(op=op):
            return spatial_json_name(op)
        case TemporalPredicate(op=op):
            return temporal_json_name(op)
        case FunctionCall(name=name):
            return name
    raise FilterPolicyError(f"Not a terminal predicate: {type(predicate).__name__}", "")


def _subject(predicate: TerminalPredicate) -> Expr:
    if isinstance(predicate, FunctionCall):
        return predicate
    if isinstance(predicate, (Comparison, SpatialPredicate, TemporalPredicate)):
        return predicate.left
    return predicate.value


def _property_name(expr: Expr) -> str | None:
    if isinstance(expr, Property):
        return expr.name
    if isinstance(expr, FunctionCall):
        for arg in expr.args:
            name = _property_name(arg)
            if name is not None:
                return name
    return None


def predicate_property(predicate: TerminalPredicate) -> str | None:
    """Return the property a predicate tests, looking through function calls."""
    return _property_name(_subject(predicate))


def group_by_property(
    predicates: Iterable[TerminalPredicate],
) -> dict[str | None, list[TerminalPredicate]]:
    """Bucket predicates by tested property, keeping first seen order."""
    groups: dict[str | None, list[TerminalPredicate]] = {}
    for predicate in predicates:
        groups.setdefault(predicate_property(predicate), []).append(predicate)
    return groups


def group_by_operator(
    predicates: Iterable[TerminalPredicate],
) -> dict[str, list[TerminalPredicate]]:
    """Bucket predicates by operator name, keeping first seen order."""
    groups: dict[str, list[TerminalPredicate]] = {}
    for predicate in predicates:
        groups.setdefault(predicate_operator(predicate), []).append(predicate)
    return groups
