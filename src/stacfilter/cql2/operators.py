"""Static operator tables shared by parsers, serializers and transforms."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, TypeAlias


ComparisonOperator: TypeAlias = Literal["=", "<>", "<", "<=", ">", ">="]
LogicalOperator: TypeAlias = Literal["AND", "OR"]
NodeKind: TypeAlias = Literal[
    "logical",
    "not",
    "comparison",
    "between",
    "like",
    "in",
    "isNull",
    "spatial",
    "temporal",
    "function",
]


COMPARISON_OPERATORS: tuple[str, ...] = ("=", "<>", "<", "<=", ">", ">=")
LOGICAL_OPERATORS: tuple[str, ...] = ("AND", "OR")

SPATIAL_OPERATORS: tuple[str, ...] = (
    "intersects",
    "contains",
    "within",
    "equals",
    "disjoint",
    "touches",
    "overlaps",
    "crosses",
)

TEMPORAL_OPERATORS: tuple[str, ...] = (
    "after",
    "before",
    "contains",
    "disjoint",
    "during",
    "equals",
    "finishedBy",
    "finishes",
    "intersects",
    "meets",
    "metBy",
    "overlappedBy",
    "overlaps",
    "startedBy",
    "starts",
)

KNOWN_FUNCTIONS: frozenset[str] = frozenset({"casei", "accenti"})

TEXT_KEYWORDS: frozenset[str] = frozenset(
    {"AND", "OR", "NOT", "LIKE", "IN", "IS", "NULL", "BETWEEN"}
)

PRECEDENCE_NONE = 0
PRECEDENCE_OR = 1
PRECEDENCE_AND = 2
PRECEDENCE_NOT = 3
PRECEDENCE_PREDICATE = 4

LOGICAL_PRECEDENCE: dict[str, int] = {"OR": PRECEDENCE_OR, "AND": PRECEDENCE_AND}


def spatial_json_name(op: str) -> str:
    """Return the CQL2-JSON operator name for a spatial operator."""
    return f"s_{op}"


def temporal_json_name(op: str) -> str:
    """Return the CQL2-JSON operator name for a temporal operator."""
    return f"t_{op}"


def spatial_text_name(op: str) -> str:
    """Return the CQL2-Text keyword for a spatial operator."""
    return f"S_{op.upper()}"


def temporal_text_name(op: str) -> str:
    """Return the CQL2-Text keyword for a temporal operator."""
    return f"T_{op.upper()}"


SPATIAL_BY_TEXT: dict[str, str] = {spatial_text_name(op): op for op in SPATIAL_OPERATORS}
TEMPORAL_BY_TEXT: dict[str, str] = {temporal_text_name(op): op for op in TEMPORAL_OPERATORS}
FUNCTIONS_BY_TEXT: dict[str, str] = {name.upper(): name for name in KNOWN_FUNCTIONS}


@dataclass(frozen=True, slots=True)
class OperatorSpec:
    """Node kind and argument count bounds for one CQL2-JSON operator."""

    kind: NodeKind
    min_args: int
    max_args: int | None
    node_op: str

    def describe_arity(self) -> str:
        """Render the accepted argument count for diagnostics."""
        if self.max_args is None:
            return f"at least {self.min_args}"
        if self.min_args == self.max_args:
            return str(self.min_args)
        return f"{self.min_args} to {self.max_args}"

    def accepts(self, count: int) -> bool:
        """Return whether an argument list of this length is valid."""
        if count < self.min_args:
            return False
        return self.max_args is None or count <= self.max_args


def _build_json_operators() -> dict[str, OperatorSpec]:
    table: dict[str, OperatorSpec] = {
        "and": OperatorSpec("logical", 2, None, "AND"),
        "or": OperatorSpec("logical", 2, None, "OR"),
        "not": OperatorSpec("not", 1, 1, "NOT"),
        "between": OperatorSpec("between", 3, 3, "between"),
        "like": OperatorSpec("like", 2, 2, "like"),
        "in": OperatorSpec("in", 2, 2, "in"),
        "isNull": OperatorSpec("isNull", 1, 1, "isNull"),
    }
    for op in COMPARISON_OPERATORS:
        table[op] = OperatorSpec("comparison", 2, 2, op)
    for op in SPATIAL_OPERATORS:
        table[spatial_json_name(op)] = OperatorSpec("spatial", 2, 2, op)
    for op in TEMPORAL_OPERATORS:
        table[temporal_json_name(op)] = OperatorSpec("temporal", 2, 2, op)
    for name in KNOWN_FUNCTIONS:
        table[name] = OperatorSpec("function", 1, 1, name)
    return table


JSON_OPERATORS: dict[str, OperatorSpec] = _build_json_operators()
