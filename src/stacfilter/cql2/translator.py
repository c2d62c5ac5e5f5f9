"""Translate AST expressions into other query languages through dialect tables."""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass
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
from stacfilter.cql2.errors import FilterSerializationError, UnsupportedOperatorError
from stacfilter.cql2.json_serializer import geometry_to_geojson
from stacfilter.cql2.operators import spatial_json_name, temporal_json_name
from stacfilter.cql2.values import format_instant, format_number
from stacfilter.cql2.wkt import bbox_to_wkt, to_wkt


logger = logging.getLogger("stacfilter")

LiteralRenderer: TypeAlias = Callable[[Literal, str], str]
PropertyRenderer: TypeAlias = Callable[[str], str]

GROUP_TEMPLATE = "group"
RANGE_SUFFIX = ":range"
_SIMPLE_SQL_IDENTIFIER = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


def sql_quote(value: str) -> str:
    """Single quote a string, doubling embedded quotes."""
    return "'" + value.replace("'", "''") + "'"


def sql_identifier(name: str) -> str:
    """Render a property as a SQL column, double quoting unusual names."""
    if _SIMPLE_SQL_IDENTIFIER.fullmatch(name):
        return name
    return '"' + name.replace('"', '""') + '"'


def plain_identifier(name: str) -> str:
    return name


def sql_literal(literal: Literal, dialect: str) -> str:
    """Render a literal for PostgreSQL/PostGIS."""
    match literal:
        case StringLiteral(value=value):
            return sql_quote(value)
        case NumberLiteral(value=value):
            return format_number(value)
        case BoolLiteral(value=value):
            return "TRUE" if value else "FALSE"
        case NullLiteral():
            return "NULL"
        case TimestampLiteral(value=value):
            return f"TIMESTAMPTZ {sql_quote(format_instant(value))}"
        case DateLiteral(value=value):
            return f"DATE {sql_quote(format_instant(value))}"
        case IntervalLiteral(start=start, end=end):
            lower = "NULL" if start is None else sql_quote(format_instant(start))
            upper = "NULL" if end is None else sql_quote(format_instant(end))
            return f"tstzrange({lower}, {upper}, '[]')"
        case GeometryLiteral():
            document = json.dumps(geometry_to_geojson(literal), separators=(",", ":"))
            return f"ST_GeomFromGeoJSON({sql_quote(document)})"
        case BBoxLiteral(extent=extent):
            corners = extent if len(extent) == 4 else (extent[0], extent[1], extent[3], extent[4])
            return f"ST_MakeEnvelope({', '.join(format_number(v) for v in corners)}, 4326)"
    raise UnsupportedOperatorError(type(literal).__name__, dialect)


def odata_literal(literal: Literal, dialect: str) -> str:
    """Render a literal for OData ``$filter``."""
    match literal:
        case StringLiteral(value=value):
            return sql_quote(value)
        case NumberLiteral(value=value):
            return format_number(value)
        case BoolLiteral(value=value):
            return "true" if value else "false"
        case NullLiteral():
            return "null"
        case TimestampLiteral(value=value) | DateLiteral(value=value):
            return format_instant(value)
        case GeometryLiteral():
            return f"geography'SRID=4326;{to_wkt(literal)}'"
        case BBoxLiteral(extent=extent):
            return f"geography'SRID=4326;{bbox_to_wkt(extent)}'"
    raise UnsupportedOperatorError(type(literal).__name__, dialect)


@dataclass(frozen=True)
class Dialect:
    """Target query language described as operator templates.

    Templates are keyed by CQL2-JSON operator name and use positional
    ``str.format`` fields: ``{0}`` is the subject, ``{1}`` and ``{2}`` the
    remaining operands. ``and``/``or`` templates join two operands at a time,
    ``in`` receives the candidate list already joined, and the ``group``
    template wraps nested logical expressions. Temporal operators whose right
    operand is an interval look up ``<operator>:range`` instead, so instants
    and ranges can map to different target operators.
    """

    name: str
    templates: Mapping[str, str]
    render_literal: LiteralRenderer = sql_literal
    render_property: PropertyRenderer = plain_identifier
    list_separator: str = ", "

    def template(self, operator: str) -> str:
        """Return the template for an operator or raise UnsupportedOperatorError."""
        template = self.templates.get(operator)
        if template is None:
            raise UnsupportedOperatorError(operator, self.name)
        return template

    def supports(self, operator: str) -> bool:
        return operator in self.templates

    @classmethod
    def from_mapping(
        cls,
        name: str,
        mapping: Mapping[str, object],
        base: Dialect | None = None,
    ) -> Dialect:
        """Build a dialect from an external operator table.

        Entries override those of ``base``; a template that ``str.format``
        cannot fill with three operands raises ValueError.
        """
        templates: dict[str, str] = dict(base.templates) if base is not None else {}
        for operator, template in mapping.items():
            if not isinstance(template, str):
                raise ValueError(f"Template for {operator} must be a string")
            try:
                template.format("a", "b", "c")
            except (IndexError, KeyError, ValueError) as exc:
                raise ValueError(f"Invalid template for {operator}: {template!r}") from exc
            templates[operator] = template
        if base is None:
            return cls(name, templates)
        return cls(
            name,
            templates,
            render_literal=base.render_literal,
            render_property=base.render_property,
            list_separator=base.list_separator,
        )


def _comparison_templates(names: Mapping[str, str]) -> dict[str, str]:
    return {op: f"{{0}} {name} {{1}}" for op, name in names.items()}


SQL_DIALECT = Dialect(
    name="sql",
    templates={
        **_comparison_templates({op: op for op in ("=", "<>", "<", "<=", ">", ">=")}),
        "and": "{0} AND {1}",
        "or": "{0} OR {1}",
        "not": "NOT {0}",
        GROUP_TEMPLATE: "({0})",
        "between": "{0} BETWEEN {1} AND {2}",
        "like": "{0} LIKE {1}",
        "in": "{0} IN ({1})",
        "isNull": "{0} IS NULL",
        "s_intersects": "ST_Intersects({0}, {1})",
        "s_contains": "ST_Contains({0}, {1})",
        "s_within": "ST_Within({0}, {1})",
        "s_equals": "ST_Equals({0}, {1})",
        "s_disjoint": "ST_Disjoint({0}, {1})",
        "s_touches": "ST_Touches({0}, {1})",
        "s_overlaps": "ST_Overlaps({0}, {1})",
        "s_crosses": "ST_Crosses({0}, {1})",
        "t_after": "{0} > {1}",
        "t_before": "{0} < {1}",
        "t_equals": "{0} = {1}",
        "t_intersects": "{0} = {1}",
        "t_disjoint": "{0} <> {1}",
        "t_after:range": "{0} > upper({1})",
        "t_before:range": "{0} < lower({1})",
        "t_intersects:range": "{0} <@ {1}",
        "t_during:range": "{0} <@ {1}",
        "t_disjoint:range": "NOT ({0} <@ {1})",
        "casei": "LOWER({0})",
        "accenti": "unaccent({0})",
    },
    render_literal=sql_literal,
    render_property=sql_identifier,
)

ODATA_DIALECT = Dialect(
    name="odata",
    templates={
        **_comparison_templates(
            {"=": "eq", "<>": "ne", "<": "lt", "<=": "le", ">": "gt", ">=": "ge"}
        ),
        "and": "{0} and {1}",
        "or": "{0} or {1}",
        "not": "not {0}",
        GROUP_TEMPLATE: "({0})",
        "between": "({0} ge {1} and {0} le {2})",
        "in": "{0} in ({1})",
        "isNull": "{0} eq null",
        "s_intersects": "geo.intersects({0}, {1})",
        "t_after": "{0} gt {1}",
        "t_before": "{0} lt {1}",
        "t_equals": "{0} eq {1}",
        "casei": "tolower({0})",
    },
    render_literal=odata_literal,
    render_property=plain_identifier,
)

BUILTIN_DIALECTS: dict[str, Dialect] = {
    SQL_DIALECT.name: SQL_DIALECT,
    ODATA_DIALECT.name: ODATA_DIALECT,
}


def get_dialect(name: str, custom: Mapping[str, Dialect] | None = None) -> Dialect:
    """Look up a dialect by name, checking custom dialects first."""
    if custom is not None and name in custom:
        return custom[name]
    dialect = BUILTIN_DIALECTS.get(name)
    if dialect is None:
        available = sorted({*BUILTIN_DIALECTS, *(custom or {})})
        raise KeyError(f"Unknown dialect: {name}. Available dialects: {', '.join(available)}")
    return dialect


def _temporal_template(op: str, right: Expr, dialect: Dialect) -> str:
    operator = temporal_json_name(op)
    key = operator + RANGE_SUFFIX if isinstance(right, IntervalLiteral) else operator
    if not dialect.supports(key):
        raise UnsupportedOperatorError(operator, dialect.name)
    return dialect.template(key)


def _grouped(expr: Expr, dialect: Dialect) -> str:
    text = _visit(expr, dialect)
    if isinstance(expr, Logical) and len(expr.children) > 1:
        return dialect.template(GROUP_TEMPLATE).format(text)
    return text


def _visit(expr: Expr, dialect: Dialect) -> str:
    match expr:
        case Logical(op=op, children=children):
            if len(children) == 1:
                return _visit(children[0], dialect)
            template = dialect.template(op.lower())
            result = _grouped(children[0], dialect)
            for child in children[1:]:
                result = template.format(result, _grouped(child, dialect))
            return result
        case Not(child=child):
            return dialect.template("not").format(_grouped(child, dialect))
        case Comparison(op=op, left=left, right=right):
            return dialect.template(op).format(_visit(left, dialect), _visit(right, dialect))
        case Between(value=value, lower=lower, upper=upper):
            return dialect.template("between").format(
                _visit(value, dialect), _visit(lower, dialect), _visit(upper, dialect)
            )
        case Like(value=value, pattern=pattern):
            return dialect.template("like").format(_visit(value, dialect), _visit(pattern, dialect))
        case In(value=value, candidates=candidates):
            items = dialect.list_separator.join(_visit(item, dialect) for item in candidates)
            return dialect.template("in").format(_visit(value, dialect), items)
        case IsNull(value=value):
            return dialect.template("isNull").format(_visit(value, dialect))
        case SpatialPredicate(op=op, left=left, right=right):
            return dialect.template(spatial_json_name(op)).format(
                _visit(left, dialect), _visit(right, dialect)
            )
        case TemporalPredicate(op=op, left=left, right=right):
            return _temporal_template(op, right, dialect).format(
                _visit(left, dialect), _visit(right, dialect)
            )
        case FunctionCall(name=name, args=args):
            return dialect.template(name).format(*(_visit(arg, dialect) for arg in args))
        case Property(name=name):
            return dialect.render_property(name)
        case Literal():
            return dialect.render_literal(expr, dialect.name)
    raise UnsupportedOperatorError(type(expr).__name__, dialect.name)


def translate(expr: Expr | None, dialect: Dialect) -> str:
    """Translate an expression into the query language of a dialect."""
    if expr is None:
        raise FilterSerializationError("Cannot translate an empty expression")
    result = _visit(expr, dialect)
    logger.debug("Translated filter to %s dialect", dialect.name)
    return result
