"""Public API for CQL2 parsing, serialization and transforms."""

from stacfilter.cql2.ast import Expr, TerminalPredicate
from stacfilter.cql2.builder import FilterBuilder
from stacfilter.cql2.errors import (
    FilterError,
    FilterLexError,
    FilterParseError,
    FilterPolicyError,
    FilterSemanticError,
    FilterSerializationError,
    FilterSyntaxError,
    UnsupportedOperatorError,
)
from stacfilter.cql2.flatten import flatten_conjunction, group_by_operator, group_by_property
from stacfilter.cql2.json_parser import parse_json
from stacfilter.cql2.json_serializer import serialize_json, serialize_json_text
from stacfilter.cql2.text_parser import parse_text
from stacfilter.cql2.text_serializer import serialize_text
from stacfilter.cql2.translator import ODATA_DIALECT, SQL_DIALECT, Dialect, translate


__all__ = [
    "ODATA_DIALECT",
    "SQL_DIALECT",
    "Dialect",
    "Expr",
    "FilterBuilder",
    "FilterError",
    "FilterLexError",
    "FilterParseError",
    "FilterPolicyError",
    "FilterSemanticError",
    "FilterSerializationError",
    "FilterSyntaxError",
    "TerminalPredicate",
    "UnsupportedOperatorError",
    "flatten_conjunction",
    "group_by_operator",
    "group_by_property",
    "parse_json",
    "parse_text",
    "serialize_json",
    "serialize_json_text",
    "serialize_text",
    "translate",
]
