"""stacfilter - Parse, convert and translate OGC CQL2 filter expressions."""

from stacfilter.cql2 import (
    FilterBuilder,
    FilterError,
    flatten_conjunction,
    parse_json,
    parse_text,
    serialize_json,
    serialize_text,
    translate,
)


__version__ = "0.1.0"

__all__ = [
    "FilterBuilder",
    "FilterError",
    "__version__",
    "flatten_conjunction",
    "parse_json",
    "parse_text",
    "serialize_json",
    "serialize_text",
    "translate",
]
