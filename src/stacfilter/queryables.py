"""Queryables schema handling and typed coercion of raw filter values."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from stacfilter.cql2.ast import (
    BoolLiteral,
    DateLiteral,
    Literal,
    NumberLiteral,
    StringLiteral,
    TimestampLiteral,
)
from stacfilter.cql2.values import parse_date, parse_timestamp


logger = logging.getLogger("stacfilter")

TRUE_WORDS = frozenset({"true", "yes", "1"})
FALSE_WORDS = frozenset({"false", "no", "0"})


class QueryablesError(ValueError):
    """Raised when a queryables document or a raw value is invalid."""


@dataclass(frozen=True, slots=True)
class Queryable:
    """One filterable property described by a queryables schema."""

    name: str
    type: str | None = None
    format: str | None = None
    title: str | None = None
    description: str | None = None
    minimum: float | None = None
    maximum: float | None = None
    enum: tuple[object, ...] | None = None
    ref: str | None = None

    @property
    def is_temporal(self) -> bool:
        if self.format in ("date-time", "date"):
            return True
        return self.ref is not None and "datetime" in self.ref

    @property
    def is_spatial(self) -> bool:
        return self.ref is not None and "geojson" in self.ref.lower()


@dataclass(frozen=True, slots=True)
class Queryables:
    """Parsed queryables document."""

    properties: dict[str, Queryable] = field(default_factory=dict)
    title: str | None = None
    additional_properties: bool = True

    def get(self, name: str) -> Queryable | None:
        return self.properties.get(name)

    def names(self) -> list[str]:
        return sorted(self.properties)


def _schema_type(raw: object, name: str) -> str | None:
    if raw is None:
        return None
    if isinstance(raw, str):
        return raw
    if isinstance(raw, list) and all(isinstance(item, str) for item in raw):
        non_null = [item for item in raw if item != "null"]
        return non_null[0] if non_null else "null"
    raise QueryablesError(f"Queryable {name} has an invalid 'type'")


def _optional_number(schema: Mapping[str, object], key: str, name: str) -> float | None:
    value = schema.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise QueryablesError(f"Queryable {name} has a non-numeric '{key}'")
    return float(value)


def _optional_string(schema: Mapping[str, object], key: str, name: str) -> str | None:
    value = schema.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise QueryablesError(f"Queryable {name} has a non-string '{key}'")
    return value


def _queryable(name: str, schema: object) -> Queryable:
    if not isinstance(schema, Mapping):
        raise QueryablesError(f"Queryable {name} must be a JSON object")
    enum = schema.get("enum")
    if enum is not None and not isinstance(enum, list):
        raise QueryablesError(f"Queryable {name} has a non-array 'enum'")
    return Queryable(
        name=name,
        type=_schema_type(schema.get("type"), name),
        format=_optional_string(schema, "format", name),
        title=_optional_string(schema, "title", name),
        description=_optional_string(schema, "description", name),
        minimum=_optional_number(schema, "minimum", name),
        maximum=_optional_number(schema, "maximum", name),
        enum=tuple(enum) if enum is not None else None,
        ref=_optional_string(schema, "$ref", name),
    )


def parse_queryables(data: str | bytes | Mapping[str, object]) -> Queryables:
    """Parse a queryables JSON Schema document.

    The root must be an object schema with a ``properties`` member.
    """
    if isinstance(data, (str, bytes)):
        try:
            document = json.loads(data)
        except json.JSONDecodeError as exc:
            raise QueryablesError(f"Invalid queryables JSON: {exc}") from exc
    else:
        document = data
    if not isinstance(document, Mapping):
        raise QueryablesError("Queryables document must be a JSON object")
    if document.get("type") != "object":
        raise QueryablesError("Queryables schema type must be 'object'")
    properties = document.get("properties")
    if not isinstance(properties, Mapping):
        raise QueryablesError("Queryables schema requires 'properties'")
    additional = document.get("additionalProperties", True)
    queryables = Queryables(
        properties={name: _queryable(name, schema) for name, schema in properties.items()},
        title=_optional_string(document, "title", "root"),
        additional_properties=additional is not False,
    )
    logger.info("Loaded %d queryables", len(queryables.properties))
    return queryables


def load_queryables(filepath: str) -> Queryables:
    """Read and parse a queryables document from disk."""
    try:
        content = Path(filepath).read_text(encoding="utf-8")
    except OSError as exc:
        raise QueryablesError(f"Cannot read queryables file {filepath}: {exc}") from exc
    return parse_queryables(content)


def _infer(raw: str) -> Literal:
    lowered = raw.lower()
    if lowered in ("true", "false"):
        return BoolLiteral(lowered == "true")
    try:
        return NumberLiteral(float(raw))
    except ValueError:
        return StringLiteral(raw)


def _check_range(value: float, queryable: Queryable) -> None:
    if queryable.minimum is not None and value < queryable.minimum:
        raise QueryablesError(f"{queryable.name} must be >= {queryable.minimum:g}, got {value:g}")
    if queryable.maximum is not None and value > queryable.maximum:
        raise QueryablesError(f"{queryable.name} must be <= {queryable.maximum:g}, got {value:g}")


def _coerce_number(raw: str, queryable: Queryable) -> NumberLiteral:
    try:
        value = int(raw) if queryable.type == "integer" else float(raw)
    except ValueError as exc:
        raise QueryablesError(f"{queryable.name} expects {queryable.type}, got {raw!r}") from exc
    _check_range(float(value), queryable)
    return NumberLiteral(float(value))


def _coerce_bool(raw: str, queryable: Queryable) -> BoolLiteral:
    lowered = raw.strip().lower()
    if lowered in TRUE_WORDS:
        return BoolLiteral(True)
    if lowered in FALSE_WORDS:
        return BoolLiteral(False)
    raise QueryablesError(f"{queryable.name} expects a boolean, got {raw!r}")


def _coerce_temporal(raw: str, queryable: Queryable) -> Literal:
    try:
        if queryable.format == "date":
            return DateLiteral(parse_date(raw))
        return TimestampLiteral(parse_timestamp(raw))
    except ValueError as exc:
        raise QueryablesError(f"{queryable.name} expects an ISO 8601 value, got {raw!r}") from exc


def coerce_value(raw: str, queryable: Queryable | None) -> Literal:
    """Turn a raw string into a literal typed by its queryable.

    Without a queryable, booleans and numbers are recognized and anything
    else stays a string.
    """
    if queryable is None:
        return _infer(raw)
    if queryable.is_spatial:
        raise QueryablesError(
            f"{queryable.name} is a geometry; use --bbox for spatial conditions"
        )
    if queryable.type in ("integer", "number"):
        literal: Literal = _coerce_number(raw, queryable)
    elif queryable.type == "boolean":
        literal = _coerce_bool(raw, queryable)
    elif queryable.is_temporal:
        literal = _coerce_temporal(raw, queryable)
    else:
        literal = StringLiteral(raw)
    if queryable.enum is not None:
        value = getattr(literal, "value", None)
        if value not in queryable.enum and raw not in queryable.enum:
            allowed = ", ".join(str(item) for item in queryable.enum)
            raise QueryablesError(f"{queryable.name} must be one of: {allowed}")
    return literal
