"""Parser for CQL2-Text filter expressions."""

from __future__ import annotations

import logging
from collections.abc import Generator
from datetime import datetime

from parsy import ParseError, Parser, eof, forward_declaration, generate, seq

from stacfilter.cql2.ast import (
    BBoxLiteral,
    Between,
    BoolLiteral,
    Comparison,
    DateLiteral,
    Expr,
    FunctionCall,
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
from stacfilter.cql2.errors import FilterSyntaxError
from stacfilter.cql2.lexer import (
    Token,
    end_position,
    format_error_pointer,
    keyword_item,
    kind_item,
    punct_item,
    tokenize,
    word_item,
)
from stacfilter.cql2.operators import FUNCTIONS_BY_TEXT, SPATIAL_BY_TEXT, TEMPORAL_BY_TEXT
from stacfilter.cql2.values import parse_bound, parse_date, parse_instant, parse_timestamp
from stacfilter.cql2.wkt import build_wkt_parser


logger = logging.getLogger("stacfilter")


def _invalid_literal(token: Token, reason: str) -> FilterSyntaxError:
    return FilterSyntaxError(
        f"{reason} at line {token.line + 1}, column {token.column + 1}: {token.text}",
        token.text,
        token.line,
        token.column,
    )


def _timestamp_value(token: Token) -> TimestampLiteral:
    try:
        return TimestampLiteral(parse_timestamp(token.value))
    except ValueError as exc:
        raise _invalid_literal(token, "Invalid timestamp") from exc


def _date_value(token: Token) -> DateLiteral:
    try:
        return DateLiteral(parse_date(token.value))
    except ValueError as exc:
        raise _invalid_literal(token, "Invalid date") from exc


def _instant_value(token: Token) -> TimestampLiteral | DateLiteral:
    try:
        value = parse_instant(token.value)
    except ValueError as exc:
        raise _invalid_literal(token, "Invalid instant") from exc
    if isinstance(value, datetime):
        return TimestampLiteral(value)
    return DateLiteral(value)


def _bound_value(bound: Token | TimestampLiteral | DateLiteral) -> object:
    if isinstance(bound, (TimestampLiteral, DateLiteral)):
        return bound.value
    try:
        return parse_bound(bound.value)
    except ValueError as exc:
        raise _invalid_literal(bound, "Invalid interval bound") from exc


def _interval(
    start: Token | TimestampLiteral | DateLiteral, end: Token | TimestampLiteral | DateLiteral
) -> IntervalLiteral:
    return IntervalLiteral(_bound_value(start), _bound_value(end))  # type: ignore[arg-type]


def _negated(negate: object, node: Expr) -> Expr:
    return Not(node) if negate is not None else node


def _build_operand_parsers() -> tuple[Parser, Parser, Parser, Parser, Parser, Parser]:
    """Build operand parsers: (operand, subject, spatial, temporal, pattern, function)."""
    identifier = kind_item("IDENT", "identifier")
    string_token = kind_item("STRING", "string")
    number_token = kind_item("NUMBER", "number")
    open_paren = punct_item("(")
    close_paren = punct_item(")")
    comma = punct_item(",")

    prop = identifier.map(lambda token: Property(token.value))
    string_literal = string_token.map(lambda token: StringLiteral(token.value))
    number_literal = number_token.map(lambda token: NumberLiteral(float(token.value)))
    bool_literal = kind_item("BOOLEAN", "boolean").map(
        lambda token: BoolLiteral(token.value == "TRUE")
    )
    null_literal = keyword_item("NULL").result(NullLiteral())

    timestamp_literal = (
        word_item("TIMESTAMP") >> open_paren >> string_token << close_paren
    ).map(_timestamp_value)
    date_literal = (word_item("DATE") >> open_paren >> string_token << close_paren).map(
        _date_value
    )
    instant = timestamp_literal | date_literal | string_token

    interval_literal = seq(
        word_item("INTERVAL") >> open_paren >> instant,
        comma >> instant << close_paren,
    ).combine(_interval)
    bracket_interval = seq(
        punct_item("[") >> instant,
        punct_item("/") >> instant << punct_item("]"),
    ).combine(_interval)

    @generate
    def bbox_literal() -> Generator[Parser, object, BBoxLiteral]:
        start = yield word_item("BBOX")
        yield open_paren
        values = yield number_token.sep_by(comma, min=1)
        yield close_paren
        extent = tuple(float(token.value) for token in values)  # type: ignore[attr-defined]
        if len(extent) not in (4, 6):
            message = f"BBOX requires 4 or 6 numbers, got {len(extent)}"
            raise _invalid_literal(start, message)  # type: ignore[arg-type]
        return BBoxLiteral(extent)

    geometry = build_wkt_parser()
    operand = forward_declaration()

    @generate
    def function_call() -> Generator[Parser, object, FunctionCall]:
        name_token = yield word_item(*FUNCTIONS_BY_TEXT)
        yield open_paren
        args = yield operand.sep_by(comma)
        yield close_paren
        name = FUNCTIONS_BY_TEXT[name_token.value.upper()]  # type: ignore[attr-defined]
        return FunctionCall(name, tuple(args))  # type: ignore[arg-type]

    typed_literal = (
        timestamp_literal | date_literal | interval_literal | bbox_literal | geometry
    )
    operand.become(
        function_call
        | typed_literal
        | prop
        | string_literal
        | number_literal
        | bool_literal
        | null_literal
    )
    subject = function_call | prop
    spatial_literal = geometry | bbox_literal
    spatial_operand = spatial_literal | (open_paren >> spatial_literal << close_paren) | prop
    temporal_operand = (
        bracket_interval
        | timestamp_literal
        | date_literal
        | interval_literal
        | string_token.map(_instant_value)
        | prop
    )
    pattern = string_literal | function_call
    return (operand, subject, spatial_operand, temporal_operand, pattern, function_call)


def _build_predicate_parser(
    operand: Parser,
    subject: Parser,
    spatial_operand: Parser,
    temporal_operand: Parser,
    pattern: Parser,
) -> Parser:
    """Build parser for infix and prefix predicates."""
    open_paren = punct_item("(")
    close_paren = punct_item(")")
    comma = punct_item(",")
    not_keyword = keyword_item("NOT").optional()
    spatial_op = word_item(*SPATIAL_BY_TEXT).map(lambda token: SPATIAL_BY_TEXT[token.value.upper()])
    temporal_op = word_item(*TEMPORAL_BY_TEXT).map(
        lambda token: TEMPORAL_BY_TEXT[token.value.upper()]
    )

    comparison_tail = seq(kind_item("COMPOP", "comparison operator"), operand).combine(
        lambda op, right: lambda left: Comparison(op.value, left, right)
    )
    between_tail = seq(
        not_keyword,
        keyword_item("BETWEEN") >> operand,
        keyword_item("AND") >> operand,
    ).combine(
        lambda negate, lower, upper: lambda left: _negated(negate, Between(left, lower, upper))
    )
    like_tail = seq(not_keyword, keyword_item("LIKE") >> pattern).combine(
        lambda negate, value: lambda left: _negated(negate, Like(left, value))
    )
    in_tail = seq(
        not_keyword,
        keyword_item("IN") >> open_paren >> operand.sep_by(comma) << close_paren,
    ).combine(lambda negate, values: lambda left: _negated(negate, In(left, tuple(values))))
    is_null_tail = (keyword_item("IS") >> not_keyword << keyword_item("NULL")).map(
        lambda negate: lambda left: _negated(negate, IsNull(left))
    )
    spatial_tail = seq(spatial_op, spatial_operand).combine(
        lambda op, right: lambda left: SpatialPredicate(op, left, right)
    )
    temporal_tail = seq(temporal_op, temporal_operand).combine(
        lambda op, right: lambda left: TemporalPredicate(op, left, right)
    )

    @generate
    def infix_predicate() -> Generator[Parser, object, Expr]:
        left = yield subject
        tail = yield (
            comparison_tail
            | between_tail
            | like_tail
            | in_tail
            | is_null_tail
            | spatial_tail
            | temporal_tail
        )
        return tail(left)  # type: ignore[operator]

    spatial_prefix = seq(
        spatial_op << open_paren,
        subject << comma,
        spatial_operand << close_paren,
    ).combine(SpatialPredicate)
    temporal_prefix = seq(
        temporal_op << open_paren,
        subject << comma,
        temporal_operand << close_paren,
    ).combine(TemporalPredicate)

    return spatial_prefix | temporal_prefix | infix_predicate


def _chain(op_name: str, operand: Parser) -> Parser:
    """Fold a keyword separated chain into one n-ary logical node."""

    @generate
    def chain() -> Generator[Parser, object, Expr]:
        first = yield operand
        rest = yield (keyword_item(op_name) >> operand).many()
        if not rest:
            return first  # type: ignore[return-value]
        return make_logical(op_name, [first, *rest])  # type: ignore[list-item]

    return chain


def _build_filter_parser() -> Parser:
    operand, subject, spatial_operand, temporal_operand, pattern, function_call = (
        _build_operand_parsers()
    )
    predicate = _build_predicate_parser(
        operand, subject, spatial_operand, temporal_operand, pattern
    )

    expr = forward_declaration()
    grouped = punct_item("(") >> expr << punct_item(")")
    primary = grouped | predicate | function_call

    @generate
    def unary() -> Generator[Parser, object, Expr]:
        negations = yield keyword_item("NOT").many()
        value = yield primary
        for _ in negations:  # type: ignore[attr-defined]
            value = Not(value)  # type: ignore[arg-type]
        return value  # type: ignore[return-value]

    expr.become(_chain("OR", _chain("AND", unary)))
    return expr << eof


FILTER_PARSER = _build_filter_parser()


def _syntax_error(text: str, tokens: list[Token], exc: ParseError) -> FilterSyntaxError:
    expected = tuple(sorted(exc.expected))
    if exc.index < len(tokens):
        token = tokens[exc.index]
        line, column = token.line, token.column
        found = token.describe()
        token_text: str | None = token.text
    else:
        line, column = end_position(text)
        found = "end of input"
        token_text = None
    message = (
        f"Invalid filter syntax: unexpected {found} at line {line + 1}, column {column + 1}; "
        f"expected {' or '.join(expected)}\n\n{format_error_pointer(text, line, column)}"
    )
    return FilterSyntaxError(message, token_text, line, column, expected)


def parse_text(text: str) -> Expr:
    """Parse CQL2-Text into an AST expression."""
    tokens = tokenize(text)
    if not tokens:
        line, column = end_position(text)
        raise FilterSyntaxError("Empty filter expression", None, line, column, ("expression",))
    try:
        result = FILTER_PARSER.parse(tokens)
    except ParseError as exc:
        raise _syntax_error(text, tokens, exc) from exc
    logger.debug("Parsed CQL2-Text filter with %d tokens", len(tokens))
    if isinstance(result, Expr):
        return result
    raise FilterSyntaxError("Parser did not produce an expression", None, 0, 0)

