"""Tokenizer for CQL2-Text."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Literal, TypeAlias

from parsy import ParseError, Parser, eof, regex, test_item

from stacfilter.cql2.errors import FilterLexError
from stacfilter.cql2.operators import TEXT_KEYWORDS


TokenKind: TypeAlias = Literal["KEYWORD", "IDENT", "NUMBER", "STRING", "BOOLEAN", "COMPOP", "PUNCT"]

BOOLEAN_WORDS = frozenset({"TRUE", "FALSE"})
IDENTIFIER_PATTERN = re.compile(r"[A-Za-z_][A-Za-z0-9_:.]*")

_ESCAPE_PATTERN = re.compile(r"\\(.)", re.DOTALL)


@dataclass(frozen=True, slots=True)
class Token:
    """One lexical token with its zero-based source position.

    ``value`` is the decoded content: keywords and booleans are upper-cased,
    strings have their quotes removed and escapes resolved, everything else
    keeps the source text.
    """

    kind: TokenKind
    value: str
    text: str
    line: int
    column: int

    def describe(self) -> str:
        """Short human readable form used in error messages."""
        if self.kind == "STRING":
            return f"string {self.text}"
        return repr(self.text)


def _parse_line_and_column(line_info: str) -> tuple[int, int]:
    """Parse line and column from parsy line info string."""
    line_text, sep, column_text = line_info.partition(":")
    if sep == "":
        return (0, 0)
    if not line_text.isdigit() or not column_text.isdigit():
        return (0, 0)
    return (int(line_text), int(column_text))


def format_error_pointer(text: str, line: int, column: int) -> str:
    """Render the offending source line with a caret under the column."""
    lines = text.splitlines()
    if not lines:
        lines = [text]
    error_line = lines[line] if 0 <= line < len(lines) else lines[-1]
    pointer = " " * max(column, 0) + "^"
    return f"{error_line}\n{pointer}"


def end_position(text: str) -> tuple[int, int]:
    """Return the zero-based line and column just past the last character."""
    lines = text.split("\n")
    return (len(lines) - 1, len(lines[-1]))


def _decode_string(raw: str) -> str:
    body = raw[1:-1]
    return _ESCAPE_PATTERN.sub(
        lambda match: match.group(1) if match.group(1) in "\"'\\" else match.group(0),
        body,
    )


def _classify_word(word: str) -> tuple[TokenKind, str]:
    upper = word.upper()
    if upper in TEXT_KEYWORDS:
        return ("KEYWORD", upper)
    if upper in BOOLEAN_WORDS:
        return ("BOOLEAN", upper)
    return ("IDENT", word)


def _token(kind: TokenKind, parser: Parser) -> Parser:
    """Wrap a character parser so it yields a positioned Token."""
    return parser.mark().combine(
        lambda start, text, _end: Token(kind, text, text, start[0], start[1])
    )


def _build_lexer() -> Parser:
    whitespace = regex(r"\s*")
    number = _token(
        "NUMBER",
        regex(r"[-+]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][-+]?\d+)?(?![A-Za-z0-9_])").desc("number"),
    )
    string_literal = (
        regex(r'"(?:[^"\\]|\\.)*"', re.DOTALL) | regex(r"'(?:[^'\\]|\\.)*'", re.DOTALL)
    ).desc("string")
    string_token = string_literal.mark().combine(
        lambda start, text, _end: Token("STRING", _decode_string(text), text, start[0], start[1])
    )

    def _word_token(start: tuple[int, int], text: str, _end: tuple[int, int]) -> Token:
        kind, value = _classify_word(text)
        return Token(kind, value, text, start[0], start[1])

    word = IDENTIFIER_PATTERN.pattern
    word_token = regex(word).desc("identifier").mark().combine(_word_token)
    compop = _token("COMPOP", regex(r"<>|<=|>=|[=<>]").desc("comparison operator"))
    punct = _token("PUNCT", regex(r"[(),\[\]/]").desc("punctuation"))

    token = number | string_token | word_token | compop | punct
    return whitespace >> (token << whitespace).many() << eof


LEXER = _build_lexer()


def tokenize(text: str) -> list[Token]:
    """Split CQL2-Text into tokens, raising FilterLexError on a stray character."""
    try:
        result = LEXER.parse(text)
    except ParseError as exc:
        line, column = _parse_line_and_column(exc.line_info())
        character = text[exc.index] if exc.index < len(text) else ""
        if character in "\"'":
            reason = "Unterminated string literal"
        else:
            reason = f"Unexpected character {character!r}"
        message = (
            f"{reason} at line {line + 1}, column {column + 1}\n\n"
            f"{format_error_pointer(text, line, column)}"
        )
        raise FilterLexError(message, character, line, column) from exc
    return list(result)


def kind_item(kind: TokenKind, description: str) -> Parser:
    """Token-stream parser matching any token of one kind."""
    return test_item(lambda token: isinstance(token, Token) and token.kind == kind, description)


def keyword_item(name: str) -> Parser:
    """Token-stream parser matching one reserved keyword."""
    return test_item(
        lambda token: isinstance(token, Token) and token.kind == "KEYWORD" and token.value == name,
        name,
    )


def punct_item(symbol: str) -> Parser:
    """Token-stream parser matching one punctuation character."""
    return test_item(
        lambda token: isinstance(token, Token) and token.kind == "PUNCT" and token.value == symbol,
        repr(symbol),
    )


def word_item(*names: str) -> Parser:
    """Token-stream parser matching an identifier spelled as one of names.

    Matching is case-insensitive; names must be given upper-cased.
    """
    allowed = frozenset(names)
    description = names[0] if len(names) == 1 else "one of " + ", ".join(sorted(names))
    return test_item(
        lambda token: (
            isinstance(token, Token) and token.kind == "IDENT" and token.value.upper() in allowed
        ),
        description,
    )
