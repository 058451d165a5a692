"""Tests for the AIR tokenizer."""

from __future__ import annotations

from airc.language import TokenKind, tokenize


def kinds(source: str) -> list[TokenKind]:
    return [token.kind for token in tokenize(source)]


def test_tokenize_app_header() -> None:
    """The app header should produce keyword, colon and identifier."""
    tokens = tokenize("@app:todo")

    assert [token.kind for token in tokens] == [
        TokenKind.AT_KEYWORD,
        TokenKind.COLON,
        TokenKind.IDENTIFIER,
        TokenKind.EOF,
    ]
    assert [token.value for token in tokens] == ["@app", ":", "todo", ""]


def test_tokenize_positions_are_one_based() -> None:
    """Token positions should count lines and columns from 1."""
    tokens = tokenize("@app:x\n@state{n:int}")

    state = tokens[4]
    assert state.value == "@state"
    assert (state.line, state.col) == (2, 1)


def test_tokenize_hex_color_after_colon_is_string() -> None:
    """A hex literal directly after a colon should lex as a string."""
    tokens = tokenize("accent:#6366f1")

    assert tokens[2].kind == TokenKind.STRING
    assert tokens[2].value == "#6366f1"


def test_tokenize_hex_color_after_comma_is_string() -> None:
    """A hex literal after a comma should lex as a string."""
    tokens = tokenize("(a,#fff)")

    assert tokens[3].kind == TokenKind.STRING
    assert tokens[3].value == "#fff"


def test_tokenize_hash_ref_is_not_color() -> None:
    """A ref after a non-separator should stay a hash token."""
    assert kinds("x>#abc") == [
        TokenKind.IDENTIFIER,
        TokenKind.OPERATOR,
        TokenKind.HASH,
        TokenKind.IDENTIFIER,
        TokenKind.EOF,
    ]


def test_tokenize_hash_with_identifier_tail_is_ref() -> None:
    """Hex digits followed by identifier characters should not form a color."""
    tokens = tokenize("bind:#feed_items")

    assert tokens[2].kind == TokenKind.HASH
    assert tokens[3].value == "feed_items"


def test_tokenize_line_comment_skipped() -> None:
    """A hash at line start outside brackets should start a comment."""
    tokens = tokenize("# a note\n@app:x")

    assert tokens[0].kind == TokenKind.AT_KEYWORD
    assert tokens[0].line == 2


def test_tokenize_hash_at_line_start_inside_parens_is_ref() -> None:
    """Inside brackets a leading hash should be the ref operator."""
    assert TokenKind.HASH in kinds("@ui(\n#count\n)")


def test_tokenize_unterminated_string_is_symbol() -> None:
    """An unterminated string should become a symbol token with the raw text."""
    tokens = tokenize('"abc')

    assert tokens[0].kind == TokenKind.SYMBOL
    assert tokens[0].value == '"abc'


def test_tokenize_string_escapes() -> None:
    """Backslash should escape the next character inside strings."""
    tokens = tokenize(r'"say \"hi\""')

    assert tokens[0].kind == TokenKind.STRING
    assert tokens[0].value == 'say "hi"'


def test_tokenize_number_with_identifier_tail() -> None:
    """Digits followed by letters should lex as one identifier."""
    tokens = tokenize("2xl")

    assert tokens[0].kind == TokenKind.IDENTIFIER
    assert tokens[0].value == "2xl"


def test_tokenize_decimal_number() -> None:
    """Decimal numbers should stay a single number token."""
    tokens = tokenize("3.5")

    assert tokens[0].kind == TokenKind.NUMBER
    assert tokens[0].value == "3.5"


def test_tokenize_dash_is_identifier_character() -> None:
    """Dashes inside words should be part of the identifier."""
    tokens = tokenize("set-null")

    assert tokens[0].kind == TokenKind.IDENTIFIER
    assert tokens[0].value == "set-null"


def test_tokenize_keywords_and_booleans() -> None:
    """Type names and booleans should get their own kinds."""
    assert kinds("str true enum") == [
        TokenKind.TYPE_KEYWORD,
        TokenKind.BOOLEAN,
        TokenKind.TYPE_KEYWORD,
        TokenKind.EOF,
    ]


def test_tokenize_collapses_blank_lines() -> None:
    """Consecutive newlines should produce one newline token and none at the end."""
    assert kinds("a\n\n\nb\n\n") == [
        TokenKind.IDENTIFIER,
        TokenKind.NEWLINE,
        TokenKind.IDENTIFIER,
        TokenKind.EOF,
    ]


def test_tokenize_unknown_character_is_symbol() -> None:
    """Characters outside the grammar should not raise."""
    tokens = tokenize("a ; b")

    assert tokens[1].kind == TokenKind.SYMBOL
    assert tokens[1].value == ";"
