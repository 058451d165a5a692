"""Tokenizer for AIR source text.

``#`` starts a comment only when it is the first non-blank character on a
line and no bracket is open. Everywhere else it is the ref operator, or part
of a hex colour when it directly follows ``:`` or ``,``.

The lexer never raises: characters it does not understand become ``symbol``
tokens and the parser reports them with their position.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from airc.logging_config import get_logger


logger = get_logger("lexer")


class TokenKind(StrEnum):
    """Kinds of lexical tokens."""

    AT_KEYWORD = "at_keyword"
    IDENTIFIER = "identifier"
    TYPE_KEYWORD = "type_keyword"
    OPERATOR = "operator"
    HASH = "hash"
    COLON = "colon"
    COMMA = "comma"
    OPEN_PAREN = "open_paren"
    CLOSE_PAREN = "close_paren"
    OPEN_BRACE = "open_brace"
    CLOSE_BRACE = "close_brace"
    OPEN_BRACKET = "open_bracket"
    CLOSE_BRACKET = "close_bracket"
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    NEWLINE = "newline"
    SYMBOL = "symbol"
    EOF = "eof"


@dataclass(frozen=True, slots=True)
class Token:
    """One lexical token with its 1-based source position."""

    kind: TokenKind
    value: str
    line: int
    col: int


TYPE_KEYWORDS = frozenset({"str", "int", "float", "bool", "date", "datetime", "enum"})
OPERATOR_CHARS = frozenset(">|+?*!~^./-$<")
STRUCTURAL_TOKENS: dict[str, TokenKind] = {
    "(": TokenKind.OPEN_PAREN,
    ")": TokenKind.CLOSE_PAREN,
    "{": TokenKind.OPEN_BRACE,
    "}": TokenKind.CLOSE_BRACE,
    "[": TokenKind.OPEN_BRACKET,
    "]": TokenKind.CLOSE_BRACKET,
    ",": TokenKind.COMMA,
    ":": TokenKind.COLON,
}
OPENERS = frozenset("({[")
CLOSERS = frozenset(")}]")
HEX_COLOR_LENGTHS = frozenset({3, 4, 6, 8})
HEX_DIGITS = frozenset("0123456789abcdefABCDEF")


def _is_ident_start(ch: str) -> bool:
    return ch.isascii() and (ch.isalpha() or ch == "_")


def _is_ident_char(ch: str) -> bool:
    return _is_ident_start(ch) or ch.isdigit() or ch == "-"


class _Scanner:
    """Single-pass cursor over the source text."""

    def __init__(self, source: str) -> None:
        self.src = source
        self.pos = 0
        self.line = 1
        self.col = 1
        self.tokens: list[Token] = []
        self.line_start = True
        self.depth = 0

    def peek(self, offset: int = 0) -> str:
        idx = self.pos + offset
        return self.src[idx] if idx < len(self.src) else ""

    def advance(self) -> str:
        ch = self.src[self.pos]
        self.pos += 1
        self.col += 1
        return ch

    def push(self, kind: TokenKind, value: str, line: int, col: int) -> None:
        self.tokens.append(Token(kind, value, line, col))

    def last_kind(self) -> TokenKind | None:
        return self.tokens[-1].kind if self.tokens else None

    def run(self) -> list[Token]:
        while self.pos < len(self.src):
            ch = self.peek()
            if ch in " \t\r":
                self.advance()
                continue
            if ch == "\n":
                self._newline()
                continue
            if ch == "#" and self.line_start and self.depth == 0:
                self._skip_comment()
                continue

            self.line_start = False
            if ch == '"':
                self._string()
            elif ch == "@":
                self._at_keyword()
            elif ch == "#":
                self._hash()
            elif ch.isdigit():
                self._number()
            elif ch in STRUCTURAL_TOKENS:
                self._structural(ch)
            elif ch in OPERATOR_CHARS:
                self.push(TokenKind.OPERATOR, ch, self.line, self.col)
                self.advance()
            elif _is_ident_start(ch):
                self._identifier()
            else:
                self.push(TokenKind.SYMBOL, ch, self.line, self.col)
                self.advance()

        if self.last_kind() == TokenKind.NEWLINE:
            self.tokens.pop()
        self.push(TokenKind.EOF, "", self.line, self.col)
        return self.tokens

    def _newline(self) -> None:
        if self.tokens and self.last_kind() != TokenKind.NEWLINE:
            self.push(TokenKind.NEWLINE, "\n", self.line, self.col)
        self.pos += 1
        self.line += 1
        self.col = 1
        self.line_start = True

    def _skip_comment(self) -> None:
        while self.pos < len(self.src) and self.src[self.pos] != "\n":
            self.advance()

    def _structural(self, ch: str) -> None:
        if ch in OPENERS:
            self.depth += 1
        elif ch in CLOSERS:
            self.depth = max(0, self.depth - 1)
        self.push(STRUCTURAL_TOKENS[ch], ch, self.line, self.col)
        self.advance()

    def _string(self) -> None:
        line, col = self.line, self.col
        start = self.pos
        self.advance()
        chars: list[str] = []
        while self.pos < len(self.src) and self.peek() != '"':
            if self.peek() == "\n":
                break
            if self.peek() == "\\" and self.pos + 1 < len(self.src):
                self.advance()
            chars.append(self.advance())
        if self.peek() != '"':
            # Unterminated: hand the raw text to the parser as an error token.
            self.push(TokenKind.SYMBOL, self.src[start : self.pos], line, col)
            return
        self.advance()
        self.push(TokenKind.STRING, "".join(chars), line, col)

    def _at_keyword(self) -> None:
        line, col = self.line, self.col
        self.advance()
        name: list[str] = []
        while self.pos < len(self.src) and _is_ident_char(self.peek()):
            name.append(self.advance())
        self.push(TokenKind.AT_KEYWORD, "@" + "".join(name), line, col)

    def _hex_color_length(self) -> int:
        count = 0
        while self.peek(1 + count) in HEX_DIGITS:
            count += 1
        if count not in HEX_COLOR_LENGTHS:
            return 0
        follower = self.peek(1 + count)
        if follower and _is_ident_char(follower):
            return 0
        if self.last_kind() not in (TokenKind.COLON, TokenKind.COMMA):
            return 0
        return count

    def _hash(self) -> None:
        line, col = self.line, self.col
        length = self._hex_color_length()
        if length == 0:
            self.push(TokenKind.HASH, "#", line, col)
            self.advance()
            return
        self.advance()
        digits = "".join(self.advance() for _ in range(length))
        self.push(TokenKind.STRING, "#" + digits, line, col)

    def _number(self) -> None:
        line, col = self.line, self.col
        chars: list[str] = []
        while self.peek().isdigit():
            chars.append(self.advance())
        if self.peek() == "." and self.peek(1).isdigit():
            chars.append(self.advance())
            while self.peek().isdigit():
                chars.append(self.advance())
        if self.peek() and _is_ident_start(self.peek()):
            while self.peek() and _is_ident_char(self.peek()):
                chars.append(self.advance())
            self.push(TokenKind.IDENTIFIER, "".join(chars), line, col)
            return
        self.push(TokenKind.NUMBER, "".join(chars), line, col)

    def _identifier(self) -> None:
        line, col = self.line, self.col
        chars: list[str] = []
        while self.peek() and _is_ident_char(self.peek()):
            chars.append(self.advance())
        word = "".join(chars)
        if word in ("true", "false"):
            kind = TokenKind.BOOLEAN
        elif word in TYPE_KEYWORDS:
            kind = TokenKind.TYPE_KEYWORD
        else:
            kind = TokenKind.IDENTIFIER
        self.push(kind, word, line, col)


def tokenize(source: str) -> list[Token]:
    """Split AIR source text into tokens terminated by an ``eof`` token."""
    tokens = _Scanner(source).run()
    logger.info("Tokenized %d characters into %d tokens", len(source), len(tokens))
    return tokens
