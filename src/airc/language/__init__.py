"""Public API for the AIR lexer, parser and syntax tree."""

from airc.language.ast import AirApp, Binary, BinaryOp, Element, Scoped, Text, UINode, Unary, UnaryOp, Value, to_data
from airc.language.errors import AirContextError, AirError, AirParseError, AirStrictModeError
from airc.language.lexer import Token, TokenKind, tokenize
from airc.language.parser import parse, parse_tokens


__all__ = [
    "AirApp",
    "AirContextError",
    "AirError",
    "AirParseError",
    "AirStrictModeError",
    "Binary",
    "BinaryOp",
    "Element",
    "Scoped",
    "Text",
    "Token",
    "TokenKind",
    "UINode",
    "Unary",
    "UnaryOp",
    "Value",
    "parse",
    "parse_tokens",
    "to_data",
    "tokenize",
]
