"""AST nodes for AIR documents."""

from __future__ import annotations

from dataclasses import dataclass, fields, is_dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Literal, TypeAlias


if TYPE_CHECKING:
    from airc.language.blocks import Block


class UnaryOp(StrEnum):
    """Prefix operators of the UI grammar."""

    REF = "#"
    MUTATE = "!"
    ITERATE = "*"
    CONDITION = "?"
    CURRENCY = "$"
    ASYNC = "~"
    EMIT = "^"


class BinaryOp(StrEnum):
    """Binary operators of the UI grammar, loosest first."""

    COMPOSE = "+"
    FLOW = ">"
    PIPE = "|"
    BIND = ":"
    DOT = "."


ScopeKind: TypeAlias = Literal["page", "section"]


@dataclass(frozen=True, slots=True)
class UINode:
    """Base UI tree node."""


@dataclass(frozen=True, slots=True)
class Text(UINode):
    """Literal text, raw ``{...}``/``[...]`` groups and ``/paths``."""

    text: str


@dataclass(frozen=True, slots=True)
class Value(UINode):
    """Number, boolean or bare-operator literal."""

    value: int | float | bool | str


@dataclass(frozen=True, slots=True)
class Element(UINode):
    """Named element with optional parenthesized children."""

    name: str
    children: tuple[UINode, ...] = ()


@dataclass(frozen=True, slots=True)
class Scoped(UINode):
    """``@page:name(...)`` or ``@section:name(...)``."""

    scope: ScopeKind
    name: str
    children: tuple[UINode, ...] = ()


@dataclass(frozen=True, slots=True)
class Unary(UINode):
    """Prefix operator applied to one operand."""

    op: UnaryOp
    operand: UINode


@dataclass(frozen=True, slots=True)
class Binary(UINode):
    """Binary operator applied to two operands."""

    op: BinaryOp
    left: UINode
    right: UINode


@dataclass(frozen=True, slots=True)
class AirApp:
    """Parsed document: app name plus its blocks in source order."""

    name: str
    blocks: tuple[Block, ...]


def node_to_string(node: UINode) -> str:
    """Render a node back to compact source-like text."""
    match node:
        case Text(text=text):
            return text
        case Value(value=value):
            if isinstance(value, bool):
                return "true" if value else "false"
            return str(value)
        case Element(name=name):
            return name
        case Unary(op=op, operand=operand):
            return f"{op}{node_to_string(operand)}"
        case Binary(op=op, left=left, right=right):
            return f"{node_to_string(left)}{op}{node_to_string(right)}"
        case Scoped(scope=scope, name=name):
            return f"@{scope}:{name}"
    raise TypeError(f"Unknown UI node: {node!r}")


def walk(nodes: tuple[UINode, ...] | list[UINode]) -> list[UINode]:
    """Return every node of the given forest in depth-first pre-order."""
    result: list[UINode] = []
    stack = list(reversed(nodes))
    while stack:
        node = stack.pop()
        result.append(node)
        match node:
            case Element(children=children) | Scoped(children=children):
                stack.extend(reversed(children))
            case Unary(operand=operand):
                stack.append(operand)
            case Binary(left=left, right=right):
                stack.append(right)
                stack.append(left)
    return result


def to_data(value: object) -> object:
    """JSON-ready view of an AST or block record, tagged with its class name."""
    if is_dataclass(value) and not isinstance(value, type):
        data: dict[str, object] = {"class": type(value).__name__}
        for item in fields(value):
            data[item.name] = to_data(getattr(value, item.name))
        return data
    if isinstance(value, tuple | list):
        return [to_data(item) for item in value]
    if isinstance(value, dict):
        return {str(key): to_data(item) for key, item in value.items()}
    if isinstance(value, StrEnum):
        return str(value)
    return value
