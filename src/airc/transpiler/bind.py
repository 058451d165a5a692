"""Bind-chain resolution for ``element:modifier:...:operand`` expressions."""

from __future__ import annotations

from dataclasses import dataclass

from airc.language.ast import Binary, BinaryOp, Element, Text, UINode, Unary, UnaryOp, Value


@dataclass(frozen=True, slots=True)
class BindResult:
    """One element plus its modifiers and the classified trailing operand."""

    element: str
    modifiers: tuple[str, ...] = ()
    binding: UINode | None = None
    action: UINode | None = None
    label: str | None = None
    children: tuple[UINode, ...] = ()


def _flatten(node: UINode) -> list[UINode]:
    parts: list[UINode] = []
    current = node
    while isinstance(current, Binary) and current.op == BinaryOp.BIND:
        parts.append(current.right)
        current = current.left
    parts.append(current)
    parts.reverse()
    return parts


def resolve_bind_chain(node: UINode) -> BindResult | None:
    """Resolve a left-nested ``:`` chain, or return None for anything else.

    Element parts after the head accumulate as modifiers left to right and
    donate their children. A ``!`` operand is the action, text is the label,
    and any other operand (refs, currency, dots, pipes) is the binding.
    """
    if not (isinstance(node, Binary) and node.op == BinaryOp.BIND):
        return None
    head, *rest = _flatten(node)
    if not isinstance(head, Element):
        return None

    modifiers: list[str] = []
    children: list[UINode] = list(head.children)
    binding: UINode | None = None
    action: UINode | None = None
    label: str | None = None
    for part in rest:
        match part:
            case Element(name=name, children=part_children):
                modifiers.append(name)
                children.extend(part_children)
            case Value(value=value) if isinstance(value, int | float) and not isinstance(value, bool):
                modifiers.append(str(value))
            case Text(text=text):
                label = text
            case Unary(op=UnaryOp.MUTATE):
                action = part
            case _:
                binding = part
    return BindResult(head.name, tuple(modifiers), binding, action, label, tuple(children))
