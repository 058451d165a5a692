"""JS expression helpers for the UI backend: refs, pipes, labels and page matching."""

from __future__ import annotations

import json
import re
from collections.abc import Sequence
from dataclasses import dataclass

from airc.language.ast import Binary, BinaryOp, Element, Text, UINode, Unary, UnaryOp, Value, node_to_string
from airc.language.blocks import AirType, ArrayType, EnumType, Field, ObjectType, OptionalType
from airc.transpiler.bind import resolve_bind_chain
from airc.transpiler.context import Context
from airc.transpiler.naming import capitalize, split_camel
from airc.transpiler.ui.scope import Scope


_TEXT_REF = re.compile(r"#(\w+(?:\.\w+)*(?:\|!?\w+(?:\.\w+)*)*)")
_ARG_REF = re.compile(r"#(\w+(?:\.\w+)*)")
_TRAILING_OPERATORS = re.compile(r"[-+*/]+$")
_COLLECTION_ROOT = re.compile(r"\[?(?:\.\.\.)?(\w+)")

ENUM_FILTER = "_item => filter === 'all' || _item.category === filter || _item.done === (filter === 'done')"
SORT_COMPARATOR = (
    "(a, b) => sort === 'newest' ? b.id - a.id : sort === 'oldest' ? a.id - b.id"
    " : sort === 'highest' ? b.amount - a.amount : a.amount - b.amount"
)

# Keyword groups mapped to candidate page names, in priority order
CTA_SYNONYMS: tuple[tuple[tuple[str, ...], tuple[str, ...]], ...] = (
    (("portfolio", "work", "gallery", "projects"), ("gallery", "portfolio")),
    (
        ("book", "session", "schedule", "appointment", "touch", "reach", "inquire", "inquiry", "contact"),
        ("booking", "contact", "book"),
    ),
    (("package", "pricing", "price", "plan"), ("packages", "pricing")),
    (("faq", "question", "help"), ("faq",)),
)


@dataclass(frozen=True, slots=True)
class ResolvedElement:
    element: str
    modifiers: tuple[str, ...] = ()
    children: tuple[UINode, ...] = ()


def js_literal(value: object) -> str:
    return json.dumps(value, ensure_ascii=False)


def escape_text(text: str) -> str:
    """Make literal text safe as JSX children."""
    return (
        text.replace("{", "&#123;").replace("}", "&#125;").replace("<", "&lt;").replace(">", "&gt;")
    )


def escape_attr(text: str) -> str:
    return text.replace("&", "&amp;").replace('"', "&quot;").replace("<", "&lt;").replace(">", "&gt;")


def class_attr(class_name: str) -> str:
    return f' className="{class_name}"' if class_name else ""


def derive_label(name: str) -> str:
    """``first_name`` -> ``First Name``, ``dueDate`` -> ``Due Date``."""
    if "_" in name:
        return " ".join(capitalize(word) for word in name.split("_"))
    return capitalize(" ".join(split_camel(name)))


def collection_root(data_expr: str) -> str:
    """State name a data expression iterates: ``[...tasks].sort(...)`` -> ``tasks``."""
    match = _COLLECTION_ROOT.match(data_expr)
    return match.group(1) if match else "items"


def derive_empty_label(data_expr: str | None) -> str:
    """Empty-state text from the source collection's name.

    Spread, pipe and member syntax around the root name is dropped, camelCase
    is split and lowercased: ``openTickets.filter(...)`` -> ``No open tickets
    yet``, ``[...tasks].sort(...)`` -> ``No tasks yet``.
    """
    if not data_expr:
        return "No items yet"
    base = collection_root(data_expr)
    words = re.sub(r"([A-Z])", r" \1", base).strip().lower()
    if not words:
        return "No items yet"
    return f"No {words} yet"


def state_field(name: str, context: Context) -> Field | None:
    return context.state_field(name.split(".")[0])


def deep_type(air_type: AirType, path: str) -> AirType | None:
    """Type at a dotted path into a state field (``form.status``)."""
    current = air_type
    for part in path.split(".")[1:]:
        while isinstance(current, OptionalType):
            current = current.of
        if not isinstance(current, ObjectType):
            return None
        match = next((f for f in current.fields if f.name == part), None)
        if match is None:
            return None
        current = match.type
    return current


def _enum_named(air_type: AirType, name: str) -> EnumType | None:
    if isinstance(air_type, EnumType):
        return air_type
    if isinstance(air_type, ArrayType):
        air_type = air_type.of
    if isinstance(air_type, ObjectType):
        for f in air_type.fields:
            if f.name == name and isinstance(f.type, EnumType):
                return f.type
    return None


def find_enum_values(state_ref: str, modifiers: Sequence[str], context: Context) -> tuple[str, ...]:
    """Enum options for a state reference, or for an enum field named by a modifier."""
    found = state_field(state_ref, context)
    if found is not None:
        resolved = deep_type(found.type, state_ref.replace("?.", "."))
        while isinstance(resolved, OptionalType):
            resolved = resolved.of
        if isinstance(resolved, EnumType) and resolved.values:
            return resolved.values
    for modifier in modifiers:
        for candidate in context.state:
            enum = _enum_named(candidate.type, modifier)
            if enum is not None:
                return enum.values
    return ()


def setter(name: str) -> str:
    return f"set{capitalize(name)}"


def setter_from_ref(ref: str) -> str:
    """Setter call target for a state path; dotted paths update one key."""
    root, _, rest = ref.partition(".")
    if not rest:
        return setter(root)
    return f"((v) => {setter(root)}(prev => ({{ ...prev, {rest}: v }})))"


def resolve_ref(node: UINode, scope: Scope) -> str:
    match node:
        case Element(name=name):
            return _TRAILING_OPERATORS.sub("", name)
        case Binary(op=BinaryOp.DOT, left=left, right=right):
            return f"{resolve_ref(left, scope)}.{resolve_ref(right, scope)}"
        case Unary(op=UnaryOp.REF, operand=operand):
            return resolve_ref(operand, scope)
        case Text(text=text):
            return js_literal(text)
        case Value(value=value):
            return js_literal(value)
    return node_to_string(node)


def unref(node: UINode) -> UINode:
    """Strip one ``#``."""
    if isinstance(node, Unary) and node.op == UnaryOp.REF:
        return node.operand
    return node


def resolve_value(node: UINode, scope: Scope) -> str:
    """JS expression for a bound value: refs, currency, dots and simple pipes."""
    match node:
        case Unary(op=UnaryOp.REF, operand=operand):
            return resolve_ref(operand, scope)
        case Unary(op=UnaryOp.CURRENCY, operand=operand):
            return f"'$' + {resolve_value(operand, scope)}"
        case Binary(op=BinaryOp.DOT):
            return resolve_ref(node, scope)
        case Binary(op=BinaryOp.PIPE, left=left, right=right):
            return _aggregate(resolve_value(left, scope), right, simple=True)
    return resolve_ref(node, scope)


def _pipe_args(node: Element) -> list[str]:
    return [child.name if isinstance(child, Element) else node_to_string(child) for child in node.children]


def _aggregate(source: str, right: UINode, simple: bool = False) -> str:
    """``sum``/``avg``/``count`` over ``source``; anything else passes through."""
    if not isinstance(right, Element):
        return source
    args = _pipe_args(right)
    item = f"x.{args[0]}" if args else "x"
    match right.name:
        case "sum":
            return f"{source}.reduce((s, x) => s + {item}, 0)"
        case "avg":
            return f"({source}.length ? {source}.reduce((s, x) => s + {item}, 0) / {source}.length : 0)"
        case "count":
            return f"{source}.length"
    return f"{source}.{right.name}" if simple else source


def resolve_pipe(node: Binary, context: Context, scope: Scope) -> str:
    """JS expression for a ``source | fn`` chain.

    filter applies the enum ``filter`` state when one is declared, sort
    applies the ``sort`` state, search matches every field against
    ``search``; sum, avg and count reduce.
    """
    source = pipe_source(node.left, context, scope)
    right = node.right
    if isinstance(right, Binary) and right.op == BinaryOp.PIPE:
        inner = resolve_pipe(Binary(BinaryOp.PIPE, node.left, right.left), context, scope)
        return resolve_pipe(Binary(BinaryOp.PIPE, Text(inner), right.right), context, scope)
    if not isinstance(right, Element):
        return source
    match right.name:
        case "filter":
            declared = context.state_field("filter")
            if declared is not None and isinstance(declared.type, EnumType):
                return f"{source}.filter({ENUM_FILTER})"
            return source
        case "sort":
            if context.state_field("sort") is not None:
                return f"[...{source}].sort({SORT_COMPARATOR})"
            return source
        case "search":
            return (
                f"{source}.filter(_item => Object.values(_item).some("
                "v => String(v).toLowerCase().includes(search.toLowerCase())))"
            )
        case "sum" | "avg" | "count":
            return _aggregate(source, right)
    return f"{source} /* |{right.name} */"


def pipe_source(node: UINode, context: Context, scope: Scope) -> str:
    match node:
        case Text(text=text):
            return text
        case Element(name=name):
            return name
        case Unary(op=UnaryOp.REF, operand=operand):
            return resolve_ref(operand, scope)
        case Unary(op=UnaryOp.CURRENCY, operand=operand):
            return pipe_source(operand, context, scope)
        case Binary(op=BinaryOp.DOT):
            return resolve_ref(node, scope)
        case Binary(op=BinaryOp.PIPE):
            return resolve_pipe(node, context, scope)
        case Binary(op=BinaryOp.BIND):
            resolved = resolve_bind_chain(node)
            if resolved is not None and resolved.binding is not None:
                return pipe_source(resolved.binding, context, scope)
    return node_to_string(node)


def data_source(node: UINode, context: Context, scope: Scope) -> str:
    """Collection expression feeding an iteration (``list>tasks|filter>*t``)."""
    match node:
        case Binary(op=BinaryOp.FLOW, right=right):
            return data_source(right, context, scope)
        case Binary(op=BinaryOp.PIPE):
            return resolve_pipe(node, context, scope)
        case Element(name=name):
            return name
        case Unary(op=UnaryOp.REF, operand=operand):
            return resolve_ref(operand, scope)
    return "items"


def base_array_name(node: UINode) -> str:
    match node:
        case Binary(op=BinaryOp.FLOW, right=right):
            return base_array_name(right)
        case Binary(op=BinaryOp.PIPE, left=left):
            return base_array_name(left)
        case Unary(op=UnaryOp.REF, operand=operand):
            return base_array_name(operand)
        case Element(name=name):
            return name
    return "items"


def interpolate_text(text: str, context: Context) -> str:
    """JS string for literal text; ``#refs`` become template substitutions."""
    if "#" not in text:
        return js_literal(text)

    def substitute(match: re.Match[str]) -> str:
        expr, *pipes = match.group(1).split("|")
        root, _, rest = expr.partition(".")
        declared = context.state_field(root)
        if rest and declared is not None and isinstance(declared.type, OptionalType):
            expr = f"{root}?.{rest}"
        for pipe in pipes:
            if pipe.startswith("!"):
                name, _, tail = pipe[1:].partition(".")
                expr = f"{expr}.filter(i => !i.{name})"
                if tail:
                    expr = f"{expr}.{tail}"
            else:
                expr = f"{expr}.{pipe}"
        return "${" + expr + "}"

    escaped = text.replace("\\", "\\\\").replace("`", "\\`")
    return "`" + _TEXT_REF.sub(substitute, escaped) + "`"


def action_name(node: UINode) -> str:
    match node:
        case Unary(op=UnaryOp.MUTATE, operand=operand):
            return action_name(operand)
        case Element(name=name):
            return name
        case Binary(op=BinaryOp.DOT, left=left, right=right):
            left_name = left.name if isinstance(left, Element) else ""
            right_name = right.name if isinstance(right, Element) else ""
            return f"{left_name}_{right_name}"
    return "action"


def _raw_argument(raw: str) -> str:
    if raw.startswith("{{") and not raw.startswith("{{{"):
        raw = raw[1:]
    if raw.startswith("{"):
        if not raw.endswith("}"):
            raw += "}"
        return _ARG_REF.sub(lambda m: "e.target.value" if m.group(1) == "val" else m.group(1), raw)
    if raw.startswith("["):
        return raw
    return js_literal(raw)


def action_args(node: UINode, scope: Scope) -> str:
    """Comma-joined JS arguments of ``!name(args)``."""
    if isinstance(node, Unary) and node.op == UnaryOp.MUTATE:
        node = node.operand
    if not isinstance(node, Element) or not node.children:
        return ""
    args = []
    for child in node.children:
        if isinstance(child, Text):
            args.append(_raw_argument(child.text))
        else:
            args.append(resolve_value(child, scope))
    return ", ".join(args)


def try_resolve_element(node: UINode) -> ResolvedElement | None:
    """Element name, modifiers and children of a plain element or bind chain."""
    if isinstance(node, Element):
        return ResolvedElement(node.name, (), node.children)
    resolved = resolve_bind_chain(node)
    if resolved is not None:
        return ResolvedElement(resolved.element, resolved.modifiers, resolved.children)
    return None


def match_cta_to_page(text: str, context: Context) -> str | None:
    """Page a call-to-action button navigates to, or None.

    Priority: exact page name, then a public page named inside the text, then
    synonym groups (public candidates first), then any page named inside the
    text.
    """
    pages = context.pages
    if not pages:
        return None
    public = context.public_pages
    lower = text.lower()
    if lower in pages:
        return lower
    for page in public:
        if page in lower:
            return page
    for keywords, candidates in CTA_SYNONYMS:
        if any(keyword in lower for keyword in keywords):
            for candidate in candidates:
                if candidate in public:
                    return candidate
            for candidate in candidates:
                if candidate in pages:
                    return candidate
    for page in pages:
        if page in lower:
            return page
    return None


def is_array_state(name: str, context: Context) -> bool:
    declared = context.state_field(name)
    return declared is not None and isinstance(declared.type, ArrayType)
