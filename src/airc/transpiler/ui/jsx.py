"""Recursive JSX emitter for the ``@ui`` tree.

Every method takes the node, the :class:`Scope` and the indent in spaces and
returns JSX text already indented. Scope is only ever replaced, never
mutated, so sibling subtrees cannot see each other's iteration or form state.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass

from airc.language.ast import Binary, BinaryOp, Element, Scoped, Text, UINode, Unary, UnaryOp, Value, node_to_string, walk
from airc.language.blocks import ArrayType, EnumType
from airc.transpiler.bind import BindResult, resolve_bind_chain
from airc.transpiler.context import Context, is_auth_page
from airc.transpiler.naming import capitalize
from airc.transpiler.ui.elements import ICONS, RADIUS, ElementMapping, is_inline, map_element
from airc.transpiler.ui.expressions import (
    ResolvedElement,
    action_args,
    action_name,
    base_array_name,
    class_attr,
    collection_root,
    data_source,
    derive_empty_label,
    derive_label,
    escape_attr,
    escape_text,
    find_enum_values,
    interpolate_text,
    is_array_state,
    js_literal,
    match_cta_to_page,
    resolve_pipe,
    resolve_ref,
    resolve_value,
    setter,
    setter_from_ref,
    try_resolve_element,
    unref,
)
from airc.transpiler.ui.scope import AuthTier, Scope


AUTH_ACTIONS = frozenset({"login", "register", "signup"})
DELETE_ACTIONS = frozenset({"del", "delete", "remove"})
NUMERIC_HINTS = ("avg", "Avg", "rate", "Rate", "time", "Time", "duration", "Duration")

SELECT_CLASS = f"border border-[var(--border-input)] {RADIUS} px-3 py-2 bg-transparent"
STAT_LABEL = "text-xs font-semibold text-[var(--muted)] uppercase tracking-wider"
ACTION_BUTTON = f"bg-[var(--accent)] text-white px-4 py-2 {RADIUS} cursor-pointer hover:opacity-90 transition-colors"
LIST_ROW = f"flex gap-3 items-center bg-[var(--surface)] border border-[var(--border)] {RADIUS} px-4 py-3"
AUTH_ALERT = f"{RADIUS} bg-red-500/10 border border-red-500/30 text-red-400 px-4 py-3 text-sm"
SECTION_CLASSES = {
    "hero": "py-28 px-6 space-y-8 text-center",
    "footer": "py-8 px-6 space-y-4 border-t border-[var(--border)] text-center",
    "cta": "py-20 px-6 space-y-6 text-center",
}


def _pad(ind: int) -> str:
    return " " * ind


def _join(parts: Sequence[str]) -> str:
    return "\n".join(part for part in parts if part)


def _options(node: UINode) -> list[str]:
    children = node.children if isinstance(node, Element) else ()
    return [child.name if isinstance(child, Element) else node_to_string(child) for child in children]


def _iteration_parts(node: Unary) -> tuple[str, tuple[UINode, ...]]:
    if isinstance(node.operand, Element):
        return node.operand.name, node.operand.children
    return "item", ()


def _has_card(children: Sequence[UINode]) -> bool:
    return any(isinstance(child, Element) and child.name == "card" for child in children)


def find_first_form_action(children: Sequence[UINode]) -> str | None:
    for node in walk(list(children)):
        if isinstance(node, Unary) and node.op == UnaryOp.MUTATE:
            return action_name(node)
    return None


def page_has_form(node: Scoped) -> bool:
    for child in node.children:
        target = child.left if isinstance(child, Binary) and child.op == BinaryOp.FLOW else child
        resolved = try_resolve_element(target)
        if resolved is not None and resolved.element == "form":
            return True
    return False


def page_tier(name: str, context: Context) -> AuthTier:
    if is_auth_page(name):
        return "auth"
    if name in context.public_pages:
        return "public"
    return "protected"


@dataclass(frozen=True, slots=True)
class JsxEmitter:
    context: Context

    @property
    def has_pages(self) -> bool:
        return bool(self.context.pages)

    @property
    def has_auth_routes(self) -> bool:
        if self.context.auth is not None:
            return True
        return self.context.has_backend and any(
            route.path.endswith(("/login", "/signup", "/register")) for route in self.context.expanded_routes
        )

    @property
    def has_forgot_password(self) -> bool:
        return self.context.has_backend and any(
            route.method == "POST" and route.path.endswith(("/forgot-password", "/reset-password"))
            for route in self.context.expanded_routes
        )

    def emit(self, node: UINode, scope: Scope, ind: int) -> str:
        pad = _pad(ind)
        match node:
            case Text(text=text):
                return f"{pad}{{{interpolate_text(text, self.context)}}}"
            case Value(value=value):
                return f"{pad}{{{js_literal(value)}}}"
            case Element():
                return self.element(node, scope, ind)
            case Scoped():
                return self.scoped(node, scope, ind)
            case Unary():
                return self.unary(node, scope, ind)
            case Binary(op=BinaryOp.COMPOSE):
                return self.compose(node, scope, ind)
            case Binary(op=BinaryOp.FLOW):
                return self.flow(node, scope, ind)
            case Binary(op=BinaryOp.PIPE):
                return self.pipe(node, scope, ind)
            case Binary(op=BinaryOp.BIND):
                return self.bind(node, scope, ind)
            case Binary(op=BinaryOp.DOT):
                return self.dot(node, scope, ind)
        raise TypeError(f"Unknown UI node: {node!r}")

    def emit_all(self, nodes: Sequence[UINode], scope: Scope, ind: int) -> str:
        return _join([self.emit(node, scope, ind) for node in nodes])

    def _wrap(self, mapping: ElementMapping, inner: str, ind: int, extra: str = "") -> str:
        pad = _pad(ind)
        return f"{pad}<{mapping.tag}{class_attr(mapping.class_name)}{extra}>\n{inner}\n{pad}</{mapping.tag}>"

    # ---- shared widgets ----

    def select(self, ind: int, value: str, set_fn: str, options: Sequence[str], class_name: str = SELECT_CLASS) -> str:
        pad = _pad(ind)
        lines = [f'{pad}<select className="{class_name}" value={{{value}}} onChange={{(e) => {set_fn}(e.target.value)}}>']
        lines.extend(
            f'{pad}  <option value="{escape_attr(option)}">{escape_text(capitalize(option))}</option>' for option in options
        )
        lines.append(f"{pad}</select>")
        return "\n".join(lines)

    def tab_buttons(self, ind: int, options: Sequence[str], state: str, set_fn: str) -> str:
        pad = _pad(ind)
        active = f"${{{state} === _tab ? 'bg-[var(--accent)] text-white' : 'bg-transparent text-[var(--muted)] hover:text-[var(--fg)]'}}"
        return "\n".join(
            [
                f'{pad}<div className="flex gap-1 p-1 bg-[var(--surface)] {RADIUS}">',
                f"{pad}  {{[{', '.join(js_literal(option) for option in options)}].map((_tab) => (",
                f"{pad}    <button key={{_tab}} className={{`px-4 py-2 {RADIUS} cursor-pointer transition-colors {active}`}}"
                f" onClick={{() => {set_fn}(_tab)}}>{{_tab.replace(/_/g, ' ')}}</button>",
                f"{pad}  ))}}",
                f"{pad}</div>",
            ]
        )

    def stat(self, ind: int, label: str | None, value: str) -> str:
        pad = _pad(ind)
        if any(hint in value for hint in NUMERIC_HINTS):
            value = f"typeof ({value}) === 'number' ? ({value}).toFixed(1) : ({value})"
        lines = [f'{pad}<div className="{map_element("stat").class_name}">']
        if label is not None:
            lines.append(f'{pad}  <div className="{STAT_LABEL}">{escape_text(label)}</div>')
        lines.append(f'{pad}  <div className="text-2xl font-bold">{{{value}}}</div>')
        lines.append(f"{pad}</div>")
        return "\n".join(lines)

    def nav_button(self, ind: int, label: str, page: str) -> str:
        active = f"${{currentPage === '{page}' ? 'bg-[var(--accent)] text-white' : 'hover:bg-[var(--hover)]'}}"
        return (
            f"{_pad(ind)}<button className={{`w-full text-left px-3 py-2 {RADIUS} cursor-pointer transition-colors {active}`}}"
            f" onClick={{() => setCurrentPage('{page}')}}>{escape_text(label)}</button>"
        )

    def auth_alert(self, ind: int, action: str | None) -> str:
        if action in AUTH_ACTIONS and self.has_auth_routes:
            return f'{_pad(ind)}{{authError && <div className="{AUTH_ALERT}">{{authError}}</div>}}'
        return ""

    def iteration_block(
        self,
        ind: int,
        data: str,
        var: str,
        children: Sequence[UINode],
        scope: Scope,
        row_class: str = "list-row",
    ) -> list[str]:
        """Empty-state branch plus the mapped branch, as lines."""
        pad = _pad(ind)
        row_attr = "" if _has_card(children) else f' className="{row_class}"'
        return [
            f"{pad}{{{data}.length === 0 ? (",
            f'{pad}  <div className="empty-state">{derive_empty_label(data)}</div>',
            f"{pad}) : {data}.map(({var}) => (",
            f"{pad}  <div key={{{var}.id}}{row_attr}>",
            self.emit_all(children, scope, ind + 4),
            f"{pad}  </div>",
            f"{pad}))}}",
        ]

    def _input(
        self,
        ind: int,
        mapping: ElementMapping,
        element: str,
        ref: str,
        field_name: str,
        scope: Scope,
    ) -> str:
        pad = _pad(ind)
        plain = ref.replace("?.", ".")
        type_attr = f' type="{mapping.input_type}"' if mapping.input_type else ""
        name_attr = f' name="{field_name}"' if scope.inside_form else ""
        if element == "search" or field_name in ("search", "input") or mapping.input_type == "search":
            placeholder = "Search..."
        elif field_name in ("password", "email"):
            placeholder = f"Enter {field_name}..."
        else:
            placeholder = f"{capitalize(field_name)}..."
        inner_pad = pad + "  " if scope.inside_form else pad
        if scope.inside_form and scope.form_action in AUTH_ACTIONS:
            tag = f'{inner_pad}<input{type_attr}{name_attr} className="{mapping.class_name}" placeholder="{placeholder}" />'
        else:
            value = f"{ref} ?? ''" if ref != plain else ref
            tag = (
                f'{inner_pad}<input{type_attr}{name_attr} className="{mapping.class_name}" value={{{value}}}'
                f' onChange={{(e) => {setter_from_ref(plain)}(e.target.value)}} placeholder="{placeholder}" />'
            )
        if not scope.inside_form:
            return tag
        return "\n".join(
            [f'{pad}<div className="form-group">', f"{pad}  <label>{derive_label(field_name)}</label>", tag, f"{pad}</div>"]
        )

    # ---- elements ----

    def element(self, node: Element, scope: Scope, ind: int) -> str:
        pad = _pad(ind)
        mapping = map_element(node.name)
        match node.name:
            case "tabs":
                return self.tabs_element(node, ind)
            case "pagination":
                button = f'className="px-3 py-1 rounded border border-[var(--border-input)] hover:bg-[var(--hover)]"'
                return "\n".join(
                    [
                        f'{pad}<div className="{mapping.class_name} mt-4">',
                        f"{pad}  <button {button}>&laquo; Prev</button>",
                        f'{pad}  <span className="px-3 py-1">1</span>',
                        f"{pad}  <button {button}>Next &raquo;</button>",
                        f"{pad}</div>",
                    ]
                )
            case "spinner":
                return f'{pad}<div className="{mapping.class_name}"></div>'
            case "logo":
                return f'{pad}<div className="{mapping.class_name}">&#9889;</div>'
            case "table":
                return self.table(node.children, scope, ind)
            case "plan" if node.children:
                return self.plan(node, ind)
        if not node.children:
            return self.empty_element(mapping, node.name, (), scope, ind)
        if node.name == "row" and len(node.children) > 1 and all(self._is_stat(child) for child in node.children):
            columns = len(node.children)
            grid = (
                "grid grid-cols-2 gap-4"
                if columns <= 2
                else "grid grid-cols-1 md:grid-cols-3 gap-4"
                if columns <= 3
                else "grid grid-cols-1 md:grid-cols-2 lg:grid-cols-4 gap-4"
            )
            return f'{pad}<div className="{grid}">\n{self.emit_all(node.children, scope, ind + 2)}\n{pad}</div>'
        if node.name == "form":
            return self.form(mapping, node.children, scope, ind)
        return self.container(node.name, mapping, node.children, scope, ind)

    def container(self, name: str, mapping: ElementMapping, children: Sequence[UINode], scope: Scope, ind: int) -> str:
        if name == "grid":
            pad = _pad(ind)
            cells = []
            for child in children:
                if isinstance(child, Binary) and child.op == BinaryOp.COMPOSE:
                    inner = self.emit(child, scope, ind + 4)
                    cells.append(f'{pad}  <div className="flex flex-col gap-4">\n{inner}\n{pad}  </div>')
                else:
                    cells.append(self.emit(child, scope, ind + 2))
            return self._wrap(mapping, _join(cells), ind)
        child_scope = scope.in_nav() if name == "nav" and self.has_pages else scope
        return self._wrap(mapping, self.emit_all(children, child_scope, ind + 2), ind)

    def form(self, mapping: ElementMapping, children: Sequence[UINode], scope: Scope, ind: int, action: str | None = None, args: str = "") -> str:
        pad = _pad(ind)
        explicit = action is not None
        action = action or find_first_form_action(children)
        form_scope = scope.in_form(action)
        if explicit:
            submit = f" onSubmit={{(e) => {{ e.preventDefault(); {action}({args}); }}}}"
        elif action:
            submit = f" onSubmit={{(e) => {{ e.preventDefault(); {action}(e); }}}}"
        else:
            submit = ""
        lines = [f"{pad}<form{class_attr(mapping.class_name)}{submit}>", self.auth_alert(ind + 2, action)]
        lines.append(self.emit_all(children, form_scope, ind + 2))
        lines.append(f"{pad}</form>")
        if action == "login" and self.has_forgot_password and "forgotPassword" in self.context.pages:
            lines.append(
                f'{pad}<div className="text-center mt-2"><button type="button" className="text-sm text-[var(--accent)] hover:underline"'
                " onClick={() => setCurrentPage('forgotPassword')}>Forgot Password?</button></div>"
            )
        return _join(lines)

    def empty_element(self, mapping: ElementMapping, element: str, modifiers: Sequence[str], scope: Scope, ind: int) -> str:
        pad = _pad(ind)
        if not mapping.self_closing:
            return f"{pad}<{mapping.tag}{class_attr(mapping.class_name)}></{mapping.tag}>"
        type_attr = f' type="{mapping.input_type}"' if mapping.input_type else ""
        name = modifiers[0] if modifiers else mapping.input_type or element
        name_attr = f' name="{name}"' if scope.inside_form and mapping.tag == "input" else ""
        placeholder = ""
        if element == "search":
            placeholder = ' placeholder="Search..."'
        elif element == "input" and mapping.input_type:
            label = capitalize(modifiers[0]) if modifiers else capitalize(mapping.input_type)
            placeholder = f' placeholder="{escape_attr("Enter value" if label == "Text" else label)}..."'
        return f"{pad}<{mapping.tag}{type_attr}{name_attr}{class_attr(mapping.class_name)}{placeholder} />"

    def _is_stat(self, node: UINode) -> bool:
        if isinstance(node, Binary) and node.op == BinaryOp.FLOW:
            node = node.left
        resolved = try_resolve_element(node)
        return resolved is not None and resolved.element == "stat"

    def tabs_element(self, node: Element, ind: int) -> str:
        options = _options(node)
        enum_field = next((f for f in self.context.state if isinstance(f.type, EnumType)), None)
        if options and enum_field is not None:
            return self.tab_buttons(ind, options, enum_field.name, setter(enum_field.name))
        return f'{_pad(ind)}<div className="flex gap-1 p-1 bg-[var(--surface)] {RADIUS}"></div>'

    def table(self, children: Sequence[UINode], scope: Scope, ind: int) -> str:
        """``table(cols:[a,b], data:#rows|search)``; columns fall back to the model's fields."""
        pad = _pad(ind)
        columns: list[str] = []
        source = ""
        for child in children:
            if isinstance(child, Binary) and child.op == BinaryOp.PIPE and isinstance(child.left, Binary):
                resolved = resolve_bind_chain(child.left)
                if resolved is not None and resolved.element == "data" and resolved.binding is not None:
                    source = resolve_pipe(Binary(BinaryOp.PIPE, resolved.binding, child.right), self.context, scope)
                continue
            resolved = resolve_bind_chain(child)
            if resolved is None:
                continue
            if resolved.element == "cols" and (resolved.binding is not None or resolved.label):
                raw = resolved.label or node_to_string(resolved.binding)
                columns = [part.split(":")[0].strip() for part in raw.strip("[]").split(",") if part.strip()]
            elif resolved.element == "data" and resolved.binding is not None:
                source = resolve_value(resolved.binding, scope)
        if not columns:
            columns = self.model_columns(source) or ["Column 1", "Column 2", "Column 3"]

        lines = [
            f'{pad}<table className="w-full">',
            f"{pad}  <thead>",
            f"{pad}    <tr>",
            *(f"{pad}      <th>{escape_text(capitalize(column))}</th>" for column in columns),
            f"{pad}    </tr>",
            f"{pad}  </thead>",
            f"{pad}  <tbody>",
        ]
        if source:
            lines.extend(
                [
                    f"{pad}    {{{source}.length === 0 ? (",
                    f'{pad}      <tr><td colSpan={{{len(columns)}}}><div className="empty-state">{derive_empty_label(source)}</div></td></tr>',
                    f"{pad}    ) : {source}.map((row) => (",
                    f"{pad}      <tr key={{row.id}}>",
                    *(f"{pad}        <td>{{row.{column}}}</td>" for column in columns),
                    f"{pad}      </tr>",
                    f"{pad}    ))}}",
                ]
            )
        else:
            lines.extend([f"{pad}    <tr>", *(f"{pad}      <td>--</td>" for _ in columns), f"{pad}    </tr>"])
        lines.extend([f"{pad}  </tbody>", f"{pad}</table>"])
        return "\n".join(lines)

    def model_columns(self, source: str) -> list[str]:
        base = collection_root(source) if source else ""
        if not base:
            return []
        for model in self.context.models:
            lower = model.name.lower()
            if base in (lower, f"{lower}s") or base == lower.removesuffix("y") + "ies":
                return [
                    f.name
                    for f in model.fields
                    if not f.auto and not f.name.endswith("_id") and not isinstance(f.type, ArrayType)
                ][:6]
        return []

    def plan(self, node: Element, ind: int) -> str:
        pad = _pad(ind)
        name = ""
        price = ""
        features: list[str] = []
        for child in node.children:
            match child:
                case Text(text=text) if text.startswith("["):
                    for item in text.strip("[]").split(","):
                        feature = item.strip().removeprefix("feat:").replace("_", " ")
                        if feature:
                            features.append(feature)
                case Text(text=text) if not name:
                    name = text
                case Value(value=value) if isinstance(value, int | float) and not isinstance(value, bool):
                    price = "Free" if value == 0 else f"${value}/mo"
                case Element(name="custom"):
                    price = "Custom"
        lines = [f'{pad}<div className="{map_element("plan").class_name}">']
        if name:
            lines.append(f'{pad}  <div className="text-lg font-semibold">{escape_text(name)}</div>')
        if price:
            lines.append(f'{pad}  <div className="text-3xl font-bold">{escape_text(price)}</div>')
        if features:
            lines.append(f'{pad}  <ul className="space-y-1 text-sm">')
            lines.extend(f"{pad}    <li>&#10004; {escape_text(feature)}</li>" for feature in features)
            lines.append(f"{pad}  </ul>")
        lines.append(f"{pad}</div>")
        return "\n".join(lines)

    # ---- pages and sections ----

    def scoped(self, node: Scoped, scope: Scope, ind: int) -> str:
        pad = _pad(ind)
        if node.scope == "section":
            default = "py-8 px-6 space-y-6" if self.has_pages else "py-20 px-6 space-y-6 text-center"
            classes = SECTION_CLASSES.get(node.name, default)
            inner = self.emit_all(node.children, scope, ind + 2)
            return f'{pad}<section id="{node.name}" className="{classes}">\n{inner}\n{pad}</section>'

        tier = page_tier(node.name, self.context) if scope.auth_gating else None
        if scope.auth_tier == "protected" and tier != "protected":
            # rendered outside the authenticated shell
            return ""
        page_scope = scope.on_page(tier)
        guard = f"currentPage === '{node.name}'"
        if tier == "protected":
            guard = f"isAuthed && {guard}"
        if page_has_form(node):
            inner = self.emit_all(node.children, page_scope, ind + 6)
            return "\n".join(
                [
                    f"{pad}{{{guard} && (",
                    f'{pad}  <div className="flex items-center justify-center min-h-screen p-4">',
                    f'{pad}    <div className="w-full max-w-md space-y-6 {RADIUS} border border-[var(--border)] bg-[var(--surface)] p-8">',
                    f'{pad}      <h2 className="text-2xl font-bold text-center">{escape_text(derive_label(node.name))}</h2>',
                    inner,
                    f"{pad}    </div>",
                    f"{pad}  </div>",
                    f"{pad})}}",
                ]
            )
        if tier == "public":
            return "\n".join(
                [
                    f"{pad}{{{guard} && (",
                    f'{pad}  <div className="public-shell min-h-screen flex flex-col">',
                    self.public_header(ind + 4),
                    f'{pad}    <main className="flex-1">',
                    self.emit_all(node.children, page_scope, ind + 6),
                    f"{pad}    </main>",
                    f"{pad}  </div>",
                    f"{pad})}}",
                ]
            )
        inner = self.emit_all(node.children, page_scope, ind + 4)
        return f"{pad}{{{guard} && (\n{pad}  <div>\n{inner}\n{pad}  </div>\n{pad})}}"

    def public_header(self, ind: int) -> str:
        pad = _pad(ind)
        lines = [f'{pad}<header className="{map_element("header").class_name} px-6">']
        lines.append(f'{pad}  <div className="{map_element("logo").class_name}">{escape_text(capitalize(self.context.app_name))}</div>')
        lines.append(f'{pad}  <nav className="{map_element("nav").class_name}">')
        lines.extend(
            f"{pad}    <button className=\"{map_element('btn', ['ghost']).class_name}\" onClick={{() => setCurrentPage('{page}')}}>"
            f"{escape_text(derive_label(page))}</button>"
            for page in self.context.public_pages
        )
        login = next((page for page in self.context.pages if is_auth_page(page)), None)
        if login is not None:
            lines.append(
                f"{pad}    <button className=\"{map_element('btn', ['primary']).class_name}\" onClick={{() => setCurrentPage(isAuthed ? postLoginPage : '{login}')}}>"
                "{isAuthed ? 'Dashboard' : 'Sign in'}</button>"
            )
        lines.extend([f"{pad}  </nav>", f"{pad}</header>"])
        return "\n".join(lines)

    # ---- operators ----

    def unary(self, node: Unary, scope: Scope, ind: int) -> str:
        pad = _pad(ind)
        match node.op:
            case UnaryOp.REF:
                return f"{pad}{{{resolve_ref(node.operand, scope)}}}"
            case UnaryOp.MUTATE:
                name = action_name(node)
                type_attr = ' type="button"' if scope.inside_form else ""
                return (
                    f'{pad}<button{type_attr} className="{ACTION_BUTTON}" onClick={{() => {name}({action_args(node, scope)})}}>'
                    f"{escape_text(derive_label(name))}</button>"
                )
            case UnaryOp.ITERATE:
                var, children = _iteration_parts(node)
                data = scope.iter_data or "items"
                inner_scope = scope.iterating(var, data, scope.base_array or collection_root(data))
                return "\n".join(self.iteration_block(ind, data, var, children, inner_scope))
            case UnaryOp.CONDITION:
                condition = resolve_ref(node.operand, scope)
                return f"{pad}{{{condition} && (\n{self.emit(node.operand, scope, ind + 2)}\n{pad})}}"
            case UnaryOp.CURRENCY:
                return f"{pad}{{'$' + ({resolve_ref(unref(node.operand), scope)}).toFixed(2)}}"
            case UnaryOp.ASYNC:
                return f"{pad}{{/* async {node_to_string(node.operand)} */}}"
            case UnaryOp.EMIT:
                return f"{pad}{{/* emit {node_to_string(node.operand)} */}}"
        raise TypeError(f"Unknown unary operator: {node.op!r}")

    def _inline(self, node: UINode) -> bool:
        if isinstance(node, Text) or (isinstance(node, Unary) and node.op == UnaryOp.MUTATE):
            return True
        resolved = try_resolve_element(node)
        return resolved is not None and is_inline(resolved.element)

    def compose(self, node: Binary, scope: Scope, ind: int) -> str:
        pad = _pad(ind)
        left = node.left
        if isinstance(left, Binary) and left.op == BinaryOp.FLOW:
            header = try_resolve_element(left.left)
            if header is not None and header.element == "header":
                return self.header_with_actions(left, node.right, scope, ind)
        if self._inline(left) and self._inline(node.right):
            inner = _join([self.emit(left, scope, ind + 2), self.emit(node.right, scope, ind + 2)])
            return f'{pad}<div className="flex items-center gap-2">\n{inner}\n{pad}</div>'
        return _join([self.emit(left, scope, ind), self.emit(node.right, scope, ind)])

    def header_with_actions(self, header: Binary, right: UINode, scope: Scope, ind: int) -> str:
        """``header>"Title" + badge:...`` merges into one header."""
        pad = _pad(ind)
        mapping = map_element("header")
        right_resolved = try_resolve_element(right)
        grouped = right_resolved is not None and right_resolved.element == "badge"
        title_ind = ind + 4 if grouped else ind + 2
        if isinstance(header.right, Text):
            title = f'{_pad(title_ind)}<h1 className="text-xl font-bold">{escape_text(header.right.text)}</h1>'
        else:
            title = self.emit(header.right, scope, title_ind)
        content = self.emit(right, scope, title_ind)
        if grouped:
            inner = f'{pad}  <div className="flex items-center gap-3">\n{title}\n{content}\n{pad}  </div>'
        else:
            inner = f"{title}\n{content}"
        return self._wrap(mapping, inner, ind)

    def flow(self, node: Binary, scope: Scope, ind: int) -> str:
        pad = _pad(ind)
        left, right = node.left, node.right
        if isinstance(left, Unary) and left.op == UnaryOp.CONDITION:
            condition = resolve_ref(left.operand, scope)
            return f"{pad}{{{condition} && (\n{self.emit(right, scope, ind + 2)}\n{pad})}}"
        if isinstance(right, Unary) and right.op == UnaryOp.MUTATE:
            return self.element_with_action(left, right, scope, ind)
        if isinstance(right, Unary) and right.op == UnaryOp.ITERATE:
            if isinstance(left, Binary) and left.op == BinaryOp.FLOW:
                return self.flow_chain(node, scope, ind)
            source = self.iteration_source(left, scope)
            return self.container_with_iteration(left, source, right, scope, ind)

        resolved = try_resolve_element(left)
        if isinstance(right, Text) and resolved is not None:
            return self.element_with_text(left, resolved, right.text, scope, ind)
        if isinstance(right, Unary) and right.op == UnaryOp.CURRENCY and resolved is not None:
            ref = resolve_ref(unref(right.operand), scope)
            label = self._bind_label(left)
            if resolved.element == "stat" and label is not None:
                return self.stat(ind, label, f"'$' + ({ref}).toFixed(2)")
            return f"{pad}<span>{{'$' + {ref}}}</span>"
        if isinstance(right, Unary) and right.op == UnaryOp.REF and resolved is not None:
            ref = resolve_ref(right.operand, scope)
            label = self._bind_label(left)
            if resolved.element == "stat" and label is not None:
                return self.stat(ind, label, ref)
            return self.flow_bound_element(resolved, ref, scope, ind)
        if isinstance(right, Binary) and right.op == BinaryOp.DOT:
            return self.flow_with_dot(left, right, scope, ind)
        if isinstance(right, Binary) and right.op == BinaryOp.PIPE and resolved is not None:
            mapping = map_element(resolved.element, resolved.modifiers)
            expr = resolve_pipe(right, self.context, scope)
            if resolved.element == "stat":
                return self.stat(ind, self._bind_label(left) or "", expr)
            return f"{pad}<{mapping.tag}{class_attr(mapping.class_name)}>{{{expr}}}</{mapping.tag}>"
        if isinstance(left, Binary) and left.op == BinaryOp.FLOW:
            return self.flow_chain(node, scope, ind)
        if resolved is not None:
            mapping = map_element(resolved.element, resolved.modifiers)
            child_scope = scope.in_nav() if resolved.element == "nav" and self.has_pages else scope
            if resolved.element == "form":
                return self.form(mapping, (*resolved.children, right), scope, ind)
            return self._wrap(mapping, self.emit(right, child_scope, ind + 2), ind)
        return _join([self.emit(left, scope, ind), self.emit(right, scope, ind + 2)])

    def _bind_label(self, node: UINode) -> str | None:
        resolved = resolve_bind_chain(node)
        return resolved.label if resolved is not None else None

    def element_with_text(self, left: UINode, resolved: ResolvedElement, text: str, scope: Scope, ind: int) -> str:
        pad = _pad(ind)
        mapping = map_element(resolved.element, resolved.modifiers)
        is_button = resolved.element in ("btn", "button")
        if is_button and scope.inside_nav:
            return self.nav_button(ind, text, text.lower())
        if is_button and self.has_pages:
            target = match_cta_to_page(text, self.context)
            if target is not None:
                return (
                    f"{pad}<button{class_attr(mapping.class_name)} onClick={{() => setCurrentPage('{target}')}}>"
                    f"{escape_text(text)}</button>"
                )
        if mapping.tag == "img":
            alt = resolved.modifiers[0] if resolved.modifiers else "image"
            return f'{pad}<img src="{escape_attr(text)}"{class_attr(mapping.class_name)} alt="{escape_attr(alt)}" />'
        if mapping.tag == "a":
            href = self._bind_label(left) or "#"
            if href.startswith("/") and self.has_pages:
                return (
                    f'{pad}<a href="#"{class_attr(mapping.class_name)} onClick={{(e) => {{ e.preventDefault(); '
                    f"setCurrentPage('{href[1:]}'); }}}}>{escape_text(text)}</a>"
                )
            external = ' target="_blank" rel="noopener noreferrer"' if href.startswith("http") else ""
            return f'{pad}<a href="{escape_attr(href)}"{class_attr(mapping.class_name)}{external}>{escape_text(text)}</a>'
        content = f"{{{interpolate_text(text, self.context)}}}" if "#" in text else escape_text(text)
        if resolved.element == "header" and any(
            isinstance(child, Element) and re.fullmatch(r"h[1-6]", child.name) for child in resolved.children
        ):
            return self._wrap(mapping, f'{pad}  <h1 className="text-xl font-bold">{content}</h1>', ind)
        return f"{pad}<{mapping.tag}{class_attr(mapping.class_name)}>{content}</{mapping.tag}>"

    def element_with_action(self, left: UINode, action: Unary, scope: Scope, ind: int) -> str:
        pad = _pad(ind)
        name = action_name(action)
        args = action_args(action, scope)
        resolved = try_resolve_element(left)
        if resolved is None:
            return f"{pad}<button onClick={{() => {name}({args})}}>{escape_text(derive_label(name))}</button>"
        mapping = map_element(resolved.element, resolved.modifiers)
        if resolved.element == "form":
            return self.form(mapping, resolved.children, scope, ind, action=name, args=args)
        if mapping.tag == "button":
            label = "".join(escape_text(child.text) for child in resolved.children if isinstance(child, Text))
            label = label or escape_text(derive_label(name))
            if scope.inside_form and scope.form_action == name:
                return f'{pad}<button type="submit" className="{mapping.class_name}">{label}</button>'
            type_attr = ' type="button"' if scope.inside_form else ""
            return f'{pad}<button{type_attr} className="{mapping.class_name}" onClick={{() => {name}({args})}}>{label}</button>'
        if mapping.tag == "input":
            type_attr = f' type="{mapping.input_type}"' if mapping.input_type else ""
            button_args = args.replace("e.target.value", "_inp.value") if args else "_inp.value"
            return "\n".join(
                [
                    f'{pad}<div className="flex gap-2">',
                    f'{pad}  <input{type_attr} className="{mapping.class_name} flex-1" placeholder="Add..."'
                    f" onKeyDown={{(e) => {{ if (e.key === 'Enter' && e.target.value) {{ {name}({args or 'e.target.value'}); e.target.value = ''; }} }}}} />",
                    f'{pad}  <button className="{ACTION_BUTTON}" onClick={{(e) => {{ const _inp = e.currentTarget.previousElementSibling;'
                    f" if (_inp?.value) {{ {name}({button_args}); _inp.value = ''; }} }}}}>{escape_text(capitalize(name))}</button>",
                    f"{pad}</div>",
                ]
            )
        if resolved.children:
            inner = self.emit_all(resolved.children, scope, ind + 2)
            return self._wrap(mapping, inner, ind, f" onClick={{() => {name}({args})}}")
        return f"{pad}<{mapping.tag}{class_attr(mapping.class_name)} onClick={{() => {name}({args})}}></{mapping.tag}>"

    def iteration_source(self, left: UINode, scope: Scope) -> str:
        """Collection for ``left>*item``: a pipe, an array state, a bound value, or the only array state."""
        if isinstance(left, Binary) and left.op == BinaryOp.PIPE:
            return resolve_pipe(left, self.context, scope)
        resolved = resolve_bind_chain(left)
        if resolved is not None and resolved.binding is not None:
            return resolve_value(resolved.binding, scope)
        source = data_source(left, self.context, scope)
        if is_array_state(collection_root(source), self.context):
            return source
        if scope.iter_data:
            return scope.iter_data
        arrays = [f.name for f in self.context.state if isinstance(f.type, ArrayType)]
        return arrays[0] if len(arrays) == 1 else "items"

    def container_with_iteration(self, left: UINode, source: str, iterate: Unary, scope: Scope, ind: int) -> str:
        pad = _pad(ind)
        container = try_resolve_element(left.left if isinstance(left, Binary) and left.op == BinaryOp.FLOW else left)
        mapping = map_element(container.element, container.modifiers) if container else ElementMapping("div")
        var, children = _iteration_parts(iterate)
        inner_scope = scope.iterating(var, source, collection_root(source))
        lines = [f"{pad}<{mapping.tag}{class_attr(mapping.class_name)}>"]
        lines.extend(self.iteration_block(ind + 2, source, var, children, inner_scope))
        lines.append(f"{pad}</{mapping.tag}>")
        return _join(lines)

    def flow_chain(self, node: Binary, scope: Scope, ind: int) -> str:
        """``a > b > c``: first part is the container, the rest is its content."""
        pad = _pad(ind)
        parts: list[UINode] = []
        current: UINode = node
        while isinstance(current, Binary) and current.op == BinaryOp.FLOW:
            parts.append(current.right)
            current = current.left
        parts.append(current)
        parts.reverse()
        container = try_resolve_element(parts[0])
        mapping = map_element(container.element, container.modifiers) if container else ElementMapping("div")

        iterate = next((p for p in parts if isinstance(p, Unary) and p.op == UnaryOp.ITERATE), None)
        if iterate is None:
            child_scope = scope.in_nav() if container and container.element == "nav" and self.has_pages else scope
            return self._wrap(mapping, self.emit_all(parts[1:], child_scope, ind + 2), ind)

        source: str | None = None
        base = "items"
        for part in parts[1:]:
            if isinstance(part, Binary) and part.op == BinaryOp.PIPE:
                source = resolve_pipe(part, self.context, scope)
                base = base_array_name(part)
            elif isinstance(unref(part), Element) and is_array_state(unref(part).name, self.context):
                source = base = unref(part).name
        data = source or base
        var, children = _iteration_parts(iterate)
        inner_scope = scope.iterating(var, data, base)
        lines = [f"{pad}<{mapping.tag}{class_attr(mapping.class_name)}>"]
        lines.extend(self.iteration_block(ind + 2, data, var, children, inner_scope, row_class=LIST_ROW))
        lines.append(f"{pad}</{mapping.tag}>")
        return _join(lines)

    def flow_bound_element(self, resolved: ResolvedElement, ref: str, scope: Scope, ind: int) -> str:
        pad = _pad(ind)
        mapping = map_element(resolved.element, resolved.modifiers)
        plain = ref.replace("?.", ".")
        if mapping.tag == "input" or resolved.element == "search":
            field_name = plain.split(".")[-1] if "." in plain else (resolved.modifiers[0] if resolved.modifiers else resolved.element)
            return self._input(ind, mapping, resolved.element, ref, field_name, scope)
        if resolved.element == "select":
            options = find_enum_values(ref, resolved.modifiers, self.context)
            return self.select(ind, ref, setter_from_ref(plain), options, mapping.class_name)
        if resolved.element == "tabs":
            options = find_enum_values(ref, resolved.modifiers, self.context)
            if options:
                return self.tab_buttons(ind, options, ref, setter_from_ref(plain))
        if resolved.element == "stat":
            return self.stat(ind, None, ref)
        if mapping.self_closing:
            return f"{pad}<{mapping.tag}{class_attr(mapping.class_name)} value={{{ref}}} />"
        return f"{pad}<{mapping.tag}{class_attr(mapping.class_name)}>{{{ref}}}</{mapping.tag}>"

    def flow_with_dot(self, left: UINode, dot: Binary, scope: Scope, ind: int) -> str:
        """``tabs>filter.set(all,done)``, ``select>status.select`` and plain dotted values."""
        pad = _pad(ind)
        resolved = try_resolve_element(left)
        state = dot.left.name if isinstance(dot.left, Element) else ""
        if state and isinstance(dot.right, Element) and dot.right.name == "set":
            options = _options(dot.right)
            if resolved is not None and resolved.element == "select":
                return self.select(ind, state, setter(state), options)
            return self.tab_buttons(ind, options, state, setter(state))
        if state and isinstance(dot.right, Element) and dot.right.name == "select":
            return self.select(ind, state, setter(state), find_enum_values(state, (), self.context))
        expr = resolve_ref(dot, scope)
        if resolved is not None:
            mapping = map_element(resolved.element, resolved.modifiers)
            return f"{pad}<{mapping.tag}{class_attr(mapping.class_name)}>{{{expr}}}</{mapping.tag}>"
        return f"{pad}{{{expr}}}"

    def pipe(self, node: Binary, scope: Scope, ind: int) -> str:
        pad = _pad(ind)
        resolved = resolve_bind_chain(node.left)
        if resolved is not None:
            mapping = map_element(resolved.element, resolved.modifiers)
            value = resolved.binding or resolved.action or node.left
            expr = resolve_pipe(Binary(BinaryOp.PIPE, value, node.right), self.context, scope)
            if resolved.element == "stat":
                return self.stat(ind, resolved.label or "", expr)
            return f"{pad}<{mapping.tag}{class_attr(mapping.class_name)}>{{{expr}}}</{mapping.tag}>"
        return f"{pad}{{{resolve_pipe(node, self.context, scope)}}}"

    def dot(self, node: Binary, scope: Scope, ind: int) -> str:
        if isinstance(node.left, Element) and isinstance(node.right, Element) and node.right.name == "select":
            options = find_enum_values(node.left.name, (), self.context)
            if options:
                return self.select(ind, node.left.name, setter(node.left.name), options)
        return f"{_pad(ind)}{{{resolve_ref(node, scope)}}}"

    def bind(self, node: Binary, scope: Scope, ind: int) -> str:
        pad = _pad(ind)
        resolved = resolve_bind_chain(node)
        if resolved is None:
            return f"{pad}{{{resolve_value(node, scope)}}}"
        mapping = map_element(resolved.element, resolved.modifiers)
        if resolved.element == "progress" and resolved.children:
            return self.progress_bar(resolved, scope, ind)
        if resolved.action is not None:
            return self.bound_action(resolved, mapping, scope, ind)
        if resolved.binding is not None:
            return self.bound_element(resolved, mapping, scope, ind)
        if resolved.label is not None:
            if resolved.element == "stat":
                return self.stat(ind, resolved.label, "'--'")
            return f"{pad}<{mapping.tag}{class_attr(mapping.class_name)}>{escape_text(resolved.label)}</{mapping.tag}>"
        if resolved.element == "nav" and resolved.children and self.has_pages:
            items = self.nav_items(resolved.children)
            if items:
                inner = "\n".join(self.nav_button(ind + 2, label, page) for label, page in items)
                return self._wrap(mapping, inner, ind)
        if resolved.element == "icon":
            name = resolved.modifiers[0] if resolved.modifiers else ""
            return f"{pad}<span{class_attr(mapping.class_name)}>{ICONS.get(name, name)}</span>"
        if resolved.element == "chart":
            kind = capitalize(resolved.modifiers[0] if resolved.modifiers else "chart")
            return "\n".join(
                [
                    f'{pad}<div className="{mapping.class_name}">',
                    f'{pad}  <div className="flex flex-col items-center gap-2 text-[var(--muted)]">',
                    f'{pad}    <span className="text-3xl opacity-40">&#128202;</span>',
                    f'{pad}    <span className="text-sm">{kind} chart</span>',
                    f"{pad}  </div>",
                    f"{pad}</div>",
                ]
            )
        if mapping.tag == "pre" and resolved.children:
            code = "\\n".join(
                child.text if isinstance(child, Text) else node_to_string(child) for child in resolved.children
            )
            code = code.replace("`", "\\`").replace("$", "\\$")
            return f"{pad}<pre{class_attr(mapping.class_name)}>{{`{code}`}}</pre>"
        if resolved.children:
            if resolved.element == "form":
                return self.form(mapping, resolved.children, scope, ind)
            return self.container(resolved.element, mapping, resolved.children, scope, ind)
        return self.empty_element(mapping, resolved.element, resolved.modifiers, scope, ind)

    def nav_items(self, children: Sequence[UINode]) -> list[tuple[str, str]]:
        items: list[tuple[str, str]] = []
        for child in children:
            if isinstance(child, Binary) and child.op == BinaryOp.FLOW and isinstance(child.right, Text):
                items.append((child.right.text, child.right.text.lower()))
                continue
            resolved = try_resolve_element(child)
            if resolved is not None and all(page != resolved.element for _, page in items):
                items.append((capitalize(resolved.element), resolved.element))
        return items

    def button_label(self, resolved: BindResult) -> str:
        if resolved.label:
            return escape_text(resolved.label)
        if "icon" in resolved.modifiers:
            return "✕"
        if resolved.action is not None:
            name = action_name(resolved.action)
            return "✕" if name in DELETE_ACTIONS else escape_text(derive_label(name))
        return "Submit" if resolved.element == "btn" else resolved.element

    def bound_action(self, resolved: BindResult, mapping: ElementMapping, scope: Scope, ind: int) -> str:
        pad = _pad(ind)
        name = action_name(resolved.action)
        args = action_args(resolved.action, scope)
        if mapping.tag != "button":
            return f"{pad}<{mapping.tag}{class_attr(mapping.class_name)} onClick={{() => {name}({args})}} />"
        if name in DELETE_ACTIONS and scope.inside_iter:
            class_name = map_element("btn", ["icon"]).class_name
        elif resolved.element == "btn" and not resolved.modifiers:
            class_name = map_element("btn", ["ghost"]).class_name
        else:
            class_name = mapping.class_name
        if scope.inside_form and scope.form_action == name:
            return f'{pad}<button type="submit" className="{class_name}">{self.button_label(resolved)}</button>'
        type_attr = ' type="button"' if scope.inside_form else ""
        return (
            f'{pad}<button{type_attr} className="{class_name}" onClick={{() => {name}({args})}}>'
            f"{self.button_label(resolved)}</button>"
        )

    def progress_bar(self, resolved: BindResult, scope: Scope, ind: int) -> str:
        pad = _pad(ind)
        value = "0"
        maximum = "100"
        for child in resolved.children:
            if isinstance(child, Binary) and child.op == BinaryOp.PIPE:
                part = resolve_bind_chain(child.left)
                if part is not None and part.element == "value" and part.binding is not None:
                    value = resolve_pipe(Binary(BinaryOp.PIPE, part.binding, child.right), self.context, scope)
                continue
            part = resolve_bind_chain(child)
            if part is None or part.binding is None:
                continue
            if part.element == "value":
                value = resolve_value(part.binding, scope)
            elif part.element == "max":
                maximum = resolve_value(part.binding, scope)
        width = f"`${{Math.min(100, ({value}) / ({maximum}) * 100)}}%`"
        return "\n".join(
            [
                f'{pad}<div className="{map_element("progress").class_name}">',
                f'{pad}  <div className="h-full bg-[var(--accent)] rounded-full transition-all" style={{{{ width: {width} }}}}></div>',
                f"{pad}</div>",
            ]
        )

    def bound_element(self, resolved: BindResult, mapping: ElementMapping, scope: Scope, ind: int) -> str:
        """Element whose trailing bind operand is a value (``input:#draft``, ``badge:#count``)."""
        pad = _pad(ind)
        binding = resolved.binding
        if resolved.element == "check" or mapping.input_type == "checkbox":
            ref = resolve_ref(unref(binding), scope)
            if scope.inside_iter and scope.iter_var:
                array = scope.base_array or "items"
                field = ref.split(".")[-1] if "." in ref else "done"
                return (
                    f'{pad}<input type="checkbox" checked={{{ref}}} onChange={{() => {setter(array)}(prev => prev.map('
                    f"_i => _i.id === {scope.iter_var}.id ? {{ ..._i, {field}: !_i.{field} }} : _i))}} />"
                )
            return f'{pad}<input type="checkbox" checked={{{ref}}} onChange={{() => {setter_from_ref(ref)}(!{ref})}} />'
        if mapping.tag == "input":
            ref = resolve_ref(unref(binding), scope)
            plain = ref.replace("?.", ".")
            field_name = plain.split(".")[-1] if "." in plain else (resolved.modifiers[0] if resolved.modifiers else resolved.element)
            return self._input(ind, mapping, resolved.element, ref, field_name, scope)
        if resolved.element == "select":
            ref = resolve_ref(unref(binding), scope)
            options = list(find_enum_values(ref, resolved.modifiers, self.context))
            if not options and resolved.children:
                options = [child.name if isinstance(child, Element) else node_to_string(child) for child in resolved.children]
            return self.select(ind, ref, setter_from_ref(ref.replace("?.", ".")), options, mapping.class_name)
        if resolved.element == "badge":
            return f"{pad}<span{class_attr(mapping.class_name)}>{{{resolve_value(binding, scope)}}}</span>"
        if resolved.element in ("text", "p"):
            class_name = f"{mapping.class_name} flex-1".strip() if scope.inside_iter else mapping.class_name
            return f"{pad}<{mapping.tag}{class_attr(class_name)}>{{{resolve_value(binding, scope)}}}</{mapping.tag}>"
        if resolved.element == "stat" and resolved.label is not None:
            return self.stat(ind, resolved.label, resolve_value(binding, scope))
        if resolved.element == "img":
            src = binding.text if isinstance(binding, Text) else node_to_string(binding)
            alt = resolved.modifiers[0] if resolved.modifiers else "image"
            if isinstance(binding, Unary) and binding.op == UnaryOp.REF:
                return f'{pad}<img src={{{resolve_ref(binding.operand, scope)}}} alt="{escape_attr(alt)}"{class_attr(mapping.class_name)} />'
            return f'{pad}<img src="{escape_attr(src)}" alt="{escape_attr(alt)}"{class_attr(mapping.class_name)} />'
        if resolved.element == "link":
            href = binding.text if isinstance(binding, Text) else binding.name if isinstance(binding, Element) else "#"
            external = ' target="_blank" rel="noopener noreferrer"' if href.startswith("http") else ""
            target = f"#{href}" if href.startswith("/") else href
            return f'{pad}<a href="{escape_attr(target)}"{class_attr(mapping.class_name)}{external}>{escape_text(resolved.label or href)}</a>'
        value = resolve_value(binding, scope)
        if mapping.self_closing:
            return f"{pad}<{mapping.tag}{class_attr(mapping.class_name)} value={{{value}}} />"
        return f"{pad}<{mapping.tag}{class_attr(mapping.class_name)}>{{{value}}}</{mapping.tag}>"
