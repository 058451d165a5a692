"""``App.jsx``: state, persistence, hook effects, mutation functions and the root JSX."""

from __future__ import annotations

import json
from dataclasses import dataclass, field

from airc.language.ast import Element, Scoped, UINode, walk
from airc.language.blocks import AirType, ArrayType, EnumType, ObjectType, OptionalType, RefType, ScalarType, unwrap_optional
from airc.logging_config import get_logger
from airc.transpiler.context import Context, is_auth_page
from airc.transpiler.mutations import MutationRouteMatch, collect_mutations, extract_model_hint, find_matching_route
from airc.transpiler.naming import capitalize, lower_first, pluralize
from airc.transpiler.output import indent, join_lines
from airc.transpiler.routes import base_path, parse_db_target
from airc.transpiler.ui.jsx import JsxEmitter, page_tier
from airc.transpiler.ui.scope import Scope


logger = get_logger("ui")

POST_LOGIN_PREFERENCE = ("dashboard", "home", "overview", "main")
# Mutations that only ever touch client state
CLIENT_ONLY_MUTATIONS = frozenset({"logout", "cancel", "cancelLogin", "goBack"})
ROOT_CLASSES = "min-h-screen bg-[var(--bg)] text-[var(--fg)]"


@dataclass
class AppSource:
    content: str
    unresolved: list[str] = field(default_factory=list)


def default_for_type(air_type: AirType) -> str:
    """JS initial value for a ``useState`` of the given type."""
    match air_type:
        case ScalarType(kind="str" | "date" | "datetime", default=default):
            return json.dumps(default) if isinstance(default, str) else "''"
        case ScalarType(kind="int" | "float", default=default):
            return json.dumps(default) if isinstance(default, int | float) and not isinstance(default, bool) else "0"
        case ScalarType(kind="bool", default=default):
            return "true" if default is True else "false"
        case ScalarType():
            return "''"
        case EnumType(values=values):
            return json.dumps(values[0] if values else "")
        case ArrayType():
            return "[]"
        case ObjectType(fields=fields):
            entries = ", ".join(f"{f.name}: {default_for_type(f.type)}" for f in fields)
            return f"{{ {entries} }}" if entries else "{}"
        case OptionalType() | RefType():
            return "null"
    return "null"


def state_declarations(context: Context) -> list[str]:
    return [
        f"const [{f.name}, set{capitalize(f.name)}] = useState({default_for_type(f.type)});" for f in context.state
    ]


@dataclass(frozen=True, slots=True)
class PersistKey:
    """Storage key, read expression and effect dependency for one ``@persist`` key."""

    store_key: str
    getter: str
    dep: str
    root: str
    leaf: str | None

    @classmethod
    def resolve(cls, key: str, context: Context) -> PersistKey:
        root, *rest = key.split(".")
        store_key = f"{context.app_name}-{key.replace('.', '-')}"
        if not rest:
            return cls(store_key, root, root, root, None)
        getter = root + "".join(f"?.{part}" for part in rest)
        return cls(store_key, getter, root, root, rest[-1])

    def load(self, value: str) -> str:
        if self.leaf is None:
            return f"set{capitalize(self.root)}({value})"
        return f"set{capitalize(self.root)}(prev => ({{ ...prev, {self.leaf}: {value} }}))"


def persist_effects(context: Context) -> list[str]:
    """Load-on-mount effect followed by one save effect per key."""
    if not context.persist_keys:
        return []
    keys = [PersistKey.resolve(key, context) for key in context.persist_keys]
    lines: list[str] = []
    if context.persist_method == "cookie":
        if context.persist_options.get("httpOnly"):
            lines.append("// httpOnly cookies are written by the server; this copy is client-readable")
        lines.extend(
            [
                "useEffect(() => {",
                "  try {",
                '    const cookies = Object.fromEntries(document.cookie.split("; ").map(c => c.split("=")));',
            ]
        )
        for key in keys:
            saved = f"_saved_{key.store_key.replace('-', '_')}"
            lines.append(
                f"    if (cookies['{key.store_key}']) {{ const {saved} = "
                f"JSON.parse(decodeURIComponent(cookies['{key.store_key}'])); {key.load(saved)}; }}"
            )
        lines.extend(["  } catch (e) {", "    console.warn('Ignoring unreadable cookie state', e);", "  }", "}, []);"])
        max_age = "; max-age=604800" if context.persist_options.get("7d") else ""
        for key in keys:
            write = f"document.cookie = '{key.store_key}=' + encodeURIComponent(JSON.stringify({key.getter})) + '; path=/{max_age}';"
            guard = f"if ({key.getter} !== undefined) " if key.leaf else ""
            lines.extend(["useEffect(() => {", f"  {guard}{write}", f"}}, [{key.dep}]);"])
        return lines

    storage = "sessionStorage" if context.persist_method in ("session", "sessionStorage") else "localStorage"
    lines.extend(["useEffect(() => {", "  try {"])
    for index, key in enumerate(keys):
        raw = f"raw{index}" if len(keys) > 1 else "raw"
        saved = f"_saved_{key.store_key.replace('-', '_')}"
        lines.append(f"    const {raw} = {storage}.getItem('{key.store_key}');")
        lines.append(f"    if ({raw}) {{ const {saved} = JSON.parse({raw}); {key.load(saved)}; }}")
    lines.extend(["  } catch (e) {", "    console.warn('Ignoring unreadable saved state', e);", "  }", "}, []);"])
    for key in keys:
        guard = f"if ({key.getter} !== undefined) " if key.leaf else ""
        lines.extend(
            [
                "useEffect(() => {",
                f"  {guard}{storage}.setItem('{key.store_key}', JSON.stringify({key.getter}));",
                f"}}, [{key.dep}]);",
            ]
        )
    return lines


def hook_call(action: str, context: Context) -> str | None:
    """``~api.stats`` -> ``api.getStats().then(data => setStats(data))...`` when both ends exist."""
    if not action.startswith("~api.") or not context.has_backend:
        return None
    resource = action.removeprefix("~api.")
    route = next(
        (r for r in context.expanded_routes if r.method == "GET" and r.path.endswith(f"/{resource}")), None
    )
    if route is None or context.state_field(resource) is None:
        return None
    return f"api.{route.function_name}().then(data => set{capitalize(resource)}(data.data ?? data)).catch(console.error);"


def hook_effects(context: Context) -> list[str]:
    lines: list[str] = []
    for hook in context.hooks:
        if hook.trigger == "onMount":
            dep, logged = "", ""
        elif hook.trigger.startswith("onChange:"):
            dep = hook.trigger.split(":", 1)[1]
            logged = f", {dep}"
        else:
            logger.debug("Skipping hook with unsupported trigger %s", hook.trigger)
            continue
        lines.append("useEffect(() => {")
        for action in hook.actions:
            call = hook_call(action, context)
            lines.append(f"  {call}" if call else f"  console.log({json.dumps(action)}{logged});")
        lines.append(f"}}, [{dep}]);")
    return lines


def post_login_page(pages: tuple[str, ...]) -> str:
    if not pages:
        return "home"
    for name in POST_LOGIN_PREFERENCE:
        if name in pages:
            return name
    return next((page for page in pages if not is_auth_page(page)), pages[0])


def page_nodes(nodes: tuple[UINode, ...]) -> list[Scoped]:
    return [node for node in walk(list(nodes)) if isinstance(node, Scoped) and node.scope == "page"]


class MutationWriter:
    """Emits one JS function per UI mutation and records the unresolved ones.

    With a backend the function calls the matched ``api`` client function
    and refetches the collection; without one it updates local state.
    """

    def __init__(self, context: Context, has_auth: bool) -> None:
        self.context = context
        self.has_auth = has_auth
        self.can_wire = context.has_backend and bool(context.expanded_routes)
        self.arrays = [f for f in context.state if isinstance(unwrap_optional(f.type), ArrayType)]
        self.has_loading = context.state_field("loading") is not None
        self.has_error = context.state_field("error") is not None
        self.post_login = post_login_page(context.pages)
        self.unresolved: list[str] = []

    @property
    def array_name(self) -> str | None:
        return self.arrays[0].name if self.arrays else None

    def write_all(self, mutations: dict[str, tuple[UINode, ...]]) -> list[str]:
        lines: list[str] = []
        for name, args in mutations.items():
            match = find_matching_route(name, self.context.expanded_routes, self.context, args) if self.can_wire else None
            if self.can_wire and match is None and name not in CLIENT_ONLY_MUTATIONS:
                self.unresolved.append(name)
            lines.extend(self.write(name, args, match))
            lines.append("")
        return lines

    def write(self, name: str, args: tuple[UINode, ...], match: MutationRouteMatch | None) -> list[str]:
        if name in ("add", "addItem"):
            return self.add(name, match)
        if name in ("del", "delItem", "delete", "remove"):
            return self.delete(name, args, match)
        if name == "toggle":
            return self.toggle(name, match)
        if name in ("login", "signup", "register"):
            return self.auth_form(name, match)
        if name == "logout":
            return self.logout(match)
        if name in ("forgotPassword", "resetPassword"):
            return self.password_reset(name, match)
        if name in ("cancel", "cancelLogin", "goBack"):
            lines = [f"const {name} = (e) => {{", "  e?.target?.closest?.('form')?.reset?.();"]
            if self.has_auth:
                lines.append("  setAuthError(null);")
            if name != "cancel" and self.context.pages:
                lines.append(f"  setCurrentPage('{self.login_page}');")
            return [*lines, "};"]
        if name in ("updateProfile", "updateWorkspace"):
            return self.form_update(name, match)
        if name in ("update", "save"):
            return self.update(name, match)
        if name in ("archive", "done"):
            return self.mark(name, match)
        return self.generic(name, match)

    @property
    def login_page(self) -> str:
        return next((page for page in self.context.pages if is_auth_page(page) and page != "register"), "login")

    def _stub(self, name: str, js_name: str | None = None) -> list[str]:
        return [f"const {js_name or name} = (...args) => {{", f"  console.log('{name}', ...args);", "};"]

    def _refetch(self, match: MutationRouteMatch | None, pad: str = "    ") -> list[str]:
        if match is None or not match.refetch_fn_name or not match.refetch_setter:
            return []
        return [f"{pad}const updated = await api.{match.refetch_fn_name}();", f"{pad}{match.refetch_setter}(updated.data ?? updated);"]

    def _wired(
        self,
        name: str,
        params: str,
        body: list[str],
        match: MutationRouteMatch | None,
        js_name: str | None = None,
        returns: str | None = None,
    ) -> list[str]:
        return [
            f"const {js_name or name} = async ({params}) => {{",
            "  try {",
            *(f"    {line}" for line in body),
            *self._refetch(match),
            *([f"    return {returns};"] if returns else []),
            "  } catch (err) {",
            f"    console.error('{name} failed:', err);",
            "  }",
            "};",
        ]

    def add(self, name: str, match: MutationRouteMatch | None) -> list[str]:
        if match is not None:
            return self._wired(name, "data", [f"await api.{match.fn_name}(data);"], match)
        if self.array_name is None:
            return self._stub(name)
        return [
            f"const {name} = (data) => {{",
            "  const item = typeof data === 'object' && data !== null ? data : { text: data };",
            f"  set{capitalize(self.array_name)}(prev => [...prev, {{ ...item, id: Date.now() }}]);",
            "};",
        ]

    def delete(self, name: str, args: tuple[UINode, ...], match: MutationRouteMatch | None) -> list[str]:
        routes = self.context.expanded_routes
        delete_routes = [r for r in routes if r.method == "DELETE" and r.target_op == "delete"] if self.can_wire else []
        if len(delete_routes) > 1:
            # dispatch on whichever collection holds the id
            body: list[str] = []
            for route in delete_routes:
                plural = pluralize(lower_first(route.target_model or ""))
                state = self.context.state_field(plural)
                if state is None or not isinstance(unwrap_optional(state.type), ArrayType):
                    continue
                keyword = "if" if not body else "} else if"
                body.extend([f"{keyword} ({plural}.find(i => i.id === id)) {{", f"  await api.{route.function_name}(id);"])
                refetch = next((r for r in routes if r.method == "GET" and r.path == base_path(route.path)), None)
                if refetch is not None:
                    var = f"_updated{capitalize(plural)}"
                    body.extend(
                        [f"  const {var} = await api.{refetch.function_name}();", f"  set{capitalize(plural)}({var}.data ?? {var});"]
                    )
            if body:
                return self._wired(name, "id", [*body, "}"], None)
        if match is not None:
            return self._wired(name, "id", [f"await api.{match.fn_name}(id);"], match)
        hint = extract_model_hint(args)
        target = hint if hint is not None and any(f.name == hint for f in self.arrays) else self.array_name
        if target is None:
            return self._stub(name)
        return [f"const {name} = (id) => {{", f"  set{capitalize(target)}(prev => prev.filter(item => item.id !== id));", "};"]

    def toggle(self, name: str, match: MutationRouteMatch | None) -> list[str]:
        if match is not None:
            if self.array_name:
                body = [
                    f"const current = {self.array_name}.find(i => i.id === id);",
                    f"await api.{match.fn_name}(id, {{ [field]: !(current?.[field]) }});",
                ]
            else:
                body = [f"await api.{match.fn_name}(id, {{ [field]: true }});"]
            return self._wired(name, "id, field = 'done'", body, match)
        if self.array_name is None:
            return self._stub(name)
        return [
            f"const {name} = (id, field = 'done') => {{",
            f"  set{capitalize(self.array_name)}(prev => prev.map(item => item.id === id ? {{ ...item, [field]: !item[field] }} : item));",
            "};",
        ]

    def _set_error(self, message: str) -> str | None:
        if self.has_auth:
            return f"setAuthError({message});"
        if self.has_error:
            return f"setError({message});"
        return None

    def auth_form(self, name: str, match: MutationRouteMatch | None) -> list[str]:
        """login/signup/register read the submitted form, never controlled state."""
        is_login = name == "login"
        missing = "'Please enter email and password'" if is_login else "'Please fill in all required fields'"
        failed = "Login failed" if is_login else f"{capitalize(name)} failed"
        lines = [f"const {name} = async (e) => {{", "  e?.preventDefault?.();"]
        if self.has_loading:
            lines.append("  setLoading(true);")
        reset = self._set_error("null")
        if reset:
            lines.append(f"  {reset}")
        lines.extend(
            [
                "  try {",
                "    const formData = e?.target ? Object.fromEntries(new FormData(e.target)) : {};",
                "    if (!formData.email || !formData.password) {",
            ]
        )
        report = self._set_error(missing)
        if report:
            lines.append(f"      {report}")
        lines.extend(["      return;", "    }"])
        if is_login and match is not None:
            lines.extend(
                [
                    f"    const result = await api.{match.fn_name}(formData);",
                    "    if (result.token) api.setToken(result.token);",
                    "    const u = result.user || result;",
                    "    setUser(u);",
                    f"    localStorage.setItem('{self.context.app_name}_user', JSON.stringify(u));",
                ]
            )
        elif is_login:
            lines.append("    setUser({ name: formData.email.split('@')[0], email: formData.email });")
        elif match is not None:
            lines.append(f"    await api.{match.fn_name}(formData);")
        else:
            lines.append(f"    console.log('{capitalize(name)} attempted', formData.email);")
        if self.context.pages:
            target = self.post_login if is_login else self.login_page
            lines.append(f"    setCurrentPage('{target}');")
        lines.append("  } catch (err) {")
        if is_login and self.has_auth:
            lines.append(f"    setAuthError(err.message?.includes('401') ? 'Invalid email or password' : (err.message || '{failed}'));")
        else:
            report = self._set_error(f"err.message || '{failed}'")
            if report:
                lines.append(f"    {report}")
        lines.append(f"    console.error('{failed}:', err);")
        if self.has_loading:
            lines.extend(["  } finally {", "    setLoading(false);"])
        lines.extend(["  }", "};"])
        return lines

    def logout(self, match: MutationRouteMatch | None) -> list[str]:
        lines = ["const logout = async () => {"]
        if match is not None:
            lines.append(f"  await api.{match.fn_name}().catch((err) => console.warn('Logout request failed:', err));")
        if self.context.has_backend and self.context.expanded_routes:
            lines.append("  api.clearToken();")
        lines.extend([f"  localStorage.removeItem('{self.context.app_name}_user');", "  setUser(null);"])
        if self.context.pages:
            lines.append(f"  setCurrentPage('{self.login_page}');")
        return [*lines, "};"]

    def password_reset(self, name: str, match: MutationRouteMatch | None) -> list[str]:
        lines = [f"const {name} = async (e) => {{", "  e?.preventDefault?.();"]
        reset = self._set_error("null")
        if reset:
            lines.append(f"  {reset}")
        lines.extend(["  const formData = e?.target ? Object.fromEntries(new FormData(e.target)) : {};", "  if (!formData.email) {"])
        report = self._set_error("'Please enter your email address'")
        if report:
            lines.append(f"    {report}")
        lines.extend(["    return;", "  }"])
        if match is None:
            return [*lines, f"  console.log('{name}', formData.email);", "};"]
        lines.extend(["  try {", f"    await api.{match.fn_name}(formData);", "  } catch (err) {"])
        report = self._set_error("err.message || 'Something went wrong. Please try again.'")
        lines.append(f"    {report}" if report else f"    console.error('{name} failed:', err);")
        return [*lines, "  }", "};"]

    def form_update(self, name: str, match: MutationRouteMatch | None) -> list[str]:
        state = "user" if name == "updateProfile" else "workspace"
        merge = f"set{capitalize(state)}(prev => ({{ ...prev, ...formData }}));"
        lines = [f"const {name} = async (e) => {{", "  e?.preventDefault?.();"]
        if match is None:
            return [
                *lines,
                "  const formData = e?.target ? Object.fromEntries(new FormData(e.target)) : {};",
                f"  {merge}",
                "};",
            ]
        return [
            *lines,
            "  try {",
            "    const formData = e?.target ? Object.fromEntries(new FormData(e.target)) : {};",
            f"    await api.{match.fn_name}({state}?.id, formData);",
            f"    {merge}",
            "  } catch (err) {",
            f"    console.error('{name} failed:', err);",
            "  }",
            "};",
        ]

    def update(self, name: str, match: MutationRouteMatch | None) -> list[str]:
        if match is not None:
            return self._wired(name, "id, data", [f"await api.{match.fn_name}(id, data);"], match)
        if self.array_name is None:
            return self._stub(name)
        return [
            f"const {name} = (id, data) => {{",
            f"  set{capitalize(self.array_name)}(prev => prev.map(item => item.id === id ? {{ ...item, ...data }} : item));",
            "};",
        ]

    def mark(self, name: str, match: MutationRouteMatch | None) -> list[str]:
        """archive/done set a boolean flag when the model has one, else a status value."""
        flag = "archived" if name == "archive" else "done"
        if match is not None:
            target = parse_db_target(match.handler)
            model = self.context.model(target[0]) if target else None
            has_flag = model is not None and model.field(flag) is not None
            payload = f"{flag}: true" if has_flag else f"status: '{flag}'"
            return self._wired(name, "id", [f"await api.{match.fn_name}(id, {{ {payload} }});"], match)
        if self.array_name is None:
            return self._stub(name)
        item = unwrap_optional(self.arrays[0].type)
        element = item.of if isinstance(item, ArrayType) else None
        has_flag = isinstance(element, ObjectType) and any(f.name == flag for f in element.fields)
        payload = f"{flag}: true" if has_flag else f"status: '{flag}'"
        return [
            f"const {name} = (id) => {{",
            f"  set{capitalize(self.array_name)}(prev => prev.map(item => item.id === id ? {{ ...item, {payload} }} : item));",
            "};",
        ]

    def generic(self, name: str, match: MutationRouteMatch | None) -> list[str]:
        # window.confirm must stay reachable
        js_name = "handleConfirm" if name == "confirm" else name.replace(".", "_")
        if match is None:
            return self._stub(name, js_name)
        if match.method == "PUT" and match.route.contract is None:
            body = [f"const result = await api.{match.fn_name}(id, data || {{ {name}: true }});"]
            return self._wired(name, "id, data", body, match, js_name, returns="result")
        if match.method == "DELETE":
            return self._wired(name, "id", [f"await api.{match.fn_name}(id);"], match, js_name)
        body = [f"const result = await api.{match.fn_name}(data);"]
        return self._wired(name, "data", body, match, js_name, returns="result")


def _auth_gating(context: Context) -> bool:
    return context.auth is not None and context.auth.required and any(is_auth_page(page) for page in context.pages)


def root_jsx(context: Context, emitter: JsxEmitter, gating: bool) -> list[str]:
    has_sidebar = any(isinstance(node, Element) and node.name == "sidebar" for node in context.ui_nodes)
    max_width = context.style.get("maxWidth")
    if isinstance(max_width, int | float) and not isinstance(max_width, bool):
        wrapper = f"max-w-[{max_width}px] mx-auto" if context.pages else f"max-w-[{max_width}px] mx-auto px-4 sm:px-6 space-y-6"
    elif has_sidebar:
        wrapper = "flex"
    elif context.pages:
        wrapper = ""
    else:
        wrapper = "max-w-[900px] mx-auto px-4 sm:px-6 py-8 space-y-6"

    lines = [f'<div className="{ROOT_CLASSES}">']
    if not gating:
        body = emitter.emit_all(context.ui_nodes, Scope(), 4 if wrapper else 2)
        if wrapper:
            lines.extend([f'  <div className="{wrapper}">', body, "  </div>"])
        else:
            lines.append(body)
        lines.append("</div>")
        return lines

    scope = Scope(auth_gating=True)
    outside = [page for page in page_nodes(context.ui_nodes) if page_tier(page.name, context) != "protected"]
    outside.sort(key=lambda page: page_tier(page.name, context) != "auth")
    lines.extend(emitter.emit(page, scope, 2) for page in outside)
    names = ", ".join(f"'{page.name}'" for page in outside)
    shell = scope.on_page("protected")
    lines.extend(
        [
            f"  {{isAuthed && ![{names}].includes(currentPage) && (",
            f'    <div className="{f"app-shell {wrapper}".strip()}">',
            emitter.emit_all(context.ui_nodes, shell, 6),
            "    </div>",
            "  )}",
            "</div>",
        ]
    )
    return lines


def generate_app(context: Context) -> AppSource:
    emitter = JsxEmitter(context)
    mutations = collect_mutations(context.ui_nodes)
    gating = _auth_gating(context)
    auth_mutations = any(name in ("login", "signup", "register", "logout") for name in mutations)
    has_auth = emitter.has_auth_routes and (auth_mutations or gating)
    wired = context.has_backend and bool(context.expanded_routes)
    declared = {f.name for f in context.state}

    lines = ["import { useState, useEffect } from 'react';"]
    if wired:
        lines.append("import * as api from './api.js';")
    lines.extend(["", "export default function App() {"])

    body = state_declarations(context)
    if (has_auth or auth_mutations or gating) and "user" not in declared:
        body.append("const [user, setUser] = useState(null);")
    if has_auth:
        body.append("const [authError, setAuthError] = useState(null);")
    if context.pages and "currentPage" not in declared:
        if gating:
            public = [page for page in context.pages if page in context.public_pages]
            default_page = public[0] if public else next(page for page in context.pages if is_auth_page(page))
        else:
            default_page = context.pages[0]
        body.append(f"const [currentPage, setCurrentPage] = useState('{default_page}');")
    if gating:
        body.append(f"const postLoginPage = '{post_login_page(context.pages)}';")
        body.append("const isAuthed = !!user;")
    body.append("")

    if has_auth and wired:
        body.extend(
            [
                "useEffect(() => {",
                "  const savedToken = localStorage.getItem('auth_token');",
                f"  const savedUser = localStorage.getItem('{context.app_name}_user');",
                "  if (savedToken) api.setToken(savedToken);",
                "  if (savedUser) {",
                "    try {",
                "      setUser(JSON.parse(savedUser));",
                "    } catch (e) {",
                f"      localStorage.removeItem('{context.app_name}_user');",
                "    }",
                "  }",
                "}, []);",
                "",
            ]
        )

    persist = persist_effects(context)
    if persist:
        body.extend([*persist, ""])

    writer = MutationWriter(context, has_auth)
    body.extend(writer.write_all(mutations))
    if gating and "logout" not in mutations:
        body.extend([*writer.logout(None), ""])

    hooks = hook_effects(context)
    if hooks:
        body.extend([*hooks, ""])

    lines.extend(indent(body, 2))
    lines.append("  return (")
    lines.extend(indent("\n".join(root_jsx(context, emitter, gating)).split("\n"), 4))
    lines.extend(["  );", "}"])
    if writer.unresolved:
        logger.info("Unresolved mutations: %s", ", ".join(writer.unresolved))
    return AppSource(join_lines(lines), writer.unresolved)
