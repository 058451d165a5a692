"""Express route handlers for the expanded routes.

Each handler body is chosen from the route's ``~db.Model.op`` target: a
paginated and searchable ``findMany``, a parent-filtered ``findMany`` for
nested paths, per-status ``aggregate`` counts, plain Prisma calls, auth
login/register, handler-contract endpoints, or a 501 stub.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass

from airc.language.blocks import DbModel, EnumType, ScalarType, type_kind, unwrap_optional
from airc.language.errors import AirContextError
from airc.transpiler.context import Context
from airc.transpiler.naming import camel_case, model_var, pluralize, singularize
from airc.transpiler.output import OutputFile, join_lines
from airc.transpiler.relations import RelationGraph
from airc.transpiler.routes import ApiRoute, static_segments
from airc.transpiler.server.types import BodyField, body_type_names, route_body, validation_schema


NESTED_PATH = re.compile(r"^/(\w+)/:id/(\w+)$")
AUTH_TARGETS = {"auth.login": "login", "~jwt.verify": "login", "auth.register": "register", "auth.signup": "register"}
STATUS_FIELD_NAMES = ("status", "state", "stage")
MISC = "__misc__"
SPLIT_THRESHOLD = 3

_CATCH = [
    "  } catch (error) {",
    "    const status = (error as { status?: number })?.status ?? 500;",
    "    const details = process.env.NODE_ENV !== 'production' && error instanceof Error ? error.message : undefined;",
    "    res.status(status).json({ error: status === 400 ? 'Validation error' : 'Internal server error', ...(details && { details }) });",
    "  }",
    "});",
]


def auth_kind(route: ApiRoute) -> str | None:
    """``login`` or ``register`` when the route is an auth endpoint."""
    if route.handler in AUTH_TARGETS:
        return AUTH_TARGETS[route.handler]
    if route.path.endswith("/login"):
        return "login"
    if route.path.endswith(("/register", "/signup")):
        return "register"
    return None


def needs_auth_module(context: Context) -> bool:
    return context.auth is not None or any(auth_kind(route) for route in context.expanded_routes)


def find_user_model(context: Context) -> DbModel | None:
    """Best guess at the account model backing login and register."""
    models = context.models
    by_name = context.model("User")
    if by_name is not None and by_name.field("password") is not None:
        return by_name
    for model in models:
        if model.field("email") is not None and model.field("password") is not None:
            return model
    if by_name is not None:
        return by_name
    return next((model for model in models if model.field("email") is not None), None)


def _primary_key(model: DbModel | None) -> tuple[str, bool]:
    """Primary-key name and whether it is an integer."""
    if model is None or model.primary_key is None:
        return "id", True
    key = model.primary_key
    base = unwrap_optional(key.type)
    return key.name, isinstance(base, ScalarType) and base.kind == "int"


def _where(key: str, expr: str) -> str:
    return f"{{ {key} }}" if key == expr else f"{{ {key}: {expr} }}"


@dataclass
class _HandlerWriter:
    """Builds the lines of one route handler body."""

    route: ApiRoute
    context: Context
    graph: RelationGraph
    type_name: str | None

    def __post_init__(self) -> None:
        self.lines: list[str] = []
        self.model = self.context.model(self.route.target_model or "")
        self.accessor = model_var(self.route.target_model or "item")

    def emit(self, *lines: str) -> None:
        self.lines.extend(f"    {line}" for line in lines)

    # ---- shared pieces ----

    def id_expression(self) -> str:
        key, is_int = _primary_key(self.model)
        if is_int:
            self.emit(
                "const id = parseInt(req.params.id, 10);",
                "if (isNaN(id)) return res.status(400).json({ error: 'Invalid id', details: 'id must be an integer' });",
            )
            return "id"
        return "req.params.id"

    def body(self, fields: Sequence[BodyField]) -> str:
        """Destructure and validate the body; return the body variable name."""
        names = [f.name for f in fields]
        body_var = "_body" if "body" in names else "body"
        cast = f" as {self.type_name}" if self.type_name else ""
        self.emit(f"const {body_var} = (req.body ?? {{}}){cast};")
        self.emit(f"const {{ {', '.join(names)} }} = {body_var};")
        required = [f.name for f in fields if f.required]
        if required:
            checks = " || ".join(f"{name} === undefined || {name} === null" for name in required)
            self.emit(
                f"if ({checks}) {{",
                f"  return res.status(400).json({{ error: 'Missing required fields', details: 'Required: {', '.join(required)}' }});",
                "}",
            )
        self.emit(
            f"const _valSchema = {validation_schema(fields)} as const;",
            f"const _errors = validateFields({body_var} as unknown as Record<string, unknown>, _valSchema);",
            "if (_errors.length > 0) return res.status(400).json({ error: 'Validation error', details: _errors });",
        )
        return body_var

    def respond(self, expr: str, created: bool = False) -> None:
        self.emit(f"const result = {expr};")
        self.emit("res.status(201).json(result);" if created else "res.json(result);")

    # ---- handler shapes ----

    def write(self) -> list[str]:
        route = self.route
        op = route.target_op
        if route.contract is not None:
            self.contract()
        elif op == "findMany" and self.model is not None and NESTED_PATH.match(route.path):
            self.nested_find_many()
        elif op == "findMany" and self.model is not None:
            self.find_many()
        elif op == "aggregate" and self.model is not None:
            self.aggregate()
        elif op in ("create", "update", "delete", "findFirst", "findUnique") and self.context.db is not None:
            self.prisma_call(op)
        elif auth_kind(route) is not None:
            self.auth(auth_kind(route) or "login")
        else:
            self.emit(
                f"// Not implemented: {route.handler}",
                "res.status(501).json({ error: 'Not implemented' });",
            )
        return self.lines

    def _parent_fk(self, parent_resource: str) -> str:
        parent = singularize(parent_resource).lower()
        for edge in self.graph.parents_of(self.model.name if self.model else ""):
            if edge.parent_model.lower() == parent:
                return edge.fk_field
        return f"{singularize(parent_resource)}_id"

    def nested_find_many(self) -> None:
        match = NESTED_PATH.match(self.route.path)
        if match is None:
            raise AirContextError(f"Route path '{self.route.path}' is not a nested collection path")
        fk = self._parent_fk(match.group(1))
        self.emit("const parentId = parseInt(req.params.id, 10);")
        order = self._order_by()
        order_part = f", orderBy: {order}" if order else ""
        self.respond(f"await prisma.{self.accessor}.findMany({{ where: {{ {fk}: parentId }}{order_part} }})")

    def _order_by(self) -> str | None:
        model = self.model
        if model is None:
            return None
        for name in ("created_at", "createdAt"):
            if model.field(name) is not None:
                return f"{{ {name}: 'desc' }}"
        key = model.primary_key
        if key is not None and key.auto:
            return f"{{ {key.name}: 'desc' }}"
        return None

    def _require_model(self) -> DbModel:
        if self.model is None:
            raise AirContextError(f"Route {self.route.method} {self.route.path} has no database model")
        return self.model

    def _search_fields(self) -> list[str]:
        return [
            f.name
            for f in self._require_model().fields
            if not f.primary and type_kind(unwrap_optional(f.type)) == "str"
        ]

    def find_many(self) -> None:
        search = self._search_fields()
        self.emit(
            "const page = parseInt(req.query.page as string) || 1;",
            "const limit = Math.min(parseInt(req.query.limit as string) || 20, 100);",
            "const skip = (page - 1) * limit;",
        )
        if search:
            self.emit("const search = (req.query.search as string) || '';", "const where = search ? {", "  OR: [")
            self.emit(*(f"    {{ {name}: {{ contains: search }} }}," for name in search))
            self.emit("  ],", "} : {};")
        parts = ["where"] if search else []
        order = self._order_by()
        if order:
            parts.append(f"orderBy: {order}")
        parts.extend(["skip", "take: limit"])
        count = "count({ where })" if search else "count()"
        self.emit(
            "const [result, total] = await Promise.all([",
            f"  prisma.{self.accessor}.findMany({{ {', '.join(parts)} }}),",
            f"  prisma.{self.accessor}.{count},",
            "]);",
            "res.setHeader('X-Total-Count', String(total));",
            "res.json(result);",
        )

    def aggregate(self) -> None:
        model = self._require_model()
        status = next(
            (
                f
                for f in model.fields
                if f.name in STATUS_FIELD_NAMES and isinstance(unwrap_optional(f.type), EnumType)
            ),
            None,
        )
        self.emit(f"const total = await prisma.{self.accessor}.count();")
        if status is None:
            self.emit("res.json({ total });")
            return
        values = unwrap_optional(status.type).values  # type: ignore[attr-defined]
        entries = [f"total{pluralize(model.name)}: total"]
        for value in values:
            var = camel_case(value)
            self.emit(f"const {var} = await prisma.{self.accessor}.count({{ where: {{ {status.name}: '{value}' }} }});")
            entries.append(var if var == value else f"{var}: {var}")
        self.emit(f"res.json({{ {', '.join(entries)} }});")

    def prisma_call(self, op: str) -> None:
        route = self.route
        has_id = ":id" in route.path
        key, _ = _primary_key(self.model)
        id_expr = self.id_expression() if has_id else None
        fields = route_body(route, self.context)
        if fields:
            self.body(fields)
        data = "{ " + ", ".join(f.name for f in fields) + " }" if fields else "req.body"

        nested = NESTED_PATH.match(route.path)
        if nested and op == "create":
            fk = self._parent_fk(nested.group(1))
            self.emit("const parentId = parseInt(req.params.id, 10);")
            names = ", ".join([*(f.name for f in fields), f"{fk}: parentId"])
            self.respond(f"await prisma.{self.accessor}.create({{ data: {{ {names} }} }})", created=True)
            return

        accessor = f"prisma.{self.accessor}"
        match op:
            case "create":
                self.respond(f"await {accessor}.create({{ data: {data} }})", created=True)
            case "update" if id_expr:
                self.respond(f"await {accessor}.update({{ where: {_where(key, id_expr)}, data: {data} }})")
            case "update":
                self.respond(f"await {accessor}.update({{ where: req.body.where, data: req.body.data }})")
            case "delete" if id_expr:
                self.respond(f"await {accessor}.delete({{ where: {_where(key, id_expr)} }})")
            case "delete":
                self.respond(f"await {accessor}.delete({{ where: req.body }})")
            case _:
                where = _where(key, id_expr) if id_expr else ("req.query" if op == "findFirst" else "req.body")
                self.emit(
                    f"const result = await {accessor}.{op}({{ where: {where} }});",
                    "if (!result) return res.status(404).json({ error: 'Not found' });",
                    "res.json(result);",
                )

    def contract(self) -> None:
        route = self.route
        fields = route_body(route, self.context)
        body_var = self.body(fields) if fields else None
        if not route.executable or self.model is None:
            received = body_var or "req.body"
            self.emit(
                f"// Scaffold for handler contract '{route.contract}' ({route.handler})",
                f"res.json({{ handler: '{route.contract}', received: {received} }});",
            )
            return

        op = route.target_op
        accessor = f"prisma.{self.accessor}"
        names = [f.name for f in fields]
        key, is_int = _primary_key(self.model)
        if op == "create":
            self.respond(f"await {accessor}.create({{ data: {{ {', '.join(names)} }} }})", created=True)
            return
        if op == "aggregate":
            self.respond(f"{{ total: await {accessor}.count() }}")
            return
        if op == "findMany":
            filters = [name for name in names if self.model.field(name) is not None]
            where = f"{{ where: {{ {', '.join(filters)} }} }}" if filters else ""
            self.respond(f"await {accessor}.findMany({where})")
            return

        key_expr = "req.body.id"
        rest = names
        if fields:
            first = fields[0]
            base = unwrap_optional(first.type)
            numeric = isinstance(base, ScalarType) and base.kind in ("int", "float")
            key_expr = f"Number({first.name})" if is_int and not numeric else first.name
            rest = names[1:]
        where = _where(key, key_expr)
        if op == "update":
            self.respond(f"await {accessor}.update({{ where: {where}, data: {{ {', '.join(rest)} }} }})")
        elif op == "delete":
            self.respond(f"await {accessor}.delete({{ where: {where} }})")
        else:
            self.emit(
                f"const result = await {accessor}.{op}({{ where: {where} }});",
                "if (!result) return res.status(404).json({ error: 'Not found' });",
                "res.json(result);",
            )

    def auth(self, kind: str) -> None:
        user_model = find_user_model(self.context)
        accessor = model_var(user_model.name) if user_model else "user"
        if kind == "login":
            self.emit(
                "const { email, password } = req.body ?? {};",
                "if (!email || !password) return res.status(400).json({ error: 'Email and password are required' });",
            )
            if user_model is not None:
                self.emit(f"const user = await prisma.{accessor}.findFirst({{ where: {{ email }} }});")
            else:
                self.emit("const user = null as any;")
            self.emit(
                "if (!user) return res.status(401).json({ error: 'Invalid credentials' });",
                "if (user.password !== password) return res.status(401).json({ error: 'Invalid credentials' });",
                "const { password: _pw, ...safeUser } = user;",
                "const token = createToken({ id: user.id, email: user.email, role: user.role });",
                "res.json({ user: safeUser, token });",
            )
            return
        names = [param.name for param in self.route.params] or ["email", "name", "password"]
        self.emit(
            f"const {{ {', '.join(names)} }} = req.body ?? {{}};",
            f"if ({' || '.join(f'!{name}' for name in names)}) return res.status(400).json({{ error: 'All fields are required' }});",
        )
        if user_model is not None:
            self.emit(
                f"const existing = await prisma.{accessor}.findFirst({{ where: {{ email }} }});",
                "if (existing) return res.status(409).json({ error: 'Email already registered' });",
                f"const user = await prisma.{accessor}.create({{ data: {{ {', '.join(names)} }} }});",
            )
        else:
            self.emit("const user = { id: 1, email } as any;")
        self.emit(
            "const { password: _pw, ...safeUser } = user;",
            "const token = createToken({ id: user.id, email: user.email, role: user.role });",
            "res.status(201).json({ user: safeUser, token });",
        )


def _guarded(route: ApiRoute, context: Context) -> bool:
    return bool(context.auth and context.auth.required) and auth_kind(route) is None


def route_handler(
    router: str,
    mount_path: str,
    route: ApiRoute,
    context: Context,
    graph: RelationGraph,
    type_name: str | None,
) -> list[str]:
    """Full ``router.method(path, ...)`` block for one route."""
    middleware = "requireAuth, " if _guarded(route, context) else ""
    lines = [f"{router}.{route.method.lower()}('{mount_path}', {middleware}async (req, res) => {{", "  try {"]
    lines.extend(_HandlerWriter(route, context, graph, type_name).write())
    lines.extend(_CATCH)
    lines.append("")
    return lines


def _imports(body: str, prefix: str, type_names: Sequence[str]) -> list[str]:
    lines = ["import { Router } from 'express';"]
    if "prisma." in body:
        lines.append(f"import {{ prisma }} from '{prefix}prisma.js';")
    auth_imports = [name for name in ("createToken", "requireAuth") if f"{name}(" in body or f"{name}," in body]
    if auth_imports:
        lines.append(f"import {{ {', '.join(auth_imports)} }} from '{prefix}auth.js';")
    if "validateFields(" in body:
        lines.append(f"import {{ validateFields }} from '{prefix}validation.js';")
    used = [name for name in type_names if f"as {name};" in body]
    if used:
        lines.append(f"import type {{ {', '.join(used)} }} from '{prefix}types.js';")
    return lines


def group_routes_by_model(routes: Sequence[ApiRoute]) -> dict[str, list[ApiRoute]]:
    """Group routes under ``<models>`` keys when their path starts with it."""
    groups: dict[str, list[ApiRoute]] = {}
    for route in routes:
        model = route.target_model
        key = pluralize(model_var(model)) if model else MISC
        if model is None or not route.path.startswith(f"/{key}") or route.contract is not None:
            key = MISC
        groups.setdefault(key, []).append(route)
    return groups


def should_split(groups: dict[str, list[ApiRoute]]) -> bool:
    return len([key for key in groups if key != MISC]) >= SPLIT_THRESHOLD


def common_base_path(routes: Sequence[ApiRoute]) -> str:
    """Most frequent param-free path prefix; ties go to the longer path."""
    counts: dict[str, int] = {}
    for route in routes:
        base = "/" + "/".join(static_segments(route.path))
        counts[base] = counts.get(base, 0) + 1
    best = ""
    best_count = 0
    for base, count in counts.items():
        if count > best_count or (count == best_count and len(base) > len(best)):
            best, best_count = base, count
    return best


def _relative(path: str, base: str) -> str:
    if base and path.startswith(base):
        return path[len(base) :] or "/"
    return path


def _router_file(
    router: str,
    routes: Sequence[ApiRoute],
    context: Context,
    graph: RelationGraph,
    names: dict[ApiRoute, str],
    prefix: str,
    base: str = "",
    preamble: Sequence[str] = (),
) -> str:
    body: list[str] = []
    for route in routes:
        body.extend(route_handler(router, _relative(route.path, base), route, context, graph, names.get(route)))
    text = "\n".join(body)
    lines = _imports(text, prefix, list(names.values()))
    lines.extend(preamble)
    lines.extend(["", f"export const {router} = Router();", ""])
    return join_lines([*lines, *body])


def generate_api_files(context: Context, graph: RelationGraph) -> list[OutputFile]:
    """``api.ts``, or per-resource ``routes/<key>.ts`` plus a mount-point ``api.ts``."""
    routes = context.expanded_routes
    names = body_type_names(routes, context)
    groups = group_routes_by_model(routes)
    if not should_split(groups):
        return [OutputFile("server/api.ts", _router_file("apiRouter", routes, context, graph, names, "./"))]

    files: list[OutputFile] = []
    mounts: list[str] = []
    imports: list[str] = []
    for key, group in groups.items():
        if key == MISC:
            continue
        base = common_base_path(group)
        files.append(
            OutputFile(
                f"server/routes/{key}.ts",
                _router_file(f"{key}Router", group, context, graph, names, "../", base),
            )
        )
        imports.append(f"import {{ {key}Router }} from './routes/{key}.js';")
        mounts.append(f"apiRouter.use('{base}', {key}Router);")

    misc = groups.get(MISC, [])
    mount_file = _router_file("apiRouter", misc, context, graph, names, "./", preamble=imports)
    mount_lines = mount_file.rstrip("\n").split("\n")
    anchor = mount_lines.index("export const apiRouter = Router();") + 1
    mount_lines[anchor:anchor] = ["", *mounts]
    files.insert(0, OutputFile("server/api.ts", join_lines(mount_lines)))
    return files
