"""Route expansion and route naming.

``CRUD:/todos>~db.Todo`` expands to the four REST routes in a fixed order,
and handler contracts are injected as ``POST /handlers/<kebab-name>`` routes.
Expansion is a pure function of its inputs so repeated runs produce the
same list in the same order.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass

from airc.language.blocks import Field, HandlerContract, Route
from airc.transpiler.naming import capitalize, kebab_case, singularize


DB_TARGET = re.compile(r"^~db\.(\w+)\.(\w+)$")
DB_MODEL_TARGET = re.compile(r"^~db\.(\w+)$")
CONTRACT_PREFIX = "/handlers/"
DB_OPERATIONS = frozenset({"findMany", "findFirst", "findUnique", "create", "update", "delete", "aggregate"})

_VERBS = {"get": "get", "post": "create", "put": "update", "patch": "update", "delete": "delete"}
_ACTION_SEGMENTS = frozenset({"login", "logout", "register", "signup", "verify", "reset", "send", "invite"})


@dataclass(frozen=True, slots=True)
class ApiRoute:
    """Concrete route after CRUD expansion and contract injection."""

    method: str
    path: str
    handler: str
    params: tuple[Field, ...] = ()
    contract: str | None = None
    executable: bool = True

    @property
    def target(self) -> tuple[str, str] | None:
        """``(Model, op)`` when the handler is a ``~db.Model.op`` target."""
        return parse_db_target(self.handler)

    @property
    def target_model(self) -> str | None:
        target = self.target
        return target[0] if target else None

    @property
    def target_op(self) -> str | None:
        target = self.target
        return target[1] if target else None

    @property
    def function_name(self) -> str:
        """Name of the client function calling this route."""
        if self.contract is not None:
            return self.contract
        return route_to_function_name(self.method, self.path)


def parse_db_target(handler: str) -> tuple[str, str] | None:
    match = DB_TARGET.match(handler.strip())
    if match is None:
        return None
    return match.group(1), match.group(2)


def _crud_base(handler: str) -> str:
    handler = handler.strip()
    if DB_TARGET.match(handler):
        return handler.rsplit(".", 1)[0]
    return handler


def expand_crud(routes: Iterable[Route]) -> list[ApiRoute]:
    """Expand ``CRUD`` shorthand into GET, POST, PUT and DELETE routes."""
    result: list[ApiRoute] = []
    for route in routes:
        if route.method != "CRUD":
            result.append(ApiRoute(route.method, route.path, route.handler.strip(), route.params))
            continue
        base = _crud_base(route.handler)
        path = route.path.rstrip("/") or "/"
        item_path = f"{path.rstrip('/')}/:id"
        result.extend(
            [
                ApiRoute("GET", path, f"{base}.findMany"),
                ApiRoute("POST", path, f"{base}.create", route.params),
                ApiRoute("PUT", item_path, f"{base}.update", route.params),
                ApiRoute("DELETE", item_path, f"{base}.delete"),
            ]
        )
    return result


def contract_route(contract: HandlerContract) -> ApiRoute:
    """Synthetic POST route backing a handler contract."""
    target = (contract.target or "").strip()
    parsed = parse_db_target(target)
    executable = parsed is not None and parsed[1] in DB_OPERATIONS
    handler = target if target else f"handler.{contract.name}"
    return ApiRoute(
        "POST",
        f"{CONTRACT_PREFIX}{kebab_case(contract.name)}",
        handler,
        contract.params,
        contract=contract.name,
        executable=executable,
    )


def expand_routes(routes: Iterable[Route], contracts: Iterable[HandlerContract]) -> tuple[ApiRoute, ...]:
    """Declared routes with CRUD expanded, followed by contract routes."""
    expanded = expand_crud(routes)
    expanded.extend(contract_route(contract) for contract in contracts)
    return tuple(expanded)


def extract_path_params(path: str) -> list[str]:
    """``/tasks/:taskId/comments/:id`` -> ``["taskId", "id"]``."""
    return [segment[1:] for segment in path.split("/") if segment.startswith(":")]


def static_segments(path: str) -> list[str]:
    return [segment for segment in path.strip("/").split("/") if segment and not segment.startswith(":")]


def base_path(path: str) -> str:
    """Strip one trailing ``/:param`` segment."""
    return re.sub(r"/:[^/]+$", "", path) or "/"


def route_to_function_name(method: str, path: str) -> str:
    """Derive a client function name from method and path.

    GET /todos -> getTodos, POST /todos -> createTodo, PUT /todos/:id ->
    updateTodo, POST /auth/login -> authLogin, GET /tasks/:id/comments ->
    getTaskComments.
    """
    segments = [camel_segment(segment) for segment in static_segments(path)]
    method_lower = method.lower()
    if not segments:
        return method_lower
    verb = _VERBS.get(method_lower, method_lower)
    if len(segments) == 1:
        resource = segments[0]
        if method_lower == "get":
            return f"{verb}{capitalize(resource)}"
        return f"{verb}{capitalize(singularize(resource))}"
    if method_lower == "post" and segments[-1] in _ACTION_SEGMENTS:
        return segments[0] + "".join(capitalize(segment) for segment in segments[1:])
    parts = [singularize(segments[0]), *(capitalize(segment) for segment in segments[1:])]
    return f"{verb}{capitalize(''.join(parts))}"


def camel_segment(segment: str) -> str:
    """``forgot-password`` -> ``forgotPassword``."""
    head, *rest = re.split(r"[-.]", segment)
    return head + "".join(capitalize(part) for part in rest)
