"""Matching UI mutations (``!name(args)``) against the expanded routes.

Standard mutation names each carry a route-shape rule (method plus handler or
path pattern). Names without a rule go through a generic kebab-case and
verb+Model search. No match is a normal outcome: callers degrade to local
state updates or a logging stub.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass

from airc.language.ast import Binary, BinaryOp, Element, UINode, Unary, UnaryOp, walk
from airc.language.blocks import ArrayType, unwrap_optional
from airc.transpiler.context import Context
from airc.transpiler.naming import capitalize, kebab_case, lower_first, pluralize
from airc.transpiler.routes import ApiRoute, base_path, camel_segment, static_segments


ACTION_VERBS = frozenset(
    {
        "approve",
        "reject",
        "resolve",
        "close",
        "reopen",
        "complete",
        "publish",
        "unpublish",
        "cancel",
        "assign",
        "escalate",
        "confirm",
        "activate",
        "deactivate",
    }
)
_VERB_MODEL = re.compile(r"^([a-z]+)([A-Z]\w*)$")


@dataclass(frozen=True, slots=True)
class MutationRouteMatch:
    fn_name: str
    method: str
    refetch_fn_name: str | None
    refetch_setter: str | None
    handler: str
    route: ApiRoute


@dataclass(frozen=True, slots=True)
class RouteRule:
    """Route-shape predicate for one standard mutation name."""

    method: str
    handler: re.Pattern[str] | None = None
    path: re.Pattern[str] | None = None
    prefer_path: str | None = None
    require_preferred: bool = False
    uses_model_hint: bool = False

    def matches(self, route: ApiRoute) -> bool:
        if route.method != self.method:
            return False
        if self.handler is not None and not self.handler.search(route.handler):
            return False
        return self.path is None or bool(self.path.search(route.path))


_CREATE = RouteRule("POST", handler=re.compile(r"^~db\.\w+\.create$"))
_DELETE = RouteRule("DELETE", handler=re.compile(r"\.delete$"), uses_model_hint=True)
_UPDATE = RouteRule("PUT", handler=re.compile(r"\.update$"))

MUTATION_RULES: dict[str, RouteRule] = {
    "add": _CREATE,
    "addItem": _CREATE,
    "del": _DELETE,
    "delItem": _DELETE,
    "delete": _DELETE,
    "remove": _DELETE,
    "toggle": _UPDATE,
    "update": _UPDATE,
    "save": _UPDATE,
    "updateProfile": RouteRule("PUT", handler=re.compile(r"\.update$"), prefer_path="/user"),
    "updateWorkspace": RouteRule(
        "PUT", handler=re.compile(r"\.update$"), prefer_path="/workspace", require_preferred=True
    ),
    "archive": RouteRule("PUT", handler=re.compile(r"\.update$"), prefer_path="/project"),
    "done": RouteRule("PUT", handler=re.compile(r"\.update$"), prefer_path="/task"),
    "login": RouteRule("POST", path=re.compile(r"/login$")),
    "signup": RouteRule("POST", path=re.compile(r"/(signup|register)$")),
    "register": RouteRule("POST", path=re.compile(r"/(signup|register)$")),
    "logout": RouteRule("POST", path=re.compile(r"/logout$")),
    "forgotPassword": RouteRule("POST", path=re.compile(r"/forgot-password$")),
    "resetPassword": RouteRule("POST", path=re.compile(r"/reset-password$")),
}


def collect_mutations(nodes: Sequence[UINode]) -> dict[str, tuple[UINode, ...]]:
    """First occurrence of every ``!name(args)`` in the UI tree, in tree order."""
    found: dict[str, tuple[UINode, ...]] = {}
    for node in walk(list(nodes)):
        if isinstance(node, Unary) and node.op == UnaryOp.MUTATE and isinstance(node.operand, Element):
            found.setdefault(node.operand.name, node.operand.children)
    return found


def extract_model_hint(args: Sequence[UINode]) -> str | None:
    """Plural resource name referenced by the first argument (``#task.id`` -> ``tasks``)."""
    if not args:
        return None
    arg = args[0]
    if isinstance(arg, Unary) and arg.op == UnaryOp.REF:
        arg = arg.operand
    if not (isinstance(arg, Binary) and arg.op == BinaryOp.DOT):
        return None
    left = arg.left
    if isinstance(left, Unary) and left.op == UnaryOp.REF:
        left = left.operand
    if not isinstance(left, Element):
        return None
    name = left.name
    return name if name.endswith("s") else f"{name}s"


def _select(rule: RouteRule, candidates: list[ApiRoute], args: Sequence[UINode]) -> ApiRoute | None:
    if rule.uses_model_hint:
        hint = extract_model_hint(args)
        if hint is None:
            return candidates[0]
        for route in candidates:
            if f"/{hint}" in route.path:
                return route
        return candidates[0] if len(candidates) == 1 else None
    if rule.prefer_path is not None:
        for route in candidates:
            if rule.prefer_path in route.path:
                return route
        return None if rule.require_preferred else candidates[0]
    return candidates[0]


def _state_setter(path: str, context: Context) -> str | None:
    segments = static_segments(path)
    if segments:
        name = camel_segment(segments[-1])
        if context.state_field(name) is not None:
            return f"set{capitalize(name)}"
    arrays = [f for f in context.state if isinstance(unwrap_optional(f.type), ArrayType)]
    if len(arrays) == 1:
        return f"set{capitalize(arrays[0].name)}"
    return None


def build_match(route: ApiRoute, routes: Sequence[ApiRoute], context: Context) -> MutationRouteMatch:
    """Attach the refetch function and state setter for a matched route."""
    collection = base_path(route.path)
    refetch = next((r for r in routes if r.method == "GET" and r.path == collection), None)
    return MutationRouteMatch(
        fn_name=route.function_name,
        method=route.method,
        refetch_fn_name=refetch.function_name if refetch else None,
        refetch_setter=_state_setter(collection, context) if refetch else None,
        handler=route.handler,
        route=route,
    )


def find_generic_route_match(name: str, routes: Sequence[ApiRoute]) -> ApiRoute | None:
    """Fallback search for mutation names without a dedicated rule."""
    kebab = kebab_case(name)
    for method in ("POST", "PUT"):
        for route in routes:
            if route.method == method and route.path.endswith(f"/{kebab}"):
                return route

    match = _VERB_MODEL.match(name)
    if match:
        verb, model = match.groups()
        if verb in ("create", "add"):
            method, op = "POST", ".create"
        elif verb in ("delete", "remove"):
            method, op = "DELETE", ".delete"
        else:
            method, op = "PUT", ".update"
        plural = f"/{pluralize(lower_first(model))}"
        for route in routes:
            if route.method == method and plural in route.path and route.handler.endswith(op):
                return route

    if name in ACTION_VERBS:
        for route in routes:
            if route.method == "PUT" and route.handler.endswith(".update"):
                return route
    return None


def find_matching_route(
    name: str,
    routes: Sequence[ApiRoute],
    context: Context,
    args: Sequence[UINode] = (),
) -> MutationRouteMatch | None:
    """Resolve a UI mutation name to a backend route, or None."""
    for route in routes:
        if route.contract == name:
            return build_match(route, routes, context)

    chosen: ApiRoute | None = None
    rule = MUTATION_RULES.get(name)
    if rule is not None:
        candidates = [route for route in routes if rule.matches(route)]
        if candidates:
            chosen = _select(rule, candidates, args)
    if chosen is None:
        chosen = find_generic_route_match(name, routes)
    if chosen is None:
        return None
    return build_match(chosen, routes, context)
