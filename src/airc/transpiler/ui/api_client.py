"""``api.js``: one fetch wrapper per expanded route plus bearer-token helpers."""

from __future__ import annotations

import re

from airc.transpiler.context import Context
from airc.transpiler.output import join_lines
from airc.transpiler.routes import ApiRoute, extract_path_params


TOKEN_HELPERS = [
    "const API_BASE = import.meta.env.VITE_API_BASE_URL ?? 'http://localhost:3001/api';",
    "",
    "let authToken = typeof localStorage !== 'undefined' ? localStorage.getItem('auth_token') : null;",
    "",
    "export function setToken(token) {",
    "  authToken = token;",
    "  localStorage.setItem('auth_token', token);",
    "}",
    "",
    "export function clearToken() {",
    "  authToken = null;",
    "  localStorage.removeItem('auth_token');",
    "}",
    "",
    "function headers(json = false) {",
    "  const result = json ? { 'Content-Type': 'application/json' } : {};",
    "  if (authToken) result.Authorization = `Bearer ${authToken}`;",
    "  return result;",
    "}",
    "",
]


def _url(route: ApiRoute) -> str:
    path = re.sub(r":(\w+)", r"${\1}", route.path)
    return f"`${{API_BASE}}{path}`"


def route_function(route: ApiRoute) -> list[str]:
    params = extract_path_params(route.path)
    has_body = route.method in ("POST", "PUT", "PATCH")
    is_list = route.method == "GET" and not params and route.target_op == "findMany"

    args = list(params)
    if has_body:
        args.append("data")
    if is_list:
        args.append("{ page, limit } = {}")

    lines: list[str] = []
    if route.target_model is not None:
        many = "[]" if route.method == "GET" and not params else ""
        lines.append(f"/** @returns {{Promise<import('./types').{route.target_model}{many}>}} */")
    lines.append(f"export async function {route.function_name}({', '.join(args)}) {{")
    url = _url(route)
    if is_list:
        lines.extend(
            [
                "  const params = new URLSearchParams();",
                "  if (page !== undefined) params.set('page', String(page));",
                "  if (limit !== undefined) params.set('limit', String(limit));",
                "  const qs = params.toString();",
                f"  const url = qs ? {url} + '?' + qs : {url};",
            ]
        )
        url = "url"
    if route.method == "GET":
        lines.append(f"  const res = await fetch({url}, {{ headers: headers() }});")
    elif route.method == "DELETE":
        lines.append(f"  const res = await fetch({url}, {{ method: 'DELETE', headers: headers() }});")
    else:
        lines.extend(
            [
                f"  const res = await fetch({url}, {{",
                f"    method: '{route.method}',",
                "    headers: headers(true),",
                "    body: JSON.stringify(data ?? {}),",
                "  });",
            ]
        )
    lines.append(f"  if (!res.ok) throw new Error(`{route.method} {route.path} failed: ${{res.status}}`);")
    lines.extend(["  return res.json();", "}", ""])
    return lines


def generate_api_client(context: Context) -> str:
    lines = list(TOKEN_HELPERS)
    seen: set[str] = set()
    for route in context.expanded_routes:
        # first declaration wins when two routes derive the same name
        if route.function_name in seen:
            continue
        seen.add(route.function_name)
        lines.extend(route_function(route))
    return join_lines(lines)
