"""Request-body types: ``server/types.ts`` and ``server/validation.ts``."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from airc.language.blocks import (
    AirType,
    ArrayType,
    EnumType,
    ObjectType,
    OptionalType,
    RefType,
    ScalarType,
)
from airc.transpiler.context import Context
from airc.transpiler.naming import camel_case, capitalize
from airc.transpiler.output import join_lines
from airc.transpiler.routes import ApiRoute, static_segments


BODY_METHODS = frozenset({"POST", "PUT", "PATCH"})


@dataclass(frozen=True, slots=True)
class BodyField:
    name: str
    type: AirType
    required: bool


def ts_type(air_type: AirType) -> str:
    """TypeScript spelling of an AIR type."""
    match air_type:
        case ScalarType(kind="int" | "float"):
            return "number"
        case ScalarType(kind="bool"):
            return "boolean"
        case ScalarType():
            return "string"
        case EnumType(values=values) if values:
            return " | ".join(f"'{value}'" for value in values)
        case EnumType():
            return "string"
        case OptionalType(of=inner):
            return f"{ts_type(inner)} | null"
        case ArrayType(of=inner):
            inner_ts = ts_type(inner)
            return f"({inner_ts})[]" if " " in inner_ts else f"{inner_ts}[]"
        case ObjectType(fields=fields) if fields:
            return "{ " + "; ".join(f"{f.name}: {ts_type(f.type)}" for f in fields) + " }"
        case ObjectType():
            return "Record<string, unknown>"
        case RefType():
            return "number"
    return "unknown"


def validation_type(air_type: AirType) -> str:
    """Runtime ``typeof`` class used by ``validateFields``."""
    match air_type:
        case OptionalType(of=inner):
            return "optional_" + validation_type(inner).removeprefix("optional_")
        case ScalarType(kind="int" | "float"):
            return "number"
        case ScalarType(kind="bool"):
            return "boolean"
        case ArrayType() | ObjectType():
            return "object"
        case RefType():
            return "number"
    return "string"


def route_body(route: ApiRoute, context: Context) -> tuple[BodyField, ...]:
    """Body fields a route accepts: declared params, else inferred from the model."""
    if route.params:
        return tuple(
            BodyField(param.name, param.type, not isinstance(param.type, OptionalType)) for param in route.params
        )
    if route.method not in BODY_METHODS or route.contract is not None:
        return ()
    model = context.model(route.target_model or "")
    if model is None or route.target_op not in ("create", "update"):
        return ()
    writable = [f for f in model.fields if not f.primary and not f.auto]
    if route.target_op == "update":
        return tuple(BodyField(f.name, f.type, False) for f in writable)
    required = [f for f in writable if f.required]
    chosen = required or writable
    return tuple(BodyField(f.name, f.type, f.required) for f in chosen)


def _base_type_name(route: ApiRoute) -> str:
    if route.contract is not None:
        return f"{capitalize(route.contract)}Body"
    target = route.target
    if target is not None:
        model, op = target
        return f"{capitalize(op)}{model}Body"
    segments = static_segments(route.path)
    last = capitalize(camel_case(segments[-1])) if segments else "Request"
    if route.method in ("PUT", "PATCH"):
        return f"Update{last}Body"
    return f"{last}Body"


def body_type_names(routes: Sequence[ApiRoute], context: Context) -> dict[ApiRoute, str]:
    """Interface name per route with a body; duplicates get a numeric suffix."""
    names: dict[ApiRoute, str] = {}
    used: set[str] = set()
    for route in routes:
        if not route_body(route, context):
            continue
        base = _base_type_name(route)
        name = base
        counter = 2
        while name in used:
            name = f"{base.removesuffix('Body')}{counter}Body"
            counter += 1
        used.add(name)
        names[route] = name
    return names


def generate_types_file(context: Context) -> str:
    lines = [
        "// Request body types derived from @api routes and @handler contracts",
        "",
    ]
    names = body_type_names(context.expanded_routes, context)
    for route, type_name in names.items():
        lines.append(f"export interface {type_name} {{")
        for body_field in route_body(route, context):
            optional = "" if body_field.required else "?"
            lines.append(f"  {body_field.name}{optional}: {ts_type(body_field.type)};")
        lines.append("}")
        lines.append("")
    if not names:
        lines.append("export {};")
    return join_lines(lines)


def _field_kind(body_field: BodyField) -> str:
    kind = validation_type(body_field.type).removeprefix("optional_")
    return kind if body_field.required else f"optional_{kind}"


def validation_schema(fields: Sequence[BodyField]) -> str:
    entries = [f"{f.name}: '{_field_kind(f)}'" for f in fields]
    return "{ " + ", ".join(entries) + " }"


def generate_validation_file() -> str:
    return join_lines(
        [
            "type FieldKind = 'string' | 'number' | 'boolean' | 'object'",
            "  | 'optional_string' | 'optional_number' | 'optional_boolean' | 'optional_object';",
            "",
            "/** Throw a 400 error when any required field is missing. */",
            "export function assertRequired(body: Record<string, unknown>, fields: string[]): void {",
            "  const missing = fields.filter((f) => body[f] === undefined || body[f] === null);",
            "  if (missing.length > 0) {",
            "    const err = new Error(`Missing required fields: ${missing.join(', ')}`) as Error & { status: number };",
            "    err.status = 400;",
            "    throw err;",
            "  }",
            "}",
            "",
            "/** Parse an integer route parameter or throw a 400 error. */",
            "export function assertIntParam(value: string, name = 'id'): number {",
            "  const parsed = parseInt(value, 10);",
            "  if (isNaN(parsed)) {",
            "    const err = new Error(`Invalid ${name}: must be an integer`) as Error & { status: number };",
            "    err.status = 400;",
            "    throw err;",
            "  }",
            "  return parsed;",
            "}",
            "",
            "/** Check field types against a schema; returns one message per mismatch. */",
            "export function validateFields(body: Record<string, unknown>, schema: Record<string, FieldKind>): string[] {",
            "  const errors: string[] = [];",
            "  for (const [field, kind] of Object.entries(schema)) {",
            "    const value = body[field];",
            "    const optional = kind.startsWith('optional_');",
            "    const expected = optional ? kind.slice('optional_'.length) : kind;",
            "    if (value === undefined || value === null) {",
            "      if (!optional) errors.push(`${field} is required`);",
            "      continue;",
            "    }",
            "    if (typeof value !== expected) errors.push(`${field} must be a ${expected}`);",
            "  }",
            "  return errors;",
            "}",
        ]
    )
