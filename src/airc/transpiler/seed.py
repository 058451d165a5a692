"""Deterministic sample data and ``server/seed.ts`` generation."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from airc.language.blocks import (
    AirType,
    ArrayType,
    DbField,
    DbModel,
    EnumType,
    ObjectType,
    OptionalType,
    RefType,
    ScalarType,
)
from airc.logging_config import get_logger
from airc.transpiler.context import Context
from airc.transpiler.naming import js_string, model_var
from airc.transpiler.relations import RelationGraph, ResolvedRelation, SeedOrder, resolve_relations, seed_order


logger = get_logger("seed")

RECORDS_PER_MODEL = 3
FIRST_NAMES = ("Alice", "Bob", "Carol")
LAST_NAMES = ("Johnson", "Smith", "Davis")
CITIES = ("Portland", "Austin", "Denver")
COLORS = ("#6366f1", "#10b981", "#f59e0b")


@dataclass(frozen=True, slots=True)
class SampleRule:
    """Name-based sample value: ``names`` match the lowercased field name."""

    names: frozenset[str]
    kinds: frozenset[str]
    value: Callable[[str, str, int], str]


def _rule(names: str, kinds: str, value: Callable[[str, str, int], str]) -> SampleRule:
    return SampleRule(frozenset(names.split()), frozenset(kinds.split()), value)


SAMPLE_RULES: tuple[SampleRule, ...] = (
    _rule("email", "str", lambda _f, _m, n: js_string(f"user{n}@example.com")),
    _rule("name fullname full_name", "str", lambda _f, _m, n: js_string(f"{FIRST_NAMES[n - 1]} {LAST_NAMES[n - 1]}")),
    _rule("firstname first_name", "str", lambda _f, _m, n: js_string(FIRST_NAMES[n - 1])),
    _rule("lastname last_name", "str", lambda _f, _m, n: js_string(LAST_NAMES[n - 1])),
    _rule("username handle", "str", lambda _f, _m, n: js_string(f"user{n}")),
    _rule("slug", "str", lambda _f, m, n: js_string(f"sample-{m.lower()}-{n}")),
    _rule("password", "str", lambda _f, _m, n: js_string(f"password{n}")),
    _rule("title subject headline", "str", lambda _f, m, n: js_string(f"{m} {n}")),
    _rule(
        "description summary bio content body notes note message",
        "str",
        lambda f, m, n: js_string(f"Sample {f} for {m.lower()} {n}."),
    ),
    _rule("phone mobile", "str", lambda _f, _m, n: js_string(f"555-010{n}")),
    _rule("url website link", "str", lambda _f, m, n: js_string(f"https://example.com/{m.lower()}/{n}")),
    _rule(
        "image avatar photo thumbnail cover",
        "str",
        lambda _f, m, n: js_string(f"https://picsum.photos/seed/{m.lower()}{n}/400/300"),
    ),
    _rule("color colour", "str", lambda _f, _m, n: js_string(COLORS[n - 1])),
    _rule("city location", "str", lambda _f, _m, n: js_string(CITIES[n - 1])),
    _rule("price amount cost total budget", "float", lambda _f, _m, n: f"{n * 19.99:.2f}"),
    _rule("price amount cost total budget", "int", lambda _f, _m, n: str(n * 100)),
    _rule("rating score stars", "int float", lambda _f, _m, n: str(min(5, n + 2))),
    _rule("quantity qty stock count", "int", lambda _f, _m, n: str(n * 5)),
    _rule("priority order position rank", "int", lambda _f, _m, n: str(n)),
)


def _base(air_type: AirType) -> AirType:
    return air_type.of if isinstance(air_type, OptionalType) else air_type


def _type_fallback(field: DbField, model_name: str, index: int, air_type: AirType) -> str:
    match air_type:
        case ScalarType(kind="int"):
            return str(index * 10)
        case ScalarType(kind="float"):
            return str(index * 10.5)
        case ScalarType(kind="bool"):
            return "true" if index % 2 == 0 else "false"
        case ScalarType(kind="date" | "datetime"):
            return f"new Date('2024-01-{index:02d}T09:00:00.000Z')"
        case EnumType(values=values) if values:
            return js_string(values[(index - 1) % len(values)])
        case ArrayType() | ObjectType():
            return "{}"
        case RefType():
            return str(index)
    return js_string(f"Sample {field.name} {index}")


def sample_value(field: DbField, model_name: str, index: int) -> str:
    """JS literal for ``field`` of record ``index`` (1-based).

    Optional fields are ``null`` on the first record and populated after.
    """
    if isinstance(field.type, OptionalType) and index == 1:
        return "null"
    air_type = _base(field.type)
    kind = air_type.kind if isinstance(air_type, ScalarType) else ""
    lowered = field.name.lower()
    for rule in SAMPLE_RULES:
        if lowered in rule.names and kind in rule.kinds:
            return rule.value(field.name, model_name, index)
    return _type_fallback(field, model_name, index, air_type)


def seedable_fields(model: DbModel) -> list[DbField]:
    """Fields seed data sets explicitly; auto-managed columns are skipped."""
    return [field for field in model.fields if not field.auto]


def _record_var(model_name: str, index: int) -> str:
    return f"{model_var(model_name)}{index}"


def _fk_value(
    edge: ResolvedRelation,
    index: int,
    created: set[str],
    context: Context,
) -> str:
    if edge.parent_model not in created:
        return "null"
    parent = context.model(edge.parent_model)
    key = parent.primary_key.name if parent and parent.primary_key else "id"
    return f"{_record_var(edge.parent_model, index)}.{key}"


def _record_fields(
    model: DbModel,
    index: int,
    fk_edges: dict[str, ResolvedRelation],
    created: set[str],
    context: Context,
) -> str:
    values: list[str] = []
    for field in seedable_fields(model):
        edge = fk_edges.get(field.name)
        if edge is not None:
            value = _fk_value(edge, index, created, context)
        else:
            value = sample_value(field, model.name, index)
        values.append(f"{field.name}: {value}")
    return "{ " + ", ".join(values) + " }"


def _cycle_comments(order: SeedOrder) -> list[str]:
    lines = [f"  // Broken relation cycle at {edge.describe()} (seeded as null)" for edge in order.broken]
    if order.unresolved:
        lines.append(
            "  // Relation cycle without optional edge among "
            f"{', '.join(order.unresolved)}; seed order may violate foreign keys"
        )
    return lines


def generate_seed_file(context: Context, graph: RelationGraph | None = None) -> str:
    """Build ``seed.ts``: wipe in deletion order, then create in creation order."""
    graph = graph if graph is not None else resolve_relations(context.db)
    names = [model.name for model in context.models]
    order = seed_order(names, graph)
    related = graph.related_models()

    lines = [
        "import { PrismaClient } from '@prisma/client';",
        "",
        "const prisma = new PrismaClient();",
        "",
        "async function main() {",
    ]
    lines.extend(_cycle_comments(order))
    for name in order.deletion:
        lines.append(f"  await prisma.{model_var(name)}.deleteMany();")
    lines.append("")

    created: set[str] = set()
    for name in order.creation:
        model = context.model(name)
        if model is None:
            continue
        fk_edges = {edge.fk_field: edge for edge in graph.parents_of(name)}
        if name in related:
            for index in range(1, RECORDS_PER_MODEL + 1):
                data = _record_fields(model, index, fk_edges, created, context)
                lines.append(
                    f"  const {_record_var(name, index)} = await prisma.{model_var(name)}.create({{ data: {data} }});"
                )
        elif not seedable_fields(model):
            lines.append(f"  // {name}: no seedable fields")
        else:
            lines.append(f"  await prisma.{model_var(name)}.createMany({{")
            lines.append("    data: [")
            for index in range(1, RECORDS_PER_MODEL + 1):
                lines.append(f"      {_record_fields(model, index, fk_edges, created, context)},")
            lines.append("    ],")
            lines.append("  });")
        created.add(name)
        lines.append("")

    lines.extend(
        [
            "  console.log('Seeded database');",
            "}",
            "",
            "main()",
            "  .catch((error) => {",
            "    console.error(error);",
            "    process.exit(1);",
            "  })",
            "  .finally(() => prisma.$disconnect());",
            "",
        ]
    )
    logger.info("Seed order: %s", ", ".join(order.creation))
    return "\n".join(lines)
