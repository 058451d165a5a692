"""``server/prisma/schema.prisma`` from the ``@db`` block and its relation graph."""

from __future__ import annotations

from dataclasses import dataclass

from airc.language.blocks import (
    AirType,
    ArrayType,
    DbBlock,
    DbField,
    DbModel,
    EnumType,
    ObjectType,
    OptionalType,
    RefType,
    ScalarType,
    unwrap_optional,
)
from airc.transpiler.naming import capitalize, lower_first, pluralize
from airc.transpiler.output import join_lines
from airc.transpiler.relations import ManyToMany, RelationGraph, ResolvedRelation, relation_name


SCALARS = {"str": "String", "int": "Int", "float": "Float", "bool": "Boolean", "date": "DateTime", "datetime": "DateTime"}
ON_DELETE = {"cascade": "Cascade", "setNull": "SetNull", "restrict": "Restrict"}
IMPLICIT_DEFAULTS = {"bool": "false", "int": "0", "float": "0", "str": '""', "date": "now()", "datetime": "now()"}

HEADER = [
    "generator client {",
    '  provider = "prisma-client-js"',
    "}",
    "",
    "datasource db {",
    '  provider = "sqlite"',
    '  url      = env("DATABASE_URL")',
    "}",
]


def enum_name(model: DbModel, field: DbField) -> str:
    return f"{model.name}{capitalize(field.name)}"


def _literal(value: object, air_type: AirType) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(air_type, EnumType):
        return str(value)
    escaped = str(value).replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


@dataclass
class _SchemaWriter:
    db: DbBlock
    graph: RelationGraph

    def __post_init__(self) -> None:
        self.fk_edges = {(edge.child_model, edge.fk_field): edge for edge in self.graph.edges}
        self.unique_fields = {
            tuple(index.fields) for index in self.db.indexes if index.unique and len(index.fields) == 1
        }
        self.m2m_fields: dict[tuple[str, str], ManyToMany] = {}
        for group in self.graph.many_to_many:
            self.m2m_fields[(group.model_a, group.field_a)] = group
            if group.field_b:
                self.m2m_fields[(group.model_b, group.field_b)] = group
        self.declared_back: dict[tuple[str, str], str] = {}
        for relation in self.db.relations:
            ends = [relation.source.partition("."), relation.target.partition(".")]
            for (model_name, _, field_name), (other, _, other_field) in (ends, ends[::-1]):
                model = self.db.model(model_name)
                field = model.field(field_name) if model else None
                if field is not None and isinstance(unwrap_optional(field.type), ArrayType):
                    self.declared_back[(other, other_field)] = field_name

    def primary_type(self, model_name: str) -> str:
        model = self.db.model(model_name)
        key = model.primary_key if model else None
        if key is None:
            return "Int"
        return self.prisma_type(model, key)

    def prisma_type(self, model: DbModel, field: DbField) -> str:
        base = unwrap_optional(field.type)
        match base:
            case ScalarType(kind=kind):
                return SCALARS.get(kind, "String")
            case EnumType():
                return enum_name(model, field)
            case RefType(entity=entity) if self.db.model(entity) is not None:
                return self.primary_type(entity)
            case RefType():
                return "Int"
            case ArrayType() | ObjectType():
                return "Json"
        return "String"

    def attributes(self, model: DbModel, field: DbField, is_fk: bool) -> list[str]:
        base = unwrap_optional(field.type)
        kind = base.kind if isinstance(base, ScalarType) else ""
        attrs: list[str] = []
        if field.primary:
            attrs.append("@id")
        if field.auto:
            if kind == "int" and field.primary:
                attrs.append("@default(autoincrement())")
            elif kind in ("date", "datetime"):
                attrs.append("@updatedAt" if "updated" in field.name.lower() else "@default(now())")
            elif kind == "str":
                attrs.append("@default(uuid())")
            elif kind in IMPLICIT_DEFAULTS:
                attrs.append(f"@default({IMPLICIT_DEFAULTS[kind]})")
        elif field.default is not None:
            attrs.append(f"@default({_literal(field.default, base)})")
        elif isinstance(base, ScalarType) and base.default is not None:
            attrs.append(f"@default({_literal(base.default, base)})")
        elif not (field.primary or field.required or is_fk or isinstance(field.type, OptionalType)):
            if kind in IMPLICIT_DEFAULTS:
                attrs.append(f"@default({IMPLICIT_DEFAULTS[kind]})")
            elif isinstance(base, EnumType) and base.values:
                attrs.append(f"@default({base.values[0]})")
        if not field.primary and self._unique(model, field):
            attrs.append("@unique")
        return attrs

    def _unique(self, model: DbModel, field: DbField) -> bool:
        return (f"{model.name}.{field.name}",) in self.unique_fields or (field.name,) in self.unique_fields

    def optional(self, field: DbField, edge: ResolvedRelation | None) -> bool:
        if isinstance(field.type, OptionalType):
            return True
        if edge is not None and edge.optional:
            return True
        base = unwrap_optional(field.type)
        return isinstance(base, (ArrayType, ObjectType)) and not field.required

    def field_line(self, model: DbModel, field: DbField) -> str:
        group = self.m2m_fields.get((model.name, field.name))
        if group is not None:
            other = group.model_b if group.model_a == model.name else group.model_a
            return f"  {field.name} {other}[] @relation(\"{group.model_a}_{group.model_b}\")"
        if field.name in self.back_fields(model):
            return ""
        edge = self.fk_edges.get((model.name, field.name))
        type_name = self.prisma_type(model, field)
        if self.optional(field, edge):
            type_name += "?"
        parts = [field.name, type_name, *self.attributes(model, field, edge is not None)]
        return "  " + " ".join(parts)

    # ---- relation fields ----

    def relation_label(self, edge: ResolvedRelation) -> str:
        return f"{edge.child_model}_{edge.fk_field}"

    def child_side(self, model: DbModel, edge: ResolvedRelation) -> str:
        name = relation_name(edge)
        if model.field(name) is not None:
            name = f"{edge.fk_field}Ref"
        parent = self.db.model(edge.parent_model)
        key = parent.primary_key.name if parent and parent.primary_key else "id"
        optional = "?" if edge.optional else ""
        parts = [f'"{self.relation_label(edge)}"', f"fields: [{edge.fk_field}]", f"references: [{key}]"]
        if edge.on_delete in ON_DELETE:
            parts.append(f"onDelete: {ON_DELETE[edge.on_delete]}")
        return f"  {name} {edge.parent_model}{optional} @relation({', '.join(parts)})"

    def back_fields(self, model: DbModel) -> set[str]:
        """Declared list fields standing in for the parent side of an FK edge."""
        return {
            name
            for (child, fk), name in self.declared_back.items()
            if (child, fk) in self.fk_edges and self.fk_edges[(child, fk)].parent_model == model.name
        }

    def parent_side(self, model: DbModel, edge: ResolvedRelation, siblings: int) -> str:
        name = pluralize(lower_first(edge.child_model))
        if siblings > 1 or edge.child_model == edge.parent_model:
            name = f"{name}By{capitalize(relation_name(edge))}"
        if model.field(name) is not None:
            name = f"{name}List"
        declared = self.declared_back.get((edge.child_model, edge.fk_field))
        if declared is not None and model.field(declared) is not None:
            name = declared
        child = self.db.model(edge.child_model)
        fk_field = child.field(edge.fk_field) if child else None
        one_to_one = fk_field is not None and child is not None and self._unique(child, fk_field)
        suffix = "?" if one_to_one else "[]"
        return f'  {name} {edge.child_model}{suffix} @relation("{self.relation_label(edge)}")'

    def m2m_back_fields(self, model: DbModel) -> list[str]:
        lines = []
        for group in self.graph.many_to_many:
            if group.model_b == model.name and not (group.field_b and model.field(group.field_b)):
                name = pluralize(lower_first(group.model_a))
                lines.append(f'  {name} {group.model_a}[] @relation("{group.model_a}_{group.model_b}")')
        return lines

    def model_block(self, model: DbModel) -> list[str]:
        lines = [f"model {model.name} {{"]
        lines.extend(line for line in (self.field_line(model, field) for field in model.fields) if line)
        for edge in self.graph.parents_of(model.name):
            if model.field(edge.fk_field) is not None:
                lines.append(self.child_side(model, edge))
        children = self.graph.children_of(model.name)
        for edge in children:
            siblings = sum(1 for other in children if other.child_model == edge.child_model)
            lines.append(self.parent_side(model, edge, siblings))
        lines.extend(self.m2m_back_fields(model))
        lines.extend(self.model_indexes(model))
        lines.append("}")
        return lines

    def model_indexes(self, model: DbModel) -> list[str]:
        lines: list[str] = []
        for index in self.db.indexes:
            owners = {name.split(".")[0] for name in index.fields if "." in name}
            if owners and owners != {model.name}:
                continue
            columns = [name.split(".")[-1] for name in index.fields]
            if not owners and not all(model.field(column) for column in columns):
                continue
            if index.unique and len(columns) == 1:
                continue
            attribute = "@@unique" if index.unique else "@@index"
            lines.append(f"  {attribute}([{', '.join(columns)}])")
        if lines:
            lines.insert(0, "")
        return lines

    def enums(self) -> list[str]:
        lines: list[str] = []
        for model in self.db.models:
            for field in model.fields:
                base = unwrap_optional(field.type)
                if isinstance(base, EnumType) and base.values:
                    lines.extend(["", f"enum {enum_name(model, field)} {{"])
                    lines.extend(f"  {value}" for value in base.values)
                    lines.append("}")
        return lines


def generate_prisma_schema(db: DbBlock, graph: RelationGraph) -> str:
    """Render the whole schema: generator, datasource, enums, then models."""
    writer = _SchemaWriter(db, graph)
    lines = list(HEADER)
    lines.extend(writer.enums())
    for model in db.models:
        lines.append("")
        lines.extend(writer.model_block(model))
    return join_lines(lines)
