"""Foreign-key graph of the ``@db`` models and the seed ordering it implies.

Edges point from a child model to the parent it references. The ordering is
a Kahn-style sort: each round takes every remaining model with no remaining
parent, in lexical order. A cycle is broken by dropping its lexically-first
optional edge; when none exists the remaining models are appended in lexical
order and reported as unresolved.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from airc.language.blocks import ArrayType, DbBlock, DbField, DbModel, OptionalType, RefType


_FK_SUFFIX = re.compile(r"^(\w+?)(?:_id|Id)$")


@dataclass(frozen=True, slots=True)
class ResolvedRelation:
    """FK edge ``child_model.fk_field -> parent_model``."""

    child_model: str
    fk_field: str
    parent_model: str
    optional: bool
    on_delete: str | None = None

    def describe(self) -> str:
        return f"{self.child_model}.{self.fk_field} -> {self.parent_model}"


@dataclass(frozen=True, slots=True)
class ManyToMany:
    model_a: str
    model_b: str
    field_a: str
    field_b: str | None = None


@dataclass(frozen=True, slots=True)
class RelationGraph:
    edges: tuple[ResolvedRelation, ...] = ()
    many_to_many: tuple[ManyToMany, ...] = ()

    def related_models(self) -> frozenset[str]:
        names: set[str] = set()
        for edge in self.edges:
            names.update((edge.child_model, edge.parent_model))
        for group in self.many_to_many:
            names.update((group.model_a, group.model_b))
        return frozenset(names)

    def parents_of(self, model: str) -> list[ResolvedRelation]:
        return [edge for edge in self.edges if edge.child_model == model]

    def children_of(self, model: str) -> list[ResolvedRelation]:
        return [edge for edge in self.edges if edge.parent_model == model]


@dataclass(frozen=True, slots=True)
class SeedOrder:
    creation: tuple[str, ...]
    deletion: tuple[str, ...]
    broken: tuple[ResolvedRelation, ...] = ()
    unresolved: tuple[str, ...] = ()


def _split_ref(ref: str) -> tuple[str, str]:
    model, _, field_name = ref.partition(".")
    return model, field_name or "id"


def _is_primary(model: DbModel | None, field_name: str) -> bool:
    if model is None:
        return field_name == "id"
    primary = model.primary_key
    return primary is not None and primary.name == field_name


def _is_list(field: DbField | None) -> bool:
    if field is None:
        return False
    air_type = field.type.of if isinstance(field.type, OptionalType) else field.type
    return isinstance(air_type, ArrayType)


def _is_optional_fk(field: DbField | None, on_delete: str | None) -> bool:
    return on_delete == "setNull" or (field is not None and isinstance(field.type, OptionalType))


def _model_lookup(db: DbBlock) -> dict[str, str]:
    return {model.name.lower(): model.name for model in db.models}


def _implicit_parent(field: DbField, lookup: dict[str, str]) -> str | None:
    air_type = field.type.of if isinstance(field.type, OptionalType) else field.type
    if isinstance(air_type, RefType):
        return lookup.get(air_type.entity.lower())
    match = _FK_SUFFIX.match(field.name)
    if match:
        return lookup.get(match.group(1).lower().replace("_", ""))
    return None


def resolve_relations(db: DbBlock | None) -> RelationGraph:
    """Build FK edges from declared relations plus ref and ``*_id`` fields."""
    if db is None:
        return RelationGraph()
    edges: dict[tuple[str, str], ResolvedRelation] = {}
    many: list[ManyToMany] = []

    for relation in db.relations:
        model_a, field_a = _split_ref(relation.source)
        model_b, field_b = _split_ref(relation.target)
        left, right = db.model(model_a), db.model(model_b)
        left_field = left.field(field_a) if left else None
        right_field = right.field(field_b) if right else None

        if _is_list(left_field) and _is_list(right_field):
            many.append(ManyToMany(model_a, model_b, field_a, field_b))
            continue
        if _is_primary(right, field_b) or _is_list(right_field):
            child, fk, parent, fk_field = model_a, field_a, model_b, left_field
        else:
            child, fk, parent, fk_field = model_b, field_b, model_a, right_field
        edge = ResolvedRelation(child, fk, parent, _is_optional_fk(fk_field, relation.on_delete), relation.on_delete)
        edges.setdefault((child, fk), edge)

    lookup = _model_lookup(db)
    for model in db.models:
        for field in model.fields:
            if field.primary:
                continue
            parent = _implicit_parent(field, lookup)
            if parent is None:
                continue
            edge = ResolvedRelation(model.name, field.name, parent, _is_optional_fk(field, None))
            edges.setdefault((model.name, field.name), edge)

    return RelationGraph(tuple(edges.values()), tuple(many))


def seed_order(models: list[str], graph: RelationGraph) -> SeedOrder:
    """Creation order (parents first) and deletion order (children first)."""
    remaining = set(models)
    active = [edge for edge in graph.edges if edge.child_model != edge.parent_model]
    order: list[str] = []
    broken: list[ResolvedRelation] = []
    unresolved: list[str] = []

    while remaining:
        live = [edge for edge in active if edge.child_model in remaining and edge.parent_model in remaining]
        blocked = {edge.child_model for edge in live}
        ready = sorted(remaining - blocked)
        if ready:
            order.extend(ready)
            remaining.difference_update(ready)
            continue
        optional = sorted(
            (edge for edge in live if edge.optional),
            key=lambda edge: (edge.child_model, edge.fk_field, edge.parent_model),
        )
        if optional:
            active.remove(optional[0])
            broken.append(optional[0])
            continue
        unresolved = sorted(remaining)
        order.extend(unresolved)
        break

    return SeedOrder(tuple(order), tuple(reversed(order)), tuple(broken), tuple(unresolved))


def relation_name(edge: ResolvedRelation) -> str:
    """Prisma relation field for an FK: ``project_id`` -> ``project``."""
    match = _FK_SUFFIX.match(edge.fk_field)
    if match and match.group(1) != edge.fk_field:
        return match.group(1)
    return f"{edge.fk_field}Ref"
