"""Typed records for the non-UI blocks of an AIR document."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TypeAlias

from airc.language.ast import UINode


LiteralValue: TypeAlias = str | int | float | bool


@dataclass(frozen=True, slots=True)
class AirType:
    """Base semantic type."""


@dataclass(frozen=True, slots=True)
class ScalarType(AirType):
    """``str``, ``int``, ``float``, ``bool``, ``date`` or ``datetime``."""

    kind: str
    default: LiteralValue | None = None


@dataclass(frozen=True, slots=True)
class EnumType(AirType):
    """Closed set of string values."""

    values: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class ArrayType(AirType):
    """Homogeneous list."""

    of: AirType


@dataclass(frozen=True, slots=True)
class ObjectType(AirType):
    """Record with named fields."""

    fields: tuple[Field, ...] = ()


@dataclass(frozen=True, slots=True)
class OptionalType(AirType):
    """Nullable wrapper."""

    of: AirType


@dataclass(frozen=True, slots=True)
class RefType(AirType):
    """Reference to a database model."""

    entity: str


@dataclass(frozen=True, slots=True)
class Field:
    """Named, typed field of state, params or objects."""

    name: str
    type: AirType


def unwrap_optional(air_type: AirType) -> AirType:
    """Strip an optional wrapper when present."""
    if isinstance(air_type, OptionalType):
        return air_type.of
    return air_type


def type_kind(air_type: AirType) -> str:
    """Short kind label used by the code generators."""
    match air_type:
        case ScalarType(kind=kind):
            return kind
        case EnumType():
            return "enum"
        case ArrayType():
            return "array"
        case ObjectType():
            return "object"
        case OptionalType():
            return "optional"
        case RefType():
            return "ref"
    raise TypeError(f"Unknown type: {air_type!r}")


@dataclass(frozen=True, slots=True)
class Block:
    """Base block record."""


@dataclass(frozen=True, slots=True)
class StateBlock(Block):
    fields: tuple[Field, ...]


@dataclass(frozen=True, slots=True)
class StyleBlock(Block):
    properties: dict[str, LiteralValue]


@dataclass(frozen=True, slots=True)
class UIBlock(Block):
    children: tuple[UINode, ...]


@dataclass(frozen=True, slots=True)
class Route:
    """One ``METHOD:/path(params)>handler`` declaration."""

    method: str
    path: str
    handler: str
    params: tuple[Field, ...] = ()


@dataclass(frozen=True, slots=True)
class ApiBlock(Block):
    routes: tuple[Route, ...]


@dataclass(frozen=True, slots=True)
class AuthBlock(Block):
    required: bool
    role: str | tuple[str, ...] | None = None
    redirect: str | None = None


@dataclass(frozen=True, slots=True)
class NavRoute:
    path: str
    target: str
    condition: str | None = None
    fallback: str | None = None


@dataclass(frozen=True, slots=True)
class NavBlock(Block):
    routes: tuple[NavRoute, ...]


@dataclass(frozen=True, slots=True)
class PersistBlock(Block):
    method: str
    keys: tuple[str, ...]
    options: dict[str, LiteralValue] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class Hook:
    trigger: str
    actions: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class HookBlock(Block):
    hooks: tuple[Hook, ...]


@dataclass(frozen=True, slots=True)
class DbField:
    """Model column with its modifiers."""

    name: str
    type: AirType
    primary: bool = False
    required: bool = False
    auto: bool = False
    default: LiteralValue | None = None


@dataclass(frozen=True, slots=True)
class DbModel:
    name: str
    fields: tuple[DbField, ...]

    def field(self, name: str) -> DbField | None:
        """Return the field called ``name`` if declared."""
        for db_field in self.fields:
            if db_field.name == name:
                return db_field
        return None

    @property
    def primary_key(self) -> DbField | None:
        for db_field in self.fields:
            if db_field.primary:
                return db_field
        return self.field("id")


@dataclass(frozen=True, slots=True)
class DbRelation:
    """``@relation(Left.field<>Right.field[:action])``."""

    source: str
    target: str
    on_delete: str | None = None


@dataclass(frozen=True, slots=True)
class DbIndex:
    fields: tuple[str, ...]
    unique: bool = False


@dataclass(frozen=True, slots=True)
class DbBlock(Block):
    models: tuple[DbModel, ...]
    relations: tuple[DbRelation, ...] = ()
    indexes: tuple[DbIndex, ...] = ()

    def model(self, name: str) -> DbModel | None:
        """Return the model called ``name`` if declared."""
        for model in self.models:
            if model.name == name:
                return model
        return None


@dataclass(frozen=True, slots=True)
class CronJob:
    name: str
    schedule: str
    handler: str


@dataclass(frozen=True, slots=True)
class CronBlock(Block):
    jobs: tuple[CronJob, ...]


@dataclass(frozen=True, slots=True)
class WebhookRoute:
    method: str
    path: str
    handler: str


@dataclass(frozen=True, slots=True)
class WebhookBlock(Block):
    routes: tuple[WebhookRoute, ...]


@dataclass(frozen=True, slots=True)
class QueueJob:
    name: str
    handler: str
    params: tuple[Field, ...] = ()


@dataclass(frozen=True, slots=True)
class QueueBlock(Block):
    jobs: tuple[QueueJob, ...]


@dataclass(frozen=True, slots=True)
class EmailTemplate:
    name: str
    subject: str
    params: tuple[Field, ...] = ()


@dataclass(frozen=True, slots=True)
class EmailBlock(Block):
    templates: tuple[EmailTemplate, ...]


@dataclass(frozen=True, slots=True)
class EnvVar:
    name: str
    type: str
    required: bool = False
    default: LiteralValue | None = None


@dataclass(frozen=True, slots=True)
class EnvBlock(Block):
    vars: tuple[EnvVar, ...]


@dataclass(frozen=True, slots=True)
class HandlerContract:
    """Named typed signature, optionally bound to ``~db.Model.op``."""

    name: str
    params: tuple[Field, ...] = ()
    target: str | None = None


@dataclass(frozen=True, slots=True)
class HandlerBlock(Block):
    contracts: tuple[HandlerContract, ...]


@dataclass(frozen=True, slots=True)
class DeployBlock(Block):
    properties: dict[str, LiteralValue]
