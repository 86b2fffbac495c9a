"""
Schema registry - classifies entity definitions into field descriptors.

Each entity is described once and the resulting EntitySchema is shared,
read-only, across all requests.

Usage:
    from selectgraph.core.registry import SchemaRegistry

    registry = SchemaRegistry.from_graph({
        "entities": {
            "Person": {"attributes": {"id": "uuid", "name": "string"}},
        }
    })
    schema = registry.describe("Person")
    schema.simple_field_names()  # ["id", "name"]
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Optional, Union

from .defs import ActionDef, AttributeDef, EntityDef, TypeRef
from .errors import EntityNotFoundError, SchemaError

logger = logging.getLogger(__name__)


class FieldKind(str, Enum):
    """Classification of an entity field. The set of kinds is closed."""
    SIMPLE = "attribute"
    CALCULATION = "calculation"
    CALCULATION_WITH_ARGS = "calculation_with_args"
    AGGREGATE = "aggregate"
    COMPLEX_AGGREGATE = "complex_aggregate"
    RELATIONSHIP = "relationship"
    EMBEDDED_RECORD = "embedded_resource"
    TAGGED_UNION = "union_attribute"
    TUPLE = "tuple"
    STRUCTURED_RECORD = "typed_struct"


# Kinds whose values are read from storage columns rather than loaded
SELECTED_KINDS = frozenset({
    FieldKind.SIMPLE,
    FieldKind.EMBEDDED_RECORD,
    FieldKind.TAGGED_UNION,
    FieldKind.TUPLE,
    FieldKind.STRUCTURED_RECORD,
})


@dataclass(frozen=True)
class FieldDescriptor:
    """Classified description of one public field of an entity."""
    name: str
    kind: FieldKind
    type: Optional[TypeRef] = None  # attribute type, calculation or aggregate return type
    destination: Optional[str] = None  # relationship target or embedded entity
    cardinality: Optional[str] = None  # "one" | "many" for relationships
    is_array: bool = False
    arguments: tuple[str, ...] = ()

    @property
    def is_primitive(self) -> bool:
        """True when the field is requested by bare name, never with a nested selection."""
        if self.kind in (FieldKind.SIMPLE, FieldKind.AGGREGATE):
            return True
        if self.kind == FieldKind.CALCULATION:
            return self.type is None or not self.type.is_structured
        return False

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"name": self.name, "kind": self.kind.value}
        if self.type is not None:
            data["type"] = self.type.to_dict()
        if self.destination:
            data["destination"] = self.destination
        if self.cardinality:
            data["cardinality"] = self.cardinality
        if self.is_array:
            data["is_array"] = True
        if self.arguments:
            data["arguments"] = list(self.arguments)
        return data


@dataclass(frozen=True)
class EntitySchema:
    """Immutable, ordered set of field descriptors for one entity."""
    name: str
    fields: tuple[FieldDescriptor, ...]
    actions: Mapping[str, ActionDef] = field(default_factory=dict, hash=False)
    embedded: bool = False
    _index: Mapping[str, FieldDescriptor] = field(
        init=False, repr=False, compare=False, default_factory=dict
    )

    def __post_init__(self):
        object.__setattr__(
            self, "_index", MappingProxyType({f.name: f for f in self.fields})
        )
        object.__setattr__(self, "actions", MappingProxyType(dict(self.actions)))

    def get_field(self, name: str) -> Optional[FieldDescriptor]:
        return self._index.get(name)

    def field_names(self) -> list[str]:
        return [f.name for f in self.fields]

    def simple_field_names(self) -> list[str]:
        """Baseline fields: every public attribute of simple kind, in declaration order."""
        return [f.name for f in self.fields if f.kind == FieldKind.SIMPLE]

    def get_action(self, name: str) -> Optional[ActionDef]:
        return self.actions.get(name)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "embedded": self.embedded,
            "fields": [f.to_dict() for f in self.fields],
            "actions": {
                name: {
                    "type": action.type,
                    "get": action.get,
                    **({"returns": action.returns.to_dict()} if action.returns else {}),
                }
                for name, action in self.actions.items()
            },
        }


# =============================================================================
# Classification
# =============================================================================


def classify_attribute(attribute: AttributeDef) -> FieldDescriptor:
    """
    Classify an attribute by its type.

    Precedence: tagged union, embedded record, tuple, structured record, simple.
    """
    declared = attribute.type
    inner = declared.element()
    is_array = declared.is_array

    if inner.name == "union":
        kind = FieldKind.TAGGED_UNION
    elif inner.name in ("embedded", "resource"):
        return FieldDescriptor(
            name=attribute.name,
            kind=FieldKind.EMBEDDED_RECORD,
            type=declared,
            destination=inner.entity,
            is_array=is_array,
        )
    elif inner.name == "tuple":
        kind = FieldKind.TUPLE
    elif inner.name in ("struct", "map") and inner.fields:
        kind = FieldKind.STRUCTURED_RECORD
    else:
        kind = FieldKind.SIMPLE

    return FieldDescriptor(name=attribute.name, kind=kind, type=declared, is_array=is_array)


def build_schema(entity: EntityDef) -> EntitySchema:
    """Classify every public member of an entity definition."""
    descriptors: list[FieldDescriptor] = []

    for attribute in entity.attributes.values():
        if attribute.public:
            descriptors.append(classify_attribute(attribute))

    for relationship in entity.relationships.values():
        if relationship.public:
            descriptors.append(FieldDescriptor(
                name=relationship.name,
                kind=FieldKind.RELATIONSHIP,
                destination=relationship.destination,
                cardinality=relationship.cardinality,
                is_array=relationship.cardinality == "many",
            ))

    for calculation in entity.calculations.values():
        if calculation.public:
            descriptors.append(FieldDescriptor(
                name=calculation.name,
                kind=(
                    FieldKind.CALCULATION_WITH_ARGS
                    if calculation.arguments
                    else FieldKind.CALCULATION
                ),
                type=calculation.returns,
                is_array=calculation.returns.is_array,
                arguments=tuple(calculation.arguments),
            ))

    for aggregate in entity.aggregates.values():
        if aggregate.public:
            descriptors.append(FieldDescriptor(
                name=aggregate.name,
                kind=FieldKind.COMPLEX_AGGREGATE if aggregate.is_complex else FieldKind.AGGREGATE,
                type=aggregate.returns,
                is_array=aggregate.kind == "list",
            ))

    return EntitySchema(
        name=entity.name,
        fields=tuple(descriptors),
        actions={name: a for name, a in entity.actions.items() if a.public},
        embedded=entity.embedded,
    )


# =============================================================================
# Registry
# =============================================================================


class SchemaRegistry:
    """
    Holds entity definitions and memoizes their classified schemas.

    Schemas are built on first use and reused afterwards. Concurrent first
    calls may both build the same schema; the results are equal, so the
    registry never locks.

    Example:
        registry = SchemaRegistry()
        registry.register(EntityDef.from_dict("Person", {...}))
        schema = registry.describe("Person")
    """

    def __init__(self, entities: Optional[list[EntityDef]] = None):
        self._definitions: dict[str, EntityDef] = {}
        self._schemas: dict[str, EntitySchema] = {}
        for entity in entities or []:
            self.register(entity)

    @classmethod
    def from_graph(cls, graph: dict[str, Any]) -> "SchemaRegistry":
        """Create a registry from a graph document ({"entities": {...}})."""
        entities = graph.get("entities")
        if not isinstance(entities, dict):
            raise SchemaError("Graph document requires an 'entities' mapping")
        return cls([EntityDef.from_dict(name, data) for name, data in entities.items()])

    def register(self, entity: EntityDef) -> None:
        """Register (or replace) an entity definition."""
        self._definitions[entity.name] = entity
        self._schemas.pop(entity.name, None)

    def entity_names(self) -> list[str]:
        return list(self._definitions)

    def has_entity(self, name: str) -> bool:
        return name in self._definitions

    def definition(self, name: str) -> EntityDef:
        entity = self._definitions.get(name)
        if entity is None:
            raise EntityNotFoundError(name)
        return entity

    def describe(self, entity: Union[str, EntitySchema]) -> EntitySchema:
        """Return the classified schema of an entity, building it on first use."""
        if isinstance(entity, EntitySchema):
            return entity

        schema = self._schemas.get(entity)
        if schema is None:
            schema = build_schema(self.definition(entity))
            self._schemas[entity] = schema
            logger.debug(f"Built schema for {entity}: {len(schema.fields)} fields")
        return schema

    def validate(self) -> None:
        """
        Check that every referenced entity is registered.

        Raises:
            SchemaError: listing every dangling reference
        """
        errors: list[str] = []

        def check_type(owner: str, member: str, type_ref: Optional[TypeRef]):
            if type_ref is None:
                return
            if type_ref.entity and type_ref.entity not in self._definitions:
                errors.append(f"{owner}.{member}: entity '{type_ref.entity}' not found")
            if type_ref.items is not None:
                check_type(owner, member, type_ref.items)
            for _, nested in (*type_ref.fields, *type_ref.members):
                check_type(owner, member, nested)

        for name, entity in self._definitions.items():
            for relationship in entity.relationships.values():
                if relationship.destination not in self._definitions:
                    errors.append(
                        f"{name}.{relationship.name}: destination "
                        f"'{relationship.destination}' not found"
                    )
            for attribute in entity.attributes.values():
                check_type(name, attribute.name, attribute.type)
            for calculation in entity.calculations.values():
                check_type(name, calculation.name, calculation.returns)
            for aggregate in entity.aggregates.values():
                check_type(name, aggregate.name, aggregate.returns)
                if aggregate.relationship and aggregate.relationship not in entity.relationships:
                    errors.append(
                        f"{name}.{aggregate.name}: relationship "
                        f"'{aggregate.relationship}' not found"
                    )
            for action in entity.actions.values():
                check_type(name, action.name, action.returns)

        if errors:
            raise SchemaError(f"Invalid schema: {len(errors)} error(s)", errors)

    def to_graph(self) -> dict[str, Any]:
        """Describe every registered entity."""
        return {
            "entities": {name: self.describe(name).to_dict() for name in self._definitions}
        }
