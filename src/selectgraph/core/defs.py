"""
Core dataclass definitions for the selectgraph system.

These define the static metadata of entities: attributes and their types,
calculations, aggregates, relationships and actions. The schema registry
classifies them into field descriptors.

Graph documents use a plain dict form:

    {
        "entities": {
            "Article": {
                "attributes": {"id": "uuid", "title": "string", "tags": "string[]"},
                "calculations": {"summary": {"returns": "string", "arguments": {"length": "int"}}},
                "aggregates": {"comment_count": {"kind": "count", "relationship": "comments"}},
                "relationships": {"author": {"destination": "Person", "cardinality": "one"}},
                "actions": {"get": {"type": "read", "get": True}},
            }
        }
    }
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Optional

from .errors import SchemaError


PRIMITIVE_TYPES = frozenset({
    "string", "int", "float", "bool", "datetime", "date", "time",
    "decimal", "uuid", "ci_string", "atom", "json", "any",
})

# Composite types; "map" without declared fields behaves like a primitive
COMPOSITE_TYPES = frozenset({
    "array", "union", "tuple", "struct", "map", "embedded", "resource",
})

AGGREGATE_KINDS = frozenset({
    "count", "sum", "avg", "min", "max", "exists", "first", "last", "list",
})

# Aggregates that yield related records or lists of related values
COMPLEX_AGGREGATE_KINDS = frozenset({"first", "last", "list"})

ACTION_TYPES = frozenset({"read", "create", "update", "destroy", "action"})


# =============================================================================
# Types
# =============================================================================


@dataclass(frozen=True)
class TypeRef:
    """
    Type of an attribute, calculation return, union member or record field.

    Examples:
        TypeRef("string")
        TypeRef("array", items=TypeRef("int"))
        TypeRef("tuple", fields=(("lat", TypeRef("float")), ("lng", TypeRef("float"))))
        TypeRef("union", members=(("text", TypeRef("string")), ...))
        TypeRef("embedded", entity="Address")
    """
    name: str
    items: Optional[TypeRef] = None
    fields: tuple[tuple[str, TypeRef], ...] = ()
    members: tuple[tuple[str, TypeRef], ...] = ()
    entity: Optional[str] = None

    @property
    def is_array(self) -> bool:
        return self.name == "array"

    def element(self) -> TypeRef:
        """Reduce array wrappers to the element type."""
        current = self
        while current.name == "array" and current.items is not None:
            current = current.items
        return current

    @property
    def is_structured(self) -> bool:
        """True when a value of this type needs a nested field selection."""
        inner = self.element()
        if inner.name in ("union", "tuple", "embedded", "resource"):
            return True
        if inner.name in ("struct", "map"):
            return bool(inner.fields)
        return False

    def field_names(self) -> list[str]:
        return [name for name, _ in self.fields]

    def field_type(self, name: str) -> Optional[TypeRef]:
        for field_name, field_type in self.fields:
            if field_name == name:
                return field_type
        return None

    def field_index(self, name: str) -> Optional[int]:
        for index, (field_name, _) in enumerate(self.fields):
            if field_name == name:
                return index
        return None

    def member_type(self, tag: str) -> Optional[TypeRef]:
        for member_tag, member_type in self.members:
            if member_tag == tag:
                return member_type
        return None

    def to_dict(self) -> Any:
        """Serialize back to the graph document form."""
        if self.name in PRIMITIVE_TYPES or (self.name == "map" and not self.fields):
            return self.name
        data: dict[str, Any] = {"type": self.name}
        if self.items is not None:
            data["items"] = self.items.to_dict()
        if self.fields:
            data["fields"] = [[name, t.to_dict()] for name, t in self.fields]
        if self.members:
            data["types"] = {tag: t.to_dict() for tag, t in self.members}
        if self.entity:
            data["entity"] = self.entity
        return data


def _parse_pairs(raw: Any, what: str) -> tuple[tuple[str, TypeRef], ...]:
    """Parse `{name: type}` or `[[name, type], ...]` into ordered pairs."""
    if isinstance(raw, dict):
        items = list(raw.items())
    elif isinstance(raw, (list, tuple)):
        items = []
        for pair in raw:
            if not isinstance(pair, (list, tuple)) or len(pair) != 2:
                raise SchemaError(f"Invalid {what} entry: {pair!r}")
            items.append((pair[0], pair[1]))
    else:
        raise SchemaError(f"Invalid {what}: expected mapping or list of pairs, got {raw!r}")

    pairs = []
    for name, type_spec in items:
        if not isinstance(name, str) or not name:
            raise SchemaError(f"Invalid {what} name: {name!r}")
        pairs.append((name, parse_type(type_spec)))
    return tuple(pairs)


def parse_type(raw: Any) -> TypeRef:
    """
    Parse a type definition.

    Accepts a TypeRef, a type name ("string", "int[]" for arrays) or a dict
    with a "type" key and the composite-specific keys.
    """
    if isinstance(raw, TypeRef):
        return raw

    if isinstance(raw, str):
        if raw.endswith("[]"):
            return TypeRef("array", items=parse_type(raw[:-2]))
        if raw in PRIMITIVE_TYPES or raw == "map":
            return TypeRef(raw)
        raise SchemaError(f"Unknown type '{raw}'")

    if not isinstance(raw, dict):
        raise SchemaError(f"Invalid type definition: {raw!r}")

    type_name = raw.get("type")
    if not isinstance(type_name, str):
        raise SchemaError(f"Type definition is missing 'type': {raw!r}")

    if type_name == "array":
        if "items" not in raw:
            raise SchemaError("Array type requires 'items'")
        return TypeRef("array", items=parse_type(raw["items"]))

    if type_name == "union":
        members = _parse_pairs(raw.get("types", {}), "union member")
        if not members:
            raise SchemaError("Union type requires at least one member in 'types'")
        return TypeRef("union", members=members)

    if type_name == "tuple":
        fields = _parse_pairs(raw.get("fields", []), "tuple field")
        if not fields:
            raise SchemaError("Tuple type requires 'fields'")
        return TypeRef("tuple", fields=fields)

    if type_name in ("struct", "map"):
        fields = _parse_pairs(raw.get("fields", {}), f"{type_name} field")
        if type_name == "struct" and not fields:
            raise SchemaError("Struct type requires 'fields'")
        return TypeRef(type_name, fields=fields)

    if type_name in ("embedded", "resource"):
        entity = raw.get("entity")
        if not isinstance(entity, str) or not entity:
            raise SchemaError(f"{type_name.capitalize()} type requires 'entity'")
        return TypeRef(type_name, entity=entity)

    return parse_type(type_name)


# =============================================================================
# Entity members
# =============================================================================


def _split_public(spec: Any) -> tuple[Any, bool]:
    """Pull the `public` flag out of a member spec."""
    if isinstance(spec, dict) and "public" in spec:
        spec = dict(spec)
        return spec, bool(spec.pop("public"))
    return spec, True


@dataclass
class AttributeDef:
    """Definition of a stored attribute."""
    name: str
    type: TypeRef
    public: bool = True

    @classmethod
    def from_spec(cls, name: str, spec: Any) -> "AttributeDef":
        spec, public = _split_public(spec)
        return cls(name=name, type=parse_type(spec), public=public)


@dataclass
class CalculationDef:
    """Definition of a computed field, optionally taking arguments."""
    name: str
    returns: TypeRef
    arguments: dict[str, TypeRef] = field(default_factory=dict)
    public: bool = True

    @classmethod
    def from_spec(cls, name: str, spec: Any) -> "CalculationDef":
        spec, public = _split_public(spec)
        if not isinstance(spec, dict) or "returns" not in spec:
            # Shorthand: the spec is the return type
            return cls(name=name, returns=parse_type(spec), public=public)
        arguments = spec.get("arguments") or {}
        if not isinstance(arguments, dict):
            raise SchemaError(f"Calculation '{name}': 'arguments' must be a mapping")
        return cls(
            name=name,
            returns=parse_type(spec["returns"]),
            arguments={arg: parse_type(t) for arg, t in arguments.items()},
            public=public,
        )


@dataclass
class AggregateDef:
    """Definition of an aggregate over a relationship."""
    name: str
    kind: str
    returns: TypeRef
    relationship: Optional[str] = None
    field: Optional[str] = None
    public: bool = True

    @property
    def is_complex(self) -> bool:
        """first/last/list aggregates need a field selection."""
        return self.kind in COMPLEX_AGGREGATE_KINDS

    @classmethod
    def from_spec(cls, name: str, spec: Any) -> "AggregateDef":
        spec, public = _split_public(spec)
        if isinstance(spec, str):
            spec = {"kind": spec}
        if not isinstance(spec, dict):
            raise SchemaError(f"Aggregate '{name}': invalid definition {spec!r}")
        kind = spec.get("kind")
        if kind not in AGGREGATE_KINDS:
            raise SchemaError(
                f"Aggregate '{name}': unknown kind {kind!r} "
                f"(allowed: {sorted(AGGREGATE_KINDS)})"
            )
        if "returns" in spec:
            returns = parse_type(spec["returns"])
        elif kind == "count":
            returns = TypeRef("int")
        elif kind == "exists":
            returns = TypeRef("bool")
        else:
            returns = TypeRef("any")
        return cls(
            name=name,
            kind=kind,
            returns=returns,
            relationship=spec.get("relationship"),
            field=spec.get("field"),
            public=public,
        )


@dataclass
class RelationshipDef:
    """Definition of a relationship to another entity."""
    name: str
    destination: str
    cardinality: Literal["one", "many"] = "one"
    public: bool = True

    @classmethod
    def from_spec(cls, name: str, spec: Any) -> "RelationshipDef":
        spec, public = _split_public(spec)
        if isinstance(spec, str):
            return cls(name=name, destination=spec, public=public)
        if not isinstance(spec, dict) or not isinstance(spec.get("destination"), str):
            raise SchemaError(f"Relationship '{name}' requires a 'destination'")
        cardinality = spec.get("cardinality", "one")
        if cardinality not in ("one", "many"):
            raise SchemaError(f"Relationship '{name}': invalid cardinality {cardinality!r}")
        return cls(
            name=name,
            destination=spec["destination"],
            cardinality=cardinality,
            public=public,
        )


@dataclass
class ActionDef:
    """Definition of an action whose result can be field-selected."""
    name: str
    type: str = "read"
    get: bool = False  # read action returning a single record
    returns: Optional[TypeRef] = None  # only for generic "action" type
    public: bool = True

    @classmethod
    def from_spec(cls, name: str, spec: Any) -> "ActionDef":
        spec, public = _split_public(spec)
        if isinstance(spec, str):
            spec = {"type": spec}
        if not isinstance(spec, dict):
            raise SchemaError(f"Action '{name}': invalid definition {spec!r}")
        action_type = spec.get("type", "read")
        if action_type not in ACTION_TYPES:
            raise SchemaError(f"Action '{name}': unknown type {action_type!r}")
        returns = spec.get("returns")
        return cls(
            name=name,
            type=action_type,
            get=bool(spec.get("get", False)),
            returns=parse_type(returns) if returns is not None else None,
            public=public,
        )


@dataclass
class EntityDef:
    """Complete static definition of an entity."""
    name: str
    attributes: dict[str, AttributeDef] = field(default_factory=dict)
    calculations: dict[str, CalculationDef] = field(default_factory=dict)
    aggregates: dict[str, AggregateDef] = field(default_factory=dict)
    relationships: dict[str, RelationshipDef] = field(default_factory=dict)
    actions: dict[str, ActionDef] = field(default_factory=dict)
    embedded: bool = False

    def member_names(self) -> list[str]:
        return [
            *self.attributes, *self.calculations, *self.aggregates, *self.relationships
        ]

    @classmethod
    def from_dict(cls, name: str, data: dict[str, Any]) -> "EntityDef":
        """Parse an entity from the graph document form."""
        if not isinstance(data, dict):
            raise SchemaError(f"Entity '{name}': definition must be a mapping")

        def section(key: str) -> dict[str, Any]:
            value = data.get(key) or {}
            if not isinstance(value, dict):
                raise SchemaError(f"Entity '{name}': '{key}' must be a mapping")
            return value

        entity = cls(
            name=name,
            attributes={
                n: AttributeDef.from_spec(n, s) for n, s in section("attributes").items()
            },
            calculations={
                n: CalculationDef.from_spec(n, s) for n, s in section("calculations").items()
            },
            aggregates={
                n: AggregateDef.from_spec(n, s) for n, s in section("aggregates").items()
            },
            relationships={
                n: RelationshipDef.from_spec(n, s) for n, s in section("relationships").items()
            },
            actions={
                n: ActionDef.from_spec(n, s) for n, s in section("actions").items()
            },
            embedded=bool(data.get("embedded", False)),
        )

        names = entity.member_names()
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise SchemaError(
                f"Entity '{name}': names used by more than one member: {duplicates}"
            )
        return entity
