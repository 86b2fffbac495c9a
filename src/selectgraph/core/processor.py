"""
Selection processor - validates canonical selections against entity schemas.

For a selection it produces:
- a Projection for the data-fetch layer (flat select set + nested load spec)
- an extraction template mirroring the requested shape, used to reshape
  the fetched data (see selectgraph.runtime.extractor)

Validation is fail-fast: the first violation raises a FieldSelectionError.
Checks run in this order at every level: item type well-formedness (while
parsing), duplicate names, unknown names, kind-specific rules.

Usage:
    processor = SelectionProcessor(registry)
    result = processor.process("Article", ["title", {"author": ["name"]}])
    result.projection.select    # ("title",)
    result.projection.load      # ("author",)
    result.template             # (LeafTemplate("title"), NestedTemplate("author", ...))
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Union

from .defs import TypeRef
from .errors import (
    ActionNotFoundError,
    CalculationRequiresArgsError,
    DuplicateFieldError,
    FieldDoesNotSupportNestingError,
    InvalidCalculationArgsError,
    InvalidFieldSelectionError,
    InvalidFieldTypeError,
    InvalidUnionFieldFormatError,
    RequiresFieldSelectionError,
    UnknownFieldError,
    UnsupportedFieldCombinationError,
)
from .registry import EntitySchema, FieldDescriptor, FieldKind, SchemaRegistry
from .selection import (
    ArgsSelection,
    LeafSelection,
    NestedSelection,
    SelectionNode,
    UnionMemberSelection,
    format_container_path,
    node_name,
    parse_selection,
)
from .utils import FieldFormatter

logger = logging.getLogger(__name__)


# =============================================================================
# Extraction template
# =============================================================================


@dataclass(frozen=True)
class LeafTemplate:
    """Copy a field value."""
    name: str


@dataclass(frozen=True)
class NestedTemplate:
    """Reshape a field value with a nested template."""
    name: str
    children: tuple["TemplateNode", ...]


@dataclass(frozen=True)
class TupleLeafTemplate:
    """Read a tuple element by position and emit it under `name`."""
    name: str
    index: int


@dataclass(frozen=True)
class UnionBranchTemplate:
    """Template for one union member; None copies the member value verbatim."""
    tag: str
    children: Optional[tuple["TemplateNode", ...]] = None


TemplateNode = Union[LeafTemplate, NestedTemplate, TupleLeafTemplate, UnionBranchTemplate]


def template_to_data(template: tuple[TemplateNode, ...]) -> list[Any]:
    """JSON-friendly rendering of a template (for inspection and logging)."""
    data: list[Any] = []
    for node in template:
        if isinstance(node, LeafTemplate):
            data.append(node.name)
        elif isinstance(node, NestedTemplate):
            data.append({node.name: template_to_data(node.children)})
        elif isinstance(node, TupleLeafTemplate):
            data.append({"field": node.name, "index": node.index})
        elif node.children is None:
            data.append(node.tag)
        else:
            data.append({node.tag: template_to_data(node.children)})
    return data


# =============================================================================
# Projection
# =============================================================================


@dataclass(frozen=True)
class CalculationLoad:
    """Load an argument-taking calculation (and the loads its result needs)."""
    name: str
    args: dict[str, Any] = field(default_factory=dict, hash=False)
    load: tuple["LoadEntry", ...] = ()


# A field name, (name, nested loads) or a calculation invocation
LoadEntry = Union[str, tuple[str, tuple], CalculationLoad]


def load_to_data(load: tuple[LoadEntry, ...]) -> list[Any]:
    data: list[Any] = []
    for entry in load:
        if isinstance(entry, str):
            data.append(entry)
        elif isinstance(entry, CalculationLoad):
            data.append({entry.name: {"args": entry.args, "load": load_to_data(entry.load)}})
        else:
            name, nested = entry
            data.append({name: load_to_data(nested)})
    return data


@dataclass(frozen=True)
class Projection:
    """What to fetch: stored attributes to select and related data to load."""
    select: tuple[str, ...] = ()
    load: tuple[LoadEntry, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {"select": list(self.select), "load": load_to_data(self.load)}


@dataclass(frozen=True)
class SelectionResult:
    """Output of SelectionProcessor.process."""
    projection: Projection
    template: tuple[TemplateNode, ...]


@dataclass
class _Accumulator:
    select: list[str] = field(default_factory=list)
    load: list[LoadEntry] = field(default_factory=list)
    template: list[TemplateNode] = field(default_factory=list)

    def add_load(self, name: str, nested: list[LoadEntry]):
        self.load.append((name, tuple(nested)) if nested else name)


# Root return type: an entity schema, a declared type, or None for untyped results
ReturnType = Union[EntitySchema, TypeRef, None]


class SelectionProcessor:
    """
    Validates selections and builds projections and extraction templates.

    The same processing applies at every nesting level: relationships and
    embedded records recurse into their destination schema, tuples and
    structured records are checked against their declared fields, unions
    against their member types.

    Usage:
        processor = SelectionProcessor(registry, FieldFormatter("camel_case", "camel_case"))
        result = processor.process("Article", nodes)
    """

    def __init__(self, registry: SchemaRegistry, formatter: Optional[FieldFormatter] = None):
        self.registry = registry
        self.formatter = formatter or FieldFormatter()
        self._nested_handlers: dict[FieldKind, Callable[..., None]] = {
            FieldKind.SIMPLE: self._nested_simple,
            FieldKind.CALCULATION: self._nested_calculation,
            FieldKind.CALCULATION_WITH_ARGS: self._nested_calculation_with_args,
            FieldKind.AGGREGATE: self._nested_aggregate,
            FieldKind.COMPLEX_AGGREGATE: self._nested_complex_aggregate,
            FieldKind.RELATIONSHIP: self._nested_relationship,
            FieldKind.EMBEDDED_RECORD: self._nested_embedded,
            FieldKind.TAGGED_UNION: self._nested_union,
            FieldKind.TUPLE: self._nested_tuple,
            FieldKind.STRUCTURED_RECORD: self._nested_structured,
        }

    # -------------------------------------------------------------------------
    # Entry point
    # -------------------------------------------------------------------------

    def process(
        self,
        entity: Union[str, EntitySchema],
        selection: Any,
        action: Optional[str] = None,
        path: tuple[str, ...] = (),
    ) -> SelectionResult:
        """
        Validate a selection and build its projection and template.

        Args:
            entity: Entity name or schema
            selection: Canonical nodes (from SelectionNormalizer) or a raw
                selection, which is parsed without toggle semantics
            action: Optional action name; decides the root return type
            path: Path prefix used in error messages

        Raises:
            FieldSelectionError: at the first invalid entry
            ActionNotFoundError: when `action` is not declared on the entity
        """
        schema = self.registry.describe(entity)
        nodes = self._coerce(selection, path)
        return_type = self._root_return_type(schema, action)

        acc = self._process_for_type(return_type, nodes, path)
        result = SelectionResult(
            projection=Projection(select=tuple(acc.select), load=tuple(acc.load)),
            template=tuple(acc.template),
        )
        logger.debug(
            f"Processed selection for {schema.name}"
            f"{f' ({action})' if action else ''}: {result.projection.to_dict()}"
        )
        return result

    def _coerce(self, selection: Any, path: tuple[str, ...]) -> tuple[SelectionNode, ...]:
        node_types = (LeafSelection, NestedSelection, ArgsSelection, UnionMemberSelection)
        if isinstance(selection, (list, tuple)) and all(
            isinstance(item, node_types) for item in selection
        ):
            return tuple(selection)
        return parse_selection(selection, self.formatter, path)

    def _root_return_type(self, schema: EntitySchema, action_name: Optional[str]) -> ReturnType:
        """Single and list reads, creates, updates and destroys return the entity itself."""
        if action_name is None:
            return schema
        action = schema.get_action(action_name)
        if action is None:
            raise ActionNotFoundError(action_name, schema.name)
        if action.type != "action":
            return schema
        return action.returns

    # -------------------------------------------------------------------------
    # Dispatch by return type
    # -------------------------------------------------------------------------

    def _process_for_type(
        self,
        target: ReturnType,
        nodes: tuple[SelectionNode, ...],
        path: tuple[str, ...],
    ) -> _Accumulator:
        if isinstance(target, EntitySchema):
            return self._process_resource(target, nodes, path)
        if target is None:
            return self._process_generic(nodes, path)

        inner = target.element()
        if inner.name in ("resource", "embedded") and inner.entity:
            return self._process_resource(self.registry.describe(inner.entity), nodes, path)
        if inner.name in ("struct", "map") and inner.fields:
            container = "typed_struct" if inner.name == "struct" else "map"
            return self._process_record_fields(inner, nodes, path, container)
        if inner.name == "tuple":
            return self._process_tuple_fields(inner, nodes, path)
        if inner.name == "union":
            return self._process_union_members(inner, nodes, path)
        return self._process_generic(nodes, path)

    def _path(self, path: tuple[str, ...], name: str) -> str:
        return self.formatter.format_path((*path, name))

    def _check_duplicates(self, nodes: tuple[SelectionNode, ...], path: tuple[str, ...]):
        seen: set[str] = set()
        for node in nodes:
            name = node_name(node)
            if name in seen:
                raise DuplicateFieldError(name, self._path(path, name))
            seen.add(name)

    def _require_children(self, node: NestedSelection, kind: str, path: tuple[str, ...]):
        if not node.children:
            raise InvalidFieldSelectionError(kind, self._path(path, node.name))

    # -------------------------------------------------------------------------
    # Untyped results
    # -------------------------------------------------------------------------

    def _process_generic(
        self, nodes: tuple[SelectionNode, ...], path: tuple[str, ...]
    ) -> _Accumulator:
        """Pass a selection through without field validation (untyped results)."""
        self._check_duplicates(nodes, path)
        acc = _Accumulator()
        for node in nodes:
            if isinstance(node, NestedSelection):
                nested = self._process_generic(node.children, (*path, node.name))
                acc.template.append(NestedTemplate(node.name, tuple(nested.template)))
            elif isinstance(node, ArgsSelection) and node.fields:
                nested = self._process_generic(node.fields, (*path, node.name))
                acc.template.append(NestedTemplate(node.name, tuple(nested.template)))
            else:
                acc.template.append(LeafTemplate(node_name(node)))
        return acc

    # -------------------------------------------------------------------------
    # Entities
    # -------------------------------------------------------------------------

    def _process_resource(
        self,
        schema: EntitySchema,
        nodes: tuple[SelectionNode, ...],
        path: tuple[str, ...],
    ) -> _Accumulator:
        self._check_duplicates(nodes, path)
        acc = _Accumulator()

        for node in nodes:
            name = node_name(node)
            descriptor = schema.get_field(name)
            if descriptor is None:
                raise UnknownFieldError(name, schema.name, self._path(path, name))

            if isinstance(node, LeafSelection):
                self._process_leaf(descriptor, acc, path)
            elif isinstance(node, NestedSelection):
                self._nested_handlers[descriptor.kind](descriptor, node, acc, path)
            elif isinstance(node, ArgsSelection):
                self._process_args(descriptor, node, acc, path)
            else:
                raise InvalidFieldTypeError(node, format_container_path(self.formatter, path))

        return acc

    def _process_leaf(self, descriptor: FieldDescriptor, acc: _Accumulator, path: tuple[str, ...]):
        if not descriptor.is_primitive:
            raise RequiresFieldSelectionError(
                self._selection_kind(descriptor), self._path(path, descriptor.name)
            )
        if descriptor.kind == FieldKind.SIMPLE:
            acc.select.append(descriptor.name)
        else:
            acc.load.append(descriptor.name)
        acc.template.append(LeafTemplate(descriptor.name))

    @staticmethod
    def _selection_kind(descriptor: FieldDescriptor) -> str:
        if descriptor.kind == FieldKind.EMBEDDED_RECORD and descriptor.is_array:
            return "embedded_resource_array"
        if descriptor.kind == FieldKind.CALCULATION:
            return "calculation_complex"
        return descriptor.kind.value

    # -------------------------------------------------------------------------
    # Nested selections, one handler per field kind
    # -------------------------------------------------------------------------

    def _nested_simple(self, descriptor, node, acc, path):
        raise FieldDoesNotSupportNestingError(self._path(path, descriptor.name))

    def _nested_aggregate(self, descriptor, node, acc, path):
        raise InvalidFieldSelectionError("aggregate", self._path(path, descriptor.name))

    def _nested_calculation_with_args(self, descriptor, node, acc, path):
        raise InvalidCalculationArgsError(descriptor.name, self._path(path, descriptor.name))

    def _nested_calculation(self, descriptor, node, acc, path):
        if descriptor.is_primitive:
            raise InvalidFieldSelectionError("calculation", self._path(path, descriptor.name))
        self._require_children(node, "calculation", path)
        nested = self._process_for_type(descriptor.type, node.children, (*path, node.name))
        acc.add_load(node.name, nested.load)
        acc.template.append(NestedTemplate(node.name, tuple(nested.template)))

    def _nested_relationship(self, descriptor, node, acc, path):
        self._require_children(node, "relationship", path)
        destination = self.registry.describe(descriptor.destination)
        nested = self._process_resource(destination, node.children, (*path, node.name))
        acc.add_load(node.name, nested.load)
        acc.template.append(NestedTemplate(node.name, tuple(nested.template)))

    def _nested_embedded(self, descriptor, node, acc, path):
        self._require_children(node, "embedded_resource", path)
        destination = self.registry.describe(descriptor.destination)
        nested = self._process_resource(destination, node.children, (*path, node.name))
        # Embedded data is stored inline; only its calculations need loading
        acc.select.append(node.name)
        if nested.load:
            acc.load.append((node.name, tuple(nested.load)))
        acc.template.append(NestedTemplate(node.name, tuple(nested.template)))

    def _nested_tuple(self, descriptor, node, acc, path):
        self._require_children(node, "tuple", path)
        nested = self._process_tuple_fields(
            descriptor.type.element(), node.children, (*path, node.name)
        )
        acc.select.append(node.name)
        acc.template.append(NestedTemplate(node.name, tuple(nested.template)))

    def _nested_structured(self, descriptor, node, acc, path):
        self._require_children(node, "typed_struct", path)
        nested = self._process_record_fields(
            descriptor.type.element(), node.children, (*path, node.name), "typed_struct"
        )
        acc.select.append(node.name)
        acc.template.append(NestedTemplate(node.name, tuple(nested.template)))

    def _nested_union(self, descriptor, node, acc, path):
        self._require_children(node, "union_attribute", path)
        nested = self._process_union_members(
            descriptor.type.element(), node.children, (*path, node.name)
        )
        acc.select.append(node.name)
        if nested.load:
            acc.load.append((node.name, tuple(nested.load)))
        acc.template.append(NestedTemplate(node.name, tuple(nested.template)))

    def _nested_complex_aggregate(self, descriptor, node, acc, path):
        self._require_children(node, "complex_aggregate", path)
        nested = self._process_for_type(descriptor.type, node.children, (*path, node.name))
        acc.load.append(node.name)
        acc.template.append(NestedTemplate(node.name, tuple(nested.template)))

    # -------------------------------------------------------------------------
    # Calculations with arguments
    # -------------------------------------------------------------------------

    def _process_args(
        self,
        descriptor: FieldDescriptor,
        node: ArgsSelection,
        acc: _Accumulator,
        path: tuple[str, ...],
    ):
        field_path = self._path(path, node.name)

        if descriptor.kind != FieldKind.CALCULATION_WITH_ARGS:
            raise UnsupportedFieldCombinationError(
                descriptor.kind.value, node.name, {"args": node.args}, field_path
            )
        if node.args is None:
            raise CalculationRequiresArgsError(node.name, field_path)
        if not isinstance(node.args, dict) or not all(isinstance(k, str) for k in node.args):
            raise InvalidCalculationArgsError(node.name, field_path)

        args = {self.formatter.parse_input_field(k): v for k, v in node.args.items()}

        if descriptor.type is not None and descriptor.type.is_structured:
            if not node.fields:
                raise RequiresFieldSelectionError("calculation_complex", field_path)
            nested = self._process_for_type(descriptor.type, node.fields, (*path, node.name))
            acc.load.append(CalculationLoad(node.name, args, tuple(nested.load)))
            acc.template.append(NestedTemplate(node.name, tuple(nested.template)))
            return

        if node.fields:
            raise InvalidFieldSelectionError("calculation", field_path)
        acc.load.append(CalculationLoad(node.name, args))
        acc.template.append(LeafTemplate(node.name))

    # -------------------------------------------------------------------------
    # Tuples, structured records and unions
    # -------------------------------------------------------------------------

    def _process_tuple_fields(
        self,
        tuple_type: TypeRef,
        nodes: tuple[SelectionNode, ...],
        path: tuple[str, ...],
    ) -> _Accumulator:
        self._check_duplicates(nodes, path)
        acc = _Accumulator()
        for node in nodes:
            name = node_name(node)
            if not isinstance(node, LeafSelection):
                raise InvalidFieldSelectionError("tuple", self._path(path, name))
            index = tuple_type.field_index(name)
            if index is None:
                raise UnknownFieldError(name, "tuple", self._path(path, name))
            acc.template.append(TupleLeafTemplate(name, index))
        return acc

    def _process_record_fields(
        self,
        record_type: TypeRef,
        nodes: tuple[SelectionNode, ...],
        path: tuple[str, ...],
        container: str,
    ) -> _Accumulator:
        self._check_duplicates(nodes, path)
        acc = _Accumulator()
        for node in nodes:
            name = node_name(node)
            field_type = record_type.field_type(name)
            if field_type is None:
                raise UnknownFieldError(name, container, self._path(path, name))

            if isinstance(node, LeafSelection):
                if field_type.is_structured:
                    raise RequiresFieldSelectionError("complex_type", self._path(path, name))
                acc.template.append(LeafTemplate(name))
            elif isinstance(node, NestedSelection):
                nested = self._process_for_type(field_type, node.children, (*path, name))
                acc.template.append(NestedTemplate(name, tuple(nested.template)))
            else:
                raise UnsupportedFieldCombinationError(
                    container, name, {"args": getattr(node, "args", None)},
                    self._path(path, name),
                )
        return acc

    def _as_union_member(self, node: SelectionNode, path: tuple[str, ...]) -> UnionMemberSelection:
        if isinstance(node, UnionMemberSelection):
            return node
        if isinstance(node, LeafSelection):
            return UnionMemberSelection(node.name)
        if isinstance(node, NestedSelection):
            return UnionMemberSelection(node.name, node.children)
        raise InvalidUnionFieldFormatError(self.formatter.format_path(path))

    def _process_union_members(
        self,
        union_type: TypeRef,
        nodes: tuple[SelectionNode, ...],
        path: tuple[str, ...],
    ) -> _Accumulator:
        """
        Build one branch per requested member.

        Bare tags are only allowed for primitive members; structured members
        need {tag: fields}. Loads are collected for entity members only.
        """
        members = [self._as_union_member(node, path) for node in nodes]
        self._check_duplicates(tuple(members), path)
        acc = _Accumulator()

        for member in members:
            member_type = union_type.member_type(member.tag)
            if member_type is None:
                raise UnknownFieldError(member.tag, "union_attribute", self._path(path, member.tag))

            if member.children is None:
                if member_type.is_structured:
                    raise RequiresFieldSelectionError("complex_type", self._path(path, member.tag))
                acc.template.append(UnionBranchTemplate(member.tag))
                continue

            nested = self._process_for_type(member_type, member.children, (*path, member.tag))
            if nested.load and member_type.element().name in ("resource", "embedded"):
                acc.load.append((member.tag, tuple(nested.load)))
            acc.template.append(UnionBranchTemplate(member.tag, tuple(nested.template)))

        return acc
