"""
Selection nodes and the selection normalizer.

Clients select fields with a JSON array:

    ["title", "+body", "-id", {"author": ["name"]}, {"summary": {"args": {"length": 10}}}]

Plain names select explicitly, "+"/"-" prefixes toggle fields on top of the
baseline (all simple attributes), nested objects select fields of related
records, embedded records, unions, tuples and calculation results.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional, Union

from .errors import InvalidFieldTypeError
from .registry import EntitySchema, FieldKind, SchemaRegistry
from .utils import FieldFormatter

logger = logging.getLogger(__name__)


# =============================================================================
# Canonical selection nodes
# =============================================================================


@dataclass(frozen=True)
class LeafSelection:
    """A field requested by name."""
    name: str


@dataclass(frozen=True)
class NestedSelection:
    """A field requested with a nested selection: {"author": ["name"]}."""
    name: str
    children: tuple["SelectionNode", ...]


@dataclass(frozen=True)
class ArgsSelection:
    """
    A calculation requested with arguments:
    {"summary": {"args": {"length": 10}, "fields": [...]}}.

    `args` keeps the raw client value; its shape is validated by the processor.
    """
    name: str
    args: Any = None
    fields: Optional[tuple["SelectionNode", ...]] = None


@dataclass(frozen=True)
class UnionMemberSelection:
    """A union member requested by tag, optionally with fields of the member type."""
    tag: str
    children: Optional[tuple["SelectionNode", ...]] = None


SelectionNode = Union[LeafSelection, NestedSelection, ArgsSelection, UnionMemberSelection]

# Keys that turn a nested object into calculation arguments
ARGS_KEYS = frozenset({"args", "fields", "select"})


def node_name(node: SelectionNode) -> str:
    """Canonical field name (or union tag) of a node."""
    if isinstance(node, UnionMemberSelection):
        return node.tag
    return node.name


def format_container_path(formatter: FieldFormatter, path: tuple[str, ...]) -> str:
    """Dotted path of a container, "root" at the top level."""
    return formatter.format_path(path) if path else "root"


def _as_items(raw: Any, formatter: FieldFormatter, path: tuple[str, ...]) -> list[Any]:
    """Wrap a raw selection value into a list of items."""
    if raw is None:
        return []
    if isinstance(raw, (list, tuple)):
        return list(raw)
    if isinstance(raw, (str, dict)):
        return [raw]
    raise InvalidFieldTypeError(raw, format_container_path(formatter, path))


def _is_args_object(value: Any) -> bool:
    return isinstance(value, dict) and bool(value) and set(value) <= ARGS_KEYS


def parse_selection(
    raw: Any,
    formatter: Optional[FieldFormatter] = None,
    path: tuple[str, ...] = (),
) -> tuple[SelectionNode, ...]:
    """
    Canonicalize a raw selection without baseline resolution.

    Names are converted with the input formatter; "+"/"-" prefixes carry no
    meaning here. Raises InvalidFieldTypeError for items that are not strings
    or objects and for non-string object keys.
    """
    formatter = formatter or FieldFormatter()
    nodes: list[SelectionNode] = []

    for item in _as_items(raw, formatter, path):
        if isinstance(item, str):
            nodes.append(LeafSelection(formatter.parse_input_field(item)))
        elif isinstance(item, dict):
            for key, value in item.items():
                if not isinstance(key, str):
                    raise InvalidFieldTypeError(key, format_container_path(formatter, path))
                name = formatter.parse_input_field(key)
                nodes.append(_parse_nested(name, value, formatter, (*path, name)))
        else:
            raise InvalidFieldTypeError(item, format_container_path(formatter, path))

    return tuple(nodes)


def _parse_nested(
    name: str,
    value: Any,
    formatter: FieldFormatter,
    path: tuple[str, ...],
) -> SelectionNode:
    if _is_args_object(value):
        fields_raw = value.get("fields", value.get("select"))
        return ArgsSelection(
            name=name,
            args=value.get("args"),
            fields=parse_selection(fields_raw, formatter, path) if fields_raw is not None else None,
        )
    return NestedSelection(name, parse_selection(value, formatter, path))


# =============================================================================
# Normalizer
# =============================================================================


class SelectionNormalizer:
    """
    Resolves the client selection syntax into canonical nodes.

    Mode resolution, in order:
    1. explicit - plain names or nested objects present: explicit names,
       "+" additions and nested keys; the baseline is not used
    2. toggle-minus - "-" removals present: baseline minus removals, plus additions
    3. toggle-plus-only - baseline plus additions (no selection at all means
       every simple attribute)

    Usage:
        normalizer = SelectionNormalizer(registry)
        nodes = normalizer.normalize("Article", ["title", {"author": ["name"]}])
    """

    def __init__(self, registry: SchemaRegistry, formatter: Optional[FieldFormatter] = None):
        self.registry = registry
        self.formatter = formatter or FieldFormatter()

    def normalize(
        self,
        schema: Union[str, EntitySchema],
        raw: Any,
        path: tuple[str, ...] = (),
    ) -> tuple[SelectionNode, ...]:
        schema = self.registry.describe(schema)

        additions: dict[str, None] = {}
        removals: dict[str, None] = {}
        explicit: list[str] = []
        nested: dict[str, list[SelectionNode]] = {}

        for item in _as_items(raw, self.formatter, path):
            if isinstance(item, str):
                if item.startswith("-"):
                    removals[self.formatter.parse_input_field(item[1:])] = None
                elif item.startswith("+"):
                    additions[self.formatter.parse_input_field(item[1:])] = None
                else:
                    explicit.append(self.formatter.parse_input_field(item))
            elif isinstance(item, dict):
                for key, value in item.items():
                    if not isinstance(key, str):
                        raise InvalidFieldTypeError(
                            key, format_container_path(self.formatter, path)
                        )
                    name = self.formatter.parse_input_field(key)
                    nested.setdefault(name, []).append(
                        self._normalize_nested(schema, name, value, (*path, name))
                    )
            else:
                raise InvalidFieldTypeError(item, format_container_path(self.formatter, path))

        if explicit or nested:
            mode = "explicit"
            flat = explicit + [name for name in additions if name not in explicit]
        else:
            baseline = schema.simple_field_names()
            if removals:
                mode = "toggle-minus"
                kept = [name for name in baseline if name not in removals]
            else:
                mode = "toggle-plus"
                kept = baseline
            flat = kept + [name for name in additions if name not in kept]

        logger.debug(
            f"Normalized selection for {schema.name} at "
            f"{format_container_path(self.formatter, path)} ({mode}): {flat} + {list(nested)}"
        )

        nodes: list[SelectionNode] = [LeafSelection(name) for name in flat]
        for name, entries in nested.items():
            nodes.extend(self._merge_entries(name, entries))
        return tuple(nodes)

    def _normalize_nested(
        self,
        schema: EntitySchema,
        name: str,
        value: Any,
        path: tuple[str, ...],
    ) -> SelectionNode:
        descriptor = schema.get_field(name)
        if (
            descriptor is not None
            and descriptor.kind == FieldKind.RELATIONSHIP
            and isinstance(value, (list, tuple))
            and value
        ):
            children = self.normalize(descriptor.destination, value, path)
            return NestedSelection(name, children)
        # Validated downstream against the field kind
        return _parse_nested(name, value, self.formatter, path)

    @staticmethod
    def _merge_entries(name: str, entries: list[SelectionNode]) -> list[SelectionNode]:
        """Concatenate repeated nested keys; other repeats surface as duplicates later."""
        if len(entries) > 1 and all(isinstance(e, NestedSelection) for e in entries):
            children: tuple[SelectionNode, ...] = ()
            for entry in entries:
                children += entry.children
            return [NestedSelection(name, children)]
        return entries
