"""
Result extractor - reshapes fetched data into the client's requested shape.

Walks raw data (records, lists, pages, tuples, union values) alongside an
extraction template produced by the SelectionProcessor:

- fields not in the template never appear in the output
- NOT_LOADED values are omitted, FORBIDDEN values become null
- scalars are normalized to JSON-safe values (ISO-8601 timestamps,
  decimal strings, plain strings for UUIDs and case-insensitive strings)
- output keys that name selected fields (and page metadata keys) pass
  through `format_key`; keys inside opaque map and json values are kept

Usage:
    result = processor.process("Article", nodes)
    data = ResultExtractor().extract(raw_articles, result.template)
"""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Optional, Sequence
from uuid import UUID

from pydantic import BaseModel

from ..core.processor import (
    LeafTemplate,
    NestedTemplate,
    TemplateNode,
    TupleLeafTemplate,
    UnionBranchTemplate,
)
from .values import (
    FORBIDDEN,
    NOT_LOADED,
    CiString,
    ForbiddenField,
    KeysetPage,
    NotLoaded,
    OffsetPage,
    UnionValue,
)

_MISSING = object()


def normalize_value(value: Any) -> Any:
    """
    Convert a raw value into a JSON-safe value, recursively.

    Records without a template (dicts, dataclasses, pydantic models) are
    normalized field by field; NOT_LOADED entries are dropped and FORBIDDEN
    entries become None.
    """
    if value is None or isinstance(value, (bool, int, float)) and not isinstance(value, Enum):
        return value
    if isinstance(value, (NotLoaded, ForbiddenField)):
        return None
    if isinstance(value, Enum):
        return value.value if isinstance(value.value, str) else value.name
    if isinstance(value, CiString):
        return str.__str__(value)
    if isinstance(value, str):
        return value
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, (Decimal, UUID)):
        return str(value)
    if isinstance(value, UnionValue):
        return {value.tag: normalize_value(value.value)}
    if isinstance(value, Mapping):
        return {
            key: normalize_value(item)
            for key, item in value.items()
            if item is not NOT_LOADED
        }
    if isinstance(value, (list, tuple, set, frozenset)):
        return [normalize_value(item) for item in value]
    if isinstance(value, BaseModel):
        return normalize_value({name: getattr(value, name) for name in type(value).model_fields})
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return normalize_value(
            {f.name: getattr(value, f.name) for f in dataclasses.fields(value)}
        )
    return value


def _keep_key(name: str) -> str:
    return name


def _get(record: Any, name: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(name, _MISSING)
    return getattr(record, name, _MISSING)


def _is_tuple_template(template: Sequence[TemplateNode]) -> bool:
    return bool(template) and all(isinstance(node, TupleLeafTemplate) for node in template)


def _is_union_template(template: Sequence[TemplateNode]) -> bool:
    return bool(template) and all(isinstance(node, UnionBranchTemplate) for node in template)


def _is_page_mapping(value: Mapping) -> bool:
    return (
        "results" in value
        and "limit" in value
        and ("has_more" in value or "hasMore" in value)
    )


class ResultExtractor:
    """
    Applies extraction templates to raw data.

    Extraction never fails on data shape: missing fields are omitted and
    values that do not match the template are normalized as they are.
    """

    def __init__(self, format_key: Optional[Callable[[str], str]] = None):
        self.format_key = format_key or _keep_key

    def extract(self, raw: Any, template: Sequence[TemplateNode]) -> Any:
        """
        Extract `raw` against `template`.

        Args:
            raw: A page (OffsetPage, KeysetPage or page mapping), a list of
                records, a single record, a tuple or a union value
            template: Extraction template from SelectionResult.template

        Returns:
            JSON-safe data containing exactly the selected fields
        """
        return self._extract_value(raw, tuple(template))

    # -------------------------------------------------------------------------
    # Dispatch on raw shape
    # -------------------------------------------------------------------------

    def _extract_value(self, value: Any, template: tuple[TemplateNode, ...]) -> Any:
        if value is None or value is FORBIDDEN:
            return None
        if isinstance(value, OffsetPage):
            return self._offset_page(
                value.results, value.limit, value.offset, value.has_more, value.count, template
            )
        if isinstance(value, KeysetPage):
            return self._keyset_page(value.results, value.limit, value.has_more, template)
        if isinstance(value, Mapping) and _is_page_mapping(value):
            has_more = value.get("has_more", value.get("hasMore", False))
            if "offset" in value:
                return self._offset_page(
                    value["results"], value["limit"], value["offset"], has_more,
                    value.get("count"), template,
                )
            return self._keyset_page(value["results"], value["limit"], has_more, template)

        if _is_union_template(template):
            return self._extract_union(value, template)
        if _is_tuple_template(template):
            if isinstance(value, list) and value and all(
                isinstance(item, (list, tuple, Mapping)) for item in value
            ):
                return [self._extract_tuple(item, template) for item in value]
            return self._extract_tuple(value, template)

        if isinstance(value, (list, tuple)):
            return [self._extract_value(item, template) for item in value]
        if isinstance(value, (str, int, float, bool, Decimal, UUID, date, time, Enum)):
            return normalize_value(value)
        return self._extract_record(value, template)

    def _offset_page(self, results, limit, offset, has_more, count, template) -> dict[str, Any]:
        return self._page({
            "results": [self._extract_value(item, template) for item in results],
            "has_more": bool(has_more),
            "limit": limit,
            "offset": offset,
            "count": count,
            "type": "offset",
        })

    def _keyset_page(self, results, limit, has_more, template) -> dict[str, Any]:
        return self._page({
            "results": [self._extract_value(item, template) for item in results],
            "has_more": bool(has_more),
            "limit": limit,
            "type": "keyset",
        })

    def _page(self, page: dict[str, Any]) -> dict[str, Any]:
        return {self.format_key(key): value for key, value in page.items()}

    # -------------------------------------------------------------------------
    # Records, tuples and unions
    # -------------------------------------------------------------------------

    def _extract_record(self, record: Any, template: tuple[TemplateNode, ...]) -> dict[str, Any]:
        output: dict[str, Any] = {}

        for node in template:
            if isinstance(node, UnionBranchTemplate):
                continue
            key = self.format_key(node.name)
            if isinstance(node, TupleLeafTemplate):
                output[key] = normalize_value(self._tuple_element(record, node))
                continue

            value = _get(record, node.name)
            if value is _MISSING or value is NOT_LOADED:
                continue
            if value is FORBIDDEN or value is None:
                output[key] = None
            elif isinstance(node, LeafTemplate):
                output[key] = normalize_value(value)
            elif isinstance(node, NestedTemplate):
                output[key] = self._extract_value(value, node.children)

        return output

    @staticmethod
    def _tuple_element(value: Any, node: TupleLeafTemplate) -> Any:
        if isinstance(value, Mapping):
            return value.get(node.name)
        if isinstance(value, (list, tuple)):
            return value[node.index] if node.index < len(value) else None
        return getattr(value, node.name, None)

    def _extract_tuple(self, value: Any, template: tuple[TemplateNode, ...]) -> dict[str, Any]:
        return {
            self.format_key(node.name): normalize_value(self._tuple_element(value, node))
            for node in template
        }

    def _extract_union(self, value: Any, template: tuple[TemplateNode, ...]) -> Any:
        if isinstance(value, list):
            return [self._extract_union(item, template) for item in value]
        if isinstance(value, UnionValue):
            tag, payload = value.tag, value.value
        elif isinstance(value, tuple) and len(value) == 2 and isinstance(value[0], str):
            tag, payload = value
        else:
            return normalize_value(value)

        for branch in template:
            if branch.tag == tag:
                if branch.children is None:
                    return {self.format_key(tag): normalize_value(payload)}
                return {self.format_key(tag): self._extract_value(payload, branch.children)}
        # Active member was not selected
        return {}
