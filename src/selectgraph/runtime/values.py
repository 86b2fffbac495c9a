"""
Value types produced by data-fetch layers and understood by the extractor.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional


class NotLoaded:
    """Marks a field that was not fetched. Extraction omits it."""
    _instance: Optional["NotLoaded"] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NOT_LOADED"

    def __bool__(self) -> bool:
        return False


class ForbiddenField:
    """Marks a field the caller may not read. Extraction emits null."""
    _instance: Optional["ForbiddenField"] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "FORBIDDEN"

    def __bool__(self) -> bool:
        return False


NOT_LOADED = NotLoaded()
FORBIDDEN = ForbiddenField()


class CiString(str):
    """Case-insensitive string. Compares and hashes by its lowercase form."""

    def __eq__(self, other: object) -> bool:
        if isinstance(other, str):
            return self.lower() == other.lower()
        return NotImplemented

    def __ne__(self, other: object) -> bool:
        result = self.__eq__(other)
        return result if result is NotImplemented else not result

    def __hash__(self) -> int:
        return hash(self.lower())

    def __repr__(self) -> str:
        return f"CiString({str.__repr__(self)})"


@dataclass(frozen=True)
class UnionValue:
    """Value of a tagged union: the active member tag and its payload."""
    tag: str
    value: Any


@dataclass
class OffsetPage:
    """A page of results fetched with offset pagination."""
    results: list[Any]
    limit: int
    offset: int = 0
    has_more: bool = False
    count: Optional[int] = None
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class KeysetPage:
    """A page of results fetched with keyset pagination."""
    results: list[Any]
    limit: int
    has_more: bool = False
    metadata: dict[str, Any] = field(default_factory=dict)
