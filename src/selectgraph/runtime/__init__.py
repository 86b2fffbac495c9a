"""
Runtime module - result extraction and the request pipeline.
"""

from __future__ import annotations

from .extractor import ResultExtractor, normalize_value
from .planner import SelectionPlan, SelectionPlanner
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

__all__ = [
    "ResultExtractor",
    "normalize_value",
    "SelectionPlan",
    "SelectionPlanner",
    "NOT_LOADED",
    "FORBIDDEN",
    "NotLoaded",
    "ForbiddenField",
    "CiString",
    "UnionValue",
    "OffsetPage",
    "KeysetPage",
]
