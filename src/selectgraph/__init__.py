"""
Selectgraph - schema-driven field selection for JSON APIs.

Clients send a field selection; selectgraph validates it against entity
schemas, computes what the data layer must fetch, and reshapes fetched data
into exactly the requested shape.

Usage:
    from selectgraph import SchemaRegistry, SelectionPlanner

    registry = SchemaRegistry.from_graph(graph)
    planner = SelectionPlanner(registry)

    plan = planner.plan("Article", ["title", {"author": ["name"]}])
    rows = fetch(plan.projection)       # your data layer
    data = planner.render(rows, plan)   # {"title": ..., "author": {"name": ...}}
"""

from __future__ import annotations

from .api import create_schema_router, register_error_handlers
from .config import (
    SelectGraphConfig,
    configure_logging,
    get_config,
    load_config,
    set_config,
)
from .core import (
    ActionNotFoundError,
    ConfigurationError,
    EntityDef,
    EntitySchema,
    ErrorCode,
    ErrorResponse,
    FieldFormatter,
    FieldKind,
    FieldSelectionError,
    InvalidPaginationError,
    KeysetPagination,
    OffsetPagination,
    PaginationBuilder,
    Projection,
    SchemaError,
    SchemaRegistry,
    SelectGraphError,
    SelectionNormalizer,
    SelectionProcessor,
    build_error_response,
    to_rpc_error,
)
from .runtime import (
    FORBIDDEN,
    NOT_LOADED,
    CiString,
    KeysetPage,
    OffsetPage,
    ResultExtractor,
    SelectionPlan,
    SelectionPlanner,
    UnionValue,
)

__version__ = "0.1.0"

__all__ = [
    # Schema
    "EntityDef",
    "EntitySchema",
    "FieldKind",
    "SchemaRegistry",
    # Pipeline
    "SelectionNormalizer",
    "SelectionProcessor",
    "Projection",
    "PaginationBuilder",
    "OffsetPagination",
    "KeysetPagination",
    "ResultExtractor",
    "SelectionPlan",
    "SelectionPlanner",
    # Values
    "NOT_LOADED",
    "FORBIDDEN",
    "CiString",
    "UnionValue",
    "OffsetPage",
    "KeysetPage",
    # Errors
    "SelectGraphError",
    "SchemaError",
    "ActionNotFoundError",
    "ConfigurationError",
    "InvalidPaginationError",
    "FieldSelectionError",
    "ErrorCode",
    "ErrorResponse",
    "build_error_response",
    "to_rpc_error",
    # Config
    "FieldFormatter",
    "SelectGraphConfig",
    "configure_logging",
    "get_config",
    "load_config",
    "set_config",
    # API
    "create_schema_router",
    "register_error_handlers",
]
