"""
Core module - schema definitions, selection processing, pagination and errors.
"""

from __future__ import annotations

from .defs import (
    ActionDef,
    AggregateDef,
    AttributeDef,
    CalculationDef,
    EntityDef,
    RelationshipDef,
    TypeRef,
    parse_type,
)
from .error_builder import ErrorCode, build_error_response, to_rpc_error
from .errors import (
    ActionNotFoundError,
    CalculationRequiresArgsError,
    ConfigurationError,
    DuplicateFieldError,
    EntityNotFoundError,
    FieldDoesNotSupportNestingError,
    FieldSelectionError,
    InvalidCalculationArgsError,
    InvalidFieldSelectionError,
    InvalidFieldTypeError,
    InvalidPaginationError,
    InvalidUnionFieldFormatError,
    RequiresFieldSelectionError,
    SchemaError,
    SelectGraphError,
    UnknownFieldError,
    UnsupportedFieldCombinationError,
)
from .pagination import DEFAULT_LIMIT, PaginationBuilder
from .processor import (
    CalculationLoad,
    LeafTemplate,
    NestedTemplate,
    Projection,
    SelectionProcessor,
    SelectionResult,
    TupleLeafTemplate,
    UnionBranchTemplate,
)
from .query_types import ErrorResponse, KeysetPagination, OffsetPagination, PaginationRequest
from .registry import EntitySchema, FieldDescriptor, FieldKind, SchemaRegistry
from .selection import (
    ArgsSelection,
    LeafSelection,
    NestedSelection,
    SelectionNormalizer,
    UnionMemberSelection,
    parse_selection,
)
from .utils import FieldFormatter, to_camel_case, to_pascal_case, to_snake_case

__all__ = [
    # Definitions
    "TypeRef",
    "parse_type",
    "AttributeDef",
    "CalculationDef",
    "AggregateDef",
    "RelationshipDef",
    "ActionDef",
    "EntityDef",
    # Registry
    "FieldKind",
    "FieldDescriptor",
    "EntitySchema",
    "SchemaRegistry",
    # Selection
    "LeafSelection",
    "NestedSelection",
    "ArgsSelection",
    "UnionMemberSelection",
    "SelectionNormalizer",
    "parse_selection",
    "SelectionProcessor",
    "SelectionResult",
    "Projection",
    "CalculationLoad",
    "LeafTemplate",
    "NestedTemplate",
    "TupleLeafTemplate",
    "UnionBranchTemplate",
    # Pagination
    "DEFAULT_LIMIT",
    "PaginationBuilder",
    "PaginationRequest",
    "OffsetPagination",
    "KeysetPagination",
    # Errors
    "SelectGraphError",
    "SchemaError",
    "EntityNotFoundError",
    "ActionNotFoundError",
    "InvalidPaginationError",
    "FieldSelectionError",
    "UnknownFieldError",
    "RequiresFieldSelectionError",
    "InvalidFieldSelectionError",
    "FieldDoesNotSupportNestingError",
    "DuplicateFieldError",
    "CalculationRequiresArgsError",
    "ConfigurationError",
    "InvalidCalculationArgsError",
    "InvalidUnionFieldFormatError",
    "InvalidFieldTypeError",
    "UnsupportedFieldCombinationError",
    "ErrorCode",
    "ErrorResponse",
    "build_error_response",
    "to_rpc_error",
    # Formatting
    "FieldFormatter",
    "to_snake_case",
    "to_camel_case",
    "to_pascal_case",
]
