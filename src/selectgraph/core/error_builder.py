"""
Error builder - converts selectgraph errors into client-facing responses.

Usage:
    try:
        processor.process("Article", selection)
    except SelectGraphError as e:
        body = to_rpc_error(e)
        # {"code": -32600, "message": "...", "data": {"code": "BAD_REQUEST", ...}}
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any

from .errors import (
    ActionNotFoundError,
    CalculationRequiresArgsError,
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
from .query_types import ErrorResponse

logger = logging.getLogger(__name__)


class ErrorCode(Enum):
    """Transport error codes: (string code, HTTP status, JSON-RPC code)."""
    PARSE_ERROR = ("PARSE_ERROR", 400, -32700)
    BAD_REQUEST = ("BAD_REQUEST", 400, -32600)
    NOT_FOUND = ("NOT_FOUND", 404, -32601)
    FORBIDDEN = ("FORBIDDEN", 403, -32000)
    UNAUTHORIZED = ("UNAUTHORIZED", 401, -32000)
    INTERNAL_SERVER_ERROR = ("INTERNAL_SERVER_ERROR", 500, -32603)

    @property
    def string_code(self) -> str:
        return self.value[0]

    @property
    def http_status(self) -> int:
        return self.value[1]

    @property
    def jsonrpc_code(self) -> int:
        return self.value[2]


def error_code_for(error: BaseException) -> ErrorCode:
    """Transport code of an error: client input, missing target, or internal."""
    if isinstance(error, (FieldSelectionError, InvalidPaginationError)):
        return ErrorCode.BAD_REQUEST
    if isinstance(error, (EntityNotFoundError, ActionNotFoundError)):
        return ErrorCode.NOT_FOUND
    return ErrorCode.INTERNAL_SERVER_ERROR


_UNKNOWN_FIELD_SUGGESTIONS = {
    "map": "Check the available fields for this map type",
    "tuple": "Check the available fields for this tuple type",
    "typed_struct": "Check the available fields for this typed struct",
    "union_attribute": "Check the available union members for this field",
}

_INVALID_SELECTION_SUGGESTIONS = {
    "aggregate": "Remove the nested field specification for primitive aggregates",
    "calculation": "Remove the select parameter for primitive calculations",
    "tuple": "Use simple field names for tuple field selection",
}


def build_error_response(error: BaseException) -> ErrorResponse:
    """
    Describe an error for the client.

    Selection errors carry the dotted field path and a remediation
    suggestion; anything that is not a SelectGraphError is reported as an
    internal error without leaking its message.
    """
    if isinstance(error, UnknownFieldError):
        return ErrorResponse(
            type=error.code,
            message=str(error),
            field=error.path,
            field_name=error.field_name,
            suggestion=_UNKNOWN_FIELD_SUGGESTIONS.get(
                error.container,
                "Check the available public fields, relationships, calculations, and aggregates",
            ),
            details={"container": error.container},
        )

    if isinstance(error, RequiresFieldSelectionError):
        return ErrorResponse(
            type=error.code,
            message=str(error),
            field=error.path,
            field_type=error.kind,
            suggestion="Provide a select array to specify which nested fields to include",
        )

    if isinstance(error, InvalidFieldSelectionError):
        return ErrorResponse(
            type=error.code,
            message=str(error),
            field=error.path,
            field_type=error.kind,
            suggestion=_INVALID_SELECTION_SUGGESTIONS.get(
                error.kind, "Provide a non-empty select array for this field"
            ),
        )

    if isinstance(error, FieldDoesNotSupportNestingError):
        return ErrorResponse(
            type=error.code,
            message=str(error),
            field=error.path,
            suggestion="Remove the nested field specification for simple fields",
        )

    if isinstance(error, DuplicateFieldError):
        return ErrorResponse(
            type=error.code,
            message=str(error),
            field=error.path,
            field_name=error.field_name,
            suggestion="Remove duplicate field specifications",
        )

    if isinstance(error, CalculationRequiresArgsError):
        return ErrorResponse(
            type=error.code,
            message=str(error),
            field=error.path,
            field_name=error.field_name,
            suggestion=(
                f'Provide arguments using the format: {{"{error.field_name}": {{"args": {{...}}}}}}'
            ),
        )

    if isinstance(error, InvalidCalculationArgsError):
        return ErrorResponse(
            type=error.code,
            message=str(error),
            field=error.path,
            field_name=error.field_name,
            suggestion=(
                f'Use the format: {{"{error.field_name}": {{"args": {{...}}, "select": [...]}}}}'
            ),
        )

    if isinstance(error, InvalidUnionFieldFormatError):
        return ErrorResponse(
            type=error.code,
            message=str(error),
            field=error.path,
            suggestion='Use format: ["member_name"] or {"member_name": ["field1", "field2"]}',
        )

    if isinstance(error, InvalidFieldTypeError):
        return ErrorResponse(
            type=error.code,
            message=str(error),
            field=error.path,
            suggestion="Field names should be strings",
            details={"value": repr(error.value)},
        )

    if isinstance(error, UnsupportedFieldCombinationError):
        return ErrorResponse(
            type=error.code,
            message=str(error),
            field=error.path,
            field_name=error.field_name,
            field_type=error.kind,
            suggestion="Check the supported field selection format for this field type",
        )

    if isinstance(error, FieldSelectionError):
        return ErrorResponse(type=error.code, message=str(error), field=error.path)

    if isinstance(error, InvalidPaginationError):
        return ErrorResponse(
            type=error.code,
            message=f"Invalid pagination: {error.reason}",
            suggestion=(
                'Use {"limit", "offset" | "page"} for offset pagination '
                'or {"limit", "after" | "before"} for keyset pagination'
            ),
        )

    if isinstance(error, ActionNotFoundError):
        return ErrorResponse(
            type=error.code,
            message=str(error),
            suggestion="Check that the action is properly configured in your resource",
            details={"entity": error.entity, "action": error.action_name},
        )

    if isinstance(error, EntityNotFoundError):
        return ErrorResponse(
            type=error.code, message=str(error), details={"entity": error.entity}
        )

    if isinstance(error, SchemaError):
        return ErrorResponse(
            type=error.code, message=str(error), details={"errors": error.errors}
        )

    if isinstance(error, SelectGraphError):
        return ErrorResponse(type=error.code, message=str(error))

    logger.warning(f"Unexpected error converted to internal error: {error!r}")
    return ErrorResponse(type="internal_error", message="Internal server error")


def to_rpc_error(error: BaseException) -> dict[str, Any]:
    """
    JSON-RPC style error body.

    Returns:
        {"code": <json-rpc code>, "message": str,
         "data": {"code": "BAD_REQUEST", "httpStatus": 400, "details": [...]}}
    """
    code = error_code_for(error)
    response = build_error_response(error)
    return {
        "code": code.jsonrpc_code,
        "message": response.message,
        "data": {
            "code": code.string_code,
            "httpStatus": code.http_status,
            "details": [response.model_dump(exclude_none=True)],
        },
    }
