"""
Custom exceptions for the selectgraph system.

Every field selection error is a client-input error: it aborts processing of
the current request at the first violation and never affects other requests.
"""

from __future__ import annotations

from typing import Any, ClassVar, Optional


class SelectGraphError(Exception):
    """Base exception for all selectgraph errors."""
    code: ClassVar[str] = "unknown_error"


class SchemaError(SelectGraphError):
    """Raised when a schema definition is invalid or an entity is unknown."""
    code = "schema_error"

    def __init__(self, message: str, errors: Optional[list[str]] = None):
        self.errors = errors or [message]
        super().__init__(message)


class EntityNotFoundError(SchemaError):
    """Raised when an entity name is not registered."""
    code = "entity_not_found"

    def __init__(self, entity: str):
        self.entity = entity
        super().__init__(f"Entity '{entity}' not found")


class ActionNotFoundError(SelectGraphError):
    """Raised when a selection targets an action the entity does not declare."""
    code = "action_not_found"

    def __init__(self, action_name: str, entity: str):
        self.action_name = action_name
        self.entity = entity
        super().__init__(f"Action '{action_name}' not found on {entity}")


class InvalidPaginationError(SelectGraphError):
    """Raised when a pagination request cannot be resolved to a strategy."""
    code = "invalid_pagination"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


class ConfigurationError(SelectGraphError):
    """Raised when configuration values (file or environment) are invalid."""
    code = "invalid_configuration"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Invalid selectgraph configuration: {reason}")


# =============================================================================
# Field selection errors
# =============================================================================

_KIND_DESCRIPTIONS = {
    "relationship": "Relationship",
    "embedded_resource": "Embedded resource",
    "embedded_resource_array": "Embedded resource array",
    "calculation_complex": "Complex calculation",
    "calculation_with_args": "Calculation",
    "complex_aggregate": "Complex aggregate",
    "tuple": "Tuple",
    "typed_struct": "Typed struct",
    "union_attribute": "Union attribute",
    "complex_type": "Complex type",
}


def describe_kind(kind: str) -> str:
    """Human readable name of a field kind used in error messages."""
    return _KIND_DESCRIPTIONS.get(kind, "Field")


class FieldSelectionError(SelectGraphError):
    """
    Base class for errors in a client's field selection.

    Attributes:
        path: Dotted path of the offending field, formatted for the client
    """
    code = "invalid_field"

    def __init__(self, message: str, path: str):
        self.path = path
        super().__init__(message)


class UnknownFieldError(FieldSelectionError):
    """A requested name does not exist in the current container."""
    code = "unknown_field"

    def __init__(self, field_name: str, container: str, path: str):
        self.field_name = field_name
        self.container = container
        if container == "union_attribute":
            message = f"Unknown union member '{path}'"
        elif container in ("map", "tuple"):
            message = f"Unknown field '{path}' in {container} type"
        elif container == "typed_struct":
            message = f"Unknown field '{path}' in typed struct"
        else:
            message = f"Unknown field '{path}' on {container}"
        super().__init__(message, path)


class RequiresFieldSelectionError(FieldSelectionError):
    """A complex field was requested without a nested selection."""
    code = "requires_field_selection"

    def __init__(self, kind: str, path: str):
        self.kind = kind
        super().__init__(f"{describe_kind(kind)} '{path}' requires field selection", path)


class InvalidFieldSelectionError(FieldSelectionError):
    """A nested selection is empty or not allowed for the field kind."""
    code = "invalid_field_selection"

    _MESSAGES = {
        "aggregate": "Aggregate '{path}' returns a primitive type and doesn't support nested field selection",
        "calculation": "Calculation '{path}' returns a primitive type and doesn't support field selection",
        "tuple": "Tuple field '{path}' doesn't support nested field selection in this context",
    }

    def __init__(self, kind: str, path: str):
        self.kind = kind
        template = self._MESSAGES.get(kind, "Invalid field selection for {kind} at '{path}'")
        super().__init__(template.format(kind=kind, path=path), path)


class FieldDoesNotSupportNestingError(FieldSelectionError):
    """A simple attribute was given a nested selection."""
    code = "field_does_not_support_nesting"

    def __init__(self, path: str):
        super().__init__(f"Field '{path}' does not support nested field selection", path)


class DuplicateFieldError(FieldSelectionError):
    """Two sibling entries resolve to the same field name."""
    code = "duplicate_field"

    def __init__(self, field_name: str, path: str):
        self.field_name = field_name
        super().__init__(
            f"Duplicate field '{field_name}' in field selection at '{path}'", path
        )


class CalculationRequiresArgsError(FieldSelectionError):
    """An argument-taking calculation was requested without `args`."""
    code = "calculation_requires_args"

    def __init__(self, field_name: str, path: str):
        self.field_name = field_name
        super().__init__(f"Calculation '{path}' requires arguments", path)


class InvalidCalculationArgsError(FieldSelectionError):
    """Calculation arguments were given in an unsupported shape."""
    code = "invalid_calculation_args"

    def __init__(self, field_name: str, path: str):
        self.field_name = field_name
        super().__init__(f"Invalid arguments format for calculation '{path}'", path)


class InvalidUnionFieldFormatError(FieldSelectionError):
    """A union member selection is neither a tag nor a `{tag: fields}` object."""
    code = "invalid_union_field_format"

    def __init__(self, path: str):
        super().__init__(f"Invalid union field format at '{path}'", path)


class InvalidFieldTypeError(FieldSelectionError):
    """A selection item or key is not a string or a nested object."""
    code = "invalid_field_type"

    def __init__(self, value: Any, path: str):
        self.value = value
        super().__init__(f"Invalid field type '{value!r}' at path '{path}'", path)


class UnsupportedFieldCombinationError(FieldSelectionError):
    """A selection shape is valid in general but not for this field kind."""
    code = "unsupported_field_combination"

    def __init__(self, kind: str, field_name: str, value: Any, path: str):
        self.kind = kind
        self.field_name = field_name
        self.value = value
        super().__init__(
            f"Unsupported field combination for {kind} '{field_name}' at '{path}'", path
        )
