"""
Utility functions for selectgraph.

Includes:
- Case conversion (camelCase <-> snake_case)
- Field name formatting for client input and output
"""

from __future__ import annotations

import re
from typing import Callable, Union


# =============================================================================
# Case conversion utilities
# =============================================================================

_CAMEL_TO_SNAKE_PATTERN = re.compile(r'([a-z0-9])([A-Z])')
_SNAKE_TO_CAMEL_PATTERN = re.compile(r'_([a-z0-9])')


def to_snake_case(name: str) -> str:
    """
    Convert camelCase to snake_case.

    Examples:
        ownedProperties -> owned_properties
        firstName -> first_name
        HTTPResponse -> http_response
        getHTTPResponseCode -> get_http_response_code
    """
    # Handle consecutive uppercase (HTTP -> http)
    result = re.sub(r'([A-Z]+)([A-Z][a-z])', r'\1_\2', name)
    result = _CAMEL_TO_SNAKE_PATTERN.sub(r'\1_\2', result)
    return result.lower()


def to_camel_case(name: str) -> str:
    """
    Convert snake_case to camelCase.

    Examples:
        owned_properties -> ownedProperties
        first_name -> firstName
        address_line_1 -> addressLine1
    """
    def replace_underscore(match):
        return match.group(1).upper()

    return _SNAKE_TO_CAMEL_PATTERN.sub(replace_underscore, name)


def to_pascal_case(name: str) -> str:
    """
    Convert snake_case to PascalCase.

    Examples:
        owned_properties -> OwnedProperties
        first_name -> FirstName
    """
    camel = to_camel_case(name)
    return camel[0].upper() + camel[1:] if camel else camel


# =============================================================================
# Field name formatting
# =============================================================================

# A convention is one of the names below or a callable taking and returning a str
Convention = Union[str, Callable[[str], str]]

CONVENTIONS = ("camel_case", "pascal_case", "snake_case")


def _check_convention(convention: Convention) -> Convention:
    if callable(convention) or convention in CONVENTIONS:
        return convention
    raise ValueError(
        f"Unknown field name convention '{convention}' "
        f"(expected one of {', '.join(CONVENTIONS)} or a callable)"
    )


class FieldFormatter:
    """
    Converts field names between the client convention and the canonical
    snake_case names used by schemas.

    Usage:
        formatter = FieldFormatter("camel_case", "camel_case")
        formatter.parse_input_field("firstName")   # "first_name"
        formatter.format_field("first_name")       # "firstName"
    """

    def __init__(
        self,
        input_convention: Convention = "camel_case",
        output_convention: Convention = "camel_case",
    ):
        self.input_convention = _check_convention(input_convention)
        self.output_convention = _check_convention(output_convention)

    def __repr__(self) -> str:
        return f"FieldFormatter({self.input_convention!r}, {self.output_convention!r})"

    def parse_input_field(self, name: str) -> str:
        """Canonicalize a client-supplied field name."""
        convention = self.input_convention
        if callable(convention):
            return convention(name)
        if convention == "snake_case":
            return name
        # camel_case and pascal_case both come back to snake_case
        return to_snake_case(name)

    def format_field(self, name: str) -> str:
        """Render a canonical field name in the output convention."""
        convention = self.output_convention
        if callable(convention):
            return convention(name)
        if convention == "camel_case":
            return to_camel_case(name)
        if convention == "pascal_case":
            return to_pascal_case(name)
        return to_snake_case(name)

    def format_path(self, parts: list[str] | tuple[str, ...]) -> str:
        """Join path parts into a dotted path of formatted names."""
        return ".".join(self.format_field(str(part)) for part in parts)
