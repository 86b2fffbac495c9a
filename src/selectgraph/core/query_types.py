"""
Pydantic models for pagination requests, pagination plans and error responses.

Pagination requests come from clients; plans are the normalized form handed
to the data-fetch layer.
"""

from __future__ import annotations

from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError


def describe_validation_error(exc: ValidationError) -> str:
    """One-line summary of a pydantic ValidationError: "'limit': Input should be ..."."""
    parts = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"])
        parts.append(f"'{location}': {error['msg']}" if location else error["msg"])
    return "; ".join(parts)


# --- Input types (from client) ---

class PaginationRequest(BaseModel):
    """
    Pagination request as sent by a client.

    Digit strings are accepted for the integer fields and "true"/"false"
    for `count` (pydantic lax mode).

    Example:
        {"limit": 10, "offset": 20, "count": true}
        {"type": "keyset", "after": "g3QAAAABZAACaWRtAAAAA..."}
    """
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    type: Optional[str] = None
    limit: Optional[int] = Field(None, ge=1)
    offset: Optional[int] = Field(None, ge=0)
    page: Optional[int] = None
    after: Optional[str] = None
    before: Optional[str] = None
    count: Optional[bool] = None


# --- Normalized plans (after resolution) ---

class OffsetPagination(BaseModel):
    """Offset/limit pagination plan."""
    model_config = ConfigDict(frozen=True)

    type: Literal["offset"] = "offset"
    limit: int = 20
    offset: int = 0
    count: bool = False

    def to_query_options(self) -> dict[str, Any]:
        return {"limit": self.limit, "offset": self.offset, "count": self.count}


class KeysetPagination(BaseModel):
    """Cursor (keyset) pagination plan; `after`/`before` are opaque cursors."""
    model_config = ConfigDict(frozen=True)

    type: Literal["keyset"] = "keyset"
    limit: int = 20
    after: Optional[str] = None
    before: Optional[str] = None
    count: bool = False

    def to_query_options(self) -> dict[str, Any]:
        options: dict[str, Any] = {"limit": self.limit, "count": self.count}
        if self.after is not None:
            options["after"] = self.after
        if self.before is not None:
            options["before"] = self.before
        return options


PaginationPlan = Union[OffsetPagination, KeysetPagination]


# --- Error responses ---

class ErrorResponse(BaseModel):
    """
    Structured, client-facing description of an error.

    `type` is the stable machine code; `field` is the dotted path of the
    offending field when the error concerns a selection.
    """
    type: str
    message: str
    field: Optional[str] = None
    field_name: Optional[str] = None
    field_type: Optional[str] = None
    suggestion: Optional[str] = None
    details: dict[str, Any] = Field(default_factory=dict)
