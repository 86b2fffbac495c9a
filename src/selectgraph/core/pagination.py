"""
Pagination strategy builder.

Turns a client pagination request into an offset or keyset plan:

1. explicit "type" ("offset" | "keyset") wins over everything else
2. "offset" without "after"/"before" selects offset pagination
3. "after" or "before" selects keyset pagination
4. otherwise keyset pagination with the default limit and no cursor

Usage:
    builder = PaginationBuilder()
    builder.resolve({"offset": 10, "limit": 5})   # OffsetPagination(limit=5, offset=10)
    builder.resolve({"after": "c1"})              # KeysetPagination(after="c1")
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Union

from pydantic import ValidationError

from .errors import InvalidPaginationError
from .query_types import (
    KeysetPagination,
    OffsetPagination,
    PaginationPlan,
    PaginationRequest,
    describe_validation_error,
)
from .utils import to_snake_case

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 20

PAGINATION_TYPES = ("offset", "keyset")


class PaginationBuilder:
    """Resolves pagination requests into plans."""

    def __init__(self, default_limit: int = DEFAULT_LIMIT):
        self.default_limit = default_limit

    def resolve(
        self, request: Union[Mapping[str, Any], PaginationRequest, int, None]
    ) -> PaginationPlan:
        """
        Resolve a pagination request.

        Args:
            request: Mapping with camelCase or snake_case keys, a
                PaginationRequest, a bare limit, or None for the default plan

        Returns:
            OffsetPagination or KeysetPagination

        Raises:
            InvalidPaginationError: for an unknown type or malformed values
        """
        params = self._params(request)
        pagination_type = params.get("type")

        if pagination_type is not None:
            if pagination_type not in PAGINATION_TYPES:
                raise InvalidPaginationError(
                    f"Unknown pagination type {pagination_type!r}, "
                    f"expected one of {', '.join(PAGINATION_TYPES)}"
                )
            strategy = pagination_type
        elif "offset" in params and "after" not in params and "before" not in params:
            strategy = "offset"
        else:
            # Cursors, or nothing distinguishing
            strategy = "keyset"

        plan = self._offset(params) if strategy == "offset" else self._keyset(params)
        logger.debug(f"Resolved pagination {params} -> {plan!r}")
        return plan

    def _params(self, request: Any) -> dict[str, Any]:
        """Validated, present (non-None) request values keyed by snake_case name."""
        if request is None:
            return {}
        if isinstance(request, PaginationRequest):
            return request.model_dump(exclude_none=True)
        if isinstance(request, int) and not isinstance(request, bool):
            request = {"limit": request}
        if not isinstance(request, Mapping):
            raise InvalidPaginationError(f"Invalid pagination request {request!r}")

        data = {
            to_snake_case(key): value
            for key, value in request.items()
            if isinstance(key, str)
        }
        try:
            validated = PaginationRequest.model_validate(data)
        except ValidationError as e:
            raise InvalidPaginationError(describe_validation_error(e)) from e
        return validated.model_dump(exclude_none=True)

    def _limit(self, params: dict[str, Any]) -> int:
        return params.get("limit", self.default_limit)

    def _offset(self, params: dict[str, Any]) -> OffsetPagination:
        limit = self._limit(params)

        if "page" in params:
            offset = max(params["page"] - 1, 0) * limit
        else:
            offset = params.get("offset", 0)

        return OffsetPagination(limit=limit, offset=offset, count=params.get("count", False))

    def _keyset(self, params: dict[str, Any]) -> KeysetPagination:
        return KeysetPagination(
            limit=self._limit(params),
            after=params.get("after"),
            before=params.get("before"),
            count=params.get("count", False),
        )
