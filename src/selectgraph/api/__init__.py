"""
API module - FastAPI endpoints and error handlers.
"""

from __future__ import annotations

from .errors import register_error_handlers, selectgraph_error_handler
from .router import ExplainRequest, create_schema_router

__all__ = [
    "ExplainRequest",
    "create_schema_router",
    "register_error_handlers",
    "selectgraph_error_handler",
]
