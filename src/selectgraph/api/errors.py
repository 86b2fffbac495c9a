"""
Exception handlers that turn selectgraph errors into JSON error responses.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from ..core.error_builder import error_code_for, to_rpc_error
from ..core.errors import SelectGraphError

logger = logging.getLogger(__name__)


async def selectgraph_error_handler(request: Request, exc: SelectGraphError) -> JSONResponse:
    """Respond with the RPC error body and the error's HTTP status."""
    code = error_code_for(exc)
    logger.info(f"{request.method} {request.url.path} failed: {exc.code}: {exc}")
    return JSONResponse(status_code=code.http_status, content={"error": to_rpc_error(exc)})


def register_error_handlers(app: FastAPI) -> None:
    """
    Install the selectgraph exception handler on an application.

    Usage:
        app = FastAPI()
        register_error_handlers(app)
        app.include_router(create_schema_router(registry))
    """
    app.add_exception_handler(SelectGraphError, selectgraph_error_handler)
