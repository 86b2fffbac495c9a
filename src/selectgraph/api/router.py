"""
FastAPI router exposing schema descriptions and selection plans.

Endpoints:
- GET  /__schema           - Describes every registered entity
- GET  /__schema/{entity}  - Describes one entity
- POST /__explain/{entity} - Validates a selection and returns its plan

Explain request body:
    {"select": ["title", {"author": ["name"]}], "action": "list", "page": {"limit": 10}}
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter
from pydantic import BaseModel

from ..core.registry import SchemaRegistry
from ..runtime.planner import SelectionPlanner


class ExplainRequest(BaseModel):
    """Body of POST /__explain/{entity}."""
    select: Any = None
    action: Optional[str] = None
    page: Any = None


def create_schema_router(
    registry: SchemaRegistry,
    planner: Optional[SelectionPlanner] = None,
) -> APIRouter:
    """
    Create the schema router for a registry.

    Errors propagate as SelectGraphError; install register_error_handlers()
    on the application to turn them into JSON responses.

    Usage:
        app = FastAPI()
        register_error_handlers(app)
        app.include_router(create_schema_router(registry))
    """
    planner = planner or SelectionPlanner(registry)
    router = APIRouter()

    @router.get("/__schema")
    async def get_schema() -> dict:
        """Return the description of every registered entity."""
        return registry.to_graph()

    @router.get("/__schema/{entity}")
    async def get_entity_schema(entity: str) -> dict:
        return registry.describe(entity).to_dict()

    @router.post("/__explain/{entity}")
    async def explain(entity: str, body: ExplainRequest) -> dict:
        """
        Validate a selection and return its projection, template and pagination plan.

        Nothing is fetched; useful to debug client selections.
        """
        plan = planner.plan(entity, body.select, action=body.action, page=body.page)
        return plan.to_dict()

    return router
