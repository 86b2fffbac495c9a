"""
Selection planner - runs a client request through the selection pipeline.

    raw select -> SelectionNormalizer -> SelectionProcessor -> SelectionPlan
    raw page   -> PaginationBuilder  ----------------------^

After the data-fetch layer has run the plan's projection, render() reshapes
the fetched data with the plan's template and applies output key formatting.

Usage:
    planner = SelectionPlanner(registry)
    plan = planner.plan("Article", ["title", {"author": ["name"]}], page={"limit": 10})
    rows = fetch(plan.projection, plan.pagination)  # application code
    data = planner.render(rows, plan)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from ..config import SelectGraphConfig, get_config
from ..core.errors import ActionNotFoundError
from ..core.pagination import PaginationBuilder
from ..core.processor import Projection, SelectionProcessor, TemplateNode, template_to_data
from ..core.query_types import PaginationPlan
from ..core.registry import EntitySchema, SchemaRegistry
from ..core.selection import SelectionNode, SelectionNormalizer, parse_selection
from .extractor import ResultExtractor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SelectionPlan:
    """Everything needed to fetch and reshape the data for one request."""
    entity: str
    projection: Projection
    template: tuple[TemplateNode, ...]
    pagination: Optional[PaginationPlan] = None
    action: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "entity": self.entity,
            "action": self.action,
            "projection": self.projection.to_dict(),
            "template": template_to_data(self.template),
            "pagination": self.pagination.model_dump() if self.pagination else None,
        }


class SelectionPlanner:
    """
    Request pipeline facade over normalizer, processor, pagination builder
    and extractor, sharing one configuration.
    """

    def __init__(self, registry: SchemaRegistry, config: Optional[SelectGraphConfig] = None):
        self.registry = registry
        self.config = config or get_config()
        self.formatter = self.config.formatter()
        self.normalizer = SelectionNormalizer(registry, self.formatter)
        self.processor = SelectionProcessor(registry, self.formatter)
        self.pagination = PaginationBuilder(self.config.default_page_limit)
        self.extractor = ResultExtractor(self.formatter.format_field)

    def plan(
        self,
        entity: str,
        select: Any = None,
        action: Optional[str] = None,
        page: Any = None,
    ) -> SelectionPlan:
        """
        Validate a selection and resolve pagination.

        Args:
            entity: Entity name
            select: Raw client selection (None selects every simple attribute)
            action: Optional action name deciding the root return type
            page: Optional pagination request; None means no pagination

        Raises:
            SelectGraphError: for an unknown entity or action, an invalid
                selection or an invalid pagination request
        """
        schema = self.registry.describe(entity)
        nodes = self._normalize(schema, select, action)
        result = self.processor.process(schema, nodes, action=action)
        pagination = self.pagination.resolve(page) if page is not None else None

        logger.debug(f"Planned {entity}{f'.{action}' if action else ''}: {result.projection}")
        return SelectionPlan(
            entity=schema.name,
            projection=result.projection,
            template=result.template,
            pagination=pagination,
            action=action,
        )

    def render(self, raw: Any, plan: SelectionPlan, format_keys: bool = True) -> Any:
        """
        Extract fetched data with the plan's template.

        Selected field names, union tags and page metadata keys are rendered
        in the output convention unless `format_keys` is False; keys inside
        opaque map and json values are returned as stored.
        """
        extractor = self.extractor if format_keys else ResultExtractor()
        return extractor.extract(raw, plan.template)

    def _normalize(
        self, schema: EntitySchema, select: Any, action: Optional[str]
    ) -> tuple[SelectionNode, ...]:
        """Toggle syntax applies when the root result is an entity; other results parse as-is."""
        if action is None:
            return self.normalizer.normalize(schema, select)

        action_def = schema.get_action(action)
        if action_def is None:
            raise ActionNotFoundError(action, schema.name)
        if action_def.type != "action":
            return self.normalizer.normalize(schema, select)

        returns = action_def.returns.element() if action_def.returns else None
        if returns is not None and returns.name in ("resource", "embedded") and returns.entity:
            return self.normalizer.normalize(returns.entity, select)
        return parse_selection(select, self.formatter)
