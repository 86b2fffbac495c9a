"""
Tests for the request pipeline facade.
"""

import pytest

from selectgraph.config import SelectGraphConfig, set_config
from selectgraph.core.errors import ActionNotFoundError, EntityNotFoundError, UnknownFieldError
from selectgraph.core.query_types import KeysetPagination, OffsetPagination
from selectgraph.runtime.planner import SelectionPlanner
from selectgraph.runtime.values import OffsetPage, UnionValue


class TestPlan:
    """Tests for SelectionPlanner.plan."""

    def test_camel_case_selection(self, planner):
        plan = planner.plan("Person", ["firstName", "+name"])
        assert plan.projection.select == ("first_name", "name")
        assert plan.pagination is None

    def test_default_selection(self, planner):
        plan = planner.plan("Person")
        assert plan.projection.select == ("id", "name", "first_name")

    def test_pagination_resolved(self, planner):
        plan = planner.plan("Article", ["title"], action="list", page={"offset": 10, "limit": 5})
        assert plan.pagination == OffsetPagination(limit=5, offset=10)

    def test_configured_page_limit(self, registry):
        planner = SelectionPlanner(registry, SelectGraphConfig(default_page_limit=50))
        assert planner.plan("Article", ["title"], page={}).pagination == KeysetPagination(limit=50)

    def test_uses_process_default_config(self, registry):
        set_config(SelectGraphConfig(input_field_formatter="snake_case"))
        planner = SelectionPlanner(registry)
        with pytest.raises(UnknownFieldError):
            planner.plan("Person", ["firstName"])

    def test_entity_result_action_uses_toggles(self, planner):
        plan = planner.plan("Article", ["-body"], action="search")
        assert "body" not in plan.projection.select
        assert "title" in plan.projection.select

    def test_primitive_result_action(self, planner):
        plan = planner.plan("Article", None, action="publish")
        assert plan.projection.select == ()
        assert plan.template == ()

    def test_unknown_action(self, planner):
        with pytest.raises(ActionNotFoundError):
            planner.plan("Article", ["title"], action="archive")

    def test_unknown_entity(self, planner):
        with pytest.raises(EntityNotFoundError):
            planner.plan("Nope", ["title"])

    def test_to_dict(self, planner):
        plan = planner.plan("Article", ["title", {"payload": ["text"]}], page={"after": "c1"})
        assert plan.to_dict() == {
            "entity": "Article",
            "action": None,
            "projection": {"select": ["title", "payload"], "load": []},
            "template": ["title", {"payload": ["text"]}],
            "pagination": {
                "type": "keyset", "limit": 20, "after": "c1", "before": None, "count": False,
            },
        }


class TestRender:
    """Tests for SelectionPlanner.render."""

    def test_output_keys_are_formatted(self, planner):
        plan = planner.plan("Person", ["firstName"])
        assert planner.render({"id": "1", "first_name": "Ada"}, plan) == {"firstName": "Ada"}

    def test_raw_keys(self, planner):
        plan = planner.plan("Person", ["firstName"])
        data = planner.render({"first_name": "Ada"}, plan, format_keys=False)
        assert data == {"first_name": "Ada"}

    def test_page_metadata_is_formatted(self, planner):
        plan = planner.plan("Person", ["name"], page={"offset": 0})
        page = OffsetPage(results=[{"name": "A"}], limit=20, offset=0, has_more=True)
        data = planner.render(page, plan)
        assert data["hasMore"] is True
        assert data["results"] == [{"name": "A"}]

    def test_union_render(self, planner):
        plan = planner.plan("Article", [{"payload": [{"image": ["url"]}]}])
        raw = {"payload": UnionValue("image", {"url": "http://x", "width": 1})}
        assert planner.render(raw, plan) == {"payload": {"image": {"url": "http://x"}}}

    def test_opaque_map_keys_are_kept(self, planner):
        plan = planner.plan("Article", ["publishedAt", "settings"])
        raw = {"published_at": None, "settings": {"dark_mode": True, "font_size": 12}}
        assert planner.render(raw, plan) == {
            "publishedAt": None,
            "settings": {"dark_mode": True, "font_size": 12},
        }

    def test_union_tag_is_formatted_and_payload_kept(self, planner):
        plan = planner.plan("Article", [{"payload": ["linkMeta"]}])
        raw = {"payload": UnionValue("link_meta", {"page_title": "Docs"})}
        assert planner.render(raw, plan) == {"payload": {"linkMeta": {"page_title": "Docs"}}}
