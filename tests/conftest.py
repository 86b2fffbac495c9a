"""
Shared fixtures: a small blog schema covering every field kind.
"""

import pytest

from selectgraph.config import SelectGraphConfig, set_config
from selectgraph.core.processor import SelectionProcessor
from selectgraph.core.registry import SchemaRegistry
from selectgraph.core.selection import SelectionNormalizer
from selectgraph.core.utils import FieldFormatter
from selectgraph.runtime.planner import SelectionPlanner


BLOG_GRAPH = {
    "entities": {
        "Person": {
            "attributes": {
                "id": "uuid",
                "name": "string",
                "first_name": "string",
                "password_hash": {"type": "string", "public": False},
            },
            "relationships": {
                "articles": {"destination": "Article", "cardinality": "many"},
            },
            "actions": {
                "get": {"type": "read", "get": True},
            },
        },
        "Address": {
            "embedded": True,
            "attributes": {
                "street": "string",
                "city": "string",
            },
            "calculations": {
                "full_address": "string",
            },
        },
        "Comment": {
            "attributes": {
                "id": "uuid",
                "body": "string",
            },
            "relationships": {
                "author": "Person",
            },
        },
        "Article": {
            "attributes": {
                "id": "uuid",
                "title": "string",
                "body": "string",
                "published_at": "datetime",
                "rating": "decimal",
                "tags": "string[]",
                "settings": "map",
                "address": {"type": "embedded", "entity": "Address"},
                "previous_addresses": {
                    "type": "array",
                    "items": {"type": "embedded", "entity": "Address"},
                },
                "payload": {
                    "type": "union",
                    "types": {
                        "text": "string",
                        "image": {
                            "type": "struct",
                            "fields": {"url": "string", "width": "int"},
                        },
                        "mention": {"type": "resource", "entity": "Person"},
                        "link_meta": "map",
                    },
                },
                "location": {
                    "type": "tuple",
                    "fields": [["lat", "float"], ["lng", "float"]],
                },
                "metadata": {
                    "type": "struct",
                    "fields": {"source": "string", "word_count": "int"},
                },
            },
            "calculations": {
                "title_upper": "string",
                "summary": {"returns": "string", "arguments": {"length": "int"}},
                "related": {
                    "returns": {"type": "array", "items": {"type": "resource", "entity": "Article"}},
                    "arguments": {"limit": "int"},
                },
                "author_card": {
                    "returns": {"type": "struct", "fields": {"name": "string", "initials": "string"}},
                },
            },
            "aggregates": {
                "comment_count": {"kind": "count", "relationship": "comments"},
                "latest_comment": {"kind": "first", "relationship": "comments"},
                "comment_bodies": {
                    "kind": "list",
                    "relationship": "comments",
                    "field": "body",
                    "returns": "string[]",
                },
            },
            "relationships": {
                "author": {"destination": "Person"},
                "comments": {"destination": "Comment", "cardinality": "many"},
            },
            "actions": {
                "list": "read",
                "get": {"type": "read", "get": True},
                "create": "create",
                "publish": {"type": "action", "returns": "string"},
                "search": {
                    "type": "action",
                    "returns": {"type": "array", "items": {"type": "resource", "entity": "Article"}},
                },
                "stats": {"type": "action"},
            },
        },
    }
}

ARTICLE_BASELINE = ["id", "title", "body", "published_at", "rating", "tags", "settings"]


@pytest.fixture(autouse=True)
def reset_config():
    """Keep the process-wide configuration isolated between tests."""
    set_config(None)
    yield
    set_config(None)


@pytest.fixture
def registry():
    return SchemaRegistry.from_graph(BLOG_GRAPH)


@pytest.fixture
def formatter():
    return FieldFormatter("camel_case", "camel_case")


@pytest.fixture
def normalizer(registry, formatter):
    return SelectionNormalizer(registry, formatter)


@pytest.fixture
def processor(registry, formatter):
    return SelectionProcessor(registry, formatter)


@pytest.fixture
def process(normalizer, processor):
    """Normalize and process a raw selection on an entity."""
    def _process(entity, raw, action=None):
        return processor.process(entity, normalizer.normalize(entity, raw), action=action)
    return _process


@pytest.fixture
def planner(registry):
    return SelectionPlanner(registry, SelectGraphConfig())
