"""
Blog API - minimal selectgraph example.

Serves an in-memory article list with client field selection:

    POST /articles {"select": ["title", {"author": ["firstName"]}], "page": {"limit": 10}}

Usage:
    uvicorn example.blog.main:app
"""

from fastapi import FastAPI
from pydantic import BaseModel
from typing import Any

from selectgraph import (
    InvalidPaginationError,
    KeysetPage,
    OffsetPage,
    SchemaRegistry,
    SelectionPlanner,
    create_schema_router,
    register_error_handlers,
)

registry = SchemaRegistry.from_graph({
    "entities": {
        "Person": {
            "attributes": {"id": "int", "first_name": "string"},
        },
        "Article": {
            "attributes": {"id": "int", "title": "string", "body": "string"},
            "relationships": {"author": "Person"},
            "actions": {"list": "read"},
        },
    }
})
registry.validate()

planner = SelectionPlanner(registry)

ARTICLES = [
    {"id": 1, "title": "Hello", "body": "...", "author": {"id": 1, "first_name": "Ada"}},
    {"id": 2, "title": "Again", "body": "...", "author": {"id": 2, "first_name": "Alan"}},
]


class ArticleQuery(BaseModel):
    select: Any = None
    page: Any = None


app = FastAPI()
register_error_handlers(app)
app.include_router(create_schema_router(registry, planner))


def fetch_offset(pagination) -> OffsetPage:
    rows = ARTICLES[pagination.offset:pagination.offset + pagination.limit]
    return OffsetPage(
        results=rows,
        limit=pagination.limit,
        offset=pagination.offset,
        has_more=pagination.offset + pagination.limit < len(ARTICLES),
        count=len(ARTICLES) if pagination.count else None,
    )


def article_id(cursor: str) -> int:
    # Cursors are article ids
    if not cursor.isdigit():
        raise InvalidPaginationError(f"Unknown cursor {cursor!r}")
    return int(cursor)


def fetch_keyset(pagination) -> KeysetPage:
    rows = ARTICLES
    if pagination.after is not None:
        rows = [row for row in rows if row["id"] > article_id(pagination.after)]
    if pagination.before is not None:
        rows = [row for row in rows if row["id"] < article_id(pagination.before)]
    return KeysetPage(
        results=rows[:pagination.limit],
        limit=pagination.limit,
        has_more=len(rows) > pagination.limit,
    )


@app.post("/articles")
async def list_articles(query: ArticleQuery) -> dict:
    plan = planner.plan("Article", query.select, action="list", page=query.page or {"offset": 0})
    if plan.pagination.type == "offset":
        page = fetch_offset(plan.pagination)
    else:
        page = fetch_keyset(plan.pagination)
    return planner.render(page, plan)
