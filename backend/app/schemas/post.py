"""
Blogging API — Pydantic Request/Response Schemas
==================================================

What:  Pydantic models defining the API contract (camelCase JSON).
Why:   Route-level input validation happens here, before any handler runs;
       responses are serialized from ORM objects without leaking internals.
How:   FastAPI validates request bodies against PostCreate/PostUpdate and
       serializes handler results through the envelope models below.

Envelope:
    Every response is `{success, message, data?, errors?}`. Error envelopes
    are produced by the exception handlers in main.py; success envelopes by
    the models here.
"""

import uuid
from datetime import datetime
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, StrictBool
from pydantic.alias_generators import to_camel

from app.services.post_rules import AUTHOR_MAX, AUTHOR_MIN, CONTENT_MIN, TITLE_MAX, TITLE_MIN

T = TypeVar("T")


class CamelModel(BaseModel):
    """Base for API models: snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ══════════════════════════════════════════════════════════════════════════
# Request Models — What the client sends
# ══════════════════════════════════════════════════════════════════════════


class PostCreate(CamelModel):
    """
    Body of POST /api/posts.

    Strings are trimmed before the length checks. `tags` must be an array of
    strings when present; `isPublished` must be a JSON boolean.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(min_length=TITLE_MIN, max_length=TITLE_MAX)
    content: str = Field(min_length=CONTENT_MIN)
    author: str = Field(min_length=AUTHOR_MIN, max_length=AUTHOR_MAX)
    tags: Optional[List[str]] = None
    is_published: Optional[StrictBool] = None

    def to_fields(self) -> dict:
        """Supplied fields keyed by API name, for the entity rules."""
        return self.model_dump(by_alias=True, exclude_none=True)


class PostUpdate(CamelModel):
    """Body of PUT /api/posts/{id}: every field optional, absent ones untouched."""

    model_config = ConfigDict(str_strip_whitespace=True)

    title: Optional[str] = Field(default=None, min_length=TITLE_MIN, max_length=TITLE_MAX)
    content: Optional[str] = Field(default=None, min_length=CONTENT_MIN)
    author: Optional[str] = Field(default=None, min_length=AUTHOR_MIN, max_length=AUTHOR_MAX)
    tags: Optional[List[str]] = None
    is_published: Optional[StrictBool] = None

    def to_changes(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


# ══════════════════════════════════════════════════════════════════════════
# Response Models — What the API returns
# ══════════════════════════════════════════════════════════════════════════


class PostResponse(CamelModel):
    """Full representation of a post, including derived fields."""

    id: uuid.UUID
    title: str
    content: str
    author: str
    tags: List[str] = Field(default_factory=list)
    is_published: bool
    read_time: int
    slug: str
    excerpt: str
    created_at: datetime
    updated_at: datetime


class PostPage(CamelModel):
    """
    One page of posts plus pagination metadata.

    `page` is 1-based; `total_pages` is at least 1 even for an empty result
    so that page 1 is always a valid page.
    """

    posts: List[PostResponse]
    total_posts: int
    limit: int
    page: int
    total_pages: int
    has_next_page: bool
    has_prev_page: bool
    next_page: Optional[int] = None
    prev_page: Optional[int] = None


class PostStats(CamelModel):
    published: int
    drafts: int
    total: int


class ApiResponse(CamelModel, Generic[T]):
    """Success envelope: `{success: true, message, data}`."""

    success: bool = True
    message: str
    data: Optional[T] = None


class SearchResponse(ApiResponse[PostPage]):
    """Search envelope; echoes the term that was searched."""

    search_term: str


class HealthResponse(CamelModel):
    """Health check response showing service and database status."""

    status: str = Field(description="OK when the database answers, otherwise DEGRADED")
    message: str
    version: str
    database: str = Field(description="connected or disconnected")
    timestamp: datetime
    uptime_seconds: float
