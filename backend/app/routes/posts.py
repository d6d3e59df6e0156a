"""
Blogging API — Post Route Handlers
====================================

What:  Handles every /api/posts endpoint.
Why:   Students read published posts; teachers create, edit and delete them.
How:   Route-level validation (path/query/body) runs first; handlers then call
       the post repository and wrap the result in the success envelope.
       Missing and unpublished posts are turned into NotFoundError /
       ForbiddenError here; the global handlers in main.py render them.

Route Inventory:
    GET    /api/posts                 list published (?includeDrafts=true for all)
    GET    /api/posts/search?q=       keyword search over title, content, tags
    GET    /api/posts/stats           published/draft counts
    GET    /api/posts/tags?tags=a,b   published posts with any of the tags
    GET    /api/posts/author/{author} published posts by one author
    GET    /api/posts/{id}            one post (403 when unpublished)
    POST   /api/posts                 create (201)
    PUT    /api/posts/{id}            partial update
    DELETE /api/posts/{id}            delete

Static paths are declared before /{post_id} so "search" is never read as an id.
Mutating handlers commit before building their response, so a 2xx is only
sent once the write is durable.
"""

import logging
import uuid

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import get_db_session
from app.exceptions import ForbiddenError, NotFoundError, ValidationError
from app.schemas.post import (
    ApiResponse,
    PostCreate,
    PostPage,
    PostResponse,
    PostStats,
    PostUpdate,
    SearchResponse,
)
from app.services.post_repository import MIN_SEARCH_LENGTH, parse_post_id, post_repository
from app.services.post_rules import FIELD_MESSAGES

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/posts", tags=["Posts"])


# ══════════════════════════════════════════════════════════════════════════
# Parameter Dependencies
# ══════════════════════════════════════════════════════════════════════════


class Pagination:
    """`page` (1-based, default 1) and `limit` (default from settings) query params."""

    def __init__(
        self,
        page: int = Query(default=1, ge=1, description="Page number (1-based)"),
        limit: int = Query(
            default=settings.default_page_size,
            ge=1,
            le=settings.max_page_size,
            description="Posts per page",
        ),
    ):
        self.page = page
        self.limit = limit


def valid_post_id(post_id: str = Path(description="Post identifier (UUID)")) -> uuid.UUID:
    return parse_post_id(post_id)


def search_term(q: str = Query(default="", description="Search term (min. 2 characters)")) -> str:
    term = q.strip()
    if len(term) < MIN_SEARCH_LENGTH:
        raise ValidationError(message=FIELD_MESSAGES["q"], field="q")
    return term


# ══════════════════════════════════════════════════════════════════════════
# Listing & Search
# ══════════════════════════════════════════════════════════════════════════


@router.get(
    "",
    response_model=ApiResponse[PostPage],
    summary="List published posts",
)
async def list_posts(
    pagination: Pagination = Depends(),
    sort: str = Query(default="-createdAt", description="e.g. -createdAt, title, author,-readTime"),
    include_drafts: bool = Query(
        default=False,
        alias="includeDrafts",
        description="Also list unpublished posts (teachers' view)",
    ),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[PostPage]:
    page = await post_repository.list_published(
        db,
        page=pagination.page,
        limit=pagination.limit,
        sort=sort,
        include_drafts=include_drafts,
    )
    return ApiResponse[PostPage](message="Posts recuperados com sucesso", data=page)


@router.get(
    "/search",
    response_model=SearchResponse,
    summary="Search published posts",
)
async def search_posts(
    term: str = Depends(search_term),
    pagination: Pagination = Depends(),
    db: AsyncSession = Depends(get_db_session),
) -> SearchResponse:
    page = await post_repository.search(db, term, page=pagination.page, limit=pagination.limit)
    return SearchResponse(
        message="Busca realizada com sucesso",
        search_term=term,
        data=page,
    )


@router.get(
    "/stats",
    response_model=ApiResponse[PostStats],
    summary="Count published and draft posts",
)
async def post_stats(db: AsyncSession = Depends(get_db_session)) -> ApiResponse[PostStats]:
    published = await post_repository.count_published(db)
    drafts = await post_repository.count_drafts(db)
    return ApiResponse[PostStats](
        message="Estatísticas recuperadas com sucesso",
        data=PostStats(published=published, drafts=drafts, total=published + drafts),
    )


@router.get(
    "/tags",
    response_model=ApiResponse[PostPage],
    summary="List published posts having any of the given tags",
)
async def posts_by_tags(
    tags: str = Query(default="", description="Comma-separated tags"),
    pagination: Pagination = Depends(),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[PostPage]:
    page = await post_repository.find_by_tags(
        db, tags.split(","), page=pagination.page, limit=pagination.limit
    )
    return ApiResponse[PostPage](message="Posts recuperados com sucesso", data=page)


@router.get(
    "/author/{author}",
    response_model=ApiResponse[PostPage],
    summary="List published posts by author",
)
async def posts_by_author(
    author: str,
    pagination: Pagination = Depends(),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[PostPage]:
    page = await post_repository.find_by_author(
        db, author, page=pagination.page, limit=pagination.limit
    )
    return ApiResponse[PostPage](message="Posts recuperados com sucesso", data=page)


# ══════════════════════════════════════════════════════════════════════════
# Single Post CRUD
# ══════════════════════════════════════════════════════════════════════════


@router.get(
    "/{post_id}",
    response_model=ApiResponse[PostResponse],
    summary="Get a published post by id",
)
async def get_post(
    post_id: uuid.UUID = Depends(valid_post_id),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[PostResponse]:
    post = await post_repository.get_by_id(db, post_id)
    if post is None:
        raise NotFoundError(resource_id=str(post_id))
    if not post.is_published:
        raise ForbiddenError(context={"post_id": str(post_id)})
    return ApiResponse[PostResponse](
        message="Post recuperado com sucesso",
        data=PostResponse.model_validate(post),
    )


@router.post(
    "",
    status_code=201,
    response_model=ApiResponse[PostResponse],
    summary="Create a post",
)
async def create_post(
    payload: PostCreate,
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[PostResponse]:
    post = await post_repository.create(db, payload.to_fields())
    await post_repository.commit(db)
    return ApiResponse[PostResponse](
        message="Post criado com sucesso",
        data=PostResponse.model_validate(post),
    )


@router.put(
    "/{post_id}",
    response_model=ApiResponse[PostResponse],
    summary="Partially update a post",
)
async def update_post(
    payload: PostUpdate,
    post_id: uuid.UUID = Depends(valid_post_id),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[PostResponse]:
    post = await post_repository.update(db, post_id, payload.to_changes())
    if post is None:
        raise NotFoundError(resource_id=str(post_id))
    await post_repository.commit(db)
    return ApiResponse[PostResponse](
        message="Post atualizado com sucesso",
        data=PostResponse.model_validate(post),
    )


@router.delete(
    "/{post_id}",
    response_model=ApiResponse[PostResponse],
    response_model_exclude_none=True,
    summary="Delete a post",
)
async def delete_post(
    post_id: uuid.UUID = Depends(valid_post_id),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[PostResponse]:
    removed = await post_repository.delete(db, post_id)
    if not removed:
        raise NotFoundError(resource_id=str(post_id))
    await post_repository.commit(db)
    return ApiResponse[PostResponse](message="Post excluído com sucesso")
