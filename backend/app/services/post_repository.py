"""
Blogging API — Post Repository (Query Layer)
==============================================

What:  Translates application query intents (list published, search, filter
       by author/tags, paginate, CRUD) into SQLAlchemy queries.
Why:   Keeps every query in one place, independent of HTTP concerns.
How:   Stateless class; every method receives the request's AsyncSession.
       Mutations go through the explicit pre-persist step in post_rules.
Who:   Called by the /api/posts route handlers and by the seed script.

Error Handling Strategy:
    - Domain outcomes are return values: None (no such post), False (nothing deleted)
    - Bad input raises ValidationError / InvalidIdentifierError
    - SQLAlchemy errors are logged and wrapped in DatabaseError (generic 500)

Search Semantics:
    published AND (title ILIKE %term% OR content ILIKE %term% OR any tag ILIKE %term%)
    The term is matched literally: % and _ are escaped.
"""

import logging
import math
import uuid
from typing import Any, Dict, List, Optional, Sequence, Union

from sqlalchemy import and_, asc, desc, func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.elements import ColumnElement

from app.exceptions import DatabaseError, InvalidIdentifierError, ValidationError
from app.models.post import Post, PostTag
from app.schemas.post import PostPage, PostResponse
from app.services.post_rules import FIELD_MESSAGES, apply_update, normalize_tags, prepare_for_create

logger = logging.getLogger(__name__)

DEFAULT_SORT = "-createdAt"
MIN_SEARCH_LENGTH = 2

# API sort keys → columns
SORTABLE_FIELDS = {
    "createdAt": Post.created_at,
    "updatedAt": Post.updated_at,
    "title": Post.title,
    "author": Post.author,
    "readTime": Post.read_time,
}


def parse_post_id(value: Union[str, uuid.UUID]) -> uuid.UUID:
    """Parses a post id, raising InvalidIdentifierError when malformed."""
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (ValueError, TypeError, AttributeError):
        raise InvalidIdentifierError(value)


def parse_sort(sort: Optional[str]) -> List[Any]:
    """
    Parses a sort spec such as "-createdAt" or "author,-readTime".

    A leading "-" means descending. Unknown fields raise ValidationError.
    The id is appended as a final tie-breaker so pages never overlap.
    """
    clauses: List[Any] = []
    for raw in (sort or DEFAULT_SORT).split(","):
        key = raw.strip()
        if not key:
            continue
        descending = key.startswith("-")
        name = key.lstrip("-+")
        column = SORTABLE_FIELDS.get(name)
        if column is None:
            raise ValidationError(
                message="Dados inválidos",
                errors=[{
                    "field": "sort",
                    "message": f"Campo de ordenação inválido: {name}. "
                               f"Use um de: {', '.join(SORTABLE_FIELDS)}",
                }],
            )
        clauses.append(desc(column) if descending else asc(column))
    if not clauses:
        clauses.append(desc(Post.created_at))
    clauses.append(asc(Post.id))
    return clauses


class PostRepository:
    """
    Query layer for blog posts.

    Responsibilities:
        - list_published(), search(), find_by_author(), find_by_tags(): paginated reads
        - get_by_id(): single post lookup
        - create(), update(), delete(): mutations
        - count_published(), count_drafts(): aggregates
    """

    # ── Pagination ────────────────────────────────────────────────────────

    async def _paginate(
        self,
        db: AsyncSession,
        condition: ColumnElement[bool],
        page: int,
        limit: int,
        order_by: Sequence[Any],
    ) -> PostPage:
        """
        Runs one page query plus one COUNT query for the same condition.

        Offset pagination: the API exposes numbered pages and total counts.
        """
        if page < 1:
            raise ValidationError(field="page", message="Página deve ser maior ou igual a 1")
        if limit < 1:
            raise ValidationError(field="limit", message="Limite deve ser maior ou igual a 1")

        try:
            count_result = await db.execute(
                select(func.count()).select_from(Post).where(condition)
            )
            total = count_result.scalar() or 0

            result = await db.execute(
                select(Post)
                .where(condition)
                .order_by(*order_by)
                .offset((page - 1) * limit)
                .limit(limit)
            )
            posts = list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Database error listing posts: %s", str(e), exc_info=True)
            raise DatabaseError(context={"error_type": type(e).__name__, "detail": str(e)})

        total_pages = max(1, math.ceil(total / limit))
        has_next = page < total_pages
        has_prev = page > 1
        return PostPage(
            posts=[PostResponse.model_validate(post) for post in posts],
            total_posts=total,
            limit=limit,
            page=page,
            total_pages=total_pages,
            has_next_page=has_next,
            has_prev_page=has_prev,
            next_page=page + 1 if has_next else None,
            prev_page=page - 1 if has_prev else None,
        )

    # ── Reads ─────────────────────────────────────────────────────────────

    async def list_published(
        self,
        db: AsyncSession,
        page: int = 1,
        limit: int = 10,
        sort: Optional[str] = DEFAULT_SORT,
        include_drafts: bool = False,
    ) -> PostPage:
        """
        Page of published posts, ordered by `sort` (newest first by default).

        `include_drafts=True` is the explicit opt-in for the teachers' view
        that also lists unpublished posts.
        """
        condition = Post.id.is_not(None) if include_drafts else Post.is_published.is_(True)
        return await self._paginate(db, condition, page, limit, parse_sort(sort))

    async def search(
        self,
        db: AsyncSession,
        term: str,
        page: int = 1,
        limit: int = 10,
    ) -> PostPage:
        """
        Case-insensitive substring search over title, content and tags.

        Drafts never match, whoever is asking.

        Raises:
            ValidationError: term shorter than 2 characters after trimming
        """
        term = (term or "").strip()
        if len(term) < MIN_SEARCH_LENGTH:
            raise ValidationError(message=FIELD_MESSAGES["q"], field="q")

        tag_match = select(PostTag.post_id).where(
            PostTag.tag.icontains(term, autoescape=True)
        )
        condition = and_(
            Post.is_published.is_(True),
            or_(
                Post.title.icontains(term, autoescape=True),
                Post.content.icontains(term, autoescape=True),
                Post.id.in_(tag_match),
            ),
        )
        return await self._paginate(db, condition, page, limit, parse_sort(DEFAULT_SORT))

    async def find_by_author(
        self,
        db: AsyncSession,
        author: str,
        page: int = 1,
        limit: int = 10,
    ) -> PostPage:
        """Published posts whose author matches exactly (after trimming)."""
        condition = and_(
            Post.is_published.is_(True),
            Post.author == author.strip(),
        )
        return await self._paginate(db, condition, page, limit, parse_sort(DEFAULT_SORT))

    async def find_by_tags(
        self,
        db: AsyncSession,
        tags: List[str],
        page: int = 1,
        limit: int = 10,
    ) -> PostPage:
        """Published posts carrying at least one of `tags` (normalised like stored tags)."""
        wanted = normalize_tags(tags)
        if not wanted:
            raise ValidationError(field="tags", message="Informe pelo menos uma tag")

        tag_match = select(PostTag.post_id).where(PostTag.tag.in_(wanted))
        condition = and_(
            Post.is_published.is_(True),
            Post.id.in_(tag_match),
        )
        return await self._paginate(db, condition, page, limit, parse_sort(DEFAULT_SORT))

    async def get_by_id(
        self, db: AsyncSession, post_id: Union[str, uuid.UUID]
    ) -> Optional[Post]:
        """
        Single post by id, published or not; None when absent.

        Raises:
            InvalidIdentifierError: malformed id
        """
        pid = parse_post_id(post_id)
        try:
            result = await db.execute(select(Post).where(Post.id == pid))
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error fetching post %s: %s", pid, str(e))
            raise DatabaseError(context={"post_id": str(pid), "detail": str(e)})

    async def count_published(self, db: AsyncSession) -> int:
        return await self._count(db, Post.is_published.is_(True))

    async def count_drafts(self, db: AsyncSession) -> int:
        return await self._count(db, Post.is_published.is_(False))

    async def _count(self, db: AsyncSession, condition: ColumnElement[bool]) -> int:
        try:
            result = await db.execute(select(func.count()).select_from(Post).where(condition))
            return result.scalar() or 0
        except SQLAlchemyError as e:
            logger.error("Database error counting posts: %s", str(e))
            raise DatabaseError(context={"detail": str(e)})

    # ── Mutations ─────────────────────────────────────────────────────────

    async def create(self, db: AsyncSession, fields: Dict[str, Any]) -> Post:
        """
        Validates and persists a new post.

        Returns the stored post with its generated id and derived fields.

        Raises:
            ValidationError: any field out of bounds
        """
        post = Post(**prepare_for_create(fields))
        try:
            db.add(post)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error creating post: %s", str(e), exc_info=True)
            raise DatabaseError(context={"detail": str(e)})
        logger.info("Post created: %s (published=%s)", post.id, post.is_published)
        return post

    async def update(
        self,
        db: AsyncSession,
        post_id: Union[str, uuid.UUID],
        changes: Dict[str, Any],
    ) -> Optional[Post]:
        """
        Applies a partial update; None when the post does not exist.

        Read-modify-write without locking: concurrent updates to the same
        post are last-write-wins.
        """
        post = await self.get_by_id(db, post_id)
        if post is None:
            return None

        apply_update(post, changes)
        try:
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error updating post %s: %s", post.id, str(e), exc_info=True)
            raise DatabaseError(context={"post_id": str(post.id), "detail": str(e)})
        logger.info("Post updated: %s (fields=%s)", post.id, sorted(changes))
        return post

    async def delete(self, db: AsyncSession, post_id: Union[str, uuid.UUID]) -> bool:
        """Removes a post and its tags; False when there was nothing to remove."""
        post = await self.get_by_id(db, post_id)
        if post is None:
            return False
        try:
            await db.delete(post)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error deleting post %s: %s", post.id, str(e), exc_info=True)
            raise DatabaseError(context={"post_id": str(post.id), "detail": str(e)})
        logger.info("Post deleted: %s", post.id)
        return True

    async def commit(self, db: AsyncSession) -> None:
        """
        Commits the request's writes.

        Mutating handlers call this before building their response, so a
        success status is only sent for a durable write. The commit in
        get_db_session then has nothing left to do.
        """
        try:
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Database error committing transaction: %s", str(e), exc_info=True)
            raise DatabaseError(context={"detail": str(e)})


# ── Singleton Instance ────────────────────────────────────────────────────
post_repository = PostRepository()
