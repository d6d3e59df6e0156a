"""
Blogging API — Post SQLAlchemy Models
=======================================

What:  ORM models for the `posts` and `post_tags` tables.
Why:   Maps blog posts to rows for type-safe async database operations.
How:   Inherits from the shared DeclarativeBase; Alembic reads this for migrations.
Who:   Used by the post repository for CRUD and by Alembic for schema management.

Table Design Rationale:
    - UUID primary key: opaque, non-sequential identifiers
    - read_time stored: listing/sorting by reading time needs a real column;
      it is recomputed by the pre-persist step whenever content changes
    - slug and excerpt NOT stored: pure functions of title/content, computed on read
    - tags in a child table: substring search and "any of these tags" filters
      become plain SQL that runs the same on PostgreSQL and SQLite;
      `position` keeps the caller's tag order. Surrogate integer key so that
      replacing a post's tags (delete old rows, insert new) never collides.

Indexes:
    created_at DESC  → default listing order (newest first)
    author           → find-by-author listing
    is_published     → every public query filters on it
    post_tags.tag    → find-by-tags listing
"""

import uuid
from datetime import datetime, timezone
from typing import List

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base
from app.services.post_rules import excerpt, slugify


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PostTag(Base):
    """One tag of one post; `position` is the tag's index in the post's list."""

    __tablename__ = "post_tags"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    post_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("posts.id", ondelete="CASCADE"),
        nullable=False,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    tag: Mapped[str] = mapped_column(Text, nullable=False)

    __table_args__ = (
        Index("idx_post_tags_tag", "tag"),
        Index("idx_post_tags_post_id", "post_id"),
    )

    def __repr__(self) -> str:
        return f"<PostTag(post_id={self.post_id}, position={self.position}, tag='{self.tag}')>"


class Post(Base):
    """
    A blog post.

    Lifecycle:
        1. Created by a teacher (is_published defaults to True)
        2. Partially updated any number of times (updated_at refreshed)
        3. Deleted irreversibly (tags removed with it)
    """

    __tablename__ = "posts"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    author: Mapped[str] = mapped_column(String(100), nullable=False)
    is_published: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    read_time: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )

    # selectin: tags arrive with every SELECT, so nothing lazy-loads later
    # (lazy loading is not allowed on AsyncSession)
    tag_rows: Mapped[List[PostTag]] = relationship(
        order_by=PostTag.position,
        cascade="all, delete-orphan",
        lazy="selectin",
        passive_deletes=True,
    )

    __table_args__ = (
        Index("idx_posts_created_at", created_at.desc()),
        Index("idx_posts_author", "author"),
        Index("idx_posts_is_published", "is_published"),
    )

    @property
    def tags(self) -> List[str]:
        return [row.tag for row in self.tag_rows]

    @tags.setter
    def tags(self, values: List[str]) -> None:
        self.tag_rows = [PostTag(position=i, tag=value) for i, value in enumerate(values)]

    @property
    def slug(self) -> str:
        return slugify(self.title)

    @property
    def excerpt(self) -> str:
        return excerpt(self.content)

    def __repr__(self) -> str:
        return (
            f"<Post(id={self.id}, title='{self.title}', "
            f"published={self.is_published})>"
        )
