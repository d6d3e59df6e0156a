"""Create posts and post_tags tables

Revision ID: 001
Revises: None
Create Date: 2024-05-06 00:00:00.000000+00:00

What:  Creates the `posts` table and its `post_tags` child table.
How:   UUID primary key for posts, TIMESTAMP WITH TIME ZONE for timestamps,
       tags as ordered rows (post_id, position, tag).

Rollback: downgrade() drops both tables (destructive — all posts lost).
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create both tables with their indexes. See app/models/post.py for column docs."""
    op.create_table(
        "posts",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("author", sa.String(100), nullable=False),
        sa.Column(
            "is_published",
            sa.Boolean(),
            nullable=False,
            server_default=sa.true(),
        ),
        # Minutes at 200 words/minute; maintained by the application on every content change
        sa.Column(
            "read_time",
            sa.Integer(),
            nullable=False,
            server_default=sa.text("0"),
        ),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.Column(
            "updated_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_index("idx_posts_created_at", "posts", [sa.text("created_at DESC")])
    op.create_index("idx_posts_author", "posts", ["author"])
    op.create_index("idx_posts_is_published", "posts", ["is_published"])

    op.create_table(
        "post_tags",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("post_id", sa.Uuid(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("tag", sa.Text(), nullable=False),
        sa.ForeignKeyConstraint(["post_id"], ["posts.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_index("idx_post_tags_tag", "post_tags", ["tag"])
    op.create_index("idx_post_tags_post_id", "post_tags", ["post_id"])


def downgrade() -> None:
    """Drop both tables. Destructive: every post and tag is lost."""
    op.drop_index("idx_post_tags_post_id", table_name="post_tags")
    op.drop_index("idx_post_tags_tag", table_name="post_tags")
    op.drop_table("post_tags")

    op.drop_index("idx_posts_is_published", table_name="posts")
    op.drop_index("idx_posts_author", table_name="posts")
    op.drop_index("idx_posts_created_at", table_name="posts")
    op.drop_table("posts")
