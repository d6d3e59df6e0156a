"""
Blogging API — Seeder Tests
=============================

What:  Tests for the sample-data seeder.
How:   Seeds the in-memory database through `db_session` and checks what
       the repository sees afterwards.
"""

import pytest

from app.seed import SAMPLE_POSTS, seed_posts
from app.services.post_repository import post_repository


class TestSeedPosts:

    @pytest.mark.asyncio
    async def test_creates_sample_posts(self, db_session):
        created = await seed_posts(db_session)

        assert len(created) == len(SAMPLE_POSTS)
        drafts = sum(1 for fields in SAMPLE_POSTS if fields.get("isPublished") is False)
        assert await post_repository.count_drafts(db_session) == drafts
        assert await post_repository.count_published(db_session) == len(SAMPLE_POSTS) - drafts

    @pytest.mark.asyncio
    async def test_derived_fields_applied(self, db_session):
        created = await seed_posts(db_session)

        for post in created:
            assert post.read_time >= 1
            assert post.slug
            assert len(post.tags) == len(set(post.tags))

    @pytest.mark.asyncio
    async def test_reset_replaces_existing_posts(self, db_session):
        await seed_posts(db_session)
        await seed_posts(db_session, reset=True)

        total = (
            await post_repository.count_published(db_session)
            + await post_repository.count_drafts(db_session)
        )
        assert total == len(SAMPLE_POSTS)

    @pytest.mark.asyncio
    async def test_seeded_posts_searchable_by_tag(self, db_session):
        await seed_posts(db_session)

        page = await post_repository.search(db_session, "geometria")

        assert page.total_posts >= 1
