"""
Blogging API — Sample Data Seeder
===================================

What:  Inserts a handful of educational sample posts.
Why:   Gives a fresh development database something to list and search.
How:   Goes through the post repository, so every validation rule and
       derived field applies exactly as for API-created posts.

Usage:
    python -m app.seed            # add sample posts
    python -m app.seed --reset    # delete every post first
"""

import argparse
import asyncio
import logging
from typing import Any, Dict, List

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import Database
from app.models.post import Post, PostTag
from app.services.post_repository import post_repository

logger = logging.getLogger(__name__)

SAMPLE_POSTS: List[Dict[str, Any]] = [
    {
        "title": "Introdução à Programação com Python",
        "content": (
            "A programação é uma habilidade fundamental no mundo digital de hoje. "
            "Neste post vamos explorar variáveis, estruturas de controle, funções "
            "e coleções, os conceitos básicos de qualquer linguagem."
        ),
        "author": "Prof. Ana Silva",
        "tags": ["programação", "python", "educação", "tecnologia"],
    },
    {
        "title": "Matemática Divertida: Geometria no Cotidiano",
        "content": (
            "A geometria está presente em tudo ao nosso redor: nas construções, "
            "na natureza e nos objetos que usamos diariamente. Vamos reconhecer "
            "formas, medir áreas e calcular perímetros com exemplos do dia a dia."
        ),
        "author": "Prof. Carlos Mendes",
        "tags": ["matemática", "geometria", "educação", "cotidiano"],
    },
    {
        "title": "Ciências: O Ciclo da Água",
        "content": (
            "O ciclo da água descreve o movimento contínuo da água na Terra: "
            "evaporação, condensação, precipitação e infiltração. Entender esse "
            "processo ajuda a cuidar melhor do meio ambiente."
        ),
        "author": "Prof. Maria Santos",
        "tags": ["ciências", "água", "meio ambiente", "educação"],
    },
    {
        "title": "História: A Revolução Industrial",
        "content": (
            "A Revolução Industrial transformou a forma de produzir, trabalhar e "
            "viver. Começou na Inglaterra no século XVIII e levou a máquina a vapor, "
            "as fábricas e as cidades modernas a todo o mundo."
        ),
        "author": "Prof. Roberto Lima",
        "tags": ["história", "revolução industrial", "educação", "tecnologia"],
    },
    {
        "title": "Literatura: O Poder da Narrativa",
        "content": (
            "Rascunho: como as histórias moldam a forma como entendemos o mundo, "
            "de mitos antigos aos romances contemporâneos."
        ),
        "author": "Prof. Fernanda Costa",
        "tags": ["literatura", "narrativa", "educação", "arte"],
        "isPublished": False,
    },
]


async def seed_posts(db: AsyncSession, reset: bool = False) -> List[Post]:
    """Creates SAMPLE_POSTS (optionally wiping existing posts) and returns them."""
    if reset:
        await db.execute(delete(PostTag))
        await db.execute(delete(Post))
        logger.info("Existing posts removed")

    created = [await post_repository.create(db, dict(fields)) for fields in SAMPLE_POSTS]
    published = await post_repository.count_published(db)
    drafts = await post_repository.count_drafts(db)
    logger.info("Seeded %d posts (published=%d, drafts=%d)", len(created), published, drafts)
    return created


async def main(reset: bool) -> None:
    database = Database.from_settings(settings)
    try:
        await database.create_all()
        async with database.session() as session:
            async with session.begin():
                await seed_posts(session, reset=reset)
    finally:
        await database.dispose()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed the blogging database with sample posts")
    parser.add_argument("--reset", action="store_true", help="delete all posts before seeding")
    args = parser.parse_args()

    logging.basicConfig(level=settings.log_level, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    asyncio.run(main(reset=args.reset))
