"""Post store — PostgreSQL full-text search over hazard reports."""

import logging
import time

from sqlalchemy import Select, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from safekids.config import settings
from safekids.models import Post, User
from safekids.search.errors import DatastoreError
from safekids.search.filters import PostQuery, SortOrder, to_search_expression
from safekids.search.schemas import AuthorOut, PostOut

logger = logging.getLogger(__name__)


def build_search_statement(
    query: PostQuery,
    limit: int,
    config_name: str | None = None,
) -> Select:
    """SELECT posts matching any search term, with their ts_rank score."""
    config_name = config_name or settings.text_search_config
    ts_query = func.websearch_to_tsquery(config_name, to_search_expression(query.search_text))
    score = func.ts_rank(Post.search_vector, ts_query).label("score")

    if query.sort == SortOrder.POPULAR:
        order = Post.likes_count.desc()
    elif query.sort == SortOrder.RELEVANCE:
        order = score.desc()
    else:
        order = Post.created_at.desc()

    return (
        select(Post, score)
        .where(Post.search_vector.op("@@")(ts_query))
        .options(selectinload(Post.author).load_only(User.username, User.profile_image))
        .order_by(order)
        .limit(limit)
    )


def to_post_out(post: Post, score: float | None = None) -> PostOut:
    author = post.author
    return PostOut(
        id=post.id,
        text=post.text,
        image=post.image,
        likesCount=post.likes_count or 0,
        createdAt=post.created_at,
        author=AuthorOut(
            id=author.id,
            username=author.username,
            profileImage=author.profile_image or "",
        ) if author is not None else None,
        score=float(score) if score is not None else None,
    )


class PostRepository:
    """Read-only search access to posts."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def search(self, query: PostQuery, limit: int) -> list[PostOut]:
        stmt = build_search_statement(query, limit)
        start = time.monotonic()
        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                rows = result.all()
        except (SQLAlchemyError, OSError) as e:
            elapsed_ms = int((time.monotonic() - start) * 1000)
            logger.error("Post search failed | sort=%s | %dms | %s", query.sort.value, elapsed_ms, str(e)[:200])
            raise DatastoreError(f"Post search failed: {e}") from e

        elapsed_ms = int((time.monotonic() - start) * 1000)
        logger.info(
            "Post search OK | sort=%s | results=%d | %dms",
            query.sort.value, len(rows), elapsed_ms,
        )
        return [to_post_out(post, score) for post, score in rows]
