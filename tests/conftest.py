"""Shared test fixtures and configuration."""

import os
import uuid
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest

# Point at endpoints that never answer; tests mock every outbound call
os.environ.setdefault("OLLAMA_BASE_URL", "http://ollama.test")
os.environ.setdefault("OLLAMA_MODEL", "test-model")
os.environ.setdefault("REDIS_URL", "redis://localhost:1")

from safekids.search.errors import DatastoreError  # noqa: E402
from safekids.search.filters import PostQuery, SortOrder  # noqa: E402
from safekids.search.schemas import AuthorOut, ParsedQuery, PostOut  # noqa: E402
from safekids.search.service import SearchService  # noqa: E402
from safekids.services.cache import CacheService  # noqa: E402


class InMemoryPostRepository:
    """Post store double: a post matches when its text contains any search token."""

    def __init__(self, posts: list[PostOut]):
        self.posts = posts
        self.calls: list[tuple[PostQuery, int]] = []
        self.fail = False

    async def search(self, query: PostQuery, limit: int) -> list[PostOut]:
        self.calls.append((query, limit))
        if self.fail:
            raise DatastoreError("connection refused")

        tokens = {t.lower() for t in query.search_text.split()}
        matched = []
        for post in self.posts:
            words = set(post.text.lower().split())
            score = len(tokens & words)
            if score:
                matched.append(post.model_copy(update={"score": float(score)}))

        if query.sort == SortOrder.POPULAR:
            matched.sort(key=lambda p: p.likesCount, reverse=True)
        elif query.sort == SortOrder.RELEVANCE:
            matched.sort(key=lambda p: p.score, reverse=True)
        else:
            matched.sort(key=lambda p: p.createdAt, reverse=True)
        return matched[:limit]


@pytest.fixture
def sample_posts():
    """The three hazard reports from the end-to-end search scenario."""
    author = AuthorOut(id=uuid.uuid4(), username="searcher", profileImage="")
    base = datetime(2025, 3, 1, tzinfo=timezone.utc)
    texts = [
        ("Broken swing at playground near school", 3),
        ("Dark alley with no streetlights on Main road", 7),
        ("Stray dogs near the park entrance", 1),
    ]
    return [
        PostOut(
            id=uuid.uuid4(),
            text=text,
            image=f"img{i}.png",
            likesCount=likes,
            createdAt=base + timedelta(hours=i),
            author=author,
        )
        for i, (text, likes) in enumerate(texts)
    ]


@pytest.fixture
def repository(sample_posts):
    return InMemoryPostRepository(sample_posts)


@pytest.fixture
def model_client():
    """Model client returning a fixed ParsedQuery; override side_effect per test."""
    client = AsyncMock()
    client.parse_query = AsyncMock(
        return_value=ParsedQuery(keywords=["playground", "broken", "swing"], sortBy="recent"),
    )
    return client


@pytest.fixture
def cache():
    return CacheService(ttl=60, maxsize=64)


@pytest.fixture
def search_service(model_client, repository, cache):
    return SearchService(
        model_client=model_client,
        repository=repository,
        cache=cache,
        max_results=20,
        max_retries=1,
        retry_delay=0,
    )
