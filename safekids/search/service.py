"""Search orchestrator — AI-assisted post search with graceful degradation.

Responsibilities:
  - Normalize the raw query into a cache / dedup key
  - Return cached results without touching the model
  - Collapse concurrent identical queries into one upstream computation
  - Call the model (one retry), compile the filter, query the post store
  - Fall back to plain full-text search when any AI-path step fails
"""

import asyncio
import logging
from typing import Protocol

from safekids.config import settings
from safekids.search.errors import (
    DatastoreError,
    ModelError,
    SearchUnavailableError,
)
from safekids.search.filters import PostQuery, compile_query, fallback_query
from safekids.search.schemas import ParsedQuery, PostOut, SearchResult
from safekids.services.cache import CacheService

logger = logging.getLogger(__name__)


class QueryParser(Protocol):
    async def parse_query(self, query: str) -> ParsedQuery: ...


class PostStore(Protocol):
    async def search(self, query: PostQuery, limit: int) -> list[PostOut]: ...


def normalize_query(query: str) -> str:
    """Lowercase, trim, and collapse inner whitespace to single spaces."""
    return " ".join(query.lower().split())


class SearchService:
    """Owns the result cache and the in-flight registry.

    Built once per process and handed to request handlers. The in-flight
    check-and-register runs without an intervening await, which is what makes
    a plain dict safe on a single event loop.
    """

    def __init__(
        self,
        model_client: QueryParser,
        repository: PostStore,
        cache: CacheService,
        max_results: int | None = None,
        max_retries: int | None = None,
        retry_delay: float | None = None,
    ):
        self._model_client = model_client
        self._repository = repository
        self._cache = cache
        self.max_results = max_results or settings.search_max_results
        self.max_retries = settings.llm_max_retries if max_retries is None else max_retries
        self.retry_delay = settings.ai_retry_delay_seconds if retry_delay is None else retry_delay
        self._inflight: dict[str, asyncio.Task] = {}

    @property
    def inflight_count(self) -> int:
        return len(self._inflight)

    async def search(self, query: str) -> SearchResult:
        """AI-assisted search. Only raises SearchUnavailableError."""
        key = normalize_query(query)
        cache_key = self._cache.make_key(key)

        cached = await self._cache.get(cache_key)
        if cached is not None:
            return SearchResult.model_validate(cached)

        inflight = self._inflight.get(key)
        if inflight is not None:
            logger.info("Search joined in-flight computation | key=%s", cache_key)
            return await asyncio.shield(inflight)

        task = asyncio.ensure_future(self._compute(query, cache_key))
        self._inflight[key] = task
        task.add_done_callback(lambda t: self._release(key, t))
        return await asyncio.shield(task)

    async def fallback_search(self, query: str) -> SearchResult:
        """Model-free full-text search on the literal query, ranked by relevance."""
        posts = await self._repository.search(fallback_query(query), limit=self.max_results)
        return SearchResult(posts=posts, query=None, fallback=True)

    async def _compute(self, query: str, cache_key: str) -> SearchResult:
        try:
            parsed = await self._parse_with_retry(query)
            posts = await self._repository.search(compile_query(parsed), limit=self.max_results)
        except Exception as ai_error:
            logger.warning(
                "Search degraded to fallback | kind=%s | key=%s | %s",
                type(ai_error).__name__, cache_key, str(ai_error)[:200],
            )
            try:
                return await self.fallback_search(query)
            except DatastoreError as e:
                logger.error(
                    "Fallback search failed | key=%s | ai_error=%s | fallback_error=%s",
                    cache_key, str(ai_error)[:200], str(e)[:200],
                )
                raise SearchUnavailableError("Search is currently unavailable") from ai_error

        result = SearchResult(posts=posts, query=parsed, fallback=False)
        await self._cache.set(cache_key, result.model_dump(mode="json"))
        return result

    async def _parse_with_retry(self, query: str) -> ParsedQuery:
        """Every ModelError is retried; the first error wins if all attempts fail."""
        max_attempts = self.max_retries + 1
        first_error: ModelError | None = None

        for attempt in range(1, max_attempts + 1):
            try:
                return await self._model_client.parse_query(query)
            except ModelError as e:
                logger.warning(
                    "Query parse failed | attempt=%d/%d | kind=%s | %s",
                    attempt, max_attempts, type(e).__name__, str(e)[:200],
                )
                if first_error is None:
                    first_error = e
                if attempt < max_attempts and self.retry_delay:
                    await asyncio.sleep(self.retry_delay)

        raise first_error

    def _release(self, key: str, task: asyncio.Task) -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]
        # mark the exception retrieved when every waiter was cancelled
        if not task.cancelled():
            task.exception()
