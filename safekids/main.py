"""SafeKids search backend — FastAPI application entry point.

Provides /api/search (AI-assisted post search) and /health.
"""

import logging
import time
from collections import defaultdict
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from safekids.config import settings
from safekids.database import async_session_factory
from safekids.search.schemas import SearchRequest
from safekids.search.service import SearchService
from safekids.services.cache import cache_service
from safekids.services.llm_client import OllamaClient
from safekids.services.post_repository import PostRepository

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
)
logger = logging.getLogger("safekids")


# ═══════════════ RATE LIMITER ═══════════════

class RateLimiter:
    """Fixed-window rate limiter by client identity."""

    def __init__(self, max_requests: int, window_seconds: int = 60):
        self.max_requests = max_requests
        self.window = window_seconds
        self._hits: dict[str, list[float]] = defaultdict(list)

    def is_limited(self, identity: str) -> bool:
        now = time.monotonic()
        window_start = now - self.window
        # Remove expired entries
        self._hits[identity] = [t for t in self._hits[identity] if t > window_start]
        if len(self._hits[identity]) >= self.max_requests:
            return True
        self._hits[identity].append(now)
        return False

    def reset(self):
        self._hits.clear()


rate_limiter = RateLimiter(settings.ai_rate_limit_max, settings.ai_rate_limit_window_seconds)

search_service = SearchService(
    model_client=OllamaClient.from_settings(settings),
    repository=PostRepository(async_session_factory),
    cache=cache_service,
)


def get_search_service() -> SearchService:
    """FastAPI dependency — the process-wide SearchService."""
    return search_service


# ═══════════════ LIFESPAN ═══════════════

@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        "SafeKids search starting | model=%s | endpoint=%s",
        settings.ollama_model, settings.ollama_base_url,
    )

    from safekids.database import close_db, init_db
    db_ok = await init_db()
    logger.info("Database: %s", "connected" if db_ok else "unavailable (searches will fail)")

    redis_ok = await cache_service.connect()
    logger.info("Redis: %s", "connected" if redis_ok else "unavailable (using in-memory fallback)")

    yield

    await cache_service.disconnect()
    await close_db()
    logger.info("SafeKids search shutting down")


# ═══════════════ APP ═══════════════

app = FastAPI(
    title="SafeKids Search API",
    description="AI-assisted bilingual search over community hazard reports",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["POST", "OPTIONS", "GET"],
    allow_headers=["Content-Type", "Authorization"],
)


# ═══════════════ ENDPOINTS ═══════════════

@app.get("/health")
async def health():
    return {
        "status": "ok",
        "model": settings.ollama_model,
        "cache": cache_service.backend,
    }


def _client_identity(request: Request) -> str:
    client_ip = request.headers.get("x-forwarded-for", "").split(",")[0].strip()
    if not client_ip:
        client_ip = request.client.host if request.client else "anonymous"
    return client_ip


@app.post("/api/search")
async def search(request: Request, service: SearchService = Depends(get_search_service)):
    """AI-assisted search with fallback-then-500 as the last resort."""
    identity = _client_identity(request)
    if rate_limiter.is_limited(identity):
        return JSONResponse(
            status_code=429,
            content={"error": "Too many search requests. Please try again later."},
        )

    try:
        body = await request.json()
    except Exception:
        return JSONResponse(status_code=400, content={"error": "Invalid request body."})

    try:
        search_req = SearchRequest.model_validate(body)
    except ValidationError as e:
        errors = [
            {"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
            for err in e.errors()
        ]
        return JSONResponse(status_code=400, content={"errors": errors})

    start = time.monotonic()
    try:
        result = await service.search(search_req.query)
    except Exception as e:
        logger.error("Search failed, trying fallback | %s", str(e)[:300])
        try:
            result = await service.fallback_search(search_req.query)
        except Exception as fallback_error:
            elapsed_ms = int((time.monotonic() - start) * 1000)
            logger.error("Search unavailable | %dms | %s", elapsed_ms, str(fallback_error)[:300])
            return JSONResponse(
                status_code=500,
                content={"error": "Search is currently unavailable"},
            )

    elapsed_ms = int((time.monotonic() - start) * 1000)
    logger.info(
        "Search completed | posts=%d | fallback=%s | %dms | client=%s",
        len(result.posts), result.fallback, elapsed_ms, identity,
    )
    return JSONResponse(content=result.model_dump(mode="json"))
