"""Pydantic models for search input/output.

Field names are camelCase where the frontend reads them directly.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

CATEGORIES = ("playground", "road", "lighting", "animals", "water", "general")
SORT_VALUES = ("recent", "popular")


# ═══════════════ REQUEST ═══════════════

class SearchRequest(BaseModel):
    """Body of POST /api/search."""

    model_config = ConfigDict(str_strip_whitespace=True)

    query: str = Field(..., min_length=1, max_length=200)


# ═══════════════ MODEL OUTPUT ═══════════════

class ParsedQuery(BaseModel):
    """Structured search intent extracted from the model's answer."""
    keywords: list[str] = Field(..., min_length=1)
    category: str | None = None
    sortBy: Literal["recent", "popular"] | None = None


# ═══════════════ RESPONSE ═══════════════

class AuthorOut(BaseModel):
    id: uuid.UUID
    username: str = ""
    profileImage: str = ""


class PostOut(BaseModel):
    id: uuid.UUID
    text: str = ""
    image: str = ""
    likesCount: int = 0
    createdAt: datetime | None = None
    author: AuthorOut | None = None
    score: float | None = None


class SearchResult(BaseModel):
    """Final response — `query` is None exactly when `fallback` is True."""
    posts: list[PostOut] = Field(default_factory=list)
    query: ParsedQuery | None = None
    fallback: bool = False
