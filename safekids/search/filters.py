"""Filter compiler — ParsedQuery → post store query (search text + sort)."""

from dataclasses import dataclass
from enum import Enum

from safekids.search.schemas import ParsedQuery


class SortOrder(str, Enum):
    RECENT = "recent"        # created_at DESC
    POPULAR = "popular"      # likes_count DESC
    RELEVANCE = "relevance"  # ts_rank DESC


@dataclass(frozen=True)
class PostQuery:
    search_text: str
    sort: SortOrder


def compile_query(parsed: ParsedQuery) -> PostQuery:
    """Join keywords (plus a non-generic category) into one search expression.

    Sort is POPULAR only for sortBy == "popular"; everything else, including
    a missing sortBy, is RECENT.
    """
    search_text = " ".join(parsed.keywords)
    if parsed.category and parsed.category != "general":
        search_text = f"{search_text} {parsed.category}"

    sort = SortOrder.POPULAR if parsed.sortBy == "popular" else SortOrder.RECENT
    return PostQuery(search_text=search_text, sort=sort)


def fallback_query(raw_query: str) -> PostQuery:
    """Literal user text, ranked by relevance."""
    return PostQuery(search_text=raw_query, sort=SortOrder.RELEVANCE)


def to_search_expression(search_text: str) -> str:
    """OR together every whitespace token, websearch_to_tsquery style.

    A post matches when it contains any of the terms.
    """
    tokens = [t.replace('"', "") for t in search_text.split()]
    return " or ".join(t for t in tokens if t and t.lower() != "or")
